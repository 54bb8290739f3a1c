"""GitHub implementation of the platform client, backed by PyGithub."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from github import Auth, Github, GithubException

from covgate.config import GITHUB_API_URL, GITHUB_TOKEN
from covgate.errors import ConfigurationError, PlatformError
from covgate.integrations.base import PlatformClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repository:
    owner: str
    repo: str
    path: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repository(raw: str) -> Repository:
    """
    Parse ``owner/repo`` (optionally ``owner/repo/sub/path`` for monorepos).
    """
    text = str(raw or "").strip()
    if not text:
        raise ConfigurationError("repository: not set (or env GITHUB_REPOSITORY is not set)")
    parts = text.split("/")
    if len(parts) < 2:
        raise ConfigurationError(f"could not parse repository: {text}")
    for part in parts:
        if not part or not part.strip("."):
            raise ConfigurationError(f"invalid repository path: {text}")
    return Repository(owner=parts[0], repo=parts[1], path="/".join(parts[2:]))


class GitHubClient(PlatformClient):
    """
    Reads the GitHub Actions environment and queries the GitHub REST API.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._environ = environ if environ is not None else os.environ
        token = token or self._environ.get("GITHUB_TOKEN") or GITHUB_TOKEN
        if not token:
            raise PlatformError("env GITHUB_TOKEN is not set")
        base_url = (api_url or self._environ.get("GITHUB_API_URL") or GITHUB_API_URL).rstrip("/")
        self.client = Github(auth=Auth.Token(token), base_url=base_url)

    def _env(self, name: str) -> str:
        return str(self._environ.get(name, "") or "")

    def get_default_branch(self, owner: str, repo: str) -> str:
        try:
            return self.client.get_repo(f"{owner}/{repo}").default_branch
        except GithubException as exc:
            raise PlatformError(f"failed to get default branch of {owner}/{repo}: {exc}") from exc

    def detect_current_branch(self) -> str:
        # refs/heads/<branch> on push, refs/pull/<n>/merge on pull_request
        ref = self._env("GITHUB_REF")
        parts = ref.split("/")
        if len(parts) < 3:
            raise PlatformError("env GITHUB_REF is not set")
        if ref.startswith("refs/heads/"):
            return "/".join(parts[2:])
        head_ref = self._env("GITHUB_HEAD_REF")
        if not head_ref:
            raise PlatformError("env GITHUB_HEAD_REF is not set")
        return head_ref

    def detect_current_pull_request_number(self, owner: str, repo: str) -> int:
        ref = self._env("GITHUB_REF")
        parts = ref.split("/")
        if len(parts) < 3:
            raise PlatformError("env GITHUB_REF is not set")
        if ref.startswith("refs/pull/"):
            try:
                return int(parts[2])
            except ValueError as exc:
                raise PlatformError(f"invalid pull request ref: {ref}") from exc
        if not ref.startswith("refs/heads/"):
            raise PlatformError(f"could not detect number of pull request from {ref}")

        branch = "/".join(parts[2:])
        try:
            pulls = self.client.get_repo(f"{owner}/{repo}").get_pulls(state="open")
            numbers = [pr.number for pr in pulls if pr.head.ref == branch]
        except GithubException as exc:
            raise PlatformError(f"failed to list pull requests of {owner}/{repo}: {exc}") from exc
        if len(numbers) != 1:
            logger.debug("Open pull requests for branch %s: %s", branch, numbers)
            raise PlatformError("could not detect number of pull request")
        return numbers[0]

    def decode_event_payload(self) -> Tuple[str, Any]:
        name = self._env("GITHUB_EVENT_NAME")
        if not name:
            raise PlatformError("env GITHUB_EVENT_NAME is not set")
        path = self._env("GITHUB_EVENT_PATH")
        if not path:
            raise PlatformError("env GITHUB_EVENT_PATH is not set")
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise PlatformError(f"failed to decode event payload {path}: {exc}") from exc
        return name, payload
