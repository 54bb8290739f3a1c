import logging
import os
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from covgate.context.types import RunContext
from covgate.errors import PlatformError
from covgate.integrations.base import PlatformClient
from covgate.integrations.github import GitHubClient, parse_repository

logger = logging.getLogger(__name__)


class ContextAssembler:
    """
    Builds a RunContext for the current CI invocation.

    Branch and pull request detection are best effort: when they fail the
    matching flag is False. A missing event payload or an unreachable default
    branch is fatal.
    """

    def __init__(self,
                 repository: str,
                 client: Optional[PlatformClient] = None,
                 client_factory: Callable[[], PlatformClient] = GitHubClient,
                 environ: Optional[Mapping[str, str]] = None,
                 now_fn: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self._client = client
        self._client_factory = client_factory
        self._environ = environ
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    @property
    def client(self) -> PlatformClient:
        """Platform client, constructed on first use and reused afterwards."""
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def assemble(self) -> RunContext:
        repo = parse_repository(self.repository)
        client = self.client

        event_name, payload = client.decode_event_payload()
        default_branch = client.get_default_branch(repo.owner, repo.repo)

        is_default_branch = False
        try:
            branch = client.detect_current_branch()
            is_default_branch = branch == default_branch
        except PlatformError as exc:
            logger.debug("Current branch unknown, assuming non-default branch: %s", exc)

        is_pull_request = False
        try:
            number = client.detect_current_pull_request_number(repo.owner, repo.repo)
            is_pull_request = True
            logger.debug("Detected pull request #%s", number)
        except PlatformError as exc:
            logger.debug("Pull request unknown, assuming none: %s", exc)

        now = self._now_fn().astimezone(timezone.utc)
        environment = dict(self._environ if self._environ is not None else os.environ)
        return RunContext(
            year=now.year,
            month=now.month,
            day=now.day,
            hour=now.hour,
            weekday=now.isoweekday() % 7,
            event_name=event_name,
            event_payload=payload,
            environment=environment,
            is_default_branch=is_default_branch,
            is_pull_request=is_pull_request,
        )
