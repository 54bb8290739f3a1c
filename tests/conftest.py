import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import pytest

from covgate.context.builder import ContextAssembler
from covgate.context.types import RunContext
from covgate.errors import PlatformError
from covgate.integrations.base import PlatformClient

# Friday
FIXED_NOW = datetime(2024, 3, 15, 13, 45, tzinfo=timezone.utc)


class FakePlatformClient(PlatformClient):
    """
    In-memory platform client. Any answer may be an exception instance,
    which is raised instead of returned. Every call is recorded.
    """

    def __init__(self,
                 default_branch: Any = "main",
                 current_branch: Any = "main",
                 pull_request_number: Any = None,
                 event_name: str = "push",
                 payload: Any = None):
        self.default_branch = default_branch
        self.current_branch = current_branch
        self.pull_request_number = pull_request_number
        self.event_name = event_name
        self.payload = {} if payload is None else payload
        self.calls: List[str] = []

    def _answer(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if isinstance(value, Exception):
            raise value
        return value

    def get_default_branch(self, owner: str, repo: str) -> str:
        return self._answer("get_default_branch", self.default_branch)

    def detect_current_branch(self) -> str:
        return self._answer("detect_current_branch", self.current_branch)

    def detect_current_pull_request_number(self, owner: str, repo: str) -> int:
        number = self.pull_request_number
        if number is None:
            number = PlatformError("could not detect number of pull request")
        return self._answer("detect_current_pull_request_number", number)

    def decode_event_payload(self):
        payload = self._answer("decode_event_payload", self.payload)
        return self.event_name, payload


@pytest.fixture
def fake_client():
    return FakePlatformClient()


@pytest.fixture
def make_assembler():
    def _make(client: Optional[PlatformClient] = None,
              repository: str = "acme/api",
              environ=None,
              now: datetime = FIXED_NOW) -> ContextAssembler:
        return ContextAssembler(
            repository,
            client=client or FakePlatformClient(),
            environ={"CI": "true"} if environ is None else environ,
            now_fn=lambda: now,
        )

    return _make


@pytest.fixture
def pr_context() -> RunContext:
    return RunContext(
        year=2024,
        month=3,
        day=15,
        hour=13,
        weekday=5,
        event_name="pull_request",
        event_payload={
            "action": "opened",
            "pull_request": {
                "number": 7,
                "draft": False,
                "labels": [{"name": "release"}],
                "head": {"ref": "feature/x"},
            },
        },
        environment={"CI": "true", "GITHUB_REF": "refs/pull/7/merge"},
        is_default_branch=False,
        is_pull_request=True,
    )


@pytest.fixture(autouse=True)
def _restore_covgate_logger():
    logger = logging.getLogger("covgate")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
