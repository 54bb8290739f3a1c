from abc import ABC, abstractmethod
from typing import Any, Tuple


class PlatformClient(ABC):
    """
    Version-control platform lookups needed to describe the current run.
    Every method raises ``PlatformError`` when the answer cannot be determined.
    """

    @abstractmethod
    def get_default_branch(self, owner: str, repo: str) -> str:
        pass

    @abstractmethod
    def detect_current_branch(self) -> str:
        pass

    @abstractmethod
    def detect_current_pull_request_number(self, owner: str, repo: str) -> int:
        pass

    @abstractmethod
    def decode_event_payload(self) -> Tuple[str, Any]:
        """Return ``(event_name, payload)`` of the event that triggered the run."""
        pass
