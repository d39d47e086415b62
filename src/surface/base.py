"""Abstract base class for interaction surfaces."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

log = logging.getLogger(__name__)


class BaseSurface(ABC):
    """Common interface for the conversation UI opened after a wake word.

    open() must return promptly; the conversation runs elsewhere and
    on_closed() is called exactly once when it ends.
    """

    @abstractmethod
    def open(self, on_closed: Callable[[], None]) -> None:
        """Begin an interaction; call on_closed() once it is over."""
        ...

    @property
    def is_open(self) -> bool:
        return False

    def report_failure(self, error: Exception) -> None:
        """Show a user-visible failure (no microphone, bad credential...)."""
        log.error("Assistant unavailable: %s", error)

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass
