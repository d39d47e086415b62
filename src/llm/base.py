"""Abstract base class for the remote language model used in conversations."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from errors import RemoteError

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful desktop voice assistant. "
    "Your replies are spoken aloud, so keep them to two or three short sentences. "
    "Be conversational and direct. Do not use markdown, lists or emoji."
)


@dataclass(frozen=True)
class Exchange:
    user: str
    assistant: str
    at: float


class Conversation:
    """Rolling user/assistant history for one interaction.

    Keeps at most max_exchanges pairs; pairs older than ttl seconds are
    dropped the next time messages are built (ttl <= 0 disables expiry).
    """

    def __init__(self, max_exchanges: int = 10, ttl: float = 300):
        self._max_exchanges = max_exchanges
        self._ttl = ttl
        self._exchanges: list[Exchange] = []

    @property
    def exchanges(self) -> list[Exchange]:
        return list(self._exchanges)

    def __len__(self) -> int:
        return len(self._exchanges)

    def messages(self, text: str) -> list[dict]:
        """Chat messages for the history plus the new user turn."""
        if self._ttl > 0:
            cutoff = time.monotonic() - self._ttl
            self._exchanges = [e for e in self._exchanges if e.at > cutoff]
        messages = []
        for exchange in self._exchanges:
            messages.append({"role": "user", "content": exchange.user})
            messages.append({"role": "assistant", "content": exchange.assistant})
        messages.append({"role": "user", "content": text})
        return messages

    def record(self, user: str, assistant: str) -> None:
        self._exchanges.append(Exchange(user, assistant, time.monotonic()))
        overflow = len(self._exchanges) - self._max_exchanges
        if overflow > 0:
            del self._exchanges[:overflow]

    def clear(self) -> None:
        self._exchanges.clear()


class BaseLLM(ABC):
    """Answers transcribed user speech, remembering the current conversation.

    Subclasses implement _complete(); respond() owns the history and turns
    an empty completion into a RemoteError.
    """

    def __init__(self, config: dict):
        self.conversation = Conversation(
            config.get("llm_max_history", 10),
            config.get("llm_history_ttl", 300),
        )
        self.system_prompt = config.get("llm_system_prompt") or DEFAULT_SYSTEM_PROMPT

    def respond(self, text: str) -> str:
        """Reply to one user utterance.

        Raises:
            RemoteError: the model could not produce a reply. The failed
                turn is not added to the history.
        """
        reply = self._complete(self.conversation.messages(text)).strip()
        if not reply:
            raise RemoteError(f"{self.__class__.__name__} returned an empty reply")
        self.conversation.record(text, reply)
        return reply

    def clear_history(self) -> None:
        """Forget the conversation so far (called when a new interaction opens)."""
        self.conversation.clear()

    @abstractmethod
    def _complete(self, messages: list[dict]) -> str:
        ...

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass
