"""Mock LLM backend for local development and tests."""

import logging

from errors import RemoteError
from llm.base import BaseLLM

log = logging.getLogger(__name__)


class MockLLM(BaseLLM):
    """Answers every question with the same canned reply.

    Set llm_mock_fail to simulate the remote service being down.
    """

    def __init__(self, config: dict):
        super().__init__(config)
        self._response = config.get("llm_mock_response", "This is a mock LLM response.")
        self._fail = config.get("llm_mock_fail", False)

    def _complete(self, messages: list[dict]) -> str:
        log.info("Mock LLM asked %r (%d prior messages)", messages[-1]["content"], len(messages) - 1)
        if self._fail:
            raise RemoteError("Mock LLM configured to fail")
        return self._response
