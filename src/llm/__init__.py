"""Remote language model that answers the user during an interaction.

Backends:
- MockLLM: canned replies, optional simulated outage (development/tests)
- ClaudeLLM: Anthropic Claude API
"""

from llm.base import BaseLLM


def get_llm(config: dict) -> BaseLLM:
    """Create the LLM backend selected by llm_mode."""
    if config.get("llm_mode", "mock") == "claude":
        from llm.claude_llm import ClaudeLLM

        return ClaudeLLM(config)

    from llm.mock_llm import MockLLM

    return MockLLM(config)
