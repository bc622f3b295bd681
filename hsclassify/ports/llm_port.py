"""
ports/llm_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for LLM (large language model) providers.

Current implementations: GeminiLLMAdapter (default), OpenAILLMAdapter
To swap: write a new adapter implementing this Protocol, then register it
in services/container.py.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class LLMPort(Protocol):
    """Contract for a JSON-generating LLM provider."""

    @property
    def model_name(self) -> str:
        """Identifier of the underlying LLM."""
        ...

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: Optional[dict] = None,
    ) -> str | None:
        """Send a prompt to the LLM and return its JSON response as a string.

        The adapter declares ``response_schema`` (if given) to the provider
        as the expected output shape.  The provider is not trusted to honour
        it: callers still parse and validate the returned string.

        Args:
            system_prompt:   System-level instruction.
            user_message:    User-turn content.
            response_schema: JSON-schema object describing the output.

        Returns:
            Raw JSON string, or None if the call failed.

        Raises:
            AuthenticationError: If the provider rejects the credentials.
        """
        ...
