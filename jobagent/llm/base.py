"""Abstract completion client and shared response helpers."""

import re
from abc import ABC, abstractmethod

Message = dict[str, str]


def strip_code_fences(raw_text: str) -> str:
    """Remove a markdown code fence (```json ... ```) wrapping a response."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    return re.sub(r"\n?```\s*$", "", cleaned)


class CompletionClient(ABC):
    """Base class for a chat-completion endpoint used as a text oracle."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model ID sent with every request."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send one chat request and return ``choices[0].message.content``.

        Args:
            messages: Chat messages as ``{"role": ..., "content": ...}`` dicts.
            max_tokens: Completion ceiling for this request.
            temperature: Sampling temperature.

        Returns:
            Raw text of the first choice ("" when the model returned none).

        Raises:
            TransportError: On a non-2xx response, timeout or connection failure.
        """

    async def aclose(self) -> None:
        """Release network resources. Clients holding none keep this no-op."""
