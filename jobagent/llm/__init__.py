"""Completion endpoint clients.

Usage:
    from jobagent.llm import OpenAICompatibleClient

    client = OpenAICompatibleClient(settings.api)
    text = await client.complete(messages, max_tokens=1500, temperature=0.3)
"""

from jobagent.llm.base import CompletionClient, Message, strip_code_fences
from jobagent.llm.openai import OpenAICompatibleClient

__all__ = ["CompletionClient", "Message", "OpenAICompatibleClient", "strip_code_fences"]
