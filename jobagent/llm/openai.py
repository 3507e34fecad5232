"""OpenAI-compatible chat completions client (io.net, OpenAI, Ollama ...)."""

import logging

import httpx
import openai

from jobagent.core.config import ApiConfig
from jobagent.core.errors import TransportError
from jobagent.llm.base import CompletionClient, Message

logger = logging.getLogger(__name__)


class OpenAICompatibleClient(CompletionClient):
    """Calls ``POST {base_url}/chat/completions`` with a bearer credential.

    The underlying SDK client is created with ``max_retries=0``: a failed call
    is reported once and never retried.
    """

    def __init__(
        self,
        config: ApiConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        config.require()
        self._config = config
        self._client = openai.AsyncOpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=config.timeout_s,
            max_retries=0,
            http_client=http_client,
        )

    @property
    def model(self) -> str:
        return self._config.model

    async def complete(
        self,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        logger.debug(
            "Sending %d messages to %s (%s, max_tokens=%d)",
            len(messages), self._config.base_url, self.model, max_tokens,
        )
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.APIStatusError as e:
            body = e.response.text
            msg = f"Completion API error: {e.status_code} - {body}"
            raise TransportError(msg, status_code=e.status_code, body=body) from e
        except openai.APITimeoutError as e:
            msg = f"Completion API timed out after {self._config.timeout_s}s"
            raise TransportError(msg) from e
        except openai.APIConnectionError as e:
            msg = f"Completion API unreachable: {e}"
            raise TransportError(msg) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self._client.close()
