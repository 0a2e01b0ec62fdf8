import logging
from typing import Literal, TypedDict

from openai import AsyncOpenAI

from heartwise.core.config import settings

logger = logging.getLogger(__name__)


class ChatTurn(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class LLMClient:
    """Chat completion client for any OpenAI-compatible provider."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT

        resolved_api_key = api_key or settings.LLM_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
        )

    def _chat_completion_kwargs(
        self, *, temperature: float | None, max_tokens: int | None
    ) -> dict:
        """Build provider/model-compatible kwargs for chat completions."""
        model_name = (self.model_name or "").lower()
        kwargs: dict = {}
        # GPT-5 family rejects non-default temperature and the legacy max_tokens name.
        if model_name.startswith("gpt-5"):
            if max_tokens is not None:
                kwargs["max_completion_tokens"] = max_tokens
            return kwargs
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    async def generate_reply(
        self,
        messages: list[ChatTurn],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """
        Send one chat completion request and return the assistant text.
        Raises ValueError when the provider returns no usable content; no retries.
        """
        logger.info(
            "Issuing chat request to model %s with %s turns...",
            self.model_name,
            len(messages),
        )
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            **self._chat_completion_kwargs(
                temperature=settings.AI_TEMPERATURE if temperature is None else temperature,
                max_tokens=settings.AI_MAX_TOKENS if max_tokens is None else max_tokens,
            ),
        )

        if getattr(response, "choices", None) is None:
            logger.error(
                "Received invalid response structure from %s: %s",
                self.model_name,
                response,
            )
            raise ValueError(f"Provider {self.model_name} returned an invalid response")

        if len(response.choices) == 0:
            logger.error("Received 0 choices from %s: %s", self.model_name, response)
            raise ValueError(f"Provider {self.model_name} returned no output")

        text_response = (response.choices[0].message.content or "").strip()
        if not text_response:
            raise ValueError("No AI response generated")

        logger.info("Received chat response from %s (%s chars).", self.model_name, len(text_response))
        return text_response
