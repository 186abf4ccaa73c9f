from __future__ import annotations

from portfolio_builder.config import settings


class OpenAITextProvider:
    name = "openai"

    def __init__(self, api_key: str) -> None:
        from openai import AsyncOpenAI  # type: ignore

        self.client = AsyncOpenAI(api_key=api_key, timeout=settings.generation_timeout_s)

    async def complete(self, prompt: str) -> str:
        # The Responses API is the forward path; keep it minimal.
        resp = await self.client.responses.create(
            model=settings.openai_text_model,
            input=prompt,
        )
        return resp.output_text or ""
