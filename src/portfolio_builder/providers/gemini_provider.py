from __future__ import annotations

from io import BytesIO
from typing import Any

from PIL import Image

from portfolio_builder.config import settings
from portfolio_builder.providers.base import GeneratedImage


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str) -> None:
        # Imported lazily so the app can start without the dependency installed.
        from google import genai  # type: ignore
        from google.genai import types  # type: ignore

        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(settings.generation_timeout_s * 1000)),
        )

    async def complete(self, prompt: str) -> str:
        from google.genai import types  # type: ignore

        resp = await self.client.aio.models.generate_content(
            model=settings.gemini_text_model,
            contents=[prompt],
            config=types.GenerateContentConfig(response_mime_type="application/json"),
        )
        return getattr(resp, "text", "") or ""

    async def generate_image(self, prompt: str) -> GeneratedImage | None:
        """
        Two paths depending on model family:
        - Imagen models: `models.generate_images(...)` (text-to-image)
        - Gemini image-generation models: `models.generate_content(...)` with image response modality
        """
        from google.genai import types  # type: ignore

        model = settings.gemini_image_model

        if model.startswith("imagen-"):
            resp = await self.client.aio.models.generate_images(
                model=model,
                prompt=prompt,
                config=types.GenerateImagesConfig(number_of_images=1, aspect_ratio="4:3"),
            )
            for gi in getattr(resp, "generated_images", []) or []:
                img_bytes = getattr(getattr(gi, "image", None), "image_bytes", None)
                if not img_bytes:
                    continue
                return GeneratedImage(
                    image=Image.open(BytesIO(img_bytes)),
                    prompt_used=prompt,
                    provider=self.name,
                    model=model,
                    raw_metadata={},
                )
            return None

        resp = await self.client.aio.models.generate_content(
            model=model,
            contents=[prompt],
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        extracted = _extract_images_from_generate_content(resp)
        if not extracted:
            return None
        img, meta = extracted[0]
        return GeneratedImage(image=img, prompt_used=prompt, provider=self.name, model=model, raw_metadata=meta)


def _extract_images_from_generate_content(resp: Any) -> list[tuple[Image.Image, dict[str, Any]]]:
    out: list[tuple[Image.Image, dict[str, Any]]] = []
    for cand in getattr(resp, "candidates", []) or []:
        content = getattr(cand, "content", None)
        parts = getattr(content, "parts", None) or []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if not inline:
                continue
            mime = getattr(inline, "mime_type", None) or ""
            data = getattr(inline, "data", None)
            if not data:
                continue
            if mime and not mime.startswith("image/"):
                continue
            try:
                img = Image.open(BytesIO(data))
            except Exception:
                continue
            out.append((img, {"mime_type": mime}))
    return out
