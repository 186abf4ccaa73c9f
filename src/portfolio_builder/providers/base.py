from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from PIL import Image


@dataclass(frozen=True)
class GeneratedImage:
    image: Image.Image
    prompt_used: str
    provider: str
    model: str
    raw_metadata: dict[str, Any]


class TextProvider(Protocol):
    name: str

    async def complete(self, prompt: str) -> str: ...


class ImageProvider(Protocol):
    name: str

    async def generate_image(self, prompt: str) -> GeneratedImage | None: ...
