"""Image to PNG conversion via Pillow."""

from __future__ import annotations

import asyncio
import base64
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image

ImageSource = Union[Image.Image, str, Path]


def encode_png(image: ImageSource) -> bytes:
    """Encode an image (a Pillow image or a path to one) as PNG bytes."""
    if isinstance(image, (str, Path)):
        with Image.open(image) as opened:
            return encode_png(opened)

    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


async def image_to_png_bytes(image: ImageSource) -> bytes:
    """Encode off the event loop; completion is awaited by the export barrier."""
    return await asyncio.to_thread(encode_png, image)


def image_to_data_uri(image: ImageSource) -> str:
    encoded = base64.b64encode(encode_png(image)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
