"""
Synchronous load-and-measure for chapter illustrations.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote_to_bytes

import requests
from reportlab.lib.utils import ImageReader

from .layout import ImageSize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedImage:
    reader: ImageReader
    width: int
    height: int

    @property
    def size(self) -> ImageSize:
        return ImageSize(width=self.width, height=self.height)


class ImageLoader:
    """
    Loads illustrations from data URIs, HTTP(S) URLs or local paths.

    Results are cached per source, including failures, so measuring during
    layout and drawing during rendering always see the same image.
    """

    def __init__(self, *, request_timeout: float = 30.0, session: requests.Session | None = None) -> None:
        self.request_timeout = request_timeout
        self._session = session or requests.Session()
        self._cache: dict[str, LoadedImage | None] = {}

    def load(self, source: str) -> LoadedImage | None:
        if source not in self._cache:
            self._cache[source] = self._load_uncached(source)
        return self._cache[source]

    def measure(self, source: str) -> ImageSize | None:
        loaded = self.load(source)
        return loaded.size if loaded is not None else None

    def _load_uncached(self, source: str) -> LoadedImage | None:
        try:
            data = self._read_bytes(source)
            reader = ImageReader(BytesIO(data))
            width, height = reader.getSize()
        except Exception:
            logger.warning("Could not load illustration from %s; skipping it.", _describe(source), exc_info=True)
            return None

        if width <= 0 or height <= 0:
            logger.warning("Illustration %s has no usable dimensions; skipping it.", _describe(source))
            return None
        return LoadedImage(reader=reader, width=int(width), height=int(height))

    def _read_bytes(self, source: str) -> bytes:
        if source.startswith("data:"):
            return _decode_data_uri(source)

        if source.lower().startswith(("http://", "https://")):
            response = self._session.get(source, timeout=self.request_timeout)
            response.raise_for_status()
            return response.content

        return Path(source).expanduser().read_bytes()


def _decode_data_uri(uri: str) -> bytes:
    header, separator, payload = uri.partition(",")
    if not separator:
        raise ValueError("Malformed data URI.")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


def _describe(source: str) -> str:
    return source if len(source) <= 80 else source[:77] + "..."
