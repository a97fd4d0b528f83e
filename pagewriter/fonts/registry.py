"""Registry of loaded font assets.

Fonts are fetched as raw bytes, validated by decoding them with Pillow, and
kept in load order. The registry is the only writer of the name-to-asset
mapping; the rasterizer and style application read from it.
"""

from __future__ import annotations

import io
import os
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import requests
from PIL import ImageFont

from pagewriter.errors import FontLoadError
from pagewriter.logger import get_logger

LOGGER = get_logger(__name__)

Fetcher = Callable[[str], bytes]

FALLBACK_FAMILIES = "Inter, sans-serif"


@dataclass(frozen=True)
class FontAsset:
    name: str
    source_location: str
    data: bytes = field(repr=False)


def fetch_bytes(location: str, timeout: Optional[float] = 30.0) -> bytes:
    """Fetch a binary asset from an http(s) URL or a local path."""
    if location.lower().startswith(("http://", "https://")):
        response = requests.get(location, timeout=timeout)
        response.raise_for_status()
        return response.content
    with open(location, "rb") as f:
        return f.read()


def friendly_name(name: str) -> str:
    """Display label for a font file stem: ``khmer_os-bold`` -> ``Khmer Os Bold``."""
    label = re.sub(r"\s+", " ", re.sub(r"[_-]+", " ", name)).strip()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), label)


def font_family_value(name: str) -> str:
    """CSS font-family value that prefers ``name`` and falls back to the defaults."""
    return f"'{name}', {FALLBACK_FAMILIES}"


def parse_family_list(value: Optional[str]) -> List[str]:
    families: List[str] = []
    for part in (value or "").split(","):
        name = part.strip().strip("'\"").strip()
        if name:
            families.append(name)
    return families


def filter_font_files(files: Iterable[Tuple[str, str]], extensions: Sequence[str]) -> List[Tuple[str, str]]:
    """Keep ``(file_name, url)`` entries with an accepted extension, named by file stem."""
    accepted = {ext.lower() for ext in extensions}
    out: List[Tuple[str, str]] = []
    for file_name, url in files:
        stem, ext = os.path.splitext(file_name)
        if ext.lower() in accepted and stem:
            out.append((stem, url))
    return out


class FontRegistry:
    def __init__(self, fetcher: Optional[Fetcher] = None, timeout: Optional[float] = 30.0) -> None:
        self._fetch: Fetcher = fetcher or (lambda location: fetch_bytes(location, timeout=timeout))
        self._assets: Dict[str, FontAsset] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    def get(self, name: str) -> Optional[FontAsset]:
        return self._assets.get(name)

    def list_loaded(self) -> List[str]:
        with self._lock:
            return list(self._assets)

    def register(self, name: str, source_location: str) -> FontAsset:
        """Fetch, decode and record a font under ``name``.

        A name that is already registered keeps its position in load order
        while its asset is replaced.

        Raises:
            FontLoadError: the fetch or the decode failed; nothing is recorded.
        """
        try:
            data = self._fetch(source_location)
        except (requests.RequestException, OSError, ValueError) as exc:
            raise FontLoadError(name, source_location, f"fetch failed: {exc}") from exc
        if not data:
            raise FontLoadError(name, source_location, "empty response")
        try:
            ImageFont.truetype(io.BytesIO(data), 12)
        except (OSError, ValueError) as exc:
            raise FontLoadError(name, source_location, f"decode failed: {exc}") from exc

        asset = FontAsset(name=name, source_location=source_location, data=data)
        with self._lock:
            self._assets[name] = asset
        LOGGER.info("Loaded font %s from %s", name, source_location)
        return asset

    def load_all(self, entries: Iterable[Tuple[str, str]]) -> List[FontAsset]:
        """Register each ``(name, location)``; failures are logged and skipped."""
        loaded: List[FontAsset] = []
        for name, location in entries:
            try:
                loaded.append(self.register(name, location))
            except FontLoadError as exc:
                LOGGER.warning("%s", exc)
        return loaded

    def load_from_source(self, source, extensions: Sequence[str] = (".woff", ".woff2")) -> List[FontAsset]:
        """Discover fonts on a remote source and load the ones with accepted extensions."""
        try:
            files = source.list_files()
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            LOGGER.warning("Could not list fonts from %s: %s", source, exc)
            return []
        return self.load_all(filter_font_files(files, extensions))

    def truetype(self, family: Optional[str], size: int) -> Optional[ImageFont.FreeTypeFont]:
        """Pillow font for the first registered family in a CSS family list."""
        for name in parse_family_list(family):
            asset = self._assets.get(name)
            if asset is None:
                continue
            try:
                return ImageFont.truetype(io.BytesIO(asset.data), max(1, int(size)))
            except (OSError, ValueError) as exc:
                LOGGER.warning("Font %s could not be opened at size %s: %s", name, size, exc)
        return None
