"""Font assets: registry, remote discovery and CSS helpers."""

from .registry import (
    FontAsset,
    FontRegistry,
    fetch_bytes,
    filter_font_files,
    font_family_value,
    friendly_name,
    parse_family_list,
)
from .remote import GithubFontSource, RemoteFontSource

__all__ = [
    "FontAsset",
    "FontRegistry",
    "GithubFontSource",
    "RemoteFontSource",
    "fetch_bytes",
    "filter_font_files",
    "font_family_value",
    "friendly_name",
    "parse_family_list",
]
