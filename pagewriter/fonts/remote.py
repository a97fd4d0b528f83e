"""Remote font discovery on a GitHub repository."""

from __future__ import annotations

from typing import List, Optional, Protocol, Tuple
from urllib.parse import quote

import requests


class RemoteFontSource(Protocol):
    def list_files(self) -> List[Tuple[str, str]]: ...


class GithubFontSource:
    """Lists files of a repository directory through the contents API.

    Each entry is returned as ``(file_name, raw_download_url)``.
    """

    API_ROOT = "https://api.github.com"
    RAW_ROOT = "https://raw.githubusercontent.com"

    def __init__(self, owner: str, repo: str, path: str = "", branch: str = "main",
                 timeout: Optional[float] = 30.0) -> None:
        self.owner = owner
        self.repo = repo
        self.path = path.strip("/")
        self.branch = branch
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"GithubFontSource({self.owner}/{self.repo}/{self.path})"

    @property
    def api_url(self) -> str:
        path_seg = f"/{self.path}" if self.path else ""
        return f"{self.API_ROOT}/repos/{self.owner}/{self.repo}/contents{path_seg}"

    @property
    def raw_base(self) -> str:
        path_seg = f"/{self.path}" if self.path else ""
        return f"{self.RAW_ROOT}/{self.owner}/{self.repo}/{self.branch}{path_seg}"

    def list_files(self) -> List[Tuple[str, str]]:
        response = requests.get(self.api_url, timeout=self.timeout, headers={"Accept": "application/vnd.github+json"})
        response.raise_for_status()
        entries = response.json()
        if not isinstance(entries, list):
            raise ValueError(f"Unexpected contents listing from {self.api_url}")
        return [
            (entry["name"], f"{self.raw_base}/{quote(entry['name'])}")
            for entry in entries
            if entry.get("type", "file") == "file"
        ]
