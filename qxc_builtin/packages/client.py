"""HTTP download of tagged repository archives."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

import requests
from requests import RequestException, Response

from .errors import ArchiveDownloadError
from .layout import LibraryUri

log = logging.getLogger(__name__)


@dataclass
class ArchiveClient:
    """Fetches ``<base_url>/<owner>/<repo>/archive/refs/tags/<tag>.tar.gz``."""

    base_url: str
    timeout: float | Tuple[float, float] = 30.0
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self.session = requests.Session()

    def archive_url(self, uri: LibraryUri, tag: str) -> str:
        return f"{self.base_url}/{uri.owner}/{uri.repo}/archive/refs/tags/{tag}.tar.gz"

    def download(self, uri: LibraryUri, tag: str, out_path: Path, *, chunk_size: int = 1024 * 1024) -> Path:
        url = self.archive_url(uri, tag)
        log.debug("downloading %s", url)
        try:
            resp = self.session.get(url, stream=True, timeout=self.timeout)
        except RequestException as exc:
            raise ArchiveDownloadError(f"download {uri.repository}@{tag} failed: {exc}") from exc

        if resp.status_code >= 400:
            self._raise_download_error(resp, uri, tag)

        out_path.parent.mkdir(parents=True, exist_ok=True)
        partial = out_path.with_name(out_path.name + ".part")
        with partial.open("wb") as f:
            for chunk in resp.iter_content(chunk_size=chunk_size):
                if chunk:
                    f.write(chunk)
        partial.replace(out_path)
        return out_path

    def _raise_download_error(self, resp: Response, uri: LibraryUri, tag: str) -> None:
        raise ArchiveDownloadError(
            f"download {uri.repository}@{tag} failed: {resp.status_code} {resp.reason}"
        )
