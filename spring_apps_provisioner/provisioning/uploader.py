"""Uploads a packaged application archive to the SAS file URL handed out by Spring Apps."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import requests

from ..exceptions import ArtifactError

logger = logging.getLogger(__name__)

STORAGE_API_VERSION = "2021-08-06"
MAX_RANGE_BYTES = 4 * 1024 * 1024


class ArtifactUploader:
    """Thin wrapper around the Azure Files REST API for a single pre-signed file URL."""

    def __init__(self, timeout: int = 300, chunk_size: int = MAX_RANGE_BYTES):
        if not 0 < chunk_size <= MAX_RANGE_BYTES:
            raise ValueError(f"chunk_size must be between 1 and {MAX_RANGE_BYTES}")
        self._session = requests.Session()
        self._session.headers["x-ms-version"] = STORAGE_API_VERSION
        self._timeout = timeout
        self._chunk_size = chunk_size

    def upload(self, upload_url: str, path: str | Path) -> int:
        """Create the remote file and write ``path`` into it range by range. Returns bytes written."""
        path = Path(path)
        if not path.is_file():
            raise ArtifactError(f"Artifact not found: {path}")

        size = os.path.getsize(path)
        logger.info("Uploading %s (%d bytes)", path.name, size)

        self._create_file(upload_url, size)

        offset = 0
        with open(path, "rb") as f:
            while True:
                chunk = f.read(self._chunk_size)
                if not chunk:
                    break
                self._put_range(upload_url, offset, chunk)
                offset += len(chunk)

        logger.debug("Upload of %s complete", path.name)
        return offset

    # ── Azure Files operations ──────────────────────────────────────

    def _create_file(self, upload_url: str, size: int) -> None:
        self._request(
            "PUT", upload_url,
            headers={"x-ms-type": "file", "x-ms-content-length": str(size)},
        )

    def _put_range(self, upload_url: str, offset: int, chunk: bytes) -> None:
        end = offset + len(chunk) - 1
        self._request(
            "PUT", upload_url,
            params={"comp": "range"},
            headers={
                "x-ms-write": "update",
                "x-ms-range": f"bytes={offset}-{end}",
                "Content-Length": str(len(chunk)),
            },
            data=chunk,
        )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self._timeout)
        # The SAS token lives in the query string; never log it.
        logger.debug("%s %s params=%s", method, url.split("?", 1)[0], kwargs.get("params"))

        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise ArtifactError(f"Upload request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ArtifactError(
                f"HTTP {resp.status_code} on {method} upload: {resp.text}",
                status_code=resp.status_code,
                response_body=resp.text,
            )

        return resp
