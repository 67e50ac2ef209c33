"""Streaming download of the distribution archive."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from tex2pdf.errors import DownloadError, TooManyRedirectsError

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def _write_body(response: httpx.Response, destination: Path) -> int:
    raw_length = response.headers.get("content-length", "")
    total = int(raw_length) if raw_length.isdigit() else 0
    downloaded = 0
    last_step = 0

    with destination.open("wb") as handle:
        for chunk in response.iter_bytes():
            handle.write(chunk)
            downloaded += len(chunk)
            if not total:
                continue
            step = min(downloaded * 100 // total, 100) // 10 * 10
            if step > last_step:
                logger.info("Download progress: %d%%", step)
                last_step = step

    return downloaded


def download_file(
    url: str,
    destination: Path,
    *,
    max_redirects: int = 10,
    timeout: float = 60.0,
    transport: httpx.BaseTransport | None = None,
) -> int:
    """Download ``url`` into ``destination`` and return the byte count.

    Redirects are followed by hand so the hop count stays bounded.
    """

    current = url
    with httpx.Client(timeout=timeout, follow_redirects=False, transport=transport) as client:
        for hop in range(max_redirects + 1):
            try:
                with client.stream("GET", current) as response:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("location")
                        if not location:
                            raise DownloadError(
                                f"Redirect {response.status_code} from '{current}' has no Location header"
                            )
                        current = str(response.url.join(location))
                        logger.debug("Redirect %d -> %s", hop + 1, current)
                        continue

                    if response.status_code != 200:
                        raise DownloadError(f"Download failed with status {response.status_code}")

                    return _write_body(response, destination)
            except httpx.HTTPError as exc:
                raise DownloadError(f"Failed to download '{current}': {exc}") from exc
            except OSError as exc:
                raise DownloadError(f"Failed to write '{destination}': {exc}") from exc

    raise TooManyRedirectsError(f"Exceeded {max_redirects} redirects while downloading '{url}'")
