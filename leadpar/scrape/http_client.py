"""Light-weight HTTP client used to fetch pages for extraction."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

import requests
from bs4 import UnicodeDammit
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from leadpar.core.config import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_BYTES,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)
from leadpar.infra.logging import get_unified_logger

_ACCEPT = "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.5"
_CHUNK = 16 * 1024


class HttpClient:
    """Simple wrapper around :mod:`requests` with retry support and a body size cap.

    ``get`` never raises: any network, protocol or decoding error yields ``None``.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        max_bytes: int = DEFAULT_MAX_BYTES,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.session = session or requests.Session()
        if session is None:
            retry = Retry(
                total=retries,
                backoff_factor=backoff_factor,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET", "HEAD"],
            )
            adapter = HTTPAdapter(max_retries=retry)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)
        self.session.headers.update({"User-Agent": user_agent, "Accept": _ACCEPT})

    @classmethod
    def from_config(cls, conf: Any) -> "HttpClient":
        return cls(
            timeout=conf.timeout,
            retries=conf.retries,
            backoff_factor=conf.backoff_factor,
            max_bytes=conf.max_bytes,
            user_agent=conf.user_agent,
        )

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def __call__(self, url: str) -> Optional[str]:
        return self.get(url)

    def get(self, url: str) -> Optional[str]:
        """Fetch *url* and return at most ``max_bytes`` of its text, or ``None`` on failure."""
        logger = get_unified_logger("scrape", "http")
        scheme = urlparse(url).scheme.lower() if url else ""
        if scheme not in ("http", "https"):
            logger.warning("refusing to fetch %r: unsupported scheme", url)
            return None
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as resp:
                resp.raise_for_status()
                body = self._read_capped(resp)
                content_type = resp.headers.get("Content-Type", "").lower()
                declared = resp.encoding if "charset=" in content_type else None
            return self._decode(body, declared)
        except requests.RequestException as e:
            logger.warning("unable to retrieve %s: %s", url, e)
            return None

    @staticmethod
    def _decode(body: bytes, declared: Optional[str]) -> str:
        # header charset first, then <meta> sniffing and detection
        dammit = UnicodeDammit(
            body, known_definite_encodings=[declared] if declared else [], is_html=True
        )
        if dammit.unicode_markup is not None:
            return dammit.unicode_markup
        return body.decode("utf-8", errors="replace")

    def _read_capped(self, resp: requests.Response) -> bytes:
        buf = bytearray()
        for chunk in resp.iter_content(chunk_size=_CHUNK):
            if not chunk:
                continue
            buf.extend(chunk)
            if len(buf) >= self.max_bytes:
                get_unified_logger("scrape", "http").debug(
                    "%s truncated at %d bytes", resp.url, self.max_bytes
                )
                del buf[self.max_bytes:]
                break
        return bytes(buf)


__all__ = ["HttpClient"]
