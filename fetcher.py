# fetcher.py
from dataclasses import dataclass
from typing import Optional

import requests

from config import FETCH_TIMEOUT, USER_AGENT
from errors import NetworkError
from logger import log


@dataclass(frozen=True)
class RawDocument:
    url: str
    status_code: int
    text: str
    content_type: str = ""

    @property
    def shape(self) -> Optional[str]:
        """Content shape declared by the server, if it declared a useful one."""
        ctype = self.content_type.lower()
        if "json" in ctype:
            return "json"
        if "csv" in ctype:
            return "csv"
        if "html" in ctype:
            return "html"
        return None


def fetch_document(url: str, timeout: float = FETCH_TIMEOUT, user_agent: str = USER_AGENT) -> RawDocument:
    """
    Fetch `url` once. Retrying is the caller's job.

    Raises NetworkError on timeout, connection failure or a non-2xx status.
    """
    headers = {"User-Agent": user_agent} if user_agent else {}
    try:
        resp = requests.get(url, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise NetworkError(f"Timed out after {timeout}s fetching {url}", url=url) from e
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Request to {url} failed: {e}", url=url) from e

    if not 200 <= resp.status_code < 300:
        raise NetworkError(
            f"Fetch failed for {url}: HTTP {resp.status_code}",
            url=url,
            status_code=resp.status_code,
        )

    doc = RawDocument(
        url=url,
        status_code=resp.status_code,
        text=resp.text,
        content_type=resp.headers.get("Content-Type", ""),
    )
    log.info(f"[fetch] {url} -> HTTP {resp.status_code}, {len(doc.text)} chars ({doc.shape or 'unknown'} declared)")
    return doc
