"""Load chord-sheet text from a file, stdin or an http(s) URL.

Web pages are reduced to their chord text: the contents of every ``<pre>``
block, or the visible page text when there is none.
"""

import logging
import sys
from pathlib import Path

import httpx
from bs4 import BeautifulSoup

from .exceptions import FetchError

logger = logging.getLogger(__name__)

STDIN = "-"


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def fetch(url: str) -> httpx.Response:
    """GET *url*, following redirects.

    Raises FetchError on connection failures (status 0) and non-200 replies.
    """
    try:
        resp = httpx.get(url, follow_redirects=True, timeout=15)
    except httpx.RequestError as exc:
        raise FetchError(url, 0) from exc
    if resp.status_code != 200:
        raise FetchError(url, resp.status_code)
    return resp


def html_to_text(html: str) -> str:
    """Return the text of every ``<pre>`` block, blank-line separated.

    Pages without ``<pre>`` fall back to the text of ``<body>``.
    """
    soup = BeautifulSoup(html, "html.parser")
    blocks = [pre.get_text() for pre in soup.find_all("pre")]
    if blocks:
        return "\n\n".join(block.strip("\n") for block in blocks)
    root = soup.body or soup
    return root.get_text("\n").strip()


def read_source(location: str) -> str:
    """Return the chord text at *location*: ``-`` for stdin, a URL, or a path.

    Raises FetchError for failed downloads and OSError for unreadable files.
    """
    if location == STDIN:
        return sys.stdin.read()
    if is_url(location):
        resp = fetch(location)
        logger.debug("fetched %s (%s)", location, resp.headers.get("content-type", "unknown type"))
        if "html" in resp.headers.get("content-type", ""):
            return html_to_text(resp.text)
        return resp.text
    return Path(location).read_text(encoding="utf-8")
