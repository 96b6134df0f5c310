import re
import time
from typing import Optional

import requests
from bs4 import BeautifulSoup
from loguru import logger

from syncd.config import get_settings

settings = get_settings()

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FetchError(Exception):
    """Raised when a listing page cannot be retrieved."""


def get_headers() -> dict:
    return {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }


def courtesy_delay(seconds: Optional[float] = None):
    if seconds is None:
        seconds = settings.scraper_page_delay
    if seconds > 0:
        time.sleep(seconds)


def fetch_page(url: str, timeout: Optional[int] = None) -> BeautifulSoup:
    if timeout is None:
        timeout = settings.scraper_timeout

    try:
        response = requests.get(url, headers=get_headers(), timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch {url}: {e}")
        raise FetchError(f"Failed to fetch {url}: {e}") from e

    return BeautifulSoup(response.text, "lxml")


def clean_text(text: str) -> str:
    """Collapse whitespace left over from the card markup."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def contains_keyword(text: str, keyword: str) -> bool:
    """Case-insensitive match of ``keyword`` at the start of a word."""
    if not text:
        return False
    return re.search(rf"\b{re.escape(keyword)}", text, re.IGNORECASE) is not None
