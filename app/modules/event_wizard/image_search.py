"""
Cover image suggestions from the Unsplash search API.
"""

import time
import requests
from fastapi import HTTPException
from app.config import settings
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

PER_PAGE = 9
MAX_PAGES = 3
WANTED = 3
# Cover images should show the place or the theme, not somebody's face
EXCLUDED_WORDS = ("people", "portrait")

# query -> (urls, expiry)
_IMAGE_CACHE: Dict[str, tuple] = {}


def clear_cache() -> None:
    _IMAGE_CACHE.clear()


def keep_result(result: dict) -> bool:
    description = (result.get("description") or "").lower()
    return not any(word in description for word in EXCLUDED_WORDS)


class ImageSearch:
    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.unsplash_api_key
        self.api_url = api_url or settings.unsplash_api_url

    def _fetch_page(self, query: str, page: int) -> List[dict]:
        response = requests.get(
            self.api_url,
            params={
                "query": query,
                "per_page": PER_PAGE,
                "page": page,
                "orientation": "landscape",
            },
            headers={
                "Authorization": f"Client-ID {self.api_key}",
                "Accept-Version": "v1",
            },
            timeout=settings.image_search_timeout_sec,
        )
        response.raise_for_status()
        return response.json().get("results") or []

    def search(self, query: str) -> List[str]:
        """Up to three landscape image URLs for query, cached for a day"""
        query = query.strip()
        if not query:
            return []
        now = time.monotonic()
        cached = _IMAGE_CACHE.get(query)
        if cached:
            urls, expiry = cached
            if now < expiry:
                return list(urls)
            del _IMAGE_CACHE[query]
        if not self.api_key:
            raise HTTPException(status_code=502, detail="Image search is not configured")

        urls: List[str] = []
        page = 1
        try:
            while len(urls) < WANTED and page <= MAX_PAGES:
                for result in self._fetch_page(query, page):
                    url = (result.get("urls") or {}).get("regular")
                    if url and keep_result(result):
                        urls.append(url)
                page += 1
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Unsplash search for '{query}' failed: {e}")
            raise HTTPException(status_code=502, detail=f"Failed to search images: {str(e)}")

        urls = urls[:WANTED]
        if len(urls) < WANTED:
            logger.info(f"Only {len(urls)} usable image(s) for '{query}'")
        _IMAGE_CACHE[query] = (urls, now + settings.image_search_cache_ttl_sec)
        return list(urls)
