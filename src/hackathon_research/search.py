"""Exa search client with response caching."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Protocol

import httpx

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ProviderError
from hackathon_research.models import SearchMode

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """A single ranked document returned by the search provider."""

    url: str
    title: str | None = None
    text: str | None = None
    image: str | None = None


class SearchCache(Protocol):
    def get_cached_search(self, key: str) -> dict | None: ...

    def cache_search(self, key: str, response: dict, ttl_hours: int = 24) -> None: ...


class ExaClient:
    """Exa search API client with caching and a minimum request interval.

    No retries happen here: a failed call raises ProviderError and the caller
    decides what to do with the query.
    """

    _MIN_INTERVAL = 0.25

    def __init__(self, config: ResearchConfig, cache: SearchCache | None = None) -> None:
        self._config = config
        self._cache = cache
        self._last_request_time: float = 0.0

    def _rate_limit(self) -> None:
        elapsed = time.time() - self._last_request_time
        if elapsed < self._MIN_INTERVAL:
            time.sleep(self._MIN_INTERVAL - elapsed)
        self._last_request_time = time.time()

    def _call_api(self, query: str, num_results: int, mode: SearchMode) -> dict:
        """Make a raw Exa API call."""
        self._rate_limit()
        payload = {
            "query": query,
            "type": mode.value,
            "numResults": num_results,
            "contents": {"text": True},
        }
        resp = httpx.post(
            self._config.search_endpoint,
            json=payload,
            headers={"x-api-key": self._config.exa_api_key},
            timeout=self._config.http_timeout_seconds,
        )
        resp.raise_for_status()
        return resp.json()

    @staticmethod
    def _cache_key(query: str, num_results: int, mode: SearchMode) -> str:
        return f"{mode.value}:{num_results}:{query}"

    def search(
        self,
        query: str,
        num_results: int | None = None,
        mode: SearchMode | str | None = None,
    ) -> list[SearchResult]:
        """Search Exa and return ranked results.

        An empty list is a valid outcome. Network, auth and rate-limit failures
        raise ProviderError.
        """
        num_results = num_results or self._config.search_num_results
        mode = SearchMode(mode or self._config.search_mode)
        key = self._cache_key(query, num_results, mode)

        if self._cache is not None:
            cached = self._cache.get_cached_search(key)
            if cached is not None:
                logger.debug("Search cache hit: %s", query)
                return self._parse_results(cached)

        if self._config.offline_mode:
            return []

        try:
            data = self._call_api(query, num_results, mode)
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Exa search failed with status {e.response.status_code}", provider="exa"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Exa search failed: {e}", provider="exa") from e
        except ValueError as e:
            raise ProviderError(f"Exa returned a non-JSON body: {e}", provider="exa") from e

        if self._cache is not None:
            self._cache.cache_search(key, data, ttl_hours=self._config.search_cache_ttl_hours)

        return self._parse_results(data)

    @staticmethod
    def _parse_results(data: dict) -> list[SearchResult]:
        """Parse an Exa API response into SearchResult objects."""
        items = data.get("results") or []
        return [
            SearchResult(
                url=item["url"],
                title=item.get("title"),
                text=item.get("text"),
                image=item.get("image"),
            )
            for item in items
            if item.get("url")
        ]
