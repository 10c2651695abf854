"""
Elasticsearch search collaborator using httpx

Queries the gateway request indices over a time window.
"""
import logging
from typing import Any, AsyncIterator

import httpx

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "@timestamp"


class ElasticsearchClient:
    """
    Minimal asynchronous Elasticsearch search client.

    Only issues `_search` requests; the query shape is fixed to a time range
    plus exact field matches.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Elasticsearch base URL
            headers: Additional HTTP headers (e.g. Authorization)
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (tests, proxies)
        """
        self.base_url = base_url
        self.headers = headers or {}
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json", **self.headers},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ElasticsearchClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @staticmethod
    def build_query(
        from_time: str,
        to_time: str,
        match_fields: list[tuple[str, Any]],
        max_results: int,
    ) -> dict[str, Any]:
        """Build the search body: events in [from_time, to_time) matching every field."""
        filters: list[dict[str, Any]] = [
            {"range": {TIMESTAMP_FIELD: {"gte": from_time, "lt": to_time}}},
        ]
        filters.extend({"match": {field: value}} for field, value in match_fields)
        return {
            "size": max_results,
            "query": {"bool": {"filter": filters}},
        }

    async def search_hits(
        self,
        index: str,
        from_time: str,
        to_time: str,
        match_fields: list[tuple[str, Any]],
        max_results: int,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Search events and yield them with the total match count.

        Yields one {"meta": {"total": int}, "hit": source} item per returned
        hit, or a single item with "hit": None when nothing matched, so that
        the total is always reported.

        Raises:
            httpx.HTTPError: On transport failure or error status
            ValueError: If the response has no hits section
        """
        body = self.build_query(from_time, to_time, match_fields, max_results)
        response = await self._client.post(f"/{index}/_search", json=body)
        response.raise_for_status()

        payload = response.json()
        hits = payload.get("hits")
        if not isinstance(hits, dict):
            raise ValueError(f"Malformed search response from index '{index}'")

        total = self._parse_total(hits.get("total"))
        logger.debug(f"Search on '{index}' for {match_fields}: {total} hit(s)")

        documents = hits.get("hits") or []
        if not documents:
            yield {"meta": {"total": total}, "hit": None}
            return
        for document in documents[:max_results]:
            yield {"meta": {"total": total}, "hit": document.get("_source")}

    @staticmethod
    def _parse_total(total: Any) -> int:
        # Elasticsearch 6 reports an int, 7+ reports {"value": n, "relation": "eq"}
        if isinstance(total, dict):
            total = total.get("value")
        if not isinstance(total, int):
            raise ValueError(f"Malformed hits total: {total!r}")
        return total
