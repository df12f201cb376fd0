"""YouTube Data API client that turns a sport category into candidate highlight videos."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import TracebackType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Type

import httpx
from pydantic import ValidationError
from rich.console import Console

from scorefree.config.settings import Settings, get_settings
from scorefree.models.video import VideoRecord
from scorefree.services.rate_limit import CATALOG_SERVICE, RateLimiter, load_rate_limits
from scorefree.utils.validation import InvalidVideoIdError, validate_video_id

Clock = Callable[[], datetime]

HIGHLIGHT_KEYWORDS = ("highlights", "skills", "plays", "amazing", "moments")
EXCLUDED_KEYWORDS = ("score", "final", "result", "vs", "defeat", "win", "loss")
THUMBNAIL_PREFERENCE = ("high", "medium", "default")


class CatalogUnavailableError(RuntimeError):
    """Raised when the catalog cannot serve a category (network, HTTP status, or bad payload)."""

    def __init__(self, category: str, message: str) -> None:
        super().__init__(f"{category}: {message}")
        self.category = category
        self.message = message


def build_search_query(category: str) -> str:
    """Bias the catalog search toward highlight content and away from scoreboards."""

    excluded = " ".join(f"-{keyword}" for keyword in EXCLUDED_KEYWORDS)
    return f"{category.strip()} {' '.join(HIGHLIGHT_KEYWORDS)} {excluded}"


def format_rfc3339(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


class CatalogFetcher:
    """Fetch recent highlight candidates for a category from the YouTube Data API.

    Each fetch performs two sequential calls: a ``search`` restricted to the recency window,
    then a ``videos`` lookup for duration and view statistics. The fetcher owns its HTTP
    client unless one is injected; use it as an async context manager or call
    :meth:`aclose` when done.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._api_key = self._settings.require_api_key()
        self._console = console or Console()
        self._base_url = str(self._settings.catalog_base_url).rstrip("/")
        self._client = client
        self._owns_client = client is None
        self._rate_limiter = rate_limiter or load_rate_limits(self._settings.rate_limits).get(CATALOG_SERVICE)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def __aenter__(self) -> "CatalogFetcher":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this fetcher created it."""

        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def published_after(self) -> datetime:
        """Lower bound of the recency window relative to the injected clock."""

        return self._clock() - timedelta(hours=self._settings.recency_hours)

    async def fetch(self, category: str, max_results: int = 5) -> List[VideoRecord]:
        """Return up to ``max_results`` normalised, unclassified records for ``category``.

        Raises
        ------
        CatalogUnavailableError
            If either catalog call fails or returns a payload that cannot be read.
        """

        if max_results < 1:
            raise ValueError("max_results must be a positive integer")

        search_payload = await self._get_json(
            "search",
            {
                "part": "snippet",
                "q": build_search_query(category),
                "type": "video",
                "order": "date",
                "publishedAfter": format_rfc3339(self.published_after()),
                "maxResults": max_results,
            },
            category=category,
        )
        snippets = self._extract_snippets(search_payload, category)
        if not snippets:
            return []

        details_payload = await self._get_json(
            "videos",
            {"part": "contentDetails,statistics", "id": ",".join(snippets.keys())},
            category=category,
        )
        details = self._index_details(details_payload, category)

        records: List[VideoRecord] = []
        for video_id, snippet in snippets.items():
            record = self._build_record(video_id, snippet, details.get(video_id, {}), category)
            if record is not None:
                records.append(record)
        return records

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _http_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.catalog_timeout_seconds)
            self._owns_client = True
        return self._client

    async def _get_json(self, endpoint: str, params: Mapping[str, object], *, category: str) -> Mapping[str, object]:
        if self._rate_limiter is not None:
            await self._rate_limiter.acquire()

        url = f"{self._base_url}/{endpoint}"
        query = {**params, "key": self._api_key}
        try:
            response = await self._http_client().get(url, params=query)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise CatalogUnavailableError(
                category, f"{endpoint} request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogUnavailableError(category, f"{endpoint} request failed: {exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise CatalogUnavailableError(category, f"{endpoint} returned malformed JSON") from exc

        if not isinstance(payload, Mapping):
            raise CatalogUnavailableError(category, f"{endpoint} returned an unexpected payload")
        return payload

    def _items(self, payload: Mapping[str, object], endpoint: str, category: str) -> Sequence[Mapping[str, object]]:
        items = payload.get("items") or []
        if not isinstance(items, list):
            raise CatalogUnavailableError(category, f"{endpoint} payload has no item list")
        return [item for item in items if isinstance(item, Mapping)]

    def _extract_snippets(self, payload: Mapping[str, object], category: str) -> Dict[str, Mapping[str, object]]:
        snippets: Dict[str, Mapping[str, object]] = {}
        for item in self._items(payload, "search", category):
            identifier = item.get("id")
            try:
                video_id = validate_video_id(identifier.get("videoId") if isinstance(identifier, Mapping) else None)
            except InvalidVideoIdError as exc:
                self._console.log(f"[yellow]Skipping search result ({category}):[/yellow] {exc}")
                continue
            snippet = item.get("snippet")
            snippets.setdefault(video_id, snippet if isinstance(snippet, Mapping) else {})
        return snippets

    def _index_details(self, payload: Mapping[str, object], category: str) -> Dict[str, Mapping[str, object]]:
        return {str(item.get("id")): item for item in self._items(payload, "videos", category) if item.get("id")}

    def _build_record(
        self,
        video_id: str,
        snippet: Mapping[str, object],
        details: Mapping[str, object],
        category: str,
    ) -> Optional[VideoRecord]:
        content_details = details.get("contentDetails")
        statistics = details.get("statistics")
        duration = content_details.get("duration") if isinstance(content_details, Mapping) else None
        raw_views = statistics.get("viewCount") if isinstance(statistics, Mapping) else None

        try:
            return VideoRecord(
                external_id=video_id,
                title=str(snippet.get("title") or ""),
                description=str(snippet.get("description") or ""),
                thumbnail_url=self._thumbnail_url(snippet.get("thumbnails")),
                channel_name=str(snippet.get("channelTitle") or ""),
                published_at=snippet.get("publishedAt"),
                duration_iso=str(duration or "PT0S"),
                view_count=self._coerce_views(raw_views),
                category=category,
            )
        except ValidationError as exc:
            self._console.log(f"[yellow]Skipping malformed video {video_id}:[/yellow] {exc.error_count()} invalid fields")
            return None

    @staticmethod
    def _thumbnail_url(thumbnails: object) -> Optional[str]:
        if not isinstance(thumbnails, Mapping):
            return None
        for size in THUMBNAIL_PREFERENCE:
            candidate = thumbnails.get(size)
            if isinstance(candidate, Mapping) and candidate.get("url"):
                return str(candidate["url"])
        return None

    @staticmethod
    def _coerce_views(raw: object) -> int:
        try:
            return max(0, int(str(raw)))
        except (TypeError, ValueError):
            return 0


__all__ = ["CatalogFetcher", "CatalogUnavailableError", "build_search_query", "format_rfc3339"]
