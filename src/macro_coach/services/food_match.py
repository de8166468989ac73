"""Match parsed meal items against USDA FoodData Central."""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

from macro_coach.domain.meals import (
    LookupCandidate,
    MealItemLookup,
    StructuredMealItem,
)
from macro_coach.services.cache import Cache

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

MAX_CANDIDATES = 3


class FdcClient(Protocol):
    """Interface for FoodData Central search."""

    async def search_foods(self, query: str, page_size: int = 5) -> dict[str, object]:
        """Search foods by query and return raw API data."""


@dataclass(frozen=True)
class FoodCandidate:
    fdc_id: int
    description: str
    brand_owner: str | None = None
    data_type: str | None = None

    def to_lookup_candidate(self) -> LookupCandidate:
        return LookupCandidate(
            provider="usda", id=str(self.fdc_id), name=self.description
        )


@dataclass
class FoodMatchService:
    """Resolve pending item lookups to food database candidates."""

    fdc_client: FdcClient
    cache: Cache
    search_ttl_seconds: int = 3600
    search_limit: int = 5
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str) -> list[FoodCandidate]:
        """Search FDC foods, served from cache when possible."""
        cache_key = f"fdc:search:{query.lower()}:{self.search_limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._call_with_retry(
            lambda: self.fdc_client.search_foods(query, page_size=self.search_limit),
            action="search",
        )
        foods = [
            FoodCandidate(
                fdc_id=food["fdcId"],
                description=food.get("description", ""),
                brand_owner=food.get("brandOwner"),
                data_type=food.get("dataType"),
            )
            for food in payload.get("foods", [])
        ]
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        _logger.debug("FDC search: query=%s results=%s", query, len(foods))
        return foods

    async def match_items(
        self, items: tuple[StructuredMealItem, ...]
    ) -> tuple[StructuredMealItem, ...]:
        """Attach lookup results to every item still pending a lookup."""
        matched = []
        for item in items:
            if item.lookup.status != "pending":
                matched.append(item)
                continue
            try:
                foods = await self.search(item.name)
            except Exception:
                _logger.warning("Food lookup failed for %r", item.name, exc_info=True)
                matched.append(item)
                continue
            matched.append(apply_search_results(item, foods))
        return tuple(matched)

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "FDC %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def apply_search_results(
    item: StructuredMealItem, foods: list[FoodCandidate]
) -> StructuredMealItem:
    """Mark an item matched or ambiguous based on search hits."""
    if not foods:
        return item
    top = foods[0]
    if len(foods) == 1 or item.name.lower() in top.description.lower():
        return replace(
            item,
            lookup=MealItemLookup(
                status="matched", candidates=(top.to_lookup_candidate(),)
            ),
            flags=replace(item.flags, needs_lookup=False),
        )
    return replace(
        item,
        lookup=MealItemLookup(
            status="ambiguous",
            candidates=tuple(
                food.to_lookup_candidate() for food in foods[:MAX_CANDIDATES]
            ),
        ),
    )


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
