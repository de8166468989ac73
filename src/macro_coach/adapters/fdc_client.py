"""USDA FoodData Central search client."""

from dataclasses import dataclass

import httpx

from macro_coach.services.food_match import FdcClient

DEFAULT_DATA_TYPES = ("Foundation", "SR Legacy")


@dataclass
class HttpxFdcClient(FdcClient):
    """HTTPX-backed FDC client limited to generic food data types."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    data_types: tuple[str, ...] = DEFAULT_DATA_TYPES

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxFdcClient":
        """Create an FDC client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_foods(self, query: str, page_size: int = 5) -> dict[str, object]:
        url = f"{self.base_url.rstrip('/')}/foods/search"
        response = await self.http_client.post(
            url,
            params={"api_key": self.api_key},
            json={
                "query": query,
                "pageSize": page_size,
                "dataType": list(self.data_types),
            },
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
