"""Remote elevation service client.

Height Provider talking to an Open-Elevation compatible lookup endpoint:

    POST {base_url}/api/v1/lookup
    {"locations": [{"latitude": 39.9, "longitude": 116.4}, ...]}
    -> {"results": [{"latitude": ..., "longitude": ..., "elevation": 44.0}, ...]}

This is the source of the optional higher-fidelity sampling pass. The client
does not retry; HTTP failures propagate to whoever awaits sample_batch().
"""

from __future__ import annotations

import asyncio
import logging
from math import nan
from typing import TYPE_CHECKING, Any, Optional, Sequence

import requests

from terrain_analysis.constants import ElevationApiConfig

if TYPE_CHECKING:
    from terrain_analysis.model.position import Position

logger = logging.getLogger(__name__)


class ElevationApiClient:
    """Height Provider backed by an HTTP elevation lookup service.

    Example:
        client = ElevationApiClient(base_url="https://api.open-elevation.com")
        elevations = asyncio.run(client.sample_batch(positions))
    """

    def __init__(
        self,
        base_url: str = ElevationApiConfig.BASE_URL,
        session: Optional[requests.Session] = None,
        batch_size: int = ElevationApiConfig.BATCH_SIZE,
        timeout_s: float = ElevationApiConfig.TIMEOUT_S,
    ):
        """Initialize the client.

        Args:
            base_url: Service root URL (without the lookup path)
            session: requests.Session to reuse connections (created if not provided)
            batch_size: Maximum locations per request
            timeout_s: Per-request timeout in seconds
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._url = base_url.rstrip("/") + ElevationApiConfig.LOOKUP_PATH
        self._session = session or requests.Session()
        self._batch_size = batch_size
        self._timeout_s = timeout_s

    @property
    def url(self) -> str:
        return self._url

    def _lookup(self, positions: Sequence[Position]) -> list[float]:
        """POST one batch and parse the elevations in request order."""
        payload = {"locations": [{"latitude": p.lat, "longitude": p.lon} for p in positions]}
        response = self._session.post(self._url, json=payload, timeout=self._timeout_s)
        response.raise_for_status()

        results: list[dict[str, Any]] = response.json().get("results", [])
        if len(results) != len(positions):
            raise RuntimeError(f"Elevation service returned {len(results)} results for {len(positions)} locations")

        elevations = []
        for result in results:
            elevation = result.get("elevation")
            elevations.append(nan if elevation is None else float(elevation))
        return elevations

    def lookup(self, positions: Sequence[Position]) -> list[float]:
        """Blocking lookup of all positions, split into batches."""
        elevations: list[float] = []
        for start in range(0, len(positions), self._batch_size):
            batch = positions[start : start + self._batch_size]
            elevations.extend(self._lookup(batch))
        logger.debug(f"Fetched {len(elevations)} elevations from {self._url}")
        return elevations

    def height(self, position: Position) -> float:
        """Single-point query (one HTTP request)."""
        return self._lookup([position])[0]

    async def sample_batch(self, positions: Sequence[Position]) -> list[float]:
        """Batched query run in a worker thread so the event loop stays free."""
        return await asyncio.to_thread(self.lookup, list(positions))
