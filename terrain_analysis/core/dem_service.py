"""Digital Elevation Model (DEM) service for terrain elevation queries.

Height Provider backed by a GeoTIFF:
- Fast O(1) nearest-cell lookup using a pre-loaded NumPy array
- Bilinear batch sampling for the higher-precision async pass
- Automatic coordinate transformation from WGS84 to the DEM's native CRS
- Optional download of the GeoTIFF over HTTP
- One instance per DEM file, loaded lazily and thread-safe
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from math import nan
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Sequence

import numpy as np
import rasterio
import requests
from rasterio.warp import transform
from scipy.ndimage import map_coordinates

from terrain_analysis.constants import DEMConfig

if TYPE_CHECKING:
    from terrain_analysis.model.position import Position

logger = logging.getLogger(__name__)


def download_dem(
    url: str,
    target_path: Path = DEMConfig.DEM_PATH,
    progress_callback: Optional[Callable[[float], None]] = None,
) -> Path:
    """Download a DEM GeoTIFF if not already present.

    Args:
        url: HTTP(S) location of the GeoTIFF.
        target_path: Local path to save the DEM file.
        progress_callback: Optional callback receiving progress 0.0-1.0.

    Returns:
        Path to the downloaded (or existing) DEM file.

    Raises:
        requests.RequestException: If download fails.
    """
    if target_path.exists():
        logger.info(f"DEM already exists at {target_path}")
        return target_path

    target_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Downloading DEM from {url}...")

    response = requests.get(url, stream=True, timeout=DEMConfig.DOWNLOAD_TIMEOUT_S)
    response.raise_for_status()

    total_size = int(response.headers.get("content-length", 0))
    downloaded = 0

    with open(target_path, "wb") as f:
        for chunk in response.iter_content(chunk_size=DEMConfig.DOWNLOAD_CHUNK_SIZE):
            f.write(chunk)
            downloaded += len(chunk)
            if progress_callback and total_size > 0:
                progress_callback(downloaded / total_size)

    logger.info(f"DEM downloaded to {target_path}")
    return target_path


class DEMService:
    """Height Provider sampling elevations from a GeoTIFF.

    One instance exists per DEM file so the raster is loaded into memory once.
    The array is loaded on first access and cached for fast subsequent queries.

    Example:
        dem = DEMService(dem_path=Path("data/dem.tif"))
        elevation = dem.get_elevation(lon=116.39, lat=39.91)
    """

    _instances: dict[Path, "DEMService"] = {}
    _instances_lock = threading.Lock()

    def __new__(cls, dem_path: Optional[Path] = None) -> "DEMService":
        """Create or return the instance for this DEM file.

        Args:
            dem_path: Path to the DEM file (uses DEMConfig.DEM_PATH by default)

        Returns:
            The DEMService instance bound to dem_path.
        """
        path = Path(dem_path or DEMConfig.DEM_PATH).resolve()
        with cls._instances_lock:
            instance = cls._instances.get(path)
            if instance is None:
                instance = super().__new__(cls)
                instance._dem_path = path
                instance._load_lock = threading.Lock()
                instance._dem = None
                instance._dem_crs = None
                instance._dem_array = None
                instance._dem_transform = None
                instance._dem_nodata = None
                cls._instances[path] = instance
        return instance

    @property
    def dem_path(self) -> Path:
        return self._dem_path

    @property
    def is_loaded(self) -> bool:
        """Check if DEM data has been fully loaded into memory."""
        return self._dem_transform is not None

    def _ensure_loaded(self) -> None:
        """Load DEM into memory on first access (thread-safe)."""
        # Fast path: already loaded
        if self.is_loaded:
            return

        with self._load_lock:
            # Double-check after acquiring lock
            if self.is_loaded:
                return

            if not self._dem_path.exists():
                raise FileNotFoundError(f"DEM file not found at {self._dem_path}. Use download_dem() to fetch one.")

            logger.info(f"Loading DEM from {self._dem_path}...")
            start_time = time.time()

            self._dem = rasterio.open(self._dem_path)
            self._dem_crs = self._dem.crs.to_string() if self._dem.crs else DEMConfig.WGS84_CRS
            array = self._dem.read(1).astype(np.float64)
            self._dem_nodata = self._dem.nodata
            if self._dem_nodata is not None:
                array[array == self._dem_nodata] = np.nan
            self._dem_array = array
            # Set _dem_transform LAST - this is what is_loaded checks
            self._dem_transform = self._dem.transform

            elapsed = time.time() - start_time
            logger.info(f"DEM loaded in {elapsed:.2f}s (shape: {self._dem_array.shape}, CRS: {self._dem_crs})")

    def _to_pixel(self, lons: Sequence[float], lats: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
        """Convert WGS84 coordinates to fractional (col, row) pixel coordinates."""
        if self._dem_crs != DEMConfig.WGS84_CRS:
            xs, ys = transform(DEMConfig.WGS84_CRS, self._dem_crs, list(lons), list(lats))
        else:
            xs, ys = list(lons), list(lats)

        x = np.asarray(xs, dtype=np.float64)
        y = np.asarray(ys, dtype=np.float64)
        # Inverse affine applied to whole arrays at once
        inverse = ~self._dem_transform
        cols = inverse.a * x + inverse.b * y + inverse.c
        rows = inverse.d * x + inverse.e * y + inverse.f
        return cols, rows

    def get_elevation(self, lon: float, lat: float) -> float | None:
        """Get elevation at a single point using direct NumPy array lookup.

        Args:
            lon: Longitude in decimal degrees (WGS84)
            lat: Latitude in decimal degrees (WGS84)

        Returns:
            Elevation in meters, or None if outside coverage or no-data.
        """
        self._ensure_loaded()

        cols, rows = self._to_pixel(lons=[lon], lats=[lat])
        col, row = int(np.floor(cols[0])), int(np.floor(rows[0]))

        if row < 0 or row >= self._dem_array.shape[0] or col < 0 or col >= self._dem_array.shape[1]:
            logger.warning(
                f"Coordinates outside DEM bounds: lon={lon}, lat={lat} (row={row}, col={col}, shape={self._dem_array.shape})"
            )
            return None

        elev = self._dem_array[row, col]
        if np.isnan(elev):
            logger.warning(f"No-data elevation at coordinates: lon={lon}, lat={lat}")
            return None

        return float(elev)

    def height(self, position: Position) -> float:
        """Height Provider query: nearest-cell elevation, NaN when unavailable."""
        elevation = self.get_elevation(lon=position.lon, lat=position.lat)
        return nan if elevation is None else elevation

    def sample_bilinear(self, positions: Sequence[Position]) -> list[float]:
        """Bilinearly interpolated elevations (NaN outside coverage or near no-data)."""
        self._ensure_loaded()
        if not positions:
            return []

        cols, rows = self._to_pixel(lons=[p.lon for p in positions], lats=[p.lat for p in positions])
        # Pixel centers sit at +0.5 in rasterio's affine convention
        values = map_coordinates(
            self._dem_array,
            [rows - 0.5, cols - 0.5],
            order=1,
            mode="constant",
            cval=np.nan,
        )
        return [float(v) for v in values]

    async def sample_batch(self, positions: Sequence[Position]) -> list[float]:
        """Batched higher-precision query, run off the event loop."""
        return await asyncio.to_thread(self.sample_bilinear, list(positions))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Return (west, south, east, north) bounds in WGS84.

        Returns:
            Tuple of (min_lon, min_lat, max_lon, max_lat) in decimal degrees.
        """
        self._ensure_loaded()
        b = self._dem.bounds

        if self._dem_crs != DEMConfig.WGS84_CRS:
            # Transform corners to WGS84
            corners_x = [b.left, b.right, b.left, b.right]
            corners_y = [b.bottom, b.bottom, b.top, b.top]
            lons, lats = transform(self._dem_crs, DEMConfig.WGS84_CRS, corners_x, corners_y)
            return min(lons), min(lats), max(lons), max(lats)

        return b.left, b.bottom, b.right, b.top
