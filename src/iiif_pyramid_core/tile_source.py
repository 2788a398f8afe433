"""Tile-source objects handed to a deep-zoom viewer.

A tile source answers two questions for the viewer: how many tiles a pyramid
level has, and which URL serves tile `(level, x, y)`. Level `max_level` is
full resolution; each level below halves the image.
"""

from __future__ import annotations

import math
from typing import Any, NamedTuple

from .addressing import (
    build_image_url,
    level_dimensions,
    scaled_size_token,
    tile_quality,
    tile_region,
)
from .config_manager import get_config_manager
from .descriptor import ImageDescriptor
from .profiles import is_level0_profile

_TILE_SIZE_OPTIONS = (256, 512, 1024)


class TileCount(NamedTuple):
    x: int
    y: int


def default_tile_size(width: int, height: int, preferred: int | None = None) -> int:
    """Tile edge used when a descriptor does not declare one.

    A positive `preferred` wins. Otherwise the largest of 256/512/1024 that
    fits the image's short side, or the short side itself for tiny images.
    """
    if preferred and preferred > 0:
        return int(preferred)
    short_dim = min(width, height)
    fitting = [size for size in _TILE_SIZE_OPTIONS if size <= short_dim]
    return max(fitting) if fitting else short_dim


class TileSource:
    """Interface the deep-zoom viewer consumes."""

    width: int
    height: int
    min_level: int
    max_level: int
    profile: Any
    scale_factors: tuple[int, ...]
    version: int
    id: str
    tile_format: str

    def get_level_scale(self, level: int) -> float:
        """Fraction of full resolution shown at `level`."""
        return 0.5 ** (self.max_level - level)

    def get_num_tiles(self, level: int) -> TileCount:
        """Tile grid size at `level`."""
        raise NotImplementedError

    def get_tile_url(self, level: int, x: int, y: int) -> str:
        """URL of tile `(x, y)` at `level`; empty string when no such tile exists."""
        raise NotImplementedError

    @property
    def is_level0(self) -> bool:
        return is_level0_profile(self.profile)

    def levels(self) -> range:
        return range(self.min_level, self.max_level + 1)


class NativeTileSource(TileSource):
    """Dense tile pyramid built straight from an info.json descriptor."""

    def __init__(self, descriptor: ImageDescriptor, tile_size: int | None = None):
        self.descriptor = descriptor
        self.id = descriptor.id
        self.width = descriptor.width
        self.height = descriptor.height
        self.profile = descriptor.profile
        self.version = descriptor.version
        self.tile_format = descriptor.tile_format
        self.scale_factors = descriptor.scale_factors

        if tile_size is None:
            tile_size = get_config_manager().get_int_setting("tiling.default_tile_size", 0)
        fallback = default_tile_size(self.width, self.height, tile_size)
        self.tile_width = descriptor.tile_width or fallback
        self.tile_height = descriptor.tile_height or self.tile_width

        self.min_level = 0
        if self.scale_factors:
            self.max_level = int(round(math.log2(max(self.scale_factors))))
        else:
            self.max_level = int(math.ceil(math.log2(max(self.width, self.height))))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id!r}, {self.width}x{self.height}, "
            f"levels={self.min_level}..{self.max_level}, tile={self.tile_width}x{self.tile_height})"
        )

    def get_num_tiles(self, level: int) -> TileCount:
        scale = self.get_level_scale(level)
        return TileCount(
            int(math.ceil(self.width * scale / self.tile_width)),
            int(math.ceil(self.height * scale / self.tile_height)),
        )

    def get_tile_url(self, level: int, x: int, y: int) -> str:
        scale = self.get_level_scale(level)
        level_width, level_height = level_dimensions(self.width, self.height, scale)

        if level_width < self.tile_width and level_height < self.tile_height:
            size = scaled_size_token(level_width, level_height, self.width, self.height, self.version)
            return build_image_url(self.id, "full", size, tile_quality(self.version), self.tile_format)

        cover_w = round(self.tile_width / scale)
        cover_h = round(self.tile_height / scale)
        region = tile_region(x, y, cover_w, cover_h, self.width, self.height)
        if region is None:
            return ""

        if x == 0 and y == 0 and region.width == self.width and region.height == self.height:
            region_token = "full"
        else:
            region_token = region.token()

        size_w = int(math.ceil(region.width * scale))
        size_h = int(math.ceil(region.height * scale))
        size = scaled_size_token(size_w, size_h, self.width, self.height, self.version)
        return build_image_url(self.id, region_token, size, tile_quality(self.version), self.tile_format)
