"""
Isometric coordinate transformations.

Maps integer grid tiles to screen/world positions and back. The inverse
solves the projection exactly and rounds to the nearest tile, so
``screen_to_tile(*tile_to_screen(tx, ty))`` is always ``(tx, ty)``.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from common.src.constants import DEFAULT_TILE_HEIGHT, DEFAULT_TILE_WIDTH


@dataclass
class IsoProjection:
    """Projection parameters; replaced only when a room template loads."""
    tile_width: float = DEFAULT_TILE_WIDTH
    tile_height: float = DEFAULT_TILE_HEIGHT
    origin_x: float = 0.0
    origin_y: float = 0.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def tile_to_screen(tx: int, ty: int, projection: IsoProjection) -> Tuple[float, float]:
    """Convert tile coordinates to screen coordinates of the tile centre."""
    half_w = projection.tile_width / 2
    half_h = projection.tile_height / 2
    x = (tx - ty) * half_w + projection.origin_x
    y = (tx + ty) * half_h + projection.origin_y
    return (x, y)


def screen_to_tile(x: float, y: float, projection: IsoProjection) -> Tuple[int, int]:
    """Convert screen coordinates to the nearest tile."""
    half_w = projection.tile_width / 2
    half_h = projection.tile_height / 2
    u = (x - projection.origin_x) / half_w
    v = (y - projection.origin_y) / half_h
    tx = _round_half_up((u + v) / 2)
    ty = _round_half_up((v - u) / 2)
    return (tx, ty)


class CoordinateMapper:
    """
    Tile/screen mapper bound to a mutable projection.

    Holds no other state; the room loader calls ``configure`` when a new
    template changes the tile size or origin.
    """

    def __init__(self, projection: IsoProjection = None):
        self.projection = projection or IsoProjection()

    def configure(
        self,
        tile_width: float,
        tile_height: float,
        origin_x: float,
        origin_y: float,
    ) -> None:
        if tile_width <= 0 or tile_height <= 0:
            raise ValueError("tile dimensions must be positive")
        self.projection = IsoProjection(tile_width, tile_height, origin_x, origin_y)

    def tile_to_screen(self, tx: int, ty: int) -> Tuple[float, float]:
        return tile_to_screen(tx, ty, self.projection)

    def screen_to_tile(self, x: float, y: float) -> Tuple[int, int]:
        return screen_to_tile(x, y, self.projection)

    def tile_to_screen_f(self, tx: float, ty: float) -> Tuple[float, float]:
        """Project fractional tile positions (used for walk interpolation)."""
        return tile_to_screen(tx, ty, self.projection)
