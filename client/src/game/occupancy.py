"""
Tile occupancy and wall collision for the current room.
"""

from typing import Iterator, List, Optional, Set, Tuple

Tile = Tuple[int, int]


class OccupancyModel:
    """
    Answers whether a tile is inside the room and whether it is blocked.

    A room is either rectangular (``cols`` x ``rows``) or described by an
    explicit row-major tile mask; the mask, when present, decides validity.
    Edge detection always uses the rectangular bounds, also for mask rooms,
    which can mark the wrong tiles as walls on non-convex layouts.
    """

    def __init__(self, cols: int = 0, rows: int = 0, mask: Optional[List[List[int]]] = None):
        self.cols = cols
        self.rows = rows
        self.mask = mask
        # Wall colliders, rebuilt on every redraw
        self.blocked: Set[Tile] = set()

    @classmethod
    def empty(cls) -> "OccupancyModel":
        """Occupancy for 'no room loaded': every tile is outside."""
        return cls(0, 0, None)

    def inside_room(self, tx: int, ty: int) -> bool:
        """Check whether a tile is part of the room floor."""
        if self.mask is not None:
            if ty < 0 or ty >= len(self.mask):
                return False
            row = self.mask[ty]
            if tx < 0 or tx >= len(row):
                return False
            return row[tx] == 1

        return 0 <= tx < self.cols and 0 <= ty < self.rows

    def is_edge_tile(self, tx: int, ty: int) -> bool:
        """Check whether a valid tile lies on the room's rectangular border."""
        if not self.inside_room(tx, ty):
            return False
        return tx == 0 or ty == 0 or tx == self.cols - 1 or ty == self.rows - 1

    def iter_floor_tiles(self) -> Iterator[Tile]:
        """Yield every valid tile within the rectangular bounds, row by row."""
        for ty in range(self.rows):
            for tx in range(self.cols):
                if self.inside_room(tx, ty):
                    yield (tx, ty)

    def edge_tiles(self) -> List[Tile]:
        return [tile for tile in self.iter_floor_tiles() if self.is_edge_tile(*tile)]

    def rebuild_colliders(self) -> Set[Tile]:
        """Recompute the wall collider set from the room's edge tiles."""
        self.blocked = set(self.edge_tiles())
        return self.blocked

    def is_blocked(self, tx: int, ty: int) -> bool:
        return (tx, ty) in self.blocked

    def can_occupy(self, tx: int, ty: int) -> bool:
        """A tile accepts a player or furniture when it is floor and not a wall."""
        return self.inside_room(tx, ty) and not self.is_blocked(tx, ty)

    def clamp(self, tx: int, ty: int) -> Tile:
        """Clamp a tile into the rectangular bounds."""
        return (
            max(0, min(tx, self.cols - 1)),
            max(0, min(ty, self.rows - 1)),
        )
