"""
Random wall layouts for the wave tank.

Walls are vertical segments one cell wide. The generator only decides where
they go; the solver treats any marked cell as a reflecting obstacle.
"""

from __future__ import annotations

import logging
import math
from typing import List, NamedTuple, Optional

import numpy as np

from . import config
from .fdtd2d import Grid2D

logger = logging.getLogger(__name__)


class WallSegment(NamedTuple):
    """Column x, rows y1..y2 (inclusive, before clipping to the interior)."""
    x: int
    y1: int
    y2: int


def wall_segment(nx: int, ny: int, rng: np.random.Generator,
                 min_fraction: float = config.WALL_MIN_FRACTION,
                 max_fraction: float = config.WALL_MAX_FRACTION) -> Optional[WallSegment]:
    """Draw one segment. Returns None when the grid has no interior.

    - column x in [5, 5 + max(1, nx - 10))
    - length between min_fraction and max_fraction of ny
    - first row y1 in [2, 2 + max(1, ny - 4 - length))
    On tiny grids x and y1 are pulled back inside the interior, so the
    segment may shrink to a single cell.
    """
    if nx < 3 or ny < 3:
        return None
    x = 5 + int(rng.integers(max(1, nx - 10)))
    min_len = math.floor(ny * min_fraction)
    max_len = math.floor(ny * max_fraction)
    length = min_len + int(rng.integers(max(1, max_len - min_len)))
    y1 = 2 + int(rng.integers(max(1, ny - 4 - length)))

    x = min(x, nx - 2)
    y1 = min(y1, ny - 2)
    return WallSegment(x, y1, y1 + length)


def generate_walls(grid: Grid2D, mask: np.ndarray, rng: Optional[np.random.Generator] = None,
                   count: int = config.WALL_COUNT) -> List[WallSegment]:
    """Clear `mask` and draw `count` fresh wall segments into it."""
    if rng is None:
        rng = np.random.default_rng()
    mask[:] = False
    segments = []
    for _ in range(count):
        seg = wall_segment(grid.nx, grid.ny, rng)
        if seg is None:
            break
        y_end = min(seg.y2, grid.ny - 2)
        mask[seg.y1:y_end + 1, seg.x] = True
        segments.append(seg)
    logger.debug('generated %d wall(s) on %dx%d grid: %s', len(segments), grid.nx, grid.ny, segments)
    return segments
