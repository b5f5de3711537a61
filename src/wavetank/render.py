"""
Colour mapping and RGBA rasterisation of the wave field.

Diverging map with fixed saturation at +/-1: positive amplitude is red,
negative amplitude is blue, zero is black. Walls are drawn opaque white.
"""

import math

import numpy as np

from . import config


def colorize(value):
    """Map one field value to an (r, g, b) tuple of ints."""
    v = min(1.0, max(-1.0, value))
    level = math.floor(255 * abs(v))
    if v > 0:
        return (level, 0, 0)
    if v < 0:
        return (0, 0, level)
    return (0, 0, 0)


def render_frame(field, obstacle, out=None):
    """Rasterise `field` into an (ny, nx, 4) uint8 array.

    Every cell is written on every call. Flattened, the result is R,G,B,A
    bytes in the same row-major order as the field. `out` is reused when its
    shape matches.
    """
    ny, nx = field.shape
    if out is None or out.shape != (ny, nx, 4):
        out = np.empty((ny, nx, 4), dtype=np.uint8)
    v = np.clip(field, -1.0, 1.0)
    out[..., 0] = np.floor(255 * np.clip(v, 0.0, 1.0))
    out[..., 1] = 0
    out[..., 2] = np.floor(255 * np.clip(-v, 0.0, 1.0))
    out[..., 3] = 255
    out[obstacle] = config.WALL_RGBA
    return out


class FrameRenderer:
    """Holds a scratch raster sized to one grid and refills it each frame."""

    def __init__(self, grid):
        self.grid = grid
        self.raster = np.zeros((grid.ny, grid.nx, 4), dtype=np.uint8)

    def render(self, field, obstacle):
        return render_frame(field, obstacle, out=self.raster)
