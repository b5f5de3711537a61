"""
2D scalar wave (FDTD) solver used by the interactive wave tank.

Solves the 2D scalar wave equation for a homogeneous medium with reflecting
walls using a 2nd-order finite-difference time-domain (FDTD) leapfrog scheme.
Fields are stored row-major as arrays of shape (ny, nx), so the flattened
index of column i, row j is ``i + j * nx``.

NOTES:
- Boundaries: the outer ring of cells is never updated and stays at its
  initial value (zero), i.e. a Dirichlet boundary.
- Walls: obstacle cells are clamped to zero at every step, which reflects
  incoming waves with inverted sign.
- Stability: the explicit scheme requires (c*dt)^2 <= dx^2 dy^2 / (dx^2 + dy^2).
  This is only checked (and warned about) when a grid is built.
"""

import logging
import math

import numpy as np

from . import config

logger = logging.getLogger(__name__)


class Grid2D:
    def __init__(self, nx, ny, dx=config.DX, dy=None, dt=config.DT, c=config.WAVE_SPEED):
        """Create the discretized domain.

        nx, ny: number of columns / rows (negative values floor to 0)
        dx, dy: grid spacing; if dy is None it is set equal to dx
        dt: time step
        c: wave speed
        """
        self.nx = max(0, int(nx))
        self.ny = max(0, int(ny))
        self.dx = dx
        self.dy = dx if dy is None else dy
        self.dt = dt
        self.c = c
        if not self.is_stable:
            logger.warning(
                "stability factor %.4f exceeds CFL limit %.4f; the field will blow up",
                self.stability_factor, self.stability_limit)

    @classmethod
    def from_surface(cls, width_px, height_px, cell_px=config.CELL_PX, **kwargs):
        """Build the grid for a rendering surface of the given pixel size."""
        if cell_px <= 0:
            raise ValueError('cell_px must be positive, got %r' % (cell_px,))
        nx = math.floor(max(0, width_px) / cell_px)
        ny = math.floor(max(0, height_px) / cell_px)
        return cls(nx, ny, **kwargs)

    @property
    def stability_factor(self):
        """(c*dt)^2, recomputed from the current c and dt."""
        return (self.c * self.dt) ** 2

    @property
    def stability_limit(self):
        dx2 = self.dx * self.dx
        dy2 = self.dy * self.dy
        return dx2 * dy2 / (dx2 + dy2)

    @property
    def is_stable(self):
        return self.stability_factor <= self.stability_limit

    @property
    def shape(self):
        return (self.ny, self.nx)

    @property
    def size(self):
        return self.nx * self.ny

    @property
    def has_interior(self):
        return self.nx > 2 and self.ny > 2

    def __repr__(self):
        return 'Grid2D(nx=%d, ny=%d, dx=%g, dy=%g, dt=%g, c=%g)' % (
            self.nx, self.ny, self.dx, self.dy, self.dt, self.c)


class FieldBuffers:
    """Three time levels of the field plus the obstacle mask.

    The field arrays live in a fixed 3-slot ring; ``head`` selects which slot
    plays ``previous`` and the next two slots are ``current`` and ``next``.
    """

    def __init__(self, grid: Grid2D):
        self.grid = grid
        self.slots = tuple(np.zeros(grid.shape, dtype=float) for _ in range(3))
        self.obstacle = np.zeros(grid.shape, dtype=bool)
        self.head = 0

    @property
    def previous(self):
        return self.slots[self.head]

    @property
    def current(self):
        return self.slots[(self.head + 1) % 3]

    @property
    def next(self):
        return self.slots[(self.head + 2) % 3]

    def rotate(self):
        """previous <- current, current <- next, next <- old previous."""
        self.head = (self.head + 1) % 3


def add_gaussian_pulse(field, obstacle, ci, cj, amplitude=config.PULSE_AMPLITUDE,
                       sigma=config.PULSE_SIGMA):
    """Add a Gaussian bump centred on column ci, row cj.

    Offsets range over a floor(3*sigma) box. Cells on the boundary ring and
    obstacle cells are left untouched. Repeated pulses accumulate.
    """
    if sigma <= 0:
        raise ValueError('sigma must be positive, got %r' % (sigma,))
    ny, nx = field.shape
    reach = int(math.floor(3 * sigma))
    offsets = np.arange(-reach, reach + 1)

    # keep only offsets landing strictly inside the grid
    di = offsets[(ci + offsets > 0) & (ci + offsets < nx - 1)]
    dj = offsets[(cj + offsets > 0) & (cj + offsets < ny - 1)]
    if di.size == 0 or dj.size == 0:
        return

    r2 = (di[np.newaxis, :] ** 2 + dj[:, np.newaxis] ** 2) / (sigma * sigma)
    bump = amplitude * np.exp(-0.5 * r2)

    rows = slice(cj + dj[0], cj + dj[-1] + 1)
    cols = slice(ci + di[0], ci + di[-1] + 1)
    bump[obstacle[rows, cols]] = 0.0
    field[rows, cols] += bump


class FDWave2D:
    """2D FDTD wave solver (scalar): central differences, leapfrog in time."""

    def __init__(self, grid: Grid2D, buffers: FieldBuffers, damping=config.DAMPING):
        self.grid = grid
        self.buffers = buffers
        self.damping = damping
        self.time = 0.0

    def step(self):
        g = self.grid
        if not g.has_interior:
            return

        b = self.buffers
        u = b.current
        u_prev = b.previous
        u_next = b.next
        walls = b.obstacle[1:-1, 1:-1]

        # walls clamp the field before any neighbour reads it
        inner = u[1:-1, 1:-1]
        inner[walls] = 0.0

        # 5-point Laplacian over the interior (axis 0 = rows/y, axis 1 = columns/x)
        lap_x = (u[1:-1, :-2] + u[1:-1, 2:] - 2 * inner) / (g.dx * g.dx)
        lap_y = (u[:-2, 1:-1] + u[2:, 1:-1] - 2 * inner) / (g.dy * g.dy)

        # u_next = 2u - u_prev + (c*dt)^2 * Laplacian(u), then damping
        out = u_next[1:-1, 1:-1]
        out[:] = 2 * inner - u_prev[1:-1, 1:-1] + g.stability_factor * (lap_x + lap_y)
        out *= self.damping
        out[walls] = 0.0

        b.rotate()
        self.time += g.dt

    def run(self, steps, callback=None):
        """Run simulation for given number of time steps.
        callback(buffers, tstep) called optionally every iteration.
        """
        for t in range(steps):
            self.step()
            if callback is not None:
                callback(self.buffers, t)
