"""
Simulation controller: owns the grid, the buffers and the timers.

The controller is host agnostic. It needs three collaborators:

- a sink, called with the RGBA raster after every frame;
- a scheduler with Tk's one-shot timer API, ``after(ms, func) -> handle``
  and ``after_cancel(handle)`` (a Tk widget works as-is);
- a ``numpy.random.Generator`` used for walls and random excitations.

Everything runs on the scheduler's thread; no call blocks.
"""

import enum
import logging
import math

import numpy as np

from . import config
from .fdtd2d import FDWave2D, FieldBuffers, Grid2D, add_gaussian_pulse
from .render import FrameRenderer
from .walls import generate_walls

logger = logging.getLogger(__name__)


class SimState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    RUNNING = 'running'


class ExciteMode(enum.Enum):
    IDLE = 'idle'
    REPEATING = 'repeating'


class PeriodicTask:
    """Calls `callback` every `interval_ms` until cancelled."""

    def __init__(self, scheduler, interval_ms, callback):
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.callback = callback
        self._handle = None

    @property
    def active(self):
        return self._handle is not None

    def start(self):
        if self._handle is None:
            self._handle = self.scheduler.after(self.interval_ms, self._fire)

    def cancel(self):
        if self._handle is not None:
            self.scheduler.after_cancel(self._handle)
            self._handle = None

    def _fire(self):
        self._handle = self.scheduler.after(self.interval_ms, self._fire)
        self.callback()


class Simulation:
    def __init__(self, sink=None, scheduler=None, rng=None,
                 steps_per_frame=config.STEPS_PER_FRAME,
                 cell_px=config.CELL_PX,
                 damping=config.DAMPING,
                 amplitude=config.PULSE_AMPLITUDE,
                 sigma=config.PULSE_SIGMA,
                 idle_ms=config.IDLE_INTERVAL_MS,
                 repeat_ms=config.REPEAT_INTERVAL_MS):
        self.sink = sink
        self.scheduler = scheduler
        self.rng = np.random.default_rng() if rng is None else rng
        self.steps_per_frame = steps_per_frame
        self.cell_px = cell_px
        self.damping = damping
        self.amplitude = amplitude
        self.sigma = sigma

        self.state = SimState.UNINITIALIZED
        self.mode = ExciteMode.IDLE
        self.running = False
        self.surface = (0, 0)
        self.grid = None
        self.buffers = None
        self.solver = None
        self.renderer = None

        self.frame_ms = config.FRAME_INTERVAL_MS
        self._frame_handle = None
        self.idle_task = None
        self.repeat_task = None
        if scheduler is not None:
            self.idle_task = PeriodicTask(scheduler, idle_ms, self.excite_random)
            self.repeat_task = PeriodicTask(scheduler, repeat_ms, self.excite_random)

    # -- lifecycle -----------------------------------------------------

    def resize(self, width_px, height_px):
        """(Re)build everything for a surface of the given pixel size.

        The new grid, buffers, solver and renderer are built first and then
        swapped in together, so the next frame never sees a mix of sizes.
        Any previous field is discarded.
        """
        grid = Grid2D.from_surface(width_px, height_px, cell_px=self.cell_px)
        buffers = FieldBuffers(grid)
        solver = FDWave2D(grid, buffers, damping=self.damping)
        renderer = FrameRenderer(grid)
        generate_walls(grid, buffers.obstacle, self.rng)

        self.surface = (max(0, width_px), max(0, height_px))
        self.grid, self.buffers, self.solver, self.renderer = grid, buffers, solver, renderer
        self.state = SimState.RUNNING
        logger.debug('resized to %dx%d px -> %r', width_px, height_px, grid)

    def start(self, frame_ms=config.FRAME_INTERVAL_MS):
        """Start the frame loop and idle auto-excitation on the scheduler."""
        if self.scheduler is None:
            raise ValueError('start() needs a scheduler')
        self.frame_ms = frame_ms
        self.running = True
        # a held pointer keeps its repeat task; idle resumes on release
        if self.mode is ExciteMode.IDLE:
            self.idle_task.start()
        if self._frame_handle is None:
            self._frame_handle = self.scheduler.after(self.frame_ms, self._loop)
        logger.info('simulation started (%d ms/frame)', frame_ms)

    def stop(self):
        """Clear the running flag; the frame loop ends at its next check."""
        self.running = False
        if self.idle_task is not None:
            self.idle_task.cancel()
            self.repeat_task.cancel()
        self.mode = ExciteMode.IDLE
        logger.info('simulation stopped')

    def teardown(self):
        self.stop()
        if self._frame_handle is not None:
            self.scheduler.after_cancel(self._frame_handle)
            self._frame_handle = None
        self.grid = self.buffers = self.solver = self.renderer = None
        self.state = SimState.UNINITIALIZED

    def _loop(self):
        self._frame_handle = None
        if not self.running:
            return
        self.advance_frame()
        self._frame_handle = self.scheduler.after(self.frame_ms, self._loop)

    # -- per frame -----------------------------------------------------

    def advance_frame(self):
        """Run the integrator steps for one frame and hand the raster to the sink."""
        if self.state is not SimState.RUNNING:
            return None
        for _ in range(self.steps_per_frame):
            self.solver.step()
        raster = self.renderer.render(self.buffers.current, self.buffers.obstacle)
        if self.sink is not None:
            self.sink(raster)
        return raster

    # -- events --------------------------------------------------------

    def to_cell(self, x_px, y_px):
        """Map surface pixels to an interior cell, or None if there is none."""
        if self.state is not SimState.RUNNING or not self.grid.has_interior:
            return None
        width, height = self.surface
        if width <= 0 or height <= 0:
            return None
        nx, ny = self.grid.nx, self.grid.ny
        ix = min(max(math.floor(x_px * nx / width), 1), nx - 2)
        iy = min(max(math.floor(y_px * ny / height), 1), ny - 2)
        return ix, iy

    def excite_at(self, x_px, y_px):
        cell = self.to_cell(x_px, y_px)
        if cell is None:
            return None
        add_gaussian_pulse(self.buffers.current, self.buffers.obstacle, cell[0], cell[1],
                           amplitude=self.amplitude, sigma=self.sigma)
        return cell

    def excite_random(self):
        width, height = self.surface
        return self.excite_at(self.rng.random() * width, self.rng.random() * height)

    def pointer_down(self, x_px, y_px):
        cell = self.excite_at(x_px, y_px)
        if self.mode is ExciteMode.IDLE and self.scheduler is not None:
            self.idle_task.cancel()
            self.repeat_task.start()
            self.mode = ExciteMode.REPEATING
            logger.debug('excitation: idle -> repeating')
        return cell

    def pointer_up(self):
        if self.mode is not ExciteMode.REPEATING:
            return
        self.repeat_task.cancel()
        if self.running:
            self.idle_task.start()
        self.mode = ExciteMode.IDLE
        logger.debug('excitation: repeating -> idle')

    def regenerate_obstacles(self):
        """Draw new walls; the field keeps whatever energy it has."""
        if self.state is not SimState.RUNNING:
            return []
        return generate_walls(self.grid, self.buffers.obstacle, self.rng)
