# config.py
# Defaults shared by the solver, the controller and the front-ends.

# The simulation runs at half the surface resolution
CELL_PX = 2

DX = 1.0  # dy defaults to dx
DT = 0.5
WAVE_SPEED = 1.0  # (c*dt)^2 = 0.25, below the 0.5 CFL bound for dx=dy=1

# Per-step multiplier applied to every updated cell
DAMPING = 0.998
STEPS_PER_FRAME = 2

PULSE_AMPLITUDE = 2.0
PULSE_SIGMA = 2.0

WALL_COUNT = 2
WALL_MIN_FRACTION = 0.2
WALL_MAX_FRACTION = 0.7

# Timings in milliseconds
IDLE_INTERVAL_MS = 5000
REPEAT_INTERVAL_MS = 200
FRAME_INTERVAL_MS = 16

WALL_RGBA = (255, 255, 255, 255)
