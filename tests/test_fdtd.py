import sys
import os
import math
import pytest
import numpy as np

# Ensure the src directory is in sys.path for imports
src = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src not in sys.path:
    sys.path.insert(0, src)

from wavetank.fdtd2d import Grid2D, FieldBuffers, FDWave2D, add_gaussian_pulse


def make_solver(nx, ny):
    grid = Grid2D(nx=nx, ny=ny)
    buffers = FieldBuffers(grid)
    return grid, buffers, FDWave2D(grid, buffers)


def test_grid_from_surface_uses_half_resolution():
    grid = Grid2D.from_surface(801, 600)
    assert (grid.nx, grid.ny) == (400, 300)
    assert grid.shape == (300, 400)
    assert grid.dx == grid.dy == 1.0
    assert grid.stability_factor == pytest.approx(0.25)
    assert grid.stability_limit == pytest.approx(0.5)
    assert grid.is_stable


def test_stability_factor_follows_c_and_dt():
    grid = Grid2D(nx=10, ny=10)
    grid.dt = 0.25
    grid.c = 2.0
    assert grid.stability_factor == pytest.approx(0.25)


def test_unstable_grid_logs_warning(caplog):
    with caplog.at_level('WARNING'):
        grid = Grid2D(nx=10, ny=10, dt=1.0)
    assert not grid.is_stable
    assert 'CFL' in caplog.text


def test_degenerate_surface_gives_empty_grid():
    grid = Grid2D.from_surface(0, 1)
    assert grid.size == 0
    assert not grid.has_interior
    buffers = FieldBuffers(grid)
    FDWave2D(grid, buffers).step()
    assert buffers.current.shape == (0, 0)


def test_bad_cell_size_rejected():
    with pytest.raises(ValueError):
        Grid2D.from_surface(100, 100, cell_px=0)


def test_buffers_rotate_without_copying():
    grid = Grid2D(nx=8, ny=6)
    b = FieldBuffers(grid)
    prev, cur, nxt = b.previous, b.current, b.next
    assert len({id(prev), id(cur), id(nxt)}) == 3
    assert all(a.shape == (6, 8) for a in b.slots)
    assert b.obstacle.dtype == bool and not b.obstacle.any()

    b.rotate()
    assert b.previous is cur
    assert b.current is nxt
    assert b.next is prev
    assert {id(a) for a in b.slots} == {id(prev), id(cur), id(nxt)}

    b.rotate()
    b.rotate()
    assert b.previous is prev and b.current is cur and b.next is nxt


def test_step_reads_last_next_as_current():
    grid, b, fd = make_solver(20, 20)
    add_gaussian_pulse(b.current, b.obstacle, 10, 10)
    computed = b.next
    fd.step()
    assert b.current is computed
    assert fd.time == pytest.approx(grid.dt)


def test_field_at_rest_stays_zero():
    grid, b, fd = make_solver(30, 25)
    fd.run(50)
    for a in b.slots:
        assert not a.any()


def test_pulse_adds_amplitude_at_centre():
    grid, b, fd = make_solver(40, 40)
    add_gaussian_pulse(b.current, b.obstacle, 20, 15, amplitude=1.5, sigma=2.0)
    assert b.current[15, 20] == 1.5
    # one cell away: exp(-0.5 * 1 / 4)
    assert b.current[15, 21] == pytest.approx(1.5 * math.exp(-0.125))
    # box reaches floor(3 * sigma) = 6 cells
    assert b.current[15, 26] > 0
    assert b.current[15, 27] == 0


def test_pulses_accumulate_and_skip_walls():
    grid, b, fd = make_solver(40, 40)
    b.obstacle[20, 21] = True
    add_gaussian_pulse(b.current, b.obstacle, 20, 20)
    add_gaussian_pulse(b.current, b.obstacle, 20, 20)
    assert b.current[20, 20] == pytest.approx(4.0)
    assert b.current[20, 21] == 0.0


def test_pulse_near_edge_skips_boundary_ring():
    grid, b, fd = make_solver(12, 12)
    add_gaussian_pulse(b.current, b.obstacle, 1, 1)
    assert b.current[1, 1] == 2.0
    assert not b.current[0, :].any()
    assert not b.current[:, 0].any()
    # centre outside the grid only reaches the cells inside
    add_gaussian_pulse(b.current, b.obstacle, -50, -50)
    add_gaussian_pulse(b.current, b.obstacle, 100, 5)
    assert b.current[1, 1] == 2.0


def test_pulse_rejects_non_positive_sigma():
    grid, b, fd = make_solver(10, 10)
    with pytest.raises(ValueError):
        add_gaussian_pulse(b.current, b.obstacle, 5, 5, sigma=0.0)


def test_obstacle_cells_are_zero_after_step():
    grid, b, fd = make_solver(30, 30)
    add_gaussian_pulse(b.current, b.obstacle, 15, 15)
    b.obstacle[15, 16] = True
    b.obstacle[14, 15] = True
    b.previous[15, 16] = 3.0
    b.next[14, 15] = -7.0
    fd.step()
    assert b.current[15, 16] == 0.0
    assert b.current[14, 15] == 0.0
    for _ in range(5):
        fd.step()
        assert not b.current[b.obstacle].any()


def test_boundary_ring_never_changes():
    grid, b, fd = make_solver(24, 18)
    add_gaussian_pulse(b.current, b.obstacle, 2, 2, amplitude=5.0)
    add_gaussian_pulse(b.current, b.obstacle, 21, 15, amplitude=-5.0)
    fd.run(200)
    for a in b.slots:
        assert not a[0, :].any() and not a[-1, :].any()
        assert not a[:, 0].any() and not a[:, -1].any()


def test_single_step_matches_closed_form():
    grid, b, fd = make_solver(100, 100)
    amp, sigma = 2.0, 2.0
    add_gaussian_pulse(b.current, b.obstacle, 50, 50, amplitude=amp, sigma=sigma)

    centre = amp
    neighbour = amp * math.exp(-0.5 * 1.0 / sigma ** 2)
    assert b.current[50, 50] == pytest.approx(centre)
    lap = 4 * neighbour - 4 * centre
    expected = 0.998 * (2 * centre - 0.0 + grid.stability_factor * lap)

    fd.step()
    assert b.current[50, 50] == pytest.approx(expected, rel=1e-12)


def test_full_height_wall_isolates_right_half():
    grid, b, fd = make_solver(60, 40)
    b.obstacle[1:grid.ny - 1, 30] = True
    add_gaussian_pulse(b.current, b.obstacle, 15, 20, amplitude=3.0)
    for _ in range(400):
        fd.step()
        assert not b.current[:, 31:].any()
    assert np.abs(b.current[:, :30]).max() > 1e-6


def leapfrog_energy(buffers, sf, damping):
    """Energy carried by the (previous, current) pair.

    For u+ = d (2u - u- + sf lap u) this shrinks by exactly d per step:
    |u+|^2 + d|u|^2 - d <u+, 2u + sf lap u>.
    """
    u = buffers.previous
    u_new = buffers.current
    lap = np.zeros_like(u)
    lap[1:-1, 1:-1] = (u[1:-1, :-2] + u[1:-1, 2:] + u[:-2, 1:-1] + u[2:, 1:-1]
                       - 4 * u[1:-1, 1:-1])
    return (np.sum(u_new ** 2) + damping * np.sum(u ** 2)
            - damping * np.sum(u_new * (2 * u + sf * lap)))


def test_energy_decreases_every_step():
    grid, b, fd = make_solver(40, 40)
    add_gaussian_pulse(b.current, b.obstacle, 20, 20)
    fd.step()
    energy = [leapfrog_energy(b, grid.stability_factor, fd.damping)]
    for _ in range(300):
        fd.step()
        energy.append(leapfrog_energy(b, grid.stability_factor, fd.damping))

    assert energy[0] > 0
    for before, after in zip(energy, energy[1:]):
        assert after <= before
        assert after == pytest.approx(fd.damping * before, rel=1e-6)


def test_damping_shrinks_windowed_field_energy():
    grid, b, fd = make_solver(40, 40)
    add_gaussian_pulse(b.current, b.obstacle, 20, 20)
    energy = []

    def record(buffers, t):
        energy.append(np.sum(buffers.current ** 2))

    fd.run(1600, callback=record)
    early = np.mean(energy[100:200])
    late = np.mean(energy[1500:1600])
    assert late < 0.5 * early
    assert np.isfinite(b.current).all()
