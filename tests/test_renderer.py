import cmath
import math
from dataclasses import replace

import numpy as np
import pytest

from newton import (
    ComplexNumber,
    RenderConfig,
    RenderSession,
    RootRegistry,
    pixel_to_complex,
    render_frame,
    sampling_grid,
)
from newton.renderer import _compute_metadata

CUBE_ROOTS_OF_MINUS_ONE = [cmath.exp(1j * math.pi * k / 3) for k in (1, 3, 5)]


@pytest.fixture
def small_config():
    return RenderConfig(width=4, height=4, x_min=-1.0, x_max=1.0, y_min=-1.0, y_max=1.0)


def _nearest_cube_root(point):
    return min(CUBE_ROOTS_OF_MINUS_ONE, key=lambda root: abs(point.to_complex() - root))


def test_metadata_steps_divide_by_pixel_count(small_config):
    metadata = _compute_metadata(small_config)
    assert metadata.x_step == 0.5
    assert metadata.y_step == 0.5
    assert (metadata.x_res, metadata.y_res) == (4, 4)


def test_pixel_mapping_and_zero_nudging(small_config):
    metadata = _compute_metadata(small_config)
    assert pixel_to_complex(metadata, 0, 1) == ComplexNumber(-0.5, -1.0)
    assert pixel_to_complex(metadata, 3, 0) == ComplexNumber(-1.0, 0.5)
    assert pixel_to_complex(metadata, 2, 2) == ComplexNumber(1e-4, 1e-4)
    assert pixel_to_complex(metadata, 2, 3, epsilon=0.25) == ComplexNumber(0.5, 0.25)


def test_sampling_grid_matches_pixel_mapping(small_config):
    metadata = _compute_metadata(small_config)
    real, imaginary = sampling_grid(metadata)
    assert real.shape == (4, 4)
    for row in range(4):
        for col in range(4):
            point = pixel_to_complex(metadata, row, col)
            assert real[row, col] == point.real
            assert imaginary[row, col] == point.imaginary


def test_corner_pixels_converge_to_cube_roots(small_config):
    session = RenderSession(small_config)
    for row, col in [(0, 0), (0, 3), (3, 0), (3, 3)]:
        sample = session.evaluate_pixel(row, col)
        assert abs(sample.point.to_complex() - _nearest_cube_root(sample.point)) < 1e-9


def test_conjugate_pixels_converge_to_conjugate_roots(small_config):
    session = RenderSession(small_config)
    for col in range(4):
        below = session.evaluate_pixel(1, col).point.to_complex()
        above = session.evaluate_pixel(3, col).point.to_complex()
        assert above == pytest.approx(below.conjugate(), abs=1e-9)


def test_origin_symmetric_pixels_converge_to_rotated_roots(small_config):
    # (-0.5, -0.5) and (0.5, 0.5), (-0.5, 0.5) and (0.5, -0.5) are the origin
    # symmetric pixel pairs of this grid. x^3 + 1 is invariant under a 120 degree
    # rotation, so the two converged roots differ by a cube root of unity.
    session = RenderSession(small_config)
    for first, second in [((1, 1), (3, 3)), ((1, 3), (3, 1))]:
        a = session.evaluate_pixel(*first).point.to_complex()
        b = session.evaluate_pixel(*second).point.to_complex()
        ratio = b / a
        assert any(abs(ratio - cmath.exp(2j * math.pi * k / 3)) < 1e-9 for k in range(3))


def test_rotating_nudged_pixels_rotates_their_roots(small_config):
    # no 4x4 pixel is the 120 degree rotation of another, so each nudged start
    # is rotated off the grid and must converge to the rotated root
    omega = cmath.exp(2j * math.pi / 3)
    session = RenderSession(small_config)
    for row in range(4):
        for col in range(4):
            start = pixel_to_complex(session.metadata, row, col)
            root = session.iterate(start).point.to_complex()
            rotated = session.iterate(ComplexNumber.from_complex(start.to_complex() * omega)).point.to_complex()
            assert rotated == pytest.approx(root * omega, abs=1e-9)


def test_render_finds_the_three_roots(small_config):
    result = render_frame(small_config)
    assert len(result.roots) == 3
    found = sorted((_nearest_cube_root(root) for root in result.roots), key=lambda z: z.imag)
    assert found == sorted(CUBE_ROOTS_OF_MINUS_ONE, key=lambda z: z.imag)
    assert result.colors.shape == (4, 4, 3)
    assert result.root_indices.shape == (4, 4)
    assert result.max_root_index == 4


def test_render_is_deterministic(small_config):
    first = render_frame(small_config)
    second = render_frame(small_config)
    assert first.roots == second.roots
    np.testing.assert_array_equal(first.root_indices, second.root_indices)
    np.testing.assert_array_equal(first.iterations, second.iterations)
    np.testing.assert_array_equal(first.colors, second.colors)


def test_first_pixel_of_each_root_gets_shifted_index(small_config):
    result = render_frame(small_config)
    session = RenderSession(small_config)
    seen = set()
    for row in range(4):
        for col in range(4):
            point = session.iterate(pixel_to_complex(session.metadata, row, col)).point
            position = next(
                i for i, root in enumerate(result.roots)
                if point.subtract(root).absolute_value() <= small_config.proximity
            )
            expected = position if position in seen else position + 1
            seen.add(position)
            assert result.root_indices[row, col] == expected
    assert result.root_indices[0, 0] == 1


def test_pixel_by_pixel_rendering_matches_full_render(small_config):
    result = render_frame(small_config)
    session = RenderSession(small_config)
    for row in range(4):
        for col in range(4):
            assert session.render_pixel(row, col) == tuple(result.colors[row, col])


def test_colors_follow_root_index_and_iterations(small_config):
    result = render_frame(small_config)
    palette = small_config.palette
    for row in range(4):
        for col in range(4):
            base = palette[result.root_indices[row, col] % len(palette)]
            shade = result.iterations[row, col] * 2
            expected = tuple(min(max(0, c - shade), 255) for c in base)
            assert tuple(result.colors[row, col]) == expected


def test_sessions_do_not_share_roots(small_config):
    session = RenderSession(small_config)
    session.render()
    assert len(session.registry) == 3
    assert len(RenderSession(small_config).registry) == 0


def test_session_accepts_custom_registry(small_config):
    registry = RootRegistry(small_config.proximity, consistent_indices=True)
    result = RenderSession(small_config, registry=registry).render()
    assert set(np.unique(result.root_indices)) <= {0, 1, 2}


def test_progress_is_reported_per_row(small_config):
    rows = []
    render_frame(small_config, progress=lambda row, total: rows.append((row, total)))
    assert rows == [(0, 4), (1, 4), (2, 4), (3, 4)]


def test_step_limit_caps_iterations(small_config):
    result = render_frame(replace(small_config, step_limit=5))
    assert result.iterations.max() <= 5


def test_unknown_backend_is_rejected(small_config):
    with pytest.raises(ValueError):
        render_frame(small_config, backend="opencl")


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_iterations": -1},
        {"tolerance": -0.5},
        {"tolerance": float("nan")},
        {"proximity": -0.01},
        {"proximity": float("nan")},
        {"step_limit": 0},
        {"palette": ()},
        {"palette": ((300, 0, 0),)},
        {"palette": ((1, 2),)},
        {"palette": ((127.9, 0, 0),)},
    ],
)
def test_invalid_config_is_rejected(overrides):
    with pytest.raises(ValueError):
        RenderConfig(width=4, height=4, **overrides)
