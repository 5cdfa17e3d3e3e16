import numpy as np
import pytest

from solar_system.errors import ConfigurationError
from solar_system.visualization.orbits import compute_orbit_path, orbital_plane_basis
from solar_system.visualization.trails import TrailBuffer


def test_trail_evicts_oldest_points_first() -> None:
    trail = TrailBuffer(capacity=5)
    for i in range(5 + 3):
        trail.push((float(i), 0.0, 0.0))

    assert len(trail) == 5
    assert trail.capacity == 5
    assert trail.points()[:, 0].tolist() == [3.0, 4.0, 5.0, 6.0, 7.0]
    assert trail.points(newest_first=True)[:, 0].tolist() == [7.0, 6.0, 5.0, 4.0, 3.0]
    np.testing.assert_array_equal(trail.newest(), [7.0, 0.0, 0.0])


def test_trail_below_capacity_keeps_everything() -> None:
    trail = TrailBuffer(capacity=1000)
    trail.extend([(0.0, 0.0, float(i)) for i in range(10)])

    assert len(trail) == 10
    assert trail.points()[:, 2].tolist() == [float(i) for i in range(10)]


def test_trail_stores_copies() -> None:
    trail = TrailBuffer(capacity=3)
    point = np.array([1.0, 2.0, 3.0])
    trail.push(point)
    point[0] = 99.0

    np.testing.assert_array_equal(trail.newest(), [1.0, 2.0, 3.0])


def test_empty_trail_and_clear() -> None:
    trail = TrailBuffer(capacity=3)
    assert trail.points().shape == (0, 3)

    trail.push((1.0, 1.0, 1.0))
    trail.clear()
    assert len(trail) == 0
    assert trail.capacity == 3


@pytest.mark.parametrize("capacity", [0, -5, 2.5, True])
def test_invalid_trail_capacity_is_rejected(capacity) -> None:
    with pytest.raises(ConfigurationError):
        TrailBuffer(capacity)


def test_trail_rejects_malformed_points() -> None:
    trail = TrailBuffer(capacity=3)
    with pytest.raises(ValueError):
        trail.push((1.0, 2.0))


def test_orbit_path_points_lie_on_circle() -> None:
    center = np.array([1.0, -2.0, 3.0])
    radius = 149.6

    path = compute_orbit_path(center, radius, samples=360)

    assert path.shape == (360, 3)
    distances = np.linalg.norm(path - center, axis=1)
    np.testing.assert_allclose(distances, radius, rtol=1e-6)
    # Default plane is perpendicular to +z and starts on +x
    np.testing.assert_allclose(path[:, 2], center[2])
    np.testing.assert_allclose(path[0], center + [radius, 0.0, 0.0])


def test_orbit_path_is_evenly_spaced() -> None:
    path = compute_orbit_path((0.0, 0.0, 0.0), 10.0, samples=64, closed=True)

    assert path.shape == (65, 3)
    np.testing.assert_array_equal(path[0], path[-1])
    chords = np.linalg.norm(np.diff(path, axis=0), axis=1)
    np.testing.assert_allclose(chords, chords[0], rtol=1e-9)


def test_orbit_path_respects_up_axis() -> None:
    path = compute_orbit_path((0.0, 0.0, 0.0), 5.0, samples=36, up_axis=(0.0, 2.0, 0.0))

    np.testing.assert_allclose(path[:, 1], 0.0, atol=1e-12)
    np.testing.assert_allclose(np.linalg.norm(path, axis=1), 5.0, rtol=1e-6)


def test_plane_basis_is_orthonormal() -> None:
    for up in [(0.0, 0.0, 1.0), (1.0, 0.0, 0.0), (1.0, 1.0, 1.0)]:
        u, v = orbital_plane_basis(up)
        up = np.asarray(up) / np.linalg.norm(up)
        assert np.dot(u, v) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(u, up) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(v, up) == pytest.approx(0.0, abs=1e-12)
        assert np.linalg.norm(u) == pytest.approx(1.0)
        assert np.linalg.norm(v) == pytest.approx(1.0)


def test_invalid_orbit_arguments_are_rejected() -> None:
    with pytest.raises(ConfigurationError):
        compute_orbit_path((0.0, 0.0, 0.0), 1.0, samples=2)
    with pytest.raises(ConfigurationError):
        compute_orbit_path((0.0, 0.0, 0.0), -1.0)
    with pytest.raises(ConfigurationError):
        compute_orbit_path((0.0, 0.0, 0.0), 1.0, up_axis=(0.0, 0.0, 0.0))


@pytest.mark.parametrize("capacity", [None, "ten", float("nan")])
def test_non_numeric_trail_capacity_is_a_configuration_error(capacity) -> None:
    with pytest.raises(ConfigurationError):
        TrailBuffer(capacity)


def test_non_numeric_orbit_arguments_are_configuration_errors() -> None:
    with pytest.raises(ConfigurationError):
        compute_orbit_path((0.0, 0.0, 0.0), 1.0, samples=None)
    with pytest.raises(ConfigurationError):
        compute_orbit_path((0.0, 0.0, 0.0), None)
