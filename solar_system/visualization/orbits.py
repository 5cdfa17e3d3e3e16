"""Circular orbit guides sampled around an attractor."""

from typing import Sequence, Tuple

import numpy as np

from ..config import ORBIT_SAMPLES, ORBIT_UP_AXIS
from ..errors import ConfigurationError, require_count


def orbital_plane_basis(up_axis: Sequence[float] = ORBIT_UP_AXIS) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build two orthonormal vectors spanning the plane perpendicular to up_axis.

    The first vector is the projection of +x onto the plane (or of +y when
    up_axis is nearly parallel to x), so that for the default +z axis the
    guide starts on +x and runs toward +y.

    Raises:
        ConfigurationError: If up_axis has zero length
    """
    up = np.asarray(up_axis, dtype=np.float64)
    norm = np.linalg.norm(up)
    if up.shape != (3,) or not np.isfinite(norm) or norm == 0.0:
        raise ConfigurationError(f"Up axis must be a non-zero 3-vector, got {up_axis!r}")
    up = up / norm

    reference = np.array([1.0, 0.0, 0.0])
    if abs(np.dot(reference, up)) > 0.9:
        reference = np.array([0.0, 1.0, 0.0])

    u = reference - np.dot(reference, up) * up
    u /= np.linalg.norm(u)
    v = np.cross(up, u)
    return u, v


def compute_orbit_path(
    center: Sequence[float],
    radius: float,
    samples: int = ORBIT_SAMPLES,
    up_axis: Sequence[float] = ORBIT_UP_AXIS,
    closed: bool = False,
) -> np.ndarray:
    """
    Sample a circle of ``radius`` about ``center``.

    Args:
        center: Circle centre (3,)
        radius: Circle radius, in the same units as center
        samples: Number of evenly spaced points
        up_axis: Normal of the orbital plane
        closed: If True, repeat the first point at the end so the result
            can be drawn as an open polyline

    Returns:
        Array of shape (samples, 3), or (samples + 1, 3) when closed
    """
    samples = require_count(samples, "Orbit samples", minimum=3)
    try:
        radius = float(radius)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Orbit radius must be a number, got {radius!r}") from None
    if not (radius >= 0 and np.isfinite(radius)):
        raise ConfigurationError(f"Orbit radius must be finite and non-negative, got {radius!r}")

    center = np.asarray(center, dtype=np.float64)
    u, v = orbital_plane_basis(up_axis)

    angles = np.linspace(0.0, 2.0 * np.pi, samples, endpoint=False)
    points = center + radius * (
        np.cos(angles)[:, None] * u + np.sin(angles)[:, None] * v
    )

    if closed:
        points = np.vstack([points, points[:1]])
    return points
