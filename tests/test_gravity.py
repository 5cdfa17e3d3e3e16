import math
import os
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

from solar_system.config import PHYSICAL, STYLIZED, PhysicsParameters, get_parameters
from solar_system.errors import ConfigurationError, NumericalDegeneracyWarning
from solar_system.physics.body import Body
from solar_system.physics.gravity import (
    compute_acceleration,
    compute_all_accelerations,
    compute_force_magnitude,
    configure_precision,
)

ROOT = Path(__file__).resolve().parents[1]


def test_acceleration_points_at_attractor_with_inverse_square_magnitude() -> None:
    sun = Body("Sun", 1000.0)
    planet = Body("P", 2.0, position=(10.0, 0.0, 0.0))

    acc = compute_acceleration(sun, planet, distance_scale=1.0, g=1.0)

    # F = 1 * 1000 * 2 / 10^2 = 20, a = F / m = 10
    np.testing.assert_allclose(acc, [-10.0, 0.0, 0.0], rtol=1e-12)


def test_distance_scale_converts_scene_separation_to_physical() -> None:
    sun = Body("Sun", 1000.0)
    planet = Body("P", 1.0, position=(0.0, 2.0, 0.0))

    acc = compute_acceleration(sun, planet, distance_scale=5.0, g=1.0)

    # Physical separation is 10, so |a| = 1000 / 100
    np.testing.assert_allclose(acc, [0.0, -10.0, 0.0], rtol=1e-12)


def test_acceleration_is_independent_of_body_mass_without_ceiling() -> None:
    sun = Body("Sun", 1.9885e30)
    light = Body("Light", 1.0, position=(149.6, 0.0, 0.0))
    heavy = Body("Heavy", 5.972e24, position=(149.6, 0.0, 0.0))

    a_light = compute_acceleration(sun, light, PHYSICAL.unit_scale, g=PHYSICAL.g)
    a_heavy = compute_acceleration(sun, heavy, PHYSICAL.unit_scale, g=PHYSICAL.g)

    np.testing.assert_allclose(a_light, a_heavy, rtol=1e-12)
    expected = PHYSICAL.g * 1.9885e30 / (149.6e9) ** 2
    assert np.linalg.norm(a_heavy) == pytest.approx(expected, rel=1e-12)


def test_force_ceiling_is_exact_below_threshold_distance() -> None:
    g, attractor_mass, mass, max_force = 1.0, 1000.0, 2.0, 1e-4
    threshold = math.sqrt(g * attractor_mass * mass / max_force)

    for fraction in (0.999, 0.5, 0.1, 1e-3):
        force = compute_force_magnitude(
            attractor_mass, mass, threshold * fraction, g=g, max_force=max_force
        )
        assert float(force) == max_force


def test_force_below_ceiling_is_untouched() -> None:
    # G * M * m / r^2 = 1 * 1000 * 2 / 1e8 = 2e-5, below the 1e-4 ceiling
    force = compute_force_magnitude(1000.0, 2.0, 10000.0, g=1.0, max_force=1e-4)
    assert float(force) == pytest.approx(2e-5, rel=1e-12)

    acc = compute_acceleration(
        Body("Sun", 1000.0), Body("P", 2.0, position=(10000.0, 0.0, 0.0)),
        distance_scale=1.0, g=1.0, max_force=1e-4,
    )
    np.testing.assert_allclose(acc, [-1e-5, 0.0, 0.0], rtol=1e-12)


def test_clamped_acceleration_is_ceiling_over_mass() -> None:
    sun = Body("Sun", 1000.0)
    planet = Body("P", 2.0, position=(0.0, 0.0, 1.0))

    acc = compute_acceleration(sun, planet, distance_scale=1.0, g=1.0, max_force=1e-4)

    assert np.linalg.norm(acc) == pytest.approx(1e-4 / 2.0, rel=1e-12)
    assert acc[2] < 0.0


def test_coincident_bodies_give_zero_acceleration_and_warn() -> None:
    sun = Body("Sun", 1000.0)
    planet = Body("Stuck", 1.0)

    with pytest.warns(NumericalDegeneracyWarning, match="Stuck"):
        acc = compute_acceleration(sun, planet, distance_scale=1.0, g=1.0)

    assert np.all(np.isfinite(acc))
    np.testing.assert_array_equal(acc, np.zeros(3))


def test_batch_matches_single_body_results_in_order() -> None:
    positions = np.array([[10.0, 0.0, 0.0], [0.0, -4.0, 3.0], [0.0, 0.0, 0.0]])
    masses = np.array([1.0, 3.0, 2.0])
    sun = Body("Sun", 1000.0)

    accelerations, degenerate = compute_all_accelerations(
        sun.position, sun.mass, positions, masses, **STYLIZED.kernel_kwargs()
    )

    assert np.asarray(degenerate).tolist() == [False, False, True]
    for row, (position, mass) in enumerate(zip(positions, masses)):
        body = Body(f"B{row}", mass, position=position)
        if row == 2:
            with pytest.warns(NumericalDegeneracyWarning):
                expected = compute_acceleration(sun, body, 1.0, g=1.0, max_force=1e-4)
        else:
            expected = compute_acceleration(sun, body, 1.0, g=1.0, max_force=1e-4)
        np.testing.assert_allclose(np.asarray(accelerations)[row], expected, rtol=1e-12)


@pytest.mark.parametrize("mass", [0.0, -1.0, float("nan"), float("inf"), "heavy"])
def test_non_positive_mass_is_rejected_at_construction(mass) -> None:
    with pytest.raises(ConfigurationError):
        Body("Bad", mass)


def test_mass_and_name_are_read_only() -> None:
    body = Body("Earth", 5.972e24)
    with pytest.raises(AttributeError):
        body.mass = 1.0
    with pytest.raises(AttributeError):
        body.name = "Moon"


def test_parameter_sets() -> None:
    assert get_parameters("physical") is PHYSICAL
    assert get_parameters("stylized") is STYLIZED
    assert PHYSICAL.g == 6.67430e-11
    assert STYLIZED.max_force == 1e-4
    assert math.isinf(PHYSICAL.max_force)

    with pytest.raises(ConfigurationError):
        get_parameters("relativistic")
    with pytest.raises(ConfigurationError):
        PhysicsParameters(name="bad", g=0.0, unit_scale=1.0, max_force=1.0)
    with pytest.raises(ConfigurationError):
        PhysicsParameters(name="bad", g=1.0, unit_scale=1.0, max_force=1.0, min_separation=-1.0)


def test_body_state_is_handed_out_read_only() -> None:
    body = Body("P", 1.0, position=(1.0, 2.0, 3.0))
    with pytest.raises(ValueError):
        body.position[0] = 5.0
    with pytest.raises(ValueError):
        body.velocity[1] = 5.0

    body.position = (4.0, 5.0, 6.0)
    np.testing.assert_array_equal(body.position, [4.0, 5.0, 6.0])
    np.testing.assert_array_equal(body.initial_position, [1.0, 2.0, 3.0])


def test_importing_the_core_leaves_jax_precision_alone() -> None:
    env = {k: v for k, v in os.environ.items() if k != "JAX_ENABLE_X64"}
    code = (
        "import jax.numpy as jnp\n"
        "import solar_system.physics.engine\n"
        "print(jnp.zeros(1).dtype)\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        cwd=ROOT, env=env, capture_output=True, text=True, check=True,
    )
    assert result.stdout.strip() == "float32"


@pytest.mark.parametrize("precision", [16, 128, "64"])
def test_configure_precision_rejects_unknown_widths(precision) -> None:
    with pytest.raises(ConfigurationError):
        configure_precision(precision)
