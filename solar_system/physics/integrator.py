"""Semi-implicit Euler integrator for planets orbiting a fixed attractor, using JAX."""

import math

import jax.numpy as jnp
import numpy as np
from jax import jit, lax
from functools import partial
from typing import Tuple

from .gravity import compute_all_accelerations
from ..config import G, MIN_SEPARATION, UNIT_SCALE
from ..errors import ConfigurationError


def validate_timestep(dt: float) -> float:
    """Return dt as a float, rejecting negative or non-finite values."""
    try:
        dt = float(dt)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Time step must be a number, got {dt!r}") from None
    if not (dt >= 0 and math.isfinite(dt)):
        raise ConfigurationError(
            f"Time step must be finite and non-negative, got {dt!r}"
        )
    return dt


@jit
def semi_implicit_euler_step(
    positions: jnp.ndarray,
    velocities: jnp.ndarray,
    accelerations: jnp.ndarray,
    dt: float,
    position_scale: float,
) -> Tuple[jnp.ndarray, jnp.ndarray]:
    """
    Perform a single semi-implicit (symplectic) Euler step.

    https://en.wikipedia.org/wiki/Semi-implicit_Euler_method

    1. v(t + dt) = v(t) + a(t) * dt
    2. x(t + dt) = x(t) + v(t + dt) * dt / position_scale

    Velocities are in physical units while positions are in scene units,
    hence the division by position_scale. No substepping is performed:
    large steps stay stable through the force ceiling, at the cost of
    accuracy.

    Args:
        positions: Current positions (3,) or (N, 3)
        velocities: Current velocities, same shape as positions
        accelerations: Accelerations, same shape as positions
        dt: Timestep
        position_scale: Physical distance units per scene unit

    Returns:
        Tuple of (new_positions, new_velocities)
    """
    new_velocities = velocities + accelerations * dt
    new_positions = positions + new_velocities * dt / position_scale
    return new_positions, new_velocities


def integrate_body(body, acceleration, dt: float, position_scale: float = UNIT_SCALE) -> None:
    """
    Advance one body in place by a single semi-implicit Euler step.

    Args:
        body: Body to advance
        acceleration: Acceleration (3,) in physical units
        dt: Timestep, must be non-negative
        position_scale: Physical distance units per scene unit

    Raises:
        ConfigurationError: If dt is negative or not finite
    """
    dt = validate_timestep(dt)
    new_position, new_velocity = semi_implicit_euler_step(
        body.position, body.velocity, jnp.asarray(acceleration), dt, float(position_scale)
    )
    body.position = np.array(new_position, dtype=np.float64)
    body.velocity = np.array(new_velocity, dtype=np.float64)


@partial(
    jit,
    static_argnames=['num_steps', 'g', 'max_force', 'unit_scale', 'min_separation'],
)
def integrate_multiple_steps(
    attractor_pos: jnp.ndarray,
    attractor_mass: jnp.ndarray,
    positions: jnp.ndarray,
    velocities: jnp.ndarray,
    masses: jnp.ndarray,
    dt: float,
    num_steps: int,
    g: float = G,
    max_force: float = math.inf,
    unit_scale: float = UNIT_SCALE,
    min_separation: float = MIN_SEPARATION,
):
    """
    Perform multiple integration steps efficiently using lax.scan.

    This fuses the steps into a single compiled kernel and also returns
    the position after every step, so callers can feed trails without
    leaving the compiled loop.

    Args:
        attractor_pos: Attractor position (3,)
        attractor_mass: Attractor mass (scalar)
        positions: Initial positions (N, 3)
        velocities: Initial velocities (N, 3)
        masses: Body masses (N,)
        dt: Timestep
        num_steps: Number of integration steps to perform
        g: Gravitational constant
        max_force: Force ceiling
        unit_scale: Physical distance units per scene unit
        min_separation: Scene-space separation treated as degenerate

    Returns:
        Tuple of (final_positions (N, 3), final_velocities (N, 3),
        trajectory (num_steps, N, 3), degenerate flags (num_steps, N))
    """

    def scan_fn(carry, _):
        pos, vel = carry
        acc, degenerate = compute_all_accelerations(
            attractor_pos,
            attractor_mass,
            pos,
            masses,
            g=g,
            max_force=max_force,
            unit_scale=unit_scale,
            min_separation=min_separation,
        )
        new_pos, new_vel = semi_implicit_euler_step(pos, vel, acc, dt, unit_scale)
        return (new_pos, new_vel), (new_pos, degenerate)

    initial_state = (positions, velocities)
    (final_positions, final_velocities), (trajectory, degenerate) = lax.scan(
        scan_fn, initial_state, None, length=num_steps
    )

    return final_positions, final_velocities, trajectory, degenerate


@partial(jit, static_argnames=['g', 'unit_scale'])
def compute_orbital_energy(
    attractor_pos: jnp.ndarray,
    attractor_mass: jnp.ndarray,
    positions: jnp.ndarray,
    velocities: jnp.ndarray,
    g: float = G,
    unit_scale: float = UNIT_SCALE,
) -> jnp.ndarray:
    """
    Specific orbital energy per body: e = v^2 / 2 - G * M / r.

    Negative values mean the body is bound. Semi-implicit Euler does not
    conserve this exactly; it oscillates around the true value.
    """
    r = jnp.sqrt(jnp.sum((positions - attractor_pos) ** 2, axis=-1)) * unit_scale
    v_squared = jnp.sum(velocities**2, axis=-1)
    return 0.5 * v_squared - g * attractor_mass / r


@partial(jit, static_argnames=['unit_scale'])
def compute_angular_momentum(
    attractor_pos: jnp.ndarray,
    positions: jnp.ndarray,
    velocities: jnp.ndarray,
    unit_scale: float = UNIT_SCALE,
) -> jnp.ndarray:
    """Specific angular momentum per body: h = r x v, in physical units."""
    r = (positions - attractor_pos) * unit_scale
    return jnp.cross(r, velocities)


def circular_velocity(central_mass: float, distance: float, g: float = G) -> float:
    """
    Speed of a circular orbit: v = sqrt(G * M / r).

    Args:
        central_mass: Mass of the attractor
        distance: Orbital radius in physical units
        g: Gravitational constant

    Returns:
        Orbital speed, or 0.0 for a non-positive radius
    """
    if distance <= 0:
        return 0.0
    return math.sqrt(g * central_mass / distance)
