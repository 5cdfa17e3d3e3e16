"""JAX-accelerated gravitational acceleration toward a single attractor."""

import math
import warnings

import jax
import jax.numpy as jnp
import numpy as np
from jax import jit, vmap
from functools import partial

from ..config import G, MIN_SEPARATION, UNIT_SCALE
from ..errors import ConfigurationError, NumericalDegeneracyWarning


def configure_precision(precision: int) -> None:
    """
    Switch JAX between 32- and 64-bit floats.

    This is a process-wide JAX setting, so it is left to the host program
    and never changed on import. Physical-unit runs need 64 bits; call this
    once before building an engine.
    """
    if precision not in (32, 64):
        raise ConfigurationError(f"precision must be 32 or 64, got {precision!r}")
    jax.config.update("jax_enable_x64", precision == 64)


@partial(jit, static_argnames=['g', 'max_force'])
def compute_force_magnitude(
    attractor_mass: jnp.ndarray,
    mass: jnp.ndarray,
    distance: jnp.ndarray,
    g: float = G,
    max_force: float = math.inf,
) -> jnp.ndarray:
    """
    Newtonian force magnitude with a ceiling.

    F = min(G * M * m / r^2, max_force)

    The ceiling keeps large time steps stable when a body passes close to
    its attractor. It is a numerical safeguard, not a physical effect.

    Args:
        attractor_mass: Mass of the attracting body
        mass: Mass of the attracted body
        distance: Separation in physical units
        g: Gravitational constant
        max_force: Force ceiling

    Returns:
        Clamped force magnitude
    """
    # G*M/r^2 first, so that G*M*m never overflows in 32-bit runs
    force = g * attractor_mass / distance**2 * mass
    return jnp.minimum(force, max_force)


@partial(jit, static_argnames=['g', 'max_force', 'unit_scale', 'min_separation'])
def compute_pairwise_acceleration(
    attractor_pos: jnp.ndarray,
    attractor_mass: jnp.ndarray,
    pos: jnp.ndarray,
    mass: jnp.ndarray,
    g: float = G,
    max_force: float = math.inf,
    unit_scale: float = UNIT_SCALE,
    min_separation: float = MIN_SEPARATION,
):
    """
    Compute the acceleration of one body toward its attractor.

    a = (F / m) * (r_attractor - r_body) / |r_attractor - r_body|

    Positions are in scene units; the separation is multiplied by
    unit_scale to recover the physical distance used by the force law.

    Args:
        attractor_pos: Attractor position (3,)
        attractor_mass: Attractor mass (scalar)
        pos: Body position (3,)
        mass: Body mass (scalar)
        g: Gravitational constant
        max_force: Force ceiling
        unit_scale: Physical distance units per scene unit
        min_separation: Scene-space separation treated as degenerate

    Returns:
        Tuple of (acceleration (3,), degenerate flag). The acceleration is
        zero when the flag is set.
    """
    separation = attractor_pos - pos
    r_scene = jnp.sqrt(jnp.sum(separation**2))
    degenerate = r_scene <= min_separation

    # Substitute a harmless distance so neither branch divides by zero
    safe_r = jnp.where(degenerate, 1.0, r_scene)
    force = compute_force_magnitude(
        attractor_mass, mass, safe_r * unit_scale, g=g, max_force=max_force
    )
    acceleration = (force / mass) * (separation / safe_r)

    return jnp.where(degenerate, jnp.zeros(3), acceleration), degenerate


@partial(jit, static_argnames=['g', 'max_force', 'unit_scale', 'min_separation'])
def compute_all_accelerations(
    attractor_pos: jnp.ndarray,
    attractor_mass: jnp.ndarray,
    positions: jnp.ndarray,
    masses: jnp.ndarray,
    g: float = G,
    max_force: float = math.inf,
    unit_scale: float = UNIT_SCALE,
    min_separation: float = MIN_SEPARATION,
):
    """
    Compute accelerations toward the attractor for every body.

    Only attractor-to-body forces are modelled; bodies do not pull on each
    other, so rows are independent and keep the input order.

    Args:
        attractor_pos: Attractor position (3,)
        attractor_mass: Attractor mass (scalar)
        positions: Body positions (N, 3)
        masses: Body masses (N,)
        g: Gravitational constant
        max_force: Force ceiling
        unit_scale: Physical distance units per scene unit
        min_separation: Scene-space separation treated as degenerate

    Returns:
        Tuple of (accelerations (N, 3), degenerate flags (N,))
    """
    return vmap(
        lambda pos, mass: compute_pairwise_acceleration(
            attractor_pos,
            attractor_mass,
            pos,
            mass,
            g=g,
            max_force=max_force,
            unit_scale=unit_scale,
            min_separation=min_separation,
        )
    )(positions, masses)


def warn_degenerate(names, min_separation: float = MIN_SEPARATION, stacklevel: int = 3) -> None:
    """Emit one NumericalDegeneracyWarning per body that received no acceleration."""
    for name in names:
        warnings.warn(
            f"{name!r} is within {min_separation:g} scene units of its attractor; "
            f"gravity skipped for this step",
            NumericalDegeneracyWarning,
            stacklevel=stacklevel,
        )


def compute_acceleration(
    attractor,
    body,
    distance_scale: float = UNIT_SCALE,
    g: float = G,
    max_force: float = math.inf,
    min_separation: float = MIN_SEPARATION,
) -> np.ndarray:
    """
    Acceleration of ``body`` toward ``attractor`` as a NumPy vector.

    Args:
        attractor: Body exerting the force
        body: Body being accelerated
        distance_scale: Physical distance units per scene unit
        g: Gravitational constant
        max_force: Force ceiling
        min_separation: Scene-space separation treated as degenerate

    Returns:
        Acceleration (3,), zero (with a NumericalDegeneracyWarning) if the
        bodies coincide
    """
    acceleration, degenerate = compute_pairwise_acceleration(
        attractor.position,
        attractor.mass,
        body.position,
        body.mass,
        g=float(g),
        max_force=float(max_force),
        unit_scale=float(distance_scale),
        min_separation=float(min_separation),
    )
    if bool(degenerate):
        warn_degenerate([body.name], min_separation)
    return np.array(acceleration, dtype=np.float64)


def get_device_info() -> str:
    """Get information about JAX devices being used."""
    devices = jax.devices()
    device_strs = [f"{d.platform}:{d.device_kind}" for d in devices]
    return f"JAX devices: {device_strs}"
