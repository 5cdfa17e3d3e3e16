"""Planet sets for the physical and stylized simulations."""

from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import (
    DEFAULT_PRESET,
    G,
    G_STYLIZED,
    ORBIT_UP_AXIS,
    get_parameters,
)
from ..physics.body import PlanetDescriptor, SunDescriptor
from ..physics.engine import SimulationEngine
from ..physics.integrator import circular_velocity
from ..visualization.orbits import orbital_plane_basis

# Sun (SI units)
SUN_MASS = 1.9885e30  # kg
SUN_RADIUS = 6.9634e8  # m

# Inner planets (SI units). Velocities are tangential, along +y, for a
# start on the +x axis; rotation speeds are in radians per second.
PHYSICAL_SUN = SunDescriptor(mass=SUN_MASS, radius=SUN_RADIUS)
PHYSICAL_PLANETS = (
    PlanetDescriptor(
        'Mercury', mass=3.3011e23, distance=5.791e10,
        velocity=(0.0, 4.74e4, 0.0), rotation_speed=0.000017, radius=2.0e6,
    ),
    PlanetDescriptor(
        'Venus', mass=4.8675e24, distance=1.082e11,
        velocity=(0.0, 3.5e4, 0.0), rotation_speed=0.000004, radius=6.0518e6,
    ),
    PlanetDescriptor(
        'Earth', mass=5.972e24, distance=1.496e11,
        velocity=(0.0, 2.978e4, 0.0), rotation_speed=0.000073, radius=6.371e6,
    ),
    PlanetDescriptor(
        'Mars', mass=6.4171e23, distance=2.279e11,
        velocity=(0.0, 2.41e4, 0.0), rotation_speed=0.000070, radius=3.3895e6,
    ),
)

# Arbitrary units: the Sun is a thousand mass units, planets are a few
# millionths of that, distances are directly in scene units.
STYLIZED_SUN_MASS = 1000.0
STYLIZED_SUN = SunDescriptor(mass=STYLIZED_SUN_MASS, radius=1.5)


def circular_planet(
    name: str,
    mass: float,
    distance: float,
    central_mass: float,
    g: float = G,
    phase: float = 0.0,
    up_axis: Sequence[float] = ORBIT_UP_AXIS,
    rotation_speed: float = 0.0,
    radius: float = 0.0,
) -> PlanetDescriptor:
    """
    Descriptor for a planet on a circular orbit.

    The planet starts at angle ``phase`` in the plane perpendicular to
    up_axis with tangential speed sqrt(G * M / r), moving counter-clockwise
    about up_axis.

    Args:
        name: Planet name
        mass: Planet mass
        distance: Orbital radius in physical units
        central_mass: Mass of the attractor
        g: Gravitational constant
        phase: Starting angle in radians
        up_axis: Normal of the orbital plane
        rotation_speed: Spin rate passed through for the renderer
        radius: Planet radius passed through for the renderer

    Returns:
        PlanetDescriptor with explicit position and velocity
    """
    u, v = orbital_plane_basis(up_axis)
    radial = np.cos(phase) * u + np.sin(phase) * v
    tangential = -np.sin(phase) * u + np.cos(phase) * v
    speed = circular_velocity(central_mass, distance, g)
    return PlanetDescriptor(
        name,
        mass=mass,
        position=tuple(float(x) for x in distance * radial),
        velocity=tuple(float(x) for x in speed * tangential),
        rotation_speed=rotation_speed,
        radius=radius,
    )


STYLIZED_PLANETS = tuple(
    circular_planet(
        name, mass, distance, STYLIZED_SUN_MASS, g=G_STYLIZED,
        rotation_speed=rotation_speed, radius=radius,
    )
    for name, mass, distance, rotation_speed, radius in (
        ('Mercury', 1.7e-7, 8.0, 0.5, 0.2),
        ('Venus', 2.4e-6, 12.0, 0.1, 0.45),
        ('Earth', 3.0e-6, 16.0, 2.0, 0.5),
        ('Mars', 3.2e-7, 22.0, 1.9, 0.3),
    )
)

PRESETS = {
    'physical': (PHYSICAL_SUN, PHYSICAL_PLANETS),
    'stylized': (STYLIZED_SUN, STYLIZED_PLANETS),
}


def rotate_about_axis(vector, axis: Sequence[float], angle: float) -> np.ndarray:
    """Rotate vector about a unit axis by angle radians (Rodrigues' formula)."""
    vector = np.asarray(vector, dtype=np.float64)
    k = np.asarray(axis, dtype=np.float64)
    k = k / np.linalg.norm(k)
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    return (
        vector * cos_a
        + np.cross(k, vector) * sin_a
        + k * np.dot(k, vector) * (1.0 - cos_a)
    )


def randomize_phases(
    planets: Sequence[PlanetDescriptor],
    rng: Optional[np.random.Generator] = None,
    up_axis: Sequence[float] = ORBIT_UP_AXIS,
) -> Tuple[PlanetDescriptor, ...]:
    """
    Rotate each planet to a random starting angle about up_axis.

    Randomness is drawn once here, before the engine exists, so stepping
    and resetting stay deterministic.

    Args:
        planets: Descriptors to rotate
        rng: Random number generator (created if None)
        up_axis: Rotation axis

    Returns:
        New descriptors with explicit positions and velocities
    """
    if rng is None:
        rng = np.random.default_rng()

    rotated = []
    for planet in planets:
        angle = rng.uniform(0.0, 2.0 * np.pi)
        position = rotate_about_axis(planet.physical_position(), up_axis, angle)
        velocity = rotate_about_axis(planet.velocity, up_axis, angle)
        rotated.append(
            PlanetDescriptor(
                planet.name,
                mass=planet.mass,
                position=tuple(float(x) for x in position),
                velocity=tuple(float(x) for x in velocity),
                rotation_speed=planet.rotation_speed,
                radius=planet.radius,
            )
        )
    return tuple(rotated)


def get_preset(name: str = DEFAULT_PRESET) -> Tuple[SunDescriptor, Tuple[PlanetDescriptor, ...]]:
    """Sun and planet descriptors of a named preset."""
    get_parameters(name)  # Same names as the parameter sets; raises on unknown
    return PRESETS[name]


def initialize_solar_system(
    preset: str = DEFAULT_PRESET,
    seed: Optional[int] = None,
    randomize: bool = False,
    **engine_kwargs,
) -> SimulationEngine:
    """
    Build an engine for one of the bundled presets.

    Args:
        preset: "physical" or "stylized"; selects both the planet set and
            the matching physics parameters
        seed: Random seed for the starting phases (implies randomize)
        randomize: Place planets at random starting angles
        **engine_kwargs: Passed through to SimulationEngine

    Returns:
        Configured SimulationEngine
    """
    parameters = get_parameters(preset)
    sun, planets = get_preset(preset)
    if randomize or seed is not None:
        up_axis = engine_kwargs.get('orbit_up_axis', ORBIT_UP_AXIS)
        planets = randomize_phases(planets, np.random.default_rng(seed), up_axis)
    return SimulationEngine(sun, planets, parameters=parameters, **engine_kwargs)
