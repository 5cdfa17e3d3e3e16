"""Configuration constants for the solar system simulation."""

import math
from dataclasses import dataclass

from .errors import ConfigurationError

# Physical constants
G = 6.67430e-11  # Gravitational constant (m^3 kg^-1 s^-2)
G_STYLIZED = 1.0  # Gravitational constant in arbitrary simulation units

# Unit scaling
UNIT_SCALE = 1e9  # Metres per scene unit, used by the physics kernels

# Stability safeguards
MAX_FORCE = 1e-4  # Force ceiling (stylized units), not physically derived
MIN_SEPARATION = 1e-12  # Scene-space distance below which gravity is skipped for a step

# Simulation parameters
TIMESTEP = 3600.0  # Simulated seconds advanced per frame (1 hour)
TIMESTEP_STYLIZED = 0.01  # Simulation time units advanced per frame, stylized units
SPEED_MULTIPLIER = 1.0  # Default time-step multiplier
MAX_SPEED_MULTIPLIER = 500.0  # Upper bound offered by the speed slider (advisory)
PRECISION = 64  # Floating point precision: 64 or 32 bits

# Visualization data
TRAIL_LENGTH = 1000  # Recent positions kept per planet
RUN_CHUNK_STEPS = 1000  # Frames fused per compiled loop in run(), bounds its trajectory buffer
ORBIT_SAMPLES = 360  # Points on a smooth orbit guide
ORBIT_UP_AXIS = (0.0, 0.0, 1.0)  # Orbit guides lie in the plane perpendicular to this axis

# Default parameter set: "physical" or "stylized"
DEFAULT_PRESET = "physical"


@dataclass(frozen=True)
class PhysicsParameters:
    """
    Named set of force-model constants.

    The physical and stylized families use different values and even
    different units for what is nominally the same simulation, so every
    constant travels together with the others.

    Attributes:
        name: Identifier of the parameter set
        g: Gravitational constant
        unit_scale: Physical distance units per scene unit. Used both to
            recover raw separations for the force law and to convert
            velocities into scene-space displacement.
        max_force: Ceiling on the force magnitude. This is a stability
            safeguard against blow-up at small separations, not physics.
        min_separation: Scene-space separation treated as degenerate
        timestep: Default frame time step in this unit system
    """

    name: str
    g: float
    unit_scale: float
    max_force: float
    min_separation: float = MIN_SEPARATION
    timestep: float = TIMESTEP

    def __post_init__(self):
        for field_name in ('g', 'unit_scale', 'max_force', 'timestep'):
            value = getattr(self, field_name)
            if not value > 0 or (field_name != 'max_force' and math.isinf(value)):
                raise ConfigurationError(
                    f"{field_name} must be a positive number, got {value!r}"
                )
        if not self.min_separation >= 0 or math.isinf(self.min_separation):
            raise ConfigurationError(
                f"min_separation must be finite and non-negative, got {self.min_separation!r}"
            )

    def kernel_kwargs(self) -> dict:
        """Keyword arguments accepted by the gravity and integrator kernels."""
        return {
            'g': float(self.g),
            'max_force': float(self.max_force),
            'unit_scale': float(self.unit_scale),
            'min_separation': float(self.min_separation),
        }


# SI units, metres per scene unit of 1e9. Planetary forces are ~1e22 N, so
# the ceiling is disabled.
PHYSICAL = PhysicsParameters(
    name="physical",
    g=G,
    unit_scale=UNIT_SCALE,
    max_force=math.inf,
)

# Arbitrary units where scene and physical distances coincide.
STYLIZED = PhysicsParameters(
    name="stylized",
    g=G_STYLIZED,
    unit_scale=1.0,
    max_force=MAX_FORCE,
    timestep=TIMESTEP_STYLIZED,
)

PARAMETER_SETS = {
    PHYSICAL.name: PHYSICAL,
    STYLIZED.name: STYLIZED,
}


def get_parameters(name: str = DEFAULT_PRESET) -> PhysicsParameters:
    """Look up a named parameter set ("physical" or "stylized")."""
    try:
        return PARAMETER_SETS[name]
    except KeyError:
        choices = ", ".join(sorted(PARAMETER_SETS))
        raise ConfigurationError(
            f"Unknown parameter set {name!r} (choose from: {choices})"
        ) from None
