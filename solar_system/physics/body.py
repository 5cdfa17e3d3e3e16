"""Body entity and the descriptors used to create bodies."""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..errors import ConfigurationError


def as_vector3(value, label: str = "vector") -> np.ndarray:
    """Convert a 3-element sequence to a fresh float64 array, rejecting anything else."""
    try:
        vector = np.array(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{label} must be a 3-element vector: {e}") from None
    if vector.shape != (3,):
        raise ConfigurationError(
            f"{label} must be a 3-element vector, got shape {vector.shape}"
        )
    if not np.all(np.isfinite(vector)):
        raise ConfigurationError(f"{label} must be finite, got {vector.tolist()}")
    return vector


def _frozen_copy(vector) -> np.ndarray:
    frozen = np.array(vector, dtype=np.float64)
    if frozen.shape != (3,):
        raise ValueError(f"State vectors must have shape (3,), got {frozen.shape}")
    frozen.setflags(write=False)
    return frozen


class Body:
    """
    A mass-bearing point taking part in the simulation.

    Position is in scene units (already scaled for display); velocity is in
    physical units per simulation time unit. The name and mass are fixed
    at creation, as is the snapshot of the initial state used by reset.
    """

    def __init__(
        self,
        name: str,
        mass: float,
        position: Sequence[float] = (0.0, 0.0, 0.0),
        velocity: Sequence[float] = (0.0, 0.0, 0.0),
        rotation_speed: float = 0.0,
        radius: float = 0.0,
    ):
        """
        Create a body.

        Args:
            name: Stable identifier
            mass: Positive mass
            position: Initial position (3,) in scene units
            velocity: Initial velocity (3,) in physical units
            rotation_speed: Spin rate (radians per time unit), renderer metadata
            radius: Physical radius, renderer metadata

        Raises:
            ConfigurationError: If the mass is not a positive finite number or
                a vector is malformed
        """
        try:
            mass = float(mass)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Mass of {name!r} must be a number, got {mass!r}"
            ) from None
        if not (mass > 0 and math.isfinite(mass)):
            raise ConfigurationError(
                f"Mass of {name!r} must be positive and finite, got {mass!r}"
            )

        self._name = str(name)
        self._mass = mass
        self.position = as_vector3(position, f"{name} position")
        self.velocity = as_vector3(velocity, f"{name} velocity")
        self._initial_position = self.position
        self._initial_velocity = self.velocity
        self.rotation_speed = float(rotation_speed)
        self.radius = float(radius)
        self.spin_angle = 0.0

    @property
    def name(self) -> str:
        return self._name

    @property
    def mass(self) -> float:
        return self._mass

    # State vectors are replaced whole on every step and handed out read-only

    @property
    def position(self) -> np.ndarray:
        return self._position

    @position.setter
    def position(self, value) -> None:
        self._position = _frozen_copy(value)

    @property
    def velocity(self) -> np.ndarray:
        return self._velocity

    @velocity.setter
    def velocity(self, value) -> None:
        self._velocity = _frozen_copy(value)

    @property
    def initial_position(self) -> np.ndarray:
        return self._initial_position

    @property
    def initial_velocity(self) -> np.ndarray:
        return self._initial_velocity

    def reset(self) -> None:
        """Restore position and velocity to the values captured at creation."""
        self.position = self._initial_position
        self.velocity = self._initial_velocity

    def snapshot(self) -> "BodySnapshot":
        return BodySnapshot(
            name=self._name,
            position=tuple(float(x) for x in self.position),
            velocity=tuple(float(x) for x in self.velocity),
        )

    def __repr__(self) -> str:
        return (
            f"Body(name={self._name!r}, mass={self._mass!r}, "
            f"position={self.position.tolist()}, velocity={self.velocity.tolist()})"
        )


@dataclass(frozen=True)
class BodySnapshot:
    """Immutable copy of a body's state handed to observers."""

    name: str
    position: Tuple[float, float, float]
    velocity: Tuple[float, float, float]


@dataclass(frozen=True)
class SunDescriptor:
    """Construction parameters for the central attractor, fixed at the origin."""

    mass: float
    radius: float = 0.0
    name: str = "Sun"


@dataclass(frozen=True)
class PlanetDescriptor:
    """
    Construction parameters for a planet.

    Positions and distances are given in physical units; the engine divides
    them by the active unit scale to obtain scene coordinates. Either
    ``distance`` (placed on the +x axis) or ``position`` must be given.
    """

    name: str
    mass: float
    distance: Optional[float] = None
    position: Optional[Tuple[float, float, float]] = None
    velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation_speed: float = 0.0
    radius: float = 0.0

    def physical_position(self) -> np.ndarray:
        """Initial position in physical units."""
        if self.position is not None:
            return as_vector3(self.position, f"{self.name} position")
        if self.distance is None:
            raise ConfigurationError(
                f"Planet {self.name!r} needs either a distance or a position"
            )
        return as_vector3((self.distance, 0.0, 0.0), f"{self.name} position")

    def create_body(self, unit_scale: float) -> Body:
        return Body(
            self.name,
            self.mass,
            position=self.physical_position() / unit_scale,
            velocity=self.velocity,
            rotation_speed=self.rotation_speed,
            radius=self.radius,
        )
