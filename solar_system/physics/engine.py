"""Simulation engine advancing planets around a fixed Sun once per frame."""

import math
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import (
    ORBIT_SAMPLES,
    ORBIT_UP_AXIS,
    PHYSICAL,
    RUN_CHUNK_STEPS,
    SPEED_MULTIPLIER,
    TRAIL_LENGTH,
    PhysicsParameters,
)
from ..errors import ConfigurationError, require_count
from ..visualization.orbits import compute_orbit_path
from ..visualization.trails import TrailBuffer
from .body import Body, BodySnapshot, PlanetDescriptor, SunDescriptor
from .gravity import compute_all_accelerations, warn_degenerate
from .integrator import (
    compute_angular_momentum,
    compute_orbital_energy,
    integrate_multiple_steps,
    semi_implicit_euler_step,
    validate_timestep,
)

Observer = Callable[[Tuple[BodySnapshot, ...]], None]
BodyKey = Union[int, str]


class SimulationEngine:
    """
    Owns the Sun, the planets and their trails, and advances them in time.

    The engine is either running or paused. While paused, step() advances
    nothing but reset and configuration calls still apply. The renderer
    reads positions, trails and orbit guides back by planet index or name.
    """

    def __init__(
        self,
        sun: SunDescriptor,
        planets: Sequence[PlanetDescriptor],
        parameters: PhysicsParameters = PHYSICAL,
        trail_length: int = TRAIL_LENGTH,
        orbit_samples: int = ORBIT_SAMPLES,
        orbit_up_axis: Sequence[float] = ORBIT_UP_AXIS,
        speed_multiplier: float = SPEED_MULTIPLIER,
        show_orbits: bool = False,
        clear_trails_on_reset: bool = False,
        recompute_orbits_on_reset: bool = False,
        observer: Optional[Observer] = None,
        run_chunk: int = RUN_CHUNK_STEPS,
    ):
        """
        Build the bodies, trails and orbit guides.

        Args:
            sun: Central attractor, placed at the origin
            planets: Planet descriptors; their order is the iteration,
                trail and rendering order for the engine's lifetime
            parameters: Force-model constants (physical or stylized set)
            trail_length: Capacity of each planet's trail
            orbit_samples: Points per orbit guide
            orbit_up_axis: Normal of the plane the orbit guides lie in
            speed_multiplier: Initial multiplier applied to every dt
            show_orbits: Initial orbit-guide visibility
            clear_trails_on_reset: Whether reset() also empties trails
            recompute_orbits_on_reset: Whether reset() rebuilds orbit guides
            observer: Optional callable receiving body snapshots after each
                advancing step and after reset
            run_chunk: Most frames run() fuses into one compiled loop

        Raises:
            ConfigurationError: On invalid masses, vectors, trail capacity,
                orbit sampling, run chunk, speed multiplier or duplicate
                planet names
        """
        self.parameters = parameters
        self._kernel_kwargs = parameters.kernel_kwargs()

        self.sun = Body(sun.name, sun.mass, radius=sun.radius)
        self._sun_position = self.sun.position.copy()
        self._planets: List[Body] = []
        self._trails: List[TrailBuffer] = []
        self._index = {}
        for descriptor in planets:
            if descriptor.name in self._index or descriptor.name == self.sun.name:
                raise ConfigurationError(f"Duplicate body name {descriptor.name!r}")
            body = descriptor.create_body(parameters.unit_scale)
            self._index[body.name] = len(self._planets)
            self._planets.append(body)
            self._trails.append(TrailBuffer(trail_length))
        self._masses = np.array([p.mass for p in self._planets], dtype=np.float64)

        self.orbit_samples = orbit_samples
        self.orbit_up_axis = tuple(float(x) for x in orbit_up_axis)
        self._orbits: List[np.ndarray] = []
        self.recompute_orbits()

        self.run_chunk = require_count(run_chunk, "run_chunk")
        self.speed_multiplier = SPEED_MULTIPLIER
        self.set_speed_multiplier(speed_multiplier)
        self.show_orbits = bool(show_orbits)
        self.clear_trails_on_reset = bool(clear_trails_on_reset)
        self.recompute_orbits_on_reset = bool(recompute_orbits_on_reset)

        self._paused = False
        self.sim_time = 0.0
        self.step_count = 0

        self._observers: List[Observer] = []
        if observer is not None:
            self.add_observer(observer)

    # Control

    @property
    def is_paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def toggle_pause(self) -> bool:
        """Flip between running and paused; returns the new paused flag."""
        self._paused = not self._paused
        return self._paused

    def set_speed_multiplier(self, factor: float) -> None:
        """
        Scale the dt passed to subsequent step() calls.

        Any finite non-negative factor is accepted; 0 freezes planet motion
        the same way pausing does.
        """
        try:
            factor = float(factor)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Speed multiplier must be a number, got {factor!r}"
            ) from None
        if not (factor >= 0 and math.isfinite(factor)):
            raise ConfigurationError(
                f"Speed multiplier must be finite and non-negative, got {factor!r}"
            )
        self.speed_multiplier = factor

    def set_show_orbits(self, visible: bool) -> None:
        """Presentation toggle; has no effect on the simulation state."""
        self.show_orbits = bool(visible)

    def add_observer(self, observer: Observer) -> None:
        if not callable(observer):
            raise ConfigurationError(f"Observer must be callable, got {observer!r}")
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        self._observers.remove(observer)

    # Time evolution

    def _effective_dt(self, dt: float) -> float:
        dt = validate_timestep(dt)
        if self._paused or not self._planets:
            return 0.0
        effective_dt = dt * self.speed_multiplier
        if not math.isfinite(effective_dt):
            raise ConfigurationError(
                f"dt {dt!r} times speed multiplier {self.speed_multiplier!r} "
                f"is not finite"
            )
        return effective_dt

    def step(self, dt: float) -> bool:
        """
        Advance every planet by dt times the speed multiplier.

        Planets are processed in construction order: acceleration toward the
        Sun, one semi-implicit Euler step, then the new position is pushed
        onto the planet's trail.

        Args:
            dt: Simulation time step, must be non-negative

        Returns:
            True if the planets moved; False when paused or the effective
            step is zero

        Raises:
            ConfigurationError: If dt is negative or not finite
        """
        effective_dt = self._effective_dt(dt)
        if effective_dt == 0.0:
            return False

        positions, velocities = self.state_arrays()
        accelerations, degenerate = compute_all_accelerations(
            self._sun_position, self.sun.mass, positions, self._masses,
            **self._kernel_kwargs,
        )
        new_positions, new_velocities = semi_implicit_euler_step(
            positions, velocities, accelerations, effective_dt,
            self.parameters.unit_scale,
        )
        self._report_degenerate(np.asarray(degenerate)[None, :])
        self._store(np.asarray(new_positions), np.asarray(new_velocities), effective_dt)
        self._trail_push(np.asarray(new_positions)[None, :, :])
        self._advance_clock(effective_dt, 1)
        self._notify()
        return True

    def run(self, dt: float, num_steps: int) -> int:
        """
        Advance num_steps frames of dt in compiled loops.

        Equivalent to calling step(dt) num_steps times, including trail
        updates, but without a Python round trip per step. Steps are fused
        in chunks of at most run_chunk frames, so the trajectory buffer
        stays bounded however long the run is. Observers are notified once,
        at the end.

        Returns:
            Number of steps actually taken (0 when paused)
        """
        num_steps = require_count(num_steps, "num_steps", minimum=0)
        effective_dt = self._effective_dt(dt)
        if effective_dt == 0.0 or num_steps == 0:
            return 0

        remaining = num_steps
        while remaining > 0:
            chunk = min(remaining, self.run_chunk)
            positions, velocities = self.state_arrays()
            final_positions, final_velocities, trajectory, degenerate = integrate_multiple_steps(
                self._sun_position, self.sun.mass, positions, velocities, self._masses,
                effective_dt, chunk, **self._kernel_kwargs,
            )
            self._report_degenerate(np.asarray(degenerate))
            self._store(np.asarray(final_positions), np.asarray(final_velocities),
                        effective_dt * chunk)
            self._trail_push(np.asarray(trajectory))
            self._advance_clock(effective_dt, chunk)
            remaining -= chunk
        self._notify()
        return num_steps

    def reset(
        self,
        clear_trails: Optional[bool] = None,
        recompute_orbits: Optional[bool] = None,
    ) -> None:
        """
        Restore every planet's position and velocity to its initial snapshot.

        Trails and orbit guides are left untouched unless the engine was
        configured otherwise or the per-call flags say so.

        Args:
            clear_trails: Override clear_trails_on_reset for this call
            recompute_orbits: Override recompute_orbits_on_reset for this call
        """
        if clear_trails is None:
            clear_trails = self.clear_trails_on_reset
        if recompute_orbits is None:
            recompute_orbits = self.recompute_orbits_on_reset

        for planet in self._planets:
            planet.reset()
        self.sim_time = 0.0
        self.step_count = 0

        if clear_trails:
            self.clear_trails()
        if recompute_orbits:
            self.recompute_orbits()
        self._notify()

    def clear_trails(self) -> None:
        for trail in self._trails:
            trail.clear()

    def recompute_orbits(self) -> None:
        """Rebuild each orbit guide from the planet's current distance to the Sun."""
        orbits = []
        for planet in self._planets:
            path = compute_orbit_path(
                self._sun_position,
                float(np.linalg.norm(planet.position - self._sun_position)),
                self.orbit_samples,
                self.orbit_up_axis,
            )
            path.setflags(write=False)
            orbits.append(path)
        self._orbits = orbits

    def _store(self, positions: np.ndarray, velocities: np.ndarray, elapsed: float) -> None:
        for planet, position, velocity in zip(self._planets, positions, velocities):
            planet.position = position
            planet.velocity = velocity
            planet.spin_angle = (planet.spin_angle + planet.rotation_speed * elapsed) % (
                2.0 * math.pi
            )

    def _trail_push(self, trajectory: np.ndarray) -> None:
        # Only the last `capacity` points of a long run can survive
        for column, trail in enumerate(self._trails):
            trail.extend(trajectory[-trail.capacity:, column, :])

    def _advance_clock(self, effective_dt: float, num_steps: int) -> None:
        self.sim_time += effective_dt * num_steps
        self.step_count += num_steps

    def _report_degenerate(self, degenerate: np.ndarray) -> None:
        hits = np.any(degenerate, axis=0)
        if hits.any():
            warn_degenerate(
                [p.name for p, hit in zip(self._planets, hits) if hit],
                self.parameters.min_separation,
                stacklevel=4,
            )

    def _notify(self) -> None:
        if not self._observers:
            return
        snapshots = self.snapshot()
        for observer in list(self._observers):
            observer(snapshots)

    # Read access

    @property
    def planets(self) -> Tuple[Body, ...]:
        return tuple(self._planets)

    @property
    def planet_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self._planets)

    def _resolve(self, key: BodyKey) -> int:
        if isinstance(key, str):
            if key not in self._index:
                raise KeyError(f"No planet named {key!r}")
            return self._index[key]
        if isinstance(key, (int, np.integer)) and not isinstance(key, bool):
            if not -len(self._planets) <= key < len(self._planets):
                raise KeyError(f"Planet index {key} out of range")
            return int(key) % len(self._planets)
        raise KeyError(f"Planet key must be a name or an index, got {key!r}")

    def planet(self, key: BodyKey) -> Body:
        return self._planets[self._resolve(key)]

    def trail(self, key: BodyKey) -> TrailBuffer:
        return self._trails[self._resolve(key)]

    def trail_points(self, key: BodyKey, newest_first: bool = False) -> np.ndarray:
        return self._trails[self._resolve(key)].points(newest_first=newest_first)

    def orbit_path(self, key: BodyKey) -> np.ndarray:
        """Orbit guide of one planet, (orbit_samples, 3) in scene units."""
        return self._orbits[self._resolve(key)]

    def state_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Copies of all planet positions and velocities, each (N, 3)."""
        if not self._planets:
            empty = np.empty((0, 3), dtype=np.float64)
            return empty, empty.copy()
        positions = np.stack([p.position for p in self._planets])
        velocities = np.stack([p.velocity for p in self._planets])
        return positions, velocities

    def snapshot(self) -> Tuple[BodySnapshot, ...]:
        return tuple(p.snapshot() for p in self._planets)

    def orbital_energies(self) -> np.ndarray:
        """Specific orbital energy of each planet, (N,)."""
        positions, velocities = self.state_arrays()
        return np.asarray(
            compute_orbital_energy(
                self._sun_position, self.sun.mass, positions, velocities,
                g=self.parameters.g, unit_scale=self.parameters.unit_scale,
            )
        )

    def angular_momenta(self) -> np.ndarray:
        """Specific angular momentum vector of each planet, (N, 3)."""
        positions, velocities = self.state_arrays()
        return np.asarray(
            compute_angular_momentum(
                self._sun_position, positions, velocities,
                unit_scale=self.parameters.unit_scale,
            )
        )

    def distances(self) -> np.ndarray:
        """Distance of each planet from the Sun, (N,) in scene units."""
        positions, _ = self.state_arrays()
        return np.linalg.norm(positions - self._sun_position, axis=1)
