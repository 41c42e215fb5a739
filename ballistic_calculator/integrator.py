"""
Numerical Integration Engine
============================
Advances the projectile one fixed timestep at a time with the
semi-implicit (symplectic) Euler scheme:

    v_{n+1} = v_n + a(v_n) · dt
    x_{n+1} = x_n + v_{n+1} · dt

Position uses the *updated* velocity. That ordering is what separates
this scheme from explicit Euler and keeps long runs of ticks stable.

The integrator is driven from outside: something calls ``step(dt, params)``
once per tick. ``fly()`` is the batch driver that does so and records
the history into a ``TrajectoryResult``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .config import DT, MAX_FLIGHT_TIME
from .constants import GRAVITY, MUZZLE_VELOCITY, VERTICAL_AXIS
from .errors import InvalidParameterError, NumericalInstabilityError
from .parameters import SimulationParameters, validate_dt
from .projectile import (
    FlightState,
    Projectile,
    Vector,
    compute_acceleration,
    frozen,
    launch_velocity,
)

log = logging.getLogger(__name__)


class TrajectoryIntegrator:
    """
    Owns the single live Projectile and steps it forward.

    Not thread-safe: callers must serialize ``step`` and ``launch``
    (see ``SimulationSession`` for a locked wrapper).
    """

    def __init__(self, projectile: Optional[Projectile] = None,
                 dimensions: int = 2, gravity: float = GRAVITY):
        self.projectile = projectile if projectile is not None \
            else Projectile.at_origin(dimensions)
        self.gravity = gravity
        self.flight_state = FlightState.AT_REST
        self.time = 0.0
        self.steps = 0
        self._overshoot_warned = False

    @property
    def dimensions(self) -> int:
        return self.projectile.dimensions

    @property
    def position(self) -> Vector:
        """Current position (read-only copy)."""
        return frozen(self.projectile.position)

    @property
    def velocity(self) -> Vector:
        return frozen(self.projectile.velocity)

    def state(self) -> tuple[Vector, Vector]:
        """(position, velocity) as read-only copies."""
        return self.position, self.velocity

    def launch(self, elevation_deg: float,
               muzzle_velocity: float = MUZZLE_VELOCITY) -> None:
        """Replace the velocity with the muzzle vector; position is kept."""
        if not np.isfinite(elevation_deg):
            raise InvalidParameterError("elevation_deg", elevation_deg,
                                        "must be finite")
        if not np.isfinite(muzzle_velocity) or muzzle_velocity < 0:
            raise InvalidParameterError("muzzle_velocity", muzzle_velocity,
                                        "must be finite and >= 0")

        self.projectile.velocity = launch_velocity(
            elevation_deg, muzzle_velocity, self.dimensions)
        self.flight_state = FlightState.IN_FLIGHT
        log.debug("launch: elevation=%.2f° v0=%.1f m/s from %s",
                  elevation_deg, muzzle_velocity, self.projectile.position)

    def step(self, dt: float, params: SimulationParameters) -> None:
        """
        Advance one tick.

        Parameters
        ----------
        dt : float
            Timestep (s), > 0
        params : SimulationParameters
            Snapshot read once for every axis of this step

        Raises
        ------
        InvalidParameterError
            Bad ``dt`` or parameters; nothing is mutated.
        NumericalInstabilityError
            The update would overflow; nothing is mutated.
        """
        dt = validate_dt(dt)
        params.validate()

        vel = self.projectile.velocity
        with np.errstate(over='ignore', invalid='ignore'):
            try:
                acc = compute_acceleration(vel, params, self.gravity)
            except OverflowError:
                raise NumericalInstabilityError(
                    f"drag overflowed at speed {self.projectile.speed:.6g} m/s"
                ) from None
            new_vel = vel + acc * dt
            new_pos = self.projectile.position + new_vel * dt

        if not (np.all(np.isfinite(new_vel)) and np.all(np.isfinite(new_pos))):
            raise NumericalInstabilityError(
                f"step {self.steps + 1} would leave the state non-finite "
                f"(speed {self.projectile.speed:.6g} m/s, dt={dt})"
            )

        self._check_overshoot(vel, acc, dt)

        self.projectile.velocity = new_vel
        self.projectile.position = new_pos
        self.time += dt
        self.steps += 1

    def _check_overshoot(self, vel: Vector, acc: Vector, dt: float) -> None:
        """Warn once if drag alone is strong enough to reverse the motion."""
        if self._overshoot_warned:
            return
        speed = float(np.linalg.norm(vel))
        if speed == 0.0:
            return
        along = -float(np.dot(acc, vel)) / speed * dt
        if along > 2.0 * speed:
            self._overshoot_warned = True
            log.warning(
                "timestep %.4g s too coarse for this drag: one step removes "
                "%.3g m/s from a speed of %.3g m/s", dt, along, speed)


# ══════════════════════════════════════════════════════════════════════════
#  Batch driver
# ══════════════════════════════════════════════════════════════════════════

def until_ground(integrator: TrajectoryIntegrator) -> bool:
    """Stop once the projectile has come back down through y = 0."""
    return integrator.steps > 0 and integrator.projectile.position[VERTICAL_AXIS] < 0.0


@dataclass
class TrajectoryResult:
    """Recorded tick history. Arrays have one row per tick plus the start."""
    params: SimulationParameters
    dt: float
    time: np.ndarray
    position: np.ndarray      # (N, dims)
    velocity: np.ndarray      # (N, dims)
    diverged: bool = False

    @property
    def x(self) -> np.ndarray:
        return self.position[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.position[:, VERTICAL_AXIS]

    @property
    def speed(self) -> np.ndarray:
        return np.linalg.norm(self.velocity, axis=1)

    @property
    def range_total(self) -> float:
        """Downrange distance at the last recorded tick (m)."""
        return float(self.x[-1])

    @property
    def max_altitude(self) -> float:
        return float(np.max(self.y))

    @property
    def flight_time(self) -> float:
        return float(self.time[-1])

    @property
    def impact_velocity(self) -> float:
        return float(self.speed[-1])

    def summary(self) -> str:
        """Human-readable summary string."""
        p = self.params
        lines = [
            f"  Elevation    : {p.elevation_deg:>10.2f} °",
            f"  Muzzle vel   : {p.muzzle_velocity:>10.1f} m/s",
            f"  Caliber      : {p.caliber * 1000:>10.3f} mm",
            f"  Ballistic BC : {p.ballistic_coefficient:>10.4g}",
            f"  Wind         : {p.wind!s:>10} m/s",
            f"  Timestep     : {self.dt:>10.4f} s",
            f"  Ticks        : {len(self.time) - 1:>10d}",
            f"  Range        : {self.range_total:>10.1f} m",
            f"  Max altitude : {self.max_altitude:>10.1f} m",
            f"  Flight time  : {self.flight_time:>10.2f} s",
            f"  Final speed  : {self.impact_velocity:>10.1f} m/s",
            f"  Status       : {'DIVERGED' if self.diverged else 'ok':>10}",
        ]
        return '\n'.join(lines)


StopCondition = Callable[[TrajectoryIntegrator], bool]


def fly(params: SimulationParameters, dt: float = DT,
        max_time: float = MAX_FLIGHT_TIME,
        stop: Optional[StopCondition] = until_ground,
        dimensions: int = 2, gravity: float = GRAVITY) -> TrajectoryResult:
    """
    Launch from the origin and tick until ``stop`` fires or ``max_time``.

    ``stop=None`` runs for exactly ``round(max_time / dt)`` ticks. A step
    that would overflow ends the flight early with ``diverged`` set; the
    history up to the last finite tick is kept.
    """
    params.validate()
    dt = validate_dt(dt)

    integrator = TrajectoryIntegrator(dimensions=dimensions, gravity=gravity)
    integrator.launch(params.elevation_deg, params.muzzle_velocity)

    times = [0.0]
    positions = [integrator.projectile.position.copy()]
    velocities = [integrator.projectile.velocity.copy()]

    diverged = False
    for _ in range(int(round(max_time / dt))):
        try:
            integrator.step(dt, params)
        except NumericalInstabilityError as exc:
            log.warning("flight diverged, keeping %d ticks: %s", integrator.steps, exc)
            diverged = True
            break
        times.append(integrator.time)
        positions.append(integrator.projectile.position.copy())
        velocities.append(integrator.projectile.velocity.copy())
        if stop is not None and stop(integrator):
            break

    log.debug("flight ended after %d ticks (t=%.2f s)",
              integrator.steps, integrator.time)
    return TrajectoryResult(
        params=params,
        dt=dt,
        time=np.array(times),
        position=np.array(positions),
        velocity=np.array(velocities),
        diverged=diverged,
    )
