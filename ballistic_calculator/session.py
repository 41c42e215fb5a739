"""
Simulation Session
==================
The tick-driven loop around one TrajectoryIntegrator.

A host (a matplotlib timer, a game loop, a test) calls ``tick()`` at a
roughly fixed cadence and reads ``position`` to render. Parameter edits
land through ``set_parameters`` and take effect on the next tick; a
tick always sees one consistent snapshot.

Everything that touches the projectile or the snapshot goes through a
single lock, so a host that fires ticks from a timer thread and edits
parameters from a UI thread gets one critical section per tick.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .config import DT
from .constants import GRAVITY
from .errors import NumericalInstabilityError
from .integrator import TrajectoryIntegrator
from .parameters import SimulationParameters, validate_dt
from .projectile import FlightState, Vector

log = logging.getLogger(__name__)


class SimulationSession:
    """One projectile, one parameter snapshot, one lock."""

    def __init__(self, params: Optional[SimulationParameters] = None,
                 dimensions: int = 2, gravity: float = GRAVITY):
        self._lock = threading.Lock()
        self._integrator = TrajectoryIntegrator(dimensions=dimensions,
                                                gravity=gravity)
        self._params = self._checked(params or SimulationParameters())
        self.halted = False

    # ── Boundary inputs ───────────────────────────────────────────────────
    @property
    def parameters(self) -> SimulationParameters:
        with self._lock:
            return self._params

    def set_parameters(self, params: SimulationParameters) -> None:
        """Swap the snapshot; rejected input leaves the old one in place."""
        params = self._checked(params)
        with self._lock:
            self._params = params

    def _checked(self, params: SimulationParameters) -> SimulationParameters:
        """Validate, including that the wind fits this session's axes."""
        params.validate()
        params.wind_vector(self._integrator.dimensions)
        return params

    def fire(self) -> None:
        """Launch with the current snapshot's elevation and muzzle velocity."""
        with self._lock:
            p = self._params
            self._integrator.launch(p.elevation_deg, p.muzzle_velocity)
            self.halted = False
        log.info("fired at %.1f° (%.0f m/s)", p.elevation_deg, p.muzzle_velocity)

    def tick(self, dt: float = DT) -> bool:
        """
        Run one step if the projectile is in flight.

        Returns whether a step was taken. A step that would overflow halts
        the session instead of raising, so a display timer keeps running
        and shows the last finite position.
        """
        dt = validate_dt(dt)
        with self._lock:
            if self.halted or self._integrator.flight_state is not FlightState.IN_FLIGHT:
                return False
            try:
                self._integrator.step(dt, self._params)
            except NumericalInstabilityError as exc:
                self.halted = True
                log.warning("session halted: %s", exc)
                return False
            return True

    # ── Observers ─────────────────────────────────────────────────────────
    @property
    def position(self) -> Vector:
        with self._lock:
            return self._integrator.position

    def state(self) -> tuple[Vector, Vector]:
        with self._lock:
            return self._integrator.state()

    @property
    def flight_state(self) -> FlightState:
        return self._integrator.flight_state

    @property
    def elapsed(self) -> float:
        """Simulated seconds since the session was created."""
        return self._integrator.time


def run_ticks(session: SimulationSession, count: int, dt: float = DT) -> int:
    """Drive ``count`` ticks; return how many actually stepped."""
    return sum(1 for _ in range(count) if session.tick(dt))
