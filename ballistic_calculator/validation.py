"""
Accuracy Check Against a Reference Solution
===========================================
Solves the same equations of motion the tick integrator uses with a
high-order adaptive solver (``scipy.integrate.solve_ivp``) and measures
how far the semi-implicit Euler ticks drift from it.

    dx/dt = v
    dv/dt = a(v)        (compute_acceleration: gravity + wind + drag)

Semi-implicit Euler is first order, so halving ``dt`` should roughly
halve the position error. ``error_vs_timestep`` makes that visible.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from scipy.integrate import solve_ivp

from .constants import GRAVITY
from .integrator import TrajectoryResult, fly
from .parameters import SimulationParameters
from .projectile import compute_acceleration, launch_velocity

log = logging.getLogger(__name__)


def reference_trajectory(params: SimulationParameters, times: np.ndarray,
                         dimensions: int = 2, gravity: float = GRAVITY,
                         method: str = 'RK45', rtol: float = 1e-10,
                         atol: float = 1e-10) -> np.ndarray:
    """
    Reference positions at each of ``times`` (shape (N, dims)).

    Starts from the origin with the launch velocity for
    ``params.elevation_deg`` / ``params.muzzle_velocity``.
    """
    params.validate()
    times = np.asarray(times, dtype=np.float64)
    if times.ndim != 1 or times.size < 2:
        raise ValueError(f"need at least two sample times, got {times.size}")
    v0 = launch_velocity(params.elevation_deg, params.muzzle_velocity, dimensions)
    y0 = np.concatenate([np.zeros(dimensions), v0])

    def rhs(t, y):
        vel = y[dimensions:]
        return np.concatenate([vel, compute_acceleration(vel, params, gravity)])

    sol = solve_ivp(rhs, (times[0], times[-1]), y0, method=method,
                    t_eval=times, rtol=rtol, atol=atol)
    if not sol.success:
        raise RuntimeError(f"reference solver failed: {sol.message}")
    return sol.y[:dimensions].T


@dataclass
class ReferenceComparison:
    """Tick integrator vs reference over one run."""
    dt: float
    result: TrajectoryResult
    reference: np.ndarray        # (N, dims)
    error: np.ndarray            # (N,) Euclidean position error (m)

    @property
    def max_error(self) -> float:
        return float(np.max(self.error))

    @property
    def final_error(self) -> float:
        return float(self.error[-1])


def compare_with_reference(params: SimulationParameters, dt: float,
                           duration: float, dimensions: int = 2,
                           gravity: float = GRAVITY) -> ReferenceComparison:
    """Fly for ``duration`` seconds at ``dt`` and diff against the reference."""
    result = fly(params, dt=dt, max_time=duration, stop=None,
                 dimensions=dimensions, gravity=gravity)
    if result.diverged:
        raise RuntimeError(
            f"tick integrator diverged at dt={dt}; nothing to compare")
    reference = reference_trajectory(params, result.time, dimensions, gravity)
    error = np.linalg.norm(result.position - reference, axis=1)
    log.debug("dt=%.4g: max position error %.4g m", dt, float(np.max(error)))
    return ReferenceComparison(dt=dt, result=result, reference=reference,
                               error=error)


def error_vs_timestep(params: SimulationParameters, dts: Sequence[float],
                      duration: float = 1.0,
                      dimensions: int = 2) -> List[ReferenceComparison]:
    """Run ``compare_with_reference`` for each timestep in ``dts``."""
    comparisons = []
    for dt in dts:
        comparisons.append(
            compare_with_reference(params, dt, duration, dimensions))
    return comparisons


def convergence_order(comparisons: Sequence[ReferenceComparison]) -> float:
    """
    Observed order p from a log-log fit of final error vs dt.

    ≈ 1 for semi-implicit Euler. Needs two or more runs with a nonzero
    final error; raises ValueError otherwise.
    """
    dts = np.array([c.dt for c in comparisons])
    errs = np.array([c.final_error for c in comparisons])
    if dts.size < 2 or not np.all(errs > 0):
        raise ValueError("convergence order needs two or more nonzero errors")
    slope, _ = np.polyfit(np.log(dts), np.log(errs), 1)
    return float(slope)
