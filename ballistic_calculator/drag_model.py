"""
Aerodynamic Drag Model
======================
Quadratic drag scaled by the projectile's caliber and ballistic
coefficient:

    Cd   = 1 / (BC · d²)
    drag = -½ · Cd · ρ · |v|²

The result is a signed scalar (never positive). Callers spread it over
the velocity components along the unit direction v̂ = v / |v|.

Inputs are assumed positive and finite; they are checked once at the
parameter boundary (see ``parameters.py``), not here.
"""

import numpy as np

from .constants import AIR_DENSITY


def drag_coefficient(caliber: float, ballistic_coefficient: float) -> float:
    """Cd = 1 / (BC · d²). Raises ZeroDivisionError for a zero input."""
    return 1.0 / (ballistic_coefficient * caliber ** 2)


def drag_magnitude(speed: float, caliber: float,
                   ballistic_coefficient: float) -> float:
    """
    Signed drag deceleration magnitude (m/s²).

    Parameters
    ----------
    speed : float
        Projectile speed |v| (m/s), >= 0
    caliber : float
        Projectile diameter (m), > 0
    ballistic_coefficient : float
        Dimensionless drag-resistance factor, > 0

    Returns
    -------
    float
        ≤ 0, and exactly 0 only when ``speed == 0``
    """
    cd = drag_coefficient(caliber, ballistic_coefficient)
    return -0.5 * cd * AIR_DENSITY * speed ** 2


class DragModel:
    """
    Drag model bound to one caliber / ballistic coefficient pair.

    ``acceleration`` is the drag term of ``compute_acceleration``, so the
    tick integrator and the reference solver share it.
    """

    def __init__(self, caliber: float, ballistic_coefficient: float):
        self.caliber = caliber
        self.ballistic_coefficient = ballistic_coefficient

    @property
    def cd(self) -> float:
        return drag_coefficient(self.caliber, self.ballistic_coefficient)

    def magnitude(self, speed: float) -> float:
        return drag_magnitude(speed, self.caliber, self.ballistic_coefficient)

    def magnitude_array(self, speeds: np.ndarray) -> np.ndarray:
        """Vectorized magnitude lookup."""
        speeds = np.asarray(speeds, dtype=np.float64)
        return -0.5 * self.cd * AIR_DENSITY * speeds ** 2

    def acceleration(self, velocity: np.ndarray) -> np.ndarray:
        """
        Drag acceleration vector, drag · v̂.

        Zero at rest: with no speed there is no direction to oppose.
        """
        velocity = np.asarray(velocity, dtype=np.float64)
        speed = float(np.linalg.norm(velocity))
        if speed == 0.0:
            return np.zeros_like(velocity)
        return self.magnitude(speed) * velocity / speed

    def __repr__(self):
        return (f"DragModel(caliber={self.caliber!r}, "
                f"ballistic_coefficient={self.ballistic_coefficient!r})")
