"""
Projectile State & Forces
=========================
Defines the kinematic state of the single live projectile and the
acceleration acting on it:
  - Gravity (vertical axis only)
  - Wind (horizontal axes only)
  - Aerodynamic drag along -v̂ (see ``drag_model.py``)

Coordinate system:
  x = downrange (horizontal)
  y = altitude  (vertical, up positive)
  z = crossrange (lateral, 3D only)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np

from .constants import GRAVITY, SUPPORTED_DIMENSIONS, VERTICAL_AXIS
from .drag_model import DragModel
from .parameters import SimulationParameters

Vector = np.ndarray


def to_vector(value) -> Vector:
    """Convert any iterable to a float64 numpy vector."""
    return np.asarray(list(value), dtype=np.float64)


def frozen(vec: Vector) -> Vector:
    """Read-only copy, safe to hand out of the integrator."""
    out = np.array(vec, dtype=np.float64)
    out.setflags(write=False)
    return out


class FlightState(enum.Enum):
    AT_REST = "at_rest"
    IN_FLIGHT = "in_flight"


@dataclass
class Projectile:
    """Position (m) and velocity (m/s) in the launch-point frame."""
    position: Vector = field(default_factory=lambda: np.zeros(2))
    velocity: Vector = field(default_factory=lambda: np.zeros(2))

    def __post_init__(self):
        self.position = to_vector(self.position)
        self.velocity = to_vector(self.velocity)
        if self.position.shape != self.velocity.shape:
            raise ValueError("position and velocity must have the same length")
        if self.dimensions not in SUPPORTED_DIMENSIONS:
            raise ValueError(
                f"Unsupported dimension {self.dimensions}; "
                f"expected one of {SUPPORTED_DIMENSIONS}"
            )

    @classmethod
    def at_origin(cls, dimensions: int = 2) -> "Projectile":
        return cls(np.zeros(dimensions), np.zeros(dimensions))

    @property
    def dimensions(self) -> int:
        return int(self.position.shape[0])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


def launch_velocity(elevation_deg: float, muzzle_velocity: float,
                    dimensions: int = 2) -> Vector:
    """
    Decompose muzzle speed into [vx, vy(, vz)] for the given elevation.
    Firing is always along +x; there is no azimuth.
    """
    elev = elevation_deg * np.pi / 180.0
    vel = np.zeros(dimensions, dtype=np.float64)
    vel[0] = muzzle_velocity * np.cos(elev)
    vel[VERTICAL_AXIS] = muzzle_velocity * np.sin(elev)
    return vel


def compute_acceleration(velocity: Vector, params: SimulationParameters,
                         gravity: float = GRAVITY) -> Vector:
    """
    Total acceleration for the current velocity.

    Parameters
    ----------
    velocity : [vx, vy(, vz)] in m/s
    params : validated SimulationParameters snapshot
    gravity : float
        Magnitude along -y; tests pass 0 to isolate drag

    Returns
    -------
    acceleration : np.ndarray, same length as ``velocity`` (m/s²)
    """
    acc = params.wind_vector(velocity.shape[0])
    acc[VERTICAL_AXIS] -= gravity

    drag = DragModel(params.caliber, params.ballistic_coefficient)
    return acc + drag.acceleration(velocity)
