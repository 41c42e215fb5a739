"""
Ballistic Calculator
====================
Tick-driven trajectory simulation of a fired projectile under:
  - Gravity (constant, vertical axis)
  - Wind (constant, horizontal axes)
  - Quadratic aerodynamic drag scaled by caliber and ballistic coefficient

The projectile is advanced one fixed timestep per tick with
semi-implicit Euler integration. Works in 2D (x, y) or 3D (x, y, z).
"""

from .constants import GRAVITY, AIR_DENSITY, MUZZLE_VELOCITY
from .errors import BallisticsError, InvalidParameterError, NumericalInstabilityError
from .drag_model import DragModel, drag_coefficient, drag_magnitude
from .parameters import (
    SimulationParameters, ParameterForm, accept_parameters, validate_dt,
)
from .projectile import Projectile, FlightState, compute_acceleration, launch_velocity
from .integrator import TrajectoryIntegrator, TrajectoryResult, fly, until_ground
from .session import SimulationSession, run_ticks

__version__ = "1.0.0"
__all__ = [
    'GRAVITY', 'AIR_DENSITY', 'MUZZLE_VELOCITY',
    'BallisticsError', 'InvalidParameterError', 'NumericalInstabilityError',
    'DragModel', 'drag_coefficient', 'drag_magnitude',
    'SimulationParameters', 'ParameterForm', 'accept_parameters', 'validate_dt',
    'Projectile', 'FlightState', 'compute_acceleration', 'launch_velocity',
    'TrajectoryIntegrator', 'TrajectoryResult', 'fly', 'until_ground',
    'SimulationSession', 'run_ticks',
]
