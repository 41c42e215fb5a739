"""
Simulation Parameters & Input Boundary
======================================
Everything the integrator reads from its environment passes through
here first. The integrator assumes finite values with a positive
caliber and ballistic coefficient; this module is where that is
enforced, so a zero or NaN can never turn into infinite drag.

Two layers:
  - ``SimulationParameters.validate()``: hard physical preconditions
  - ``accept_parameters()`` / ``ParameterForm``: parsing of user input
    and the form's [0, 1] range on the ballistic coefficient
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Sequence, Union

import numpy as np

from .config import (
    BC_UI_RANGE,
    DEFAULT_BALLISTIC_COEFFICIENT,
    DEFAULT_CALIBER,
    DEFAULT_ELEVATION_DEG,
    DEFAULT_WIND,
)
from .constants import MUZZLE_VELOCITY, SUPPORTED_DIMENSIONS, VERTICAL_AXIS
from .errors import InvalidParameterError

log = logging.getLogger(__name__)

Wind = Union[float, Sequence[float], np.ndarray]


def _is_finite(value) -> bool:
    return bool(np.all(np.isfinite(np.asarray(value, dtype=np.float64))))


def _require_positive(name: str, value: float) -> None:
    if not _is_finite(value):
        raise InvalidParameterError(name, value, "must be finite")
    if value <= 0:
        raise InvalidParameterError(name, value, "must be > 0")


def validate_dt(dt: float) -> float:
    """Reject a timestep the integrator must never see."""
    try:
        dt = float(dt)
    except (TypeError, ValueError):
        raise InvalidParameterError("dt", dt, "not a number") from None
    _require_positive("dt", dt)
    return dt


@dataclass(frozen=True)
class SimulationParameters:
    """
    One consistent snapshot of the user-adjustable inputs.

    ``wind`` is either a scalar cross-wind (applied along x) or a
    per-axis vector whose vertical component is ignored.
    """
    wind: Wind = DEFAULT_WIND                              # m/s
    caliber: float = DEFAULT_CALIBER                       # m
    ballistic_coefficient: float = DEFAULT_BALLISTIC_COEFFICIENT
    elevation_deg: float = DEFAULT_ELEVATION_DEG           # degrees
    muzzle_velocity: float = field(default=MUZZLE_VELOCITY)  # m/s

    def validate(self) -> "SimulationParameters":
        """Raise InvalidParameterError unless every field is usable."""
        if not _is_finite(self.wind):
            raise InvalidParameterError("wind", self.wind, "must be finite")
        if np.ndim(self.wind) > 1:
            raise InvalidParameterError("wind", self.wind,
                                        "must be a scalar or a 1-D vector")
        _require_positive("caliber", self.caliber)
        _require_positive("ballistic_coefficient", self.ballistic_coefficient)
        if not _is_finite(self.elevation_deg):
            raise InvalidParameterError("elevation_deg", self.elevation_deg,
                                        "must be finite")
        if not _is_finite(self.muzzle_velocity) or self.muzzle_velocity < 0:
            raise InvalidParameterError("muzzle_velocity", self.muzzle_velocity,
                                        "must be finite and >= 0")
        return self

    def wind_vector(self, dimensions: int = 2) -> np.ndarray:
        """Wind as a per-axis acceleration vector with no vertical part."""
        if dimensions not in SUPPORTED_DIMENSIONS:
            raise InvalidParameterError("dimensions", dimensions,
                                        f"must be one of {SUPPORTED_DIMENSIONS}")
        if np.ndim(self.wind) == 0:
            vec = np.zeros(dimensions, dtype=np.float64)
            vec[0] = float(self.wind)
            return vec

        vec = np.array(self.wind, dtype=np.float64)
        if vec.shape != (dimensions,):
            raise InvalidParameterError(
                "wind", self.wind,
                f"has {vec.size} components, simulation is {dimensions}D")
        vec[VERTICAL_AXIS] = 0.0
        return vec

    def with_changes(self, **changes) -> "SimulationParameters":
        return replace(self, **changes)


# ══════════════════════════════════════════════════════════════════════════
#  User-input boundary
# ══════════════════════════════════════════════════════════════════════════

def _parse_number(name: str, raw) -> float:
    if isinstance(raw, str):
        raw = raw.strip()
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidParameterError(name, raw, "not a number") from None
    if not math.isfinite(value):
        raise InvalidParameterError(name, raw, "must be finite")
    return value


def _parse_wind(raw) -> Wind:
    if isinstance(raw, (str, int, float)) or np.ndim(raw) == 0:
        return _parse_number("wind", raw)
    return tuple(_parse_number("wind", component) for component in raw)


def clamp_ballistic_coefficient(value: float,
                                bounds: tuple = BC_UI_RANGE) -> float:
    """Clamp into the form's allowed range."""
    low, high = bounds
    return max(low, min(high, value))


def accept_parameters(wind=DEFAULT_WIND,
                      elevation=DEFAULT_ELEVATION_DEG,
                      caliber=DEFAULT_CALIBER,
                      ballistic_coefficient=DEFAULT_BALLISTIC_COEFFICIENT,
                      muzzle_velocity=MUZZLE_VELOCITY,
                      clamp_bc: bool = True) -> SimulationParameters:
    """
    Turn raw user input (numbers or strings) into a validated snapshot.

    The ballistic coefficient is clamped to ``BC_UI_RANGE`` when
    ``clamp_bc`` is set; a value that clamps to 0 is still rejected.

    Raises
    ------
    InvalidParameterError
        Unparseable, non-finite, or non-positive caliber / coefficient.
    """
    try:
        bc = _parse_number("ballistic_coefficient", ballistic_coefficient)
        if clamp_bc:
            clamped = clamp_ballistic_coefficient(bc)
            if clamped != bc:
                log.debug("ballistic_coefficient %.4g clamped to %.4g", bc, clamped)
            bc = clamped
        params = SimulationParameters(
            wind=_parse_wind(wind),
            caliber=_parse_number("caliber", caliber),
            ballistic_coefficient=bc,
            elevation_deg=_parse_number("elevation_deg", elevation),
            muzzle_velocity=_parse_number("muzzle_velocity", muzzle_velocity),
        )
        return params.validate()
    except InvalidParameterError as exc:
        log.warning("rejected input: %s", exc)
        raise


class ParameterForm:
    """
    Last-accepted values of the input form.

    An edit that does not parse as a number is dropped and the previous
    value stays, so half-typed input ("0.", "-") never clears a field.
    """

    FIELDS = ("wind", "elevation", "caliber", "ballistic_coefficient")

    def __init__(self):
        self.values = {
            "wind": DEFAULT_WIND,
            "elevation": DEFAULT_ELEVATION_DEG,
            "caliber": DEFAULT_CALIBER,
            "ballistic_coefficient": DEFAULT_BALLISTIC_COEFFICIENT,
        }

    def update(self, name: str, text: str) -> bool:
        """Store ``text`` under ``name`` if it parses; return whether it did."""
        if name not in self.FIELDS:
            raise KeyError(name)
        try:
            self.values[name] = float(text)
        except (TypeError, ValueError):
            log.debug("ignoring unparseable %s input %r", name, text)
            return False
        return True

    def snapshot(self) -> SimulationParameters:
        """Validated parameters for the next tick or launch."""
        return accept_parameters(**self.values)
