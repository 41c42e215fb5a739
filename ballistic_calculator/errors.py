"""Exception types raised at the parameter boundary."""


class BallisticsError(Exception):
    """Base class for errors raised by this package."""


class InvalidParameterError(BallisticsError, ValueError):
    """A parameter or timestep that must never reach the integrator."""

    def __init__(self, name: str, value, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"invalid {name}={value!r}: {reason}")


class NumericalInstabilityError(BallisticsError, ArithmeticError):
    """A step would leave position or velocity non-finite."""
