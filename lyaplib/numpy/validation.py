import warnings

import numpy as np

from ..errors import InvalidParameterError, ToleranceWarning
from .integrators import IntegratorOptions, is_fixed_step


def check_threshold(d0: float, threshold: float) -> None:
    """Reject rescaling parameters before any evolution happens."""
    if not d0 > 0:
        raise InvalidParameterError(f"d0 must be positive, got {d0}.")
    if threshold <= d0:
        raise InvalidParameterError("Threshold must be bigger than d0!")


def check_tolerances(d0: float, options: IntegratorOptions) -> None:
    """Warn when integration error could exceed the rescaling distance.

    At tolerances above ``10 * d0`` the solver's own error is comparable to
    the separation being measured, and numerical noise becomes
    indistinguishable from chaotic divergence.
    """
    if is_fixed_step(options.method):
        return
    if options.atol > 10 * d0:
        warnings.warn(
            "Absolute tolerance (atol) of integration is much bigger than `d0` "
            f"(atol={options.atol:g}, d0={d0:g}).",
            ToleranceWarning,
            stacklevel=3,
        )
    if options.rtol > 10 * d0:
        warnings.warn(
            "Relative tolerance (rtol) of integration is much bigger than `d0` "
            f"(rtol={options.rtol:g}, d0={d0:g}).",
            ToleranceWarning,
            stacklevel=3,
        )


def check_steps(name: str, value, *, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be an integer.")
    if value < 0 or (value == 0 and not allow_zero):
        kind = "non-negative" if allow_zero else "positive"
        raise ValueError(f"{name} must be a {kind} integer.")
    return int(value)


def check_time(name: str, value, *, allow_zero: bool = False) -> float:
    value = float(value)
    if not np.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite.")
    if value < 0 or (value == 0 and not allow_zero):
        kind = "non-negative" if allow_zero else "positive"
        raise InvalidParameterError(f"{name} must be {kind}, got {value:g}.")
    return value


__all__ = [
    "check_threshold",
    "check_tolerances",
    "check_steps",
    "check_time",
]
