"""Exceptions and warnings raised by lyaplib estimators."""

__all__ = [
    "LyapunovError",
    "InvalidParameterError",
    "ParameterMismatchError",
    "IntegrationError",
    "ConvergenceError",
    "ToleranceWarning",
]


class LyapunovError(Exception):
    """Base error for the lyaplib package."""


class InvalidParameterError(LyapunovError, ValueError):
    """Raised when estimator parameters are rejected before any evolution."""


class ParameterMismatchError(LyapunovError, ValueError):
    """Raised when ``dt``, ``threshold`` and ``d0`` cannot resolve the divergence.

    Detected mid-run: the test trajectory crossed the rescaling threshold
    right after the first checkpoint of a segment.
    """

    def __init__(self, d0: float, threshold: float, dt: float, time: float):
        self.d0 = d0
        self.threshold = threshold
        self.dt = dt
        self.time = time
        msg = (
            "Distance between test and reference trajectory exceeded threshold "
            f"after just 1 evolution step (t={time:g}). "
            "Please decrease `dt`, increase `threshold` or decrease `d0`. "
            f"Got dt={dt:g}, threshold={threshold:g}, d0={d0:g}."
        )
        super().__init__(msg)


class IntegrationError(LyapunovError, RuntimeError):
    """Raised when the underlying ODE solver fails to reach a checkpoint."""


class ConvergenceError(LyapunovError, RuntimeError):
    """Raised when no rescaling event happened within the time horizon."""


class ToleranceWarning(RuntimeWarning):
    """Integrator tolerances are coarse compared to the rescaling distance."""
