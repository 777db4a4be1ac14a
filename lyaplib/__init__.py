"""lyaplib: Lyapunov exponents of discrete maps and continuous flows.

Public API mirrors the NumPy backend for convenience while keeping the
module split clean: full spectra through QR re-orthonormalization of the
tangent dynamics, maximal exponents through the two-trajectory Benettin
method.
"""

from . import numpy as numpy_backend
from .errors import (
    LyapunovError,
    InvalidParameterError,
    ParameterMismatchError,
    IntegrationError,
    ConvergenceError,
    ToleranceWarning,
)
from .numpy import (
    lyapunovs,
    lyapunov,
    DiscreteDS,
    DiscreteDS1D,
    ContinuousDS,
    qr_positive,
    lyapunovs_discrete,
    lyapunov_discrete,
    lyapunov_1d,
    lyapunovs_continuous,
    lyapunov_continuous,
    lyapunov_from_integrators,
    tangent_integrator,
    IntegratorOptions,
    make_integrator,
    RescalePolicy,
    resolve_stepper,
    register_stepper,
)

numpy = numpy_backend

__all__ = [
    "lyapunovs",
    "lyapunov",
    "DiscreteDS",
    "DiscreteDS1D",
    "ContinuousDS",
    "qr_positive",
    "lyapunovs_discrete",
    "lyapunov_discrete",
    "lyapunov_1d",
    "lyapunovs_continuous",
    "lyapunov_continuous",
    "lyapunov_from_integrators",
    "tangent_integrator",
    "IntegratorOptions",
    "make_integrator",
    "RescalePolicy",
    "resolve_stepper",
    "register_stepper",
    "LyapunovError",
    "InvalidParameterError",
    "ParameterMismatchError",
    "IntegrationError",
    "ConvergenceError",
    "ToleranceWarning",
    "numpy",
]

__version__ = "0.1.0"
