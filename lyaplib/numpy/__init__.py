"""NumPy-backed implementations of lyaplib routines."""

from .api import lyapunovs, lyapunov
from .systems import DiscreteDS, DiscreteDS1D, ContinuousDS
from .qr import qr_positive
from .discrete import tangent_step, lyapunovs_discrete, lyapunov_discrete, lyapunov_1d
from .continuous import lyapunovs_continuous, lyapunov_continuous, lyapunov_from_integrators
from .tangent import tangent_integrator, tangent_block
from .integrators import IntegratorOptions, Integrator, make_integrator, evolve
from .rescale import RescalePolicy, ColinearRescale, OffsetRescale, resolve_rescale
from .steppers import resolve_stepper, register_stepper
from .validation import check_threshold, check_tolerances

__all__ = [
    "lyapunovs",
    "lyapunov",
    "DiscreteDS",
    "DiscreteDS1D",
    "ContinuousDS",
    "qr_positive",
    "tangent_step",
    "lyapunovs_discrete",
    "lyapunov_discrete",
    "lyapunov_1d",
    "lyapunovs_continuous",
    "lyapunov_continuous",
    "lyapunov_from_integrators",
    "tangent_integrator",
    "tangent_block",
    "IntegratorOptions",
    "Integrator",
    "make_integrator",
    "evolve",
    "RescalePolicy",
    "ColinearRescale",
    "OffsetRescale",
    "resolve_rescale",
    "resolve_stepper",
    "register_stepper",
    "check_threshold",
    "check_tolerances",
]
