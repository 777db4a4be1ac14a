"""Integrator handles advancing a continuous state from checkpoint to checkpoint.

The estimators only rely on a small contract: a clock ``t``, a live state
buffer ``u`` whose in-place modifications are honoured by the next advance,
``advance_to(t)`` and a proposed step size. :class:`ScipyIntegrator` fulfils
it on top of the adaptive solvers of :mod:`scipy.integrate`,
:class:`FixedStepIntegrator` on top of the registered fixed-step steppers.
"""

import abc
import logging
from dataclasses import dataclass, fields
from typing import Callable, Mapping, Optional, Tuple, Union

import numpy as np
from scipy.integrate import BDF, DOP853, LSODA, RK23, RK45, OdeSolver, Radau

from ..errors import IntegrationError
from .steppers import Stepper, is_registered, resolve_stepper

logger = logging.getLogger(__name__)

_SCIPY_METHODS = {
    "rk23": RK23,
    "rk45": RK45,
    "dop853": DOP853,
    "radau": Radau,
    "bdf": BDF,
    "lsoda": LSODA,
}


@dataclass
class IntegratorOptions:
    """Configuration of the integrator handles built by the estimators.

    ``rtol``, ``atol``, ``first_step`` and ``max_step`` are forwarded to the
    SciPy solver; ``step`` is the step size of fixed-step methods.
    """

    method: Union[str, type, Stepper] = "RK45"
    rtol: float = 1e-3
    atol: float = 1e-6
    first_step: Optional[float] = None
    max_step: float = np.inf
    step: float = 0.01

    def __post_init__(self):
        if self.rtol <= 0 or self.atol <= 0:
            raise ValueError("rtol and atol must be positive.")
        if self.first_step is not None and self.first_step <= 0:
            raise ValueError("first_step must be positive.")
        if self.max_step <= 0:
            raise ValueError("max_step must be positive.")
        if self.step <= 0:
            raise ValueError("step must be positive.")

    @classmethod
    def from_mapping(cls, options: Mapping) -> "IntegratorOptions":
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            available = ", ".join(sorted(known))
            raise ValueError(
                f"Unknown integrator option(s) {sorted(unknown)}. Available: {available}."
            )
        return cls(**options)


def coerce_options(options, **defaults) -> IntegratorOptions:
    if options is None:
        return IntegratorOptions(**defaults)
    if isinstance(options, IntegratorOptions):
        return options
    if isinstance(options, Mapping):
        return IntegratorOptions.from_mapping({**defaults, **options})
    raise TypeError("options must be an IntegratorOptions, a mapping or None.")


def is_fixed_step(method) -> bool:
    if isinstance(method, type):
        return False
    return is_registered(method) or callable(method)


class Integrator(abc.ABC):
    """Handle over a state advanced by an ODE integrator."""

    def __init__(self, fun: Callable, t0: float, u0: np.ndarray):
        self._f = fun
        self._t = float(t0)
        self._u = np.array(u0, dtype=float)
        self._shape = self._u.shape
        self._h: Optional[float] = None
        self.nsteps = 0
        self.nfev = 0

    @property
    def t(self) -> float:
        return self._t

    @property
    def u(self) -> np.ndarray:
        """Live state buffer; in-place writes take effect on the next advance."""
        return self._u

    def set_state(self, u: np.ndarray) -> None:
        u = np.asarray(u, dtype=float)
        if u.shape != self._shape:
            raise ValueError(f"state must have shape {self._shape}, got {u.shape}.")
        self._u[...] = u

    @property
    def step_size(self) -> Optional[float]:
        return self._h

    def propose_step(self, h: Optional[float]) -> None:
        if h is not None and h <= 0:
            raise ValueError("proposed step size must be positive.")
        self._h = h

    def advance_to(self, t: float) -> None:
        t = float(t)
        if not t > self._t:
            raise ValueError(f"Cannot advance to t={t:g}: integrator is already at t={self._t:g}.")
        self._advance(t)

    @abc.abstractmethod
    def _advance(self, t: float) -> None:
        ...

    def _rhs(self, t: float, y: np.ndarray) -> np.ndarray:
        self.nfev += 1
        return np.asarray(self._f(t, y.reshape(self._shape)), dtype=float).reshape(-1)


class ScipyIntegrator(Integrator):
    """Adaptive integrator backed by a :class:`scipy.integrate.OdeSolver`.

    Every checkpoint segment starts a fresh solver from the live buffer, so
    state mutations between segments need no extra bookkeeping; the step size
    proposed at the end of a segment seeds the next one.
    """

    def __init__(
        self,
        fun: Callable,
        t0: float,
        u0: np.ndarray,
        method: Union[str, type] = "RK45",
        rtol: float = 1e-3,
        atol: float = 1e-6,
        first_step: Optional[float] = None,
        max_step: float = np.inf,
    ):
        super().__init__(fun, t0, u0)
        self._solver_cls = _resolve_solver(method)
        self.rtol = rtol
        self.atol = atol
        self.max_step = max_step
        self._h = first_step

    def _advance(self, t: float) -> None:
        first_step = None if self._h is None else min(self._h, t - self._t)
        solver = self._solver_cls(
            self._rhs,
            self._t,
            self._u.reshape(-1).copy(),
            t,
            rtol=self.rtol,
            atol=self.atol,
            max_step=self.max_step,
            first_step=first_step,
        )
        while solver.status == "running":
            message = solver.step()
            self.nsteps += 1
            if solver.status == "failed":
                raise IntegrationError(
                    f"{self._solver_cls.__name__} failed at t={solver.t:g} "
                    f"while advancing to t={t:g}: {message}"
                )
        self._u[...] = solver.y.reshape(self._shape)
        self._t = t
        h = getattr(solver, "h_abs", None) or solver.step_size
        if h is not None and h > 0:
            self._h = float(h)


class FixedStepIntegrator(Integrator):
    """Integrator taking fixed steps of size ``step`` with a registered stepper.

    The last substep before a checkpoint is shortened to land on it exactly.
    """

    def __init__(
        self,
        fun: Callable,
        t0: float,
        u0: np.ndarray,
        stepper: Union[str, Stepper] = "rk4",
        step: float = 0.01,
    ):
        super().__init__(fun, t0, u0)
        self._stepper = resolve_stepper(stepper)
        self._h = step

    def _advance(self, t: float) -> None:
        y = self._u.reshape(-1).copy()
        while self._t < t:
            remaining = t - self._t
            if remaining <= self._h * (1.0 + 1e-10):
                y = self._stepper(self._rhs, self._t, y, remaining)
                self._t = t
            else:
                y = self._stepper(self._rhs, self._t, y, self._h)
                self._t += self._h
            self.nsteps += 1
        self._u[...] = y.reshape(self._shape)


def _resolve_solver(method: Union[str, type]) -> type:
    if isinstance(method, type) and issubclass(method, OdeSolver):
        return method
    if isinstance(method, str):
        try:
            return _SCIPY_METHODS[method.lower()]
        except KeyError:
            pass
    available = "RK23, RK45, DOP853, Radau, BDF, LSODA"
    raise ValueError(f"Unknown integration method '{method}'. Available: {available}.")


def make_integrator(
    fun: Callable,
    t0: float,
    u0: np.ndarray,
    options: Optional[IntegratorOptions] = None,
) -> Integrator:
    """Build the integrator handle selected by ``options.method``."""
    options = options or IntegratorOptions()
    if is_fixed_step(options.method):
        return FixedStepIntegrator(fun, t0, u0, stepper=options.method, step=options.step)
    return ScipyIntegrator(
        fun,
        t0,
        u0,
        method=options.method,
        rtol=options.rtol,
        atol=options.atol,
        first_step=options.first_step,
        max_step=options.max_step,
    )


def flow_integrator(ds, u0: np.ndarray, t0: float = 0.0, options: Optional[IntegratorOptions] = None) -> Integrator:
    """Integrator handle for the plain (non-augmented) flow of ``ds``."""
    eom, params = ds.eom, ds.params

    def f(t, u):
        return eom(t, u, *params)

    return make_integrator(f, t0, u0, options)


def evolve(ds, T: float, options: Optional[IntegratorOptions] = None, t0: float = 0.0) -> Tuple[np.ndarray, float]:
    """Advance a copy of the state of ``ds`` by ``T``; returns ``(state, t)``.

    ``ds.state`` itself is left untouched.
    """
    if T == 0:
        return ds.state.copy(), float(t0)
    integ = flow_integrator(ds, ds.state, t0, options)
    integ.advance_to(t0 + T)
    logger.debug("evolved transient of length %g in %d steps", T, integ.nsteps)
    return integ.u.copy(), integ.t


__all__ = [
    "IntegratorOptions",
    "Integrator",
    "ScipyIntegrator",
    "FixedStepIntegrator",
    "make_integrator",
    "flow_integrator",
    "evolve",
]
