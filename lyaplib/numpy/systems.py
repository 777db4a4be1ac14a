"""Descriptors for the dynamical systems consumed by the estimators.

Discrete maps use ``eom(u, *params) -> u_next`` and
``jacobian(u, *params) -> J``. Continuous flows follow the SciPy convention
``eom(t, u, *params) -> du/dt`` and ``jacobian(t, u, *params) -> J``.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np


def _as_state(state) -> np.ndarray:
    u = np.array(state, dtype=float)
    if u.ndim != 1:
        raise ValueError("state must be one-dimensional.")
    if u.size < 1:
        raise ValueError("state must contain at least one state variable.")
    if not np.all(np.isfinite(u)):
        raise ValueError("state must be finite.")
    return u


@dataclass
class DiscreteDS:
    """Discrete-time map ``u_{n+1} = eom(u_n)`` with Jacobian ``jacobian``."""

    state: np.ndarray
    eom: Callable
    jacobian: Callable
    params: Tuple = field(default_factory=tuple)

    def __post_init__(self):
        if not callable(self.eom):
            raise TypeError("eom must be callable.")
        if not callable(self.jacobian):
            raise TypeError("jacobian must be callable.")
        self.state = _as_state(self.state)
        self.params = tuple(self.params)

    @property
    def dimension(self) -> int:
        return self.state.size

    @property
    def is_discrete(self) -> bool:
        return True


@dataclass
class DiscreteDS1D:
    """One-dimensional map ``x_{n+1} = eom(x_n)`` with derivative ``deriv``."""

    state: float
    eom: Callable
    deriv: Callable
    params: Tuple = field(default_factory=tuple)

    def __post_init__(self):
        if not callable(self.eom):
            raise TypeError("eom must be callable.")
        if not callable(self.deriv):
            raise TypeError("deriv must be callable.")
        if np.ndim(self.state) != 0:
            raise ValueError("state of a 1D map must be a scalar.")
        self.state = float(self.state)
        if not np.isfinite(self.state):
            raise ValueError("state must be finite.")
        self.params = tuple(self.params)

    @property
    def dimension(self) -> int:
        return 1

    @property
    def is_discrete(self) -> bool:
        return True


@dataclass
class ContinuousDS:
    """Continuous-time flow ``du/dt = eom(t, u)``.

    ``jacobian`` is only needed by the full-spectrum estimator; the
    two-trajectory (Benettin) estimator works with the flow alone.
    """

    state: np.ndarray
    eom: Callable
    jacobian: Optional[Callable] = None
    params: Tuple = field(default_factory=tuple)

    def __post_init__(self):
        if not callable(self.eom):
            raise TypeError("eom must be callable.")
        if self.jacobian is not None and not callable(self.jacobian):
            raise TypeError("jacobian must be callable.")
        self.state = _as_state(self.state)
        self.params = tuple(self.params)

    @property
    def dimension(self) -> int:
        return self.state.size

    @property
    def is_discrete(self) -> bool:
        return False


__all__ = [
    "DiscreteDS",
    "DiscreteDS1D",
    "ContinuousDS",
]
