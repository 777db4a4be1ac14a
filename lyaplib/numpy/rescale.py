"""Policies bringing the test trajectory back to distance ``d0``.

The two-trajectory estimator calls ``policy.rescale(shadow, primary, d0)``
whenever the separation crosses the threshold. Constrained systems (e.g.
energy-conserving ones) can supply a policy that moves along the constraint
manifold instead of a straight line.
"""

import abc
from typing import Callable, Dict, Union

import numpy as np


def displacement(state: np.ndarray, d0: float) -> np.ndarray:
    """``state`` offset by ``d0 / sqrt(D)`` in every component (distance ``d0``)."""
    state = np.asarray(state, dtype=float)
    return state + d0 / np.sqrt(state.size)


class RescalePolicy(abc.ABC):
    @abc.abstractmethod
    def rescale(self, shadow: np.ndarray, primary: np.ndarray, d0: float) -> np.ndarray:
        """Return the new test state at distance ``d0`` from ``primary``."""

    def __call__(self, shadow: np.ndarray, primary: np.ndarray, d0: float) -> np.ndarray:
        return self.rescale(shadow, primary, d0)


class ColinearRescale(RescalePolicy):
    """Shrink the separation vector to length ``d0``, keeping its direction."""

    def rescale(self, shadow, primary, d0):
        delta = shadow - primary
        return primary + delta * (d0 / np.linalg.norm(delta))


class OffsetRescale(RescalePolicy):
    """Place the test state at ``primary + d0 / sqrt(D)`` in every component.

    The default policy. Every segment starts from the same diagonal offset,
    whatever direction the separation had aligned with.
    """

    def rescale(self, shadow, primary, d0):
        return displacement(primary, d0)


class CallableRescale(RescalePolicy):
    def __init__(self, fn: Callable):
        if not callable(fn):
            raise TypeError("rescale must be callable.")
        self.fn = fn

    def rescale(self, shadow, primary, d0):
        return np.asarray(self.fn(shadow, primary, d0), dtype=float)


_RESCALE_POLICIES: Dict[str, Callable[[], RescalePolicy]] = {
    "colinear": ColinearRescale,
    "offset": OffsetRescale,
    "diagonal": OffsetRescale,
}


def resolve_rescale(rescale: Union[str, RescalePolicy, Callable, None]) -> RescalePolicy:
    if rescale is None:
        return OffsetRescale()
    if isinstance(rescale, RescalePolicy):
        return rescale
    if isinstance(rescale, str):
        try:
            return _RESCALE_POLICIES[rescale.lower()]()
        except KeyError as exc:
            available = ", ".join(sorted(_RESCALE_POLICIES))
            raise ValueError(f"Unknown rescale policy '{rescale}'. Available: {available}.") from exc
    return CallableRescale(rescale)


__all__ = [
    "displacement",
    "RescalePolicy",
    "ColinearRescale",
    "OffsetRescale",
    "CallableRescale",
    "resolve_rescale",
]
