"""Fixed-step one-step methods and their registry.

A stepper has the signature ``step(f, t, y, h) -> y_next`` where ``f(t, y)``
returns the time derivative of ``y``. ``y`` may have any shape, which lets the
same steppers drive both plain states and the matrix-shaped tangent bundle.
"""

from typing import Callable, Dict, Union

import numpy as np

Stepper = Callable[[Callable, float, np.ndarray, float], np.ndarray]


def euler_step(f: Callable, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """Explicit Euler step."""
    return y + h * f(t, y)


def rk4_step(f: Callable, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """Classical fourth-order Runge-Kutta step."""
    k1 = h * f(t, y)
    k2 = h * f(t + 0.5 * h, y + 0.5 * k1)
    k3 = h * f(t + 0.5 * h, y + 0.5 * k2)
    k4 = h * f(t + h, y + k3)
    return y + (k1 + 2 * k2 + 2 * k3 + k4) / 6.0


_STEPPERS: Dict[str, Stepper] = {
    "euler": euler_step,
    "rk4": rk4_step,
}


def register_stepper(name: str, stepper: Stepper) -> None:
    if not callable(stepper):
        raise TypeError("stepper must be callable.")
    _STEPPERS[name.lower()] = stepper


def is_registered(name) -> bool:
    return isinstance(name, str) and name.lower() in _STEPPERS


def resolve_stepper(stepper: Union[str, Stepper]) -> Stepper:
    if callable(stepper):
        return stepper
    if not isinstance(stepper, str):
        raise TypeError("stepper must be a name or a callable.")
    try:
        return _STEPPERS[stepper.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(_STEPPERS))
        raise ValueError(f"Unknown stepper '{stepper}'. Available: {available}.") from exc


__all__ = [
    "Stepper",
    "euler_step",
    "rk4_step",
    "register_stepper",
    "resolve_stepper",
]
