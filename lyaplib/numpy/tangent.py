import numpy as np
from typing import Callable, Optional

from .integrators import Integrator, IntegratorOptions, make_integrator


def tangent_bundle_rhs(ds) -> Callable:
    """Vector field of the tangent bundle of a continuous system.

    The augmented state ``S`` has shape ``(D, D + 1)``: column 0 holds the
    system state ``u`` and columns ``1..D`` the tangent vectors ``Y``.
    ``dS/dt = [f(u) | J(u) Y]``, with the Jacobian of the vector field (not of
    the flow) taken at the current, co-evolving state.
    """
    if ds.jacobian is None:
        raise TypeError("The tangent dynamics require a system with a jacobian.")
    eom, jac, params = ds.eom, ds.jacobian, ds.params

    def rhs(t: float, S: np.ndarray) -> np.ndarray:
        u = S[:, 0]
        dS = np.empty_like(S)
        dS[:, 0] = eom(t, u, *params)
        dS[:, 1:] = jac(t, u, *params) @ S[:, 1:]
        return dS

    return rhs


def tangent_integrator(
    ds,
    u0: Optional[np.ndarray] = None,
    t0: float = 0.0,
    Q0: Optional[np.ndarray] = None,
    options: Optional[IntegratorOptions] = None,
) -> Integrator:
    """Integrator handle evolving the state together with a tangent frame.

    Starts from ``[u0 | Q0]``; ``u0`` defaults to ``ds.state`` and ``Q0`` to
    the identity.
    """
    u0 = ds.state if u0 is None else np.asarray(u0, dtype=float)
    n = u0.size
    Q0 = np.eye(n, dtype=float) if Q0 is None else np.asarray(Q0, dtype=float)
    if Q0.shape != (n, n):
        raise ValueError(f"Q0 must have shape {(n, n)}, got {Q0.shape}.")

    S0 = np.empty((n, n + 1), dtype=float)
    S0[:, 0] = u0
    S0[:, 1:] = Q0
    return make_integrator(tangent_bundle_rhs(ds), t0, S0, options)


def physical_state(integ: Integrator) -> np.ndarray:
    return integ.u[:, 0]


def tangent_block(integ: Integrator) -> np.ndarray:
    """Writable view on the tangent vectors of a tangent-bundle integrator."""
    return integ.u[:, 1:]


__all__ = [
    "tangent_bundle_rhs",
    "tangent_integrator",
    "physical_state",
    "tangent_block",
]
