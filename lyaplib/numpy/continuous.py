"""Lyapunov exponents of continuous-time flows."""

import logging
from typing import Callable, Mapping, Optional, Tuple, Union

import numpy as np

from ..errors import ConvergenceError, InvalidParameterError, ParameterMismatchError
from .integrators import Integrator, IntegratorOptions, coerce_options, evolve, flow_integrator
from .qr import log_diagonal, qr_positive
from .rescale import RescalePolicy, displacement, resolve_rescale
from .systems import ContinuousDS
from .tangent import tangent_block, tangent_integrator
from .validation import check_steps, check_threshold, check_time, check_tolerances

logger = logging.getLogger(__name__)

Options = Union[IntegratorOptions, Mapping, None]


def _checkpoints(dt: float, T: float) -> np.ndarray:
    """Elapsed times ``dt, 2 dt, ...`` up to and including ``T``."""
    n = int(np.floor(T / dt + 1e-9))
    return dt * np.arange(1, n + 1, dtype=float)


def lyapunovs_continuous(
    ds: ContinuousDS,
    N: int = 1000,
    dt: float = 0.1,
    Ttr: float = 0.0,
    *,
    options: Options = None,
    qr_method: str = "householder",
    return_history: bool = False,
) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
    """
    Lyapunov spectrum of a flow from its tangent dynamics.

    The state and a tangent frame are integrated together. Every ``dt`` the
    frame is QR-decomposed, ``log|R[i, i]|`` accumulated and the tangent
    block reset to the orthonormal ``Q`` before the next segment; without
    the reset the tangent vectors grow without bound and collapse onto the
    leading direction.

    Parameters
    ----------
    ds : ContinuousDS
        Flow with a Jacobian.
    N : int
        Number of renormalization checkpoints.
    dt : float
        Time between checkpoints.
    Ttr : float
        Transient time, integrated with the plain flow and discarded.
    options : IntegratorOptions or mapping, optional
        Integrator configuration (defaults to ``IntegratorOptions()``).
    qr_method : str
        ``"householder"`` or ``"gs"``.
    return_history : bool
        Also return the running estimates, shape ``(N, D)``.

    Returns
    -------
    LE : ndarray, shape (D,)
        Exponents per unit time in QR column order (not sorted).
    """
    if ds.jacobian is None:
        raise TypeError("lyapunovs_continuous requires a system with a jacobian.")
    N = check_steps("N", N)
    dt = check_time("dt", dt)
    Ttr = check_time("Ttr", Ttr, allow_zero=True)
    options = coerce_options(options)

    u0, t0 = evolve(ds, Ttr, options)
    integ = tangent_integrator(ds, u0, t0, options=options)

    n = ds.dimension
    Q = np.eye(n, dtype=float)
    log_sums = np.zeros(n, dtype=float)
    LE_history = np.empty((N, n), dtype=float) if return_history else None

    for k in range(1, N + 1):
        tangent_block(integ)[...] = Q
        integ.advance_to(t0 + k * dt)
        Q, R = qr_positive(tangent_block(integ), qr_method)
        log_sums += log_diagonal(R)
        if return_history:
            LE_history[k - 1] = log_sums / (k * dt)

    LE = log_sums / (N * dt)
    logger.debug(
        "continuous spectrum over %d checkpoints of %g (%d solver steps): %s",
        N, dt, integ.nsteps, LE,
    )
    if return_history:
        return LE, LE_history
    return LE


def lyapunov_from_integrators(
    primary: Integrator,
    shadow: Integrator,
    T: float,
    *,
    d0: float = 1e-9,
    threshold: Optional[float] = None,
    dt: float = 0.1,
    rescale: Union[str, RescalePolicy, Callable, None] = "offset",
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Benettin loop on two prepared integrators; returns ``(lambdas, times)``.

    Both handles are advanced in lock-step to the checkpoints ``dt, 2 dt,
    ..., T`` measured from the current time of ``primary``. Whenever their
    distance reaches ``threshold`` the growth is accumulated, a point is
    appended to the convergence trace and ``shadow`` is rescaled to distance
    ``d0`` through ``rescale``.

    Raises
    ------
    ParameterMismatchError
        If the threshold is crossed at the first checkpoint after the start
        or after a rescaling.
    """
    threshold = 1e3 * d0 if threshold is None else threshold
    check_threshold(d0, threshold)
    policy = resolve_rescale(rescale)
    if shadow.t != primary.t:
        raise ValueError("primary and shadow integrators must start at the same time.")

    t0 = primary.t
    log_sum = 0.0
    lambdas = []
    times = []
    since_rescale = 0

    for tau in _checkpoints(dt, T):
        primary.advance_to(t0 + tau)
        shadow.advance_to(t0 + tau)
        dist = np.linalg.norm(primary.u - shadow.u)
        since_rescale += 1

        if dist >= threshold:
            a = dist / d0
            if a > threshold / d0 and since_rescale <= 1:
                raise ParameterMismatchError(d0, threshold, dt, tau)
            log_sum += np.log(a)
            lambdas.append(log_sum / tau)
            times.append(tau)

            shadow.set_state(policy.rescale(shadow.u.copy(), primary.u.copy(), d0))
            # The test trajectory jumped; restart its step control from the primary's.
            shadow.propose_step(primary.step_size)
            since_rescale = 0
            logger.debug("rescaled at t=%g, running estimate %g", tau, lambdas[-1])

    return np.asarray(lambdas, dtype=float), np.asarray(times, dtype=float)


def lyapunov_continuous(
    ds: ContinuousDS,
    T: float = 10000.0,
    Ttr: float = 0.0,
    *,
    d0: float = 1e-9,
    threshold: Optional[float] = None,
    dt: float = 0.1,
    options: Options = None,
    rescale: Union[str, RescalePolicy, Callable, None] = "offset",
    return_convergence: bool = False,
) -> Union[float, Tuple[np.ndarray, np.ndarray]]:
    """
    Maximal Lyapunov exponent of a flow with the Benettin method.

    Parameters
    ----------
    ds : ContinuousDS
        The flow; no Jacobian needed.
    T : float
        Total evolution time.
    Ttr : float
        Transient time discarded before measuring.
    d0 : float
        Initial and rescaling distance of the test trajectory.
    threshold : float, optional
        Distance that triggers a rescaling, ``1e3 * d0`` by default.
    dt : float
        Time between distance checks.
    options : IntegratorOptions or mapping, optional
        Integrator configuration; unspecified tolerances default to ``d0``.
    rescale : str, RescalePolicy or callable
        How to bring the test trajectory back, ``"offset"`` by default.
        A callable is used as ``rescale(shadow, primary, d0) -> new_shadow``.
    return_convergence : bool
        Return the convergence trace ``(lambdas, times)`` instead of the
        final value.

    Returns
    -------
    float or tuple of ndarray
        The last estimate, or the trace of estimates against elapsed time.
    """
    threshold = 1e3 * d0 if threshold is None else threshold
    check_threshold(d0, threshold)
    T = check_time("T", T)
    dt = check_time("dt", dt)
    Ttr = check_time("Ttr", Ttr, allow_zero=True)
    if T < dt:
        raise InvalidParameterError(f"T must be at least dt, got T={T:g} and dt={dt:g}.")
    options = coerce_options(options, rtol=d0, atol=d0)
    check_tolerances(d0, options)
    policy = resolve_rescale(rescale)

    u0, t0 = evolve(ds, Ttr, options)
    primary = flow_integrator(ds, u0, t0, options)
    shadow = flow_integrator(ds, displacement(u0, d0), t0, options)

    lambdas, times = lyapunov_from_integrators(
        primary, shadow, T, d0=d0, threshold=threshold, dt=dt, rescale=policy
    )
    logger.debug(
        "Benettin flow estimate: %d rescalings over T=%g (%d + %d solver steps)",
        lambdas.size, T, primary.nsteps, shadow.nsteps,
    )

    if return_convergence:
        return lambdas, times
    if lambdas.size == 0:
        raise ConvergenceError(
            f"The test trajectory never reached the threshold {threshold:g} within T={T:g}. "
            "Increase `T` or decrease `threshold`."
        )
    return float(lambdas[-1])


__all__ = [
    "lyapunovs_continuous",
    "lyapunov_continuous",
    "lyapunov_from_integrators",
]
