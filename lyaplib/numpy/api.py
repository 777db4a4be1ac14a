import numpy as np
from typing import Tuple, Union

from .continuous import lyapunov_continuous, lyapunovs_continuous
from .discrete import lyapunov_1d, lyapunov_discrete, lyapunovs_discrete
from .systems import ContinuousDS, DiscreteDS, DiscreteDS1D


def lyapunovs(
    ds: Union[DiscreteDS, DiscreteDS1D, ContinuousDS],
    N: int = None,
    **kwargs,
) -> Union[np.ndarray, float, Tuple[np.ndarray, np.ndarray]]:
    """
    Lyapunov spectrum of ``ds`` with the QR method.
    Discrete maps take ``Ttr``, ``qr_method`` and ``return_history``;
    continuous flows additionally ``dt`` and ``options``. A 1D map returns
    its single exponent.
    Returns the exponents in QR column order, not sorted.
    """
    if isinstance(ds, DiscreteDS1D):
        return lyapunov_1d(ds, 10000 if N is None else N, **kwargs)
    if isinstance(ds, DiscreteDS):
        return lyapunovs_discrete(ds, 1000 if N is None else N, **kwargs)
    if isinstance(ds, ContinuousDS):
        return lyapunovs_continuous(ds, 1000 if N is None else N, **kwargs)
    raise TypeError(f"Unsupported dynamical system type {type(ds).__name__}.")


def lyapunov(
    ds: Union[DiscreteDS, DiscreteDS1D, ContinuousDS],
    T: Union[int, float] = None,
    **kwargs,
) -> Union[float, Tuple[np.ndarray, np.ndarray]]:
    """
    Maximal Lyapunov exponent of ``ds`` with the Benettin method.
    ``T`` is the number of steps for maps and the evolution time for flows.
    Continuous flows accept ``return_convergence=True`` to get the
    convergence trace ``(lambdas, times)``.
    """
    if isinstance(ds, DiscreteDS1D):
        return lyapunov_1d(ds, 10000 if T is None else T, **kwargs)
    if isinstance(ds, DiscreteDS):
        return lyapunov_discrete(ds, 100000 if T is None else T, **kwargs)
    if isinstance(ds, ContinuousDS):
        return lyapunov_continuous(ds, 10000.0 if T is None else T, **kwargs)
    raise TypeError(f"Unsupported dynamical system type {type(ds).__name__}.")


__all__ = [
    "lyapunovs",
    "lyapunov",
]
