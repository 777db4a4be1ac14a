"""Benchmark the continuous Lyapunov spectrum on Lorenz-96.

For a list of state dimensions the script measures ``lyapunovs_continuous``
with plain NumPy and Numba-compiled vector fields, and with both QR
backends. Each configuration receives a configurable number of warm-up runs
(to trigger JIT compilation where applicable) before the timed repetitions.
"""

from __future__ import annotations

import argparse
import time
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

import numpy as np
from numba import njit

from lyaplib.numpy import ContinuousDS, IntegratorOptions, lyapunovs_continuous


@dataclass
class BenchmarkConfig:
    dt: float = 0.1
    checkpoints: int = 50
    repeats: int = 2
    warmup: int = 1
    rtol: float = 1e-6
    atol: float = 1e-8
    forcing: float = 8.0
    dims: Sequence[int] = field(
        default_factory=lambda: (4, 8, 16, 32, 64)
    )
    perturbation: float = 0.01


@dataclass
class BackendSpec:
    name: str
    f: Callable
    jac: Callable
    qr_method: str


@dataclass
class BackendResult:
    name: str
    dim: int
    timings: np.ndarray
    spectrum: np.ndarray


def lorenz96(_: float, x: np.ndarray, forcing: float) -> np.ndarray:
    """Lorenz-96 vector field (pure NumPy)."""
    xp1 = np.roll(x, -1)
    xm2 = np.roll(x, 2)
    xm1 = np.roll(x, 1)
    return (xp1 - xm2) * xm1 - x + forcing


def lorenz96_jacobian(_: float, x: np.ndarray, forcing: float) -> np.ndarray:  # noqa: ARG001
    """Jacobian matrix of the Lorenz-96 system (pure NumPy)."""
    k = x.size
    jac = np.zeros((k, k), dtype=np.float64)

    idx = np.arange(k)
    im1 = (idx - 1) % k
    im2 = (idx - 2) % k
    ip1 = (idx + 1) % k

    jac[idx, im1] = x[ip1] - x[im2]
    jac[idx, ip1] = x[im1]
    jac[idx, im2] = -x[im1]
    jac[idx, idx] = -1.0
    return jac


@njit(cache=True)
def lorenz96_numba(t: float, x: np.ndarray, forcing: float) -> np.ndarray:  # noqa: ARG001
    k = x.size
    dx = np.empty_like(x)
    for i in range(k):
        im2 = (i - 2) % k
        im1 = (i - 1) % k
        ip1 = (i + 1) % k
        dx[i] = (x[ip1] - x[im2]) * x[im1] - x[i] + forcing
    return dx


@njit(cache=True)
def lorenz96_jacobian_numba(t: float, x: np.ndarray, forcing: float) -> np.ndarray:  # noqa: ARG001
    k = x.size
    jac = np.zeros((k, k))
    for i in range(k):
        im2 = (i - 2) % k
        im1 = (i - 1) % k
        ip1 = (i + 1) % k
        jac[i, im1] = x[ip1] - x[im2]
        jac[i, ip1] = x[im1]
        jac[i, im2] = -x[im1]
        jac[i, i] = -1.0
    return jac


def _initial_state(dim: int, config: BenchmarkConfig) -> np.ndarray:
    x = np.full(dim, config.forcing, dtype=np.float64)
    x[0] += config.perturbation
    return x


def _benchmark_backend(backend: BackendSpec, dim: int, config: BenchmarkConfig) -> BackendResult:
    ds = ContinuousDS(_initial_state(dim, config), backend.f, backend.jac, params=(config.forcing,))
    options = IntegratorOptions(rtol=config.rtol, atol=config.atol)

    def run():
        return lyapunovs_continuous(
            ds, config.checkpoints, dt=config.dt, options=options, qr_method=backend.qr_method
        )

    for _ in range(max(config.warmup, 0)):
        run()

    timings: List[float] = []
    spectrum = None
    for _ in range(config.repeats):
        start = time.perf_counter()
        spectrum = run()
        timings.append(time.perf_counter() - start)

    return BackendResult(backend.name, dim, np.array(timings, dtype=np.float64), spectrum)


def run_benchmark(config: BenchmarkConfig) -> None:
    dims = list(config.dims)
    if not dims:
        raise ValueError("No state dimensions provided for benchmarking.")

    backends: List[BackendSpec] = [
        BackendSpec("numpy/householder", lorenz96, lorenz96_jacobian, "householder"),
        BackendSpec("numpy/gs", lorenz96, lorenz96_jacobian, "gs"),
        BackendSpec("numba/householder", lorenz96_numba, lorenz96_jacobian_numba, "householder"),
    ]

    print(
        f"Benchmark settings: dt={config.dt}, checkpoints={config.checkpoints}, "
        f"rtol={config.rtol}, atol={config.atol}, warmup={config.warmup}, "
        f"repeats={config.repeats}, forcing={config.forcing}"
    )

    for dim in dims:
        print("\n" + "=" * 20)
        print(f"Dimension: {dim}")

        results: List[BackendResult] = []
        for backend in backends:
            try:
                results.append(_benchmark_backend(backend, dim, config))
            except Exception as exc:  # noqa: BLE001
                print(f"[{backend.name}] failed for dim={dim}: {exc}")

        for result in results:
            timings = result.timings
            std = timings.std(ddof=1) if timings.size > 1 else 0.0
            print(
                f"[{result.name}] mean ± std: {timings.mean():.4f} ± {std:.4f} s, "
                f"max exponent {result.spectrum.max():.4f}"
            )

        if len(results) >= 2:
            baseline = results[0]
            for result in results[1:]:
                ratio = result.timings.mean() / baseline.timings.mean()
                print(f"Speed ratio {result.name}/{baseline.name}: {ratio:.2f}x")


def parse_args() -> BenchmarkConfig:
    default_cfg = BenchmarkConfig()
    parser = argparse.ArgumentParser(
        description="Benchmark lyapunovs_continuous on Lorenz-96 (NumPy vs Numba vector fields)"
    )
    parser.add_argument("--dt", type=float, default=default_cfg.dt, help="Time between QR steps")
    parser.add_argument(
        "--checkpoints",
        type=int,
        default=default_cfg.checkpoints,
        help="Number of QR renormalizations",
    )
    parser.add_argument("--repeats", type=int, default=default_cfg.repeats, help="Number of timed runs")
    parser.add_argument(
        "--warmup",
        type=int,
        default=default_cfg.warmup,
        help="Warm-up runs for JIT compilation",
    )
    parser.add_argument("--rtol", type=float, default=default_cfg.rtol, help="Relative tolerance")
    parser.add_argument("--atol", type=float, default=default_cfg.atol, help="Absolute tolerance")
    parser.add_argument(
        "--forcing",
        type=float,
        default=default_cfg.forcing,
        help="Lorenz-96 forcing parameter F",
    )
    parser.add_argument(
        "--perturbation",
        type=float,
        default=default_cfg.perturbation,
        help="Initial perturbation added to the first component",
    )
    parser.add_argument(
        "--dims",
        type=int,
        nargs="+",
        default=None,
        help="State dimensions to benchmark",
    )

    args = parser.parse_args()
    dims = tuple(args.dims) if args.dims is not None else tuple(default_cfg.dims)

    return BenchmarkConfig(
        dt=args.dt,
        checkpoints=args.checkpoints,
        repeats=args.repeats,
        warmup=args.warmup,
        rtol=args.rtol,
        atol=args.atol,
        forcing=args.forcing,
        dims=dims,
        perturbation=args.perturbation,
    )


def main() -> None:
    config = parse_args()
    run_benchmark(config)


if __name__ == "__main__":
    main()
