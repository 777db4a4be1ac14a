import logging

import matplotlib.pyplot as plt
import numpy as np
from lyaplib.numpy import ContinuousDS, lyapunov_continuous, lyapunovs_continuous


def lorenz(_: float, u: np.ndarray, sigma: float, rho: float, beta: float) -> np.ndarray:
    x, y, z = u
    return np.array([sigma * (y - x), x * (rho - z) - y, x * y - beta * z])


def lorenz_jacobian(_: float, u: np.ndarray, sigma: float, rho: float, beta: float) -> np.ndarray:
    x, y, z = u
    return np.array(
        [
            [-sigma, sigma, 0.0],
            [rho - z, -1.0, -x],
            [y, x, -beta],
        ]
    )


def main():
    logging.basicConfig(level=logging.DEBUG)
    ds = ContinuousDS(np.array([1.0, 1.0, 1.0]), lorenz, lorenz_jacobian, params=(10.0, 28.0, 8.0 / 3.0))

    LE, LE_history = lyapunovs_continuous(
        ds, 2000, dt=0.1, Ttr=10.0, options={"rtol": 1e-8, "atol": 1e-10}, return_history=True
    )
    lambdas, times = lyapunov_continuous(ds, 500.0, Ttr=10.0, return_convergence=True)
    print(f"spectrum: {LE}, Benettin estimate: {lambdas[-1]:.4f}")

    fig, ax = plt.subplots()
    ax.plot(0.1 * np.arange(1, LE_history.shape[0] + 1), LE_history[:, 0], label="QR, $\\lambda_1$")
    ax.plot(times, lambdas, label="Benettin")
    ax.set_xlabel("$t$")
    ax.set_ylabel("$\\lambda_1$ estimate")
    ax.legend()
    plt.show()

if __name__ == "__main__":
    main()
