import numpy as np
import pytest

from lyaplib import (
    ConvergenceError,
    InvalidParameterError,
    ParameterMismatchError,
    ToleranceWarning,
)
from lyaplib.numpy import (
    ContinuousDS,
    IntegratorOptions,
    lyapunov_continuous,
    lyapunov_from_integrators,
    lyapunovs_continuous,
)
from lyaplib.numpy.integrators import flow_integrator
from lyaplib.numpy.rescale import displacement

TIGHT = IntegratorOptions(rtol=1e-9, atol=1e-12)


def _make_linear_system(A, u0=None):
    A = np.asarray(A, dtype=float)

    def f(t, x):  # noqa: ARG001
        return A @ x

    def Df(t, x):  # noqa: ARG001
        return A

    u0 = np.zeros(A.shape[0]) if u0 is None else u0
    return ContinuousDS(u0, f, Df)


def _make_lorenz(u0=(1.0, 1.0, 1.0), sigma=10.0, rho=28.0, beta=8.0 / 3.0):
    def f(t, u, sigma, rho, beta):  # noqa: ARG001
        x, y, z = u
        return np.array([sigma * (y - x), x * (rho - z) - y, x * y - beta * z])

    def Df(t, u, sigma, rho, beta):  # noqa: ARG001
        x, y, z = u
        return np.array(
            [
                [-sigma, sigma, 0.0],
                [rho - z, -1.0, -x],
                [y, x, -beta],
            ]
        )

    return ContinuousDS(np.array(u0, dtype=float), f, Df, params=(sigma, rho, beta))


def test_linear_flow_spectrum_diagonal():
    eigs = [0.3, -0.2, 0.0]
    ds = _make_linear_system(np.diag(eigs))
    LE = lyapunovs_continuous(ds, 200, dt=0.1, options=TIGHT)
    assert np.allclose(LE, eigs, atol=1e-6)


def test_linear_flow_spectrum_non_normal():
    A = [[0.1, 1.0], [0.0, -0.5]]
    ds = _make_linear_system(A)
    LE = lyapunovs_continuous(ds, 1000, dt=0.1, options=TIGHT)
    assert np.allclose(np.sort(LE)[::-1], [0.1, -0.5], atol=1e-4)


def test_linear_flow_spectrum_complex_eigenvalues_use_real_part():
    A = [[0.2, -1.0], [1.0, 0.2]]
    ds = _make_linear_system(A)
    LE = lyapunovs_continuous(ds, 300, dt=0.1, options=TIGHT)
    assert np.allclose(LE, [0.2, 0.2], atol=1e-5)


def test_linear_flow_spectrum_fixed_step_rk4():
    eigs = [0.25, -0.1]
    ds = _make_linear_system(np.diag(eigs))
    options = IntegratorOptions(method="rk4", step=0.01)
    LE = lyapunovs_continuous(ds, 100, dt=0.1, options=options)
    assert np.allclose(LE, eigs, atol=1e-6)


def test_lorenz_spectrum_sums_to_trace():
    ds = _make_lorenz()
    LE, LE_history = lyapunovs_continuous(
        ds, 100, dt=0.1, Ttr=1.0, options={"rtol": 1e-8, "atol": 1e-10}, return_history=True
    )
    assert LE.shape == (3,)
    assert LE_history.shape == (100, 3)
    assert np.allclose(LE_history[-1], LE)
    assert LE.sum() == pytest.approx(-(10.0 + 1.0 + 8.0 / 3.0), abs=1e-3)


def test_spectrum_requires_jacobian():
    ds = ContinuousDS(np.ones(2), lambda t, u: -u)  # noqa: ARG005
    with pytest.raises(TypeError, match="jacobian"):
        lyapunovs_continuous(ds, 10)


def test_spectrum_leaves_system_state_untouched():
    ds = _make_lorenz()
    lyapunovs_continuous(ds, 5, dt=0.1, Ttr=0.5)
    assert np.array_equal(ds.state, [1.0, 1.0, 1.0])


def test_benettin_linear_flow():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    lam = lyapunov_continuous(ds, 200.0, dt=0.1, options=TIGHT, rescale="colinear")
    assert lam == pytest.approx(0.5, abs=0.01)


def test_benettin_convergence_trace():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    lambdas, times = lyapunov_continuous(
        ds, 100.0, dt=0.1, options=TIGHT, return_convergence=True, rescale="colinear"
    )
    assert lambdas.shape == times.shape
    assert lambdas.size >= 5
    assert np.all(np.diff(times) > 0)
    assert np.all(times <= 100.0 + 1e-9)
    assert lambdas[-1] == pytest.approx(0.5, abs=0.02)


def test_benettin_rejects_threshold_before_any_evolution():
    calls = {"eom": 0}

    def f(t, u):  # noqa: ARG001
        calls["eom"] += 1
        return u

    ds = ContinuousDS(np.ones(2), f)
    with pytest.raises(InvalidParameterError):
        lyapunov_continuous(ds, 10.0, Ttr=1.0, d0=1e-6, threshold=1e-6)
    assert calls["eom"] == 0


def test_benettin_same_step_divergence_is_fatal():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    with pytest.raises(ParameterMismatchError, match="decrease `dt`"):
        lyapunov_continuous(ds, 100.0, d0=1e-9, threshold=1e-8, dt=10.0, options=TIGHT)


def _growth_pair(shadow_options):
    ds = ContinuousDS(np.array([1.0]), lambda t, u: u)  # noqa: ARG005
    primary = flow_integrator(ds, ds.state, 0.0, IntegratorOptions(rtol=1e-11, atol=1e-12))
    shadow = flow_integrator(ds, ds.state + 1e-3, 0.0, shadow_options)
    return primary, shadow


def test_benettin_divergence_right_after_rescale_is_fatal():
    primary, shadow = _growth_pair(IntegratorOptions(rtol=1e-10, atol=1e-12))

    def overshoot(shadow, primary, d0):  # noqa: ARG001
        return primary + 5e-3

    # First rescale at t=1, the next checkpoint already exceeds the threshold.
    with pytest.raises(ParameterMismatchError, match=r"t=1\.5"):
        lyapunov_from_integrators(
            primary, shadow, 3.0, d0=1e-3, threshold=2e-3, dt=0.5, rescale=overshoot
        )


def test_benettin_rescale_hands_primary_step_size_to_shadow():
    primary, shadow = _growth_pair(IntegratorOptions(rtol=1e-9, atol=1e-12))
    lambdas, times = lyapunov_from_integrators(
        primary, shadow, 3.0, d0=1e-3, threshold=2e-3, dt=0.5, rescale="offset"
    )
    assert np.allclose(times, [1.0, 2.0, 3.0])
    assert np.allclose(lambdas, 1.0, rtol=1e-3)
    # The last checkpoint is a rescale, nothing advanced the shadow since.
    assert shadow.step_size == primary.step_size


def test_benettin_warns_on_coarse_tolerances():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    with pytest.warns(ToleranceWarning) as record:
        lyapunov_continuous(
            ds, 1.0, dt=0.1, options={"rtol": 1e-3, "atol": 1e-6}, return_convergence=True
        )
    messages = [str(w.message) for w in record if issubclass(w.category, ToleranceWarning)]
    assert any("atol" in m for m in messages)
    assert any("rtol" in m for m in messages)


def test_benettin_without_rescaling():
    ds = _make_linear_system(-np.eye(2))
    lambdas, times = lyapunov_continuous(ds, 5.0, dt=0.1, options=TIGHT, return_convergence=True)
    assert lambdas.size == 0
    assert times.size == 0
    with pytest.raises(ConvergenceError):
        lyapunov_continuous(ds, 5.0, dt=0.1, options=TIGHT)


def test_benettin_custom_rescale_policy_is_called():
    calls = {"rescale": 0}

    def rescale(shadow, primary, d0):
        calls["rescale"] += 1
        delta = shadow - primary
        return primary + delta * d0 / np.linalg.norm(delta)

    ds = _make_linear_system(np.diag([0.5, -1.0]))
    lambdas, _ = lyapunov_continuous(
        ds, 60.0, dt=0.1, options=TIGHT, rescale=rescale, return_convergence=True
    )
    assert calls["rescale"] == lambdas.size > 0
    assert lambdas[-1] == pytest.approx(0.5, abs=0.02)


def test_benettin_default_offset_rescale_on_isotropic_flow():
    ds = _make_linear_system(np.diag([0.5, 0.5]))
    lam = lyapunov_continuous(ds, 100.0, dt=0.1, options=TIGHT)
    assert lam == pytest.approx(0.5, abs=0.01)


def test_benettin_default_offset_rescale_restarts_on_the_diagonal():
    # Half of every restart lies along the contracting direction, so each
    # segment of about 14.6 time units loses log(sqrt(2)) of growth.
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    lam = lyapunov_continuous(ds, 200.0, dt=0.1, options=TIGHT)
    assert lam == pytest.approx(0.476, abs=0.005)
    assert lyapunov_continuous(ds, 200.0, dt=0.1, options=TIGHT, rescale="offset") == lam

    colinear = lyapunov_continuous(ds, 200.0, dt=0.1, options=TIGHT, rescale="colinear")
    assert colinear > lam
    assert colinear == pytest.approx(0.5, abs=0.01)


def test_lyapunov_from_integrators_measures_from_primary_clock():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    u0 = ds.state
    primary = flow_integrator(ds, u0, 5.0, TIGHT)
    shadow = flow_integrator(ds, displacement(u0, 1e-9), 5.0, TIGHT)
    lambdas, times = lyapunov_from_integrators(primary, shadow, 50.0, dt=0.1, rescale="colinear")
    assert primary.t == pytest.approx(55.0)
    assert times[-1] <= 50.0 + 1e-9
    assert lambdas[-1] == pytest.approx(0.5, abs=0.02)


def test_lyapunov_from_integrators_requires_matching_clocks():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    primary = flow_integrator(ds, ds.state, 0.0, TIGHT)
    shadow = flow_integrator(ds, ds.state, 1.0, TIGHT)
    with pytest.raises(ValueError, match="same time"):
        lyapunov_from_integrators(primary, shadow, 10.0)


def test_benettin_rejects_horizon_shorter_than_dt():
    ds = _make_linear_system(np.diag([0.5, -1.0]))
    with pytest.raises(InvalidParameterError):
        lyapunov_continuous(ds, 0.05, dt=0.1)
