"""
Probabilities and analytical gradients for GRM estimation.

The GRM (Samejima, 1969) in slope-intercept form:
    P*(Y >= k | θ) = 1 / (1 + exp(-(a * θ + d_k))),  k = 1..K-1
    P*(Y >= 0 | θ) = 1,  P*(Y >= K | θ) = 0
    P(Y = k | θ) = P*(Y >= k | θ) - P*(Y >= k+1 | θ)

Ordering d_1 > d_2 > ... > d_{K-1} keeps every category probability
positive. The optimizer works on an unconstrained reparameterization:
    x = [a, d_1, c_2, ..., c_{K-1}],  d_k = d_{k-1} - exp(c_k)

With W_k = P*_k (1 - P*_k) (W_0 = W_K = 0):
    ∂P_k / ∂a   = θ (W_k - W_{k+1})
    ∂P_k / ∂d_j = W_j (I[k = j] - I[k = j-1])
    ∂P_k / ∂θ   = a (W_k - W_{k+1})

For the expected complete-data log-likelihood with expected counts r_kq:
    Q = Σ_q Σ_k r_kq log P_k(θ_q)
    ∂Q / ∂a   = Σ_q Σ_k (r_kq / P_kq) θ_q (W_kq - W_{k+1,q})
    ∂Q / ∂d_j = Σ_q W_jq (r_jq / P_jq - r_{j-1,q} / P_{j-1,q})
"""

import numpy as np
from numba import njit  # type: ignore
from numpy.typing import NDArray

# Exponent clipping bounds to prevent overflow
EXPONENT_CLIP_MIN = -30.0
EXPONENT_CLIP_MAX = 30.0

# Floor added to probabilities before logs and divisions
PROB_EPS = 1e-300


@njit  # type: ignore
def compute_grm_cumulative_probabilities(
    theta: NDArray[np.float64],
    slope: float,
    intercepts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Compute boundary probabilities P*(Y >= k | θ) for k = 0..K.

    Args:
        theta: Ability values, shape (n_theta,).
        slope: Slope parameter a.
        intercepts: Ordered intercepts d_1..d_{K-1}, shape (K-1,).

    Returns:
        Boundary probabilities, shape (n_theta, K+1). Column 0 is 1 and
        column K is 0.
    """
    n_theta = theta.shape[0]
    n_thresholds = intercepts.shape[0]
    out = np.empty((n_theta, n_thresholds + 2), dtype=np.float64)

    for i in range(n_theta):
        out[i, 0] = 1.0
        for k in range(n_thresholds):
            z = slope * theta[i] + intercepts[k]
            if z > EXPONENT_CLIP_MAX:
                z = EXPONENT_CLIP_MAX
            elif z < EXPONENT_CLIP_MIN:
                z = EXPONENT_CLIP_MIN
            out[i, k + 1] = 1.0 / (1.0 + np.exp(-z))
        out[i, n_thresholds + 1] = 0.0

    return out


@njit  # type: ignore
def compute_grm_probabilities(
    theta: NDArray[np.float64],
    slope: float,
    intercepts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Compute GRM category probabilities at given theta values.

    Args:
        theta: Ability values, shape (n_theta,).
        slope: Slope parameter a.
        intercepts: Ordered intercepts d_1..d_{K-1}, shape (K-1,).

    Returns:
        Probabilities, shape (n_theta, K).
    """
    cumulative = compute_grm_cumulative_probabilities(theta, slope, intercepts)
    n_theta = theta.shape[0]
    n_categories = intercepts.shape[0] + 1
    probs = np.empty((n_theta, n_categories), dtype=np.float64)

    for i in range(n_theta):
        for k in range(n_categories):
            probs[i, k] = cumulative[i, k] - cumulative[i, k + 1]

    return probs


def unpack_grm_array(
    x: NDArray[np.float64],
) -> tuple[float, NDArray[np.float64]]:
    """
    Map optimizer parameters [a, d_1, c_2, ..., c_{K-1}] to (a, d).

    Returns:
        Tuple of slope and ordered intercepts, shape (K-1,).
    """
    slope = float(x[0])
    steps = np.exp(x[2:])
    intercepts = x[1] - np.concatenate(([0.0], np.cumsum(steps)))
    return slope, intercepts.astype(np.float64)


def pack_grm_array(
    slope: float, intercepts: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Inverse of unpack_grm_array. Intercepts must be strictly decreasing."""
    gaps = -np.diff(intercepts)
    return np.concatenate(([slope, intercepts[0]], np.log(gaps))).astype(
        np.float64
    )


def compute_grm_probability_jacobian(
    theta: NDArray[np.float64],
    slope: float,
    intercepts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Derivatives of category probabilities w.r.t. natural parameters (a, d).

    Args:
        theta: Ability values, shape (n_theta,).
        slope: Slope parameter a.
        intercepts: Ordered intercepts, shape (K-1,).

    Returns:
        Jacobian, shape (n_theta, K, K). The last axis is ordered
        [a, d_1, ..., d_{K-1}].
    """
    cumulative = compute_grm_cumulative_probabilities(theta, slope, intercepts)
    w = cumulative * (1.0 - cumulative)
    n_theta = len(theta)
    n_categories = len(intercepts) + 1

    jac = np.zeros((n_theta, n_categories, n_categories), dtype=np.float64)
    jac[:, :, 0] = theta[:, np.newaxis] * (w[:, :-1] - w[:, 1:])
    for j in range(1, n_categories):
        # d_j raises P*_j: category j gains, category j-1 loses
        jac[:, j, j] = w[:, j]
        jac[:, j - 1, j] = -w[:, j]

    return jac


def compute_grm_theta_derivative(
    theta: NDArray[np.float64],
    slope: float,
    intercepts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """∂P_k / ∂θ, shape (n_theta, K)."""
    cumulative = compute_grm_cumulative_probabilities(theta, slope, intercepts)
    w = cumulative * (1.0 - cumulative)
    result: NDArray[np.float64] = slope * (w[:, :-1] - w[:, 1:])
    return result


def grm_negative_expected_log_likelihood(
    x: NDArray[np.float64],
    theta: NDArray[np.float64],
    expected_counts: NDArray[np.float64],
) -> float:
    """
    Negative expected complete-data log-likelihood for one item.

    This is the objective function for M-step optimization.

    Args:
        x: Optimizer parameters [a, d_1, c_2, ..., c_{K-1}].
        theta: Quadrature points, shape (n_quadrature,).
        expected_counts: r[k, q] = Σ_i w_iq I[Y_i = k],
            shape (K, n_quadrature).

    Returns:
        Negative expected log-likelihood (to minimize).
    """
    slope, intercepts = unpack_grm_array(x)
    probs = compute_grm_probabilities(theta, slope, intercepts)
    log_probs = np.log(np.maximum(probs, PROB_EPS))
    return float(-np.sum(expected_counts.T * log_probs))


def grm_negative_expected_log_likelihood_gradient(
    x: NDArray[np.float64],
    theta: NDArray[np.float64],
    expected_counts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Gradient of grm_negative_expected_log_likelihood w.r.t. x.

    Args:
        x: Optimizer parameters [a, d_1, c_2, ..., c_{K-1}].
        theta: Quadrature points, shape (n_quadrature,).
        expected_counts: Expected counts, shape (K, n_quadrature).

    Returns:
        Gradient, same shape as x.
    """
    slope, intercepts = unpack_grm_array(x)
    cumulative = compute_grm_cumulative_probabilities(theta, slope, intercepts)
    probs = cumulative[:, :-1] - cumulative[:, 1:]
    w = cumulative * (1.0 - cumulative)

    # r_kq / P_kq, shape (n_quadrature, K)
    ratio = expected_counts.T / np.maximum(probs, PROB_EPS)

    dp_da = theta[:, np.newaxis] * (w[:, :-1] - w[:, 1:])
    grad_a = np.sum(ratio * dp_da)

    # One entry per threshold d_1..d_{K-1}
    grad_d = np.sum(w[:, 1:-1] * (ratio[:, 1:] - ratio[:, :-1]), axis=0)

    # Chain rule: d_t = d_1 - Σ_{i<=t} exp(c_i)
    grad_d1 = grad_d.sum()
    tail_sums = np.cumsum(grad_d[::-1])[::-1]
    grad_c = -np.exp(x[2:]) * tail_sums[1:]

    grad = np.concatenate(([grad_a, grad_d1], grad_c))
    result: NDArray[np.float64] = -grad
    return result
