"""Define polynomial smoothing of joint trajectories with fixed endpoints.

Each joint's trajectory is replaced by a least-squares polynomial fit constrained to pass
through the trajectory's first and last positions. Fitted samples that leave the joint's
position limits are pinned (clamped) and the fit is repeated with those extra constraints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


class SmoothingError(Exception):
    """An error raised when a polynomial fit cannot satisfy its constraints."""


def fit_constrained_polynomial(
    samples: NDArray[np.float64],
    degree: int,
    fixed_indices: list[int],
    fixed_values: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Fit a polynomial to evenly spaced samples, passing exactly through fixed samples.

    Solves the equality-constrained least-squares problem through its KKT system.

    :param samples: Values sampled at evenly spaced parameters over [0, 1]
    :param degree: Degree of the fitted polynomial
    :param fixed_indices: Indices of the samples the polynomial must pass through
    :param fixed_values: Values required at the fixed indices
    :return: Fitted polynomial evaluated at every sample parameter
    """
    n = samples.shape[0]
    params = np.linspace(0.0, 1.0, n)
    vandermonde = np.vander(params, degree + 1, increasing=True)
    constraint_rows = vandermonde[fixed_indices]
    m = len(fixed_indices)

    kkt = np.zeros((degree + 1 + m, degree + 1 + m))
    kkt[: degree + 1, : degree + 1] = 2.0 * vandermonde.T @ vandermonde
    kkt[: degree + 1, degree + 1 :] = constraint_rows.T
    kkt[degree + 1 :, : degree + 1] = constraint_rows

    rhs = np.concatenate([2.0 * vandermonde.T @ samples, fixed_values])
    solution, *_ = np.linalg.lstsq(kkt, rhs, rcond=None)

    return vandermonde @ solution[: degree + 1]


def _smooth_joint(
    samples: NDArray[np.float64],
    lower: float,
    upper: float,
    degree: int,
    tolerance: float,
) -> NDArray[np.float64]:
    """Smooth a single joint's positions over time, keeping them within its limits."""
    n = samples.shape[0]
    fixed: dict[int, float] = {0: float(samples[0]), n - 1: float(samples[-1])}

    # Each iteration pins at least one new sample, so at most n fits are needed
    for _ in range(n):
        indices = sorted(fixed)
        values = np.array([fixed[i] for i in indices])
        fit_degree = min(degree, n - 1)
        fitted = fit_constrained_polynomial(samples, fit_degree, indices, values)

        if not np.all(np.isfinite(fitted)):
            raise SmoothingError(f"Polynomial fit of degree {fit_degree} is not finite")

        if not np.max(np.abs(fitted[indices] - values)) <= tolerance:
            raise SmoothingError(
                f"Polynomial fit of degree {fit_degree} missed its fixed points by more than "
                f"{tolerance}",
            )

        violations = np.flatnonzero((fitted < lower - tolerance) | (fitted > upper + tolerance))
        violations = [int(i) for i in violations if int(i) not in fixed]
        if not violations:
            return fitted

        worst = max(violations, key=lambda i: max(lower - fitted[i], fitted[i] - upper))
        fixed[worst] = float(np.clip(samples[worst], lower, upper))

    raise SmoothingError("Polynomial smoothing could not keep the trajectory within joint limits")


def apply_polynomial_smoothing(
    matrix: ArrayLike,
    lower_bounds: ArrayLike,
    upper_bounds: ArrayLike,
    degree: int = 5,
    tolerance: float = 1e-5,
) -> NDArray[np.float64]:
    """Smooth every joint of a (DOF x timesteps) trajectory with a bounded-degree polynomial.

    :param matrix: Joint positions with one row per joint and one column per timestep
    :param lower_bounds: Lower position limit of each joint
    :param upper_bounds: Upper position limit of each joint
    :param degree: Maximum degree of the fitted polynomials (defaults to 5)
    :param tolerance: Allowed error at fixed points and beyond joint limits (defaults to 1e-5)
    :return: New smoothed matrix whose first and last columns equal the input's exactly
    :raises SmoothingError: If any joint's fit cannot satisfy its constraints
    """
    original = np.array(matrix, dtype=np.float64)
    if original.ndim != 2 or original.shape[1] < 2:
        raise SmoothingError(f"Cannot smooth a trajectory matrix of shape {original.shape}")
    if not np.all(np.isfinite(original)):
        raise SmoothingError("Cannot smooth a trajectory containing non-finite positions")
    if degree < 1:
        raise SmoothingError(f"Polynomial degree must be positive, got {degree}")

    lower = np.asarray(lower_bounds, dtype=np.float64)
    upper = np.asarray(upper_bounds, dtype=np.float64)

    smoothed = np.empty_like(original)
    for j in range(original.shape[0]):
        smoothed[j] = _smooth_joint(original[j], lower[j], upper[j], degree, tolerance)

    # Endpoint columns stay exact rather than within the fit's tolerance
    smoothed[:, 0] = original[:, 0]
    smoothed[:, -1] = original[:, -1]
    return smoothed
