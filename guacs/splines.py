"""B-spline evaluation."""

from __future__ import annotations

from collections.abc import Sequence


def deboor(x: float, knots: Sequence[float], coeffs: Sequence[float], order: int) -> float:
    """Evaluate the B-spline of the given order at ``x`` with de Boor's algorithm.

    The knots must be sorted in increasing order.
    """
    interval = next((i for i in range(1, len(knots)) if knots[i] >= x), None)
    if interval is None:
        raise ValueError("Evaluation point does not lie within knot intervals")
    k = interval - 1
    if k < order:
        raise ValueError(
            f"Evaluation point {x} lies before the first full knot interval of a degree {order} spline"
        )
    if len(coeffs) <= k:
        raise ValueError("Not enough spline coefficients for the knot vector")

    d = list(coeffs[k - order : k + 1])
    for r in range(1, order + 1):
        for j in range(order, r - 1, -1):
            i = j + k - order
            alpha = (x - knots[i]) / (knots[j + 1 + k - r] - knots[i])
            d[j] = (1.0 - alpha) * d[j - 1] + alpha * d[j]
    return d[order]