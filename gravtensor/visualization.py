"""
Plotting helpers for curvature quantities.

Scalar curvature quantities are sampled along one coordinate line with all
other coordinates held fixed and drawn with matplotlib.
"""

from typing import Callable, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .tensor import ArrayLike, as_float_tensor

ScalarField = Callable[[ArrayLike], float]


def curvature_profile(
    evaluator: ScalarField,
    base_point: ArrayLike,
    coordinate: int,
    values: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample a scalar along one coordinate line.

    Args:
        evaluator: Scalar function of a point, e.g.
            ``CurvatureInvariantsCalculator.kretschmann``
        base_point: Point supplying the fixed coordinates
        coordinate: Index of the coordinate to vary
        values: Values taken by that coordinate

    Returns:
        Tuple of (coordinate values, scalar values) as numpy arrays
    """
    base = as_float_tensor(base_point).reshape(-1)
    if not 0 <= coordinate < base.numel():
        raise IndexError(f"Coordinate {coordinate} out of range for a {base.numel()}-point")

    xs = np.asarray(values, dtype=np.float64)
    ys = np.empty_like(xs)
    for i, value in enumerate(xs):
        point = base.clone()
        point[coordinate] = float(value)
        ys[i] = evaluator(point)
    return xs, ys


def plot_curvature_profile(
    evaluator: ScalarField,
    base_point: ArrayLike,
    coordinate: int,
    values: Sequence[float],
    ax: Optional[plt.Axes] = None,
    label: Optional[str] = None,
    xlabel: Optional[str] = None,
    title: Optional[str] = None,
    log_scale: bool = False
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot a scalar curvature quantity along a coordinate line.

    Example:
    --------
    ```python
    analysis = full_analysis(schwarzschild(2.0))
    fig, ax = plot_curvature_profile(
        analysis.invariants.kretschmann,
        [0.0, 3.0, math.pi / 2, 0.0],
        coordinate=1,
        values=np.linspace(3.0, 20.0, 40),
        label="K", xlabel="r", log_scale=True
    )
    ```

    Returns:
        The figure and axes drawn on
    """
    xs, ys = curvature_profile(evaluator, base_point, coordinate, values)

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 5))
    else:
        fig = ax.figure

    ax.plot(xs, ys, label=label)
    if log_scale:
        ax.set_yscale("log")
    ax.set_xlabel(xlabel if xlabel is not None else f"$x^{{{coordinate}}}$")
    if title is not None:
        ax.set_title(title)
    if label is not None:
        ax.legend()
    ax.grid(True, alpha=0.3)

    return fig, ax
