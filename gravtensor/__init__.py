"""
gravtensor

A PyTorch-based library for tensor calculus on curved spaces.
This package evaluates metrics, connections and curvature numerically at
individual points, for closed-form spacetimes or user supplied metric
functions.

Key Features:
- Arbitrary-rank tensors with explicit covariant/contravariant indices
- Metrics with Christoffel symbols from central finite differences
- Riemann, Ricci, Einstein and Weyl tensors and curvature invariants
- Geodesic integration, parallel transport and geodesic deviation
- Lorentz boosts of flat spacetime
- Curvature profile plots

Example Usage:
```python
import math
import gravtensor

# Schwarzschild black hole with rs = 2
metric = gravtensor.schwarzschild(2.0)
analysis = gravtensor.full_analysis(metric)

point = [0.0, 4.0, math.pi / 2, 0.0]
analysis.invariants.kretschmann(point)   # ≈ 12 rs²/r⁶
analysis.ricci_scalar.is_flat(point, tolerance=1e-6)  # True (vacuum)
```
"""

__version__ = "0.1.0"

# Core modules
from . import tensor
from . import metric
from . import curvature
from . import lorentz

# Tensor algebra
from .tensor import (
    IndexType,
    Tensor,
    TensorError,
    StructureMismatchError,
    IndexOutOfRangeError,
    VarianceError,
    zeros,
    scalar,
    kronecker_delta,
    levi_civita,
    metric_from_matrix,
    from_matrix,
    vector,
    euclidean_metric
)

# Metrics and connection
from .metric import (
    GeometryConfig,
    IntervalType,
    MetricSpace,
    Metric,
    ConstantMetric,
    MetricSingularityError,
    CoordinateDomainError,
    DegenerateDimensionError,
    GeodesicPoint,
    GeodesicSolution,
    ParallelTransportResult,
    path_length,
    find_turning_point,
    is_closed,
    check_normalization,
    minkowski,
    euclidean,
    schwarzschild,
    kerr,
    reissner_nordstrom,
    flrw,
    de_sitter,
    anti_de_sitter,
    sphere_2d,
    euclidean_spherical,
    custom
)

# Curvature
from .curvature import (
    RiemannTensor,
    RicciTensor,
    RicciScalar,
    EinsteinTensor,
    WeylTensor,
    CurvatureInvariantsCalculator,
    GeodesicDeviation,
    RiemannSymmetries,
    CurvatureInvariants,
    GeodesicDeviationResult,
    CurvatureAnalysis,
    weyl_from_parts,
    deviation_from_riemann,
    full_analysis
)

# Flat spacetime
from .lorentz import (
    LorentzTransformation,
    LorentzBoost,
    boost_x,
    boost_y,
    boost_z,
    lorentz_factor,
    rapidity,
    velocity_from_rapidity,
    velocity_addition
)

__all__ = [
    # Modules
    "tensor",
    "metric",
    "curvature",
    "lorentz",

    # Tensor algebra
    "IndexType",
    "Tensor",
    "TensorError",
    "StructureMismatchError",
    "IndexOutOfRangeError",
    "VarianceError",
    "zeros",
    "scalar",
    "kronecker_delta",
    "levi_civita",
    "metric_from_matrix",
    "from_matrix",
    "vector",
    "euclidean_metric",

    # Metrics and connection
    "GeometryConfig",
    "IntervalType",
    "MetricSpace",
    "Metric",
    "ConstantMetric",
    "MetricSingularityError",
    "CoordinateDomainError",
    "DegenerateDimensionError",
    "GeodesicPoint",
    "GeodesicSolution",
    "ParallelTransportResult",
    "path_length",
    "find_turning_point",
    "is_closed",
    "check_normalization",
    "minkowski",
    "euclidean",
    "schwarzschild",
    "kerr",
    "reissner_nordstrom",
    "flrw",
    "de_sitter",
    "anti_de_sitter",
    "sphere_2d",
    "euclidean_spherical",
    "custom",

    # Curvature
    "RiemannTensor",
    "RicciTensor",
    "RicciScalar",
    "EinsteinTensor",
    "WeylTensor",
    "CurvatureInvariantsCalculator",
    "GeodesicDeviation",
    "RiemannSymmetries",
    "CurvatureInvariants",
    "GeodesicDeviationResult",
    "CurvatureAnalysis",
    "weyl_from_parts",
    "deviation_from_riemann",
    "full_analysis",

    # Flat spacetime
    "LorentzTransformation",
    "LorentzBoost",
    "boost_x",
    "boost_y",
    "boost_z",
    "lorentz_factor",
    "rapidity",
    "velocity_from_rapidity",
    "velocity_addition",
]
