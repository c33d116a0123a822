"""
Curvature of a metric space.

This module derives, at any point of a ``MetricSpace``:
- Riemann curvature tensor R^ρ_σμν
- Ricci tensor R_μν and Ricci scalar R
- Einstein tensor G_μν (with optional cosmological constant)
- Weyl conformal tensor C_ρσμν
- Curvature invariants (Kretschmann, Ricci squared, Weyl squared)
- Geodesic deviation (relative acceleration and tidal tensor)

Every evaluator is a pure function of (metric, point); nothing is cached.

Numerical Approximations:
------------------------
1. Nested Central Differences: the Riemann tensor needs ∂_α Γ^λ_μν. The
   Christoffel symbols are themselves central differences of the metric
   (step h₁ = ``metric_step`` of the metric's config), and are differenced
   again with step h₂ = ``GeometryConfig.christoffel_step``.

2. Error Model: Γ carries a rounding noise floor of roughly ε_mach/h₁ ≈ 1e-11
   (relative to |g|). Differencing it again costs O(h₂²) truncation plus
   O(1e-11/h₂) rounding, about 1e-7 for the default h₂ = 1e-4. Curvature of
   order one is therefore accurate to six or seven digits; absolute checks
   against zero should use tolerances near 1e-6.

3. Constant Metrics: for ``ConstantMetric`` all differences vanish exactly
   and every curvature quantity is exactly zero.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import torch

from .metric import (
    DegenerateDimensionError,
    GeometryConfig,
    MetricSpace,
    central_difference,
)
from .tensor import (
    ArrayLike,
    IndexType,
    StructureMismatchError,
    Tensor,
    as_float_tensor,
    zeros,
)

logger = logging.getLogger(__name__)

COVARIANT_4 = [IndexType.COVARIANT] * 4
RIEMANN_INDEX_TYPES = [IndexType.CONTRAVARIANT] + [IndexType.COVARIANT] * 3


# ============================================================================
# Formulas on precomputed tensors
# ============================================================================


def ricci_from_riemann(riemann: Tensor) -> Tensor:
    """Ricci tensor R_σν = R^ρ_σρν (contraction of indices 0 and 2)."""
    return riemann.contract(0, 2)


def ricci_scalar_from_ricci(ricci: Tensor, inverse_metric: Tensor) -> float:
    """Ricci scalar R = g^μν R_μν."""
    return ricci.raise_index(0, inverse_metric).contract(0, 1).item()


def einstein_from_parts(
    ricci: Tensor,
    ricci_scalar: float,
    metric: Tensor,
    cosmological_constant: float = 0.0
) -> Tensor:
    """
    Einstein tensor G_μν = R_μν - (1/2) R g_μν + Λ g_μν.

    Args:
        ricci: Ricci tensor R_μν
        ricci_scalar: Ricci scalar R
        metric: Covariant metric g_μν
        cosmological_constant: Λ, zero by default
    """
    return ricci - metric * (0.5 * ricci_scalar - cosmological_constant)


def weyl_from_parts(
    riemann_lowered: Tensor,
    ricci: Tensor,
    ricci_scalar: float,
    metric: Tensor
) -> Tensor:
    """
    Weyl tensor from the fully covariant Riemann tensor.

    C_ρσμν = R_ρσμν
             - 1/(n-2) (g_ρμ R_νσ - g_ρν R_μσ - g_σμ R_νρ + g_σν R_μρ)
             + R/((n-1)(n-2)) (g_ρμ g_νσ - g_ρν g_μσ)

    Raises:
        DegenerateDimensionError: If n < 3, where the formula divides by zero
    """
    n = metric.dimensions[0]
    if n < 3:
        raise DegenerateDimensionError(
            f"Weyl decomposition requires dimension >= 3, got {n}"
        )

    R = riemann_lowered.to_torch()
    g = metric.to_torch()
    Ric = ricci.to_torch()

    ricci_part = (
        torch.einsum('rm,ns->rsmn', g, Ric)
        - torch.einsum('rn,ms->rsmn', g, Ric)
        - torch.einsum('sm,nr->rsmn', g, Ric)
        + torch.einsum('sn,mr->rsmn', g, Ric)
    )
    metric_part = torch.einsum('rm,ns->rsmn', g, g) - torch.einsum('rn,ms->rsmn', g, g)

    C = R - ricci_part / (n - 2) + ricci_scalar * metric_part / ((n - 1) * (n - 2))
    return Tensor(riemann_lowered.dimensions, COVARIANT_4, C, riemann_lowered.labels)


def raise_all(tensor: Tensor, inverse_metric: Tensor) -> Tensor:
    """Raise every covariant index of ``tensor``."""
    result = tensor
    for position, index_type in enumerate(tensor.index_types):
        if index_type is IndexType.COVARIANT:
            result = result.raise_index(position, inverse_metric)
    return result


def deviation_from_riemann(
    riemann: Tensor,
    velocity: ArrayLike,
    separation: ArrayLike
) -> "GeodesicDeviationResult":
    """
    Geodesic deviation for a precomputed Riemann tensor R^μ_νρσ.

    D²ξ^μ/dτ² = -R^μ_νρσ u^ν ξ^ρ u^σ

    Args:
        riemann: Riemann tensor (contra, co, co, co)
        velocity: Tangent u^μ of the reference geodesic
        separation: Separation vector ξ^μ to the neighbouring geodesic

    Returns:
        ``GeodesicDeviationResult`` with the relative acceleration and the
        tidal tensor K^μ_ρ = -R^μ_νρσ u^ν u^σ (so that a^μ = K^μ_ρ ξ^ρ)
    """
    if riemann.rank != 4 or riemann.index_types != tuple(RIEMANN_INDEX_TYPES):
        raise StructureMismatchError("Geodesic deviation needs R^μ_νρσ (contra, co, co, co)")
    n = riemann.dimensions[0]
    u = as_float_tensor(velocity).reshape(-1)
    xi = as_float_tensor(separation).reshape(-1)
    if u.numel() != n or xi.numel() != n:
        raise StructureMismatchError(
            f"Velocity and separation must have {n} components, got {u.numel()} and {xi.numel()}"
        )

    R = riemann.to_torch()
    tidal = -torch.einsum('mnrs,n,s->mr', R, u, u)
    acceleration = tidal @ xi

    return GeodesicDeviationResult(
        acceleration=Tensor([n], [IndexType.CONTRAVARIANT], acceleration, ["μ"]),
        tidal_tensor=Tensor(
            [n, n], [IndexType.CONTRAVARIANT, IndexType.COVARIANT], tidal, ["μ", "ρ"]
        )
    )


# ============================================================================
# Result records
# ============================================================================


@dataclass
class RiemannSymmetries:
    """Which algebraic symmetries of R_ρσμν hold within tolerance."""
    antisymmetric_last_pair: bool  # R_ρσμν = -R_ρσνμ
    antisymmetric_first_pair: bool  # R_ρσμν = -R_σρμν
    pair_symmetric: bool  # R_ρσμν = R_μνρσ
    first_bianchi: bool  # R_ρσμν + R_ρμνσ + R_ρνσμ = 0
    max_violation: float

    @property
    def all_satisfied(self) -> bool:
        return (
            self.antisymmetric_last_pair
            and self.antisymmetric_first_pair
            and self.pair_symmetric
            and self.first_bianchi
        )


@dataclass
class CurvatureInvariants:
    ricci_scalar: float
    kretschmann: float
    ricci_squared: float
    weyl_squared: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "ricci_scalar": self.ricci_scalar,
            "kretschmann": self.kretschmann,
            "ricci_squared": self.ricci_squared,
            "weyl_squared": self.weyl_squared,
        }


@dataclass
class GeodesicDeviationResult:
    acceleration: Tensor
    tidal_tensor: Tensor


# ============================================================================
# Evaluators
# ============================================================================


class RiemannTensor:
    """
    Riemann curvature tensor of a metric space.

    R^ρ_σμν = ∂_μ Γ^ρ_νσ - ∂_ν Γ^ρ_μσ + Γ^ρ_μλ Γ^λ_νσ - Γ^ρ_νλ Γ^λ_μσ

    Args:
        metric: Metric space to differentiate
        config: Step and tolerance settings; the metric's config by default.
            ``christoffel_step`` sets h₂, the metric's own ``metric_step``
            sets h₁.

    Physics Note:
    -------------
    The Riemann tensor vanishes everywhere if and only if the space is flat.
    Coordinate artefacts such as the 1/r terms of polar coordinates cancel
    between the derivative and product terms, up to finite difference error.
    """

    def __init__(self, metric: MetricSpace, config: Optional[GeometryConfig] = None):
        self.metric = metric
        self.config = config if config is not None else metric.config

    @property
    def dimension(self) -> int:
        return self.metric.dimension

    def riemann_array(self, point: ArrayLike) -> torch.Tensor:
        """Raw components R^ρ_σμν as an [n, n, n, n] array."""
        x = self.metric._as_point(point)
        gamma = self.metric.christoffel_array(x)
        step = self.config.christoffel_step

        # dgamma[α, λ, μ, ν] = ∂_α Γ^λ_μν
        dgamma = torch.stack([
            central_difference(self.metric.christoffel_array, x, alpha, step)
            for alpha in range(self.dimension)
        ])

        derivative_terms = (
            torch.einsum('mrns->rsmn', dgamma)  # ∂_μ Γ^ρ_νσ
            - torch.einsum('nrms->rsmn', dgamma)  # ∂_ν Γ^ρ_μσ
        )
        product_terms = (
            torch.einsum('rml,lns->rsmn', gamma, gamma)  # Γ^ρ_μλ Γ^λ_νσ
            - torch.einsum('rnl,lms->rsmn', gamma, gamma)  # Γ^ρ_νλ Γ^λ_μσ
        )

        logger.debug("Computed Riemann tensor of %s at %s", self.metric.name, x.tolist())
        return derivative_terms + product_terms

    def compute(self, point: ArrayLike) -> Tensor:
        """R^ρ_σμν at ``point`` as a (contra, co, co, co) tensor."""
        n = self.dimension
        return Tensor([n] * 4, RIEMANN_INDEX_TYPES, self.riemann_array(point), ["ρ", "σ", "μ", "ν"])

    def lower_first(self, point: ArrayLike, riemann: Optional[Tensor] = None) -> Tensor:
        """Fully covariant R_ρσμν = g_ρλ R^λ_σμν."""
        if riemann is None:
            riemann = self.compute(point)
        return riemann.lower_index(0, self.metric.metric_tensor(point))

    def check_symmetries(self, point: ArrayLike, tolerance: float = 1e-5) -> RiemannSymmetries:
        """
        Check the algebraic symmetries of R_ρσμν at ``point``.

        The default tolerance is sized for finite difference noise; see the
        module docstring.
        """
        R = self.lower_first(point).to_torch()

        violations = {
            "last": (R + torch.einsum('rsnm->rsmn', R)).abs().max(),
            "first": (R + torch.einsum('srmn->rsmn', R)).abs().max(),
            "pair": (R - torch.einsum('mnrs->rsmn', R)).abs().max(),
            "bianchi": (
                R
                + torch.einsum('rmns->rsmn', R)
                + torch.einsum('rnsm->rsmn', R)
            ).abs().max(),
        }
        return RiemannSymmetries(
            antisymmetric_last_pair=bool(violations["last"] <= tolerance),
            antisymmetric_first_pair=bool(violations["first"] <= tolerance),
            pair_symmetric=bool(violations["pair"] <= tolerance),
            first_bianchi=bool(violations["bianchi"] <= tolerance),
            max_violation=float(max(violations.values()))
        )


class RicciTensor:
    """Ricci tensor R_σν = R^ρ_σρν."""

    def __init__(self, riemann: RiemannTensor):
        self.riemann = riemann
        self.metric = riemann.metric

    def compute(self, point: ArrayLike) -> Tensor:
        return ricci_from_riemann(self.riemann.compute(point))

    def is_symmetric(self, point: ArrayLike, tolerance: float = 1e-6) -> bool:
        return self.compute(point).is_symmetric(0, 1, tolerance)

    def raise_indices(self, point: ArrayLike, ricci: Optional[Tensor] = None) -> Tensor:
        """Contravariant R^μν = g^μα g^νβ R_αβ."""
        if ricci is None:
            ricci = self.compute(point)
        return raise_all(ricci, self.metric.inverse_metric(point))


class RicciScalar:
    """Scalar curvature R = g^μν R_μν."""

    def __init__(self, ricci: RicciTensor):
        self.ricci = ricci
        self.metric = ricci.metric

    def compute(self, point: ArrayLike) -> float:
        return ricci_scalar_from_ricci(self.ricci.compute(point), self.metric.inverse_metric(point))

    def is_flat(self, point: ArrayLike, tolerance: Optional[float] = None) -> bool:
        """
        Whether |R| < tolerance at ``point``.

        A vanishing Ricci scalar is necessary but not sufficient for
        flatness: the Schwarzschild exterior has R = 0 with non-zero
        Riemann tensor.
        """
        if tolerance is None:
            tolerance = self.metric.config.tolerance
        return abs(self.compute(point)) < tolerance


class EinsteinTensor:
    """
    Einstein tensor G_μν = R_μν - (1/2) R g_μν.

    Physics Note:
    -------------
    G_μν is divergence free and is the left hand side of Einstein's field
    equations G_μν + Λ g_μν = 8πG T_μν. In two dimensions it vanishes
    identically.
    """

    def __init__(self, ricci: RicciTensor):
        self.ricci = ricci
        self.metric = ricci.metric

    def compute(self, point: ArrayLike) -> Tensor:
        return self.compute_with_lambda(point, 0.0)

    def compute_with_lambda(self, point: ArrayLike, cosmological_constant: float) -> Tensor:
        """G_μν + Λ g_μν."""
        ricci = self.ricci.compute(point)
        scalar = ricci_scalar_from_ricci(ricci, self.metric.inverse_metric(point))
        return einstein_from_parts(
            ricci, scalar, self.metric.metric_tensor(point), cosmological_constant
        )

    def is_vacuum(self, point: ArrayLike, tolerance: float = 1e-6) -> bool:
        """Whether every component of G_μν is below ``tolerance``."""
        return self.compute(point).max_abs() < tolerance

    def trace(self, point: ArrayLike) -> float:
        """g^μν G_μν, equal to (1 - n/2) R."""
        G = self.compute(point)
        return G.raise_index(0, self.metric.inverse_metric(point)).contract(0, 1).item()


class WeylTensor:
    """
    Weyl conformal tensor C_ρσμν, the trace-free part of the Riemann tensor.

    In dimension n < 3 the Weyl tensor is identically zero and ``compute``
    returns the zero tensor of the right shape without evaluating the
    general formula.
    """

    def __init__(self, riemann: RiemannTensor):
        self.riemann = riemann
        self.metric = riemann.metric

    def compute(self, point: ArrayLike) -> Tensor:
        n = self.metric.dimension
        if n < 3:
            return zeros([n] * 4, COVARIANT_4)

        riemann = self.riemann.compute(point)
        ricci = ricci_from_riemann(riemann)
        scalar = ricci_scalar_from_ricci(ricci, self.metric.inverse_metric(point))
        return weyl_from_parts(
            self.riemann.lower_first(point, riemann),
            ricci,
            scalar,
            self.metric.metric_tensor(point)
        )

    def is_conformally_flat(self, point: ArrayLike, tolerance: float = 1e-6) -> bool:
        return self.compute(point).max_abs() < tolerance


class CurvatureInvariantsCalculator:
    """
    Scalar curvature invariants.

    - Kretschmann scalar K = R_ρσμν R^ρσμν
    - Ricci squared R_μν R^μν
    - Weyl squared C_ρσμν C^ρσμν

    Physics Note:
    -------------
    Unlike the Ricci scalar, the Kretschmann scalar is non-zero in vacuum.
    For Schwarzschild K = 12 rs²/r⁶, which diverges only at r = 0 and so
    separates the physical singularity from the coordinate one at r = rs.
    """

    def __init__(self, riemann: RiemannTensor):
        self.riemann = riemann
        self.metric = riemann.metric

    def kretschmann(self, point: ArrayLike) -> float:
        riemann = self.riemann.compute(point)
        lowered = self.riemann.lower_first(point, riemann)
        raised = raise_all(riemann, self.metric.inverse_metric(point))
        return lowered.contract_all(raised)

    def ricci_squared(self, point: ArrayLike) -> float:
        ricci = ricci_from_riemann(self.riemann.compute(point))
        return ricci.contract_all(raise_all(ricci, self.metric.inverse_metric(point)))

    def weyl_squared(self, point: ArrayLike) -> float:
        weyl = WeylTensor(self.riemann).compute(point)
        return weyl.contract_all(raise_all(weyl, self.metric.inverse_metric(point)))

    def compute_all(self, point: ArrayLike) -> CurvatureInvariants:
        """All invariants from a single Riemann evaluation."""
        n = self.metric.dimension
        g = self.metric.metric_tensor(point)
        g_inv = self.metric.inverse_metric(point)

        riemann = self.riemann.compute(point)
        lowered = riemann.lower_index(0, g)
        ricci = ricci_from_riemann(riemann)
        scalar = ricci_scalar_from_ricci(ricci, g_inv)

        if n < 3:
            weyl_squared = 0.0
        else:
            weyl = weyl_from_parts(lowered, ricci, scalar, g)
            weyl_squared = weyl.contract_all(raise_all(weyl, g_inv))

        return CurvatureInvariants(
            ricci_scalar=scalar,
            kretschmann=lowered.contract_all(raise_all(riemann, g_inv)),
            ricci_squared=ricci.contract_all(raise_all(ricci, g_inv)),
            weyl_squared=weyl_squared
        )


class GeodesicDeviation:
    """
    Relative acceleration of neighbouring geodesics.

    Given the tangent u^μ of a geodesic and a separation ξ^μ, returns the
    acceleration a^μ = -R^μ_νρσ u^ν ξ^ρ u^σ and the tidal tensor. This is a
    single evaluation at one point; no trajectories are integrated.

    Example:
    --------
    ```python
    sphere = sphere_2d(1.0)
    deviation = GeodesicDeviation(RiemannTensor(sphere))
    result = deviation.compute([math.pi / 2, 0.0], [0.0, 1.0], [1.0, 0.0])
    result.acceleration.get(0)  # ≈ -1.0, neighbouring meridians converge
    ```
    """

    def __init__(self, riemann: RiemannTensor):
        self.riemann = riemann
        self.metric = riemann.metric

    def compute(
        self,
        point: ArrayLike,
        velocity: ArrayLike,
        separation: ArrayLike
    ) -> GeodesicDeviationResult:
        return deviation_from_riemann(self.riemann.compute(point), velocity, separation)


@dataclass
class CurvatureAnalysis:
    """All curvature evaluators for one metric."""
    metric: MetricSpace
    riemann: RiemannTensor
    ricci: RicciTensor
    ricci_scalar: RicciScalar
    einstein: EinsteinTensor
    weyl: WeylTensor
    invariants: CurvatureInvariantsCalculator
    deviation: GeodesicDeviation


def full_analysis(metric: MetricSpace, config: Optional[GeometryConfig] = None) -> CurvatureAnalysis:
    """
    Build every curvature evaluator for ``metric``.

    Example:
    --------
    ```python
    analysis = full_analysis(schwarzschild(2.0))
    analysis.invariants.kretschmann([0.0, 10.0, math.pi / 2, 0.0])  # ≈ 12·4/10⁶
    ```
    """
    riemann = RiemannTensor(metric, config)
    ricci = RicciTensor(riemann)
    return CurvatureAnalysis(
        metric=metric,
        riemann=riemann,
        ricci=ricci,
        ricci_scalar=RicciScalar(ricci),
        einstein=EinsteinTensor(ricci),
        weyl=WeylTensor(riemann),
        invariants=CurvatureInvariantsCalculator(riemann),
        deviation=GeodesicDeviation(riemann)
    )
