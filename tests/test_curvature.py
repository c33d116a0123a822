"""
Unit tests for the curvature engine.

These tests verify:
1. Flat metrics have vanishing curvature
2. Curvature of closed-form spacetimes against analytic values
3. Algebraic symmetries of the Riemann tensor
4. Weyl tensor behaviour in low and conformally flat dimensions
5. Geodesic deviation signs and magnitudes
"""

import math

import pytest
import torch

from gravtensor.tensor import IndexType, StructureMismatchError, metric_from_matrix
from gravtensor.metric import (
    GeometryConfig,
    Metric,
    DegenerateDimensionError,
    minkowski,
    euclidean_spherical,
    schwarzschild,
    kerr,
    flrw,
    de_sitter,
    sphere_2d
)
from gravtensor.curvature import (
    RiemannTensor,
    RicciTensor,
    RicciScalar,
    EinsteinTensor,
    WeylTensor,
    CurvatureInvariantsCalculator,
    GeodesicDeviation,
    CurvatureAnalysis,
    ricci_from_riemann,
    weyl_from_parts,
    deviation_from_riemann,
    full_analysis
)

EQUATOR = math.pi / 2


def three_sphere() -> Metric:
    def metric_function(x):
        chi, theta = x[0], x[1]
        s2 = math.sin(chi) ** 2
        return [[1.0, 0.0, 0.0],
                [0.0, s2, 0.0],
                [0.0, 0.0, s2 * math.sin(theta) ** 2]]

    return Metric(3, metric_function, signature=[1, 1, 1], name="3-Sphere")


class TestFlatSpace:
    """Test that flat metrics have zero curvature."""

    def test_minkowski_exactly_zero(self):
        """Test the constant Minkowski metric gives exactly zero curvature."""
        analysis = full_analysis(minkowski())
        point = [0.5, 1.0, -2.0, 3.0]

        assert analysis.riemann.compute(point).max_abs() == 0.0
        assert analysis.ricci_scalar.compute(point) == 0.0
        assert analysis.invariants.kretschmann(point) == 0.0
        assert analysis.ricci_scalar.is_flat(point)

    def test_spherical_coordinates_flat(self):
        """Test curvilinear coordinates on flat space give ≈ 0."""
        riemann = RiemannTensor(euclidean_spherical())
        assert riemann.compute([2.0, 1.0, 0.3]).max_abs() < 1e-5

    def test_riemann_structure(self):
        """Test the Riemann tensor is (contra, co, co, co)."""
        R = RiemannTensor(minkowski()).compute([0.0] * 4)
        assert R.rank == 4
        assert R.index_types == (IndexType.CONTRAVARIANT,) + (IndexType.COVARIANT,) * 3
        assert R.dimensions == (4, 4, 4, 4)


class TestTwoSphere:
    """Test curvature of the round 2-sphere."""

    RADIUS = 2.0
    POINT = [1.0, 0.4]

    def test_ricci_scalar(self):
        """Test R = 2/a²."""
        analysis = full_analysis(sphere_2d(self.RADIUS))
        R = analysis.ricci_scalar.compute(self.POINT)
        assert R == pytest.approx(2 / self.RADIUS ** 2, rel=1e-3)
        assert not analysis.ricci_scalar.is_flat(self.POINT, tolerance=1e-3)

    def test_riemann_component(self):
        """Test R^θ_φθφ = sin²θ."""
        R = RiemannTensor(sphere_2d(self.RADIUS)).compute(self.POINT)
        assert R.get(0, 1, 0, 1) == pytest.approx(math.sin(1.0) ** 2, rel=1e-4)
        assert R.get(0, 1, 1, 0) == pytest.approx(-math.sin(1.0) ** 2, rel=1e-4)

    def test_kretschmann(self):
        """Test K = 4/a⁴."""
        invariants = CurvatureInvariantsCalculator(RiemannTensor(sphere_2d(self.RADIUS)))
        assert invariants.kretschmann(self.POINT) == pytest.approx(4 / self.RADIUS ** 4, rel=1e-3)

    def test_einstein_vanishes(self):
        """Test the Einstein tensor vanishes identically in two dimensions."""
        einstein = full_analysis(sphere_2d(self.RADIUS)).einstein
        assert einstein.is_vacuum(self.POINT, tolerance=1e-4)
        assert einstein.trace(self.POINT) == pytest.approx(0.0, abs=1e-4)

    def test_ricci_proportional_to_metric(self):
        """Test R_μν = (R/2) g_μν in two dimensions."""
        metric = sphere_2d(self.RADIUS)
        ricci = RicciTensor(RiemannTensor(metric)).compute(self.POINT)
        g = metric.metric_matrix(self.POINT)
        assert torch.allclose(ricci.to_torch(), g / self.RADIUS ** 2, atol=1e-5)

    def test_weyl_zero_below_three_dimensions(self):
        """Test the Weyl tensor is reported as zero for n = 2."""
        weyl = WeylTensor(RiemannTensor(sphere_2d(self.RADIUS)))
        C = weyl.compute(self.POINT)
        assert C.dimensions == (2, 2, 2, 2)
        assert C.index_types == (IndexType.COVARIANT,) * 4
        assert C.max_abs() == 0.0
        assert weyl.is_conformally_flat(self.POINT)

    def test_weyl_formula_rejects_two_dimensions(self):
        """Test the general Weyl formula refuses n < 3."""
        metric = sphere_2d(self.RADIUS)
        riemann = RiemannTensor(metric)
        R = riemann.compute(self.POINT)
        with pytest.raises(DegenerateDimensionError):
            weyl_from_parts(riemann.lower_first(self.POINT, R), ricci_from_riemann(R),
                            0.5, metric.metric_tensor(self.POINT))

    def test_symmetries(self):
        """Test the algebraic symmetries hold at the default tolerance."""
        symmetries = RiemannTensor(sphere_2d(1.0)).check_symmetries(self.POINT)
        assert symmetries.all_satisfied

    def test_christoffel_step_configurable(self):
        """Test a coarse derivative step is honoured and still close."""
        config = GeometryConfig(christoffel_step=1e-2)
        riemann = RiemannTensor(sphere_2d(self.RADIUS), config)
        assert riemann.config.christoffel_step == 1e-2
        R = RicciScalar(RicciTensor(riemann)).compute(self.POINT)
        assert R == pytest.approx(2 / self.RADIUS ** 2, rel=1e-2)


class TestThreeSphere:
    """Test curvature of the unit 3-sphere."""

    POINT = [1.0, 1.2, 0.3]

    def test_ricci_scalar(self):
        """Test R = n(n-1) = 6."""
        analysis = full_analysis(three_sphere())
        assert analysis.ricci_scalar.compute(self.POINT) == pytest.approx(6.0, rel=1e-3)

    def test_weyl_vanishes_in_three_dimensions(self):
        """Test the Weyl tensor vanishes for n = 3."""
        weyl = WeylTensor(RiemannTensor(three_sphere()))
        assert weyl.is_conformally_flat(self.POINT, tolerance=1e-4)


class TestSchwarzschild:
    """Test curvature of the Schwarzschild exterior."""

    RS = 2.0
    R = 4.0
    POINT = [0.0, 4.0, EQUATOR, 0.0]

    def test_kretschmann(self):
        """Test K = 12 rs²/r⁶."""
        analysis = full_analysis(schwarzschild(self.RS))
        expected = 12 * self.RS ** 2 / self.R ** 6
        assert analysis.invariants.kretschmann(self.POINT) == pytest.approx(expected, rel=1e-2)

    def test_vacuum(self):
        """Test the Ricci scalar and Einstein tensor vanish."""
        analysis = full_analysis(schwarzschild(self.RS))
        assert analysis.ricci_scalar.is_flat(self.POINT, tolerance=1e-4)
        assert analysis.einstein.is_vacuum(self.POINT, tolerance=1e-4)

    def test_not_flat_despite_zero_ricci(self):
        """Test the Riemann tensor is non-zero in vacuum."""
        riemann = RiemannTensor(schwarzschild(self.RS)).compute(self.POINT)
        assert riemann.max_abs() > 1e-2

    def test_symmetries(self):
        """Test the algebraic symmetries of R_ρσμν."""
        symmetries = RiemannTensor(schwarzschild(self.RS)).check_symmetries(self.POINT, tolerance=1e-4)
        assert symmetries.antisymmetric_last_pair
        assert symmetries.antisymmetric_first_pair
        assert symmetries.pair_symmetric
        assert symmetries.first_bianchi
        assert symmetries.max_violation < 1e-4

    def test_invariants_consistent(self):
        """Test compute_all agrees with the individual invariants."""
        invariants = full_analysis(schwarzschild(self.RS)).invariants
        result = invariants.compute_all(self.POINT)
        expected = 12 * self.RS ** 2 / self.R ** 6

        assert result.kretschmann == pytest.approx(invariants.kretschmann(self.POINT), rel=1e-12)
        assert result.weyl_squared == pytest.approx(expected, rel=1e-2)
        assert result.ricci_squared == pytest.approx(0.0, abs=1e-8)
        assert set(result.to_dict()) == {"ricci_scalar", "kretschmann", "ricci_squared", "weyl_squared"}

    def test_ricci_raise_indices(self):
        """Test R^μν is fully contravariant."""
        ricci = RicciTensor(RiemannTensor(schwarzschild(self.RS)))
        assert ricci.raise_indices(self.POINT).index_types == (IndexType.CONTRAVARIANT,) * 2

    def test_kretschmann_falls_with_radius(self):
        """Test K decreases away from the hole."""
        invariants = CurvatureInvariantsCalculator(RiemannTensor(schwarzschild(self.RS)))
        near = invariants.kretschmann([0.0, 4.0, EQUATOR, 0.0])
        far = invariants.kretschmann([0.0, 8.0, EQUATOR, 0.0])
        assert far == pytest.approx(near / 64, rel=2e-2)


@pytest.mark.slow
class TestKerr:
    """Test curvature of the Kerr metric."""

    POINT = [0.0, 6.0, 1.1, 0.0]

    def test_ricci_symmetric_and_vacuum(self):
        """Test the Ricci tensor is symmetric and ≈ 0."""
        ricci = RicciTensor(RiemannTensor(kerr(1.0, 0.7)))
        assert ricci.is_symmetric(self.POINT, tolerance=1e-4)
        assert ricci.compute(self.POINT).max_abs() < 1e-3


class TestCosmology:
    """Test curvature of cosmological metrics."""

    H = 0.5
    POINT = [0.3, 1.0, 1.2, 0.0]

    def metric(self):
        return flrw(lambda t: math.exp(self.H * t))

    def test_de_sitter_flrw_ricci_scalar(self):
        """Test R = 12 H² for exponential expansion."""
        scalar = full_analysis(self.metric()).ricci_scalar
        assert scalar.compute(self.POINT) == pytest.approx(12 * self.H ** 2, rel=1e-3)

    def test_flrw_conformally_flat(self):
        """Test the Weyl tensor of FLRW vanishes."""
        weyl = WeylTensor(RiemannTensor(self.metric()))
        assert weyl.is_conformally_flat(self.POINT, tolerance=1e-4)

    def test_einstein_trace(self):
        """Test g^μν G_μν = -R in four dimensions."""
        einstein = full_analysis(self.metric()).einstein
        assert einstein.trace(self.POINT) == pytest.approx(-12 * self.H ** 2, rel=1e-3)

    def test_static_de_sitter_cosmological_constant(self):
        """Test G_μν + Λ g_μν = 0 with Λ = 3/α²."""
        alpha = 5.0
        einstein = EinsteinTensor(RicciTensor(RiemannTensor(de_sitter(alpha))))
        point = [0.0, 2.0, 1.0, 0.0]

        assert einstein.compute_with_lambda(point, 3 / alpha ** 2).max_abs() < 1e-4
        assert einstein.compute(point).max_abs() > 1e-2


class TestGeodesicDeviation:
    """Test relative acceleration of neighbouring geodesics."""

    def test_unit_sphere_equator(self):
        """Test neighbouring meridians converge with a = -ξ."""
        deviation = GeodesicDeviation(RiemannTensor(sphere_2d(1.0)))
        result = deviation.compute([EQUATOR, 0.0], [0.0, 1.0], [1.0, 0.0])

        assert result.acceleration.get(0) == pytest.approx(-1.0, rel=1e-4)
        assert result.acceleration.get(1) == pytest.approx(0.0, abs=1e-6)
        assert result.acceleration.index_types == (IndexType.CONTRAVARIANT,)
        assert result.tidal_tensor.index_types == (IndexType.CONTRAVARIANT, IndexType.COVARIANT)
        assert result.tidal_tensor.get(0, 0) == pytest.approx(-1.0, rel=1e-4)

    def test_separation_along_velocity(self):
        """Test a separation along the velocity gives no acceleration."""
        deviation = GeodesicDeviation(RiemannTensor(sphere_2d(1.0)))
        result = deviation.compute([1.0, 0.0], [0.3, 0.7], [0.3, 0.7])
        assert result.acceleration.max_abs() < 1e-12

    def test_schwarzschild_tidal_stretching(self):
        """Test radial stretching rs/r³ and transverse squeezing rs/(2r³)."""
        rs, r = 2.0, 4.0
        point = [0.0, r, EQUATOR, 0.0]
        u = [1 / math.sqrt(1 - rs / r), 0.0, 0.0, 0.0]
        deviation = GeodesicDeviation(RiemannTensor(schwarzschild(rs)))

        radial = deviation.compute(point, u, [0.0, 1.0, 0.0, 0.0])
        assert radial.acceleration.get(1) == pytest.approx(rs / r ** 3, rel=1e-3)

        transverse = deviation.compute(point, u, [0.0, 0.0, 1.0, 0.0])
        assert transverse.acceleration.get(2) == pytest.approx(-rs / (2 * r ** 3), rel=1e-3)

    def test_flat_space_no_deviation(self):
        """Test geodesics in flat space do not accelerate apart."""
        deviation = GeodesicDeviation(RiemannTensor(minkowski()))
        result = deviation.compute([0.0] * 4, [1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0])
        assert result.acceleration.max_abs() == 0.0

    def test_wrong_vector_length_fails(self):
        """Test vectors must match the dimension."""
        R = RiemannTensor(sphere_2d(1.0)).compute([1.0, 0.0])
        with pytest.raises(StructureMismatchError):
            deviation_from_riemann(R, [1.0, 0.0, 0.0], [1.0, 0.0])

    def test_requires_mixed_riemann(self):
        """Test the fully covariant tensor is rejected."""
        riemann = RiemannTensor(sphere_2d(1.0))
        lowered = riemann.lower_first([1.0, 0.0])
        with pytest.raises(StructureMismatchError):
            deviation_from_riemann(lowered, [1.0, 0.0], [0.0, 1.0])


class TestFullAnalysis:
    """Test the bundle of evaluators."""

    def test_bundle_shares_metric(self):
        """Test every evaluator refers to the same metric."""
        metric = sphere_2d(1.0)
        analysis = full_analysis(metric)
        assert isinstance(analysis, CurvatureAnalysis)
        for evaluator in (analysis.ricci, analysis.ricci_scalar, analysis.einstein,
                          analysis.weyl, analysis.invariants, analysis.deviation):
            assert evaluator.metric is metric

    def test_config_threaded(self):
        """Test a custom config reaches the Riemann evaluator."""
        config = GeometryConfig(christoffel_step=5e-4)
        analysis = full_analysis(sphere_2d(1.0), config)
        assert analysis.riemann.config is config

    def test_einstein_from_ricci_parts(self):
        """Test G_μν = R_μν - ½ R g_μν on a constant metric."""
        metric = minkowski()
        G = EinsteinTensor(RicciTensor(RiemannTensor(metric))).compute([0.0] * 4)
        assert G.equals(metric_from_matrix(torch.zeros(4, 4, dtype=torch.float64)))
