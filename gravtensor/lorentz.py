"""
Lorentz transformations of flat spacetime.

Boosts and their compositions act on coordinates [t, x, y, z] and preserve
the Minkowski metric η = diag(-c², 1, 1, 1). The metric itself is read from
``gravtensor.metric.minkowski`` so the signature convention lives in one
place; transformations act on arbitrary tensors through ``Tensor.transform``.

Physics Note:
-------------
Two boosts along the same axis compose into a single boost whose velocity
follows the relativistic addition law (u + v)/(1 + uv/c²). Boosts along
different axes compose into a boost followed by a rotation (Thomas-Wigner
rotation), so ``compose`` returns a general ``LorentzTransformation``.
"""

import math
from typing import Sequence

import torch

from .metric import minkowski
from .tensor import DTYPE, ArrayLike, StructureMismatchError, Tensor, as_float_tensor


def _check_speed(speed: float, c: float) -> None:
    if c <= 0:
        raise ValueError(f"Speed of light must be positive, got {c}")
    if abs(speed) >= c:
        raise ValueError(f"Speed {speed} must be below the speed of light ({c})")


def lorentz_factor(speed: float, c: float = 1.0) -> float:
    """γ = 1/√(1 - v²/c²)."""
    _check_speed(speed, c)
    return 1.0 / math.sqrt(1.0 - (speed / c) ** 2)


def rapidity(speed: float, c: float = 1.0) -> float:
    """φ = artanh(v/c); rapidities add under collinear boosts."""
    _check_speed(speed, c)
    return math.atanh(speed / c)


def velocity_from_rapidity(phi: float, c: float = 1.0) -> float:
    return c * math.tanh(phi)


def velocity_addition(u: float, v: float, c: float = 1.0) -> float:
    """Relativistic addition of collinear velocities, (u + v)/(1 + uv/c²)."""
    _check_speed(u, c)
    _check_speed(v, c)
    return (u + v) / (1.0 + u * v / (c * c))


class LorentzTransformation:
    """
    Linear map Λ^μ_ν on [t, x, y, z] coordinates.

    Args:
        matrix: 4×4 matrix Λ^μ_ν
        c: Speed of light of the Minkowski metric it should preserve
    """

    def __init__(self, matrix: ArrayLike, c: float = 1.0):
        matrix = as_float_tensor(matrix)
        if matrix.shape != (4, 4):
            raise StructureMismatchError(f"Lorentz matrix must be 4×4, got {tuple(matrix.shape)}")
        self._matrix = matrix
        self.c = c
        self._eta = minkowski(c).matrix

    @property
    def matrix(self) -> torch.Tensor:
        return self._matrix.clone()

    def inverse_matrix(self) -> torch.Tensor:
        """Λ⁻¹ = η⁻¹ Λᵀ η, exact for any Lorentz transformation."""
        return torch.linalg.inv(self._eta) @ self._matrix.T @ self._eta

    def inverse(self) -> "LorentzTransformation":
        return LorentzTransformation(self.inverse_matrix(), self.c)

    def compose(self, other: "LorentzTransformation") -> "LorentzTransformation":
        """Transformation applying ``other`` first, then ``self``."""
        if other.c != self.c:
            raise ValueError("Cannot compose transformations with different speeds of light")
        return LorentzTransformation(self._matrix @ other._matrix, self.c)

    def is_lorentz(self, tolerance: float = 1e-10) -> bool:
        """Whether Λᵀ η Λ = η within ``tolerance``."""
        preserved = self._matrix.T @ self._eta @ self._matrix
        return bool(torch.all((preserved - self._eta).abs() <= tolerance))

    def apply_vector(self, vector: ArrayLike) -> torch.Tensor:
        """x'^μ = Λ^μ_ν x^ν."""
        return self._matrix @ as_float_tensor(vector).reshape(-1)

    def apply(self, tensor: Tensor) -> Tensor:
        """
        Transform a tensor of any rank: contravariant indices with Λ,
        covariant indices with Λ⁻¹.
        """
        return tensor.transform(self._matrix, self.inverse_matrix())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(c={self.c})"


class LorentzBoost(LorentzTransformation):
    """
    Pure boost with 3-velocity v.

    Λ^0_0 = γ,  Λ^0_i = -γ v_i/c²,  Λ^i_0 = -γ v_i,
    Λ^i_j = δ_ij + (γ - 1) v_i v_j / v²

    Args:
        velocity: 3-velocity (vx, vy, vz) of the moving frame
        c: Speed of light

    Raises:
        ValueError: If |v| >= c
    """

    def __init__(self, velocity: Sequence[float], c: float = 1.0):
        v = as_float_tensor(velocity).reshape(-1)
        if v.numel() != 3:
            raise StructureMismatchError(f"Boost velocity must have 3 components, got {v.numel()}")
        speed = float(torch.linalg.norm(v))
        gamma = lorentz_factor(speed, c)

        matrix = torch.eye(4, dtype=DTYPE)
        matrix[0, 0] = gamma
        matrix[0, 1:] = -gamma * v / (c * c)
        matrix[1:, 0] = -gamma * v
        if speed > 0:
            matrix[1:, 1:] += (gamma - 1) * torch.outer(v, v) / (speed * speed)

        super().__init__(matrix, c)
        self.velocity = v
        self.speed = speed
        self.gamma = gamma

    @property
    def beta(self) -> float:
        return self.speed / self.c

    @property
    def rapidity(self) -> float:
        return rapidity(self.speed, self.c)

    def inverse(self) -> "LorentzBoost":
        return LorentzBoost(-self.velocity, self.c)

    def __repr__(self) -> str:
        return f"LorentzBoost(velocity={self.velocity.tolist()}, c={self.c})"


def boost_x(speed: float, c: float = 1.0) -> LorentzBoost:
    return LorentzBoost([speed, 0.0, 0.0], c)


def boost_y(speed: float, c: float = 1.0) -> LorentzBoost:
    return LorentzBoost([0.0, speed, 0.0], c)


def boost_z(speed: float, c: float = 1.0) -> LorentzBoost:
    return LorentzBoost([0.0, 0.0, speed], c)
