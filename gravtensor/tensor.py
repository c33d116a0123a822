"""
Arbitrary-rank tensors with per-index variance.

This module implements the algebraic layer used by the metric and curvature
modules:
- Tensor construction with explicit covariant/contravariant index tags
- Element-wise arithmetic, outer products and contractions
- Index raising/lowering with a metric
- Coordinate transformations with a Jacobian
- (Anti)symmetrization and symmetry predicates
- Builders for common tensors (Kronecker delta, Levi-Civita symbol, metrics)

Components are stored as a flat float64 ``torch.Tensor`` in row-major order.
All algebraic operations are implemented with PyTorch tensor primitives
(``tensordot``, ``diagonal``, ``einsum``) instead of explicit Python loops.

Numerical Conventions:
---------------------
1. Tensors are value-like: every operation returns a fresh tensor and never
   mutates its operands. Only ``set`` writes into an existing tensor.

2. Variance is never inferred. Every index carries an ``IndexType`` tag and
   every operation validates the tags it depends on.

3. Floating point comparisons (``equals``, ``is_symmetric``) always take an
   explicit tolerance.
"""

import itertools
import math
import warnings
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import torch

DTYPE = torch.float64

GREEK_LABELS = ("μ", "ν", "ρ", "σ", "τ", "λ", "κ", "α", "β", "γ")

ArrayLike = Union[Sequence[float], Sequence[Sequence[float]], np.ndarray, torch.Tensor]


class TensorError(Exception):
    """Base exception for tensor algebra errors."""
    pass


class StructureMismatchError(TensorError, ValueError):
    """Raised when rank, dimensions or index variance are inconsistent."""
    pass


class IndexOutOfRangeError(TensorError, IndexError):
    """Raised when a multi-index or index position is outside the tensor bounds."""
    pass


class VarianceError(TensorError):
    """Raised when an index operation is applied to an index of the wrong variance."""
    pass


class IndexType(Enum):
    """Variance of a single tensor index."""

    COVARIANT = "covariant"
    CONTRAVARIANT = "contravariant"

    @property
    def opposite(self) -> "IndexType":
        if self is IndexType.COVARIANT:
            return IndexType.CONTRAVARIANT
        return IndexType.COVARIANT


def as_float_tensor(values: ArrayLike) -> torch.Tensor:
    """Copy array-like input into a float64 torch tensor."""
    return torch.as_tensor(values, dtype=DTYPE).clone()


class Tensor:
    """
    General tensor of arbitrary rank with covariant and contravariant indices.

    A tensor T with indices (i, j, k, ...) stores components T^{ij...}_{kl...}
    where upper indices are contravariant and lower indices are covariant.

    Args:
        dimensions: Range of each index
        index_types: ``IndexType`` of each index
        components: Optional initial components (row-major, any shape with
            ``prod(dimensions)`` elements); zeros if omitted
        labels: Optional index labels, Greek letters by default
        rank: Optional declared rank, checked against ``dimensions``

    Raises:
        StructureMismatchError: If the declared structure is inconsistent

    Example:
    --------
    ```python
    g = Tensor([2, 2], [IndexType.COVARIANT] * 2, [[-1.0, 0.0], [0.0, 1.0]])
    g.contract(0, 1).get()  # trace of the matrix: 0.0
    ```
    """

    def __init__(
        self,
        dimensions: Sequence[int],
        index_types: Sequence[IndexType],
        components: Optional[ArrayLike] = None,
        labels: Optional[Sequence[str]] = None,
        rank: Optional[int] = None
    ):
        dimensions = tuple(int(d) for d in dimensions)
        index_types = tuple(index_types)

        if rank is not None and rank != len(dimensions):
            raise StructureMismatchError(
                f"Dimensions length ({len(dimensions)}) must equal rank ({rank})"
            )
        if len(index_types) != len(dimensions):
            raise StructureMismatchError(
                f"Index types length ({len(index_types)}) must equal rank ({len(dimensions)})"
            )
        for position, index_type in enumerate(index_types):
            if not isinstance(index_type, IndexType):
                raise StructureMismatchError(
                    f"Index {position} has variance {index_type!r}, expected an IndexType"
                )
        if any(d < 1 for d in dimensions):
            raise StructureMismatchError(f"Dimensions must be positive, got {dimensions}")

        if labels is None:
            labels = tuple(GREEK_LABELS[i % len(GREEK_LABELS)] for i in range(len(dimensions)))
        labels = tuple(labels)
        if len(labels) != len(dimensions):
            raise StructureMismatchError(
                f"Labels length ({len(labels)}) must equal rank ({len(dimensions)})"
            )

        self.rank = len(dimensions)
        self.dimensions = dimensions
        self.index_types = index_types
        self.labels = labels
        self.strides = self._compute_strides()

        size = math.prod(dimensions)
        if components is None:
            self._components = torch.zeros(size, dtype=DTYPE)
        else:
            flat = as_float_tensor(components).reshape(-1)
            if flat.numel() != size:
                raise StructureMismatchError(
                    f"Components length ({flat.numel()}) must equal total size ({size})"
                )
            self._components = flat

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _compute_strides(self) -> Tuple[int, ...]:
        strides = [1] * self.rank
        stride = 1
        for i in range(self.rank - 1, -1, -1):
            strides[i] = stride
            stride *= self.dimensions[i]
        return tuple(strides)

    def flat_index(self, indices: Sequence[int]) -> int:
        """
        Convert a multi-index to a position in the flat component array.

        Raises:
            IndexOutOfRangeError: If the multi-index has the wrong length or
                any entry is outside ``[0, dimension)``
        """
        if len(indices) != self.rank:
            raise IndexOutOfRangeError(f"Expected {self.rank} indices, got {len(indices)}")
        flat = 0
        for position, (index, dim) in enumerate(zip(indices, self.dimensions)):
            if not 0 <= index < dim:
                raise IndexOutOfRangeError(
                    f"Index {index} out of bounds for position {position} (max: {dim - 1})"
                )
            flat += index * self.strides[position]
        return flat

    def multi_index(self, flat: int) -> Tuple[int, ...]:
        """Convert a flat position back to a multi-index."""
        if not 0 <= flat < self.size:
            raise IndexOutOfRangeError(f"Flat index {flat} out of bounds (size: {self.size})")
        indices = []
        for stride in self.strides:
            indices.append(flat // stride)
            flat %= stride
        return tuple(indices)

    def get(self, *indices: int) -> float:
        """Get the component at the given multi-index."""
        return float(self._components[self.flat_index(indices)])

    def set(self, value: float, *indices: int) -> None:
        """Set the component at the given multi-index."""
        self._components[self.flat_index(indices)] = float(value)

    def _check_position(self, position: int) -> None:
        if not 0 <= position < self.rank:
            raise IndexOutOfRangeError(
                f"Index position {position} out of bounds for rank {self.rank}"
            )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return self._components.numel()

    @property
    def components(self) -> torch.Tensor:
        """Flat copy of the components in row-major order."""
        return self._components.clone()

    @property
    def _array(self) -> torch.Tensor:
        return self._components.view(self.dimensions)

    @property
    def tensor_type(self) -> Tuple[int, int]:
        """Type (p, q): number of contravariant and covariant indices."""
        upper = sum(1 for t in self.index_types if t is IndexType.CONTRAVARIANT)
        return upper, self.rank - upper

    def to_torch(self) -> torch.Tensor:
        """Copy of the components shaped as ``dimensions``."""
        return self._array.clone()

    def to_numpy(self) -> np.ndarray:
        return self._array.detach().cpu().numpy().copy()

    def item(self) -> float:
        """Value of a rank-0 tensor."""
        if self.rank != 0:
            raise StructureMismatchError(f"item() requires a scalar, got rank {self.rank}")
        return float(self._components[0])

    @classmethod
    def _from_array(
        cls,
        array: torch.Tensor,
        index_types: Sequence[IndexType],
        labels: Optional[Sequence[str]] = None
    ) -> "Tensor":
        return cls(tuple(array.shape), index_types, array, labels)

    def _same_structure(self, other: "Tensor") -> bool:
        return (
            self.dimensions == other.dimensions
            and self.index_types == other.index_types
        )

    def _validate_same_structure(self, other: "Tensor") -> None:
        if self.rank != other.rank:
            raise StructureMismatchError(f"Rank mismatch: {self.rank} vs {other.rank}")
        for i in range(self.rank):
            if self.dimensions[i] != other.dimensions[i]:
                raise StructureMismatchError(f"Dimension mismatch at index {i}")
            if self.index_types[i] is not other.index_types[i]:
                raise StructureMismatchError(f"Index type mismatch at index {i}")

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def add(self, other: "Tensor") -> "Tensor":
        self._validate_same_structure(other)
        return Tensor(self.dimensions, self.index_types,
                      self._components + other._components, self.labels)

    def subtract(self, other: "Tensor") -> "Tensor":
        self._validate_same_structure(other)
        return Tensor(self.dimensions, self.index_types,
                      self._components - other._components, self.labels)

    def scale(self, scalar: float) -> "Tensor":
        return Tensor(self.dimensions, self.index_types,
                      self._components * float(scalar), self.labels)

    def __add__(self, other: "Tensor") -> "Tensor":
        return self.add(other)

    def __sub__(self, other: "Tensor") -> "Tensor":
        return self.subtract(other)

    def __mul__(self, scalar: float) -> "Tensor":
        if isinstance(scalar, Tensor):
            return NotImplemented
        return self.scale(scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Tensor":
        return self.scale(-1.0)

    def tensor_product(self, other: "Tensor") -> "Tensor":
        """
        Outer product T ⊗ S.

        The result has rank ``self.rank + other.rank`` with dimensions, index
        types and labels concatenated.
        """
        components = torch.outer(self._components, other._components)
        return Tensor(
            self.dimensions + other.dimensions,
            self.index_types + other.index_types,
            components,
            self.labels + other.labels
        )

    def contract(self, index1: int, index2: int) -> "Tensor":
        """
        Contract the tensor over two indices.

        For T^{...i...}_{...j...}, contraction over i and j gives a tensor of
        rank r-2 with components Σ_k T^{...k...}_{...k...}. Contracting a
        rank-2 tensor gives a scalar (rank-0 tensor).

        Raises:
            IndexOutOfRangeError: If either position is out of range
            StructureMismatchError: If the positions coincide or their
                dimensions differ
        """
        self._check_position(index1)
        self._check_position(index2)
        if index1 == index2:
            raise StructureMismatchError("Cannot contract an index with itself")
        if self.dimensions[index1] != self.dimensions[index2]:
            raise StructureMismatchError(
                f"Contracted indices must have the same dimension "
                f"({self.dimensions[index1]} vs {self.dimensions[index2]})"
            )
        if self.index_types[index1] is self.index_types[index2]:
            warnings.warn(
                f"Contracting two {self.index_types[index1].value} indices "
                f"({index1}, {index2}) is non-standard",
                stacklevel=2,
            )

        contracted = torch.diagonal(self._array, dim1=index1, dim2=index2).sum(dim=-1)
        keep = [k for k in range(self.rank) if k not in (index1, index2)]
        return Tensor._from_array(
            contracted,
            [self.index_types[k] for k in keep],
            [self.labels[k] for k in keep]
        )

    def contract_all(self, other: "Tensor") -> float:
        """
        Fully contract with another tensor of the same dimensions.

        Computes Σ T^{ab...} S_{ab...}; used for invariants such as the
        Kretschmann scalar. Index positions are paired in order.
        """
        if self.dimensions != other.dimensions:
            raise StructureMismatchError(
                f"Full contraction requires equal dimensions ({self.dimensions} vs {other.dimensions})"
            )
        same = [k for k in range(self.rank) if self.index_types[k] is other.index_types[k]]
        if same:
            warnings.warn(
                f"Full contraction pairs indices of the same variance at positions {same}",
                stacklevel=2,
            )
        return float(torch.dot(self._components, other._components))

    def _check_metric(self, metric: "Tensor", variance: IndexType, dim: int) -> None:
        if metric.rank != 2 or metric.index_types != (variance, variance):
            raise VarianceError(
                f"Metric must be a rank-2 {variance.value} tensor, got "
                f"rank {metric.rank} with {[t.value for t in metric.index_types]}"
            )
        if metric.dimensions != (dim, dim):
            raise StructureMismatchError(
                f"Metric dimensions {metric.dimensions} do not match index dimension {dim}"
            )

    def _apply_metric(self, index: int, metric: "Tensor") -> "Tensor":
        moved = torch.tensordot(metric._array, self._array, dims=([1], [index]))
        index_types = list(self.index_types)
        index_types[index] = index_types[index].opposite
        return Tensor._from_array(torch.movedim(moved, 0, index), index_types, self.labels)

    def raise_index(self, index: int, inverse_metric: "Tensor") -> "Tensor":
        """
        Raise a covariant index: T^{...μ...} = g^{μν} T_{...ν...}.

        Args:
            index: Position of the covariant index
            inverse_metric: Rank-2 contravariant tensor g^{μν}

        Raises:
            VarianceError: If the index is already contravariant or the metric
                is not rank-2 contravariant
        """
        self._check_position(index)
        if self.index_types[index] is not IndexType.COVARIANT:
            raise VarianceError(f"Can only raise covariant indices (index {index} is contravariant)")
        self._check_metric(inverse_metric, IndexType.CONTRAVARIANT, self.dimensions[index])
        return self._apply_metric(index, inverse_metric)

    def lower_index(self, index: int, metric: "Tensor") -> "Tensor":
        """
        Lower a contravariant index: T_{...μ...} = g_{μν} T^{...ν...}.

        Args:
            index: Position of the contravariant index
            metric: Rank-2 covariant tensor g_{μν}

        Raises:
            VarianceError: If the index is already covariant or the metric is
                not rank-2 covariant
        """
        self._check_position(index)
        if self.index_types[index] is not IndexType.CONTRAVARIANT:
            raise VarianceError(f"Can only lower contravariant indices (index {index} is covariant)")
        self._check_metric(metric, IndexType.COVARIANT, self.dimensions[index])
        return self._apply_metric(index, metric)

    def transform(self, jacobian: ArrayLike, inverse_jacobian: ArrayLike) -> "Tensor":
        """
        Re-express the tensor under a coordinate change x → x'.

        Contravariant indices transform with the Jacobian ∂x'/∂x and covariant
        indices with the inverse Jacobian ∂x/∂x':

            T'^μ = (∂x'^μ/∂x^ν) T^ν,    T'_μ = (∂x^ν/∂x'^μ) T_ν

        Args:
            jacobian: Matrix J[μ][ν] = ∂x'^μ/∂x^ν
            inverse_jacobian: Matrix J⁻¹[ν][μ] = ∂x^ν/∂x'^μ

        Returns:
            Transformed tensor with the same structure

        Performance Note:
        -----------------
        Each index is transformed in turn with one ``tensordot``, so the cost
        is O(rank · n^{rank+1}) rather than the O(n^{2·rank}) of summing every
        old multi-index into every new one. It still grows exponentially with
        rank; batch calls at the integration boundary accordingly.
        """
        J = as_float_tensor(jacobian)
        J_inv = as_float_tensor(inverse_jacobian)
        if J.dim() != 2 or J.shape[0] != J.shape[1] or J_inv.shape != J.shape:
            raise StructureMismatchError(
                f"Jacobian and inverse Jacobian must be square matrices of the same size, "
                f"got {tuple(J.shape)} and {tuple(J_inv.shape)}"
            )
        dim = J.shape[0]
        if any(d != dim for d in self.dimensions):
            raise StructureMismatchError(
                f"Transformation dimension {dim} must match tensor dimensions {self.dimensions}"
            )

        array = self._array
        for position, index_type in enumerate(self.index_types):
            matrix = J if index_type is IndexType.CONTRAVARIANT else J_inv.T
            array = torch.movedim(torch.tensordot(matrix, array, dims=([1], [position])), 0, position)
        return Tensor._from_array(array, self.index_types, self.labels)

    def _check_pair(self, index1: int, index2: int, operation: str) -> None:
        self._check_position(index1)
        self._check_position(index2)
        if self.dimensions[index1] != self.dimensions[index2]:
            raise StructureMismatchError(f"{operation} indices must have the same dimension")
        if self.index_types[index1] is not self.index_types[index2]:
            raise StructureMismatchError(f"{operation} indices must have the same type")

    def symmetrize(self, index1: int, index2: int) -> "Tensor":
        """Return ½(T_{...ij...} + T_{...ji...})."""
        self._check_pair(index1, index2, "Symmetrized")
        array = 0.5 * (self._array + self._array.transpose(index1, index2))
        return Tensor._from_array(array, self.index_types, self.labels)

    def antisymmetrize(self, index1: int, index2: int) -> "Tensor":
        """Return ½(T_{...ij...} - T_{...ji...})."""
        self._check_pair(index1, index2, "Antisymmetrized")
        array = 0.5 * (self._array - self._array.transpose(index1, index2))
        return Tensor._from_array(array, self.index_types, self.labels)

    def is_symmetric(self, index1: int, index2: int, tolerance: float = 1e-10) -> bool:
        self._check_position(index1)
        self._check_position(index2)
        if self.dimensions[index1] != self.dimensions[index2]:
            return False
        diff = self._array - self._array.transpose(index1, index2)
        return bool(torch.all(diff.abs() <= tolerance))

    def is_antisymmetric(self, index1: int, index2: int, tolerance: float = 1e-10) -> bool:
        self._check_position(index1)
        self._check_position(index2)
        if self.dimensions[index1] != self.dimensions[index2]:
            return False
        total = self._array + self._array.transpose(index1, index2)
        return bool(torch.all(total.abs() <= tolerance))

    def trace(self) -> float:
        """
        Contraction of the first and last index.

        For rank > 2 the remaining components of the contraction are summed.
        """
        if self.rank < 2:
            raise StructureMismatchError("Trace requires rank >= 2")
        if self.dimensions[0] != self.dimensions[-1]:
            raise StructureMismatchError("First and last dimensions must match for trace")
        return float(torch.diagonal(self._array, dim1=0, dim2=self.rank - 1).sum())

    # ------------------------------------------------------------------
    # Comparison and serialization
    # ------------------------------------------------------------------

    def equals(self, other: "Tensor", tolerance: float = 1e-10) -> bool:
        """Structural equality plus component-wise closeness within ``tolerance``."""
        if not self._same_structure(other):
            return False
        return bool(torch.all((self._components - other._components).abs() <= tolerance))

    def max_abs(self) -> float:
        """Largest absolute component, handy for tolerance checks."""
        return float(self._components.abs().max())

    def clone(self) -> "Tensor":
        return Tensor(self.dimensions, self.index_types, self._components, self.labels)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-Python representation, inverse of ``Tensor.from_dict``."""
        return {
            "rank": self.rank,
            "dimensions": list(self.dimensions),
            "index_types": [t.value for t in self.index_types],
            "labels": list(self.labels),
            "components": self._components.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tensor":
        try:
            index_types = [IndexType(value) for value in data["index_types"]]
        except ValueError as e:
            raise StructureMismatchError(f"Unknown index variance: {e}") from e
        return cls(
            data["dimensions"],
            index_types,
            data["components"],
            data.get("labels"),
            rank=data.get("rank")
        )

    def __repr__(self) -> str:
        upper, lower = self.tensor_type
        shape = "×".join(str(d) for d in self.dimensions) or "scalar"
        return f"Tensor({upper},{lower})[{shape}]"


# ============================================================================
# Builders
# ============================================================================


def zeros(dimensions: Sequence[int], index_types: Sequence[IndexType]) -> Tensor:
    """Zero tensor with the given structure."""
    return Tensor(dimensions, index_types)


def scalar(value: float) -> Tensor:
    """Rank-0 tensor holding a single value."""
    return Tensor([], [], [value])


def kronecker_delta(dim: int) -> Tensor:
    """Kronecker delta δ^μ_ν (type (1,1) identity)."""
    return Tensor(
        [dim, dim],
        [IndexType.CONTRAVARIANT, IndexType.COVARIANT],
        torch.eye(dim, dtype=DTYPE)
    )


def _permutation_sign(indices: Tuple[int, ...]) -> int:
    if len(set(indices)) != len(indices):
        return 0
    inversions = sum(1 for a, b in itertools.combinations(indices, 2) if a > b)
    return -1 if inversions % 2 else 1


def levi_civita(dim: int, rank: Optional[int] = None) -> Tensor:
    """
    Levi-Civita symbol ε_{μν...}, totally antisymmetric with ε_{01...} = +1.

    Every one of the ``dim**rank`` index tuples is enumerated and assigned the
    parity of its inversion count, or 0 when an index repeats.

    Args:
        dim: Range of each index
        rank: Number of indices (defaults to ``dim``)
    """
    if rank is None:
        rank = dim
    components = [
        _permutation_sign(indices)
        for indices in itertools.product(range(dim), repeat=rank)
    ]
    return Tensor([dim] * rank, [IndexType.COVARIANT] * rank, components)


def metric_from_matrix(matrix: ArrayLike, covariant: bool = True) -> Tensor:
    """Rank-2 metric tensor g_{μν} (or g^{μν} when ``covariant`` is False)."""
    array = as_float_tensor(matrix)
    if array.dim() != 2 or array.shape[0] != array.shape[1]:
        raise StructureMismatchError(f"Metric matrix must be square, got shape {tuple(array.shape)}")
    index_type = IndexType.COVARIANT if covariant else IndexType.CONTRAVARIANT
    return Tensor(tuple(array.shape), [index_type, index_type], array)


def from_matrix(matrix: ArrayLike, index_types: Tuple[IndexType, IndexType]) -> Tensor:
    """Rank-2 tensor from a (possibly rectangular) matrix."""
    array = as_float_tensor(matrix)
    if array.dim() != 2:
        raise StructureMismatchError(f"Expected a matrix, got shape {tuple(array.shape)}")
    return Tensor(tuple(array.shape), index_types, array)


def vector(components: ArrayLike, contravariant: bool = True) -> Tensor:
    """Rank-1 tensor from its components."""
    array = as_float_tensor(components).reshape(-1)
    index_type = IndexType.CONTRAVARIANT if contravariant else IndexType.COVARIANT
    return Tensor([array.numel()], [index_type], array)


def euclidean_metric(dim: int) -> Tensor:
    """Euclidean metric δ_{ij}."""
    return metric_from_matrix(torch.eye(dim, dtype=DTYPE))
