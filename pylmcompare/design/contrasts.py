"""
Contrast codings for categorical predictors.

A coding turns a factor with k levels into k-1 numeric columns. Codings are
small frozen value objects carried inside a ModelSpec; resolving one against
the factor's observed levels yields a ContrastMatrix (k x k-1) whose rows
are indexed by level codes.

Available codings:
    Treatment(reference=None)   dummy indicators, reference level dropped
                                (default reference: the first level)
    Sum()                       sum-to-zero; the last level gets -1 everywhere
    Helmert()                   each level against the mean of earlier levels
    Poly(scores=None)           orthonormal polynomial trends for ordered levels
    Custom(matrix, labels)      any k x (k-1) full-column-rank matrix
    Hypothesis(weights)         coding whose coefficients estimate the given
                                hypothesis weight rows (generalized inverse)

Strings 'treatment', 'sum' (alias 'deviation'), 'helmert' and 'poly' resolve
to the default instance of the corresponding coding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylmcompare.core.exceptions import ContrastError, MissingContrastError


@dataclass(frozen=True, eq=False)
class ContrastMatrix:
    """
    A coding resolved against concrete levels.

    Attributes:
        levels: Level labels, one per matrix row
        matrix: (k, k-1) float64 coding matrix
        labels: Column-name suffixes, one per matrix column
        coding: Name of the coding that produced this matrix
    """
    levels: tuple[str, ...]
    matrix: NDArray[np.floating[Any]]
    labels: tuple[str, ...]
    coding: str

    def __post_init__(self):
        k = len(self.levels)
        if k < 2:
            raise ContrastError(
                f"contrast coding needs at least 2 levels, got {k}: {list(self.levels)}"
            )
        if self.matrix.shape != (k, k - 1):
            raise ContrastError(
                f"{self.coding} contrast matrix must be {k} x {k - 1} for levels "
                f"{list(self.levels)}, got {self.matrix.shape[0]} x "
                f"{self.matrix.shape[1] if self.matrix.ndim == 2 else 0}"
            )
        if not np.all(np.isfinite(self.matrix)):
            raise ContrastError(f"{self.coding} contrast matrix contains non-finite values")
        rank = int(np.linalg.matrix_rank(self.matrix))
        if rank < k - 1:
            raise ContrastError(
                f"{self.coding} contrast columns are linearly dependent "
                f"(rank {rank}, need {k - 1})"
            )
        if len(self.labels) != k - 1:
            raise ContrastError(
                f"{self.coding}: expected {k - 1} column labels, got {len(self.labels)}"
            )

    @property
    def n_columns(self) -> int:
        return len(self.levels) - 1

    def encode(self, codes: NDArray[np.intp]) -> NDArray[np.floating[Any]]:
        """Rows of the coding matrix for each level code (n x k-1)."""
        return self.matrix[codes]

    def column_names(self, factor: str) -> list[str]:
        return [f"{factor}{label}" for label in self.labels]


def _checked(levels: Sequence[str], matrix: NDArray, labels: Sequence[str], coding: str) -> ContrastMatrix:
    return ContrastMatrix(
        levels=tuple(levels),
        matrix=np.asarray(matrix, dtype=np.float64),
        labels=tuple(labels),
        coding=coding,
    )


@dataclass(frozen=True)
class Treatment:
    """Dummy coding against a reference level (first level by default)."""
    reference: str | None = None
    name = 'treatment'

    def resolve(self, levels: Sequence[str]) -> ContrastMatrix:
        levels = list(levels)
        if self.reference is None:
            ref = 0
        else:
            if str(self.reference) not in levels:
                raise ContrastError(
                    f"treatment reference {self.reference!r} not among levels {levels}"
                )
            ref = levels.index(str(self.reference))
        keep = [i for i in range(len(levels)) if i != ref]
        matrix = np.eye(len(levels))[:, keep]
        return _checked(levels, matrix, [f"[T.{levels[i]}]" for i in keep], self.name)


@dataclass(frozen=True)
class Sum:
    """Sum-to-zero (deviation) coding; the last level is coded -1."""
    name = 'sum'

    def resolve(self, levels: Sequence[str]) -> ContrastMatrix:
        levels = list(levels)
        k = len(levels)
        matrix = np.zeros((k, max(k - 1, 0)))
        matrix[:k - 1, :] = np.eye(k - 1)
        matrix[k - 1, :] = -1.0
        return _checked(levels, matrix, [f"[S.{lev}]" for lev in levels[:-1]], self.name)


@dataclass(frozen=True)
class Helmert:
    """Helmert coding: level j+1 against the mean of levels 1..j."""
    name = 'helmert'

    def resolve(self, levels: Sequence[str]) -> ContrastMatrix:
        levels = list(levels)
        k = len(levels)
        matrix = np.zeros((k, max(k - 1, 0)))
        for j in range(k - 1):
            matrix[:j + 1, j] = -1.0
            matrix[j + 1, j] = float(j + 1)
        return _checked(levels, matrix, [f"[H.{lev}]" for lev in levels[1:]], self.name)


@dataclass(frozen=True)
class Poly:
    """
    Orthonormal polynomial coding for ordered levels.

    Columns are the linear, quadratic, cubic, ... trends evaluated at
    `scores` (default 1..k), orthogonal to the constant and to each other,
    each with unit norm.
    """
    scores: tuple[float, ...] | None = None
    name = 'poly'

    def resolve(self, levels: Sequence[str]) -> ContrastMatrix:
        levels = list(levels)
        k = len(levels)
        if self.scores is None:
            x = np.arange(1, k + 1, dtype=np.float64)
        else:
            x = np.asarray(self.scores, dtype=np.float64)
            if x.shape != (k,):
                raise ContrastError(
                    f"poly scores must have one value per level ({k}), got {x.shape}"
                )
            if len(np.unique(x)) != k:
                raise ContrastError("poly scores must be distinct")
        if k < 2:
            return _checked(levels, np.zeros((k, 0)), [], self.name)

        centered = x - x.mean()
        vander = np.vander(centered, k, increasing=True)
        Q, R = np.linalg.qr(vander)
        raw = Q * np.diag(R)
        Z = raw / np.linalg.norm(raw, axis=0)
        return _checked(levels, Z[:, 1:], _poly_labels(k - 1), self.name)


@dataclass(frozen=True, eq=False)
class Custom:
    """User-supplied k x (k-1) coding matrix."""
    matrix: Any
    labels: tuple[str, ...] | None = None
    name = 'custom'

    def resolve(self, levels: Sequence[str]) -> ContrastMatrix:
        matrix = np.asarray(self.matrix, dtype=np.float64)
        if matrix.ndim == 1:
            matrix = matrix.reshape(-1, 1)
        labels = self.labels
        if labels is None:
            labels = tuple(f"[C.{j + 1}]" for j in range(matrix.shape[1]))
        else:
            labels = tuple(f"[{lab}]" for lab in labels)
        return _checked(levels, matrix, labels, self.name)


@dataclass(frozen=True, eq=False)
class Hypothesis:
    """
    Coding derived from hypothesis weights over the levels.

    Each row of `weights` (k-1 rows, k entries, each row summing to zero)
    states a comparison of level means. The resulting coding makes the
    fitted coefficient for row j equal to that weighted combination of cell
    means, the intercept equal to the unweighted grand mean.

    `weights` may be a mapping {label: row} or a (k-1) x k array.
    """
    weights: Any
    name = 'hypothesis'

    def resolve(self, levels: Sequence[str]) -> ContrastMatrix:
        levels = list(levels)
        k = len(levels)
        if isinstance(self.weights, Mapping):
            labels = [f"[{key}]" for key in self.weights]
            H = np.array([np.asarray(row, dtype=np.float64) for row in self.weights.values()])
        else:
            H = np.atleast_2d(np.asarray(self.weights, dtype=np.float64))
            labels = [f"[H.{j + 1}]" for j in range(H.shape[0])]

        if H.shape != (k - 1, k):
            raise ContrastError(
                f"hypothesis weights must be {k - 1} x {k} for levels {levels}, got "
                f"{H.shape[0]} x {H.shape[1]}"
            )
        sums = H.sum(axis=1)
        if not np.allclose(sums, 0.0, atol=1e-12):
            raise ContrastError(
                f"each hypothesis row must sum to zero, got row sums {sums.tolist()}"
            )

        full = np.vstack([np.full(k, 1.0 / k), H])
        try:
            inverse = np.linalg.inv(full)
        except np.linalg.LinAlgError as e:
            raise ContrastError(f"hypothesis rows are linearly dependent: {e}") from e
        return _checked(levels, inverse[:, 1:], labels, self.name)


Coding = Union[Treatment, Sum, Helmert, Poly, Custom, Hypothesis]
CodingLike = Union[str, Coding, ContrastMatrix, ArrayLike]

CODINGS: dict[str, Coding] = {
    'treatment': Treatment(),
    'sum': Sum(),
    'deviation': Sum(),
    'helmert': Helmert(),
    'poly': Poly(),
}


def resolve_coding(coding: CodingLike, levels: Sequence[str], factor: str) -> ContrastMatrix:
    """
    Resolve any accepted coding form against a factor's levels.

    Args:
        coding: Coding name, coding object, ContrastMatrix, or a raw matrix
        levels: The factor's level labels, in order
        factor: Factor name (for error messages)

    Raises:
        MissingContrastError: Unknown coding name
        ContrastError: Coding cannot be resolved to a valid matrix
    """
    if isinstance(coding, str):
        if coding not in CODINGS:
            raise MissingContrastError(
                f"{factor}: unknown contrast coding {coding!r}; "
                f"use one of {sorted(CODINGS)} or a coding object",
                factor=factor,
            )
        coding = CODINGS[coding]

    try:
        if isinstance(coding, ContrastMatrix):
            if tuple(coding.levels) != tuple(levels):
                raise ContrastError(
                    f"contrast matrix levels {list(coding.levels)} do not match "
                    f"factor levels {list(levels)}"
                )
            return coding
        if hasattr(coding, 'resolve'):
            return coding.resolve(levels)
        return Custom(coding).resolve(levels)
    except ContrastError as e:
        raise ContrastError(f"{factor}: {e}", factor=factor) from e


def _poly_labels(n: int) -> list[str]:
    named = ['.L', '.Q', '.C']
    return [named[i] if i < 3 else f"^{i + 1}" for i in range(n)]
