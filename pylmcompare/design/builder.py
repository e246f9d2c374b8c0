"""
Design matrix builder.

Turns a ModelSpec plus a Dataset into the numeric matrix X a least-squares
fit runs on. The builder knows how to expand a model; the Dataset only
supplies columns.

Column layout:
    Intercept                      (unless spec.intercept is False)
    main effects                   in declared order
    interactions                   ordered by degree, stable within a degree

A numeric predictor contributes one column. A categorical predictor with k
levels contributes the k-1 columns of its resolved coding. An interaction
contributes the row-wise products of every combination of its constituents'
columns, the first constituent varying slowest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import product
from types import MappingProxyType
from typing import Any, Iterable, Mapping
import logging

import numpy as np
from numpy.typing import NDArray

from pylmcompare.core.dataset import Dataset
from pylmcompare.core.exceptions import (
    ValidationError,
    MissingValueError,
    ContrastError,
    MissingContrastError,
)
from pylmcompare.core.compute.tolerances import NumericTolerances, DEFAULT_TOLERANCES
from pylmcompare.core.compute.linalg.qr import qr_pivoted
from pylmcompare.design.contrasts import ContrastMatrix, resolve_coding
from pylmcompare.design.spec import ModelSpec, Term

logger = logging.getLogger(__name__)

INTERCEPT = 'Intercept'


@dataclass(frozen=True, eq=False)
class DesignMatrix:
    """
    Numeric design matrix with full provenance.

    Immutable after construction. The resolved codings travel with the
    matrix so that new rows (prediction grids, marginal means) are encoded
    exactly as the fitted rows were.

    Attributes:
        X: (n, p) float64 design matrix, read-only
        column_names: One name per column of X
        term_names: Term per column block, 'Intercept' first when present
        term_slices: term name -> slice of X's columns
        codings: factor name -> resolved ContrastMatrix
        numeric_means: numeric predictor -> sample mean of its column
        spec: The ModelSpec this design was built from
        rank: Numerical column rank of X
        aliased: Names of the columns a pivoted QR leaves beyond the rank
        tolerances: Rank cut-off used here and by derived designs
    """
    X: NDArray[np.floating[Any]]
    column_names: tuple[str, ...]
    term_names: tuple[str, ...]
    term_slices: Mapping[str, slice]
    codings: Mapping[str, ContrastMatrix]
    numeric_means: Mapping[str, float]
    spec: ModelSpec
    rank: int
    aliased: tuple[str, ...] = field(default_factory=tuple)
    tolerances: NumericTolerances = DEFAULT_TOLERANCES

    # === Properties ===

    @property
    def n(self) -> int:
        """Number of observations."""
        return self.X.shape[0]

    @property
    def p(self) -> int:
        """Number of columns."""
        return self.X.shape[1]

    @property
    def has_intercept(self) -> bool:
        return INTERCEPT in self.term_slices

    @property
    def is_full_rank(self) -> bool:
        return self.rank == self.p

    @property
    def aliased_columns(self) -> tuple[str, ...]:
        return self.aliased

    @property
    def term_df(self) -> dict[str, int]:
        """Number of columns contributed by each term."""
        return {
            name: sl.stop - sl.start for name, sl in self.term_slices.items()
        }

    def columns_of(self, term: str) -> tuple[str, ...]:
        """Column names belonging to one term ('a:b' and 'b:a' are the same term)."""
        key = self._resolve_term(term)
        return self.column_names[self.term_slices[key]]

    # === Derivation ===

    def drop_terms(self, names: Iterable[str]) -> DesignMatrix:
        """
        Nested design without the named terms.

        'Intercept' may be named to drop the intercept column. The remaining
        columns are taken from this design unchanged, so the result is
        nested in this design by construction.
        """
        names = [self._resolve_term(n) for n in names]
        unknown = [n for n in names if n not in self.term_slices]
        if unknown:
            raise ValidationError(
                f"Terms {unknown} not in design {list(self.term_names)}"
            )
        keep = [t for t in self.term_names if t not in names]
        return self._subset(keep)

    def keep_terms(self, names: Iterable[str]) -> DesignMatrix:
        """
        Nested design with only the named terms (plus the intercept, if any).
        """
        wanted = {self._resolve_term(n) for n in names}
        unknown = sorted(wanted - set(self.term_slices))
        if unknown:
            raise ValidationError(
                f"Terms {unknown} not in design {list(self.term_names)}"
            )
        keep = [t for t in self.term_names if t in wanted or t == INTERCEPT]
        return self._subset(keep)

    def _resolve_term(self, name: str) -> str:
        """Term name as laid out in this design, matching 'b:a' to 'a:b'."""
        if name in self.term_slices:
            return name
        key = frozenset(part.strip() for part in name.split(':'))
        for term in self.term_names:
            if frozenset(term.split(':')) == key:
                return term
        return name

    def _subset(self, keep: list[str]) -> DesignMatrix:
        if not keep:
            raise ValidationError("Derived design would have no columns")

        spec = self.spec
        dropped = [t for t in self.term_names if t not in keep and t != INTERCEPT]
        if dropped:
            spec = spec.drop(dropped)
        if INTERCEPT not in keep and spec.intercept:
            spec = spec.without_intercept()

        index: list[int] = []
        slices: dict[str, slice] = {}
        for name in keep:
            sl = self.term_slices[name]
            slices[name] = slice(len(index), len(index) + sl.stop - sl.start)
            index.extend(range(sl.start, sl.stop))

        used = set(spec.predictors)
        return _finish(
            X=self.X[:, index],
            column_names=tuple(self.column_names[i] for i in index),
            term_names=tuple(keep),
            term_slices=slices,
            codings={k: v for k, v in self.codings.items() if k in used},
            numeric_means={k: v for k, v in self.numeric_means.items() if k in used},
            spec=spec,
            tolerances=self.tolerances,
        )

    def encode(self, dataset: Dataset) -> NDArray[np.floating[Any]]:
        """
        Encode new rows with this design's codings.

        Categorical labels must be among the levels the design was built
        with; numeric predictors are taken as-is.

        Returns:
            (m, p) matrix with the same columns as X
        """
        blocks: dict[str, tuple[NDArray, list[str]]] = {}
        for factor in self.spec.predictors:
            _require_column(dataset, factor)
            col = dataset[factor]
            _require_complete(col)
            coding = self.codings.get(factor)
            if coding is None:
                if col.is_categorical:
                    raise ValidationError(
                        f"{factor}: categorical in new data but numeric in the design"
                    )
                blocks[factor] = (col.values.reshape(-1, 1), [factor])
                continue

            if not col.is_categorical:
                raise ValidationError(
                    f"{factor}: numeric in new data but categorical in the design"
                )
            index = {lev: i for i, lev in enumerate(coding.levels)}
            labels = col.labels()
            unknown = sorted({lab for lab in labels if lab not in index})
            if unknown:
                raise ValidationError(
                    f"{factor}: levels {unknown} were not present when the design "
                    f"was built (levels {list(coding.levels)})"
                )
            codes = np.array([index[lab] for lab in labels], dtype=np.intp)
            blocks[factor] = (coding.encode(codes), coding.column_names(factor))

        X, names, _, _ = _assemble(self.spec, blocks, dataset.n_observations)
        if tuple(names) != self.column_names:
            raise ValidationError(
                f"Encoded columns {names} differ from design columns "
                f"{list(self.column_names)}"
            )
        return X

    def __repr__(self) -> str:
        status = "full rank" if self.is_full_rank else f"rank {self.rank}, aliased {list(self.aliased)}"
        return (
            f"DesignMatrix({self.spec}, n={self.n}, p={self.p}, {status})"
        )


def build_design(
    spec: ModelSpec,
    dataset: Dataset,
    *,
    tolerances: NumericTolerances = DEFAULT_TOLERANCES,
) -> DesignMatrix:
    """
    Build the design matrix for `spec` over `dataset`.

    Args:
        spec: Structured model specification (codings carried by value)
        dataset: Read-only data; not modified
        tolerances: Rank cut-off used for the rank report

    Returns:
        DesignMatrix. Rank deficiency is reported in `rank` and `aliased`,
        not raised; fitting a rank-deficient design raises.

    Raises:
        ValidationError: A predictor is not a column of the dataset
        MissingValueError: A used column has tagged missing values
        MissingContrastError: A categorical predictor has no resolvable coding
        ContrastError: A coding matrix is invalid for the factor's levels, or
            a coding is attached to a numeric column
    """
    for factor in spec.predictors:
        _require_column(dataset, factor)

    for factor in spec.contrasts:
        if factor in dataset and not dataset[factor].is_categorical:
            raise ContrastError(
                f"{factor}: contrast coding given for a numeric column",
                factor=factor,
            )

    codings: dict[str, ContrastMatrix] = {}
    numeric_means: dict[str, float] = {}
    blocks: dict[str, tuple[NDArray, list[str]]] = {}

    for factor in spec.predictors:
        col = dataset[factor]
        _require_complete(col)
        if not col.is_categorical:
            numeric_means[factor] = float(np.mean(col.values)) if len(col) else 0.0
            blocks[factor] = (col.values.reshape(-1, 1), [factor])
            continue

        coding = spec.coding_for(factor)
        if coding is None:
            raise MissingContrastError(
                f"{factor}: categorical predictor has no contrast coding and the "
                f"spec has no default coding",
                factor=factor,
            )
        resolved = resolve_coding(coding, col.levels, factor)
        codings[factor] = resolved
        blocks[factor] = (resolved.encode(col.values), resolved.column_names(factor))

    X, names, term_names, slices = _assemble(spec, blocks, dataset.n_observations)
    design = _finish(
        X=X,
        column_names=tuple(names),
        term_names=tuple(term_names),
        term_slices=slices,
        codings=codings,
        numeric_means=numeric_means,
        spec=spec,
        tolerances=tolerances,
    )
    logger.debug(
        "Built design for %s: n=%d p=%d rank=%d", spec, design.n, design.p, design.rank,
    )
    return design


def extract_response(dataset: Dataset, name: str) -> NDArray[np.floating[Any]]:
    """
    Numeric response vector from a dataset column.

    Raises:
        ValidationError: Column absent or categorical
        MissingValueError: Column has tagged missing values
    """
    _require_column(dataset, name)
    col = dataset[name]
    if col.is_categorical:
        raise ValidationError(f"Response {name!r} is categorical; a numeric column is required")
    _require_complete(col)
    return col.values


# === Internals ===

def _assemble(
    spec: ModelSpec,
    blocks: Mapping[str, tuple[NDArray, list[str]]],
    n: int,
) -> tuple[NDArray[np.floating[Any]], list[str], list[str], dict[str, slice]]:
    """Lay out intercept, main effects, interactions; returns X and its bookkeeping."""
    matrices: list[NDArray] = []
    names: list[str] = []
    term_names: list[str] = []
    slices: dict[str, slice] = {}

    def append(term_name: str, matrix: NDArray, column_names: list[str]) -> None:
        start = len(names)
        matrices.append(matrix)
        names.extend(column_names)
        term_names.append(term_name)
        slices[term_name] = slice(start, len(names))

    if spec.intercept:
        append(INTERCEPT, np.ones((n, 1)), [INTERCEPT])

    for term in spec.ordered_terms():
        matrix, column_names = _term_columns(term, blocks, n)
        append(term.name, matrix, column_names)

    X = np.hstack(matrices) if matrices else np.zeros((n, 0))
    return np.ascontiguousarray(X, dtype=np.float64), names, term_names, slices


def _term_columns(
    term: Term,
    blocks: Mapping[str, tuple[NDArray, list[str]]],
    n: int,
) -> tuple[NDArray, list[str]]:
    matrix, names = blocks[term.factors[0]]
    matrix = np.asarray(matrix, dtype=np.float64)
    names = list(names)
    for factor in term.factors[1:]:
        other, other_names = blocks[factor]
        matrix = (matrix[:, :, None] * other[:, None, :]).reshape(n, -1)
        names = [f"{a}:{b}" for a, b in product(names, other_names)]
    return matrix, names


def _finish(
    *,
    X: NDArray,
    column_names: tuple[str, ...],
    term_names: tuple[str, ...],
    term_slices: dict[str, slice],
    codings: dict[str, ContrastMatrix],
    numeric_means: dict[str, float],
    spec: ModelSpec,
    tolerances: NumericTolerances,
) -> DesignMatrix:
    X = np.array(X, dtype=np.float64, copy=True)
    X.setflags(write=False)
    qr = qr_pivoted(X, tolerances)
    return DesignMatrix(
        X=X,
        column_names=column_names,
        term_names=term_names,
        term_slices=MappingProxyType(term_slices),
        codings=MappingProxyType(codings),
        numeric_means=MappingProxyType(numeric_means),
        spec=spec,
        rank=qr.rank,
        aliased=tuple(column_names[i] for i in qr.aliased),
        tolerances=tolerances,
    )


def _require_column(dataset: Dataset, name: str) -> None:
    if name not in dataset:
        raise ValidationError(
            f"Column {name!r} not in dataset; available: {list(dataset.names)}"
        )


def _require_complete(col) -> None:
    if col.n_missing:
        raise MissingValueError(
            f"{col.name}: {col.n_missing} missing values; "
            f"call Dataset.dropna() before building the model",
            column=col.name,
            n_missing=col.n_missing,
        )


__all__ = ['DesignMatrix', 'build_design', 'extract_response', 'INTERCEPT']
