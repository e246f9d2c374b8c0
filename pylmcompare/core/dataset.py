"""
Dataset: the read-only table a model is built from.

A Dataset is an ordered collection of named, equal-length columns. Each
column is either numeric (float64 values) or categorical (integer codes
into an ordered tuple of level labels). Missing entries are tagged in an
explicit boolean mask and are never filled, coerced or dropped behind the
caller's back; Dataset.dropna() is the only way rows are removed.

Usage:
    from pylmcompare import Dataset

    ds = Dataset.from_columns(y=[10, 12, 11, 20, 22, 19],
                              group=['A', 'A', 'A', 'B', 'B', 'B'])
    ds = Dataset.from_dataframe(df)

    ds['group'].levels      # ('A', 'B')
    ds.numeric('y')         # float64 array
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, TYPE_CHECKING
import numbers

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylmcompare.core.exceptions import (
    ValidationError,
    DimensionMismatchError,
)

if TYPE_CHECKING:
    import pandas as pd


NUMERIC = 'numeric'
CATEGORICAL = 'categorical'


@dataclass(frozen=True, eq=False)
class Column:
    """
    One named column of a Dataset.

    Attributes:
        name: Column name
        kind: 'numeric' or 'categorical'
        values: float64 values (numeric, NaN where missing) or intp codes
                into `levels` (categorical, -1 where missing)
        missing: Boolean mask of tagged missing entries
        levels: Ordered level labels (categorical only)
    """
    name: str
    kind: str
    values: NDArray
    missing: NDArray[np.bool_]
    levels: tuple[str, ...] = ()

    @classmethod
    def numeric(cls, name: str, values: ArrayLike) -> Column:
        """Build a numeric column. None and NaN are tagged as missing."""
        raw = np.asarray(values)
        if raw.dtype == object:
            missing = np.array([_is_missing(v) for v in raw], dtype=bool)
            filled = np.array(
                [np.nan if m else v for v, m in zip(raw, missing)], dtype=object
            )
            try:
                arr = filled.astype(np.float64)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"{name}: cannot interpret as numeric: {e}") from e
        else:
            if not (np.issubdtype(raw.dtype, np.number) or raw.dtype == np.bool_):
                raise ValidationError(
                    f"{name}: non-numeric dtype {raw.dtype} for a numeric column"
                )
            arr = raw.astype(np.float64)
            missing = np.isnan(arr)

        if arr.ndim != 1:
            raise ValidationError(f"{name}: expected 1D column, got {arr.ndim}D")
        if np.any(np.isinf(arr)):
            raise ValidationError(
                f"{name}: contains {int(np.sum(np.isinf(arr)))} infinite values"
            )

        return cls(name=name, kind=NUMERIC, values=_frozen(arr), missing=_frozen(missing))

    @classmethod
    def categorical(
        cls,
        name: str,
        values: ArrayLike,
        *,
        levels: Sequence[Any] | None = None,
        missing: ArrayLike | None = None,
    ) -> Column:
        """
        Build a categorical column.

        Labels are compared as strings. Without explicit `levels`, the level
        order is the order in which labels are first observed.

        Args:
            name: Column name
            values: Labels (any hashable values; None/NaN mark missing)
            levels: Explicit level order. Every observed label must appear.
            missing: Optional precomputed missing mask (from pandas)
        """
        raw = np.asarray(values, dtype=object)
        if raw.ndim != 1:
            raise ValidationError(f"{name}: expected 1D column, got {raw.ndim}D")

        if missing is None:
            mask = np.array([_is_missing(v) for v in raw], dtype=bool)
        else:
            mask = np.asarray(missing, dtype=bool)

        labels = [None if m else _label(v) for v, m in zip(raw, mask)]

        if levels is None:
            level_list = list(dict.fromkeys(lab for lab in labels if lab is not None))
        else:
            level_list = [_label(v) for v in levels]
            if len(set(level_list)) != len(level_list):
                raise ValidationError(f"{name}: duplicate labels in levels {level_list}")
            unknown = sorted({lab for lab in labels if lab is not None} - set(level_list))
            if unknown:
                raise ValidationError(
                    f"{name}: observed labels {unknown} not among levels {level_list}"
                )

        index = {lab: i for i, lab in enumerate(level_list)}
        codes = np.array(
            [-1 if lab is None else index[lab] for lab in labels], dtype=np.intp
        )

        return cls(
            name=name,
            kind=CATEGORICAL,
            values=_frozen(codes),
            missing=_frozen(mask),
            levels=tuple(level_list),
        )

    @property
    def is_categorical(self) -> bool:
        return self.kind == CATEGORICAL

    @property
    def n_missing(self) -> int:
        return int(np.sum(self.missing))

    def __len__(self) -> int:
        return len(self.values)

    def labels(self) -> NDArray:
        """Level labels per row (object array, None where missing)."""
        if not self.is_categorical:
            raise ValidationError(f"{self.name}: labels() requires a categorical column")
        out = np.empty(len(self.values), dtype=object)
        for i, code in enumerate(self.values):
            out[i] = None if code < 0 else self.levels[code]
        return out

    def take(self, indices: NDArray[np.intp]) -> Column:
        """Column restricted to the given row indices (levels kept)."""
        return Column(
            name=self.name,
            kind=self.kind,
            values=_frozen(self.values[indices]),
            missing=_frozen(self.missing[indices]),
            levels=self.levels,
        )


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Immutable, domain-agnostic table of named columns.

    Construct via factory classmethods, not directly.
    """
    _columns: tuple[Column, ...]
    _metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        names = [c.name for c in self._columns]
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise ValidationError(f"Duplicate column names: {dupes}")

        if self._columns:
            expected = len(self._columns[0])
            for col in self._columns[1:]:
                if len(col) != expected:
                    raise DimensionMismatchError(
                        f"Column '{col.name}' has length {len(col)}, "
                        f"expected {expected} (length of '{self._columns[0].name}')",
                        expected=expected,
                        actual=len(col),
                    )

    # === Column Access ===

    @property
    def names(self) -> tuple[str, ...]:
        """Column names in order."""
        return tuple(c.name for c in self._columns)

    def keys(self) -> frozenset[str]:
        return frozenset(self.names)

    def __getitem__(self, name: str) -> Column:
        for col in self._columns:
            if col.name == name:
                return col
        raise KeyError(f"Dataset has no column '{name}'. Available: {list(self.names)}")

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __iter__(self):
        return iter(self._columns)

    def __len__(self) -> int:
        return self.n_observations

    @property
    def n_observations(self) -> int:
        """Number of rows."""
        return len(self._columns[0]) if self._columns else 0

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def numeric(self, name: str) -> NDArray[np.floating[Any]]:
        """Values of a numeric column (NaN where missing)."""
        col = self[name]
        if col.is_categorical:
            raise ValidationError(f"{name}: column is categorical, not numeric")
        return col.values

    # === Derivation ===

    def select(self, names: Iterable[str]) -> Dataset:
        """Dataset with only the named columns, in the given order."""
        return Dataset(
            _columns=tuple(self[name] for name in names),
            _metadata=self._metadata.copy(),
        )

    def dropna(self, names: Iterable[str] | None = None) -> Dataset:
        """
        Complete cases with respect to the named columns (default: all).

        Returns a new Dataset; level sets of categorical columns are kept.
        """
        check = list(self.names if names is None else names)
        keep = np.ones(self.n_observations, dtype=bool)
        for name in check:
            keep &= ~self[name].missing
        indices = np.flatnonzero(keep)
        metadata = self._metadata.copy()
        metadata['n_dropped'] = metadata.get('n_dropped', 0) + int(np.sum(~keep))
        return Dataset(
            _columns=tuple(col.take(indices) for col in self._columns),
            _metadata=metadata,
        )

    def with_levels(self, name: str, levels: Sequence[Any]) -> Dataset:
        """Dataset where categorical column `name` uses the given level order."""
        col = self[name]
        if not col.is_categorical:
            raise ValidationError(f"{name}: with_levels() requires a categorical column")
        recoded = Column.categorical(
            name, col.labels(), levels=levels, missing=col.missing,
        )
        return self._replace(recoded)

    def with_column(self, name: str, values: ArrayLike, *, categorical: bool = False) -> Dataset:
        """Dataset with a column added (or replaced)."""
        col = (
            Column.categorical(name, values) if categorical
            else Column.numeric(name, values)
        )
        if name in self:
            return self._replace(col)
        return Dataset(_columns=self._columns + (col,), _metadata=self._metadata.copy())

    def _replace(self, new: Column) -> Dataset:
        return Dataset(
            _columns=tuple(new if c.name == new.name else c for c in self._columns),
            _metadata=self._metadata.copy(),
        )

    # === Factory Methods ===

    @classmethod
    def from_columns(
        cls,
        columns: Mapping[str, ArrayLike] | None = None,
        *,
        categorical: Iterable[str] = (),
        levels: Mapping[str, Sequence[Any]] | None = None,
        **named_columns: ArrayLike,
    ) -> Dataset:
        """
        Construct from named array-likes.

        Column kind is inferred: numeric arrays become numeric columns,
        strings/booleans/mixed labels become categorical. Names listed in
        `categorical` or `levels` are always categorical.

        Example:
            >>> Dataset.from_columns(y=[1.0, 2.0], dose=[1, 2], categorical=['dose'])
        """
        merged: dict[str, ArrayLike] = dict(columns or {})
        for name, values in named_columns.items():
            if name in merged:
                raise ValidationError(f"Column '{name}' given twice")
            merged[name] = values

        levels = dict(levels or {})
        forced = set(categorical) | set(levels)
        unknown = sorted(forced - set(merged))
        if unknown:
            raise ValidationError(f"Categorical columns {unknown} not among columns")

        built = []
        for name, values in merged.items():
            if name in forced or not _looks_numeric(values):
                built.append(Column.categorical(name, values, levels=levels.get(name)))
            else:
                built.append(Column.numeric(name, values))

        return cls(_columns=tuple(built), _metadata={'source': 'columns'})

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        categorical: Iterable[str] = (),
    ) -> Dataset:
        """
        Construct from a pandas DataFrame.

        `category` columns keep their category order; object, string and
        bool columns become categorical in order of first appearance;
        numeric columns stay numeric. pandas missing markers (NaN, None,
        pd.NA, NaT) are tagged as missing.
        """
        import pandas as pd

        forced = set(categorical)
        built = []
        for name in df.columns:
            series = df[name]
            mask = series.isna().to_numpy(dtype=bool)
            key = str(name)
            if isinstance(series.dtype, pd.CategoricalDtype):
                built.append(Column.categorical(
                    key, series.astype(object).to_numpy(),
                    levels=list(series.cat.categories), missing=mask,
                ))
            elif (
                name in forced
                or pd.api.types.is_bool_dtype(series.dtype)
                or not pd.api.types.is_numeric_dtype(series.dtype)
            ):
                built.append(Column.categorical(
                    key, series.astype(object).to_numpy(), missing=mask,
                ))
            else:
                built.append(Column.numeric(
                    key, series.to_numpy(dtype=np.float64, na_value=np.nan),
                ))

        return cls(
            _columns=tuple(built),
            _metadata={'source': 'dataframe', 'columns': [str(c) for c in df.columns]},
        )


def _frozen(arr: NDArray) -> NDArray:
    arr = np.array(arr, copy=True)
    arr.flags.writeable = False
    return arr


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    # pandas.NA and numpy datetime NaT without importing pandas
    return repr(value) in ('<NA>', 'NaT')


def _label(value: Any) -> str:
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _looks_numeric(values: ArrayLike) -> bool:
    arr = np.asarray(values)
    if arr.dtype == np.bool_:
        return False
    if np.issubdtype(arr.dtype, np.number):
        return True
    if arr.dtype != object:
        return False
    present = [v for v in arr.ravel() if not _is_missing(v)]
    return bool(present) and all(
        isinstance(v, numbers.Real) and not isinstance(v, (bool, np.bool_))
        for v in present
    )
