"""
Exception hierarchy for pylmcompare.

All exceptions inherit from PyLMCompareError so callers can catch any
library-specific error in one place. Every error is raised at the point of
detection and is final: the library never retries, and never returns a
partial result alongside an exception.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyLMCompareError(Exception):
    """Base exception for all pylmcompare errors."""
    pass


class ValidationError(PyLMCompareError):
    """
    Input validation failed.

    Raised when user-provided inputs (arrays, datasets, model specifications)
    fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    """
    pass


class DimensionMismatchError(DimensionError):
    """
    Two inputs that must agree in length do not.

    Raised when a response vector's length differs from the design matrix
    row count, when dataset columns have unequal lengths, or when contrast
    weights do not match the number of coefficients or means.

    Attributes:
        expected: Length that was required
        actual: Length that was supplied
    """

    def __init__(
        self,
        message: str,
        expected: int | None = None,
        actual: int | None = None,
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class MissingValueError(ValidationError):
    """
    A column used by the model contains tagged missing values.

    Missing values are never dropped implicitly; call Dataset.dropna()
    with the relevant columns first.

    Attributes:
        column: Name of the offending column
        n_missing: Number of missing entries
    """

    def __init__(self, message: str, column: str | None = None, n_missing: int = 0):
        super().__init__(message)
        self.column = column
        self.n_missing = n_missing


class ContrastError(ValidationError):
    """
    A contrast-coding matrix is malformed.

    Raised when a coding matrix does not have one row per level and
    levels - 1 columns, or when its columns are linearly dependent.

    Attributes:
        factor: Factor the coding was attached to, if known
    """

    def __init__(self, message: str, factor: str | None = None):
        super().__init__(message)
        self.factor = factor


class MissingContrastError(ValidationError):
    """
    A categorical predictor has no resolvable contrast coding.

    Attributes:
        factor: Name of the factor that could not be coded
    """

    def __init__(self, message: str, factor: str | None = None):
        super().__init__(message)
        self.factor = factor


class NumericalError(PyLMCompareError):
    """
    Numerical computation failed.
    """
    pass


class RankDeficientError(NumericalError):
    """
    Design matrix column count exceeds its numerical rank.

    The solver never drops columns on its own; the caller decides how to
    resolve the collinearity (drop a term, change coding, collect more data).

    Attributes:
        rank: Numerical rank of the design matrix
        expected_rank: Number of columns (the rank required for a unique fit)
        aliased: Names (or indices) of columns found to be linearly dependent
                 on earlier columns
    """

    def __init__(
        self,
        message: str,
        rank: int | None = None,
        expected_rank: int | None = None,
        aliased: tuple[str, ...] = (),
    ):
        super().__init__(message)
        self.rank = rank
        self.expected_rank = expected_rank
        self.aliased = aliased


class InvalidComparisonError(PyLMCompareError):
    """
    Two fitted models cannot be compared as restricted/general.

    Raised when the restricted model is not nested in the general one,
    when they were fit to different responses, or when the degrees of
    freedom of the comparison are degenerate.

    Attributes:
        reason: Short machine-readable reason ('df1', 'df2', 'nesting',
                'rss', 'response')
        df1: Numerator degrees of freedom, if computed
        df2: Denominator degrees of freedom, if computed
    """

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        df1: int | None = None,
        df2: int | None = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.df1 = df1
        self.df2 = df2
