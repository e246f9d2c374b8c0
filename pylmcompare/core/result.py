"""
Generic result container for all pylmcompare computations.

Every domain (regression, comparison, contrast) wraps its parameter payload
in a Result envelope. The envelope carries the payload plus metadata,
timing and non-fatal warnings, and is immutable so results can be shared
freely between callers and worker processes.
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Attributes:
        params: Domain-specific parameters (coefficients, F tests, contrasts)
        info: Structured metadata (method, rank, tolerances used)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=LinearParams(...),
        ...     info={'method': 'qr', 'rank': 3},
        ...     timing={'total_seconds': 0.001},
        ...     backend_name='cpu_qr',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
