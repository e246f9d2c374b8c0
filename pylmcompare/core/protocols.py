"""
Core protocols for pylmcompare.

Structural interfaces (Protocol, not ABC) so that alternative backends can
be supplied without inheriting from library classes.
"""

from typing import Protocol, TypeVar, Any, runtime_checkable

from numpy.typing import NDArray

P = TypeVar('P', covariant=True)  # Parameter payload type


@runtime_checkable
class Backend(Protocol[P]):
    """
    Protocol for least-squares backends.

    A backend takes a design matrix and a response vector and produces a
    Result envelope around its parameter payload. Backends are stateless;
    all configuration is passed at construction time.
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}', e.g. 'cpu_qr', 'cpu_svd'.
        """
        ...

    def solve(self, X: NDArray[Any], y: NDArray[Any], column_names: tuple[str, ...]) -> Any:
        """
        Execute the least-squares computation.

        Raises:
            RankDeficientError: If X does not have full column rank
        """
        ...
