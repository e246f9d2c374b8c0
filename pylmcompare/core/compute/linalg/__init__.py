"""
Linear algebra kernels for pylmcompare.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood), float64 throughout
    - Each decomposition returns a structured, frozen result dataclass
    - Rank is decided by NumericTolerances, never by a hidden constant
"""

from pylmcompare.core.compute.linalg.qr import (
    QRResult,
    qr_pivoted,
    qr_solve,
    column_space_residual,
)
from pylmcompare.core.compute.linalg.svd import (
    SVDResult,
    svd_thin,
    svd_solve,
)

__all__ = [
    "QRResult",
    "qr_pivoted",
    "qr_solve",
    "column_space_residual",
    "SVDResult",
    "svd_thin",
    "svd_solve",
]
