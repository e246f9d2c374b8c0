"""
Regression backends.

Available backends:
    CPUQRBackend: Reference implementation using column-pivoted QR
    CPUSVDBackend: Thin SVD; reports the condition number
"""

from pylmcompare.regression.backends.cpu import CPUQRBackend, CPUSVDBackend

__all__ = [
    "CPUQRBackend",
    "CPUSVDBackend",
]
