"""
Error types raised by seeded segmentation.
"""


class SegmentationError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(SegmentationError, ValueError):
    """Invalid beta or sigma given at construction."""


class ShapeError(SegmentationError, ValueError):
    """Empty image, unsupported image rank, or masks not matching the image."""


class NumericalError(SegmentationError, RuntimeError):
    """The sparse linear system could not be solved."""


class FactorizationError(NumericalError):
    """System matrix is singular or not numerically positive definite."""


class SolveError(NumericalError):
    """Back substitution failed or produced a non-finite field."""
