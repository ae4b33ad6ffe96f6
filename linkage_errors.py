"""
Exception types raised by the joint-draw linkage code.

Every error derives from ``LinkageError`` (itself a ``ValueError``) so callers
that already catch ``ValueError`` around simulation code keep working.
"""


class LinkageError(ValueError):
    """Base class for all linkage validation failures."""


class InputCountError(LinkageError):
    """Fewer than two datasets were supplied."""


class VariableMismatchError(LinkageError):
    """Datasets and linking variables do not line up."""


class InvalidSampleSizeError(LinkageError):
    """N is missing, non-scalar, non-integral, non-finite or not positive."""


class InvalidCorrelationScalar(LinkageError):
    """rho is not a single finite number."""


class DimensionMismatchError(LinkageError):
    """sigma is not ndim x ndim, or its diagonal is not all 1."""


class AsymmetricMatrixError(LinkageError):
    """sigma differs from its transpose."""


class OutOfRangeCorrelationError(LinkageError):
    """sigma has an entry outside [-1, 1]."""


class NonPSDError(LinkageError):
    """sigma has a negative or non-real eigenvalue."""


class InvalidHighDimNegativeCorrelation(LinkageError):
    """A negative scalar rho was requested for three or more variables."""


class EmptyVariableError(LinkageError):
    """A linking variable has no values to draw from."""
