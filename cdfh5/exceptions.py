"""Errors raised while encoding or saving a container.

None of these are retried: each one means the in-memory model cannot be
written as described, so the save that raised it is abandoned.
"""


class CDFError(Exception):
    """Base class for all cdfh5 errors."""


class UnsupportedTypeError(CDFError, TypeError):
    """A native value matches no storage type and no explicit type was given."""


class InvalidShapeError(CDFError, ValueError):
    """A structured or nested value was given where a flat array is required."""


class UnsupportedConversionError(CDFError, TypeError):
    """A value cannot be converted to the requested storage type."""


class InvalidCellTypeError(CDFError, TypeError):
    """String-list (cell) data was paired with a non-character storage type."""


class CreateFailedError(CDFError, OSError):
    """The output file could not be created."""


class WriteTypeMismatchError(CDFError, TypeError):
    """The storage backend rejected an encoded value."""
