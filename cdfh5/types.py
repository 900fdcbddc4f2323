"""
Storage types and the mapping from native values onto them.

Every value written to a file has one of a fixed set of on-disk
representations, the :class:`StorageType`. Native values are first
classified into a :class:`NativeKind` by their numpy dtype, and the kind is
then mapped onto a storage type by a fixed table.

Examples
--------
>>> storage_type_of(np.float32(1.5))
<StorageType.REAL4: ('CDF_REAL4', '<f4')>
>>> storage_type_of(["Comp A", "Comp B"]).cdf_name
'CDF_CHAR'
>>> storage_type_of(np.array([True, False]), hint="CDF_UINT1").name
'UINT1'
"""
import datetime
import enum

import numpy as np

from .exceptions import InvalidShapeError, UnsupportedTypeError

TIME_DTYPE = np.dtype("<M8[us]")


class StorageType(enum.Enum):
    """The on-disk value representations, as ``(cdf_name, dtype)`` pairs."""

    EPOCH = ("CDF_EPOCH", "<f8")
    REAL4 = ("CDF_REAL4", "<f4")
    REAL8 = ("CDF_REAL8", "<f8")
    CHAR = ("CDF_CHAR", "S1")
    INT1 = ("CDF_INT1", "<i1")
    INT2 = ("CDF_INT2", "<i2")
    INT4 = ("CDF_INT4", "<i4")
    INT8 = ("CDF_INT8", "<i8")
    UINT1 = ("CDF_UINT1", "<u1")
    UINT2 = ("CDF_UINT2", "<u2")
    UINT4 = ("CDF_UINT4", "<u4")
    UINT8 = ("CDF_UINT8", "<u8")

    def __init__(self, cdf_name, dtype):
        self.cdf_name = cdf_name
        self.dtype = np.dtype(dtype)

    @property
    def is_numeric(self):
        """Whether booleans may be stored in this type as 0 and 1."""
        return self not in (StorageType.CHAR, StorageType.EPOCH)

    def h5_dtype(self, element_count=1):
        """
        The dtype values of this type are stored with.

        Examples
        --------
        >>> StorageType.CHAR.h5_dtype(6)
        dtype('S6')
        >>> StorageType.INT2.h5_dtype()
        dtype('int16')
        """
        if self is StorageType.CHAR:
            return np.dtype("S{}".format(element_count))
        return self.dtype

    @classmethod
    def coerce(cls, value):
        """
        Returns the storage type named by ``value``.

        Parameters
        ----------
        value : StorageType or str
            A member, a CDF type name such as ``"CDF_UINT2"``, or the bare
            member name such as ``"UINT2"``.

        Examples
        --------
        >>> StorageType.coerce("CDF_UINT2")
        <StorageType.UINT2: ('CDF_UINT2', '<u2')>
        >>> StorageType.coerce("real8") is StorageType.REAL8
        True
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise TypeError(
                "storage type must be a StorageType or a name, not "
                + type(value).__name__
            )
        name = value.strip().upper()
        name = _ALIASES.get(name, name)
        if name.startswith("CDF_"):
            name = name[4:]
        try:
            return cls[name]
        except KeyError:
            raise ValueError("unknown storage type {!r}".format(value)) from None


_ALIASES = {
    "CDF_BYTE": "CDF_INT1",
    "CDF_FLOAT": "CDF_REAL4",
    "CDF_DOUBLE": "CDF_REAL8",
}


class NativeKind(enum.Enum):
    """The closed set of native value kinds the mapper understands."""

    TIMESTAMP = "timestamp"
    REAL4 = "real4"
    REAL8 = "real8"
    TEXT = "text"
    TEXT_LIST = "text_list"
    INT1 = "int1"
    INT2 = "int2"
    INT4 = "int4"
    INT8 = "int8"
    UINT1 = "uint1"
    UINT2 = "uint2"
    UINT4 = "uint4"
    UINT8 = "uint8"
    BOOL = "bool"


_NUMERIC_KINDS = {
    ("f", 4): NativeKind.REAL4,
    ("f", 8): NativeKind.REAL8,
    ("i", 1): NativeKind.INT1,
    ("i", 2): NativeKind.INT2,
    ("i", 4): NativeKind.INT4,
    ("i", 8): NativeKind.INT8,
    ("u", 1): NativeKind.UINT1,
    ("u", 2): NativeKind.UINT2,
    ("u", 4): NativeKind.UINT4,
    ("u", 8): NativeKind.UINT8,
}

# BOOL has no storage type of its own.
_STORAGE_TYPES = {
    NativeKind.TIMESTAMP: StorageType.EPOCH,
    NativeKind.REAL4: StorageType.REAL4,
    NativeKind.REAL8: StorageType.REAL8,
    NativeKind.TEXT: StorageType.CHAR,
    NativeKind.TEXT_LIST: StorageType.CHAR,
    NativeKind.INT1: StorageType.INT1,
    NativeKind.INT2: StorageType.INT2,
    NativeKind.INT4: StorageType.INT4,
    NativeKind.INT8: StorageType.INT8,
    NativeKind.UINT1: StorageType.UINT1,
    NativeKind.UINT2: StorageType.UINT2,
    NativeKind.UINT4: StorageType.UINT4,
    NativeKind.UINT8: StorageType.UINT8,
}


def is_string_list(value):
    """
    Whether ``value`` is in cell/string-list form.

    Examples
    --------
    >>> is_string_list(["a", "bc"])
    True
    >>> is_string_list("abc")
    False
    >>> is_string_list(np.array(["a", "bc"], dtype=object))
    True
    """
    if isinstance(value, (list, tuple)):
        return all(isinstance(v, (str, bytes)) for v in value)
    if isinstance(value, np.ndarray) and value.dtype.kind == "O":
        return value.ndim == 1 and all(isinstance(v, (str, bytes)) for v in value)
    return False


def _naive_utc(value):
    if isinstance(value, datetime.datetime) and value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def as_native_array(value):
    """
    Converts a value to a numpy array, turning datetimes into ``datetime64[us]``.

    Raises
    ------
    InvalidShapeError
        If ``value`` is a ragged nested sequence.

    Examples
    --------
    >>> as_native_array([datetime.datetime(2019, 10, 28)]).dtype
    dtype('<M8[us]')
    """
    if isinstance(value, datetime.date):
        return np.asarray(_naive_utc(value), dtype=TIME_DTYPE)
    try:
        arr = np.asarray(value)
    except ValueError as exc:
        raise InvalidShapeError("values must form a flat array: {}".format(exc)) from exc
    if (
        arr.dtype.kind == "O"
        and arr.size > 0
        and all(isinstance(v, datetime.date) for v in arr.flat)
    ):
        arr = np.array([_naive_utc(v) for v in arr.flat], dtype=TIME_DTYPE)
        arr = arr.reshape(np.shape(value))
    return arr


def native_kind(value):
    """
    Classifies a native value or array.

    Parameters
    ----------
    value : object
        A Python scalar, string, list of strings, datetime, or anything
        ``numpy.asarray`` accepts.

    Returns
    -------
    kind : NativeKind

    Raises
    ------
    UnsupportedTypeError
        If the value is of none of the supported kinds.

    Examples
    --------
    >>> native_kind(np.arange(3, dtype=np.uint16))
    <NativeKind.UINT2: 'uint2'>
    >>> native_kind(True)
    <NativeKind.BOOL: 'bool'>
    >>> native_kind(np.float16(1))
    Traceback (most recent call last):
        ...
    cdfh5.exceptions.UnsupportedTypeError: cannot map values of dtype float16 onto a storage type
    """
    if isinstance(value, (str, bytes)):
        return NativeKind.TEXT
    if is_string_list(value):
        return NativeKind.TEXT_LIST
    arr = as_native_array(value)
    dt = arr.dtype
    if dt.fields is not None or dt.kind == "O":
        raise UnsupportedTypeError(
            "cannot map values of type {} onto a storage type".format(
                type(value).__name__
            )
        )
    if dt.kind == "M":
        return NativeKind.TIMESTAMP
    if dt.kind == "b":
        return NativeKind.BOOL
    if dt.kind in "US":
        return NativeKind.TEXT
    try:
        return _NUMERIC_KINDS[dt.kind, dt.itemsize]
    except KeyError:
        raise UnsupportedTypeError(
            "cannot map values of dtype {} onto a storage type".format(dt)
        ) from None


def storage_type_of(value, hint=None):
    """
    Maps a native value onto exactly one storage type.

    Parameters
    ----------
    value : object
        The value to classify.
    hint : StorageType or str, optional
        An explicit storage type. When given it is returned as-is; this is
        the only way booleans can be mapped.

    Returns
    -------
    storage_type : StorageType
    """
    if hint is not None:
        return StorageType.coerce(hint)
    kind = native_kind(value)
    if kind is NativeKind.BOOL:
        raise UnsupportedTypeError(
            "boolean values have no default storage type, set one explicitly"
        )
    return _STORAGE_TYPES[kind]
