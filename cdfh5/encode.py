"""
Translation of native values into their storage representation.

For most values this is the identity: numpy already holds them the way they
are stored. Timestamps and booleans have no direct storage equivalent and
are converted here, so what gets written can be inspected without a file.
"""
import numpy as np
import numba as nb

from .exceptions import InvalidShapeError, UnsupportedConversionError
from .types import TIME_DTYPE, StorageType, as_native_array, is_string_list

NAT = np.datetime64("nat", "us")

# EPOCH values count milliseconds from 0000-01-01T00:00:00.
EPOCH_OFFSET_MS = float(
    (np.datetime64("1970-01-01", "ms") - np.datetime64("0000-01-01", "ms")).astype(
        np.int64
    )
)


@nb.jit(nopython=True, nogil=True)
def _epoch_from_ticks(ticks, nat, offset):
    """
    Converts microsecond ticks since 1970 to EPOCH milliseconds.

    NaT ticks become zero. Numba doesn't support datetime64 here, so the
    ticks come in as the int64 view of the timestamps.

    Examples
    --------
    >>> ticks = np.array([0, 1500, int(NAT.astype(np.int64))], dtype=np.int64)
    >>> _epoch_from_ticks(ticks, int(NAT.astype(np.int64)), 0.0).tolist()
    [0.0, 1.5, 0.0]
    """
    out = np.zeros(ticks.shape[0], dtype=np.float64)
    for i in range(ticks.shape[0]):
        t = ticks[i]
        if t != nat:
            out[i] = t / 1000.0 + offset
    return out


def _encode_timestamps(storage_type, arr):
    if storage_type is not StorageType.EPOCH:
        raise UnsupportedConversionError(
            "timestamps can only be stored as CDF_EPOCH, not " + storage_type.cdf_name
        )
    ticks = arr.astype(TIME_DTYPE).astype(np.int64).reshape(-1)
    out = _epoch_from_ticks(ticks, int(NAT.astype(np.int64)), EPOCH_OFFSET_MS)
    return out.reshape(arr.shape)


def _encode_booleans(storage_type, arr):
    if storage_type is StorageType.CHAR:
        return np.where(arr, "T", "F")
    if storage_type.is_numeric:
        out = np.zeros(arr.shape, dtype=storage_type.dtype)
        out[arr] = 1
        return out
    raise UnsupportedConversionError(
        "can't encode boolean values to " + storage_type.cdf_name
    )


def encode_values(storage_type, value):
    """
    Translates a native value into the representation of a storage type.

    The input is never modified. Values that need no translation are
    returned as the very same object.

    Parameters
    ----------
    storage_type : StorageType or str
        The type the value will be stored as.
    value : object
        A scalar or flat array. String lists must be unpacked by the caller.

    Returns
    -------
    encoded : object

    Raises
    ------
    InvalidShapeError
        If ``value`` is a mapping, set, string list, object array or a
        structured array.
    UnsupportedConversionError
        If timestamps or booleans are asked for a type that can't hold them.

    Examples
    --------
    >>> float(encode_values("CDF_EPOCH", np.datetime64("1970-01-01T00:00:01")))
    62167219201000.0
    >>> encode_values("CDF_EPOCH", np.array(["NaT"], dtype="M8[ms]")).tolist()
    [0.0]
    >>> encode_values("CDF_CHAR", np.array([True, False])).tolist()
    ['T', 'F']
    >>> encode_values("CDF_INT2", np.array([True, False])).tolist()
    [1, 0]
    >>> encode_values("CDF_REAL8", 2.5)
    2.5
    """
    storage_type = StorageType.coerce(storage_type)
    if isinstance(value, (dict, set, frozenset)) or is_string_list(value):
        raise InvalidShapeError(
            "input must not be a mapping, set or string list, got "
            + type(value).__name__
        )
    arr = as_native_array(value)
    if arr.dtype.fields is not None or arr.dtype.kind == "O":
        raise InvalidShapeError("input must be a flat array, got dtype {}".format(arr.dtype))
    if arr.dtype.kind == "M":
        out = _encode_timestamps(storage_type, arr)
    elif arr.dtype.kind == "b":
        out = _encode_booleans(storage_type, arr)
    else:
        return value
    return out[()] if arr.ndim == 0 else out


def pad_strings(strings, element_count):
    """
    Right-pads strings with spaces into one contiguous fixed-width array.

    Examples
    --------
    >>> pad_strings(["Comp A", "B"], 6).tolist()
    ['Comp A', 'B     ']
    >>> pad_strings([b"ab"], 3).dtype
    dtype('<U3')
    """
    strings = [s.decode("ascii") if isinstance(s, bytes) else s for s in strings]
    arr = np.array(strings, dtype="U{}".format(element_count))
    return np.char.ljust(arr, element_count)
