"""
CDF-style time-series containers written to HDF5 (h5py)

Model
-----

A container holds named variables and global attributes. Each variable is an
N-dimensional array plus its own attributes, and is written in the manner of
a CDF variable: the trailing dimension of the array indexes *records*, the
natural unit of a time series, and the remaining dimensions describe the
values within one record.

* A variable is *record varying* if its trailing extent is larger than 1.
  An array of shape ``(3, 5000)`` is 5000 records of 3 values each.
* An array whose trailing extent is 1, such as ``(3, 1)``, is a single
  constant record. Since numpy can't tell ``(3, 4)`` from ``(3, 4, 1)`` once
  the trailing 1 is dropped, a variable's ``rank`` may be set higher than the
  data's rank to pad the shape with trailing 1s.
* Strings are stored either as a character array, where the string length is
  a dimension and each atom is one character, or as a list of strings, where
  each string is one value padded to the longest entry.

Every value is stored as one of a fixed set of storage types:

* ``datetime64`` and ``datetime`` values: ``CDF_EPOCH``, milliseconds since
  0000-01-01. ``NaT`` is stored as 0.
* ``float64``, ``float32``: ``CDF_REAL8``, ``CDF_REAL4``.
* strings and lists of strings: ``CDF_CHAR``.
* integers: ``CDF_INT*`` and ``CDF_UINT*`` of the same width and sign.
* booleans have no type of their own; set ``CDF_CHAR`` (stored as ``T`` and
  ``F``) or a numeric type (stored as 1 and 0) explicitly.

Quickstart API
--------------

>>> out = cdfh5.Container()
>>> out["Epoch"].data = np.array(
...     ["2019-10-28T00:00", "2019-10-28T00:01", "2019-10-28T00:02"], dtype="M8[ms]"
... )
>>> out["Epoch"].attrs["Caution"] = "Leap seconds have been ignored"
>>> b_gei = out.add_variable("B_gei", np.eye(3), units="nT")
>>> flags = out.add_variable("Valid", np.array([True, False, True]), "CDF_UINT1")
>>> names = out.add_variable("Component", ["Comp A", "Comp B", "Comp C"])
>>> out.attrs["Title"] = "Hyper accurate Irridium Mag vectors (GEI)"
>>> out.save(temp_h5)
>>> with h5py.File(temp_h5, "r") as f:
...     print(f["Epoch"].attrs["CDF_TYPE"], f["Epoch"][0] - 62167219200000.0)
...     print(f["B_gei"].shape, f["Valid"][:].tolist())
...     print(f["Component"].dtype, f["Component"].shape)
CDF_EPOCH 1572220800000.0
(3, 3) [1, 0, 1]
|S6 (3,)
"""

from .backend import GLOBAL_SCOPE, VARIABLE_SCOPE, H5Backend, H5Handle
from .container import Container
from .encode import encode_values
from .exceptions import (
    CDFError,
    CreateFailedError,
    InvalidCellTypeError,
    InvalidShapeError,
    UnsupportedConversionError,
    UnsupportedTypeError,
    WriteTypeMismatchError,
)
from .shape import VariableLayout, infer_layout
from .types import NativeKind, StorageType, native_kind, storage_type_of
from .variable import Variable

__version__ = "0.1.0"
