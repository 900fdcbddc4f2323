"""A single variable: data, storage type, rank override and attributes."""
import numpy as np

from .encode import encode_values, pad_strings
from .exceptions import InvalidCellTypeError, InvalidShapeError
from .shape import infer_layout
from .types import StorageType, as_native_array, is_string_list, storage_type_of


class Variable:
    """
    Values to be written as one variable, plus its attributes.

    The trailing dimension of ``data`` indexes records. Strings are stored
    either as a character array, where the string length is a dimension, or
    as a list of strings, where each string is one value.

    Examples
    --------
    >>> var = Variable(np.zeros((1, 5000), dtype=np.int8))
    >>> var.layout().record_count
    5000
    >>> var = Variable(["Comp A", "Comp B", "Comp C"])
    >>> var.element_count, var.shape
    (6, (3,))
    >>> var.resolve_storage_type().cdf_name
    'CDF_CHAR'
    """

    def __init__(self, data=None, storage_type=None, rank=None, attrs=None):
        """
        Creates a :obj:`Variable`.

        Parameters
        ----------
        data : array_like or list of str, optional
            The values. Lists of strings are kept as a string list.
        storage_type : StorageType or str, optional
            The storage type; inferred from ``data`` at save time if unset.
        rank : int, optional
            Rank override, see :func:`cdfh5.shape.infer_layout`.
        attrs : dict, optional
            Initial attributes.
        """
        self.data = data
        self.storage_type = storage_type
        self.rank = rank
        self.attrs = dict(attrs or {})

    @property
    def data(self):
        """The values, as a numpy array or a list of strings."""
        return self._data

    @data.setter
    def data(self, value):
        if value is None:
            self._data = None
        elif is_string_list(value):
            self._data = list(value)
        else:
            arr = as_native_array(value)
            if arr.dtype.kind == "O":
                raise InvalidShapeError(
                    "data must be a homogeneous array or a list of strings"
                )
            self._data = arr

    @property
    def storage_type(self):
        """The explicit storage type, or None."""
        return self._storage_type

    @storage_type.setter
    def storage_type(self, value):
        self._storage_type = None if value is None else StorageType.coerce(value)

    def set_type(self, storage_type):
        """Sets the storage type, returning the variable."""
        self.storage_type = storage_type
        return self

    @property
    def rank(self):
        """The rank override, or None."""
        return self._rank

    @rank.setter
    def rank(self, value):
        if value is not None:
            if int(value) != value or value < 1:
                raise ValueError("rank must be a positive integer, not {!r}".format(value))
            value = int(value)
        self._rank = value

    @property
    def is_cell(self):
        """Whether the data is a list of strings."""
        return isinstance(self._data, list)

    @property
    def shape(self):
        """The natural shape of the data; scalars count as one value."""
        if self._data is None:
            return (0,)
        if self.is_cell:
            return (len(self._data),)
        return self._data.shape or (1,)

    @property
    def element_count(self):
        """Storage atoms per value: the longest string for string data, else 1."""
        if self.is_cell:
            return max([len(s) for s in self._data] + [1])
        if self._data is not None and self._data.dtype.kind in "US" and self._data.size:
            return max(int(np.char.str_len(self._data).max()), 1)
        return 1

    def layout(self):
        """The record layout of the data, honoring the rank override."""
        return infer_layout(self.shape, self.rank, self.element_count)

    def resolve_storage_type(self):
        """The explicit storage type, or the one mapped from the data."""
        if self._storage_type is not None:
            return self._storage_type
        return storage_type_of(self._data)

    def validate(self, storage_type=None):
        """
        Checks that string-list data is paired with a character type.

        Raises
        ------
        InvalidCellTypeError
            If the data is a list of strings and the type is not CHAR.
        """
        if storage_type is None:
            storage_type = self.resolve_storage_type()
        if self.is_cell and storage_type is not StorageType.CHAR:
            raise InvalidCellTypeError(
                "string lists must be stored as CDF_CHAR, not " + storage_type.cdf_name
            )

    def encoded(self, storage_type=None):
        """
        The data, ready to hand to a storage backend.

        Strings are padded with spaces to :attr:`element_count`; everything
        else goes through :func:`cdfh5.encode.encode_values`.
        """
        if storage_type is None:
            storage_type = self.resolve_storage_type()
        storage_type = StorageType.coerce(storage_type)
        if self._data is None:
            return np.zeros(0, dtype=storage_type.h5_dtype())
        if self.is_cell:
            return pad_strings(self._data, self.element_count)
        if self._data.dtype.kind == "U":
            return np.char.ljust(self._data, self.element_count)
        if self._data.dtype.kind == "S":
            return np.char.ljust(self._data, self.element_count, fillchar=b" ")
        return encode_values(storage_type, self._data)

    def __repr__(self):
        stype = None if self._storage_type is None else self._storage_type.name
        return "Variable(shape={}, storage_type={}, attrs={})".format(
            self.shape, stype, list(self.attrs)
        )
