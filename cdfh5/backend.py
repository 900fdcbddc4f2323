"""
The HDF5 storage backend containers are written through.

A :class:`~cdfh5.container.Container` never touches h5py itself; it issues
the calls of :class:`H5Backend` in order. Each variable becomes a dataset
whose first axis indexes records and is extensible, so the stored shape is
``(records, *dims)``. Attributes are staged and written when the file is
closed.
"""
import logging
import posixpath

import h5py
import numpy as np

from .exceptions import CreateFailedError, WriteTypeMismatchError
from .types import StorageType

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global_scope"
VARIABLE_SCOPE = "variable_scope"

RESERVED_ATTRIBUTES = ("CDF_TYPE", "NUM_ELEMENTS", "RECORD_VARYING", "DIM_VARYS")


def _ensure_groups(handle, path):
    """
    Makes sure a path exists, returning the final group object.

    Parameters
    ----------
    handle : h5py.File
        The file handle in which to ensure the group.
    path : str
        The group to ensure inside the file.

    Examples
    --------
    >>> with h5py.File(temp_h5, 'w') as f:
    ...     _ensure_groups(f, '/potato')
    ...     '/potato' in f
    <HDF5 group "/potato" (0 members)>
    True
    """
    # this assumes the path is an abspath
    group = handle["/"]  # the file handle is the root group.
    hierarchy = path[1:].split("/")
    for name in hierarchy:
        if not name:
            # handle double slashes, //
            continue
        elif name in group:
            group = group[name]
        else:
            group = group.create_group(name, track_order=True)
    return group


def _cast(storage_type, value):
    """
    Converts a value to an array of a storage type's dtype.

    Examples
    --------
    >>> _cast(StorageType.CHAR, "nT").dtype
    dtype('S2')
    >>> _cast(StorageType.INT4, 2.5)
    Traceback (most recent call last):
        ...
    cdfh5.exceptions.WriteTypeMismatchError: cannot store float64 values as CDF_INT4
    >>> _cast(StorageType.INT1, 300)
    Traceback (most recent call last):
        ...
    cdfh5.exceptions.WriteTypeMismatchError: int64 values out of range for CDF_INT1
    """
    arr = np.asarray(value)
    kind = arr.dtype.kind
    if storage_type is StorageType.CHAR:
        if kind == "U":
            try:
                arr = arr.astype("S{}".format(max(arr.dtype.itemsize // 4, 1)))
            except UnicodeEncodeError as exc:
                raise WriteTypeMismatchError(
                    "character data must be ASCII: {}".format(exc)
                ) from exc
        elif kind != "S":
            raise WriteTypeMismatchError(
                "cannot store {} values as CDF_CHAR".format(arr.dtype)
            )
        return arr
    if kind not in "iuf" or not np.can_cast(
        arr.dtype, storage_type.dtype, casting="same_kind"
    ):
        raise WriteTypeMismatchError(
            "cannot store {} values as {}".format(arr.dtype, storage_type.cdf_name)
        )
    with np.errstate(over="ignore", invalid="ignore"):
        out = arr.astype(storage_type.dtype)
    if arr.size == 0:
        return out
    # narrowing casts of the same kind must not wrap or overflow
    if out.dtype.kind in "iu" and kind in "iu":
        info = np.iinfo(out.dtype)
        in_range = info.min <= int(arr.min()) and int(arr.max()) <= info.max
    else:
        in_range = not np.any(np.isfinite(arr) & ~np.isfinite(out))
    if not in_range:
        raise WriteTypeMismatchError(
            "{} values out of range for {}".format(arr.dtype, storage_type.cdf_name)
        )
    return out


class _Attribute:
    def __init__(self, name, scope):
        self.name = name
        self.scope = scope
        self.storage_type = None
        self.entries = {}


class _Variable:
    def __init__(
        self, name, storage_type, element_count, dims, record_varying, dim_varys
    ):
        self.name = name
        self.storage_type = storage_type
        self.element_count = element_count
        self.dims = dims
        self.record_varying = record_varying
        self.dim_varys = dim_varys
        self.compression = None
        self.compression_opts = None
        self.dataset = None


class H5Handle:
    """An open output file and what has been staged for it."""

    def __init__(self, file, group):
        self.file = file
        self.group = group
        self.variables = []
        self.variable_ids = {}
        self.attributes = []
        self.closed = False


class H5Backend:
    """
    Creates HDF5 files, variables and attributes with h5py.

    Variable and attribute ids are the order they were created in.

    Examples
    --------
    >>> backend = H5Backend()
    >>> handle = backend.create_file(temp_h5)
    >>> var_id = backend.create_variable(handle, "counts", "CDF_INT2", 1, (2,), True, (True,))
    >>> backend.set_compression(handle, var_id, "gzip", 6)
    >>> data = np.arange(6).reshape(2, 3)
    >>> backend.write_variable_data(handle, var_id, (0, 3, 1), ((0,), (2,), (1,)), data)
    >>> attr_id = backend.create_attribute(handle, "units", VARIABLE_SCOPE)
    >>> backend.put_attribute_entry(handle, attr_id, var_id, "CDF_CHAR", "counts")
    >>> backend.close_file(handle)
    >>> with h5py.File(temp_h5, "r") as f:
    ...     f["counts"][:].tolist()
    [[0, 3], [1, 4], [2, 5]]
    """

    def create_file(self, filename, path="/"):
        """
        Creates (or truncates) ``filename`` and the group ``path`` within it.

        Raises
        ------
        CreateFailedError
            If the file cannot be created.
        """
        if not posixpath.isabs(path):
            raise ValueError(
                path + " must be a posix absolute path, i.e. "
                "start with a leading '/'."
            )
        try:
            f = h5py.File(filename, "w", track_order=True)
        except OSError as exc:
            raise CreateFailedError("could not create {}: {}".format(filename, exc)) from exc
        try:
            group = _ensure_groups(f, path)
        except Exception:
            f.close()
            raise
        logger.debug("created %s at %s", filename, path)
        return H5Handle(f, group)

    def create_attribute(self, handle, name, scope):
        """Creates an attribute in a scope, returning its id."""
        self._check_open(handle)
        if scope not in (GLOBAL_SCOPE, VARIABLE_SCOPE):
            raise ValueError("unknown attribute scope {!r}".format(scope))
        if scope == VARIABLE_SCOPE and name in RESERVED_ATTRIBUTES:
            raise ValueError("{!r} is a reserved attribute name".format(name))
        for attr in handle.attributes:
            if attr.name == name and attr.scope == scope:
                raise ValueError("attribute {!r} already exists".format(name))
        handle.attributes.append(_Attribute(name, scope))
        return len(handle.attributes) - 1

    def put_attribute_entry(self, handle, attr_id, entry, storage_type, value):
        """
        Stages one attribute entry.

        For global attributes ``entry`` is the entry number, for variable
        attributes it is the id of the variable the value belongs to.

        Raises
        ------
        WriteTypeMismatchError
            If the value can't be stored as ``storage_type``.
        """
        self._check_open(handle)
        attr = handle.attributes[attr_id]
        storage_type = StorageType.coerce(storage_type)
        value = _cast(storage_type, value)
        if attr.scope == GLOBAL_SCOPE:
            if value.ndim != 0:
                raise WriteTypeMismatchError(
                    "entries of global attribute {!r} must be single values".format(
                        attr.name
                    )
                )
            if attr.storage_type not in (None, storage_type):
                raise WriteTypeMismatchError(
                    "entries of global attribute {!r} must all be {}".format(
                        attr.name, attr.storage_type.cdf_name
                    )
                )
            attr.storage_type = storage_type
        elif not 0 <= entry < len(handle.variables):
            raise IndexError("no variable with id {}".format(entry))
        attr.entries[entry] = value

    def create_variable(
        self, handle, name, storage_type, element_count, dims, record_varying, dim_varys
    ):
        """
        Declares a variable, returning its id.

        The dataset itself is created when data is first written, or when
        the file is closed.
        """
        self._check_open(handle)
        if not name:
            raise ValueError("variable name must not be empty")
        if name in handle.variable_ids:
            raise ValueError("variable {!r} already exists".format(name))
        storage_type = StorageType.coerce(storage_type)
        element_count = int(element_count)
        if element_count < 1:
            raise ValueError("element count must be at least 1")
        if element_count > 1 and storage_type is not StorageType.CHAR:
            raise ValueError("only CDF_CHAR variables may have more than one element")
        dims = tuple(int(n) for n in dims)
        dim_varys = tuple(bool(v) for v in dim_varys)
        if dim_varys and len(dim_varys) != len(dims):
            raise ValueError(
                "{} dimension variances given for {} dimensions".format(
                    len(dim_varys), len(dims)
                )
            )
        var = _Variable(
            name, storage_type, element_count, dims, bool(record_varying), dim_varys
        )
        handle.variables.append(var)
        handle.variable_ids[name] = len(handle.variables) - 1
        return handle.variable_ids[name]

    def set_compression(self, handle, var_id, algorithm, level=None):
        """
        Selects the compression of a variable.

        Parameters
        ----------
        algorithm : str or None
            ``"gzip"``, ``"lzf"``, or None for no compression.
        level : int, optional
            The gzip level, 0-9. Defaults to 6.
        """
        self._check_open(handle)
        var = handle.variables[var_id]
        if var.dataset is not None:
            raise RuntimeError("compression must be set before data is written")
        if algorithm is not None:
            algorithm = algorithm.lower()
        if algorithm in (None, "none"):
            var.compression = var.compression_opts = None
        elif algorithm == "gzip":
            level = 6 if level is None else int(level)
            if not 0 <= level <= 9:
                raise ValueError("gzip level must be between 0 and 9")
            var.compression, var.compression_opts = "gzip", level
        elif algorithm == "lzf":
            var.compression, var.compression_opts = "lzf", None
        else:
            raise ValueError("unknown compression algorithm {!r}".format(algorithm))

    def write_variable_data(self, handle, var_id, record_spec, dimension_spec, data):
        """
        Writes a hyper-slab of records.

        Parameters
        ----------
        record_spec : tuple of int
            ``(start, count, interval)`` of the records written.
        dimension_spec : tuple of tuples, or None
            ``(starts, counts, intervals)`` within each record, None when the
            variable has no per-record dimensions.
        data : array_like
            Values laid out as ``counts + (count,)``, records last.

        Raises
        ------
        WriteTypeMismatchError
            If the data doesn't match the variable's type or shape.
        """
        self._check_open(handle)
        var = handle.variables[var_id]
        start, count, interval = (int(n) for n in record_spec)
        if dimension_spec is None:
            starts, counts, intervals = (), (), ()
        else:
            starts, counts, intervals = (
                tuple(int(n) for n in spec) for spec in dimension_spec
            )
        if len(counts) != len(var.dims):
            raise WriteTypeMismatchError(
                "variable {!r} has {} dimensions, got {}".format(
                    var.name, len(var.dims), len(counts)
                )
            )
        arr = _cast(var.storage_type, data)
        if var.storage_type is StorageType.CHAR:
            if arr.dtype.itemsize > var.element_count:
                raise WriteTypeMismatchError(
                    "strings of {} characters don't fit {} elements".format(
                        arr.dtype.itemsize, var.element_count
                    )
                )
            arr = arr.astype(var.storage_type.h5_dtype(var.element_count))
        try:
            arr = arr.reshape(counts + (count,))
        except ValueError as exc:
            raise WriteTypeMismatchError(
                "data of shape {} does not fit {} records of {}".format(
                    np.shape(data), count, counts
                )
            ) from exc
        ds = self._dataset(handle, var)
        if arr.size == 0:
            return
        stop = start + (count - 1) * interval + 1
        if stop > ds.shape[0]:
            if not var.record_varying and stop > 1:
                raise WriteTypeMismatchError(
                    "variable {!r} is not record varying".format(var.name)
                )
            ds.resize(stop, axis=0)
        selection = (slice(start, stop, interval),) + tuple(
            slice(s, s + (c - 1) * i + 1, i) for s, c, i in zip(starts, counts, intervals)
        )
        ds[selection] = np.moveaxis(arr, -1, 0)

    def close_file(self, handle, discard=False):
        """
        Writes everything staged and closes the file.

        Closing an already closed handle does nothing. With ``discard`` the
        file is closed without writing staged attributes.
        """
        if handle.closed:
            return
        try:
            if not discard:
                for var in handle.variables:
                    self._dataset(handle, var)
                for attr in handle.attributes:
                    self._flush_attribute(handle, attr)
        finally:
            handle.file.close()
            handle.closed = True
            logger.debug("closed %s", "discarded file" if discard else "file")

    @staticmethod
    def _check_open(handle):
        if handle.closed:
            raise RuntimeError("file must be open to write to it.")

    @staticmethod
    def _dataset(handle, var):
        if var.dataset is None:
            kwargs = {}
            if var.compression is not None:
                kwargs["compression"] = var.compression
                if var.compression_opts is not None:
                    kwargs["compression_opts"] = var.compression_opts
            ds = handle.group.create_dataset(
                var.name,
                shape=(0,) + var.dims,
                maxshape=(None,) + var.dims,
                dtype=var.storage_type.h5_dtype(var.element_count),
                track_times=False,
                **kwargs
            )
            ds.attrs["CDF_TYPE"] = var.storage_type.cdf_name
            ds.attrs["NUM_ELEMENTS"] = var.element_count
            ds.attrs["RECORD_VARYING"] = var.record_varying
            if var.dim_varys:
                ds.attrs["DIM_VARYS"] = np.array(var.dim_varys, dtype=np.bool_)
            var.dataset = ds
        return var.dataset

    @staticmethod
    def _flush_attribute(handle, attr):
        if attr.scope == VARIABLE_SCOPE:
            for var_id, value in attr.entries.items():
                target = handle.variables[var_id].dataset.attrs
                target[attr.name] = value[()] if value.ndim == 0 else value
            return
        values = [attr.entries[k][()] for k in sorted(attr.entries)]
        if not values:
            handle.group.attrs[attr.name] = h5py.Empty(np.dtype("S1"))
        elif len(values) == 1:
            handle.group.attrs[attr.name] = values[0]
        else:
            handle.group.attrs[attr.name] = np.array(values)
