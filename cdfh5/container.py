"""The container: an ordered set of variables plus global attributes."""
import logging

from .backend import GLOBAL_SCOPE, VARIABLE_SCOPE, H5Backend
from .encode import encode_values
from .exceptions import WriteTypeMismatchError
from .shape import dimension_spec, record_spec
from .types import as_native_array, is_string_list, storage_type_of
from .variable import Variable

logger = logging.getLogger(__name__)

DEFAULT_COMPRESSION = "gzip"
DEFAULT_COMPRESSION_LEVEL = 6


def _attribute_entries(value):
    """
    Splits a global attribute value into its entries.

    Strings are a single entry; lists and arrays have one entry per item.

    Examples
    --------
    >>> _attribute_entries("Leap seconds have been ignored")
    ['Leap seconds have been ignored']
    >>> len(_attribute_entries(np.arange(3.0)))
    3
    """
    if isinstance(value, (str, bytes)):
        return [value]
    if is_string_list(value):
        return list(value)
    return list(as_native_array(value).reshape(-1))


def _native_type_name(data):
    if isinstance(data, list):
        return type(data[0]).__name__ if data else "list"
    if data is None:
        return "None"
    return str(data.dtype)


def _mismatch(name, var, layout, exc):
    return WriteTypeMismatchError(
        "For variable {}{} ({}): {}".format(
            name, list(layout.shape), _native_type_name(var.data), exc
        )
    )


class Container:
    """
    An in-memory set of variables and attributes that saves to one file.

    Variables are created on first reference by name and are written in the
    order they were created. The trailing dimension of each variable's data
    indexes its records.

    Examples
    --------
    >>> out = cdfh5.Container()
    >>> out["Status"].data = np.zeros((1, 5000), dtype=np.int8)
    >>> out["Status"].attrs["FIELDNAM"] = "Status"
    >>> frequency = out.add_variable("Frequency", np.array([[10.0], [20.0], [30.0]]))
    >>> out.attrs["Title"] = "Hyper accurate Irridium Mag vectors (GEI)"
    >>> out.keys()
    ['Status', 'Frequency']
    >>> out.save(temp_h5)
    >>> with h5py.File(temp_h5, "r") as f:
    ...     f["Status"].shape, f["Frequency"].shape
    ((5000, 1), (1, 3))
    """

    def __init__(
        self,
        compression=DEFAULT_COMPRESSION,
        compression_level=DEFAULT_COMPRESSION_LEVEL,
        backend=None,
    ):
        """
        Creates an empty :obj:`Container`.

        Parameters
        ----------
        compression : str or None, optional
            The compression requested for every variable, None for none.
        compression_level : int, optional
            The compression level requested.
        backend : object, optional
            The storage backend, an :class:`~cdfh5.backend.H5Backend` by
            default.
        """
        self.attrs = {}
        self.compression = compression
        self.compression_level = compression_level
        self._backend = H5Backend() if backend is None else backend
        self._variables = {}
        self._handle = None

    def keys(self):
        """The variable names, in creation order."""
        return list(self._variables)

    def __len__(self):
        return len(self._variables)

    def __iter__(self):
        return iter(self.keys())

    def __contains__(self, name):
        return name in self._variables

    def __getitem__(self, name):
        if name not in self._variables:
            self._check_name(name)
            self._variables[name] = Variable()
        return self._variables[name]

    def __setitem__(self, name, value):
        if isinstance(value, Variable):
            self._check_name(name)
            self._variables[name] = value
        else:
            self[name].data = value

    def __delitem__(self, name):
        del self._variables[name]

    def __repr__(self):
        return "Container(variables={}, attrs={})".format(self.keys(), list(self.attrs))

    @staticmethod
    def _check_name(name):
        if not isinstance(name, str):
            raise TypeError("variable name must be a str, not " + type(name).__name__)
        if not name:
            raise ValueError("variable name must not be empty")

    def add_variable(
        self, name, data=None, storage_type=None, attrs=None, rank=None, **kwattrs
    ):
        """
        Creates or updates a variable in one call.

        ``out.add_variable("MyVar", vals, "CDF_UINT2", Attr1="AttrVal1")`` is
        the same as::

            out["MyVar"].data = vals
            out["MyVar"].storage_type = "CDF_UINT2"
            out["MyVar"].attrs["Attr1"] = "AttrVal1"

        Parameters
        ----------
        name : str
            The variable name.
        data : array_like or list of str, optional
            The values, records along the trailing dimension.
        storage_type : StorageType or str, optional
            The storage type, inferred at save time if not given.
        attrs : dict, optional
            Attributes, for names that aren't valid keywords.
        rank : int, optional
            A rank override.
        **kwattrs
            More attributes.

        Returns
        -------
        var : Variable
        """
        var = self[name]
        if data is not None:
            var.data = data
        if storage_type is not None:
            var.storage_type = storage_type
        if rank is not None:
            var.rank = rank
        var.attrs.update(attrs or {})
        var.attrs.update(kwattrs)
        return var

    def add_constant(self, name, data=None, storage_type=None, attrs=None, **kwattrs):
        """
        Like :meth:`add_variable`, but the variable is never record varying.

        If the trailing extent of the data is not 1, the rank override adds
        a trailing dimension of 1 so the whole array is a single record.

        Examples
        --------
        >>> out = cdfh5.Container()
        >>> coeff = out.add_constant("Coeff", np.ones((3, 4)))
        >>> coeff.rank, coeff.layout().record_count, coeff.layout().dims
        (3, 1, (3, 4))
        """
        var = self.add_variable(name, data, storage_type, attrs, **kwattrs)
        shape = var.shape
        if shape[-1] != 1:
            var.rank = len(shape) + 1
        return var

    def save(self, filename, path="/"):
        """
        Writes the container to ``filename``, replacing any existing file.

        Either everything is written or an error propagates; a file left
        behind by a failed save is not valid and should be discarded. The
        container itself is left unchanged and can be saved again.

        Parameters
        ----------
        filename : str or path-like
            The output file.
        path : str, optional
            The absolute group path to write into.
        """
        backend = self._backend
        self._handle = handle = backend.create_file(filename, path)
        closed = False
        try:
            self._put_global_attributes(handle)
            var_ids, by_attribute = self._put_variables(handle)
            self._put_variable_attributes(handle, var_ids, by_attribute)
            closed = True
            backend.close_file(handle)
        finally:
            self._handle = None
            if not closed:
                backend.close_file(handle, discard=True)
        logger.info("saved %d variables to %s", len(self._variables), filename)

    def close(self):
        """Releases the file handle of an interrupted save, if any."""
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self._backend.close_file(handle, discard=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _put_global_attributes(self, handle):
        backend = self._backend
        for name, value in self.attrs.items():
            storage_type = storage_type_of(value)
            attr_id = backend.create_attribute(handle, name, GLOBAL_SCOPE)
            for entry, item in enumerate(_attribute_entries(value)):
                backend.put_attribute_entry(
                    handle, attr_id, entry, storage_type, encode_values(storage_type, item)
                )

    def _put_variables(self, handle):
        """Creates and writes every variable, returning ids and attribute users."""
        backend = self._backend
        var_ids = {}
        by_attribute = {}
        for name, var in self._variables.items():
            storage_type = var.resolve_storage_type()
            var.validate(storage_type)
            layout = var.layout()
            logger.debug(
                "creating %s as %s with %d records of %s",
                name,
                storage_type.cdf_name,
                layout.record_count,
                layout.dims,
            )
            var_id = backend.create_variable(
                handle,
                name,
                storage_type,
                layout.element_count,
                layout.dims,
                layout.record_varying,
                layout.dim_varys,
            )
            if self.compression is not None:
                backend.set_compression(
                    handle, var_id, self.compression, self.compression_level
                )
            try:
                data = var.encoded(storage_type)
            except UnicodeError as exc:
                raise _mismatch(name, var, layout, exc) from exc
            try:
                backend.write_variable_data(
                    handle, var_id, record_spec(layout), dimension_spec(layout), data
                )
            except (TypeError, ValueError) as exc:
                raise _mismatch(name, var, layout, exc) from exc
            var_ids[name] = var_id
            for attr_name in var.attrs:
                by_attribute.setdefault(attr_name, []).append(name)
        return var_ids, by_attribute

    def _put_variable_attributes(self, handle, var_ids, by_attribute):
        backend = self._backend
        for attr_name, var_names in by_attribute.items():
            logger.debug("writing %s for %d variables", attr_name, len(var_names))
            attr_id = backend.create_attribute(handle, attr_name, VARIABLE_SCOPE)
            for var_name in var_names:
                value = self._variables[var_name].attrs[attr_name]
                storage_type = storage_type_of(value)
                backend.put_attribute_entry(
                    handle,
                    attr_id,
                    var_ids[var_name],
                    storage_type,
                    encode_values(storage_type, value),
                )
