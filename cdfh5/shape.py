"""
Inference of a variable's record layout from the shape of its data.

The trailing dimension of an array always indexes records. A variable whose
trailing extent is 1 holds a single record and is not record varying; the
remaining dimensions describe the values within one record.
"""
import collections


class VariableLayout(
    collections.namedtuple(
        "VariableLayout", ["record_count", "dims", "dim_varys", "element_count", "shape"]
    )
):
    """
    How a variable's data is laid out in records.

    Attributes
    ----------
    record_count : int
        Extent of the trailing dimension.
    dims : tuple of int
        Extents of the dimensions within a record, possibly empty.
    dim_varys : tuple of bool
        Per-record dimension variance, empty unless some dimension of
        ``dims`` exceeds 1.
    element_count : int
        Storage atoms per value.
    shape : tuple of int
        The effective shape, after rank padding.
    """

    __slots__ = ()

    @property
    def record_varying(self):
        """Whether the variable has more than one record."""
        return self.record_count > 1


def infer_layout(shape, rank=None, element_count=1):
    """
    Computes the record layout of an array shape.

    Parameters
    ----------
    shape : sequence of int
        The natural shape of the data. An empty shape counts as ``(1,)``.
    rank : int, optional
        A rank override. When larger than the natural rank the shape is
        padded with trailing 1s, which makes the data a single record.
    element_count : int, optional
        Storage atoms per value, passed through.

    Returns
    -------
    layout : VariableLayout

    Examples
    --------
    >>> infer_layout((3, 3))
    VariableLayout(record_count=3, dims=(3,), dim_varys=(True,), element_count=1, shape=(3, 3))
    >>> infer_layout((3, 1)).record_varying
    False
    >>> infer_layout((1, 5000))
    VariableLayout(record_count=5000, dims=(1,), dim_varys=(), element_count=1, shape=(1, 5000))
    >>> infer_layout((3, 4), rank=3).dims
    (3, 4)
    """
    shape = tuple(int(n) for n in shape) or (1,)
    if rank is not None and rank > len(shape):
        shape = shape + (1,) * (rank - len(shape))
    dims = shape[:-1]
    if any(n > 1 for n in dims):
        dim_varys = tuple(n > 1 for n in dims)
    else:
        dim_varys = ()
    return VariableLayout(shape[-1], dims, dim_varys, int(element_count), shape)


def record_spec(layout):
    """The ``(start, count, interval)`` of records covering all of the data."""
    return (0, layout.record_count, 1)


def dimension_spec(layout):
    """
    The ``(starts, counts, intervals)`` covering every per-record dimension.

    Examples
    --------
    >>> dimension_spec(infer_layout((2, 3, 10)))
    ((0, 0), (2, 3), (1, 1))
    >>> dimension_spec(infer_layout((10,))) is None
    True
    """
    n = len(layout.dims)
    if n == 0:
        return None
    return ((0,) * n, layout.dims, (1,) * n)
