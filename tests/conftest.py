import pytest


class RecordingBackend:
    """Stands in for the HDF5 backend, recording every call made to it."""

    def __init__(self, reject_writes=False):
        self.calls = []
        self.reject_writes = reject_writes
        self._attributes = 0
        self._variables = 0

    def create_file(self, filename, path="/"):
        self.calls.append(("create_file", filename, path))
        return "handle"

    def create_attribute(self, handle, name, scope):
        self.calls.append(("create_attribute", name, scope))
        self._attributes += 1
        return self._attributes - 1

    def put_attribute_entry(self, handle, attr_id, entry, storage_type, value):
        self.calls.append(("put_attribute_entry", attr_id, entry, storage_type, value))

    def create_variable(
        self, handle, name, storage_type, element_count, dims, record_varying, dim_varys
    ):
        self.calls.append(
            (
                "create_variable",
                name,
                storage_type,
                element_count,
                tuple(dims),
                record_varying,
                tuple(dim_varys),
            )
        )
        self._variables += 1
        return self._variables - 1

    def set_compression(self, handle, var_id, algorithm, level):
        self.calls.append(("set_compression", var_id, algorithm, level))

    def write_variable_data(self, handle, var_id, record_spec, dimension_spec, data):
        self.calls.append(("write_variable_data", var_id, record_spec, dimension_spec, data))
        if self.reject_writes:
            raise TypeError("rejected by backend")

    def close_file(self, handle, discard=False):
        self.calls.append(("close_file", discard))

    def named(self, method):
        return [call for call in self.calls if call[0] == method]


@pytest.fixture
def recorder():
    return RecordingBackend()


@pytest.fixture
def rejecting_recorder():
    return RecordingBackend(reject_writes=True)
