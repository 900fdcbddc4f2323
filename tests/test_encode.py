"""tests value encoding"""
import datetime

import numpy as np
import pytest

from cdfh5 import StorageType, encode_values
from cdfh5.encode import EPOCH_OFFSET_MS, pad_strings
from cdfh5.exceptions import InvalidShapeError, UnsupportedConversionError

NUMERIC_TYPES = [t for t in StorageType if t.is_numeric]


def test_epoch_offset():
    assert EPOCH_OFFSET_MS == 62167219200000.0


def test_timestamps():
    times = np.array(["1970-01-01T00:00:00", "2019-10-28T00:00:00"], dtype="M8[s]")
    encoded = encode_values(StorageType.EPOCH, times)
    assert encoded.dtype == np.float64
    assert encoded.tolist() == [62167219200000.0, 63739440000000.0]


def test_timestamp_precision():
    times = np.array(["1970-01-01T00:00:00.001500"], dtype="M8[us]")
    assert encode_values("CDF_EPOCH", times).tolist() == [EPOCH_OFFSET_MS + 1.5]


def test_not_a_time_is_zero():
    times = np.array(["2019-10-28", "NaT", "2019-10-29"], dtype="M8[ns]")
    encoded = encode_values("CDF_EPOCH", times)
    assert encoded[1] == 0.0
    assert encoded[0] > 0.0 and encoded[2] > encoded[0]


def test_timestamp_shape_is_kept():
    times = np.full((2, 3), np.datetime64("2019-10-28", "ms"))
    assert encode_values("CDF_EPOCH", times).shape == (2, 3)


def test_aware_datetime_is_utc():
    tz = datetime.timezone(datetime.timedelta(hours=2))
    aware = datetime.datetime(2019, 10, 28, 2, 0, tzinfo=tz)
    naive = datetime.datetime(2019, 10, 28, 0, 0)
    assert float(encode_values("CDF_EPOCH", aware)) == float(
        encode_values("CDF_EPOCH", naive)
    )


@pytest.mark.parametrize("storage_type", ["CDF_REAL8", "CDF_CHAR", "CDF_INT8"])
def test_timestamps_need_epoch(storage_type):
    with pytest.raises(UnsupportedConversionError):
        encode_values(storage_type, np.array(["2019-10-28"], dtype="M8[D]"))


def test_booleans_as_characters():
    flags = np.array([[True, False], [False, True]])
    assert encode_values("CDF_CHAR", flags).tolist() == [["T", "F"], ["F", "T"]]
    assert encode_values("CDF_CHAR", False) == "F"


@pytest.mark.parametrize("storage_type", NUMERIC_TYPES)
def test_booleans_as_numbers(storage_type):
    flags = np.array([True, False, True])
    encoded = encode_values(storage_type, flags)
    assert encoded.dtype == storage_type.dtype
    assert encoded.tolist() == [1, 0, 1]


@pytest.mark.parametrize("shape", [(1,), (5,), (3, 1), (2, 3), (2, 3, 4), (0,)])
@pytest.mark.parametrize(
    "storage_type", [StorageType.INT1, StorageType.UINT4, StorageType.REAL4]
)
def test_boolean_round_trip(shape, storage_type):
    rng = np.random.default_rng(42)
    flags = rng.random(shape) > 0.5
    encoded = encode_values(storage_type, flags)
    assert encoded.shape == flags.shape
    assert np.array_equal(encoded == 1, flags)
    assert np.all((encoded == 0) | (encoded == 1))


def test_booleans_cannot_be_epochs():
    with pytest.raises(UnsupportedConversionError):
        encode_values("CDF_EPOCH", np.array([True]))


def test_input_is_not_modified():
    flags = np.array([True, False])
    times = np.array(["NaT", "2019-10-28"], dtype="M8[ms]")
    encode_values("CDF_INT1", flags)
    encode_values("CDF_EPOCH", times)
    assert flags.tolist() == [True, False]
    assert np.isnat(times[0])


def test_other_values_pass_through():
    values = np.arange(5.0)
    assert encode_values("CDF_REAL8", values) is values
    text = "Leap seconds have been ignored"
    assert encode_values("CDF_CHAR", text) is text
    numbers = [1, 2, 3]
    assert encode_values("CDF_INT2", numbers) is numbers


@pytest.mark.parametrize(
    "value",
    [
        {"a": 1},
        {1, 2},
        ["Comp A", "Comp B"],
        np.array(["a", "b"], dtype=object),
        np.zeros(2, dtype=[("a", "<f8")]),
        [[1, 2], [3]],
    ],
)
def test_structured_inputs_are_rejected(value):
    with pytest.raises(InvalidShapeError):
        encode_values("CDF_REAL8", value)


def test_pad_strings():
    padded = pad_strings(["Comp A", "B", ""], 6)
    assert padded.tolist() == ["Comp A", "B     ", "      "]
    assert padded.dtype == np.dtype("U6")
    assert pad_strings([b"ab"], 2).tolist() == ["ab"]
