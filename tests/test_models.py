import numpy as np
import pytest

from wavesummarylib.errors import OutOfRangeError, ValidationError
from wavesummarylib.models import SummaryBuffer

from tests.helpers import make_buffer, pairs


def test_new_buffer_has_one_empty_channel():
    buffer = SummaryBuffer()
    assert buffer.num_channels == 1
    assert buffer.size() == 0
    assert buffer.bits == 16
    assert buffer.sample_rate == 0
    assert buffer.samples_per_pixel == 0


@pytest.mark.parametrize("attr,value", [
    ("sample_rate", 0),
    ("sample_rate", -44100),
    ("samples_per_pixel", 1),
    ("samples_per_pixel", 0),
    ("bits", 12),
    ("bits", 24),
])
def test_metadata_setters_reject_out_of_range(attr, value):
    buffer = SummaryBuffer()
    with pytest.raises(ValidationError):
        setattr(buffer, attr, value)


def test_metadata_setters_accept_valid_values():
    buffer = SummaryBuffer()
    buffer.sample_rate = 1
    buffer.samples_per_pixel = 2
    buffer.bits = 8
    assert (buffer.sample_rate, buffer.samples_per_pixel, buffer.bits) == (1, 2, 8)


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        SummaryBuffer().bits = 7


def test_append_grows_channel_list():
    buffer = SummaryBuffer()
    buffer.append(-3, 4, channel=2)
    assert buffer.num_channels == 3
    assert buffer.size(0) == 0
    assert buffer.size(1) == 0
    assert buffer.size(2) == 1
    assert buffer.get_min(0, 2) == -3
    assert buffer.get_max(0, 2) == 4


def test_channels_never_shrink():
    buffer = SummaryBuffer()
    buffer.ensure_channel(3)
    buffer.append(0, 1, channel=1)
    assert buffer.num_channels == 4


def test_append_rejects_values_outside_16_bit():
    buffer = SummaryBuffer()
    with pytest.raises(ValidationError):
        buffer.append(-32769, 0)
    with pytest.raises(ValidationError):
        buffer.append(0, 32768)
    assert buffer.size() == 0


@pytest.mark.parametrize("index,channel", [(1, 0), (-1, 0), (0, 1)])
def test_get_out_of_range(index, channel):
    buffer = SummaryBuffer()
    buffer.append(1, 2)
    with pytest.raises(OutOfRangeError):
        buffer.get_min(index, channel)
    with pytest.raises(IndexError):
        buffer.get_max(index, channel)


def test_size_of_unallocated_channel():
    with pytest.raises(OutOfRangeError):
        SummaryBuffer().size(1)


def test_channel_sizes_match():
    buffer = make_buffer([[(0, 1), (2, 3)], [(4, 5), (6, 7)]])
    assert buffer.channel_sizes_match()
    buffer.append(0, 0, channel=1)
    assert not buffer.channel_sizes_match()


def test_single_channel_sizes_always_match():
    assert SummaryBuffer().channel_sizes_match()


def test_extend_and_channel_data():
    buffer = SummaryBuffer()
    buffer.extend(np.array([-1, -2, -3]), np.array([1, 2, 3]), channel=1)
    data = buffer.channel_data(1)
    assert data.dtype == np.int16
    assert data.shape == (3, 2)
    assert data.tolist() == [[-1, 1], [-2, 2], [-3, 3]]
    assert buffer.size(0) == 0


def test_extend_rejects_mismatched_lengths():
    with pytest.raises(ValidationError):
        SummaryBuffer().extend([1, 2], [3])


def test_extend_rejects_out_of_range_values():
    buffer = SummaryBuffer()
    with pytest.raises(ValidationError):
        buffer.extend([0, -40000], [1, 2])
    assert buffer.size() == 0


def test_channel_data_is_a_copy():
    buffer = make_buffer([[(0, 1)]])
    data = buffer.channel_data()
    data[0, 0] = 99
    assert buffer.get_min(0) == 0


def test_set_pair_overwrites():
    buffer = make_buffer([[(0, 1), (2, 3)]])
    buffer.set_pair(1, -5, 5)
    assert pairs(buffer) == [(0, 1), (-5, 5)]
    with pytest.raises(OutOfRangeError):
        buffer.set_pair(2, 0, 0)


def test_split_channels_copies_metadata_and_data():
    buffer = make_buffer(
        [[(0, 1)], [(2, 3)]], sample_rate=8000, samples_per_pixel=64, bits=8,
    )
    left, right = buffer.split_channels()
    for part in (left, right):
        assert part.num_channels == 1
        assert (part.sample_rate, part.samples_per_pixel, part.bits) == (8000, 64, 8)
    assert pairs(left) == [(0, 1)]
    assert pairs(right) == [(2, 3)]

    left.append(9, 9)
    assert buffer.size(0) == 1


def test_copy_metadata_is_empty():
    buffer = make_buffer([[(0, 1)], [(0, 1)]], sample_rate=100, samples_per_pixel=10)
    empty = buffer.copy_metadata()
    assert empty.num_channels == 1
    assert empty.size() == 0
    assert (empty.sample_rate, empty.samples_per_pixel) == (100, 10)


def test_duration():
    buffer = make_buffer([[(0, 0)] * 5], sample_rate=100, samples_per_pixel=10)
    assert buffer.duration_sec == pytest.approx(0.5)
    assert SummaryBuffer().duration_sec == 0.0
