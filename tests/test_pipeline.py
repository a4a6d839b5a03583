import numpy as np
import pytest
import soundfile as sf

from wavesummarylib.config import ConfigError
from wavesummarylib.errors import ValidationError, WaveformIOError, ZoomError
from wavesummarylib.events import EventBus
from wavesummarylib.formats import DatFileExporter, read_dat, read_json
from wavesummarylib.pipeline import Pipeline

from tests.helpers import make_buffer, pairs, reference_summary


@pytest.fixture
def samples(rng):
    return rng.integers(-20000, 20000, size=3000, dtype=np.int16)


@pytest.fixture
def mono_wav(tmp_path, samples):
    path = str(tmp_path / "tone.wav")
    sf.write(path, samples, 8000, subtype="PCM_16")
    return path


@pytest.fixture
def stereo_wav(tmp_path, samples):
    path = str(tmp_path / "stereo.wav")
    frames = np.column_stack((samples, -samples))
    sf.write(path, frames, 8000, subtype="PCM_16")
    return path


def test_generate_from_wav(mono_wav, samples):
    buffer = Pipeline({"samples_per_pixel": 64}).generate(mono_wav)
    assert buffer.sample_rate == 8000
    assert buffer.samples_per_pixel == 64
    assert buffer.num_channels == 1
    assert pairs(buffer) == reference_summary(samples, 64)


def test_block_size_does_not_change_result(mono_wav):
    small = Pipeline({"samples_per_pixel": 64, "block_size": 7}).generate(mono_wav)
    large = Pipeline({"samples_per_pixel": 64}).generate(mono_wav)
    assert pairs(small) == pairs(large)


def test_stereo_is_mixed_to_mono_by_default(stereo_wav):
    buffer = Pipeline({"samples_per_pixel": 100}).generate(stereo_wav)
    assert buffer.num_channels == 1
    # left and right cancel out
    assert set(pairs(buffer)) == {(0, 0)}


def test_run_audio_to_dat(tmp_path, mono_wav, samples):
    output = str(tmp_path / "out.dat")
    written = Pipeline().run(mono_wav, output)

    assert written == [output]
    loaded = read_dat(output)
    assert (loaded.sample_rate, loaded.samples_per_pixel, loaded.bits) == (8000, 256, 16)
    assert pairs(loaded) == reference_summary(samples, 256)


def test_run_split_channels_v1(tmp_path, stereo_wav, samples):
    written = Pipeline({"mono": False, "samples_per_pixel": 100}).run(
        stereo_wav, str(tmp_path / "out.dat"),
    )
    assert written == [str(tmp_path / "out-chan0.dat"), str(tmp_path / "out-chan1.dat")]
    assert pairs(read_dat(written[0])) == reference_summary(samples, 100)
    assert pairs(read_dat(written[1])) == reference_summary(-samples, 100)


def test_run_split_channels_v2(tmp_path, stereo_wav, samples):
    output = str(tmp_path / "out.dat")
    Pipeline({"mono": False, "file_version": 2, "samples_per_pixel": 100}).run(
        stereo_wav, output,
    )
    loaded = read_dat(output)
    assert loaded.num_channels == 2
    assert pairs(loaded, 1) == reference_summary(-samples, 100)


def test_auto_zoom_fits_width(tmp_path):
    path = str(tmp_path / "one-second.wav")
    sf.write(path, np.zeros(8000, dtype=np.int16), 8000, subtype="PCM_16")

    buffer = Pipeline({"samples_per_pixel": "auto", "width": 80}).generate(path)
    assert buffer.samples_per_pixel == 100
    assert buffer.size() == 80


def test_pixels_per_second(mono_wav):
    buffer = Pipeline({"pixels_per_second": 100}).generate(mono_wav)
    assert buffer.samples_per_pixel == 80


def test_convert_dat_to_json_keeps_bits(tmp_path):
    source = make_buffer([[(-512, 256), (-256, 512)]], sample_rate=8000,
                         samples_per_pixel=32, bits=8)
    dat_path = str(tmp_path / "in.dat")
    DatFileExporter().export(source, dat_path)

    json_path = str(tmp_path / "out.json")
    Pipeline().run(dat_path, json_path)

    loaded = read_json(json_path)
    assert loaded.bits == 8
    assert loaded.samples_per_pixel == 32
    assert pairs(loaded) == pairs(source)


def test_configured_bits_override_input(tmp_path):
    source = make_buffer([[(-32768, 32767)]], sample_rate=8000, samples_per_pixel=32)
    dat_path = str(tmp_path / "in.dat")
    DatFileExporter().export(source, dat_path)

    json_path = str(tmp_path / "out.json")
    Pipeline({"bits": 8}).run(dat_path, json_path)
    assert read_json(json_path).bits == 8


@pytest.mark.parametrize("input_name,output_name", [
    ("in.wav", "out.png"),
    ("in.dat", "out.wav"),
    ("in.txt", "out.dat"),
])
def test_unsupported_combinations(tmp_path, input_name, output_name):
    with pytest.raises(ValidationError) as exc_info:
        Pipeline().run(str(tmp_path / input_name), str(tmp_path / output_name))
    assert "Can't generate" in str(exc_info.value)


def test_missing_audio_file(tmp_path):
    with pytest.raises(WaveformIOError):
        Pipeline().generate(str(tmp_path / "missing.wav"))


def test_contradictory_resolution_is_rejected():
    with pytest.raises(ValidationError):
        Pipeline({"samples_per_pixel": 64, "end": 2.0})


def test_invalid_config_is_rejected():
    with pytest.raises(ConfigError):
        Pipeline({"width": 0})


def test_render_buffer_rescales_to_coarser_zoom():
    buffer = make_buffer([[(0, 1), (-2, 3), (4, 5)]], samples_per_pixel=256)
    rendered = Pipeline({"samples_per_pixel": 512}).render_buffer(buffer)
    assert rendered.samples_per_pixel == 512
    assert pairs(rendered) == [(-2, 3), (4, 5)]


def test_render_buffer_same_zoom_is_passthrough():
    buffer = make_buffer([[(0, 1)]], samples_per_pixel=256)
    assert Pipeline().render_buffer(buffer) is buffer


def test_render_buffer_rejects_finer_zoom():
    buffer = make_buffer([[(0, 1)]], samples_per_pixel=256)
    with pytest.raises(ZoomError):
        Pipeline({"samples_per_pixel": 128}).render_buffer(buffer)


def test_render_buffer_auto_zoom():
    buffer = make_buffer([[(0, 1)] * 8], sample_rate=1000, samples_per_pixel=100)
    rendered = Pipeline({"samples_per_pixel": "auto", "width": 4}).render_buffer(buffer)
    assert rendered.samples_per_pixel == 200
    assert rendered.size() == 4


def test_events(tmp_path, mono_wav):
    seen = []
    bus = EventBus()
    for event in ("generator.init", "generator.done", "file.write"):
        bus.subscribe(event, lambda event=event, **d: seen.append(event))

    Pipeline(event_bus=bus).run(mono_wav, str(tmp_path / "out.dat"))
    assert seen == ["generator.init", "generator.done", "file.write"]
