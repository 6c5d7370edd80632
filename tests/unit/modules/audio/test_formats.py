"""Unit tests for the sample format table."""

import pytest

from rpi_capture.modules.Audio.domain import (
    NegotiatedFormat,
    SampleFormat,
    UnknownSampleFormatError,
    bit_depth_of,
    known_formats,
)

EXPECTED_BITS = {
    SampleFormat.S8: 8,
    SampleFormat.U8: 8,
    SampleFormat.S16_LE: 16,
    SampleFormat.S16_BE: 16,
    SampleFormat.U16_LE: 16,
    SampleFormat.U16_BE: 16,
    SampleFormat.S24_LE: 24,
    SampleFormat.S24_BE: 24,
    SampleFormat.U24_LE: 24,
    SampleFormat.U24_BE: 24,
    SampleFormat.S24_3LE: 24,
    SampleFormat.S24_3BE: 24,
    SampleFormat.S32_LE: 32,
    SampleFormat.S32_BE: 32,
    SampleFormat.U32_LE: 32,
    SampleFormat.U32_BE: 32,
    SampleFormat.FLOAT_LE: 32,
    SampleFormat.FLOAT_BE: 32,
    SampleFormat.FLOAT64_LE: 64,
    SampleFormat.FLOAT64_BE: 64,
}


@pytest.mark.parametrize("sample_format, bits", sorted(EXPECTED_BITS.items()))
def test_bit_depth_of_known_formats(sample_format, bits):
    assert bit_depth_of(sample_format) == bits


def test_known_formats_matches_table():
    assert set(known_formats()) == set(EXPECTED_BITS)


@pytest.mark.parametrize(
    "sample_format",
    [fmt for fmt in SampleFormat if fmt not in EXPECTED_BITS] + ["S20_LE", None, 7],
)
def test_unmapped_format_raises(sample_format):
    with pytest.raises(UnknownSampleFormatError, match="unknown sample format"):
        bit_depth_of(sample_format)


def test_parse_accepts_names_case_insensitively():
    assert SampleFormat.parse("s16_le") is SampleFormat.S16_LE
    assert SampleFormat.parse(SampleFormat.FLOAT_LE) is SampleFormat.FLOAT_LE


def test_parse_rejects_unknown_names():
    with pytest.raises(UnknownSampleFormatError):
        SampleFormat.parse("S20_LE")


class TestNegotiatedFormat:

    def test_derived_sizes(self):
        fmt = NegotiatedFormat(1, 44100, SampleFormat.S16_LE, 8192, 2)
        assert fmt.significant_bits == 16
        assert fmt.buffer_bytes == 16384
        assert fmt.buffer_seconds == pytest.approx(8192 / 44100)

    def test_rejects_zero_bytes_per_frame(self):
        with pytest.raises(ValueError):
            NegotiatedFormat(1, 44100, SampleFormat.S16_LE, 8192, 0)

    def test_rejects_unmapped_format(self):
        with pytest.raises(UnknownSampleFormatError):
            NegotiatedFormat(1, 8000, SampleFormat.MU_LAW, 8192, 1)

    def test_is_immutable(self):
        fmt = NegotiatedFormat(2, 48000, SampleFormat.S32_LE, 8192, 8)
        with pytest.raises(AttributeError):
            fmt.channels = 1
