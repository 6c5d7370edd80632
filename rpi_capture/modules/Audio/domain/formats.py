"""ALSA sample formats and their bit depths."""

from __future__ import annotations

from enum import Enum


class UnknownSampleFormatError(ValueError):
    """The device reported a sample format this software cannot describe."""

    def __init__(self, sample_format: object) -> None:
        name = getattr(sample_format, "value", sample_format)
        super().__init__(f"unknown sample format: {name}")
        self.sample_format = sample_format


class SampleFormat(str, Enum):
    S8 = "S8"
    U8 = "U8"
    S16_LE = "S16_LE"
    S16_BE = "S16_BE"
    U16_LE = "U16_LE"
    U16_BE = "U16_BE"
    S24_LE = "S24_LE"
    S24_BE = "S24_BE"
    U24_LE = "U24_LE"
    U24_BE = "U24_BE"
    S24_3LE = "S24_3LE"
    S24_3BE = "S24_3BE"
    S32_LE = "S32_LE"
    S32_BE = "S32_BE"
    U32_LE = "U32_LE"
    U32_BE = "U32_BE"
    FLOAT_LE = "FLOAT_LE"
    FLOAT_BE = "FLOAT_BE"
    FLOAT64_LE = "FLOAT64_LE"
    FLOAT64_BE = "FLOAT64_BE"
    IEC958_SUBFRAME_LE = "IEC958_SUBFRAME_LE"
    MU_LAW = "MU_LAW"
    A_LAW = "A_LAW"
    IMA_ADPCM = "IMA_ADPCM"
    GSM = "GSM"

    @classmethod
    def parse(cls, value: "SampleFormat | str") -> "SampleFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnknownSampleFormatError(value) from None


_BIT_DEPTHS: dict[SampleFormat, int] = {
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


def bit_depth_of(sample_format: SampleFormat) -> int:
    """Return the significant bits per sample for ``sample_format``.

    Raises:
        UnknownSampleFormatError: for formats outside the table. There is no
            default; an unmapped format means a driver we do not understand.
    """
    try:
        return _BIT_DEPTHS[sample_format]
    except (KeyError, TypeError):
        raise UnknownSampleFormatError(sample_format) from None


def known_formats() -> tuple[SampleFormat, ...]:
    return tuple(_BIT_DEPTHS)


__all__ = [
    "SampleFormat",
    "UnknownSampleFormatError",
    "bit_depth_of",
    "known_formats",
]
