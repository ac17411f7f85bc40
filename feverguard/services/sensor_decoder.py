"""
Decoder for the wearable skin-temperature characteristic.

Frame layout (little-endian):

    byte 0      flags: bit 0 = Fahrenheit, bit 1 = timestamp present
    bytes 1-4   temperature word: top 8 bits signed exponent,
                low 24 bits signed mantissa, value = mantissa * 10**exponent
    bytes 5-11  optional timestamp: uint16 year, then month, day,
                hour, minute, second as single bytes

The exponent/mantissa split is the simplified form the sensor firmware
emits, not the full IEEE-11073 FLOAT type, and must stay bit-exact.

A missing reading is an expected outcome (sensor off skin, short frame)
and is reported as None, never as an exception.
"""

import struct
from datetime import datetime, tzinfo

import structlog

from feverguard.domain.models import TemperatureReading, TemperatureUnit

logger = structlog.get_logger(__name__)

FLAG_FAHRENHEIT = 0x01
FLAG_TIMESTAMP = 0x02

MIN_FRAME_LENGTH = 5
VALUE_OFFSET = 1
TIMESTAMP_OFFSET = 5
TIMESTAMP_LENGTH = 7

OFF_BODY_MANTISSA = 0x7FFFFF

_TIMESTAMP_STRUCT = struct.Struct("<HBBBBB")


def split_float_word(word: int) -> tuple[int, int]:
    """Split a 32-bit word into (mantissa, exponent), both sign-extended."""
    exponent = (word >> 24) & 0xFF
    if exponent & 0x80:
        exponent -= 0x100
    mantissa = word & 0xFFFFFF
    if mantissa & 0x800000:
        mantissa -= 0x1000000
    return mantissa, exponent


def scale(mantissa: int, exponent: int) -> float:
    # Dividing by an exact power of ten keeps 3650e-2 at exactly 36.5.
    if exponent < 0:
        return mantissa / 10 ** (-exponent)
    return float(mantissa * 10**exponent)


class SensorFrameDecoder:
    """Turns one characteristic notification into a TemperatureReading."""

    def __init__(self, timezone: tzinfo | None = None) -> None:
        # None stamps the sensor clock fields in the host's local zone
        self.timezone = timezone
        self.logger = logger.bind(component="sensor_frame_decoder")

    def decode(self, frame: bytes) -> TemperatureReading | None:
        """Decode a frame, or return None when it holds no usable reading."""
        if len(frame) < MIN_FRAME_LENGTH:
            self.logger.debug("frame_too_short", length=len(frame))
            return None

        flags = frame[0]
        word = int.from_bytes(frame[VALUE_OFFSET:MIN_FRAME_LENGTH], "little")

        if word & 0xFFFFFF == OFF_BODY_MANTISSA:
            self.logger.debug("sensor_off_body", raw=frame.hex())
            return None

        mantissa, exponent = split_float_word(word)
        unit = TemperatureUnit.FAHRENHEIT if flags & FLAG_FAHRENHEIT else TemperatureUnit.CELSIUS

        timestamp = None
        if flags & FLAG_TIMESTAMP:
            timestamp = self._decode_timestamp(frame)

        reading = TemperatureReading(
            value=scale(mantissa, exponent), unit=unit, timestamp=timestamp
        )
        self.logger.debug(
            "frame_decoded",
            value=reading.value,
            unit=reading.unit.value,
            has_timestamp=timestamp is not None,
        )
        return reading

    def _decode_timestamp(self, frame: bytes) -> datetime | None:
        if len(frame) < TIMESTAMP_OFFSET + TIMESTAMP_LENGTH:
            self.logger.debug("timestamp_truncated", length=len(frame))
            return None

        year, month, day, hour, minute, second = _TIMESTAMP_STRUCT.unpack_from(
            frame, TIMESTAMP_OFFSET
        )
        try:
            stamped = datetime(year, month, day, hour, minute, second)
            if self.timezone is None:
                return stamped.astimezone()
            return stamped.replace(tzinfo=self.timezone)
        except (ValueError, OverflowError, OSError) as e:
            self.logger.debug("timestamp_invalid", error=str(e))
            return None


def encode_frame(
    mantissa: int,
    exponent: int,
    *,
    fahrenheit: bool = False,
    timestamp: datetime | None = None,
) -> bytes:
    """Build a frame in the sensor's wire format, for simulators and tests."""
    if not -0x800000 <= mantissa <= 0x7FFFFF:
        raise ValueError(f"mantissa out of 24-bit range: {mantissa}")
    if not -0x80 <= exponent <= 0x7F:
        raise ValueError(f"exponent out of 8-bit range: {exponent}")

    flags = FLAG_FAHRENHEIT if fahrenheit else 0
    if timestamp is not None:
        flags |= FLAG_TIMESTAMP

    word = ((exponent & 0xFF) << 24) | (mantissa & 0xFFFFFF)
    frame = bytes([flags]) + word.to_bytes(4, "little")
    if timestamp is not None:
        frame += _TIMESTAMP_STRUCT.pack(
            timestamp.year,
            timestamp.month,
            timestamp.day,
            timestamp.hour,
            timestamp.minute,
            timestamp.second,
        )
    return frame


_default_decoder = SensorFrameDecoder()


def decode(frame: bytes) -> TemperatureReading | None:
    """Decode with a decoder stamping timestamps in the local zone."""
    return _default_decoder.decode(frame)
