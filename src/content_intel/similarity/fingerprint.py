"""Fixed-width content fingerprints and their Hamming distance.

Fingerprints travel through the system in three shapes: plain ``int``
(in memory), ``bytes`` (as produced by most SimHash implementations) and
hex strings (as stored in the database).  Everything is normalised to
``int`` before comparison.
"""

from __future__ import annotations

from content_intel.errors import InvalidInputError

FINGERPRINT_WIDTH = 64

Fingerprint = int | bytes | str


def parse_fingerprint(value: Fingerprint, width: int = FINGERPRINT_WIDTH) -> int:
    """Normalise a fingerprint to a non-negative ``int`` of at most ``width`` bits.

    Raises:
        InvalidInputError: For empty, non-hex, negative or over-wide values.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"fingerprint must not be a bool: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, (bytes, bytearray)):
        if not value:
            raise InvalidInputError("fingerprint bytes are empty")
        number = int.from_bytes(value, "big")
    elif isinstance(value, str):
        text = value.strip().lower().removeprefix("0x")
        if not text:
            raise InvalidInputError("fingerprint string is empty")
        try:
            number = int(text, 16)
        except ValueError as e:
            raise InvalidInputError(f"fingerprint is not hex: {value!r}") from e
    else:
        raise InvalidInputError(f"unsupported fingerprint type: {type(value).__name__}")

    if number < 0:
        raise InvalidInputError(f"fingerprint must be non-negative: {value!r}")
    if number.bit_length() > width:
        raise InvalidInputError(f"fingerprint wider than {width} bits: {value!r}")
    return number


def format_fingerprint(value: Fingerprint, width: int = FINGERPRINT_WIDTH) -> str:
    """Render a fingerprint as zero-padded lowercase hex."""
    return format(parse_fingerprint(value, width), f"0{width // 4}x")


def hamming_distance(a: Fingerprint, b: Fingerprint, width: int = FINGERPRINT_WIDTH) -> int:
    """Count the differing bits between two fingerprints of the same width."""
    return (parse_fingerprint(a, width) ^ parse_fingerprint(b, width)).bit_count()
