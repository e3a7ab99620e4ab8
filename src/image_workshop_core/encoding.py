"""Crockford base32 encoding.

Crockford's alphabet drops I, L, O and U to avoid visual ambiguity. Encoding
always produces uppercase; decoding accepts either case. No padding or check
symbol is used.
"""

import re

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_DECODE_TABLE: dict[str, int] = {}
for _index, _char in enumerate(CROCKFORD_ALPHABET):
    _DECODE_TABLE[_char] = _index
    _DECODE_TABLE[_char.lower()] = _index

_VALID_PATTERN = re.compile(r"^[0-9A-HJ-NP-TV-Za-hj-np-tv-z]+$")


def to_crockford_base32(data: bytes) -> str:
    """Encode bytes to an uppercase Crockford base32 string."""
    bits = 0
    value = 0
    chars: list[str] = []

    for byte in data:
        value = ((value << 8) | byte) & 0xFFFF
        bits += 8
        while bits >= 5:
            bits -= 5
            chars.append(CROCKFORD_ALPHABET[(value >> bits) & 0x1F])

    # Left-align the remaining bits in a final symbol
    if bits > 0:
        chars.append(CROCKFORD_ALPHABET[(value << (5 - bits)) & 0x1F])

    return "".join(chars)


def from_crockford_base32(encoded: str) -> bytes:
    """Decode a Crockford base32 string to bytes.

    Raises:
        ValueError: If the string contains a character outside the alphabet.
    """
    bits = 0
    value = 0
    output = bytearray()

    for char in encoded:
        decoded = _DECODE_TABLE.get(char)
        if decoded is None:
            raise ValueError(f"Invalid Crockford Base32 character: {char!r}")  # noqa: TRY003
        value = ((value << 5) | decoded) & 0xFFFF
        bits += 5
        if bits >= 8:
            bits -= 8
            output.append((value >> bits) & 0xFF)

    return bytes(output)


def is_valid_crockford_base32(text: str) -> bool:
    """Check whether a non-empty string uses only Crockford base32 symbols."""
    return bool(_VALID_PATTERN.match(text))
