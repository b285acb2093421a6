"""
Byte-level helpers shared by the dBase (.DBF) field codec.

This module provides little-endian decoding, ASCII validation, logical byte
interpretation, byte buffer helpers, and the fixed-width text and number
formatting every field value goes through before it is written to a table.
"""

import logging
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import BinaryIO, Optional, Union


logger = logging.getLogger(__name__)

# Constants
DEFAULT_CHARSET = 'iso-8859-1'
SPACE = 0x20


class DBFAlignment(Enum):
    """Justification used when padding text into a fixed-width field."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"


def read_fully(stream: BinaryIO, size: int) -> bytes:
    """
    Read exactly `size` bytes from a stream.

    Args:
        stream: Binary stream to read from
        size: Number of bytes required

    Returns:
        The bytes read

    Raises:
        EOFError: If the stream ends before `size` bytes are available
    """
    data = b''
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise EOFError(f"Expected {size} bytes, got {len(data)}")
        data += chunk
    return data


def _read_little_endian(stream: BinaryIO, size: int) -> int:
    value = 0
    for i in range(size):
        value |= read_fully(stream, 1)[0] << (8 * i)
    return value


def read_little_endian_int(stream: BinaryIO) -> int:
    """Read an unsigned 32-bit little-endian integer from a stream."""
    return _read_little_endian(stream, 4)


def read_little_endian_short(stream: BinaryIO) -> int:
    """Read an unsigned 16-bit little-endian integer from a stream."""
    return _read_little_endian(stream, 2)


def little_endian_short(value: int) -> int:
    """Swap the byte order of a 16-bit value."""
    value &= 0xFFFF
    return ((value & 0xFF) << 8) | (value >> 8)


def little_endian_int(value: int) -> int:
    """Swap the byte order of a 32-bit value."""
    value &= 0xFFFFFFFF
    result = 0
    for i in range(4):
        result = (result << 8) | ((value >> (8 * i)) & 0xFF)
    return result


def remove_spaces(data: bytes) -> bytes:
    """
    Remove every space (0x20) from a byte buffer.

    Numeric and date fields are stored space padded; stripping all spaces
    leaves only the significant characters.
    """
    return bytes(b for b in data if b != SPACE)


def trim_right_spaces(data: Optional[bytes]) -> bytes:
    """Remove trailing spaces (0x20) from a byte buffer."""
    if not data:
        return b''
    pos = len(data)
    while pos > 0 and data[pos - 1] == SPACE:
        pos -= 1
    return bytes(data[:pos])


def contains(data: Optional[bytes], value: int) -> bool:
    """
    Check whether a byte buffer contains a specific byte.

    Args:
        data: The buffer to search in (may be None)
        value: The byte value to search for

    Returns:
        True if the buffer contains the value
    """
    if data is None:
        return False
    return value in data


def is_pure_ascii(text: Optional[str]) -> bool:
    """Check that every character of a string is 7-bit ASCII."""
    if not text:
        return True
    return all(ord(c) < 0x80 for c in text)


def _byte_value(value: Union[int, bytes, str]) -> int:
    if isinstance(value, int):
        return value
    if len(value) != 1:
        raise ValueError(f"Expected a single byte, got {value!r}")
    return ord(value) if isinstance(value, str) else value[0]


def to_boolean(value: Union[int, bytes, str]) -> Optional[bool]:
    """
    Convert a LOGICAL (L) field byte to a boolean.

    Args:
        value: The byte as stored in the file

    Returns:
        True for Y/y/T/t, False for N/n/F/f, None for anything else
        (an uninitialized logical, usually '?' or a space)
    """
    b = _byte_value(value)
    if not 0 <= b <= 0xFF:
        return None
    if b in b'YyTt':
        return True
    if b in b'NnFf':
        return False
    return None


def text_padding(text: str, charset: str, length: int,
                 alignment: DBFAlignment = DBFAlignment.LEFT,
                 padding_byte: Union[int, bytes] = SPACE) -> bytes:
    """
    Pad a string and convert it to bytes to write to a DBF file.

    Text that does not fit is shortened one character at a time from the
    end until its encoded form fits, so a multi-byte character is never
    split in half.

    Args:
        text: The text to be padded
        charset: Codec used to encode the text
        length: Size of the resulting buffer
        alignment: LEFT puts the text at offset 0, RIGHT at the end
        padding_byte: Byte used to fill the rest of the buffer

    Returns:
        Exactly `length` bytes
    """
    if length < 0:
        raise ValueError(f"Padding length must not be negative: {length}")
    pad = _byte_value(padding_byte)
    if not 0 <= pad <= 0xFF:
        raise ValueError(f"Padding byte out of range: {pad}")

    encoded = text.encode(charset, errors='replace')
    if len(encoded) > length:
        original = text
        while len(encoded) > length:
            text = text[:-1]
            encoded = text.encode(charset, errors='replace')
        logger.warning("Text %r truncated to %r to fit %d bytes", original, text, length)

    response = bytearray([pad]) * length
    if alignment == DBFAlignment.RIGHT:
        offset = length - len(encoded)
    else:
        offset = 0
    response[offset:offset + len(encoded)] = encoded
    return bytes(response)


def numeric_pattern(field_length: int, decimal_places: int) -> str:
    """
    Build the decimal pattern for a numeric field, e.g. '##0.00' for N(6,2).

    '#' is an optional digit, '0' a mandatory one.
    """
    whole = field_length - (decimal_places + 1 if decimal_places > 0 else 0)
    pattern = '#' * (whole - 1)
    if len(pattern) < whole:
        pattern += '0'
    if decimal_places > 0:
        pattern += '.' + '0' * decimal_places
    return pattern


def _format_with_pattern(number: Decimal, pattern: str) -> str:
    integer_pattern, _, fraction_pattern = pattern.partition('.')
    min_integer_digits = integer_pattern.count('0')
    decimals = len(fraction_pattern)

    with localcontext() as ctx:
        ctx.prec = max(28, number.adjusted() + decimals + 2)
        quantized = number.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_EVEN)
        negative = quantized.is_signed()
        digits = f"{quantized.copy_abs():f}"
    integer_part, _, fraction_part = digits.partition('.')
    integer_part = integer_part.lstrip('0').rjust(min_integer_digits, '0')

    result = integer_part
    if decimals > 0:
        result += '.' + fraction_part
    if negative:
        result = '-' + result
    return result


def number_formatting(number: Union[int, float, Decimal], charset: str,
                      field_length: int, decimal_places: int) -> bytes:
    """
    Format a number to write to a numeric DBF field.

    The output is independent of the current locale: '.' is the decimal
    point and digits are never grouped. Values are rounded half-even on
    their exact value and right-aligned with spaces.

    Args:
        number: Number to write
        charset: Codec used to encode the digits
        field_length: Total width of the field
        decimal_places: Digits after the decimal point

    Returns:
        Exactly `field_length` bytes
    """
    if decimal_places < 0:
        raise ValueError(f"Decimal places must not be negative: {decimal_places}")
    if isinstance(number, bool) or not isinstance(number, (int, float, Decimal)):
        raise TypeError(f"Cannot format {type(number).__name__} as a number")

    value = Decimal(number)
    if not value.is_finite():
        raise ValueError(f"Cannot write non-finite number {number!r} to a numeric field")

    text = _format_with_pattern(value, numeric_pattern(field_length, decimal_places))
    return text_padding(text, charset, field_length, DBFAlignment.RIGHT, SPACE)


# Older name, kept for existing callers
double_formatting = number_formatting
