"""
dBase (.DBF) field descriptor support.

A field descriptor is the 32-byte record in the table header that describes
one column: its name, type, length and decimal count. Descriptors follow the
32-byte main header and the array is terminated by a single 0x0D byte.

Descriptor layout:
    0-10   name, NUL padded
    11     type code ('C', 'N', 'F', 'D', 'L', 'M', ...)
    12-15  reserved
    16     field length
    17     decimal count (high byte of the length for CHARACTER fields)
    18-19  reserved
    20     work area id
    21-22  reserved
    23     set fields flag
    24-30  reserved
    31     index field flag
"""

import logging
import re
import struct
import warnings
from enum import Enum
from typing import BinaryIO, List, Optional, Tuple, Union

from dbf_utils import (
    DEFAULT_CHARSET, is_pure_ascii, read_fully,
    read_little_endian_int, read_little_endian_short,
)


logger = logging.getLogger(__name__)

# Constants
DBF_FIELD_DESCRIPTOR_SIZE = 32
DBF_FIELD_NAME_SIZE = 11
DBF_FIELD_NAME_MAX_LENGTH = 10
DBF_HEADER_TERMINATOR = 0x0D
DBF_MAX_CHARACTER_LENGTH = 0xFFFF

# Legacy byte codes, kept for callers of the old numeric-code API
FIELD_TYPE_C = ord('C')
FIELD_TYPE_L = ord('L')
FIELD_TYPE_N = ord('N')
FIELD_TYPE_F = ord('F')
FIELD_TYPE_D = ord('D')
FIELD_TYPE_M = ord('M')


class DBFDataType(Enum):
    """Field data types: (code, min size, max size, default size, writable)."""
    UNKNOWN = (0x00, 0, 0, 0, False)
    CHARACTER = (ord('C'), 1, 254, 0, True)
    VARCHAR = (ord('V'), 1, 254, 0, False)
    VARBINARY = (ord('Q'), 1, 254, 0, False)
    DATE = (ord('D'), 8, 8, 8, True)
    FLOATING_POINT = (ord('F'), 1, 20, 0, True)
    LOGICAL = (ord('L'), 1, 1, 1, True)
    MEMO = (ord('M'), 10, 10, 10, False)
    NUMERIC = (ord('N'), 1, 32, 0, True)
    LONG = (ord('I'), 4, 4, 4, False)
    CURRENCY = (ord('Y'), 8, 8, 8, False)
    TIMESTAMP = (ord('T'), 8, 8, 8, False)
    TIMESTAMP_DBASE7 = (ord('@'), 8, 8, 8, False)
    AUTOINCREMENT = (ord('+'), 4, 4, 4, False)
    DOUBLE = (ord('O'), 8, 8, 8, False)
    BINARY = (ord('B'), 10, 10, 10, False)
    GENERAL_OLE = (ord('G'), 10, 10, 10, False)
    PICTURE = (ord('P'), 10, 10, 10, False)
    NULL_FLAGS = (ord('0'), 1, 255, 0, False)

    def __init__(self, code, min_size, max_size, default_size, write_supported):
        self.code = code
        self.min_size = min_size
        self.max_size = max_size
        self.default_size = default_size
        self.write_supported = write_supported

    @property
    def char_code(self) -> str:
        return chr(self.code)

    @classmethod
    def from_code(cls, code: Union[int, bytes, str]) -> "DBFDataType":
        """
        Look up a data type by its type code.

        Args:
            code: Type code as a byte value, a 1-byte bytes or a 1-char str

        Returns:
            The matching data type

        Raises:
            ValueError: If the code is not a known type code
        """
        if isinstance(code, (bytes, str)):
            if len(code) != 1:
                raise ValueError(f"Type code must be a single character: {code!r}")
            code = code[0] if isinstance(code, bytes) else ord(code)
        for data_type in cls:
            if data_type is not cls.UNKNOWN and data_type.code == code:
                return data_type
        raise ValueError(f"Unknown field type code: 0x{code:02X}")


_NUMERIC_TYPES = (DBFDataType.NUMERIC, DBFDataType.FLOATING_POINT)


class DBFField:
    """
    A column definition of a DBF file.

    Fields are either decoded from a table header with dbf_field_read() or
    built by hand before creating a table. Every setter validates its
    argument immediately.
    """

    def __init__(self, name: Optional[str] = None, type: Optional[DBFDataType] = None,
                 length: Optional[int] = None, decimal_count: Optional[int] = None):
        self._name = None
        self._type = None
        self._field_length = 0
        self._decimal_count = 0
        self._reserv1 = 0
        self._reserv2 = 0
        self._work_area_id = 0
        self._reserv3 = 0
        self._set_fields_flag = 0
        self._reserv4 = bytes(7)
        self._index_field_flag = 0

        if name is not None:
            self.name = name
        if type is not None:
            self.type = type
        if length is not None:
            self.field_length = length
        if decimal_count is not None:
            self.decimal_count = decimal_count

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        if name is None:
            raise ValueError("Field name cannot be None")
        if len(name) == 0 or len(name) > DBF_FIELD_NAME_MAX_LENGTH:
            raise ValueError(f"Field name should be of length 1-{DBF_FIELD_NAME_MAX_LENGTH}: {name!r}")
        if not is_pure_ascii(name):
            raise ValueError(f"Field name must be ASCII: {name!r}")
        self._name = name

    @property
    def type(self) -> Optional[DBFDataType]:
        return self._type

    @type.setter
    def type(self, data_type: DBFDataType) -> None:
        if not isinstance(data_type, DBFDataType):
            raise ValueError(f"Not a field type: {data_type!r}")
        if not data_type.write_supported:
            raise ValueError(f"No support for writing {data_type.name}")
        length = self._field_length
        if data_type.default_size > 0:
            length = data_type.default_size
        elif length == 0:
            length = data_type.min_size
        elif length < data_type.min_size or length > data_type.max_size:
            raise ValueError(f"Length {length} is out of bounds for {data_type.name}: "
                             f"{data_type.min_size}-{data_type.max_size}")
        self._type = data_type
        self._field_length = length
        if data_type not in _NUMERIC_TYPES:
            self._decimal_count = 0

    @property
    def field_length(self) -> int:
        return self._field_length

    @field_length.setter
    def field_length(self, length: int) -> None:
        """Set the length; the type must be set first."""
        if self._type is None:
            raise ValueError("Field type must be set before the field length")
        if length < self._type.min_size or length > self._type.max_size:
            raise ValueError(f"Length for {self._type.name} must be between "
                             f"{self._type.min_size} and {self._type.max_size}: {length}")
        if length < self._decimal_count:
            raise ValueError(f"Length {length} is smaller than decimal count {self._decimal_count}")
        self._field_length = length

    @property
    def decimal_count(self) -> int:
        """Digits after the decimal point; zero for non-numeric fields."""
        return self._decimal_count

    @decimal_count.setter
    def decimal_count(self, size: int) -> None:
        if size < 0:
            raise ValueError("Decimal count should be a positive number")
        if size > self._field_length:
            raise ValueError("Decimal count should be less than field length")
        if size and self._type not in _NUMERIC_TYPES:
            raise ValueError(f"Cannot set decimal count on this field: {self._type}")
        self._decimal_count = size

    # Reserved bytes, only ever non-zero on decoded fields
    @property
    def reserv1(self) -> int:
        return self._reserv1

    @property
    def reserv2(self) -> int:
        return self._reserv2

    @property
    def work_area_id(self) -> int:
        return self._work_area_id

    @property
    def reserv3(self) -> int:
        return self._reserv3

    @property
    def set_fields_flag(self) -> int:
        return self._set_fields_flag

    @property
    def reserv4(self) -> bytes:
        return self._reserv4

    @property
    def index_field_flag(self) -> int:
        return self._index_field_flag

    def set_data_type(self, code: Union[int, bytes, str]) -> None:
        """Deprecated: assign `type` instead."""
        warnings.warn("set_data_type() is deprecated, assign DBFField.type instead",
                      DeprecationWarning, stacklevel=2)
        self.type = DBFDataType.from_code(code)

    def get_data_type(self) -> int:
        """Deprecated: use `type.code` instead."""
        warnings.warn("get_data_type() is deprecated, use DBFField.type.code instead",
                      DeprecationWarning, stacklevel=2)
        if self._type is not None:
            return self._type.code
        return 0

    def set_field_name(self, name: str) -> None:
        """Deprecated: assign `name` instead."""
        warnings.warn("set_field_name() is deprecated, assign DBFField.name instead",
                      DeprecationWarning, stacklevel=2)
        self.name = name

    def _key(self) -> Tuple:
        return (self._name, self._type, self._field_length, self._decimal_count,
                self._reserv1, self._reserv2, self._work_area_id, self._reserv3,
                self._set_fields_flag, self._reserv4, self._index_field_flag)

    def __eq__(self, other):
        if not isinstance(other, DBFField):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None

    def __repr__(self):
        return (f"DBFField(name={self._name!r}, type={self._type}, "
                f"length={self._field_length}, decimal_count={self._decimal_count})")

    def __str__(self):
        char_code = self._type.char_code if self._type is not None else ''
        return (f"{self._name}|{self._type} ({char_code})\n"
                f"Length: {self._field_length}\n"
                f"DecimalCount: {self._decimal_count}\n"
                f"Index: {self._index_field_flag}")


def _adjust_length_for_big_char_support(field: DBFField, high_byte: int) -> None:
    # Clipper and FoxPro store CHARACTER lengths above 255 with the decimal
    # count byte as the high byte of the length.
    if field._type == DBFDataType.CHARACTER:
        field._field_length |= high_byte << 8
        field._decimal_count = 0


def dbf_field_read(stream: BinaryIO, charset: str = DEFAULT_CHARSET) -> Optional[DBFField]:
    """
    Read a field descriptor from a stream positioned at its first byte.

    Args:
        stream: Binary stream (not closed by this function)
        charset: Codec used to decode the field name

    Returns:
        The decoded field, or None if the header terminator (0x0D) was read.
        Only the terminator byte is consumed in that case.

    Raises:
        EOFError: If the stream ends inside a descriptor
    """
    first = read_fully(stream, 1)
    if first[0] == DBF_HEADER_TERMINATOR:
        return None

    field_name = first + read_fully(stream, DBF_FIELD_NAME_SIZE - 1)
    null_index = field_name.find(b'\x00')
    if null_index == -1:
        null_index = DBF_FIELD_NAME_SIZE

    field = DBFField()
    field._name = field_name[:null_index].decode(charset, errors='replace')

    type_code = read_fully(stream, 1)[0]
    try:
        field._type = DBFDataType.from_code(type_code)
    except ValueError:
        logger.warning("Unknown type code 0x%02X for field %r", type_code, field._name)
        field._type = DBFDataType.UNKNOWN

    field._reserv1 = read_little_endian_int(stream)
    field._field_length = read_fully(stream, 1)[0]
    decimal_byte = read_fully(stream, 1)[0]
    field._decimal_count = struct.unpack('<b', bytes([decimal_byte]))[0]
    field._reserv2 = read_little_endian_short(stream)
    field._work_area_id = read_fully(stream, 1)[0]
    # Offsets 21-22 land in reserv2 as well; reserv3 is never filled
    field._reserv2 = read_little_endian_short(stream)
    field._set_fields_flag = read_fully(stream, 1)[0]
    field._reserv4 = read_fully(stream, 7)
    field._index_field_flag = read_fully(stream, 1)[0]

    _adjust_length_for_big_char_support(field, decimal_byte)
    logger.debug("Read field %r", field)
    return field


def dbf_field_write(field: DBFField, stream: BinaryIO, charset: str = DEFAULT_CHARSET) -> None:
    """
    Write a field descriptor (32 bytes) to a stream.

    Reserved bytes are always written as zeros. CHARACTER fields longer than
    255 bytes are stored with the high byte of the length in the decimal
    count byte.

    Args:
        field: The field to write
        stream: Binary stream (not closed by this function)
        charset: Codec used to encode the field name
    """
    if field.name is None or field.type is None:
        raise ValueError("Field name and type must be set before writing")
    name_bytes = field.name.encode(charset, errors='replace')
    if len(name_bytes) > DBF_FIELD_NAME_SIZE:
        raise ValueError(f"Encoded field name exceeds {DBF_FIELD_NAME_SIZE} bytes: {field.name!r}")
    if not 0 <= field.field_length <= DBF_MAX_CHARACTER_LENGTH:
        raise ValueError(f"Field length out of range: {field.field_length}")

    length = field.field_length
    decimal_count = field.decimal_count
    if field.type == DBFDataType.CHARACTER and length > 0xFF:
        length, decimal_count = length & 0xFF, length >> 8
        decimal_count = struct.unpack('<b', bytes([decimal_count]))[0]
    elif length > 0xFF:
        raise ValueError(f"Length {length} does not fit a {field.type.name} field")

    buf = bytearray(DBF_FIELD_DESCRIPTOR_SIZE)
    buf[0:len(name_bytes)] = name_bytes
    buf[11] = field.type.code
    buf[16] = length
    buf[17:18] = struct.pack('<b', decimal_count)
    stream.write(bytes(buf))
    logger.debug("Wrote field %r", field)


def dbf_fields_read(stream: BinaryIO, charset: str = DEFAULT_CHARSET,
                    max_fields: Optional[int] = None) -> List[DBFField]:
    """
    Read field descriptors until the header terminator.

    Args:
        stream: Binary stream positioned at the first descriptor
        charset: Codec used to decode field names
        max_fields: Stop after this many descriptors (terminator not consumed)

    Returns:
        List of fields in file order
    """
    fields = []
    while max_fields is None or len(fields) < max_fields:
        field = dbf_field_read(stream, charset)
        if field is None:
            break
        fields.append(field)
    return fields


def dbf_fields_write(fields: List[DBFField], stream: BinaryIO, charset: str = DEFAULT_CHARSET) -> None:
    """Write field descriptors followed by the header terminator (0x0D)."""
    for field in fields:
        dbf_field_write(field, stream, charset)
    stream.write(bytes([DBF_HEADER_TERMINATOR]))


def build_field_spec(field: DBFField) -> str:
    """
    Build a field specification string (e.g., 'C(30)' or 'N(10,2)').

    Args:
        field: The field definition

    Returns:
        Field specification string
    """
    spec = f"{field.type.char_code}({field.field_length}"
    if field.decimal_count > 0:
        spec += f",{field.decimal_count}"
    spec += ")"
    return spec


_FIELD_SPEC_RE = re.compile(r'^\s*(\S)\s*\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)\s*$')


def parse_field_spec(spec: str) -> Tuple[DBFDataType, int, int]:
    """
    Parse a field specification string.

    Args:
        spec: Field specification string (e.g., 'C(30)' or 'N(10,2)')

    Returns:
        Tuple of (data type, length, decimals)

    Raises:
        ValueError: If the string is malformed or the type code is unknown
    """
    match = _FIELD_SPEC_RE.match(spec)
    if not match:
        raise ValueError(f"Invalid field specification: {spec!r}")
    data_type = DBFDataType.from_code(match.group(1).upper())
    length = int(match.group(2))
    decimals = int(match.group(3)) if match.group(3) else 0
    return (data_type, length, decimals)
