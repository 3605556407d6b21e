import logging
from collections.abc import Iterable

from bitarray import bitarray
from bitarray.util import zeros

from bit_buffer import (
    BYTE_LENGTH,
    CHAR_LENGTH,
    DEFAULT_CAPACITY,
    DEFAULT_ENCODING,
    INT_LENGTH,
    LONG_LENGTH,
    BitBuffer,
)
from bit_errors import BufferOverflow, EmptyInput, OutOfRangeLength, check_length

logger = logging.getLogger(__name__)

MAX_BYTE = 0xFF
MAX_CHAR = 0xFFFF


def _msb_bits(value: int, length: int) -> bitarray:
    """The lowest ``length`` bits of ``value``, most significant bit first."""
    bits = bitarray(endian="big")
    for i in range(length - 1, -1, -1):
        bits.append((value >> i) & 1)
    return bits


def _byte_bits(value: int, length: int) -> bitarray:
    """The highest ``length`` bits of a byte, most significant bit first."""
    return _msb_bits((value & MAX_BYTE) >> (BYTE_LENGTH - length), length)


def _number_bits(value: int, length: int) -> bitarray:
    """
    Encode the low ``length`` bits of ``value`` as whole bytes from most to
    least significant, followed by the ``length % 8`` low-order bits.
    """
    bits = bitarray(endian="big")
    remaining = length
    while remaining >= BYTE_LENGTH:
        remaining -= BYTE_LENGTH
        bits += _msb_bits((value >> remaining) & MAX_BYTE, BYTE_LENGTH)
    bits += _msb_bits(value & ((1 << remaining) - 1), remaining)
    return bits


def _sequence_bits(data: bytes, length: int) -> bitarray:
    full, rest = divmod(length, BYTE_LENGTH)
    bits = bitarray(endian="big")
    for value in data[:full]:
        bits += _byte_bits(value, BYTE_LENGTH)
    if rest:
        bits += _byte_bits(data[full], rest)
    return bits


def _char_bits(value: str | int | None) -> bitarray:
    if value is None:
        value = 0
    code = ord(value) if isinstance(value, str) else value
    if code < 0 or code > MAX_CHAR:
        raise ValueError(f"Character {value!r} does not fit in {CHAR_LENGTH} bits")
    return _byte_bits(code >> BYTE_LENGTH, BYTE_LENGTH) + _byte_bits(code, BYTE_LENGTH)


def _as_bits(data: Iterable | None) -> bitarray:
    if data is None:
        return bitarray(endian="big")
    if isinstance(data, bitarray):
        return data
    if isinstance(data, str):
        return bitarray(data, endian="big")
    return bitarray([bool(bit) for bit in data], endian="big")


class BitWriter:
    """
    Writes typed values into a fixed-capacity BitBuffer.

    The ``append_*`` methods write at the cursor and advance it by the number
    of bits written. The ``set_*`` methods write the same bit pattern at an
    explicit offset and leave the cursor alone. Every bounds and length check
    happens before any bit is touched, so a failed call leaves the buffer
    unchanged.

    Scalar values may be ``None``; they are written as false, 0 or ``'\\x00'``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """
        Create a writer over a new all-zero buffer.

        Args:
            capacity: Number of bits the buffer can hold
        """
        self._buffer = BitBuffer(capacity)
        self._position = 0
        logger.debug("New writer with capacity %d", capacity)

    @classmethod
    def from_buffer(cls, buffer: BitBuffer) -> "BitWriter":
        """
        Create a writer that mutates ``buffer`` in place, cursor at 0.

        A frozen buffer (a snapshot from ``get_buffer``) cannot be written,
        so the writer takes a mutable copy of it instead.
        """
        if buffer.is_frozen:
            logger.debug("Copying frozen buffer of %d bits for writing", buffer.capacity)
            buffer = BitBuffer(buffer.capacity, buffer.slice(0, buffer.capacity))
        else:
            buffer.grow()
        writer = cls.__new__(cls)
        writer._buffer = buffer
        writer._position = 0
        return writer

    @classmethod
    def copy_of(cls, other: "BitWriter") -> "BitWriter":
        """Create an independent writer with a copy of ``other``'s bits and cursor."""
        writer = cls.__new__(cls)
        writer._buffer = BitBuffer(other.capacity, other._buffer.slice(0, other.capacity))
        writer._position = other._position
        return writer

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int) -> None:
        if value < 0 or value > self.capacity:
            logger.debug("Rejected writer position %d (capacity %d)", value, self.capacity)
            raise BufferOverflow(
                f"Position {value} is outside the buffer of {self.capacity} bits"
            )
        logger.debug("Writer position moved from %d to %d", self._position, value)
        self._position = value

    @property
    def remaining(self) -> int:
        return self.capacity - self._position

    def get_buffer(self) -> BitBuffer:
        """
        Return an immutable snapshot of the written bits and the declared
        capacity. Later writes do not show through the snapshot.
        """
        logger.debug("Snapshot of %d bits taken at position %d", self.capacity, self._position)
        return self._buffer.frozen()

    def _check_range(self, length: int, start: int) -> None:
        if start < 0 or start + length > self.capacity:
            logger.debug(
                "Rejected write of %d bits at %d (capacity %d)", length, start, self.capacity
            )
            raise BufferOverflow(
                f"Writing {length} bits at position {start} would go out of bounds. "
                f"There are {max(self.capacity - start, 0)} bits remaining"
            )

    @staticmethod
    def _check_count(bits: int, action: str) -> None:
        if bits < 0:
            raise OutOfRangeLength(f"Cannot {action} a negative number of bits: {bits}")

    def _write(self, bits: bitarray, start: int) -> None:
        self._check_range(len(bits), start)
        self._buffer.storage[start:start + len(bits)] = bits

    def _append(self, bits: bitarray) -> None:
        self._write(bits, self._position)
        self._position += len(bits)

    # ---- encoders shared by the append and set families ----

    @staticmethod
    def _encode_bool(value: bool | None) -> bitarray:
        return bitarray([bool(value)], endian="big")

    @staticmethod
    def _encode_byte(value: int | None, length: int) -> bitarray:
        check_length(length, BYTE_LENGTH, "a byte")
        return _byte_bits(value or 0, length)

    @staticmethod
    def _encode_bytes(data: bytes | Iterable[int] | None, length: int) -> bitarray:
        data = b"\x00" if data is None else bytes(b & MAX_BYTE for b in data)
        check_length(length, BYTE_LENGTH * len(data), f"a byte sequence of length {len(data)}")
        return _sequence_bits(data, length)

    @staticmethod
    def _encode_number(value: int | None, length: int, maximum: int, kind: str) -> bitarray:
        check_length(length, maximum, kind)
        return _number_bits(value or 0, length)

    @staticmethod
    def _encode_string(value: str, encoding: str) -> bitarray:
        if not value:
            raise EmptyInput("Cannot write an empty string")
        data = value.encode(encoding)
        return _sequence_bits(data, BYTE_LENGTH * len(data))

    @staticmethod
    def _encode_bits(data: Iterable | None) -> bitarray:
        bits = _as_bits(data)
        if not len(bits):
            raise EmptyInput("Cannot write an empty bit sequence")
        return bits

    @staticmethod
    def _encode_buffer(buffer: BitBuffer, length: int) -> bitarray:
        check_length(length, buffer.capacity, f"a buffer of {buffer.capacity} bits")
        return buffer.slice(0, length)

    # ---- append family ----

    def append_boolean(self, value: bool | None = False) -> None:
        """Append one bit: 1 for true, 0 for false."""
        self._append(self._encode_bool(value))

    def append_byte(self, value: int | None, length: int = BYTE_LENGTH) -> None:
        """
        Append the highest ``length`` bits of a byte.

        Args:
            value: Byte value; only the low 8 bits are used
            length: Number of bits to write (1-8)

        Raises:
            OutOfRangeLength: If ``length`` is outside 1-8
            BufferOverflow: If fewer than ``length`` bits remain
        """
        self._append(self._encode_byte(value, length))

    def append_bytes(self, data: bytes | Iterable[int] | None, length: int) -> None:
        """
        Append the first ``length`` bits of a byte sequence, first byte first.

        Raises:
            OutOfRangeLength: If ``length`` is outside 1 to ``8 * len(data)``
            BufferOverflow: If fewer than ``length`` bits remain
        """
        self._append(self._encode_bytes(data, length))

    def append_int(self, value: int | None, length: int = INT_LENGTH) -> None:
        """
        Append the low ``length`` bits of an integer, most significant first.

        Raises:
            OutOfRangeLength: If ``length`` is outside 1-32
            BufferOverflow: If fewer than ``length`` bits remain
        """
        self._append(self._encode_number(value, length, INT_LENGTH, "an int"))

    def append_long(self, value: int | None, length: int = LONG_LENGTH) -> None:
        """Like ``append_int`` with lengths up to 64 bits."""
        self._append(self._encode_number(value, length, LONG_LENGTH, "a long"))

    def append_char(self, value: str | int | None) -> None:
        """Append a 16-bit character, high byte first."""
        self._append(_char_bits(value))

    def append_string(self, value: str, encoding: str = DEFAULT_ENCODING) -> None:
        """
        Append the encoded bytes of ``value``, 8 bits per byte.

        Raises:
            EmptyInput: If ``value`` is empty
            BufferOverflow: If the encoded string does not fit
        """
        self._append(self._encode_string(value, encoding))

    def append_bits(self, data: Iterable) -> None:
        """Append a literal bit sequence, index 0 first."""
        self._append(self._encode_bits(data))

    def append_buffer(self, buffer: BitBuffer, length: int) -> None:
        """Append the first ``length`` bits of another buffer."""
        self._append(self._encode_buffer(buffer, length))

    # ---- set family ----

    def set_boolean(self, value: bool | None, start: int) -> None:
        self._write(self._encode_bool(value), start)

    def set_byte(self, value: int | None, length: int, start: int) -> None:
        self._write(self._encode_byte(value, length), start)

    def set_bytes(self, data: bytes | Iterable[int] | None, length: int, start: int) -> None:
        self._write(self._encode_bytes(data, length), start)

    def set_int(self, value: int | None, length: int, start: int) -> None:
        self._write(self._encode_number(value, length, INT_LENGTH, "an int"), start)

    def set_long(self, value: int | None, length: int, start: int) -> None:
        self._write(self._encode_number(value, length, LONG_LENGTH, "a long"), start)

    def set_char(self, value: str | int | None, start: int) -> None:
        self._write(_char_bits(value), start)

    def set_string(self, value: str, start: int, encoding: str = DEFAULT_ENCODING) -> None:
        self._write(self._encode_string(value, encoding), start)

    def set_bits(self, data: Iterable, start: int) -> None:
        self._write(self._encode_bits(data), start)

    def set_buffer(self, buffer: BitBuffer, length: int, start: int) -> None:
        self._write(self._encode_buffer(buffer, length), start)

    # ---- padding ----

    def pad(self, bits: int) -> None:
        """
        Append ``bits`` zero bits.

        Raises:
            OutOfRangeLength: If ``bits`` is negative
            BufferOverflow: If fewer than ``bits`` bits remain
        """
        self._check_count(bits, "pad")
        self._append(zeros(bits, endian="big"))

    def clear(self, bits: int, start: int) -> None:
        """Zero ``bits`` bits from ``start`` without moving the cursor."""
        self._check_count(bits, "clear")
        self._write(zeros(bits, endian="big"), start)

    def byte_align(self) -> None:
        """Pad with zeros up to the next byte boundary."""
        self.pad(-self._position % BYTE_LENGTH)

    def __repr__(self) -> str:
        return f"BitWriter(position={self._position},capacity={self.capacity})"
