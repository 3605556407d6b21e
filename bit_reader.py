import logging
from collections.abc import Iterable

from bitarray import bitarray
from bitarray.util import ba2int

from bit_buffer import (
    BYTE_LENGTH,
    CHAR_LENGTH,
    DEFAULT_ENCODING,
    INT_LENGTH,
    LONG_LENGTH,
    BitBuffer,
)
from bit_errors import BufferUnderrun, OutOfRangeLength, check_length

logger = logging.getLogger(__name__)


class BitReader:
    """
    A class for reading typed values out of a BitBuffer.
    Provides sequential ``read_*`` methods that consume bits from the cursor
    and random-access ``get_*`` methods that decode at an explicit offset
    without moving it. The buffer itself is never modified.
    """

    def __init__(self, buffer: BitBuffer) -> None:
        """
        Initialize a BitReader over ``buffer`` with the cursor at 0.

        Args:
            buffer: The bits to decode
        """
        self._buffer = buffer
        self._position = 0
        logger.debug("New reader over %r", buffer)

    @classmethod
    def from_bits(cls, bits: Iterable) -> "BitReader":
        """
        Build a reader over a raw bit sequence. The capacity is the index of
        the highest set bit plus one, so trailing zero bits are not readable.

        Args:
            bits: A bitarray, a string of '0'/'1' or an iterable of truthy values

        Returns:
            A new BitReader
        """
        if isinstance(bits, bitarray):
            storage = bits
        elif isinstance(bits, str):
            storage = bitarray(bits, endian="big")
        else:
            storage = bitarray([bool(bit) for bit in bits], endian="big")
        capacity = 0
        if storage.any():
            capacity = len(storage) - storage[::-1].index(1)
        return cls(BitBuffer(capacity, storage))

    @property
    def buffer(self) -> BitBuffer:
        return self._buffer

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int) -> None:
        if value < 0 or value > self.capacity:
            logger.debug("Rejected reader position %d (capacity %d)", value, self.capacity)
            raise BufferUnderrun(
                f"Position {value} is outside the buffer of {self.capacity} bits"
            )
        logger.debug("Reader position moved from %d to %d", self._position, value)
        self._position = value

    @property
    def remaining(self) -> int:
        return self.capacity - self._position

    def reset(self) -> None:
        logger.debug("Reader reset from position %d", self._position)
        self._position = 0

    def skip(self, bits: int) -> None:
        """
        Move the cursor forward without decoding anything.

        Raises:
            OutOfRangeLength: If ``bits`` is negative
            BufferUnderrun: If fewer than ``bits`` bits remain
        """
        if bits < 0:
            raise OutOfRangeLength(f"Cannot skip a negative number of bits: {bits}")
        self._consume(bits)
        logger.debug("Skipped %d bits, now at %d", bits, self._position)

    def byte_align(self) -> None:
        """
        Move the position to the start of the next byte.

        Raises:
            BufferUnderrun: If the next byte boundary lies past the capacity
        """
        self.skip(-self._position % BYTE_LENGTH)

    # ---- bounds ----

    def _check_get(self, bits: int, start: int) -> None:
        if start < 0 or start + bits > self.capacity:
            logger.debug(
                "Rejected read of %d bits at %d (capacity %d)", bits, start, self.capacity
            )
            raise BufferUnderrun(
                f"Reading {bits} bits at position {start} would go out of bounds. "
                f"There are {max(self.capacity - start, 0)} bits remaining"
            )

    def _consume(self, bits: int) -> int:
        """Check that ``bits`` bits remain, advance past them and return where they start."""
        start = self._position
        self._check_get(bits, start)
        self._position += bits
        return start

    # ---- decoders shared by the read and get families ----

    def _bits_left(self, start: int, bits: int) -> int:
        """Decode ``bits`` bits into the high end of a byte."""
        value = 0
        for i in range(1, bits + 1):
            if self._buffer.bit(start + i - 1):
                value |= 1 << (BYTE_LENGTH - i)
        return value

    def _bits_right(self, start: int, bits: int) -> int:
        """Decode ``bits`` bits so the last one read is the least significant."""
        return ba2int(self._buffer.slice(start, bits))

    def _decode_number(self, start: int, length: int, signed: bool) -> int:
        full, rest = divmod(length, BYTE_LENGTH)
        value = 0
        for i in range(1, full + 1):
            chunk = self._bits_right(start + (i - 1) * BYTE_LENGTH, BYTE_LENGTH)
            value += chunk << (length - i * BYTE_LENGTH)
        if rest:
            value += self._bits_right(start + full * BYTE_LENGTH, rest)
        if signed and value >> (length - 1):
            value -= 1 << length
        return value

    def _decode_char(self, start: int) -> str:
        high = self._bits_left(start, BYTE_LENGTH)
        low = self._bits_left(start + BYTE_LENGTH, BYTE_LENGTH)
        return chr((high << BYTE_LENGTH) | low)

    def _decode_bytes(self, start: int, length: int) -> bytes:
        # tobytes() zero-fills the last partial byte on the right
        return self._buffer.slice(start, length).tobytes()

    def _decode_string(self, start: int, bits: int, encoding: str) -> str:
        if not bits:
            return ""
        return self._decode_bytes(start, bits).decode(encoding)

    @staticmethod
    def _check_string_length(bits: int) -> None:
        if bits < 0 or bits % BYTE_LENGTH:
            raise OutOfRangeLength(
                f"Bit length {bits} is not a non-negative multiple of {BYTE_LENGTH}"
            )

    @staticmethod
    def _check_bytes_length(bits: int) -> None:
        if bits < 1:
            raise OutOfRangeLength(f"Bit length {bits} is out of range for a byte sequence")

    @staticmethod
    def _check_bits_length(bits: int) -> None:
        if bits < 0:
            raise OutOfRangeLength(f"Bit length {bits} cannot be negative")

    # ---- sequential reads ----

    def read_boolean(self) -> bool:
        """
        Read one bit from the stream.

        Returns:
            True if the bit is 1, False if it is 0

        Raises:
            BufferUnderrun: If the buffer is exhausted
        """
        return bool(self._buffer.bit(self._consume(1)))

    def read_byte(self, length: int = BYTE_LENGTH) -> int:
        """
        Read ``length`` bits MSB-first into the high end of a byte.

        Args:
            length: Number of bits to read (1-8)

        Returns:
            The byte as an int in 0-255; reading ``1011`` gives ``0b10110000``

        Raises:
            OutOfRangeLength: If ``length`` is outside 1-8
            BufferUnderrun: If there are not enough bits to read
        """
        check_length(length, BYTE_LENGTH, "a byte")
        return self._bits_left(self._consume(length), length)

    def read_bytes(self, length: int) -> bytes:
        """
        Read ``length`` bits as ``ceil(length / 8)`` bytes. A final partial
        byte is left-aligned and zero-filled.
        """
        self._check_bytes_length(length)
        return self._decode_bytes(self._consume(length), length)

    def read_int(self, length: int = INT_LENGTH, signed: bool = False) -> int:
        """
        Read an integer stored in ``length`` bits.

        Args:
            length: Number of bits to read (1-32)
            signed: Treat the first bit as a two's complement sign bit

        Raises:
            OutOfRangeLength: If ``length`` is outside 1-32
            BufferUnderrun: If there are not enough bits to read
        """
        check_length(length, INT_LENGTH, "an int")
        return self._decode_number(self._consume(length), length, signed)

    def read_long(self, length: int = LONG_LENGTH, signed: bool = False) -> int:
        """Like ``read_int`` with lengths up to 64 bits."""
        check_length(length, LONG_LENGTH, "a long")
        return self._decode_number(self._consume(length), length, signed)

    def read_char(self) -> str:
        """Read a 16-bit character, high byte first."""
        return self._decode_char(self._consume(CHAR_LENGTH))

    def read_string(self, bits: int, encoding: str = DEFAULT_ENCODING) -> str:
        """
        Read ``bits // 8`` bytes and decode them with ``encoding``.

        Raises:
            OutOfRangeLength: If ``bits`` is not a non-negative multiple of 8
            BufferUnderrun: If there are not enough bits to read
        """
        self._check_string_length(bits)
        return self._decode_string(self._consume(bits), bits, encoding)

    def read_bits(self, bits: int) -> bitarray:
        """Read ``bits`` raw bits into a new bitarray."""
        self._check_bits_length(bits)
        return self._buffer.slice(self._consume(bits), bits)

    # ---- random access ----

    def get_boolean(self, start: int) -> bool:
        self._check_get(1, start)
        return bool(self._buffer.bit(start))

    def get_byte(self, length: int, start: int) -> int:
        check_length(length, BYTE_LENGTH, "a byte")
        self._check_get(length, start)
        return self._bits_left(start, length)

    def get_bytes(self, length: int, start: int) -> bytes:
        self._check_bytes_length(length)
        self._check_get(length, start)
        return self._decode_bytes(start, length)

    def get_int(self, length: int, start: int, signed: bool = False) -> int:
        check_length(length, INT_LENGTH, "an int")
        self._check_get(length, start)
        return self._decode_number(start, length, signed)

    def get_long(self, length: int, start: int, signed: bool = False) -> int:
        check_length(length, LONG_LENGTH, "a long")
        self._check_get(length, start)
        return self._decode_number(start, length, signed)

    def get_char(self, start: int) -> str:
        self._check_get(CHAR_LENGTH, start)
        return self._decode_char(start)

    def get_string(self, bits: int, start: int, encoding: str = DEFAULT_ENCODING) -> str:
        self._check_string_length(bits)
        self._check_get(bits, start)
        return self._decode_string(start, bits, encoding)

    def get_bits(self, bits: int, start: int) -> bitarray:
        self._check_bits_length(bits)
        self._check_get(bits, start)
        return self._buffer.slice(start, bits)

    def __repr__(self) -> str:
        return f"BitReader(position={self._position},capacity={self.capacity})"
