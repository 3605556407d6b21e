from bitarray import bitarray, frozenbitarray
from bitarray.util import zeros

BYTE_LENGTH = 8
CHAR_LENGTH = 16
INT_LENGTH = 32
LONG_LENGTH = 64

# 10 KiB worth of bits
DEFAULT_CAPACITY = 81920
DEFAULT_ENCODING = "utf-8"


class BitBuffer:
    """
    A fixed-capacity run of bits backed by a big-endian bitarray.

    The buffer is a plain holder: it does not check that ``capacity`` matches
    the length of ``storage``. Storage shorter than the capacity reads as zero
    past its end, and writers grow it before mutating.
    """

    def __init__(self, capacity: int, storage: bitarray | None = None) -> None:
        """
        Args:
            capacity: Total number of addressable bits
            storage: Initial bit contents; an all-zero bitarray of
                ``capacity`` bits when omitted. A bitarray is kept by
                reference, any other iterable of bits is copied.
        """
        if storage is None:
            storage = zeros(capacity, endian="big")
        elif not isinstance(storage, bitarray):
            storage = bitarray(storage, endian="big")
        self._capacity = capacity
        self._storage = storage

    @classmethod
    def frombytes(cls, data: bytes, capacity: int | None = None) -> "BitBuffer":
        """
        Build a buffer from already materialized bytes, first byte first.

        Args:
            data: Source bytes
            capacity: Declared capacity, ``8 * len(data)`` by default

        Returns:
            A new BitBuffer owning a copy of the bits
        """
        storage = bitarray(endian="big")
        storage.frombytes(bytes(data))
        if capacity is None:
            capacity = len(storage)
        return cls(capacity, storage)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def storage(self) -> bitarray:
        return self._storage

    @property
    def is_frozen(self) -> bool:
        return isinstance(self._storage, frozenbitarray)

    def bit(self, index: int) -> int:
        """Return the bit at ``index``, 0 past the end of storage."""
        if index < len(self._storage):
            return self._storage[index]
        return 0

    def slice(self, start: int, length: int) -> bitarray:
        """
        Copy ``length`` bits starting at ``start`` into a new bitarray,
        zero-filling whatever lies past the end of storage.
        """
        chunk = bitarray(self._storage[start:start + length], endian="big")
        if len(chunk) < length:
            chunk.extend(zeros(length - len(chunk), endian="big"))
        return chunk

    def grow(self) -> None:
        """Extend storage with zero bits until it covers the whole capacity."""
        missing = self._capacity - len(self._storage)
        if missing > 0:
            self._storage.extend(zeros(missing, endian="big"))

    def frozen(self) -> "BitBuffer":
        """Return an immutable copy of the first ``capacity`` bits."""
        return BitBuffer(self._capacity, frozenbitarray(self.slice(0, self._capacity)))

    def tobytes(self) -> bytes:
        """
        Materialize the buffer as bytes. The last partial byte is padded
        with zero bits on the right.
        """
        return self.slice(0, self._capacity).tobytes()

    def __len__(self) -> int:
        return self._capacity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitBuffer):
            return NotImplemented
        return (
            self._capacity == other._capacity
            and self.slice(0, self._capacity) == other.slice(0, other._capacity)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"BitBuffer(capacity={self._capacity},stored={len(self._storage)})"
