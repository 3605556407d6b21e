"""
Error kinds raised by the bit buffer, reader and writer.

Every error is a caller precondition violation and is raised before any bit
is consumed or mutated. Each kind also derives from the builtin exception a
caller would expect, so ``except ValueError`` or ``except EOFError`` keeps
working.
"""


class BitStreamError(Exception):
    """Base class for all bit buffer errors."""


class OutOfRangeLength(BitStreamError, ValueError):
    """A requested bit length is outside the legal span for its type."""


class BufferOverflow(BitStreamError, IndexError):
    """A write would run past the declared capacity of the buffer."""


class BufferUnderrun(BitStreamError, EOFError):
    """A read would run past the declared capacity of the buffer."""


class EmptyInput(BitStreamError, ValueError):
    """An empty string or bit sequence was supplied to a write."""


def check_length(length: int, maximum: int, kind: str, minimum: int = 1) -> None:
    """
    Validate a requested bit length against the span legal for ``kind``.

    Raises:
        OutOfRangeLength: If ``length`` is outside ``[minimum, maximum]``
    """
    if length < minimum or length > maximum:
        raise OutOfRangeLength(
            f"Bit length {length} is out of range for {kind} "
            f"(expected {minimum}..{maximum})"
        )
