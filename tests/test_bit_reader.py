import pytest
from bitarray import bitarray

from bit_buffer import BitBuffer
from bit_errors import BufferUnderrun, OutOfRangeLength
from bit_reader import BitReader


def reader_of(bits: str) -> BitReader:
    return BitReader(BitBuffer(len(bits), bitarray(bits)))


def test_read_boolean_sequence():
    r = reader_of("0110101000011100")
    for d in "0110101000011100":
        assert r.read_boolean() is (d == "1")
    assert r.remaining == 0
    with pytest.raises(BufferUnderrun):
        r.read_boolean()


def test_read_byte_is_left_aligned():
    r = reader_of("1011" + "11111111")
    assert r.read_byte(4) == 0b10110000
    assert r.read_byte() == 0xFF
    assert r.position == 12


def test_read_int_chunks():
    r = reader_of("0101" + "0001001000110100" + "101010101")
    assert r.read_int(4) == 5
    assert r.read_int(16) == 0x1234
    assert r.read_int(9) == 0b101010101


def test_read_int_signed():
    r = reader_of("11111" + "01111")
    assert r.read_int(5, signed=True) == -1
    assert r.read_int(5, signed=True) == 15


def test_read_long_full_width():
    r = reader_of("1" + "0" * 62 + "1")
    assert r.read_long(64) == 0x8000000000000001


def test_read_char():
    r = reader_of("0000000001000001" + "0010000010101100")
    assert r.read_char() == "A"
    assert r.read_char() == "€"


def test_read_bytes_pads_last_byte():
    r = reader_of("10101011" + "1100")
    assert r.read_bytes(12) == b"\xab\xc0"
    assert r.position == 12


def test_read_string():
    buf = BitBuffer.frombytes("hé".encode("utf-8"))
    r = BitReader(buf)
    assert r.read_string(24) == "hé"
    assert r.read_string(0) == ""


@pytest.mark.parametrize("bits", [-8, 4, 12])
def test_read_string_needs_whole_bytes(bits):
    r = BitReader(BitBuffer.frombytes(b"ab"))
    with pytest.raises(OutOfRangeLength):
        r.read_string(bits)
    assert r.position == 0


def test_read_bits_returns_copy():
    bits = bitarray("1100101")
    r = BitReader(BitBuffer(7, bits))
    chunk = r.read_bits(4)
    assert chunk == bitarray("1100")
    chunk[0] = 0
    assert bits[0] == 1
    assert r.read_bits(0) == bitarray()


@pytest.mark.parametrize("length", [0, 33, -1])
def test_read_int_length_out_of_range(length):
    r = reader_of("1" * 40)
    with pytest.raises(OutOfRangeLength):
        r.read_int(length)
    assert r.position == 0


@pytest.mark.parametrize(
    "method, args",
    [
        ("read_byte", (0,)),
        ("read_byte", (9,)),
        ("read_long", (65,)),
        ("read_bytes", (0,)),
        ("read_bits", (-1,)),
        ("get_byte", (9, 0)),
        ("get_int", (33, 0)),
        ("get_long", (0, 0)),
        ("get_bytes", (0, 0)),
    ],
)
def test_length_validation(method, args):
    r = reader_of("1" * 80)
    with pytest.raises(OutOfRangeLength):
        getattr(r, method)(*args)


@pytest.mark.parametrize("k", range(0, 9))
def test_underrun_for_every_remaining_count(k):
    r = reader_of("1" * 16)
    r.skip(16 - k)
    with pytest.raises(BufferUnderrun):
        r.read_bits(k + 1)
    assert r.position == 16 - k
    with pytest.raises(BufferUnderrun):
        r.get_bits(k + 1, 16 - k)


def test_underrun_is_an_eoferror():
    r = reader_of("1")
    r.read_boolean()
    with pytest.raises(EOFError):
        r.read_boolean()


def test_random_access_does_not_move_cursor():
    r = reader_of("0101" + "0001001000110100")
    r.read_boolean()
    assert r.get_int(4, 0) == 5
    assert r.get_long(16, 4) == 0x1234
    assert r.get_byte(8, 4) == 0x12
    assert r.get_bytes(16, 4) == b"\x12\x34"
    assert r.get_boolean(1) is True
    assert r.get_bits(3, 0) == bitarray("010")
    assert r.position == 1


def test_get_with_negative_start():
    r = reader_of("1111")
    with pytest.raises(BufferUnderrun):
        r.get_boolean(-1)


def test_get_string_and_char():
    r = BitReader(BitBuffer.frombytes(b"\x00Aok"))
    assert r.get_char(0) == "A"
    assert r.get_string(16, 16) == "ok"
    with pytest.raises(BufferUnderrun):
        r.get_string(16, 24)


def test_skip_is_bounds_checked():
    r = reader_of("10101010")
    r.skip(3)
    assert r.position == 3
    with pytest.raises(BufferUnderrun):
        r.skip(6)
    with pytest.raises(OutOfRangeLength):
        r.skip(-1)
    assert r.position == 3


def test_byte_align():
    r = reader_of("1" * 12)
    r.read_boolean()
    r.byte_align()
    assert r.position == 8
    r.skip(1)
    with pytest.raises(BufferUnderrun):
        r.byte_align()
    assert r.position == 9


def test_position_save_and_restore():
    r = reader_of("0101" + "1111")
    mark = r.position
    assert r.read_int(4) == 5
    r.position = mark
    assert r.read_int(4) == 5
    r.reset()
    assert r.position == 0
    with pytest.raises(BufferUnderrun):
        r.position = 9
    with pytest.raises(BufferUnderrun):
        r.position = -1


def test_from_bits_uses_highest_set_bit():
    r = BitReader.from_bits(bitarray("0010100000"))
    assert r.capacity == 5
    assert r.read_int(5) == 0b00101
    assert BitReader.from_bits("0000").capacity == 0
    assert BitReader.from_bits([0, 1, 0]).capacity == 2
