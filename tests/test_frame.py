"""Tests for frame building, parsing and the XOR checksum."""

import pytest

from sequences.tof_stream.libs.tof_protocol.checksum import XORChecksum
from sequences.tof_stream.libs.tof_protocol.constants import HEADER
from sequences.tof_stream.libs.tof_protocol.exceptions import (
    BadMagicError,
    BadSizeError,
    ChecksumError,
    PayloadTooLargeError,
)
from sequences.tof_stream.libs.tof_protocol.frame import Frame, FrameBuilder, FrameParser


def test_checksum_empty():
    """XOR of nothing is zero."""
    assert XORChecksum.calculate(b"") == 0


def test_checksum_known_value():
    """Checksum of size field 02 00 and payload 10 00."""
    assert XORChecksum.calculate(b"\x02\x00\x10\x00") == 0x12


def test_encode_fields():
    """encode fills header, size and checksum."""
    frame = FrameBuilder.encode(b"\x10\x00")
    assert frame.header == HEADER
    assert frame.size == 2
    assert frame.payload == b"\x10\x00"
    assert frame.checksum == 0x12


def test_to_wire_layout():
    """Wire layout is header, little-endian size, payload, checksum."""
    wire = FrameBuilder.to_wire(FrameBuilder.encode(b"\x10\x00"))
    assert wire == bytes([0x5A, 0x77, 0xFF, 0x02, 0x00, 0x10, 0x00, 0x12])


def test_to_wire_length():
    """Wire frames are payload size + 6 bytes."""
    for size in (0, 1, 7, 300, 14401):
        assert len(FrameBuilder.build(bytes(size))) == size + 6


def test_size_is_little_endian():
    """A 0x0102-byte payload has size bytes 02 01."""
    wire = FrameBuilder.build(bytes(0x0102))
    assert wire[3:5] == b"\x02\x01"


def test_command_frames():
    """Fixed command frames match their expected wire bytes."""
    assert FrameBuilder.build_set_baud() == bytes.fromhex("5a77ff0200125545")
    assert FrameBuilder.build_query_device_info() == bytes.fromhex("5a77ff0200100012")
    assert FrameBuilder.build_start_stream() == bytes.fromhex("5a77ff020008000a")
    assert FrameBuilder.build_stop_stream() == bytes.fromhex("5a77ff030002000001")


def test_encode_payload_too_large():
    """Payloads beyond 65535 bytes cannot be framed."""
    with pytest.raises(PayloadTooLargeError):
        FrameBuilder.encode(bytes(0x10000))


def test_encode_max_payload():
    frame = FrameBuilder.encode(bytes(0xFFFF))
    assert frame.size == 0xFFFF


@pytest.mark.parametrize("payload", [b"", b"\x00", b"\x10\x00", bytes(range(256)) * 3])
def test_roundtrip(payload):
    """decode(to_wire(encode(p))) gives back p."""
    wire = FrameBuilder.build(payload)
    frame = FrameParser.decode(wire, len(payload))
    assert frame.payload == payload
    assert frame == FrameBuilder.encode(payload)


def test_decode_does_not_mutate_input():
    wire = bytearray(FrameBuilder.build(b"\x01\x02\x03"))
    before = bytes(wire)
    FrameParser.decode(wire, 3)
    assert bytes(wire) == before


def test_checksum_sensitivity():
    """Flipping any bit of the size field or payload fails the checksum."""
    payload = b"\x12\x34\x56\x78"
    wire = FrameBuilder.build(payload)
    for index in range(3, len(wire) - 1):
        for bit in range(8):
            corrupted = bytearray(wire)
            corrupted[index] ^= 1 << bit
            with pytest.raises(ChecksumError):
                FrameParser.decode(bytes(corrupted), len(payload))


def test_payload_bit_flip_is_checksum_error():
    """Payload corruption is reported as a checksum error."""
    wire = bytearray(FrameBuilder.build(b"\x10\x00"))
    wire[5] ^= 0x01
    with pytest.raises(ChecksumError) as excinfo:
        FrameParser.decode(bytes(wire), 2)
    assert excinfo.value.received == 0x12


def test_corrupted_checksum_byte():
    wire = bytearray(FrameBuilder.build(b"\xAA\xBB"))
    wire[-1] ^= 0x80
    with pytest.raises(ChecksumError):
        FrameParser.decode(bytes(wire), 2)


@pytest.mark.parametrize("index", [0, 1, 2])
def test_magic_enforcement(index):
    """Any corrupted header byte is BadMagic, even with a valid checksum."""
    wire = bytearray(FrameBuilder.build(b"\x10\x00"))
    wire[index] ^= 0xFF
    with pytest.raises(BadMagicError):
        FrameParser.decode(bytes(wire), 2)


def test_size_enforcement():
    """A valid frame of a different size than expected is BadSize."""
    wire = FrameBuilder.build(bytes(7))
    with pytest.raises(BadSizeError) as excinfo:
        FrameParser.decode(wire, 8)
    assert excinfo.value.expected == 8


def test_size_field_mismatch_same_length():
    """A checksum-consistent size field disagreeing with the expected size is BadSize."""
    wire = bytearray(FrameBuilder.build(bytes(4)))
    wire[3] = 5
    wire[-1] = XORChecksum.calculate(bytes(wire[3:-1]))
    with pytest.raises(BadSizeError) as excinfo:
        FrameParser.decode(bytes(wire), 4)
    assert excinfo.value.received == 5


def test_frame_rejects_inconsistent_fields():
    """Frames cannot be built with a wrong size or checksum."""
    with pytest.raises(BadSizeError):
        Frame(HEADER, 3, b"\x01\x02", 0x01)
    with pytest.raises(ChecksumError):
        Frame(HEADER, 2, b"\x01\x02", 0x00)
    with pytest.raises(BadMagicError):
        Frame(b"\x00\x00\x00", 0, b"", 0)


def test_frame_is_immutable():
    frame = FrameBuilder.encode(b"\x01")
    with pytest.raises(AttributeError):
        frame.payload = b"\x02"


def test_frame_repr():
    r = repr(FrameBuilder.encode(b"\x10\x00"))
    assert "10 00" in r
    assert "0x12" in r
