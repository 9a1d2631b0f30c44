import pytest

from qoicodec.chunks import (END_MARKER, HEADER_SIZE, MAX_RUN, Diff, Header,
                             Index, Luma, Rgb, Rgba, Run, pack_chunk,
                             parse_chunk)
from qoicodec.errors import (FormatError, TruncatedStreamError,
                             ValidationError)


def test_header_layout():
    header = Header(2, 1, 3, 0)
    assert header.pack() == b"qoif\x00\x00\x00\x02\x00\x00\x00\x01\x03\x00"
    assert len(header.pack()) == HEADER_SIZE
    assert Header.unpack(header.pack()) == header


def test_header_big_endian_dimensions():
    data = Header(0x01020304, 0x0a0b0c0d, 4, 1).pack()
    assert data[4:8] == b"\x01\x02\x03\x04"
    assert data[8:12] == b"\x0a\x0b\x0c\x0d"
    assert data[12:] == b"\x04\x01"


def test_header_bad_magic():
    with pytest.raises(FormatError):
        Header.unpack(b"qoiF" + Header(1, 1, 3).pack()[4:])


def test_header_too_short():
    with pytest.raises(TruncatedStreamError):
        Header.unpack(b"qoif\x00\x00")


@pytest.mark.parametrize("width,height,channels", [
    (0, 1, 3),
    (1, 0, 4),
    (4, 4, 2),
    (4, 4, 5),
    (65536, 65536, 4),
])
def test_header_validate_rejects(width, height, channels):
    with pytest.raises(ValidationError):
        Header(width, height, channels).validate()


def test_header_colorspace_is_opaque():
    header = Header(1, 1, 3, 0xab).validate()
    assert Header.unpack(header.pack()).colorspace == 0xab


def test_pack_known_bytes():
    assert pack_chunk(Run(1)) == b"\xc0"
    assert pack_chunk(Run(MAX_RUN)) == b"\xfd"
    assert pack_chunk(Index(63)) == b"\x3f"
    assert pack_chunk(Diff(1, -2, 1)) == b"\x73"
    assert pack_chunk(Diff(-2, -2, -2)) == b"\x40"
    assert pack_chunk(Luma(31, 7, -8)) == b"\xbf\xf0"
    assert pack_chunk(Luma(-32, -8, 7)) == b"\x80\x0f"
    assert pack_chunk(Rgb(1, 2, 3)) == b"\xfe\x01\x02\x03"
    assert pack_chunk(Rgba(1, 2, 3, 4)) == b"\xff\x01\x02\x03\x04"


@pytest.mark.parametrize("chunk", [
    Run(0), Run(63), Run(64),
    Index(64),
    Diff(2, 0, 0), Diff(0, -3, 0),
    Luma(32, 0, 0), Luma(0, 8, 0), Luma(0, 0, -9),
])
def test_pack_rejects_out_of_range(chunk):
    with pytest.raises(ValueError):
        pack_chunk(chunk)


def test_run_never_collides_with_full_pixel_tags():
    assert pack_chunk(Run(MAX_RUN))[0] < 0xfe
    assert parse_chunk(b"\xfe\x00\x00\x00", 0)[0] == Rgb(0, 0, 0)
    assert parse_chunk(b"\xff\x00\x00\x00\x00", 0)[0] == Rgba(0, 0, 0, 0)


def test_parse_dispatch():
    stream = b"\x05\x73\xbf\xf0\xc9\xfe\x0a\x0b\x0c\xff\x01\x02\x03\x04"
    pos = 0
    chunks = []
    while pos < len(stream):
        chunk, pos = parse_chunk(stream, pos)
        chunks.append(chunk)
    assert chunks == [
        Index(5),
        Diff(1, -2, 1),
        Luma(31, 7, -8),
        Run(10),
        Rgb(10, 11, 12),
        Rgba(1, 2, 3, 4),
    ]


def test_parse_from_memoryview():
    chunk, pos = parse_chunk(memoryview(b"\x00\xfe\x01\x02\x03"), 1)
    assert chunk == Rgb(1, 2, 3)
    assert pos == 5


@pytest.mark.parametrize("stream", [b"", b"\xfe\x01\x02", b"\xff\x01\x02\x03", b"\x80"])
def test_parse_truncated_payload(stream):
    with pytest.raises(TruncatedStreamError):
        parse_chunk(stream, 0)


def test_end_marker():
    assert END_MARKER == bytes([0, 0, 0, 0, 0, 0, 0, 1])


def test_header_size_bounds():
    assert Header(2, 1, 3).max_size == 2 * 4 + HEADER_SIZE + len(END_MARKER)
    assert Header(2, 1, 4).max_size == 2 * 5 + HEADER_SIZE + len(END_MARKER)
    assert Header(62, 1, 4).min_size == 1 + HEADER_SIZE + len(END_MARKER)
    assert Header(63, 1, 4).min_size == 2 + HEADER_SIZE + len(END_MARKER)
