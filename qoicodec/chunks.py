"""Binary vocabulary of the stream: header, chunk variants and end marker.

Every chunk kind is a small frozen dataclass holding decoded, signed
values. Only :func:`pack_chunk` and :func:`parse_chunk` know about tag bits
and biases; the encoder and decoder work with the variants alone.
"""
import struct
from dataclasses import dataclass

from .errors import FormatError, TruncatedStreamError, ValidationError

MAGIC = b"qoif"
HEADER_FORMAT = ">4sIIBB"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
END_MARKER = b"\x00" * 7 + b"\x01"
END_MARKER_SIZE = len(END_MARKER)

SRGB = 0
LINEAR = 1

QOI_OP_INDEX = 0x00  # 00xxxxxx
QOI_OP_DIFF = 0x40   # 01xxxxxx
QOI_OP_LUMA = 0x80   # 10xxxxxx
QOI_OP_RUN = 0xc0    # 11xxxxxx
QOI_OP_RGB = 0xfe    # 11111110
QOI_OP_RGBA = 0xff   # 11111111

QOI_MASK_2 = 0xc0
QOI_DEMASK_2 = 0x3f

DIFF_BIAS = 2
LUMA_GREEN_BIAS = 32
LUMA_BIAS = 8
MAX_RUN = 62

MAX_BYTE_COUNT = 2 ** 32


@dataclass(frozen=True)
class Header:
    width: int
    height: int
    channels: int
    colorspace: int = SRGB

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def byte_count(self) -> int:
        return self.pixel_count * self.channels

    @property
    def max_size(self) -> int:
        """Largest stream an encoder can produce: a full-pixel chunk per pixel."""
        return self.pixel_count * (self.channels + 1) + HEADER_SIZE + END_MARKER_SIZE

    @property
    def min_size(self) -> int:
        """Smallest stream that can hold every pixel: one RUN byte per MAX_RUN pixels."""
        return -(-self.pixel_count // MAX_RUN) + HEADER_SIZE + END_MARKER_SIZE

    def validate(self):
        if self.channels not in (3, 4):
            raise ValidationError(f"channels must be 3 or 4, got {self.channels}")
        if self.width <= 0 or self.height <= 0:
            raise ValidationError(f"image dimensions must be nonzero, got {self.width}x{self.height}")
        if self.byte_count >= MAX_BYTE_COUNT:
            raise ValidationError(
                f"{self.width}x{self.height}x{self.channels} does not fit a 32-bit byte count")
        if not 0 <= self.colorspace <= 0xff:
            raise ValidationError(f"colorspace tag must fit one byte, got {self.colorspace}")
        return self

    def pack(self) -> bytes:
        return struct.pack(HEADER_FORMAT, MAGIC, self.width, self.height,
                           self.channels, self.colorspace)

    @classmethod
    def unpack(cls, data) -> "Header":
        if len(data) < HEADER_SIZE:
            raise TruncatedStreamError(
                f"stream holds {len(data)} bytes, a header needs {HEADER_SIZE}")
        magic, width, height, channels, colorspace = struct.unpack_from(HEADER_FORMAT, data, 0)
        if magic != MAGIC:
            raise FormatError(f"bad magic {magic!r}, expected {MAGIC!r}")
        return cls(width, height, channels, colorspace)


@dataclass(frozen=True)
class Rgb:
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class Rgba:
    r: int
    g: int
    b: int
    a: int


@dataclass(frozen=True)
class Index:
    index: int


@dataclass(frozen=True)
class Diff:
    dr: int
    dg: int
    db: int


@dataclass(frozen=True)
class Luma:
    dg: int
    dr_dg: int
    db_dg: int


@dataclass(frozen=True)
class Run:
    length: int


def _check(name, value, low, high):
    if not low <= value <= high:
        raise ValueError(f"{name}={value} outside [{low}, {high}]")


def pack_chunk(chunk) -> bytes:
    if isinstance(chunk, Run):
        _check("run length", chunk.length, 1, MAX_RUN)
        return bytes((QOI_OP_RUN | (chunk.length - 1),))
    if isinstance(chunk, Index):
        _check("index", chunk.index, 0, QOI_DEMASK_2)
        return bytes((QOI_OP_INDEX | chunk.index,))
    if isinstance(chunk, Diff):
        for name in ("dr", "dg", "db"):
            _check(name, getattr(chunk, name), -DIFF_BIAS, DIFF_BIAS - 1)
        return bytes((QOI_OP_DIFF
                      | (chunk.dr + DIFF_BIAS) << 4
                      | (chunk.dg + DIFF_BIAS) << 2
                      | (chunk.db + DIFF_BIAS),))
    if isinstance(chunk, Luma):
        _check("dg", chunk.dg, -LUMA_GREEN_BIAS, LUMA_GREEN_BIAS - 1)
        _check("dr_dg", chunk.dr_dg, -LUMA_BIAS, LUMA_BIAS - 1)
        _check("db_dg", chunk.db_dg, -LUMA_BIAS, LUMA_BIAS - 1)
        return bytes((QOI_OP_LUMA | (chunk.dg + LUMA_GREEN_BIAS),
                      (chunk.dr_dg + LUMA_BIAS) << 4 | (chunk.db_dg + LUMA_BIAS)))
    if isinstance(chunk, Rgb):
        return bytes((QOI_OP_RGB, chunk.r, chunk.g, chunk.b))
    if isinstance(chunk, Rgba):
        return bytes((QOI_OP_RGBA, chunk.r, chunk.g, chunk.b, chunk.a))
    raise TypeError(f"not a chunk: {chunk!r}")


def _payload(data, offset, size):
    end = offset + size
    if end > len(data):
        raise TruncatedStreamError(
            f"chunk at byte {offset - 1} needs {size} more bytes, stream ends at {len(data)}")
    return data[offset:end], end


def parse_chunk(data, offset: int):
    """Read the chunk starting at ``offset``; return it with the next offset."""
    if offset >= len(data):
        raise TruncatedStreamError(f"stream ended at byte {len(data)} while reading pixels")
    tag = data[offset]
    offset += 1

    if tag == QOI_OP_RGB:
        payload, offset = _payload(data, offset, 3)
        return Rgb(*payload), offset
    if tag == QOI_OP_RGBA:
        payload, offset = _payload(data, offset, 4)
        return Rgba(*payload), offset

    kind = tag & QOI_MASK_2
    if kind == QOI_OP_INDEX:
        return Index(tag & QOI_DEMASK_2), offset
    if kind == QOI_OP_DIFF:
        return Diff(((tag >> 4) & 0x03) - DIFF_BIAS,
                    ((tag >> 2) & 0x03) - DIFF_BIAS,
                    (tag & 0x03) - DIFF_BIAS), offset
    if kind == QOI_OP_LUMA:
        payload, offset = _payload(data, offset, 1)
        return Luma((tag & QOI_DEMASK_2) - LUMA_GREEN_BIAS,
                    (payload[0] >> 4) - LUMA_BIAS,
                    (payload[0] & 0x0f) - LUMA_BIAS), offset
    return Run((tag & QOI_DEMASK_2) + 1), offset
