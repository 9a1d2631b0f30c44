from dataclasses import dataclass

CACHE_SIZE = 64


@dataclass(frozen=True)
class Pixel:
    red: int = 0
    green: int = 0
    blue: int = 0
    alpha: int = 0

    def __str__(self):
        return f"R: {self.red} G: {self.green} B: {self.blue} A: {self.alpha}"

    def __iter__(self):
        return iter((self.red, self.green, self.blue, self.alpha))

    @property
    def hash(self) -> int:
        return pixel_hash(self)

    @property
    def rgb(self) -> tuple:
        return (self.red, self.green, self.blue)

    def to_bytes(self, channels: int = 4) -> bytes:
        return bytes(tuple(self)[:channels])

    @classmethod
    def from_hex(cls, value: str) -> "Pixel":
        """Build a pixel from a 3, 4, 6 or 8 digit hex string.

        Short forms repeat each digit (``"f0a"`` is ``ff00aa``); alpha
        defaults to 255 when the string carries none.
        """
        value = value.lstrip("#")
        if len(value) in (3, 4):
            channels = [int(c, 16) * 17 for c in value]
        elif len(value) in (6, 8):
            channels = [int(value[i:i + 2], 16) for i in range(0, len(value), 2)]
        else:
            raise ValueError(f"cannot parse a pixel from {len(value)} hex digits: {value!r}")
        if len(channels) == 3:
            channels.append(255)
        return cls(*channels)


ZERO_PIXEL = Pixel(0, 0, 0, 0)


def pixel_hash(pixel) -> int:
    r, g, b, a = pixel
    return (r * 3 + g * 5 + b * 7 + a * 11) % CACHE_SIZE


class PredictorState:
    """Recency cache and previous-pixel register shared by both directions.

    The encoder and the decoder each own one instance per call and feed it
    the same resolved pixels in the same order, which keeps both sides in
    lockstep without the stream ever naming a cache slot for RUN, DIFF or
    LUMA chunks.
    """

    def __init__(self):
        self.cache = [ZERO_PIXEL] * CACHE_SIZE
        self.previous = ZERO_PIXEL

    def lookup(self, index: int) -> Pixel:
        return self.cache[index]

    def update(self, pixel: Pixel):
        self.cache[pixel_hash(pixel)] = pixel

    def advance(self, pixel: Pixel):
        self.previous = pixel

    def resolve(self, pixel: Pixel):
        self.update(pixel)
        self.advance(pixel)

    def snapshot(self):
        return tuple(self.cache), self.previous
