import numpy as np
from PIL import Image

from qoicodec import decode, encode
from qoicodec.convert import from_pil, to_array, to_pil


def test_pil_roundtrip():
    src = np.random.default_rng(4).integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
    img = Image.fromarray(src)

    pixels, width, height, channels = from_pil(img)
    assert (width, height, channels) == (7, 5, 4)

    back = to_pil(decode(encode(pixels, width, height, channels)))
    assert back.mode == "RGBA"
    assert (np.array(back) == src).all()


def test_from_pil_converts_other_modes():
    img = Image.new("L", (3, 2), color=90)
    pixels, width, height, channels = from_pil(img)
    assert channels == 3
    assert pixels == bytes([90] * 18)

    img = Image.new("LA", (3, 2), color=(90, 10))
    assert from_pil(img)[3] == 4


def test_to_array_follows_requested_layout():
    src = np.full((2, 3, 3), 40, dtype=np.uint8)
    data = encode(src, 3, 2, 3)

    assert to_array(decode(data)).shape == (2, 3, 3)
    rgba = to_array(decode(data, channels=4))
    assert rgba.shape == (2, 3, 4)
    assert (rgba[..., 3] == 255).all()
    assert to_pil(decode(data, channels=4)).mode == "RGBA"
