"""
Element identifiers packed into 8-bit RGB pixels.

Each channel carries 6 significant bits in its top six bits. Decoding sums
red, green << 6 and blue << 12 and drops the two low bits, so the value 0
(black) means "no element" and element k is drawn as identifier k + 1.
"""

from __future__ import annotations

import numpy as np

ID_BITS_PER_CHANNEL = 6
MAX_ELEMENT_ID = (1 << (3 * ID_BITS_PER_CHANNEL)) - 1

_MASK = (1 << ID_BITS_PER_CHANNEL) - 1


def encode_id(ident: int) -> np.ndarray:
    """RGBA8 colour for identifier `ident` (0 is the background)."""
    ident = int(ident)
    if ident < 0 or ident > MAX_ELEMENT_ID:
        raise ValueError(f"identifier {ident} outside 0..{MAX_ELEMENT_ID}")
    r = (ident & _MASK) << 2
    g = ((ident >> 6) & _MASK) << 2
    b = ((ident >> 12) & _MASK) << 2
    return np.array([r, g, b, 255], dtype=np.uint8)


def encode_index(index: int) -> np.ndarray:
    """Colour for element `index`; identifiers are offset by one."""
    return encode_id(int(index) + 1)


def decode_pixels(pixels: np.ndarray) -> np.ndarray:
    """
    Identifier per pixel from an (..., 4) or (..., 3) uint8 array.

    Returns int64 identifiers with the same leading shape; subtract one to
    get an element index, 0 meaning nothing was drawn there.
    """
    px = np.asarray(pixels)
    r = px[..., 0].astype(np.int64)
    g = px[..., 1].astype(np.int64)
    b = px[..., 2].astype(np.int64)
    return (r + (g << 6) + (b << 12)) >> 2
