"""
Image Hiding Codec.

This module implements the transform that conceals a grayscale image in the
two least significant bits of a carrier image's channels, and the transform
that recovers it.

Each hidden pixel is reduced to an 8-bit luminance value which is split into
four 2-bit fields, most significant first:

    bits [7:6] -> alpha, [5:4] -> red, [3:2] -> green, [1:0] -> blue

Every carrier channel is rounded down to the nearest value whose remainder
modulo 4 equals its field, so the upper six bits are kept wherever possible.

Features:
    - Exact BT.709 luminance
    - Closed-form modulo rounding
    - Vectorized embed and extract over numpy arrays
    - Selectable extraction channel order (legacy or symmetric)
"""

import logging
from enum import Enum
from typing import Tuple, Union

import numpy as np

from .pixels import PixelBuffer, ALPHA, RED, GREEN, BLUE


logger = logging.getLogger(__name__)


# Number of distinct values a 2-bit field can take
FACTOR = 4

# ITU-R BT.709 coefficients scaled by 10000
LUMA_WEIGHTS = (2126, 7152, 722)
LUMA_SCALE = 10000


class ChannelOrder(Enum):
    """
    Channel pairing used when reading fields back out of an encoded image.

    LEGACY reads the green field from the blue channel and the blue field
    from the green channel. Images written by earlier releases of the tool
    decode correctly only with this order.

    SYMMETRIC reads every field from the channel it was written to.
    """

    LEGACY = "legacy"
    SYMMETRIC = "symmetric"


# Channel each field (alpha, red, green, blue) is read from
_READ_CHANNELS = {
    ChannelOrder.LEGACY: (ALPHA, RED, BLUE, GREEN),
    ChannelOrder.SYMMETRIC: (ALPHA, RED, GREEN, BLUE),
}


def luminance(red: int, green: int, blue: int) -> int:
    """
    Return the BT.709 luminance of an RGB triple, truncated to an integer.

    The weighted sum is evaluated on integers so the truncation is exact;
    pure white gives 255 rather than 254.
    """
    wr, wg, wb = LUMA_WEIGHTS
    return (wr * red + wg * green + wb * blue) // LUMA_SCALE


def luminance_array(red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> np.ndarray:
    """Element-wise :func:`luminance` over channel arrays, returned as uint8."""
    wr, wg, wb = LUMA_WEIGHTS
    total = (
        wr * red.astype(np.int32)
        + wg * green.astype(np.int32)
        + wb * blue.astype(np.int32)
    )
    return (total // LUMA_SCALE).astype(np.uint8)


def _check_modulo_args(factor: int, remainder) -> None:
    if factor < 1:
        raise ValueError(f"factor must be positive, got {factor}")
    if np.any(np.asarray(remainder) < 0) or np.any(np.asarray(remainder) >= factor):
        raise ValueError(f"remainder must be within [0, {factor})")


def round_to_match_modulo(value: int, factor: int, remainder: int) -> int:
    """
    Round `value` down to a number congruent to `remainder` modulo `factor`.

    Values below `factor` are replaced by `remainder` itself, which may be
    larger than `value`.

    Args:
        value: Non-negative integer to round
        factor: Modulus
        remainder: Target remainder, 0 <= remainder < factor

    Returns:
        Rounded value

    Raises:
        ValueError: If factor or remainder is out of range
    """
    _check_modulo_args(factor, remainder)
    if value < factor:
        return remainder
    return value - ((value - remainder) % factor)


def round_to_match_modulo_array(
    values: np.ndarray,
    factor: int,
    remainders: Union[np.ndarray, int],
) -> np.ndarray:
    """Element-wise :func:`round_to_match_modulo`, returned as uint8."""
    _check_modulo_args(factor, remainders)
    wide = values.astype(np.int32)
    rem = np.asarray(remainders, dtype=np.int32)
    rounded = np.where(wide < factor, rem, wide - ((wide - rem) % factor))
    return rounded.astype(np.uint8)


def split_luminance(value: int) -> Tuple[int, int, int, int]:
    """Split an 8-bit luminance into its (alpha, red, green, blue) fields."""
    return (value >> 6) & 3, (value >> 4) & 3, (value >> 2) & 3, value & 3


def join_fields(alpha: int, red: int, green: int, blue: int) -> int:
    """Inverse of :func:`split_luminance`."""
    return (alpha << 6) | (red << 4) | (green << 2) | blue


def swap_low_fields(value: int) -> int:
    """
    Swap the green and blue fields of a luminance value.

    This is what a LEGACY reveal returns for a pixel hidden with the
    visual channel order.
    """
    a, r, g, b = split_luminance(value)
    return join_fields(a, r, b, g)


def embed(carrier: PixelBuffer, hidden: PixelBuffer) -> PixelBuffer:
    """
    Hide the luminance of `hidden` in the low bits of `carrier`.

    Only the region shared by both images is encoded; carrier pixels
    outside the hidden image are copied unchanged. The output always has
    the carrier's dimensions. Fields are always written in visual order
    (alpha, red, green, blue).

    Args:
        carrier: Image whose channels are altered
        hidden: Image whose luminance is concealed

    Returns:
        New PixelBuffer containing the encoded image
    """
    width = min(carrier.width, hidden.width)
    height = min(carrier.height, hidden.height)
    logger.info(
        f"Embedding {hidden.width}x{hidden.height} image into "
        f"{carrier.width}x{carrier.height} carrier, covered region {width}x{height}"
    )

    out = carrier.copy_array()
    if width == 0 or height == 0:
        return PixelBuffer(out)

    region = hidden.array[:height, :width]
    lum = luminance_array(region[:, :, RED], region[:, :, GREEN], region[:, :, BLUE])

    fields = (
        (lum >> 6) & 3,
        (lum >> 4) & 3,
        (lum >> 2) & 3,
        lum & 3,
    )
    for channel, field in zip((ALPHA, RED, GREEN, BLUE), fields):
        out[:height, :width, channel] = round_to_match_modulo_array(
            out[:height, :width, channel], FACTOR, field
        )

    logger.debug(f"Embedded {width * height} pixels")
    return PixelBuffer(out)


def extract(
    encoded: PixelBuffer,
    channel_order: ChannelOrder = ChannelOrder.LEGACY,
) -> PixelBuffer:
    """
    Recover a grayscale image from an encoded buffer.

    Every pixel of the input is decoded; the caller has to know how much of
    it was actually covered by a hidden image.

    Args:
        encoded: Image produced by :func:`embed`
        channel_order: Pairing of fields to channels when reading

    Returns:
        New opaque grayscale PixelBuffer of the same dimensions
    """
    logger.info(f"Extracting {encoded.width}x{encoded.height} image using {channel_order.value} order")

    a_ch, r_ch, g_ch, b_ch = _READ_CHANNELS[channel_order]
    src = encoded.array
    lum = (
        ((src[:, :, a_ch] % FACTOR) << 6)
        | ((src[:, :, r_ch] % FACTOR) << 4)
        | ((src[:, :, g_ch] % FACTOR) << 2)
        | (src[:, :, b_ch] % FACTOR)
    ).astype(np.uint8)

    out = np.empty((encoded.height, encoded.width, 4), dtype=np.uint8)
    out[:, :, ALPHA] = 255
    out[:, :, RED] = lum
    out[:, :, GREEN] = lum
    out[:, :, BLUE] = lum
    return PixelBuffer(out)
