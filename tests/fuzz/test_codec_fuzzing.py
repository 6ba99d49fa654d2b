"""
Fuzz Tests for the imagehider Codec

This module contains property-based tests for the rounding primitive,
luminance, and the embed/extract transforms using hypothesis.
"""

import pytest
import numpy as np
import hypothesis.strategies as st
from hypothesis import given, settings, Verbosity
from hypothesis.extra.numpy import arrays

from imagehider.pixels import PixelBuffer, RED, GREEN, BLUE
from imagehider.codec import (
    ChannelOrder,
    luminance,
    luminance_array,
    round_to_match_modulo,
    swap_low_fields,
    embed,
    extract,
)


# Hypothesis strategies for fuzz testing
channel_values = st.integers(min_value=0, max_value=255)
remainders = st.integers(min_value=0, max_value=3)
dimensions = st.tuples(st.integers(min_value=0, max_value=12), st.integers(min_value=0, max_value=12))


@st.composite
def pixel_buffers(draw, shape=None):
    """Draw a PixelBuffer with random dimensions and contents."""
    if shape is None:
        width, height = draw(dimensions)
        shape = (height, width)
    data = draw(arrays(np.uint8, (shape[0], shape[1], 4), elements=channel_values))
    return PixelBuffer(data)


class TestRoundingFuzzing:
    """Fuzz tests for modulo rounding."""

    @given(value=st.integers(min_value=4, max_value=255), remainder=remainders)
    @settings(verbosity=Verbosity.quiet, max_examples=200)
    def test_rounds_down_to_remainder(self, value, remainder):
        """Fuzz test the postconditions for values at or above the factor."""
        result = round_to_match_modulo(value, 4, remainder)

        assert result % 4 == remainder
        assert result <= value
        assert value - result <= 3
        assert result >= 0

    @given(value=st.integers(min_value=0, max_value=3), remainder=remainders)
    @settings(verbosity=Verbosity.quiet, max_examples=50)
    def test_small_values(self, value, remainder):
        """Fuzz test values below the factor."""
        assert round_to_match_modulo(value, 4, remainder) == remainder

    @given(value=st.integers(min_value=0, max_value=10 ** 6),
           factor=st.integers(min_value=1, max_value=64),
           data=st.data())
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_other_factors(self, value, factor, data):
        """Fuzz test the closed form for arbitrary factors."""
        remainder = data.draw(st.integers(min_value=0, max_value=factor - 1))
        result = round_to_match_modulo(value, factor, remainder)

        assert result % factor == remainder
        if value >= factor:
            assert value - factor < result <= value


class TestLuminanceFuzzing:
    """Fuzz tests for luminance."""

    @given(r=channel_values, g=channel_values, b=channel_values)
    @settings(verbosity=Verbosity.quiet, max_examples=200)
    def test_range(self, r, g, b):
        """Fuzz test that luminance stays within 8 bits."""
        assert 0 <= luminance(r, g, b) <= 255

    @given(r=channel_values, g=channel_values, b=channel_values,
           channel=st.sampled_from([0, 1, 2]), step=st.integers(min_value=0, max_value=255))
    @settings(verbosity=Verbosity.quiet, max_examples=200)
    def test_monotonic(self, r, g, b, channel, step):
        """Fuzz test that raising one channel never lowers luminance."""
        rgb = [r, g, b]
        raised = list(rgb)
        raised[channel] = min(255, rgb[channel] + step)

        assert luminance(*raised) >= luminance(*rgb)


class TestTransformFuzzing:
    """Fuzz tests for embed and extract."""

    @given(carrier=pixel_buffers(), hidden=pixel_buffers())
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_embed_keeps_carrier_dimensions(self, carrier, hidden):
        """Fuzz test output size and untouched pixels for any pair of sizes."""
        encoded = embed(carrier, hidden)
        width = min(carrier.width, hidden.width)
        height = min(carrier.height, hidden.height)

        assert encoded.size == carrier.size
        np.testing.assert_array_equal(encoded.array[height:], carrier.array[height:])
        np.testing.assert_array_equal(encoded.array[:, width:], carrier.array[:, width:])

    @given(data=st.data(), shape=dimensions)
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_round_trip(self, data, shape):
        """Fuzz test recovery of luminance under both channel orders."""
        width, height = shape
        carrier = data.draw(pixel_buffers((height, width)))
        hidden = data.draw(pixel_buffers((height, width)))

        encoded = embed(carrier, hidden)
        expected = luminance_array(hidden.array[:, :, RED], hidden.array[:, :, GREEN], hidden.array[:, :, BLUE])

        symmetric = extract(encoded, ChannelOrder.SYMMETRIC)
        np.testing.assert_array_equal(symmetric.array[:, :, RED], expected)

        legacy = extract(encoded, ChannelOrder.LEGACY)
        swapped = np.vectorize(swap_low_fields, otypes=[np.uint8])(expected) if expected.size else expected
        np.testing.assert_array_equal(legacy.array[:, :, RED], swapped)

    @given(encoded=pixel_buffers())
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_extract_keeps_dimensions(self, encoded):
        """Fuzz test that extract covers the full input."""
        assert extract(encoded).size == encoded.size
        assert extract(encoded) == extract(encoded)
