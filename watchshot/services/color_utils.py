#!/usr/bin/env python3
"""
Color Utility Functions

Provides color manipulation functions for the compositor. Used primarily
for picking the wordmark stamp color from the background tint.

Usage:
    from watchshot.services.color_utils import stamp_color, luminance

    stamp = stamp_color("#E6E6E6")  # a bit darker than the tint
"""

import colorsys
from typing import Tuple

from PIL import ImageColor

from watchshot.config.compose_config import StampConfig


def parse_color(color: str) -> Tuple[int, int, int]:
    """
    Convert any Pillow color specifier to an RGB tuple (0-255 range)

    Args:
        color: Hex ("#FF5733", "FF5733", "#F53", "#FF573380") or a CSS color name

    Returns:
        Tuple of (R, G, B) values in 0-255 range

    Raises:
        ValueError: If the color cannot be parsed

    Example:
        >>> parse_color("#FF5733")
        (255, 87, 51)
    """
    return parse_color_alpha(color)[:3]


def parse_color_alpha(color: str) -> Tuple[int, int, int, int]:
    """
    Convert a color specifier to an RGBA tuple, opaque unless the hex has alpha

    Example:
        >>> parse_color_alpha("#FF573380")
        (255, 87, 51, 128)
    """
    color = color.strip()
    if color and not color.startswith('#') and all(c in '0123456789abcdefABCDEF' for c in color):
        color = f'#{color}'
    rgba = ImageColor.getrgb(color)
    if len(rgba) == 3:
        return rgba + (255,)
    return rgba


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """
    Convert RGB values to hex color string

    Example:
        >>> rgb_to_hex(255, 87, 51)
        '#ff5733'
    """
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_hsv(color: str) -> Tuple[float, float, float]:
    """
    Convert a color to an HSV tuple

    Returns:
        Tuple of (H, S, V) values, each 0.0 to 1.0
    """
    r, g, b = parse_color(color)
    return colorsys.rgb_to_hsv(r / 255.0, g / 255.0, b / 255.0)


def hsv_to_hex(h: float, s: float, v: float) -> str:
    """Convert HSV values (0.0 to 1.0) to a hex color string"""
    r_norm, g_norm, b_norm = colorsys.hsv_to_rgb(h, s, v)
    r = int(round(r_norm * 255))
    g = int(round(g_norm * 255))
    b = int(round(b_norm * 255))
    return rgb_to_hex(r, g, b)


def luminance(color: str) -> float:
    """
    Perceptual luminance of a color, 0.0 (black) to 1.0 (white)

    Uses Rec. 709 weights on the gamma-encoded channels.

    Example:
        >>> round(luminance("#FFFFFF"), 3)
        1.0
    """
    r, g, b = parse_color(color)
    wr, wg, wb = StampConfig.LUMINANCE_WEIGHTS
    return (r * wr + g * wg + b * wb) / 255.0


def brightness(color: str) -> float:
    """HSV brightness (value) of a color, 0.0 to 1.0"""
    return hex_to_hsv(color)[2]


def lighten_color(color: str, amount: float = StampConfig.BRIGHTNESS_STEP) -> str:
    """
    Increase the HSV brightness of a color, capped at 1.0

    Hue and saturation are kept.
    """
    h, s, v = hex_to_hsv(color)
    return hsv_to_hex(h, s, min(1.0, v + amount))


def darken_color(color: str, amount: float = StampConfig.BRIGHTNESS_STEP) -> str:
    """
    Decrease the HSV brightness of a color, floored at 0.0

    Hue and saturation are kept.
    """
    h, s, v = hex_to_hsv(color)
    return hsv_to_hex(h, s, max(0.0, v - amount))


def stamp_color(tint: str) -> str:
    """
    Pick the wordmark color for a background tint

    Light backgrounds get a slightly darker stamp, dark backgrounds a
    slightly lighter one, so the stamp stays subtle on either.

    Args:
        tint: Background color

    Returns:
        Hex color string for the stamp

    Example:
        >>> brightness(stamp_color("#E6E6E6")) < brightness("#E6E6E6")
        True
    """
    if luminance(tint) > StampConfig.LUMINANCE_THRESHOLD:
        return darken_color(tint)
    return lighten_color(tint)
