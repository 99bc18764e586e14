#!/usr/bin/env python3
"""
Compositing Configuration Constants

This module centralizes the magic numbers used when compositing a
screenshot onto a watch-face mockup.

Usage:
    from watchshot.config.compose_config import CompositorConfig

    opacity = CompositorConfig.LOCKED_PREVIEW_OPACITY
"""

from typing import Tuple


class CompositorConfig:
    """Configuration constants for watch-face compositing"""

    # ==================================
    # LOCKED PREVIEW
    # ==================================

    # Opacity used to redraw the whole composite for models that are
    # for sale or unavailable
    LOCKED_PREVIEW_OPACITY = 0.35

    # ==================================
    # INTERPOLATION
    # ==================================

    # OpenCV interpolation method used when the screenshot or artwork
    # does not match the size class geometry
    INTERPOLATION_METHOD = 'LANCZOS4'

    # ==================================
    # OUTPUT
    # ==================================

    # Artwork file extension, looked up as "<prefix>_<suffix>.png"
    ARTWORK_EXTENSION = ".png"

    # PNG compression level (0-9, where 9 is highest compression)
    PNG_COMPRESSION_LEVEL = 9

    # Transparent pixel (RGBA)
    TRANSPARENT = (0, 0, 0, 0)


class StampConfig:
    """Wordmark stamped at the bottom of tinted images

    Layout:
    ┌────────────────────────┐
    │                        │
    │      ┌──────────┐      │
    │      │  FACE +  │      │
    │      │SCREENSHOT│      │
    │      └──────────┘      │
    │      WATCH SHOT        │  ← BOTTOM_MARGIN px above the edge
    └────────────────────────┘
    """

    # Two-part wordmark, drawn as one centered run
    BOLD_TEXT = "WATCH"
    LIGHT_TEXT = " SHOT"

    FONT_SIZE = 24

    # Space between the text block and the bottom of the canvas (pixels)
    BOTTOM_MARGIN = 4

    # Fonts tried in order; Pillow's built-in font is the last resort
    BOLD_FONTS: Tuple[str, ...] = (
        "HelveticaNeue-Bold.ttf",
        "Helvetica-Bold.ttf",
        "Arial Bold.ttf",
        "arialbd.ttf",
        "DejaVuSans-Bold.ttf",
    )
    LIGHT_FONTS: Tuple[str, ...] = (
        "HelveticaNeue-Light.ttf",
        "Helvetica-Light.ttf",
        "Arial.ttf",
        "arial.ttf",
        "DejaVuSans-ExtraLight.ttf",
        "DejaVuSans.ttf",
    )

    # ==================================
    # COLOR ADJUSTMENT
    # ==================================

    # Perceptual luminance above which the stamp goes darker
    LUMINANCE_THRESHOLD = 0.5

    # HSV brightness change applied to the tint
    BRIGHTNESS_STEP = 0.10

    # Rec. 709 luma coefficients
    LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)


class LabelConfig:
    """Human-readable model label"""

    BRAND = "WATCH"


class PathConfig:
    """Path configuration"""

    # ==================================
    # FILE NAMES
    # ==================================

    # Bundled configuration resource, relative to the package
    WATCHES_RESOURCE = "resources/watches.json"

    # Default locations, relative to the user's home directory
    DATA_DIR = ".watchshot"
    DEFAULTS_FILE = "defaults.json"
    STORE_DIR = "store"
    ARTWORK_DIR = "artwork"

    # ==================================
    # FILE PATTERNS
    # ==================================

    SCREENSHOT_PATTERNS = ("*.png", "*.PNG", "*.jpg", "*.jpeg", "*.JPG")
    OUTPUT_PATTERN = "{name}_{suffix}.png"

    # ==================================
    # PREFERENCE KEYS
    # ==================================

    LAST_SELECTED_MODEL_KEY = "lastSelectedModel"


def get_interpolation_method():
    """Returns OpenCV interpolation method constant"""
    import cv2
    method_name = CompositorConfig.INTERPOLATION_METHOD
    return getattr(cv2, f'INTER_{method_name}')
