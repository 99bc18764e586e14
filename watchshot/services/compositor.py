#!/usr/bin/env python3
"""
Image Compositor

Composites a screenshot onto a watch-face mockup:
1. Optional background tint with a "WATCH SHOT" stamp at the bottom
2. Watch-face artwork over the full canvas
3. Screenshot, centered, with a lighten blend so the face shows through
   the dark parts of the screenshot
4. Models that are for sale or unavailable get the whole image at 35% opacity

Blending is done on premultiplied float RGBA arrays so the result is
deterministic for identical inputs.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from watchshot.config.compose_config import CompositorConfig, StampConfig, get_interpolation_method
from watchshot.services.color_utils import parse_color, parse_color_alpha, stamp_color
from watchshot.services.ownership import Ownership

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


class ComposeError(Exception):
    """Raised when an image cannot be composited"""
    pass


def load_font(candidates: Sequence[str], size: int) -> FontType:
    """First loadable TrueType font of the candidates, else Pillow's default"""
    for name in candidates:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


# ==================================
# PREMULTIPLIED RGBA HELPERS
# ==================================

def premultiply(image: Image.Image) -> np.ndarray:
    """RGBA image to a premultiplied float32 array in 0.0-1.0"""
    buffer = np.asarray(image.convert("RGBA"), dtype=np.float32) / 255.0
    buffer[..., :3] *= buffer[..., 3:4]
    return buffer


def unpremultiply(buffer: np.ndarray) -> Image.Image:
    """Premultiplied float array back to a straight-alpha RGBA image"""
    alpha = buffer[..., 3:4]
    rgb = np.divide(
        buffer[..., :3],
        alpha,
        out=np.zeros_like(buffer[..., :3]),
        where=alpha > 0,
    )
    straight = np.concatenate([rgb, alpha], axis=-1)
    pixels = np.clip(np.rint(straight * 255.0), 0, 255).astype(np.uint8)
    return Image.fromarray(pixels)


def blend_normal(destination: np.ndarray, source: np.ndarray) -> np.ndarray:
    """Source-over"""
    return source + destination * (1.0 - source[..., 3:4])


def blend_lighten(destination: np.ndarray, source: np.ndarray) -> np.ndarray:
    """
    Separable lighten blend

    Where both layers are opaque each channel is the larger of the two;
    elsewhere the layers combine as in source-over.
    """
    source_alpha = source[..., 3:4]
    destination_alpha = destination[..., 3:4]

    rgb = (
        source[..., :3] * (1.0 - destination_alpha)
        + destination[..., :3] * (1.0 - source_alpha)
        + np.maximum(source[..., :3] * destination_alpha, destination[..., :3] * source_alpha)
    )
    alpha = source_alpha + destination_alpha - source_alpha * destination_alpha
    return np.concatenate([rgb, alpha], axis=-1)


def fit_to_size(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Resize an RGBA image to exactly `size` (width, height) when it differs"""
    image = image.convert("RGBA")
    if image.size == tuple(size):
        return image

    resized = cv2.resize(np.asarray(image), tuple(size), interpolation=get_interpolation_method())
    return Image.fromarray(resized)


class ImageCompositor:
    """Composites screenshots onto watch-face artwork"""

    def __init__(self, catalog, artwork_dir: Path):
        """
        Initialize compositor

        Args:
            catalog: Catalog providing each model's size class
            artwork_dir: Directory containing "<prefix>_<suffix>.png" faces
        """
        self.logger = logging.getLogger(__name__)
        self.catalog = catalog
        self.artwork_dir = artwork_dir
        self._fonts: Dict[str, FontType] = {}

    def _font(self, weight: str) -> FontType:
        if weight not in self._fonts:
            candidates = StampConfig.BOLD_FONTS if weight == "bold" else StampConfig.LIGHT_FONTS
            self._fonts[weight] = load_font(candidates, StampConfig.FONT_SIZE)
        return self._fonts[weight]

    def load_artwork(self, model) -> Image.Image:
        """
        Load the face artwork of a model

        Raises:
            ComposeError: If the artwork file is missing or unreadable
        """
        artwork_path = self.artwork_dir / model.artwork_filename

        # Guard clause: Artwork missing
        if not artwork_path.exists():
            raise ComposeError(f"Artwork not found: {artwork_path}")

        try:
            with Image.open(artwork_path) as artwork:
                return artwork.convert("RGBA")
        except OSError as e:
            raise ComposeError(f"Could not load artwork {artwork_path}: {e}")

    def draw_stamp(self, canvas: Image.Image, tint: str) -> None:
        """
        Draw the two-part wordmark centered along the bottom edge

        The color is a slightly darker or lighter shade of the tint, with
        the tint's alpha.
        """
        color = parse_color(stamp_color(tint)) + (parse_color_alpha(tint)[3],)
        bold_font = self._font("bold")
        light_font = self._font("light")

        draw = ImageDraw.Draw(canvas)
        bold_width = draw.textlength(StampConfig.BOLD_TEXT, font=bold_font)
        light_width = draw.textlength(StampConfig.LIGHT_TEXT, font=light_font)
        text_height = max(
            draw.textbbox((0, 0), StampConfig.BOLD_TEXT, font=bold_font)[3],
            draw.textbbox((0, 0), StampConfig.LIGHT_TEXT, font=light_font)[3],
        )

        width, height = canvas.size
        start_x = (width - bold_width - light_width) / 2.0
        start_y = height - text_height - StampConfig.BOTTOM_MARGIN

        draw.text((start_x, start_y), StampConfig.BOLD_TEXT, font=bold_font, fill=color)
        draw.text((start_x + bold_width, start_y), StampConfig.LIGHT_TEXT, font=light_font, fill=color)

    def compose(
        self,
        screenshot: Image.Image,
        model,
        ownership: Ownership,
        tint: Optional[str] = None
    ) -> Image.Image:
        """
        Create the shareable image for a screenshot on a model

        Args:
            screenshot: Screenshot image
            model: Watch model whose artwork and size class are used
            ownership: Current ownership of the model
            tint: Optional background color; adds the wordmark stamp

        Returns:
            RGBA image of the size class output size

        Raises:
            ComposeError: If the artwork is missing or the tint is invalid
        """
        size_class = self.catalog.size_class_for(model)
        image_size = size_class.image_size
        x, y, screenshot_width, screenshot_height = size_class.screenshot_rect

        if tint is not None:
            try:
                fill = parse_color_alpha(tint)
            except ValueError as e:
                raise ComposeError(f"Invalid tint {tint!r}: {e}")
            canvas_image = Image.new("RGBA", image_size, fill)
            self.draw_stamp(canvas_image, tint)
        else:
            canvas_image = Image.new("RGBA", image_size, CompositorConfig.TRANSPARENT)

        canvas = premultiply(canvas_image)

        artwork = fit_to_size(self.load_artwork(model), image_size)
        canvas = blend_normal(canvas, premultiply(artwork))

        if screenshot.size != (screenshot_width, screenshot_height):
            self.logger.debug(
                f"Resizing screenshot {screenshot.size} to {(screenshot_width, screenshot_height)}"
            )
        shot = premultiply(fit_to_size(screenshot, (screenshot_width, screenshot_height)))
        region = canvas[y:y + screenshot_height, x:x + screenshot_width]
        canvas[y:y + screenshot_height, x:x + screenshot_width] = blend_lighten(region, shot)

        if not ownership.is_usable:
            # Locked preview: redraw everything onto a cleared canvas, faded
            canvas = canvas * CompositorConfig.LOCKED_PREVIEW_OPACITY

        return unpremultiply(canvas)

    def save(self, image: Image.Image, output_path: Path) -> None:
        """Write a composited image as PNG"""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(output_path, format="PNG", compress_level=CompositorConfig.PNG_COMPRESSION_LEVEL)
        self.logger.info(f"Saved {output_path}")
