"""
Post Rasterizer.

Draws a compositor layout onto a square Pillow canvas and encodes it as PNG.
Measurements are written in preview pixels (the 500px live preview) and
scaled to the configured canvas size.
"""

import logging
import re
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageColor, ImageDraw, ImageFont, ImageOps

from app.config import get_settings
from app.models import PostConfig
from app.services.asset_ingest import decode_data_url
from app.services.compositor import (
    CodeBlock, ImageBlock, PostLayout, ProfileOverlay, TextBlock, ThreadBlock, compose,
)

logger = logging.getLogger(__name__)

settings = get_settings()

PREVIEW_SIZE = 500

# Preview geometry
PADDING = 24
BLOCK_GAP = 16
CONTENT_WIDTH_RATIO = 0.9
THREAD_MARGIN_BOTTOM = 48
TEXT_LEADING = 1.25

CODE_FONT_SIZE = 12
CODE_LEADING = 1.625
CODE_PADDING = 16
CODE_RADIUS = 8
CODE_DOT_SIZE = 8
CODE_DOT_GAP = 4
CODE_HEADER_GAP = 12
CODE_DOT_COLORS = [(239, 68, 68), (234, 179, 8), (34, 197, 94)]
CODE_THEMES = {
    "dark": {"fill": (17, 24, 39), "text": (243, 244, 246), "border": (55, 65, 81)},
    "light": {"fill": (243, 244, 246), "text": (17, 24, 39), "border": (209, 213, 219)},
}

AVATAR_SIZE = 48
AVATAR_GAP = 12
AVATAR_PLACEHOLDER = (156, 163, 175)
USERNAME_SIZE = 18

FOLLOW_SIZE = 14
FOLLOW_PADDING_X = 24
FOLLOW_PADDING_Y = 8
FOLLOW_RADIUS = 8
FOLLOW_COLOR = (59, 130, 246)

WHITE = (255, 255, 255)

FILENAME_STEM_LENGTH = 20

FONT_FILES = {
    "Inter": {"normal": "Inter-Regular.ttf", "bold": "Inter-Bold.ttf"},
    "Arial": {"normal": "Arial.ttf", "bold": "Arial-Bold.ttf"},
    "Georgia": {"normal": "Georgia.ttf", "bold": "Georgia-Bold.ttf"},
    "Verdana": {"normal": "Verdana.ttf", "bold": "Verdana-Bold.ttf"},
    "monospace": {"normal": "JetBrainsMono-Regular.ttf", "bold": "JetBrainsMono-Bold.ttf"},
}

# System fonts Pillow can usually locate by name
FALLBACK_FONTS = {
    "normal": "DejaVuSans.ttf",
    "bold": "DejaVuSans-Bold.ttf",
    "mono": "DejaVuSansMono.ttf",
}


def export_filename(text: str) -> str:
    """First 20 characters of the text, whitespace runs collapsed to '-'."""
    stem = re.sub(r"\s+", "-", text[:FILENAME_STEM_LENGTH])
    return f"{stem or 'post'}.png"


class TextRenderer:
    """Resolves font families to FreeType fonts and measures text."""

    def __init__(self, font_path: str):
        self.font_path = Path(font_path)
        self.fonts = {}

    def get_font(self, family: str, weight: str, size: int) -> ImageFont.FreeTypeFont:
        """Get font for a family/weight, cached per renderer."""
        key = (family, weight, size)
        if key not in self.fonts:
            self.fonts[key] = self._load_font(family, weight, size)
        return self.fonts[key]

    def _load_font(self, family: str, weight: str, size: int) -> ImageFont.FreeTypeFont:
        """Load a font, falling back to system and built-in fonts."""
        files = FONT_FILES.get(family, FONT_FILES["Inter"])
        candidates = [str(self.font_path / files.get(weight, files["normal"]))]
        if family == "monospace":
            candidates.append(FALLBACK_FONTS["mono"])
        candidates.append(FALLBACK_FONTS["bold" if weight == "bold" else "normal"])

        for candidate in candidates:
            try:
                return ImageFont.truetype(candidate, size)
            except OSError:
                continue

        logger.debug(f"No TrueType font for {family}/{weight}, using Pillow default")
        return ImageFont.load_default(size=size)

    @staticmethod
    def wrap_words(text: str, font: ImageFont.FreeTypeFont, max_width: float) -> list:
        """Wrap text on word boundaries to fit within max_width. Newlines are kept."""
        lines = []
        for paragraph in text.split("\n"):
            words = paragraph.split()
            current_line = []

            for word in words:
                test_line = " ".join(current_line + [word])
                if font.getlength(test_line) <= max_width:
                    current_line.append(word)
                else:
                    if current_line:
                        lines.append(" ".join(current_line))
                    current_line = [word]

            lines.append(" ".join(current_line))

        return lines

    @staticmethod
    def wrap_chars(text: str, font: ImageFont.FreeTypeFont, max_width: float) -> list:
        """Wrap preformatted text by characters, keeping whitespace."""
        lines = []
        for raw_line in text.split("\n"):
            current = ""
            for char in raw_line:
                if current and font.getlength(current + char) > max_width:
                    lines.append(current)
                    current = char
                else:
                    current += char
            lines.append(current)
        return lines


class PostRenderer:
    """Renders a PostLayout to a square image."""

    def __init__(self, canvas_size: Optional[int] = None, font_path: Optional[str] = None):
        self.size = canvas_size or settings.canvas_size
        self.scale = self.size / PREVIEW_SIZE
        self.text_renderer = TextRenderer(font_path or settings.font_path)

    def px(self, value: float) -> int:
        """Convert preview pixels to canvas pixels."""
        return int(round(value * self.scale))

    def font(self, family: str, weight: str, size: float) -> ImageFont.FreeTypeFont:
        return self.text_renderer.get_font(family, weight, self.px(size))

    # Background

    def _create_background(self, layout: PostLayout) -> Image.Image:
        img = Image.new("RGBA", (self.size, self.size), (*ImageColor.getrgb(layout.background_color)[:3], 255))

        background = decode_data_url(layout.background_image)
        if background is not None:
            # background-size: cover, centered
            cover = ImageOps.fit(background.convert("RGBA"), (self.size, self.size), Image.Resampling.LANCZOS)
            img.alpha_composite(cover)

        return img

    # Block measurement and drawing

    def _content_width(self) -> int:
        return self.size - 2 * self.px(PADDING)

    def _text_lines(self, block: TextBlock) -> tuple:
        font = self.font(block.font_family, block.font_weight, block.font_size)
        max_width = self._content_width() * CONTENT_WIDTH_RATIO
        lines = self.text_renderer.wrap_words(block.text, font, max_width)
        line_height = self.px(block.font_size * TEXT_LEADING)
        return font, lines, line_height

    def _code_lines(self, block: CodeBlock) -> tuple:
        font = self.font("monospace", "normal", CODE_FONT_SIZE)
        inner_width = self._content_width() * CONTENT_WIDTH_RATIO - 2 * self.px(CODE_PADDING)
        lines = self.text_renderer.wrap_chars(block.code, font, inner_width)
        line_height = self.px(CODE_FONT_SIZE * CODE_LEADING)
        return font, lines, line_height

    def _fit_content_image(self, block: ImageBlock) -> Optional[Image.Image]:
        img = decode_data_url(block.source)
        if img is None:
            logger.warning("Skipping content image that could not be decoded")
            return None

        img = img.convert("RGBA")
        max_height = self.px(block.height)
        max_width = self._content_width()
        ratio = min(self.scale, max_height / img.height, max_width / img.width)
        new_size = (max(1, int(img.width * ratio)), max(1, int(img.height * ratio)))
        return img.resize(new_size, Image.Resampling.LANCZOS)

    def _measure(self, block, prepared) -> int:
        if isinstance(block, TextBlock):
            _, lines, line_height = prepared
            return len(lines) * line_height
        if isinstance(block, CodeBlock):
            _, lines, line_height = prepared
            header = self.px(CODE_DOT_SIZE) + self.px(CODE_HEADER_GAP)
            return 2 * self.px(CODE_PADDING) + header + len(lines) * line_height
        if isinstance(block, ImageBlock):
            return prepared.height if prepared is not None else 0
        return 0

    def _prepare(self, block):
        if isinstance(block, TextBlock):
            return self._text_lines(block)
        if isinstance(block, CodeBlock):
            return self._code_lines(block)
        if isinstance(block, ImageBlock):
            return self._fit_content_image(block)
        return None

    def _draw_centered_lines(self, draw, lines, font, line_height, top, fill) -> int:
        y = top
        for line in lines:
            x = (self.size - font.getlength(line)) / 2
            draw.text((x, y), line, font=font, fill=fill)
            y += line_height
        return y

    def _draw_code(self, img: Image.Image, block: CodeBlock, prepared, top: int):
        font, lines, line_height = prepared
        theme = CODE_THEMES.get(block.theme, CODE_THEMES["dark"])
        draw = ImageDraw.Draw(img)

        width = int(self._content_width() * CONTENT_WIDTH_RATIO)
        left = (self.size - width) // 2
        height = self._measure(block, prepared)
        draw.rounded_rectangle(
            [left, top, left + width, top + height],
            radius=self.px(CODE_RADIUS),
            fill=theme["fill"],
            outline=theme["border"],
            width=max(1, self.px(1)),
        )

        # Window dots and language label
        x = left + self.px(CODE_PADDING)
        y = top + self.px(CODE_PADDING)
        dot = self.px(CODE_DOT_SIZE)
        for color in CODE_DOT_COLORS:
            draw.ellipse([x, y, x + dot, y + dot], fill=color)
            x += dot + self.px(CODE_DOT_GAP)

        label_color = (*theme["text"], 178)
        overlay = Image.new("RGBA", img.size, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).text(
            (x + self.px(CODE_DOT_GAP), y - self.px(2)), block.language, font=font, fill=label_color
        )
        img.alpha_composite(overlay)

        y += dot + self.px(CODE_HEADER_GAP)
        for line in lines:
            draw.text((left + self.px(CODE_PADDING), y), line, font=font, fill=theme["text"])
            y += line_height

    def _draw_overlay(self, img: Image.Image, overlay: ProfileOverlay, text_color: tuple):
        draw = ImageDraw.Draw(img)
        pad = self.px(PADDING)
        avatar = self.px(AVATAR_SIZE)
        avatar_top = self.size - pad - avatar

        profile = decode_data_url(overlay.profile_image)
        if profile is not None:
            profile = ImageOps.fit(profile.convert("RGBA"), (avatar, avatar), Image.Resampling.LANCZOS)
            mask = Image.new("L", (avatar, avatar), 0)
            ImageDraw.Draw(mask).ellipse([0, 0, avatar - 1, avatar - 1], fill=255)
            img.paste(profile, (pad, avatar_top), mask)
        else:
            draw.ellipse([pad, avatar_top, pad + avatar, avatar_top + avatar], fill=AVATAR_PLACEHOLDER)

        ring = Image.new("RGBA", img.size, (0, 0, 0, 0))
        ImageDraw.Draw(ring).ellipse(
            [pad, avatar_top, pad + avatar, avatar_top + avatar],
            outline=(255, 255, 255, 51),
            width=max(1, self.px(2)),
        )
        img.alpha_composite(ring)

        name_font = self.font("Inter", "normal", USERNAME_SIZE)
        name_x = pad + avatar + self.px(AVATAR_GAP)
        name_y = avatar_top + (avatar - self.px(USERNAME_SIZE * TEXT_LEADING)) / 2
        draw.text((name_x, name_y), overlay.username, font=name_font, fill=text_color)

        # Follow button
        label_font = self.font("Inter", "bold", FOLLOW_SIZE)
        label_width = label_font.getlength(overlay.follow_label)
        button_width = label_width + 2 * self.px(FOLLOW_PADDING_X)
        button_height = self.px(FOLLOW_SIZE * 1.43) + 2 * self.px(FOLLOW_PADDING_Y)
        right = self.size - pad
        bottom = self.size - pad
        draw.rounded_rectangle(
            [right - button_width, bottom - button_height, right, bottom],
            radius=self.px(FOLLOW_RADIUS),
            fill=FOLLOW_COLOR,
        )
        draw.text(
            (right - button_width + self.px(FOLLOW_PADDING_X), bottom - button_height + self.px(FOLLOW_PADDING_Y)),
            overlay.follow_label,
            font=label_font,
            fill=WHITE,
        )

    def render(self, layout: PostLayout) -> Image.Image:
        """Render a layout to an RGBA image."""
        img = self._create_background(layout)
        draw = ImageDraw.Draw(img)
        text_color = ImageColor.getrgb(layout.text_color)[:3]
        pad = self.px(PADDING)

        content = [block for block in layout.blocks if not isinstance(block, ThreadBlock)]
        thread = next((block for block in layout.blocks if isinstance(block, ThreadBlock)), None)

        bottom = self.size - pad
        if thread is not None:
            thread_font = self.font("Inter", "normal", thread.font_size)
            thread_lines = self.text_renderer.wrap_words(thread.text, thread_font, self._content_width())
            thread_line_height = self.px(thread.font_size * TEXT_LEADING)
            thread_top = bottom - self.px(THREAD_MARGIN_BOTTOM) - len(thread_lines) * thread_line_height
            self._draw_centered_lines(draw, thread_lines, thread_font, thread_line_height, thread_top, text_color)
            bottom = thread_top

        prepared = [(block, self._prepare(block)) for block in content]
        prepared = [(block, prep) for block, prep in prepared if not (isinstance(block, ImageBlock) and prep is None)]

        heights = [self._measure(block, prep) for block, prep in prepared]
        total_height = sum(heights) + self.px(BLOCK_GAP) * max(0, len(heights) - 1)
        y = pad + max(0, (bottom - pad - total_height) // 2)

        for (block, prep), height in zip(prepared, heights):
            if isinstance(block, TextBlock):
                font, lines, line_height = prep
                self._draw_centered_lines(draw, lines, font, line_height, y, text_color)
            elif isinstance(block, CodeBlock):
                self._draw_code(img, block, prep, y)
            elif isinstance(block, ImageBlock):
                x = (self.size - prep.width) // 2
                img.alpha_composite(prep, (x, y))
            y += height + self.px(BLOCK_GAP)

        if layout.overlay is not None:
            self._draw_overlay(img, layout.overlay, text_color)

        return img


def render_post_png(layout: PostLayout, renderer: Optional[PostRenderer] = None) -> bytes:
    """Rasterize a layout and encode it as PNG bytes."""
    renderer = renderer or get_renderer()
    img = renderer.render(layout)

    if img.mode == "RGBA":
        rgb = Image.new("RGB", img.size, (0, 0, 0))
        rgb.paste(img, mask=img.split()[-1])
        img = rgb

    buffer = BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def export_post(config: PostConfig, renderer: Optional[PostRenderer] = None) -> Optional[bytes]:
    """
    Compose and rasterize a post.

    Rendering failures are logged and reported as None; no exception escapes.
    """
    try:
        return render_post_png(compose(config), renderer)
    except Exception:
        logger.exception("Error generating image")
        return None


@lru_cache()
def get_renderer() -> PostRenderer:
    """Get the shared renderer for the configured canvas."""
    return PostRenderer()
