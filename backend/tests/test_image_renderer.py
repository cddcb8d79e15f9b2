"""Tests for PNG export"""

from io import BytesIO
from unittest.mock import patch

import pytest
from PIL import Image


class TestExportFilename:
    """Test download filename derivation"""

    def test_whitespace_collapsed_after_cut(self):
        from app.services.image_renderer import export_filename

        assert export_filename("Hello   World this is long") == "Hello-World-this-i.png"

    def test_cut_falls_on_space(self):
        """Test a space at the 20th character becomes a trailing hyphen"""
        from app.services.image_renderer import export_filename

        assert export_filename("Hello World this is long") == "Hello-World-this-is-.png"

    @pytest.mark.parametrize("text,expected", [
        ("abcdefghijklmnopqrs", "abcdefghijklmnopqrs.png"),
        ("abcdefghijklmnopqrst", "abcdefghijklmnopqrst.png"),
        ("abcdefghijklmnopqrstu", "abcdefghijklmnopqrst.png"),
    ])
    def test_twenty_character_boundary(self, text, expected):
        from app.services.image_renderer import export_filename

        assert export_filename(text) == expected

    def test_tabs_and_newlines(self):
        from app.services.image_renderer import export_filename

        assert export_filename("a\t\tb\nc") == "a-b-c.png"

    def test_emoji_count_as_characters(self):
        from app.services.image_renderer import export_filename

        assert export_filename("🚀" * 25) == "🚀" * 20 + ".png"

    def test_empty_text(self):
        from app.services.image_renderer import export_filename

        assert export_filename("") == "post.png"


class TestPostRenderer:
    """Test rasterizing layouts"""

    @pytest.fixture
    def renderer(self, tmp_path):
        from app.services.image_renderer import PostRenderer
        return PostRenderer(canvas_size=250, font_path=str(tmp_path))

    def render(self, renderer, **fields):
        from app.models import PostConfig
        from app.services.compositor import compose
        from app.services.image_renderer import render_post_png

        png = render_post_png(compose(PostConfig(**fields)), renderer)
        return Image.open(BytesIO(png))

    def test_renders_square_png(self, renderer):
        img = self.render(renderer)

        assert img.format == "PNG"
        assert img.size == (250, 250)
        assert img.mode == "RGB"

    def test_background_color(self, renderer):
        img = self.render(renderer, background_color="#ff0000", show_thread_text=False)

        # Top-left corner is plain background
        assert img.getpixel((2, 2)) == (255, 0, 0)

    def test_background_image_covers_canvas(self, renderer, png_data_url):
        img = self.render(renderer, background_color="#000000", background_image=png_data_url)

        assert img.getpixel((2, 2)) == (200, 30, 30)

    def test_undecodable_background_falls_back_to_color(self, renderer):
        img = self.render(renderer, background_color="#00ff00", background_image="data:image/png;base64,bm90IGFuIGltYWdl")

        assert img.getpixel((2, 2)) == (0, 255, 0)

    def test_code_and_image_blocks(self, renderer, png_data_url):
        """Test optional blocks render without error"""
        img = self.render(
            renderer,
            code_block="def main():\n    return 42\n" + "x" * 200,
            show_code_block=True,
            code_theme="light",
            code_position="below",
        )
        assert img.size == (250, 250)

        img = self.render(renderer, content_image=png_data_url, show_content_image=True, content_image_size=400)
        assert img.size == (250, 250)

    def test_profile_image(self, renderer, png_data_url):
        img = self.render(renderer, profile_image=png_data_url, background_color="#000000")

        # Avatar sits in the bottom-left corner
        x = renderer.px(24) + renderer.px(48) // 2
        y = 250 - renderer.px(24) - renderer.px(48) // 2
        assert img.getpixel((x, y)) == (200, 30, 30)


class TestExportPost:
    """Test the failure-tolerant export wrapper"""

    def test_returns_png_bytes(self, tmp_path):
        from app.models import PostConfig
        from app.services.image_renderer import PostRenderer, export_post

        png = export_post(PostConfig(), PostRenderer(canvas_size=200, font_path=str(tmp_path)))

        assert png.startswith(b"\x89PNG")

    def test_render_failure_returns_none(self):
        from app.models import PostConfig
        from app.services.image_renderer import export_post

        with patch("app.services.image_renderer.render_post_png", side_effect=OSError("no memory")):
            assert export_post(PostConfig()) is None


class TestTextRenderer:
    """Test font loading"""

    def test_fonts_cached_per_renderer(self, tmp_path):
        from app.services.image_renderer import TextRenderer

        first = TextRenderer(str(tmp_path))
        second = TextRenderer(str(tmp_path))

        font = first.get_font("Inter", "bold", 20)

        assert first.get_font("Inter", "bold", 20) is font
        assert list(first.fonts) == [("Inter", "bold", 20)]
        assert second.fonts == {}
