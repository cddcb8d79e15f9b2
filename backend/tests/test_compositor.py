"""Tests for the deterministic compositor"""

import pytest


def make_config(**fields):
    from app.models import PostConfig
    return PostConfig(**fields)


IMAGE = "data:image/png;base64,AAAA"


class TestBlockOrdering:
    """Test the emitted block sequence"""

    def test_text_only(self):
        from app.services.compositor import compose

        layout = compose(make_config(show_thread_text=False))

        assert layout.sequence == ["text", "overlay"]

    def test_code_above(self):
        """Test code above the main text"""
        from app.services.compositor import compose

        layout = compose(make_config(
            show_code_block=True, code_block="x", code_position="above",
            show_content_image=False, show_thread_text=False,
        ))

        assert layout.sequence == ["code", "text", "overlay"]

    def test_code_below(self):
        """Test switching the code block below the text"""
        from app.services.compositor import compose

        layout = compose(make_config(
            show_code_block=True, code_block="x", code_position="below",
            show_content_image=False, show_thread_text=False,
        ))

        assert layout.sequence == ["text", "code", "overlay"]

    @pytest.mark.parametrize("position,expected", [
        ("above", ["image", "text", "thread", "overlay"]),
        ("below", ["text", "image", "thread", "overlay"]),
    ])
    def test_image_position(self, position, expected):
        from app.services.compositor import compose

        layout = compose(make_config(content_image=IMAGE, show_content_image=True, image_position=position))

        assert layout.sequence == expected

    def test_thread_after_content(self):
        """Test the thread caption follows every content block"""
        from app.services.compositor import compose

        layout = compose(make_config(
            show_code_block=True, code_block="x", code_position="below", thread_text="🧵",
        ))

        assert layout.sequence == ["text", "code", "thread", "overlay"]

    def test_code_before_image_when_both_above(self):
        """Test the tie-break when both optional blocks are above"""
        from app.services.compositor import compose

        layout = compose(make_config(
            show_code_block=True, code_block="x", code_position="above",
            content_image=IMAGE, show_content_image=True, image_position="above",
            show_thread_text=False,
        ))

        assert layout.sequence == ["code", "image", "text", "overlay"]

    def test_image_before_code_when_both_below(self):
        from app.services.compositor import compose

        layout = compose(make_config(
            show_code_block=True, code_block="x", code_position="below",
            content_image=IMAGE, show_content_image=True, image_position="below",
            show_thread_text=False,
        ))

        assert layout.sequence == ["text", "image", "code", "overlay"]


class TestVisibility:
    """Test conditional blocks"""

    def test_empty_code_hidden(self):
        from app.services.compositor import compose

        layout = compose(make_config(show_code_block=True, code_block="", show_thread_text=False))

        assert "code" not in layout.sequence

    def test_code_flag_off_hidden(self):
        from app.services.compositor import compose

        layout = compose(make_config(show_code_block=False, code_block="x", show_thread_text=False))

        assert "code" not in layout.sequence

    def test_image_flag_without_image_hidden(self):
        from app.services.compositor import compose

        layout = compose(make_config(show_content_image=True, content_image=""))

        assert "image" not in layout.sequence

    def test_thread_hidden_when_disabled_or_empty(self):
        from app.services.compositor import compose

        assert "thread" not in compose(make_config(show_thread_text=False)).sequence
        assert "thread" not in compose(make_config(show_thread_text=True, thread_text="")).sequence

    def test_overlay_always_present(self):
        from app.services.compositor import compose

        layout = compose(make_config(username="@someone"))

        assert layout.overlay.username == "@someone"
        assert layout.overlay.follow_label == "Follow"


class TestRenderClamps:
    """Test render-time size caps"""

    def test_main_text_capped(self):
        from app.services.compositor import compose, RENDER_MAX_MAIN

        text_block = compose(make_config(font_size=64)).blocks[0]

        assert text_block.kind == "text"
        assert text_block.font_size == RENDER_MAX_MAIN == 28

    def test_main_text_below_cap_kept(self):
        from app.services.compositor import compose

        assert compose(make_config(font_size=20)).blocks[0].font_size == 20

    def test_thread_capped(self):
        from app.services.compositor import compose

        layout = compose(make_config(thread_font_size=32))
        thread = [b for b in layout.blocks if b.kind == "thread"][0]

        assert thread.font_size == 16

    @pytest.mark.parametrize("size,expected", [(100, 100), (200, 200), (400, 200)])
    def test_image_height_capped(self, size, expected):
        from app.services.compositor import compose

        layout = compose(make_config(content_image=IMAGE, show_content_image=True, content_image_size=size))
        image = [b for b in layout.blocks if b.kind == "image"][0]

        assert image.height == expected

    def test_layout_carries_style(self):
        from app.services.compositor import compose

        layout = compose(make_config(background_color="#111111", text_color="#eeeeee", font_family="Georgia"))

        assert layout.background_color == "#111111"
        assert layout.text_color == "#eeeeee"
        assert layout.blocks[0].font_family == "Georgia"
