"""
Deterministic compositor.

Maps a PostConfig to the ordered list of visual blocks and their effective
render parameters. Render sizes are clamped below the editable ranges so the
preview never overflows the square canvas.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from app.models import PostConfig

# Render-time caps, in preview pixels
RENDER_MAX_MAIN = 28
RENDER_MAX_THREAD = 16
RENDER_MAX_IMAGE = 200


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str
    theme: str
    kind: str = "code"


@dataclass(frozen=True)
class ImageBlock:
    source: str
    height: int
    kind: str = "image"


@dataclass(frozen=True)
class TextBlock:
    text: str
    font_size: int
    font_family: str
    font_weight: str
    kind: str = "text"


@dataclass(frozen=True)
class ThreadBlock:
    text: str
    font_size: int
    kind: str = "thread"


@dataclass(frozen=True)
class ProfileOverlay:
    username: str
    profile_image: str
    follow_label: str = "Follow"
    kind: str = "overlay"


Block = Union[CodeBlock, ImageBlock, TextBlock, ThreadBlock]


@dataclass(frozen=True)
class PostLayout:
    background_color: str
    background_image: str
    text_color: str
    blocks: list[Block] = field(default_factory=list)
    overlay: Optional[ProfileOverlay] = None

    @property
    def sequence(self) -> list[str]:
        """Block kinds in render order, overlay last."""
        kinds = [block.kind for block in self.blocks]
        if self.overlay is not None:
            kinds.append(self.overlay.kind)
        return kinds


def effective_image_height(config: PostConfig) -> int:
    return min(config.content_image_size, RENDER_MAX_IMAGE)


def _code_block(config: PostConfig) -> Optional[CodeBlock]:
    if config.show_code_block and config.code_block:
        return CodeBlock(code=config.code_block, language=config.code_language, theme=config.code_theme)
    return None


def _image_block(config: PostConfig) -> Optional[ImageBlock]:
    if config.show_content_image and config.content_image:
        return ImageBlock(source=config.content_image, height=effective_image_height(config))
    return None


def compose(config: PostConfig) -> PostLayout:
    """Build the render layout for a post."""
    code = _code_block(config)
    image = _image_block(config)
    blocks: list[Block] = []

    if code and config.code_position == "above":
        blocks.append(code)
    if image and config.image_position == "above":
        blocks.append(image)

    blocks.append(TextBlock(
        text=config.text,
        font_size=min(config.font_size, RENDER_MAX_MAIN),
        font_family=config.font_family,
        font_weight=config.font_weight,
    ))

    if image and config.image_position == "below":
        blocks.append(image)
    if code and config.code_position == "below":
        blocks.append(code)

    if config.show_thread_text and config.thread_text:
        blocks.append(ThreadBlock(
            text=config.thread_text,
            font_size=min(config.thread_font_size, RENDER_MAX_THREAD),
        ))

    return PostLayout(
        background_color=config.background_color,
        background_image=config.background_image,
        text_color=config.text_color,
        blocks=blocks,
        overlay=ProfileOverlay(username=config.username, profile_image=config.profile_image),
    )
