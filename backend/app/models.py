"""
Post configuration model.

A PostConfig describes everything needed to render one post. Instances are
frozen: every edit produces a new record through PostStore's merge.
"""

import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

# Editable ranges (slider bounds)
FONT_SIZE_RANGE = (16, 64)
THREAD_FONT_SIZE_RANGE = (12, 32)
CONTENT_IMAGE_SIZE_RANGE = (100, 400)

NUMERIC_RANGES = {
    "font_size": FONT_SIZE_RANGE,
    "thread_font_size": THREAD_FONT_SIZE_RANGE,
    "content_image_size": CONTENT_IMAGE_SIZE_RANGE,
}

HEX_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{3}){1,2}$")

PLACEHOLDER_PROFILE_IMAGE = "/placeholder.svg?height=100&width=100"

FontFamily = Literal["Inter", "Arial", "Georgia", "Verdana", "monospace"]
FontWeight = Literal["normal", "bold"]
Position = Literal["above", "below"]
CodeTheme = Literal["dark", "light"]
CodeLanguage = Literal[
    "javascript", "typescript", "python", "java", "cpp",
    "html", "css", "sql", "bash", "json",
]
ContentType = Literal["text", "image", "code"]


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class PostConfig(BaseModel):
    """Full visual and content state of one post."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    text: str = "15 Programming Tips You NEED to Know! 💻🚀"
    thread_text: str = "A thread 🧵"
    show_thread_text: bool = True
    username: str = "@musa_codes"
    profile_image: str = PLACEHOLDER_PROFILE_IMAGE

    background_color: str = "#000000"
    background_image: str = ""
    text_color: str = "#ffffff"

    font_size: int = 32
    thread_font_size: int = 18
    font_family: FontFamily = "Inter"
    font_weight: FontWeight = "bold"

    content_image: str = ""
    content_image_size: int = 200
    image_position: Position = "above"
    show_content_image: bool = False

    code_block: str = ""
    code_language: CodeLanguage = "javascript"
    code_theme: CodeTheme = "dark"
    code_position: Position = "above"
    show_code_block: bool = False

    @field_validator("font_size", "thread_font_size", "content_image_size", mode="before")
    @classmethod
    def clamp_to_range(cls, value: Any, info) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError("must be a number")
        number = float(value)
        if not math.isfinite(number):
            raise ValueError("must be a finite number")
        low, high = NUMERIC_RANGES[info.field_name]
        return clamp(int(round(number)), low, high)

    @field_validator("background_color", "text_color")
    @classmethod
    def check_hex_color(cls, value: str) -> str:
        if not HEX_COLOR_RE.match(value):
            raise ValueError(f"invalid hex color: {value!r}")
        return value

    def to_api(self) -> dict:
        """Serialize with the camelCase field names used by the HTTP API."""
        return self.model_dump(by_alias=True)


FIELD_NAMES = tuple(PostConfig.model_fields)

# camelCase and snake_case spellings both resolve to the field name
FIELD_LOOKUP = {**{to_camel(name): name for name in FIELD_NAMES}, **{name: name for name in FIELD_NAMES}}


def resolve_field(key: str) -> str:
    """Map an API key to a PostConfig field name."""
    try:
        return FIELD_LOOKUP[key]
    except KeyError:
        raise ValueError(f"Unknown post field: {key}") from None


class Template(BaseModel):
    """Named partial configuration preset."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    config: dict[str, Any]
