"""
Post templates.
Each template is a named partial configuration merged over the current post.
The "default" template reproduces the initial configuration exactly.
"""

from typing import Optional

from app.models import PostConfig, Template

DEFAULT_TEMPLATE_ID = "default"

TEMPLATES = {
    "default": Template(
        id="default",
        name="Default",
        config=PostConfig().model_dump(),
    ),
    "light": Template(
        id="light",
        name="Clean Light",
        config={
            "background_color": "#ffffff",
            "background_image": "",
            "text_color": "#111827",
            "font_family": "Inter",
            "font_weight": "bold",
            "code_theme": "light",
        },
    ),
    "ocean": Template(
        id="ocean",
        name="Ocean Blue",
        config={
            "background_color": "#0f172a",
            "background_image": "",
            "text_color": "#7dd3fc",
            "font_family": "Verdana",
            "font_size": 30,
        },
    ),
    "sunset": Template(
        id="sunset",
        name="Sunset",
        config={
            "background_color": "#7c2d12",
            "background_image": "",
            "text_color": "#fde68a",
            "font_family": "Georgia",
            "font_weight": "normal",
            "font_size": 34,
        },
    ),
    "terminal": Template(
        id="terminal",
        name="Terminal",
        config={
            "background_color": "#022c22",
            "background_image": "",
            "text_color": "#4ade80",
            "font_family": "monospace",
            "font_weight": "normal",
            "font_size": 26,
            "code_theme": "dark",
        },
    ),
    "minimal": Template(
        id="minimal",
        name="Minimal",
        config={
            "background_color": "#f5f5f4",
            "background_image": "",
            "text_color": "#1c1917",
            "font_family": "Arial",
            "font_weight": "normal",
            "show_thread_text": False,
        },
    ),
}


def get_template(template_id: str) -> Optional[Template]:
    """Get a template by ID, or None when the catalog has no such entry."""
    return TEMPLATES.get(template_id)


def get_all_templates() -> list[Template]:
    """Get all templates in catalog order."""
    return list(TEMPLATES.values())
