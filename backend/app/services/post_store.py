"""
Configuration store for a post editing session.

Holds the current PostConfig and applies every edit as one merge, so the
content-image flag and the numeric ranges are enforced on each mutation path.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from app.models import PostConfig, resolve_field
from app.templates import DEFAULT_TEMPLATE_ID, get_template

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("text", "image", "code")
ACTIONS = ("export", "generate")


class ActionInProgressError(Exception):
    """Raised when an export or generation is started while one is pending."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"{action} already in progress")


def content_type_of(config: PostConfig) -> str:
    if config.show_code_block:
        return "code"
    if config.show_content_image:
        return "image"
    return "text"


class PostStore:
    """Owns the single PostConfig of an editing session."""

    def __init__(self, config: Optional[PostConfig] = None):
        self.config = config or PostConfig()
        self.active_template = DEFAULT_TEMPLATE_ID
        self.content_type = content_type_of(self.config)
        self._in_progress: set[str] = set()

    def _merge(self, changes: dict[str, Any]) -> PostConfig:
        data = self.config.model_dump()
        data.update(changes)
        data["show_content_image"] = bool(data["content_image"])
        # Validation errors leave the current record in place
        self.config = PostConfig.model_validate(data)
        return self.config

    def update(self, key: str, value: Any) -> PostConfig:
        """Replace a single field. Accepts camelCase or snake_case keys."""
        return self._merge({resolve_field(key): value})

    def update_many(self, changes: dict[str, Any]) -> PostConfig:
        """Apply several field changes as one merge."""
        resolved = {resolve_field(key): value for key, value in changes.items()}
        return self._merge(resolved)

    def apply_template(self, template_id: str) -> PostConfig:
        """Shallow-merge a template over the current config. Unknown ids are ignored."""
        template = get_template(template_id)
        if template is None:
            logger.debug(f"Ignoring unknown template: {template_id}")
            return self.config

        self._merge(dict(template.config))
        self.active_template = template_id
        self.content_type = content_type_of(self.config)
        return self.config

    def reset_to_default(self) -> PostConfig:
        return self.apply_template(DEFAULT_TEMPLATE_ID)

    def set_content_type(self, kind: str) -> PostConfig:
        """Switch between text only, image and code content, clearing the other two."""
        if kind not in CONTENT_TYPES:
            raise ValueError(f"Unknown content type: {kind}")

        if kind == "text":
            changes = {
                "code_block": "",
                "show_code_block": False,
                "content_image": "",
                "show_content_image": False,
            }
        elif kind == "image":
            changes = {
                "code_block": "",
                "show_code_block": False,
                "show_content_image": True,
            }
        else:
            changes = {
                "content_image": "",
                "show_content_image": False,
                "show_code_block": True,
            }

        self._merge(changes)
        self.content_type = kind
        return self.config

    def append_emoji(self, emoji: str) -> PostConfig:
        return self._merge({"text": self.config.text + emoji})

    def set_content_image(self, data_url: str) -> PostConfig:
        """Use an uploaded or generated image as the post illustration."""
        self._merge({
            "code_block": "",
            "show_code_block": False,
            "content_image": data_url,
        })
        self.content_type = "image"
        return self.config

    def clear_content_image(self) -> PostConfig:
        self._merge({"content_image": ""})
        self.content_type = content_type_of(self.config)
        return self.config

    def clear_code_block(self) -> PostConfig:
        self._merge({"code_block": "", "show_code_block": False})
        self.content_type = content_type_of(self.config)
        return self.config

    def set_background_image(self, data_url: str) -> PostConfig:
        return self._merge({"background_image": data_url})

    def clear_background_image(self) -> PostConfig:
        return self._merge({"background_image": ""})

    def set_profile_image(self, data_url: str) -> PostConfig:
        return self._merge({"profile_image": data_url})

    # In-progress flags

    def is_busy(self, action: str) -> bool:
        return action in self._in_progress

    def begin(self, action: str):
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        if action in self._in_progress:
            raise ActionInProgressError(action)
        self._in_progress.add(action)

    def finish(self, action: str):
        self._in_progress.discard(action)

    @contextmanager
    def running(self, action: str):
        """Hold the in-progress flag for the duration of the block."""
        self.begin(action)
        try:
            yield
        finally:
            self.finish(action)

    def snapshot(self) -> dict:
        return {
            "config": self.config.to_api(),
            "activeTemplate": self.active_template,
            "contentType": self.content_type,
            "isExporting": self.is_busy("export"),
            "isGenerating": self.is_busy("generate"),
        }
