"""
API routes for the social post generator.
"""

import logging
from dataclasses import asdict
from typing import Any, Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.config import get_settings
from app.models import ContentType
from app.services.asset_ingest import read_upload_as_data_url
from app.services.compositor import compose
from app.services.image_generator import (
    ImageGenerationError, build_default_prompt, generate_image, to_data_url,
)
from app.services.image_renderer import export_filename, export_post
from app.services.post_store import ActionInProgressError, PostStore
from app.templates import get_all_templates

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


def get_store(request: Request) -> PostStore:
    """The editing session's store, created on first use."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = request.app.state.store = PostStore()
    return store


# Request/Response Models

class GenerateImageRequest(BaseModel):
    # Forwarded as sent; only presence is checked
    prompt: Any = None
    api_key: Any = Field(default=None, alias="apiKey")


class AIImageRequest(BaseModel):
    """Generate an image and apply it to the current post."""
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["content", "background"] = "content"
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    prompt: Optional[str] = None  # Blank uses the default prompt for the kind


class ContentTypeRequest(BaseModel):
    kind: ContentType


class EmojiRequest(BaseModel):
    emoji: str


class TemplateResponse(BaseModel):
    id: str
    name: str
    config: dict


class HealthResponse(BaseModel):
    status: str
    version: str


def content_disposition(filename: str) -> str:
    quoted = quote(filename, safe="")
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


# Routes

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version="1.0.0")


@router.post("/generate-image")
async def generate_image_route(request: Request):
    """Relay a prompt and API key to the image generation API."""
    try:
        data = await request.json()
        body = GenerateImageRequest.model_validate(data if isinstance(data, dict) else {})
        image_base64 = await generate_image(body.prompt, body.api_key)
        return {"imageUrl": image_base64}
    except ImageGenerationError as e:
        return JSONResponse({"error": e.message}, status_code=e.status_code)
    except Exception:
        logger.exception("Server-side error in image relay")
        return JSONResponse({"error": "An internal server error occurred."}, status_code=500)


@router.get("/templates", response_model=list[TemplateResponse])
async def list_templates():
    """Get all available post templates."""
    return [
        TemplateResponse(
            id=t.id,
            name=t.name,
            config={to_camel(key): value for key, value in t.config.items()},
        )
        for t in get_all_templates()
    ]


@router.get("/post")
async def get_post(store: PostStore = Depends(get_store)):
    """Get the current post configuration and editor state."""
    return store.snapshot()


@router.patch("/post")
async def update_post(
    changes: dict[str, Any] = Body(...),
    store: PostStore = Depends(get_store),
):
    """Update one or more post fields (camelCase keys)."""
    try:
        store.update_many(changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return store.snapshot()


@router.post("/post/template/{template_id}")
async def apply_template(template_id: str, store: PostStore = Depends(get_store)):
    """Apply a template. Unknown templates leave the post unchanged."""
    store.apply_template(template_id)
    return store.snapshot()


@router.post("/post/reset")
async def reset_post(store: PostStore = Depends(get_store)):
    """Reset to the default template."""
    store.reset_to_default()
    return store.snapshot()


@router.post("/post/content-type")
async def set_content_type(request: ContentTypeRequest, store: PostStore = Depends(get_store)):
    """Switch between text only, image and code content."""
    store.set_content_type(request.kind)
    return store.snapshot()


@router.post("/post/emoji")
async def add_emoji(request: EmojiRequest, store: PostStore = Depends(get_store)):
    """Append an emoji to the main text."""
    store.append_emoji(request.emoji)
    return store.snapshot()


@router.post("/post/images/{target}")
async def upload_image(
    target: Literal["profile", "background", "content"],
    file: UploadFile = File(...),
    store: PostStore = Depends(get_store),
):
    """Upload a profile, background or content image."""
    data_url = await read_upload_as_data_url(file)
    if data_url is None:
        return store.snapshot()

    if target == "profile":
        store.set_profile_image(data_url)
    elif target == "background":
        store.set_background_image(data_url)
    else:
        store.set_content_image(data_url)

    return store.snapshot()


@router.delete("/post/images/{target}")
async def clear_image(
    target: Literal["background", "content"],
    store: PostStore = Depends(get_store),
):
    """Remove the background or content image."""
    if target == "background":
        store.clear_background_image()
    else:
        store.clear_content_image()
    return store.snapshot()


@router.delete("/post/code")
async def clear_code(store: PostStore = Depends(get_store)):
    """Remove the code block."""
    store.clear_code_block()
    return store.snapshot()


@router.post("/post/ai-image")
async def generate_post_image(request: AIImageRequest, store: PostStore = Depends(get_store)):
    """Generate a content or background image with AI and apply it to the post."""
    api_key = (request.api_key or "").strip() or settings.gemini_api_key
    if not api_key:
        raise HTTPException(status_code=400, detail="Please enter your Gemini API key.")

    prompt = (request.prompt or "").strip() or build_default_prompt(request.kind, store.config.text)

    try:
        with store.running("generate"):
            image_base64 = await generate_image(prompt, api_key)
    except ActionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ImageGenerationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if request.kind == "content":
        store.set_content_image(to_data_url(image_base64))
    else:
        store.set_background_image(to_data_url(image_base64))

    return store.snapshot()


@router.get("/post/layout")
async def get_layout(store: PostStore = Depends(get_store)):
    """Get the render layout computed from the current post."""
    layout = compose(store.config)
    return {"sequence": layout.sequence, "layout": asdict(layout)}


@router.get("/post/export")
async def export_image(store: PostStore = Depends(get_store)):
    """Render the current post and download it as PNG."""
    config = store.config
    try:
        with store.running("export"):
            png = await run_in_threadpool(export_post, config)
    except ActionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if png is None:
        return JSONResponse({"error": "Failed to render image."}, status_code=500)

    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": content_disposition(export_filename(config.text))},
    )
