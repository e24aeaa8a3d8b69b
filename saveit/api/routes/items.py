"""
Saved items: save with enrichment, search/paginate, edit, delete, stats.
"""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.config import API_LIST_LIMIT_DEFAULT, API_LIST_LIMIT_MAX, GENERATE_SUMMARY_MAX_CHARS
from saveit.errors import NotFoundError, ValidationFailed
from saveit.items.enrichment import enrich_item, generate_summary
from saveit.items.models import Item, ItemType
from saveit.items.repository import ItemRepository
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter, time_block
from saveit.storage.models import ApiModel
from saveit.utils.validators import ValidationError, normalize_tags, validate_url

router = APIRouter(prefix="/api", tags=["items"])
logger = get_logger(__name__)


class SaveItemRequest(ApiModel):
    type: ItemType
    content: str = Field(..., min_length=1)
    title: str | None = None


class GenerateSummaryRequest(ApiModel):
    content: str | None = None
    type: ItemType = ItemType.NOTE.value


class UpdateItemRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    notes: str | None = None


@router.post("/save")
def save_item(body: SaveItemRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """Save an item. Links are scraped and enriched; enrichment never fails the save."""
    content = body.content.strip()
    if body.type == ItemType.LINK.value:
        try:
            content = validate_url(content)
        except ValidationError as e:
            raise ValidationFailed(str(e)) from None

    with time_block("items.enrich"):
        fields = enrich_item(body.type, content, body.title, user.id)

    item = ItemRepository.create(Item(user_id=user.id, type=body.type, content=content, **fields))
    counter(f"items.saved.{body.type}")
    logger.info("Saved %s item %s for %s", body.type, item.id, user)
    return ok(item.to_api(), status_code=201)


@router.get("/items")
async def list_items(
    type: ItemType | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(API_LIST_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
    search: str | None = None,
    tags: str | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
):
    items, total = ItemRepository.search(
        user.id,
        item_type=type.value if type else None,
        search=search.strip() if search else None,
        tags=normalize_tags(tags) or None,
        page=page,
        limit=limit,
    )
    return ok(
        [i.to_api() for i in items],
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    )


@router.get("/item/{item_id}")
async def get_item(item_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    item = ItemRepository.get(item_id, user.id)
    if not item:
        raise NotFoundError("Item not found")
    return ok(item.to_api())


@router.put("/item/{item_id}")
async def update_item(
    item_id: str, body: UpdateItemRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = ItemRepository.get(item_id, user.id)
    if not current:
        raise NotFoundError("Item not found")

    changes = body.model_dump(exclude_unset=True)
    if "tags" in changes:
        changes["tags"] = normalize_tags(changes["tags"])
    item = ItemRepository.update(item_id, user.id, **current.validated_changes(changes))
    if not item:
        raise NotFoundError("Item not found")
    return ok(item.to_api())


@router.delete("/item/{item_id}")
async def delete_item(item_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not ItemRepository.delete(item_id, user.id):
        raise NotFoundError("Item not found")
    return ok(message="Item deleted successfully")


@router.get("/stats")
async def item_stats(user: AuthenticatedUser = Depends(get_current_user)):
    return ok(ItemRepository.stats(user.id))


@router.post("/generate-summary")
def summarize(body: GenerateSummaryRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """Summary and tags for text that hasn't been saved yet."""
    content = (body.content or "").strip()
    if not content:
        raise ValidationFailed("Content is required")

    result = generate_summary(content[:GENERATE_SUMMARY_MAX_CHARS], body.type, user.id)
    tags = result["tags"][:5]
    return ok(
        {
            "summary": result["summary"],
            "tags": tags,
            "text": f"Summary: {result['summary']}\nTags: {', '.join(tags)}",
        }
    )
