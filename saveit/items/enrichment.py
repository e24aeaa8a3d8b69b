"""
AI metadata enrichment for saved items.

Links: scrape -> Gemini "LinkSaver" JSON -> platform + category.
Notes/code/components: Gemini summary + tags.

Every LLM step has a heuristic fallback, so enrichment never raises: a
missing API key, spent budget, transport error or unparseable JSON all end
in a fully populated result.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from saveit.config import LLM_CONTENT_TRUNCATION
from saveit.infrastructure.llm_budget import check_budget, record_llm_call
from saveit.infrastructure.settings import use_llm
from saveit.items.detection import (
    VALID_CATEGORIES,
    detect_platform,
    extract_domain,
    keyword_category,
)
from saveit.items.models import DESCRIPTION_MAX, NOTES_MAX, SUMMARY_MAX, TITLE_MAX
from saveit.items.scraper import ScrapedPage, ScrapeError, scrape_page
from saveit.llm.gemini import is_gemini_configured
from saveit.llm.retry import call_llm
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.utils.redaction import sanitize_for_prompt

logger = get_logger(__name__)

LINK_SYSTEM_PROMPT = """You are Gemini inside an app named "LinkSaver". Purpose: when given a URL, \
extract clean, reliable metadata and a compact intelligent summary for display and search. \
Always return a single valid JSON object and nothing else (no extra text, no code fences). \
Prioritize Open Graph / Twitter Card data and fall back to the HTML title, meta description, \
largest meaningful image, or site favicon. Detect language. Trim fields to safe lengths: \
title <= 200 chars, description <= 1000 chars, summary <= 600 chars. Generate 3-6 tags \
(lowercase, hyphenated if multiword). Set "confidence" between 0.0 and 1.0 reflecting how \
sure you are about the extraction.

Return JSON with exactly these keys:
url, domain, title, description, summary (1-3 sentences), image, favicon,
published_date (ISO 8601), author, language (ISO code), tags (3-6 strings),
readability_score (0-100), content_type ("article", "product", "video", "pdf", ...),
confidence (0.0-1.0), notes (<= 200 chars).
Unknown fields are null. Preserve absolute URLs for image and favicon."""

SUMMARY_SYSTEM_PROMPT = (
    "You are an AI content analyzer. Analyze the given {type} and provide a meaningful "
    "summary and relevant tags. Always respond with valid JSON only."
)

CATEGORY_SYSTEM_PROMPT = """You are a content categorization AI. Put the content into ONE category:
- education: tutorials, courses, lectures
- technology: tech news, gadgets, reviews
- ai: artificial intelligence, machine learning, AI tools
- programming: coding, software development
- design: UI/UX, graphic design, creative work
- business: strategy, entrepreneurship, marketing
- music: music videos, songs, production
- gaming: video games, esports
- news: current events, journalism
- entertainment: comedy, vlogs, general entertainment
- lifestyle: health, fitness, cooking, travel, fashion
- other: anything else
Return ONLY the category word."""

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_WORDS_4PLUS = re.compile(r"\b[a-z]{4,}\b")


# ============================================================================
# Response parsing
# ============================================================================


class LinkMetadata(BaseModel):
    """The LinkSaver JSON object, trimmed to storage limits."""

    url: str | None = None
    domain: str | None = None
    title: str | None = None
    description: str | None = None
    summary: str | None = None
    image: str | None = None
    favicon: str | None = None
    published_date: str | None = None
    author: str | None = None
    language: str | None = None
    tags: list[str] = Field(default_factory=list)
    readability_score: float | None = None
    content_type: str | None = None
    confidence: float = 0.5
    notes: str | None = None

    @field_validator("title")
    @classmethod
    def trim_title(cls, v):
        return v[:TITLE_MAX] if v else v

    @field_validator("description")
    @classmethod
    def trim_description(cls, v):
        return v[:DESCRIPTION_MAX] if v else v

    @field_validator("summary")
    @classmethod
    def trim_summary(cls, v):
        return v[:SUMMARY_MAX] if v else v

    @field_validator("notes")
    @classmethod
    def trim_notes(cls, v):
        return v[:NOTES_MAX] if v else v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        if not isinstance(v, list):
            return []
        return [str(t).strip().lower() for t in v if str(t).strip()][:6]

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        try:
            return min(1.0, max(0.0, float(v)))
        except (TypeError, ValueError):
            return 0.5

    @field_validator("readability_score", mode="before")
    @classmethod
    def numeric_or_none(cls, v):
        try:
            return float(v) if v is not None else None
        except (TypeError, ValueError):
            return None


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = _FENCE_OPEN.sub("", text)
    return _FENCE_CLOSE.sub("", text).strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Parse the first JSON object in an LLM response.

    Handles ```json fences and prose before/after the object.

    Raises:
        ValueError: No JSON object could be parsed
    """
    cleaned = strip_code_fences(text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object in response") from None
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in response: {e.msg}") from None

    if not isinstance(parsed, dict):
        raise ValueError("Response JSON is not an object")
    return parsed


# ============================================================================
# Fallbacks
# ============================================================================


def fallback_link_metadata(url: str, scraped: ScrapedPage) -> LinkMetadata:
    """Metadata built from the scrape alone."""
    domain = extract_domain(url)
    summary = scraped.description or scraped.title or f"Content from {domain}"

    tags: list[str] = []
    if scraped.title:
        tags.extend([w for w in scraped.title.lower().split() if len(w) > 3][:3])
    tags.append("saved-link")

    return LinkMetadata(
        url=url,
        domain=domain,
        title=scraped.title or url,
        description=scraped.description,
        summary=summary,
        image=scraped.image,
        favicon=scraped.favicon,
        published_date=scraped.published_date,
        author=scraped.author,
        language="en",
        tags=tags,
        content_type="webpage",
        confidence=0.5,
    )


def fallback_summary(content: str, item_type: str) -> dict[str, Any]:
    first_line = content.split("\n")[0][:150]
    summary = first_line or content[:150] + "..."

    unique_words = list(dict.fromkeys(_WORDS_4PLUS.findall(content.lower())))[:5]
    tags = unique_words or [item_type, "saved"]
    return {"summary": summary, "tags": tags}


# ============================================================================
# LLM steps
# ============================================================================


def llm_allowed(user_id: str, call_type: str) -> bool:
    """Gemini is enabled, configured and this user still has budget."""
    if not use_llm() or not is_gemini_configured():
        return False
    budget = check_budget(user_id)
    if not budget.is_allowed:
        logger.warning("LLM budget exhausted for %s: %s", call_type, budget.reason)
        counter("enrichment.budget_exhausted")
        return False
    return True


def generate_link_metadata(url: str, scraped: ScrapedPage, user_id: str) -> LinkMetadata:
    if not llm_allowed(user_id, "link_metadata"):
        return fallback_link_metadata(url, scraped)

    scraped_json = json.dumps(
        {k: sanitize_for_prompt(v, 1000) if v else None for k, v in scraped.to_dict().items()},
        indent=2,
    )
    prompt = f"URL: {url}\n\nScraped Data:\n{scraped_json}\n\nExtract and return the metadata JSON:"

    try:
        record_llm_call(user_id, "link_metadata")
        raw = call_llm(
            prompt,
            counter_prefix="link_metadata",
            system_instruction=LINK_SYSTEM_PROMPT,
            json_output=True,
            temperature=0.1,
        )
        return LinkMetadata.model_validate(extract_json_object(raw))
    except (ValueError, ValidationError) as e:
        counter("enrichment.link_metadata.parse_failed")
        logger.warning("Unparseable link metadata, using fallback: %s", e)
    except Exception as e:
        counter("enrichment.link_metadata.failed")
        logger.warning("Link metadata call failed, using fallback: %s", e)
    return fallback_link_metadata(url, scraped)


def detect_category(metadata: LinkMetadata, platform: str, user_id: str) -> str:
    """One-word Gemini category, validated; keyword rules otherwise."""
    fallback = keyword_category(metadata.title, metadata.description, metadata.tags)
    if not llm_allowed(user_id, "category"):
        return fallback

    prompt = (
        "Categorize this content:\n"
        f"Title: {sanitize_for_prompt(metadata.title, 300) or 'N/A'}\n"
        f"Description: {sanitize_for_prompt(metadata.description, 500)}\n"
        f"Platform: {platform}\n"
        f"Tags: {', '.join(metadata.tags)}\n\nCategory:"
    )
    try:
        record_llm_call(user_id, "category")
        answer = call_llm(
            prompt,
            counter_prefix="category",
            system_instruction=CATEGORY_SYSTEM_PROMPT,
            temperature=0.1,
        )
    except Exception as e:
        logger.warning("Category call failed, using keywords: %s", e)
        return fallback

    category = (answer or "").strip().strip(".").lower()
    if category in VALID_CATEGORIES:
        return category
    counter("enrichment.category.invalid")
    return fallback


def generate_summary(content: str, item_type: str, user_id: str) -> dict[str, Any]:
    """Summary (<= 600 chars) and 3-6 tags for non-link content."""
    if not llm_allowed(user_id, "summary"):
        return fallback_summary(content, item_type)

    prompt = (
        f"Analyze this {item_type} and provide:\n"
        "1. A brief, meaningful summary (1-3 sentences, max 600 chars)\n"
        "2. 3-6 highly relevant tags (lowercase, hyphenated if multiword)\n\n"
        f"Content:\n{sanitize_for_prompt(content, LLM_CONTENT_TRUNCATION)}\n\n"
        'Respond with this exact JSON format:\n{"summary": "...", "tags": ["tag1", "tag2"]}'
    )
    try:
        record_llm_call(user_id, "summary")
        raw = call_llm(
            prompt,
            counter_prefix="summary",
            system_instruction=SUMMARY_SYSTEM_PROMPT.format(type=item_type),
            json_output=True,
            temperature=0.2,
        )
        parsed = extract_json_object(raw)
    except Exception as e:
        logger.warning("Summary call failed, using fallback: %s", e)
        return fallback_summary(content, item_type)

    summary = parsed.get("summary") or content[:150] + "..."
    tags = parsed.get("tags")
    return {
        "summary": str(summary)[:SUMMARY_MAX],
        "tags": [str(t).lower() for t in tags][:6] if isinstance(tags, list) else [item_type, "saved"],
    }


# ============================================================================
# Pipeline
# ============================================================================


def enrich_link(url: str, custom_title: str | None, user_id: str) -> dict[str, Any]:
    """Item fields for a saved link."""
    try:
        scraped = scrape_page(url)
    except ScrapeError:
        counter("enrichment.link.scrape_failed")
        return {
            "domain": extract_domain(url),
            "title": custom_title or url,
            "notes": "Failed to scrape webpage",
            "confidence": 0.2,
            "platform": detect_platform(url),
        }

    metadata = generate_link_metadata(url, scraped, user_id)
    platform = detect_platform(url)
    category = detect_category(metadata, platform, user_id)

    image = metadata.image or scraped.image
    counter("enrichment.link.success")
    return {
        "title": custom_title or metadata.title or scraped.title,
        "description": metadata.description,
        "summary": metadata.summary,
        "domain": metadata.domain or extract_domain(url),
        "thumbnail": image,
        "image": image,
        "favicon": metadata.favicon or scraped.favicon,
        "published_date": metadata.published_date,
        "author": metadata.author,
        "language": metadata.language,
        "content_type": metadata.content_type,
        "readability_score": metadata.readability_score,
        "tags": metadata.tags,
        "confidence": metadata.confidence,
        "notes": metadata.notes,
        "platform": platform,
        "category": category,
    }


def enrich_item(item_type: str, content: str, custom_title: str | None, user_id: str) -> dict[str, Any]:
    """
    Enrichment fields for a new item of any type.

    Returns a dict of Item field values (never raises).
    """
    if item_type == "link":
        return enrich_link(content, custom_title, user_id)

    result = generate_summary(content, item_type, user_id)
    return {
        "title": custom_title or content[:100],
        "summary": result["summary"],
        "tags": result["tags"],
    }
