"""Tests for AI metadata enrichment parsing and fallbacks"""

from __future__ import annotations

import pytest

from saveit.items import enrichment
from saveit.items.enrichment import (
    LinkMetadata,
    enrich_item,
    enrich_link,
    extract_json_object,
    fallback_link_metadata,
    fallback_summary,
    strip_code_fences,
)
from saveit.items.scraper import ScrapedPage, ScrapeError


@pytest.fixture
def llm_enabled(monkeypatch):
    """Pretend Gemini is configured and enabled"""
    monkeypatch.setenv("SAVEIT_USE_LLM", "true")
    monkeypatch.setattr(enrichment, "is_gemini_configured", lambda: True)


# Parsing


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_extract_json_object_handles_prose_around_json():
    text = 'Sure! Here is the metadata:\n{"title": "Hello", "tags": ["x"]}\nHope this helps.'
    assert extract_json_object(text) == {"title": "Hello", "tags": ["x"]}


def test_extract_json_object_rejects_non_objects():
    with pytest.raises(ValueError):
        extract_json_object("no json here")
    with pytest.raises(ValueError):
        extract_json_object("[1, 2, 3]")
    with pytest.raises(ValueError):
        extract_json_object("{broken: json")


def test_link_metadata_trims_and_clamps():
    meta = LinkMetadata.model_validate(
        {
            "title": "t" * 500,
            "summary": "s" * 900,
            "notes": "n" * 300,
            "tags": ["  AI ", "", "Python", "a", "b", "c", "d", "e"],
            "confidence": 7,
            "readability_score": "not a number",
        }
    )

    assert len(meta.title) == 200
    assert len(meta.summary) == 600
    assert len(meta.notes) == 200
    assert meta.tags == ["ai", "python", "a", "b", "c", "d"]
    assert meta.confidence == 1.0
    assert meta.readability_score is None


# Fallbacks


def test_fallback_link_metadata_from_scrape():
    scraped = ScrapedPage(title="Learning Python Decorators Deeply", description="A guide")
    meta = fallback_link_metadata("https://www.example.com/post", scraped)

    assert meta.domain == "example.com"
    assert meta.summary == "A guide"
    assert meta.tags == ["learning", "python", "decorators", "saved-link"]
    assert meta.confidence == 0.5
    assert meta.language == "en"
    assert meta.content_type == "webpage"


def test_fallback_link_metadata_without_title_or_description():
    meta = fallback_link_metadata("https://example.com/x", ScrapedPage())

    assert meta.title == "https://example.com/x"
    assert meta.summary == "Content from example.com"
    assert meta.tags == ["saved-link"]


def test_fallback_summary_uses_first_line_and_long_words():
    result = fallback_summary("Remember the milk\nand also buy bread today", "note")

    assert result["summary"] == "Remember the milk"
    assert result["tags"] == ["remember", "milk", "also", "bread", "today"]


def test_fallback_summary_defaults_tags_to_type():
    assert fallback_summary("x = 1", "code")["tags"] == ["code", "saved"]


# Pipeline


def test_enrich_link_scrape_failure(monkeypatch):
    def fail(url):
        raise ScrapeError("connection refused")

    monkeypatch.setattr(enrichment, "scrape_page", fail)
    result = enrich_link("https://github.com/org/repo", None, "user-1")

    assert result["domain"] == "github.com"
    assert result["title"] == "https://github.com/org/repo"
    assert result["notes"] == "Failed to scrape webpage"
    assert result["confidence"] == 0.2
    assert result["platform"] == "github"


def test_enrich_link_without_llm_uses_scrape_and_keywords(monkeypatch):
    monkeypatch.setattr(
        enrichment,
        "scrape_page",
        lambda url: ScrapedPage(title="Python Course for Beginners", image="https://img/x.png"),
    )
    result = enrich_link("https://youtu.be/abc", "My title", "user-1")

    assert result["title"] == "My title"
    assert result["platform"] == "youtube"
    assert result["category"] == "education"
    assert result["thumbnail"] == "https://img/x.png"
    assert "saved-link" in result["tags"]


def test_enrich_link_with_llm_json(monkeypatch, llm_enabled):
    monkeypatch.setattr(enrichment, "scrape_page", lambda url: ScrapedPage(title="Scraped"))
    responses = iter(
        [
            '```json\n{"title": "From Gemini", "summary": "Short.", "tags": ["ml"], '
            '"confidence": 0.9, "language": "en"}\n```',
            "AI.",
        ]
    )
    monkeypatch.setattr(enrichment, "call_llm", lambda *a, **kw: next(responses))

    result = enrich_link("https://example.com/article", None, "user-1")

    assert result["title"] == "From Gemini"
    assert result["summary"] == "Short."
    assert result["confidence"] == 0.9
    assert result["category"] == "ai"


def test_enrich_link_llm_garbage_falls_back(monkeypatch, llm_enabled):
    monkeypatch.setattr(enrichment, "scrape_page", lambda url: ScrapedPage(title="Game Night Stream"))
    monkeypatch.setattr(enrichment, "call_llm", lambda *a, **kw: "I cannot help with that")

    result = enrich_link("https://example.com/g", None, "user-1")

    assert result["title"] == "Game Night Stream"
    assert result["confidence"] == 0.5
    assert result["category"] == "gaming"


def test_enrich_item_never_raises_when_llm_errors(monkeypatch, llm_enabled):
    def boom(*args, **kwargs):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(enrichment, "call_llm", boom)
    result = enrich_item("code", "def handler(event):\n    return event", None, "user-1")

    assert result["summary"] == "def handler(event):"
    assert result["tags"] == ["handler", "event", "return"]
    assert result["title"].startswith("def handler")


def test_summary_llm_result_is_used(monkeypatch, llm_enabled):
    monkeypatch.setattr(
        enrichment,
        "call_llm",
        lambda *a, **kw: '{"summary": "Buy groceries.", "tags": ["Shopping", "todo"]}',
    )
    result = enrich_item("note", "milk, eggs", "Groceries", "user-1")

    assert result == {"title": "Groceries", "summary": "Buy groceries.", "tags": ["shopping", "todo"]}


def test_exhausted_budget_skips_llm(monkeypatch, llm_enabled):
    calls = []
    monkeypatch.setattr(enrichment, "call_llm", lambda *a, **kw: calls.append(a) or "{}")
    monkeypatch.setattr(
        enrichment,
        "check_budget",
        lambda user_id: type("Budget", (), {"is_allowed": False, "reason": "spent"})(),
    )

    result = enrich_item("note", "Plain words here", None, "user-1")

    assert calls == []
    assert result["summary"] == "Plain words here"
