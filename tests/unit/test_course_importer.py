"""Tests for course page analysis: structure parsing, platform detection and fallbacks"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from saveit.errors import ValidationFailed
from saveit.items import enrichment
from saveit.items.scraper import ScrapedPage, ScrapeError
from saveit.learning import importer
from saveit.learning.importer import (
    CourseStructure,
    analyze_course_url,
    detect_course_platform,
    fallback_structure,
    title_from_url,
)

COURSE_URL = "https://www.coursera.org/learn/machine-learning"


@pytest.fixture
def page(monkeypatch):
    scraped = ScrapedPage(
        title="Machine Learning Specialization",
        description="Build ML models with NumPy and scikit-learn.",
        author="Andrew Ng",
    )
    monkeypatch.setattr(importer, "scrape_page", lambda url: scraped)
    return scraped


@pytest.fixture
def llm_enabled(monkeypatch):
    monkeypatch.setenv("SAVEIT_USE_LLM", "true")
    monkeypatch.setattr(enrichment, "is_gemini_configured", lambda: True)


def test_detect_course_platform():
    assert detect_course_platform(COURSE_URL) == "Coursera"
    assert detect_course_platform("https://www.udemy.com/course/python/") == "Udemy"
    assert detect_course_platform("https://learn.example.org/x") == "learn.example.org"


def test_title_from_url():
    assert title_from_url(COURSE_URL) == "Machine Learning"
    assert title_from_url("https://www.edx.org/") == "edx.org"


def test_structure_counts_lessons_and_projects():
    structure = CourseStructure.model_validate(
        {
            "courseTitle": "  Deep Learning  ",
            "modules": [
                {"title": "Intro", "lessons": ["Welcome", {"title": "Capstone", "type": "Project"}]},
                {"title": "", "lessons": ["dropped with its untitled module"]},
                {"title": "Nets", "description": None, "lessons": [{"title": ""}, {"title": "MLP"}]},
                "not a module",
            ],
            "instructor": None,
        }
    )

    assert structure.course_title == "Deep Learning"
    assert [m.title for m in structure.modules] == ["Intro", "Nets"]
    assert [lesson.title for lesson in structure.modules[1].lessons] == ["MLP"]
    assert structure.total_lessons == 3
    assert structure.total_projects == 1
    assert structure.instructor == ""


def test_structure_requires_title():
    with pytest.raises(ValidationError):
        CourseStructure.model_validate({"courseTitle": "   "})


def test_fallback_structure_without_page():
    structure = fallback_structure(COURSE_URL, None)

    assert structure.course_title == "Machine Learning"
    assert structure.platform == "Coursera"
    assert structure.modules == []
    assert structure.source == "page_metadata"


def test_analyze_rejects_bad_urls():
    with pytest.raises(ValidationFailed, match="URL is required"):
        analyze_course_url("", "u1")
    with pytest.raises(ValidationFailed, match="Invalid URL format"):
        analyze_course_url("coursera machine learning", "u1")


def test_analyze_without_llm_uses_page_metadata(page):
    structure = analyze_course_url(COURSE_URL, "u1")

    assert structure.course_title == "Machine Learning Specialization"
    assert structure.instructor == "Andrew Ng"
    assert structure.url == COURSE_URL
    assert structure.source == "page_metadata"


def test_analyze_survives_scrape_failure(monkeypatch):
    def fail(url):
        raise ScrapeError("timeout")

    monkeypatch.setattr(importer, "scrape_page", fail)

    structure = analyze_course_url(COURSE_URL, "u1")

    assert structure.course_title == "Machine Learning"


def test_analyze_with_llm_structure(monkeypatch, page, llm_enabled):
    prompts = []
    reply = {
        "courseTitle": "Supervised Machine Learning",
        "level": "Beginner",
        "platform": None,
        "modules": [
            {"title": "Week 1: Regression", "duration": "8h", "lessons": [{"title": "Cost function"}]},
            {"title": "Week 2: Classification", "lessons": [{"title": "Lab", "type": "project"}]},
        ],
    }

    def fake_llm(prompt, **kwargs):
        prompts.append(prompt)
        return json.dumps(reply)

    monkeypatch.setattr(importer, "call_llm", fake_llm)

    structure = analyze_course_url(COURSE_URL, "u1", user_role="Data analyst", target_skill_level="Advanced")

    assert structure.source == "ai_extraction"
    assert structure.course_title == "Supervised Machine Learning"
    assert structure.platform == "Coursera"
    assert structure.instructor == "Andrew Ng"
    assert structure.total_lessons == 2
    assert structure.total_projects == 1
    assert "Data analyst" in prompts[0]


def test_analyze_llm_garbage_falls_back(monkeypatch, page, llm_enabled):
    monkeypatch.setattr(importer, "call_llm", lambda *a, **kw: "no idea")

    structure = analyze_course_url(COURSE_URL, "u1")

    assert structure.source == "page_metadata"
    assert structure.course_title == "Machine Learning Specialization"
