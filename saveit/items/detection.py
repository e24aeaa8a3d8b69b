"""Heuristic platform and category detection for saved links."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from saveit.items.models import Category, Platform

# Checked in order; first host match wins
PLATFORM_RULES: list[tuple[Platform, tuple[str, ...]]] = [
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
    (Platform.INSTAGRAM, ("instagram.com",)),
    (Platform.GITHUB, ("github.com",)),
    (Platform.TWITTER, ("twitter.com", "x.com")),
    (Platform.LINKEDIN, ("linkedin.com",)),
    (Platform.FACEBOOK, ("facebook.com", "fb.com")),
    (Platform.MEDIUM, ("medium.com",)),
    (Platform.REDDIT, ("reddit.com",)),
    (Platform.TIKTOK, ("tiktok.com",)),
]

# Priority order matters: "python course" is education, not programming
CATEGORY_KEYWORDS: list[tuple[Category, re.Pattern[str]]] = [
    (Category.EDUCATION, re.compile(r"\b(tutorial|course|learn|education|teach|lesson|lecture)\b")),
    (Category.AI, re.compile(r"\b(ai|artificial intelligence|machine learning|neural|gpt|llm)\b")),
    (
        Category.PROGRAMMING,
        re.compile(r"\b(code|coding|programming|developer|javascript|python|react|software)\b"),
    ),
    (Category.DESIGN, re.compile(r"\b(design|ui|ux|figma|adobe|creative|graphic)\b")),
    (Category.MUSIC, re.compile(r"\b(music|song|album|artist|band|concert)\b")),
    (Category.GAMING, re.compile(r"\b(game|gaming|esport|gameplay|streamer)\b")),
    (Category.BUSINESS, re.compile(r"\b(business|startup|entrepreneur|marketing|sales)\b")),
    (Category.NEWS, re.compile(r"\b(news|breaking|report|journalism)\b")),
    (Category.TECHNOLOGY, re.compile(r"\b(tech|technology|gadget|innovation)\b")),
    (Category.LIFESTYLE, re.compile(r"\b(health|fitness|cooking|travel|fashion|lifestyle)\b")),
    (Category.ENTERTAINMENT, re.compile(r"\b(comedy|entertainment|fun|vlog|funny)\b")),
]

VALID_CATEGORIES = frozenset(c.value for c in Category)


def extract_domain(url: str | None) -> str | None:
    """Hostname without a leading "www.", or None if url doesn't parse."""
    if not url:
        return None
    try:
        host = urlparse(url.strip()).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def detect_platform(url: str | None) -> str:
    domain = extract_domain(url)
    if not domain:
        return Platform.OTHER.value

    for platform, needles in PLATFORM_RULES:
        if any(_host_matches(domain, needle) for needle in needles):
            return platform.value
    return Platform.WEBSITE.value


def _host_matches(domain: str, needle: str) -> bool:
    # Exact host or subdomain, so "box.com" doesn't count as x.com
    return domain == needle or domain.endswith("." + needle)


def keyword_category(title: str | None, description: str | None, tags: list[str] | None) -> str:
    text = f"{title or ''} {description or ''} {' '.join(tags or [])}".lower()
    for category, pattern in CATEGORY_KEYWORDS:
        if pattern.search(text):
            return category.value
    return Category.OTHER.value
