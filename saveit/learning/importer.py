"""
Course import from a course page URL (Coursera, Udemy, edX, ...).

analyze_course_url scrapes the page and asks Gemini for the syllabus as
modules and lessons. Without the LLM the structure holds only what the page
metadata gives (title, description, platform) and no modules.
create_course_from_structure turns a structure, possibly edited by the user,
into a Course with one SubCourse per module.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlparse

from pydantic import Field, ValidationError, field_validator, model_validator

from saveit.config import COURSE_IMPORT_MAX_LESSONS, COURSE_IMPORT_MAX_MODULES
from saveit.errors import ValidationFailed
from saveit.infrastructure.llm_budget import record_llm_call
from saveit.items.detection import extract_domain
from saveit.items.enrichment import extract_json_object, llm_allowed
from saveit.items.scraper import ScrapedPage, ScrapeError, scrape_page
from saveit.learning.models import COURSE_TITLE_MAX, Course, SubCourse
from saveit.learning.repository import CourseRepository
from saveit.llm.retry import call_llm
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.storage.models import ApiModel
from saveit.utils.redaction import sanitize_for_prompt
from saveit.utils.validators import ValidationError as InputError
from saveit.utils.validators import validate_url

logger = get_logger(__name__)

KNOWN_PLATFORMS = {
    "coursera.org": "Coursera",
    "udemy.com": "Udemy",
    "edx.org": "edX",
    "udacity.com": "Udacity",
    "khanacademy.org": "Khan Academy",
    "pluralsight.com": "Pluralsight",
    "freecodecamp.org": "freeCodeCamp",
    "linkedin.com": "LinkedIn Learning",
    "youtube.com": "YouTube",
    "youtu.be": "YouTube",
}

COURSE_SYSTEM_PROMPT = (
    "You extract the structure of online courses from their landing pages. "
    "Respond with one JSON object only, no prose and no code fences."
)


class CourseLesson(ApiModel):
    title: str
    type: str = "video"
    duration: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return str(v).strip().lower() if v else "video"

    @field_validator("duration", mode="before")
    @classmethod
    def text_or_blank(cls, v):
        return str(v).strip() if v is not None else ""


class CourseModule(ApiModel):
    title: str
    description: str = ""
    duration: str = ""
    lessons: list[CourseLesson] = Field(default_factory=list)

    @field_validator("description", "duration", mode="before")
    @classmethod
    def text_or_blank(cls, v):
        return str(v).strip() if v is not None else ""

    @field_validator("lessons", mode="before")
    @classmethod
    def titled_lessons(cls, v):
        if not isinstance(v, list):
            return []
        # Bare strings are lesson titles
        lessons = [{"title": x} if isinstance(x, str) else x for x in v]
        return [x for x in lessons if isinstance(x, dict) and str(x.get("title") or "").strip()][
            :COURSE_IMPORT_MAX_LESSONS
        ]


class CourseStructure(ApiModel):
    course_title: str
    description: str = ""
    category: str = ""
    level: str = ""
    duration: str = ""
    instructor: str = ""
    platform: str = ""
    url: str = ""
    modules: list[CourseModule] = Field(default_factory=list)
    total_lessons: int = 0
    total_projects: int = 0
    source: str = "page_metadata"

    @field_validator("course_title", mode="before")
    @classmethod
    def check_title(cls, v):
        v = str(v or "").strip()
        if not v:
            raise ValueError("Course title is required")
        return v[:COURSE_TITLE_MAX]

    @field_validator(
        "description", "category", "level", "duration", "instructor", "platform", "url", mode="before"
    )
    @classmethod
    def text_or_blank(cls, v):
        return str(v).strip() if v is not None else ""

    @field_validator("modules", mode="before")
    @classmethod
    def titled_modules(cls, v):
        if not isinstance(v, list):
            return []
        return [m for m in v if isinstance(m, dict) and str(m.get("title") or "").strip()][
            :COURSE_IMPORT_MAX_MODULES
        ]

    @model_validator(mode="after")
    def count_lessons(self):
        lessons = [lesson for module in self.modules for lesson in module.lessons]
        self.total_lessons = len(lessons)
        self.total_projects = sum(1 for lesson in lessons if lesson.type == "project")
        return self


def detect_course_platform(url: str) -> str:
    domain = extract_domain(url) or ""
    for host, name in KNOWN_PLATFORMS.items():
        if domain == host or domain.endswith("." + host):
            return name
    return domain


def title_from_url(url: str) -> str:
    """Readable title from the last path segment (/learn/machine-learning -> Machine Learning)."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    if not segments:
        return extract_domain(url) or url
    return segments[-1].replace("-", " ").replace("_", " ").strip().title() or url


def fallback_structure(url: str, scraped: ScrapedPage | None) -> CourseStructure:
    scraped = scraped or ScrapedPage()
    return CourseStructure(
        course_title=scraped.title or title_from_url(url),
        description=scraped.description or "",
        instructor=scraped.author or "",
        platform=detect_course_platform(url),
        url=url,
    )


def analyze_course_url(
    url: str | None,
    user_id: str,
    user_role: str | None = None,
    target_skill_level: str | None = None,
) -> CourseStructure:
    """
    Course structure for a course page URL.

    Raises:
        ValidationFailed: url is missing or not http(s)
    """
    if not url or not str(url).strip():
        raise ValidationFailed("URL is required")
    try:
        url = validate_url(url)
    except InputError:
        raise ValidationFailed("Invalid URL format") from None

    try:
        scraped = scrape_page(url)
    except ScrapeError:
        counter("courses.import.scrape_failed")
        scraped = None

    baseline = fallback_structure(url, scraped)
    if not llm_allowed(user_id, "course_structure"):
        return baseline

    page_fields = (scraped or ScrapedPage()).to_dict()
    page = json.dumps(
        {k: sanitize_for_prompt(v, 1000) if v else None for k, v in page_fields.items()},
        indent=2,
    )
    audience = ""
    if user_role or target_skill_level:
        audience = (
            f"\nLearner: {sanitize_for_prompt(user_role, 60) or 'unspecified role'}, "
            f"target level {sanitize_for_prompt(target_skill_level, 30) or 'unspecified'}. "
            "Describe modules with that learner in mind.\n"
        )
    prompt = (
        f"Course URL: {url}\n\nPage metadata:\n{page}\n{audience}\n"
        "Return JSON with keys courseTitle, description, category, level, duration, "
        "instructor, platform, and modules: a list of {title, description, duration, "
        'lessons: [{title, type ("video", "reading", "quiz" or "project"), duration}]}. '
        "Use null for unknown values."
    )
    try:
        record_llm_call(user_id, "course_structure")
        raw = call_llm(
            prompt,
            counter_prefix="course_structure",
            system_instruction=COURSE_SYSTEM_PROMPT,
            json_output=True,
            temperature=0.2,
        )
        data: dict[str, Any] = extract_json_object(raw)
        if not str(data.get("courseTitle") or data.get("course_title") or "").strip():
            data["courseTitle"] = baseline.course_title
        structure = CourseStructure.model_validate({**data, "url": url, "source": "ai_extraction"})
    except (ValueError, ValidationError) as e:
        counter("courses.import.parse_failed")
        logger.warning("Unparseable course structure, using page metadata: %s", e)
        return baseline
    except Exception as e:
        counter("courses.import.llm_failed")
        logger.warning("Course structure call failed, using page metadata: %s", e)
        return baseline

    for field in ("description", "instructor", "platform"):
        if not getattr(structure, field):
            setattr(structure, field, getattr(baseline, field))
    counter("courses.import.analyzed")
    return structure


def create_course_from_structure(course_data: dict[str, Any] | None, user_id: str) -> dict[str, Any]:
    """
    Create a Course plus one SubCourse per module.

    Lesson titles become the sub-course's resources.

    Raises:
        ValidationFailed: course_data or its title is missing
    """
    if not course_data:
        raise ValidationFailed("Course data is required")
    if not str(course_data.get("courseTitle") or course_data.get("course_title") or "").strip():
        raise ValidationFailed("Course title is required")

    structure = CourseStructure.model_validate(course_data)
    course = Course(
        user_id=user_id,
        title=structure.course_title,
        description=structure.description,
        category=structure.category,
        platform=structure.platform,
        url=structure.url,
        icon="🎓",
    )
    subs = [
        SubCourse(
            course_id=course.id,
            user_id=user_id,
            title=module.title,
            description=module.description,
            duration=module.duration,
            resources=[lesson.title for lesson in module.lessons],
        )
        for module in structure.modules
    ]
    created = CourseRepository.create_with_subcourses(course, subs)
    counter("courses.import.created")
    return {
        "course": created.to_api(),
        "subcourses": [s.to_api() for s in subs],
        "totalModules": len(subs),
        "totalLessons": structure.total_lessons,
    }
