"""
AI code tools for the snippet editor: analyze and optimize.

Analysis detects language, framework and imports, then asks Gemini for a
quality score, summary and suggestions. Optimization asks Gemini for a
rewritten snippet. Both fall back to local heuristics when the LLM is off,
over budget or returns something unusable, so neither raises for LLM
reasons.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import Field, ValidationError, field_validator

from saveit.config import CODE_MAX_CHARS, CODE_MIN_CHARS
from saveit.errors import ValidationFailed
from saveit.infrastructure.llm_budget import record_llm_call
from saveit.items.enrichment import extract_json_object, llm_allowed
from saveit.llm.retry import call_llm
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.storage.models import ApiModel

logger = get_logger(__name__)

ANALYZE_SYSTEM_PROMPT = (
    "You are a senior code reviewer. Analyze the code you are given and respond with "
    "one JSON object only, no prose and no code fences."
)

OPTIMIZE_SYSTEM_PROMPT = (
    "You are a senior engineer. Improve the given code for readability, performance and "
    "best practices without changing its behaviour. Respond with one JSON object only."
)

# First match wins, so more specific languages come first
LANGUAGE_RULES: list[tuple[str, re.Pattern[str]]] = [
    ("php", re.compile(r"<\?php")),
    ("vue", re.compile(r"<template[\s>].*<script", re.DOTALL)),
    ("html", re.compile(r"<!DOCTYPE html|<html[\s>]", re.IGNORECASE)),
    ("python", re.compile(r"^\s*(def \w+\(.*\)\s*(->.*)?:|from [\w.]+ import |class \w+(\(.*\))?:)", re.MULTILINE)),
    ("java", re.compile(r"\bpublic (static )?(class|void|final)\b")),
    ("go", re.compile(r"^package \w+|\bfunc (\(\w+ \*?\w+\) )?\w+\(", re.MULTILINE)),
    ("rust", re.compile(r"\bfn \w+\(|\blet mut\b")),
    ("cpp", re.compile(r"#include\s*<\w+(\.h)?>|\bstd::")),
    ("sql", re.compile(r"\b(SELECT .+ FROM|INSERT INTO|CREATE TABLE)\b", re.IGNORECASE)),
    ("typescript", re.compile(r"\binterface \w+ \{|:\s*(string|number|boolean)\b|\btype \w+ =")),
    ("javascript", re.compile(r"\b(function|const|let)\b|\bvar\s+\w|=>|\brequire\(")),
    ("css", re.compile(r"[\w.#:-]+\s*\{[^{}]*:[^{}]*;")),
]

FRAMEWORK_RULES: list[tuple[str, re.Pattern[str]]] = [
    ("nextjs", re.compile(r"""from ['"]next/|['"]use client['"]""")),
    ("react", re.compile(r"""from ['"]react['"]|\buse(State|Effect|Ref)\(|return \(\s*<""")),
    ("vue", re.compile(r"""from ['"]vue['"]|<template[\s>]""")),
    ("angular", re.compile(r"@angular/|@Component\(")),
    ("express", re.compile(r"""require\(['"]express['"]\)|from ['"]express['"]""")),
    ("django", re.compile(r"from django\b")),
    ("flask", re.compile(r"from flask import|Flask\(__name__\)")),
    ("fastapi", re.compile(r"from fastapi import|FastAPI\(")),
]

_JS_IMPORT = re.compile(r"""(?:from\s+|require\(\s*|import\s+)['"]([^'"]+)['"]""")
_PY_IMPORT = re.compile(r"^\s*(?:from\s+([\w.]+)\s+import|import\s+([\w.]+))", re.MULTILINE)
_TRAILING_WS = re.compile(r"[ \t]+$", re.MULTILINE)
_BLANK_RUNS = re.compile(r"\n{3,}")
_BACKTICK_RUNS = re.compile(r"`+")
_CODE_FENCE = re.compile(r"\A\s*(`{3,})[\w+#.-]*[ \t]*\n(.*?)\n?\1\s*\Z", re.DOTALL)


def validate_code(code: Any) -> str:
    """
    Raises:
        ValidationFailed: missing, too short or too long
    """
    if not isinstance(code, str) or not code.strip():
        raise ValidationFailed("Code is required")
    if len(code.strip()) < CODE_MIN_CHARS:
        raise ValidationFailed("Code snippet is too short")
    if len(code) > CODE_MAX_CHARS:
        raise ValidationFailed(f"Code snippet is too long (max {CODE_MAX_CHARS} characters)")
    return code


def _fenced(code: str, language: str) -> str:
    """Markdown block whose fence is longer than any backtick run in the code."""
    longest = max((len(run) for run in _BACKTICK_RUNS.findall(code)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}{language}\n{code}\n{fence}"


def _unfenced(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group(2) if match else text


# ============================================================================
# Heuristics
# ============================================================================


def detect_language(code: str) -> str:
    for language, pattern in LANGUAGE_RULES:
        if pattern.search(code):
            return language
    return "plaintext"


def detect_framework(code: str) -> str | None:
    for framework, pattern in FRAMEWORK_RULES:
        if pattern.search(code):
            return framework
    return None


def detect_dependencies(code: str, language: str) -> list[str]:
    """Top-level packages the snippet imports; relative imports are skipped."""
    if language == "python":
        names = [m.group(1) or m.group(2) for m in _PY_IMPORT.finditer(code)]
        names = [n.split(".")[0] for n in names if not n.startswith(".")]
    else:
        names = []
        for spec in _JS_IMPORT.findall(code):
            # Relative paths and "@/" or "~/" project aliases
            if spec.startswith((".", "/", "@/", "~/")):
                continue
            parts = spec.split("/")
            names.append("/".join(parts[:2]) if spec.startswith("@") else parts[0])
    return list(dict.fromkeys(names))


class CodeAnalysis(ApiModel):
    code_language: str = "plaintext"
    framework: str | None = None
    code_quality: int | None = None
    summary: str = ""
    optimization_suggestions: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    component_preview: bool = False
    source: str = "heuristic"

    @field_validator("code_quality", mode="before")
    @classmethod
    def clamp_quality(cls, v):
        if v is None:
            return None
        try:
            return max(0, min(100, int(float(v))))
        except (TypeError, ValueError):
            return None

    @field_validator("code_language", mode="before")
    @classmethod
    def lower_language(cls, v):
        return str(v).strip().lower() if v else "plaintext"

    @field_validator("optimization_suggestions", "dependencies", "tags", mode="before")
    @classmethod
    def string_list(cls, v):
        if not isinstance(v, list):
            return []
        return [str(x).strip() for x in v if str(x).strip()][:10]


def fallback_analysis(code: str) -> CodeAnalysis:
    language = detect_language(code)
    framework = detect_framework(code)
    lines = len(code.strip().splitlines())
    label = f"{framework} ({language})" if framework else language
    return CodeAnalysis(
        code_language=language,
        framework=framework,
        summary=f"{label.capitalize()} snippet, {lines} line{'s' if lines != 1 else ''}.",
        dependencies=detect_dependencies(code, language),
        tags=[t for t in (language, framework) if t],
        component_preview=framework in ("react", "nextjs") or language == "html",
    )


def tidy_code(code: str) -> tuple[str, list[str]]:
    """Whitespace-only cleanup used when the LLM can't optimize."""
    changes = []
    tidied = _TRAILING_WS.sub("", code)
    if tidied != code:
        changes.append("Removed trailing whitespace")
    collapsed = _BLANK_RUNS.sub("\n\n", tidied)
    if collapsed != tidied:
        changes.append("Collapsed repeated blank lines")
    result = collapsed.strip("\n") + "\n"
    return result, changes


# ============================================================================
# Operations
# ============================================================================


def analyze_code(code: str, user_id: str) -> CodeAnalysis:
    """Language, framework, quality and suggestions for a snippet (never raises)."""
    baseline = fallback_analysis(code)
    if not llm_allowed(user_id, "code_analysis"):
        return baseline

    prompt = (
        "Analyze this code and return JSON with these keys:\n"
        "codeLanguage (lowercase), framework (or null), codeQuality (0-100), "
        "summary (1-2 sentences), optimizationSuggestions (up to 5 strings), "
        "dependencies (imported packages), tags (3-6 lowercase strings), "
        "componentPreview (true if it is a renderable UI component).\n\n"
        f"Code:\n{_fenced(code, baseline.code_language)}"
    )
    try:
        record_llm_call(user_id, "code_analysis")
        raw = call_llm(
            prompt,
            counter_prefix="code_analysis",
            system_instruction=ANALYZE_SYSTEM_PROMPT,
            json_output=True,
            temperature=0.2,
        )
        parsed = CodeAnalysis.model_validate({**extract_json_object(raw), "source": "ai"})
    except (ValueError, ValidationError) as e:
        counter("code_analysis.parse_failed")
        logger.warning("Unparseable code analysis, using heuristics: %s", e)
        return baseline
    except Exception as e:
        counter("code_analysis.failed")
        logger.warning("Code analysis call failed, using heuristics: %s", e)
        return baseline

    # Locally detected imports are reliable; keep them if the model missed them
    if not parsed.dependencies:
        parsed.dependencies = baseline.dependencies
    return parsed


def optimize_code(code: str, language: str | None, user_id: str) -> dict[str, Any]:
    """
    Improved version of a snippet.

    Returns {optimizedCode, changes, language, source}; without the LLM only
    whitespace is tidied.
    """
    language = (language or "").strip().lower() or detect_language(code)
    tidied, tidy_changes = tidy_code(code)
    fallback = {
        "optimizedCode": tidied,
        "changes": tidy_changes,
        "language": language,
        "source": "heuristic",
    }
    if not llm_allowed(user_id, "code_optimize"):
        return fallback

    prompt = (
        f"Optimize this {language} code. Return JSON with keys optimizedCode (the full "
        "improved code as a string) and changes (short strings describing each change).\n\n"
        f"Code:\n{_fenced(code, language)}"
    )
    try:
        record_llm_call(user_id, "code_optimize")
        raw = call_llm(
            prompt,
            counter_prefix="code_optimize",
            system_instruction=OPTIMIZE_SYSTEM_PROMPT,
            json_output=True,
            temperature=0.2,
        )
        parsed = extract_json_object(raw)
    except Exception as e:
        counter("code_optimize.failed")
        logger.warning("Code optimize call failed, tidying only: %s", e)
        return fallback

    optimized = parsed.get("optimizedCode") or parsed.get("optimized_code")
    if not isinstance(optimized, str) or not optimized.strip():
        counter("code_optimize.empty")
        return fallback

    changes = parsed.get("changes")
    return {
        "optimizedCode": _unfenced(optimized),
        "changes": [str(c) for c in changes][:10] if isinstance(changes, list) else [],
        "language": language,
        "source": "ai",
    }
