"""Map an uploaded file to a FileCategory from its MIME type and extension."""

from __future__ import annotations

import mimetypes
from pathlib import PurePosixPath

from saveit.files.models import FileCategory

CODE_EXTENSIONS = frozenset(
    {
        ".py", ".js", ".jsx", ".ts", ".tsx", ".java", ".c", ".cpp", ".h", ".hpp", ".cs",
        ".go", ".rs", ".rb", ".php", ".swift", ".kt", ".scala", ".sh", ".sql", ".html",
        ".css", ".scss", ".json", ".yaml", ".yml", ".xml", ".vue", ".svelte",
    }
)  # fmt: skip

EXTENSION_CATEGORIES: dict[str, FileCategory] = {
    ".pdf": FileCategory.PDF,
    ".doc": FileCategory.DOCUMENT,
    ".docx": FileCategory.DOCUMENT,
    ".odt": FileCategory.DOCUMENT,
    ".rtf": FileCategory.DOCUMENT,
    ".xls": FileCategory.SPREADSHEET,
    ".xlsx": FileCategory.SPREADSHEET,
    ".ods": FileCategory.SPREADSHEET,
    ".csv": FileCategory.SPREADSHEET,
    ".ppt": FileCategory.PRESENTATION,
    ".pptx": FileCategory.PRESENTATION,
    ".odp": FileCategory.PRESENTATION,
    ".key": FileCategory.PRESENTATION,
    ".zip": FileCategory.ARCHIVE,
    ".rar": FileCategory.ARCHIVE,
    ".7z": FileCategory.ARCHIVE,
    ".tar": FileCategory.ARCHIVE,
    ".gz": FileCategory.ARCHIVE,
    ".txt": FileCategory.TEXT,
    ".md": FileCategory.TEXT,
    ".log": FileCategory.TEXT,
}

MIME_PREFIXES: list[tuple[str, FileCategory]] = [
    ("image/", FileCategory.IMAGE),
    ("video/", FileCategory.VIDEO),
    ("audio/", FileCategory.AUDIO),
]


def categorize_file(name: str, mime_type: str | None = None) -> str:
    """
    Extension wins over MIME type because browsers report most source files
    as text/plain or application/octet-stream.
    """
    suffix = PurePosixPath(name or "").suffix.lower()
    if suffix in CODE_EXTENSIONS:
        return FileCategory.CODE.value
    if suffix in EXTENSION_CATEGORIES:
        return EXTENSION_CATEGORIES[suffix].value

    mime = (mime_type or mimetypes.guess_type(name or "")[0] or "").lower()
    for prefix, category in MIME_PREFIXES:
        if mime.startswith(prefix):
            return category.value
    if mime == "application/pdf":
        return FileCategory.PDF.value
    if mime.startswith("text/"):
        return FileCategory.TEXT.value
    return FileCategory.OTHER.value
