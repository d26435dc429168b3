"""Extension helpers and the extension to category table."""

from __future__ import annotations

import os
from pathlib import Path

CATEGORY_DIRECTORIES: dict[str, str] = {
    "Documents": "documents",
    "Images": "images",
    "Videos": "videos",
    "Audio": "audio",
    "Archives": "archives",
    "Code": "code",
    "Data": "data",
    "Configuration": "config",
    "Other": "misc",
}

_EXTENSION_CATEGORIES: dict[str, str] = {}
for _category, _extensions in (
    ("Documents", (".txt", ".pdf", ".doc", ".docx", ".md", ".odt", ".rtf", ".tex")),
    ("Images", (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".ico", ".webp")),
    ("Videos", (".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm")),
    ("Audio", (".mp3", ".wav", ".flac", ".aac", ".ogg", ".wma", ".m4a")),
    ("Archives", (".zip", ".tar", ".gz", ".rar", ".7z", ".bz2", ".xz")),
    (
        "Code",
        (".py", ".js", ".ts", ".c", ".cpp", ".h", ".hpp", ".java", ".cs", ".go", ".rs", ".sh", ".bat"),
    ),
    ("Data", (".json", ".xml", ".csv", ".sql", ".db", ".sqlite")),
    ("Configuration", (".ini", ".yaml", ".yml", ".toml", ".cfg", ".conf")),
):
    for _extension in _extensions:
        _EXTENSION_CATEGORIES[_extension] = _category


def file_extension(path: str | Path) -> str:
    """Return the extension of ``path`` including the leading dot.

    Hidden files such as ``.bashrc`` and names made only of dots have no
    extension.
    """
    name = os.path.basename(os.fspath(path))
    if not name.strip("."):
        return ""
    return os.path.splitext(name)[1]


def categorize(path: str | Path) -> str:
    """Return the category name for ``path`` based on its extension."""
    return _EXTENSION_CATEGORIES.get(file_extension(path).lower(), "Other")


def category_directory(path: str | Path) -> str:
    """Return the directory name files of ``path``'s category are filed under."""
    return CATEGORY_DIRECTORIES[categorize(path)]


__all__ = ["CATEGORY_DIRECTORIES", "categorize", "category_directory", "file_extension"]
