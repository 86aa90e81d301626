"""
Inline Metadata Extraction

Strips `[lumia_img=...]` and `[lumia_author=...]` control tags from free
text.

Only the FIRST occurrence of each tag kind is extracted and removed.
Further occurrences stay in the cleaned text untouched; content authored
against the older importer relies on exactly this behavior.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import re


IMAGE_TAG = re.compile(r'\[lumia_img=([^\]]+)\]')
AUTHOR_TAG = re.compile(r'\[lumia_author=([^\]]+)\]')


@dataclass(frozen=True)
class ExtractedMetadata:
    """Cleaned text plus the side values pulled out of it."""
    clean_content: str
    image: Optional[str] = None
    author: Optional[str] = None


def _take_first(pattern: re.Pattern, text: str) -> Tuple[str, Optional[str]]:
    match = pattern.search(text)
    if not match:
        return text, None
    cleaned = text.replace(match.group(0), '', 1).strip()
    return cleaned, match.group(1).strip()


def extract_metadata(content: str) -> ExtractedMetadata:
    """
    Remove the first image and author tag from `content`.

    Text without tags is returned unchanged; text is trimmed after each
    removal. Never fails.
    """
    cleaned, image = _take_first(IMAGE_TAG, content)
    cleaned, author = _take_first(AUTHOR_TAG, cleaned)
    return ExtractedMetadata(clean_content=cleaned, image=image, author=author)
