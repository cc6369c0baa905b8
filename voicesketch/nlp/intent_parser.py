"""Rule-based intent parser producing `VoiceCommand` for the generation engine.

Intent classification logic:
- Matching runs on a normalized copy (lower-cased, trimmed) of the transcript.
  The original casing is kept in `raw_transcript` and in extracted substrings.
- Rules are tried in a fixed priority order and the first match wins:
  create > edit > delete > export > favorite > fallback.
- A transcript holding both a create keyword and an edit keyword is a create
  command ("make it blue" is a create because "make" is checked first).

Confidence:
- Each rule assigns a fixed score. The fallback assigns 0.5, which sits exactly
  on the execution threshold used by `voicesketch.core.engine` and is rejected
  there.

Text extraction:
- Description stripping removes whole words only (`\\b...\\b`, case-insensitive).
- Style detection scans `ArtStyle` in catalog order; the full label or any label
  word longer than 3 characters is enough.
- Keyword and color checks are plain substring tests on the normalized text.

Determinism:
- Pure functions, no I/O beyond DEBUG logging.
"""

from __future__ import annotations

import logging
import re

from voicesketch.core.commands import (
    AddElement,
    ChangeColor,
    ChangeStyle,
    CreateIntent,
    DeleteIntent,
    EditIntent,
    Enhance,
    ExportIntent,
    FavoriteIntent,
    RemoveElement,
    VoiceCommand,
)
from voicesketch.core.styles import ArtStyle


logger = logging.getLogger(__name__)


# =========================================================
# KEYWORDS
# =========================================================

CREATE_KEYWORDS = ["create", "draw", "make", "generate", "paint", "sketch", "design"]
EDIT_KEYWORDS = ["change", "modify", "edit", "add", "remove", "make it"]
DELETE_KEYWORDS = ["delete", "remove this"]
EXPORT_KEYWORDS = ["export", "save", "share"]
FAVORITE_KEYWORDS = ["favorite", "favourite", "like this"]

ARTICLES = ["a", "an", "the"]

COLORS = [
    "red", "blue", "green", "yellow", "purple", "orange", "pink",
    "black", "white", "gray", "grey", "brown", "cyan", "magenta",
]
DEFAULT_COLOR = "colorful"
DEFAULT_ENHANCE_ASPECT = "overall"

ELEMENT_TOKEN_LIMIT = 3
TAG_LIMIT = 5

CREATE_CONFIDENCE = 0.85
ELEMENT_EDIT_CONFIDENCE = 0.8
COLOR_EDIT_CONFIDENCE = 0.75
STYLE_EDIT_CONFIDENCE = 0.8
ENHANCE_CONFIDENCE = 0.6
ACTION_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.5


def _contains_any(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def parse(transcript: str) -> VoiceCommand:
    """
    Classify a transcript into a structured voice command.

    Parsing rules:
    1. Create keywords -> `CreateIntent` with description and optional style.
    2. Edit keywords -> `EditIntent` (add, remove, color, style, enhance).
    3. Delete / export / favorite phrases -> action intents.
    4. Anything else -> low-confidence `CreateIntent` over the raw transcript.

    Edge cases:
    - Empty or blank transcript falls through to the fallback rule.
    """
    normalized = transcript.lower().strip()

    if _contains_any(normalized, CREATE_KEYWORDS):
        command = _parse_create(transcript, normalized)
    elif _contains_any(normalized, EDIT_KEYWORDS):
        command = _parse_edit(transcript, normalized)
    elif _contains_any(normalized, DELETE_KEYWORDS):
        command = VoiceCommand(transcript, DeleteIntent(), ACTION_CONFIDENCE)
    elif _contains_any(normalized, EXPORT_KEYWORDS):
        command = VoiceCommand(transcript, ExportIntent(), ACTION_CONFIDENCE)
    elif _contains_any(normalized, FAVORITE_KEYWORDS):
        command = VoiceCommand(transcript, FavoriteIntent(), ACTION_CONFIDENCE)
    else:
        command = VoiceCommand(
            transcript,
            CreateIntent(description=transcript, style=None),
            FALLBACK_CONFIDENCE,
        )

    logger.debug(
        "Parsed transcript intent=%s confidence=%.2f",
        command.intent.kind,
        command.confidence,
    )
    return command


# -----------------------------------------------------
# CREATE
# -----------------------------------------------------

def _parse_create(original: str, normalized: str) -> VoiceCommand:
    style = extract_style(normalized)

    description = original
    for word in CREATE_KEYWORDS + ARTICLES:
        description = _remove_whole_word(description, word)

    if style is not None:
        description = _remove_whole_word(description, style.label)

    description = re.sub(r"\s+", " ", description).strip()

    return VoiceCommand(
        original,
        CreateIntent(description=description, style=style),
        CREATE_CONFIDENCE,
    )


def _remove_whole_word(text: str, word: str) -> str:
    return re.sub(rf"\b{re.escape(word)}\b", "", text, flags=re.IGNORECASE)


# -----------------------------------------------------
# EDIT
# -----------------------------------------------------

def _parse_edit(original: str, normalized: str) -> VoiceCommand:
    if "add" in normalized:
        element = extract_element(original, ["add"])
        return VoiceCommand(original, EditIntent(AddElement(element)), ELEMENT_EDIT_CONFIDENCE)

    if "remove" in normalized or "delete" in normalized:
        element = extract_element(original, ["remove", "delete"])
        return VoiceCommand(original, EditIntent(RemoveElement(element)), ELEMENT_EDIT_CONFIDENCE)

    if "color" in normalized or "make it" in normalized:
        color = extract_color(normalized)
        return VoiceCommand(
            original,
            EditIntent(ChangeColor(color=color, element=None)),
            COLOR_EDIT_CONFIDENCE,
        )

    style = extract_style(normalized)
    if style is not None:
        return VoiceCommand(original, EditIntent(ChangeStyle(style)), STYLE_EDIT_CONFIDENCE)

    return VoiceCommand(
        original,
        EditIntent(Enhance(aspect=DEFAULT_ENHANCE_ASPECT)),
        ENHANCE_CONFIDENCE,
    )


# =========================================================
# EXTRACTION HELPERS
# =========================================================

def extract_style(text: str) -> ArtStyle | None:
    """Return the first catalog style mentioned in `text`, if any.

    A style matches on its full lower-cased label or on any single label word
    longer than 3 characters ("painting" selects Oil Painting).
    """
    text = text.lower()
    for style in ArtStyle:
        label = style.label.lower()
        if label in text:
            return style
        for word in label.split():
            if len(word) > 3 and word in text:
                return style
    return None


def extract_element(text: str, keywords: list[str]) -> str:
    """Return up to 3 tokens following the first keyword found in `text`.

    Keywords are tried in the given order. Case is preserved from `text`.
    Returns `text` unchanged when no keyword occurs.
    """
    for keyword in keywords:
        match = re.search(re.escape(keyword), text, flags=re.IGNORECASE)
        if match:
            tail = text[match.end():].strip()
            return " ".join(tail.split()[:ELEMENT_TOKEN_LIMIT])
    return text


def extract_color(text: str) -> str:
    """Return the first known color name in `text`, or "colorful"."""
    text = text.lower()
    for color in COLORS:
        if color in text:
            return color
    return DEFAULT_COLOR


def extract_tags(text: str) -> list[str]:
    """Return up to 5 distinct lower-cased words longer than 3 characters."""
    tags: list[str] = []
    for word in text.lower().split():
        if len(word) > 3 and word not in tags:
            tags.append(word)
        if len(tags) >= TAG_LIMIT:
            break
    return tags
