from __future__ import annotations

import re
from typing import Callable, Literal, Sequence

from .models import CategoryRule
from .rules import (
    BODY_REGION_RULES,
    SPECIES_REJECT_PHRASES,
    SPECIES_RULES,
    SPECIES_UNCERTAIN_KEYWORDS,
    UNKNOWN_REGION,
    UNKNOWN_SPECIES,
)

Mode = Literal["single", "multi"]

_BARE_SHARK = re.compile(r"small\s+shark|shark\s*\d")
_SHARK_WORD = re.compile(r"sharks?")
_SIZE_DECIMAL = re.compile(r"\d+(?:\.\d+)?\s*(?:metres?|meters?|feet|ft|m)\b")
_SIZE_FEET_INCHES = re.compile(r"\d+[-'\"]?\d*\s*(?:feet|ft|m)\b")
_QUALIFIERS = re.compile(r"\b(?:involved|unconfirmed|questionable|possibly|suspected|estimated|est)\b")
_PARENTHETICAL = re.compile(r"\(.*?\)")
_PUNCTUATION = re.compile(r"[,;?]")
_NOISE_ONLY = re.compile(r"[\d\s\-,.;:'\"?]+")

MIN_RESIDUE_LENGTH = 3


def normalize_text(raw_text) -> str:
    if not isinstance(raw_text, str):
        return ""
    return raw_text.strip().lower()


# ---------- Residue cleanup steps (applied in order) ----------


def strip_shark_word(text: str) -> str:
    return _SHARK_WORD.sub("", text)


def strip_measurements(text: str) -> str:
    """Remove lengths such as "3.5 m", "12 ft", "4'6 ft"."""
    text = _SIZE_DECIMAL.sub("", text)
    return _SIZE_FEET_INCHES.sub("", text)


def strip_qualifiers(text: str) -> str:
    return _QUALIFIERS.sub("", text)


def strip_parentheticals(text: str) -> str:
    return _PARENTHETICAL.sub("", text)


def strip_punctuation(text: str) -> str:
    return _PUNCTUATION.sub(" ", text)


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" ") if word)


CLEANUP_STEPS: tuple[Callable[[str], str], ...] = (
    strip_shark_word,
    strip_measurements,
    strip_qualifiers,
    strip_parentheticals,
    strip_punctuation,
    collapse_whitespace,
)


def clean_residue(text: str) -> str:
    for step in CLEANUP_STEPS:
        text = step(text)
    return text


def residue_label(text: str) -> str:
    """Derive "<Words> Shark" from unmatched text, or the unknown sentinel."""
    cleaned = clean_residue(text)
    if len(cleaned) < MIN_RESIDUE_LENGTH or _NOISE_ONLY.fullmatch(cleaned):
        return UNKNOWN_SPECIES
    return f"{title_case(cleaned)} Shark"


# ---------- Classification ----------


def _first_match(text: str, rules: Sequence[CategoryRule]) -> str | None:
    for rule in rules:
        if rule.matches(text):
            return rule.category_id
    return None


def _single_label(text: str, rules: Sequence[CategoryRule]) -> str:
    if any(phrase in text for phrase in SPECIES_REJECT_PHRASES):
        return UNKNOWN_SPECIES
    if any(keyword in text for keyword in SPECIES_UNCERTAIN_KEYWORDS):
        return UNKNOWN_SPECIES
    matched = _first_match(text, rules)
    if matched is not None:
        return matched
    if text == "shark" or _BARE_SHARK.search(text):
        return UNKNOWN_SPECIES
    return residue_label(text)


def _multi_label(text: str, rules: Sequence[CategoryRule]) -> tuple[str, ...]:
    labels = tuple(rule.category_id for rule in rules if rule.matches(text))
    return labels or (UNKNOWN_REGION,)


def classify(raw_text, rules: Sequence[CategoryRule], mode: Mode = "single") -> str | tuple[str, ...]:
    """Map free text to a label (single mode) or a non-empty label tuple (multi mode).

    Single mode runs the species cascade: reject phrases, uncertain keywords,
    the ordered rules (first match wins), bare "shark" mentions, then a label
    derived from the cleaned residue. Multi mode collects every rule with a
    keyword hit. Both fall back to the unknown sentinel, never to nothing.
    """
    if mode not in ("single", "multi"):
        raise ValueError(f"Unknown classification mode: {mode!r}")
    text = normalize_text(raw_text)
    if mode == "multi":
        return _multi_label(text, rules) if text else (UNKNOWN_REGION,)
    return _single_label(text, rules) if text else UNKNOWN_SPECIES


def classify_species(raw_text) -> str:
    return classify(raw_text, SPECIES_RULES, "single")


def classify_body_regions(raw_text) -> tuple[str, ...]:
    return classify(raw_text, BODY_REGION_RULES, "multi")
