"""
OCR Text Enhancement
Turns noisy OCR text from a product label into a structured guess of
product name, brand and ingredient list.

Features:
- Character-level OCR corrections, only inside words
- Whitespace and case-boundary normalization (line breaks preserved)
- Ingredients section detection with a pattern-based fallback
- Product name and brand heuristics

Nothing in this module raises: every function has a deterministic
fallback, so a bad OCR pass still produces a product.
"""

import re

from foodscan.core.constants import UNKNOWN_BRAND, UNKNOWN_PRODUCT


# Misreads corrected only when sandwiched between letters ("S0DIUM" -> "SODIUM").
# Digits elsewhere are real quantities and are left alone.
IN_WORD_CORRECTIONS = {
    "0": "O",
    "1": "I",
    "5": "S",
    "8": "B",
    "|": "I",
    "$": "S",
    "+": "t",
}

# Artifacts removed everywhere
STRIP_CHARACTERS = "^`~"

_IN_WORD_PATTERN = re.compile(
    r"(?<=[A-Za-z])[" + re.escape("".join(IN_WORD_CORRECTIONS)) + r"](?=[A-Za-z])"
)
_STRIP_PATTERN = re.compile("[" + re.escape(STRIP_CHARACTERS) + "]")
_HORIZONTAL_SPACE = re.compile(r"[ \t\f\v]+")
_CASE_BOUNDARY = re.compile(r"([a-z])([A-Z])")

# Section markers
_SECTION_START = re.compile(r"ingredients|contains", re.IGNORECASE)
_SECTION_END = re.compile(r"nutrition|allergen|may contain", re.IGNORECASE)
_TOKEN_SEPARATORS = re.compile(r"[,;()\[\]]")

# Fallback heuristics when no ingredients section is found
_FALLBACK_PATTERNS = [
    re.compile(r"\b[A-Z][a-z]+(?:[ \t]+[A-Za-z][a-z]+)+"),  # Capitalized multi-word phrases
    re.compile(r"\b(?:organic|natural|non-gmo|grass-fed|free-range)\s+[a-z]+\b", re.IGNORECASE),
]

# Lines that are label keywords rather than a product name
_LABEL_KEYWORDS = re.compile(r"ingredients|nutrition|allergen|contains|serving", re.IGNORECASE)
_BRAND_MARKERS = re.compile(
    r"\b(?:inc|llc|ltd|corp|corporation|company)\b\.?|\bco\.|[©™®]",
    re.IGNORECASE
)


def _lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def preprocess_text(raw: str) -> str:
    """
    Apply OCR corrections and normalize spacing.

    Line breaks are kept because ingredient detection works line by line.
    """
    if not raw:
        return ""

    text = _STRIP_PATTERN.sub("", raw)
    text = _IN_WORD_PATTERN.sub(lambda m: IN_WORD_CORRECTIONS[m.group(0)], text)
    text = _CASE_BOUNDARY.sub(r"\1 \2", text)

    lines = [_HORIZONTAL_SPACE.sub(" ", line).strip() for line in text.splitlines()]
    return "\n".join(lines)


def _extract_ingredients_from_line(line: str) -> list[str]:
    ingredients = []
    for part in _TOKEN_SEPARATORS.split(line):
        part = part.strip().rstrip(".:").strip()
        if len(part) <= 1 or part[0].isdigit():
            continue
        if "ingredients" in part.lower():
            continue
        ingredients.append(part)
    return ingredients


def _fallback_ingredient_extraction(text: str) -> list[str]:
    ingredients = []
    for pattern in _FALLBACK_PATTERNS:
        for match in pattern.finditer(text):
            ingredients.append(match.group(0).strip())
    return ingredients


def _dedupe(items: list[str]) -> list[str]:
    seen = set()
    result = []
    for item in items:
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            result.append(item)
    return result


def enhance_ingredient_detection(text: str) -> list[str]:
    """
    Extract the ingredient list from OCR text.

    The section opens at the first line mentioning "ingredients" or
    "contains" (the marker line itself contributes nothing) and ends at
    a nutrition/allergen/"may contain" line or a line starting with a
    digit. Without a usable section, falls back to phrase
    heuristics over the whole text.
    """
    processed = preprocess_text(text)
    ingredients: list[str] = []
    in_section = False

    for line in _lines(processed):
        if not in_section:
            if _SECTION_START.search(line):
                in_section = True
            continue

        if _SECTION_END.search(line) or line[0].isdigit():
            break

        ingredients.extend(_extract_ingredients_from_line(line))

    if not ingredients:
        ingredients = _fallback_ingredient_extraction(processed)

    return _dedupe(ingredients)


def detect_product_name(text: str) -> str:
    """
    First plausible name line: 2-50 chars, not a label keyword line,
    not digit-led, with mixed case. Falls back to the first line.
    """
    lines = _lines(text)

    for line in lines:
        if len(line) < 2 or len(line) > 50:
            continue
        if _LABEL_KEYWORDS.search(line) or line[0].isdigit():
            continue
        if re.search(r"[a-z]", line) and re.search(r"[A-Z]", line):
            return line

    return lines[0] if lines else UNKNOWN_PRODUCT


def _looks_like_product_name(line: str) -> bool:
    return 2 < len(line) < 50 and re.search(r"[a-z]", line, re.IGNORECASE) is not None


def detect_brand(text: str) -> str:
    """
    Brand guess: a line with a legal-entity or trademark marker, or a
    short all-caps line. Falls back to the second line when the first
    looks like a product name.
    """
    lines = _lines(text)

    for line in lines:
        if _BRAND_MARKERS.search(line):
            return line

        if (
            len(line) < 20
            and re.search(r"[A-Z]", line)
            and line == line.upper()
            and not _LABEL_KEYWORDS.search(line)
        ):
            return line

    if len(lines) > 1 and _looks_like_product_name(lines[0]):
        return lines[1]

    return UNKNOWN_BRAND
