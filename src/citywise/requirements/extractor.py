"""Project attribute extraction from intake forms and scoping conversations.

Keyword-based and best-effort: only the end user's turns are scanned, and
a phrasing the keyword lists don't cover leaves its flag False. Nothing
here raises for missing data: unknown means "assume not applicable".

Kept behind extract_attributes() so the heuristic can be swapped for a
model-based extractor without touching the resolver.
"""

import logging
import re
from typing import Any

import mlflow
from mlflow.entities import SpanType

from citywise.config import settings
from citywise.core.types import ProjectAttributes, ProjectType, RawIntake

logger = logging.getLogger(__name__)

# Substring matches, lowercased text
STRUCTURAL_KEYWORDS = ("moving", "removing", "structural")
PLUMBING_KEYWORDS = ("bathroom", "kitchen", "plumbing")
ELECTRICAL_KEYWORDS = ("panel upgrade", "electrical", "upgrading panel")

# Whole-word matches; first hit wins, so more specific types come first
_PROJECT_TYPE_KEYWORDS: list[tuple[ProjectType, tuple[str, ...]]] = [
    (ProjectType.GARAGE_CONVERSION, ("garage conversion", "convert the garage", "convert my garage",
                                     "converting the garage", "converting my garage")),
    (ProjectType.PATIO_COVER, ("patio cover", "pergola", "ramada")),
    (ProjectType.ADU, ("adu", "accessory dwelling", "casita", "guest house", "granny flat")),
    (ProjectType.NEW_CONSTRUCTION, ("new construction", "new build", "new home", "ground up", "ground-up")),
    (ProjectType.DEMOLITION, ("demolition", "demolish", "tear down", "teardown")),
    (ProjectType.ADDITION, ("addition", "add on", "add-on", "room addition")),
    (ProjectType.POOL, ("pool", "swimming pool")),
    (ProjectType.SOLAR, ("solar", "pv system")),
    (ProjectType.FENCE, ("fence", "block wall")),
    (ProjectType.REMODEL, ("remodel", "remodeling", "renovation", "renovate", "renovating")),
]

_PROJECT_TYPE_ALIASES = {
    "NEW_BUILD": ProjectType.NEW_CONSTRUCTION,
    "NEW_HOME": ProjectType.NEW_CONSTRUCTION,
    "RENOVATION": ProjectType.REMODEL,
    "GARAGE": ProjectType.GARAGE_CONVERSION,
    "PATIO": ProjectType.PATIO_COVER,
    "CASITA": ProjectType.ADU,
    "ACCESSORY_DWELLING_UNIT": ProjectType.ADU,
    "DEMO": ProjectType.DEMOLITION,
}

# "900 sq ft", "1,200 square feet", "500-1000 sqft", "400 to 600 sf"
_SQFT_PATTERN = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)"
    r"(?:\s*(?:-|–|to)\s*(\d[\d,]*(?:\.\d+)?))?"
    r"\s*(?:sq\.?\s*(?:ft|feet)|square\s*(?:feet|foot|ft)|sf)\b",
    re.IGNORECASE,
)
# "200 amp", "400-amp", "150 amperes", "200A"; a spaced-out "a" is just the article
_AMPS_PATTERN = re.compile(r"\b(\d{2,4})(?:\s*-?\s*(?:amps?|amperes?)|a)\b", re.IGNORECASE)
_MIN_SERVICE_AMPS = 30
_MAX_SERVICE_AMPS = 1200
_STORIES_PATTERN = re.compile(r"\b(\d|one|two|three)[\s-]*stor(?:y|ies|ey)\b", re.IGNORECASE)
_NUMBER_WORDS = {"one": 1, "two": 2, "three": 3}

_TRUE_STRINGS = {"true", "yes", "y", "1", "on"}


def _parse_number(val: Any) -> float | None:
    """Loosely convert a form value to a non-negative float.

    '1,200' → 1200.0, '$74' → 74.0, '900 sq ft' → 900.0; None/garbage → None.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return float(val) if val >= 0 else None
    s = str(val).replace("$", "").replace(",", "").strip()
    m = re.search(r"-?\d+(?:\.\d+)?", s)
    if not m:
        return None
    num = float(m.group(0))
    return num if num >= 0 else None


def _parse_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    if val is None:
        return False
    return str(val).strip().lower() in _TRUE_STRINGS


def _form_get(form: dict[str, Any], name: str) -> Any:
    """Read a form field by snake_case name, accepting the camelCase spelling too."""
    if name in form:
        return form[name]
    head, *rest = name.split("_")
    camel = head + "".join(part.capitalize() for part in rest)
    return form.get(camel)


def _has_field(form: dict[str, Any], name: str) -> bool:
    return _form_get(form, name) is not None


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(kw in text for kw in keywords)


def detect_project_type(text: str) -> ProjectType | None:
    """Guess the project type from free text by whole-word keyword match."""
    lowered = text.lower()
    for project_type, keywords in _PROJECT_TYPE_KEYWORDS:
        for kw in keywords:
            if re.search(rf"\b{re.escape(kw)}\b", lowered):
                return project_type
    return None


def parse_project_type(value: str | None) -> ProjectType | None:
    """Normalise a project-type label ('ADU', 'new build', 'Garage Conversion').

    Returns None when the label can't be mapped.
    """
    if not value:
        return None
    key = re.sub(r"[\s\-]+", "_", value.strip().upper())
    try:
        return ProjectType(key)
    except ValueError:
        pass
    if key in _PROJECT_TYPE_ALIASES:
        return _PROJECT_TYPE_ALIASES[key]
    return detect_project_type(value)


def parse_square_footage(text: str) -> float | None:
    """Square footage from the last size mention in the text.

    Ranges take the upper bound: '500-1000 sq ft' → 1000.0.
    """
    last = None
    for m in _SQFT_PATTERN.finditer(text):
        last = m
    if last is None:
        return None
    raw = last.group(2) or last.group(1)
    return float(raw.replace(",", ""))


def parse_service_amps(text: str) -> float | None:
    """Electrical service size from the last plausible 'NNN amp' mention."""
    last = None
    for m in _AMPS_PATTERN.finditer(text):
        amps = float(m.group(1))
        if _MIN_SERVICE_AMPS <= amps <= _MAX_SERVICE_AMPS:
            last = amps
    return last


def parse_stories(text: str) -> int | None:
    m = _STORIES_PATTERN.search(text)
    if not m:
        return None
    token = m.group(1).lower()
    return _NUMBER_WORDS.get(token) or int(token)


def user_text(intake: RawIntake) -> str:
    """Concatenate the end user's words from a raw intake, lowercased.

    Assistant turns are skipped so that questions like "any plumbing work?"
    don't set flags. A role-less `conversation` string is scanned whole.
    """
    parts = [turn.content for turn in intake.transcript if turn.role.lower() == "user"]
    if intake.conversation:
        parts.append(intake.conversation)
    return "\n".join(parts).lower()


@mlflow.trace(name="extract_attributes", span_type=SpanType.PARSER)
def extract_attributes(intake: RawIntake) -> ProjectAttributes:
    """Normalise a raw intake record into ProjectAttributes.

    Explicit form fields win over anything inferred from the conversation.
    """
    form = intake.form or {}
    text = user_text(intake)

    project_type = (
        parse_project_type(intake.project_type)
        or parse_project_type(_form_get(form, "project_type"))
        or detect_project_type(text)
    )

    jurisdiction = (
        intake.jurisdiction
        or _form_get(form, "jurisdiction")
        or settings.default_jurisdiction
    )

    if _has_field(form, "square_footage"):
        square_footage = _parse_number(_form_get(form, "square_footage"))
    else:
        square_footage = parse_square_footage(text)

    flags = {}
    for name, keywords in (
        ("structural_changes", STRUCTURAL_KEYWORDS),
        ("plumbing_work", PLUMBING_KEYWORDS),
        ("electrical_work", ELECTRICAL_KEYWORDS),
    ):
        if _has_field(form, name):
            flags[name] = _parse_bool(_form_get(form, name))
        else:
            flags[name] = _contains_any(text, keywords)

    amps = None
    if flags["electrical_work"]:
        amps = _parse_number(_form_get(form, "electrical_service_amps"))
        if amps is None:
            amps = parse_service_amps(text)
        if amps is None:
            amps = settings.default_service_amps

    lot_size = intake.lot_size if intake.lot_size is not None else _parse_number(_form_get(form, "lot_size"))
    if lot_size is not None and lot_size < 0:
        lot_size = None

    stories_val = _parse_number(_form_get(form, "stories"))
    stories = int(stories_val) if stories_val is not None else parse_stories(text)

    property_type = _form_get(form, "property_type")

    attrs = ProjectAttributes(
        project_type=project_type,
        jurisdiction=str(jurisdiction).strip(),
        square_footage=square_footage,
        structural_changes=flags["structural_changes"],
        plumbing_work=flags["plumbing_work"],
        electrical_work=flags["electrical_work"],
        electrical_service_amps=amps,
        lot_size=lot_size,
        stories=stories,
        property_type=str(property_type).lower() if property_type else None,
    )
    logger.debug(
        "Extracted attributes: type=%s, sqft=%s, structural=%s, plumbing=%s, electrical=%s",
        attrs.project_type.value if attrs.project_type else None,
        attrs.square_footage, attrs.structural_changes,
        attrs.plumbing_work, attrs.electrical_work,
        extra={"jurisdiction": attrs.jurisdiction},
    )
    return attrs
