"""
Response normalizer - turns one raw model reply into a StructuredTurnResponse.

Strict path: the first '{' through the last '}' of the reply is decoded as
JSON and validated against the turn schema. The match is greedy, so trailing
prose that contains a stray '}' ends up inside the candidate and makes strict
extraction fail; that reply then goes through the fallback path. Besides the
{"response": {...}} envelope the model is asked for, a bare turn object is
also accepted; some models drop the envelope while getting everything else
right.

Fallback path: regex and keyword heuristics over the raw text. It never
fails, so callers always get a usable response.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..core.errors import ExtractionFailed
from .schemas import AbilityScores, CharacterCreationResponse, CharacterDraft, StructuredTurnResponse
from util.logging import logger, summarize_errors

STRICT = "strict"
FALLBACK = "fallback"

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

# "1. Elf" up to the end of the line or the next "2. ..." on the same line;
# markdown emphasis around the number ("**1. Elf**") is allowed, decimals are not
OPTION_PATTERN = re.compile(r"(?<![\w.])\d+\.\s+(.+?)(?=\s+[*_]*\d+\.\s|$)", re.MULTILINE)

# asterisks anywhere, underscores only at word edges
EMPHASIS_PATTERN = re.compile(r"\*+|(?<!\w)_+|_+(?!\w)")

# Identity labels need a colon: "Race: Elf", not "what race would you like"
IDENTITY_LABELS = {
    "name": "name",
    "race": "race",
    "class_": "class",
    "background": "background",
}
IDENTITY_VALUE = r"\s*:[:\s]*([A-Za-z][A-Za-z ]*)"

NUMERIC_LABELS = {
    "strength": r"str(?:ength)?",
    "dexterity": r"dex(?:terity)?",
    "constitution": r"con(?:stitution)?",
    "intelligence": r"int(?:elligence)?",
    "wisdom": r"wis(?:dom)?",
    "charisma": r"cha(?:risma)?",
    "hp": r"hp|hit points",
    "ac": r"ac|armou?r class",
    "initiative": r"initiative",
}
NUMERIC_VALUE = r"[:\s]+([+-]?\d+)\b"


def _compile_field_patterns() -> Tuple[Dict[str, re.Pattern], Dict[str, re.Pattern]]:
    identity = {
        key: re.compile(rf"\b{label}{IDENTITY_VALUE}", re.IGNORECASE)
        for key, label in IDENTITY_LABELS.items()
    }
    numeric = {
        key: re.compile(rf"\b(?:{label}){NUMERIC_VALUE}", re.IGNORECASE)
        for key, label in NUMERIC_LABELS.items()
    }
    return identity, numeric


IDENTITY_PATTERNS, NUMERIC_PATTERNS = _compile_field_patterns()


@dataclass
class NormalizationResult:
    """Tagged result of normalize_response; check `path` or the subclass."""
    response: StructuredTurnResponse
    path: str


@dataclass
class StrictResult(NormalizationResult):
    """The reply contained valid structured JSON."""
    path: str = field(default=STRICT, init=False)


@dataclass
class FallbackResult(NormalizationResult):
    """The reply was recovered heuristically; `reason` says why strict extraction failed."""
    path: str = field(default=FALLBACK, init=False)
    reason: Optional[str] = None


def extract_json_candidate(text: str) -> Optional[str]:
    """First '{' through the last '}' in the text, or None."""
    match = JSON_OBJECT_PATTERN.search(text)
    return match.group(0) if match else None


def parse_strict(text: str) -> StructuredTurnResponse:
    """
    Decode and validate the structured JSON embedded in a reply.

    Accepts the {"response": {...}} envelope as well as a bare turn object.

    Raises:
        ExtractionFailed: No JSON object, undecodable JSON, or schema violation
    """
    candidate = extract_json_candidate(text)
    if candidate is None:
        raise ExtractionFailed("No JSON object found in model reply")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ExtractionFailed(f"Invalid JSON in model reply: {e}")

    if not isinstance(data, dict):
        raise ExtractionFailed("Model reply JSON is not an object")

    try:
        if "response" in data:
            return CharacterCreationResponse.model_validate(data).response
        return StructuredTurnResponse.model_validate(data)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        raise ExtractionFailed(
            f"Model reply failed schema validation: {summarize_errors(errors)}",
            errors=errors,
        )


def extract_options(text: str) -> List[str]:
    """Numbered list items in order of appearance, numbers and emphasis stripped."""
    options = []
    for match in OPTION_PATTERN.finditer(text):
        option = EMPHASIS_PATTERN.sub("", match.group(1)).strip()
        if option:
            options.append(option)
    return options


def infer_response_type(text: str) -> str:
    """Keyword rules, first match wins."""
    lowered = text.lower()
    if "what" in lowered or "?" in lowered:
        return "question"
    if "complete" in lowered or "finished" in lowered:
        return "completion"
    if "confirm" in lowered or "correct" in lowered:
        return "confirmation"
    return "information"


def extract_character(text: str, is_complete: bool = False) -> CharacterDraft:
    """Best-effort field recovery from free text; list fields stay empty."""
    fields = {}

    for key, pattern in IDENTITY_PATTERNS.items():
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            fields[key] = value or None

    numbers = {}
    for key, pattern in NUMERIC_PATTERNS.items():
        match = pattern.search(text)
        if match:
            numbers[key] = int(match.group(1))

    abilities = AbilityScores(**{name: numbers.get(name) for name in AbilityScores.model_fields})

    return CharacterDraft.blank(
        ability_scores=abilities,
        hp=numbers.get("hp"),
        ac=numbers.get("ac"),
        initiative=numbers.get("initiative"),
        is_complete=is_complete,
        **fields,
    )


def parse_fallback(text: str) -> StructuredTurnResponse:
    """Heuristic extraction. Never raises for string input."""
    response_type = infer_response_type(text)

    return StructuredTurnResponse(
        message=text,
        type=response_type,
        options=extract_options(text),
        character=extract_character(text, is_complete=response_type == "completion"),
    )


def normalize_response(text: str) -> NormalizationResult:
    """
    Turn a raw model reply into a structured turn response.

    Returns:
        StrictResult when the reply carried valid structured JSON,
        otherwise FallbackResult built from heuristics
    """
    if text is None:
        text = ""

    try:
        response = parse_strict(text)
    except ExtractionFailed as e:
        response = parse_fallback(text)
        logger.log_extraction(FALLBACK, reason=str(e), response_type=response.type)
        return FallbackResult(response, reason=str(e))

    logger.log_extraction(STRICT, response_type=response.type)
    return StrictResult(response)
