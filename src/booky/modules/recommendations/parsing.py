from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from booky.modules.recommendations.schemas import Recommendation

_CONTROL_CHARS = re.compile(r"[\u0000-\u001f\u007f-\u009f]")
_JSON_ARRAY = re.compile(r"\[.*\]", re.S)


class RecommendationParseError(ValueError):
    pass


def strip_control_chars(content: str) -> str:
    return _CONTROL_CHARS.sub("", (content or "").strip())


def extract_json_array(content: str) -> Any:
    """
    Parse the model reply as JSON.

    The whole cleaned reply is tried first; failing that, the outermost
    ``[...]`` span is parsed (replies sometimes wrap the array in prose).
    """
    cleaned = strip_control_chars(content)
    if not cleaned:
        raise RecommendationParseError("Empty response content")
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    m = _JSON_ARRAY.search(cleaned)
    if not m:
        raise RecommendationParseError("No valid JSON array found in response")
    try:
        return json.loads(m.group(0))
    except ValueError as e:
        raise RecommendationParseError(f"Failed to parse response: {e}") from e


def validate_recommendations(obj: Any) -> list[Recommendation]:
    if not isinstance(obj, list):
        raise RecommendationParseError("Response is not an array")
    if not obj:
        raise RecommendationParseError("Empty recommendations array")

    out: list[Recommendation] = []
    for idx, raw in enumerate(obj):
        if not isinstance(raw, dict):
            raise RecommendationParseError(f"Recommendation {idx} is not an object")
        try:
            out.append(Recommendation.model_validate(raw))
        except ValidationError as e:
            raise RecommendationParseError(f"Invalid recommendation structure at {idx}") from e
    return out


def parse_recommendations(content: str) -> list[Recommendation]:
    return validate_recommendations(extract_json_array(content))
