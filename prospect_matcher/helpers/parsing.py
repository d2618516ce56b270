import json
import math
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from prospect_matcher.models.models import MatchResult, RawMatchResponse
from prospect_matcher.utils.exceptions import EmptyResponseError, MalformedResponseError

MIN_SCORE = 0.0
MAX_SCORE = 100.0


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def decode_match_response(content: Optional[str]) -> RawMatchResponse:
    """Decode provider content into a RawMatchResponse.

    Raises EmptyResponseError for missing/blank content and
    MalformedResponseError when the content is not a JSON object.
    """
    if content is None or not content.strip():
        raise EmptyResponseError()

    text = strip_code_fences(content)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Provider response is not valid JSON: {e.msg}", content=content, cause=e
        ) from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Provider response must be a JSON object, got {type(data).__name__}", content=content
        )

    try:
        return RawMatchResponse(**data)
    except (PydanticValidationError, TypeError) as e:
        # non-string keys and the like
        raise MalformedResponseError("Provider response has an unusable shape", content=content, cause=e) from e


def normalize_score(value: Any) -> float:
    """Coerce a raw score to a float in [0, 100]; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return MIN_SCORE
    try:
        score = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return MIN_SCORE
    except OverflowError:
        # only ints too large for a float get here; clamp by sign
        return MAX_SCORE if value > 0 else MIN_SCORE
    if math.isnan(score):
        return MIN_SCORE
    return min(MAX_SCORE, max(MIN_SCORE, score))


def _as_list(x: Any) -> List[str]:
    if x is None:
        return []
    if isinstance(x, str):
        return [x.strip()] if x.strip() else []
    if isinstance(x, (list, tuple)):
        return [str(t).strip() for t in x if t is not None and str(t).strip()]
    return []


def _as_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, list):
        return "\n\n".join(str(t).strip() for t in x if str(t).strip())
    return str(x).strip()


def to_match_result(raw: RawMatchResponse, prospect_id: str, position_id: str) -> MatchResult:
    """Map a decoded provider response onto a validated MatchResult.

    Identity fields come from the caller; the provider never supplies them.
    """
    return MatchResult(
        prospect_id=prospect_id,
        position_id=position_id,
        match_score=normalize_score(raw.match_score),
        strengths=_as_list(raw.strengths),
        gaps=_as_list(raw.gaps),
        recommendation=_as_text(raw.recommendation),
        detailed_analysis=_as_text(raw.detailed_analysis),
    )
