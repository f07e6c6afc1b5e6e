from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class FreelancerRecord:
    id: int
    display_name: str | None = None
    username: str | None = None
    profession: str | None = None
    skills: tuple[str, ...] = ()
    hourly_rate: float | None = None
    location: str | None = None
    rating: float | None = None
    years_of_experience: float | None = None
    job_performance: float = 0
    skills_experience: float = 0
    responsiveness: float = 0
    fairness_score: float = 0
    match_score: int | None = None
    match_reasons: tuple[str, ...] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        return self.display_name or self.username or f"Freelancer {self.id}"

    def names(self) -> list[str]:
        return [name for name in (self.display_name, self.username) if name]

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["skills"] = list(self.skills)
        payload["match_reasons"] = list(self.match_reasons)
        return payload


def normalize_freelancer_result(raw: object) -> FreelancerRecord | None:
    """Normalize either result representation to a ``FreelancerRecord``.

    Accepts a flat record carrying ``id``, a wrapper
    ``{"freelancerId": n, "freelancer": {...}}``, or a bare match summary
    ``{"freelancerId": n, "score": ..., "jobPerformanceScore": ...}``.
    Returns None when no usable id can be found.
    """
    if not isinstance(raw, Mapping):
        return None

    nested = raw.get("freelancer")
    if isinstance(nested, Mapping):
        wrapper_id = _as_int(_first(raw, "freelancerId", "freelancer_id"))
        record = _record_from_mapping(nested, fallback_id=wrapper_id)
        if record is None:
            return None
        # Scores attached to the wrapper describe this match, not the profile.
        return _apply_match_fields(record, raw)

    if _first(raw, "id") is not None:
        return _record_from_mapping(raw)

    match_id = _as_int(_first(raw, "freelancerId", "freelancer_id"))
    if match_id is None:
        return None
    return _record_from_mapping(
        {
            "id": match_id,
            "jobPerformance": raw.get("jobPerformanceScore"),
            "skillsExperience": raw.get("skillsScore"),
            "responsiveness": raw.get("responsivenessScore"),
            "fairnessScore": raw.get("fairnessScore"),
            "score": raw.get("score"),
            "matchReasons": raw.get("matchReasons"),
        }
    )


def _record_from_mapping(
    data: Mapping[str, Any], fallback_id: int | None = None
) -> FreelancerRecord | None:
    record_id = _as_int(_first(data, "id"))
    if record_id is None:
        record_id = fallback_id
    if record_id is None:
        return None
    user = data.get("user")
    user_data: Mapping[str, Any] = user if isinstance(user, Mapping) else {}
    return FreelancerRecord(
        id=record_id,
        display_name=_as_str(_first(data, "displayName", "display_name", "name"))
        or _as_str(_first(user_data, "displayName", "display_name")),
        username=_as_str(_first(data, "username")) or _as_str(_first(user_data, "username")),
        profession=_as_str(_first(data, "profession")),
        skills=_as_str_tuple(data.get("skills")),
        hourly_rate=_as_float(_first(data, "hourlyRate", "hourly_rate")),
        location=_as_str(_first(data, "location")),
        rating=_as_float(_first(data, "rating")),
        years_of_experience=_as_float(
            _first(data, "yearsOfExperience", "years_of_experience", "experience")
        ),
        job_performance=_as_float(_first(data, "jobPerformance", "job_performance")) or 0,
        skills_experience=_as_float(_first(data, "skillsExperience", "skills_experience")) or 0,
        responsiveness=_as_float(_first(data, "responsiveness")) or 0,
        fairness_score=_as_float(_first(data, "fairnessScore", "fairness_score")) or 0,
        match_score=_as_score(_first(data, "matchScore", "match_score", "score")),
        match_reasons=_as_str_tuple(_first(data, "matchReasons", "match_reasons")),
    )


def _apply_match_fields(record: FreelancerRecord, wrapper: Mapping[str, Any]) -> FreelancerRecord:
    updates: dict[str, Any] = {}
    score = _as_score(_first(wrapper, "score", "matchScore", "match_score"))
    if score is not None:
        updates["match_score"] = score
    reasons = _as_str_tuple(_first(wrapper, "matchReasons", "match_reasons"))
    if reasons:
        updates["match_reasons"] = reasons
    return replace(record, **updates) if updates else record


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_float(value: object) -> float | None:
    """Finite number or None. NaN and infinities are treated as missing."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _as_score(value: object) -> int | None:
    number = _as_float(value)
    if number is None:
        return None
    return int(number) if float(number).is_integer() else round(number)


def _as_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_str_tuple(value: object) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    items: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip() and item.strip() not in items:
            items.append(item.strip())
    return tuple(items)
