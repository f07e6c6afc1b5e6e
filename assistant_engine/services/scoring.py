from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import replace

from assistant_engine.models.freelancer import FreelancerRecord

# Sub-scores are on the 0-100 scale. Weights sum to 1.0.
JOB_PERFORMANCE_WEIGHT = 0.50
SKILLS_EXPERIENCE_WEIGHT = 0.20
RESPONSIVENESS_WEIGHT = 0.15
FAIRNESS_WEIGHT = 0.15

MAX_SCORE = 100
MAX_RATING = 50
SKILLS_MATCH_POINTS = 30


def compute_match_score(record: FreelancerRecord) -> int:
    """Weighted 0-100 match score for a freelancer record.

    Missing or non-numeric sub-scores count as zero; every sub-score and the
    result are clamped to [0, 100]. Rounds half up.
    """
    weighted = (
        _clamp(record.job_performance) * JOB_PERFORMANCE_WEIGHT
        + _clamp(record.skills_experience) * SKILLS_EXPERIENCE_WEIGHT
        + _clamp(record.responsiveness) * RESPONSIVENESS_WEIGHT
        + _clamp(record.fairness_score) * FAIRNESS_WEIGHT
    )
    return int(_clamp(_round_half_up(weighted)))


def compute_skills_match_score(
    freelancer_skills: Sequence[str], requested_skills: Sequence[str]
) -> float:
    """Skill overlap worth up to 30 points.

    A requested skill is covered when it contains, or is contained in, any
    freelancer skill (case-insensitive). Each requested skill counts once.
    """
    if not isinstance(freelancer_skills, (list, tuple)) or not isinstance(
        requested_skills, (list, tuple)
    ):
        return 0.0
    have = [skill.lower() for skill in freelancer_skills if isinstance(skill, str)]
    wanted = [skill.lower() for skill in requested_skills if isinstance(skill, str)]
    covered = [req for req in wanted if any(req in skill or skill in req for skill in have)]
    return len(covered) / max(len(wanted), 1) * SKILLS_MATCH_POINTS


def compute_performance_score(job_performance: float, rating: float) -> float:
    """Combine job performance (0-100) and rating (0-50, stars x10) into 0-50 points."""
    performance = _clamp(job_performance)
    normalized_rating = _clamp(rating, upper=MAX_RATING) / MAX_RATING * MAX_SCORE
    return (performance * 0.5 + normalized_rating * 0.5) / MAX_SCORE * 50


def annotate_match_scores(records: Iterable[FreelancerRecord]) -> list[FreelancerRecord]:
    return [
        record
        if record.match_score is not None
        else replace(record, match_score=compute_match_score(record))
        for record in records
    ]


def rank_matches(records: Iterable[FreelancerRecord]) -> list[FreelancerRecord]:
    """Order by match score, best first. Ties keep their incoming order."""
    return sorted(
        records,
        key=lambda record: record.match_score if record.match_score is not None else -1,
        reverse=True,
    )


def _clamp(value: object, upper: float = MAX_SCORE) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value):
        return 0.0
    return max(0.0, min(float(upper), float(value)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
