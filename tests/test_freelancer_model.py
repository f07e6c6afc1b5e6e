from __future__ import annotations

from assistant_engine.models.freelancer import FreelancerRecord, normalize_freelancer_result

_PROFILE = {
    "id": 7,
    "displayName": "Sarah Lee",
    "username": "sarahlee",
    "profession": "UX Designer",
    "skills": ["Figma", "Research", "Figma"],
    "hourlyRate": 65,
    "location": "Erbil",
    "rating": 45,
    "yearsOfExperience": 6,
    "jobPerformance": 92,
    "skillsExperience": 80,
    "responsiveness": 75,
    "fairnessScore": 88,
}


def test_wrapper_and_flat_results_normalize_to_same_record() -> None:
    flat = normalize_freelancer_result(_PROFILE)
    wrapped = normalize_freelancer_result({"freelancerId": 7, "freelancer": _PROFILE})

    assert flat is not None
    assert flat == wrapped
    assert flat.skills == ("Figma", "Research")
    assert flat.label == "Sarah Lee"


def test_wrapper_uses_outer_id_when_nested_record_lacks_one() -> None:
    nested = {key: value for key, value in _PROFILE.items() if key != "id"}

    record = normalize_freelancer_result({"freelancerId": 7, "freelancer": nested})

    assert record is not None
    assert record.id == 7


def test_wrapper_match_fields_override_profile() -> None:
    record = normalize_freelancer_result(
        {"freelancerId": 7, "freelancer": _PROFILE, "score": 91, "matchReasons": ["Figma"]}
    )

    assert record is not None
    assert record.match_score == 91
    assert record.match_reasons == ("Figma",)


def test_match_summary_without_profile_maps_sub_scores() -> None:
    record = normalize_freelancer_result(
        {
            "freelancerId": 3,
            "score": 77,
            "matchReasons": ["Fast replies"],
            "jobPerformanceScore": 80,
            "skillsScore": 70,
            "responsivenessScore": 90,
            "fairnessScore": 60,
        }
    )

    assert record == FreelancerRecord(
        id=3,
        job_performance=80,
        skills_experience=70,
        responsiveness=90,
        fairness_score=60,
        match_score=77,
        match_reasons=("Fast replies",),
    )


def test_nested_user_supplies_names() -> None:
    record = normalize_freelancer_result(
        {"id": 4, "userId": 10, "user": {"id": 10, "displayName": "Omar Aziz", "username": "omar"}}
    )

    assert record is not None
    assert record.names() == ["Omar Aziz", "omar"]


def test_unusable_results_are_rejected() -> None:
    assert normalize_freelancer_result(None) is None
    assert normalize_freelancer_result(["id", 1]) is None
    assert normalize_freelancer_result({"displayName": "No Id"}) is None
    assert normalize_freelancer_result({"id": True}) is None


def test_label_falls_back_to_id() -> None:
    assert FreelancerRecord(id=12).label == "Freelancer 12"


def test_non_finite_numbers_are_treated_as_missing() -> None:
    record = normalize_freelancer_result(
        {
            "freelancerId": 7,
            "score": float("nan"),
            "jobPerformanceScore": float("inf"),
            "skillsScore": "-Infinity",
            "responsivenessScore": "nan",
            "fairnessScore": 40,
        }
    )

    assert record == FreelancerRecord(id=7, fairness_score=40)
