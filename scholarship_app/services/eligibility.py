"""
Eligibility Validator

Single source of truth for application requirements. The checklist endpoint,
step-level data entry validation and the submit gate all go through the
functions in this module, so the applicant sees exactly what the server
enforces.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from scholarship_app.config import settings
from scholarship_app.models.application import Application, TOTAL_STEPS
from scholarship_app.models.recommendation import (
    Recommendation, RecommendationStatus, QUORUM_RECOMMENDER_TYPES
)
from scholarship_app.schemas.application import Requirement


@dataclass(frozen=True)
class EligibilityPolicy:
    """Numeric bounds and constants the rules are evaluated against"""
    residency_state: str = "MI"
    min_gpa: float = 3.0
    essay_min_words: int = 250
    essay_max_words: int = 500
    required_recommendations: int = 2

    @classmethod
    def from_settings(cls) -> "EligibilityPolicy":
        return cls(
            residency_state=settings.residency_state,
            min_gpa=settings.min_gpa,
            essay_min_words=settings.essay_min_words,
            essay_max_words=settings.essay_max_words,
            required_recommendations=settings.max_recommendations,
        )


REQUIREMENT_LABELS = {
    "steps": "All application steps completed",
    "personal": "Personal information complete",
    "address": "Address verified (Michigan resident)",
    "education": "Education information complete",
    "gpa": "GPA requirement met",
    "fulltime": "Full-time student",
    "files": "Profile photo, transcript and essay provided",
    "essay": "Essay within the required word count",
    "recommendations": "Recommendations received",
}

REQUIREMENT_STEPS = {
    "steps": None,
    "personal": 1,
    "address": 2,
    "education": 3,
    "gpa": 3,
    "fulltime": 4,
    "files": 5,
    "essay": 5,
    "recommendations": 6,
}


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def count_words(text: Optional[str]) -> int:
    """Whitespace-separated word count"""
    if not text:
        return 0
    return len(text.split())


# ============ Rule functions ============ #

def state_is_allowed(state: Optional[str], policy: EligibilityPolicy) -> bool:
    return _present(state) and state.strip().upper() == policy.residency_state.upper()


def gpa_meets_minimum(gpa: Optional[float], policy: EligibilityPolicy) -> bool:
    return gpa is not None and gpa >= policy.min_gpa


def essay_length_ok(word_count: Optional[int], policy: EligibilityPolicy) -> bool:
    return word_count is not None and policy.essay_min_words <= word_count <= policy.essay_max_words


def recommendation_quorum(recommendations: Iterable[Recommendation], policy: EligibilityPolicy) -> Dict[str, Any]:
    """
    Evaluate the recommendation quorum

    Live (not removed) invitations must number at least the required count and
    all be submitted, with at least one letter from an educator or a community
    group leader.
    """
    live = [r for r in recommendations if r.withdrawn_at is None]
    submitted = [r for r in live if r.status == RecommendationStatus.SUBMITTED]
    has_leader = any(r.recommender_type in QUORUM_RECOMMENDER_TYPES for r in submitted)
    met = (
        len(submitted) >= policy.required_recommendations
        and len(submitted) == len(live)
        and has_leader
    )
    return {
        "met": met,
        "total": len(live),
        "submitted": len(submitted),
        "has_educator_or_community_leader": has_leader,
    }


# ============ Checklist ============ #

def compute_checklist(
    application: Application,
    recommendations: Iterable[Recommendation],
    policy: Optional[EligibilityPolicy] = None,
) -> List[Requirement]:
    """
    Compute the full requirements checklist

    Pure and deterministic: reads the application and its recommendations,
    never mutates them.
    """
    policy = policy or EligibilityPolicy.from_settings()
    app = application
    completed = sorted(set(app.completed_steps or []))

    rows = {
        "steps": (
            all(step in completed for step in range(1, TOTAL_STEPS + 1)),
            completed,
        ),
        "personal": (
            all(_present(v) for v in (app.first_name, app.last_name, app.phone, app.date_of_birth)),
            None,
        ),
        "address": (
            all(_present(v) for v in (app.street_address, app.city, app.state, app.zip_code))
            and state_is_allowed(app.state, policy)
            and app.is_michigan_resident is True,
            {"state": app.state, "is_michigan_resident": app.is_michigan_resident},
        ),
        "education": (
            all(_present(v) for v in (
                app.high_school_name, app.high_school_city, app.graduation_date, app.gpa,
                app.college_name, app.college_city, app.college_state, app.year_in_college,
            )),
            None,
        ),
        "gpa": (gpa_meets_minimum(app.gpa, policy), app.gpa),
        "fulltime": (app.is_full_time_student is True, app.is_full_time_student),
        "files": (
            _present(app.profile_photo_id)
            and _present(app.transcript_file_id)
            and (_present(app.essay_text) or _present(app.essay_file_id)),
            None,
        ),
        "essay": (essay_length_ok(app.essay_word_count, policy), app.essay_word_count),
    }
    quorum = recommendation_quorum(recommendations, policy)
    rows["recommendations"] = (quorum.pop("met"), quorum)

    return [
        Requirement(
            id=req_id,
            label=_label(req_id, policy),
            met=bool(met),
            current_value=value,
            step=REQUIREMENT_STEPS[req_id],
        )
        for req_id, (met, value) in rows.items()
    ]


def _label(req_id: str, policy: EligibilityPolicy) -> str:
    if req_id == "gpa":
        return f"GPA requirement met (>= {policy.min_gpa:.1f})"
    if req_id == "essay":
        return f"Essay complete ({policy.essay_min_words}-{policy.essay_max_words} words)"
    if req_id == "recommendations":
        return f"{policy.required_recommendations} recommendations received (one from an educator or community leader)"
    return REQUIREMENT_LABELS[req_id]


def unmet_requirements(checklist: List[Requirement]) -> List[str]:
    return [req.id for req in checklist if not req.met]


def all_requirements_met(checklist: List[Requirement]) -> bool:
    return all(req.met for req in checklist)


# ============ Step-level validation ============ #

def validate_step(step: int, fields: Dict[str, Any], policy: Optional[EligibilityPolicy] = None) -> List[str]:
    """
    Hard disqualifiers detectable while a step is being saved

    Returns the checklist ids the submitted step data would fail, so a
    disqualified applicant finds out at data entry rather than at submit.
    """
    policy = policy or EligibilityPolicy.from_settings()
    failures = []

    if step == 2 and not state_is_allowed(fields.get("state"), policy):
        failures.append("address")
    elif step == 3 and not gpa_meets_minimum(fields.get("gpa"), policy):
        failures.append("gpa")
    elif step == 4:
        if fields.get("is_full_time_student") is not True:
            failures.append("fulltime")
        if fields.get("is_michigan_resident") is not True:
            failures.append("address")
    elif step == 5 and fields.get("essay_word_count") is not None:
        if not essay_length_ok(fields["essay_word_count"], policy):
            failures.append("essay")

    return failures
