"""Tests for the eligibility checklist and step-level validation."""

import pytest

from scholarship_app.models.application import Application, YearInCollege
from scholarship_app.models.recommendation import Recommendation, RecommendationStatus, RecommenderType
from scholarship_app.services.eligibility import (
    EligibilityPolicy, all_requirements_met, compute_checklist, count_words, unmet_requirements, validate_step
)

POLICY = EligibilityPolicy()


def eligible_application(**overrides):
    fields = dict(
        completed_steps=[1, 2, 3, 4, 5, 6, 7],
        first_name="Jane", last_name="Doe", phone="517-555-0100", date_of_birth="2005-04-12",
        profile_photo_id="photo.jpg",
        street_address="100 Main St", city="Lansing", state="MI", zip_code="48933",
        high_school_name="Eastside High", high_school_city="Lansing", graduation_date="2023-06",
        gpa=3.5, college_name="MSU", college_city="East Lansing", college_state="MI",
        year_in_college=YearInCollege.SOPHOMORE,
        is_full_time_student=True, is_michigan_resident=True,
        transcript_file_id="transcript.pdf", essay_text="essay", essay_word_count=300,
    )
    fields.update(overrides)
    return Application(**fields)


def letter(recommender_type=RecommenderType.EDUCATOR, status=RecommendationStatus.SUBMITTED, withdrawn_at=None):
    return Recommendation(recommender_type=recommender_type, status=status, withdrawn_at=withdrawn_at)


def two_letters():
    return [letter(RecommenderType.EDUCATOR), letter(RecommenderType.OTHER)]


def by_id(checklist):
    return {req.id: req for req in checklist}


def test_fully_eligible_application_meets_everything():
    checklist = compute_checklist(eligible_application(), two_letters(), POLICY)
    assert [req.id for req in checklist] == [
        "steps", "personal", "address", "education", "gpa", "fulltime", "files", "essay", "recommendations",
    ]
    assert all_requirements_met(checklist)
    assert unmet_requirements(checklist) == []


def test_checklist_is_deterministic_and_pure():
    app = eligible_application(gpa=2.5)
    recs = two_letters()
    first = compute_checklist(app, recs, POLICY)
    second = compute_checklist(app, recs, POLICY)
    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]
    assert app.gpa == 2.5
    assert app.completed_steps == [1, 2, 3, 4, 5, 6, 7]


@pytest.mark.parametrize("gpa,met", [(3.0, True), (2.99, False), (4.0, True), (None, False)])
def test_gpa_boundary(gpa, met):
    checklist = by_id(compute_checklist(eligible_application(gpa=gpa), two_letters(), POLICY))
    assert checklist["gpa"].met is met


@pytest.mark.parametrize("words,met", [(250, True), (500, True), (249, False), (501, False)])
def test_essay_boundary(words, met):
    checklist = by_id(compute_checklist(eligible_application(essay_word_count=words), two_letters(), POLICY))
    assert checklist["essay"].met is met
    assert checklist["essay"].current_value == words


def test_non_resident_fails_address():
    checklist = by_id(compute_checklist(eligible_application(is_michigan_resident=False), two_letters(), POLICY))
    assert checklist["address"].met is False
    assert checklist["personal"].met is True


def test_out_of_state_address_fails_address():
    checklist = by_id(compute_checklist(eligible_application(state="OH"), two_letters(), POLICY))
    assert checklist["address"].met is False


def test_part_time_student_fails_fulltime():
    checklist = by_id(compute_checklist(eligible_application(is_full_time_student=False), two_letters(), POLICY))
    assert checklist["fulltime"].met is False


def test_missing_review_step_fails_steps():
    checklist = by_id(compute_checklist(eligible_application(completed_steps=[1, 2, 3, 4, 5, 6]), two_letters(), POLICY))
    assert checklist["steps"].met is False
    assert checklist["steps"].current_value == [1, 2, 3, 4, 5, 6]


def test_essay_file_satisfies_files_requirement():
    app = eligible_application(essay_text=None, essay_file_id="essay.pdf")
    assert by_id(compute_checklist(app, two_letters(), POLICY))["files"].met is True


def test_missing_transcript_fails_files():
    app = eligible_application(transcript_file_id="  ")
    assert by_id(compute_checklist(app, two_letters(), POLICY))["files"].met is False


class TestRecommendationQuorum:
    def test_two_other_letters_fail(self):
        recs = [letter(RecommenderType.OTHER), letter(RecommenderType.OTHER)]
        assert by_id(compute_checklist(eligible_application(), recs, POLICY))["recommendations"].met is False

    def test_replacing_one_with_educator_passes(self):
        recs = [letter(RecommenderType.EDUCATOR), letter(RecommenderType.OTHER)]
        assert by_id(compute_checklist(eligible_application(), recs, POLICY))["recommendations"].met is True

    def test_community_group_counts_as_leader(self):
        recs = [letter(RecommenderType.COMMUNITY_GROUP), letter(RecommenderType.OTHER)]
        assert by_id(compute_checklist(eligible_application(), recs, POLICY))["recommendations"].met is True

    def test_one_pending_letter_fails(self):
        recs = [letter(RecommenderType.EDUCATOR), letter(RecommenderType.OTHER, status=RecommendationStatus.VIEWED)]
        requirement = by_id(compute_checklist(eligible_application(), recs, POLICY))["recommendations"]
        assert requirement.met is False
        assert requirement.current_value["submitted"] == 1
        assert requirement.current_value["total"] == 2

    def test_single_letter_fails(self):
        recs = [letter(RecommenderType.EDUCATOR)]
        assert by_id(compute_checklist(eligible_application(), recs, POLICY))["recommendations"].met is False

    def test_removed_invitations_are_ignored(self):
        from datetime import datetime

        recs = two_letters() + [letter(RecommenderType.OTHER, status=RecommendationStatus.EMAIL_SENT,
                                       withdrawn_at=datetime(2025, 1, 1))]
        assert by_id(compute_checklist(eligible_application(), recs, POLICY))["recommendations"].met is True


def test_policy_bounds_are_configurable():
    policy = EligibilityPolicy(essay_min_words=450, essay_max_words=550)
    checklist = by_id(compute_checklist(eligible_application(essay_word_count=300), two_letters(), policy))
    assert checklist["essay"].met is False
    assert "450-550" in checklist["essay"].label


def test_count_words():
    assert count_words(None) == 0
    assert count_words("") == 0
    assert count_words("  one two\nthree\tfour  ") == 4


class TestValidateStep:
    def test_non_michigan_state(self):
        assert validate_step(2, {"state": "OH"}, POLICY) == ["address"]

    def test_lowercase_michigan_state_accepted(self):
        assert validate_step(2, {"state": "mi"}, POLICY) == []

    def test_low_gpa(self):
        assert validate_step(3, {"gpa": 2.99}, POLICY) == ["gpa"]
        assert validate_step(3, {"gpa": 3.0}, POLICY) == []

    def test_eligibility_answers(self):
        assert validate_step(4, {"is_full_time_student": False, "is_michigan_resident": False}, POLICY) == [
            "fulltime", "address",
        ]
        assert validate_step(4, {"is_full_time_student": True, "is_michigan_resident": True}, POLICY) == []

    def test_essay_length(self):
        assert validate_step(5, {"essay_word_count": 600}, POLICY) == ["essay"]
        assert validate_step(5, {"essay_word_count": 250}, POLICY) == []

    def test_essay_without_count_is_not_checked(self):
        assert validate_step(5, {"transcript_file_id": "t.pdf"}, POLICY) == []

    def test_steps_without_disqualifiers(self):
        assert validate_step(1, {}, POLICY) == []
        assert validate_step(6, {}, POLICY) == []
