"""
Unit tests for the stage gate and progression recheck.

These tests cover:
- is_stage_unlocked for every stage and malformed schools
- The admin/partner bypass
- compute_progression thresholds and the act -> award rule
- check_and_update_school_progression persistence
- start_new_round
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from plastic_clever.modules.schools.models import ProgramStage, School
from plastic_clever.modules.schools.progression import (
    RoundActivity,
    can_submit_to_stage,
    check_and_update_school_progression,
    compute_progression,
    is_stage_unlocked,
    start_new_round,
)
from plastic_clever.modules.shared import ConflictError, NotFoundError


def make_school(**overrides):
    school = MagicMock(spec=School)
    school.id = "school-1"
    school.current_stage = ProgramStage.INSPIRE
    school.inspire_completed = False
    school.investigate_completed = False
    school.act_completed = False
    school.award_completed = False
    school.audit_quiz_completed = False
    school.progress_percentage = 0
    school.current_round = 1
    school.rounds_completed = 0
    for name, value in overrides.items():
        setattr(school, name, value)
    return school


def activity(inspire=0, act=0, audit=False, promise=False):
    return RoundActivity(
        approved_by_stage={"inspire": inspire, "act": act},
        has_approved_audit=audit,
        has_reduction_promise=promise,
    )


class TestIsStageUnlocked:
    """Tests for the stage gate."""

    def test_inspire_always_unlocked(self):
        """Inspire is open to every school."""
        assert is_stage_unlocked(ProgramStage.INSPIRE, make_school())
        assert is_stage_unlocked("inspire", {})

    def test_investigate_requires_inspire_completed(self):
        """Investigate opens once inspire is complete."""
        assert not is_stage_unlocked(ProgramStage.INVESTIGATE, make_school())
        assert is_stage_unlocked(ProgramStage.INVESTIGATE, make_school(inspire_completed=True))

    def test_act_requires_investigate_completed(self):
        """Act opens once investigate is complete."""
        school = make_school(inspire_completed=True)
        assert not is_stage_unlocked(ProgramStage.ACT, school)
        school.investigate_completed = True
        assert is_stage_unlocked(ProgramStage.ACT, school)

    def test_act_ignores_inspire_flag(self):
        """Act only looks at the investigate flag."""
        assert is_stage_unlocked("act", {"inspire_completed": False, "investigate_completed": True})

    def test_unknown_stage_is_locked(self):
        """Stages outside the programme are locked."""
        assert not is_stage_unlocked("celebrate", make_school(inspire_completed=True))

    def test_missing_or_non_boolean_flags_count_as_false(self):
        """Only a real True completes a stage."""
        assert not is_stage_unlocked("investigate", {})
        assert not is_stage_unlocked("investigate", {"inspire_completed": "yes"})
        assert not is_stage_unlocked("act", SimpleNamespace())


class TestCanSubmitToStage:
    def test_admin_and_partner_bypass_gate(self, admin_user, partner_user):
        """Admins and partners submit to any stage."""
        school = make_school()
        assert can_submit_to_stage(admin_user, ProgramStage.ACT, school)
        assert can_submit_to_stage(partner_user, ProgramStage.ACT, school)

    def test_teacher_goes_through_gate(self, teacher_user):
        """Teachers are held to the stage gate."""
        school = make_school()
        assert can_submit_to_stage(teacher_user, ProgramStage.INSPIRE, school)
        assert not can_submit_to_stage(teacher_user, ProgramStage.INVESTIGATE, school)


class TestComputeProgression:
    """Tests for compute_progression."""

    def test_fresh_school_stays_on_inspire(self):
        """Two approvals are not enough to finish inspire."""
        result = compute_progression(make_school(), activity(inspire=2))
        assert result["inspire_completed"] is False
        assert result["current_stage"] == ProgramStage.INSPIRE
        assert result["progress_percentage"] == 0

    def test_three_approved_inspire_completes_inspire(self):
        """Three approved inspire items move the school to investigate."""
        result = compute_progression(make_school(), activity(inspire=3))
        assert result["inspire_completed"] is True
        assert result["current_stage"] == ProgramStage.INVESTIGATE
        assert result["progress_percentage"] == 33

    def test_investigate_needs_audit_and_promise(self):
        """Investigate needs both an approved audit and a promise."""
        school = make_school(inspire_completed=True)
        assert not compute_progression(school, activity(audit=True))["investigate_completed"]
        assert not compute_progression(school, activity(promise=True))["investigate_completed"]

        result = compute_progression(school, activity(audit=True, promise=True))
        assert result["investigate_completed"] is True
        assert result["audit_quiz_completed"] is True
        assert result["current_stage"] == ProgramStage.ACT
        assert result["progress_percentage"] == 67

    def test_act_completes_award_and_counts_round(self):
        """Finishing act completes the award and the round."""
        school = make_school(
            inspire_completed=True, investigate_completed=True, audit_quiz_completed=True
        )
        result = compute_progression(school, activity(act=3))
        assert result["act_completed"] is True
        assert result["award_completed"] is True
        assert result["progress_percentage"] == 100
        assert result["rounds_completed"] == 1

    def test_completed_round_not_counted_twice(self):
        """A finished round is only counted once."""
        school = make_school(
            inspire_completed=True,
            investigate_completed=True,
            act_completed=True,
            award_completed=True,
            rounds_completed=1,
        )
        assert compute_progression(school, activity())["rounds_completed"] == 1

    def test_flags_never_regress(self):
        """Completed stages stay completed."""
        school = make_school(inspire_completed=True)
        result = compute_progression(school, activity(inspire=0))
        assert result["inspire_completed"] is True


class TestCheckAndUpdateSchoolProgression:
    @pytest.mark.asyncio
    async def test_missing_school_returns_none(self, mock_db):
        """An unknown school is skipped quietly."""
        with patch(
            "plastic_clever.modules.schools.progression.SchoolRepository"
        ) as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            assert await check_and_update_school_progression(mock_db, "missing") is None

    @pytest.mark.asyncio
    async def test_persists_only_changed_fields(self, mock_db):
        """Only fields that changed are written."""
        school = make_school()
        with (
            patch("plastic_clever.modules.schools.progression.SchoolRepository") as mock_repo,
            patch(
                "plastic_clever.modules.schools.progression.load_round_activity",
                new_callable=AsyncMock,
                return_value=activity(inspire=3),
            ),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=school)
            mock_repo.update = AsyncMock(return_value=school)

            await check_and_update_school_progression(mock_db, "school-1")

        changed = mock_repo.update.call_args.kwargs
        assert changed["inspire_completed"] is True
        assert changed["current_stage"] == ProgramStage.INVESTIGATE
        assert changed["progress_percentage"] == 33
        assert "investigate_completed" not in changed

    @pytest.mark.asyncio
    async def test_no_change_skips_update(self, mock_db):
        """Nothing is written when progression is unchanged."""
        school = make_school()
        with (
            patch("plastic_clever.modules.schools.progression.SchoolRepository") as mock_repo,
            patch(
                "plastic_clever.modules.schools.progression.load_round_activity",
                new_callable=AsyncMock,
                return_value=activity(inspire=1),
            ),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=school)
            mock_repo.update = AsyncMock()

            result = await check_and_update_school_progression(mock_db, "school-1")

        assert result is school
        mock_repo.update.assert_not_called()


class TestStartNewRound:
    @pytest.mark.asyncio
    async def test_requires_completed_award(self, mock_db):
        """A new round needs a completed award."""
        with patch("plastic_clever.modules.schools.progression.SchoolRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=make_school())
            with pytest.raises(ConflictError) as exc_info:
                await start_new_round(mock_db, "school-1")
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "ROUND_NOT_COMPLETED"

    @pytest.mark.asyncio
    async def test_missing_school(self, mock_db):
        """Starting a round for an unknown school is a 404."""
        with patch("plastic_clever.modules.schools.progression.SchoolRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await start_new_round(mock_db, "missing")

    @pytest.mark.asyncio
    async def test_resets_flags_and_increments_round(self, mock_db):
        """A new round resets stage flags and keeps the round count."""
        school = make_school(award_completed=True, act_completed=True, current_round=2)
        with patch("plastic_clever.modules.schools.progression.SchoolRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=school)
            mock_repo.update = AsyncMock(return_value=school)
            await start_new_round(mock_db, "school-1")

        fields = mock_repo.update.call_args.kwargs
        assert fields["current_round"] == 3
        assert fields["current_stage"] == ProgramStage.INSPIRE
        assert fields["award_completed"] is False
        assert fields["act_completed"] is False
        assert fields["progress_percentage"] == 0
        assert "rounds_completed" not in fields
