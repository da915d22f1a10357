"""
Unit tests for waste audits and reduction promises.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from plastic_clever.modules.audits.models import AuditResponse, AuditStatus, ReductionPromise
from plastic_clever.modules.audits.schemas import AuditSaveRequest, PromiseCreate, PromiseUpdate
from plastic_clever.modules.audits.service import (
    AuditAlreadySubmittedError,
    compute_audit_results,
    create_promise,
    review_audit,
    save_draft,
    submit_audit,
    sum_numeric,
    update_promise,
)
from plastic_clever.modules.shared import ValidationFailedError

SERVICE = "plastic_clever.modules.audits.service"


def make_audit(status=AuditStatus.DRAFT, school_id="school-1", **sections):
    audit = MagicMock(spec=AuditResponse)
    audit.id = "audit-1"
    audit.school_id = school_id
    audit.status = status
    audit.submitted_by = "teacher-1"
    audit.school = SimpleNamespace(name="Hill Primary")
    for name in ("part1_data", "part2_data", "part3_data", "part4_data"):
        setattr(audit, name, sections.get(name))
    return audit


def make_promise(baseline=100, target=60):
    promise = MagicMock(spec=ReductionPromise)
    promise.id = "promise-1"
    promise.school_id = "school-1"
    promise.baseline_quantity = baseline
    promise.target_quantity = target
    promise.reduction_amount = baseline - target
    return promise


@pytest.fixture
def school():
    return SimpleNamespace(id="school-1", name="Hill Primary", current_round=3)


class TestSumNumeric:
    def test_nested_structures(self):
        """Counts are summed through nested dicts, lists and numeric strings."""
        data = {"bottles": 12, "wrappers": {"crisps": 5, "sweets": "3"}, "cups": [1, 2, 3.9]}
        assert sum_numeric(data) == 26

    def test_ignores_booleans_text_and_negatives(self):
        """Booleans, free text, negatives and nulls add nothing."""
        assert sum_numeric({"recycles": True, "notes": "lots", "oops": -4, "none": None}) == 0

    def test_compute_audit_results(self):
        """Each part is totalled and missing parts count as zero."""
        audit = make_audit(part1_data={"a": 2}, part3_data={"b": [1, 1]})
        assert compute_audit_results(audit) == {
            "part1": 2,
            "part2": 0,
            "part3": 2,
            "part4": 0,
            "total": 4,
        }


class TestAuditLifecycle:
    """Draft, submit and review."""

    @pytest.mark.asyncio
    async def test_save_draft_creates_for_current_round(self, mock_db, teacher_user, school):
        """A first save creates a draft for the school's current round."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_audit_for_round = AsyncMock(return_value=None)
            mock_repo.create_audit = AsyncMock(return_value=make_audit())

            await save_draft(
                mock_db,
                teacher_user,
                AuditSaveRequest(school_id="school-1", part1_data={"bottles": 4}),
            )

        fields = mock_repo.create_audit.call_args.kwargs
        assert fields["round_number"] == 3
        assert fields["status"] == AuditStatus.DRAFT
        assert fields["part1_data"] == {"bottles": 4}
        assert "part2_data" not in fields

    @pytest.mark.asyncio
    async def test_submitted_audit_cannot_be_edited(self, mock_db, teacher_user, school):
        """Submitted audits are read-only."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_audit_for_round = AsyncMock(
                return_value=make_audit(status=AuditStatus.SUBMITTED)
            )
            with pytest.raises(AuditAlreadySubmittedError):
                await save_draft(mock_db, teacher_user, AuditSaveRequest(school_id="school-1"))

    @pytest.mark.asyncio
    async def test_rejected_audit_returns_to_draft(self, mock_db, teacher_user, school):
        """Editing a rejected audit puts it back in draft."""
        audit = make_audit(status=AuditStatus.REJECTED)
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_audit_for_round = AsyncMock(return_value=audit)
            mock_repo.save = AsyncMock(return_value=audit)
            await save_draft(
                mock_db,
                teacher_user,
                AuditSaveRequest(school_id="school-1", part2_data={"cups": 9}),
            )

        assert audit.status == AuditStatus.DRAFT
        assert audit.part2_data == {"cups": 9}

    @pytest.mark.asyncio
    async def test_submit_computes_totals(self, mock_db, teacher_user):
        """Submission stores the totals even if the email fails."""
        audit = make_audit(part1_data={"bottles": 10}, part4_data={"bags": "5"})
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(
                f"{SERVICE}.send_audit_submission_email",
                new_callable=AsyncMock,
                side_effect=RuntimeError("smtp down"),
            ),
            patch(f"{SERVICE}.log_user_activity", new_callable=AsyncMock),
        ):
            mock_repo.get_audit = AsyncMock(return_value=audit)
            mock_repo.save = AsyncMock(return_value=audit)

            result = await submit_audit(mock_db, teacher_user, "audit-1")

        assert result.status == AuditStatus.SUBMITTED
        assert result.total_plastic_items == 15
        assert result.results_data["part4"] == 5
        assert result.submitted_at is not None

    @pytest.mark.asyncio
    async def test_submit_twice_rejected(self, mock_db, teacher_user):
        """An audit can only be submitted once."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
        ):
            mock_repo.get_audit = AsyncMock(return_value=make_audit(status=AuditStatus.SUBMITTED))
            with pytest.raises(AuditAlreadySubmittedError):
                await submit_audit(mock_db, teacher_user, "audit-1")

    @pytest.mark.asyncio
    async def test_approval_rechecks_progression(self, mock_db, admin_user):
        """Approval records the reviewer, rechecks progression and emails the submitter."""
        audit = make_audit(status=AuditStatus.SUBMITTED)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.check_and_update_school_progression", new_callable=AsyncMock
            ) as mock_progress,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.send_audit_approval_email", new_callable=AsyncMock) as mock_email,
            patch(f"{SERVICE}.log_user_activity", new_callable=AsyncMock),
        ):
            mock_repo.get_audit = AsyncMock(return_value=audit)
            mock_repo.save = AsyncMock(return_value=audit)
            mock_users.get_by_id = AsyncMock(return_value=SimpleNamespace(email="t@test.com"))

            result = await review_audit(mock_db, admin_user, "audit-1", approved=True)

        assert result.status == AuditStatus.APPROVED
        assert result.reviewed_by == admin_user.id
        mock_progress.assert_awaited_once_with(mock_db, "school-1")
        mock_email.assert_awaited_once_with("t@test.com", "Hill Primary")

    @pytest.mark.asyncio
    async def test_draft_cannot_be_reviewed(self, mock_db, admin_user):
        """Only submitted audits can be reviewed."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_audit = AsyncMock(return_value=make_audit())
            with pytest.raises(ValidationFailedError) as exc_info:
                await review_audit(mock_db, admin_user, "audit-1", approved=False)
        assert exc_info.value.error_code == "AUDIT_NOT_SUBMITTED"


class TestPromiseValidation:
    def test_target_must_be_below_baseline(self):
        """A promise must reduce something."""
        with pytest.raises(ValidationError):
            PromiseCreate(
                school_id="school-1",
                plastic_item_type="bottles",
                plastic_item_label="Plastic bottles",
                baseline_quantity=50,
                target_quantity=50,
            )

    def test_baseline_must_be_positive(self):
        """The baseline must be above zero."""
        with pytest.raises(ValidationError):
            PromiseCreate(
                school_id="school-1",
                plastic_item_type="bottles",
                plastic_item_label="Plastic bottles",
                baseline_quantity=0,
                target_quantity=0,
            )


class TestPromises:
    @pytest.mark.asyncio
    async def test_create_computes_reduction_and_rechecks(self, mock_db, teacher_user, school):
        """New promises store the reduction and recheck progression."""
        data = PromiseCreate(
            school_id="school-1",
            plastic_item_type="bottles",
            plastic_item_label="Plastic bottles",
            baseline_quantity=120,
            target_quantity=20,
        )
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.check_and_update_school_progression", new_callable=AsyncMock
            ) as mock_progress,
            patch(f"{SERVICE}.log_user_activity", new_callable=AsyncMock),
        ):
            mock_repo.create_promise = AsyncMock(return_value=make_promise(120, 20))
            await create_promise(mock_db, teacher_user, data)

        fields = mock_repo.create_promise.call_args.kwargs
        assert fields["reduction_amount"] == 100
        assert fields["round_number"] == 3
        assert fields["created_by"] == teacher_user.id
        mock_progress.assert_awaited_once_with(mock_db, "school-1")

    @pytest.mark.asyncio
    async def test_audit_from_other_school_rejected(self, mock_db, teacher_user, school):
        """A promise cannot cite another school's audit."""
        data = PromiseCreate(
            school_id="school-1",
            audit_id="audit-9",
            plastic_item_type="bottles",
            plastic_item_label="Plastic bottles",
            baseline_quantity=10,
            target_quantity=5,
        )
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_audit = AsyncMock(return_value=make_audit(school_id="school-2"))
            mock_repo.create_promise = AsyncMock()
            with pytest.raises(ValidationFailedError) as exc_info:
                await create_promise(mock_db, teacher_user, data)

        assert exc_info.value.error_code == "AUDIT_SCHOOL_MISMATCH"
        mock_repo.create_promise.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_recomputes_reduction(self, mock_db, teacher_user):
        """Changing the target recomputes the reduction."""
        promise = make_promise(100, 60)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
        ):
            mock_repo.get_promise = AsyncMock(return_value=promise)
            mock_repo.save = AsyncMock(return_value=promise)
            await update_promise(
                mock_db, teacher_user, "promise-1", PromiseUpdate(target_quantity=30)
            )

        assert promise.target_quantity == 30
        assert promise.reduction_amount == 70

    @pytest.mark.asyncio
    async def test_update_rejects_target_above_baseline(self, mock_db, teacher_user):
        """An update leaving the target at or above the baseline is refused."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
        ):
            mock_repo.get_promise = AsyncMock(return_value=make_promise(100, 60))
            mock_repo.save = AsyncMock()
            with pytest.raises(ValidationFailedError):
                await update_promise(
                    mock_db, teacher_user, "promise-1", PromiseUpdate(baseline_quantity=50)
                )
            mock_repo.save.assert_not_called()
