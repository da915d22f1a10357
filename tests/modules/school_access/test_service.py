"""
Unit tests for the school access service.

These tests cover:
- Access requests: duplicate and member checks, head teacher emails
- Reviewing requests: who may review, membership on approval
- Teacher invitations: conflicts, token and expiry
- Looking up and accepting invitations
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from plastic_clever.modules.school_access.models import InvitationStatus, VerificationStatus
from plastic_clever.modules.school_access.service import (
    INVITATION_EXPIRY_DAYS,
    AlreadyMemberError,
    InvitationEmailMismatchError,
    InvitationGoneError,
    RequestAlreadyPendingError,
    RequestAlreadyReviewedError,
    accept_invitation,
    get_invitation_details,
    invite_teacher,
    request_access,
    review_request,
)
from plastic_clever.modules.schools.models import SchoolRole
from plastic_clever.modules.schools.service import HeadTeacherRequiredError
from plastic_clever.modules.shared import ConflictError, NotFoundError

SERVICE = "plastic_clever.modules.school_access.service"


@pytest.fixture
def school():
    return SimpleNamespace(id="school-1", name="Hill Primary", country="Wales")


def make_request(status=VerificationStatus.PENDING):
    return SimpleNamespace(
        id="req-1",
        school_id="school-1",
        user_id="teacher-2",
        evidence="I teach year 5 here",
        status=status,
        reviewed_by=None,
        reviewed_at=None,
        review_notes=None,
        user=SimpleNamespace(email="new@test.com", first_name="Nia", last_name="New"),
        school=SimpleNamespace(name="Hill Primary"),
    )


def make_invitation(
    status=InvitationStatus.PENDING,
    expires_at=None,
    email="teacher@test.com",
):
    return SimpleNamespace(
        id="inv-1",
        school_id="school-1",
        email=email,
        token="tok-1",
        status=status,
        expires_at=expires_at or datetime.now(UTC) + timedelta(days=3),
        accepted_at=None,
        school=SimpleNamespace(name="Hill Primary", country="Wales"),
        inviter=SimpleNamespace(first_name="Hana", last_name="Head"),
    )


def membership(role=SchoolRole.TEACHER, is_verified=True, email=None):
    return SimpleNamespace(
        role=role,
        is_verified=is_verified,
        user=SimpleNamespace(email=email) if email else None,
    )


def _returns_first_arg(db, item):
    return item


class TestRequestAccess:
    """Tests for request_access."""

    @pytest.mark.asyncio
    async def test_verified_member_cannot_request(self, mock_db, teacher_user, school):
        """A verified member is told they already belong to the school."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_schools.get_membership = AsyncMock(return_value=membership())
            mock_repo.create_request = AsyncMock()

            with pytest.raises(AlreadyMemberError) as exc_info:
                await request_access(mock_db, teacher_user, "school-1", "I teach here")

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "ALREADY_MEMBER"
        mock_repo.create_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_request_blocks_another(self, mock_db, teacher_user, school):
        """Only one pending request per school and user."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_schools.get_membership = AsyncMock(return_value=None)
            mock_repo.get_pending_request = AsyncMock(return_value=make_request())
            mock_repo.create_request = AsyncMock()

            with pytest.raises(RequestAlreadyPendingError) as exc_info:
                await request_access(mock_db, teacher_user, "school-1", "I teach here")

        assert exc_info.value.error_code == "REQUEST_PENDING"
        mock_repo.create_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_unverified_member_may_request(self, mock_db, teacher_user, school):
        """An unverified membership does not block a request."""
        created = make_request()
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_schools.get_membership = AsyncMock(return_value=membership(is_verified=False))
            mock_schools.get_members = AsyncMock(return_value=[])
            mock_repo.get_pending_request = AsyncMock(return_value=None)
            mock_repo.create_request = AsyncMock(return_value=created)

            assert await request_access(mock_db, teacher_user, "school-1", "hi") is created

        fields = mock_repo.create_request.call_args.kwargs
        assert fields["status"] == VerificationStatus.PENDING
        assert fields["user_id"] == teacher_user.id

    @pytest.mark.asyncio
    async def test_only_verified_head_teachers_are_emailed(self, mock_db, teacher_user, school):
        """Unverified head teachers and plain teachers get no email."""
        members = [
            membership(SchoolRole.HEAD_TEACHER, email="head@test.com"),
            membership(SchoolRole.HEAD_TEACHER, is_verified=False, email="pending@test.com"),
            membership(SchoolRole.TEACHER, email="colleague@test.com"),
        ]
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.send_access_request_email", new_callable=AsyncMock
            ) as mock_email,
        ):
            mock_schools.get_membership = AsyncMock(return_value=None)
            mock_schools.get_members = AsyncMock(return_value=members)
            mock_repo.get_pending_request = AsyncMock(return_value=None)
            mock_repo.create_request = AsyncMock(return_value=make_request())

            await request_access(mock_db, teacher_user, "school-1", "I teach year 5")

        mock_email.assert_awaited_once_with(
            "head@test.com", "Hill Primary", "Tom Teacher", "teacher@test.com", "I teach year 5"
        )

    @pytest.mark.asyncio
    async def test_email_failure_does_not_fail_request(self, mock_db, teacher_user, school):
        """A failed head teacher email still returns the created request."""
        created = make_request()
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.send_access_request_email",
                new_callable=AsyncMock,
                side_effect=RuntimeError("smtp down"),
            ),
        ):
            mock_schools.get_membership = AsyncMock(return_value=None)
            mock_schools.get_members = AsyncMock(
                return_value=[membership(SchoolRole.HEAD_TEACHER, email="head@test.com")]
            )
            mock_repo.get_pending_request = AsyncMock(return_value=None)
            mock_repo.create_request = AsyncMock(return_value=created)

            assert await request_access(mock_db, teacher_user, "school-1", "hi") is created


class TestReviewRequest:
    """Tests for review_request."""

    @pytest.mark.asyncio
    async def test_missing_request(self, mock_db, admin_user):
        """Reviewing an unknown request is a 404."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_request = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError) as exc_info:
                await review_request(mock_db, admin_user, "missing", approve=True)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_plain_teacher_cannot_review(self, mock_db, teacher_user):
        """A verified teacher who is not head teacher is refused."""
        request = make_request()
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
        ):
            mock_repo.get_request = AsyncMock(return_value=request)
            mock_repo.save = AsyncMock()
            mock_schools.get_membership = AsyncMock(return_value=membership())

            with pytest.raises(HeadTeacherRequiredError):
                await review_request(mock_db, teacher_user, "req-1", approve=True)

        assert request.status == VerificationStatus.PENDING
        mock_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_partner_cannot_review_without_membership(self, mock_db, partner_user):
        """Partners are not admins and need head teacher membership too."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
        ):
            mock_repo.get_request = AsyncMock(return_value=make_request())
            mock_schools.get_membership = AsyncMock(return_value=None)

            with pytest.raises(HeadTeacherRequiredError):
                await review_request(mock_db, partner_user, "req-1", approve=False)

    @pytest.mark.asyncio
    async def test_head_teacher_approval_adds_verified_teacher(self, mock_db, teacher_user):
        """Approval records the review and adds the requester as a verified teacher."""
        request = make_request()
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(
                f"{SERVICE}.send_access_decision_email", new_callable=AsyncMock
            ) as mock_email,
        ):
            mock_repo.get_request = AsyncMock(return_value=request)
            mock_repo.save = AsyncMock(side_effect=_returns_first_arg)
            mock_schools.get_membership = AsyncMock(
                side_effect=[membership(SchoolRole.HEAD_TEACHER), None]
            )
            mock_schools.add_member = AsyncMock()

            result = await review_request(
                mock_db, teacher_user, "req-1", approve=True, review_notes="Welcome"
            )

        assert result.status == VerificationStatus.APPROVED
        assert result.reviewed_by == teacher_user.id
        assert result.reviewed_at.tzinfo is not None
        assert result.review_notes == "Welcome"
        mock_schools.add_member.assert_awaited_once_with(
            mock_db,
            school_id="school-1",
            user_id="teacher-2",
            role=SchoolRole.TEACHER,
            is_verified=True,
        )
        mock_email.assert_awaited_once_with("new@test.com", "Hill Primary", True, "Welcome")

    @pytest.mark.asyncio
    async def test_admin_approval_verifies_existing_membership(self, mock_db, admin_user):
        """An unverified membership is verified rather than duplicated."""
        existing = membership(is_verified=False)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.send_access_decision_email", new_callable=AsyncMock),
        ):
            mock_repo.get_request = AsyncMock(return_value=make_request())
            mock_repo.save = AsyncMock(side_effect=_returns_first_arg)
            mock_schools.get_membership = AsyncMock(return_value=existing)
            mock_schools.add_member = AsyncMock()

            await review_request(mock_db, admin_user, "req-1", approve=True)

        assert existing.is_verified is True
        mock_schools.add_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejection_adds_no_member(self, mock_db, admin_user):
        """A rejected requester does not join the school."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(
                f"{SERVICE}.send_access_decision_email", new_callable=AsyncMock
            ) as mock_email,
        ):
            mock_repo.get_request = AsyncMock(return_value=make_request())
            mock_repo.save = AsyncMock(side_effect=_returns_first_arg)
            mock_schools.get_membership = AsyncMock()
            mock_schools.add_member = AsyncMock()

            result = await review_request(
                mock_db, admin_user, "req-1", approve=False, review_notes="Unknown to us"
            )

        assert result.status == VerificationStatus.REJECTED
        mock_schools.get_membership.assert_not_called()
        mock_schools.add_member.assert_not_called()
        mock_email.assert_awaited_once_with(
            "new@test.com", "Hill Primary", False, "Unknown to us"
        )

    @pytest.mark.asyncio
    async def test_reviewed_request_cannot_be_reviewed_again(self, mock_db, admin_user):
        """A decided request is a 409 conflict."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_request = AsyncMock(
                return_value=make_request(status=VerificationStatus.REJECTED)
            )
            mock_repo.save = AsyncMock()

            with pytest.raises(RequestAlreadyReviewedError) as exc_info:
                await review_request(mock_db, admin_user, "req-1", approve=True)

        assert exc_info.value.status_code == 409
        assert "rejected" in exc_info.value.message
        mock_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_decision_email_failure_is_swallowed(self, mock_db, admin_user):
        """The review stands even when the decision email fails."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(
                f"{SERVICE}.send_access_decision_email",
                new_callable=AsyncMock,
                side_effect=RuntimeError("smtp down"),
            ),
        ):
            mock_repo.get_request = AsyncMock(return_value=make_request())
            mock_repo.save = AsyncMock(side_effect=_returns_first_arg)
            mock_schools.get_membership = AsyncMock(return_value=None)
            mock_schools.add_member = AsyncMock()

            result = await review_request(mock_db, admin_user, "req-1", approve=True)

        assert result.status == VerificationStatus.APPROVED


class TestInviteTeacher:
    """Tests for invite_teacher."""

    @pytest.mark.asyncio
    async def test_existing_member_cannot_be_invited(self, mock_db, teacher_user, school):
        """Inviting someone already in the school is refused."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_email = AsyncMock(return_value=SimpleNamespace(id="teacher-2"))
            mock_schools.get_membership = AsyncMock(return_value=membership())
            mock_repo.create_invitation = AsyncMock()

            with pytest.raises(ConflictError) as exc_info:
                await invite_teacher(mock_db, teacher_user, "school-1", "member@test.com")

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "ALREADY_MEMBER"
        mock_repo.create_invitation.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_invitation_conflicts(self, mock_db, teacher_user, school):
        """A second invitation to the same address is a 409."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_email = AsyncMock(return_value=None)
            mock_repo.get_pending_invitation = AsyncMock(return_value=make_invitation())

            with pytest.raises(ConflictError) as exc_info:
                await invite_teacher(mock_db, teacher_user, "school-1", "new@test.com")

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "INVITATION_PENDING"

    @pytest.mark.asyncio
    async def test_head_teacher_check_runs_first(self, mock_db, teacher_user, school):
        """Callers who are not head teacher never reach the invitation lookup."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(
                f"{SERVICE}.ensure_school_member",
                new_callable=AsyncMock,
                side_effect=HeadTeacherRequiredError(),
            ) as mock_member,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_users.get_by_email = AsyncMock()
            with pytest.raises(HeadTeacherRequiredError):
                await invite_teacher(mock_db, teacher_user, "school-1", "new@test.com")

        mock_member.assert_awaited_once_with(
            mock_db, teacher_user, "school-1", head_teacher_only=True
        )
        mock_users.get_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_invitation_token_and_expiry(self, mock_db, teacher_user, school):
        """Invitations carry a random hex token and expire after a week."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.send_teacher_invitation_email", new_callable=AsyncMock
            ) as mock_email,
        ):
            mock_users.get_by_email = AsyncMock(return_value=None)
            mock_repo.get_pending_invitation = AsyncMock(return_value=None)
            mock_repo.create_invitation = AsyncMock(
                side_effect=lambda db, **fields: SimpleNamespace(id="inv-9", **fields)
            )

            before = datetime.now(UTC)
            invitation = await invite_teacher(mock_db, teacher_user, "school-1", "new@test.com")

        assert invitation.status == InvitationStatus.PENDING
        assert invitation.invited_by == teacher_user.id
        assert len(invitation.token) == 64
        int(invitation.token, 16)
        expected = before + timedelta(days=INVITATION_EXPIRY_DAYS)
        assert abs(invitation.expires_at - expected) < timedelta(seconds=5)
        mock_email.assert_awaited_once_with(
            "new@test.com", "Hill Primary", "Wales", "Tom Teacher", invitation.token
        )

    @pytest.mark.asyncio
    async def test_tokens_differ_between_invitations(self, mock_db, teacher_user, school):
        """Each invitation gets its own token."""
        with (
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
            patch(f"{SERVICE}.ensure_school_member", new_callable=AsyncMock),
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.send_teacher_invitation_email", new_callable=AsyncMock),
        ):
            mock_users.get_by_email = AsyncMock(return_value=None)
            mock_repo.get_pending_invitation = AsyncMock(return_value=None)
            mock_repo.create_invitation = AsyncMock(
                side_effect=lambda db, **fields: SimpleNamespace(id="inv-9", **fields)
            )

            first = await invite_teacher(mock_db, teacher_user, "school-1", "a@test.com")
            second = await invite_teacher(mock_db, teacher_user, "school-1", "b@test.com")

        assert first.token != second.token


class TestInvitationLookup:
    """Tests for get_invitation_details."""

    @pytest.mark.asyncio
    async def test_unknown_token(self, mock_db):
        """An unknown token is a 404."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_invitation_by_token = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError) as exc_info:
                await get_invitation_details(mock_db, "nope")

        assert exc_info.value.error_code == "INVITATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_accepted_invitation_is_gone(self, mock_db):
        """An accepted invitation answers 410."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_invitation_by_token = AsyncMock(
                return_value=make_invitation(status=InvitationStatus.ACCEPTED)
            )
            with pytest.raises(InvitationGoneError) as exc_info:
                await get_invitation_details(mock_db, "tok-1")

        assert exc_info.value.status_code == 410
        assert exc_info.value.error_code == "INVITATION_ALREADY_ACCEPTED"

    @pytest.mark.asyncio
    async def test_past_expiry_marks_invitation_expired(self, mock_db):
        """A pending invitation past its expiry is saved as expired."""
        invitation = make_invitation(expires_at=datetime.now(UTC) - timedelta(minutes=1))
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_invitation_by_token = AsyncMock(return_value=invitation)
            mock_repo.save = AsyncMock()

            with pytest.raises(InvitationGoneError) as exc_info:
                await get_invitation_details(mock_db, "tok-1")

        assert exc_info.value.error_code == "INVITATION_EXPIRED"
        assert invitation.status == InvitationStatus.EXPIRED
        mock_repo.save.assert_awaited_once_with(mock_db, invitation)

    @pytest.mark.asyncio
    async def test_naive_expiry_is_read_as_utc(self, mock_db):
        """Expiry timestamps without a zone compare as UTC."""
        future = (datetime.now(UTC) + timedelta(days=1)).replace(tzinfo=None)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_invitation_by_token = AsyncMock(
                return_value=make_invitation(expires_at=future)
            )
            details = await get_invitation_details(mock_db, "tok-1")

        assert details.status == InvitationStatus.PENDING

    @pytest.mark.asyncio
    async def test_details_name_school_and_inviter(self, mock_db):
        """The public view shows the school and who sent the invitation."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_invitation_by_token = AsyncMock(return_value=make_invitation())
            details = await get_invitation_details(mock_db, "tok-1")

        assert details.school_name == "Hill Primary"
        assert details.school_country == "Wales"
        assert details.inviter_name == "Hana Head"
        assert details.email == "teacher@test.com"


class TestAcceptInvitation:
    """Tests for accept_invitation."""

    @pytest.mark.asyncio
    async def test_other_address_cannot_accept(self, mock_db, partner_user):
        """Only the invited address may accept."""
        invitation = make_invitation()
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
        ):
            mock_repo.get_invitation_by_token = AsyncMock(return_value=invitation)
            mock_schools.add_member = AsyncMock()

            with pytest.raises(InvitationEmailMismatchError) as exc_info:
                await accept_invitation(mock_db, partner_user, "tok-1")

        assert exc_info.value.status_code == 403
        assert invitation.status == InvitationStatus.PENDING
        mock_schools.add_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_accept_joins_school(self, mock_db, teacher_user, school):
        """Accepting adds a verified teacher membership and closes the invitation."""
        invitation = make_invitation(email=" Teacher@Test.com ")
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
        ):
            mock_repo.get_invitation_by_token = AsyncMock(return_value=invitation)
            mock_repo.save = AsyncMock()
            mock_schools.get_membership = AsyncMock(return_value=None)
            mock_schools.add_member = AsyncMock()

            result = await accept_invitation(mock_db, teacher_user, "tok-1")

        assert result is school
        assert invitation.status == InvitationStatus.ACCEPTED
        assert invitation.accepted_at.tzinfo is not None
        mock_schools.add_member.assert_awaited_once_with(
            mock_db,
            school_id="school-1",
            user_id=teacher_user.id,
            role=SchoolRole.TEACHER,
            is_verified=True,
        )

    @pytest.mark.asyncio
    async def test_accept_verifies_existing_membership(self, mock_db, teacher_user, school):
        """An unverified member who accepts becomes verified."""
        existing = membership(is_verified=False)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.get_school_or_404", new_callable=AsyncMock, return_value=school),
        ):
            mock_repo.get_invitation_by_token = AsyncMock(return_value=make_invitation())
            mock_repo.save = AsyncMock()
            mock_schools.get_membership = AsyncMock(return_value=existing)
            mock_schools.add_member = AsyncMock()

            await accept_invitation(mock_db, teacher_user, "tok-1")

        assert existing.is_verified is True
        mock_schools.add_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_invitation_cannot_be_accepted(self, mock_db, teacher_user):
        """Accepting an expired invitation answers 410."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
        ):
            mock_repo.get_invitation_by_token = AsyncMock(
                return_value=make_invitation(status=InvitationStatus.EXPIRED)
            )
            mock_repo.save = AsyncMock()
            mock_schools.add_member = AsyncMock()

            with pytest.raises(InvitationGoneError):
                await accept_invitation(mock_db, teacher_user, "tok-1")

        mock_repo.save.assert_not_called()
        mock_schools.add_member.assert_not_called()
