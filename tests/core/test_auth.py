"""
Unit tests for authentication helpers and capability predicates.
"""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from plastic_clever.core.auth import (
    CurrentUser,
    can_access_admin_area,
    can_administer_platform,
    can_assign_roles,
    can_bypass_stage_lock,
    can_download_exports,
    can_manage_content,
    can_review_evidence,
    require_admin,
    require_admin_or_partner,
    require_capability,
    require_export_access,
    validate_access_token,
)
from plastic_clever.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestCapabilities:
    """Role-based capability predicates."""

    def test_admin_has_every_capability(self, admin_user):
        """Full admins hold every capability."""
        assert can_access_admin_area(admin_user)
        assert can_administer_platform(admin_user)
        assert can_bypass_stage_lock(admin_user)
        assert can_review_evidence(admin_user)
        assert can_manage_content(admin_user)
        assert can_download_exports(admin_user)
        assert can_assign_roles(admin_user)

    def test_partner_reviews_but_cannot_assign_roles(self, partner_user):
        """Partners review and curate but hold no full-admin capability."""
        assert can_access_admin_area(partner_user)
        assert can_bypass_stage_lock(partner_user)
        assert can_review_evidence(partner_user)
        assert can_manage_content(partner_user)
        assert not can_administer_platform(partner_user)
        assert not can_download_exports(partner_user)
        assert not can_assign_roles(partner_user)

    def test_teacher_has_no_capabilities(self, teacher_user):
        """Teachers hold no elevated capability."""
        assert not can_access_admin_area(teacher_user)
        assert not can_administer_platform(teacher_user)
        assert not can_bypass_stage_lock(teacher_user)
        assert not can_review_evidence(teacher_user)
        assert not can_manage_content(teacher_user)
        assert not can_download_exports(teacher_user)
        assert not can_assign_roles(teacher_user)

    def test_anonymous_has_no_capabilities(self):
        """An anonymous caller holds no capability."""
        assert not can_access_admin_area(None)
        assert not can_administer_platform(None)
        assert not can_bypass_stage_lock(None)
        assert not can_review_evidence(None)
        assert not can_download_exports(None)


class TestPasswords:
    def test_hash_and_verify(self):
        """bcrypt hashes verify only the original password."""
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_is_rejected(self):
        """A stored value that is not a bcrypt hash never verifies."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    """JWT creation and validation."""

    def test_access_token_round_trip_builds_current_user(self):
        """Access token claims become the CurrentUser."""
        token = create_access_token(
            "user-1",
            additional_claims={"email": "a@test.com", "role": "partner", "name": "A"},
        )
        user = validate_access_token(token)
        assert user == CurrentUser(id="user-1", email="a@test.com", role="partner", name="A")

    def test_refresh_token_rejected_as_access_token(self):
        """Refresh tokens are refused where an access token is required."""
        token = create_refresh_token("user-1")
        with pytest.raises(HTTPException) as exc_info:
            validate_access_token(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"

    def test_expired_token_is_invalid(self):
        """Expired tokens fail decoding and validation."""
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None
        with pytest.raises(HTTPException) as exc_info:
            validate_access_token(token)
        assert exc_info.value.detail["error"] == "INVALID_TOKEN"

    def test_garbage_token_is_invalid(self):
        """Malformed tokens decode to None."""
        assert decode_token("not.a.jwt") is None


class TestRoleDependencies:
    """Role dependencies built from the capability predicates."""

    @pytest.mark.asyncio
    async def test_require_admin_rejects_partner(self, partner_user):
        """Partners cannot reach full-admin routes."""
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(partner_user)
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["error"] == "ADMIN_ACCESS_REQUIRED"

    @pytest.mark.asyncio
    async def test_require_admin_accepts_admin(self, admin_user):
        """Full admins pass the admin dependency unchanged."""
        assert await require_admin(admin_user) is admin_user

    @pytest.mark.asyncio
    async def test_require_admin_or_partner_accepts_partner(self, partner_user):
        """Partners pass the admin-or-partner dependency."""
        assert await require_admin_or_partner(partner_user) is partner_user

    @pytest.mark.asyncio
    async def test_require_admin_or_partner_rejects_teacher(self, teacher_user):
        """Teachers are turned away from the admin console."""
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_or_partner(teacher_user)
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["error"] == "ADMIN_OR_PARTNER_REQUIRED"

    @pytest.mark.asyncio
    async def test_export_access_is_admin_only(self, admin_user, partner_user):
        """Only full admins may download exports."""
        assert await require_export_access(admin_user) is admin_user
        with pytest.raises(HTTPException) as exc_info:
            await require_export_access(partner_user)
        assert exc_info.value.detail["error"] == "EXPORT_ACCESS_REQUIRED"

    @pytest.mark.asyncio
    async def test_dependency_follows_its_predicate(self, teacher_user):
        """A custom capability decides admission on its own."""
        calls = []

        def teachers_only(user):
            calls.append(user)
            return user is not None and user.role == "teacher"

        dependency = require_capability(teachers_only, "TEACHERS_ONLY", "Teachers only")

        assert await dependency(teacher_user) is teacher_user
        assert calls == [teacher_user]
