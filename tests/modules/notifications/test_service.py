"""
Unit tests for bulk email and the weekly admin digest.

These tests cover:
- Language grouping and de-duplication
- One translation per language per campaign
- Failure counting and empty selections
- Digest contents and delivery
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from plastic_clever.core.translation import EmailContent
from plastic_clever.modules.notifications.jobs import (
    build_weekly_digest,
    send_weekly_admin_digest,
)
from plastic_clever.modules.notifications.schemas import (
    BulkEmailRequest,
    EmailTestRequest,
    SchoolFilters,
)
from plastic_clever.modules.notifications.service import (
    NoRecipientsError,
    group_by_language,
    preview_email,
    resolve_recipients,
    send_bulk,
    send_test_email,
)

SERVICE = "plastic_clever.modules.notifications.service"
JOBS = "plastic_clever.modules.notifications.jobs"


def user(email, language=None, is_active=True):
    return SimpleNamespace(email=email, preferred_language=language, is_active=is_active)


async def fake_translate(content: EmailContent, language: str) -> EmailContent:
    return content.model_copy(update={"subject": f"{content.subject} ({language})"})


def bulk_request(**overrides):
    fields = {
        "subject": "Plastic Free July",
        "title": "Join in",
        "message_content": "<p>Sign up today</p>",
        "recipient_type": "all_teachers",
    }
    fields.update(overrides)
    return BulkEmailRequest(**fields)


class TestGroupByLanguage:
    def test_groups_and_defaults_to_english(self):
        """Recipients group by language and a missing language means English."""
        groups = group_by_language(
            [("a@test.com", "fr"), ("b@test.com", None), ("c@test.com", "fr")]
        )
        assert groups == {"fr": ["a@test.com", "c@test.com"], "en": ["b@test.com"]}

    def test_first_occurrence_wins(self):
        """Duplicate addresses keep their first language and blanks are dropped."""
        groups = group_by_language([("Same@test.com", "de"), ("same@test.com", "es"), ("", "es")])
        assert groups == {"de": ["Same@test.com"]}

    def test_empty(self):
        """No recipients means no groups."""
        assert group_by_language([]) == {}


class TestBulkEmailRequest:
    def test_custom_requires_addresses(self):
        """A custom campaign needs at least one address."""
        with pytest.raises(ValueError):
            bulk_request(recipient_type="custom")


class TestPreviewAndTest:
    def test_preview_renders_layout(self):
        """The preview escapes the title but keeps the HTML body."""
        preview = preview_email(bulk_request(title="Join <in>"))
        assert "Join &lt;in&gt;" in preview.html
        assert "<p>Sign up today</p>" in preview.html

    @pytest.mark.asyncio
    async def test_test_email_is_prefixed_and_translated(self):
        """Test sends are translated and marked in the subject."""
        data = EmailTestRequest(
            subject="Hello",
            title="Title",
            message_content="Body",
            test_email="admin@test.com",
            language="fr",
        )
        with (
            patch(f"{SERVICE}.translate_email_content", side_effect=fake_translate),
            patch(f"{SERVICE}.send_bulk_email", new_callable=AsyncMock, return_value=True) as send,
        ):
            result = await send_test_email(data)

        assert result.success is True
        assert send.call_args.kwargs["subject"] == "[TEST] Hello (fr)"

    @pytest.mark.asyncio
    async def test_test_email_failure_reported(self):
        """A failed test send reports failure instead of raising."""
        data = EmailTestRequest(
            subject="Hello", title="Title", message_content="Body", test_email="admin@test.com"
        )
        with (
            patch(f"{SERVICE}.translate_email_content", side_effect=fake_translate),
            patch(
                f"{SERVICE}.send_bulk_email",
                new_callable=AsyncMock,
                side_effect=RuntimeError("resend down"),
            ),
        ):
            result = await send_test_email(data)

        assert result.success is False


class TestResolveRecipients:
    @pytest.mark.asyncio
    async def test_custom_uses_known_languages(self, mock_db):
        """Custom addresses pick up the language of matching users."""
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_many_by_emails = AsyncMock(return_value=[user("known@test.com", "cy")])
            recipients = await resolve_recipients(
                mock_db,
                bulk_request(
                    recipient_type="custom",
                    custom_emails=["known@test.com", "stranger@test.com"],
                ),
            )

        assert recipients == [("known@test.com", "cy"), ("stranger@test.com", None)]

    @pytest.mark.asyncio
    async def test_schools_filtered_by_stage_skip_inactive(self, mock_db):
        """School campaigns reach active members of matching schools."""
        with (
            patch(f"{SERVICE}.SchoolRepository") as mock_schools,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_schools.list_schools = AsyncMock(
                return_value=([SimpleNamespace(id="school-1")], 1)
            )
            mock_schools.get_member_user_ids = AsyncMock(return_value=["u-1", "u-2"])
            mock_users.get_many = AsyncMock(
                return_value=[user("one@test.com", "fr"), user("two@test.com", is_active=False)]
            )

            recipients = await resolve_recipients(
                mock_db,
                bulk_request(recipient_type="schools", filters=SchoolFilters(stage="act")),
            )

        assert recipients == [("one@test.com", "fr")]
        assert mock_schools.list_schools.call_args.kwargs["stage"] == "act"
        mock_schools.get_member_user_ids.assert_awaited_once_with(mock_db, ["school-1"])


class TestSendBulk:
    """Tests for send_bulk."""

    @pytest.mark.asyncio
    async def test_translates_once_per_language(self, mock_db, admin_user):
        """Each language is translated once and failed sends are counted."""
        teachers = [
            user("a@test.com", "fr"),
            user("b@test.com", "fr"),
            user("c@test.com"),
            user("A@test.com", "de"),
        ]
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.translate_email_content", side_effect=fake_translate) as translate,
            patch(
                f"{SERVICE}.send_bulk_email",
                new_callable=AsyncMock,
                side_effect=[True, RuntimeError("bounce"), True],
            ) as send,
            patch(f"{SERVICE}.log_user_activity", new_callable=AsyncMock) as mock_log,
        ):
            mock_users.get_all_teachers = AsyncMock(return_value=teachers)

            result = await send_bulk(mock_db, admin_user, bulk_request())

        assert translate.call_count == 2
        assert sorted(call.args[1] for call in translate.call_args_list) == ["en", "fr"]
        assert send.call_count == 3
        assert result.total_recipients == 3
        assert result.sent == 2
        assert result.failed == 1
        assert result.languages == {"fr": 2, "en": 1}
        assert mock_log.call_args.kwargs["details"]["failed"] == 1

    @pytest.mark.asyncio
    async def test_no_recipients(self, mock_db, admin_user):
        """An empty selection is a 400 and nothing is sent."""
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.send_bulk_email", new_callable=AsyncMock) as send,
        ):
            mock_users.get_all_teachers = AsyncMock(return_value=[])
            with pytest.raises(NoRecipientsError) as exc_info:
                await send_bulk(mock_db, admin_user, bulk_request())

        assert exc_info.value.status_code == 400
        send.assert_not_called()


class TestWeeklyDigest:
    @pytest.mark.asyncio
    async def test_build_digest(self, mock_db):
        """The digest covers the last seven days."""
        now = datetime(2026, 6, 8, 9, 0, tzinfo=UTC)
        evidence = [
            SimpleNamespace(
                school=SimpleNamespace(name="Hill Primary"),
                title="Litter pick",
                stage=SimpleNamespace(value="inspire"),
                status=SimpleNamespace(value="pending"),
            ),
            SimpleNamespace(
                school=None,
                title="Assembly",
                stage=SimpleNamespace(value="inspire"),
                status=SimpleNamespace(value="approved"),
            ),
        ]
        stats = {"total_schools": 12, "completed_awards": 3}
        with (
            patch(f"{JOBS}.evidence_repository") as mock_evidence,
            patch(f"{JOBS}.UserRepository") as mock_users,
            patch(f"{JOBS}.SchoolRepository") as mock_schools,
        ):
            mock_evidence.get_submitted_since = AsyncMock(return_value=evidence)
            mock_evidence.count_submitted_since = AsyncMock(return_value=25)
            mock_users.get_created_since = AsyncMock(return_value=[object(), object()])
            mock_schools.get_platform_stats = AsyncMock(return_value=stats)

            digest = await build_weekly_digest(mock_db, now=now)

        since = now - timedelta(days=7)
        mock_evidence.get_submitted_since.assert_awaited_once_with(mock_db, since, 20)
        assert digest["evidence_count"] == 25
        assert digest["new_user_count"] == 2
        assert digest["evidence"][1]["school_name"] == "Unknown school"
        assert digest["stats"] == stats

    @pytest.mark.asyncio
    async def test_send_digest_to_admins(self, mock_db):
        """Every admin is emailed and failures are not counted as sent."""
        session_maker = MagicMock()
        session_maker.return_value.__aenter__ = AsyncMock(return_value=mock_db)
        session_maker.return_value.__aexit__ = AsyncMock(return_value=False)
        digest = {"evidence_count": 4}
        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.build_weekly_digest", new_callable=AsyncMock, return_value=digest),
            patch(f"{JOBS}.UserRepository") as mock_users,
            patch(
                f"{JOBS}.send_weekly_digest_email",
                new_callable=AsyncMock,
                side_effect=[True, RuntimeError("resend down")],
            ),
        ):
            mock_users.get_admins = AsyncMock(
                return_value=[user("one@test.com"), user("two@test.com")]
            )
            result = await send_weekly_admin_digest()

        assert result == {"admins": 2, "sent": 1, "evidence_count": 4}
