"""
Unit tests for email helpers and bulk email translation.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from plastic_clever.core import translation
from plastic_clever.core.email import (
    render_bulk_email,
    send_evidence_submission_email,
    send_safely,
)
from plastic_clever.core.translation import EmailContent, translate_email_content


@pytest.fixture
def content():
    return EmailContent(
        subject="Hello",
        title="Spring update",
        message_content="<p>Well done everyone</p>",
        preheader="News",
    )


def _client_returning(payload: str):
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=payload))]
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


class TestSendSafely:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        """The helper result is passed through."""
        assert await send_safely(AsyncMock(return_value=True)(), "test") is True

    @pytest.mark.asyncio
    async def test_exception_becomes_false(self):
        """A raising email helper counts as a failed send."""
        failing = AsyncMock(side_effect=RuntimeError("smtp down"))
        assert await send_safely(failing(), "test") is False


class TestEmailRendering:
    @pytest.mark.asyncio
    async def test_user_values_are_escaped(self):
        """School and evidence names are HTML-escaped."""
        with patch("plastic_clever.core.email.send_email", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = True
            await send_evidence_submission_email(
                "t@test.com", "<b>Tom</b>", "Bins <script>", "inspire"
            )

        html = mock_send.call_args.kwargs["html_content"]
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_bulk_email_keeps_admin_html(self):
        """Admin-authored HTML is kept while the title is escaped."""
        html = render_bulk_email("News & views", "<p>Hi</p>")
        assert "<p>Hi</p>" in html
        assert "News &amp; views" in html


class TestTranslateEmailContent:
    @pytest.mark.asyncio
    async def test_english_is_returned_unchanged(self, content):
        """English needs no API call."""
        with patch.object(translation, "get_openai_client") as mock_client:
            assert await translate_email_content(content, "en") is content
            mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_original(self, content):
        """Without an API key the content is sent untranslated."""
        with patch.object(translation, "get_openai_client", return_value=None):
            assert await translate_email_content(content, "fr") is content

    @pytest.mark.asyncio
    async def test_translated_fields_are_used(self, content):
        """Translated keys replace the originals."""
        payload = json.dumps({"subject": "Bonjour", "title": "Printemps"})
        with patch.object(
            translation, "get_openai_client", return_value=_client_returning(payload)
        ):
            result = await translate_email_content(content, "fr")

        assert result.subject == "Bonjour"
        assert result.title == "Printemps"
        # Missing keys keep the original text
        assert result.message_content == content.message_content
        assert result.preheader == content.preheader

    @pytest.mark.asyncio
    async def test_api_failure_returns_original(self, content):
        """An API error leaves the content untranslated."""
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=RuntimeError("quota"))
        with patch.object(translation, "get_openai_client", return_value=client):
            assert await translate_email_content(content, "de") is content

    @pytest.mark.asyncio
    async def test_invalid_json_returns_original(self, content):
        """Unparseable output leaves the content untranslated."""
        with patch.object(
            translation, "get_openai_client", return_value=_client_returning("not json")
        ):
            assert await translate_email_content(content, "es") is content

    @pytest.mark.asyncio
    async def test_non_object_json_returns_original(self, content):
        """A JSON array instead of an object leaves the content untranslated."""
        with patch.object(
            translation, "get_openai_client", return_value=_client_returning('["Hola"]')
        ):
            assert await translate_email_content(content, "es") is content

    @pytest.mark.asyncio
    async def test_non_string_field_returns_original(self, content):
        """A field that fails EmailContent validation leaves the content untranslated."""
        payload = json.dumps({"subject": {"x": 1}, "title": "Hola"})
        with patch.object(
            translation, "get_openai_client", return_value=_client_returning(payload)
        ):
            assert await translate_email_content(content, "es") is content
