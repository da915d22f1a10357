"""
Unit tests for the inspiration feed: projection, ranking and paging.
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from plastic_clever.modules.case_studies.models import CaseStudyStatus
from plastic_clever.modules.inspiration.schemas import InspirationItem
from plastic_clever.modules.inspiration.service import (
    evidence_to_feed_item,
    get_inspiration_content,
    rank_feed,
    score_item,
)

SERVICE = "plastic_clever.modules.inspiration.service"
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
SCHOOL = SimpleNamespace(name="Hill Primary", country="Wales")


def feed_item(item_id, content_type, featured=False, created_at=NOW):
    return InspirationItem(
        id=item_id,
        content_type=content_type,
        school_id="school-1",
        title=item_id,
        stage="inspire",
        featured=featured,
        created_at=created_at,
    )


def case_study_row(item_id, featured=False, created_at=NOW):
    return SimpleNamespace(
        id=item_id,
        school_id="school-1",
        school=SCHOOL,
        title=item_id,
        description=None,
        stage="act",
        impact=None,
        image_url=None,
        featured=featured,
        priority=0,
        images=[],
        videos=[],
        student_quotes=[],
        impact_metrics=[],
        categories=[],
        tags=[],
        created_at=created_at,
    )


def evidence_row(item_id, featured=False, submitted_at=NOW, files=None, video_links=None):
    return SimpleNamespace(
        id=item_id,
        school_id="school-1",
        school=SCHOOL,
        title=item_id,
        description="Litter pick",
        stage="inspire",
        is_featured=featured,
        files=files or [],
        video_links=video_links,
        submitted_at=submitted_at,
        created_at=submitted_at,
    )


class TestScoring:
    def test_scores(self):
        """Case studies outscore evidence and featured items gain a bonus."""
        assert score_item(feed_item("a", "case-study")) == 20
        assert score_item(feed_item("b", "case-study", featured=True)) == 30
        assert score_item(feed_item("c", "evidence")) == 10
        assert score_item(feed_item("d", "evidence", featured=True)) == 20

    def test_featured_case_study_ranks_first(self):
        """A featured case study leads and plain evidence trails."""
        ranked = rank_feed(
            [
                feed_item("evidence", "evidence", featured=True),
                feed_item("case", "case-study"),
                feed_item("featured-case", "case-study", featured=True),
                feed_item("plain-evidence", "evidence"),
            ]
        )
        assert ranked[0].id == "featured-case"
        assert ranked[-1].id == "plain-evidence"

    def test_full_order_with_tie_on_recency(self):
        """The tied middle pair (case study and featured evidence) is ordered newest first."""
        featured_case = feed_item(
            "featured-case", "case-study", featured=True, created_at=NOW - timedelta(days=9)
        )
        featured_evidence = feed_item(
            "newer-featured-evidence", "evidence", featured=True, created_at=NOW - timedelta(days=1)
        )
        older_case = feed_item("older-case", "case-study", created_at=NOW - timedelta(days=3))
        plain_evidence = feed_item("plain-evidence", "evidence", created_at=NOW)

        ranked = rank_feed([plain_evidence, older_case, featured_case, featured_evidence])

        assert [item.id for item in ranked] == [
            "featured-case",
            "newer-featured-evidence",
            "older-case",
            "plain-evidence",
        ]

    def test_ties_go_to_newest(self):
        """Equal scores resolve to the most recent item."""
        older = feed_item("older", "case-study", created_at=NOW - timedelta(days=2))
        newer = feed_item("newer", "evidence", featured=True, created_at=NOW)
        assert [item.id for item in rank_feed([older, newer])] == ["newer", "older"]

    def test_missing_timestamp_sorts_oldest(self):
        """Items without a timestamp sort after dated items of the same score."""
        undated = feed_item("undated", "case-study", created_at=None)
        dated = feed_item("dated", "case-study")
        assert [item.id for item in rank_feed([undated, dated])] == ["dated", "undated"]


class TestEvidenceProjection:
    def test_files_become_images_and_video_link_wrapped(self):
        """File dicts become captioned images and the video link is wrapped."""
        item = evidence_to_feed_item(
            evidence_row(
                "ev-1",
                files=[{"url": "https://cdn/1.jpg", "name": "1.jpg"}, "not-a-dict"],
                video_links="https://video/1",
            )
        )
        assert item.content_type == "evidence"
        assert item.images == [{"url": "https://cdn/1.jpg", "caption": "1.jpg"}]
        assert item.image_url == "https://cdn/1.jpg"
        assert item.videos == [{"url": "https://video/1"}]
        assert item.school_name == "Hill Primary"

    def test_no_files_means_no_images(self):
        """Evidence without files has no images and no lead image."""
        item = evidence_to_feed_item(evidence_row("ev-1", files=[]))
        assert item.images == []
        assert item.image_url is None

    def test_no_video_link_means_no_videos(self):
        """Evidence without a video link projects an empty video list."""
        item = evidence_to_feed_item(evidence_row("ev-1", video_links=None))
        assert item.videos == []
        assert item.student_quotes == []
        assert item.impact_metrics == []


class TestGetInspirationContent:
    """Tests for get_inspiration_content."""

    @pytest.mark.asyncio
    async def test_mixed_feed_over_fetches_and_slices(self, mock_db):
        """A mixed page fetches both sources from offset 0 and slices after ranking."""
        case_studies = [
            case_study_row(f"cs-{i}", created_at=NOW - timedelta(hours=i)) for i in range(3)
        ]
        evidence = [
            evidence_row(f"ev-{i}", submitted_at=NOW - timedelta(hours=i)) for i in range(3)
        ]
        with (
            patch(f"{SERVICE}.case_study_repository") as mock_cs_repo,
            patch(f"{SERVICE}.evidence_repository") as mock_ev_repo,
        ):
            mock_cs_repo.get_case_studies = AsyncMock(return_value=case_studies)
            mock_ev_repo.get_approved_for_inspiration = AsyncMock(return_value=evidence)

            page = await get_inspiration_content(mock_db, limit=2, offset=2)

        cs_kwargs = mock_cs_repo.get_case_studies.call_args.kwargs
        assert cs_kwargs["limit"] == 8
        assert cs_kwargs["offset"] == 0
        assert cs_kwargs["status"] == CaseStudyStatus.PUBLISHED
        assert mock_ev_repo.get_approved_for_inspiration.call_args.kwargs["offset"] == 0
        # All case studies outrank all evidence
        assert [item.id for item in page] == ["cs-2", "ev-0"]

    @pytest.mark.asyncio
    async def test_mixed_page_returns_exact_ranks(self, mock_db):
        """Ten mixed items paged with offset 3 and limit 3 yield ranks four to six."""
        case_studies = [
            case_study_row("cs-a", featured=True, created_at=NOW - timedelta(hours=1)),
            case_study_row("cs-b", created_at=NOW - timedelta(hours=2)),
            case_study_row("cs-c", created_at=NOW - timedelta(hours=5)),
            case_study_row("cs-d", created_at=NOW - timedelta(hours=8)),
            case_study_row("cs-e", featured=True, created_at=NOW - timedelta(hours=10)),
        ]
        evidence = [
            evidence_row("ev-b", submitted_at=NOW - timedelta(hours=1)),
            evidence_row("ev-a", featured=True, submitted_at=NOW - timedelta(hours=3)),
            evidence_row("ev-d", submitted_at=NOW - timedelta(hours=4)),
            evidence_row("ev-c", featured=True, submitted_at=NOW - timedelta(hours=6)),
            evidence_row("ev-e", submitted_at=NOW - timedelta(hours=9)),
        ]
        # Full ranking: cs-a, cs-e, cs-b, ev-a, cs-c, ev-c, cs-d, ev-b, ev-d, ev-e
        with (
            patch(f"{SERVICE}.case_study_repository") as mock_cs_repo,
            patch(f"{SERVICE}.evidence_repository") as mock_ev_repo,
        ):
            mock_cs_repo.get_case_studies = AsyncMock(return_value=case_studies)
            mock_ev_repo.get_approved_for_inspiration = AsyncMock(return_value=evidence)

            page = await get_inspiration_content(mock_db, limit=3, offset=3)

        assert mock_cs_repo.get_case_studies.call_args.kwargs["limit"] == 12
        assert [item.id for item in page] == ["ev-a", "cs-c", "ev-c"]

    @pytest.mark.asyncio
    async def test_single_type_is_paged_directly(self, mock_db):
        """A single-source page is fetched with the caller's limit and offset."""
        with (
            patch(f"{SERVICE}.case_study_repository") as mock_cs_repo,
            patch(f"{SERVICE}.evidence_repository") as mock_ev_repo,
        ):
            mock_cs_repo.get_case_studies = AsyncMock()
            mock_ev_repo.get_approved_for_inspiration = AsyncMock(
                return_value=[evidence_row("ev-9")]
            )

            page = await get_inspiration_content(
                mock_db, content_type="evidence", limit=5, offset=10
            )

        mock_cs_repo.get_case_studies.assert_not_called()
        kwargs = mock_ev_repo.get_approved_for_inspiration.call_args.kwargs
        assert (kwargs["limit"], kwargs["offset"]) == (5, 10)
        assert [item.id for item in page] == ["ev-9"]

    @pytest.mark.asyncio
    async def test_case_study_type_excludes_evidence(self, mock_db):
        """Asking for case studies never touches the evidence source."""
        with (
            patch(f"{SERVICE}.case_study_repository") as mock_cs_repo,
            patch(f"{SERVICE}.evidence_repository") as mock_ev_repo,
        ):
            mock_cs_repo.get_case_studies = AsyncMock(
                return_value=[case_study_row("cs-1"), case_study_row("cs-2", featured=True)]
            )
            mock_ev_repo.get_approved_for_inspiration = AsyncMock(
                return_value=[evidence_row("ev-1", featured=True)]
            )

            page = await get_inspiration_content(mock_db, content_type="case-study")

        mock_ev_repo.get_approved_for_inspiration.assert_not_called()
        assert [item.id for item in page] == ["cs-2", "cs-1"]
        assert {item.content_type for item in page} == {"case-study"}

    @pytest.mark.asyncio
    async def test_admin_sees_unpublished_case_studies(self, mock_db):
        """Admins are not restricted to published case studies."""
        with patch(f"{SERVICE}.case_study_repository") as mock_cs_repo:
            mock_cs_repo.get_case_studies = AsyncMock(return_value=[])
            await get_inspiration_content(mock_db, content_type="case-study", is_admin=True)

        assert mock_cs_repo.get_case_studies.call_args.kwargs["status"] is None

    @pytest.mark.asyncio
    async def test_repository_errors_propagate(self, mock_db):
        """Data-access failures are not swallowed."""
        with patch(f"{SERVICE}.case_study_repository") as mock_cs_repo:
            mock_cs_repo.get_case_studies = AsyncMock(side_effect=RuntimeError("db down"))
            with pytest.raises(RuntimeError):
                await get_inspiration_content(mock_db, content_type="case-study")
