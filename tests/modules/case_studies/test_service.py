"""
Unit tests for case studies: related ranking, visibility and creation from evidence.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from plastic_clever.modules.case_studies.models import CaseStudy, CaseStudyStatus
from plastic_clever.modules.case_studies.schemas import CaseStudyFromEvidence
from plastic_clever.modules.case_studies.service import (
    create_from_evidence,
    get_case_study,
    list_case_studies,
    rank_related,
    related_score,
)
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.shared import NotFoundError, ValidationFailedError

SERVICE = "plastic_clever.modules.case_studies.service"


def make_case_study(
    case_study_id="cs-1",
    stage="act",
    country="Wales",
    categories=None,
    tags=None,
    featured=False,
    status=CaseStudyStatus.PUBLISHED,
):
    case_study = MagicMock(spec=CaseStudy)
    case_study.id = case_study_id
    case_study.stage = stage
    case_study.school = SimpleNamespace(name="Hill Primary", country=country)
    case_study.categories = categories
    case_study.tags = tags
    case_study.featured = featured
    case_study.status = status
    return case_study


class TestRelatedScore:
    def test_stage_country_and_labels(self):
        """Stage, country, categories and tags all add to the score."""
        base = make_case_study(categories=["canteen"], tags=["bottles", "refill"])
        candidate = make_case_study(
            "cs-2", categories=["canteen"], tags=["refill", "straws"]
        )
        # stage 3 + country 2 + one shared category + one shared tag
        assert related_score(base, candidate) == 7

    def test_unknown_country_never_matches(self):
        """A missing country on both sides does not count as a match."""
        base = make_case_study(country=None, stage="inspire")
        candidate = make_case_study("cs-2", country=None, stage="act")
        assert related_score(base, candidate) == 0

    def test_rank_prefers_score_then_featured(self):
        """Higher scores rank first and featured breaks ties."""
        base = make_case_study()
        same_stage = make_case_study("same-stage", country="Kenya")
        featured_same_stage = make_case_study("featured", country="Kenya", featured=True)
        best = make_case_study("best")
        unrelated = make_case_study("unrelated", stage="inspire", country="Peru")

        ranked = rank_related(base, [unrelated, same_stage, featured_same_stage, best], limit=3)

        assert [item.id for item in ranked] == ["best", "featured", "same-stage"]


class TestVisibility:
    @pytest.mark.asyncio
    async def test_draft_hidden_from_teachers(self, mock_db, teacher_user):
        """Drafts are a 404 for teachers and anonymous callers."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(
                return_value=make_case_study(status=CaseStudyStatus.DRAFT)
            )
            with pytest.raises(NotFoundError):
                await get_case_study(mock_db, teacher_user, "cs-1")
            with pytest.raises(NotFoundError):
                await get_case_study(mock_db, None, "cs-1")

    @pytest.mark.asyncio
    async def test_draft_visible_to_partner(self, mock_db, partner_user):
        """Partners can open drafts."""
        draft = make_case_study(status=CaseStudyStatus.DRAFT)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=draft)
            assert await get_case_study(mock_db, partner_user, "cs-1") is draft

    @pytest.mark.asyncio
    async def test_listing_forces_published_for_public(self, mock_db):
        """Anonymous listings only ever ask for published case studies."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_case_studies = AsyncMock(return_value=[])
            await list_case_studies(mock_db, None, status=CaseStudyStatus.DRAFT)

        kwargs = mock_repo.get_case_studies.call_args.kwargs
        assert kwargs["status"] == CaseStudyStatus.PUBLISHED


class TestCreateFromEvidence:
    @pytest.mark.asyncio
    async def test_requires_approved_evidence(self, mock_db, admin_user):
        """Only approved evidence can become a case study."""
        evidence = SimpleNamespace(id="ev-1", status=EvidenceStatus.PENDING)
        with (
            patch(f"{SERVICE}.evidence_repository") as mock_ev_repo,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_ev_repo.get_by_id = AsyncMock(return_value=evidence)
            mock_repo.create = AsyncMock()
            with pytest.raises(ValidationFailedError) as exc_info:
                await create_from_evidence(
                    mock_db, admin_user, CaseStudyFromEvidence(evidence_id="ev-1")
                )

        assert exc_info.value.error_code == "EVIDENCE_NOT_APPROVED"
        mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_copies_content_and_media(self, mock_db, admin_user):
        """The draft copies the title, school, images and video links."""
        evidence = SimpleNamespace(
            id="ev-1",
            school_id="school-1",
            status=EvidenceStatus.APPROVED,
            title="Refill stations",
            description="We installed two refill stations",
            stage="act",
            files=[
                {"type": "image/jpeg", "url": "https://cdn/a.jpg", "caption": "Station"},
                {"type": "application/pdf", "url": "https://cdn/plan.pdf"},
            ],
            video_links="https://video/1",
        )
        with (
            patch(f"{SERVICE}.evidence_repository") as mock_ev_repo,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_ev_repo.get_by_id = AsyncMock(return_value=evidence)
            mock_repo.create = AsyncMock(return_value=make_case_study(status=CaseStudyStatus.DRAFT))

            await create_from_evidence(
                mock_db, admin_user, CaseStudyFromEvidence(evidence_id="ev-1")
            )

        fields = mock_repo.create.call_args.kwargs
        assert fields["status"] == CaseStudyStatus.DRAFT
        assert fields["title"] == "Refill stations"
        assert fields["school_id"] == "school-1"
        assert fields["image_url"] == "https://cdn/a.jpg"
        assert fields["images"] == [{"url": "https://cdn/a.jpg", "caption": "Station"}]
        assert fields["videos"] == [{"url": "https://video/1", "caption": None}]
        assert fields["created_by"] == admin_user.id
