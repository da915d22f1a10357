"""
School Progression

The stage gate and the progression recheck for the three-stage programme.

Gate:
    ``is_stage_unlocked`` is a pure function of the stage and the school's
    completion flags. The admin/partner override is a separate check in
    ``can_submit_to_stage`` that runs before the gate.

Recheck:
    ``check_and_update_school_progression`` recounts what the school has had
    approved in its current round and moves the completion flags forward:

    - Inspire: 3 approved inspire evidence items
    - Investigate: Inspire complete, plus an approved waste audit and at
      least one reduction promise
    - Act: Investigate complete, plus 3 approved act evidence items. This
      also completes the award for the round.

    Completion flags only move forward within a round. ``start_new_round``
    resets them once the award for the current round is complete.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, can_bypass_stage_lock
from plastic_clever.modules.audits import repository as audit_repository
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.schools.models import ProgramStage, School
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.shared import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

INSPIRE_REQUIRED_APPROVED = 3
ACT_REQUIRED_APPROVED = 3

STAGE_ORDER = (ProgramStage.INSPIRE, ProgramStage.INVESTIGATE, ProgramStage.ACT)


def _stage_value(stage: Any) -> str:
    return stage.value if isinstance(stage, ProgramStage) else str(stage)


def _flag(school: Any, name: str) -> bool:
    """Read a completion flag; anything other than a literal True counts as False."""
    value = school.get(name) if isinstance(school, Mapping) else getattr(school, name, None)
    return value is True


def is_stage_unlocked(stage: ProgramStage | str, school: Any) -> bool:
    """
    Whether a school may submit evidence to ``stage``.

    Inspire is always open; Investigate opens once Inspire is complete; Act
    opens once Investigate is complete. Unknown stages are never open.
    """
    value = _stage_value(stage)
    if value == ProgramStage.INSPIRE.value:
        return True
    if value == ProgramStage.INVESTIGATE.value:
        return _flag(school, "inspire_completed")
    if value == ProgramStage.ACT.value:
        return _flag(school, "investigate_completed")
    return False


def can_submit_to_stage(user: CurrentUser | None, stage: ProgramStage | str, school: Any) -> bool:
    """Admins and partners may submit to any stage; everyone else goes through the gate."""
    if can_bypass_stage_lock(user):
        return True
    return is_stage_unlocked(stage, school)


@dataclass
class RoundActivity:
    """What a school has had approved in its current round."""

    approved_by_stage: dict[str, int]
    has_approved_audit: bool
    has_reduction_promise: bool

    def approved(self, stage: ProgramStage) -> int:
        return self.approved_by_stage.get(stage.value, 0)


def compute_progression(school: School, activity: RoundActivity) -> dict[str, Any]:
    """
    Work out the school's progression fields for its current round.

    Returns:
        Dict of School field values (only the progression fields)
    """
    inspire = _flag(school, "inspire_completed") or (
        activity.approved(ProgramStage.INSPIRE) >= INSPIRE_REQUIRED_APPROVED
    )
    audit_done = _flag(school, "audit_quiz_completed") or activity.has_approved_audit
    investigate = _flag(school, "investigate_completed") or (
        inspire and audit_done and activity.has_reduction_promise
    )
    act = _flag(school, "act_completed") or (
        investigate and activity.approved(ProgramStage.ACT) >= ACT_REQUIRED_APPROVED
    )

    completed = [inspire, investigate, act]
    current_stage = ProgramStage.ACT
    for stage, done in zip(STAGE_ORDER, completed, strict=True):
        if not done:
            current_stage = stage
            break

    rounds_completed = school.rounds_completed or 0
    if act and not _flag(school, "award_completed"):
        rounds_completed += 1

    return {
        "inspire_completed": inspire,
        "investigate_completed": investigate,
        "act_completed": act,
        "award_completed": act,
        "audit_quiz_completed": audit_done,
        "current_stage": current_stage,
        "progress_percentage": min(100, max(0, round(100 * sum(completed) / len(completed)))),
        "rounds_completed": rounds_completed,
    }


async def load_round_activity(db: AsyncSession, school: School) -> RoundActivity:
    round_number = school.current_round or 1
    return RoundActivity(
        approved_by_stage=await evidence_repository.count_approved_by_stage(
            db, school.id, round_number
        ),
        has_approved_audit=await audit_repository.has_approved_audit(db, school.id, round_number),
        has_reduction_promise=(
            await audit_repository.count_promises_for_round(db, school.id, round_number)
        )
        > 0,
    )


async def check_and_update_school_progression(db: AsyncSession, school_id: str) -> School | None:
    """
    Recheck a school's progression after an approval and persist any change.

    Returns:
        The (possibly updated) school, or None if it no longer exists
    """
    school = await SchoolRepository.get_by_id(db, school_id)
    if school is None:
        logger.warning(f"Progression check skipped: school {school_id} not found")
        return None

    activity = await load_round_activity(db, school)
    updates = compute_progression(school, activity)
    changed = {name: value for name, value in updates.items() if getattr(school, name) != value}

    if not changed:
        return school

    summary = ", ".join(f"{name}={_stage_value(value)}" for name, value in changed.items())
    logger.info(f"School {school_id} progression updated (round {school.current_round}): {summary}")
    return await SchoolRepository.update(db, school, **changed)


async def start_new_round(db: AsyncSession, school_id: str) -> School:
    """
    Start the next round for a school whose current award is complete.

    Raises:
        NotFoundError: If the school does not exist
        ConflictError: (HTTP 400) if the current round is not complete
    """
    school = await SchoolRepository.get_by_id(db, school_id)
    if school is None:
        raise NotFoundError("School", school_id)

    if not _flag(school, "award_completed"):
        raise ConflictError(
            "Current round must be completed before starting a new round",
            error_code="ROUND_NOT_COMPLETED",
            status_code=400,
        )

    next_round = (school.current_round or 1) + 1
    logger.info(f"School {school_id} starting round {next_round}")
    return await SchoolRepository.update(
        db,
        school,
        current_round=next_round,
        current_stage=ProgramStage.INSPIRE,
        inspire_completed=False,
        investigate_completed=False,
        act_completed=False,
        award_completed=False,
        audit_quiz_completed=False,
        progress_percentage=0,
    )
