"""
Evidence Requirement Models

The checklist of items a school is asked to evidence at each programme
stage. Evidence may point at the requirement it answers.
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from plastic_clever.modules.schools.models import ProgramStage
from plastic_clever.modules.shared import BaseModel, pg_enum


class EvidenceRequirement(BaseModel):
    __tablename__ = "evidence_requirements"

    stage: Mapped[ProgramStage] = mapped_column(
        pg_enum(ProgramStage, "program_stage"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<EvidenceRequirement(id={self.id}, stage={self.stage.value}, title={self.title})>"
