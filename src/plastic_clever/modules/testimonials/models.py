"""
Testimonial Models

Quotes from teachers and partners shown on the public landing page.
"""

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from plastic_clever.modules.shared import BaseModel


class Testimonial(BaseModel):
    __tablename__ = "testimonials"

    quote: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[str] = mapped_column(String(200), nullable=False)
    author_role: Mapped[str] = mapped_column(String(200), nullable=False)
    school_name: Mapped[str] = mapped_column(String(200), nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=5)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Testimonial(id={self.id}, author={self.author_name}, active={self.is_active})>"
