"""Place mentions inside an article and their candidate resolutions."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from content_intel.models.base import Base


class PlaceMention(Base):
    """One distinct place surface form found in an article."""

    __tablename__ = "place_mentions"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(sa.Integer, index=True)
    mention_text: Mapped[str] = mapped_column(sa.String)
    context_snippet: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    resolutions: Mapped[list[ResolvedPlace]] = relationship(
        "ResolvedPlace", back_populates="mention", cascade="all, delete-orphan"
    )

    __table_args__ = (
        sa.UniqueConstraint("article_id", "mention_text", name="uq_place_mentions_text"),
    )


class ResolvedPlace(Base):
    """A candidate place for a mention, with its current confidence.

    ``disambiguation_method`` accumulates markers for every pass that
    touched the row (e.g. ``"rule_level_2+coherence"``).
    """

    __tablename__ = "resolved_places"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    mention_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("place_mentions.id", ondelete="CASCADE")
    )
    place_id: Mapped[int] = mapped_column(sa.Integer)
    confidence: Mapped[float] = mapped_column(sa.Float)
    disambiguation_method: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"))

    mention: Mapped[PlaceMention] = relationship("PlaceMention", back_populates="resolutions")

    __table_args__ = (
        sa.UniqueConstraint("mention_id", "place_id", name="uq_resolved_places_pair"),
    )
