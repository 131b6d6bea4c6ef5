"""Scored association between an article and a gazetteer place."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from content_intel.models.base import Base


class ArticlePlaceRelation(Base):
    """Stored output of the place matcher.

    At most one row exists per (article, place); re-matching an article
    overwrites the row instead of adding a second one.  The evidence JSON
    records which rule produced the match and the raw text hits.
    """

    __tablename__ = "article_place_relations"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(sa.Integer, index=True)
    place_id: Mapped[int] = mapped_column(sa.Integer)
    place_name: Mapped[str | None] = mapped_column(sa.String, nullable=True)

    relation_type: Mapped[str] = mapped_column(sa.String)
    confidence: Mapped[float] = mapped_column(sa.Float)
    matching_rule_level: Mapped[int] = mapped_column(sa.Integer, default=0)
    evidence: Mapped[dict | None] = mapped_column(sa.JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"))
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"))

    __table_args__ = (
        sa.UniqueConstraint("article_id", "place_id", name="uq_article_place_relations_pair"),
        sa.CheckConstraint(
            "relation_type IN ('primary', 'secondary', 'mentioned', 'affected', 'origin')",
            name="valid_relation_type",
        ),
        sa.CheckConstraint("confidence >= 0 AND confidence <= 1", name="confidence_range"),
    )
