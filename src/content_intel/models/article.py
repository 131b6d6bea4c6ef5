"""Content-store tables: articles and their extracted entities (read-only here)."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from content_intel.models.base import Base


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True)
    title: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    body: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)

    # 64-bit SimHash as 16 hex chars (avoids signed BIGINT overflow)
    fingerprint: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)

    entities: Mapped[list[ArticleEntity]] = relationship(
        "ArticleEntity", back_populates="article", cascade="all, delete-orphan"
    )


class ArticleEntity(Base):
    __tablename__ = "article_entities"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("articles.id", ondelete="CASCADE"))
    text: Mapped[str] = mapped_column(sa.String)
    type: Mapped[str | None] = mapped_column(sa.String, nullable=True)

    article: Mapped[Article] = relationship("Article", back_populates="entities")
