"""Story cluster model -- a persistent group of articles about one event."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from content_intel.models.base import Base


class StoryCluster(Base):
    """A story thread.

    Member ids are kept as a JSON list (SQLite compatibility).  Clusters
    are never deleted; old ones are only flagged inactive.
    """

    __tablename__ = "story_clusters"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    headline: Mapped[str] = mapped_column(sa.String)
    summary: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    article_ids: Mapped[list] = mapped_column(sa.JSON, default=list)
    article_count: Mapped[int] = mapped_column(sa.Integer, default=0)
    primary_topic_id: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, index=True)

    first_seen: Mapped[datetime] = mapped_column(sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"))
    last_updated: Mapped[datetime] = mapped_column(
        sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"), index=True
    )
