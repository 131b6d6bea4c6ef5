"""Gazetteer tables: places and their name variants (read-only here)."""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from content_intel.models.base import Base


class Place(Base):
    __tablename__ = "places"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True)
    canonical_name: Mapped[str] = mapped_column(sa.String)
    country_code: Mapped[str | None] = mapped_column(sa.String(2), nullable=True)
    latitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    population: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)

    names: Mapped[list[PlaceName]] = relationship(
        "PlaceName", back_populates="place", cascade="all, delete-orphan"
    )


class PlaceName(Base):
    """One name variant (alternate spelling, exonym...) of a place."""

    __tablename__ = "place_names"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    place_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("places.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(sa.String)
    normalized: Mapped[str | None] = mapped_column(sa.String, nullable=True)

    place: Mapped[Place] = relationship("Place", back_populates="names")
