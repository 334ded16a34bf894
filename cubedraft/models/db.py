"""
SQLAlchemy ORM models for persistent storage.

Cubes, drafts, analytics and the featured queue are stored as documents
with JSON columns. Each table carries a `version` column mapped as the
SQLAlchemy version counter, so every UPDATE is a compare-and-set against
the version that was read and fails with StaleDataError otherwise.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CubeDB(Base):
    """A cube and its card list."""

    __tablename__ = "cubes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    owner_id: Mapped[str] = mapped_column(String(255), index=True)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False)
    default_status: Mapped[str] = mapped_column(String(50), default="Not Owned")
    use_cube_elo: Mapped[bool] = mapped_column(Boolean, default=False)

    # Card list and pack structure stored as JSON for flexibility
    cards: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    basics: Mapped[list[str]] = mapped_column(JSON, default=list)
    draft_format: Mapped[list[list[dict[str, str]]] | None] = mapped_column(JSON, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<CubeDB(id={self.id}, name={self.name})>"


class DraftDB(Base):
    """
    A draft session.

    cube_id is deliberately not a foreign key: deleting a cube leaves its
    drafts in place with a stale reference.
    """

    __tablename__ = "drafts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    cube_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(20), default="in_progress")

    seats: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    cards: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    basics: Mapped[list[str]] = mapped_column(JSON, default=list)
    initial_state: Mapped[list[list[dict[str, Any]]]] = mapped_column(JSON, default=list)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<DraftDB(id={self.id}, cube_id={self.cube_id}, status={self.status})>"


class CubeAnalyticDB(Base):
    """Per-cube card rating aggregate, keyed by lower-cased card name."""

    __tablename__ = "cube_analytics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cube_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    # {name_lower: {"pick_count": int, "pass_count": int, "elo": float}}
    cards: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<CubeAnalyticDB(cube_id={self.cube_id}, cards={len(self.cards)})>"


class FeaturedQueueDB(Base):
    """The featured cube rotation queue. A single row."""

    __tablename__ = "featured_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entries: Mapped[list[dict[str, str]]] = mapped_column(JSON, default=list)
    days_between_rotations: Mapped[int] = mapped_column(Integer, default=7)
    last_rotation: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<FeaturedQueueDB(entries={len(self.entries)}, version={self.version})>"
