"""
SQLAlchemy ORM models for the theater reference-data tables.

This module defines the tables populated by the seeders:
- productions: Shows staged by the company, one row per title and season
- cast_members: Company members listed on the cast page
- awards: Awards and nominations received by the company

All models use:
- Integer identity primary keys assigned by the database on insert
- TIMESTAMP WITH TIME ZONE audit columns maintained by the database
- A unique constraint over the alternate key where that key is fixed
"""

from datetime import date, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    DATE,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# ============================================================================
# Base Class
# ============================================================================


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """created_at / updated_at columns filled in by the database."""

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ============================================================================
# Enums
# ============================================================================


class AwardType(str, PyEnum):
    """Whether the company won the award or was nominated for it."""

    WINNER = "Winner"
    NOMINEE = "Nominee"


# ============================================================================
# Reference Data Models
# ============================================================================


class Production(TimestampMixin, Base):
    """
    Production model - A show staged in a given season.

    The same title can be revived in a later season, so a production is
    identified by (title, season).
    """

    __tablename__ = "productions"
    __table_args__ = (
        UniqueConstraint("title", "season", name="uq_productions_title_season"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    season: Mapped[str] = mapped_column(String(20), nullable=False)
    playwright: Mapped[str | None] = mapped_column(String(200), nullable=True)
    director: Mapped[str | None] = mapped_column(String(200), nullable=True)
    venue: Mapped[str | None] = mapped_column(String(200), nullable=True)
    opening_date: Mapped[date | None] = mapped_column(DATE, nullable=True)
    closing_date: Mapped[date | None] = mapped_column(DATE, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Production(id={self.id}, title='{self.title}', season='{self.season}')>"


class CastMember(TimestampMixin, Base):
    """CastMember model - A member of the company shown on the cast page."""

    __tablename__ = "cast_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    headshot_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year_joined: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<CastMember(id={self.id}, name='{self.name}')>"


class Award(TimestampMixin, Base):
    """
    Award model - An award or nomination received by the company.

    No single column identifies an award: the same award name is given
    every year, in several categories, to winners and nominees alike.
    The identifying field set is configurable (AWARD_KEY_FIELDS), so it is
    enforced by the award seeder rather than by a table constraint.
    """

    __tablename__ = "awards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    award_type: Mapped[AwardType] = mapped_column(
        SQLEnum(
            AwardType,
            name="award_type",
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    recipient: Mapped[str | None] = mapped_column(String(200), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Award(id={self.id}, year={self.year}, name='{self.name}', "
            f"type={self.award_type}, category='{self.category}')>"
        )
