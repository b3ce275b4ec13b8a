"""
db/models/reference.py

Regulatory reference data read during EDD parsing: permits, outfalls, parameters.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.alias import ParameterAlias


class NpdesPermit(Base, TimestampMixin):
    """
    A discharge permit held by an organization. ``permit_number`` is the
    identifier printed in the EDD ``Permit#`` column.
    """

    __tablename__ = "npdes_permits"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    permit_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    state_code: Mapped[str | None] = mapped_column(String(2), nullable=True)

    outfalls: Mapped[list["Outfall"]] = relationship(back_populates="permit", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_npdes_permits_organization_id", "organization_id"),)


class Outfall(Base, TimestampMixin):
    __tablename__ = "outfalls"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    permit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("npdes_permits.id", ondelete="CASCADE"),
        nullable=False,
    )
    outfall_id: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Display identifier such as 001",
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    permit: Mapped[NpdesPermit] = relationship(back_populates="outfalls")

    __table_args__ = (
        UniqueConstraint("permit_id", "outfall_id", name="uq_outfalls_permit_outfall_id"),
        Index("ix_outfalls_permit_id", "permit_id"),
    )


class Parameter(Base, TimestampMixin):
    __tablename__ = "parameters"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    default_unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    hold_time_days: Mapped[int | None] = mapped_column(nullable=True)

    aliases: Mapped[list["ParameterAlias"]] = relationship(
        back_populates="parameter",
        cascade="all, delete-orphan",
    )
