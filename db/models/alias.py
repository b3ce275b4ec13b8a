"""
db/models/alias.py

Learned and seeded alias tables used by the EDD identity resolver.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.reference import Outfall, Parameter


class AliasSource:
    SEED = "seed"
    LAB_EDD = "lab_edd"
    USER = "user"


class ParameterAlias(Base, TimestampMixin):
    __tablename__ = "parameter_aliases"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    alias: Mapped[str] = mapped_column(String(255), nullable=False, comment="Lowercased, trimmed")
    parameter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("parameters.id", ondelete="CASCADE"),
        nullable=False,
    )
    source: Mapped[str] = mapped_column(String(32), nullable=False, default=AliasSource.SEED)
    state_code: Mapped[str | None] = mapped_column(String(2), nullable=True)

    parameter: Mapped["Parameter"] = relationship(back_populates="aliases")

    __table_args__ = (
        UniqueConstraint("alias", name="uq_parameter_aliases_alias"),
        Index("ix_parameter_aliases_parameter_id", "parameter_id"),
    )


class OutfallAlias(Base, TimestampMixin):
    """
    Raw outfall text mapped to an outfall, scoped by organization and permit.

    match_method: exact, zero_strip, digits_only, user_confirmed.
    """

    __tablename__ = "outfall_aliases"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    alias: Mapped[str] = mapped_column(String(128), nullable=False)
    outfall_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("outfalls.id", ondelete="CASCADE"),
        nullable=False,
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    permit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("npdes_permits.id", ondelete="CASCADE"),
        nullable=False,
    )
    match_method: Mapped[str] = mapped_column(String(32), nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False, default=AliasSource.LAB_EDD)

    outfall: Mapped["Outfall"] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "alias",
            "organization_id",
            "permit_id",
            name="uq_outfall_aliases_alias_org_permit",
        ),
        Index("ix_outfall_aliases_organization_permit", "organization_id", "permit_id"),
    )
