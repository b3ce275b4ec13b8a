"""
app/repositories/lab_reference_repository.py

Reference and alias lookups backing EDD identity resolution and duplicate detection.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date, time
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.alias import AliasSource, OutfallAlias, ParameterAlias
from db.models.lab_data import LabResult, SamplingEvent
from db.models.reference import NpdesPermit, Outfall, Parameter
from edd.compliance import duplicate_key
from edd.resolver import KnownOutfall, OutfallAliasEntry, ParameterAliasEntry, PendingOutfallAlias

logger = logging.getLogger(__name__)

_OUTFALL_ALIAS_CONSTRAINT = "uq_outfall_aliases_alias_org_permit"


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _format_time(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


class LabReferenceRepository:
    """
    Read-side queries used while parsing, plus the post-parse alias write.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def load_parameter_aliases(self) -> dict[str, ParameterAliasEntry]:
        cache: dict[str, ParameterAliasEntry] = {}

        # Canonical names resolve to themselves; explicit aliases take precedence.
        for parameter_id, name in self._session.execute(select(Parameter.id, Parameter.name)):
            cache[name.strip().lower()] = ParameterAliasEntry(parameter_id=str(parameter_id), canonical_name=name)

        stmt = select(ParameterAlias.alias, ParameterAlias.parameter_id, Parameter.name).join(
            Parameter, Parameter.id == ParameterAlias.parameter_id
        )
        for alias, parameter_id, name in self._session.execute(stmt):
            key = (alias or "").strip().lower()
            if key:
                cache[key] = ParameterAliasEntry(parameter_id=str(parameter_id), canonical_name=name)

        logger.info("Loaded parameter aliases count=%s", len(cache))
        return cache

    def load_permit_ids(self, permit_numbers: Sequence[str]) -> dict[str, str]:
        if not permit_numbers:
            return {}
        stmt = select(NpdesPermit.permit_number, NpdesPermit.id).where(
            NpdesPermit.permit_number.in_(list(permit_numbers))
        )
        return {number: str(permit_id) for number, permit_id in self._session.execute(stmt)}

    def load_outfalls(self, permit_ids: Sequence[str]) -> list[KnownOutfall]:
        if not permit_ids:
            return []
        stmt = select(Outfall.id, Outfall.outfall_id, Outfall.permit_id).where(
            Outfall.permit_id.in_([_as_uuid(item) for item in permit_ids])
        )
        return [
            KnownOutfall(id=str(outfall_pk), outfall_id=display_id, permit_id=str(permit_id))
            for outfall_pk, display_id, permit_id in self._session.execute(stmt)
        ]

    def load_outfall_aliases(
        self,
        organization_id: str,
        permit_ids: Sequence[str],
    ) -> dict[tuple[str, str], OutfallAliasEntry]:
        if not organization_id or not permit_ids:
            return {}
        stmt = (
            select(OutfallAlias.alias, OutfallAlias.permit_id, OutfallAlias.outfall_id, OutfallAlias.match_method, Outfall.outfall_id)
            .join(Outfall, Outfall.id == OutfallAlias.outfall_id)
            .where(
                OutfallAlias.organization_id == _as_uuid(organization_id),
                OutfallAlias.permit_id.in_([_as_uuid(item) for item in permit_ids]),
            )
        )
        cache: dict[tuple[str, str], OutfallAliasEntry] = {}
        for alias, permit_id, outfall_pk, match_method, display_id in self._session.execute(stmt):
            key = (alias or "").strip().lower()
            if key:
                cache[(str(permit_id), key)] = OutfallAliasEntry(
                    outfall_db_id=str(outfall_pk),
                    canonical_id=display_id,
                    match_method=match_method,
                )
        logger.info("Loaded outfall aliases count=%s organization_id=%s", len(cache), organization_id)
        return cache

    def load_existing_result_keys(
        self,
        permit_numbers: Sequence[str],
        earliest: str,
        latest: str,
    ) -> set[str]:
        """
        Duplicate keys for lab results already stored for these permits
        with a sample date inside [earliest, latest].
        """

        if not permit_numbers:
            return set()
        stmt = (
            select(
                NpdesPermit.permit_number,
                Outfall.outfall_id,
                SamplingEvent.sample_date,
                SamplingEvent.sample_time,
                Parameter.name,
            )
            .select_from(LabResult)
            .join(SamplingEvent, SamplingEvent.id == LabResult.sampling_event_id)
            .join(Outfall, Outfall.id == SamplingEvent.outfall_id)
            .join(NpdesPermit, NpdesPermit.id == Outfall.permit_id)
            .join(Parameter, Parameter.id == LabResult.parameter_id)
            .where(
                NpdesPermit.permit_number.in_(list(permit_numbers)),
                SamplingEvent.sample_date >= date.fromisoformat(earliest),
                SamplingEvent.sample_date <= date.fromisoformat(latest),
            )
        )
        return {
            duplicate_key(permit_number, display_id, _format_date(sample_date), _format_time(sample_time), name)
            for permit_number, display_id, sample_date, sample_time, name in self._session.execute(stmt)
        }

    def save_outfall_aliases(
        self,
        *,
        organization_id: str,
        aliases: Sequence[PendingOutfallAlias],
    ) -> int:
        if not aliases:
            return 0

        payloads: list[dict[str, Any]] = []
        seen: set[tuple[str, str]] = set()
        for alias in aliases:
            key = (alias.alias, alias.permit_id)
            if key in seen:
                continue
            seen.add(key)
            payloads.append(
                {
                    "alias": alias.alias,
                    "outfall_id": _as_uuid(alias.outfall_db_id),
                    "organization_id": _as_uuid(organization_id),
                    "permit_id": _as_uuid(alias.permit_id),
                    "match_method": alias.match_method,
                    "source": AliasSource.LAB_EDD,
                }
            )

        stmt = (
            insert(OutfallAlias)
            .values(payloads)
            .on_conflict_do_nothing(constraint=_OUTFALL_ALIAS_CONSTRAINT)
            .returning(OutfallAlias.id)
        )
        return len(self._session.scalars(stmt).all())
