"""seed parameters and parameter aliases

Revision ID: 20260301_0002
Revises: 20260301_0001
Create Date: 2026-03-01 09:30:00
"""

from __future__ import annotations

import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from edd.parameters import CANONICAL_PARAMETERS, FALLBACK_PARAMETER_ALIASES, HOLD_TIME_DAYS

# revision identifiers, used by Alembic.
revision = "20260301_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None

# Stable ids so the downgrade and later data migrations can find seeded rows.
_SEED_NAMESPACE = uuid.UUID("6f1c1d2e-8a44-4d8e-9a1e-2f6f0c4b7d10")

_parameters = sa.table(
    "parameters",
    sa.column("id", postgresql.UUID(as_uuid=True)),
    sa.column("name", sa.String),
    sa.column("hold_time_days", sa.Integer),
)

_parameter_aliases = sa.table(
    "parameter_aliases",
    sa.column("id", postgresql.UUID(as_uuid=True)),
    sa.column("alias", sa.String),
    sa.column("parameter_id", postgresql.UUID(as_uuid=True)),
    sa.column("source", sa.String),
)


def _parameter_id(name: str) -> uuid.UUID:
    return uuid.uuid5(_SEED_NAMESPACE, f"parameter:{name}")


def _alias_rows() -> list[dict]:
    aliases: dict[str, str] = {name.lower(): name for name in CANONICAL_PARAMETERS}
    aliases.update(FALLBACK_PARAMETER_ALIASES)
    return [
        {
            "id": uuid.uuid5(_SEED_NAMESPACE, f"alias:{alias}"),
            "alias": alias,
            "parameter_id": _parameter_id(canonical),
            "source": "seed",
        }
        for alias, canonical in sorted(aliases.items())
    ]


def upgrade() -> None:
    op.bulk_insert(
        _parameters,
        [
            {"id": _parameter_id(name), "name": name, "hold_time_days": HOLD_TIME_DAYS.get(name)}
            for name in CANONICAL_PARAMETERS
        ],
    )
    op.bulk_insert(_parameter_aliases, _alias_rows())


def downgrade() -> None:
    op.execute(_parameter_aliases.delete().where(_parameter_aliases.c.source == "seed"))
    op.execute(
        _parameters.delete().where(_parameters.c.id.in_([_parameter_id(name) for name in CANONICAL_PARAMETERS]))
    )
