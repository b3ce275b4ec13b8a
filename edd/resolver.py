"""
edd/resolver.py

Parameter and outfall identity resolution for parsed EDD rows.

Both resolvers read from an AliasCache built for a single parse invocation;
nothing here is shared between parses.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from app.domain.lab_data import OutfallMatchMethod
from edd.parameters import FALLBACK_PARAMETER_ALIASES, IGNORED_PARAMETER_TOKENS

logger = logging.getLogger(__name__)

_TRAILING_DECIMAL_ZERO = re.compile(r"\.0$")
_NON_DIGITS = re.compile(r"[^0-9]")


class ParameterSource:
    IGNORED = "ignored"
    ALIAS = "alias"
    FALLBACK = "fallback"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParameterAliasEntry:
    parameter_id: str
    canonical_name: str


@dataclass(frozen=True)
class OutfallAliasEntry:
    outfall_db_id: str
    canonical_id: str
    match_method: str


@dataclass(frozen=True)
class KnownOutfall:
    """An outfall row of one of the permits referenced by the file."""

    id: str
    outfall_id: str
    permit_id: str


@dataclass(frozen=True)
class PendingOutfallAlias:
    alias: str
    outfall_db_id: str
    permit_id: str
    match_method: str


@dataclass(frozen=True)
class ParameterMatch:
    canonical: str
    parameter_id: str | None
    source: str

    @property
    def is_ignored(self) -> bool:
        return self.source == ParameterSource.IGNORED


@dataclass(frozen=True)
class OutfallMatch:
    outfall_db_id: str
    canonical_id: str
    match_method: str
    from_cache: bool = False


@dataclass
class AliasCache:
    """
    Per-invocation lookup state for alias resolution.

    ``outfall_aliases`` is keyed by ``(permit_id, lowercased alias)``.
    ``pending_outfall_aliases`` collects outfall spellings matched during this
    parse so they can be persisted after the parse completes.
    """

    parameter_aliases: dict[str, ParameterAliasEntry] = field(default_factory=dict)
    outfall_aliases: dict[tuple[str, str], OutfallAliasEntry] = field(default_factory=dict)
    pending_outfall_aliases: list[PendingOutfallAlias] = field(default_factory=list)
    _pending_keys: set[tuple[str, str]] = field(default_factory=set, repr=False)

    def queue_outfall_alias(self, alias: PendingOutfallAlias) -> bool:
        key = (alias.permit_id, alias.alias)
        if key in self._pending_keys or key in self.outfall_aliases:
            return False
        self._pending_keys.add(key)
        self.pending_outfall_aliases.append(alias)
        return True


def normalize_alias(raw: str) -> str:
    return (raw or "").strip().lower()


def normalize_outfall_id(raw: str) -> str:
    """Uppercase/trim and drop a trailing ``.0`` ("1.0" -> "1")."""

    return _TRAILING_DECIMAL_ZERO.sub("", (raw or "").strip().upper())


def _strip_leading_zeros(text: str) -> str:
    return text.lstrip("0") or "0"


class ParameterResolver:
    def __init__(self, cache: AliasCache) -> None:
        self._cache = cache

    def resolve(self, raw: str) -> ParameterMatch:
        """
        Resolve raw parameter text: alias table first, then the static fallback.

        Unknown names pass through trimmed, without an identity.
        """

        trimmed = (raw or "").strip()
        lowered = trimmed.lower()
        if lowered in IGNORED_PARAMETER_TOKENS:
            return ParameterMatch(canonical="", parameter_id=None, source=ParameterSource.IGNORED)

        cached = self._cache.parameter_aliases.get(lowered)
        if cached is not None:
            return ParameterMatch(
                canonical=cached.canonical_name,
                parameter_id=cached.parameter_id,
                source=ParameterSource.ALIAS,
            )

        fallback = FALLBACK_PARAMETER_ALIASES.get(lowered)
        if fallback is not None:
            return ParameterMatch(canonical=fallback, parameter_id=None, source=ParameterSource.FALLBACK)

        return ParameterMatch(canonical=trimmed, parameter_id=None, source=ParameterSource.UNKNOWN)


class OutfallResolver:
    """
    Match raw outfall text against the outfalls of the file's known permits.

    Matching order: learned alias, exact, leading-zero strip, digits only.
    Fuzzy matches not yet in the alias cache are queued for persistence once
    per (permit, alias).
    """

    def __init__(
        self,
        cache: AliasCache,
        *,
        known_outfalls: Iterable[KnownOutfall],
        permit_ids: dict[str, str],
    ) -> None:
        self._cache = cache
        self._permit_ids = dict(permit_ids)
        self._outfalls = list(known_outfalls)
        self._outfalls_by_permit: dict[str, list[KnownOutfall]] = {}
        for outfall in self._outfalls:
            self._outfalls_by_permit.setdefault(outfall.permit_id, []).append(outfall)

    @property
    def has_outfall_data(self) -> bool:
        return bool(self._outfalls)

    def permit_id_for(self, permit_number: str) -> str | None:
        return self._permit_ids.get((permit_number or "").strip())

    def resolve(self, raw: str, permit_number: str) -> OutfallMatch | None:
        if not raw or not raw.strip() or not self._outfalls:
            return None

        alias = normalize_alias(raw)
        permit_id = self.permit_id_for(permit_number)
        candidates = self._outfalls_by_permit.get(permit_id, []) if permit_id else self._outfalls

        if permit_id is not None:
            cached = self._cache.outfall_aliases.get((permit_id, alias))
            if cached is not None:
                return OutfallMatch(
                    outfall_db_id=cached.outfall_db_id,
                    canonical_id=cached.canonical_id,
                    match_method=cached.match_method,
                    from_cache=True,
                )

        match = self._fuzzy_match(raw, candidates)
        if match is None:
            return None

        if permit_id is not None:
            self._cache.queue_outfall_alias(
                PendingOutfallAlias(
                    alias=alias,
                    outfall_db_id=match.outfall_db_id,
                    permit_id=permit_id,
                    match_method=match.match_method,
                )
            )
        return match

    @staticmethod
    def _fuzzy_match(raw: str, candidates: list[KnownOutfall]) -> OutfallMatch | None:
        normalized = normalize_outfall_id(raw)

        for outfall in candidates:
            if outfall.outfall_id.upper() == normalized:
                return OutfallMatch(outfall.id, outfall.outfall_id, OutfallMatchMethod.EXACT)

        stripped = _strip_leading_zeros(normalized)
        for outfall in candidates:
            if _strip_leading_zeros(outfall.outfall_id.upper()) == stripped:
                return OutfallMatch(outfall.id, outfall.outfall_id, OutfallMatchMethod.ZERO_STRIP)

        digits = _NON_DIGITS.sub("", normalized)
        if not digits:
            return None
        for outfall in candidates:
            if _NON_DIGITS.sub("", outfall.outfall_id) == digits:
                return OutfallMatch(outfall.id, outfall.outfall_id, OutfallMatchMethod.DIGITS_ONLY)

        digits_stripped = _strip_leading_zeros(digits)
        for outfall in candidates:
            if _strip_leading_zeros(_NON_DIGITS.sub("", outfall.outfall_id)) == digits_stripped:
                return OutfallMatch(outfall.id, outfall.outfall_id, OutfallMatchMethod.DIGITS_ONLY)
        return None
