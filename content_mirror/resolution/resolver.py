"""Reference resolution for mirrored entries."""

from typing import Any, Iterable, Mapping

import structlog

from content_mirror.errors import ResolutionError
from content_mirror.models.record import Link, Record, RecordKind, ResolvedRecord, UnresolvedLink

log = structlog.stdlib.get_logger()

RecordKey = tuple[RecordKind, str]
LookupMap = Mapping[RecordKey, Record]


def create_lookup_map(records: Iterable[Record]) -> dict[RecordKey, Record]:
    """Index records by kind and identifier.

    Ids are unique within a kind only, so an entry and an asset may share one.
    Later records with the same kind and id win.
    """
    return {(record.kind, record.id): record for record in records}


class ReferenceResolver:
    """Replaces link placeholders with the records they point at.

    Resolution walks the link graph depth-first. A link back to a record that
    is already on the current chain becomes an ``UnresolvedLink`` with reason
    ``cycle``; a link to an unknown record becomes one with reason
    ``missing``. Field values stay grouped by locale.
    """

    def resolve(self, entries: Iterable[Record], lookup: LookupMap) -> list[ResolvedRecord]:
        """
        Resolve links in a batch of entries.

        Args:
            entries: Entries to resolve; only these appear at the top level
            lookup: Every record that may be a link target (entries and assets)

        Returns:
            Resolved entries in input order

        Raises:
            ResolutionError: If a link value is malformed or the link graph is
                too deep to walk
        """
        entries = list(entries)
        log.debug("resolving_entries", entry_count=len(entries), lookup_size=len(lookup))

        try:
            return [self._resolve_record(entry, lookup, set()) for entry in entries]
        except RecursionError as e:
            log.error("resolution_too_deep", entry_count=len(entries))
            raise ResolutionError("Link graph is too deep to resolve", e) from e

    def _resolve_record(
        self, record: Record, lookup: LookupMap, chain: set[RecordKey]
    ) -> ResolvedRecord:
        key = (record.kind, record.id)
        chain.add(key)
        try:
            fields = {
                name: {
                    locale: self._resolve_value(value, lookup, chain)
                    for locale, value in locales.items()
                }
                for name, locales in record.fields.items()
            }
        finally:
            chain.discard(key)

        return ResolvedRecord(
            id=record.id,
            kind=record.kind,
            content_type=record.content_type,
            fields=fields,
        )

    def _resolve_value(self, value: Any, lookup: LookupMap, chain: set[RecordKey]) -> Any:
        if isinstance(value, list):
            return [self._resolve_value(item, lookup, chain) for item in value]

        link = Link.from_value(value)
        if link is None:
            return value
        return self._resolve_link(link, lookup, chain)

    def _resolve_link(
        self, link: Link, lookup: LookupMap, chain: set[RecordKey]
    ) -> ResolvedRecord | UnresolvedLink:
        key = (link.link_type, link.id)
        if key in chain:
            log.debug("link_cycle_detected", link_type=link.link_type.value, target_id=link.id)
            return UnresolvedLink(link_type=link.link_type, id=link.id, reason="cycle")

        target = lookup.get(key)
        if target is None:
            log.debug("link_target_missing", link_type=link.link_type.value, target_id=link.id)
            return UnresolvedLink(link_type=link.link_type, id=link.id, reason="missing")

        return self._resolve_record(target, lookup, chain)
