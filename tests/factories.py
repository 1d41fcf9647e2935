"""Record factories and collaborator fakes shared by the test modules."""

from typing import Any, Iterable

from content_mirror.errors import StoreError, UpstreamFetchError
from content_mirror.ingestion.contentful_client import UpstreamClient
from content_mirror.models.record import Record, RecordKind
from content_mirror.storage.record_store import InMemoryRecordStore
from content_mirror.sync.models import DeltaBatch, SyncQuery


def link(target_id: str, link_type: str = "Entry") -> dict[str, Any]:
    """Link placeholder in upstream wire shape."""
    return {"sys": {"type": "Link", "linkType": link_type, "id": target_id}}


def make_entry(
    record_id: str, fields: dict[str, dict[str, Any]] | None = None, content_type: str = "post"
) -> Record:
    return Record(id=record_id, kind=RecordKind.ENTRY, content_type=content_type, fields=fields or {})


def make_asset(record_id: str, fields: dict[str, dict[str, Any]] | None = None) -> Record:
    if fields is None:
        fields = {"file": {"en-US": {"url": f"//images.example.com/{record_id}.png"}}}
    return Record(id=record_id, kind=RecordKind.ASSET, fields=fields)


class ScriptedUpstream(UpstreamClient):
    """Upstream fake returning scripted batches; the last one repeats."""

    def __init__(self, responses: Iterable[DeltaBatch | Exception]):
        self.responses = list(responses)
        self.queries: list[SyncQuery] = []

    def sync(self, query: SyncQuery) -> DeltaBatch:
        self.queries.append(query)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingStore(InMemoryRecordStore):
    """In-memory store that records mutations and can be told to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, list]] = []
        self.fail_on: set[str] = set()

    @property
    def mutation_count(self) -> int:
        return len(self.calls)

    def _check(self, name: str, items: Iterable) -> list:
        items = list(items)
        self.calls.append((name, items))
        if name in self.fail_on:
            raise StoreError(f"simulated {name} failure")
        return items

    def store_entries(self, records: Iterable[Record]) -> None:
        super().store_entries(self._check("store_entries", records))

    def store_assets(self, records: Iterable[Record]) -> None:
        super().store_assets(self._check("store_assets", records))

    def remove_by_ids(self, ids: Iterable[str]) -> None:
        super().remove_by_ids(self._check("remove_by_ids", ids))


def network_error() -> UpstreamFetchError:
    return UpstreamFetchError("simulated network failure", ConnectionError("unreachable"))
