"""Upstream client interface and Contentful sync API implementation."""

from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import parse_qs, urlparse

import requests
import structlog
from pydantic import ValidationError
from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout

from content_mirror.errors import UpstreamFetchError
from content_mirror.models.record import Record, RecordKind
from content_mirror.sync.models import DeltaBatch, SyncQuery
from content_mirror.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()

TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class UpstreamClient(ABC):
    """Performs one sync round against the remote content repository."""

    @abstractmethod
    def sync(self, query: SyncQuery) -> DeltaBatch:
        """Fetch everything changed since the query's cursor.

        Args:
            query: Initial or delta continuation query

        Returns:
            DeltaBatch with upserts, deletions and the new cursor

        Raises:
            UpstreamFetchError: If the remote repository cannot be read
        """


def _is_transient(error: Exception) -> bool:
    if isinstance(error, (ConnectionError, Timeout)):
        return True
    if isinstance(error, HTTPError) and error.response is not None:
        return error.response.status_code in TRANSIENT_STATUS_CODES
    return False


def _extract_sync_token(url: str) -> str:
    tokens = parse_qs(urlparse(url).query).get("sync_token")
    if not tokens or not tokens[0]:
        raise UpstreamFetchError(f"Sync URL carries no sync_token: {url}")
    return tokens[0]


class ContentfulClient(UpstreamClient):
    """Client for the Contentful Content Delivery sync endpoint."""

    def __init__(
        self,
        space_id: str,
        access_token: str,
        host: str = "cdn.contentful.com",
        environment: str = "master",
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
    ):
        """
        Initialize Contentful client.

        Args:
            space_id: Space identifier
            access_token: Delivery (or preview) API access token
            host: API host, e.g. cdn.contentful.com or preview.contentful.com
            environment: Environment identifier
            timeout_seconds: Timeout for each HTTP request
            max_retries: Transport retries for connection errors, timeouts and 429/5xx
            retry_base_delay: Initial backoff delay in seconds
        """
        if not space_id or not access_token:
            raise ValueError("'space_id' and 'access_token' are required")

        self._space_id = space_id
        self._environment = environment
        self._timeout = timeout_seconds
        self._sync_url = (
            f"https://{host}/spaces/{space_id}/environments/{environment}/sync"
        )
        self._session = requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {access_token}"})
        self._fetch_page = exponential_backoff_retry(
            max_retries=max_retries,
            base_delay=retry_base_delay,
            max_delay=60.0,
            exceptions=(RequestException,),
            should_retry=_is_transient,
        )(self._request_page)

        log.info(
            "contentful_client_initialized",
            space_id=space_id,
            environment=environment,
            host=host,
        )

    def sync(self, query: SyncQuery) -> DeltaBatch:
        """
        Run one sync round, following pagination until the next sync URL.

        Args:
            query: Initial or delta continuation query. Link expansion must be
                disabled; links are resolved locally.

        Returns:
            DeltaBatch with the round's changes and the new cursor

        Raises:
            ValueError: If the query asks for server-side link expansion
            UpstreamFetchError: If any page cannot be fetched or parsed
        """
        if query.resolve_links:
            raise ValueError("ContentfulClient does not expand links; use ReferenceResolver")

        log.info("fetching_sync_round", initial=query.initial, content_type=query.content_type)

        params = self._initial_params(query) if query.initial else {"sync_token": query.sync_token}

        entries: dict[str, Record] = {}
        assets: dict[str, Record] = {}
        deleted_entries: dict[str, None] = {}
        deleted_assets: dict[str, None] = {}
        page_count = 0

        try:
            while True:
                page = self._fetch_page(params)
                page_count += 1

                for item in page.get("items", []):
                    self._apply_item(item, entries, assets, deleted_entries, deleted_assets)

                if page.get("nextPageUrl"):
                    params = {"sync_token": _extract_sync_token(page["nextPageUrl"])}
                elif page.get("nextSyncUrl"):
                    next_sync_token = _extract_sync_token(page["nextSyncUrl"])
                    break
                else:
                    raise UpstreamFetchError("Sync response has neither nextPageUrl nor nextSyncUrl")

        except RequestException as e:
            log.error("failed_to_fetch_sync_round", initial=query.initial, error=str(e))
            raise UpstreamFetchError(f"Failed to fetch sync round: {e}", e) from e

        batch = DeltaBatch(
            next_sync_token=next_sync_token,
            entries=list(entries.values()),
            assets=list(assets.values()),
            deleted_entry_ids=list(deleted_entries),
            deleted_asset_ids=list(deleted_assets),
        )

        log.info(
            "sync_round_fetched",
            pages=page_count,
            entries=len(batch.entries),
            assets=len(batch.assets),
            deleted_entries=len(batch.deleted_entry_ids),
            deleted_assets=len(batch.deleted_asset_ids),
        )
        return batch

    def _initial_params(self, query: SyncQuery) -> dict[str, str]:
        params = {"initial": "true"}
        if query.content_type:
            # content_type filtering requires type=Entry and only works on the initial request
            params["type"] = "Entry"
            params["content_type"] = query.content_type
        return params

    def _request_page(self, params: dict[str, Any]) -> dict[str, Any]:
        response = self._session.get(self._sync_url, params=params, timeout=self._timeout)
        response.raise_for_status()
        return response.json()

    def _apply_item(
        self,
        item: dict[str, Any],
        entries: dict[str, Record],
        assets: dict[str, Record],
        deleted_entries: dict[str, None],
        deleted_assets: dict[str, None],
    ) -> None:
        """Fold one sync item into the round's state; later items win."""
        sys = item.get("sys", {})
        item_type = sys.get("type")
        item_id = sys.get("id")
        if not item_id:
            raise UpstreamFetchError(f"Sync item of type {item_type!r} has no id")

        if item_type == "Entry":
            deleted_entries.pop(item_id, None)
            entries[item_id] = self._convert_to_record(item, RecordKind.ENTRY)
        elif item_type == "Asset":
            deleted_assets.pop(item_id, None)
            assets[item_id] = self._convert_to_record(item, RecordKind.ASSET)
        elif item_type == "DeletedEntry":
            entries.pop(item_id, None)
            deleted_entries[item_id] = None
        elif item_type == "DeletedAsset":
            assets.pop(item_id, None)
            deleted_assets[item_id] = None
        else:
            log.warning("unknown_sync_item_type", item_type=item_type, item_id=item_id)

    def _convert_to_record(self, item: dict[str, Any], kind: RecordKind) -> Record:
        """
        Convert a sync API item to a Record.

        Raises:
            UpstreamFetchError: If the item does not form a valid record
        """
        sys = item["sys"]
        content_type = None
        if kind is RecordKind.ENTRY:
            content_type = sys.get("contentType", {}).get("sys", {}).get("id")

        try:
            return Record(
                id=sys["id"],
                kind=kind,
                content_type=content_type,
                revision=sys.get("revision"),
                created_at=sys.get("createdAt"),
                updated_at=sys.get("updatedAt"),
                fields=item.get("fields", {}),
            )
        except ValidationError as e:
            log.error("invalid_sync_item", item_id=sys.get("id"), kind=kind.value, error=str(e))
            raise UpstreamFetchError(f"Invalid {kind.value} {sys.get('id')}: {e}", e) from e
