from typing import Dict, Any, List, Optional, Set
from datetime import datetime, timedelta, timezone

import httpx
import logging
from cryptography.fernet import InvalidToken
from sqlalchemy.orm import Session

from leadtime_sync.config import settings
from leadtime_sync.connectors.base import BaseConnector, Candidates, as_utc
from leadtime_sync.connectors.registry import get_connector_class
from leadtime_sync.constants.sync_errors import explain_error
from leadtime_sync.exceptions import ConfigurationError, SyncInProgressError
from leadtime_sync.models.external_source import ExternalSourceConfig, ProjectMapping
from leadtime_sync.models.sync_run import SyncRun
from leadtime_sync.services.reconciler import ReconciliationService, ReconcileOutcome
from leadtime_sync.services.stores import ConfigStore, EventStore, ProjectStore
from leadtime_sync.utils.encrypt import decrypt_data, decrypt_optional

log = logging.getLogger(__name__)

# Ids of external sources with a pass in progress (one writer per source at a time)
_active_source_ids: Set[int] = set()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_stats() -> Dict[str, int]:
    return {
        "records_fetched": 0,
        "created": 0,
        "updated": 0,
        "unchanged": 0,
        "skipped": 0,
        "records_failed": 0,
        "mappings_failed": 0,
    }


_OUTCOME_STATS = {
    ReconcileOutcome.CREATED: "created",
    ReconcileOutcome.UPDATED: "updated",
    ReconcileOutcome.UNCHANGED: "unchanged",
    ReconcileOutcome.SKIPPED: "skipped",
}


class SyncService:
    """
    Orchestrates sync passes: for each active external source, fetch every project
    mapping through the matching source adapter and reconcile the records into the
    event store.

    Failures are isolated at the narrowest scope. Bad records and failing mappings
    are skipped; a source that cannot be dispatched at all fails on its own and
    keeps its last_sync_at.
    """

    def __init__(
        self,
        db: Session,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        self.db = db
        self.client = client
        self.timeout = timeout or settings.http_timeout_seconds
        self.config_store = ConfigStore(db)
        self.reconciliation_service = ReconciliationService(EventStore(db), ProjectStore(db))

    def build_connector(self, config: ExternalSourceConfig) -> BaseConnector:
        """Resolve and instantiate the adapter for a source. Raises ConfigurationError."""
        connector_class = get_connector_class(config.type)

        try:
            token = decrypt_data(config.token) if config.token else None
            api_key = decrypt_optional(config.api_key)
        except InvalidToken:
            raise ConfigurationError(f"Credentials of source '{config.name}' cannot be decrypted")

        return connector_class(
            {
                "name": config.name,
                "base_url": str(config.base_url),
                "username": config.username,
                "token": token,
                "api_key": api_key,
                "timeout": self.timeout,
            },
            client=self.client,
        )

    def is_due(self, config: ExternalSourceConfig, now: Optional[datetime] = None) -> bool:
        """Whether sync_frequency hours have elapsed since the source's last completed pass."""
        if config.last_sync_at is None:
            return True
        now = as_utc(now or utcnow())
        return now - as_utc(config.last_sync_at) >= timedelta(hours=config.sync_frequency)

    async def sync_one(self, config: ExternalSourceConfig, trigger_type: str = 'manual') -> Dict[str, int]:
        """
        Run one pass over a single external source.
        Sets last_sync_at when the pass completes, including partial per-mapping or
        per-record failures. Any exception raised here is a fatal failure for this
        source and leaves last_sync_at unchanged.
        """
        source_id = config.id
        source_name = config.name
        if source_id in _active_source_ids:
            raise SyncInProgressError(source_id)
        _active_source_ids.add(source_id)

        stats = _new_stats()
        sync_run = SyncRun(
            source_id=source_id,
            source_name=source_name,
            trigger_type=trigger_type,
            start_time=utcnow(),
            status='running'
        )
        self.db.add(sync_run)
        self.db.commit()

        connector = None
        try:
            log.info(f"Starting sync of source '{source_name}' ({config.type}, run_id: {sync_run.id})")
            connector = self.build_connector(config)
            connector.validate_credentials()
            mappings: List[ProjectMapping] = list(config.project_mappings)

            for mapping in mappings:
                await self._sync_mapping(connector, source_name, mapping.external_id, mapping.internal_project_id, stats)

            stats["records_failed"] += connector.malformed_records
            self.config_store.mark_synced(config, utcnow())

            partial = stats["records_failed"] or stats["mappings_failed"]
            self._finish_run(sync_run, stats, 'partial' if partial else 'completed')
            log.info(
                f"Sync of source '{source_name}' {'partially ' if partial else ''}completed: "
                f"{stats['created']} created, {stats['updated']} updated, {stats['unchanged']} unchanged, "
                f"{stats['skipped']} skipped, {stats['records_failed']} failed records, "
                f"{stats['mappings_failed']} failed mappings"
            )
            return stats

        except Exception as e:
            self.db.rollback()
            error_message = explain_error(e)
            log.error(f"Sync of source '{source_name}' failed - {error_message}")
            log.debug("Sync failure details", exc_info=True)
            if connector is not None:
                stats["records_failed"] += connector.malformed_records
            self._finish_run(sync_run, stats, 'failed', error_message)
            raise

        finally:
            _active_source_ids.discard(source_id)
            if connector is not None:
                await connector.aclose()

    async def _sync_mapping(
        self,
        connector: BaseConnector,
        source_name: str,
        external_id: str,
        project_id: int,
        stats: Dict[str, int]
    ) -> None:
        """
        Fetch and reconcile one mapping, one record stream at a time. A failing fetch
        ends the mapping but keeps what earlier streams already stored.
        """
        try:
            streams = connector.record_streams(external_id, project_id)
        except Exception as e:
            stats["mappings_failed"] += 1
            log.error(f"Fetch failed for source '{source_name}' mapping {external_id}: {explain_error(e)}")
            return

        for fetch in streams:
            try:
                candidates = await fetch()
            except Exception as e:
                stats["mappings_failed"] += 1
                log.error(f"Fetch failed for source '{source_name}' mapping {external_id}: {explain_error(e)}")
                return
            stats["records_fetched"] += len(candidates)
            self._reconcile_all(candidates, source_name, external_id, stats)

    def _reconcile_all(self, candidates: Candidates, source_name: str, external_id: str, stats: Dict[str, int]) -> None:
        for candidate, key in candidates:
            try:
                outcome = self.reconciliation_service.reconcile(candidate, key)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                stats["records_failed"] += 1
                log.error(f"Failed to store record {key} from source '{source_name}' mapping {external_id}: {explain_error(e)}")
                continue
            stats[_OUTCOME_STATS[outcome]] += 1

    def _finish_run(self, sync_run: SyncRun, stats: Dict[str, int], status: str, error_message: Optional[str] = None) -> None:
        sync_run.end_time = utcnow()
        sync_run.status = status
        sync_run.records_fetched = stats["records_fetched"]
        sync_run.events_created = stats["created"]
        sync_run.events_updated = stats["updated"]
        sync_run.events_unchanged = stats["unchanged"] + stats["skipped"]
        sync_run.records_failed = stats["records_failed"]
        sync_run.mappings_failed = stats["mappings_failed"]
        sync_run.error_message = error_message
        self.db.commit()

    async def sync_all(self, trigger_type: str = 'manual', respect_frequency: bool = False) -> Dict[str, Any]:
        """
        Run one sync pass over every active source, in load order.
        A failing source is logged and does not stop the others.
        """
        configs = self.config_store.find_active()
        summary: Dict[str, Any] = {
            "sources": 0,
            "failed_sources": 0,
            "skipped_sources": 0,
            **_new_stats(),
        }
        log.info(f"Starting sync pass over {len(configs)} active source(s) (trigger: {trigger_type})")

        for config in configs:
            if respect_frequency and not self.is_due(config):
                log.info(f"Source '{config.name}' synced within the last {config.sync_frequency}h, skipping")
                summary["skipped_sources"] += 1
                continue
            summary["sources"] += 1
            try:
                stats = await self.sync_one(config, trigger_type=trigger_type)
            except SyncInProgressError:
                log.warning(f"Source '{config.name}' is already syncing, skipping")
                summary["sources"] -= 1
                summary["skipped_sources"] += 1
                continue
            except Exception:
                summary["failed_sources"] += 1
                continue
            for key, value in stats.items():
                summary[key] += value

        log.info(
            f"Sync pass finished: {summary['sources']} synced, {summary['failed_sources']} failed, "
            f"{summary['skipped_sources']} skipped"
        )
        return summary
