import logging
from datetime import datetime
from typing import Optional, Dict, List

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.models import Snapshot

logger = logging.getLogger("fpl_xpts")


class DataCache:
    """
    Time-boxed store for FPL feed data.

    Owned by the data provider. Engine functions never read it; they take the
    Snapshot built from it as an argument.
    """

    def __init__(self, cache_duration: Optional[int] = None):
        self.bootstrap_data: Optional[Dict] = None
        self.fixtures_data: Optional[List] = None
        self.snapshot: Optional[Snapshot] = None
        self.last_update: Optional[datetime] = None
        self.fixtures_last_update: Optional[datetime] = None
        self.snapshot_last_update: Optional[datetime] = None
        if cache_duration is None:
            cache_duration = MODEL_CONFIG["provider"].cache_duration
        self.cache_duration = cache_duration

    def _expired(self, stamp: Optional[datetime]) -> bool:
        return stamp is None or (datetime.now() - stamp).total_seconds() > self.cache_duration

    def is_stale(self) -> bool:
        return self._expired(self.last_update)

    def fixtures_is_stale(self) -> bool:
        return self._expired(self.fixtures_last_update)

    def snapshot_is_stale(self) -> bool:
        return self.snapshot is None or self._expired(self.snapshot_last_update)

    def set_bootstrap(self, data: Dict):
        self.bootstrap_data = data
        self.last_update = datetime.now()

    def set_fixtures(self, data: List):
        self.fixtures_data = data
        self.fixtures_last_update = datetime.now()

    def set_snapshot(self, snapshot: Snapshot):
        self.snapshot = snapshot
        self.snapshot_last_update = datetime.now()
        logger.info(f"Snapshot cached: {len(snapshot.players)} players, {len(snapshot.teams)} teams, GW{snapshot.current_gw}")

    def clear(self):
        self.bootstrap_data = None
        self.fixtures_data = None
        self.snapshot = None
        self.last_update = None
        self.fixtures_last_update = None
        self.snapshot_last_update = None


cache = DataCache()
