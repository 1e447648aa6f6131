"""
Offline action queue: the FIFO log of writes that have not reached the remote store.
"""
import logging
from typing import Iterable

from schemas.sync import OfflineAction
from services.local_store import LocalCacheStore

log = logging.getLogger(__name__)


class OfflineActionQueue:
    def __init__(self, store: LocalCacheStore, warn_size: int = 500):
        self.store = store
        self.warn_size = warn_size

    def __len__(self) -> int:
        return len(self.store.read_queue())

    def snapshot(self) -> list[OfflineAction]:
        return self.store.read_queue()

    def enqueue(self, action: OfflineAction) -> OfflineAction:
        with self.store.lock:
            actions = self.store.read_queue()
            actions.append(action)
            self.store.write_queue(actions)

        log.info("Queued %s action %s (%s pending)", action.type.value, action.id, len(actions))
        if len(actions) >= self.warn_size:
            log.warning("Offline queue holds %s actions; remote store may be unreachable", len(actions))
        return action

    def retain(self, processed: Iterable[OfflineAction], failed: Iterable[OfflineAction]) -> list[OfflineAction]:
        """
        Replace the processed actions with the ones that failed, keeping their order.

        Actions enqueued after `processed` was taken are kept behind the failures.
        """
        processed_ids = {action.id for action in processed}
        with self.store.lock:
            newer = [action for action in self.store.read_queue() if action.id not in processed_ids]
            remaining = list(failed) + newer
            self.store.write_queue(remaining)
        return remaining
