from schemas.sync import OfflineAction, OfflineActionType
from services.offline_queue import OfflineActionQueue


def _status_action(unit_id: str) -> OfflineAction:
    return OfflineAction(type=OfflineActionType.UPDATE_STATUS, payload={"id": unit_id, "status": "ACTIVE"})


def test_enqueue_preserves_fifo_order(local_store):
    queue = OfflineActionQueue(local_store)
    actions = [queue.enqueue(_status_action(unit_id)) for unit_id in ("A1", "A2", "A3")]

    assert [action.id for action in queue.snapshot()] == [action.id for action in actions]
    assert len(queue) == 3


def test_retain_keeps_failures_ahead_of_newer_actions(local_store):
    queue = OfflineActionQueue(local_store)
    a1, a2, a3 = (queue.enqueue(_status_action(unit_id)) for unit_id in ("A1", "A2", "A3"))
    processed = queue.snapshot()

    # Arrives while the batch is being replayed
    a4 = queue.enqueue(_status_action("A4"))

    remaining = queue.retain(processed, [a2])
    assert [action.id for action in remaining] == [a2.id, a4.id]
    assert [action.id for action in queue.snapshot()] == [a2.id, a4.id]


def test_queue_survives_a_new_store_instance(local_store):
    from services.local_store import LocalCacheStore

    OfflineActionQueue(local_store).enqueue(_status_action("A1"))
    reopened = OfflineActionQueue(LocalCacheStore(local_store.data_dir))

    assert [action.payload["id"] for action in reopened.snapshot()] == ["A1"]
