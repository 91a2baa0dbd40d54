"""Tests for LiveStateStore and its SharedState publishing."""

from equipsync.common.state import SharedState, get_live_state, set_live_state, set_service_health, get_service_health
from equipsync.services.binding.live_state import CommStatus, LiveStateStore


def test_get_creates_default_entry():
    store = LiveStateStore()

    state = store.get("circuits", 5, "Pool Light")

    assert state.is_on is False
    assert state.comm_status == CommStatus.OK
    assert store.get("circuits", 5) is state
    assert store.find("pumps", 5) is None


def test_publish_only_on_change():
    published = []
    store = LiveStateStore(publish=published.append)

    store.set_on("circuits", 1, False)
    store.set_on("circuits", 1, True)
    store.set_on("circuits", 1, True)
    store.set_comm_status("circuits", 1, CommStatus.FAULT)

    assert len(published) == 2
    assert published[-1] == {"circuits": [{"id": 1, "name": "", "isOn": True, "commStatus": 1}]}


def test_publish_failure_does_not_raise():
    def broken(snapshot):
        raise OSError("disk full")

    store = LiveStateStore(publish=broken)
    store.set_on("circuits", 1, True)

    assert store.get("circuits", 1).is_on is True


def test_remove():
    store = LiveStateStore()
    store.get("circuits", 1)
    store.remove("circuits", 1)

    assert store.snapshot() == {"circuits": []}


def test_snapshot_round_trips_through_shared_state(state_dir):
    store = LiveStateStore(publish=set_live_state)
    store.set_on("circuits", 5, True)

    SharedState.clear_cache()
    published = get_live_state()

    assert published["circuits"] == [{"id": 5, "name": "", "isOn": True, "commStatus": 0}]
    assert "_updated_at" in published
    assert (state_dir / "live_state.json").exists()


def test_service_health(state_dir):
    set_service_health("binding", {"status": "running", "is_healthy": True})

    SharedState.clear_cache()
    health = get_service_health()

    assert health["binding"]["status"] == "running"
    assert "updated_at" in health["binding"]
    assert SharedState.delete("service_health") is True
    assert SharedState.delete("service_health") is False
