import re

import pytest

from metaldeck.services import SEED_ALERTS, AlertRegistry, AlertStatus, MetalKind


def test_create_pending_alert(registry):
    alert = registry.create(MetalKind.GOLD, 2420)
    assert alert.status is AlertStatus.PENDING
    assert alert.metal is MetalKind.GOLD
    assert alert.target_price == 2420
    assert registry.list() == [alert]


@pytest.mark.parametrize("target", [0, -1, "", "soon", None])
def test_bad_target_is_ignored(registry, target):
    assert registry.create(MetalKind.GOLD, target) is None
    assert len(registry) == 0


def test_form_text_is_accepted(registry):
    assert registry.create("silver", " 31.5 ").target_price == 31.5


def test_newest_first(registry):
    first = registry.create(MetalKind.GOLD, 2420)
    second = registry.create(MetalKind.PLATINUM, 1500)
    assert [a.id for a in registry.list()] == [second.id, first.id]


def test_ids_are_unique(registry):
    ids = {registry.create(MetalKind.SILVER, 30 + i).id for i in range(200)}
    assert len(ids) == 200
    assert all(re.fullmatch(r"AL-[0-9A-F]{8}", i) for i in ids)


def test_list_is_a_copy(registry):
    registry.create(MetalKind.GOLD, 2420)
    registry.list().clear()
    assert len(registry) == 1


def test_on_create_hook():
    created = []
    registry = AlertRegistry(on_create=created.append)
    alert = registry.create(MetalKind.GOLD, 2500)
    registry.create(MetalKind.GOLD, 0)
    assert created == [alert]


def test_seeded_registry_keeps_order_and_avoids_seed_ids():
    registry = AlertRegistry(SEED_ALERTS)
    assert [a.id for a in registry.list()] == ["AL-1001", "AL-1002"]
    assert registry.list()[1].status is AlertStatus.COMPLETED

    alert = registry.create(MetalKind.GOLD, 2500)
    assert registry.list()[0] == alert
    assert alert.id not in {"AL-1001", "AL-1002"}
    assert len(registry) == 3
