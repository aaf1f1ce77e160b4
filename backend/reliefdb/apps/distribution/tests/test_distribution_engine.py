from __future__ import annotations

from datetime import datetime

import pytest

from reliefdb import errors
from reliefdb.apps.accounts import models as account_models
from reliefdb.apps.beneficiaries import models as beneficiary_models
from reliefdb.apps.calamities import models as calamity_models
from reliefdb.apps.distribution import models as distribution_models
from reliefdb.apps.distribution import repository as distribution_repository
from reliefdb.apps.distribution import services as distribution_services
from reliefdb.apps.distribution.router import router as distribution_router
from reliefdb.apps.distribution.schemas import DistributionLineCreate
from reliefdb.apps.events.broker import broker
from reliefdb.apps.inventory import models as inventory_models
from reliefdb.apps.inventory import services as inventory_services

Kind = inventory_models.InventoryTransactionTypeEnum


def _seed(db):
    user = account_models.User(username="mswd.staff", full_name="Maria Santos")
    beneficiary = beneficiary_models.Beneficiary(
        beneficiary_code="BEN-2024-0001",
        full_name="Juan Dela Cruz",
        barangay="San Roque",
        family_size=5,
    )
    db.add_all([user, beneficiary])
    db.commit()
    return user, beneficiary


def _create_item(db, name, quantity, unit="pack"):
    item = inventory_models.InventoryItem(name=name, category="Food", quantity=quantity, unit=unit)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def _create_beneficiary(db, code, name):
    beneficiary = beneficiary_models.Beneficiary(beneficiary_code=code, full_name=name)
    db.add(beneficiary)
    db.commit()
    return beneficiary


def _quantity(db, item_id):
    return inventory_services.get_item(db, item_id).quantity


def _ledger(db, item_id=None):
    query = db.query(inventory_models.InventoryTransaction)
    if item_id is not None:
        query = query.filter(inventory_models.InventoryTransaction.inventory_item_id == item_id)
    return query.order_by(inventory_models.InventoryTransaction.id).all()


def _distribute(db, user, beneficiary, lines, **kwargs):
    return distribution_services.create_distribution(
        db,
        beneficiary_id=beneficiary.id,
        calamity_id=kwargs.pop("calamity_id", None),
        distributed_by_user_id=user.id,
        items=[DistributionLineCreate(inventory_item_id=item_id, quantity=qty) for item_id, qty in lines],
        **kwargs,
    )


def test_create_distribution_decrements_stock_and_writes_ledger(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100, unit="sack")

    distribution = _distribute(db_session, user, beneficiary, [(rice.id, 30)], notes="Typhoon relief")

    assert _quantity(db_session, rice.id) == 70
    assert len(distribution.items) == 1
    assert distribution.items[0].item_name == "Rice (5kg)"
    assert distribution.items[0].unit == "sack"
    assert distribution.beneficiary_name == "Juan Dela Cruz"
    assert distribution.beneficiary_code == "BEN-2024-0001"
    assert distribution.distributed_by_name == "Maria Santos"
    assert distribution.total_quantity == 30

    [entry] = _ledger(db_session, rice.id)
    assert entry.transaction_type == Kind.DISTRIBUTION
    assert (entry.quantity_change, entry.quantity_before, entry.quantity_after) == (-30, 100, 70)
    assert entry.reference_id == distribution.id
    assert entry.reference_type == "Distribution"
    assert entry.user_id == user.id
    assert entry.notes == f"Distribution to beneficiary ID: {beneficiary.id}"


def test_void_restores_stock_and_removes_distribution(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)
    distribution = _distribute(db_session, user, beneficiary, [(rice.id, 30)])

    restored = distribution_services.void_distribution(
        db_session,
        distribution_id=distribution.id,
        actor_user_id=user.id,
    )

    assert [(line.inventory_item_id, line.quantity) for line in restored] == [(rice.id, 30)]
    assert _quantity(db_session, rice.id) == 100

    entries = _ledger(db_session, rice.id)
    assert len(entries) == 2
    void_entry = entries[1]
    assert void_entry.transaction_type == Kind.VOID_DISTRIBUTION
    assert (void_entry.quantity_change, void_entry.quantity_before, void_entry.quantity_after) == (30, 70, 100)
    assert void_entry.reference_id == distribution.id
    assert void_entry.notes == f"Distribution voided - ID: {distribution.id}"
    assert void_entry.transaction_type.value == "VoidDistribution"

    with pytest.raises(errors.NotFound):
        distribution_repository.get_distribution(db_session, distribution.id)
    assert db_session.query(distribution_models.DistributionLineItem).count() == 0


def test_over_distribution_is_recorded_as_negative_stock(db_session):
    user, beneficiary = _seed(db_session)
    water = _create_item(db_session, "Bottled Water (1L)", 100)

    _distribute(db_session, user, beneficiary, [(water.id, 150)])

    assert _quantity(db_session, water.id) == -50
    [entry] = _ledger(db_session, water.id)
    assert (entry.quantity_before, entry.quantity_after) == (100, -50)


def test_distribution_without_line_items_leaves_inventory_untouched(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    distribution = _distribute(db_session, user, beneficiary, [], notes="Cash assistance")

    assert distribution.items == []
    assert distribution.total_quantity == 0
    assert distribution_repository.get_distribution(db_session, distribution.id).notes == "Cash assistance"
    assert _ledger(db_session) == []
    assert _quantity(db_session, rice.id) == 100


def test_failure_after_header_insert_rolls_everything_back(db_session, monkeypatch):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)
    sardines = _create_item(db_session, "Canned Sardines", 50)

    original_append = inventory_services.append_transaction
    calls = {"count": 0}

    def _flaky_append(db, entry):
        calls["count"] += 1
        if calls["count"] == 2:
            raise errors.StorageError("connection lost")
        return original_append(db, entry)

    monkeypatch.setattr(inventory_services, "append_transaction", _flaky_append)

    with pytest.raises(errors.StorageError):
        _distribute(db_session, user, beneficiary, [(rice.id, 10), (sardines.id, 5)])

    assert _quantity(db_session, rice.id) == 100
    assert _quantity(db_session, sardines.id) == 50
    assert db_session.query(distribution_models.Distribution).count() == 0
    assert db_session.query(distribution_models.DistributionLineItem).count() == 0
    assert _ledger(db_session) == []
    assert broker.history() == []


def test_unknown_inventory_item_is_rejected_before_any_write(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    with pytest.raises(errors.ValidationError) as excinfo:
        _distribute(db_session, user, beneficiary, [(rice.id, 10), (9999, 1), (9998, 2)])

    assert excinfo.value.message == "Inventory items do not exist: 9998, 9999"
    assert _quantity(db_session, rice.id) == 100
    assert db_session.query(distribution_models.Distribution).count() == 0
    assert db_session.query(distribution_models.DistributionLineItem).count() == 0
    assert _ledger(db_session) == []


def test_unknown_actor_is_rejected_before_any_write(db_session):
    _, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    with pytest.raises(errors.ValidationError):
        distribution_services.create_distribution(
            db_session,
            beneficiary_id=beneficiary.id,
            calamity_id=None,
            distributed_by_user_id=777,
            items=[DistributionLineCreate(inventory_item_id=rice.id, quantity=1)],
        )

    assert _quantity(db_session, rice.id) == 100
    assert db_session.query(distribution_models.Distribution).count() == 0
    assert _ledger(db_session) == []


def test_void_with_unknown_actor_changes_nothing(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)
    distribution = _distribute(db_session, user, beneficiary, [(rice.id, 10)])

    with pytest.raises(errors.ValidationError):
        distribution_services.void_distribution(db_session, distribution_id=distribution.id, actor_user_id=777)

    assert _quantity(db_session, rice.id) == 90
    assert len(_ledger(db_session, rice.id)) == 1
    assert distribution_repository.get_distribution(db_session, distribution.id).id == distribution.id


@pytest.mark.parametrize("quantity", [0, -3])
def test_non_positive_line_quantity_is_rejected(db_session, quantity):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    with pytest.raises(errors.ValidationError):
        _distribute(db_session, user, beneficiary, [(rice.id, quantity)])

    assert _quantity(db_session, rice.id) == 100
    assert db_session.query(distribution_models.Distribution).count() == 0


def test_missing_beneficiary_or_calamity_is_rejected(db_session):
    user, _ = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    with pytest.raises(errors.ValidationError):
        distribution_services.create_distribution(
            db_session,
            beneficiary_id=404,
            calamity_id=None,
            distributed_by_user_id=user.id,
            items=[DistributionLineCreate(inventory_item_id=rice.id, quantity=1)],
        )
    beneficiary = db_session.query(beneficiary_models.Beneficiary).first()
    with pytest.raises(errors.ValidationError):
        distribution_services.create_distribution(
            db_session,
            beneficiary_id=beneficiary.id,
            calamity_id=404,
            distributed_by_user_id=user.id,
            items=[DistributionLineCreate(inventory_item_id=rice.id, quantity=1)],
        )

    assert _quantity(db_session, rice.id) == 100
    assert _ledger(db_session) == []


def test_create_then_void_conserves_stock(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 12)
    sardines = _create_item(db_session, "Canned Sardines", 3)
    noodles = _create_item(db_session, "Instant Noodles", 40)

    lines = [(rice.id, 5), (sardines.id, 8), (noodles.id, 40)]
    distribution = _distribute(db_session, user, beneficiary, lines)
    distribution_services.void_distribution(db_session, distribution_id=distribution.id)

    assert _quantity(db_session, rice.id) == 12
    assert _quantity(db_session, sardines.id) == 3
    assert _quantity(db_session, noodles.id) == 40


def test_ledger_chains_every_quantity_change(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 20)

    first = _distribute(db_session, user, beneficiary, [(rice.id, 7)])
    inventory_services.restock_item(db_session, inventory_item_id=rice.id, quantity=15, actor_user_id=user.id)
    _distribute(db_session, user, beneficiary, [(rice.id, 30)])
    distribution_services.void_distribution(db_session, distribution_id=first.id)
    inventory_services.set_item_quantity(db_session, inventory_item_id=rice.id, quantity=9, actor_user_id=user.id)

    entries = _ledger(db_session, rice.id)
    assert [entry.transaction_type for entry in entries] == [
        Kind.DISTRIBUTION,
        Kind.RESTOCK,
        Kind.DISTRIBUTION,
        Kind.VOID_DISTRIBUTION,
        Kind.SET_QUANTITY,
    ]
    expected_before = 20
    for entry in entries:
        assert entry.quantity_before == expected_before
        assert entry.quantity_after - entry.quantity_before == entry.quantity_change
        expected_before = entry.quantity_after
    assert expected_before == _quantity(db_session, rice.id) == 9


def test_void_missing_distribution_has_no_side_effects(db_session):
    _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    with pytest.raises(errors.NotFound):
        distribution_services.void_distribution(db_session, distribution_id=12345)

    assert _ledger(db_session) == []
    assert _quantity(db_session, rice.id) == 100
    assert broker.history() == []


def test_void_twice_reports_not_found(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)
    distribution = _distribute(db_session, user, beneficiary, [(rice.id, 10)])

    distribution_services.void_distribution(db_session, distribution_id=distribution.id)
    with pytest.raises(errors.NotFound):
        distribution_services.void_distribution(db_session, distribution_id=distribution.id)

    assert len(_ledger(db_session, rice.id)) == 2
    assert _quantity(db_session, rice.id) == 100


def test_reads_are_newest_first_and_stats_aggregate(db_session):
    user, beneficiary = _seed(db_session)
    other = _create_beneficiary(db_session, "BEN-2024-0002", "Ana Reyes")
    rice = _create_item(db_session, "Rice (5kg)", 100)
    sardines = _create_item(db_session, "Canned Sardines", 100)

    older = _distribute(
        db_session,
        user,
        beneficiary,
        [(rice.id, 2), (sardines.id, 3)],
        distribution_date=datetime(2024, 10, 1, 9, 0),
    )
    newer = _distribute(
        db_session,
        user,
        beneficiary,
        [(rice.id, 4)],
        distribution_date=datetime(2024, 11, 15, 14, 30),
    )
    _distribute(db_session, user, other, [(rice.id, 1)], distribution_date=datetime(2024, 12, 1, 8, 0))

    history = distribution_repository.list_distributions_for_beneficiary(db_session, beneficiary.id)
    assert [d.id for d in history] == [newer.id, older.id]
    assert [len(d.items) for d in history] == [1, 2]
    assert len(distribution_repository.list_distributions(db_session)) == 3

    stats = distribution_repository.get_distribution_stats(db_session, beneficiary.id)
    assert stats.distribution_count == 2
    assert stats.total_items_received == 9
    assert stats.last_distribution_date.replace(tzinfo=None) == datetime(2024, 11, 15, 14, 30)


def test_stats_for_beneficiary_without_distributions(db_session):
    _, beneficiary = _seed(db_session)

    stats = distribution_repository.get_distribution_stats(db_session, beneficiary.id)

    assert stats.distribution_count == 0
    assert stats.total_items_received == 0
    assert stats.last_distribution_date is None


def _create_calamity_with_kit(db, kit):
    calamity = calamity_models.Calamity(name="Typhoon Kristine", description="Region V landfall")
    calamity.items = [
        calamity_models.CalamityItem(inventory_item_id=item_id, standard_quantity=qty) for item_id, qty in kit
    ]
    db.add(calamity)
    db.commit()
    db.refresh(calamity)
    return calamity


def test_kit_lines_come_from_calamity_standard_quantities(db_session):
    rice = _create_item(db_session, "Rice (5kg)", 100)
    sardines = _create_item(db_session, "Canned Sardines", 100)
    calamity = _create_calamity_with_kit(db_session, [(rice.id, 1), (sardines.id, 6)])

    lines = distribution_services.build_kit_lines(db_session, calamity.id)

    assert [(line.inventory_item_id, line.quantity) for line in lines] == [(rice.id, 1), (sardines.id, 6)]
    with pytest.raises(errors.NotFound):
        distribution_services.build_kit_lines(db_session, 404)


def test_batch_distribution_uses_kit_and_isolates_failures(db_session):
    user, beneficiary = _seed(db_session)
    other = _create_beneficiary(db_session, "BEN-2024-0002", "Ana Reyes")
    rice = _create_item(db_session, "Rice (5kg)", 100)
    sardines = _create_item(db_session, "Canned Sardines", 100)
    calamity = _create_calamity_with_kit(db_session, [(rice.id, 1), (sardines.id, 6)])

    result = distribution_services.create_batch_distributions(
        db_session,
        beneficiary_ids=[beneficiary.id, 404, other.id],
        calamity_id=calamity.id,
        distributed_by_user_id=user.id,
    )

    assert [d.beneficiary_id for d in result.created] == [beneficiary.id, other.id]
    assert all(d.calamity_name == "Typhoon Kristine" for d in result.created)
    assert [failure.beneficiary_id for failure in result.failures] == [404]
    assert _quantity(db_session, rice.id) == 98
    assert _quantity(db_session, sardines.id) == 88
    assert len(_ledger(db_session)) == 4


def test_batch_without_items_or_calamity_is_rejected(db_session):
    user, beneficiary = _seed(db_session)

    with pytest.raises(errors.ValidationError):
        distribution_services.create_batch_distributions(
            db_session,
            beneficiary_ids=[beneficiary.id],
            calamity_id=None,
            distributed_by_user_id=user.id,
        )


def test_create_and_void_publish_events(db_session):
    user, beneficiary = _seed(db_session)
    rice = _create_item(db_session, "Rice (5kg)", 100)

    distribution = _distribute(db_session, user, beneficiary, [(rice.id, 3)])
    distribution_services.void_distribution(db_session, distribution_id=distribution.id, actor_user_id=user.id)

    created, voided = broker.history()
    assert created.type == "distribution.created"
    assert created.entityId == str(distribution.id)
    assert created.actor == {"userId": user.id}
    assert created.metadata["lines"] == [{"inventoryItemId": rice.id, "quantity": 3}]
    assert voided.type == "distribution.voided"


def test_router_has_expected_routes():
    def _has(method: str, path: str) -> bool:
        return any(
            route.path == path and method in (route.methods or []) for route in distribution_router.routes
        )

    assert _has("POST", "/distributions")
    assert _has("POST", "/distributions/batch")
    assert _has("POST", "/distributions/{distribution_id}/void")
    assert _has("GET", "/distributions/{distribution_id}")
    assert _has("GET", "/beneficiaries/{beneficiary_id}/distribution-stats")
