from __future__ import annotations

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from wms.core.exceptions import (
    CapacityExceededError,
    EntityNotFoundError,
    InsufficientStockError,
    InvalidArgumentError,
    ReferencedEntityError,
)
from wms.db.base_class import Base
from wms.db.store import EntityStore
from wms.models import inventory_schemas as schemas
from wms.models.inventory_models import Inventory, Warehouse
from wms.services.inventory import InventoryService
from wms.services.inventory.locks import WarehouseLocks
from wms.services.inventory.stock_service import StockAccountingService


def _usage(service: InventoryService, warehouse_id: str) -> int:
    warehouse = service.get_warehouse(warehouse_id)
    service._db.refresh(warehouse)
    return warehouse.current_usage


def _live(service: InventoryService, warehouse_id: str) -> int:
    return EntityStore(service._db).sum_field(Inventory, "stock", {"warehouse_id": warehouse_id})


# ---------------------------------------------------------------------------
# Add stock
# ---------------------------------------------------------------------------


def test_add_stock_creates_row_with_derived_references(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse(capacity=50)

    inventory = service.add_stock(product.id, warehouse.id, 10)

    assert inventory.stock == 10
    assert inventory.category_id == product.category_id
    assert inventory.supplier_id == product.supplier_id
    assert [(e.action, e.amount) for e in inventory.audit_log] == [("Create", 10)]
    assert _usage(service, warehouse.id) == 10


def test_second_add_merges_into_existing_row(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse(capacity=50)

    first = service.add_stock(product.id, warehouse.id, 10)
    second = service.add_stock(product.id, warehouse.id, 5)

    assert first.id == second.id
    assert second.stock == 15
    assert len(service.inventory_by_warehouse(warehouse.id)) == 1
    assert [e.action for e in second.audit_log] == ["Create", "Added"]
    assert _usage(service, warehouse.id) == 15


def test_capacity_scenario_rejects_then_accepts(service, make_product, make_warehouse):
    filler = make_product(name="Filler")
    product = make_product(name="Widget")
    warehouse = make_warehouse(capacity=100)
    service.add_stock(filler.id, warehouse.id, 90)

    with pytest.raises(CapacityExceededError) as exc_info:
        service.add_stock(product.id, warehouse.id, 20)

    details = exc_info.value.details
    assert details["current_usage"] == 90
    assert details["capacity"] == 100
    assert details["requested"] == 20
    assert exc_info.value.status_code == 409
    assert service.inventory_by_product(product.id) == []
    assert _usage(service, warehouse.id) == 90

    inventory = service.add_stock(product.id, warehouse.id, 5)
    assert inventory.stock == 5
    assert _usage(service, warehouse.id) == 95


def test_add_stock_exactly_to_capacity(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse(capacity=10)
    service.add_stock(product.id, warehouse.id, 10)
    assert _usage(service, warehouse.id) == 10

    with pytest.raises(CapacityExceededError):
        service.add_stock(product.id, warehouse.id, 1)


@pytest.mark.parametrize("quantity", [0, -3])
def test_add_stock_rejects_non_positive_quantity(service, make_product, make_warehouse, quantity):
    product = make_product()
    warehouse = make_warehouse()
    with pytest.raises(InvalidArgumentError):
        service.add_stock(product.id, warehouse.id, quantity)
    assert _usage(service, warehouse.id) == 0


def test_add_stock_unknown_product_or_warehouse(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    missing = "0" * 32

    with pytest.raises(EntityNotFoundError):
        service.add_stock(missing, warehouse.id, 1)
    with pytest.raises(EntityNotFoundError):
        service.add_stock(product.id, missing, 1)
    assert _usage(service, warehouse.id) == 0


def test_batch_is_all_or_nothing(service, make_product, make_warehouse):
    first = make_product(name="First")
    second = make_product(name="Second")
    small = make_warehouse(name="Small", capacity=10)
    large = make_warehouse(name="Large", capacity=100)

    items = [
        schemas.InventoryCreate(product_id=first.id, warehouse_id=large.id, stock=30),
        schemas.InventoryCreate(product_id=second.id, warehouse_id=small.id, stock=11),
    ]
    with pytest.raises(CapacityExceededError):
        service.add_stock_batch(items)

    assert service.list_inventory() == []
    assert _usage(service, large.id) == 0
    assert _usage(service, small.id) == 0


def test_batch_merges_repeated_pairs(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse(capacity=100)
    items = [
        schemas.InventoryCreate(product_id=product.id, warehouse_id=warehouse.id, stock=4),
        schemas.InventoryCreate(product_id=product.id, warehouse_id=warehouse.id, stock=6),
    ]

    rows = service.add_stock_batch(items)

    assert rows[0].id == rows[1].id
    assert rows[1].stock == 10
    assert _usage(service, warehouse.id) == 10


# ---------------------------------------------------------------------------
# Transfer
# ---------------------------------------------------------------------------


def test_transfer_moves_stock_and_usage(service, make_product, make_warehouse):
    product = make_product()
    source_wh = make_warehouse(name="A", capacity=50)
    dest_wh = make_warehouse(name="B", capacity=50)
    service.add_stock(product.id, source_wh.id, 10)

    source, destination = service.transfer_stock(product.id, source_wh.id, dest_wh.id, 4)

    assert source.stock == 6
    assert destination.stock == 4
    assert source.audit_log[-1].action == "Transfer Out"
    assert source.audit_log[-1].amount == 4
    assert [(e.action, e.amount) for e in destination.audit_log] == [("Transfer In", 4)]
    assert _usage(service, source_wh.id) == 6
    assert _usage(service, dest_wh.id) == 4


def test_transfer_more_than_stock_is_insufficient(service, make_product, make_warehouse):
    product = make_product()
    source_wh = make_warehouse(name="A", capacity=50)
    dest_wh = make_warehouse(name="B", capacity=50)
    inventory = service.add_stock(product.id, source_wh.id, 10)

    with pytest.raises(InsufficientStockError) as exc_info:
        service.transfer_stock(product.id, source_wh.id, dest_wh.id, 15)

    assert exc_info.value.details["available"] == 10
    assert service.get_inventory(inventory.id).stock == 10
    assert service.inventory_by_warehouse(dest_wh.id) == []
    assert _usage(service, source_wh.id) == 10
    assert _usage(service, dest_wh.id) == 0


def test_transfer_without_source_row_is_insufficient(service, make_product, make_warehouse):
    product = make_product()
    source_wh = make_warehouse(name="A")
    dest_wh = make_warehouse(name="B")
    with pytest.raises(InsufficientStockError):
        service.transfer_stock(product.id, source_wh.id, dest_wh.id, 1)


@pytest.mark.parametrize("amount", [0, -5])
def test_transfer_non_positive_amount_mutates_nothing(service, make_product, make_warehouse, amount):
    product = make_product()
    source_wh = make_warehouse(name="A")
    dest_wh = make_warehouse(name="B")
    inventory = service.add_stock(product.id, source_wh.id, 10)

    with pytest.raises(InvalidArgumentError):
        service.transfer_stock(product.id, source_wh.id, dest_wh.id, amount)

    assert service.get_inventory(inventory.id).stock == 10
    assert _usage(service, source_wh.id) == 10
    assert _usage(service, dest_wh.id) == 0


def test_transfer_to_same_warehouse_is_invalid(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    service.add_stock(product.id, warehouse.id, 5)
    with pytest.raises(InvalidArgumentError):
        service.transfer_stock(product.id, warehouse.id, warehouse.id, 1)


def test_transfer_into_full_warehouse_changes_nothing(service, make_product, make_warehouse):
    product = make_product()
    other = make_product(name="Other")
    source_wh = make_warehouse(name="A", capacity=50)
    dest_wh = make_warehouse(name="B", capacity=10)
    inventory = service.add_stock(product.id, source_wh.id, 20)
    service.add_stock(other.id, dest_wh.id, 8)

    with pytest.raises(CapacityExceededError):
        service.transfer_stock(product.id, source_wh.id, dest_wh.id, 5)

    assert service.get_inventory(inventory.id).stock == 20
    assert _usage(service, source_wh.id) == 20
    assert _usage(service, dest_wh.id) == 8


def test_transfer_to_missing_warehouse(service, make_product, make_warehouse):
    product = make_product()
    source_wh = make_warehouse()
    service.add_stock(product.id, source_wh.id, 5)
    with pytest.raises(EntityNotFoundError):
        service.transfer_stock(product.id, source_wh.id, "a" * 32, 1)
    assert _usage(service, source_wh.id) == 5


def test_transfer_merges_into_existing_destination_row(service, make_product, make_warehouse):
    product = make_product()
    source_wh = make_warehouse(name="A")
    dest_wh = make_warehouse(name="B")
    service.add_stock(product.id, source_wh.id, 10)
    existing = service.add_stock(product.id, dest_wh.id, 3)

    _, destination = service.transfer_stock(product.id, source_wh.id, dest_wh.id, 7)

    assert destination.id == existing.id
    assert destination.stock == 10
    assert destination.audit_log[-1].action == "Transfer In"


# ---------------------------------------------------------------------------
# Diminish
# ---------------------------------------------------------------------------


def test_diminish_records_reason(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    inventory = service.add_stock(product.id, warehouse.id, 5)
    entries_before = len(inventory.audit_log)

    result = service.diminish_stock(inventory.id, 3, reason="damaged")

    assert result.stock == 2
    assert len(result.audit_log) == entries_before + 1
    last = result.audit_log[-1]
    assert (last.action, last.amount, last.reason) == ("Diminished", 3, "damaged")
    assert _usage(service, warehouse.id) == 2


def test_diminish_default_reason(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    inventory = service.add_stock(product.id, warehouse.id, 5)

    result = service.diminish_stock(inventory.id, 1)

    assert result.audit_log[-1].reason == "Unspecified"


def test_diminish_more_than_stock_leaves_row_unchanged(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    inventory = service.add_stock(product.id, warehouse.id, 5)

    with pytest.raises(InsufficientStockError):
        service.diminish_stock(inventory.id, 6)

    reloaded = service.get_inventory(inventory.id)
    assert reloaded.stock == 5
    assert [e.action for e in reloaded.audit_log] == ["Create"]
    assert _usage(service, warehouse.id) == 5


def test_diminish_errors(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    inventory = service.add_stock(product.id, warehouse.id, 5)

    with pytest.raises(InvalidArgumentError):
        service.diminish_stock(inventory.id, 0)
    with pytest.raises(EntityNotFoundError):
        service.diminish_stock("b" * 32, 1)


# ---------------------------------------------------------------------------
# Direct updates, removal, deliveries, reconciliation
# ---------------------------------------------------------------------------


def test_update_inventory_reserves_and_releases(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse(capacity=20)
    inventory = service.add_stock(product.id, warehouse.id, 10)

    updated = service.update_inventory(inventory.id, schemas.InventoryUpdate(stock=15, unit_price="2.50"))
    assert updated.stock == 15
    assert float(updated.unit_price) == 2.5
    assert updated.audit_log[-1].action == "Adjusted"
    assert updated.audit_log[-1].amount == 5
    assert _usage(service, warehouse.id) == 15

    with pytest.raises(CapacityExceededError):
        service.update_inventory(inventory.id, schemas.InventoryUpdate(stock=21))
    assert service.get_inventory(inventory.id).stock == 15

    service.update_inventory(inventory.id, schemas.InventoryUpdate(stock=4))
    assert _usage(service, warehouse.id) == 4


def test_remove_inventory_releases_capacity(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    inventory = service.add_stock(product.id, warehouse.id, 7)

    assert service.remove_inventory(inventory.id) == 7
    assert service.get_inventory(inventory.id) is None
    assert _usage(service, warehouse.id) == 0


def test_record_delivery_adds_stock_and_logs(service, make_product, make_supplier, make_warehouse):
    supplier = make_supplier(name="Fresh Farms")
    product = make_product(supplier=supplier)
    warehouse = make_warehouse(capacity=30)

    delivery = service.record_delivery(
        supplier.id,
        schemas.DeliveryCreate(product_id=product.id, warehouse_id=warehouse.id, quantity=12),
    )

    assert delivery.quantity == 12
    assert [d.id for d in service.list_deliveries(supplier.id)] == [delivery.id]
    rows = service.inventory_by_product(product.id)
    assert rows[0].stock == 12
    assert _usage(service, warehouse.id) == 12

    with pytest.raises(CapacityExceededError):
        service.record_delivery(
            supplier.id,
            schemas.DeliveryCreate(product_id=product.id, warehouse_id=warehouse.id, quantity=19),
        )
    assert len(service.list_deliveries(supplier.id)) == 1


def test_supplier_with_delivery_log_cannot_be_deleted(service, make_product, make_supplier, make_warehouse):
    owner = make_supplier(name="Orchard Co")
    courier = make_supplier(name="Courier")
    product = make_product(supplier=owner)
    warehouse = make_warehouse(capacity=50)
    service.record_delivery(
        courier.id,
        schemas.DeliveryCreate(product_id=product.id, warehouse_id=warehouse.id, quantity=4),
    )

    with pytest.raises(ReferencedEntityError) as exc_info:
        service.delete_supplier(courier.id)

    assert exc_info.value.details["references"]["deliveries"] == 1
    assert service.get_supplier(courier.id) is not None
    assert len(service.list_deliveries(courier.id)) == 1


def test_reconcile_restores_counter(service, make_product, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    service.add_stock(product.id, warehouse.id, 8)

    EntityStore(service._db).update_by_id(Warehouse, warehouse.id, {"current_usage": 3})
    service._db.commit()

    assert service.reconcile_usage(warehouse.id) == (3, 8)
    assert _usage(service, warehouse.id) == 8
    assert service.reconcile_usage(warehouse.id) == (8, 8)


def test_counter_matches_live_sum_after_mixed_operations(service, make_product, make_warehouse):
    apples = make_product(name="Apples")
    pears = make_product(name="Pears")
    north = make_warehouse(name="North", capacity=60)
    south = make_warehouse(name="South", capacity=25)

    a_north = service.add_stock(apples.id, north.id, 25)
    service.add_stock(pears.id, north.id, 15)
    service.transfer_stock(apples.id, north.id, south.id, 10)
    service.diminish_stock(a_north.id, 5, reason="spoiled")
    p_north = service.inventory_by_product(pears.id)[0]
    service.update_inventory(p_north.id, schemas.InventoryUpdate(stock=20))
    with pytest.raises(InsufficientStockError):
        service.transfer_stock(pears.id, north.id, south.id, 21)
    with pytest.raises(CapacityExceededError):
        service.transfer_stock(pears.id, north.id, south.id, 20)
    service.transfer_stock(apples.id, south.id, north.id, 10)
    service.transfer_stock(apples.id, north.id, south.id, 10)
    service.remove_inventory(p_north.id)

    for warehouse in (north, south):
        usage = _usage(service, warehouse.id)
        assert usage == _live(service, warehouse.id)
        assert usage <= warehouse.capacity
    assert _usage(service, north.id) == 10
    assert _usage(service, south.id) == 10


def test_product_update_refreshes_inventory_references(service, make_product, make_category, make_supplier, make_warehouse):
    product = make_product()
    warehouse = make_warehouse()
    service.add_stock(product.id, warehouse.id, 3)
    new_category = make_category("Reassigned")
    new_supplier = make_supplier(name="Second Source")

    service.update_product(
        product.id,
        schemas.ProductUpdate(
            name=product.name,
            price="9.99",
            category_id=new_category.id,
            supplier_id=new_supplier.id,
        ),
    )

    rows = service.inventory_by_product(product.id)
    assert rows[0].category_id == new_category.id
    assert rows[0].supplier_id == new_supplier.id


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def test_concurrent_adds_never_exceed_capacity(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

    setup = factory()
    catalog = InventoryService(setup)
    category = catalog.create_category(schemas.CategoryCreate(name="Bulk"))
    supplier = catalog.create_supplier(
        schemas.SupplierCreate(name="S", contact_info="c", email="s@example.com", address="a")
    )
    product = catalog.create_product(
        schemas.ProductCreate(name="Crate", price="1", category_id=category.id, supplier_id=supplier.id)
    )
    warehouse = catalog.create_warehouse(schemas.WarehouseCreate(name="W", location="L", capacity=100))
    setup.close()

    locks = WarehouseLocks()
    outcomes: list[str] = []
    outcome_guard = threading.Lock()
    start = threading.Barrier(10)

    def worker() -> None:
        session = factory()
        try:
            stock = StockAccountingService(session, locks=locks)
            start.wait()
            try:
                stock.add_stock(product.id, warehouse.id, 15)
                result = "ok"
            except CapacityExceededError:
                result = "full"
            with outcome_guard:
                outcomes.append(result)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert outcomes.count("ok") == 6
    assert outcomes.count("full") == 4

    check = factory()
    try:
        stored = check.get(Warehouse, warehouse.id).current_usage
        live = EntityStore(check).sum_field(Inventory, "stock", {"warehouse_id": warehouse.id})
        assert stored == live == 90
    finally:
        check.close()
        engine.dispose()
