"""Metrics facade.

Service code should ONLY call the semantic helpers here so the backend can
change freely. Counters live in the default Prometheus registry and are
exposed by ``GET /metrics``.
"""

from __future__ import annotations

import logging

from prometheus_client import Counter

logger = logging.getLogger("metrics")

_STOCK_ADDED_UNITS = Counter("wms_stock_added_units_total", "Units added to warehouse stock")
_STOCK_TRANSFERS = Counter("wms_stock_transfers_total", "Completed stock transfers between warehouses")
_STOCK_TRANSFERRED_UNITS = Counter("wms_stock_transferred_units_total", "Units moved by stock transfers")
_STOCK_DIMINISHED_UNITS = Counter(
    "wms_stock_diminished_units_total", "Units removed for spoilage, damage or other reasons"
)
_CAPACITY_REJECTIONS = Counter(
    "wms_capacity_rejections_total", "Stock additions refused because the warehouse was full"
)
_INSUFFICIENT_STOCK = Counter(
    "wms_insufficient_stock_total", "Transfers or diminishes refused for lack of stock"
)
_DELETES_BLOCKED = Counter(
    "wms_deletes_blocked_total", "Deletes refused because the entity is still referenced", ["entity"]
)


def stock_added(units: int) -> None:
    _STOCK_ADDED_UNITS.inc(units)


def stock_transferred(units: int) -> None:
    _STOCK_TRANSFERS.inc()
    _STOCK_TRANSFERRED_UNITS.inc(units)


def stock_diminished(units: int) -> None:
    _STOCK_DIMINISHED_UNITS.inc(units)


def capacity_rejected() -> None:
    _CAPACITY_REJECTIONS.inc()


def insufficient_stock() -> None:
    _INSUFFICIENT_STOCK.inc()


def delete_blocked(entity: str) -> None:
    _DELETES_BLOCKED.labels(entity=entity).inc()
    logger.debug("Blocked delete of referenced %s", entity)
