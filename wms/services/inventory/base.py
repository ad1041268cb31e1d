"""
Base inventory service with shared functionality.

Every entity service works through an EntityStore bound to the request's
session and owns the transaction boundary of its operations.
"""
from __future__ import annotations

import logging
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wms.core.exceptions import EntityNotFoundError
from wms.db.base_class import Base
from wms.db.store import EntityStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseInventoryService:
    """
    Base service class with shared inventory functionality.

    All inventory-related services inherit from this class
    to share the database session and store.
    """

    def __init__(self, db: Session):
        """
        Initialize the base inventory service.

        Args:
            db: SQLAlchemy database session
        """
        self._db = db
        self._store = EntityStore(db)

    def _require(self, model: type[ModelT], entity_id: str, entity: str, expand=()) -> ModelT:
        record = self._store.find_by_id(model, entity_id, expand=expand)
        if record is None:
            raise EntityNotFoundError(entity, entity_id)
        return record

    def _commit(self) -> None:
        """Commit, rolling back on constraint violations before re-raising."""
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise
