"""Common dependencies for inventory routes."""
from typing import Annotated, TypeAlias

from fastapi import Depends, Path
from sqlalchemy.orm import Session

from wms.db.session import get_db
from wms.services.inventory import InventoryService, build_inventory_service
from wms.utils.identifiers import ID_PATTERN

DbDep: TypeAlias = Annotated[Session, Depends(get_db)]

# Path identifiers must look like store ids; anything else is a 400
EntityIdPath: TypeAlias = Annotated[str, Path(pattern=ID_PATTERN, description="32-character hex id")]


def get_inventory_service(db: DbDep) -> InventoryService:
    """Get an InventoryService bound to the request's session."""
    return build_inventory_service(db)


InventoryServiceDep: TypeAlias = Annotated[InventoryService, Depends(get_inventory_service)]
