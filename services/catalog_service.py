"""
Catalog service: CRUD for the operator-maintained master data.

Materials, product recipes, clients and suppliers are all plain keyed
records; each kind gets one CatalogService bound to its collection,
schema and not-found error.
"""

from typing import Callable, Generic, Optional, Type, TypeVar
import structlog

from exceptions import (
    ClientNotFoundError,
    MaterialNotFoundError,
    NotFoundError,
    ProductNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)
from models.base import BaseSchema
from models.material import Material, Supplier
from models.product import Client, ProductRecipe
from services.store import CLIENTS, MATERIALS, PRODUCTS, SUPPLIERS, Store, get_store

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=BaseSchema)


class CatalogService(Generic[T]):
    """CRUD over one record collection."""

    def __init__(
        self,
        collection: str,
        schema: Type[T],
        not_found: Callable[[str], NotFoundError],
        store: Optional[Store] = None,
    ):
        self.collection = collection
        self.schema = schema
        self.not_found = not_found
        self.store = store or get_store()

    def get_all(self) -> list[T]:
        rows = self.store.list_records(self.collection)
        logger.debug("catalog_listed", collection=self.collection, count=len(rows))
        return [self.schema(**row) for row in rows]

    def get_by_id(self, record_id: str) -> T:
        """
        Raises:
            NotFoundError: Record doesn't exist
        """
        row = self.store.get_record(self.collection, record_id)
        if row is None:
            raise self.not_found(record_id)
        return self.schema(**row)

    def save(self, record_id: str, record: T) -> T:
        """
        Create or replace a record.

        Confirmed orders keep their own snapshots, so replacing a record
        never changes an existing order.

        Raises:
            ValidationError: Path ID and body ID disagree
        """
        if getattr(record, "id", record_id) != record_id:
            raise ValidationError(
                "Record id does not match the URL",
                code="ID_MISMATCH",
                details={"path_id": record_id, "body_id": record.id}
            )

        self.store.save_record(self.collection, record.model_dump(mode="json"))
        logger.info("catalog_saved", collection=self.collection, id=record_id)
        return record

    def delete(self, record_id: str) -> bool:
        """
        Raises:
            NotFoundError: Record doesn't exist
        """
        if not self.store.delete_record(self.collection, record_id):
            raise self.not_found(record_id)
        logger.info("catalog_deleted", collection=self.collection, id=record_id)
        return True


def material_catalog(store: Optional[Store] = None) -> CatalogService[Material]:
    return CatalogService(MATERIALS, Material, MaterialNotFoundError, store)


def product_catalog(store: Optional[Store] = None) -> CatalogService[ProductRecipe]:
    return CatalogService(PRODUCTS, ProductRecipe, ProductNotFoundError, store)


def client_catalog(store: Optional[Store] = None) -> CatalogService[Client]:
    return CatalogService(CLIENTS, Client, ClientNotFoundError, store)


def supplier_catalog(store: Optional[Store] = None) -> CatalogService[Supplier]:
    return CatalogService(SUPPLIERS, Supplier, SupplierNotFoundError, store)
