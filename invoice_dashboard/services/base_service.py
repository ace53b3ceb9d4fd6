# invoice_dashboard/services/base_service.py
"""
BaseCRUDService: Generic service class for standard CRUD operations.
Reduces code duplication across domain-specific services.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..core.exceptions import InvalidArgumentError, NotFoundError, StoreUnavailableError

# Generic type for SQLModel models
ModelType = TypeVar("ModelType")


class BaseCRUDService(Generic[ModelType]):
    """
    Base class providing generic CRUD (Create, Read, Update, Delete) operations.

    Usage:
        class MyService(BaseCRUDService[MyModel]):
            def __init__(self, session: Session):
                super().__init__(session, MyModel)
    """

    def __init__(self, session: Session, model: Type[ModelType]):
        """
        Initialize the service with a database session and model class.

        Args:
            session: SQLModel database session.
            model: The SQLModel class this service manages.
        """
        self.session = session
        self.model = model

    def get_all(self) -> List[ModelType]:
        """Retrieve all records of the model."""
        statement = select(self.model)
        return self.session.exec(statement).all()

    def get_by_id(self, id: Any) -> ModelType:
        """
        Retrieve a single record by its primary key.

        Raises:
            NotFoundError: if no record has this key.
        """
        try:
            record = self.session.get(self.model, id)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error reading {self.model.__name__}: {e}") from e
        if not record:
            raise NotFoundError(f"{self.model.__name__} {id} not found.")
        return record

    def create(self, data: Dict[str, Any]) -> ModelType:
        """
        Create a new record.

        Args:
            data: Dictionary of field values.

        Returns:
            The created model instance.
        """
        new_record = self.model(**data)
        self._commit(new_record, action="creating")
        return new_record

    def update(self, id: Any, data: Dict[str, Any]) -> ModelType:
        """
        Update an existing record. `updated_at` is refreshed when the model has it.

        Raises:
            NotFoundError: if no record has this key.
        """
        record = self.get_by_id(id)

        for key, value in data.items():
            if hasattr(record, key) and key != "id":
                setattr(record, key, value)
        if hasattr(record, "updated_at"):
            record.updated_at = datetime.now(timezone.utc)

        self._commit(record, action="updating")
        return record

    def delete(self, id: Any) -> None:
        """
        Delete a record by its primary key.

        Raises:
            NotFoundError: if no record has this key.
        """
        record = self.get_by_id(id)
        try:
            self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailableError(f"Error deleting {self.model.__name__}: {e}") from e

    def _commit(self, record: ModelType, action: str) -> None:
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except IntegrityError as e:
            self.session.rollback()
            raise InvalidArgumentError(f"Error {action} {self.model.__name__}: {e.orig}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailableError(f"Error {action} {self.model.__name__}: {e}") from e
