"""
Base repository implementation providing generic persistence operations.

Repositories never commit: they flush inside the session owned by the
current unit of work, which decides whether the transaction commits or
rolls back. SQLAlchemy failures are re-raised as domain errors so that
callers only ever handle the domain taxonomy.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from trayflow.domain.shared.exceptions import (
    ConflictError,
    DomainError,
    ErrorType,
    NotFoundError,
)

EntityType = TypeVar("EntityType", bound=SQLModel)


class DatabaseError(DomainError):
    """Raised when a database operation fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorType.REPOSITORY)


class EntityAlreadyExistsError(ConflictError):
    """Raised when a write violates a uniqueness constraint."""

    pass


class BaseRepository(Generic[EntityType], ABC):
    """
    Base repository class providing generic operations.

    Concrete repositories inherit from this class and provide the
    entity_class property.
    """

    def __init__(self, session: Session):
        """
        Initialize repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    @property
    @abstractmethod
    def entity_class(self) -> type[EntityType]:
        """Return the SQLModel entity class managed by this repository."""
        pass

    @property
    def entity_name(self) -> str:
        return self.entity_class.__name__

    def add(self, entity: EntityType) -> EntityType:
        """
        Add an entity and flush it so generated keys are populated.

        Args:
            entity: Entity to persist

        Returns:
            The persisted entity

        Raises:
            EntityAlreadyExistsError: If a unique constraint is violated
            DatabaseError: If database operation fails
        """
        try:
            self.session.add(entity)
            self.session.flush()
            return entity
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.entity_name} already exists",
                {"entity_type": self.entity_name},
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during add: {str(e)}") from e

    def get_by_id(self, entity_id: Any) -> EntityType | None:
        """
        Get entity by primary key.

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            return self.session.get(self.entity_class, entity_id)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during get_by_id: {str(e)}") from e

    def get_by_id_required(self, entity_id: Any) -> EntityType:
        """
        Get entity by primary key, raising if absent.

        Raises:
            NotFoundError: If entity not found
            DatabaseError: If database operation fails
        """
        entity = self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(self.entity_name, entity_id)
        return entity

    def get_all(self, limit: int | None = None, offset: int = 0) -> list[EntityType]:
        try:
            statement = select(self.entity_class).offset(offset)
            if limit:
                statement = statement.limit(limit)
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during get_all: {str(e)}") from e

    def count(self) -> int:
        try:
            statement = select(func.count()).select_from(self.entity_class)
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during count: {str(e)}") from e

    def delete(self, entity: EntityType) -> None:
        try:
            self.session.delete(entity)
            self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"{self.entity_name} is still referenced and cannot be deleted"
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during delete: {str(e)}") from e

    def _execute(self, statement, operation: str):
        """Run a write statement, translating driver errors."""
        try:
            return self.session.execute(statement)
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.entity_name} already exists",
                {"entity_type": self.entity_name},
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during {operation}: {str(e)}") from e
