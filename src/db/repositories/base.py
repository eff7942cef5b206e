"""Base repository interface.

Provides the abstract base class for implementing the Repository pattern.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, List

# Type variable for the entity type stored in the repository
T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """
    Abstract base class for synchronous repository implementations.

    Provides a standard interface for storing derived records, abstracting
    away the underlying storage mechanism.

    Type Parameters:
        T: The type of entity stored in this repository
    """

    @abstractmethod
    def save(self, entity: T) -> T:
        """
        Save an entity to the repository.

        If the entity already exists (by key), it is updated in place.
        Otherwise, a new entity is created.

        Args:
            entity: The entity to save

        Returns:
            The saved entity
        """

    @abstractmethod
    def get(self, entity_id: str) -> Optional[T]:
        """
        Retrieve an entity by its key.

        Returns:
            The entity if found, None otherwise
        """

    @abstractmethod
    def get_all(
        self,
        limit: int = 100,
        offset: int = 0,
        **filters
    ) -> List[T]:
        """
        Retrieve all entities matching the given filters.

        Args:
            limit: Maximum number of entities to return
            offset: Number of entities to skip
            **filters: Additional filter criteria

        Returns:
            List of matching entities
        """

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by its key.

        Returns:
            True if the entity was deleted, False if not found
        """

    @abstractmethod
    def exists(self, entity_id: str) -> bool:
        """Check if an entity exists by its key."""

    @abstractmethod
    def count(self, **filters) -> int:
        """Count entities matching the given filters."""
