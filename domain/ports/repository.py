from typing import Any, List, Optional, Protocol, Sequence, TypeVar, Union

from domain.models.entity import HasKey
from domain.models.order_spec import OrderSpec, Paging

T = TypeVar("T", bound=HasKey)
K = TypeVar("K")

OrderBy = Union[OrderSpec, Sequence[OrderSpec], None]


class Repository(Protocol[T, K]):
    """
    Generic Repository Interface.
    Decouples callers from ORM/SQL usage.

    Predicates, projections, order keys and include hints are opaque
    tokens; the adapter decides how to translate them.
    """

    # Paging counters, consumed and reset to zero by the next read.
    max_results: int
    skip_results: int

    async def add(self, entity: T) -> K:
        """Insert one entity and return its key."""
        ...

    async def exists(self, predicate: Any) -> bool:
        """True if any entity matches."""
        ...

    async def get_all(
        self,
        *includes: Any,
        projection: Any = None,
        order_by: OrderBy = None,
        paging: Optional[Paging] = None,
    ) -> List[Any]:
        """List entities (or their projections)."""
        ...

    async def get_filtered(
        self,
        predicate: Any,
        *includes: Any,
        projection: Any = None,
        order_by: OrderBy = None,
        paging: Optional[Paging] = None,
    ) -> List[Any]:
        """List entities matching a predicate."""
        ...

    async def get_single(self, predicate: Any, *includes: Any, projection: Any = None) -> Optional[Any]:
        """First match or None."""
        ...

    async def remove(self, *entities: T) -> None:
        """Delete entities in one commit."""
        ...

    async def update(self, *entities: T) -> None:
        """Update entities in one commit."""
        ...
