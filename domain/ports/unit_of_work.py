from typing import Any, Protocol


class UnitOfWork(Protocol):
    """
    Unit of Work Interface.
    Scopes one store session to one repository call.
    """

    session: Any

    async def __aenter__(self) -> "UnitOfWork": ...

    async def __aexit__(self, exc_type, exc_value, traceback) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
