from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Tuple
import uuid

# Correlation id attached to every log record emitted during a call chain
correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# (entity, operation) of the repository call currently in flight
repository_call_ctx: ContextVar[Optional[Tuple[str, str]]] = ContextVar("repository_call", default=None)

def get_correlation_id() -> str:
    return correlation_id_ctx.get() or "n/a"

def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    correlation_id = correlation_id or str(uuid.uuid4())
    correlation_id_ctx.set(correlation_id)
    return correlation_id

def get_repository_call() -> Optional[Tuple[str, str]]:
    return repository_call_ctx.get()

@contextmanager
def repository_call(entity: str, operation: str) -> Iterator[None]:
    """
    Tag everything logged inside the block with the entity and operation.

    A correlation id is generated for the block when the caller has not set
    one, so the records of a single call can be grouped.
    """
    id_token = correlation_id_ctx.set(str(uuid.uuid4())) if correlation_id_ctx.get() is None else None
    call_token = repository_call_ctx.set((entity, operation))
    try:
        yield
    finally:
        repository_call_ctx.reset(call_token)
        if id_token is not None:
            correlation_id_ctx.reset(id_token)
