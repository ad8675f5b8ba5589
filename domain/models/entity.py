from typing import Protocol, TypeVar, runtime_checkable

K = TypeVar("K")


@runtime_checkable
class HasKey(Protocol[K]):
    """
    Anything the repository can store.
    Checked structurally: an ``id`` attribute is all that is required.
    """

    id: K


@runtime_checkable
class NamedEntity(HasKey[K], Protocol[K]):
    """Entity with a required, non-empty name."""

    name: str


def has_key(candidate: object) -> bool:
    """True if ``candidate`` (a class or an instance) exposes a key field."""
    return isinstance(candidate, HasKey)
