"""
Translate repository query tokens into SQLAlchemy statements.

Every token (predicate, projection, order key, include hint) is either a
SQLAlchemy expression built against the mapped class, or a callable that
receives the mapped class and returns one. Resolution happens before any
session is opened, so a malformed token never reaches the store.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Type

from sqlalchemy import Select, asc, desc, false, select, true
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import RelationshipProperty, selectinload
from sqlalchemy.orm.attributes import QueryableAttribute
from sqlalchemy.sql.base import ExecutableOption
from sqlalchemy.sql.elements import ClauseElement

from domain.exceptions import InvalidQueryError
from domain.models.order_spec import OrderSpec


@dataclass
class ComposedQuery:
    """A statement ready to execute plus the shape of its rows."""

    statement: Select
    # 0 for entity rows, otherwise number of projected columns
    column_count: int = 0


def is_expression(token: Any) -> bool:
    return isinstance(token, ClauseElement) or hasattr(token, "__clause_element__")


def _call_selector(token: Any, model_cls: Type, role: str) -> Any:
    try:
        return token(model_cls)
    except Exception as e:
        raise InvalidQueryError(role, token, str(e)) from e


def resolve_expression(token: Any, model_cls: Type, role: str) -> Any:
    """Return a column/clause expression for ``token``."""
    if is_expression(token):
        return token
    if callable(token) and token is not model_cls:
        resolved = _call_selector(token, model_cls, role)
        if is_expression(resolved):
            return resolved
        raise InvalidQueryError(role, token, f"selector returned {type(resolved).__name__}")
    raise InvalidQueryError(role, token, "expected an expression or a selector callable")


def resolve_predicate(predicate: Any, model_cls: Type) -> Optional[Any]:
    if predicate is None:
        return None
    if isinstance(predicate, bool):
        return true() if predicate else false()
    if callable(predicate) and not is_expression(predicate):
        resolved = _call_selector(predicate, model_cls, "predicate")
        if isinstance(resolved, bool):
            return true() if resolved else false()
        return resolve_expression(resolved, model_cls, "predicate")
    return resolve_expression(predicate, model_cls, "predicate")


def resolve_projection(projection: Any, model_cls: Type) -> Optional[List[Any]]:
    """
    Columns to select, or None when the projection is the entity itself.
    """
    if projection is None or projection is model_cls:
        return None
    if callable(projection) and not is_expression(projection):
        projection = _call_selector(projection, model_cls, "projection")
        if projection is model_cls:
            return None
    if isinstance(projection, (tuple, list)):
        if not projection:
            raise InvalidQueryError("projection", projection, "no columns selected")
        return [resolve_expression(column, model_cls, "projection") for column in projection]
    if is_expression(projection):
        return [projection]
    raise InvalidQueryError("projection", projection, "unsupported projection shape")


def _relationship(attr: Any, token: Any) -> Any:
    prop = getattr(attr, "property", None)
    if not isinstance(prop, RelationshipProperty):
        raise InvalidQueryError("include", token, "not a relationship")
    return prop


def resolve_include(include: Any, model_cls: Type) -> ExecutableOption:
    """Turn an include hint into an eager-load option."""
    if isinstance(include, ExecutableOption):
        return include

    if isinstance(include, str):
        option = None
        current = model_cls
        for part in include.split("."):
            attr = getattr(current, part, None)
            if attr is None:
                raise InvalidQueryError("include", include, f"{current.__name__} has no attribute '{part}'")
            prop = _relationship(attr, include)
            option = selectinload(attr) if option is None else option.selectinload(attr)
            current = prop.mapper.class_
        if option is None:
            raise InvalidQueryError("include", include, "empty path")
        return option

    attr = include
    if callable(include) and not isinstance(include, QueryableAttribute):
        attr = _call_selector(include, model_cls, "include")
    if not isinstance(attr, QueryableAttribute):
        raise InvalidQueryError("include", include, "expected a relationship attribute")
    _relationship(attr, include)
    return selectinload(attr)


def resolve_order(order_by: Any, model_cls: Type) -> List[Any]:
    if order_by is None:
        return []
    if isinstance(order_by, OrderSpec):
        specs: Sequence[Any] = [order_by]
    elif isinstance(order_by, (list, tuple)):
        specs = order_by
    else:
        raise InvalidQueryError("ordering", order_by, "expected an OrderSpec or a sequence of them")
    clauses = []
    for spec in specs:
        if not isinstance(spec, OrderSpec):
            raise InvalidQueryError("ordering", spec, "expected an OrderSpec")
        key = resolve_expression(spec.key, model_cls, "ordering")
        clauses.append(desc(key) if spec.descending else asc(key))
    return clauses


def compose_select(
    model_cls: Type,
    predicate: Any = None,
    includes: Sequence[Any] = (),
    projection: Any = None,
    order_by: Any = None,
    skip: int = 0,
    take: int = 0,
) -> ComposedQuery:
    """
    includes -> where -> order by -> offset -> limit -> projection.

    Ordering always precedes paging. Include hints only apply to entity
    rows and are dropped when a column projection is requested.
    """
    columns = resolve_projection(projection, model_cls)
    where = resolve_predicate(predicate, model_cls)
    ordering = resolve_order(order_by, model_cls)
    options = [resolve_include(include, model_cls) for include in includes]

    try:
        stmt = select(model_cls)
        if options and columns is None:
            stmt = stmt.options(*options)
        if where is not None:
            stmt = stmt.where(where)
        if ordering:
            stmt = stmt.order_by(*ordering)
        if skip > 0:
            stmt = stmt.offset(skip)
        if take > 0:
            stmt = stmt.limit(take)
        if columns is not None:
            stmt = stmt.with_only_columns(*columns, maintain_column_froms=True)
    except ArgumentError as e:
        raise InvalidQueryError("query", model_cls.__name__, str(e)) from e

    return ComposedQuery(statement=stmt, column_count=len(columns) if columns else 0)


def compose_exists(model_cls: Type, predicate: Any = None) -> Select:
    """SELECT EXISTS (SELECT ... WHERE predicate)."""
    where = resolve_predicate(predicate, model_cls)
    try:
        inner = select(model_cls)
        if where is not None:
            inner = inner.where(where)
        return select(inner.exists())
    except ArgumentError as e:
        raise InvalidQueryError("query", model_cls.__name__, str(e)) from e
