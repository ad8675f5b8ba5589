import pytest
from pydantic import ValidationError

from domain.models.entity import HasKey, NamedEntity, has_key
from domain.models.order_spec import OrderDirection, OrderSpec, Paging
from tests.models import Tag, Widget


def test_order_spec_defaults_to_ascending():
    spec = OrderSpec(key=Widget.name)

    assert spec.direction == OrderDirection.ASC
    assert not spec.descending


def test_order_spec_shortcuts():
    assert OrderSpec.asc(Widget.id).direction == OrderDirection.ASC
    assert OrderSpec.desc(Widget.id).descending


def test_order_spec_accepts_selector_callables():
    selector = lambda w: w.price  # noqa: E731

    assert OrderSpec.desc(selector).key is selector


def test_order_spec_is_immutable():
    spec = OrderSpec.asc(Widget.id)

    with pytest.raises(ValidationError):
        spec.direction = OrderDirection.DESC


def test_paging_defaults_and_validation():
    assert (Paging().skip, Paging().take) == (0, 0)

    with pytest.raises(ValidationError):
        Paging(skip=-1)
    with pytest.raises(ValidationError):
        Paging(take=-5)


def test_key_capability_is_structural():
    class Plain:
        def __init__(self):
            self.id = 7

    assert isinstance(Plain(), HasKey)
    assert isinstance(Widget(name="w", sku="W"), HasKey)
    assert not isinstance(object(), HasKey)
    assert has_key(Widget) and has_key(Tag)
    assert not has_key(object)


def test_named_entity_capability():
    assert isinstance(Widget(name="w", sku="W"), NamedEntity)
    assert not isinstance(Tag(label="x"), NamedEntity)


@pytest.mark.parametrize("name", ["", "   ", None])
def test_named_mixin_rejects_empty_names(name):
    with pytest.raises(ValueError):
        Widget(name=name, sku="W")
