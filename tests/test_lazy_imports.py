"""Tests for wren.__init__: every public name resolves lazily."""

import pytest

import wren


@pytest.mark.parametrize("name", wren.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(wren, name)
    assert obj is not None, f"wren.{name} resolved to None"


def test_resolves_to_defining_module() -> None:
    from wren.app import App
    from wren.routing.router import RouteTable

    assert wren.App is App
    assert wren.RouteTable is RouteTable


def test_unknown_name_raises_attribute_error() -> None:
    """Accessing an unregistered name raises AttributeError."""
    with pytest.raises(AttributeError, match="no attribute"):
        wren.__getattr__("ThisDoesNotExist")
