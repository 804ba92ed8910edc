"""Tests for dependency selectors, scope derivation and flattening."""

import pytest

from constants import Scope
from coordinates.models import Coordinate, Dependency, Exclusion
from errors import MalformedNotationError
from resolution.collector import DependencyGraph
from resolution.flatten import flatten, preorder
from resolution.selectors import (
    AndSelector,
    ExclusionSelector,
    OptionalSelector,
    ScopeSelector,
    SelectionContext,
    ValidSystemScopeSelector,
    default_selector,
    derive_scope,
)


def dep(notation, **kwargs):
    group, artifact, version = notation.split(":")
    return Dependency(Coordinate(group, artifact, version), **kwargs)


ROOT = SelectionContext(depth=1)
NESTED = SelectionContext(depth=2)


class TestSelectors:
    """Individual selectors and their composition."""

    @pytest.mark.parametrize("scope", [Scope.TEST, Scope.PROVIDED])
    def test_scope_selector_only_filters_transitives(self, scope):
        selector = ScopeSelector()
        assert selector.select(dep("g:a:1", scope=scope), ROOT)
        assert not selector.select(dep("g:a:1", scope=scope), NESTED)

    def test_optional_selector(self):
        selector = OptionalSelector()
        assert selector.select(dep("g:a:1", optional=True), ROOT)
        assert not selector.select(dep("g:a:1", optional=True), NESTED)
        assert selector.select(dep("g:a:1"), NESTED)

    def test_exclusion_selector(self):
        context = SelectionContext(depth=2, exclusions=frozenset({Exclusion("g", "*")}))
        selector = ExclusionSelector()
        assert not selector.select(dep("g:a:1"), context)
        assert selector.select(dep("h:a:1"), context)

    def test_exclusion_parse(self):
        assert Exclusion.parse("g") == Exclusion("g", "*")
        assert Exclusion.parse(":a") == Exclusion("*", "a")

    @pytest.mark.parametrize("value", ["", " ", ":"])
    def test_blank_exclusion_rejected(self, value):
        with pytest.raises(MalformedNotationError):
            Exclusion.parse(value)

    def test_system_scope_is_a_leaf(self):
        selector = ValidSystemScopeSelector()
        assert selector.select(dep("g:a:1", scope=Scope.SYSTEM), ROOT)
        assert not selector.expand(dep("g:a:1", scope=Scope.SYSTEM))
        assert selector.expand(dep("g:a:1"))

    def test_and_selector_flattens(self):
        inner = AndSelector(ScopeSelector(), OptionalSelector())
        outer = AndSelector(inner, ValidSystemScopeSelector())
        assert len(outer.selectors) == 3

    def test_default_selector_requires_all(self):
        selector = default_selector()
        assert selector.select(dep("g:a:1"), NESTED)
        assert not selector.select(dep("g:a:1", scope=Scope.TEST), NESTED)
        assert not selector.expand(dep("g:a:1", scope=Scope.SYSTEM))


@pytest.mark.parametrize("parent, child, expected", [
    (Scope.COMPILE, Scope.COMPILE, Scope.COMPILE),
    (Scope.COMPILE, Scope.RUNTIME, Scope.RUNTIME),
    (Scope.RUNTIME, Scope.COMPILE, Scope.RUNTIME),
    (Scope.RUNTIME, Scope.RUNTIME, Scope.RUNTIME),
    (Scope.TEST, Scope.COMPILE, Scope.TEST),
    (Scope.TEST, Scope.RUNTIME, Scope.TEST),
    (Scope.PROVIDED, Scope.COMPILE, Scope.PROVIDED),
    (Scope.COMPILE, Scope.SYSTEM, Scope.SYSTEM),
])
def test_derive_scope(parent, child, expected):
    assert derive_scope(parent, child) is expected


def test_scope_parse():
    assert Scope.parse("Runtime") is Scope.RUNTIME
    assert Scope.parse("") is Scope.COMPILE
    assert Scope.parse(None) is Scope.COMPILE
    with pytest.raises(ValueError):
        Scope.parse("bogus")


class TestFlatten:
    """Nearest-wins flattening over a hand-built graph."""

    def test_preorder(self):
        graph = DependencyGraph()
        a = graph.add(dep("g:a:1"), 1)
        b = graph.add(dep("g:b:1"), 2, a)
        c = graph.add(dep("g:c:1"), 1)
        d = graph.add(dep("g:d:1"), 3, b)
        assert preorder(graph) == [a, b, d, c]

    def test_shallower_wins_regardless_of_position(self):
        graph = DependencyGraph()
        a = graph.add(dep("g:a:1"), 1)
        b = graph.add(dep("g:b:1"), 2, a)
        graph.add(dep("g:y:1"), 3, b)
        c = graph.add(dep("g:c:1"), 1)
        graph.add(dep("g:y:2"), 2, c)

        result = [str(d.coordinate) for d in flatten(graph)]

        assert result == ["g:a:1", "g:b:1", "g:c:1", "g:y:2"]

    def test_equal_depth_first_in_preorder_wins(self):
        graph = DependencyGraph()
        a = graph.add(dep("g:a:1"), 1)
        c = graph.add(dep("g:c:1"), 1)
        graph.add(dep("g:y:2"), 2, c)
        graph.add(dep("g:y:1"), 2, a)

        result = [str(d.coordinate) for d in flatten(graph)]

        assert result == ["g:a:1", "g:y:1", "g:c:1"]

    def test_empty_graph(self):
        assert flatten(DependencyGraph()) == []
