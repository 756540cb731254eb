"""Tests for version conflict resolution."""

import random

import pytest

from constants import DependencyBehavior
from fake_registry import FakeMetadataClient, ident
from versioning.models import DependencyEdge, format_version
from versioning.ranges import parse_range, parse_version
from walker.discover import discover
from walker.errors import ResolutionFailed, UnsatisfiableConstraint
from walker.resolve import resolve


def versions(*texts):
    return frozenset(parse_version(t) for t in texts)


def edge(source_id, source_version, target_id, rng):
    return DependencyEdge(ident(source_id, source_version), target_id, parse_range(rng))


def chosen(result):
    return {key: format_version(p.version) for key, p in result.resolved.items()}


class TestResolvePolicy:
    """Test version selection policies."""

    CANDIDATES = {"root": versions("1.0"), "lib": versions("1.0", "1.5", "2.0")}
    EDGES = [edge("Root", "1.0", "Lib", "[1.0,3.0)")]

    def test_highest_is_default(self):
        """Test HIGHEST picks 2.0 among qualifying 1.0, 1.5, 2.0."""
        result = resolve(self.CANDIDATES, self.EDGES, "Root")

        assert result.ok
        assert chosen(result)["lib"] == "2.0.0"

    def test_lowest(self):
        """Test LOWEST picks 1.0."""
        result = resolve(self.CANDIDATES, self.EDGES, "Root", DependencyBehavior.LOWEST)

        assert chosen(result)["lib"] == "1.0.0"

    def test_constraints_filter_before_policy(self):
        """Test that versions outside any incoming range are never chosen."""
        edges = self.EDGES + [edge("Other", "1.0", "lib", "(,1.5]")]
        candidates = dict(self.CANDIDATES, other=versions("1.0"))

        result = resolve(candidates, edges, "Root")

        assert chosen(result)["lib"] == "1.5.0"

    def test_root_always_present(self):
        """Test that the root id is resolved even without incoming edges."""
        result = resolve(self.CANDIDATES, self.EDGES, "Root")

        assert result.resolved["root"] == ident("Root", "1.0")

    @pytest.mark.parametrize("policy", [DependencyBehavior.HIGHEST, DependencyBehavior.LOWEST])
    def test_root_version_is_pinned(self, policy):
        """Test other root versions reached through a cycle never replace the requested one."""
        candidates = {"a": versions("1.0", "2.0", "3.0"), "b": versions("1.0")}
        edges = [edge("A", "2.0", "B", "1.0"), edge("B", "1.0", "A", "1.0")]

        result = resolve(candidates, edges, "A", policy, root_version=parse_version("2.0"))

        assert result.resolved["a"] == ident("A", "2.0")

    def test_pinned_root_excluded_by_edge(self):
        """Test an edge ruling out the requested root version is a conflict on the root."""
        candidates = {"a": versions("2.0", "3.0"), "b": versions("1.0")}
        edges = [edge("A", "2.0", "B", "1.0"), edge("B", "1.0", "A", "[3.0]")]

        result = resolve(candidates, edges, "A", root_version=parse_version("2.0"))

        assert [e.package_id for e in result.errors] == ["A"]
        assert [str(p) for p in result.errors[0].requirers] == ["B 1.0.0"]

    def test_one_version_per_id_within_every_range(self):
        """Test the resolved set against every incoming constraint."""
        edges = [
            edge("Root", "1.0", "A", "[1.0,2.0)"),
            edge("Root", "1.0", "B", "1.0"),
            edge("A", "1.2", "B", "[1.1,1.4]"),
            edge("B", "1.4", "C", "(,3.0)"),
        ]
        candidates = {
            "root": versions("1.0"),
            "a": versions("1.0", "1.2", "2.0"),
            "b": versions("1.0", "1.1", "1.4", "1.5"),
            "c": versions("1.0", "2.9", "3.0"),
        }

        result = resolve(candidates, edges, "Root")

        assert chosen(result) == {"root": "1.0.0", "a": "1.2.0", "b": "1.4.0", "c": "2.9.0"}
        for e in edges:
            assert e.range.satisfies(result.resolved[e.target_key].version)


class TestResolveConflicts:
    """Test unsatisfiable constraints."""

    def test_disjoint_ranges_name_the_package(self):
        """Test [1.0,2.0) and [3.0,4.0) on one id fail naming that id."""
        candidates = {
            "root": versions("1.0"),
            "left": versions("1.0"),
            "right": versions("1.0"),
            "shared": versions("1.0", "3.0"),
        }
        edges = [
            edge("Root", "1.0", "Left", "1.0"),
            edge("Root", "1.0", "Right", "1.0"),
            edge("Left", "1.0", "Shared", "[1.0,2.0)"),
            edge("Right", "1.0", "Shared", "[3.0,4.0)"),
        ]

        result = resolve(candidates, edges, "Root")

        assert not result.ok
        assert result.resolved == {}
        assert [e.package_id for e in result.errors] == ["Shared"]
        error = result.errors[0]
        assert {str(p) for p in error.requirers} == {"Left 1.0.0", "Right 1.0.0"}
        with pytest.raises(UnsatisfiableConstraint) as excinfo:
            result.raise_for_error()
        assert "Shared" in str(excinfo.value)

    def test_all_conflicts_reported_in_one_pass(self):
        """Test that every unsatisfiable id is reported, sorted by id."""
        candidates = {"root": versions("1.0"), "zeta": versions("1.0"), "alpha": versions("1.0")}
        edges = [
            edge("Root", "1.0", "Zeta", "[2.0]"),
            edge("Root", "1.0", "Alpha", "(1.0,)"),
        ]

        result = resolve(candidates, edges, "Root")

        assert [e.package_id for e in result.errors] == ["Alpha", "Zeta"]
        with pytest.raises(ResolutionFailed) as excinfo:
            result.raise_for_error()
        assert len(excinfo.value.errors) == 2

    def test_missing_root_candidate(self):
        """Test that a root absent from the candidates is unsatisfiable."""
        result = resolve({"lib": versions("1.0")}, [], "Root")

        assert [e.package_id for e in result.errors] == ["Root"]


class TestResolveDeterminism:
    """Test order independence."""

    GRAPH = {
        ("App", "1.0"): [("Http", "[2.0,3.0)"), ("Json", "1.0"), ("Logging", "1.0")],
        ("Http", "2.0"): [("Json", "[1.2,2.0)"), ("Logging", "1.1")],
        ("Json", "1.0"): [],
        ("Json", "1.2"): [("Buffers", "4.0")],
        ("Logging", "1.0"): [("Abstractions", "1.0")],
        ("Logging", "1.1"): [("Abstractions", "1.1")],
        ("Abstractions", "1.0"): [],
        ("Abstractions", "1.1"): [],
        ("Buffers", "4.0"): [("json", "1.0")],
    }

    def test_shuffled_inputs_give_same_result(self):
        """Test shuffling candidates and edges leaves the resolved set unchanged."""
        discovery = discover(ident("App", "1.0"), "any", FakeMetadataClient(self.GRAPH))
        expected = resolve(discovery.candidates, discovery.edges, "App").resolved

        rng = random.Random(7)
        for _ in range(10):
            edges = list(discovery.edges)
            rng.shuffle(edges)
            items = list(discovery.candidates.items())
            rng.shuffle(items)
            assert resolve(dict(items), edges, "App").resolved == expected

    def test_concurrent_discovery_gives_same_result(self):
        """Test that completion order of concurrent lookups is irrelevant."""
        discovery = discover(ident("App", "1.0"), "any", FakeMetadataClient(self.GRAPH))
        expected = resolve(discovery.candidates, discovery.edges, "App").resolved

        for seed in range(3):
            client = FakeMetadataClient(self.GRAPH, jitter=0.003, seed=seed)
            concurrent = discover(ident("App", "1.0"), "any", client, max_workers=4)
            assert resolve(concurrent.candidates, concurrent.edges, "App").resolved == expected

    def test_resolved_graph(self):
        """Test the expected selection for the sample graph."""
        discovery = discover(ident("App", "1.0"), "any", FakeMetadataClient(self.GRAPH))

        result = resolve(discovery.candidates, discovery.edges, "App")

        assert chosen(result) == {
            "app": "1.0.0",
            "http": "2.0.0",
            "json": "1.2.0",
            "logging": "1.1.0",
            "abstractions": "1.1.0",
            "buffers": "4.0.0",
        }
        assert result.resolved["json"].id == "Json"
