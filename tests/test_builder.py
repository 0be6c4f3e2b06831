"""Tests for feature graph construction."""

import pytest

from constants import DepKind
from errors import IdentityMismatch, MissingResolveData, NameNotFound
from graph.builder import FeatGraph
from graph.identity import FeatureKind, Fid
from metadata.models import DepKindInfo, Metadata, Resolve, ResolveNode
from metadata_factory import declared, edge_set, node, package, resolved, snapshot


def build(meta):
    return FeatGraph(meta).build()


class TestDependencyEdges:
    """Edges derived from resolved dependencies."""

    def test_plain_dependency_hangs_off_base(self):
        log = package("log", "0.4.0")
        app = package("app", "0.1.0", deps=[declared("log")])
        graph = build(snapshot([app, log], members=[app], deps={"app": [resolved(log)]}))

        assert edge_set(graph) == {("root", "app 0.1.0"), ("app 0.1.0", "log 0.4.0")}

    def test_optional_dependency_sourced_from_implicit_feature(self):
        d = package("d", "1.0.0")
        p = package("p", "0.1.0", deps=[declared("d", optional=True)])
        graph = build(snapshot([p, d], members=[p], deps={"p": [resolved(d)]}))

        implicit = node(graph, "p", "d")
        out = list(graph.outgoing(implicit))
        assert len(out) == 1
        target, link = out[0]
        assert target == node(graph, "d")
        assert link.optional is True
        assert link.kinds == (DepKindInfo(DepKind.NORMAL, None),)
        assert graph.features.in_degree(node(graph, "d")) == 1

    def test_requested_features_replace_base_edge(self):
        serde = package("serde", features={"std": [], "derive": []})
        app = package("app", "0.1.0", deps=[declared("serde", features=["std", "derive"])])
        graph = build(snapshot([app, serde], members=[app], deps={"app": [resolved(serde)]}))

        edges = edge_set(graph)
        assert ("app 0.1.0", "serde 1.0.0/std") in edges
        assert ("app 0.1.0", "serde 1.0.0/derive") in edges
        assert ("app 0.1.0", "serde 1.0.0") not in edges

    def test_link_carries_every_kind(self):
        cc = package("cc")
        kinds = (DepKindInfo(DepKind.BUILD, None), DepKindInfo(DepKind.DEV, "cfg(unix)"))
        app = package("app", "0.1.0", deps=[declared("cc", kind=DepKind.BUILD)])
        graph = build(snapshot([app, cc], members=[app], deps={"app": [resolved(cc, kinds=kinds)]}))

        [(target, link)] = list(graph.outgoing(node(graph, "app")))
        assert target == node(graph, "cc")
        assert link.kinds == kinds

    def test_renamed_dependency(self):
        serde = package("serde")
        app = package("app", "0.1.0", deps=[declared("serde", rename="serde1")])
        graph = build(snapshot([app, serde], members=[app], deps={"app": [resolved(serde, name="serde1")]}))

        assert ("app 0.1.0", "serde 1.0.0") in edge_set(graph)

    def test_renamed_library_target(self):
        sys = package("redox-syscall", "0.2.0", lib_name="syscall")
        app = package("app", "0.1.0", deps=[declared("redox-syscall")])
        meta = snapshot([app, sys], members=[app], deps={"app": [resolved(sys, name="syscall")]})
        graph = build(meta)

        assert graph.library_renames == {sys.id: "redox-syscall"}
        assert ("app 0.1.0", "redox-syscall 0.2.0") in edge_set(graph)

    def test_renamed_library_feature_requirement(self):
        sys = package("redox-syscall", "0.2.0", lib_name="syscall", features={"std": []})
        app = package("app", "0.1.0", deps=[declared("redox-syscall")],
                      features={"x": ["redox-syscall/std"]})
        meta = snapshot([app, sys], members=[app], deps={"app": [resolved(sys, name="syscall")]})
        graph = build(meta)

        assert ("app 0.1.0/x", "redox-syscall 0.2.0/std") in edge_set(graph)

    def test_undeclared_dependency_is_fatal(self):
        log = package("log")
        app = package("app", "0.1.0")
        with pytest.raises(NameNotFound):
            build(snapshot([app, log], members=[app], deps={"app": [resolved(log)]}))


class TestLocalFeatures:
    """Edges derived from a package's own feature table."""

    def test_default_activation(self):
        p = package("p", "0.1.0", features={"default": ["a"], "a": []})
        graph = build(snapshot([p], members=[p]))

        edges = edge_set(graph)
        assert ("root", "p 0.1.0/default") in edges
        assert ("p 0.1.0/default", "p 0.1.0/a") in edges
        assert ("p 0.1.0/a", "p 0.1.0") in edges
        assert ("root", "p 0.1.0") not in edges

    def test_dependency_feature_requirement(self):
        serde = package("serde", features={"std": []})
        app = package("app", "0.1.0", deps=[declared("serde")], features={"json": ["serde/std"]})
        graph = build(snapshot([app, serde], members=[app], deps={"app": [resolved(serde)]}))

        edges = edge_set(graph)
        assert ("app 0.1.0/json", "app 0.1.0") in edges
        assert ("app 0.1.0/json", "serde 1.0.0/std") in edges

    def test_unresolved_dependency_feature_is_skipped(self):
        app = package(
            "app", "0.1.0",
            deps=[declared("winapi", optional=True, target="cfg(windows)")],
            features={"win": ["winapi/std"]},
        )
        graph = build(snapshot([app], members=[app]))

        assert edge_set(graph) == {("root", "app 0.1.0"), ("app 0.1.0/win", "app 0.1.0")}

    def test_undeclared_dependency_feature_is_fatal(self):
        app = package("app", "0.1.0", features={"x": ["missing/std"]})
        with pytest.raises(NameNotFound):
            build(snapshot([app], members=[app]))

    def test_weak_and_explicit_dependency_syntax(self):
        serde = package("serde", features={"std": []})
        app = package(
            "app", "0.1.0",
            deps=[declared("serde", optional=True)],
            features={"full": ["dep:serde", "serde?/std"]},
        )
        graph = build(snapshot([app, serde], members=[app], deps={"app": [resolved(serde)]}))

        edges = edge_set(graph)
        assert ("app 0.1.0/full", "app 0.1.0/serde") in edges
        assert ("app 0.1.0/full", "serde 1.0.0/std") in edges
        assert ("app 0.1.0/serde", "serde 1.0.0") in edges


class TestIdentityAndConsistency:
    """Node variants, caches and snapshot consistency checks."""

    def test_node_variants_follow_membership(self):
        log = package("log")
        app = package("app", "0.1.0", deps=[declared("log")])
        graph = build(snapshot([app, log], members=[app], deps={"app": [resolved(log)]}))

        assert node(graph, "app").kind is FeatureKind.WORKSPACE
        assert node(graph, "log").kind is FeatureKind.EXTERNAL
        assert graph.package_identity(log.id).name == "log"

    def test_one_node_per_fid(self):
        graph = FeatGraph(snapshot([package("a")]))
        pid = next(iter(graph.cache.values()))
        assert graph.node_for(Fid(pid, "x")) is graph.node_for(Fid(pid, "x"))
        assert len(graph) == 2

    def test_missing_resolve(self):
        with pytest.raises(MissingResolveData):
            FeatGraph(Metadata(packages=(package("a"),)))

    def test_misaligned_resolve(self):
        a, b = package("a"), package("b")
        meta = Metadata(
            packages=(a, b),
            resolve=Resolve(nodes=(ResolveNode(id=b.id), ResolveNode(id=a.id))),
        )
        with pytest.raises(IdentityMismatch):
            build(meta)

    def test_unknown_resolved_package(self):
        ghost = package("ghost")
        app = package("app", "0.1.0", deps=[declared("ghost")])
        with pytest.raises(IdentityMismatch):
            build(snapshot([app], members=[app], deps={"app": [resolved(ghost)]}))

    def test_deterministic(self):
        serde = package("serde", features={"std": [], "default": ["std"]})
        app = package("app", "0.1.0", deps=[declared("serde", features=["std"])],
                      features={"default": ["extra"], "extra": []})
        meta = snapshot([app, serde], members=[app], deps={"app": [resolved(serde)]})
        assert edge_set(build(meta)) == edge_set(build(meta))
        assert sorted(build(meta).features.nodes) == sorted(build(meta).features.nodes)
