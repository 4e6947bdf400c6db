import random

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.models import FeatureDefinition
from feature_loc.core.reachability import ReachabilitySolver, in_scope, run_per_feature


def _chain_graph() -> CallGraphView:
    return CallGraphView([
        ("a.b.Entry#run", "a.b.Service#work"),
        ("a.b.Service#work", "a.b.Repo#load"),
        ("a.b.Service#work", "x.y.Client#call"),
        ("x.y.Client#call", "a.b.Util#format"),
        ("a.b.Repo#load", "a.b.Service#work"),
    ])


def test_example_scenario() -> None:
    graph = CallGraphView([("UserController#getUser", "UserService#find")])
    reachable = ReachabilitySolver(graph).reach({"UserController#getUser"}, set())

    assert reachable == {"UserController#getUser", "UserService#find"}


def test_reach_follows_transitive_calls_and_cycles() -> None:
    reachable = ReachabilitySolver(_chain_graph()).reach({"a.b.Entry#run"})

    assert reachable == {
        "a.b.Entry#run",
        "a.b.Service#work",
        "a.b.Repo#load",
        "x.y.Client#call",
        "a.b.Util#format",
    }


def test_scope_excludes_out_of_prefix_symbols() -> None:
    reachable = ReachabilitySolver(_chain_graph()).reach({"a.b.Entry#run"}, {"a.b"})

    assert all(s.startswith("a.b") for s in reachable)
    # Only reachable through an out-of-scope hop
    assert "a.b.Util#format" not in reachable


def test_entry_points_are_kept_even_outside_scope() -> None:
    reachable = ReachabilitySolver(_chain_graph()).reach({"x.y.Client#call"}, {"a.b"})

    assert reachable == {"x.y.Client#call", "a.b.Util#format"}


def test_entry_point_missing_from_graph_is_a_singleton() -> None:
    reachable = ReachabilitySolver(_chain_graph()).reach({"a.b.Orphan#run"})

    assert reachable == {"a.b.Orphan#run"}


def test_result_independent_of_edge_order() -> None:
    edges = list(_chain_graph().edges())
    expected = ReachabilitySolver(CallGraphView(edges)).reach({"a.b.Entry#run"}, {"a.b"})

    rng = random.Random(7)
    for _ in range(5):
        shuffled = edges[:]
        rng.shuffle(shuffled)
        assert ReachabilitySolver(CallGraphView(shuffled)).reach({"a.b.Entry#run"}, {"a.b"}) == expected


def test_in_scope() -> None:
    assert in_scope("a.b.C#m", ())
    assert in_scope("a.b.C#m", ("x.", "a.b"))
    assert not in_scope("a.c.C#m", ("a.b",))


def test_reach_all_sequential_and_parallel_agree() -> None:
    graph = _chain_graph()
    features = [
        FeatureDefinition(key="entry", display_name="entry", entry_points={"a.b.Entry#run"}),
        FeatureDefinition(key="repo", display_name="repo", entry_points={"a.b.Repo#load"}, package_scope={"a.b"}),
        FeatureDefinition(key="client", display_name="client", entry_points={"x.y.Client#call"}),
    ]
    solver = ReachabilitySolver(graph)

    sequential = solver.reach_all(features)
    parallel = solver.reach_all(features, workers=3)

    assert sequential == parallel
    assert sequential["repo"] == {"a.b.Repo#load", "a.b.Service#work"}


def test_run_per_feature_keeps_input_order() -> None:
    features = [FeatureDefinition(key=str(i), display_name=str(i)) for i in range(10)]

    results = run_per_feature(lambda f: f.key, features, workers=4)

    assert results == [str(i) for i in range(10)]
