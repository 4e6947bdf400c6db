from feature_loc.core.call_graph import CallGraphView


def test_callees_and_edge_count(graph) -> None:
    assert graph.callees_of("com.example.service.UserService#find") == frozenset(
        {"com.example.repo.UserRepository#load"}
    )
    assert graph.edge_count() == 4


def test_absent_symbol_has_empty_callees(graph) -> None:
    assert graph.callees_of("com.example.Missing#run") == frozenset()
    assert "com.example.Missing#run" not in graph


def test_noise_prefixes_drop_edges_on_either_end() -> None:
    graph = CallGraphView(
        [
            ("a.C#m", "java.util.List#add"),
            ("javax.servlet.Filter#doFilter", "a.C#m"),
            ("a.C#m", "a.D#n"),
        ],
        noise_prefixes=["java.", "javax."],
    )

    assert list(graph.edges()) == [("a.C#m", "a.D#n")]
    assert "java.util.List#add" not in graph
    assert "javax.servlet.Filter#doFilter" not in graph


def test_caller_with_only_noise_callees_is_still_known() -> None:
    graph = CallGraphView([("a.Ctl#run", "java.lang.String#valueOf")], noise_prefixes=["java."])

    assert "a.Ctl#run" in graph
    assert graph.callees_of("a.Ctl#run") == frozenset()
    assert graph.edge_count() == 0
    assert graph.symbols() == frozenset({"a.Ctl#run"})


def test_noise_filter_uses_declaring_type() -> None:
    graph = CallGraphView([("javafx.App#start", "a.C#m")], noise_prefixes=["java."])
    # "javafx." does not start with "java."
    assert graph.edge_count() == 1


def test_duplicate_edges_collapse() -> None:
    graph = CallGraphView([("a.C#m", "a.D#n"), ("a.C#m", "a.D#n")])
    assert graph.edge_count() == 1


def test_edges_are_ordered_independent_of_input() -> None:
    pairs = [("b.B#x", "a.A#y"), ("a.A#y", "c.C#z"), ("a.A#y", "b.B#x")]
    forward = CallGraphView(pairs)
    backward = CallGraphView(list(reversed(pairs)))

    assert list(forward.edges()) == list(backward.edges())
    assert list(forward.edges()) == [("a.A#y", "b.B#x"), ("a.A#y", "c.C#z"), ("b.B#x", "a.A#y")]


def test_from_mapping_and_id_api() -> None:
    graph = CallGraphView.from_mapping({"a.A#m": ["a.B#n", "a.C#o"], "a.B#n": []})

    a_id = graph.symbol_id("a.A#m")
    assert [graph.symbol_at(i) for i in graph.callee_ids(a_id)] == ["a.B#n", "a.C#o"]
    assert graph.symbol_id("a.Z#z") is None
    assert len(list(graph.id_edges())) == graph.edge_count() == 2
    assert graph.symbols() == frozenset({"a.A#m", "a.B#n", "a.C#o"})
