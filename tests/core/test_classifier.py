from feature_loc.core.catalog import ConfigCatalog
from feature_loc.core.classifier import (
    EntryPointClassifier,
    action_for,
    controller_name,
    render_feature_key,
)
from feature_loc.core.models import SymbolUniverse


def _make_catalog(rules, class_markers=("RestController",), **extra) -> ConfigCatalog:
    annotation_config = {
        "class-level-annotations": list(class_markers),
        "method-level-annotations": rules,
    }
    annotation_config.update(extra)
    return ConfigCatalog.from_document({"annotation-config": annotation_config})


def _make_universe(type_name="com.example.UserController", class_markers=("RestController",), **methods):
    universe = SymbolUniverse()
    universe.add_class(type_name, class_markers)
    for name, markers in methods.items():
        universe.add_method(type_name, name, markers)
    return universe


def test_example_scenario() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"}])
    universe = _make_universe(getUser=["GetMapping"])

    result = EntryPointClassifier(catalog).classify(universe)

    assert result == {"user-retrieval": {"com.example.UserController#getUser"}}


def test_first_declared_rule_wins() -> None:
    catalog = _make_catalog([
        {"annotation": "PostMapping", "feature-pattern": "{controller}-first"},
        {"annotation": "GetMapping", "feature-pattern": "{controller}-second"},
    ])
    universe = _make_universe(handle=["GetMapping", "PostMapping"])

    result = EntryPointClassifier(catalog).classify(universe)

    assert result == {"user-first": {"com.example.UserController#handle"}}


def test_ambiguous_match_is_logged_when_enabled(caplog) -> None:
    catalog = _make_catalog([
        {"annotation": "PostMapping", "feature-pattern": "{controller}-first"},
        {"annotation": "GetMapping", "feature-pattern": "{controller}-second"},
    ])
    universe = _make_universe(handle=["GetMapping", "PostMapping"])

    with caplog.at_level("WARNING", logger="feature_loc.classifier"):
        result = EntryPointClassifier(catalog, warn_on_ambiguous_rules=True).classify(universe)

    assert set(result) == {"user-first"}
    assert "matches 2 rules" in caplog.text


def test_alias_matches() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval",
                              "aliases": ["HttpGet"]}])
    universe = _make_universe(getUser=["HttpGet"])

    assert EntryPointClassifier(catalog).classify(universe) == {
        "user-retrieval": {"com.example.UserController#getUser"}
    }


def test_ineligible_class_is_skipped() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"}])
    universe = _make_universe(class_markers=("Component",), getUser=["GetMapping"])

    assert EntryPointClassifier(catalog).classify(universe) == {}


def test_no_class_rules_makes_every_class_eligible() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{class}"}], class_markers=())
    universe = _make_universe(class_markers=(), getUser=["GetMapping"])

    assert EntryPointClassifier(catalog).classify(universe) == {
        "UserController": {"com.example.UserController#getUser"}
    }


def test_direct_marker_bypasses_eligibility_and_rules() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"}])
    universe = _make_universe(class_markers=(), getUser=["GetMapping", "EntryPoint=account"])

    assert EntryPointClassifier(catalog).classify(universe) == {
        "account": {"com.example.UserController#getUser"}
    }


def test_direct_marker_without_value_is_ignored() -> None:
    catalog = _make_catalog([])
    universe = _make_universe(getUser=["EntryPoint"])

    assert EntryPointClassifier(catalog).classify(universe) == {}


def test_unmarked_method_is_not_assigned() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"}])
    universe = _make_universe(helper=[])

    assert EntryPointClassifier(catalog).classify(universe) == {}


def test_exclusion_rule_stops_classification() -> None:
    catalog = _make_catalog([
        {"annotation": "Deprecated", "detect-when-present": False},
        {"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"},
    ])
    universe = _make_universe(oldGet=["GetMapping", "Deprecated"], getUser=["GetMapping"])

    assert EntryPointClassifier(catalog).classify(universe) == {
        "user-retrieval": {"com.example.UserController#getUser"}
    }


def test_class_level_rule_matches_class_markers() -> None:
    catalog = _make_catalog(
        [{"annotation": "Scheduled", "class-level": True, "default-feature": "batch-jobs"}],
        class_markers=(),
    )
    universe = _make_universe(type_name="com.example.NightlyJob", class_markers=("Scheduled",), run=[])

    assert EntryPointClassifier(catalog).classify(universe) == {"batch-jobs": {"com.example.NightlyJob#run"}}


def test_default_pattern_uses_action_classification() -> None:
    catalog = _make_catalog([{"annotation": "RequestMapping"}])
    universe = _make_universe(
        addUser=["RequestMapping"],
        editUser=["RequestMapping"],
        removeUser=["RequestMapping"],
        listUsers=["RequestMapping"],
        audit=["RequestMapping"],
    )

    result = EntryPointClassifier(catalog).classify(universe)

    assert set(result) == {
        "user-creation",
        "user-modification",
        "user-deletion",
        "user-retrieval",
        "user-management",
    }


def test_value_placeholder_uses_marker_value() -> None:
    catalog = _make_catalog([{"annotation": "Feature", "feature-pattern": "{value}-{method}"}])
    universe = _make_universe(export=["Feature=reports"])

    assert EntryPointClassifier(catalog).classify(universe) == {
        "reports-export": {"com.example.UserController#export"}
    }


def test_default_feature_is_used_literally() -> None:
    catalog = _make_catalog(
        [
            {"annotation": "Job", "default-feature": "batch{legacy"},
            {"annotation": "Task", "default-feature": "{controller}-tasks"},
        ],
        class_markers=(),
    )
    universe = _make_universe("a.Runner", class_markers=(), run=["Job"], tick=["Task"])

    assert EntryPointClassifier(catalog).classify(universe) == {
        "batch{legacy": {"a.Runner#run"},
        "{controller}-tasks": {"a.Runner#tick"},
    }


def test_disabled_catalog_classifies_nothing() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "x"}], enabled=False)
    universe = _make_universe(getUser=["GetMapping", "EntryPoint=direct"])

    assert EntryPointClassifier(catalog).classify(universe) == {}


def test_custom_marker_lookups() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval"}])
    universe = SymbolUniverse()
    universe.add_method("com.example.OrderController", "getOrder")

    result = EntryPointClassifier(catalog).classify(
        universe,
        class_markers_of=lambda type_name: {"RestController"},
        method_markers_of=lambda symbol: {"GetMapping"},
    )

    assert result == {"order-retrieval": {"com.example.OrderController#getOrder"}}


def test_detect_reports_matching_rule() -> None:
    catalog = _make_catalog([{"annotation": "GetMapping", "feature-pattern": "{controller}-retrieval",
                              "aliases": ["Get"]}])
    universe = _make_universe(getUser=["Get"], other=["EntryPoint=misc"])

    entries = EntryPointClassifier(catalog).detect(universe)

    by_symbol = {e.symbol: e for e in entries}
    get_user = by_symbol["com.example.UserController#getUser"]
    assert get_user.matched_marker == "Get"
    assert get_user.rule.primary_name == "GetMapping"
    assert by_symbol["com.example.UserController#other"].is_direct


def test_placeholder_helpers() -> None:
    assert action_for("createOrder") == "creation"
    assert action_for("findAll") == "retrieval"
    assert action_for("process") == "management"
    assert controller_name("a.b.OrderController") == "order"
    assert controller_name("a.b.Orders") == "orders"
    assert render_feature_key("{class}.{method}", "a.b.Orders#get(java.lang.String)") == "Orders.get"
