"""
Command-line front-end for feature LOC attribution.

Sub-commands:
    analyze  classify entry points, compute reachability and export per-feature LOC
    detect   classify entry points only and write them as a feature catalog
    reach    print the symbols reachable from given entry points
"""

import argparse
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, IO, Optional

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.catalog import load_catalog
from feature_loc.core.config import FeatureLocConfig, load_config
from feature_loc.core.errors import ConfigError, SnapshotError
from feature_loc.core.exporter import ResultExporter
from feature_loc.core.loc_attributor import rollup_class_loc
from feature_loc.core.models import SymbolUniverse
from feature_loc.core.pipeline import FeatureLocAnalyzer
from feature_loc.core.reachability import ReachabilitySolver
from feature_loc.core.snapshots import load_call_graph, load_loc_map, load_symbol_universe

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_IO_ERROR = 2


@contextmanager
def _open_sink(output: Optional[str]) -> Iterator[IO[str]]:
    if not output:
        yield sys.stdout
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        yield f


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to run configuration YAML file (default: featureloc.config.yaml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")


def _add_catalog_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--features", dest="features_path",
                        help="Feature catalog (YAML or JSON) with 'features' and/or 'annotation-config'. "
                             "Built-in rules are used when omitted.")
    parser.add_argument("--symbols", dest="symbols_path",
                        help="Symbol universe document (YAML or JSON) listing classes, methods and markers.")
    parser.add_argument("--warn-ambiguous", dest="warn_on_ambiguous_rules", action="store_const", const=True,
                        default=None, help="Log a warning when a method matches more than one rule.")


def _resolve_config(args: argparse.Namespace) -> FeatureLocConfig:
    cli_overrides: Dict[str, object] = {}
    for key in (
        "features_path",
        "symbols_path",
        "call_graph_path",
        "function_loc_path",
        "class_loc_path",
        "workers",
        "output_format",
        "warn_on_ambiguous_rules",
    ):
        cli_overrides[key] = getattr(args, key, None)
    if getattr(args, "no_progress", False):
        cli_overrides["show_progress"] = False
    if getattr(args, "noise_prefix", None):
        cli_overrides["noise_prefixes"] = args.noise_prefix
    return load_config(config_path=args.config, cli_args=cli_overrides)


def _load_universe(config: FeatureLocConfig) -> SymbolUniverse:
    if config.symbols_path:
        return load_symbol_universe(config.symbols_path)
    return SymbolUniverse()


def _run_analyze(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    if not config.call_graph_path:
        print("❌ Error: a call graph is required (--call-graph or call_graph_path in config).", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    catalog = load_catalog(config.features_path)
    universe = _load_universe(config)
    graph = load_call_graph(config.call_graph_path, noise_prefixes=config.noise_prefixes)
    function_loc = load_loc_map(config.function_loc_path) if config.function_loc_path else {}
    class_loc = load_loc_map(config.class_loc_path) if config.class_loc_path else {}
    if args.rollup_nested and class_loc:
        class_loc = rollup_class_loc(class_loc, universe.containment)

    analyzer = FeatureLocAnalyzer(
        catalog=catalog,
        graph=graph,
        universe=universe,
        function_loc=function_loc,
        class_loc=class_loc,
        config=config,
    )
    result = analyzer.analyze()

    fmt = config.resolved_output_format(args.output) if args.output_format is None else config.output_format
    with _open_sink(args.output) as sink:
        ResultExporter().export(result.records, sink, fmt=fmt)

    if args.output:
        print(f"📄 Report for {len(result.records)} features exported to {args.output}", file=sys.stderr)
    if result.warnings:
        print(f"⚠️  {len(result.warnings)} symbols could not be resolved (see log for details)", file=sys.stderr)
    return EXIT_OK


def _run_detect(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    if not config.symbols_path:
        print("❌ Error: a symbol universe is required (--symbols or symbols_path in config).", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    catalog = load_catalog(config.features_path)
    universe = _load_universe(config)
    analyzer = FeatureLocAnalyzer(
        catalog=catalog,
        graph=CallGraphView([]),
        universe=universe,
        config=config,
    )
    entries = analyzer.detect_entry_points()

    fmt = "json" if args.output and Path(args.output).suffix.lower() == ".json" else args.format
    with _open_sink(args.output) as sink:
        ResultExporter().export_entry_points(entries, sink, fmt=fmt)

    feature_count = len({e.feature_key for e in entries})
    print(f"🔎 Detected {len(entries)} entry points in {feature_count} features", file=sys.stderr)
    return EXIT_OK


def _run_reach(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    if not config.call_graph_path:
        print("❌ Error: a call graph is required (--call-graph or call_graph_path in config).", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    graph = load_call_graph(config.call_graph_path, noise_prefixes=config.noise_prefixes)
    reachable = ReachabilitySolver(graph).reach(args.entry_points, args.scope or ())
    with _open_sink(args.output) as sink:
        for symbol in sorted(reachable):
            sink.write(f"{symbol}\n")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Feature LOC: attribute lines of code to features through call graph reachability."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Compute per-feature LOC and export a report")
    _add_common_flags(analyze)
    _add_catalog_flags(analyze)
    analyze.add_argument("--call-graph", dest="call_graph_path",
                         help="Call graph snapshot: CSV 'caller,callee' lines or a YAML/JSON mapping.")
    analyze.add_argument("--function-loc", dest="function_loc_path",
                         help="Function LOC CSV ('Symbol,LineCount').")
    analyze.add_argument("--class-loc", dest="class_loc_path",
                         help="Class LOC CSV ('Symbol,LineCount').")
    analyze.add_argument("--rollup-nested", action="store_true",
                         help="Add nested class LOC to their enclosing classes using the symbol document.")
    analyze.add_argument("--output", help="Write the report to a file instead of stdout.")
    analyze.add_argument("--format", dest="output_format", choices=["csv", "yaml", "json"], default=None,
                         help="Report format (default: from config, or inferred from --output suffix).")
    analyze.add_argument("--workers", type=int, default=None,
                         help="Number of worker threads for per-feature processing (default: 1).")
    analyze.add_argument("--noise-prefix", action="append", default=None,
                         help="Namespace prefix whose call edges are ignored. Repeatable; replaces the configured list.")
    analyze.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    analyze.set_defaults(func=_run_analyze)

    detect = subparsers.add_parser("detect", help="Classify entry points and write them as a feature catalog")
    _add_common_flags(detect)
    _add_catalog_flags(detect)
    detect.add_argument("--output", help="Write detected entry points to a file instead of stdout.")
    detect.add_argument("--format", choices=["yaml", "json"], default="yaml",
                        help="Output format (default: yaml).")
    detect.set_defaults(func=_run_detect)

    reach = subparsers.add_parser("reach", help="List symbols reachable from entry points")
    _add_common_flags(reach)
    reach.add_argument("--call-graph", dest="call_graph_path",
                       help="Call graph snapshot: CSV 'caller,callee' lines or a YAML/JSON mapping.")
    reach.add_argument("--entry-point", dest="entry_points", action="append", required=True,
                       help="Entry point symbol (Type#method). Repeatable.")
    reach.add_argument("--scope", action="append", default=None,
                       help="Package prefix restricting discovered symbols. Repeatable.")
    reach.add_argument("--noise-prefix", action="append", default=None,
                       help="Namespace prefix whose call edges are ignored. Repeatable.")
    reach.add_argument("--output", help="Write the symbol list to a file instead of stdout.")
    reach.set_defaults(func=_run_reach)

    return parser


def run(argv: Optional[list] = None) -> int:
    """Parse arguments, run the selected command and map errors to exit codes."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.func(args)
    except ConfigError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except SnapshotError as e:
        print(f"❌ Invalid input: {e}", file=sys.stderr)
        return EXIT_IO_ERROR
    except OSError as e:
        print(f"❌ I/O error: {e}", file=sys.stderr)
        return EXIT_IO_ERROR


def main():
    """Main entry point for the feature-loc CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
