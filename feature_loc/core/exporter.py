"""Writes attribution records and detected entry points to CSV, YAML or JSON."""

import csv
import json
from typing import Any, Dict, IO, List, Sequence

import yaml

from feature_loc.core.classifier import ClassifiedEntryPoint
from feature_loc.core.models import FeatureAttribution

CSV_HEADER = [
    "featureName",
    "featureDescription",
    "entryPointCount",
    "targetClassCount",
    "targetFunctionCount",
    "totalClassLoc",
    "totalFunctionLoc",
    "callGraphEdgeCount",
]

EXPORT_FORMATS = ("csv", "yaml", "json")


class ResultExporter:
    """
    Serializes records in the order given; callers sort them for reproducible output.

    Sinks are text streams. Open files with ``newline=""`` so CSV line endings
    stay ``\\n`` on every platform.
    """

    def export(self, records: Sequence[FeatureAttribution], sink: IO[str], fmt: str = "csv") -> None:
        if fmt == "csv":
            self.export_csv(records, sink)
        elif fmt == "yaml":
            yaml.safe_dump(self.build_report(records), sink, sort_keys=False, allow_unicode=True)
        elif fmt == "json":
            json.dump(self.build_report(records), sink, indent=2, ensure_ascii=False)
            sink.write("\n")
        else:
            raise ValueError(f"Unsupported export format: {fmt}")

    def export_csv(self, records: Sequence[FeatureAttribution], sink: IO[str]) -> None:
        writer = csv.writer(sink, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for record in records:
            writer.writerow(self._csv_row(record))

    def build_report(self, records: Sequence[FeatureAttribution]) -> Dict[str, Any]:
        return {
            "summary": {
                "feature_count": len(records),
                "total_class_loc": sum(r.total_class_loc for r in records),
                "total_function_loc": sum(r.total_function_loc for r in records),
            },
            "features": [self._serialize_record(r) for r in records],
        }

    def export_entry_points(self, entries: Sequence[ClassifiedEntryPoint], sink: IO[str], fmt: str = "yaml") -> None:
        """
        Write classified entry points as a ``features`` catalog document.

        The output can be passed back as a feature catalog, which pins the
        classification so later runs analyse exactly these entry points.
        """
        features: Dict[str, Dict[str, Any]] = {}
        for entry in sorted(entries, key=lambda e: (e.feature_key, e.symbol)):
            feature = features.setdefault(entry.feature_key, {"name": entry.feature_key, "entry-points": []})
            feature["entry-points"].append(entry.symbol)
        document = {"features": features}
        if fmt == "json":
            json.dump(document, sink, indent=2, ensure_ascii=False)
            sink.write("\n")
        elif fmt == "yaml":
            yaml.safe_dump(document, sink, sort_keys=False, allow_unicode=True)
        else:
            raise ValueError(f"Unsupported entry point export format: {fmt}")

    @staticmethod
    def _csv_row(record: FeatureAttribution) -> List[Any]:
        return [
            record.display_name,
            record.description if record.description is not None else "",
            record.entry_point_count,
            record.reachable_class_count,
            record.reachable_function_count,
            record.total_class_loc,
            record.total_function_loc,
            record.internal_edge_count,
        ]

    @staticmethod
    def _serialize_record(record: FeatureAttribution) -> Dict[str, Any]:
        return {
            "feature_key": record.feature_key,
            "name": record.display_name,
            "description": record.description if record.description is not None else "",
            "entry_point_count": record.entry_point_count,
            "target_class_count": record.reachable_class_count,
            "target_function_count": record.reachable_function_count,
            "total_class_loc": record.total_class_loc,
            "total_function_loc": record.total_function_loc,
            "call_graph_edge_count": record.internal_edge_count,
        }
