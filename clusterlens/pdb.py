"""Checks of pod disruption budgets."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, Result, sensitive

_KIND = "PodDisruptionBudget"
_GROUP = "policy"
_VERSION = "v1"


class PdbAnalyzer:
    """Reports budgets that currently allow no disruption."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per blocked budget."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        for pdb in client.list(_KIND, analyzer.namespace, analyzer.label_selector):
            conditions = (pdb.get("status") or {}).get("conditions") or []
            if not conditions:
                continue
            first = conditions[0]
            failures: list[Failure] = []
            if first.get("type") == "DisruptionAllowed" and first.get("status") == "False":
                spec = pdb.get("spec") or {}
                doc = ""
                if spec.get("maxUnavailable") is not None:
                    doc = client.api_doc(_KIND, _GROUP, _VERSION, "spec.maxUnavailable")
                if spec.get("minAvailable") is not None:
                    doc = client.api_doc(_KIND, _GROUP, _VERSION, "spec.minAvailable")
                match_labels = (spec.get("selector") or {}).get("matchLabels") or {}
                reason = first.get("reason", "")
                failures = [
                    Failure(
                        text=f"{reason}, expected pdb pod label {key}={value}",
                        kubernetes_doc=doc,
                        sensitive=[sensitive(key), sensitive(value)],
                    )
                    for key, value in match_labels.items()
                ]
            if failures:
                metadata = pdb.get("metadata") or {}
                key = f"{metadata.get('namespace', '')}/{metadata.get('name', '')}"
                found[key] = (metadata, failures)

        results = list(analyzer.results)
        for key, (metadata, failures) in found.items():
            result = Result(kind=_KIND, name=key, error=failures)
            parent = client.parent_of(metadata)
            if parent is not None:
                result.parent_object = parent
            results.append(result)
        return results