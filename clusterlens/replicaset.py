"""Checks of replica sets."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, Result

_KIND = "ReplicaSet"


class ReplicaSetAnalyzer:
    """Reports empty replica sets that failed to create their pods."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing replica set."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        for rs in client.list(_KIND, analyzer.namespace, analyzer.label_selector):
            status = rs.get("status") or {}
            if status.get("replicas", 0) != 0:
                continue
            failures = [
                Failure(text=condition.get("message", ""))
                for condition in status.get("conditions") or []
                if condition.get("type") == "ReplicaFailure" and condition.get("reason") == "FailedCreate"
            ]
            if failures:
                metadata = rs.get("metadata") or {}
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