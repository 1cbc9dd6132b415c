"""Checks of node conditions."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, Result, sensitive

_KIND = "Node"
# k3s reports EtcdIsVoter as a plain condition; it says nothing about health.
_IGNORED_CONDITIONS = frozenset({"EtcdIsVoter"})


def _is_failing(condition: Mapping[str, Any]) -> bool:
    condition_type = condition.get("type", "")
    status = condition.get("status", "")
    if condition_type == "Ready":
        return status != "True"
    if condition_type in _IGNORED_CONDITIONS:
        return False
    return status != "False"


def _condition_failure(node_name: str, condition: Mapping[str, Any]) -> Failure:
    return Failure(
        text=(
            f"{node_name} has condition of type {condition.get('type', '')}, "
            f"reason {condition.get('reason', '')}: {condition.get('message', '')}"
        ),
        sensitive=[sensitive(node_name)],
    )


class NodeAnalyzer:
    """Reports nodes that are not ready or are under pressure."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing node."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        # Nodes are cluster-scoped, so the namespace is not applied.
        for node in client.list(_KIND, "", analyzer.label_selector):
            metadata = node.get("metadata") or {}
            name = metadata.get("name", "")
            conditions = (node.get("status") or {}).get("conditions") or []
            failures = [_condition_failure(name, c) for c in conditions if _is_failing(c)]
            if failures:
                found[name] = (metadata, failures)

        results = list(analyzer.results)
        for key, (metadata, failures) in found.items():
            result = Result(kind=_KIND, name=key, error=failures)
            parent = client.parent_of(metadata)
            if parent is not None:
                result.parent_object = parent
            results.append(result)
        return results