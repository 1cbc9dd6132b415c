"""Checks of persistent volume claims."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, Result

_KIND = "PersistentVolumeClaim"


class PvcAnalyzer:
    """Reports pending claims whose provisioning failed."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing claim."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        for pvc in client.list(_KIND, analyzer.namespace, analyzer.label_selector):
            if (pvc.get("status") or {}).get("phase") != "Pending":
                continue
            metadata = pvc.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")

            event = client.latest_event(namespace, name)
            if event is None:
                continue
            if event.get("reason") == "ProvisioningFailed" and event.get("message"):
                found[f"{namespace}/{name}"] = (metadata, [Failure(text=event["message"])])

        results = list(analyzer.results)
        for key, (metadata, failures) in found.items():
            result = Result(kind=_KIND, name=key, error=failures)
            parent = client.parent_of(metadata)
            if parent is not None:
                result.parent_object = parent
            results.append(result)
        return results