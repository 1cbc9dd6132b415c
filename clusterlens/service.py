"""Checks of services through their endpoints."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, NotFoundError, Result, sensitive

_KIND = "Service"
_GROUP = ""
_VERSION = "v1"
_LEADER_ELECTION_ANNOTATION = "control-plane.alpha.kubernetes.io/leader"


class ServiceAnalyzer:
    """Reports services without endpoints or with endpoints that are not ready."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing service."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}
        doc_kind = _KIND

        for endpoint in client.list("Endpoints", analyzer.namespace, analyzer.label_selector):
            metadata = endpoint.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            subsets = endpoint.get("subsets") or []
            failures: list[Failure] = []

            if not subsets:
                if _LEADER_ELECTION_ANNOTATION in (metadata.get("annotations") or {}):
                    continue
                try:
                    service = client.get(_KIND, namespace, name)
                except NotFoundError:
                    print(f"Service {namespace}/{name} does not exist")
                    continue
                selector = (service.get("spec") or {}).get("selector") or {}
                for key, value in selector.items():
                    failures.append(Failure(
                        text=f"Service has no endpoints, expected label {key}={value}",
                        kubernetes_doc=client.api_doc(doc_kind, _GROUP, _VERSION, "spec.selector"),
                        sensitive=[sensitive(key), sensitive(value)],
                    ))
            else:
                doc_kind = "Endpoints"
                pods = [
                    f"{ref.get('kind', '')}/{ref.get('name', '')}"
                    for subset in subsets
                    for address in subset.get("notReadyAddresses") or []
                    for ref in (address.get("targetRef") or {},)
                ]
                if pods:
                    failures.append(Failure(
                        text=f"Service has not ready endpoints, pods: [{' '.join(pods)}], expected {len(pods)}",
                        kubernetes_doc=client.api_doc(doc_kind, _GROUP, _VERSION, "subsets.notReadyAddresses"),
                    ))

            events = client.list("Event", analyzer.namespace, field_selector=f"involvedObject.name={name}")
            failures.extend(
                Failure(text=f"Service {namespace}/{name} has event {event.get('message', '')}")
                for event in events
                if event.get("type") != "Normal"
            )

            if failures:
                found[f"{namespace}/{name}"] = (metadata, failures)

        results = list(analyzer.results)
        for key, (metadata, failures) in found.items():
            result = Result(kind=_KIND, name=key, error=failures)
            parent = client.parent_of(metadata)
            if parent is not None:
                result.parent_object = parent
            results.append(result)
        return results