"""Checks of stateful sets."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, NotFoundError, Result, Sensitive, mask_string, sensitive

_KIND = "StatefulSet"
_GROUP = "apps"
_VERSION = "v1"


class StatefulSetAnalyzer:
    """Reports stateful sets with missing services, storage classes or pods."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing stateful set."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        for sts in client.list(_KIND, analyzer.namespace, analyzer.label_selector):
            metadata = sts.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            spec = sts.get("spec") or {}
            failures: list[Failure] = []

            service_name = spec.get("serviceName", "")
            try:
                client.get("Service", namespace, service_name)
            except NotFoundError:
                failures.append(Failure(
                    text=f"StatefulSet uses the service {namespace}/{service_name} which does not exist.",
                    kubernetes_doc=client.api_doc(_KIND, _GROUP, _VERSION, "spec.serviceName"),
                    sensitive=[sensitive(namespace), sensitive(service_name)],
                ))

            for template in spec.get("volumeClaimTemplates") or []:
                storage_class = (template.get("spec") or {}).get("storageClassName")
                if storage_class is None:
                    continue
                try:
                    client.get("StorageClass", "", storage_class)
                except NotFoundError:
                    failures.append(Failure(
                        text=f"StatefulSet uses the storage class {storage_class} which does not exist.",
                        sensitive=[sensitive(storage_class)],
                    ))

            replicas = spec.get("replicas")
            available = (sts.get("status") or {}).get("availableReplicas", 0)
            if replicas is not None and replicas != available:
                failures.extend(self._pod_failures(analyzer, namespace, name, service_name, replicas))

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

    @staticmethod
    def _pod_failures(analyzer: Analyzer, namespace: str, name: str, service_name: str, replicas: int) -> list[Failure]:
        """The first problem among the set's pods, checked in ordinal order."""
        client = analyzer.client
        for ordinal in range(replicas):
            try:
                pod = client.get("Pod", namespace, f"{name}-{ordinal}")
            except NotFoundError:
                if ordinal == 0:
                    event = client.latest_event(namespace, name)
                    if event is not None and event.get("type") != "Normal":
                        return [Failure(text=event.get("message", ""))]
                return []
            if (pod.get("status") or {}).get("phase") != "Running":
                pod_meta = pod.get("metadata") or {}
                pod_name = pod_meta.get("name", "")
                pod_namespace = pod_meta.get("namespace", "")
                return [Failure(
                    text=f"Statefulset pod {pod_name} in the namespace {pod_namespace} is not in running state.",
                    sensitive=[
                        Sensitive(unmasked=namespace, masked=mask_string(pod_name)),
                        Sensitive(unmasked=service_name, masked=mask_string(pod_namespace)),
                    ],
                )]
        return []