"""Checks of validating admission webhooks and the services behind them."""

from __future__ import annotations

from typing import Any, Mapping

from .common import Analyzer, Failure, NotFoundError, Result, sensitive

_KIND = "ValidatingWebhookConfiguration"
_GROUP = "apps"
_VERSION = "v1"


def selector_to_string(selector: Mapping[str, str]) -> str:
    """Render a label map as a ``key=value,key=value`` selector."""
    return ",".join(f"{key}={value}" for key, value in selector.items())


class ValidatingWebhookAnalyzer:
    """Reports webhooks whose service is missing or has no running pods."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing webhook."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        # Webhook configurations are cluster-scoped, so the namespace is not applied.
        for config in client.list(_KIND, "", analyzer.label_selector):
            metadata = config.get("metadata") or {}
            config_namespace = metadata.get("namespace", "")

            for webhook in config.get("webhooks") or []:
                service_ref = (webhook.get("clientConfig") or {}).get("service")
                if service_ref is None:
                    continue
                webhook_name = webhook.get("name", "")
                service_name = service_ref.get("name", "")
                service_namespace = service_ref.get("namespace", "")
                key = f"{config_namespace}/{webhook_name}"

                try:
                    service = client.get("Service", service_namespace, service_name)
                except NotFoundError:
                    found[key] = (metadata, [Failure(
                        text=(
                            f"Service {service_name} not found as mapped to by "
                            f"Validating Webhook {webhook_name}"
                        ),
                        kubernetes_doc=client.api_doc(
                            _KIND, _GROUP, _VERSION, "spec.webhook.clientConfig.service"
                        ),
                        sensitive=[sensitive(config_namespace), sensitive(service_name)],
                    )])
                    continue

                selector = (service.get("spec") or {}).get("selector") or {}
                # Services without selectors are left to the service analyzer.
                if not selector:
                    continue

                pods = client.list("Pod", service_namespace, selector_to_string(selector))
                failures: list[Failure] = []
                if not pods:
                    failures.append(Failure(
                        text=(
                            f"No active pods found within service {service_name} as mapped to by "
                            f"Validating Webhook {webhook_name}"
                        ),
                        kubernetes_doc=client.api_doc(
                            _KIND, _GROUP, _VERSION, "spec.webhook.clientConfig.service"
                        ),
                        sensitive=[sensitive(config_namespace)],
                    ))
                for pod in pods:
                    if (pod.get("status") or {}).get("phase") == "Running":
                        continue
                    pod_name = (pod.get("metadata") or {}).get("name", "")
                    failures.append(Failure(
                        text=(
                            f"Validating Webhook ({webhook_name}) is pointing to an "
                            f"inactive receiver pod ({pod_name})"
                        ),
                        kubernetes_doc=client.api_doc(_KIND, _GROUP, _VERSION, "spec.webhook"),
                        sensitive=[
                            sensitive(config_namespace),
                            sensitive(webhook_name),
                            sensitive(pod_name),
                        ],
                    ))
                if failures:
                    found[key] = (metadata, failures)

        results = list(analyzer.results)
        for key, (metadata, failures) in found.items():
            result = Result(kind=_KIND, name=key, error=failures)
            parent = client.parent_of(metadata)
            if parent is not None:
                result.parent_object = parent
            results.append(result)
        return results