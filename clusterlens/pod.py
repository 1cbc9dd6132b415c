"""Checks of pods and their containers."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .common import Analyzer, ClusterClient, Failure, Result

_KIND = "Pod"

_ERROR_REASONS = frozenset({
    "CrashLoopBackOff",
    "ImagePullBackOff",
    "CreateContainerConfigError",
    "PreCreateHookError",
    "CreateContainerError",
    "PreStartHookError",
    "RunContainerError",
    "ImageInspectError",
    "ErrImagePull",
    "ErrImageNeverPull",
    "InvalidImageName",
})

_EVENT_ERROR_REASONS = frozenset({"FailedCreatePodSandBox", "FailedMount"})


def is_error_reason(reason: str) -> bool:
    """Whether a container waiting reason indicates a failure."""
    return reason in _ERROR_REASONS


def is_event_error_reason(reason: str) -> bool:
    """Whether an event reason explains a container stuck in creation."""
    return reason in _EVENT_ERROR_REASONS


def _container_failures(
    client: ClusterClient,
    statuses: Iterable[Mapping[str, Any]],
    pod_name: str,
    namespace: str,
    phase: str,
) -> list[Failure]:
    failures: list[Failure] = []
    for status in statuses:
        waiting = (status.get("state") or {}).get("waiting")
        if waiting is not None:
            reason = waiting.get("reason", "")
            message = waiting.get("message", "")
            terminated = (status.get("lastState") or {}).get("terminated")
            if reason == "ContainerCreating" and phase == "Pending":
                event = client.latest_event(namespace, pod_name)
                if event is None:
                    continue
                if is_event_error_reason(event.get("reason", "")) and event.get("message"):
                    failures.append(Failure(text=event["message"]))
            elif reason == "CrashLoopBackOff" and terminated is not None:
                failures.append(Failure(
                    text=(
                        f"the last termination reason is {terminated.get('reason', '')} "
                        f"container={status.get('name', '')} pod={pod_name}"
                    )
                ))
            elif is_error_reason(reason) and message:
                failures.append(Failure(text=message))
        elif not status.get("ready", False) and phase == "Running":
            # Running but the readiness probe fails.
            event = client.latest_event(namespace, pod_name)
            if event is None:
                continue
            if event.get("reason") == "Unhealthy" and event.get("message"):
                failures.append(Failure(text=event["message"]))
    return failures


class PodAnalyzer:
    """Reports pods that cannot be scheduled or whose containers fail."""

    def analyze(self, analyzer: Analyzer) -> list[Result]:
        """Results already on ``analyzer`` followed by one per failing pod."""
        client = analyzer.client
        found: dict[str, tuple[Mapping[str, Any], list[Failure]]] = {}

        for pod in client.list(_KIND, analyzer.namespace, analyzer.label_selector):
            metadata = pod.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace", "")
            status = pod.get("status") or {}
            phase = status.get("phase", "")

            failures: list[Failure] = []
            if phase == "Pending":
                failures.extend(
                    Failure(text=condition["message"])
                    for condition in status.get("conditions") or []
                    if condition.get("type") == "PodScheduled"
                    and condition.get("reason") == "Unschedulable"
                    and condition.get("message")
                )
            failures.extend(_container_failures(
                client, status.get("initContainerStatuses") or [], name, namespace, phase
            ))
            failures.extend(_container_failures(
                client, status.get("containerStatuses") or [], name, namespace, phase
            ))

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