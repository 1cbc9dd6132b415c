import pytest

from clusterlens.common import Analyzer, ClusterClient
from clusterlens.pod import PodAnalyzer, is_error_reason, is_event_error_reason


def _pod(name, namespace="default", status=None, owners=None):
    metadata = {"name": name, "namespace": namespace}
    if owners:
        metadata["ownerReferences"] = owners
    return {"kind": "Pod", "metadata": metadata, "status": status or {}}


def _event(name, involved, reason="", message="", namespace="default", event_type="Warning"):
    return {
        "kind": "Event",
        "metadata": {"name": name, "namespace": namespace},
        "involvedObject": {"kind": "Pod", "name": involved, "namespace": namespace},
        "reason": reason,
        "message": message,
        "type": event_type,
    }


def _run(objects, namespace="default"):
    results = PodAnalyzer().analyze(Analyzer(client=ClusterClient(objects), namespace=namespace))
    return sorted(results, key=lambda r: r.name)


def test_pending_namespace_filtering_and_readiness_failure():
    objects = [
        _pod("Pod1", status={
            "phase": "Pending",
            "conditions": [
                {
                    "type": "PodScheduled",
                    "reason": "Unschedulable",
                    "message": "0/1 nodes are available: 1 node(s) had taint "
                               "{node-role.kubernetes.io/master: }, that the pod didn't tolerate.",
                },
                {"type": "PodScheduled", "reason": "Unexpected failure"},
            ],
        }),
        _pod("Pod2", namespace="test"),
        _pod("Pod3", status={"phase": "Running", "containerStatuses": [{"ready": False}]}),
        _event("Event1", "Pod3", "Unhealthy", "readiness probe failed: the detail reason here ..."),
    ]
    results = _run(objects)
    assert [(r.name, len(r.error)) for r in results] == [("default/Pod1", 1), ("default/Pod3", 1)]
    assert results[1].error[0].text == "readiness probe failed: the detail reason here ..."


def test_readiness_failure_without_event():
    objects = [_pod("Pod1", status={"phase": "Running", "containerStatuses": [{"ready": False}]})]
    assert _run(objects) == []


def test_init_container_waiting():
    objects = [
        _pod("Pod1", status={
            "phase": "Pending",
            "initContainerStatuses": [
                {"ready": True, "state": {"running": {"startedAt": "2024-01-01T00:00:00Z"}}},
                {"ready": False, "state": {"waiting": {"reason": "ContainerCreating"}}},
            ],
        }),
        _event("Event1", "Pod1", "FailedCreatePodSandBox", "failed to create the pod sandbox ..."),
    ]
    results = _run(objects)
    assert [(r.name, len(r.error)) for r in results] == [("default/Pod1", 1)]
    assert results[0].error[0].text == "failed to create the pod sandbox ..."


def test_container_waiting_without_event():
    objects = [
        _pod("Pod1", status={
            "phase": "Pending",
            "containerStatuses": [{"ready": False, "state": {"waiting": {"reason": "ContainerCreating"}}}],
        })
    ]
    assert _run(objects) == []


def test_container_waiting_reasons():
    objects = [
        _pod("Pod1", status={
            "phase": "Pending",
            "containerStatuses": [
                {"name": "Container1", "ready": False,
                 "state": {"waiting": {"reason": "ContainerCreating"}}},
                {"name": "Container2", "ready": False,
                 "state": {"waiting": {"reason": "CrashLoopBackOff"}},
                 "lastState": {"terminated": {"reason": "test reason"}}},
                {"name": "Container3", "ready": False,
                 "state": {"waiting": {"reason": "RandomReason",
                                       "message": "This container won't be present in the failures"}}},
                {"name": "Container4", "ready": False,
                 "state": {"waiting": {"reason": "PreStartHookError",
                                       "message": "Container4 encountered PreStartHookError"}}},
                {"name": "Container5", "ready": False,
                 "state": {"waiting": {"reason": "CrashLoopBackOff",
                                       "message": "Container4 encountered CrashLoopBackOff"}}},
            ],
        }),
        _event("Event1", "Pod1", "RandomEvent"),
    ]
    results = _run(objects)
    assert [(r.name, len(r.error)) for r in results] == [("default/Pod1", 3)]
    assert [f.text for f in results[0].error] == [
        "the last termination reason is test reason container=Container2 pod=Pod1",
        "Container4 encountered PreStartHookError",
        "Container4 encountered CrashLoopBackOff",
    ]


def test_parent_object_follows_owner_chain():
    objects = [
        {"kind": "ReplicaSet", "metadata": {
            "name": "rs1", "namespace": "default",
            "ownerReferences": [{"kind": "Deployment", "name": "dep1"}]}},
        _pod("Pod1", status={
            "phase": "Pending",
            "conditions": [{"type": "PodScheduled", "reason": "Unschedulable", "message": "no nodes"}],
        }, owners=[{"kind": "ReplicaSet", "name": "rs1"}]),
    ]
    results = _run(objects)
    assert results[0].parent_object == "Deployment/dep1"


@pytest.mark.parametrize("reason, expected", [
    ("CrashLoopBackOff", True),
    ("ImagePullBackOff", True),
    ("InvalidImageName", True),
    ("ErrImagePull", True),
    ("RandomReason", False),
    ("", False),
])
def test_is_error_reason(reason, expected):
    assert is_error_reason(reason) is expected


@pytest.mark.parametrize("reason, expected", [
    ("FailedCreatePodSandBox", True),
    ("FailedMount", True),
    ("Unhealthy", False),
    ("RandomEvent", False),
])
def test_is_event_error_reason(reason, expected):
    assert is_event_error_reason(reason) is expected