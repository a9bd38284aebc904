import copy

import pytest
from kubernetes import client

from restart_sweeper.config import Config
from restart_sweeper.errors import ClusterQueryError, UpdateConflictError


def make_pod(namespace, name):
    return client.V1Pod(metadata=client.V1ObjectMeta(name=name, namespace=namespace))


def make_deployment(namespace, name, labels=None, annotations=None):
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels or {},
                                     resource_version="1"),
        spec=client.V1DeploymentSpec(
            selector=client.V1LabelSelector(match_labels=labels or {}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=labels or {}, annotations=annotations),
            ),
        ),
    )


class FakeCluster:
    """In-memory cluster implementing the operations the sweep consumes"""

    def __init__(self):
        self.pods = {}
        self.deployments = {}
        self.failing_pod_namespaces = set()
        self.conflicting_deployments = set()
        self.fail_namespace_listing = False
        self.updates = []
        self.pod_listings = []

    def add_namespace(self, namespace):
        self.pods.setdefault(namespace, [])
        self.deployments.setdefault(namespace, {})

    def add_pod(self, namespace, name):
        self.add_namespace(namespace)
        self.pods[namespace].append(make_pod(namespace, name))

    def add_deployment(self, namespace, name, labels=None, annotations=None):
        self.add_namespace(namespace)
        self.deployments[namespace][name] = make_deployment(namespace, name, labels, annotations)

    def list_namespaces(self):
        if self.fail_namespace_listing:
            raise ClusterQueryError("error listing namespaces: Unauthorized", status=401)
        return [client.V1Namespace(metadata=client.V1ObjectMeta(name=name)) for name in self.pods]

    def list_pods(self, namespace):
        self.pod_listings.append(namespace)
        if namespace in self.failing_pod_namespaces:
            raise ClusterQueryError(f"error listing pods in {namespace}", status=500)
        return list(self.pods[namespace])

    def list_deployments(self, namespace, label_selector):
        key, _, value = label_selector.partition("=")
        return [
            copy.deepcopy(d) for d in self.deployments.get(namespace, {}).values()
            if (d.metadata.labels or {}).get(key) == value
        ]

    def get_deployment(self, namespace, name):
        deployment = self.deployments.get(namespace, {}).get(name)
        if deployment is None:
            raise ClusterQueryError(f"deployments.apps \"{name}\" not found", status=404)
        return copy.deepcopy(deployment)

    def update_deployment(self, namespace, name, body):
        if (namespace, name) in self.conflicting_deployments:
            raise UpdateConflictError(f"conflict updating deployment {namespace}/{name}", status=409)
        self.updates.append((namespace, name, body))
        self.deployments[namespace][name] = body
        return body


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def config(monkeypatch):
    for name in ("MATCH_SIGNATURE", "SELECTOR_LABEL_KEY", "RESTART_ANNOTATION_KEY",
                 "MERGE_ANNOTATIONS", "DRY_RUN", "MAX_WORKERS", "RUN_INTERVAL_MINUTES",
                 "ENABLE_NOTIFICATIONS", "PROMETHEUS_PUSHGATEWAY_URL"):
        monkeypatch.delenv(name, raising=False)
    return Config(enable_notifications=False)
