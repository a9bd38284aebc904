"""Tests for the sweep orchestration"""

from unittest.mock import Mock

import pytest
from structlog.testing import capture_logs

from restart_sweeper.config import Config
from restart_sweeper.errors import ClusterQueryError
from restart_sweeper.sweeper import RestartSweeper


def build_cluster(cluster):
    cluster.add_pod("ns-a", "database-aaa-1")
    cluster.add_pod("ns-a", "web-1")
    cluster.add_deployment("ns-a", "database", labels={"app": "database"})
    cluster.add_pod("ns-b", "database-bbb-1")
    cluster.add_deployment("ns-b", "database", labels={"app": "database"})
    cluster.add_pod("ns-c", "database-ccc-1")
    cluster.add_deployment("ns-c", "database", labels={"app": "database"})
    return cluster


def test_sweep_restarts_matching_deployments(cluster, config):
    build_cluster(cluster)

    result = RestartSweeper(cluster, config).run_sweep()

    assert [(ns, name) for ns, name, _ in cluster.updates] == [
        ("ns-a", "database"), ("ns-b", "database"), ("ns-c", "database"),
    ]
    assert result.namespaces == ["ns-a", "ns-b", "ns-c"]
    assert result.matched_pods == 3
    assert len(result.restarts) == 3
    assert result.failures == []


def test_pod_listing_failure_does_not_stop_later_namespaces(cluster, config):
    build_cluster(cluster)
    cluster.failing_pod_namespaces.add("ns-b")

    result = RestartSweeper(cluster, config).run_sweep()

    assert cluster.pod_listings == ["ns-a", "ns-b", "ns-c"]
    assert result.failed_namespaces == ["ns-b"]
    assert ("ns-c", "database") in [(ns, name) for ns, name, _ in cluster.updates]


def test_update_conflict_does_not_stop_other_pods(cluster, config):
    cluster.add_pod("default", "database-1")
    cluster.add_pod("default", "orders-database-1")
    cluster.add_deployment("default", "database", labels={"app": "database"})
    cluster.add_deployment("default", "orders", labels={"app": "orders"})
    cluster.conflicting_deployments.add(("default", "database"))

    result = RestartSweeper(cluster, config).run_sweep()

    assert [(ns, name) for ns, name, _ in cluster.updates] == [("default", "orders")]
    assert len(result.failures) == 1
    assert result.failures[0].pod_name == "database-1"
    assert result.failures[0].error_type == "UpdateConflictError"


def test_each_matched_pod_triggers_one_update(cluster, config):
    cluster.add_pod("default", "database-1")
    cluster.add_pod("default", "database-2")
    cluster.add_deployment("default", "database", labels={"app": "database"})

    result = RestartSweeper(cluster, config).run_sweep()

    assert len(cluster.updates) == 2
    assert [r.pod_name for r in result.restarts] == ["database-1", "database-2"]


def test_resolution_failures_are_recorded_per_pod(cluster, config):
    cluster.add_pod("default", "database-1")
    cluster.add_pod("other", "database-2")
    cluster.add_deployment("other", "database-primary", labels={"app": "database"})

    result = RestartSweeper(cluster, config).run_sweep()

    assert cluster.updates == []
    assert [(f.namespace, f.error_type) for f in result.failures] == [
        ("default", "NoDeploymentFoundError"),
        ("other", "DeploymentLookupError"),
    ]


def test_namespace_listing_failure_propagates(cluster, config):
    cluster.fail_namespace_listing = True
    with pytest.raises(ClusterQueryError):
        RestartSweeper(cluster, config).run_sweep()


def test_failures_are_notified(cluster, config):
    cluster.add_pod("default", "database-1")
    notifications = Mock()

    RestartSweeper(cluster, config, notification_manager=notifications).run_sweep()

    notifications.send_notification.assert_called_once()
    namespace, pod_name, error = notifications.send_notification.call_args[0]
    assert (namespace, pod_name) == ("default", "database-1")
    assert type(error).__name__ == "NoDeploymentFoundError"


def test_worker_pool_keeps_continue_on_error(cluster, monkeypatch):
    monkeypatch.delenv("MAX_WORKERS", raising=False)
    for i in range(6):
        cluster.add_pod("default", f"svc{i}-database-x")
        cluster.add_deployment("default", f"svc{i}", labels={"app": f"svc{i}"})
    cluster.conflicting_deployments.add(("default", "svc3"))
    cfg = Config(max_workers=4, enable_notifications=False)

    result = RestartSweeper(cluster, cfg).run_sweep()

    assert sorted(name for _, name, _ in cluster.updates) == ["svc0", "svc1", "svc2", "svc4", "svc5"]
    assert [f.pod_name for f in result.failures] == ["svc3-database-x"]


def test_skipped_namespace_is_logged_as_error(cluster, config):
    build_cluster(cluster)
    cluster.failing_pod_namespaces.add("ns-b")

    with capture_logs() as logs:
        RestartSweeper(cluster, config).run_sweep()

    errors = [entry for entry in logs if entry["log_level"] == "error"]
    assert len(errors) == 1
    assert errors[0]["event"] == "Failed to list pods, skipping namespace"
    assert errors[0]["namespace"] == "ns-b"
    assert errors[0]["error_type"] == "ClusterQueryError"


def test_every_failed_pod_is_logged_as_error(cluster, config):
    cluster.add_pod("default", "database-1")
    cluster.add_pod("default", "orders-database-1")
    cluster.add_deployment("default", "orders", labels={"app": "orders"})
    cluster.conflicting_deployments.add(("default", "orders"))

    with capture_logs() as logs:
        RestartSweeper(cluster, config).run_sweep()

    errors = [
        (entry["namespace"], entry["pod_name"], entry["error_type"])
        for entry in logs
        if entry["log_level"] == "error" and entry["event"] == "Failed to restart deployment for pod"
    ]
    assert errors == [
        ("default", "database-1", "NoDeploymentFoundError"),
        ("default", "orders-database-1", "UpdateConflictError"),
    ]


def test_metrics_published_once_per_sweep(cluster, config):
    build_cluster(cluster)
    notifications = Mock()

    RestartSweeper(cluster, config, notification_manager=notifications).run_sweep()

    notifications.publish.assert_called_once_with()
    assert notifications.record_restart.call_count == 3
