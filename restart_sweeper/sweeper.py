import time
import uuid
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from threading import Lock
from typing import List

from restart_sweeper.config import config as default_config
from restart_sweeper.errors import ClusterQueryError, RestartSweeperError
from restart_sweeper.logger import SweepLogger
from restart_sweeper.notifications import NotificationManager
from restart_sweeper.remediator import DeploymentRemediator, RestartRecord
from restart_sweeper.scanner import PodScanner, list_namespaces

logger = logging.getLogger(__name__)


@dataclass
class RemediationFailure:
    namespace: str
    pod_name: str
    error_type: str
    message: str


@dataclass
class SweepResult:
    namespaces: List[str] = field(default_factory=list)
    failed_namespaces: List[str] = field(default_factory=list)
    matched_pods: int = 0
    restarts: List[RestartRecord] = field(default_factory=list)
    failures: List[RemediationFailure] = field(default_factory=list)
    execution_time: float = 0.0

    def summary(self):
        return {
            "namespaces": len(self.namespaces),
            "failed_namespaces": len(self.failed_namespaces),
            "matched_pods": self.matched_pods,
            "restarted": len(self.restarts),
            "failed": len(self.failures),
            "execution_time": round(self.execution_time, 2),
        }


class RestartSweeper:
    """Enumerate namespaces, scan each for matching pods and restart their deployments"""

    def __init__(self, cluster, config=None, remediator=None, notification_manager=None):
        self.cluster = cluster
        self.config = config or default_config
        self.scanner = PodScanner(cluster, self.config)
        self.remediator = remediator or DeploymentRemediator(cluster, self.config)
        self.notification_manager = notification_manager or NotificationManager(self.config)
        self.sweep_logger = SweepLogger()
        self.results_lock = Lock()

    def run_sweep(self):
        """Run one sweep over the whole cluster.

        A failure to list namespaces propagates to the caller. Failures
        listing pods skip that namespace; failures remediating a pod skip
        that pod.
        """
        start_time = time.time()
        sweep_id = uuid.uuid4().hex[:8]
        self.sweep_logger.log_sweep_start(sweep_id)

        result = SweepResult(namespaces=list_namespaces(self.cluster))
        logger.info(f"Found {len(result.namespaces)} namespaces")

        for namespace in result.namespaces:
            self._sweep_namespace(namespace, result)

        result.execution_time = time.time() - start_time
        self.log_results(result)
        self.sweep_logger.log_sweep_end(sweep_id, result.summary())
        self.notification_manager.publish()
        return result

    def _sweep_namespace(self, namespace, result):
        self.sweep_logger.log_namespace(namespace)
        try:
            pods = self.scanner.scan(namespace)
        except ClusterQueryError as e:
            result.failed_namespaces.append(namespace)
            self.sweep_logger.log_namespace_failure(namespace, e)
            return

        pod_names = [pod.metadata.name for pod in pods]
        result.matched_pods += len(pod_names)

        if self.config.max_workers > 1 and len(pod_names) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                list(executor.map(lambda name: self._remediate(namespace, name, result), pod_names))
        else:
            for pod_name in pod_names:
                self._remediate(namespace, pod_name, result)

    def _remediate(self, namespace, pod_name, result):
        self.sweep_logger.log_pod_matched(namespace, pod_name)
        try:
            record = self.remediator.restart(namespace, pod_name)
        except RestartSweeperError as e:
            with self.results_lock:
                result.failures.append(
                    RemediationFailure(namespace, pod_name, type(e).__name__, str(e))
                )
            self.sweep_logger.log_pod_failure(namespace, pod_name, e)
            self.notification_manager.send_notification(namespace, pod_name, e)
            return

        with self.results_lock:
            result.restarts.append(record)
        self.sweep_logger.log_restart(
            namespace, pod_name, record.deployment, record.timestamp, dry_run=record.dry_run
        )
        self.notification_manager.record_restart(record)

    def log_results(self, result):
        """Log all restarted deployments at the end of the sweep"""
        logger.info("=== SWEEP SUMMARY ===")

        if self.config.dry_run:
            logger.info("DRY RUN - No deployments were updated")
            logger.info(f"Would have restarted {len(result.restarts)} deployments")
        else:
            logger.info(f"Restarted {len(result.restarts)} deployments")
        logger.info(f"Execution time: {result.execution_time:.2f} seconds")

        for record in result.restarts:
            logger.info(
                f"  - {record.namespace}/{record.deployment} "
                f"(pod: {record.pod_name}) at {record.timestamp}"
            )
        for failure in result.failures:
            logger.info(
                f"  ! {failure.namespace}/{failure.pod_name}: "
                f"{failure.error_type}: {failure.message}"
            )
        for namespace in result.failed_namespaces:
            logger.info(f"  ! namespace {namespace} skipped")

        logger.info("=== END SUMMARY ===")
