"""
Notification system for restart sweep outcomes - Prometheus only
"""

import logging
from datetime import datetime, timezone
from urllib.parse import quote

import requests
from prometheus_client import CollectorRegistry, Counter, push_to_gateway, start_http_server

from restart_sweeper.config import config as default_config

logger = logging.getLogger(__name__)

REGISTRY = CollectorRegistry()

RESTART_FAILURES = Counter(
    'restart_sweeper_failures_total',
    'Total number of deployment restart failures',
    ['namespace', 'pod_name', 'error_type'],
    registry=REGISTRY
)

RESTARTS = Counter(
    'restart_sweeper_restarts_total',
    'Total number of deployment restarts triggered',
    ['namespace', 'deployment'],
    registry=REGISTRY
)


def serve_metrics(port):
    """Expose the sweep counters over HTTP for scraping"""
    start_http_server(port, registry=REGISTRY)
    logger.info(f"Serving Prometheus metrics on port {port}")


class NotificationManager:
    def __init__(self, config=None):
        self.config = config or default_config

    @property
    def enabled(self):
        return self.config.enable_notifications

    def record_restart(self, record):
        if not self.enabled or record.dry_run:
            return
        RESTARTS.labels(namespace=record.namespace, deployment=record.deployment).inc()

    def send_notification(self, namespace, pod_name, error):
        """Send notification about a failed restart"""
        if not self.enabled:
            return False

        RESTART_FAILURES.labels(
            namespace=namespace,
            pod_name=pod_name,
            error_type=type(error).__name__
        ).inc()

        if not self.config.pushgateway_url:
            return True

        try:
            self._push_to_pushgateway(namespace, pod_name, error)
            logger.debug(f"Prometheus alert sent for {namespace}/{pod_name}")
            return True
        except Exception as e:
            logger.error(f"Failed to send Prometheus alert for {namespace}/{pod_name}: {e}")
            return self._send_log_notification(namespace, pod_name, error)

    def publish(self):
        """Push the sweep counters to the Pushgateway at the end of a sweep"""
        if not self.enabled or not self.config.pushgateway_url:
            return False
        try:
            push_to_gateway(
                self.config.pushgateway_url,
                job=self.config.prometheus_job_name,
                registry=REGISTRY,
                grouping_key={'cluster': self.config.cluster_name}
            )
            return True
        except Exception as e:
            logger.error(f"Failed to push sweep metrics to Pushgateway: {e}")
            return False

    def _send_log_notification(self, namespace, pod_name, error):
        """Log-based notification (fallback)"""
        logger.error(
            f"DEPLOYMENT RESTART FAILED - {namespace}/{pod_name}\n"
            f"   Error: {type(error).__name__}: {error}\n"
            f"   Timestamp: {datetime.now(timezone.utc).isoformat()}"
        )
        return True

    def _push_to_pushgateway(self, namespace, pod_name, error):
        """Push a failure event under its own namespace/pod grouping key"""
        error_type = type(error).__name__
        metrics_data = f"""# HELP restart_sweeper_failure Deployment restart failure event
# TYPE restart_sweeper_failure gauge
restart_sweeper_failure{{error_type="{error_type}",cluster="{self.config.cluster_name}"}} 1

# HELP restart_sweeper_last_failure_timestamp Timestamp of last restart failure
# TYPE restart_sweeper_last_failure_timestamp gauge
restart_sweeper_last_failure_timestamp {datetime.now(timezone.utc).timestamp()}
"""
        url = (
            f"{self.config.pushgateway_url}/metrics/job/{quote(self.config.prometheus_job_name, safe='')}"
            f"/namespace/{quote(namespace, safe='')}/pod/{quote(pod_name, safe='')}"
        )
        response = requests.put(url, data=metrics_data, timeout=10)
        response.raise_for_status()
