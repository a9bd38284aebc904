"""
Deployment remediation: resolve the deployment behind a matched pod and
trigger a rollout restart by stamping its pod template.

Ownership is inferred from the pod name alone. The first '-' separated
segment of the pod name is used twice: as the value of the selector label
to check that some deployment advertises it, and as the name of the
deployment that is actually fetched and updated. The two lookups are not
reconciled, so a deployment can pass the label check and still fail the
name lookup. This is kept as-is; see candidate_token for the swap point.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from kubernetes import client

from restart_sweeper.config import config as default_config
from restart_sweeper.errors import (
    ClusterQueryError,
    DeploymentLookupError,
    NoDeploymentFoundError,
)

logger = logging.getLogger(__name__)

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def candidate_token(pod_name: str) -> str:
    """Guess the owning deployment's name from a pod name.

    'database-7f8b-x' -> 'database'. Replace this to resolve real owner
    references instead.
    """
    return pod_name.split("-")[0]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime(RFC3339_FORMAT)


@dataclass
class RestartRecord:
    namespace: str
    pod_name: str
    deployment: str
    timestamp: str
    dry_run: bool = False


class DeploymentRemediator:
    def __init__(self, cluster, config=None, clock=utc_now):
        self.cluster = cluster
        self.config = config or default_config
        self.clock = clock

    def resolve(self, namespace: str, pod_name: str):
        """Find the deployment to restart for pod_name.

        Raises NoDeploymentFoundError when no deployment carries the
        candidate label, DeploymentLookupError when the deployment named
        after the candidate cannot be fetched, and ClusterQueryError when
        the label listing itself fails.
        """
        token = candidate_token(pod_name)
        if not token:
            raise NoDeploymentFoundError(f"no deployment name can be derived from pod {pod_name}")

        selector = f"{self.config.selector_label_key}={token}"
        deployments = self.cluster.list_deployments(namespace, selector)
        if not deployments:
            raise NoDeploymentFoundError(f"no deployments found for pod {pod_name} ({selector})")

        try:
            return self.cluster.get_deployment(namespace, token)
        except ClusterQueryError as e:
            raise DeploymentLookupError(
                f"error getting deployment {namespace}/{token}: {e}",
                status=e.status
            ) from e

    def stamp(self, deployment, timestamp: str):
        """Write the restart annotation onto the deployment's pod template.

        The existing annotation map is replaced, dropping any other
        annotations, unless merge_annotations is enabled.
        """
        template = deployment.spec.template
        if template.metadata is None:
            template.metadata = client.V1ObjectMeta()

        if self.config.merge_annotations:
            annotations = dict(template.metadata.annotations or {})
            annotations[self.config.annotation_key] = timestamp
        else:
            annotations = {self.config.annotation_key: timestamp}
        template.metadata.annotations = annotations
        return deployment

    def restart(self, namespace: str, pod_name: str) -> RestartRecord:
        """Resolve and restart the deployment owning pod_name. Single attempt, no retry."""
        deployment = self.resolve(namespace, pod_name)
        name = deployment.metadata.name
        timestamp = format_timestamp(self.clock())
        self.stamp(deployment, timestamp)

        if self.config.dry_run:
            logger.info(f"Dry run - would restart deployment {namespace}/{name}")
            return RestartRecord(namespace, pod_name, name, timestamp, dry_run=True)

        logger.info(f"Restarting deployment: {namespace}/{name}")
        self.cluster.update_deployment(namespace, name, deployment)
        return RestartRecord(namespace, pod_name, name, timestamp)
