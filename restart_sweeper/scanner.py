"""
Namespace enumeration and pod matching
"""

import logging
from restart_sweeper.config import config as default_config

logger = logging.getLogger(__name__)


def list_namespaces(cluster):
    """Return the names of all namespaces visible to the cluster handle.

    Raises ClusterQueryError when the listing fails; without a namespace set
    there is nothing to sweep, so callers treat this as fatal.
    """
    logger.info("Listing namespaces")
    return [namespace.metadata.name for namespace in cluster.list_namespaces()]


class PodScanner:
    def __init__(self, cluster, config=None):
        self.cluster = cluster
        self.config = config or default_config

    @property
    def signature(self):
        return self.config.match_signature

    def matches(self, pod_name):
        """True if the pod name contains the match signature (case-sensitive)"""
        return self.signature in pod_name

    def list_pods(self, namespace):
        logger.info(f"Listing pods in namespace {namespace}")
        return self.cluster.list_pods(namespace)

    def scan(self, namespace):
        """Return the pods in namespace whose names match, in listing order"""
        pods = self.list_pods(namespace)
        matched = [pod for pod in pods if self.matches(pod.metadata.name)]
        logger.info(
            f"Found {len(pods)} pods in {namespace}, "
            f"{len(matched)} matching '{self.signature}'"
        )
        return matched
