import os
import logging
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from restart_sweeper.errors import BootstrapError, ClusterQueryError, UpdateConflictError

logger = logging.getLogger(__name__)

FALLBACK_KUBECONFIG_PATHS = [
    os.path.expanduser("~/.kube/config"),
    "/etc/kubernetes/admin.conf",
    "/etc/rancher/k3s/k3s.yaml",
]


def load_cluster_config(kube_config_path=None, in_cluster=False):
    """Load cluster credentials, trying each known source in turn"""
    kubeconfig_path = kube_config_path or os.getenv('KUBECONFIG')
    try:
        if kubeconfig_path and os.path.exists(kubeconfig_path):
            logger.info(f"Loading kubeconfig from: {kubeconfig_path}")
            config.load_kube_config(config_file=kubeconfig_path)
            return

        if in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
            return

        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
            return
        except ConfigException:
            pass

        try:
            config.load_kube_config()
            logger.info("Loaded kubeconfig from default location")
            return
        except ConfigException:
            pass

        for kube_path in FALLBACK_KUBECONFIG_PATHS:
            if os.path.exists(kube_path):
                logger.info(f"Loading kubeconfig from: {kube_path}")
                config.load_kube_config(config_file=kube_path)
                return
    except Exception as e:
        raise BootstrapError(f"Could not load Kubernetes configuration: {e}") from e

    raise BootstrapError(
        "Could not load Kubernetes configuration. "
        "Set KUBECONFIG, create ~/.kube/config, or run inside a cluster"
    )


class KubernetesClient:
    """Cluster handle exposing the reads and the single write the sweep needs"""

    def __init__(self, core_v1=None, apps_v1=None):
        self.v1 = core_v1
        self.apps_v1 = apps_v1

    @classmethod
    def from_config(cls, kube_config_path=None, in_cluster=False):
        load_cluster_config(kube_config_path=kube_config_path, in_cluster=in_cluster)
        try:
            k8s = cls(core_v1=client.CoreV1Api(), apps_v1=client.AppsV1Api())
        except Exception as e:
            raise BootstrapError(f"Failed to initialize Kubernetes client: {e}") from e
        logger.info("✅ Kubernetes client initialized successfully")
        return k8s

    def list_namespaces(self):
        """List all namespaces visible to the caller"""
        try:
            namespaces = self.v1.list_namespace(watch=False)
        except ApiException as e:
            raise ClusterQueryError(f"error listing namespaces: {e.reason}", status=e.status) from e
        except Exception as e:
            raise ClusterQueryError(f"error listing namespaces: {e}") from e
        return namespaces.items

    def list_pods(self, namespace):
        """List all pods in a namespace"""
        try:
            pods = self.v1.list_namespaced_pod(namespace=namespace, watch=False)
        except ApiException as e:
            raise ClusterQueryError(f"error listing pods in {namespace}: {e.reason}", status=e.status) from e
        except Exception as e:
            raise ClusterQueryError(f"error listing pods in {namespace}: {e}") from e
        return pods.items

    def list_deployments(self, namespace, label_selector):
        """List deployments in a namespace matching a label selector"""
        try:
            deployments = self.apps_v1.list_namespaced_deployment(
                namespace=namespace,
                label_selector=label_selector
            )
        except ApiException as e:
            raise ClusterQueryError(
                f"error listing deployments in {namespace} ({label_selector}): {e.reason}",
                status=e.status
            ) from e
        except Exception as e:
            raise ClusterQueryError(f"error listing deployments in {namespace}: {e}") from e
        return deployments.items

    def get_deployment(self, namespace, name):
        """Fetch a single deployment by name"""
        try:
            return self.apps_v1.read_namespaced_deployment(name=name, namespace=namespace)
        except ApiException as e:
            raise ClusterQueryError(f"error getting deployment {namespace}/{name}: {e.reason}", status=e.status) from e
        except Exception as e:
            raise ClusterQueryError(f"error getting deployment {namespace}/{name}: {e}") from e

    def update_deployment(self, namespace, name, body):
        """Replace a deployment object. The resource version in body guards against stale writes."""
        try:
            return self.apps_v1.replace_namespaced_deployment(name=name, namespace=namespace, body=body)
        except ApiException as e:
            if e.status == 409:
                raise UpdateConflictError(
                    f"conflict updating deployment {namespace}/{name}: {e.reason}",
                    status=e.status
                ) from e
            raise ClusterQueryError(f"error updating deployment {namespace}/{name}: {e.reason}", status=e.status) from e
        except Exception as e:
            raise ClusterQueryError(f"error updating deployment {namespace}/{name}: {e}") from e

