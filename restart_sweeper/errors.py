"""
Error taxonomy for Restart Sweeper
"""

from typing import Optional


class RestartSweeperError(Exception):
    """Base class for all sweep errors"""


class BootstrapError(RestartSweeperError):
    """Credential discovery or client construction failed. Fatal."""


class ClusterQueryError(RestartSweeperError):
    """A list, get or update call against the cluster failed"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class DeploymentLookupError(ClusterQueryError):
    """Fetching the candidate deployment by name failed (including not found)"""


class UpdateConflictError(ClusterQueryError):
    """The cluster rejected the deployment update as a concurrent modification"""


class NoDeploymentFoundError(RestartSweeperError):
    """No deployment in the namespace carries the candidate app label"""
