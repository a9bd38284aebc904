"""
Restart Sweeper - Kubernetes Deployment Restart Sweep

A Python application that scans every namespace for pods matching a name
signature and triggers a rollout restart of the owning deployment.
"""

__version__ = "1.0.0"
__author__ = "Restart Sweeper Team"
