"""
Configuration management for Restart Sweeper
"""

import os
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


@dataclass
class Config:
    """Configuration class for Restart Sweeper"""

    # Kubernetes configuration
    kube_config_path: Optional[str] = None
    in_cluster: bool = False

    # Matching policy
    match_signature: str = "database"
    selector_label_key: str = "app"

    # Restart trigger
    annotation_key: str = "restart-timestamp"
    merge_annotations: bool = False
    dry_run: bool = False

    # Execution control
    max_workers: int = 1
    run_interval_minutes: int = 0

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"

    # Notifications
    enable_notifications: bool = True
    pushgateway_url: Optional[str] = None
    prometheus_job_name: str = "restart_sweeper"
    cluster_name: str = "unknown"
    metrics_port: int = 0

    def __post_init__(self):
        """Override with environment variables if present"""
        self.kube_config_path = os.getenv("KUBE_CONFIG_PATH", self.kube_config_path)
        self.in_cluster = _env_flag("IN_CLUSTER", self.in_cluster)

        self.match_signature = os.getenv("MATCH_SIGNATURE", self.match_signature)
        self.selector_label_key = os.getenv("SELECTOR_LABEL_KEY", self.selector_label_key)

        self.annotation_key = os.getenv("RESTART_ANNOTATION_KEY", self.annotation_key)
        self.merge_annotations = _env_flag("MERGE_ANNOTATIONS", self.merge_annotations)
        self.dry_run = _env_flag("DRY_RUN", self.dry_run)

        self.max_workers = int(os.getenv("MAX_WORKERS", self.max_workers))
        self.run_interval_minutes = int(os.getenv("RUN_INTERVAL_MINUTES", self.run_interval_minutes))

        self.log_level = os.getenv("LOG_LEVEL", self.log_level)
        self.log_format = os.getenv("LOG_FORMAT", self.log_format)

        self.enable_notifications = _env_flag("ENABLE_NOTIFICATIONS", self.enable_notifications)
        self.pushgateway_url = os.getenv("PROMETHEUS_PUSHGATEWAY_URL", self.pushgateway_url)
        self.prometheus_job_name = os.getenv("PROMETHEUS_JOB_NAME", self.prometheus_job_name)
        self.cluster_name = os.getenv("CLUSTER_NAME", self.cluster_name)
        self.metrics_port = int(os.getenv("METRICS_PORT", self.metrics_port))

        if not self.match_signature:
            raise ValueError("MATCH_SIGNATURE must not be empty")
        if self.max_workers < 1:
            raise ValueError("MAX_WORKERS must be at least 1")

    def as_dict(self):
        """Settings safe to log at startup"""
        return {
            "match_signature": self.match_signature,
            "selector_label_key": self.selector_label_key,
            "annotation_key": self.annotation_key,
            "merge_annotations": self.merge_annotations,
            "dry_run": self.dry_run,
            "max_workers": self.max_workers,
            "run_interval_minutes": self.run_interval_minutes,
        }


# Global configuration instance
config = Config()
