"""
Logging configuration for Restart Sweeper
"""

import logging
import sys
from typing import Any, Dict, Optional
import structlog
from colorama import init as colorama_init
from restart_sweeper.config import config

# Initialize colorama for cross-platform colored output
colorama_init()

# Applied to structlog events and to plain stdlib records alike
SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def build_formatter(log_format: str) -> logging.Formatter:
    renderer = (
        structlog.processors.JSONRenderer() if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None,
                  stream=None) -> None:
    """Route structlog and stdlib logging through one handler, one record per line"""
    log_level = log_level or config.log_level
    log_format = log_format or config.log_format

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter(log_format))
    handler.restart_sweeper = True

    root = logging.getLogger()
    for existing in [h for h in root.handlers if getattr(h, "restart_sweeper", False)]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    # Suppress verbose kubernetes client logs
    logging.getLogger('kubernetes').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


class SweepLogger:
    """Specialized logger for sweep lifecycle events"""

    def __init__(self):
        self.logger = structlog.get_logger("restart-sweeper")

    def log_startup(self, config_dict: Dict[str, Any]) -> None:
        self.logger.info(
            "Restart Sweeper starting up",
            version="1.0.0",
            config=config_dict
        )

    def log_sweep_start(self, sweep_id: str) -> None:
        self.logger.info("Starting restart sweep", sweep_id=sweep_id)

    def log_namespace(self, namespace: str) -> None:
        self.logger.info("Processing namespace", namespace=namespace)

    def log_pod_matched(self, namespace: str, pod_name: str) -> None:
        self.logger.info("Pod matched signature", namespace=namespace, pod_name=pod_name)

    def log_restart(self, namespace: str, pod_name: str, deployment: str,
                    timestamp: str, dry_run: bool = False) -> None:
        """Log when a deployment restart is triggered"""
        self.logger.info(
            "Deployment restart skipped (dry run)" if dry_run else "Deployment restart triggered",
            namespace=namespace,
            pod_name=pod_name,
            deployment=deployment,
            timestamp=timestamp
        )

    def log_namespace_failure(self, namespace: str, error: Exception) -> None:
        self.logger.error(
            "Failed to list pods, skipping namespace",
            namespace=namespace,
            error=str(error),
            error_type=type(error).__name__
        )

    def log_pod_failure(self, namespace: str, pod_name: str, error: Exception) -> None:
        """Log a remediation failure attributed to its pod"""
        self.logger.error(
            "Failed to restart deployment for pod",
            namespace=namespace,
            pod_name=pod_name,
            error=str(error),
            error_type=type(error).__name__
        )

    def log_sweep_end(self, sweep_id: str, summary: Dict[str, Any]) -> None:
        self.logger.info("Restart sweep completed", sweep_id=sweep_id, **summary)

    def log_aborted(self, error: Exception, stage: str) -> None:
        """Log an error that ends the sweep (or the current cycle)"""
        self.logger.error(
            "Restart sweep aborted",
            stage=stage,
            error=str(error),
            error_type=type(error).__name__,
            status=getattr(error, "status", None)
        )
