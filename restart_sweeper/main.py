#!/usr/bin/env python3
"""
Kubernetes Restart Sweeper - Main Application
"""

import time
import logging

from restart_sweeper.config import config
from restart_sweeper.errors import BootstrapError, ClusterQueryError
from restart_sweeper.kubernetes_client import KubernetesClient
from restart_sweeper.logger import SweepLogger, setup_logging
from restart_sweeper.notifications import serve_metrics
from restart_sweeper.sweeper import RestartSweeper


def main(cluster=None, cfg=None):
    """Main application entry point. Returns the process exit status."""
    cfg = cfg or config
    setup_logging(cfg.log_level, cfg.log_format)
    logger = logging.getLogger('main')
    sweep_logger = SweepLogger()

    sweep_logger.log_startup(cfg.as_dict())
    if cfg.dry_run:
        logger.info("🔧 Running in DRY RUN mode - no deployments will be updated")

    try:
        if cluster is None:
            cluster = KubernetesClient.from_config(
                kube_config_path=cfg.kube_config_path,
                in_cluster=cfg.in_cluster
            )
        sweeper = RestartSweeper(cluster, cfg)

        if cfg.run_interval_minutes <= 0:
            sweeper.run_sweep()
            return 0

        logger.info(f"Starting main loop ({cfg.run_interval_minutes} minute intervals)")
        if cfg.metrics_port > 0:
            serve_metrics(cfg.metrics_port)

        cycle_count = 0
        while True:
            cycle_count += 1
            logger.info(f"Starting sweep cycle #{cycle_count}")
            try:
                sweeper.run_sweep()
            except ClusterQueryError as e:
                # only the first cycle's namespace listing is fatal
                if cycle_count == 1:
                    raise
                sweep_logger.log_aborted(e, stage=f"sweep cycle #{cycle_count}")

            logger.info(f"Waiting {cfg.run_interval_minutes} minutes until next run...")
            time.sleep(cfg.run_interval_minutes * 60)

    except BootstrapError as e:
        sweep_logger.log_aborted(e, stage="bootstrap")
        return 1
    except ClusterQueryError as e:
        sweep_logger.log_aborted(e, stage="listing namespaces")
        return 1
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
