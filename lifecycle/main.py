"""Reconciler entrypoint for scheduled execution."""

import sys
import time
from typing import Optional

import boto3
import structlog

from lifecycle.config import ReconcileSettings, get_settings
from lifecycle.events.publisher import create_event_publisher
from lifecycle.github.client import GitHubClient
from lifecycle.logging_config import configure_logging
from lifecycle.metrics import ReconcileMetrics, get_metrics
from lifecycle.reconcile.models import CycleResult
from lifecycle.reconcile.workflow import ReconcileWorkflow
from lifecycle.storage.operation_store import OperationStore

logger = structlog.get_logger()


def build_workflow(
    settings: ReconcileSettings,
    github_client: GitHubClient,
    metrics: Optional[ReconcileMetrics] = None,
) -> ReconcileWorkflow:
    """Wire the store, GitHub client and publisher described by settings."""
    s3_client = boto3.client(
        "s3",
        endpoint_url=settings.storage_endpoint_url,
        region_name=settings.aws_region,
    )
    return ReconcileWorkflow(
        store=OperationStore(settings.operation_bucket, s3_client=s3_client),
        github_client=github_client,
        publisher=create_event_publisher(settings),
        repo_owner=settings.repo_owner,
        metrics=metrics,
    )


class ReconcileJob:
    """One scheduled reconciliation run with metrics and error handling."""

    def __init__(
        self,
        settings: ReconcileSettings,
        workflow: Optional[ReconcileWorkflow] = None,
        metrics: Optional[ReconcileMetrics] = None,
    ):
        self.settings = settings
        self.metrics = metrics or get_metrics()
        self._github_client: Optional[GitHubClient] = None
        if workflow is None:
            self._github_client = GitHubClient(
                token=settings.github_token,
                base_url=settings.github_base_url,
                timeout=settings.github_timeout_seconds,
                runs_per_page=settings.runs_per_page,
            )
            workflow = build_workflow(settings, self._github_client, self.metrics)
        self.workflow = workflow

    def run(self) -> CycleResult:
        """
        Execute one cycle.

        Errors that abort the cycle are logged and re-raised so the scheduler
        reports the invocation as failed. Even a "poison" operation will
        eventually expire, so repeated failures here mean something is wrong
        systemically.
        """
        start_time = time.time()

        try:
            logger.info("Starting reconciliation", repo_owner=self.settings.repo_owner)
            result = self.workflow.execute()
        except Exception as e:
            self.metrics.record_cycle_failure(type(e).__name__)
            logger.error(
                "An error occurred while attempting operation/run reconciliation",
                error=str(e),
                exc_info=True,
            )
            raise
        else:
            self.metrics.record_cycle_success(time.time() - start_time)
            if result.failed:
                logger.warning(
                    "Reconciliation completed with failed operations",
                    failed=result.failed,
                )
            return result
        finally:
            self.metrics.push(self.settings.metrics_gateway_url)
            if self._github_client is not None:
                self._github_client.close()


def main() -> int:
    """Main entrypoint."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    ReconcileJob(settings).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
