"""Lambda handler for the scheduled reconciler."""

import json
from datetime import datetime, timezone

import structlog

from lifecycle.config import get_settings
from lifecycle.logging_config import configure_logging
from lifecycle.main import ReconcileJob

logger = structlog.get_logger()


def lambda_handler(event, context):
    """
    Lambda handler for the reconciliation schedule rule.

    Args:
        event: EventBridge scheduled event
        context: Lambda context

    Returns:
        Response with the cycle summary

    Raises:
        Exception: Any error that aborted the cycle, so the invocation is
            reported as failed
    """
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    logger.info(
        "Reconciler Lambda invoked",
        scheduled_time=(event or {}).get("time"),
        request_id=getattr(context, "aws_request_id", None),
    )

    result = ReconcileJob(settings).run()

    return {
        "statusCode": 200,
        "body": json.dumps({
            "message": "Reconciliation completed",
            **result.summary(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }),
    }
