"""Activity handler for the ``swflow worker activities`` command.

Start a worker with:

    swflow --config swflow.yaml worker activities guides.activity_handler_example:handle

and enqueue work with:

    swflow --config swflow.yaml execution start cleanup --execution-id nightly \\
        --unit reports --interval 86400 --params '{"older_than_days": 7}'
"""

import logging

logger = logging.getLogger(__name__)


async def handle(context):
    if context.name == "cleanup":
        days = (context.params or {}).get("older_than_days", 30)
        logger.info(f"Removing reports older than {days} days")
        return {"outcome": {"removed_before_days": days}}

    if context.name == "sync":
        # The upstream feed is refreshed hourly
        return {"seconds_until_restart": 3600}

    return {"error": f"Unknown task {context.name!r}"}
