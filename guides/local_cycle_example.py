"""Run one workflow execution end to end against the in-memory service."""

import asyncio

from swflow import create
from swflow.transports import InMemoryTransport


async def main():
    transport = InMemoryTransport(poll_interval=0)
    swflow = create(
        transport=transport,
        unit="reports",
        decision_task_list="reports-dtl",
        activity_task_lists={"reports": "reports-atl"},
    )

    attempts = []

    @swflow.activity_worker.on_activity
    def build_report(context):
        attempts.append(context.params)
        if len(attempts) < 2:
            print("⏳ Data not ready yet, retrying in 30 seconds")
            return {"seconds_until_retry": 30}
        return {"outcome": {"rows": 42, "day": context.params["day"]}}

    started = await swflow.client.start(
        "daily_report", execution_id="2024-01-01", unit="reports", params={"day": 1}
    )
    print(f"🚀 Started {started.workflow_id} ({started.run_id})")

    while await swflow.client.is_active(started.workflow_id):
        await swflow.decision_worker.process_decision_task()
        await swflow.activity_worker.process_activity_task()
        # Nobody waits for real time here
        await transport.fire_timers()

    summary = await swflow.client.find(started.workflow_id, started.run_id)
    print(f"✅ {summary.status.value}: {summary.outcome}")


if __name__ == "__main__":
    asyncio.run(main())
