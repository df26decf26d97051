"""Transport tests."""

import json

import pytest
from botocore.exceptions import ClientError

from swflow.contracts import ActivityType, ExecutionStatus, WorkflowType
from swflow.decisions import (
    CompleteWorkflowExecution,
    ContinueAsNewWorkflowExecution,
    ScheduleActivity,
    StartTimer,
)
from swflow.errors import AlreadyStarted, NotFound
from swflow.transports.inmemory import InMemoryTransport
from swflow.transports.swf import SwfTransport, parse_event

WORKFLOW_TYPE = WorkflowType(name="master-workflow")


async def _start(transport, workflow_id="unit;id", input='{"name": "x"}'):
    return await transport.start_workflow_execution(
        workflow_id=workflow_id,
        workflow_type=WORKFLOW_TYPE,
        task_list="dtl",
        input=input,
        tag_list=["unit"],
        child_policy="TERMINATE",
        execution_start_to_close_timeout=172800,
        task_start_to_close_timeout=600,
    )


@pytest.mark.asyncio
async def test_inmemory_decision_task_delivers_new_events_once():
    transport = InMemoryTransport(poll_interval=0)
    run_id = await _start(transport)

    task = await transport.poll_for_decision_task("dtl")
    assert task.run_id == run_id
    assert [e.event_type for e in task.new_events] == ["WorkflowExecutionStarted"]
    assert task.events[0].attribute("input") == '{"name": "x"}'

    await transport.respond_decision_task_completed(
        task.task_token,
        [ScheduleActivity(activity_type=ActivityType(name="a"), input="{}", task_list="atl")],
    )
    assert await transport.poll_for_decision_task("dtl") is None

    activity = await transport.poll_for_activity_task("atl")
    await transport.respond_activity_task_completed(activity.task_token, result="{}")

    task = await transport.poll_for_decision_task("dtl")
    assert [e.event_type for e in task.new_events] == [
        "ActivityTaskScheduled",
        "ActivityTaskCompleted",
    ]
    assert task.new_events[-1].attribute("scheduled_event_id") == 2
    assert len(task.events) == 3


@pytest.mark.asyncio
async def test_inmemory_duplicate_start_raises():
    transport = InMemoryTransport(poll_interval=0)
    await _start(transport)
    with pytest.raises(AlreadyStarted):
        await _start(transport)


@pytest.mark.asyncio
async def test_inmemory_completion_closes_execution():
    transport = InMemoryTransport(poll_interval=0)
    run_id = await _start(transport)
    task = await transport.poll_for_decision_task("dtl")
    await transport.respond_decision_task_completed(
        task.task_token, [CompleteWorkflowExecution(result='{"outcome": 1}')]
    )

    execution = await transport.get_workflow_execution("unit;id", run_id)
    assert execution.status == ExecutionStatus.COMPLETED
    assert execution.events[-1].attribute("result") == '{"outcome": 1}'
    assert not await transport.is_execution_open("unit;id")


@pytest.mark.asyncio
async def test_inmemory_timer_fires_on_request():
    transport = InMemoryTransport(poll_interval=0)
    await _start(transport)
    task = await transport.poll_for_decision_task("dtl")
    await transport.respond_decision_task_completed(
        task.task_token, [StartTimer(seconds=10, control='{"a": 1}')]
    )
    assert await transport.poll_for_decision_task("dtl") is None

    assert await transport.fire_timers() == 1
    task = await transport.poll_for_decision_task("dtl")
    fired = task.new_events[-1]
    assert fired.event_type == "TimerFired"
    assert fired.attribute("started_event_id") == 2
    assert task.events[1].attribute("control") == '{"a": 1}'


@pytest.mark.asyncio
async def test_inmemory_continue_as_new_starts_new_run():
    transport = InMemoryTransport(poll_interval=0)
    run_id = await _start(transport)
    task = await transport.poll_for_decision_task("dtl")
    await transport.respond_decision_task_completed(
        task.task_token,
        [ContinueAsNewWorkflowExecution(input='{"name": "y"}', task_list="dtl")],
    )

    old = await transport.get_workflow_execution("unit;id", run_id)
    assert old.status == ExecutionStatus.CONTINUED_AS_NEW
    successor = await transport.open_execution("unit;id")
    assert successor.run_id != run_id
    assert successor.events[0].attribute("input") == '{"name": "y"}'


@pytest.mark.asyncio
async def test_inmemory_activity_timeout():
    transport = InMemoryTransport(poll_interval=0)
    await _start(transport)
    task = await transport.poll_for_decision_task("dtl")
    await transport.respond_decision_task_completed(
        task.task_token,
        [ScheduleActivity(activity_type=ActivityType(name="a"), input="{}", task_list="atl")],
    )

    assert await transport.time_out_activity_tasks() == 1
    assert await transport.poll_for_activity_task("atl") is None
    task = await transport.poll_for_decision_task("dtl")
    assert task.new_events[-1].event_type == "ActivityTaskTimedOut"


@pytest.mark.asyncio
async def test_inmemory_unanswered_decision_task_is_handed_out_again():
    transport = InMemoryTransport(poll_interval=0)
    await _start(transport)

    first = await transport.poll_for_decision_task("dtl")
    second = await transport.poll_for_decision_task("dtl")

    assert second.task_token != first.task_token
    assert second.new_events == first.new_events
    with pytest.raises(ValueError):
        await transport.respond_decision_task_completed(first.task_token, [])

    await transport.respond_decision_task_completed(second.task_token, [])
    assert await transport.poll_for_decision_task("dtl") is None


@pytest.mark.asyncio
async def test_inmemory_unanswered_decision_task_does_not_block_others():
    transport = InMemoryTransport(poll_interval=0)
    await _start(transport, workflow_id="unit;stuck")
    await _start(transport, workflow_id="unit;healthy")

    stuck = await transport.poll_for_decision_task("dtl")
    healthy = await transport.poll_for_decision_task("dtl")

    assert stuck.workflow_id == "unit;stuck"
    assert healthy.workflow_id == "unit;healthy"


@pytest.mark.asyncio
async def test_inmemory_events_during_decision_are_delivered_afterwards():
    transport = InMemoryTransport(poll_interval=0)
    await _start(transport)
    task = await transport.poll_for_decision_task("dtl")
    schedule = [
        ScheduleActivity(activity_type=ActivityType(name="a"), input="{}", task_list="atl")
        for _ in range(2)
    ]
    await transport.respond_decision_task_completed(task.task_token, schedule)
    first = await transport.poll_for_activity_task("atl")
    second = await transport.poll_for_activity_task("atl")

    await transport.respond_activity_task_completed(first.task_token, result="{}")
    task = await transport.poll_for_decision_task("dtl")
    await transport.respond_activity_task_completed(second.task_token, result="{}")
    await transport.respond_decision_task_completed(task.task_token, [])

    task = await transport.poll_for_decision_task("dtl")
    assert [e.event_type for e in task.new_events] == ["ActivityTaskCompleted"]
    assert task.new_events[0].attribute("scheduled_event_id") == 3


@pytest.mark.asyncio
async def test_inmemory_unknown_execution_raises():
    with pytest.raises(NotFound):
        await InMemoryTransport().get_workflow_execution("unit;id", "run")


@pytest.mark.asyncio
async def test_inmemory_registration():
    transport = InMemoryTransport(domain="testdomain")
    await transport.register_domain("desc")
    await transport.register_workflow_type("master-workflow", "v1")
    await transport.register_activity_type("master-activity", "v1")
    assert transport.domains == {"testdomain"}
    assert transport.workflow_types == {("master-workflow", "v1")}
    assert transport.activity_types == {("master-activity", "v1")}


def test_parse_event_flattens_attributes():
    event = parse_event(
        {
            "eventId": 1,
            "eventType": "WorkflowExecutionStarted",
            "workflowExecutionStartedEventAttributes": {
                "input": "{}",
                "taskList": {"name": "dtl"},
                "childPolicy": "TERMINATE",
                "taskStartToCloseTimeout": "600",
                "tagList": ["unit"],
            },
        }
    )
    assert event.event_id == 1
    assert event.attributes == {
        "input": "{}",
        "task_list": "dtl",
        "child_policy": "TERMINATE",
        "task_start_to_close_timeout": "600",
        "tag_list": ["unit"],
    }


class FakeSwfClient:
    """Stand-in for a boto3 SWF client returning canned responses."""

    def __init__(self, responses=None, errors=None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.calls = []

    def __getattr__(self, name):
        def call(**kwargs):
            self.calls.append((name, kwargs))
            if name in self.errors:
                raise self.errors[name]
            response = self.responses.get(name, {})
            return response.pop(0) if isinstance(response, list) else response

        return call


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "operation")


@pytest.mark.asyncio
async def test_swf_poll_for_decision_task_pages_and_marks_new_events():
    def raw(event_id, event_type):
        return {"eventId": event_id, "eventType": event_type}

    client = FakeSwfClient(
        responses={
            "poll_for_decision_task": [
                {
                    "taskToken": "token",
                    "workflowExecution": {"workflowId": "unit;id", "runId": "run"},
                    "workflowType": {"name": "master-workflow", "version": "v1"},
                    "previousStartedEventId": 3,
                    "events": [raw(1, "WorkflowExecutionStarted"), raw(2, "DecisionTaskScheduled")],
                    "nextPageToken": "page-2",
                },
                {"events": [raw(3, "DecisionTaskStarted"), raw(4, "TimerFired")]},
            ]
        }
    )
    transport = SwfTransport(domain="d", client=client)

    task = await transport.poll_for_decision_task("dtl", identity="host")

    assert task.task_token == "token"
    assert task.workflow_type.name == "master-workflow"
    assert [e.event_id for e in task.events] == [1, 2, 3, 4]
    assert [e.event_id for e in task.new_events] == [4]
    assert client.calls[0][1] == {
        "domain": "d",
        "taskList": {"name": "dtl"},
        "identity": "host",
    }
    assert client.calls[1][1]["nextPageToken"] == "page-2"


@pytest.mark.asyncio
async def test_swf_empty_poll_returns_none():
    transport = SwfTransport(client=FakeSwfClient())
    assert await transport.poll_for_activity_task("atl") is None
    assert await transport.poll_for_decision_task("dtl") is None


@pytest.mark.asyncio
async def test_swf_respond_decisions_uses_wire_format():
    client = FakeSwfClient()
    transport = SwfTransport(client=client)
    await transport.respond_decision_task_completed(
        "token", [StartTimer(timer_id="t", seconds=5, control="{}")]
    )

    name, kwargs = client.calls[0]
    assert name == "respond_decision_task_completed"
    decision = kwargs["decisions"][0]
    assert decision["decisionType"] == "StartTimer"
    assert decision["startTimerDecisionAttributes"]["startToFireTimeout"] == "5"


@pytest.mark.asyncio
async def test_swf_already_started_fault():
    client = FakeSwfClient(
        errors={"start_workflow_execution": _client_error("WorkflowExecutionAlreadyStartedFault")}
    )
    with pytest.raises(AlreadyStarted):
        await _start(SwfTransport(client=client))


@pytest.mark.asyncio
async def test_swf_unknown_resource_fault():
    client = FakeSwfClient(
        errors={"describe_workflow_execution": _client_error("UnknownResourceFault")}
    )
    with pytest.raises(NotFound):
        await SwfTransport(client=client).get_workflow_execution("unit;id", "run")


@pytest.mark.asyncio
async def test_swf_get_workflow_execution_maps_close_status():
    client = FakeSwfClient(
        responses={
            "describe_workflow_execution": {
                "executionInfo": {
                    "executionStatus": "CLOSED",
                    "closeStatus": "FAILED",
                    "workflowType": {"name": "master-workflow", "version": "v1"},
                }
            },
            "get_workflow_execution_history": {
                "events": [
                    {
                        "eventId": 1,
                        "eventType": "WorkflowExecutionFailed",
                        "workflowExecutionFailedEventAttributes": {
                            "details": json.dumps({"error": "boom"})
                        },
                    }
                ]
            },
        }
    )
    execution = await SwfTransport(client=client).get_workflow_execution("unit;id", "run")
    assert execution.status == ExecutionStatus.FAILED
    assert execution.events[0].attribute("details") == '{"error": "boom"}'


@pytest.mark.asyncio
async def test_swf_is_execution_open():
    client = FakeSwfClient(
        responses={"list_open_workflow_executions": {"executionInfos": [{}]}}
    )
    assert await SwfTransport(client=client).is_execution_open("unit;id")
    assert client.calls[0][1]["executionFilter"] == {"workflowId": "unit;id"}
