"""Tests for the TaskNode state machine.

Tests cover:
- At-most-once execution (sequential and concurrent run())
- Context propagation from parent to subtasks
- Context isolation between siblings
- Ordering: a parent completes before its subtasks start
- Failure bubbling and fail-slow joins
"""

import asyncio

import pytest

from automator.compiler import Compiler
from automator.errors import AutomatorError, SubtaskFailed, TaskFailed
from automator.schemas import TaskState


def _compile(registry, name, descriptor=None, context=None):
    return Compiler(registry).compile(name, descriptor, context)


def _cause_chain(error: BaseException) -> list[BaseException]:
    chain = []
    while error is not None:
        chain.append(error)
        error = error.__cause__
    return chain


# -----------------------------------------------------------------------------
# At-most-once execution
# -----------------------------------------------------------------------------


class TestAtMostOnce:
    """run() executes the handler only once per node."""

    @pytest.mark.asyncio
    async def test_sequential_runs_return_same_outcome(self, registry, recorder):
        registry.register("a", recorder.returning("a", {"id": 1}))
        node = _compile(registry, "a")

        first = await node.run()
        second_future = node.run()
        second = await second_future

        assert first == second == {"id": 1}
        assert second_future is node.pending
        assert recorder.count("a") == 1

    @pytest.mark.asyncio
    async def test_concurrent_runs_share_future(self, registry, recorder):
        registry.register("a", recorder.returning("a", "done", delay=0.01))
        node = _compile(registry, "a")

        f1 = node.run()
        f2 = node.run({"other": "context"})

        assert f1 is f2
        results = await asyncio.gather(f1, f2)
        assert results == ["done", "done"]
        assert recorder.count("a") == 1

    @pytest.mark.asyncio
    async def test_failed_node_does_not_rerun(self, registry, recorder):
        registry.register("a", recorder.failing("a", ValueError("boom")))
        node = _compile(registry, "a")

        with pytest.raises(TaskFailed):
            await node.run()
        with pytest.raises(TaskFailed):
            await node.run()

        assert recorder.count("a") == 1
        assert node.state is TaskState.ERROR


# -----------------------------------------------------------------------------
# State transitions
# -----------------------------------------------------------------------------


class TestStates:
    """idle -> progress -> success | error."""

    @pytest.mark.asyncio
    async def test_states_through_success(self, registry):
        gate = asyncio.Event()

        async def handler(descriptor, context):
            await gate.wait()
            return 42

        registry.register("a", handler)
        node = _compile(registry, "a")
        assert node.state is TaskState.IDLE

        future = node.run()
        await asyncio.sleep(0)
        assert node.state is TaskState.PROGRESS

        gate.set()
        assert await future == 42
        assert node.state is TaskState.SUCCESS
        assert node.result == 42
        assert node.error is None

    @pytest.mark.asyncio
    async def test_sync_handler_supported(self, registry):
        registry.register("a", lambda descriptor, context: descriptor["x"] * 2)
        node = _compile(registry, "a", {"x": 21})

        assert await node.run() == 42
        assert node.state is TaskState.SUCCESS

    @pytest.mark.asyncio
    async def test_sync_handler_raising_is_wrapped(self, registry):
        def handler(descriptor, context):
            raise RuntimeError("sync failure")

        registry.register("a", handler)
        node = _compile(registry, "a")

        with pytest.raises(TaskFailed) as exc_info:
            await node.run()

        assert exc_info.value.type == "RuntimeError"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert node.error is exc_info.value

    @pytest.mark.asyncio
    async def test_automator_errors_pass_through(self, registry):
        original = AutomatorError("custom", type="CustomError", data={"x": 1})

        async def handler(descriptor, context):
            raise original

        registry.register("a", handler)
        node = _compile(registry, "a")

        with pytest.raises(AutomatorError) as exc_info:
            await node.run()

        assert exc_info.value is original

    def test_run_requires_event_loop(self, registry, recorder):
        registry.register("a", recorder.returning("a"))
        node = _compile(registry, "a")

        with pytest.raises(RuntimeError):
            node.run()
        assert node.state is TaskState.IDLE


# -----------------------------------------------------------------------------
# Context propagation and isolation
# -----------------------------------------------------------------------------


class TestContext:
    """Subtasks see their ancestors' results, never their siblings'."""

    @pytest.mark.asyncio
    async def test_default_context_merged_with_override(self, registry, recorder):
        registry.register("a", recorder.returning("a"))
        node = _compile(registry, "a", context={"user": "alice", "mode": "run"})

        await node.run({"mode": "edit"})

        assert recorder.context_of("a") == {"user": "alice", "mode": "edit"}

    @pytest.mark.asyncio
    async def test_children_receive_parent_result(self, registry, recorder):
        registry.register("x", recorder.returning("x", {"id": 7}))
        registry.register("b", recorder.returning("b"))
        registry.register("c", recorder.returning("c"))
        node = _compile(registry, "x", {"after": [{"b": {}}, {"c": {}}]})

        await node.run()

        assert recorder.context_of("b")["x"] == {"id": 7}
        assert recorder.context_of("c")["x"] == {"id": 7}

    @pytest.mark.asyncio
    async def test_siblings_are_isolated(self, registry, recorder):
        registry.register("root", recorder.returning("root", "R"))
        registry.register("a", recorder.returning("a", "A"))
        registry.register("b", recorder.returning("b", "B", delay=0.01))
        registry.register("leaf", recorder.returning("leaf"))
        node = _compile(registry, "root", {
            "after": [
                {"a": {"after": [{"leaf": {}}]}},
                {"b": {}},
            ],
        })

        await node.run()

        assert "a" not in recorder.context_of("b")
        assert "b" not in recorder.context_of("a")
        assert recorder.context_of("leaf") == {"root": "R", "a": "A"}

    @pytest.mark.asyncio
    async def test_handler_mutation_not_visible_to_siblings(self, registry, recorder):
        async def mutating(descriptor, context):
            context["injected"] = True
            context["root"] = "tampered"
            return None

        registry.register("root", recorder.returning("root", "R"))
        registry.register("bad", mutating)
        registry.register("good", recorder.returning("good", delay=0.01))
        node = _compile(registry, "root", {"after": [{"bad": {}}, {"good": {}}]})
        initial = {"seed": 1}

        await node.run(initial)

        assert recorder.context_of("good") == {"seed": 1, "root": "R"}
        assert initial == {"seed": 1}

    @pytest.mark.asyncio
    async def test_parent_completes_before_children_start(self, registry):
        events = []

        async def parent(descriptor, context):
            events.append("parent:start")
            await asyncio.sleep(0.01)
            events.append("parent:end")
            return "P"

        async def child(descriptor, context):
            events.append("child")
            return None

        registry.register("parent", parent)
        registry.register("child", child)
        node = _compile(registry, "parent", {"after": [{"child": {}}, {"child": {}}]})

        await node.run()

        assert events == ["parent:start", "parent:end", "child", "child"]

    @pytest.mark.asyncio
    async def test_siblings_run_concurrently(self, registry):
        running = 0
        peak = 0

        async def slow(descriptor, context):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.02)
            running -= 1

        registry.register("root", lambda d, c: None)
        registry.register("slow", slow)
        node = _compile(registry, "root", {"after": [{"slow": {}}, {"slow": {}}, {"slow": {}}]})

        await node.run()

        assert peak == 3


# -----------------------------------------------------------------------------
# Results and failures
# -----------------------------------------------------------------------------


class TestOutcome:
    """A node resolves with its own result and fails if any subtask fails."""

    @pytest.mark.asyncio
    async def test_parallel_siblings_resolve_with_parent_result(self, registry, recorder):
        registry.register("A", recorder.returning("A", "result-A"))
        registry.register("B", recorder.returning("B", "result-B"))
        registry.register("C", recorder.returning("C", "result-C"))
        node = _compile(registry, "A", {"after": [{"B": {}}, {"C": {}}]})

        result = await node.run()

        assert result == "result-A"
        assert recorder.context_of("B")["A"] == "result-A"
        assert recorder.context_of("C")["A"] == "result-A"
        assert all(n.state is TaskState.SUCCESS for n in node.walk())

    @pytest.mark.asyncio
    async def test_child_failure_bubbles_to_parent(self, registry, recorder):
        original = ValueError("E")
        registry.register("A", recorder.returning("A", "ok"))
        registry.register("B", recorder.failing("B", original))
        node = _compile(registry, "A", {"after": [{"B": {}}]})

        with pytest.raises(SubtaskFailed) as exc_info:
            await node.run()

        assert original in _cause_chain(exc_info.value)
        assert node.state is TaskState.ERROR
        assert node.subtasks[0].state is TaskState.ERROR
        assert node.result is None

    @pytest.mark.asyncio
    async def test_handler_failure_skips_subtasks(self, registry, recorder):
        registry.register("A", recorder.failing("A", ValueError("nope")))
        registry.register("B", recorder.returning("B"))
        node = _compile(registry, "A", {"after": [{"B": {}}]})

        with pytest.raises(TaskFailed):
            await node.run()

        assert recorder.count("B") == 0
        assert node.subtasks[0].state is TaskState.IDLE

    @pytest.mark.asyncio
    async def test_failing_sibling_does_not_cancel_others(self, registry, recorder):
        registry.register("A", recorder.returning("A"))
        registry.register("fast_fail", recorder.failing("fast_fail", ValueError("first")))
        registry.register("slow_ok", recorder.returning("slow_ok", "late", delay=0.02))
        node = _compile(registry, "A", {"after": [{"fast_fail": {}}, {"slow_ok": {}}]})

        with pytest.raises(SubtaskFailed):
            await node.run()

        slow = node.subtasks[1]
        assert slow.state is TaskState.SUCCESS
        assert slow.result == "late"

    @pytest.mark.asyncio
    async def test_all_subtask_errors_are_reported(self, registry, recorder):
        registry.register("A", recorder.returning("A"))
        registry.register("B", recorder.failing("B", ValueError("b failed")))
        registry.register("C", recorder.failing("C", KeyError("c failed")))
        node = _compile(registry, "A", {"after": [{"B": {}}, {"C": {}}]})

        with pytest.raises(SubtaskFailed) as exc_info:
            await node.run()

        errors = exc_info.value.data["errors"]
        assert [e.type for e in errors] == ["ValueError", "KeyError"]
        assert exc_info.value.data["task"] == "A"

    @pytest.mark.asyncio
    async def test_deep_failure_keeps_cause_chain(self, registry, recorder):
        original = RuntimeError("deep")
        registry.register("A", recorder.returning("A"))
        registry.register("B", recorder.returning("B"))
        registry.register("C", recorder.failing("C", original))
        node = _compile(registry, "A", {"after": [{"B": {"after": [{"C": {}}]}}]})

        with pytest.raises(SubtaskFailed) as exc_info:
            await node.run()

        chain = _cause_chain(exc_info.value)
        assert chain[-1] is original
        assert [n.state for n in node.walk()] == [TaskState.ERROR] * 3

    @pytest.mark.asyncio
    async def test_cancelled_handler_fails_task(self, registry, recorder):
        registry.register("A", recorder.failing("A", asyncio.CancelledError()))
        node = _compile(registry, "A")

        with pytest.raises(TaskFailed) as exc_info:
            await node.run()

        assert isinstance(exc_info.value, AutomatorError)
        assert exc_info.value.type == "CancelledError"
        assert node.state is TaskState.ERROR

    @pytest.mark.asyncio
    async def test_cancelled_subtask_fails_parent(self, registry, recorder):
        registry.register("A", recorder.returning("A", "R"))
        registry.register("B", recorder.failing("B", asyncio.CancelledError()))
        node = _compile(registry, "A", {"after": [{"B": {}}]})

        with pytest.raises(SubtaskFailed) as exc_info:
            await node.run()

        assert [e.type for e in exc_info.value.data["errors"]] == ["CancelledError"]
        assert node.state is TaskState.ERROR
        assert node.subtasks[0].state is TaskState.ERROR
        assert node.result is None

    @pytest.mark.asyncio
    async def test_subtask_cancelled_before_start(self, registry, recorder):
        def cancel_sibling(descriptor, context):
            node.subtasks[1].pending.cancel()
            return "B"

        registry.register("A", recorder.returning("A"))
        registry.register("B", cancel_sibling)
        registry.register("C", recorder.returning("C"))
        node = _compile(registry, "A", {"after": [{"B": {}}, {"C": {}}]})

        with pytest.raises(SubtaskFailed) as exc_info:
            await node.run()

        cancelled = node.subtasks[1]
        assert recorder.count("C") == 0
        assert cancelled.state is TaskState.ERROR
        assert cancelled.error is exc_info.value.data["errors"][0]
        assert cancelled.error.type == "CancelledError"


class TestIntrospection:
    """walk() and to_dict() describe the tree."""

    @pytest.mark.asyncio
    async def test_to_dict_after_run(self, registry, recorder):
        registry.register("A", recorder.returning("A"))
        registry.register("B", recorder.failing("B", ValueError("bad")))
        node = _compile(registry, "A", {"title": "t", "after": [{"B": {"x": 1}}]})

        with pytest.raises(SubtaskFailed):
            await node.run()

        tree = node.to_dict()
        assert tree["type"] == "A"
        assert tree["state"] == "error"
        assert tree["params"] == {"title": "t"}
        assert tree["after"][0]["params"] == {"x": 1}
        assert tree["after"][0]["error"]["type"] == "ValueError"

    def test_walk_is_depth_first(self, registry, recorder):
        for name in ("A", "B", "C", "D"):
            registry.register(name, recorder.returning(name))
        node = _compile(registry, "A", {
            "after": [{"B": {"after": [{"D": {}}]}}, {"C": {}}],
        })

        assert [n.name for n in node.walk()] == ["A", "B", "D", "C"]
