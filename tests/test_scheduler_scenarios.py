from __future__ import annotations

import pytest

from frame_batcher.bypass import OwnerKindBypass
from frame_batcher.model import BatchPhase, FrameState


def test_promising_pass_takes_cheapest_prefix_within_budget(harness) -> None:
    a = harness.owner("a", 3.0, estimate=3.0)
    b = harness.owner("b", 4.0, estimate=4.0)
    c = harness.owner("c", 9.0, estimate=9.0)
    for owner in (a, b, c):
        harness.scheduler.submit_update(owner)

    assert harness.frames.fire() == 1
    report = harness.scheduler.last_report

    assert harness.flushed_ids() == [["a", "b"]]
    assert report.batches == [(BatchPhase.PROMISING, 2, pytest.approx(7.0))]
    assert report.remaining_ms == pytest.approx(3.0)
    assert not report.fallback
    assert [task.owner.id for task in harness.scheduler.pending_tasks] == ["c"]
    assert report.rearmed
    assert harness.frames.pending == 1

    harness.frames.fire()
    assert harness.flushed_ids() == [["a", "b"], ["c"]]
    assert harness.scheduler.pending_count == 0
    assert harness.frames.pending == 0


def test_excluded_promising_task_fits_leftover_budget_in_opportunistic_pass(harness) -> None:
    a = harness.owner("a", 0.5, estimate=3.0)
    b = harness.owner("b", 0.5, estimate=4.0)
    c = harness.owner("c", 9.0, estimate=9.0)
    for owner in (a, b, c):
        harness.scheduler.submit_update(owner)

    harness.frames.fire()
    report = harness.scheduler.last_report

    assert report.batches == [
        (BatchPhase.PROMISING, 2, pytest.approx(1.0)),
        (BatchPhase.OPPORTUNISTIC, 1, pytest.approx(9.0)),
    ]
    assert report.remaining_ms == pytest.approx(0.0)
    # Batch time is attributed whole to every member.
    assert harness.scheduler.estimate_for(a) == pytest.approx(1.0)
    assert harness.scheduler.estimate_for(b) == pytest.approx(1.0)
    assert harness.scheduler.estimate_for(c) == pytest.approx(9.0)


def test_unestimated_task_is_admitted_optimistically_and_learns_cost(harness) -> None:
    owner = harness.owner("slow", 15.0)
    harness.scheduler.submit_update(owner)

    harness.frames.fire()
    report = harness.scheduler.last_report

    assert report.batches == [(BatchPhase.OPPORTUNISTIC, 1, pytest.approx(15.0))]
    assert report.remaining_ms == pytest.approx(-5.0)
    assert report.overrun
    assert not report.fallback
    assert harness.scheduler.estimate_for(owner) == pytest.approx(15.0)


def test_starvation_fallback_forces_task_over_budget(harness) -> None:
    owner = harness.owner("huge", 500.0, estimate=500.0)
    harness.scheduler.submit_update(owner)

    harness.frames.fire()
    report = harness.scheduler.last_report

    assert report.fallback
    assert report.batches == [(BatchPhase.FALLBACK, 1, pytest.approx(500.0))]
    assert harness.scheduler.pending_count == 0
    assert harness.scheduler.state is FrameState.IDLE


def test_fallback_runs_only_one_task_per_wakeup(harness) -> None:
    first = harness.owner("first", 50.0, estimate=50.0)
    second = harness.owner("second", 50.0, estimate=50.0)
    harness.scheduler.submit_update(first)
    harness.scheduler.submit_update(second)

    harness.frames.fire()
    assert harness.flushed_ids() == [["first"]]
    assert harness.scheduler.last_report.rearmed

    harness.frames.fire()
    assert harness.flushed_ids() == [["first"], ["second"]]
    assert harness.scheduler.last_report.fallback


def test_zero_cost_promising_batch_still_counts_as_untouched_budget(harness) -> None:
    harness.scheduler.submit_update(harness.owner("free", 0.0, estimate=0.0))
    harness.scheduler.submit_update(harness.owner("heavy", 50.0, estimate=50.0))

    harness.frames.fire()
    report = harness.scheduler.last_report

    # Something ran, but the budget is still exactly full, so the fallback fires too.
    assert report.batches == [(BatchPhase.PROMISING, 1, 0.0), (BatchPhase.FALLBACK, 1, pytest.approx(50.0))]
    assert report.fallback
    assert harness.flushed_ids() == [["free"], ["heavy"]]
    assert harness.scheduler.pending_count == 0


def test_bypassed_task_runs_immediately_and_leaves_queue_untouched(make_harness) -> None:
    h = make_harness(bypass=OwnerKindBypass({"kinds": ["top_level"]}))
    for idx in range(5):
        h.scheduler.submit_update(h.owner(f"w{idx}", 1.0))
    assert h.frames.request_count == 1

    root = h.owner("root", 2.0, kind="top_level")
    h.scheduler.submit_update(root)

    assert h.flushed_ids() == [["root"]]
    assert h.scheduler.pending_count == 5
    assert [task.owner.id for task in h.scheduler.pending_tasks] == ["w0", "w1", "w2", "w3", "w4"]
    assert h.frames.request_count == 1
    assert h.frames.pending == 1
    assert h.scheduler.wakeup_pending
    assert h.scheduler.estimate_for(root) is None


def test_every_task_runs_exactly_once(make_harness) -> None:
    h = make_harness(budget=16.0)
    costs = [0.5, 1.0, 4.0, 30.0, 200.0, 2.0]
    owners = [h.owner(f"o{idx}", cost) for idx, cost in enumerate(costs)]
    done: list[int] = []

    expected = 0
    for _ in range(3):
        for owner in owners:
            h.scheduler.submit_update(owner, completion=lambda n=expected: done.append(n))
            expected += 1
        h.frames.fire()

    h.frames.run_until_idle()
    assert sorted(done) == list(range(expected))
    assert h.scheduler.pending_count == 0
    assert h.scheduler.state is FrameState.IDLE


def test_non_promising_portion_runs_in_submission_order(harness) -> None:
    owners = [harness.owner(f"u{idx}", 1.0) for idx in range(5)]
    for owner in owners:
        harness.scheduler.submit_update(owner)

    harness.frames.fire()

    assert harness.flushed_ids() == [["u0"], ["u1"], ["u2"], ["u3"], ["u4"]]
    assert all(phase is BatchPhase.OPPORTUNISTIC for phase, _, _ in harness.scheduler.last_report.batches)


def test_frame_order_is_sorted_promising_group_then_fifo_group(harness) -> None:
    u1 = harness.owner("u1", 1.0)
    x = harness.owner("x", 2.0, estimate=4.0)
    u2 = harness.owner("u2", 1.0)
    y = harness.owner("y", 1.0, estimate=2.0)
    for owner in (u1, x, u2, y):
        harness.scheduler.submit_update(owner)

    harness.frames.fire()

    assert harness.flushed_ids() == [["y", "x"], ["u1"], ["u2"]]
    assert [owner.id for owner in harness.reconciler.applied] == ["y", "x", "u1", "u2"]
    assert harness.scheduler.last_report.remaining_ms == pytest.approx(5.0)


def test_submissions_between_wakeups_arm_one_request(harness) -> None:
    owner = harness.owner("busy", 1.0)
    for _ in range(10):
        harness.scheduler.submit_update(owner)

    assert harness.frames.request_count == 1
    assert harness.frames.pending == 1
    assert harness.scheduler.state is FrameState.ARMED


def test_same_owner_may_be_queued_many_times(harness) -> None:
    owner = harness.owner("dup", 1.0)
    harness.scheduler.submit_update(owner)
    harness.scheduler.submit_update(owner)

    assert harness.scheduler.pending_count == 2
    harness.frames.fire()
    assert harness.flushed_ids() == [["dup"], ["dup"]]


def test_latest_measurement_replaces_estimate(harness) -> None:
    owner = harness.owner("varying", 3.0)
    harness.scheduler.submit_update(owner)
    harness.frames.fire()
    assert harness.scheduler.estimate_for(owner) == pytest.approx(3.0)

    owner.cost_ms = 7.0
    harness.scheduler.submit_update(owner)
    harness.frames.fire()
    assert harness.scheduler.estimate_for(owner) == pytest.approx(7.0)


def test_opportunistic_pass_blocks_on_head_without_skipping_ahead(harness) -> None:
    h = harness.owner("h", 9.0, estimate=9.0)
    u = harness.owner("u", 1.0)
    m = harness.owner("m", 5.0, estimate=5.0)
    s = harness.owner("s", 1.0, estimate=1.0)
    for owner in (h, u, m, s):
        harness.scheduler.submit_update(owner)

    harness.frames.fire()
    report = harness.scheduler.last_report

    # Promising stops at the prefix sum (1 + 5 + 9 > 10); the unknown "u" would
    # be admitted at cost 0 but sits behind the over-budget head.
    assert report.batches == [(BatchPhase.PROMISING, 2, pytest.approx(6.0))]
    assert [task.owner.id for task in harness.scheduler.pending_tasks] == ["h", "u"]


def test_promising_pass_never_admits_unestimated_tasks(harness) -> None:
    known = harness.owner("known", 1.0, estimate=1.0)
    unknown = harness.owner("unknown", 1.0)
    harness.scheduler.submit_update(unknown)
    harness.scheduler.submit_update(known)

    harness.frames.fire()

    phases = [(phase, size) for phase, size, _ in harness.scheduler.last_report.batches]
    assert phases == [(BatchPhase.PROMISING, 1), (BatchPhase.OPPORTUNISTIC, 1)]
    assert harness.flushed_ids() == [["known"], ["unknown"]]


def test_update_submitted_while_applying_joins_current_flush(harness) -> None:
    child = harness.owner("child", 1.0)

    def enqueue_parent(owner, completion):
        harness.reconciler.enqueue(owner, completion)
        harness.scheduler.submit_update(child)

    parent = harness.owner("parent", 2.0)
    harness.scheduler.submit_update(parent, enqueue_fn=enqueue_parent)
    harness.frames.fire()

    assert harness.flushed_ids() == [["parent", "child"]]
    assert harness.scheduler.pending_count == 0
    assert harness.frames.pending == 0
    assert harness.scheduler.estimate_for(parent) == pytest.approx(3.0)
    assert harness.scheduler.estimate_for(child) is None


def test_update_submitted_during_flush_is_queued_and_rearms(harness) -> None:
    child = harness.owner("child", 1.0)
    seen: dict[str, object] = {}

    def on_parent_done() -> None:
        harness.scheduler.submit_update(child)
        seen["state"] = harness.scheduler.state
        seen["armed"] = harness.scheduler.wakeup_pending

    parent = harness.owner("parent", 2.0)
    harness.scheduler.submit_update(parent, completion=on_parent_done)
    harness.frames.fire()

    assert seen == {"state": FrameState.RUNNING, "armed": True}
    # The child is picked up by the opportunistic pass of the same wake-up.
    assert harness.flushed_ids() == [["parent"], ["child"]]
    assert harness.frames.pending == 1

    harness.frames.fire()
    report = harness.scheduler.last_report
    assert report.tasks_executed == 0
    assert not report.rearmed
    assert harness.scheduler.state is FrameState.IDLE


def test_frame_report_accounts_elapsed_time(harness) -> None:
    for idx in range(3):
        harness.scheduler.submit_update(harness.owner(f"t{idx}", 2.5))

    report = harness.scheduler.perform_frame()

    assert report.frame_id == 1
    assert report.tasks_executed == 3
    assert report.elapsed_ms == pytest.approx(7.5)
    assert report.remaining_ms == pytest.approx(2.5)
    assert report.backlog == 0


def test_constructor_rejects_invalid_configuration(make_harness) -> None:
    with pytest.raises(ValueError):
        make_harness(budget=0)
    with pytest.raises(ValueError):
        make_harness(failure_policy="retry")
