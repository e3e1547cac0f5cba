"""Tests for task_guard.change_queue."""

import threading
from collections import deque
import pytest
from unittest.mock import Mock

from task_guard.change_queue import (
    ActionKind, ChangeBatch, ChangeQueue, ControlAction, PauseMode
)


class InterruptedDeque(deque):
    """Deque that pushes once, like a signal handler, when it is drained."""

    on_drain = None

    def _fire(self):
        on_drain, self.on_drain = self.on_drain, None
        if on_drain is not None:
            on_drain()

    def __iter__(self):
        self._fire()
        return super().__iter__()

    def clear(self):
        self._fire()
        super().clear()


class TestChangeBatch:
    """Tests for ChangeBatch."""

    def test_empty_batch(self):
        """Test that a default batch is empty."""
        assert ChangeBatch().is_empty() is True

    def test_all_paths_order(self):
        """Test all_paths flattens modified, added, removed in order."""
        batch = ChangeBatch(modified=["a"], added=["b"], removed=["c"])
        assert batch.all_paths() == ["a", "b", "c"]


class TestChangeQueue:
    """Tests for ChangeQueue."""

    def test_has_pending(self):
        """Test has_pending reflects queued entries."""
        queue = ChangeQueue()
        assert queue.has_pending() is False

        queue.push(ChangeBatch(modified=["a.rb"]))
        assert queue.has_pending() is True

    def test_drain_empty_queue(self):
        """Test draining an empty queue returns nothing."""
        actions, changes = ChangeQueue().drain_all()
        assert actions == []
        assert changes.is_empty()

    def test_drain_partitions_entries(self):
        """Test actions and changes are separated."""
        queue = ChangeQueue()
        pause = ControlAction(ActionKind.PAUSE, PauseMode.PAUSED)
        queue.push(ChangeBatch(modified=["a.rb"]))
        queue.push(pause)
        queue.push(ChangeBatch(added=["b.rb"], removed=["c.rb"]))

        actions, changes = queue.drain_all()

        assert actions == [pause]
        assert changes.modified == ["a.rb"]
        assert changes.added == ["b.rb"]
        assert changes.removed == ["c.rb"]
        assert queue.has_pending() is False

    def test_drain_keeps_arrival_order_and_duplicates(self):
        """Test merged paths keep arrival order without deduplication."""
        queue = ChangeQueue()
        queue.push(ChangeBatch(modified=["a.rb", "b.rb"]))
        queue.push(ChangeBatch(modified=["a.rb"]))

        _, changes = queue.drain_all()

        assert changes.modified == ["a.rb", "b.rb", "a.rb"]

    def test_actions_keep_arrival_order(self):
        """Test actions are returned in the order they were pushed."""
        queue = ChangeQueue()
        first = ControlAction(ActionKind.RUN_ALL)
        second = ControlAction(ActionKind.PAUSE, PauseMode.TOGGLE)
        queue.push(first)
        queue.push(second)

        actions, _ = queue.drain_all()

        assert actions == [first, second]

    def test_push_rejects_other_types(self):
        """Test that only batches and actions can be queued."""
        queue = ChangeQueue()
        with pytest.raises(TypeError):
            queue.push({"modified": ["a.rb"]})
        assert queue.has_pending() is False

    def test_on_push_called(self):
        """Test the on_push hook runs after every push."""
        on_push = Mock()
        queue = ChangeQueue(on_push=on_push)

        queue.push(ControlAction(ActionKind.STOP))
        queue.push(ChangeBatch(modified=["x"]))

        assert on_push.call_count == 2

    def test_wait_returns_when_entry_pushed(self):
        """Test wait() wakes up when another thread pushes."""
        queue = ChangeQueue()
        timer = threading.Timer(0.05, queue.push, args=(ChangeBatch(modified=["a"]),))
        timer.start()
        try:
            assert queue.wait(timeout=5.0) is True
        finally:
            timer.cancel()

    def test_wait_times_out(self):
        """Test wait() returns False when nothing arrives."""
        assert ChangeQueue().wait(timeout=0.01) is False

    def test_push_while_lock_held_on_same_thread(self):
        """Test a push from a handler running under the drain lock does not block."""
        queue = ChangeQueue()
        with queue._condition:
            queue.push(ControlAction(ActionKind.PAUSE, PauseMode.PAUSED))
        actions, _ = queue.drain_all()
        assert actions == [ControlAction(ActionKind.PAUSE, PauseMode.PAUSED)]

    def test_push_during_drain_not_lost(self):
        """Test an entry pushed on the draining thread mid-drain is drained exactly once."""
        queue = ChangeQueue()
        pause = ControlAction(ActionKind.PAUSE, PauseMode.PAUSED)
        entries = InterruptedDeque([ChangeBatch(modified=["a.rb"])])
        entries.on_drain = lambda: queue.push(pause)
        queue._entries = entries

        first_actions, first_changes = queue.drain_all()
        second_actions, second_changes = queue.drain_all()

        assert first_changes.modified == ["a.rb"]
        assert second_changes.is_empty()
        assert first_actions + second_actions == [pause]

    def test_concurrent_pushes_drained_exactly_once(self):
        """Test entries pushed from many threads are all drained exactly once."""
        queue = ChangeQueue()
        threads_count = 8
        per_thread = 200

        def producer(index):
            for i in range(per_thread):
                if i % 10 == 0:
                    queue.push(ControlAction(ActionKind.RUN_ALL, (index, i)))
                else:
                    queue.push(ChangeBatch(modified=[f"{index}-{i}"]))

        threads = [threading.Thread(target=producer, args=(n,)) for n in range(threads_count)]

        all_actions = []
        all_paths = []
        for thread in threads:
            thread.start()
        while any(t.is_alive() for t in threads) or queue.has_pending():
            actions, changes = queue.drain_all()
            all_actions.extend(actions)
            all_paths.extend(changes.modified)
        for thread in threads:
            thread.join()
        actions, changes = queue.drain_all()
        all_actions.extend(actions)
        all_paths.extend(changes.modified)

        assert len(all_actions) == threads_count * per_thread // 10
        assert len(all_paths) == threads_count * per_thread * 9 // 10
        assert len(set(all_paths)) == len(all_paths)
        assert len({a.argument for a in all_actions}) == len(all_actions)

    def test_per_producer_order_preserved(self):
        """Test a single producer's paths come out in push order."""
        queue = ChangeQueue()

        def producer():
            for i in range(100):
                queue.push(ChangeBatch(modified=[str(i)]))

        thread = threading.Thread(target=producer)
        thread.start()
        thread.join()

        _, changes = queue.drain_all()
        assert changes.modified == [str(i) for i in range(100)]
