"""
Tests for the single-flight operation registry.

Uses a manual dispatcher so each test decides exactly when work
completes.
"""
import pytest

from ldk_console.application.registry import OperationRegistry
from ldk_console.domain.value_objects import OperationKey
from tests.utils.console_test_helpers import ManualDispatcher


async def noop():
    return None


class Recorder:
    """Collects handler calls in order."""

    def __init__(self):
        self.successes = []
        self.failures = []

    def on_success(self, key, payload):
        self.successes.append((key, payload))

    def on_failure(self, key, message):
        self.failures.append((key, message))


@pytest.fixture
def dispatcher():
    return ManualDispatcher()


@pytest.fixture
def registry(dispatcher):
    return OperationRegistry(dispatcher)


@pytest.fixture
def recorder():
    return Recorder()


class TestTrigger:
    """Tests for single-flight triggering."""

    def test_all_slots_start_empty(self, registry):
        """A new registry has one empty slot per key."""
        assert registry.keys == list(OperationKey)
        assert registry.pending_keys() == []
        assert registry.any_pending is False

    def test_trigger_spawns(self, registry, dispatcher):
        """Triggering an empty slot spawns work and occupies the slot."""
        assert registry.trigger(OperationKey.BALANCES, noop) is True
        assert dispatcher.spawn_count == 1
        assert registry.is_occupied(OperationKey.BALANCES)
        assert registry.any_pending is True

    def test_duplicate_trigger_dropped(self, registry, dispatcher):
        """A second trigger while in flight spawns nothing."""
        registry.trigger(OperationKey.BALANCES, noop)

        assert registry.trigger(OperationKey.BALANCES, noop) is False
        assert dispatcher.spawn_count == 1

    def test_keys_are_independent(self, registry, dispatcher):
        """Different keys may be in flight at the same time."""
        registry.trigger(OperationKey.BALANCES, noop)
        registry.trigger(OperationKey.CHANNELS, noop)

        assert dispatcher.spawn_count == 2
        assert registry.pending_keys() == [OperationKey.BALANCES, OperationKey.CHANNELS]


class TestDrain:
    """Tests for the per-tick drain."""

    def test_incomplete_work_stays_pending(self, registry, recorder):
        """Outstanding handles keep their slot and call no handler."""
        registry.trigger(OperationKey.NODE_INFO, noop)

        assert registry.drain(recorder.on_success, recorder.on_failure) is True
        assert recorder.successes == []
        assert recorder.failures == []
        assert registry.is_occupied(OperationKey.NODE_INFO)

    def test_success_routed_and_slot_cleared(self, registry, dispatcher, recorder):
        """A successful outcome reaches on_success and frees the slot."""
        registry.trigger(OperationKey.BALANCES, noop)
        dispatcher.last.complete({"sats": 1})

        assert registry.drain(recorder.on_success, recorder.on_failure) is False
        assert recorder.successes == [(OperationKey.BALANCES, {"sats": 1})]
        assert not registry.is_occupied(OperationKey.BALANCES)

    def test_failure_routed_and_slot_cleared(self, registry, dispatcher, recorder):
        """A failed outcome reaches on_failure with its message."""
        registry.trigger(OperationKey.ONCHAIN_SEND, noop)
        dispatcher.last.fail("insufficient funds")

        registry.drain(recorder.on_success, recorder.on_failure)

        assert recorder.failures == [(OperationKey.ONCHAIN_SEND, "insufficient funds")]
        assert not registry.is_occupied(OperationKey.ONCHAIN_SEND)

    def test_outcome_delivered_exactly_once(self, registry, dispatcher, recorder):
        """Repeated drains never deliver the same outcome twice."""
        registry.trigger(OperationKey.BALANCES, noop)
        handle = dispatcher.last
        handle.complete(1)

        for _ in range(3):
            registry.drain(recorder.on_success, recorder.on_failure)

        assert len(recorder.successes) == 1
        assert handle.taken == 1

    def test_slot_reusable_after_completion(self, registry, dispatcher, recorder):
        """Once drained, the key can be triggered again."""
        registry.trigger(OperationKey.BALANCES, noop)
        dispatcher.last.complete(1)
        registry.drain(recorder.on_success, recorder.on_failure)

        assert registry.trigger(OperationKey.BALANCES, noop) is True
        assert dispatcher.spawn_count == 2

    def test_slot_cleared_before_handler_runs(self, registry, dispatcher):
        """Handlers observe their own slot as empty."""
        seen = []
        registry.trigger(OperationKey.CHANNELS, noop)
        dispatcher.last.complete(None)

        registry.drain(
            lambda key, payload: seen.append(registry.is_occupied(key)),
            lambda key, message: None,
        )

        assert seen == [False]

    def test_handler_may_retrigger_own_key(self, registry, dispatcher):
        """A follow-up trigger from a handler is counted as pending."""
        registry.trigger(OperationKey.CHANNELS, noop)
        dispatcher.last.complete(None)

        pending = registry.drain(
            lambda key, payload: registry.trigger(OperationKey.CHANNELS, noop),
            lambda key, message: None,
        )

        assert pending is True
        assert dispatcher.spawn_count == 2
        assert registry.is_occupied(OperationKey.CHANNELS)

    def test_drains_in_key_order(self, registry, dispatcher, recorder):
        """Completed slots are handled in declaration order, not trigger order."""
        registry.trigger(OperationKey.CONNECT_PEER, noop)
        registry.trigger(OperationKey.BALANCES, noop)
        registry.trigger(OperationKey.NODE_INFO, noop)
        for handle in dispatcher.handles:
            handle.complete(None)

        registry.drain(recorder.on_success, recorder.on_failure)

        assert [key for key, _ in recorder.successes] == [
            OperationKey.NODE_INFO,
            OperationKey.BALANCES,
            OperationKey.CONNECT_PEER,
        ]

    def test_failure_isolated_to_its_slot(self, registry, dispatcher, recorder):
        """One failure does not disturb other in-flight keys."""
        registry.trigger(OperationKey.BALANCES, noop)
        registry.trigger(OperationKey.ONCHAIN_SEND, noop)
        dispatcher.handles[1].fail("boom")

        assert registry.drain(recorder.on_success, recorder.on_failure) is True
        assert registry.pending_keys() == [OperationKey.BALANCES]

    def test_raising_success_handler_forwarded_to_failure(self, registry, dispatcher, recorder):
        """A handler error becomes a failure and the drain continues."""
        registry.trigger(OperationKey.BALANCES, noop)
        registry.trigger(OperationKey.CHANNELS, noop)
        for handle in dispatcher.handles:
            handle.complete(None)

        def on_success(key, payload):
            if key == OperationKey.BALANCES:
                raise KeyError("total")
            recorder.on_success(key, payload)

        registry.drain(on_success, recorder.on_failure)

        assert recorder.failures == [
            (OperationKey.BALANCES, "Failed to apply fetch balances result: 'total'")
        ]
        assert recorder.successes == [(OperationKey.CHANNELS, None)]

    def test_pending_false_when_idle(self, registry, recorder):
        """An empty registry reports nothing pending."""
        assert registry.drain(recorder.on_success, recorder.on_failure) is False
