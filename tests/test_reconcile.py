"""Tests for snapshot reconciliation and the notification gate."""

import random

from road_closures.notifications import build_messages, should_notify
from road_closures.reconcile import reconcile


def _ids(alerts):
    return {alert.id for alert in alerts}


class TestReconcile:
    """Test id-based set reconciliation."""

    def test_added_and_removed(self, make_alert):
        previous = [make_alert("A1"), make_alert("A2")]
        current = [make_alert("A2"), make_alert("A3")]

        result = reconcile(previous, current)

        assert _ids(result.added) == {"A3"}
        assert _ids(result.removed) == {"A1"}
        assert result.changed
        assert not result.initial

    def test_no_previous_snapshot_is_initial_state(self, make_alert):
        result = reconcile(None, [make_alert("A1"), make_alert("A2")])

        assert result.initial
        assert result.added == []
        assert result.removed == []
        assert not should_notify(result.added, result.removed)

    def test_same_snapshot_yields_nothing(self, make_alert):
        snapshot = [make_alert("A1"), make_alert("A2"), make_alert("A3")]

        result = reconcile(snapshot, list(snapshot))

        assert result.added == []
        assert result.removed == []
        assert not result.changed

    def test_field_changes_on_surviving_id_are_ignored(self, make_alert):
        previous = [make_alert("A1", description="Left lane closed")]
        current = [make_alert("A1", description="Both lanes closed", end_mile_marker="210")]

        result = reconcile(previous, current)

        assert not result.changed

    def test_order_independent(self, make_alert):
        previous = [make_alert(f"P{i}") for i in range(6)] + [make_alert("S1"), make_alert("S2")]
        current = [make_alert(f"C{i}") for i in range(4)] + [make_alert("S2"), make_alert("S1")]
        expected = reconcile(previous, current)

        rng = random.Random(7)
        for _ in range(10):
            shuffled_previous = previous[:]
            shuffled_current = current[:]
            rng.shuffle(shuffled_previous)
            rng.shuffle(shuffled_current)

            result = reconcile(shuffled_previous, shuffled_current)

            assert _ids(result.added) == _ids(expected.added)
            assert _ids(result.removed) == _ids(expected.removed)

    def test_duplicate_ids_reported_once(self, make_alert):
        result = reconcile([], [make_alert("A1"), make_alert("A1")])

        assert [alert.id for alert in result.added] == ["A1"]

    def test_empty_previous_list_is_not_first_run(self, make_alert):
        result = reconcile([], [make_alert("A1")])

        assert not result.initial
        assert _ids(result.added) == {"A1"}

    def test_inputs_are_not_mutated(self, make_alert):
        previous = [make_alert("A1")]
        current = [make_alert("A2")]

        reconcile(previous, current)

        assert _ids(previous) == {"A1"}
        assert _ids(current) == {"A2"}


class TestNotificationGate:
    """Test the notify decision and batch ordering."""

    def test_should_notify(self, make_alert):
        assert should_notify([make_alert("A1")], [])
        assert should_notify([], [make_alert("A1")])
        assert not should_notify([], [])

    def test_closures_precede_openings(self, make_alert):
        added = [make_alert("A1", road_name="US-6"), make_alert("A2", road_name="SH-9")]
        removed = [make_alert("A3", road_name="I-70")]

        messages = build_messages(added, removed)

        assert len(messages) == 3
        assert messages[0].startswith("New (partial) closure on US-6")
        assert messages[1].startswith("New (partial) closure on SH-9")
        assert messages[2].startswith("Road reopened on I-70")

    def test_custom_source_label(self, make_alert):
        messages = build_messages([make_alert("A1")], [], source="TESTDOT")

        assert "From TESTDOT: " in messages[0]
