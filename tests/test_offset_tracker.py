"""Tests for offset reconciliation."""

from ftptail.offset_tracker import Decision, reconcile


class TestReconcile:
    def test_first_observation_reads_tail_window(self):
        """Unset offset starts tail_window_bytes before the end."""
        decision = reconcile(None, 50_000, 10_000)
        assert decision == Decision(skip=False, start_offset=40_000, rewound=True)

    def test_first_observation_small_file_starts_at_zero(self):
        decision = reconcile(None, 1_000, 10_000)
        assert decision.start_offset == 0
        assert decision.rewound is True

    def test_unchanged_size_skips(self):
        decision = reconcile(50_080, 50_080, 10_000)
        assert decision.skip is True
        assert decision.start_offset is None

    def test_growth_continues_from_previous_offset(self):
        decision = reconcile(50_000, 50_080, 10_000)
        assert decision == Decision(skip=False, start_offset=50_000)
        assert decision.rewound is False

    def test_shrink_is_rotation(self):
        """A smaller file never reuses the stale offset."""
        decision = reconcile(50_080, 1_000, 10_000)
        assert decision.start_offset == 0
        assert decision.rewound is True

    def test_shrink_larger_than_window(self):
        decision = reconcile(90_000, 30_000, 10_000)
        assert decision.start_offset == 20_000

    def test_empty_file_first_observation(self):
        decision = reconcile(None, 0, 10_000)
        assert decision == Decision(skip=False, start_offset=0, rewound=True)

    def test_zero_window_starts_at_end(self):
        decision = reconcile(None, 500, 0)
        assert decision.start_offset == 500

    def test_zero_size_after_zero_offset_skips(self):
        assert reconcile(0, 0, 10_000).skip is True
