"""
Tests for progress reporting.
"""

from nfe_reconciler.progress import ProgressReporter


def run(total: int, checkpoint: int = 100):
    events = []
    reporter = ProgressReporter(total, events.append, checkpoint)
    for index in range(total):
        reporter.document_done(index)
    return events


class TestProgressReporter:

    def test_checkpoints_and_final(self):
        events = run(250)
        assert [e.processed for e in events] == [100, 200, 250]
        assert [e.percent for e in events] == [40, 80, 100]
        assert events[-1].status == "Processing... (250/250)"
        assert all(e.total == 250 for e in events)

    def test_final_on_checkpoint_emitted_once(self):
        events = run(200)
        assert [e.processed for e in events] == [100, 200]

    def test_small_batch_only_final(self):
        events = run(3)
        assert len(events) == 1
        assert events[0].percent == 100

    def test_empty_batch(self):
        assert run(0) == []

    def test_at_most_once_per_index(self):
        events = []
        reporter = ProgressReporter(10, events.append, checkpoint=5)
        assert reporter.document_done(4) is True
        assert reporter.document_done(4) is False
        assert len(events) == 1

    def test_message_shape(self):
        events = run(1)
        assert events[0].model_dump() == {
            "type": "progress",
            "percent": 100,
            "processed": 1,
            "total": 1,
            "status": "Processing... (1/1)",
        }
