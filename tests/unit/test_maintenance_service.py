"""
Maintenance pass tests.

Run with: pytest tests/unit/test_maintenance_service.py -v
"""

from unittest.mock import MagicMock

import pytest

from conftest import InMemoryStore, context_row, qa_row
from services.maintenance_service import MaintenanceService
from utils.error_handling import NotFoundError


@pytest.fixture
def service():
    return MaintenanceService()


class TestSanitize:
    def test_exact_duplicates_collapse_to_one(self, service):
        rows = [
            qa_row("Q1", "Same answer text", source="a.xlsx"),
            qa_row("Q1", "Same answer text", source="b.docx"),
        ]
        cleaned = service.sanitize(rows)
        assert len(cleaned) == 1
        assert cleaned[0].provenance.source == "a.xlsx"

    def test_dedupe_uses_normalized_text(self, service):
        rows = [
            qa_row("Q1", "Same answer text"),
            qa_row(" q1 ", "same   ANSWER text"),
        ]
        assert len(service.sanitize(rows)) == 1

    def test_same_question_different_answers_kept(self, service):
        rows = [qa_row("Q1", "First full answer"), qa_row("Q1", "Second full answer")]
        assert len(service.sanitize(rows)) == 2

    def test_strict_min_length(self, service):
        rows = [qa_row("Q1", "Yes"), qa_row("Q2", "Yes, we do that.")]
        cleaned = service.sanitize(rows)
        assert [r.question for r in cleaned] == ["Q2"]

    def test_custom_min_length(self, service):
        rows = [qa_row("Q1", "Yes")]
        assert len(service.sanitize(rows, min_answer_len=2)) == 1

    @pytest.mark.parametrize("answer", ["N/A", "-", ".", "x", "lorem ipsum dolor sit", "dummy value here"])
    def test_garbage_dropped(self, service, answer):
        rows = [qa_row("Q", answer), qa_row("Keep", "A long enough answer.")]
        assert [r.question for r in service.sanitize(rows)] == ["Keep"]

    def test_missing_question_dropped(self, service):
        rows = [qa_row("", "A long enough answer."), qa_row("Keep", "A long enough answer.")]
        assert [r.question for r in service.sanitize(rows)] == ["Keep"]

    def test_vendor_aliases_rewritten(self, service):
        cleaned = service.sanitize([qa_row("Vendor?", "HMC HealthWorks runs the EAP line.")])
        assert cleaned[0].answer == "Uprise Health runs the EAP line."

    def test_context_passes_through_untouched(self, service):
        rows = [
            qa_row("Q1", "N/A"),
            context_row("short"),
            context_row("short"),
            qa_row("Q2", "A long enough answer."),
        ]
        cleaned = service.sanitize(rows)
        assert cleaned[0].question == "Q2"
        assert cleaned[1:] == [rows[1], rows[2]]

    def test_order_preserved(self, service):
        rows = [qa_row(f"Q{i}", f"Answer number {i} here") for i in range(5)]
        assert [r.question for r in service.sanitize(rows)] == [f"Q{i}" for i in range(5)]

    def test_entity_specific_only_dropped_when_requested(self, service):
        rows = [qa_row("Scope?", "Per RFP #12345 we will deliver onsite.")]
        assert len(service.sanitize(rows)) == 1
        assert service.sanitize(rows, drop_entity_specific=True) == []

    @pytest.mark.parametrize("corpus", [[], None, {"question": "q"}, "[]"])
    def test_empty_or_non_list_corpus_is_not_found(self, service, corpus):
        with pytest.raises(NotFoundError) as exc_info:
            service.sanitize(corpus)
        assert exc_info.value.status_code == 404


class TestClassifierPass:
    def _rows(self, n):
        return [qa_row(f"Q{i}", f"Concrete answer {i} with facts") for i in range(n)]

    def test_classifier_decisions_applied(self):
        classifier = MagicMock()
        classifier.classify.return_value = [True, False, True]
        service = MaintenanceService(classifier=classifier)

        cleaned = service.sanitize(self._rows(3), use_classifier=True)
        assert [r.question for r in cleaned] == ["Q0", "Q2"]

    def test_classifier_called_in_chunks(self):
        classifier = MagicMock()
        classifier.classify.side_effect = lambda pairs: [True] * len(pairs)
        service = MaintenanceService(classifier=classifier, chunk_size=2)

        cleaned = service.sanitize(self._rows(5), use_classifier=True)
        assert len(cleaned) == 5
        assert [len(call.args[0]) for call in classifier.classify.call_args_list] == [2, 2, 1]

    def test_classifier_failure_keeps_chunk(self):
        classifier = MagicMock()
        classifier.classify.side_effect = [RuntimeError("bedrock down"), [False, False]]
        service = MaintenanceService(classifier=classifier, chunk_size=2)

        cleaned = service.sanitize(self._rows(4), use_classifier=True)
        assert [r.question for r in cleaned] == ["Q0", "Q1"]

    def test_wrong_length_keeps_chunk(self):
        classifier = MagicMock()
        classifier.classify.return_value = [False]
        service = MaintenanceService(classifier=classifier)

        assert len(service.sanitize(self._rows(3), use_classifier=True)) == 3

    def test_not_called_unless_requested(self):
        classifier = MagicMock()
        MaintenanceService(classifier=classifier).sanitize(self._rows(2))
        classifier.classify.assert_not_called()

    def test_requested_without_classifier_keeps_all(self):
        assert len(MaintenanceService().sanitize(self._rows(2), use_classifier=True)) == 2


class TestRun:
    def test_run_saves_cleaned_corpus(self):
        store = InMemoryStore(
            [
                qa_row("Q1", "Same answer text"),
                qa_row("Q1", "Same answer text"),
                qa_row("Q2", "N/A"),
                context_row("Context chunk kept as-is", extra_field="kept"),
            ]
        )
        report = MaintenanceService(store).run()

        assert report.before == 4
        assert report.after == 2
        assert report.removed == 2
        assert report.write_mode is True
        assert [row["kind"] for row in store.rows] == ["qa", "context"]
        assert store.rows[1]["extra_field"] == "kept"

    def test_read_only_store_reports_write_mode_false(self):
        store = InMemoryStore([qa_row("Q1", "A long enough answer.")], writable=False)
        report = MaintenanceService(store).run()
        assert report.write_mode is False
        assert store.saved == []

    def test_empty_store_raises_not_found(self):
        with pytest.raises(NotFoundError):
            MaintenanceService(InMemoryStore([])).run()

    def test_run_stores_context_rows_verbatim(self):
        raw_context = {
            "kind": "context",
            "content": "IBH   runs the  EAP line",
            "embedding": "not json",
            "source": "  msa.pdf ",
        }
        legacy_context = {"kind": "Context", "answer": "Legacy text kept under answer", "doc": "d7"}
        store = InMemoryStore([qa_row("Q1", "A long enough answer."), raw_context, legacy_context])

        MaintenanceService(store).run()

        assert store.rows[1:] == [raw_context, legacy_context]
