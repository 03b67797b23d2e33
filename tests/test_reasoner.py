"""
Tests for the reasoning facade, the classification cache and settings.
"""

import pytest

from owl_reasoning.cache import ClassificationCache, snapshot_fingerprint
from owl_reasoning.classification import ClosureLimitExceeded
from owl_reasoning.config import ReasonerSettings
from owl_reasoning.errors import SnapshotError
from owl_reasoning.index import build_index
from owl_reasoning.models import Snapshot
from owl_reasoning.reasoner import Reasoner, classify_and_infer, query, validate


class TestFacade:
    """Test suite for the module-level operations."""

    def test_validate(self, zoo_snapshot):
        assert validate(zoo_snapshot).is_valid

    def test_query_modes(self, zoo_snapshot):
        assert set(query(zoo_snapshot, "Dog", "instances")) == {"Rex"}
        assert set(query(zoo_snapshot, "Animal", "subclasses")) == {"Animal", "Mammal", "Dog", "Cat"}
        assert set(query(zoo_snapshot, "Dog", "superclasses")) == {"Dog", "Mammal", "Animal"}

    def test_classify_and_infer(self, zoo_snapshot):
        result = classify_and_infer(zoo_snapshot)
        assert len(result.relations) == len(zoo_snapshot["relations"]) + len(result.inferred)
        assert result.index.is_classified

    def test_classify_and_infer_is_idempotent(self, zoo_snapshot):
        """Feeding the output back in adds no relations."""
        first = classify_and_infer(zoo_snapshot)
        again = classify_and_infer({
            "entities": zoo_snapshot["entities"],
            "relations": [r.model_dump(by_alias=True) for r in first.relations],
        })
        assert len(again.relations) == len(first.relations)
        assert {r.key for r in again.relations} == {r.key for r in first.relations}

    def test_displayed_relations_are_accepted(self, zoo_snapshot):
        """Entry points drop inferred relations instead of rejecting them."""
        displayed = {
            "entities": zoo_snapshot["entities"],
            "relations": classify_and_infer(zoo_snapshot).relations,
        }
        assert validate(displayed).is_valid
        assert query(displayed, "Animal", "instances") == ["Rex", "Tom"]
        assert Reasoner(ReasonerSettings(_env_file=None)).metrics(displayed).num_axioms == 6

    def test_index_boundary_still_rejects_inferred_input(self, zoo_snapshot):
        first = classify_and_infer(zoo_snapshot)
        with pytest.raises(SnapshotError):
            build_index({"entities": zoo_snapshot["entities"], "relations": first.relations})

    def test_snapshot_error_propagates(self):
        with pytest.raises(SnapshotError):
            validate({"entities": [{"id": "", "label": "x", "kind": "Class"}]})

    def test_inference_result_to_dict(self, zoo_snapshot):
        payload = classify_and_infer(zoo_snapshot).to_dict()
        assert payload["inferredCount"] == 6
        assert payload["relations"][-1]["isInferred"] is True


class TestReasoner:
    """Test suite for the Reasoner object."""

    def test_cache_hit_on_unchanged_snapshot(self, settings, zoo_snapshot):
        reasoner = Reasoner(settings)
        first = reasoner.classified_index(zoo_snapshot)
        second = reasoner.classified_index(zoo_snapshot)
        assert first is second
        assert reasoner.cache.hits == 1

    def test_cache_misses_after_change(self, settings, zoo_builder):
        reasoner = Reasoner(settings)
        first = reasoner.classified_index(zoo_builder.build())
        zoo_builder.cls("Bird").sub("Bird", "Animal")
        second = reasoner.classified_index(zoo_builder.build())
        assert first is not second
        assert "Bird" in second.descendants("Animal")

    def test_cache_disabled(self, zoo_snapshot):
        reasoner = Reasoner(ReasonerSettings(_env_file=None, cache_enabled=False))
        assert reasoner.cache is None
        assert reasoner.classified_index(zoo_snapshot) is not reasoner.classified_index(zoo_snapshot)

    def test_settings_flow_into_validation(self, builder):
        snapshot = builder.cls("Dog", iri="http://x.org/my dog").build()
        strict = Reasoner(ReasonerSettings(_env_file=None))
        lenient = Reasoner(ReasonerSettings(_env_file=None, syntax_checks=False))
        assert not strict.validate(snapshot).is_valid
        assert lenient.validate(snapshot).is_valid

    def test_case_sensitive_labels(self, zoo_snapshot):
        reasoner = Reasoner(ReasonerSettings(_env_file=None, case_insensitive_labels=False))
        assert reasoner.query(zoo_snapshot, "dog", "instances") == []
        assert reasoner.query(zoo_snapshot, "Dog", "instances") == ["Rex"]

    def test_closure_bound(self, builder):
        for i in range(10):
            builder.cls(f"C{i}")
        for i in range(9):
            builder.sub(f"C{i}", f"C{i + 1}")
        reasoner = Reasoner(ReasonerSettings(_env_file=None, max_closure_iterations=1))
        with pytest.raises(ClosureLimitExceeded):
            reasoner.classified_index(builder.build())

    def test_metrics(self, settings, zoo_snapshot):
        assert Reasoner(settings).metrics(zoo_snapshot).num_classes == 4


class TestClassificationCache:
    """Test suite for ClassificationCache."""

    def test_fingerprint_is_stable_across_forms(self, zoo_snapshot):
        assert snapshot_fingerprint(zoo_snapshot) == snapshot_fingerprint(
            Snapshot.model_validate(zoo_snapshot)
        )

    def test_fingerprint_changes_with_content(self, zoo_builder):
        before = snapshot_fingerprint(zoo_builder.build())
        zoo_builder.cls("Bird")
        assert snapshot_fingerprint(zoo_builder.build()) != before

    def test_get_put_invalidate(self, zoo_index):
        cache = ClassificationCache()
        assert cache.get("abc") is None
        cache.put("abc", zoo_index)
        assert cache.get("abc") is zoo_index
        cache.invalidate()
        assert cache.get("abc") is None
        assert len(cache) == 0

    def test_stale_entry_discarded(self, zoo_index):
        cache = ClassificationCache()
        cache.put("abc", zoo_index)
        assert cache.get("def") is None
        assert cache.fingerprint is None

    def test_only_classified_indexes(self, zoo_snapshot):
        with pytest.raises(ValueError):
            ClassificationCache().put("abc", build_index(zoo_snapshot))
