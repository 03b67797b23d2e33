"""
Tests for set-axiom normalization.
"""

from owl_reasoning.index import build_index
from owl_reasoning.models import Axiom
from owl_reasoning.normalization import normalize_axiom, normalize_entity, normalize_snapshot


def axiom(name, expression, ordered=False):
    return Axiom(relation_name=name, expression=expression, ordered=ordered)


class TestNormalizeAxiom:
    """Test suite for normalize_axiom."""

    def test_name_list_deduplicated(self):
        assert normalize_axiom(axiom("DisjointUnionOf", "Cat Dog Dog")).expression == "Cat Dog"

    def test_comma_list_keeps_commas(self):
        result = normalize_axiom(axiom("AllDisjointClasses", "Cat, Dog, Cat"))
        assert result.expression == "Cat, Dog"

    def test_disjoint_with_list(self):
        assert normalize_axiom(axiom("DisjointWith", "Cat, Cat")).expression == "Cat"

    def test_union_expression(self):
        result = normalize_axiom(axiom("EquivalentTo", "Person or Animal or Person"))
        assert result.expression == "Person or Animal"

    def test_intersection_collapses_to_name(self):
        assert normalize_axiom(axiom("EquivalentTo", "Person and Person")).expression == "Person"

    def test_ordered_axiom_untouched(self):
        original = axiom("HasKey", "ssn ssn", ordered=True)
        assert normalize_axiom(original) is original

    def test_non_set_axiom_untouched(self):
        original = axiom("SubClassOf", "A and A")
        assert normalize_axiom(original) is original

    def test_unparsable_expression_untouched(self):
        original = axiom("EquivalentTo", "Person and")
        assert normalize_axiom(original) is original

    def test_already_unique_returns_same_object(self):
        original = axiom("DisjointUnionOf", "Cat Dog")
        assert normalize_axiom(original) is original


class TestNormalizeSnapshot:
    """Test suite for whole-snapshot normalization."""

    def test_entities_and_relations(self, builder):
        snapshot = (
            builder.cls("Pet", ("DisjointUnionOf", "Cat Dog Cat")).cls("Cat").cls("Dog")
            .sub("Cat", "Pet")
            .build()
        )
        normalized = normalize_snapshot(snapshot)
        assert normalized.entities[0].axioms[0].expression == "Cat Dog"
        assert len(normalized.relations) == 1
        assert len(build_index(normalized).disjoint_pairs) == 1

    def test_unchanged_entity_is_reused(self, zoo_snapshot):
        normalized = normalize_snapshot(zoo_snapshot)
        assert [normalize_entity(e) is e for e in normalized.entities] == [True] * 6

    def test_ordered_flag_from_editor_payload(self):
        snapshot = normalize_snapshot({
            "entities": [{
                "id": "p",
                "label": "p",
                "kind": "ObjectProperty",
                "axioms": [{"relationName": "HasKey", "expression": "a a", "isOrdered": True}],
            }],
        })
        assert snapshot.entities[0].axioms[0].expression == "a a"
