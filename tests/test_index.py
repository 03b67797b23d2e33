"""
Tests for the ontology index builder.

Validates:
- Label resolution (exact, prefix, IRI, case-insensitive)
- Subsumption, disjointness and equivalence from relations and axioms
- Property metadata
- Boundary errors on malformed snapshots
"""

import pytest

from owl_reasoning.errors import SnapshotError
from owl_reasoning.index import build_index, coerce_snapshot
from owl_reasoning.models import EntityKind, Snapshot


class TestLabelLookup:
    """Test suite for OntologyIndex.lookup."""

    def test_exact_label(self, zoo_index):
        assert zoo_index.lookup("Dog") == "Dog"

    def test_case_insensitive_fallback(self, zoo_index):
        assert zoo_index.lookup("dog") == "Dog"

    def test_case_insensitive_can_be_disabled(self, zoo_snapshot):
        index = build_index(zoo_snapshot, case_insensitive_labels=False)
        assert index.lookup("dog") is None
        assert index.lookup("Dog") == "Dog"

    def test_prefixed_label_matches_local_name(self, builder):
        index = build_index(builder.cls("ex:Person", id="p1").build())
        assert index.lookup("ex:Person") == "p1"
        assert index.lookup("Person") == "p1"
        assert index.lookup("other:Person") == "p1"

    def test_exact_label_beats_prefix_fallback(self, builder):
        index = build_index(builder.cls("ex:Person", id="p1").cls("Person", id="p2").build())
        assert index.lookup("Person") == "p2"

    def test_iri_in_angle_brackets(self, builder):
        index = build_index(builder.cls("Dog", iri="http://x.org/Dog").build())
        assert index.lookup("<http://x.org/Dog>") == "Dog"

    def test_unknown_label(self, zoo_index):
        assert zoo_index.lookup("Unicorn") is None

    def test_ids_of_kind_in_snapshot_order(self, zoo_index):
        assert zoo_index.ids_of_kind(EntityKind.CLASS) == ["Animal", "Mammal", "Dog", "Cat"]
        assert zoo_index.ids_of_kind(EntityKind.NAMED_INDIVIDUAL) == ["Rex", "Tom"]


class TestHierarchy:
    """Test suite for subsumption, disjointness and equivalence."""

    def test_relation_edges(self, zoo_index):
        assert zoo_index.sub_class_of["Dog"] == {"Mammal"}
        assert zoo_index.sub_class_of["Animal"] == set()

    def test_single_name_subclass_axiom(self, school_index):
        assert school_index.sub_class_of["Teacher"] == {"Person"}

    def test_restriction_axiom_is_not_an_edge(self, school_index):
        assert school_index.sub_class_of["Tutor"] == set()

    def test_disjointness_is_symmetric(self, zoo_index, school_index):
        assert zoo_index.are_disjoint("Dog", "Cat")
        assert zoo_index.are_disjoint("Cat", "Dog")
        assert school_index.are_disjoint("Teacher", "Student")
        assert school_index.are_disjoint("Student", "Teacher")

    def test_every_disjoint_pair_is_symmetric(self, builder):
        index = build_index(
            builder
            .cls("Pet", ("DisjointUnionOf", "Cat Dog Bird"))
            .cls("Cat", ("DisjointWith", "Fish"))
            .cls("Dog")
            .cls("Bird")
            .cls("Fish")
            .disjoint("Fish", "Bird")
            .build()
        )
        assert index.disjoint_pairs
        for a, b in index.disjoint_pairs:
            assert index.are_disjoint(a, b)
            assert index.are_disjoint(b, a)

    def test_disjoint_union_is_pairwise(self, builder):
        index = build_index(
            builder
            .cls("Pet", ("DisjointUnionOf", "Cat Dog Bird"))
            .cls("Cat")
            .cls("Dog")
            .cls("Bird")
            .build()
        )
        assert len(index.disjoint_pairs) == 3
        assert index.are_disjoint("Dog", "Bird")
        assert not index.are_disjoint("Pet", "Dog")

    def test_disjoint_with_list(self, builder):
        index = build_index(
            builder.cls("Cat", ("DisjointWith", "Dog, Bird")).cls("Dog").cls("Bird").build()
        )
        assert index.are_disjoint("Cat", "Dog")
        assert index.are_disjoint("Cat", "Bird")
        assert not index.are_disjoint("Dog", "Bird")

    def test_duplicate_disjoint_declarations_counted_once(self, builder):
        index = build_index(
            builder.cls("A", ("DisjointWith", "B")).cls("B").disjoint("B", "A").build()
        )
        assert len(index.disjoint_pairs) == 1

    def test_equivalent_single_name(self, builder):
        index = build_index(builder.cls("Human", ("EquivalentTo", "Person")).cls("Person").build())
        assert index.equivalents["Human"] == {"Person"}
        assert index.equivalents["Person"] == {"Human"}

    def test_axiom_name_normalization(self, builder):
        index = build_index(builder.cls("A", ("Sub Class-Of", "B")).cls("B").build())
        assert index.sub_class_of["A"] == {"B"}

    def test_subclass_edge_to_individual_is_ignored(self, builder):
        index = build_index(builder.cls("A").individual("x").sub("A", "x").build())
        assert index.sub_class_of["A"] == set()

    def test_type_assertion_needs_a_class_target(self, builder):
        index = build_index(builder.individual("x").individual("y").rel("x", "y", "a").build())
        assert not index.types_of.get("x")

    def test_parsed_axioms_keep_expression_tree(self, school_index):
        (parsed,) = school_index.parsed_axioms["Tutor"]
        assert repr(parsed.expression) == "teaches some Course"

    def test_self_subclass_edge_is_kept(self, builder):
        index = build_index(builder.cls("A").sub("A", "A").build())
        assert index.sub_class_of["A"] == {"A"}

    def test_self_subclass_axiom_is_ignored(self, builder):
        index = build_index(builder.cls("A", ("SubClassOf", "A")).build())
        assert index.sub_class_of["A"] == set()


class TestLabelsWithSpaces:
    """Test suite for axioms naming a label that contains spaces."""

    def test_subclass_axiom(self, builder):
        index = build_index(
            builder.cls("Domestic Animal").cls("Animal").cls("Dog", ("SubClassOf", "Domestic Animal"))
            .build()
        )
        assert index.sub_class_of["Dog"] == {"Domestic Animal"}
        assert repr(index.parsed_axioms["Dog"][0].expression) == "Domestic Animal"

    def test_disjoint_axiom_is_not_split(self, builder):
        index = build_index(
            builder.cls("Domestic Animal").cls("Animal").cls("Wild", ("DisjointWith", "Domestic Animal"))
            .build()
        )
        assert index.disjoint_with["Wild"] == {"Domestic Animal"}
        assert not index.are_disjoint("Wild", "Animal")

    def test_domain_and_range(self, builder):
        index = build_index(
            builder.cls("Pet Owner").cls("Domestic Animal")
            .prop("owns", domain="Pet Owner", range="Domestic Animal")
            .build()
        )
        meta = index.property_meta["owns"]
        assert meta.domains == ["Pet Owner"]
        assert meta.ranges == ["Domestic Animal"]

    def test_equivalent_axiom(self, builder):
        index = build_index(
            builder.cls("Human Being").cls("Person", ("EquivalentTo", "human being")).build()
        )
        assert index.equivalents["Person"] == {"Human Being"}


class TestPropertyMeta:
    """Test suite for property metadata."""

    def test_domain_and_range(self, school_index):
        meta = school_index.property_meta["teaches"]
        assert meta.kind == EntityKind.OBJECT_PROPERTY
        assert meta.domains == ["Teacher"]
        assert meta.ranges == ["Course"]

    def test_characteristics_from_attributes(self, school_index):
        meta = school_index.property_meta["hasAge"]
        assert meta.kind == EntityKind.DATA_PROPERTY
        assert meta.has("Functional")

    def test_characteristics_axiom_filters_unknown_tokens(self, builder):
        index = build_index(
            builder.prop("partOf", axioms=[("Characteristics", "Transitive, Bogus")]).build()
        )
        assert index.property_meta["partOf"].characteristics == {"Transitive"}

    def test_inverse_relation_registers_both_sides(self, builder):
        index = build_index(
            builder.prop("hasParent").prop("hasChild").rel("hasParent", "hasChild", "owl:inverseOf").build()
        )
        assert index.property_meta["hasParent"].inverses == ["hasChild"]
        assert index.property_meta["hasChild"].inverses == ["hasParent"]

    def test_inverse_axiom(self, builder):
        index = build_index(
            builder.prop("hasParent", axioms=[("InverseOf", "hasChild")]).prop("hasChild").build()
        )
        assert index.property_meta["hasParent"].inverses == ["hasChild"]
        assert index.property_meta["hasChild"].inverses == ["hasParent"]

    def test_property_for_prefixed_label(self, school_index):
        assert school_index.property_for_label("ex:teaches").id == "teaches"
        assert school_index.property_for_label("Person") is None

    def test_property_facts_skip_reserved_and_unlabelled(self, builder):
        index = build_index(
            builder.cls("A").cls("B").individual("x", "A").individual("y")
            .sub("A", "B").rel("x", "y", "knows").rel("x", "y", "")
            .build()
        )
        assert [r.label for r in index.property_facts()] == ["knows"]


class TestSnapshotBoundary:
    """Test suite for snapshot validation errors."""

    def test_camel_case_aliases(self):
        snapshot = coerce_snapshot({
            "entities": [{
                "id": "c1",
                "label": "Chain",
                "kind": "ObjectProperty",
                "axioms": [{"relationName": "PropertyChain", "expression": "a b", "isOrdered": True}],
            }],
            "relations": [],
        })
        axiom = snapshot.entities[0].axioms[0]
        assert axiom.relation_name == "PropertyChain"
        assert axiom.ordered is True
        assert axiom.key == "propertychain"

    def test_null_label_becomes_empty(self, builder):
        snapshot = coerce_snapshot(builder.cls("A").cls("B").rel("A", "B", None).build())
        assert snapshot.relations[0].label == ""

    def test_model_passes_through(self):
        snapshot = Snapshot()
        assert coerce_snapshot(snapshot) is snapshot

    def test_not_a_mapping(self):
        with pytest.raises(SnapshotError):
            build_index(["not", "a", "snapshot"])

    def test_missing_field_names_location(self):
        with pytest.raises(SnapshotError) as exc_info:
            build_index({"entities": [{"id": "a", "label": "A"}]})
        assert exc_info.value.field == "entities.0.kind"

    def test_duplicate_entity_id(self, builder):
        with pytest.raises(SnapshotError, match="Duplicate entity id"):
            build_index(builder.cls("A", id="x").cls("B", id="x").build())

    def test_dangling_relation(self, builder):
        with pytest.raises(SnapshotError) as exc_info:
            build_index(builder.cls("A").sub("A", "Ghost").build())
        assert exc_info.value.field == "relations.0.target"

    def test_inferred_input_rejected(self, builder):
        snapshot = builder.cls("A").cls("B").rel("A", "B", "subClassOf", isInferred=True).build()
        with pytest.raises(SnapshotError, match="Inferred"):
            build_index(snapshot)

    def test_unclassified_index_refuses_transitive_questions(self, zoo_snapshot):
        index = build_index(zoo_snapshot)
        assert not index.is_classified
        with pytest.raises(RuntimeError):
            index.ancestors("Dog")
