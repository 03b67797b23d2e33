"""
Tests for the DL query evaluator.

Validates:
- Mode semantics for named and compound expressions
- Meta-queries and Thing
- Unresolvable queries return an empty list
"""

import pytest

from owl_reasoning.query import QueryMode, run_query


class TestNamedQueries:
    """Test suite for single-name queries."""

    def test_instances(self, zoo_index):
        assert run_query(zoo_index, "Dog", "instances") == ["Rex"]

    def test_subclasses_include_self(self, zoo_index):
        assert run_query(zoo_index, "Animal", "subclasses") == ["Animal", "Mammal", "Dog", "Cat"]

    def test_superclasses_include_self(self, zoo_index):
        assert run_query(zoo_index, "Dog", "superclasses") == ["Animal", "Mammal", "Dog"]

    def test_instances_of_ancestor(self, zoo_index):
        assert run_query(zoo_index, "Animal", QueryMode.INSTANCES) == ["Rex", "Tom"]

    def test_individual_is_its_own_instance(self, zoo_index):
        assert run_query(zoo_index, "Rex", "instances") == ["Rex"]

    def test_case_insensitive_name(self, zoo_index):
        assert run_query(zoo_index, "dog", "instances") == ["Rex"]

    def test_unknown_name(self, zoo_index):
        assert run_query(zoo_index, "Unicorn", "instances") == []

    def test_invalid_mode(self, zoo_index):
        with pytest.raises(ValueError):
            run_query(zoo_index, "Dog", "cousins")


class TestCompoundQueries:
    """Test suite for compound expressions."""

    def test_instances_of_intersection_with_complement(self, zoo_index):
        assert run_query(zoo_index, "Mammal and not Dog", "instances") == ["Tom"]

    def test_subclasses_of_intersection_with_complement(self, zoo_index):
        assert run_query(zoo_index, "Mammal and not Dog", "subclasses") == ["Mammal", "Cat"]

    def test_superclasses_of_union(self, zoo_index):
        assert run_query(zoo_index, "Dog or Cat", "superclasses") == ["Animal", "Mammal", "Dog", "Cat"]

    def test_instances_of_restriction(self, school_index):
        assert run_query(school_index, "teaches some Course", "instances") == ["Alice", "Carol"]

    def test_subclasses_of_restriction(self, school_index):
        assert run_query(school_index, "teaches some Course", "subclasses") == ["Tutor"]

    def test_malformed_expression(self, zoo_index):
        assert run_query(zoo_index, "Dog and", "instances") == []


class TestMetaQueries:
    """Test suite for kind listings and Thing."""

    def test_class_listing(self, zoo_index):
        assert run_query(zoo_index, "Class", "instances") == ["Animal", "Mammal", "Dog", "Cat"]
        assert run_query(zoo_index, "owl:Class", "subclasses") == ["Animal", "Mammal", "Dog", "Cat"]

    def test_individual_listing(self, zoo_index):
        assert run_query(zoo_index, "individuals", "subclasses") == ["Rex", "Tom"]

    def test_property_listings(self, school_index):
        assert run_query(school_index, "ObjectProperty", "instances") == ["teaches"]
        assert run_query(school_index, "DataProperty", "instances") == ["hasAge"]
        assert run_query(school_index, "datatypeproperty", "instances") == ["hasAge"]

    def test_datatype_listing(self, school_index):
        assert run_query(school_index, "Datatype", "instances") == ["10", "12"]

    def test_thing_instances(self, zoo_index):
        assert run_query(zoo_index, "Thing", "instances") == ["Rex", "Tom"]

    def test_thing_subclasses(self, zoo_index):
        assert run_query(zoo_index, "owl:Thing", "subclasses") == ["Animal", "Mammal", "Dog", "Cat"]

    def test_declared_thing_wins(self, builder):
        index = builder.cls("Thing").cls("Widget").sub("Widget", "Thing").index()
        assert run_query(index, "Thing", "subclasses") == ["Thing", "Widget"]


class TestEquivalentQueries:
    """Test suite for the equivalent mode."""

    def test_named_equivalents(self, builder):
        index = builder.cls("Person").cls("Human", ("EquivalentTo", "Person")).index()
        assert run_query(index, "Person", "equivalent") == ["Human"]
        assert run_query(index, "Human", "equivalent") == ["Person"]

    def test_expression_equivalents(self, builder):
        index = (
            builder.cls("Person").cls("Course").prop("teaches")
            .cls("Teacher", ("EquivalentTo", "Person and teaches some Course"))
            .index()
        )
        assert run_query(index, "Person and teaches some Course", "equivalent") == ["Teacher"]

    def test_no_equivalents(self, zoo_index):
        assert run_query(zoo_index, "Dog", "equivalent") == []
