"""
Pytest fixtures for owl_reasoning tests.

Snapshots are built with ``SnapshotBuilder``; entity ids default to the
entity label so assertions read naturally (``["Animal", "Mammal"]``).
"""

from __future__ import annotations

from typing import Any

import pytest

from owl_reasoning.classification import classify
from owl_reasoning.config import ReasonerSettings
from owl_reasoning.index import OntologyIndex, build_index


class SnapshotBuilder:
    """Fluent helper producing editor-shaped snapshot dicts."""

    def __init__(self) -> None:
        self.entities: list[dict[str, Any]] = []
        self.relations: list[dict[str, Any]] = []

    def entity(
        self,
        kind: str,
        label: str,
        *,
        id: str | None = None,
        iri: str | None = None,
        attributes: list[dict[str, Any]] | None = None,
        axioms: list[tuple[str, str]] | None = None,
    ) -> SnapshotBuilder:
        self.entities.append({
            "id": id or label,
            "label": label,
            "kind": kind,
            "iri": iri,
            "attributes": attributes or [],
            "axioms": [{"relationName": name, "expression": expr} for name, expr in axioms or []],
        })
        return self

    def cls(self, label: str, *axioms: tuple[str, str], **kwargs) -> SnapshotBuilder:
        return self.entity("Class", label, axioms=list(axioms), **kwargs)

    def individual(self, label: str, *types: str, **kwargs) -> SnapshotBuilder:
        self.entity("NamedIndividual", label, **kwargs)
        for class_id in types:
            self.rel(kwargs.get("id") or label, class_id, "rdf:type")
        return self

    def prop(
        self,
        label: str,
        *characteristics: str,
        data: bool = False,
        domain: str | None = None,
        range: str | None = None,
        axioms: list[tuple[str, str]] | None = None,
    ) -> SnapshotBuilder:
        axioms = list(axioms or [])
        if domain:
            axioms.append(("Domain", domain))
        if range:
            axioms.append(("Range", range))
        return self.entity(
            "DataProperty" if data else "ObjectProperty",
            label,
            attributes=[{"name": c} for c in characteristics],
            axioms=axioms,
        )

    def datatype(self, label: str) -> SnapshotBuilder:
        return self.entity("Datatype", label)

    def rel(self, source: str, target: str, label: str, **extra: Any) -> SnapshotBuilder:
        self.relations.append({"source": source, "target": target, "label": label, **extra})
        return self

    def sub(self, child: str, parent: str) -> SnapshotBuilder:
        return self.rel(child, parent, "subClassOf")

    def disjoint(self, a: str, b: str) -> SnapshotBuilder:
        return self.rel(a, b, "owl:disjointWith")

    def build(self) -> dict[str, Any]:
        return {"entities": list(self.entities), "relations": list(self.relations)}

    def index(self) -> OntologyIndex:
        return classify(build_index(self.build()))


# =============================================================================
# BUILDER FIXTURES
# =============================================================================


@pytest.fixture
def builder() -> SnapshotBuilder:
    """Empty snapshot builder."""
    return SnapshotBuilder()


@pytest.fixture
def settings() -> ReasonerSettings:
    """Default settings, independent of the environment."""
    return ReasonerSettings(_env_file=None)


# =============================================================================
# SAMPLE ONTOLOGIES
# =============================================================================


@pytest.fixture
def zoo_builder() -> SnapshotBuilder:
    """Animal > Mammal > {Dog, Cat}; Dog and Cat disjoint; Rex a Dog, Tom a Cat."""
    return (
        SnapshotBuilder()
        .cls("Animal")
        .cls("Mammal")
        .cls("Dog")
        .cls("Cat")
        .individual("Rex", "Dog")
        .individual("Tom", "Cat")
        .sub("Mammal", "Animal")
        .sub("Dog", "Mammal")
        .sub("Cat", "Mammal")
        .disjoint("Dog", "Cat")
    )


@pytest.fixture
def zoo_snapshot(zoo_builder: SnapshotBuilder) -> dict[str, Any]:
    return zoo_builder.build()


@pytest.fixture
def zoo_index(zoo_builder: SnapshotBuilder) -> OntologyIndex:
    """Classified zoo index."""
    return zoo_builder.index()


@pytest.fixture
def school_builder() -> SnapshotBuilder:
    """People, courses and a ``teaches`` property with domain and range."""
    return (
        SnapshotBuilder()
        .cls("Person")
        .cls("Teacher", ("SubClassOf", "Person"))
        .cls("Student", ("SubClassOf", "Person"), ("DisjointWith", "Teacher"))
        .cls("Course")
        .cls("Tutor", ("SubClassOf", "teaches some Course"))
        .prop("teaches", domain="Teacher", range="Course")
        .prop("hasAge", "Functional", data=True)
        .datatype("10")
        .datatype("12")
        .individual("Alice", "Teacher")
        .individual("Bob", "Student")
        .individual("Math", "Course")
        .individual("Carol")
        .rel("Alice", "Math", "teaches")
        .rel("Carol", "Math", "teaches")
        .rel("Bob", "10", "hasAge")
    )


@pytest.fixture
def school_snapshot(school_builder: SnapshotBuilder) -> dict[str, Any]:
    return school_builder.build()


@pytest.fixture
def school_index(school_builder: SnapshotBuilder) -> OntologyIndex:
    """Classified school index."""
    return school_builder.index()
