"""
owl_reasoning/models.py - Snapshot contract shared with the diagram editor

Pydantic models for the entity/relation/axiom snapshot the editor hands
to the reasoner, plus the reserved vocabulary the index builder keys on.
The editor serializes in camelCase (``relationName``, ``isInferred``);
both spellings are accepted.
"""
from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# VOCABULARY
# =============================================================================

SUBCLASS_LABELS = frozenset({"subClassOf", "rdfs:subClassOf"})
TYPE_LABELS = frozenset({"rdf:type", "a"})
DISJOINT_LABELS = frozenset({"owl:disjointWith", "disjointWith"})
INVERSE_LABELS = frozenset({"owl:inverseOf", "inverseOf"})

RESERVED_LABELS = SUBCLASS_LABELS | TYPE_LABELS | DISJOINT_LABELS | INVERSE_LABELS

# Labels the materializer emits
INFERRED_SUBCLASS_LABEL = "rdfs:subClassOf"
INFERRED_TYPE_LABEL = "rdf:type"

CHARACTERISTICS = frozenset({
    "Functional",
    "InverseFunctional",
    "Transitive",
    "Symmetric",
    "Asymmetric",
    "Reflexive",
    "Irreflexive",
})


def axiom_key(name: str) -> str:
    """Normalize an axiom relation name: ``Sub Class-Of`` -> ``subclassof``."""
    return re.sub(r"[^a-z]", "", name.lower())


def canonical_label(label: str) -> str:
    """Collapse reserved-label synonyms so ``a`` and ``rdf:type`` compare equal."""
    if label in SUBCLASS_LABELS:
        return INFERRED_SUBCLASS_LABEL
    if label in TYPE_LABELS:
        return INFERRED_TYPE_LABEL
    if label in DISJOINT_LABELS:
        return "owl:disjointWith"
    if label in INVERSE_LABELS:
        return "owl:inverseOf"
    return label


def local_name(label: str) -> str:
    """Strip a namespace prefix: ``ex:hasPart`` -> ``hasPart``."""
    return label.split(":", 1)[1] if ":" in label else label


# =============================================================================
# ENUMS
# =============================================================================


class EntityKind(str, Enum):
    """OWL 2 entity types the editor can place on the canvas."""

    CLASS = "Class"
    OBJECT_PROPERTY = "ObjectProperty"
    DATA_PROPERTY = "DataProperty"
    NAMED_INDIVIDUAL = "NamedIndividual"
    DATATYPE = "Datatype"

    @property
    def is_property(self) -> bool:
        return self in (EntityKind.OBJECT_PROPERTY, EntityKind.DATA_PROPERTY)


# =============================================================================
# SNAPSHOT MODELS
# =============================================================================


class Attribute(BaseModel):
    """Property characteristic token, or a data-property hint on a class."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., description="Characteristic (Functional, ...) or data property name")
    type: str | None = Field(default=None, description="Datatype for class-level hints")


class Axiom(BaseModel):
    """TBox/RBox/ABox fact that is not a simple directed relation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    relation_name: str = Field(..., alias="relationName", description="SubClassOf, Domain, InverseOf, ...")
    expression: str = Field(default="", description="Class expression in the Manchester subset")
    ordered: bool = Field(default=False, alias="isOrdered", description="Operand order is significant")

    @property
    def key(self) -> str:
        return axiom_key(self.relation_name)


class Entity(BaseModel):
    """A node on the ontology canvas."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Stable opaque identifier")
    label: str = Field(..., description="Human-readable name used in expressions")
    kind: EntityKind
    iri: str | None = None
    attributes: list[Attribute] = Field(default_factory=list)
    axioms: list[Axiom] = Field(default_factory=list)

    @property
    def characteristics(self) -> set[str]:
        return {a.name for a in self.attributes if a.name in CHARACTERISTICS}


class Relation(BaseModel):
    """Directed labelled edge between two entities."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    label: str = ""
    is_inferred: bool = Field(default=False, alias="isInferred")
    id: str | None = None

    @field_validator("label", mode="before")
    @classmethod
    def _none_label(cls, value):
        return "" if value is None else value

    @property
    def key(self) -> tuple[str, str, str]:
        """Identity used for de-duplication."""
        return (self.source, self.target, canonical_label(self.label))

    @property
    def is_reserved(self) -> bool:
        return self.label in RESERVED_LABELS


class Snapshot(BaseModel):
    """Everything the reasoner needs: entities (with axioms) and relations."""

    model_config = ConfigDict(populate_by_name=True)

    entities: list[Entity] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)

    def asserted(self) -> Snapshot:
        """Copy with previously materialized relations dropped."""
        return Snapshot(
            entities=self.entities,
            relations=[r for r in self.relations if not r.is_inferred],
        )
