"""
owl_reasoning/consistency.py - Consistency Checker

Detects logical and structural problems in a classified ontology:

- Cyclic inheritance in the asserted subsumption graph
- Unsatisfiable classes (ancestors include a disjoint pair)
- Inconsistent individuals (asserted or inferred types are disjoint)
- Property type mismatch and ambiguous (punned) property usage
- Characteristic violations (Irreflexive, Asymmetric, Functional,
  InverseFunctional)
- Domain / range violations
- Structural duplication
- Syntax problems in IRIs, attributes and axioms

Every check runs on every call; one failing check never hides another.
Errors make the ontology invalid, warnings and info entries are advisory.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .classification import classify
from .index import DISJOINT_AXIOMS, LIST_AXIOMS, OntologyIndex, PropertyMeta
from .models import TYPE_LABELS, Entity, EntityKind, Relation, canonical_label
from .parser import split_operands

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Issue:
    """A single finding reported to the editor."""

    severity: Severity
    title: str
    message: str
    element_id: str | None = None
    id: str = ""
    related_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "elementId": self.element_id,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "relatedIds": list(self.related_ids),
        }


@dataclass
class ValidationResult:
    """Outcome of a consistency check."""

    issues: list[Issue] = field(default_factory=list)
    unsatisfiable_entity_ids: list[str] = field(default_factory=list)
    duplicate_entity_ids: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True if no issue has severity error."""
        return not any(i.severity == Severity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def by_title(self, title: str) -> list[Issue]:
        return [i for i in self.issues if i.title == title]

    def summary(self) -> dict[str, int]:
        """Issue counts keyed by title."""
        return dict(Counter(i.title for i in self.issues))

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "issues": [i.to_dict() for i in self.issues],
            "unsatisfiableEntityIds": list(self.unsatisfiable_entity_ids),
            "duplicateEntityIds": list(self.duplicate_entity_ids),
        }


class ConsistencyChecker:
    """Runs every check against one index.

    Example:
        result = ConsistencyChecker(build_index(snapshot)).run()
        if not result.is_valid:
            for issue in result.errors:
                print(issue.title, issue.message)
    """

    def __init__(
        self,
        index: OntologyIndex,
        syntax_checks: bool = True,
        duplicate_detection: bool = True,
    ):
        if not index.is_classified:
            index = classify(index)
        self.index = index
        self.syntax_checks = syntax_checks
        self.duplicate_detection = duplicate_detection

        self._order = {entity_id: i for i, entity_id in enumerate(index.entities)}
        self._issues: list[Issue] = []
        self._issue_ids: set[str] = set()
        self._unsatisfiable: set[str] = set()
        self._duplicates: set[str] = set()

    def run(self) -> ValidationResult:
        if self.syntax_checks:
            self._check_syntax()
        self._check_cycles()
        self._check_unsatisfiable_classes()
        self._check_individuals()
        self._check_property_usage()
        self._check_characteristics()
        self._check_domain_range()
        if self.duplicate_detection:
            self._check_duplicates()

        result = ValidationResult(
            issues=list(self._issues),
            unsatisfiable_entity_ids=self._ordered(self._unsatisfiable),
            duplicate_entity_ids=self._ordered(self._duplicates),
        )
        logger.info(
            f"Validation finished: {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings, "
            f"{len(result.unsatisfiable_entity_ids)} unsatisfiable classes"
        )
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ordered(self, ids: Iterable[str]) -> list[str]:
        """Sort ids by snapshot position for deterministic output."""
        return sorted(ids, key=lambda i: self._order.get(i, len(self._order)))

    def _label(self, entity_id: str) -> str:
        return self.index.label(entity_id)

    def _report(
        self,
        issue_id: str,
        severity: Severity,
        title: str,
        message: str,
        element_id: str | None = None,
        related_ids: Iterable[str] = (),
    ) -> None:
        if issue_id in self._issue_ids:
            return
        self._issue_ids.add(issue_id)
        self._issues.append(Issue(
            severity=severity,
            title=title,
            message=message,
            element_id=element_id,
            id=issue_id,
            related_ids=list(related_ids),
        ))

    def _with_ancestors(self, class_ids: Iterable[str]) -> set[str]:
        result: set[str] = set()
        for class_id in class_ids:
            result.add(class_id)
            result |= self.index.ancestors(class_id)
        return result

    def _disjoint_pair(self, left: set[str], right: set[str]) -> tuple[str, str] | None:
        """First declared disjoint pair with one member in each set."""
        for a in self._ordered(left):
            for b in self._ordered(self.index.disjoint_with.get(a, ())):
                if b in right:
                    return a, b
        return None

    def _types(self, entity_id: str) -> set[str]:
        """Known classes of an entity: closed types, or the class and its ancestors."""
        if self.index.is_class(entity_id):
            return self._with_ancestors([entity_id])
        return set(self.index.types_of.get(entity_id, set()))

    # -------------------------------------------------------------------------
    # Syntax
    # -------------------------------------------------------------------------

    def _check_syntax(self) -> None:
        for entity in self.index.entities.values():
            if entity.iri and any(ch.isspace() for ch in entity.iri):
                self._report(
                    f"iri-space-{entity.id}", Severity.ERROR, "Invalid IRI Syntax",
                    f"IRI for '{entity.label}' contains spaces. IRIs must be valid URIs.",
                    entity.id,
                )

            for attr in entity.attributes:
                if entity.kind.is_property and attr.name in entity.characteristics:
                    continue
                if entity.kind == EntityKind.CLASS and not attr.type:
                    self._report(
                        f"attr-missing-type-{entity.id}-{attr.name}", Severity.WARNING,
                        "Missing Datatype",
                        f"Data property '{attr.name}' in '{entity.label}' has no type specified.",
                        entity.id,
                    )
                if any(ch.isspace() for ch in attr.name):
                    self._report(
                        f"attr-name-space-{entity.id}-{attr.name}", Severity.WARNING,
                        "Not a valid QName",
                        f"Property '{attr.name}' contains spaces. Consider using camelCase.",
                        entity.id,
                    )

            for n, item in enumerate(self.index.parsed_axioms.get(entity.id, [])):
                axiom = item.axiom
                if not axiom.expression.strip():
                    self._report(
                        f"axiom-empty-{entity.id}-{n}", Severity.WARNING, "Incomplete Axiom",
                        f"Axiom '{axiom.relation_name}' on '{entity.label}' has no target defined.",
                        entity.id,
                    )
                elif item.expression is None and axiom.key not in LIST_AXIOMS | DISJOINT_AXIOMS:
                    self._report(
                        f"axiom-unparsed-{entity.id}-{n}", Severity.INFO, "Unparsed Axiom",
                        f"Axiom '{axiom.relation_name}: {axiom.expression}' on "
                        f"'{entity.label}' is outside the supported expression syntax "
                        f"and was not used for reasoning.",
                        entity.id,
                    )

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    def _check_cycles(self) -> None:
        """Depth-first search over direct subsumption with an explicit stack."""
        graph = self.index.sub_class_of
        visited: set[str] = set()
        on_stack: set[str] = set()
        reported: set[frozenset[str]] = set()

        for root in self._ordered(graph):
            if root in visited:
                continue

            visited.add(root)
            on_stack.add(root)
            path = [root]
            stack = [iter(self._ordered(graph.get(root, ())))]

            while stack:
                child = next(stack[-1], None)
                if child is None:
                    stack.pop()
                    on_stack.discard(path.pop())
                    continue

                if child in on_stack:
                    cycle = path[path.index(child):]
                    key = frozenset(cycle)
                    if key not in reported:
                        reported.add(key)
                        self._report_cycle(cycle)
                elif child not in visited:
                    visited.add(child)
                    on_stack.add(child)
                    path.append(child)
                    stack.append(iter(self._ordered(graph.get(child, ()))))

    def _report_cycle(self, cycle: list[str]) -> None:
        entry = cycle[0]
        labels = " -> ".join(self._label(c) for c in cycle + [entry])
        self._report(
            f"cycle-{entry}", Severity.ERROR, "Cyclic Inheritance",
            f"Circular dependency detected: {labels}. "
            f"A class cannot be a subclass of itself.",
            entry,
            related_ids=cycle,
        )

    def _check_unsatisfiable_classes(self) -> None:
        for class_id in self.index.ids_of_kind(EntityKind.CLASS):
            ancestors = self.index.ancestors(class_id) - {class_id}

            # Pass 1: the class against each of its ancestors
            for ancestor in self._ordered(ancestors):
                if self.index.are_disjoint(class_id, ancestor):
                    self._report_unsatisfiable(class_id, class_id, ancestor)

            # Pass 2: every pair of ancestors
            for a, b in self.index.disjoint_pairs:
                if a in ancestors and b in ancestors:
                    self._report_unsatisfiable(class_id, a, b)

    def _report_unsatisfiable(self, class_id: str, a: str, b: str) -> None:
        self._unsatisfiable.add(class_id)
        first, second = sorted((a, b), key=lambda i: self._order[i])
        self._report(
            f"unsat-{class_id}-{first}-{second}", Severity.ERROR, "Unsatisfiable Class",
            f"Class '{self._label(class_id)}' is logically impossible (Nothing) because it "
            f"inherits from disjoint classes '{self._label(first)}' and '{self._label(second)}'.",
            class_id,
            related_ids=[first, second],
        )

    def _check_individuals(self) -> None:
        asserted: dict[str, set[str]] = defaultdict(set)
        for rel in self.index.relations:
            if rel.label in TYPE_LABELS and self.index.is_class(rel.target):
                asserted[rel.source].add(rel.target)

        for individual in self.index.ids_of_kind(EntityKind.NAMED_INDIVIDUAL):
            explicit = asserted.get(individual, set())
            label = self._label(individual)

            pair = self._disjoint_pair(explicit, explicit)
            if pair:
                a, b = pair
                self._report(
                    f"indiv-unsat-{individual}", Severity.ERROR, "Inconsistent Individual",
                    f"Individual '{label}' cannot belong to both '{self._label(a)}' and "
                    f"'{self._label(b)}' as they are disjoint.",
                    individual,
                    related_ids=[a, b],
                )
                continue

            inferred = self._types(individual)
            pair = self._disjoint_pair(inferred, inferred)
            if pair:
                a, b = pair
                self._report(
                    f"indiv-inferred-unsat-{individual}", Severity.ERROR,
                    "Inconsistent Individual (Inferred)",
                    f"Individual '{label}' is inconsistent because its types imply membership "
                    f"in disjoint classes '{self._label(a)}' and '{self._label(b)}'.",
                    individual,
                    related_ids=[a, b],
                )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    def _usage_kind(self, rel: Relation) -> EntityKind:
        if self.index.kind(rel.target) == EntityKind.DATATYPE:
            return EntityKind.DATA_PROPERTY
        return EntityKind.OBJECT_PROPERTY

    def _check_property_usage(self) -> None:
        first_usage: dict[str, EntityKind] = {}
        flagged: set[str] = set()

        for rel in self.index.property_facts():
            usage = self._usage_kind(rel)
            meta = self.index.property_for_label(rel.label)

            if meta is not None:
                if meta.kind != usage:
                    self._report(
                        f"prop-mismatch-{meta.id}-{usage.value}", Severity.ERROR,
                        "Property Type Mismatch",
                        f"'{rel.label}' is declared as {meta.kind.value} but is used as "
                        f"{usage.value} from '{self._label(rel.source)}' to "
                        f"'{self._label(rel.target)}'.",
                        meta.id,
                        related_ids=[rel.source, rel.target],
                    )
                continue

            previous = first_usage.setdefault(rel.label, usage)
            if previous != usage and rel.label not in flagged:
                flagged.add(rel.label)
                self._report(
                    f"prop-ambiguous-{rel.label}", Severity.ERROR, "Ambiguous Property Usage",
                    f"'{rel.label}' is used both as {previous.value} and as {usage.value}. "
                    f"Declare the property explicitly or rename one usage.",
                    rel.source,
                    related_ids=[rel.source, rel.target],
                )

    def _asserted_facts(self) -> list[tuple[Relation, PropertyMeta]]:
        """Property assertions on individuals with a declared property."""
        facts = []
        for rel in self.index.property_facts():
            if not self.index.is_individual(rel.source):
                continue
            meta = self.index.property_for_label(rel.label)
            if meta is not None:
                facts.append((rel, meta))
        return facts

    def _check_characteristics(self) -> None:
        facts = self._asserted_facts()
        objects: dict[tuple[str, str], set[str]] = defaultdict(set)
        subjects: dict[tuple[str, str], set[str]] = defaultdict(set)
        present = {(meta.id, rel.source, rel.target) for rel, meta in facts}

        for rel, meta in facts:
            objects[(rel.source, meta.id)].add(rel.target)
            subjects[(rel.target, meta.id)].add(rel.source)
            prop = self._label(meta.id)

            if meta.has("Irreflexive") and rel.source == rel.target:
                self._report(
                    f"irreflexive-{meta.id}-{rel.source}", Severity.ERROR, "Irreflexive Violation",
                    f"'{self._label(rel.source)}' is related to itself by irreflexive "
                    f"property '{prop}'.",
                    rel.source,
                    related_ids=[meta.id],
                )

            if (
                meta.has("Asymmetric")
                and rel.source != rel.target
                and (meta.id, rel.target, rel.source) in present
            ):
                first, second = sorted((rel.source, rel.target), key=lambda i: self._order[i])
                self._report(
                    f"asymmetric-{meta.id}-{first}-{second}", Severity.ERROR,
                    "Asymmetric Violation",
                    f"Asymmetric property '{prop}' holds in both directions between "
                    f"'{self._label(first)}' and '{self._label(second)}'.",
                    first,
                    related_ids=[meta.id, second],
                )

        for (subject, prop_id), targets in objects.items():
            if len(targets) > 1 and self.index.property_meta[prop_id].has("Functional"):
                values = ", ".join(f"'{self._label(t)}'" for t in self._ordered(targets))
                self._report(
                    f"functional-{prop_id}-{subject}", Severity.ERROR, "Cardinality Violation",
                    f"Functional property '{self._label(prop_id)}' has {len(targets)} values "
                    f"for '{self._label(subject)}': {values}.",
                    subject,
                    related_ids=[prop_id, *self._ordered(targets)],
                )

        for (obj, prop_id), sources in subjects.items():
            if len(sources) > 1 and self.index.property_meta[prop_id].has("InverseFunctional"):
                names = ", ".join(f"'{self._label(s)}'" for s in self._ordered(sources))
                self._report(
                    f"inverse-functional-{prop_id}-{obj}", Severity.ERROR,
                    "Inverse Functional Violation",
                    f"Inverse functional property '{self._label(prop_id)}' points at "
                    f"'{self._label(obj)}' from {len(sources)} subjects: {names}.",
                    obj,
                    related_ids=[prop_id, *self._ordered(sources)],
                )

    def _check_domain_range(self) -> None:
        for rel in self.index.property_facts():
            meta = self.index.property_for_label(rel.label)
            if meta is None:
                continue
            prop = self._label(meta.id)

            subject_types = self._types(rel.source)
            for domain in meta.domains:
                pair = self._disjoint_pair(subject_types, self._with_ancestors([domain]))
                if pair:
                    self._report(
                        f"domain-{meta.id}-{rel.source}-{domain}", Severity.ERROR,
                        "Domain Violation",
                        f"'{self._label(rel.source)}' uses '{prop}' but its type "
                        f"'{self._label(pair[0])}' is disjoint with the domain "
                        f"'{self._label(domain)}'.",
                        rel.source,
                        related_ids=[meta.id, domain],
                    )

            if meta.kind != EntityKind.OBJECT_PROPERTY:
                continue
            object_types = self._types(rel.target)
            for range_id in meta.ranges:
                pair = self._disjoint_pair(object_types, self._with_ancestors([range_id]))
                if pair:
                    self._report(
                        f"range-{meta.id}-{rel.target}-{range_id}", Severity.ERROR,
                        "Range Violation",
                        f"'{self._label(rel.target)}' is the object of '{prop}' but its type "
                        f"'{self._label(pair[0])}' is disjoint with the range "
                        f"'{self._label(range_id)}'.",
                        rel.target,
                        related_ids=[meta.id, range_id],
                    )

    # -------------------------------------------------------------------------
    # Duplication
    # -------------------------------------------------------------------------

    def _signature(self, entity: Entity) -> tuple | None:
        attributes = frozenset((a.name, a.type or "") for a in entity.attributes)

        axioms = []
        for item in self.index.parsed_axioms.get(entity.id, []):
            axiom = item.axiom
            if axiom.ordered:
                operands: Any = tuple(split_operands(axiom.expression))
            elif axiom.key in LIST_AXIOMS:
                operands = frozenset(split_operands(axiom.expression))
            elif item.expression is not None:
                operands = item.expression
            else:
                operands = axiom.expression.strip()
            axioms.append((axiom.key, operands))

        outgoing = Counter(
            (canonical_label(r.label), r.target)
            for r in self.index.outgoing_relations.get(entity.id, [])
        )

        if not attributes and not axioms and not outgoing:
            return None
        return (
            entity.kind,
            attributes,
            frozenset(Counter(axioms).items()),
            frozenset(outgoing.items()),
        )

    def _check_duplicates(self) -> None:
        groups: dict[tuple, list[str]] = defaultdict(list)
        for entity in self.index.entities.values():
            signature = self._signature(entity)
            if signature is not None:
                groups[signature].append(entity.id)

        for members in groups.values():
            if len(members) < 2:
                continue
            self._duplicates.update(members)
            for entity_id in members:
                others = ", ".join(f"'{self._label(m)}'" for m in members if m != entity_id)
                self._report(
                    f"duplicate-{entity_id}", Severity.WARNING, "Duplicate Entity",
                    f"'{self._label(entity_id)}' has the same characteristics, axioms and "
                    f"relations as {others}.",
                    entity_id,
                    related_ids=[m for m in members if m != entity_id],
                )


def check_consistency(index: OntologyIndex, **options: bool) -> ValidationResult:
    """Run every consistency check against an index (classified on demand)."""
    return ConsistencyChecker(index, **options).run()
