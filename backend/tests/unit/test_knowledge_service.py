import pytest
from pydantic import ValidationError

from backend.src.models.glossary import GlossaryTermWrite
from backend.src.models.knowledge import ConceptWrite, RelationshipWrite
from backend.src.services.database import NotFoundError
from backend.src.services.glossary import GlossaryService
from backend.src.services.knowledge import KnowledgeService

USER_ID = "user-123"


@pytest.fixture
def knowledge(db) -> KnowledgeService:
    return KnowledgeService(db)


def test_relations_report_direction(knowledge: KnowledgeService) -> None:
    rest = knowledge.create_concept(USER_ID, ConceptWrite(title="REST", category="backend"))
    http = knowledge.create_concept(USER_ID, ConceptWrite(title="HTTP", category="backend"))
    fastapi = knowledge.create_concept(USER_ID, ConceptWrite(title="FastAPI", technology="Python"))
    knowledge.create_relationship(
        USER_ID, RelationshipWrite(source_concept_id=rest.id, target_concept_id=http.id, relationship_type="uses")
    )
    knowledge.create_relationship(
        USER_ID,
        RelationshipWrite(source_concept_id=fastapi.id, target_concept_id=rest.id, relationship_type="implements"),
    )

    detail = knowledge.get_concept_with_relations(USER_ID, rest.id)

    assert detail.title == "REST"
    assert sorted((r.concept.title, r.direction, r.relationship.relationship_type) for r in detail.related_concepts) == [
        ("FastAPI", "incoming", "implements"),
        ("HTTP", "outgoing", "uses"),
    ]


def test_relationship_requires_known_concepts(knowledge: KnowledgeService) -> None:
    concept = knowledge.create_concept(USER_ID, ConceptWrite(title="Docker"))
    foreign = knowledge.create_concept("someone-else", ConceptWrite(title="Kubernetes"))

    with pytest.raises(NotFoundError):
        knowledge.create_relationship(
            USER_ID, RelationshipWrite(source_concept_id=concept.id, target_concept_id=foreign.id)
        )


def test_self_relationship_is_rejected() -> None:
    with pytest.raises(ValidationError):
        RelationshipWrite(source_concept_id="c1", target_concept_id="c1")


def test_deleting_concept_drops_its_relationships(knowledge: KnowledgeService) -> None:
    a = knowledge.create_concept(USER_ID, ConceptWrite(title="A"))
    b = knowledge.create_concept(USER_ID, ConceptWrite(title="B"))
    knowledge.create_relationship(USER_ID, RelationshipWrite(source_concept_id=a.id, target_concept_id=b.id))

    knowledge.delete_concept(USER_ID, a.id)

    assert knowledge.list_relationships(USER_ID) == []
    assert knowledge.get_concept_with_relations(USER_ID, b.id).related_concepts == []


def test_update_concept(knowledge: KnowledgeService) -> None:
    concept = knowledge.create_concept(USER_ID, ConceptWrite(title="SQL"))

    updated = knowledge.update_concept(
        USER_ID, concept.id, ConceptWrite(title="SQL joins", category="database", difficulty="intermediate")
    )

    assert (updated.title, updated.category, updated.difficulty) == ("SQL joins", "database", "intermediate")
    with pytest.raises(NotFoundError):
        knowledge.update_concept("someone-else", concept.id, ConceptWrite(title="x"))


def test_glossary_is_sorted_case_insensitively(db) -> None:
    glossary = GlossaryService(db)
    for term in ("mitosis", "Atom", "Zygote"):
        glossary.create_term(USER_ID, GlossaryTermWrite(term=term, definition="..."))

    assert [t.term for t in glossary.list_terms(USER_ID)] == ["Atom", "mitosis", "Zygote"]


def test_glossary_term_must_not_be_blank() -> None:
    with pytest.raises(ValidationError):
        GlossaryTermWrite(term="   ", definition="something")


def test_glossary_update_and_delete(db) -> None:
    glossary = GlossaryService(db)
    term = glossary.create_term(USER_ID, GlossaryTermWrite(term=" Atom ", definition="Smallest unit"))
    assert term.term == "Atom"

    updated = glossary.update_term(USER_ID, term.id, GlossaryTermWrite(term="Atom", definition="Basic unit"))
    assert updated.definition == "Basic unit"

    glossary.delete_term(USER_ID, term.id)
    with pytest.raises(NotFoundError):
        glossary.get_term(USER_ID, term.id)
