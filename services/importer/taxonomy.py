# services/importer/taxonomy.py
"""
Taxonomy terms: seeding declared terms, a case-insensitive lookup cache, and
the naming heuristics that map a field to a vocabulary.
"""

from typing import Dict, List, NamedTuple, Optional, Sequence

from loguru import logger

from models.content_model import TaxonomySpec
from models.entities import RuleTrace, Term, VocabularyRule
from .metrics import TERMS_CREATED
from .store import ContentStore


class VocabularyMatch(NamedTuple):
    vocabulary: str
    rule: VocabularyRule


def infer_vocabulary(field_name: str, taxonomies: Sequence[TaxonomySpec]) -> Optional[VocabularyMatch]:
    """
    Guess the vocabulary behind a taxonomy field.  First rule that matches wins:

    1. a vocabulary whose id equals the field name (case-insensitive)
    2. the only declared taxonomy, when there is exactly one
    3. field ``tags`` → a vocabulary whose id or label contains "tag"
    4. a vocabulary whose id or label contains the field name

    Containment is one-directional: the vocabulary must contain the field
    name, never the other way round.
    """
    name = (field_name or "").strip().lower()
    if not name:
        return None
    declared = [t for t in taxonomies if t.vocabulary]

    for taxonomy in declared:
        if taxonomy.vocabulary.lower() == name:
            return VocabularyMatch(taxonomy.vocabulary, VocabularyRule.EXACT_NAME)

    if len(taxonomies) == 1 and taxonomies[0].vocabulary:
        return VocabularyMatch(taxonomies[0].vocabulary, VocabularyRule.SINGLE_TAXONOMY)

    if name == "tags":
        for taxonomy in declared:
            if "tag" in taxonomy.vocabulary.lower() or "tag" in taxonomy.label.lower():
                return VocabularyMatch(taxonomy.vocabulary, VocabularyRule.TAGS_SPECIAL_CASE)

    for taxonomy in declared:
        if name in taxonomy.vocabulary.lower() or name in taxonomy.label.lower():
            return VocabularyMatch(taxonomy.vocabulary, VocabularyRule.CONTAINS_FIELD_NAME)

    return None


class TaxonomyResolver:
    """
    Owns the run's ``terms_by_vocabulary`` cache (vocabulary → {lower(name) → id}).

    Within one run a term is never created twice, whatever the casing of the
    names that reference it.
    """

    def __init__(self, store: ContentStore):
        self._store = store
        self._taxonomies: List[TaxonomySpec] = []
        self.cache: Dict[str, Dict[str, str]] = {}
        self.created: List[Term] = []
        self.rules: List[RuleTrace] = []

    # ------------------------------------------------------------------
    def seed(self, taxonomies: Sequence[TaxonomySpec]) -> None:
        """
        Create every declared seed term missing from its vocabulary (exact,
        case-sensitive name check), then preload all terms of each declared
        vocabulary into the case-insensitive cache.
        """
        self._taxonomies = list(taxonomies)
        for taxonomy in self._taxonomies:
            if not taxonomy.vocabulary:
                continue
            existing = {t.name for t in self._existing_terms(taxonomy.vocabulary)}
            for raw_name in taxonomy.terms:
                name = raw_name.strip()
                if not name or name in existing:
                    continue
                if self._create(taxonomy.vocabulary, name) is not None:
                    existing.add(name)

        for taxonomy in self._taxonomies:
            if taxonomy.vocabulary:
                self.preload(taxonomy.vocabulary)
        logger.info(f"Taxonomy phase done: {len(self.cache)} vocabular(ies) cached, {len(self.created)} term(s) created")

    def preload(self, vocabulary: str) -> Dict[str, str]:
        lookup: Dict[str, str] = {}
        for term in self._existing_terms(vocabulary):
            lookup.setdefault(term.name.lower(), str(term.id))
        self.cache[vocabulary] = lookup
        return lookup

    def ensure_term(self, vocabulary: str, name: str) -> Optional[str]:
        """Id of the term called ``name`` (any casing), creating it when absent."""
        label = (name or "").strip()
        key = label.lower()
        if not key:
            return None
        lookup = self.cache[vocabulary] if vocabulary in self.cache else self.preload(vocabulary)
        if key in lookup:
            return lookup[key]
        term_id = self._create(vocabulary, label)
        if term_id is not None:
            lookup[key] = term_id
        return term_id

    def infer_vocabulary(self, field_name: str) -> Optional[VocabularyMatch]:
        match = infer_vocabulary(field_name, self._taxonomies)
        if match is None:
            logger.debug(f"No vocabulary inferred for field '{field_name}'")
        else:
            self.rules.append(RuleTrace(subject=field_name, rule=match.rule.value, value=match.vocabulary))
        return match

    def seed_terms(self, vocabulary: str) -> List[str]:
        for taxonomy in self._taxonomies:
            if taxonomy.vocabulary == vocabulary:
                return list(taxonomy.terms)
        return []

    # ------------------------------------------------------------------
    def _existing_terms(self, vocabulary: str) -> List[Term]:
        try:
            return list(self._store.terms_by_vocabulary(vocabulary))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Loading terms of '{vocabulary}' failed: {exc}")
            return []

    def _create(self, vocabulary: str, name: str) -> Optional[str]:
        try:
            term_id = str(self._store.create_term(vocabulary, name))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Creating term '{name}' in '{vocabulary}' failed: {exc}")
            return None
        self.created.append(Term(id=term_id, vocabulary=vocabulary, name=name))
        TERMS_CREATED.inc()
        logger.info(f"Created term '{name}' ({term_id}) in '{vocabulary}'")
        return term_id
