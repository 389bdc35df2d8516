"""
LLM Matching Module

Matcher collaborator: exact matches first, then the static synonym table,
then one batched PhiData call for the job elements still unmatched.
"""

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence

from phi.agent import Agent
from phi.model.openai import OpenAIChat

from .config import LLM_CONFIG, MIN_MATCH_CONFIDENCE, SYNONYMS
from .errors import CollaboratorError
from .llm_extractor import extract_json_from_response, model_options, response_text
from .models import Element, Match, MatchType, category_of, normalize_key

logger = logging.getLogger(__name__)

SYNONYM_CONFIDENCE = 0.95


def build_synonym_table(synonyms: Mapping[str, Sequence[str]]) -> Mapping[str, FrozenSet[str]]:
    """Symmetric, read-only synonym lookup built from a term -> synonyms table."""
    table: Dict[str, set] = {}
    for term, alternatives in synonyms.items():
        term = normalize_key(term)
        for alt in alternatives:
            alt = normalize_key(alt)
            table.setdefault(term, set()).add(alt)
            table.setdefault(alt, set()).add(term)
    return MappingProxyType({k: frozenset(v) for k, v in table.items()})


DEFAULT_SYNONYM_TABLE = build_synonym_table(SYNONYMS)


def are_synonyms(term1: str, term2: str, table: Mapping[str, FrozenSet[str]] = DEFAULT_SYNONYM_TABLE) -> bool:
    a, b = normalize_key(term1), normalize_key(term2)
    return b in table.get(a, frozenset()) or a in table.get(b, frozenset())


def build_matching_agent(model_name: str = None) -> Agent:
    """Build PhiData agent for batched semantic matching."""
    return Agent(
        name="Semantic Matcher",
        role="Match job requirements to resume elements by meaning",
        model=OpenAIChat(**model_options(model_name)),
        instructions=[
            "You are an ATS semantic matcher. Return JSON only.",
            "Match each job element to the best resume element if a meaningful match exists.",
            "",
            "Match types:",
            '- "synonym": different words with the same meaning (JavaScript <-> JS)',
            '- "related": same category or close concept (Python <-> programming)',
            '- "semantic": contextually similar concepts',
            "",
            "Confidence: 0.95 strong synonym, 0.7-0.9 related, 0.5-0.7 semantic.",
            "Omit anything below 0.5.",
            "",
            'Response format: {"matches": [{"jobIndex": 0, "resumeIndex": 1, '
            '"matchType": "related", "confidence": 0.8}]}',
        ],
        show_tool_calls=False,
        markdown=False,
    )


def _payload(elements: Sequence[Element], indices: Sequence[int]) -> List[Dict[str, Any]]:
    return [
        {
            "index": i,
            "text": elements[i].text,
            "normalized_text": elements[i].normalized_text,
            "category": category_of(elements[i]).value,
            "context": elements[i].context,
        }
        for i in indices
    ]


def parse_llm_matches(
    payload: Dict[str, Any],
    resume_elements: Sequence[Element],
    job_elements: Sequence[Element],
    allowed_jobs: Optional[set] = None,
) -> List[Match]:
    """
    Convert the matcher's JSON payload into Match records.

    Out-of-range indices, non-numeric or sub-0.5 confidences are dropped;
    unknown match types become "semantic". "exact" is never accepted from
    the model.
    """
    matches: List[Match] = []
    for item in payload.get("matches") or []:
        if not isinstance(item, dict):
            continue
        try:
            job_index = int(item.get("jobIndex"))
            resume_index = int(item.get("resumeIndex"))
            confidence = float(item.get("confidence"))
        except (TypeError, ValueError):
            continue

        if not 0 <= job_index < len(job_elements) or not 0 <= resume_index < len(resume_elements):
            continue
        if allowed_jobs is not None and job_index not in allowed_jobs:
            continue
        if not confidence >= MIN_MATCH_CONFIDENCE:
            continue

        raw_type = str(item.get("matchType", "")).lower()
        match_type = (
            MatchType(raw_type)
            if raw_type in (MatchType.SYNONYM.value, MatchType.RELATED.value, MatchType.SEMANTIC.value)
            else MatchType.SEMANTIC
        )
        matches.append(
            Match(
                resume_element=resume_elements[resume_index],
                job_element=job_elements[job_index],
                match_type=match_type,
                confidence=confidence,
            )
        )
    return matches


class LLMMatcher:
    """Matcher collaborator: exact, synonym table, then a batched LLM call."""

    def __init__(
        self,
        model_name: str = None,
        max_retries: int = None,
        synonyms: Mapping[str, FrozenSet[str]] = DEFAULT_SYNONYM_TABLE,
        agent: Optional[Agent] = None,
        use_llm: bool = True,
    ):
        self.model_name = model_name or LLM_CONFIG["model"]
        self.max_retries = max_retries or LLM_CONFIG["max_retries"]
        self.synonyms = synonyms
        self.use_llm = use_llm
        self._agent = agent

    @property
    def agent(self) -> Agent:
        if self._agent is None:
            self._agent = build_matching_agent(self.model_name)
        return self._agent

    def _synonym_match(self, job_element: Element, resume_elements: Sequence[Element]) -> Optional[Element]:
        for resume_element in resume_elements:
            if are_synonyms(job_element.normalized_text, resume_element.normalized_text, self.synonyms):
                return resume_element
        return None

    def match(self, resume_elements: Sequence[Element], job_elements: Sequence[Element]) -> List[Match]:
        """
        Find matches between resume and job elements.

        Returns:
            Matches with confidence >= 0.5

        Raises:
            CollaboratorError: If the LLM call fails after all retries
        """
        if not resume_elements or not job_elements:
            return []

        resume_by_key: Dict[str, Element] = {}
        for element in resume_elements:
            resume_by_key.setdefault(element.key, element)

        matches: List[Match] = []
        remaining: List[int] = []
        for index, job_element in enumerate(job_elements):
            exact = resume_by_key.get(job_element.key)
            if exact is not None:
                matches.append(Match(
                    resume_element=exact, job_element=job_element,
                    match_type=MatchType.EXACT, confidence=1.0,
                ))
                continue
            synonym = self._synonym_match(job_element, resume_elements)
            if synonym is not None:
                matches.append(Match(
                    resume_element=synonym, job_element=job_element,
                    match_type=MatchType.SYNONYM, confidence=SYNONYM_CONFIDENCE,
                ))
                continue
            remaining.append(index)

        logger.info(
            f"Dictionary matching: {len(matches)}/{len(job_elements)} job elements, "
            f"{len(remaining)} left for semantic matching"
        )
        if not remaining or not self.use_llm:
            return matches

        matches.extend(self._semantic_matches(resume_elements, job_elements, remaining))
        return matches

    def _semantic_matches(
        self,
        resume_elements: Sequence[Element],
        job_elements: Sequence[Element],
        remaining: Sequence[int],
    ) -> List[Match]:
        prompt = f"""Match each job element to the best resume element if a meaningful match exists.
Only include matches with confidence >= {MIN_MATCH_CONFIDENCE}. Use the provided indices.

Resume elements (JSON):
{json.dumps(_payload(resume_elements, range(len(resume_elements))))}

Job elements to match (JSON):
{json.dumps(_payload(job_elements, remaining))}
"""
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Semantic matching attempt {attempt + 1}/{self.max_retries}")
                raw = response_text(self.agent.run(prompt))
                logger.debug(f"Raw LLM response: {raw[:500]}...")

                payload = extract_json_from_response(raw)
                if not payload or not isinstance(payload, dict):
                    raise ValueError("Could not extract valid JSON from LLM response")

                found = parse_llm_matches(payload, resume_elements, job_elements, set(remaining))
                logger.info(f"Semantic matching found {len(found)} matches")
                return found

            except Exception as e:
                logger.warning(f"Semantic matching attempt {attempt + 1} failed: {e}")
                if attempt == self.max_retries - 1:
                    raise CollaboratorError(
                        "matcher", f"failed after {self.max_retries} attempts: {e}"
                    ) from e

        raise CollaboratorError("matcher", "semantic matching failed")
