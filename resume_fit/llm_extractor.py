"""
LLM Extraction Module

Uses PhiData + GPT-4 to extract elements from job descriptions and resumes.
Implements the Extractor contract; output is validated by the core.
"""

import json
import re
import logging
from typing import Any, Dict, List, Optional

from phi.agent import Agent
from phi.model.openai import OpenAIChat

from .config import FIXED_TEMPERATURE_MODELS, JSON_MODE_MODELS, LLM_CONFIG, SKILL_NORMALIZATIONS
from .errors import CollaboratorError
from .importance import score_importance
from .models import Element, ElementCategory, Position, TaggedElement, normalize_key

logger = logging.getLogger(__name__)


def model_options(model_name: Optional[str] = None) -> Dict[str, Any]:
    """OpenAIChat keyword arguments for ``model_name`` (LLM_CONFIG["model"] when omitted)."""
    model_id = model_name or LLM_CONFIG["model"]
    family = model_id.lower()
    options: Dict[str, Any] = {"id": model_id}
    if not family.startswith(FIXED_TEMPERATURE_MODELS):
        options["temperature"] = LLM_CONFIG["temperature"]
    if family.startswith(JSON_MODE_MODELS):
        options["response_format"] = {"type": "json_object"}
    return options


def extract_json_from_response(text: str) -> Optional[Dict[str, Any]]:
    """Extract JSON from LLM response, handling markdown and other formatting."""
    if not text:
        return None

    # Remove markdown code fences
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        text = match.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost {...} block
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return None
    return None


def response_text(response: Any) -> str:
    """Text content of a phidata agent response."""
    if hasattr(response, "content"):
        return str(response.content)
    if hasattr(response, "messages") and response.messages:
        last_msg = response.messages[-1]
        return str(last_msg.content if hasattr(last_msg, "content") else last_msg)
    return str(response)


def build_extraction_agent(model_name: str = None) -> Agent:
    """Build PhiData agent for element extraction."""
    return Agent(
        name="Element Extractor",
        role="Extract matchable elements from job descriptions and resumes",
        model=OpenAIChat(**model_options(model_name)),
        instructions=[
            "Extract information in JSON format with no additional text or markdown.",
            "Return ONLY valid JSON with one key: 'elements'.",
            "",
            "Each element is an object with:",
            "- text: the phrase exactly as written",
            "- normalized_text: lowercase canonical form (React.js -> react)",
            "- category: one of keyword, skill, attribute, experience, concept",
            "- tags: array of short semantic tags (programming, leadership, ...)",
            "- context: the sentence the element appears in",
            "- start, end: character offsets of the phrase in the text",
            "- importance: number 0-1, only when the text states it explicitly",
            "",
            "CRITICAL: Return ONLY the JSON object, no explanations.",
        ],
        show_tool_calls=False,
        markdown=False,
    )


def _locate(text: str, phrase: str, start: Any, end: Any) -> Position:
    try:
        start, end = int(start), int(end)
        if 0 <= start <= end <= len(text):
            return Position(start=start, end=end)
    except (TypeError, ValueError):
        pass
    # LLM offsets are unreliable; fall back to the first occurrence
    found = text.lower().find(phrase.lower()) if phrase else -1
    if found == -1:
        return Position()
    return Position(start=found, end=found + len(phrase))


def parse_elements(payload: Dict[str, Any], text: str) -> List[Element]:
    """
    Convert the extractor's JSON payload into TaggedElements.

    Items without text are skipped, unknown categories fall back to keyword,
    missing importance is scored from the context cues.
    """
    elements: List[Element] = []
    for item in payload.get("elements") or []:
        if not isinstance(item, dict):
            continue
        phrase = str(item.get("text") or "").strip()
        if not phrase:
            continue

        try:
            category = ElementCategory(str(item.get("category", "keyword")).lower())
        except ValueError:
            category = ElementCategory.KEYWORD
        if category == ElementCategory.SKILL:
            phrase = SKILL_NORMALIZATIONS.get(normalize_key(phrase), phrase)

        base = Element(
            text=phrase,
            normalized_text=str(item.get("normalized_text") or phrase).strip().lower(),
            tags=[str(t) for t in item.get("tags") or []],
            context=str(item.get("context") or phrase).strip(),
            position=_locate(text, str(item.get("text") or ""), item.get("start"), item.get("end")),
        )
        importance = item.get("importance")
        if importance is None:
            importance = score_importance(base)

        elements.append(
            TaggedElement(
                **base.model_dump(),
                importance=importance,
                category=category,
                semantic_tags=[str(t) for t in item.get("tags") or []],
            )
        )
    return elements


class LLMExtractor:
    """Extractor collaborator backed by a PhiData agent."""

    def __init__(self, model_name: str = None, max_retries: int = None, agent: Optional[Agent] = None):
        self.model_name = model_name or LLM_CONFIG["model"]
        self.max_retries = max_retries or LLM_CONFIG["max_retries"]
        self._agent = agent

    @property
    def agent(self) -> Agent:
        if self._agent is None:
            self._agent = build_extraction_agent(self.model_name)
        return self._agent

    def extract(self, text: str, document_kind: str) -> List[Element]:
        """
        Extract elements from a job description or resume.

        Args:
            text: Full document text
            document_kind: "job" or "resume"

        Returns:
            List of TaggedElements (may be empty for degenerate input)

        Raises:
            CollaboratorError: If extraction fails after all retries
        """
        if not text or not text.strip():
            logger.warning(f"Empty {document_kind} text, nothing to extract")
            return []

        prompt = f"""Extract every skill, keyword, attribute, experience requirement and concept
from the following {"job description" if document_kind == "job" else "resume"}.

Return ONLY a valid JSON object: {{"elements": [...]}}

Text:
{text}
"""

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Extraction attempt {attempt + 1}/{self.max_retries} ({document_kind})")
                raw = response_text(self.agent.run(prompt))
                logger.debug(f"Raw LLM response: {raw[:500]}...")

                payload = extract_json_from_response(raw)
                if not payload or not isinstance(payload, dict):
                    raise ValueError("Could not extract valid JSON from LLM response")
                if "elements" not in payload:
                    raise ValueError("Missing 'elements' key in extracted data")

                elements = parse_elements(payload, text)
                logger.info(f"Extracted {len(elements)} elements from {document_kind}")
                return elements

            except Exception as e:
                logger.warning(f"Extraction attempt {attempt + 1} failed: {e}")
                if attempt == self.max_retries - 1:
                    raise CollaboratorError(
                        "extractor", f"failed after {self.max_retries} attempts: {e}"
                    ) from e

        raise CollaboratorError("extractor", "extraction failed")
