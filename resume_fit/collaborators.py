"""
Contracts for the external collaborators the core consumes.

The core never calls a language model itself; it is handed an Extractor, a
Matcher and (for multi-round runs) a Reviser.
"""

import logging
from typing import List, Literal, Optional, Protocol, Sequence

from .models import Element, Match, Recommendations, Resume

logger = logging.getLogger(__name__)

DocumentKind = Literal["job", "resume"]


class Extractor(Protocol):
    def extract(self, text: str, document_kind: DocumentKind) -> List[Element]:
        """Elements with positions in ``text`` and a non-empty context."""
        ...


class Matcher(Protocol):
    def match(self, resume_elements: Sequence[Element], job_elements: Sequence[Element]) -> List[Match]:
        """Matches with confidence >= 0.5."""
        ...


class Reviser(Protocol):
    def revise(self, resume: Resume, recommendations: Optional[Recommendations], round: int) -> Resume:
        """Next resume draft addressing ``recommendations``."""
        ...


def validate_elements(elements: Optional[Sequence[Element]], source: str = "extractor") -> List[Element]:
    """
    Boundary check on extractor output.

    Elements with blank normalized text are dropped; a blank context is
    replaced by the element text. None is treated as an empty document.
    """
    if not elements:
        logger.warning(f"{source} returned no elements; treating document as empty")
        return []

    valid: List[Element] = []
    for element in elements:
        if not element.normalized_text.strip():
            logger.warning(f"{source}: dropping element with blank text {element.text!r}")
            continue
        if not element.context.strip():
            element = element.model_copy(update={"context": element.text})
        valid.append(element)

    if len(valid) < len(elements):
        logger.info(f"{source}: kept {len(valid)}/{len(elements)} elements")
    return valid

