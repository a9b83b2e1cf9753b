"""
Adaptive context sizing.

Chooses how many retrieved passages go into the prompt, and how long each
may be, from the number of fully indexed documents in the group. Larger
corpora get fewer and shorter passages; the step function must stay
monotonic in that direction.

Dependencies: pydantic
System role: Context window policy between retrieval and prompt assembly
"""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from classroom_rag.models.retrieval import RetrievedPassage

SMALL_CORPUS_MAX_DOCUMENTS = 3
MEDIUM_CORPUS_MAX_DOCUMENTS = 15


class ContextStrategy(BaseModel):
    """How much retrieved context to assemble for one question."""

    model_config = ConfigDict(frozen=True)

    max_items: int = Field(gt=0, description="Maximum passages in the prompt")
    chars_per_item: int = Field(gt=0, description="Maximum characters kept per passage")
    reasoning: str = Field(default="", description="Human-readable label for logs")

    def apply(self, passages: Sequence[RetrievedPassage]) -> list[RetrievedPassage]:
        """
        Truncate a ranked result list to this strategy.

        Args:
            passages: Ranked retrieval results

        Returns:
            list[RetrievedPassage]: At most max_items results, each cut to chars_per_item
        """
        return [
            passage.model_copy(update={"content": passage.content[: self.chars_per_item]})
            for passage in list(passages)[: self.max_items]
        ]


SMALL_CORPUS = ContextStrategy(max_items=8, chars_per_item=2000, reasoning="Small group - comprehensive context")
MEDIUM_CORPUS = ContextStrategy(max_items=5, chars_per_item=1500, reasoning="Medium group - balanced context")
LARGE_CORPUS = ContextStrategy(max_items=3, chars_per_item=1200, reasoning="Large group - selective context")

# Used when corpus statistics cannot be read
DEFAULT_STRATEGY = MEDIUM_CORPUS


def select_strategy(document_count: int) -> ContextStrategy:
    """
    Pick the context strategy for a corpus size.

    Args:
        document_count: Number of fully indexed documents in the group

    Returns:
        ContextStrategy: Sizing for the group's prompts
    """
    if document_count <= SMALL_CORPUS_MAX_DOCUMENTS:
        return SMALL_CORPUS
    if document_count <= MEDIUM_CORPUS_MAX_DOCUMENTS:
        return MEDIUM_CORPUS
    return LARGE_CORPUS
