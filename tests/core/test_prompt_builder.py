"""
Test suite for answer prompt assembly.

System role: Verification of preamble and excerpt formatting
"""

from datetime import datetime, timezone

from langchain_core.messages import HumanMessage, SystemMessage

from classroom_rag.core.prompt_builder import NO_CONTEXT, build_answer_messages, format_excerpts
from classroom_rag.models.retrieval import RetrievedPassage


class TestFormatExcerpts:
    """Test suite for format_excerpts()."""

    def test_should_number_passages_with_source_labels(self) -> None:
        # Arrange
        passages = [
            RetrievedPassage(source_label="lecture1.pdf", content="Alpha"),
            RetrievedPassage(source_label="lecture2.pdf", content="Beta"),
        ]

        # Act
        text = format_excerpts(passages)

        # Assert
        assert text == "Document 1 (lecture1.pdf):\nAlpha\n\nDocument 2 (lecture2.pdf):\nBeta"

    def test_empty_context_should_use_placeholder(self) -> None:
        assert format_excerpts([]) == NO_CONTEXT


class TestBuildAnswerMessages:
    """Test suite for build_answer_messages()."""

    def test_should_build_system_and_human_messages(self) -> None:
        # Arrange
        now = datetime(2026, 3, 2, 14, 30, tzinfo=timezone.utc)
        passages = [RetrievedPassage(source_label="notes.pdf", content="Pumping lemma {proof}")]

        # Act
        messages = build_answer_messages(
            "Explain the pumping lemma",
            passages,
            group_name="CS 131 - Compilers",
            assistant_name="Ada",
            now=now,
        )

        # Assert
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert "Ada" in messages[0].content
        assert "CS 131 - Compilers" in messages[0].content
        assert "Monday, March 02, 2026 14:30" in messages[0].content
        assert "Document 1 (notes.pdf):\nPumping lemma {proof}" in messages[0].content
        assert messages[1].content == "Explain the pumping lemma"
