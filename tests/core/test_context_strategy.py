"""
Test suite for adaptive context sizing.

System role: Verification of corpus-size driven context policy
"""

import pytest

from classroom_rag.core.context_strategy import (
    DEFAULT_STRATEGY,
    LARGE_CORPUS,
    MEDIUM_CORPUS,
    SMALL_CORPUS,
    ContextStrategy,
    select_strategy,
)
from classroom_rag.models.retrieval import RetrievedPassage


class TestSelectStrategy:
    """Test suite for select_strategy()."""

    @pytest.mark.parametrize(
        "document_count,max_items,chars_per_item",
        [
            (0, 8, 2000),
            (3, 8, 2000),
            (4, 5, 1500),
            (15, 5, 1500),
            (16, 3, 1200),
            (5000, 3, 1200),
        ],
    )
    def test_thresholds_should_select_expected_limits(
        self, document_count: int, max_items: int, chars_per_item: int
    ) -> None:
        # Act
        strategy = select_strategy(document_count)

        # Assert
        assert strategy.max_items == max_items
        assert strategy.chars_per_item == chars_per_item

    def test_more_documents_should_never_increase_context(self) -> None:
        # Act
        strategies = [select_strategy(count) for count in range(0, 40)]

        # Assert
        for smaller, larger in zip(strategies, strategies[1:]):
            assert larger.max_items <= smaller.max_items
            assert larger.chars_per_item <= smaller.chars_per_item

    def test_default_strategy_should_be_medium(self) -> None:
        assert DEFAULT_STRATEGY == MEDIUM_CORPUS
        assert SMALL_CORPUS.max_items > MEDIUM_CORPUS.max_items > LARGE_CORPUS.max_items


class TestContextStrategyApply:
    """Test suite for ContextStrategy.apply()."""

    def test_apply_should_truncate_list_and_content(self) -> None:
        # Arrange
        strategy = ContextStrategy(max_items=2, chars_per_item=5)
        passages = [
            RetrievedPassage(source_label=f"doc{i}.pdf", content="0123456789", distance=i / 10)
            for i in range(4)
        ]

        # Act
        applied = strategy.apply(passages)

        # Assert
        assert [p.source_label for p in applied] == ["doc0.pdf", "doc1.pdf"]
        assert all(p.content == "01234" for p in applied)
        assert passages[0].content == "0123456789"

    def test_apply_should_keep_short_results_unchanged(self) -> None:
        strategy = ContextStrategy(max_items=8, chars_per_item=2000)
        passages = [RetrievedPassage(source_label="a.pdf", content="short")]

        assert strategy.apply(passages) == passages
