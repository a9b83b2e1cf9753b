"""
Fixed-window passage splitter.

Splits extracted document text into overlapping, index-ordered passages.
Each window starts `size - overlap` characters after the previous one, so
consecutive passages share exactly `overlap` characters and the last one may
be shorter than the window.

Dependencies: None
System role: First stage of the indexing pipeline
"""

DEFAULT_PASSAGE_SIZE = 1000
DEFAULT_PASSAGE_OVERLAP = 200


def split_into_passages(
    text: str,
    size: int = DEFAULT_PASSAGE_SIZE,
    overlap: int = DEFAULT_PASSAGE_OVERLAP,
) -> list[str]:
    """
    Split text into overlapping passages.

    Args:
        text: Source text
        size: Passage window in characters
        overlap: Characters shared by consecutive passages

    Returns:
        list[str]: Passages in document order; empty for empty text

    Raises:
        ValueError: If size is not positive or overlap is outside [0, size)
    """
    if size <= 0:
        raise ValueError("size must be positive")
    if overlap < 0 or overlap >= size:
        raise ValueError("overlap must be in [0, size)")

    step = size - overlap
    passages = []
    start = 0
    while start < len(text):
        passages.append(text[start:start + size])
        start += step
    return passages


def passage_start(index: int, size: int = DEFAULT_PASSAGE_SIZE, overlap: int = DEFAULT_PASSAGE_OVERLAP) -> int:
    """Character offset in the source text where passage `index` begins."""
    return index * (size - overlap)
