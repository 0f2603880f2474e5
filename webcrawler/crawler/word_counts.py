"""
Ranking of aggregated word counts.
"""

import heapq
from typing import Dict, Mapping


def sort_word_counts(word_counts: Mapping[str, int], popular_word_count: int) -> Dict[str, int]:
    """
    Select the most frequent words.

    Args:
        word_counts: Word to occurrence count
        popular_word_count: Maximum number of entries to keep

    Returns:
        Dict of at most ``popular_word_count`` entries, in order of count
        descending, ties broken by word ascending
    """
    if popular_word_count < 0:
        raise ValueError(f"popular_word_count must be non-negative, got {popular_word_count}")

    top = heapq.nsmallest(
        popular_word_count,
        word_counts.items(),
        key=lambda item: (-item[1], item[0])
    )
    return dict(top)
