"""
Tests for popular word ranking.
"""

import pytest
from hypothesis import given, strategies as st

from webcrawler.crawler.word_counts import sort_word_counts


class TestSortWordCounts:

    def test_orders_by_count_then_word(self):
        counts = {"fox": 2, "the": 9, "dog": 2, "a": 1}
        ranked = sort_word_counts(counts, 3)

        assert list(ranked.items()) == [("the", 9), ("dog", 2), ("fox", 2)]

    def test_limit_larger_than_input(self):
        assert sort_word_counts({"b": 1, "a": 1}, 10) == {"a": 1, "b": 1}
        assert list(sort_word_counts({"b": 1, "a": 1}, 10)) == ["a", "b"]

    def test_zero_limit(self):
        assert sort_word_counts({"the": 3}, 0) == {}

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            sort_word_counts({"the": 3}, -1)

    def test_input_not_modified(self):
        counts = {"the": 3, "fox": 1}
        sort_word_counts(counts, 1)
        assert counts == {"the": 3, "fox": 1}

    @given(
        counts=st.dictionaries(
            st.text(alphabet="abcdef", min_size=1, max_size=4),
            st.integers(min_value=1, max_value=100)
        ),
        limit=st.integers(min_value=0, max_value=30)
    )
    def test_ranking_property(self, counts, limit):
        """
        **Feature: web-crawler, Property: Popular word ranking**

        The result holds the ``limit`` highest counts, never ranks a word above
        one with a higher count, and keeps every reported count exact.
        """
        ranked = sort_word_counts(counts, limit)
        items = list(ranked.items())

        assert len(items) == min(limit, len(counts))
        assert all(counts[word] == count for word, count in items)
        assert items == sorted(items, key=lambda item: (-item[1], item[0]))

        if items:
            lowest_kept = items[-1][1]
            omitted = set(counts) - set(ranked)
            assert all(counts[word] <= lowest_kept for word in omitted)
