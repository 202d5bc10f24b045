"""
Tests for missing-number analysis.
"""

import pytest

from nfe_reconciler.gaps import analyze_gaps, compress_ranges


class TestAnalyzeGaps:

    def test_single_gap(self):
        report = analyze_gaps({10, 11, 13})
        assert report.min_number == 10
        assert report.max_number == 13
        assert report.range_size == 4
        assert report.found_count == 3
        assert report.missing == [12]

    def test_empty(self):
        report = analyze_gaps(set())
        assert report.missing == []
        assert report.min_number == 0
        assert report.max_number == 0
        assert report.range_size == 0
        assert report.found_count == 0

    def test_single_number(self):
        report = analyze_gaps([5])
        assert report.missing == []
        assert report.range_size == 1

    def test_duplicates_collapsed(self):
        report = analyze_gaps([1, 1, 3, 3])
        assert report.found_count == 2
        assert report.missing == [2]

    def test_unordered_input(self):
        assert analyze_gaps([9, 2, 5]).missing == [3, 4, 6, 7, 8]

    @pytest.mark.parametrize("numbers", [
        {1, 2, 3},
        {1, 100},
        {50, 52, 54, 60},
        {1000, 1003, 1004, 1010},
    ])
    def test_range_invariants(self, numbers):
        report = analyze_gaps(numbers)
        assert report.range_size == max(numbers) - min(numbers) + 1
        assert report.range_size == report.found_count + len(report.missing)
        for n in report.missing:
            assert min(numbers) < n < max(numbers)
            assert n not in numbers
        assert report.missing == sorted(report.missing)

    def test_idempotent(self):
        numbers = {3, 8, 9, 15}
        assert analyze_gaps(numbers).missing == analyze_gaps(numbers).missing


class TestCompressRanges:

    def test_runs(self):
        assert compress_ranges([3, 4, 5, 9, 11, 12]) == ["3-5", "9", "11-12"]

    def test_single(self):
        assert compress_ranges([7]) == ["7"]

    def test_empty(self):
        assert compress_ranges([]) == []
