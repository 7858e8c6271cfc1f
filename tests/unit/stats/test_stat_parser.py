"""Tests for the positional statistics document parser."""

import math

import pytest

from basinstats.core.exceptions import MissingResultFileError, UnexpectedFormatError
from basinstats.stats.parser import StatRecordParser
from basinstats.stats.records import StatRecord, StatRecordTable, TABLE_COLUMNS


@pytest.fixture
def parser():
    return StatRecordParser()


class TestParseWellFormed:

    def test_known_literal_values(self, parser, sample_univar_text):
        record = parser.parse_text(sample_univar_text, "g1")
        assert record == StatRecord(
            uid="g1", n=100.0, null_cells=5.0, cells=95.0, min=1.0, max=9.0, range=8.0,
            mean=4.5, mae=1.2, stddev=2.1, var=4.41, sum=427.5,
        )

    def test_reads_from_file(self, parser, sample_univar_text, tmp_path):
        path = tmp_path / "basin_stats_g1.txt"
        path.write_text(sample_univar_text, encoding="utf-8")
        assert parser.parse(path, "g1").sum == 427.5

    def test_leading_zone_line_is_skipped(self, parser, sample_univar_text):
        record = parser.parse_text("zone=1;\n" + sample_univar_text, "g1")
        assert record.n == 100.0
        assert record.sum == 427.5

    def test_skipped_line_content_is_ignored(self, parser, sample_univar_text):
        text = sample_univar_text.replace("skip=0", "coeff_var=not-a-number")
        assert parser.parse_text(text, "g1").var == 4.41

    def test_skipped_line_needs_no_separator(self, parser, sample_univar_text):
        text = sample_univar_text.replace("skip=0", "coefficient of variation unavailable")
        record = parser.parse_text(text, "g1")
        assert record.var == 4.41
        assert record.sum == 427.5

    def test_nan_and_empty_values(self, parser, sample_univar_text):
        text = sample_univar_text.replace("min=1.0", "min=nan").replace("max=9.0", "max=-nan")
        text = text.replace("mean=4.5", "mean=")
        record = parser.parse_text(text, "g1")
        assert math.isnan(record.min)
        assert math.isnan(record.max)
        assert math.isnan(record.mean)

    def test_keys_are_case_insensitive_and_padded(self, parser, sample_univar_text):
        text = sample_univar_text.replace("n=100", " N = 100 ")
        assert parser.parse_text(text, "g1").n == 100.0


class TestParseMalformed:

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(MissingResultFileError, match="g9"):
            parser.parse(tmp_path / "basin_stats_g9.txt", "g9")

    @pytest.mark.parametrize("keep", [0, 4, 11])
    def test_truncated_document(self, parser, sample_univar_text, keep):
        text = "\n".join(sample_univar_text.splitlines()[:keep])
        with pytest.raises(UnexpectedFormatError, match="expected at least"):
            parser.parse_text(text, "g1")

    def test_non_numeric_value(self, parser, sample_univar_text):
        with pytest.raises(UnexpectedFormatError, match="not numeric"):
            parser.parse_text(sample_univar_text.replace("stddev=2.1", "stddev=abc"), "g1")

    def test_key_out_of_position(self, parser, sample_univar_text):
        lines = sample_univar_text.splitlines()
        lines[3], lines[4] = lines[4], lines[3]
        with pytest.raises(UnexpectedFormatError, match="expected 'min'"):
            parser.parse_text("\n".join(lines), "g1")

    def test_line_without_separator(self, parser, sample_univar_text):
        with pytest.raises(UnexpectedFormatError, match="key=value"):
            parser.parse_text(sample_univar_text.replace("cells=95", "cells 95"), "g1")


class TestStatRecordTable:

    def test_to_dataframe_columns_and_order(self, parser, sample_univar_text):
        table = StatRecordTable([
            parser.parse_text(sample_univar_text, "b"),
            parser.parse_text(sample_univar_text, "a"),
        ])
        df = table.to_dataframe()
        assert list(df.columns) == TABLE_COLUMNS
        assert list(df["UID"]) == ["b", "a"]
        assert df.iloc[0]["MAE"] == 1.2

    def test_get_compares_uids_as_strings(self, parser, sample_univar_text):
        table = StatRecordTable([parser.parse_text(sample_univar_text, 7)])
        assert table.get("7").uid == 7
        assert table.get("8") is None
