"""
Tests for storage.py - JSON result files.
"""

import json

from conftest import make_idp, make_org
from rorlink.matching.records import CrosswalkPair
from rorlink.matching.resolver import resolve
from rorlink.storage import RESULT_FILES, SUMMARY_FILE, load_json, load_results, save_json, write_results


def _report():
    idps = [
        make_idp("B", org_name="Example University", org_url="https://www.example.org"),
        make_idp("A", org_name="Example University"),
        make_idp("C"),
    ]
    orgs = [
        make_org("Y", name="Example University"),
        make_org("X", links=["https://www.example.org"]),
    ]
    return resolve(idps, orgs, [CrosswalkPair("X", "A")])


class TestJsonHelpers:
    """Test load_json / save_json."""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_json(tmp_path / "nope.json") == {}

    def test_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("  \n")
        assert load_json(path) == {}

    def test_save_creates_parents(self, tmp_path):
        path = tmp_path / "a" / "b" / "out.json"
        save_json(path, {"b": 1, "a": 2})
        assert load_json(path) == {"a": 2, "b": 1}
        assert path.read_text().endswith("\n")

    def test_non_ascii_kept(self, tmp_path):
        path = tmp_path / "out.json"
        save_json(path, {"name": "Universität"})
        assert "Universität" in path.read_text(encoding="utf-8")


class TestWriteResults:
    """Test result files of a matching run."""

    def test_writes_all_files(self, tmp_path):
        written = write_results(_report(), tmp_path)
        names = sorted(p.name for p in written)
        assert names == sorted(list(RESULT_FILES.values()) + [SUMMARY_FILE])
        assert all(p.exists() for p in written)

    def test_scores_file_holds_combined_weights(self, tmp_path):
        write_results(_report(), tmp_path)
        scores = load_json(tmp_path / "results-scores.json")
        assert scores == {
            "A": {"X": 10, "Y": 2},
            "B": {"X": 1, "Y": 2},
        }

    def test_keys_sorted(self, tmp_path):
        write_results(_report(), tmp_path)
        text = (tmp_path / "results-name.json").read_text()
        assert list(json.loads(text)) == ["A", "B"]
        assert text.index('"A"') < text.index('"B"')

    def test_summary(self, tmp_path):
        write_results(_report(), tmp_path)
        summary = load_json(tmp_path / SUMMARY_FILE)
        assert summary["idps"] == 3
        assert summary["tallies"]["name"] == {"unique": 0, "nomatch": 1, "ambiguous": 2}
        assert summary["unique"] == {"A": "X"}

    def test_load_results_round_trip(self, tmp_path):
        report = _report()
        write_results(report, tmp_path)
        assert load_results(tmp_path) == report.matrix_dicts()

    def test_load_results_missing_dir(self, tmp_path):
        assert load_results(tmp_path / "none") == {}
