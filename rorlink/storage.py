import json
from pathlib import Path
from typing import Any, Dict, List

from .matching.report import MatchReport

RESULT_FILES = {
    "name": "results-name.json",
    "hostname": "results-hostname.json",
    "crosswalk": "results-crosswalk.json",
    "combined": "results-scores.json",
}
SUMMARY_FILE = "summary.json"


def load_json(path: Path) -> Any:
    """Read a JSON file; a missing or empty file yields an empty dict."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()
    if not content:
        return {}
    return json.loads(content)


def save_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
        f.write("\n")


def write_results(report: MatchReport, out_dir: Path) -> List[Path]:
    """Write every score matrix and the tallies to out_dir; returns written paths."""
    written = []
    for matrix_name, filename in RESULT_FILES.items():
        matrix = report.matrices.get(matrix_name)
        if matrix is None:
            continue
        path = out_dir / filename
        save_json(path, matrix.to_dict())
        written.append(path)

    summary_path = out_dir / SUMMARY_FILE
    save_json(summary_path, {
        "idps": len(report.entity_ids),
        "tallies": report.tally_dicts(),
        "unique": report.unique_matches("scores") if "scores" in report.classifications else {},
    })
    written.append(summary_path)
    return written


def load_results(out_dir: Path) -> Dict[str, Dict[str, Dict[str, int]]]:
    """Read matrices written by write_results, keyed by matrix name."""
    return {
        matrix_name: load_json(out_dir / filename)
        for matrix_name, filename in RESULT_FILES.items()
        if (out_dir / filename).exists()
    }
