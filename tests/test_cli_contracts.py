from __future__ import annotations

import contextlib
import io
import json
import shlex
from pathlib import Path

import pytest

from inthash.cli import app


def run_cli(cmd: str) -> tuple[int, str, str]:
    argv = shlex.split(cmd)
    stdout = io.StringIO()
    stderr = io.StringIO()
    try:
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            try:
                code = app.main(argv)
            except SystemExit as exc:  # guard_cli exits with the envelope code
                code = exc.code if isinstance(exc.code, int) else 1
    finally:
        app.OUTPUT_JSON = False
        app.configure_logging()
    return code, stdout.getvalue().strip(), stderr.getvalue().strip()


def parse_error(stderr: str) -> dict:
    if not stderr.strip():
        return {}
    return json.loads(stderr.splitlines()[-1])


@pytest.fixture
def workload(tmp_path: Path) -> Path:
    path = tmp_path / "ops.csv"
    path.write_text(
        "op,key,value\n"
        "insert,15,150\n"
        "insert,25,250\n"
        "insert,35,-1\n"
        "get,25,\n"
        "get,35,\n"
        "get,99,\n",
        encoding="utf-8",
    )
    return path


def test_run_csv_json_summary(workload: Path, tmp_path: Path) -> None:
    out = tmp_path / "summary.json"
    code, stdout, _ = run_cli(
        f"--json --backend chained run-csv --csv {workload} --json-summary-out {out}"
    )
    assert code == 0
    payload = json.loads(stdout)
    assert payload["ok"] is True
    assert payload["command"] == "run-csv"
    assert payload["ops"] == {"insert": 3, "get": 3, "hits": 2, "misses": 1}
    assert payload["stats"]["backend"] == "chained"
    assert payload["stats"]["size"] == 3
    written = json.loads(out.read_text(encoding="utf-8"))
    assert written["ops"]["misses"] == 1


def test_run_csv_probing_grows(tmp_path: Path) -> None:
    path = tmp_path / "grow.csv"
    rows = "".join(f"insert,{k},{k}\n" for k in range(10))
    path.write_text("op,key,value\n" + rows, encoding="utf-8")
    code, stdout, _ = run_cli(f"--json --backend probing --capacity 4 run-csv --csv {path}")
    assert code == 0
    payload = json.loads(stdout)
    assert payload["initial_capacity"] == 4
    assert payload["stats"]["capacity"] == 16
    assert payload["stats"]["growths"] == 2


def test_run_csv_text_output(workload: Path) -> None:
    code, stdout, _ = run_cli(f"run-csv --csv {workload}")
    assert code == 0
    assert "probing: 3 inserts, 3 gets (2 hits, 1 misses)" in stdout


def test_run_csv_dry_run(workload: Path) -> None:
    code, stdout, _ = run_cli(f"--json run-csv --csv {workload} --dry-run")
    assert code == 0
    payload = json.loads(stdout)
    assert payload["status"] == "validated"
    assert payload["rows"] == 6


def test_run_csv_missing_file_returns_io() -> None:
    code, _, err = run_cli("run-csv --csv missing.csv")
    env = parse_error(err)
    assert code == 5
    assert env.get("error") == "IO"


def test_run_csv_bad_header_returns_badinput(tmp_path: Path) -> None:
    bad = tmp_path / "bad.csv"
    bad.write_text("nope,missing\n", encoding="utf-8")
    code, _, err = run_cli(f"run-csv --csv {bad}")
    env = parse_error(err)
    assert code == 2
    assert env.get("error") == "BadInput"
    assert "header" in env.get("detail", "").lower()


@pytest.mark.parametrize(
    ("row", "fragment"),
    [
        ("insert,1,", "missing value"),
        ("insert,x,1", "integer"),
        ("delete,1,", "unknown op"),
        ("get,,", "missing key"),
    ],
)
def test_run_csv_bad_rows_report_line(tmp_path: Path, row: str, fragment: str) -> None:
    bad = tmp_path / "bad_rows.csv"
    bad.write_text(f"op,key,value\n{row}\n", encoding="utf-8")
    code, _, err = run_cli(f"run-csv --csv {bad}")
    env = parse_error(err)
    assert code == 2
    assert env.get("error") == "BadInput"
    assert fragment in env.get("detail", "").lower()
    assert "line 2" in env.get("detail", "").lower()


def test_run_csv_row_limit(tmp_path: Path) -> None:
    limited = tmp_path / "limit.csv"
    limited.write_text("op,key,value\ninsert,1,1\nget,1,\n", encoding="utf-8")
    code, _, err = run_cli(f"run-csv --csv {limited} --csv-max-rows 1")
    assert code == 2
    assert "row limit" in parse_error(err).get("detail", "").lower()


def test_reject_policy_reports_duplicate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    dupes = tmp_path / "dupes.csv"
    dupes.write_text("op,key,value\ninsert,1,1\ninsert,1,2\n", encoding="utf-8")
    monkeypatch.setenv("INTHASH_DUPLICATE_POLICY", "reject")
    code, _, err = run_cli(f"run-csv --csv {dupes}")
    assert code == 4
    assert parse_error(err).get("error") == "DuplicateKey"


def test_bad_capacity_is_bad_input(workload: Path) -> None:
    code, _, err = run_cli(f"--capacity 0 run-csv --csv {workload}")
    assert code == 2
    assert "capacity" in parse_error(err).get("detail", "")


@pytest.mark.parametrize(
    "body",
    ["[tables]\ngrowth_factor = 1\n", "[tables]\nload_factor_threshold = 'high'\n"],
)
def test_bad_config_is_bad_input(tmp_path: Path, workload: Path, body: str) -> None:
    cfg = tmp_path / "bad.toml"
    cfg.write_text(body, encoding="utf-8")
    code, _, err = run_cli(f"--config {cfg} run-csv --csv {workload}")
    assert code == 2
    assert parse_error(err).get("error") == "BadInput"


def test_probe_visualize_text_and_export(tmp_path: Path) -> None:
    export = tmp_path / "trace.json"
    code, stdout, _ = run_cli(
        "probe-visualize --operation get --key 25 --seed 15=150 --seed 25=250 "
        f"--export-json {export}"
    )
    assert code == 0
    assert "Probe visualization [probing] GET key=25" in stdout
    assert "Found: True | Terminal: match" in stdout
    trace = json.loads(export.read_text(encoding="utf-8"))
    assert [step["slot"] for step in trace["path"]] == [5, 6]


def test_probe_visualize_json_chained_insert() -> None:
    code, stdout, _ = run_cli(
        "--json --backend chained probe-visualize --operation insert --key 7 --value 1 --seed 7=0"
    )
    assert code == 0
    payload = json.loads(stdout)
    assert payload["trace"]["terminal"] == "prepend"
    assert payload["seed_entries"] == ["7=0"]


def test_probe_visualize_requires_value_for_insert() -> None:
    code, _, err = run_cli("probe-visualize --operation insert --key 1")
    assert code == 2
    assert "--value" in parse_error(err).get("detail", "")


def test_probe_visualize_rejects_malformed_seed() -> None:
    code, _, err = run_cli("probe-visualize --operation get --key 1 --seed 5")
    assert code == 2
    assert "KEY=VALUE" in parse_error(err).get("detail", "")


def test_stats_json() -> None:
    code, stdout, _ = run_cli("--json stats --seed 15=150 --seed 25=250 --seed 35=350")
    assert code == 0
    stats = json.loads(stdout)["stats"]
    assert stats["size"] == 3
    assert stats["probe_histogram"] == [[0, 1], [1, 1], [2, 1]]
