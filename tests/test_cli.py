import importlib.util
import json
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "preprocessing" / "project_embeddings.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("project_embeddings", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _write_dataset(path: Path, rows) -> Path:
    path.write_text(
        "\n".join(
            json.dumps({"embedding": row, "title": f"doc {i}", "text": "body"})
            for i, row in enumerate(rows)
        )
        + "\n",
        encoding="utf-8",
    )
    return path


def _run(monkeypatch: pytest.MonkeyPatch, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["project_embeddings.py", "--no-wandb", *argv])
    return _load_script().main()


def test_inline_projection_prints_json(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    data = _write_dataset(tmp_path / "data.jsonl", [[0.0, 1.0], [1.0, 0.0], [2.0, 2.0]])

    code = _run(monkeypatch, "--input", str(data), "--algorithm", "pca", "--inline", "--compact")

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["algorithm"] == "PCA"
    assert [point["index"] for point in payload["points"]] == [0, 1, 2]


def test_out_of_range_input_exits_with_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    data = tmp_path / "data.jsonl"
    data.write_text(
        '{"embedding": [1' + "0" * 400 + '], "title": "t", "text": "x"}\n', encoding="utf-8"
    )

    code = _run(monkeypatch, "--input", str(data), "--inline")

    assert code == 2
    assert capsys.readouterr().out == ""


def test_worker_timeout_exits_with_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    data = _write_dataset(tmp_path / "data.jsonl", [[float(i), float(i % 3)] for i in range(40)])

    code = _run(monkeypatch, "--input", str(data), "--algorithm", "tsne", "--timeout", "0")

    assert code == 1
    assert capsys.readouterr().out == ""
