from __future__ import annotations

from pathlib import Path

import pytest

from src.user_cf.cli import main


def test_recommend_reports_fewer_than_requested(wide_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--ratings", str(wide_csv), "recommend", "--user-id", "2", "--n", "5"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Top 2 recommendations for user 2" in out
    assert "Note: Only 2 recommendations are available." in out


def test_predict_and_rmse(wide_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--ratings", str(wide_csv), "predict", "--user-id", "1", "--item-id", "101"]) == 0
    assert "5.0000" in capsys.readouterr().out

    assert main(["--ratings", str(wide_csv), "rmse", "--mode", "in_sample"]) == 0
    assert "RMSE (in_sample)" in capsys.readouterr().out


def test_show_matrix_and_check(wide_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--ratings", str(wide_csv), "show-matrix"]) == 0
    out = capsys.readouterr().out
    assert "Ratings Matrix:" in out
    assert "101" in out

    assert main(["--ratings", str(wide_csv), "check"]) == 0
    assert "matrix.density" in capsys.readouterr().out


def test_unknown_user_exits_with_error(wide_csv: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--ratings", str(wide_csv), "similar-users", "--user-id", "42"])
    assert code == 2
    assert "Unknown user id: 42" in capsys.readouterr().err


def test_missing_ratings_file_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--ratings", str(tmp_path / "nope.csv"), "show-matrix"])
    assert code == 2
    assert "Error:" in capsys.readouterr().err
