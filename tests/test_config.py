from __future__ import annotations

from pathlib import Path

import pytest

from src.user_cf.config import UserCFConfig, load_config


def test_defaults_when_section_missing() -> None:
    cfg = UserCFConfig.from_mapping({"dataset": {}})
    assert cfg == UserCFConfig()
    assert cfg.neutral_rating == 3.0
    assert cfg.min_co_rated == 2
    assert cfg.rmse_mode == "leave_one_out"


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "user_cf:\n"
        "  neutral_rating: 2.5\n"
        "  min_co_rated: 1\n"
        "  workers: 2\n"
        "  rmse_mode: in_sample\n"
        "  rating_scale: [0.5, 5.0]\n"
    )
    cfg = load_config(path)
    assert cfg.neutral_rating == 2.5
    assert cfg.min_co_rated == 1
    assert cfg.workers == 2
    assert cfg.rmse_mode == "in_sample"
    assert cfg.rating_scale == (0.5, 5.0)


@pytest.mark.parametrize(
    "section",
    [
        {"min_co_rated": 0},
        {"workers": 0},
        {"rmse_mode": "holdout"},
        {"rating_scale": [5, 1]},
        {"rating_scale": 3},
    ],
)
def test_invalid_values_are_rejected(section: dict) -> None:
    with pytest.raises(ValueError):
        UserCFConfig.from_mapping({"user_cf": section})


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(path)
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_repo_config_parses() -> None:
    repo_cfg = Path(__file__).resolve().parents[1] / "config.yaml"
    cfg = load_config(repo_cfg)
    assert isinstance(cfg, UserCFConfig)
