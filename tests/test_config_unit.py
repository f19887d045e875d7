from pathlib import Path

import pytest

import config


@pytest.fixture
def cfg_path(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "taskcore.yaml"
    monkeypatch.setenv("TASKCORE_CONFIG", str(path))
    return path


def test_defaults_without_file(cfg_path: Path):
    assert config.config_path() == cfg_path
    assert config.get_review_interval_days() == 7
    assert config.get_hide_non_actionable() is False
    assert config.get_show_completed() is False
    assert config.get_log_level() == "WARNING"
    assert config.get_snapshot_path() is None


def test_setters_round_trip(cfg_path: Path):
    config.set_review_interval_days(14)
    config.set_hide_non_actionable(True)
    config.set_show_completed(True)
    config.set_snapshot_path("~/tasks.yaml")
    assert config.get_review_interval_days() == 14
    assert config.get_hide_non_actionable() is True
    assert config.get_show_completed() is True
    assert config.get_snapshot_path() == Path("~/tasks.yaml").expanduser()
    assert "review_interval_days: 14" in cfg_path.read_text(encoding="utf-8")


def test_clearing_every_key_removes_file(cfg_path: Path):
    config.set_review_interval_days(3)
    config.set_review_interval_days(None)
    assert not cfg_path.exists()


def test_invalid_values_fall_back_with_warning(cfg_path: Path, caplog):
    cfg_path.write_text(
        "review_interval_days: soon\nhide_non_actionable: maybe\nlog_level: loud\n",
        encoding="utf-8",
    )
    with caplog.at_level("WARNING", logger="taskcore.config"):
        assert config.get_review_interval_days() == 7
        assert config.get_hide_non_actionable() is False
        assert config.get_log_level() == "WARNING"
    assert len(caplog.records) == 3


def test_unreadable_yaml_is_ignored(cfg_path: Path):
    cfg_path.write_text("review_interval_days: [1,\n", encoding="utf-8")
    assert config.get_review_interval_days() == 7


def test_non_positive_interval_rejected(cfg_path: Path):
    with pytest.raises(ValueError):
        config.set_review_interval_days(0)
