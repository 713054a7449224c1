"""
M0 Acceptance Test: Verify basic repo setup.
"""


def test_repo_structure():
    """Verify basic repository structure exists."""
    from pathlib import Path

    repo_root = Path(__file__).parent.parent

    assert (repo_root / "pyproject.toml").exists()
    assert (repo_root / "run.py").exists()

    # Check source structure
    assert (repo_root / "src" / "shared").is_dir()
    assert (repo_root / "src" / "workspace" / "storage").is_dir()
    assert (repo_root / "src" / "workspace" / "sync").is_dir()
    assert (repo_root / "src" / "sync_server").is_dir()
    assert (repo_root / "src" / "web" / "routers").is_dir()

    assert (repo_root / "tests").is_dir()


def test_config_from_env(monkeypatch, tmp_path):
    from src.shared.config import DEFAULT_QUOTA_BYTES, WorkspaceConfig

    monkeypatch.setenv("TEAMSYNC_DATA_ROOT", str(tmp_path))
    monkeypatch.setenv("TEAMSYNC_QUOTA_BYTES", "not-a-number")
    monkeypatch.setenv("TEAMSYNC_REMOTE_URL", "")
    monkeypatch.setenv("TEAMSYNC_SYNC_INTERVAL", "2.5")

    config = WorkspaceConfig.from_env()

    assert config.data_root == tmp_path
    assert config.db_path == tmp_path / "workspace.sqlite"
    assert config.quota_bytes == DEFAULT_QUOTA_BYTES
    assert config.sync_interval_s == 2.5
    assert config.sync_enabled is False


def test_configure_logging_respects_env_level(monkeypatch):
    import logging

    from src.shared.logging_config import configure_logging

    monkeypatch.setenv("TEAMSYNC_LOG_LEVEL", "debug")
    configure_logging()
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(logging.INFO)
    assert logging.getLogger().level == logging.INFO
