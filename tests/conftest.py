"""
Shared pytest fixtures for the rationale test suite.

Every test gets an isolated user config directory and a clean
environment, so nothing from the developer's ~/.rationale leaks in.

Usage in tests:
    def test_something(rationale_factory):
        rationale_factory.add_entry(["a.py"], "Why a.py exists")
        ...

    def test_with_data(rationale_env):
        # pre-populated: 3 entries across src/parse.py and src/io.py
        ...

    def test_cli(rationale_env, run_cli):
        code, out, err = run_cli("explain", "src/parse.py", cwd=rationale_env.root)
"""

import subprocess

import pytest

from rationale.cli import main
from rationale.config import ConfigManager
from tests.factories import RationaleTestFactory


def git_is_available() -> bool:
    """Check if git is installed and working."""
    try:
        result = subprocess.run(
            ["git", "--version"],
            capture_output=True,
            text=True,
            timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Point the user config at a throwaway directory and clear env overrides."""
    user_dir = tmp_path_factory.mktemp("home") / ".rationale"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", user_dir / "config.yaml")
    for name in ("RATIONALE_AGENT", "RATIONALE_LOCK_TIMEOUT",
                 "RATIONALE_SYMBOLS", "RATIONALE_PROJECT_PATH"):
        monkeypatch.delenv(name, raising=False)
    return user_dir


@pytest.fixture
def rationale_factory(tmp_path):
    """Empty initialized store at tmp_path."""
    return RationaleTestFactory(tmp_path)


@pytest.fixture
def rationale_env(tmp_path):
    """
    Store with sample data.

    Pre-populated with create_sample_store(): three entries, two files
    (src/parse.py, src/io.py), agents claude and alice.
    """
    factory = RationaleTestFactory(tmp_path)
    factory.entries = factory.create_sample_store()
    return factory


@pytest.fixture
def run_cli(capsys):
    """
    Run the CLI in-process.

    Returns a function (*args, cwd) -> (exit_code, stdout, stderr).
    """
    def _run(*args, cwd):
        code = main(["--project", str(cwd), *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err
    return _run


@pytest.fixture
def temp_git_repo(tmp_path):
    """A git repository with one commit, or skip when git is unavailable."""
    if not git_is_available():
        pytest.skip("Git is not available")

    repo = tmp_path / "work"
    repo.mkdir()
    try:
        subprocess.run(["git", "init"], cwd=repo, capture_output=True, check=True)
        subprocess.run(["git", "config", "user.email", "test@test.com"], cwd=repo, capture_output=True)
        subprocess.run(["git", "config", "user.name", "Test User"], cwd=repo, capture_output=True)
        subprocess.run(["git", "config", "commit.gpgsign", "false"], cwd=repo, capture_output=True)
        (repo / "README.md").write_text("# Test\n")
        subprocess.run(["git", "add", "."], cwd=repo, capture_output=True, check=True)
        subprocess.run(["git", "commit", "-m", "Initial commit"], cwd=repo, capture_output=True, check=True)
    except subprocess.CalledProcessError:
        pytest.skip("Could not create git repository")
    return repo
