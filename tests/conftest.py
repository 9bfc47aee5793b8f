"""
Shared test fixtures and configuration for pytest.
"""

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Sequence

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dokosa.providers.base import Embedder  # noqa: E402


logger = logging.getLogger(__name__)


# ============================================================================
# Environment detection
# ============================================================================

def is_git_available() -> bool:
    """Check if the git executable can be run."""
    return shutil.which("git") is not None


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "git: Tests that run the git executable")


def pytest_collection_modifyitems(config, items):
    """Automatically skip git tests if git is not installed."""
    if is_git_available():
        return

    skip_git = pytest.mark.skip(reason="git executable not available")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip_git)


# ============================================================================
# Fakes
# ============================================================================

class FakeEmbedder(Embedder):
    """
    Deterministic embedder for tests.

    Each text maps to a 3-dimensional vector derived from its length and
    line count, unless an explicit vector was registered for it.
    """

    def __init__(self, vectors: Dict[str, List[float]] = None):
        self.vectors = dict(vectors or {})
        self.calls: List[List[str]] = []

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        texts = list(texts)
        self.calls.append(texts)
        return [self.vectors.get(t, self.default_vector(t)) for t in texts]

    @staticmethod
    def default_vector(text: str) -> List[float]:
        return [float(len(text)), float(text.count("\n")), 1.0]


class FakeGitRepository:
    """
    In-memory stand-in for GitRepository.

    ``repositories`` maps a root path to its state dict with keys ``commit``,
    ``files`` and ``diffs`` (old commit -> (updated, removed)).
    """

    def __init__(self, repositories: Dict[str, dict], path):
        from dokosa.core.exceptions import VcsError

        path = str(path)
        if path not in repositories:
            raise VcsError(f"not a git repository: {path}")
        self.root_dir = Path(path)
        self._state = repositories[path]

    def commit_hash(self) -> str:
        return self._state["commit"]

    def files(self) -> List[str]:
        return list(self._state.get("files", []))

    def diff_files(self, old_commit_hash: str):
        updated, removed = self._state["diffs"][old_commit_hash]
        return set(updated), set(removed)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    """Fixture providing a deterministic embedder."""
    return FakeEmbedder()


@pytest.fixture
def fake_repositories() -> Dict[str, dict]:
    """Mutable registry of fake git repositories, keyed by root path."""
    return {}


@pytest.fixture
def vcs_factory(fake_repositories):
    """Factory building FakeGitRepository objects over ``fake_repositories``."""
    def factory(path):
        return FakeGitRepository(fake_repositories, path)
    return factory


@pytest.fixture
def index_path(tmp_path) -> Path:
    """Path for a fresh index log inside the test's temp directory."""
    return tmp_path / "index.dokosa"


@pytest.fixture
def git_repo(tmp_path):
    """
    Create an empty real git repository.

    Returns ``(root, git)`` where ``git(*args)`` runs git in the root and
    returns its stripped stdout.
    """
    if not is_git_available():
        pytest.skip("git executable not available")

    root = tmp_path / "repo"
    root.mkdir()
    env = dict(
        os.environ,
        GIT_AUTHOR_NAME="Test",
        GIT_AUTHOR_EMAIL="test@example.com",
        GIT_COMMITTER_NAME="Test",
        GIT_COMMITTER_EMAIL="test@example.com",
    )

    def git(*args) -> str:
        result = subprocess.run(
            ["git", "-C", str(root), *args],
            capture_output=True, check=True, env=env,
        )
        return result.stdout.decode("utf-8").strip()

    git("init", "-q")
    git("config", "commit.gpgsign", "false")
    return root.resolve(), git
