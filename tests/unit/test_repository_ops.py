"""
Unit tests for add, remove and list.

Git is replaced by FakeGitRepository (see conftest); file contents are real
files under a temporary repository root.
"""

import pytest

from dokosa.contracts.index_contracts import ChunkEntry, RepositoryEntry
from dokosa.core.exceptions import (
    EmbeddingProviderError,
    RepositoryAlreadyIndexedError,
    RepositoryNotIndexedError,
    VcsError,
)
from dokosa.operations.repository_ops import (
    add_repository,
    list_repositories,
    remove_repository,
)
from dokosa.storage.index_log import IndexLog

from conftest import FakeEmbedder, FakeGitRepository


@pytest.fixture
def repo_root(tmp_path, fake_repositories):
    """A fake git repository with three tracked files."""
    root = (tmp_path / "repo").resolve()
    root.mkdir()
    (root / "a.txt").write_text("one\ntwo\nthree\n", encoding="utf-8")
    (root / "notes.md").write_text("# notes\n", encoding="utf-8")
    (root / "empty.txt").write_text("", encoding="utf-8")
    fake_repositories[str(root)] = {
        "commit": "c1",
        "files": ["a.txt", "notes.md", "empty.txt"],
        "diffs": {},
    }
    return root


@pytest.fixture
def index_log(index_path) -> IndexLog:
    return IndexLog.create_new(index_path)


class TestAddRepository:
    """Tests for add_repository."""

    def test_add_indexes_tracked_files(self, index_log, repo_root, fake_embedder, vcs_factory):
        """Test the repository record is followed by each file's chunks."""
        report = add_repository(
            index_log, repo_root, fake_embedder,
            window_size=2, step_size=1, vcs_factory=vcs_factory,
        )

        entries = list(index_log.entries())
        assert entries[0] == RepositoryEntry(str(repo_root), "c1", 2, 1, [], [])
        assert [(e.path, e.line) for e in entries[1:]] == [
            ("a.txt", 0), ("a.txt", 1), ("notes.md", 0),
        ]
        assert entries[1].embedding == FakeEmbedder.default_vector("one\ntwo\n")

        assert report.repository_path == str(repo_root)
        assert report.commit == "c1"
        assert report.files_indexed == 2
        assert report.files_empty == 1
        assert report.chunks_added == 3
        assert report.skipped == []

    def test_one_embedding_batch_per_file(self, index_log, repo_root, fake_embedder, vcs_factory):
        """Test each file's chunks are embedded in a single call."""
        add_repository(index_log, repo_root, fake_embedder, 2, 1, vcs_factory=vcs_factory)

        assert fake_embedder.calls == [["one\ntwo\n", "two\nthree\n"], ["# notes\n"]]

    def test_filters_on_relative_paths(self, index_log, repo_root, fake_embedder, vcs_factory):
        """Test include/exclude patterns see repository-relative paths."""
        report = add_repository(
            index_log, repo_root, fake_embedder,
            include_files=["*.txt"], exclude_files=["empty*"],
            vcs_factory=vcs_factory,
        )

        repository = next(index_log.repositories())
        assert repository.include_files == ["*.txt"]
        assert repository.exclude_files == ["empty*"]
        assert {e.path for e in index_log.entries() if isinstance(e, ChunkEntry)} == {"a.txt"}
        assert report.files_filtered == 2

    def test_already_indexed(self, index_log, repo_root, fake_embedder, vcs_factory):
        """Test adding the same root twice fails without writing."""
        add_repository(index_log, repo_root, fake_embedder, vcs_factory=vcs_factory)
        before = index_log.path.read_bytes()

        with pytest.raises(RepositoryAlreadyIndexedError):
            add_repository(index_log, repo_root, fake_embedder, vcs_factory=vcs_factory)

        assert index_log.path.read_bytes() == before

    def test_not_a_repository(self, index_log, tmp_path, fake_embedder, vcs_factory):
        """Test a path outside git fails without writing."""
        with pytest.raises(VcsError):
            add_repository(index_log, tmp_path / "nowhere", fake_embedder, vcs_factory=vcs_factory)

        assert index_log.path.read_text() == ""

    def test_invalid_window(self, index_log, repo_root, fake_embedder, vcs_factory):
        """Test non-positive sizes are rejected before anything is written."""
        with pytest.raises(ValueError):
            add_repository(index_log, repo_root, fake_embedder, window_size=0,
                           vcs_factory=vcs_factory)

        assert index_log.path.read_text() == ""

    def test_unreadable_files_skipped(
        self, index_log, repo_root, fake_repositories, fake_embedder, vcs_factory,
    ):
        """Test missing and non-UTF-8 files are skipped, not fatal."""
        (repo_root / "binary.bin").write_bytes(b"\xff\xfe\x00")
        fake_repositories[str(repo_root)]["files"] = ["missing.txt", "binary.bin", "a.txt"]

        report = add_repository(index_log, repo_root, fake_embedder, vcs_factory=vcs_factory)

        assert [s.path for s in report.skipped] == ["missing.txt", "binary.bin"]
        assert report.files_indexed == 1

    def test_embedding_failure_skips_file(self, index_log, repo_root, vcs_factory):
        """Test a provider error for one file skips only that file."""

        class FlakyEmbedder(FakeEmbedder):
            def embed(self, texts):
                if any("notes" in t for t in texts):
                    raise EmbeddingProviderError("rate limited", provider="fake", status_code=429)
                return super().embed(texts)

        report = add_repository(index_log, repo_root, FlakyEmbedder(), vcs_factory=vcs_factory)

        assert [s.path for s in report.skipped] == ["notes.md"]
        assert "rate limited" in report.skipped[0].reason
        paths = {e.path for e in index_log.entries() if isinstance(e, ChunkEntry)}
        assert paths == {"a.txt"}

    def test_summary_and_dict(self, index_log, repo_root, fake_embedder, vcs_factory):
        """Test the report renders."""
        report = add_repository(index_log, repo_root, fake_embedder, vcs_factory=vcs_factory)

        assert str(repo_root) in report.summary()
        assert report.to_dict()["chunks_added"] == report.chunks_added


@pytest.fixture
def two_repositories(index_log):
    """Index log holding /one (two chunks) and /two (one chunk)."""
    index_log.append_repository(RepositoryEntry("/one", "c1", 2, 1, [], []))
    index_log.append_chunk(ChunkEntry("a.txt", 0, [1.0, 0.0]))
    index_log.append_chunk(ChunkEntry("b.txt", 0, [0.5, 0.5]))
    index_log.append_repository(RepositoryEntry("/two", "c2", 3, 2, ["*.py"], []))
    index_log.append_chunk(ChunkEntry("main.py", 0, [0.0, 1.0]))
    return index_log


class TestRemoveRepository:
    """Tests for remove_repository."""

    def test_remove_section(self, two_repositories, vcs_factory):
        """Test only the target section is removed, the rest byte-identical."""
        lines = two_repositories.path.read_text(encoding="utf-8").splitlines(keepends=True)

        report = remove_repository(two_repositories, "/one", vcs_factory=vcs_factory)

        assert report.chunks_removed == 2
        assert report.repository_path == "/one"
        assert two_repositories.path.read_text(encoding="utf-8") == "".join(lines[3:])
        assert not two_repositories.temp_path.exists()

    def test_remove_last_section(self, two_repositories, vcs_factory):
        """Test removing the trailing section keeps the earlier one."""
        remove_repository(two_repositories, "/two", vcs_factory=vcs_factory)

        assert [r.path for r in two_repositories.repositories()] == ["/one"]
        assert len(list(two_repositories.entries())) == 3

    def test_recorded_path_needs_no_git(self, two_repositories):
        """Test a recorded root is removed even if it is gone from disk."""

        def no_git(path):
            raise AssertionError("git should not be consulted")

        report = remove_repository(two_repositories, "/two", vcs_factory=no_git)

        assert report.chunks_removed == 1

    def test_resolves_through_git(self, two_repositories, tmp_path, fake_repositories):
        """Test a path inside a checkout is resolved to its recorded root."""
        root = (tmp_path / "checkout").resolve()
        (root / "src").mkdir(parents=True)
        two_repositories.append_repository(RepositoryEntry(str(root), "c3", 2, 1, [], []))
        fake_repositories[str(root)] = {"commit": "c3"}

        def factory(path):
            return FakeGitRepository(fake_repositories, root)

        remove_repository(two_repositories, root / "src", vcs_factory=factory)

        assert str(root) not in [r.path for r in two_repositories.repositories()]

    def test_not_indexed(self, two_repositories, tmp_path, fake_repositories, vcs_factory):
        """Test removing an unknown repository fails without writing."""
        root = str(tmp_path.resolve() / "other")
        fake_repositories[root] = {"commit": "c9"}
        before = two_repositories.path.read_bytes()

        with pytest.raises(RepositoryNotIndexedError):
            remove_repository(two_repositories, root, vcs_factory=vcs_factory)

        assert two_repositories.path.read_bytes() == before

    def test_not_a_repository(self, two_repositories, tmp_path, vcs_factory):
        """Test an unrecorded path outside git is a git error."""
        with pytest.raises(VcsError):
            remove_repository(two_repositories, tmp_path / "nothing", vcs_factory=vcs_factory)

    def test_dry_run(self, two_repositories, vcs_factory):
        """Test a dry run counts without writing."""
        before = two_repositories.path.read_bytes()

        report = remove_repository(two_repositories, "/one", dry_run=True, vcs_factory=vcs_factory)

        assert report.dry_run is True
        assert report.chunks_removed == 2
        assert "Would remove" in report.summary()
        assert two_repositories.path.read_bytes() == before
        assert not two_repositories.temp_path.exists()

    def test_surviving_lines_copied_verbatim(self, index_path, vcs_factory):
        """Test other sections keep their stored text, not a re-serialization."""
        before = [
            '{"type":"repository","path":"/keep","commit":"c1","chunk_window_size":2,'
            '"chunk_step_size":1,"include_files":[],"exclude_files":[]}',
            '{"embedding":[1,0],"line":0,"path":"a.txt","type":"chunk"}',
        ]
        dropped = [
            '{"type":"repository","path":"/drop","commit":"c1","chunk_window_size":2,'
            '"chunk_step_size":1,"include_files":[],"exclude_files":[]}',
            '{"type":"chunk","path":"b.txt","line":0,"embedding":[0,1]}',
        ]
        after = [
            '{"type": "repository", "path": "/last", "commit": "c1", "chunk_window_size": 2, '
            '"chunk_step_size": 1, "include_files": ["*.py"], "exclude_files": []}',
            '{"type":"chunk","path":"c.py","line":4,"embedding":[0.5,1e-3]}',
        ]
        index_path.write_text("\n".join(before + dropped + after) + "\n", encoding="utf-8")

        report = remove_repository(IndexLog.load(index_path), "/drop", vcs_factory=vcs_factory)

        assert report.chunks_removed == 1
        assert index_path.read_text(encoding="utf-8") == "\n".join(before + after) + "\n"


class TestListRepositories:
    """Tests for list_repositories."""

    def test_list(self, two_repositories):
        """Test each section is summarized in order."""
        summaries = list_repositories(two_repositories)

        assert [(s.path, s.chunk_count, s.file_count) for s in summaries] == [
            ("/one", 2, 2),
            ("/two", 1, 1),
        ]
        assert summaries[1].include_files == ["*.py"]
        assert summaries[1].to_dict()["chunk_window_size"] == 3

    def test_distinct_files(self, index_log):
        """Test several chunks of one file count as one file."""
        index_log.append_repository(RepositoryEntry("/r", "c", 1, 1, [], []))
        index_log.append_chunks([ChunkEntry("a.txt", i, [1.0]) for i in range(4)])

        summary = list_repositories(index_log)[0]

        assert summary.chunk_count == 4
        assert summary.file_count == 1

    def test_empty(self, index_log):
        """Test an empty log lists nothing."""
        assert list_repositories(index_log) == []
