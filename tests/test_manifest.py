# tests/test_manifest.py
"""
Tests for filemon.monitor.manifest module.

Key tests verify that:
1. Both colon and legacy space lines are understood
2. One malformed line never aborts a load
3. Entries for missing files are still admitted
4. save() writes the canonical colon form with no trailing newline
"""

from pathlib import Path

import pytest

from filemon.config.schema import WatcherConfig
from filemon.exceptions import ManifestParseError
from filemon.monitor.cache import FileCache, FileEntry
from filemon.monitor.manifest import ManifestStore, parse_line, serialize

from conftest import write_file

H1 = "0123456789abcdef0123456789abcdef"
H2 = "fedcba9876543210fedcba9876543210"


class TestParseLine:
    """Tests for parse_line."""

    def test_colon_form(self):
        assert parse_line(f"css/site.css:{H1}") == ("css/site.css", H1)

    def test_legacy_space_form(self):
        """Space form is checksum first, then path."""
        assert parse_line(f"{H1} css/site.css") == ("css/site.css", H1)

    def test_legacy_space_form_path_with_spaces(self):
        assert parse_line(f"{H1} my docs/a b.txt") == ("my docs/a b.txt", H1)

    def test_splits_on_first_colon(self):
        assert parse_line("a.txt:abc:def") == ("a.txt", "abc:def")

    @pytest.mark.parametrize("line", ["", "   ", "--BEGIN", "--END"])
    def test_lines_without_entries(self, line):
        assert parse_line(line) is None

    def test_no_delimiter_raises(self):
        with pytest.raises(ManifestParseError) as exc:
            parse_line("garbage", line_no=3)
        assert exc.value.line_no == 3

    def test_empty_path_raises(self):
        with pytest.raises(ManifestParseError):
            parse_line(f":{H1}")

    def test_empty_checksum_means_not_computed(self):
        assert parse_line("a.txt:") == ("a.txt", None)

    def test_normalizes_path_and_checksum(self):
        assert parse_line(f"\\sub\\a.txt:{H1.upper()}\r\n") == ("sub/a.txt", H1)


class TestSerialize:
    def test_sorted_colon_lines_without_trailing_newline(self):
        cache = FileCache([FileEntry("b.txt", 1.0, H2), FileEntry("a.txt", 1.0, H1)])

        assert serialize(cache) == f"a.txt:{H1}\nb.txt:{H2}"

    def test_empty_cache(self):
        assert serialize(FileCache()) == ""


class TestManifestStoreLoad:
    """Tests for ManifestStore.load."""

    def test_missing_root_returns_empty_cache(self, tmp_path: Path):
        config = WatcherConfig(
            content_root=str(tmp_path),
            folder_path="nope",
            file_extensions=[".txt"],
            output_file_name="output.txt",
        )

        cache = ManifestStore(config).load()

        assert len(cache) == 0
        assert not (tmp_path / "nope").exists()

    def test_creates_manifest_when_absent(self, config: WatcherConfig, root: Path):
        cache = ManifestStore(config).load()

        assert len(cache) == 0
        assert (root / "output.txt").exists()
        assert (root / "output.txt").read_text(encoding="utf-8") == ""

    def test_loads_entries_with_disk_timestamps(self, config: WatcherConfig, root: Path):
        write_file(root / "a.txt", "a", mtime=1_600_000_000)
        write_file(root / "sub" / "b.md", "b", mtime=1_600_000_100)
        (root / "output.txt").write_text(f"a.txt:{H1}\nsub/b.md:{H2}", encoding="utf-8")

        cache = ManifestStore(config).load()

        assert cache.as_manifest() == {"a.txt": H1, "sub/b.md": H2}
        assert cache.get("a.txt").last_modified == 1_600_000_000
        assert cache.get("sub/b.md").last_modified == 1_600_000_100

    def test_mixed_formats_and_sentinels(self, config: WatcherConfig, root: Path):
        write_file(root / "a.txt", "a")
        write_file(root / "b.txt", "b")
        (root / "output.txt").write_text(
            f"--BEGIN\n{H1} a.txt\n\nb.txt:{H2}\n--END\n", encoding="utf-8"
        )

        cache = ManifestStore(config).load()

        assert cache.as_manifest() == {"a.txt": H1, "b.txt": H2}

    def test_malformed_line_is_skipped(self, config: WatcherConfig, root: Path):
        """One bad line does not abort the load."""
        write_file(root / "a.txt", "a")
        write_file(root / "b.txt", "b")
        (root / "output.txt").write_text(
            f"a.txt:{H1}\nthis-line-is-garbage\n:{H2}\nb.txt:{H2}", encoding="utf-8"
        )

        cache = ManifestStore(config).load()

        assert cache.as_manifest() == {"a.txt": H1, "b.txt": H2}

    def test_missing_file_is_still_admitted(self, config: WatcherConfig, root: Path):
        (root / "output.txt").write_text(f"gone.txt:{H1}", encoding="utf-8")

        cache = ManifestStore(config).load()

        entry = cache.get("gone.txt")
        assert entry is not None
        assert entry.checksum == H1
        assert entry.last_modified == 0.0

    def test_excluded_entries_are_skipped(self, config: WatcherConfig, root: Path):
        write_file(root / "ignored" / "a.txt", "a")
        write_file(root / "kept.txt", "k")
        (root / "output.txt").write_text(f"ignored/a.txt:{H1}\nkept.txt:{H2}", encoding="utf-8")

        cache = ManifestStore(config).load()

        assert cache.paths() == ["kept.txt"]

    def test_later_line_wins_for_duplicate_path(self, config: WatcherConfig, root: Path):
        write_file(root / "a.txt", "a")
        (root / "output.txt").write_text(f"a.txt:{H1}\na.txt:{H2}", encoding="utf-8")

        cache = ManifestStore(config).load()

        assert cache.as_manifest() == {"a.txt": H2}

    def test_populates_given_cache(self, config: WatcherConfig, root: Path):
        write_file(root / "a.txt", "a")
        (root / "output.txt").write_text(f"a.txt:{H1}", encoding="utf-8")
        cache = FileCache()

        result = ManifestStore(config).load(cache)

        assert result is cache
        assert cache.paths() == ["a.txt"]

    def test_invalid_utf8_does_not_abort_load(self, config: WatcherConfig, root: Path):
        write_file(root / "a.txt", "a")
        write_file(root / "b.txt", "b")
        (root / "output.txt").write_bytes(
            f"a.txt:{H1}\n".encode() + b"\xff\xfe garbage\n" + f"b.txt:{H2}".encode()
        )

        cache = ManifestStore(config).load()

        assert cache.get("a.txt").checksum == H1
        assert cache.get("b.txt").checksum == H2


class TestManifestStoreSave:
    """Tests for ManifestStore.save."""

    def test_writes_canonical_format(self, config: WatcherConfig, root: Path):
        cache = FileCache([FileEntry("sub/b.md", 1.0, H2), FileEntry("a.txt", 1.0, H1)])

        assert ManifestStore(config).save(cache) is True

        assert (root / "output.txt").read_text(encoding="utf-8") == f"a.txt:{H1}\nsub/b.md:{H2}"
        assert not (root / "output.txt.tmp").exists()

    def test_overwrites_previous_content(self, config: WatcherConfig, root: Path):
        (root / "output.txt").write_text("old:content\nmore:lines", encoding="utf-8")

        ManifestStore(config).save(FileCache([FileEntry("a.txt", 1.0, H1)]))

        assert (root / "output.txt").read_text(encoding="utf-8") == f"a.txt:{H1}"

    def test_empty_cache_writes_empty_file(self, config: WatcherConfig, root: Path):
        (root / "output.txt").write_text(f"a.txt:{H1}", encoding="utf-8")

        assert ManifestStore(config).save(FileCache()) is True
        assert (root / "output.txt").read_text(encoding="utf-8") == ""

    def test_failure_returns_false(self, tmp_path: Path):
        config = WatcherConfig(
            content_root=str(tmp_path),
            folder_path="missing",
            file_extensions=[".txt"],
            output_file_name="output.txt",
        )

        assert ManifestStore(config).save(FileCache([FileEntry("a.txt", 1.0, H1)])) is False

    def test_round_trip(self, config: WatcherConfig, root: Path):
        """save then load reproduces the same path -> checksum pairs."""
        write_file(root / "a.txt", "a")
        write_file(root / "sub" / "deep" / "b.md", "b")
        original = FileCache(
            [FileEntry("a.txt", 1.0, H1), FileEntry("sub/deep/b.md", 1.0, H2)]
        )
        store = ManifestStore(config)

        store.save(original)
        reloaded = store.load()

        assert reloaded.as_manifest() == original.as_manifest()

    def test_undecodable_name_is_written_byte_exact(self, config: WatcherConfig, root: Path):
        """Names os.scandir reports with surrogate escapes keep their raw bytes."""
        name = "\udcff.txt"
        store = ManifestStore(config)

        assert store.save(FileCache([FileEntry(name, 1.0, H1)])) is True

        assert (root / "output.txt").read_bytes() == b"\xff.txt:" + H1.encode()
        assert not (root / "output.txt.tmp").exists()
        assert store.load().as_manifest() == {name: H1}


class TestReadManifest:
    def test_reads_without_touching_disk_entries(self, config: WatcherConfig, root: Path):
        (root / "output.txt").write_text(f"--BEGIN\ngone.txt:{H1}\nbad\n{H2} x.txt", encoding="utf-8")

        assert ManifestStore(config).read_manifest() == {"gone.txt": H1, "x.txt": H2}

    def test_missing_manifest(self, config: WatcherConfig):
        assert ManifestStore(config).read_manifest() == {}

    def test_invalid_utf8(self, config: WatcherConfig, root: Path):
        (root / "output.txt").write_bytes(f"a.txt:{H1}\n".encode() + b"\xff\xfe\n")

        entries = ManifestStore(config).read_manifest()

        assert entries["a.txt"] == H1
