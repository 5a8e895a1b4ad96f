"""Tests for sizing and file system operations."""

import hashlib

import pytest

from pyreplica.sync.operations import MirrorOperations
from pyreplica.sync.sizing import SizeClass


class TestSizeClass:
    """Tests for SizeClass selection."""

    @pytest.mark.parametrize(
        "size, expected",
        [
            (0, SizeClass.SMALL),
            (4 * 1024, SizeClass.SMALL),
            (8 * 1024, SizeClass.SMALL),
            (8 * 1024 + 1, SizeClass.MEDIUM),
            (1024 * 1024, SizeClass.MEDIUM),
            (10 * 1024 * 1024, SizeClass.MEDIUM),
            (10 * 1024 * 1024 + 1, SizeClass.LARGE),
            (50 * 1024 * 1024, SizeClass.LARGE),
        ],
    )
    def test_for_size(self, size, expected):
        assert SizeClass.for_size(size) == expected

    def test_buffer_sizes(self):
        assert SizeClass.SMALL.buffer_size == 8 * 1024
        assert SizeClass.MEDIUM.buffer_size == 64 * 1024
        assert SizeClass.LARGE.buffer_size == 256 * 1024


class TestMirrorOperations:
    """Tests for MirrorOperations."""

    def test_copy_file(self, tmp_path):
        source = tmp_path / "source.bin"
        source.write_bytes(b"0123456789" * 1000)

        copied = MirrorOperations().copy_file(source, tmp_path / "copy.bin", 64)

        assert copied == 10000
        assert (tmp_path / "copy.bin").read_bytes() == source.read_bytes()

    def test_copy_file_overwrites(self, tmp_path):
        source = tmp_path / "source.txt"
        source.write_text("short")
        destination = tmp_path / "destination.txt"
        destination.write_text("a much longer previous content")

        MirrorOperations().copy_file(source, destination, 8 * 1024)

        assert destination.read_text() == "short"

    def test_copy_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MirrorOperations().copy_file(
                tmp_path / "missing", tmp_path / "copy", 8 * 1024
            )
        assert not (tmp_path / "copy").exists()

    def test_file_digest_is_md5_by_default(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc" * 5000)

        digest = MirrorOperations().file_digest(path, 1024)

        assert digest == hashlib.md5(b"abc" * 5000).hexdigest()

    def test_file_digest_independent_of_buffer(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(bytes(range(256)) * 300)
        operations = MirrorOperations()

        assert operations.file_digest(path, 7) == operations.file_digest(path, 65536)

    def test_other_hash_algorithm(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"xyz")

        digest = MirrorOperations("sha256").file_digest(path, 1024)

        assert digest == hashlib.sha256(b"xyz").hexdigest()

    def test_unknown_hash_algorithm(self):
        with pytest.raises(ValueError):
            MirrorOperations("not-a-hash")

    def test_delete_file_and_tree(self, tmp_path):
        (tmp_path / "tree" / "sub").mkdir(parents=True)
        (tmp_path / "tree" / "sub" / "f.txt").write_text("f")
        (tmp_path / "single.txt").write_text("s")
        operations = MirrorOperations()

        operations.delete_file(tmp_path / "single.txt")
        operations.delete_tree(tmp_path / "tree")

        assert list(tmp_path.iterdir()) == []

    def test_make_directory_is_idempotent(self, tmp_path):
        operations = MirrorOperations()

        operations.make_directory(tmp_path / "new")
        operations.make_directory(tmp_path / "new")

        assert (tmp_path / "new").is_dir()

    def test_make_directory_needs_parent(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MirrorOperations().make_directory(tmp_path / "missing" / "new")
