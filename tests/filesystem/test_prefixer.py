import pytest

from filesystem.exceptions import CorruptedPathDetected, PathTraversalDetected
from filesystem.prefixer import PathNormalizer, PathPrefixer


@pytest.mark.parametrize(
    "path, expected",
    [
        ("a/b.txt", "a/b.txt"),
        ("/a//b.txt", "a/b.txt"),
        ("a\\b\\c.txt", "a/b/c.txt"),
        ("./a/./b/", "a/b"),
        ("a/x/../b.txt", "a/b.txt"),
        ("", ""),
    ],
)
def test_normalize(path, expected):
    assert PathNormalizer().normalize(path) == expected


def test_normalize_rejects_traversal_above_root():
    with pytest.raises(PathTraversalDetected):
        PathNormalizer().normalize("a/../../etc/passwd")


def test_normalize_rejects_control_characters():
    with pytest.raises(CorruptedPathDetected):
        PathNormalizer().normalize("a/b\x00.txt")


@pytest.mark.parametrize("prefix", [None, "", "root", "root/", "/root/", "root/sub"])
@pytest.mark.parametrize("path", ["a/b.txt", "/a/b.txt", "a//b/../c.txt", "file"])
def test_strip_prefix_reverses_prefix_path(prefix, path):
    prefixer = PathPrefixer(prefix)
    assert prefixer.strip_prefix(prefixer.prefix_path(path)) == PathNormalizer().normalize(path)


def test_prefix_is_joined_with_single_separator():
    prefixer = PathPrefixer("root///")
    assert prefixer.prefix == "root/"
    assert prefixer.prefix_path("/a/b.txt") == "root/a/b.txt"


def test_slash_prefix_means_no_prefix():
    prefixer = PathPrefixer("/")
    assert prefixer.prefix == ""
    assert prefixer.prefix_path("a.txt") == "a.txt"


def test_prefix_directory_path():
    prefixer = PathPrefixer("root")
    assert prefixer.prefix_directory_path("a/b") == "root/a/b/"
    assert prefixer.prefix_directory_path("a/b/") == "root/a/b/"
    assert prefixer.prefix_directory_path("") == "root/"
    assert PathPrefixer().prefix_directory_path("") == ""


def test_strip_directory_prefix():
    prefixer = PathPrefixer("root")
    assert prefixer.strip_directory_prefix("root/a/b/") == "a/b"


def test_strip_prefix_leaves_foreign_keys_alone():
    assert PathPrefixer("root").strip_prefix("other/a.txt") == "other/a.txt"
