import pytest

from file_provider.path_utility import FilePathUtility

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "path, expected",
    [
        ("container/a/b.txt", ["container", "a", "b.txt"]),
        ("/container//a/", ["container", "a"]),
        ("container\\a\\b.txt", ["container", "a", "b.txt"]),
        (" container / a ", ["container", "a"]),
        ("", []),
        (None, []),
    ],
)
def test_split_segments(path, expected):
    assert FilePathUtility.split_segments(path) == expected


def test_merge_collapses_slashes():
    assert FilePathUtility.merge("container/filemetadata/aaaa/bbb/", "bytes.bin") == (
        "container/filemetadata/aaaa/bbb/bytes.bin"
    )
    assert FilePathUtility.merge("/root\\dir/", "/sub/", "file.txt") == "root/dir/sub/file.txt"


def test_strip_slashes():
    assert FilePathUtility.strip_slashes("/a/b/\\") == "a/b"


def test_to_forward_slashes():
    assert FilePathUtility.to_forward_slashes("a\\b\\c") == "a/b/c"


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("bytes.bin", ".bin"),
        ("Report.PDF", ".pdf"),
        ("run@03.16.2025.Payments.csv", ".csv"),
        ("no_extension", ""),
        ("trailing.", ""),
        ("", ""),
    ],
)
def test_get_file_extension(file_name, expected):
    assert FilePathUtility.get_file_extension(file_name) == expected


def test_get_file_name():
    assert FilePathUtility.get_file_name("container/dir/File.TXT") == "File.TXT"
    assert FilePathUtility.get_file_name("") == ""


def test_make_blob_name_safe():
    assert FilePathUtility.make_blob_name_safe("\\Container\\Dir//File.txt") == "Container/Dir/File.txt"
    assert FilePathUtility.make_blob_name_safe("Container/Dir/File.txt", make_lower=True) == "container/dir/file.txt"
