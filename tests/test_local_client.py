import logging
import os
import stat

import pytest

from setrender.local_client import (
    LocalFetcher,
    LocalObjectReader,
    UnsupportedObjectError,
    copy_file,
    copy_tree,
)


def _reader():
    return LocalObjectReader("testdata", logging.getLogger("test"))


def test_get_v1_git_repository():
    gr = {"apiVersion": "source.toolkit.fluxcd.io/v1", "kind": "GitRepository"}
    _reader().get("testing", "testing", gr)
    want = "file://" + os.path.abspath("testdata") + "/testing"
    assert gr["status"]["artifact"]["url"] == want


def test_get_v1beta2_git_repository():
    gr = {"apiVersion": "source.toolkit.fluxcd.io/v1beta2", "kind": "GitRepository"}
    result = _reader().get("demo-gr", "testing", gr)
    want = "file://" + os.path.abspath("testdata") + "/demo-gr"
    assert result["status"]["artifact"]["url"] == want


def test_get_v1beta2_oci_repository():
    gr = {"apiVersion": "source.toolkit.fluxcd.io/v1beta2", "kind": "OCIRepository"}
    _reader().get("demo-or", "testing", gr)
    want = "file://" + os.path.abspath("testdata") + "/demo-or"
    assert gr["status"]["artifact"]["url"] == want


def test_get_unsupported_kind():
    obj = {"apiVersion": "v1", "kind": "ConfigMap"}
    with pytest.raises(UnsupportedObjectError, match="filesystem access"):
        _reader().get("demo", "default", obj)
    assert "status" not in obj


def test_list_is_rejected():
    with pytest.raises(UnsupportedObjectError):
        _reader().list([])


def test_copy_file_preserves_content_and_mode(tmp_path):
    src = tmp_path / "src.txt"
    src.write_bytes(b"content")
    os.chmod(src, 0o640)
    dst = tmp_path / "dst.txt"

    copy_file(str(dst), str(src))

    assert dst.read_bytes() == b"content"
    assert stat.S_IMODE(os.stat(dst).st_mode) == stat.S_IMODE(os.stat(src).st_mode)


def test_copy_tree_copies_files_dirs_and_links(tmp_path):
    src = tmp_path / "src"
    (src / "nested").mkdir(parents=True)
    (src / "top.yaml").write_text("a: 1\n")
    (src / "nested" / "inner.yaml").write_text("b: 2\n")
    os.symlink("top.yaml", src / "link.yaml")
    dst = tmp_path / "dst"

    copy_tree(str(dst), str(src))

    assert (dst / "top.yaml").read_text() == "a: 1\n"
    assert (dst / "nested" / "inner.yaml").read_text() == "b: 2\n"
    assert os.path.islink(dst / "link.yaml")
    assert os.readlink(dst / "link.yaml") == "top.yaml"


def test_copy_tree_into_existing_directory(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "file.txt").write_text("x")
    dst = tmp_path / "dst"
    dst.mkdir()

    copy_tree(str(dst), str(src))

    assert sorted(os.listdir(dst)) == ["file.txt"]


def test_local_fetcher_copies_url_path(tmp_path):
    repo = tmp_path / "repo"
    (repo / "files").mkdir(parents=True)
    (repo / "files" / "dev.yaml").write_text("environment: dev\n")
    dest = tmp_path / "dest"

    LocalFetcher(logging.getLogger("test")).fetch("file://" + str(repo), "", str(dest))

    assert (dest / "files" / "dev.yaml").read_text() == "environment: dev\n"


def test_reader_and_fetcher_work_together(tmp_path):
    repo = tmp_path / "root" / "my-repo"
    repo.mkdir(parents=True)
    (repo / "values.yaml").write_text("k: v\n")
    gr = {"apiVersion": "source.toolkit.fluxcd.io/v1", "kind": "GitRepository"}
    LocalObjectReader(str(tmp_path / "root")).get("my-repo", "default", gr)
    dest = tmp_path / "dest"

    LocalFetcher().fetch(gr["status"]["artifact"]["url"], "", str(dest))

    assert (dest / "values.yaml").read_text() == "k: v\n"