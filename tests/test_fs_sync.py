"""
Tests for reconciling sync and archive installation
"""
import errno
import os
import zipfile

import pytest

from deploysync.core.exceptions import BuildError, ResourceBusyError
from deploysync.domain.build import busy_guard, install_archive, is_busy_error, reconciling_sync, reset_directory

from conftest import write


def make_war(path, files):
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as bundle:
        for name, content in files.items():
            bundle.writestr(name, content)
    return path


def test_reconciling_sync_mirrors_source_and_keeps_protected(tmp_path):
    source = tmp_path / "web"
    target = tmp_path / "target"
    write(source / "index.html", "home")
    write(source / "css/site.css", "body")
    write(target / "stale.html", "old")
    write(target / "css/old.css", "old")
    write(target / "classes/Foo.class", "bytes")
    write(target / "lib/a.jar", "jar")

    copied = reconciling_sync(source, target, protected=("classes", "lib"))

    assert copied == 2
    assert (target / "index.html").read_text() == "home"
    assert (target / "css/site.css").read_text() == "body"
    assert not (target / "stale.html").exists()
    assert not (target / "css/old.css").exists()
    assert (target / "classes/Foo.class").exists()
    assert (target / "lib/a.jar").exists()


def test_reconciling_sync_skips_unchanged_files(tmp_path):
    source = tmp_path / "web"
    write(source / "index.html", "home")
    reconciling_sync(source, tmp_path / "target")

    assert reconciling_sync(source, tmp_path / "target") == 0


def test_reconciling_sync_copies_same_size_edit_within_a_second(tmp_path):
    source = tmp_path / "web"
    page = write(source / "index.html", "home")
    target = tmp_path / "target"
    reconciling_sync(source, target)
    deployed = target / "index.html"
    second = deployed.stat().st_mtime_ns // 1_000_000_000 * 1_000_000_000
    os.utime(deployed, ns=(second, second + 100_000_000))

    page.write_text("away")
    os.utime(page, ns=(second, second + 600_000_000))

    assert reconciling_sync(source, target) == 1
    assert deployed.read_text() == "away"


def test_protection_applies_at_any_depth(tmp_path):
    source = tmp_path / "web"
    target = tmp_path / "target"
    write(source / "WEB-INF/web.xml", "<web-app/>")
    write(target / "WEB-INF/classes/Foo.class", "bytes")

    reconciling_sync(source, target, protected=("classes",))

    assert (target / "WEB-INF/classes/Foo.class").exists()
    assert (target / "WEB-INF/web.xml").exists()


def test_reset_directory(tmp_path):
    directory = write(tmp_path / "classes/old/Foo.class").parent.parent

    reset_directory(directory)

    assert directory.is_dir()
    assert list(directory.iterdir()) == []


def test_busy_error_classification():
    assert is_busy_error(OSError(errno.EBUSY, "Device or resource busy"))
    assert is_busy_error(OSError(errno.ETXTBSY, "Text file busy"))
    assert not is_busy_error(OSError(errno.ENOENT, "No such file"))
    assert not is_busy_error(ValueError("busy"))


def test_busy_guard_converts_only_busy_errors():
    with pytest.raises(ResourceBusyError):
        with busy_guard("Copying"):
            raise OSError(errno.EBUSY, "busy")

    with pytest.raises(FileNotFoundError):
        with busy_guard("Copying"):
            raise FileNotFoundError(errno.ENOENT, "missing")


def test_install_archive_unpacks_war(tmp_path):
    archive = make_war(tmp_path / "ws/target/shop.war", {"index.html": "new", "WEB-INF/web.xml": "<web-app/>"})
    target = tmp_path / "webapps/shop"
    write(target / "stale.html", "old")

    copied = install_archive(archive, target)

    assert copied == tmp_path / "webapps/shop.war"
    assert copied.is_file()
    assert (target / "index.html").read_text() == "new"
    assert (target / "WEB-INF/web.xml").is_file()
    assert not (target / "stale.html").exists()


def test_install_archive_prefers_exploded_directory(tmp_path):
    archive = make_war(tmp_path / "ws/target/shop.war", {"index.html": "zipped"})
    write(tmp_path / "ws/target/shop/index.html", "exploded")
    target = tmp_path / "webapps/shop"

    install_archive(archive, target)

    assert (target / "index.html").read_text() == "exploded"


def test_install_archive_rejects_invalid_zip(tmp_path):
    archive = write(tmp_path / "ws/target/shop.war", "not a zip")

    with pytest.raises(BuildError):
        install_archive(archive, tmp_path / "webapps/shop")
