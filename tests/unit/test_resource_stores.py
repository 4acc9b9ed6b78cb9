"""Unit tests for the filesystem and packaged resource stores."""

import importlib
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

from ravesql.config import RepositoryConfig
from ravesql.exceptions import ResourceNotFoundError
from ravesql.storage import FileSystemResourceStore, PackageResourceStore, ResourceStore


@pytest.fixture
def sql_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[str, None, None]:
    """An importable package with ``sql/people/select_all.sql`` bundled."""
    package_dir = tmp_path / "bundled_queries"
    (package_dir / "sql" / "people").mkdir(parents=True)
    (package_dir / "__init__.py").write_text("", encoding="utf-8")
    (package_dir / "sql" / "people" / "select_all.sql").write_text("SELECT * FROM person", encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    importlib.invalidate_caches()
    yield "bundled_queries"
    sys.modules.pop("bundled_queries", None)


def test_filesystem_store_reads_relative_paths(fixture_store: FileSystemResourceStore) -> None:
    assert fixture_store.fetch("sql/person/select_by_id.sql").startswith(b"SELECT id, name")
    assert fixture_store.exists("sql/person/select_by_id.sql")
    assert not fixture_store.exists("sql/person/absent.sql")
    assert isinstance(fixture_store, ResourceStore)


def test_filesystem_store_missing_file(fixture_store: FileSystemResourceStore) -> None:
    with pytest.raises(ResourceNotFoundError) as exc_info:
        fixture_store.fetch("sql/person/absent.sql")
    assert exc_info.value.path == "sql/person/absent.sql"


def test_filesystem_store_directory_is_not_a_resource(fixture_store: FileSystemResourceStore) -> None:
    with pytest.raises(ResourceNotFoundError):
        fixture_store.fetch("sql/person")


@pytest.mark.parametrize("path", ["../conftest.py", "sql/../../conftest.py", "/etc/passwd"])
def test_filesystem_store_rejects_paths_outside_root(fixture_store: FileSystemResourceStore, path: str) -> None:
    with pytest.raises(ResourceNotFoundError):
        fixture_store.fetch(path)
    assert not fixture_store.exists(path)


def test_filesystem_store_accepts_file_uri(sql_root: Path) -> None:
    store = FileSystemResourceStore(sql_root.as_uri())
    assert store.root == sql_root.resolve()
    assert store.exists("sql/person/select_all.sql")


def test_filesystem_store_defaults_to_working_directory(sql_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(sql_root)
    assert FileSystemResourceStore().fetch("sql/person/insert.sql").startswith(b"INSERT INTO person")


def test_package_store_reads_bundled_resources(sql_package: str) -> None:
    store = PackageResourceStore(sql_package)

    assert store.fetch("sql/people/select_all.sql") == b"SELECT * FROM person"
    assert store.exists("sql/people/select_all.sql")
    assert not store.exists("sql/people/absent.sql")
    assert isinstance(store, ResourceStore)


def test_package_store_accepts_module_objects(sql_package: str) -> None:
    store = PackageResourceStore(importlib.import_module(sql_package))
    assert store.fetch("sql/people/select_all.sql") == b"SELECT * FROM person"
    assert "bundled_queries" in repr(store)


def test_package_store_missing_resource(sql_package: str) -> None:
    store = PackageResourceStore(sql_package)

    with pytest.raises(ResourceNotFoundError):
        store.fetch("sql/people/absent.sql")
    with pytest.raises(ResourceNotFoundError):
        store.fetch("sql/../secrets.sql")


def test_package_store_missing_package() -> None:
    with pytest.raises(ResourceNotFoundError):
        PackageResourceStore("no_such_package_for_ravesql").fetch("sql/a.sql")


def test_config_creates_matching_store(sql_root: Path, sql_package: str) -> None:
    filesystem = RepositoryConfig(resource_root=sql_root).create_store()
    packaged = RepositoryConfig(resource_root=sql_root, resource_package=sql_package).create_store()

    assert isinstance(filesystem, FileSystemResourceStore)
    assert isinstance(packaged, PackageResourceStore)
