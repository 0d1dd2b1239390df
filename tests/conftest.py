from __future__ import annotations

from typing import Iterator

import pytest

from asset_fileio.config import get_settings


@pytest.fixture(autouse=True)
def _test_env(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    root = tmp_path_factory.mktemp("fileio_test")
    (root / "scratch").mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("ASSET_FILEIO_TEMP_DIR", str(root / "scratch"))
    monkeypatch.delenv("ASSET_FILEIO_TEMP_PREFIX", raising=False)
    monkeypatch.delenv("ASSET_FILEIO_SCRATCH_STRATEGY", raising=False)
    monkeypatch.delenv("ASSET_FILEIO_COPY_STRATEGY", raising=False)
    monkeypatch.delenv("ASSET_FILEIO_COPY_CHUNK_SIZE", raising=False)
    monkeypatch.delenv("ASSET_FILEIO_SCRATCH_MAX_ATTEMPTS", raising=False)
    monkeypatch.delenv("ASSET_FILEIO_LOG_STDOUT", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def scratch_dir() -> str:
    return str(get_settings().temp_dir)
