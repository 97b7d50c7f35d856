"""Shared pytest fixtures for flowsight tests."""

from pathlib import Path
from typing import Callable, Dict

import pytest

from flowsight.repositories.persistence import InMemoryPersistenceGateway


@pytest.fixture
def gateway() -> InMemoryPersistenceGateway:
    return InMemoryPersistenceGateway()


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write a {relative path: content} mapping under tmp_path and return the root."""

    def _write(files: Dict[str, str]) -> Path:
        for relative_path, content in files.items():
            file_path = tmp_path / relative_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
