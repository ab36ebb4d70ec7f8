"""Shared fixtures for the specification pipeline tests."""

from pathlib import Path

import pytest
import yaml

from core.config import AppSettings
from core.domain.definitions import ToolMetadata


@pytest.fixture
def docker_metadata():
    return ToolMetadata(
        name="Docker",
        help="Docker is an open platform for developing, shipping, and running applications.",
        official_url="https://www.docker.com/",
        path_executable="docker",
    )


@pytest.fixture
def settings(tmp_path):
    return AppSettings(output_folder=tmp_path / "out")


@pytest.fixture
def write_yaml(tmp_path):
    """Write `data` as YAML under tmp_path and return the path."""

    def _write(relative: str, data) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
