"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from sdkforge.logging_config import LOGGER_NAME
from sdkforge.regen.core.config import RegenConfig
from sdkforge.regen.core.pipeline import PipelineDriver
from sdkforge.regen.core.store import ContentStore


@pytest.fixture(autouse=True)
def propagate_logs():
    """Keep package records visible to caplog after the CLI installs its handler."""
    logger = logging.getLogger(LOGGER_NAME)
    yield
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Return an empty SDK output directory."""
    output = tmp_path / "sdk"
    output.mkdir()
    return output


@pytest.fixture
def config(output_dir: Path) -> RegenConfig:
    return RegenConfig(output_dir=str(output_dir))


@pytest.fixture
def store(config: RegenConfig) -> ContentStore:
    return ContentStore(config.state_path, config.encoding)


@pytest.fixture
def driver(config: RegenConfig) -> PipelineDriver:
    return PipelineDriver(config)


def read(output_dir: Path, path: str) -> str:
    """Read an output file without newline translation."""
    with open(output_dir / path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write(output_dir: Path, path: str, text: str) -> None:
    """Simulate a manual edit."""
    target = output_dir / path
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(text)
