"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from cva6_setup.adapters.mock import MockAdapter
from cva6_setup.adapters.registry import AdapterRegistry
from cva6_setup.core.models.settings import SetupSettings


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point HOME (and so ``~``) at a scratch directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.delenv("CVA6_SETUP_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CVA6_SETUP_LOG_FILE", raising=False)
    return home


@pytest.fixture
def cva6_repo(isolated_home: Path) -> Path:
    """A minimal CVA6 checkout at ~/cva6."""
    repo = isolated_home / "cva6"
    builder = repo / "util" / "toolchain-builder"
    (builder / "src" / "gcc").mkdir(parents=True)
    (builder / "get-toolchain.sh").write_text("#!/bin/bash\n")
    (builder / "build-toolchain.sh").write_text("#!/bin/bash\n")
    (builder / "gcc-cva6-tune.patch").write_text("--- a/x\n+++ b/x\n")

    (repo / "verif" / "sim" / "dv").mkdir(parents=True)
    (repo / "verif" / "sim" / "dv" / "requirements.txt").write_text("pyyaml\n")
    (repo / "verif" / "regress").mkdir(parents=True)
    (repo / "verif" / "regress" / "smoke-tests.sh").write_text("#!/bin/bash\n")

    (repo / "docs").mkdir()
    (repo / "docs" / "requirements.txt").write_text("sphinx\n")
    return repo


@pytest.fixture
def settings() -> SetupSettings:
    return SetupSettings()


@pytest.fixture
def mock_adapter() -> MockAdapter:
    mock = MockAdapter(adapter_name="mock")
    mock.set_output("detect:gcc-version", "13.2.0\n")
    return mock


@pytest.fixture
def registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    """Registry routing every action to ``mock_adapter``."""
    reg = AdapterRegistry()
    reg.set_mock_mode(True, mock_adapter=mock_adapter)
    return reg
