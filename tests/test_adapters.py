"""
Tests for adapters — registry dispatch, mock, and command construction.
"""

import os
import sys

import pytest

from cva6_setup.adapters.base import ExecutionContext
from cva6_setup.adapters.languages.python import PythonAdapter, venv_python
from cva6_setup.adapters.mock import MockAdapter
from cva6_setup.adapters.registry import AdapterRegistry, default_registry
from cva6_setup.adapters.shell.command import ShellCommandAdapter
from cva6_setup.adapters.shell.runner import run_command
from cva6_setup.adapters.system import packages as packages_mod
from cva6_setup.adapters.system.packages import PackageManagerAdapter
from cva6_setup.adapters.vcs.git import GitAdapter
from cva6_setup.core.models.action import Action, Receipt


def _ctx(adapter: str, action_id: str = "test:action", **params) -> ExecutionContext:
    return ExecutionContext(action=Action(id=action_id, adapter=adapter, params=params))


# ── Runner ──────────────────────────────────────────────────────


class TestRunCommand:
    def test_success_captures_stdout(self):
        result = run_command(["sh", "-c", "echo hello"])
        assert result["ok"] is True
        assert result["return_code"] == 0
        assert result["stdout"] == "hello"

    def test_nonzero_exit(self):
        result = run_command(["sh", "-c", "echo boom >&2; exit 3"])
        assert result["ok"] is False
        assert result["return_code"] == 3
        assert result["error"] == "boom"

    def test_command_not_found(self):
        result = run_command(["definitely-not-a-real-command-xyz"])
        assert result["ok"] is False
        assert result["return_code"] == 127
        assert "not found" in result["error"]

    def test_env_overrides_do_not_leak(self, monkeypatch):
        monkeypatch.delenv("NUM_JOBS", raising=False)
        result = run_command(["sh", "-c", "echo $NUM_JOBS"], env_overrides={"NUM_JOBS": "6"})
        assert result["stdout"] == "6"
        assert "NUM_JOBS" not in os.environ

    def test_cwd(self, tmp_path):
        result = run_command(["pwd"], cwd=str(tmp_path))
        assert result["stdout"].endswith(tmp_path.name)


# ── Shell adapter ───────────────────────────────────────────────


class TestShellCommandAdapter:
    def test_validate_requires_argv_list(self):
        adapter = ShellCommandAdapter()
        ok, err = adapter.validate(_ctx("shell", command="echo hi"))
        assert not ok
        assert "command" in err

    def test_validate_rejects_missing_cwd(self, tmp_path):
        adapter = ShellCommandAdapter()
        ok, err = adapter.validate(_ctx("shell", command=["true"], cwd=str(tmp_path / "nope")))
        assert not ok
        assert "does not exist" in err

    def test_execute_failure_is_receipt(self):
        adapter = ShellCommandAdapter()
        receipt = adapter.execute(_ctx("shell", command=["sh", "-c", "exit 2"]))
        assert receipt.failed
        assert receipt.return_code == 2
        assert receipt.metadata["command"] == ["sh", "-c", "exit 2"]


# ── Git adapter ─────────────────────────────────────────────────


class TestGitAdapter:
    @pytest.mark.parametrize("operation,expected", [
        ("submodule_sync", ["git", "submodule", "update", "--init", "--recursive"]),
        ("apply_check", ["git", "apply", "--check", "/p.patch"]),
        ("apply_reverse_check", ["git", "apply", "--reverse", "--check", "/p.patch"]),
        ("apply", ["git", "apply", "/p.patch"]),
    ])
    def test_build_command(self, operation, expected):
        adapter = GitAdapter()
        ctx = _ctx("git", operation=operation, cwd="/src", patch="/p.patch")
        assert adapter.build_command(ctx) == expected

    def test_validate_unknown_operation(self):
        ok, err = GitAdapter().validate(_ctx("git", operation="rebase", cwd="/src"))
        assert not ok
        assert "Unknown operation" in err

    def test_validate_patch_required(self):
        ok, err = GitAdapter().validate(_ctx("git", operation="apply", cwd="/src"))
        assert not ok
        assert "patch" in err

    def test_validate_cwd_required(self):
        ok, _ = GitAdapter().validate(_ctx("git", operation="submodule_sync"))
        assert not ok


# ── Package manager adapter ─────────────────────────────────────


class TestPackageManagerAdapter:
    def test_install_uses_sudo_when_not_root(self, monkeypatch):
        monkeypatch.setattr(packages_mod, "_is_root", lambda: False)
        ctx = _ctx("packages", operation="install", manager="apt", packages=["bison", "flex"])
        assert PackageManagerAdapter().build_command(ctx) == [
            "sudo", "apt-get", "install", "-y", "bison", "flex",
        ]

    def test_install_without_sudo_as_root(self, monkeypatch):
        monkeypatch.setattr(packages_mod, "_is_root", lambda: True)
        ctx = _ctx("packages", operation="install", manager="dnf", packages=["bison"])
        assert PackageManagerAdapter().build_command(ctx) == ["dnf", "install", "-y", "bison"]

    def test_query_command(self):
        ctx = _ctx("packages", operation="query", manager="pacman", packages=["bison"])
        assert PackageManagerAdapter().build_command(ctx) == ["pacman", "-Q", "bison"]

    def test_query_takes_one_package(self):
        ctx = _ctx("packages", operation="query", manager="apt", packages=["a", "b"])
        ok, err = PackageManagerAdapter().validate(ctx)
        assert not ok
        assert "exactly one" in err

    def test_unsupported_manager(self):
        ctx = _ctx("packages", operation="install", manager="brew", packages=["a"])
        ok, err = PackageManagerAdapter().validate(ctx)
        assert not ok
        assert "brew" in err

    @pytest.mark.parametrize("status,installed", [
        ("install ok installed", True),
        ("deinstall ok config-files", False),
    ])
    def test_apt_query_reads_status(self, monkeypatch, status, installed):
        monkeypatch.setattr(
            packages_mod, "run_command",
            lambda cmd, **kw: {"ok": True, "return_code": 0, "stdout": status, "stderr": ""},
        )
        ctx = _ctx("packages", operation="query", manager="apt", packages=["bison"])
        receipt = PackageManagerAdapter().execute(ctx)
        assert receipt.ok
        assert receipt.metadata["installed"] is installed


# ── Python adapter ──────────────────────────────────────────────


class TestPythonAdapter:
    def test_pip_install_uses_venv_interpreter(self, tmp_path):
        venv = tmp_path / ".venv"
        ctx = _ctx(
            "python", operation="pip_install",
            venv=str(venv), requirements="/repo/requirements.txt",
        )
        cmd = PythonAdapter().build_command(ctx)
        assert cmd == [
            str(venv_python(venv)), "-m", "pip", "install", "-r", "/repo/requirements.txt",
        ]

    def test_venv_command(self, tmp_path):
        cmd = PythonAdapter().build_command(
            _ctx("python", operation="venv", venv=str(tmp_path / ".venv")),
        )
        assert cmd[1:] == ["-m", "venv", str(tmp_path / ".venv")]

    def test_validate_requires_requirements(self):
        ok, _ = PythonAdapter().validate(_ctx("python", operation="pip_install", venv="/v"))
        assert not ok

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX venv layout")
    def test_venv_python_layout(self, tmp_path):
        assert venv_python(tmp_path) == tmp_path / "bin" / "python"


# ── Registry ────────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_dispatches_to_registered_adapter(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="shell")
        registry.register(mock)
        receipt = registry.execute_action(Action(id="a", adapter="shell"))
        assert receipt.ok
        assert mock.action_ids == ["a"]

    def test_unknown_adapter_fails(self):
        receipt = AdapterRegistry().execute_action(Action(id="a", adapter="nope"))
        assert receipt.failed
        assert "No adapter" in receipt.error

    def test_validation_failure_is_receipt(self):
        registry = AdapterRegistry()
        registry.register(GitAdapter())
        receipt = registry.execute_action(Action(id="a", adapter="git", params={}))
        assert receipt.failed
        assert receipt.error.startswith("Validation failed")

    def test_adapter_exception_becomes_failure(self):
        class Exploding(MockAdapter):
            def execute(self, context):
                raise RuntimeError("kaboom")

        registry = AdapterRegistry()
        registry.register(Exploding(adapter_name="shell"))
        receipt = registry.execute_action(Action(id="a", adapter="shell"))
        assert receipt.failed
        assert "kaboom" in receipt.error

    def test_mock_mode_without_mock_succeeds(self):
        registry = default_registry(mock_mode=True)
        receipt = registry.execute_action(Action(
            id="packages:install", adapter="packages", params={"operation": "install"},
        ))
        assert receipt.ok
        assert receipt.metadata["mock"] is True

    def test_mock_mode_routes_to_mock(self, registry, mock_adapter):
        registry.register(ShellCommandAdapter())
        registry.execute_action(Action(id="x", adapter="shell", params={"command": ["false"]}))
        assert mock_adapter.action_ids == ["x"]

    def test_default_registry_adapters(self):
        assert sorted(default_registry().list_adapters()) == ["git", "packages", "python", "shell"]

    def test_adapter_status(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="git", available=False))
        status = registry.adapter_status()
        assert status["git"]["available"] is False
        assert status["git"]["type"] == "MockAdapter"


class TestMockAdapter:
    def test_custom_failure(self):
        mock = MockAdapter()
        mock.set_failure("patch:apply", "conflict", return_code=1)
        receipt = mock.execute(_ctx("git", action_id="patch:apply"))
        assert receipt.failed
        assert receipt.return_code == 1

    def test_custom_response(self):
        mock = MockAdapter()
        mock.set_response("a", Receipt.success(adapter="mock", action_id="a", output="12.2.0"))
        receipt = mock.execute(_ctx("x", action_id="a"))
        assert receipt.output == "12.2.0"
        assert mock.execute(_ctx("x", action_id="b")).output == "[mock] executed"

    def test_reset(self):
        mock = MockAdapter()
        mock.execute(_ctx("x"))
        mock.reset()
        assert mock.call_count == 0
