"""
Tests for models, settings loading and answers files.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cva6_setup.core.config.loader import (
    ConfigError,
    find_settings_file,
    load_answers,
    load_settings,
)
from cva6_setup.core.errors import (
    InvalidInputError,
    PatchConflictError,
    ProvisioningError,
    SubprocessFailureError,
    raise_for_receipt,
)
from cva6_setup.core.models import (
    BuildConfig,
    HostInfo,
    InstallConfig,
    InstallPaths,
    PackageSet,
    ProvisioningState,
    Receipt,
    SetupSettings,
)
from cva6_setup.core.models.settings import DEFAULT_PACKAGES, default_profile_path
from cva6_setup.core.services.prompts import parse_yes_no
from cva6_setup.core.use_cases.config_check import check_config


def _config(threads: int = 4, simulators: str = "") -> InstallConfig:
    return InstallConfig(
        paths=InstallPaths(repo=Path("/home/u/cva6"), install=Path("/home/u/riscv")),
        build=BuildConfig(threads=threads, config_name="gcc-13.2.0-BareMetal"),
        simulators=simulators,
    )


# ── Models ──────────────────────────────────────────────────────


class TestModels:
    def test_paths_must_be_absolute(self):
        with pytest.raises(ValidationError):
            InstallPaths(repo=Path("cva6"), install=Path("/opt/riscv"))

    def test_threads_positive(self):
        with pytest.raises(ValidationError):
            BuildConfig(threads=0, config_name="x")

    @pytest.mark.parametrize("name", ["", "has space", "-leading", "a/b"])
    def test_config_name_rejected(self, name):
        with pytest.raises(ValidationError):
            BuildConfig(threads=1, config_name=name)

    def test_processing_units_positive(self):
        with pytest.raises(ValidationError):
            HostInfo(gcc_version="13.2.0", processing_units=0)

    def test_missing_keeps_declaration_order(self):
        pkgs = PackageSet(required=["c", "a", "b"], installed=["a"])
        assert pkgs.missing == ["c", "b"]

    def test_subprocess_env(self):
        env = _config(threads=6).subprocess_env()
        assert env == {
            "RISCV": "/home/u/riscv",
            "NUM_JOBS": "6",
            "CONFIG_NAME": "gcc-13.2.0-BareMetal",
        }

    def test_subprocess_env_with_simulators(self):
        env = _config(simulators="veri-testharness").subprocess_env()
        assert env["DV_SIMULATORS"] == "veri-testharness"


class TestProvisioningState:
    def test_flags_start_unset(self):
        state = ProvisioningState()
        assert state.install_docs is None
        assert state.run_tests is None
        assert state.persist_env is None

    def test_decide_once(self):
        state = ProvisioningState()
        state.decide("run_tests", False)
        assert state.run_tests is False
        with pytest.raises(ValueError):
            state.decide("run_tests", True)

    def test_unknown_flag(self):
        with pytest.raises(KeyError):
            ProvisioningState().decide("reboot", True)


# ── Errors ──────────────────────────────────────────────────────


class TestErrors:
    def test_str_includes_stage(self):
        err = ProvisioningError("boom", stage="build")
        assert str(err) == "[build] boom"
        assert ProvisioningError("boom").stage is None

    def test_patch_conflict_is_subprocess_failure(self):
        assert issubclass(PatchConflictError, SubprocessFailureError)

    def test_raise_for_receipt(self):
        receipt = Receipt.failure(
            adapter="shell", action_id="toolchain:build", error="make: *** Error 2",
            metadata={"command": ["bash", "build.sh"], "return_code": 2},
        )
        with pytest.raises(SubprocessFailureError) as exc:
            raise_for_receipt(receipt, "Building")
        assert exc.value.return_code == 2
        assert exc.value.command == ["bash", "build.sh"]
        assert exc.value.message.startswith("Building failed")

    def test_raise_for_receipt_ok(self):
        raise_for_receipt(Receipt.success(adapter="shell", action_id="a"), "x")


# ── Settings ────────────────────────────────────────────────────


class TestSettings:
    def test_defaults(self):
        settings = SetupSettings()
        assert settings.packages == DEFAULT_PACKAGES
        assert settings.package_manager == "apt"
        assert settings.fallback_gcc_version == "13.3.0"

    def test_resolved_locations(self):
        settings = SetupSettings()
        repo = Path("/r")
        assert settings.builder_dir(repo) == Path("/r/util/toolchain-builder")
        assert settings.gcc_source_dir(repo) == Path("/r/util/toolchain-builder/src/gcc")
        assert settings.patch_path(repo) == Path("/r/util/toolchain-builder/gcc-cva6-tune.patch")
        assert settings.venv_path(repo) == Path("/r/.venv")

    @pytest.mark.parametrize("shell,profile", [
        ("/bin/bash", "~/.bashrc"),
        ("/usr/bin/zsh", "~/.zshrc"),
        ("/usr/bin/fish", "~/.config/fish/config.fish"),
        ("/bin/dash", "~/.profile"),
    ])
    def test_profile_follows_login_shell(self, monkeypatch, shell, profile):
        monkeypatch.setenv("SHELL", shell)
        assert default_profile_path() == profile

    def test_blank_package_rejected(self):
        with pytest.raises(ValidationError):
            SetupSettings(packages=["bison", " "])

    def test_unknown_package_manager_rejected(self):
        with pytest.raises(ValidationError):
            SetupSettings(package_manager="brew")


class TestLoader:
    def test_no_file_means_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_settings() == SetupSettings()

    def test_find_walks_up(self, tmp_path):
        (tmp_path / "cva6-setup.yml").write_text("package_manager: dnf\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == (tmp_path / "cva6-setup.yml").resolve()

    def test_load_explicit(self, tmp_path):
        path = tmp_path / "s.yml"
        path.write_text("packages: [bison, flex]\nsimulators: spike\n")
        settings = load_settings(path)
        assert settings.packages == ["bison", "flex"]
        assert settings.simulators == "spike"

    def test_top_level_key_unwrapped(self, tmp_path):
        path = tmp_path / "s.yml"
        path.write_text("cva6_setup:\n  package_manager: pacman\n")
        assert load_settings(path).package_manager == "pacman"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "s.yml"
        path.write_text("packages: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_invalid_settings(self, tmp_path):
        path = tmp_path / "s.yml"
        path.write_text("package_manager: brew\n")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "s.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "absent.yml")


class TestAnswers:
    def test_values_read_verbatim(self, tmp_path):
        path = tmp_path / "answers.yml"
        path.write_text(
            "repo_path: ~/cva6\n"
            "use_all_threads: no\n"
            "threads: 8\n"
            "run_tests: yes\n"
            "config_name:\n"
        )
        assert load_answers(path) == {
            "repo_path": "~/cva6",
            "use_all_threads": "no",
            "threads": "8",
            "run_tests": "yes",
            "config_name": "",
        }

    @pytest.mark.parametrize("raw", ["off", "on", "true", "false"])
    def test_yaml_booleans_not_coerced(self, tmp_path, raw):
        path = tmp_path / "answers.yml"
        path.write_text(f"use_all_threads: {raw}\n")
        answers = load_answers(path)
        assert answers == {"use_all_threads": raw}
        with pytest.raises(InvalidInputError):
            parse_yes_no(answers["use_all_threads"], "use_all_threads")

    def test_nested_answer_rejected(self, tmp_path):
        path = tmp_path / "answers.yml"
        path.write_text("simulators:\n  - spike\n")
        with pytest.raises(ConfigError, match="simulators"):
            load_answers(path)

    def test_missing_answers_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_answers(tmp_path / "nope.yml")


class TestConfigCheck:
    def test_no_file_warns(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = check_config()
        assert result.valid
        assert any("No cva6-setup.yml" in w for w in result.warnings)

    def test_absolute_repo_paths_are_errors(self, tmp_path):
        path = tmp_path / "cva6-setup.yml"
        path.write_text("venv_dir: /opt/venv\nbuild_script: /tmp/build.sh\n")
        result = check_config(path)
        assert not result.valid
        assert any("venv_dir" in e for e in result.errors)
        assert any("build_script" in e for e in result.errors)

    def test_duplicate_packages_warn(self, tmp_path):
        path = tmp_path / "cva6-setup.yml"
        path.write_text("packages: [bison, flex, bison]\n")
        result = check_config(path)
        assert result.valid
        assert any("bison" in w for w in result.warnings)

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "cva6-setup.yml"
        path.write_text("package_manager: brew\n")
        result = check_config(path)
        assert not result.valid
        assert result.to_dict()["settings"] is None
