"""
Tests for CLI commands: run end to end against a fake cargo, which, dirs.
"""

import json
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from craterun.core.errors import EXIT_INSTALL_FAILED, EXIT_USAGE
from craterun.main import cli
from tests.helpers import install_fake_cargo, make_executable, read_lines

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell scripts")


class _Env:
    """Paths and environment for one isolated CLI run."""

    def __init__(self, tmp_path: Path) -> None:
        self.home = tmp_path / "home"
        self.home.mkdir()
        self.fake_bin = tmp_path / "fakebin"
        install_fake_cargo(self.fake_bin)
        self.install_dir = tmp_path / "install"
        self.cargo_log = tmp_path / "cargo.log"
        self.run_log = tmp_path / "run.log"
        self.vars: dict[str, str | None] = {
            "HOME": str(self.home),
            "PATH": f"{self.fake_bin}:/usr/bin:/bin",
            "XDG_CONFIG_HOME": str(tmp_path / "xdg-config"),
            "CRATERUN_INSTALL_DIR": str(self.install_dir),
            "CRATERUN_CONFIG": None,
            "CRATERUN_LOG_LEVEL": None,
            "CRATERUN_LOG_FILE": None,
            "CARGO_HOME": None,
            "CARGO_INSTALL_ROOT": None,
            "FAKE_CARGO_LOG": str(self.cargo_log),
            "FAKE_RUN_LOG": str(self.run_log),
        }

    def invoke(self, args, **extra):
        return CliRunner().invoke(cli, args, env={**self.vars, **extra})

    @property
    def cargo_calls(self) -> list[str]:
        return read_lines(self.cargo_log)

    @property
    def run_args(self) -> list[str]:
        return read_lines(self.run_log)


@pytest.fixture
def env(tmp_path) -> _Env:
    return _Env(tmp_path)


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "run a crate's binary" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_run_help(self):
        result = CliRunner().invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        assert "--build-from-source" in result.output


class TestRunUsage:
    def test_missing_specifier(self, env):
        result = env.invoke(["run"])
        assert result.exit_code == EXIT_USAGE
        assert "missing package specifier" in result.output
        assert "Usage:" in result.output

    def test_unknown_option(self, env):
        result = env.invoke(["run", "--nope", "fakecrate"])
        assert result.exit_code == EXIT_USAGE
        assert env.cargo_calls == []

    def test_bad_specifier(self, env):
        result = env.invoke(["run", "a@1@2"])
        assert result.exit_code == EXIT_USAGE

    def test_path_as_binary_rejected(self, env):
        denied = env.home / ".cargo" / "bin" / "rg"
        make_executable(denied, "#!/bin/sh\nexit 42\n")
        result = env.invoke(["run", "--bin", str(denied), "ripgrep"])
        assert result.exit_code == EXIT_USAGE
        assert "must not be a path" in result.output
        assert env.cargo_calls == []

    def test_invalid_config(self, env, tmp_path):
        config = tmp_path / "bad.yml"
        config.write_text("nonsense_key: 1\n")
        result = env.invoke(["--config", str(config), "run", "fakecrate"])
        assert result.exit_code == EXIT_USAGE
        assert "nonsense_key" in result.output


@posix_only
class TestRunEndToEnd:
    def test_first_run_installs_prebuilt(self, env):
        result = env.invoke(["run", "fakecrate", "--", "a", "b"])

        assert result.exit_code == 0, result.output
        assert len(env.cargo_calls) == 1
        assert env.cargo_calls[0] == (
            "binstall --no-confirm --disable-strategies compile fakecrate"
        )
        assert env.run_args == ["a", "b"]
        assert f"Installing fakecrate with cargo-binstall into {env.install_dir}" in result.output
        assert "Installed fakecrate with cargo-binstall" in result.output
        assert "installed fakecrate" in result.output

    def test_second_run_makes_no_installer_calls(self, env):
        env.invoke(["run", "fakecrate"])
        result = env.invoke(["run", "fakecrate", "--version"])

        assert result.exit_code == 0, result.output
        assert len(env.cargo_calls) == 1
        assert env.run_args == ["--version"]
        assert "Installing" not in result.output

    def test_pinned_version(self, env):
        result = env.invoke(["run", "fakecrate@1.2.3"])
        assert result.exit_code == 0, result.output
        assert env.cargo_calls[0].endswith(" fakecrate@1.2.3")

    def test_fallback_to_source(self, env):
        result = env.invoke(["run", "fakecrate@1.2.3"], FAKE_BINSTALL_FAIL="1")

        assert result.exit_code == 0, result.output
        assert len(env.cargo_calls) == 2
        assert env.cargo_calls[0].startswith("binstall")
        assert env.cargo_calls[1].startswith("install --target-dir ")
        assert env.cargo_calls[1].endswith(" fakecrate --version 1.2.3")
        assert "falling back: building fakecrate@1.2.3 with cargo install" in result.output

    def test_force_build_from_source(self, env):
        env.invoke(["run", "fakecrate"])
        result = env.invoke(["run", "--force", "--build-from-source", "fakecrate"])

        assert result.exit_code == 0, result.output
        assert len(env.cargo_calls) == 2
        assert env.cargo_calls[1].startswith("install --force --target-dir ")
        assert "binstall" not in env.cargo_calls[1]

    def test_bin_override(self, env):
        result = env.invoke(["run", "-s", "--bin", "tool", "fakecrate", "--", "x"])
        assert result.exit_code == 0, result.output
        assert env.cargo_calls[0].endswith(" fakecrate --bin tool")
        assert (env.install_dir / "bin" / "tool").is_file()
        assert env.run_args == ["x"]

    def test_binstall_missing_goes_straight_to_source(self, env):
        (env.fake_bin / "cargo-binstall").unlink()
        result = env.invoke(["run", "fakecrate"])

        assert result.exit_code == 0, result.output
        assert len(env.cargo_calls) == 1
        assert env.cargo_calls[0].startswith("install ")
        assert "cargo-binstall not found; falling back" in result.output

    def test_exit_code_passthrough(self, env):
        result = env.invoke(["run", "fakecrate"], FAKE_EXIT_CODE="7")
        assert result.exit_code == 7

    def test_quiet_hides_installer_output(self, env):
        result = env.invoke(["run", "-q", "fakecrate"])

        assert result.exit_code == 0, result.output
        assert "installed fakecrate" not in result.output
        assert "Installed fakecrate with cargo-binstall" in result.output
        assert "--quiet" in env.cargo_calls[0]

    def test_quiet_failure_shows_diagnostics(self, env):
        result = env.invoke(
            ["run", "-q", "fakecrate"], FAKE_BINSTALL_FAIL="1", FAKE_INSTALL_FAIL="1",
        )

        assert result.exit_code == EXIT_INSTALL_FAILED
        assert "no prebuilt binary available" in result.output
        assert "error: could not compile" in result.output
        assert "Failed to install fakecrate" in result.output
        assert not (env.install_dir / "bin" / "fakecrate").exists()

    def test_install_without_binary(self, env):
        result = env.invoke(["run", "fakecrate"], FAKE_SKIP_BINARY="1")
        assert result.exit_code == EXIT_INSTALL_FAILED
        assert "was not found in" in result.output

    def test_no_cargo(self, env, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("cargo: /nonexistent/cargo\n")
        result = env.invoke(["--config", str(config), "run", "fakecrate"])

        assert result.exit_code == EXIT_INSTALL_FAILED
        assert "Failed to install fakecrate" in result.output
        assert env.cargo_calls == []

    def test_deny_listed_copy_is_ignored(self, env):
        cargo_bin = env.home / ".cargo" / "bin"
        make_executable(cargo_bin / "fakecrate", "#!/bin/sh\nexit 42\n")
        result = env.invoke(["run", "fakecrate"], PATH=f"{cargo_bin}:{env.fake_bin}:/usr/bin:/bin")

        assert result.exit_code == 0, result.output
        assert len(env.cargo_calls) == 1

    def test_allowed_path_copy_is_used(self, env, tmp_path):
        tools = tmp_path / "tools"
        make_executable(tools / "fakecrate", "#!/bin/sh\nexit 3\n")
        result = env.invoke(["run", "fakecrate"], PATH=f"{tools}:{env.fake_bin}:/usr/bin:/bin")

        assert result.exit_code == 3
        assert env.cargo_calls == []

    def test_user_cargo_env_not_followed(self, env, tmp_path):
        elsewhere = tmp_path / "elsewhere"
        result = env.invoke(
            ["run", "fakecrate"],
            CARGO_INSTALL_ROOT=str(elsewhere),
            CARGO_HOME=str(tmp_path / "cargo-home"),
        )
        assert result.exit_code == 0, result.output
        assert (env.install_dir / "bin" / "fakecrate").is_file()
        assert not elsewhere.exists()


@posix_only
class TestWhichCommand:
    def test_not_installed(self, env):
        result = env.invoke(["which", "fakecrate"])
        assert result.exit_code == EXIT_INSTALL_FAILED
        assert env.cargo_calls == []

    def test_installed(self, env):
        env.invoke(["run", "fakecrate"])
        result = env.invoke(["which", "fakecrate"])
        assert result.exit_code == 0
        assert str(env.install_dir / "bin" / "fakecrate") in result.output

    def test_json(self, env):
        make_executable(env.install_dir / "bin" / "rg")
        result = env.invoke(["which", "ripgrep", "--bin", "rg", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["found"] is True
        assert data["binary"] == "rg"
        assert data["origin"] == "install-dir"


class TestDirsCommand:
    def test_json(self, env):
        result = env.invoke(["dirs", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["install_dir"] == str(env.install_dir)
        assert data["bin_dir"] == str(env.install_dir / "bin")
        assert str(env.home / ".cargo" / "bin") in data["deny_dirs"]
        assert data["config_file"] is None

    def test_human(self, env):
        result = env.invoke(["dirs"])
        assert result.exit_code == 0
        assert str(env.install_dir) in result.output
        assert "/usr/local/bin" in result.output


class TestLogFileOption:
    def test_unwritable_log_file_is_not_fatal(self, env, tmp_path):
        result = env.invoke(
            ["dirs", "--json"], CRATERUN_LOG_FILE=str(tmp_path / "missing-dir" / "log"),
        )
        assert result.exit_code == 0
        assert "Traceback" not in result.output
        assert "cannot open log file" in result.output
