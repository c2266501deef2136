"""Tests for the trove command line."""

import json
import os

import pytest
from typer.testing import CliRunner

from trove.cli import app
from trove.locator import MARKER_FILENAME
from trove.store import CONFIG_FILENAME, load_store


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def initialized(runner, temp_home):
    """Run 'trove init ~/dotfiles' and return the store directory."""
    result = runner.invoke(app, ["init", str(temp_home / "dotfiles")])
    assert result.exit_code == 0, result.output
    return temp_home / "dotfiles"


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "symlink-based dotfiles manager" in result.output

    def test_version_command(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "trove version" in result.output

    def test_completion_command(self, runner):
        result = runner.invoke(app, ["completion"])
        assert result.exit_code == 0
        assert "install-completion" in result.output.lower()


class TestInit:
    """Test 'trove init'."""

    def test_init_creates_store(self, runner, temp_home):
        result = runner.invoke(app, ["init", "dotfiles"])

        assert result.exit_code == 0
        assert "Created store" in result.output
        assert (temp_home / "dotfiles" / CONFIG_FILENAME).is_file()
        marker = json.loads((temp_home / MARKER_FILENAME).read_text())
        assert marker == {"config_path": "$HOME/dotfiles/trove.json"}

    def test_init_existing_store(self, runner, initialized):
        result = runner.invoke(app, ["init", str(initialized)])
        assert result.exit_code == 0
        assert "existing store" in result.output

    def test_init_on_file(self, runner, temp_home):
        (temp_home / "dotfiles").write_text("x")
        result = runner.invoke(app, ["init", "dotfiles"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_commands_need_init(self, runner, temp_home):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "trove init" in result.output


class TestEntryCommands:
    """Test 'trove add' and 'trove remove'."""

    def test_add(self, runner, initialized, temp_home):
        (temp_home / ".bashrc").write_text("export A=1\n")

        result = runner.invoke(
            app, ["add", ".bashrc", "bashrc", "-c", "shell,login", "--quiet"]
        )

        assert result.exit_code == 0, result.output
        assert (temp_home / ".bashrc").is_symlink()
        entry = load_store(initialized / CONFIG_FILENAME).get("bashrc")
        assert entry.host_path == "$HOME/.bashrc"
        assert entry.categories == {"shell", "login"}

    def test_add_with_save_path(self, runner, initialized, temp_home):
        (temp_home / "vimrc.new").write_text("set nu\n")

        result = runner.invoke(
            app, ["add", "vimrc.new", "vimrc", "--save-path", "$HOME/.vimrc", "-q"]
        )

        assert result.exit_code == 0, result.output
        assert (temp_home / ".vimrc").is_symlink()
        assert not (temp_home / "vimrc.new").exists()

    def test_add_missing_source(self, runner, initialized):
        result = runner.invoke(app, ["add", "nothing-here", "nothing"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_add_duplicate_name(self, runner, initialized, temp_home):
        (temp_home / ".a").write_text("a")
        (temp_home / ".b").write_text("b")
        runner.invoke(app, ["add", ".a", "same", "-q"])

        result = runner.invoke(app, ["add", ".b", "same", "-q"])

        assert result.exit_code == 1
        assert not (temp_home / ".b").is_symlink()

    def test_remove_by_name(self, runner, initialized, temp_home):
        (temp_home / ".bashrc").write_text("export A=1\n")
        runner.invoke(app, ["add", ".bashrc", "bashrc", "-q"])

        result = runner.invoke(app, ["remove", "--name", "bashrc", "--delete", "-q"])

        assert result.exit_code == 0, result.output
        assert not (temp_home / ".bashrc").is_symlink()
        assert (temp_home / ".bashrc").read_text() == "export A=1\n"
        assert not (initialized / "bashrc").exists()

    def test_remove_needs_one_selector(self, runner, initialized):
        result = runner.invoke(app, ["remove"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["remove", "-n", "a", "-p", "/tmp/a"])
        assert result.exit_code == 1


class TestDeployCommands:
    """Test 'trove deploy', 'trove pack' and 'trove status'."""

    @pytest.fixture
    def tracked(self, runner, initialized, temp_home):
        (temp_home / ".bashrc").write_text("export A=1\n")
        (temp_home / ".vimrc").write_text("set nu\n")
        runner.invoke(app, ["add", ".bashrc", "bashrc", "-c", "shell", "-q"])
        runner.invoke(app, ["add", ".vimrc", "vimrc", "-c", "editor", "-q"])
        return initialized

    def test_pack_and_deploy(self, runner, tracked, temp_home):
        result = runner.invoke(app, ["pack"])
        assert result.exit_code == 0, result.output
        assert "Packed 2" in result.output
        assert not os.path.lexists(temp_home / ".bashrc")

        result = runner.invoke(app, ["deploy", "--category", "shell"])
        assert result.exit_code == 0, result.output
        assert "Deployed bashrc" in result.output
        assert (temp_home / ".bashrc").is_symlink()
        assert not os.path.lexists(temp_home / ".vimrc")

    def test_deploy_conflict_exits_nonzero(self, runner, tracked, temp_home):
        runner.invoke(app, ["pack", "-q"])
        (temp_home / ".vimrc").write_text("mine")

        result = runner.invoke(app, ["deploy"])

        assert result.exit_code == 1
        assert "vimrc" in result.output
        assert (temp_home / ".bashrc").is_symlink()
        assert (temp_home / ".vimrc").read_text() == "mine"

    def test_deploy_both_selectors(self, runner, tracked):
        result = runner.invoke(app, ["deploy", "-c", "shell", "-n", "bashrc"])
        assert result.exit_code == 1

    def test_status(self, runner, tracked):
        runner.invoke(app, ["pack", "-n", "vimrc", "-q"])

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0, result.output
        assert "bashrc" in result.output
        assert "deployed" in result.output
        assert "not-deployed" in result.output

    def test_status_empty(self, runner, initialized):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "No entries tracked" in result.output

    def test_config_override(self, runner, tracked, temp_home):
        os.remove(temp_home / MARKER_FILENAME)

        result = runner.invoke(
            app, ["--config", str(tracked / CONFIG_FILENAME), "status"]
        )

        assert result.exit_code == 0, result.output
        assert "vimrc" in result.output
