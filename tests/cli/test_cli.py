"""
Smoke tests for the typer CLI commands that need no database.
"""
from typer.testing import CliRunner

from vaultrag import __version__
from vaultrag.cli.main import app
from vaultrag.utils.vault_config import get_workspace

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_workspace_add_and_list(vault_root):
    result = runner.invoke(
        app,
        ["workspace-add", "fruit", "--vault", str(vault_root), "--folder", "notes", "--tag", "todo"],
    )
    assert result.exit_code == 0

    workspace = get_workspace(vault_root, "fruit")
    assert workspace.folders() == ["notes"]
    assert workspace.tags() == ["todo"]

    result = runner.invoke(app, ["workspace-list", "--vault", str(vault_root)])
    assert result.exit_code == 0
    assert "fruit: folder:notes, tag:todo" in result.stdout


def test_workspace_add_without_items_fails(vault_root):
    result = runner.invoke(app, ["workspace-add", "empty", "--vault", str(vault_root)])

    assert result.exit_code == 1
    assert get_workspace(vault_root, "empty") is None


def test_workspace_list_empty(vault_root):
    result = runner.invoke(app, ["workspace-list", "--vault", str(vault_root)])

    assert result.exit_code == 0
    assert "No workspaces defined." in result.stdout
