import json

import pytest

from vaultrag.schema import Workspace, WorkspaceItem, WorkspaceItemType
from vaultrag.utils.vault_config import (
    delete_workspace,
    get_vault_config,
    get_workspace,
    list_workspaces,
    save_workspace,
    update_vault_config,
)


def test_update_vault_config_creates_config(tmp_path):
    vault_path = tmp_path / "vault"
    vault_path.mkdir()

    update_vault_config(vault_path, {"notes": "first"})

    config_path = vault_path / ".vaultrag" / "config.json"
    saved_config = json.loads(config_path.read_text(encoding="utf-8"))

    assert saved_config["notes"] == "first"
    assert saved_config["version"] == "1.0"
    assert "created_at" in saved_config
    assert "vault_id" not in saved_config


def test_get_vault_config_missing_returns_empty(tmp_path):
    vault_path = tmp_path / "vault"
    vault_path.mkdir()

    assert get_vault_config(vault_path) == {}


def test_update_vault_config_preserves_existing_values(tmp_path):
    vault_path = tmp_path / "vault"
    vault_path.mkdir()
    config_path = vault_path / ".vaultrag" / "config.json"
    config_path.parent.mkdir(parents=True)

    config_path.write_text(
        json.dumps({"created_at": "2024-01-01T00:00:00", "version": "1.0"}),
        encoding="utf-8",
    )

    update_vault_config(vault_path, {"version": "2.0", "notes": "updated"})
    updated = json.loads(config_path.read_text(encoding="utf-8"))

    assert updated["created_at"] == "2024-01-01T00:00:00"
    assert updated["version"] == "2.0"
    assert updated["notes"] == "updated"
    assert "updated_at" in updated


def test_save_and_get_workspace(tmp_path):
    workspace = Workspace(
        name="writing",
        content=[WorkspaceItem.folder("drafts"), WorkspaceItem.tag("#todo")],
    )

    save_workspace(tmp_path, workspace)
    loaded = get_workspace(tmp_path, "writing")

    assert loaded == workspace
    assert loaded.content[1].type == WorkspaceItemType.TAG
    assert loaded.folders() == ["drafts"]
    assert loaded.tags() == ["#todo"]


def test_save_workspace_replaces_existing(tmp_path):
    save_workspace(tmp_path, Workspace(name="w", content=[WorkspaceItem.folder("a")]))
    save_workspace(tmp_path, Workspace(name="w", content=[WorkspaceItem.folder("b")]))

    assert get_workspace(tmp_path, "w").folders() == ["b"]
    assert len(list_workspaces(tmp_path)) == 1


def test_save_workspace_requires_name(tmp_path):
    with pytest.raises(ValueError):
        save_workspace(tmp_path, Workspace(content=[WorkspaceItem.folder("a")]))


def test_list_workspaces_sorted_by_name(tmp_path):
    save_workspace(tmp_path, Workspace(name="zeta"))
    save_workspace(tmp_path, Workspace(name="alpha"))

    assert [w.name for w in list_workspaces(tmp_path)] == ["alpha", "zeta"]


def test_delete_workspace(tmp_path):
    save_workspace(tmp_path, Workspace(name="w"))

    assert delete_workspace(tmp_path, "w") is True
    assert delete_workspace(tmp_path, "w") is False
    assert get_workspace(tmp_path, "w") is None


def test_workspaces_do_not_disturb_other_config(tmp_path):
    update_vault_config(tmp_path, {"notes": "keep"})

    save_workspace(tmp_path, Workspace(name="w"))

    assert get_vault_config(tmp_path)["notes"] == "keep"
