"""
Per-vault configuration stored in ``.vaultrag/config.json``.
Holds the named workspace definitions plus creation and update timestamps.
"""
from pathlib import Path
from datetime import datetime
import json
from typing import List, Optional

from vaultrag.schema import Workspace


def _config_path(vault_path: Path) -> Path:
    return Path(vault_path) / ".vaultrag" / "config.json"


def _new_config() -> dict:
    return {
        'created_at': datetime.utcnow().isoformat(),
        'version': '1.0'
    }


def get_vault_config(vault_path: Path) -> dict:
    """
    Read vault configuration.

    Returns:
        dict: Vault configuration or empty dict if not found
    """
    config_path = _config_path(vault_path)

    if not config_path.exists():
        return {}

    return json.loads(config_path.read_text(encoding='utf-8'))


def update_vault_config(vault_path: Path, updates: dict) -> None:
    """
    Update vault configuration with new values.

    Args:
        vault_path: Path to the vault root directory
        updates: Dictionary of values to update
    """
    config_path = _config_path(vault_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.exists():
        config = json.loads(config_path.read_text(encoding='utf-8'))
    else:
        config = _new_config()

    config.update(updates)
    config['updated_at'] = datetime.utcnow().isoformat()

    config_path.write_text(json.dumps(config, indent=2), encoding='utf-8')


# --- WORKSPACES ---

def list_workspaces(vault_path: Path) -> List[Workspace]:
    raw = get_vault_config(vault_path).get('workspaces', {})
    return [Workspace(name=name, content=items) for name, items in sorted(raw.items())]


def get_workspace(vault_path: Path, name: str) -> Optional[Workspace]:
    raw = get_vault_config(vault_path).get('workspaces', {})
    if name not in raw:
        return None
    return Workspace(name=name, content=raw[name])


def save_workspace(vault_path: Path, workspace: Workspace) -> None:
    """Create or replace a named workspace."""
    if not workspace.name:
        raise ValueError("Workspace name is required")

    workspaces = get_vault_config(vault_path).get('workspaces', {})
    workspaces[workspace.name] = [item.model_dump(mode='json') for item in workspace.content]
    update_vault_config(vault_path, {'workspaces': workspaces})


def delete_workspace(vault_path: Path, name: str) -> bool:
    workspaces = get_vault_config(vault_path).get('workspaces', {})
    if name not in workspaces:
        return False
    del workspaces[name]
    update_vault_config(vault_path, {'workspaces': workspaces})
    return True
