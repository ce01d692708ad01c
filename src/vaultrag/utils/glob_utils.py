"""
Path matching helpers: folder prefixes, tags, include/exclude globs, and
workspace resolution.
"""
import fnmatch
from typing import TYPE_CHECKING, Iterator, List, Sequence

from vaultrag.schema import Workspace, WorkspaceItemType

if TYPE_CHECKING:
    from vaultrag.utils.vault import Vault


def normalize_folder(folder: str) -> str:
    """'notes/', '/notes' and 'notes' all become 'notes'; the root becomes '/'."""
    stripped = folder.strip().strip("/")
    return stripped or "/"


def matches_folder(path: str, folder: str) -> bool:
    """
    True if ``path`` lies inside ``folder``.

    Compared against 'folder/' so 'notes' does not match 'notes-archive/a.md'.
    """
    folder = normalize_folder(folder)
    if folder == "/":
        return True
    return path.startswith(folder + "/")


def normalize_tag(tag: str) -> str:
    return "#" + tag.strip().lstrip("#")


def matches_patterns(path: str, include_patterns: Sequence[str], exclude_patterns: Sequence[str]) -> bool:
    """
    Glob filter for indexing.

    Excludes win over includes. An empty include list includes everything.
    """
    if any(fnmatch.fnmatch(path, pattern) for pattern in exclude_patterns):
        return False
    if not include_patterns:
        return True
    return any(fnmatch.fnmatch(path, pattern) for pattern in include_patterns)


def get_files_with_tag(tag: str, vault: "Vault") -> List[str]:
    return vault.get_files_with_tag(tag)


def iter_workspace_paths(workspace: Workspace, vault: "Vault") -> Iterator[str]:
    """
    Resolve a workspace against the current vault, item by item.

    Paths come out in item order. A file matched by two items is yielded
    twice; callers that need a set de-duplicate themselves.
    """
    for item in workspace.content:
        if item.type == WorkspaceItemType.FOLDER:
            for file in vault.get_files_under(item.content):
                yield file.path
        elif item.type == WorkspaceItemType.TAG:
            yield from get_files_with_tag(item.content, vault)
