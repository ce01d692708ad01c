from typing import List

from pydantic import BaseModel, Field

from .enums import WorkspaceItemType


class WorkspaceItem(BaseModel):
    """A folder path or a tag. ``content`` holds the path or the tag text."""
    type: WorkspaceItemType
    content: str

    @classmethod
    def folder(cls, path: str) -> "WorkspaceItem":
        return cls(type=WorkspaceItemType.FOLDER, content=path)

    @classmethod
    def tag(cls, value: str) -> "WorkspaceItem":
        return cls(type=WorkspaceItemType.TAG, content=value)


class Workspace(BaseModel):
    """
    A named view over the vault.

    Holds no vectors of its own. Its file set is resolved against the vault
    every time it is used, so moved or retagged notes are picked up.
    """
    name: str = ""
    content: List[WorkspaceItem] = Field(default_factory=list)

    def folders(self) -> List[str]:
        return [item.content for item in self.content if item.type == WorkspaceItemType.FOLDER]

    def tags(self) -> List[str]:
        return [item.content for item in self.content if item.type == WorkspaceItemType.TAG]
