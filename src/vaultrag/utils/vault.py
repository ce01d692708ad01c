"""
Filesystem view of a vault: the Markdown notes, their paths and their tags.

Nothing is cached. Every call goes back to disk so moved, deleted or
retagged notes are seen immediately.
"""
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Set

import yaml

from vaultrag.core.logging import get_logger
from vaultrag.utils.glob_utils import matches_folder, normalize_tag

logger = get_logger(__name__)

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
CODE_FENCE_PATTERN = re.compile(r"^(```|~~~).*?^\1", re.DOTALL | re.MULTILINE)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")
# Obsidian tags: '#' at a word start, letters/digits/_/-/ (nested), not purely numeric
INLINE_TAG_PATTERN = re.compile(r"(?:^|(?<=\s))#([\w/-]+)")


@dataclass(frozen=True)
class VaultFile:
    """A note in the vault. ``path`` is vault-relative, '/'-separated."""
    path: str
    mtime: float = 0.0
    size: int = 0

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lstrip(".")


class Vault:
    def __init__(self, root: str, extensions: Iterable[str] = (".md",)):
        self.root = Path(root)
        self.extensions = tuple(ext.lower() for ext in extensions)

    # --- FILE LISTING ---

    def get_markdown_files(self) -> List[VaultFile]:
        """All notes in the vault, sorted by path. Hidden folders are skipped."""
        if not self.root.exists():
            logger.warning("vault_root_missing", root=str(self.root))
            return []

        files = []
        for file_path in self.root.rglob("*"):
            if not file_path.is_file() or file_path.suffix.lower() not in self.extensions:
                continue
            relative = file_path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            try:
                files.append(self._to_vault_file(file_path))
            except FileNotFoundError:
                # Removed while the vault was being listed
                continue

        return sorted(files, key=lambda f: f.path)

    def get_files_under(self, folder: str) -> List[VaultFile]:
        """Notes strictly inside ``folder``; '/' means the whole vault."""
        return [f for f in self.get_markdown_files() if matches_folder(f.path, folder)]

    def get_file(self, path: str) -> Optional[VaultFile]:
        file_path = self.absolute_path(path)
        if not file_path.is_file():
            return None
        try:
            return self._to_vault_file(file_path)
        except FileNotFoundError:
            return None

    def exists(self, path: str) -> bool:
        return self.absolute_path(path).is_file()

    def absolute_path(self, path: str) -> Path:
        return self.root / PurePosixPath(path.lstrip("/"))

    def _to_vault_file(self, file_path: Path) -> VaultFile:
        stat = file_path.stat()
        relative_path = str(file_path.relative_to(self.root)).replace("\\", "/")
        return VaultFile(path=relative_path, mtime=stat.st_mtime, size=stat.st_size)

    # --- CONTENT ---

    def read(self, file: VaultFile) -> str:
        file_path = self.absolute_path(file.path)
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            # Fallback for non-utf8
            return file_path.read_text(encoding="latin-1")

    # --- TAG INDEX ---

    def get_file_tags(self, file: VaultFile) -> Set[str]:
        """Frontmatter and inline tags of a note, normalised to '#tag'."""
        content = self.read(file)
        tags: Set[str] = set()

        body = content
        match = FRONTMATTER_PATTERN.match(content)
        if match:
            tags.update(self._frontmatter_tags(match.group(1), file.path))
            body = content[match.end():]

        body = CODE_FENCE_PATTERN.sub("", body)
        body = INLINE_CODE_PATTERN.sub("", body)
        for tag in INLINE_TAG_PATTERN.findall(body):
            if not tag.replace("/", "").isdigit():
                tags.add(normalize_tag(tag))

        return tags

    def _frontmatter_tags(self, raw: str, path: str) -> Set[str]:
        try:
            frontmatter = yaml.safe_load(raw) or {}
        except yaml.YAMLError as e:
            logger.warning("frontmatter_parse_failed", file=path, error=str(e))
            return set()
        if not isinstance(frontmatter, dict):
            return set()

        values = frontmatter.get("tags", frontmatter.get("tag"))
        if values is None:
            return set()
        if isinstance(values, str):
            values = re.split(r"[,\s]+", values)
        elif not isinstance(values, (list, tuple, set)):
            # A bare scalar such as `tags: 2024`
            values = [values]

        return {normalize_tag(str(value)) for value in values if value and str(value).strip("# ")}

    def get_files_with_tag(self, tag: str) -> List[str]:
        """
        Paths of notes carrying ``tag``.

        Matching is case-insensitive and nested tags count: '#todo/urgent'
        is reported for '#todo'.
        """
        target = normalize_tag(tag).lower()
        if target == "#":
            return []

        paths = []
        for file in self.get_markdown_files():
            try:
                file_tags = self.get_file_tags(file)
            except FileNotFoundError:
                logger.warning("file_vanished", file=file.path)
                continue
            for file_tag in file_tags:
                file_tag = file_tag.lower()
                if file_tag == target or file_tag.startswith(target + "/"):
                    paths.append(file.path)
                    break
        return paths
