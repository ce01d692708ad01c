import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from vaultrag.core.logging import setup_logging, get_logger

# Initialize logging before anything else
setup_logging()
logger = get_logger(__name__)

app = typer.Typer()


def _load_vault_path(vault_path: str) -> Path:
    path_obj = Path(vault_path)
    if not path_obj.exists():
        logger.error("vault_path_not_found", path=vault_path)
        raise FileNotFoundError(f"Vault path not found: {vault_path}")
    return path_obj


def _build_engine(vault_path: Path):
    from vaultrag.config import settings
    from vaultrag.rag.engine import RAGEngine
    from vaultrag.store import VectorManager
    from vaultrag.store.pgvector import PgVectorRepository
    from vaultrag.utils.vault import Vault

    vault = Vault(str(vault_path))
    engine = RAGEngine(
        vault=vault,
        settings=settings.to_rag_settings(),
        vector_manager=VectorManager(vault, PgVectorRepository()),
    )
    if not engine.has_embedding_model:
        print("No embedding model configured. Set EMBEDDING_MODEL_ID and EMBEDDING_MODEL_PROVIDER.")
        raise typer.Exit(code=1)
    return engine


def _load_workspace(vault_path: Path, name: Optional[str]):
    if name is None:
        return None
    from vaultrag.utils.vault_config import get_workspace

    workspace = get_workspace(vault_path, name)
    if workspace is None:
        print(f"Unknown workspace: {name}")
        raise typer.Exit(code=1)
    return workspace


def _print_progress(state):
    if state.type == "indexing":
        progress = state.index_progress
        print(f"Indexed {progress.completed_chunks}/{progress.total_chunks} chunks ({progress.total_files} files)")


@app.command()
def version():
    """Show version."""
    from vaultrag import __version__
    print(f"vaultrag v{__version__}")


@app.command()
def init_db():
    """Create the pgvector extension and the embeddings table."""
    from vaultrag.utils.db import init_db as _init_db
    _init_db()
    print("Database initialized.")


@app.command()
def index(
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
    workspace: Optional[str] = typer.Option(None, help="Only index this named workspace"),
    reindex_all: bool = typer.Option(False, help="Re-embed every file, even unchanged ones"),
):
    """Bring the vector index up to date."""
    path_obj = _load_vault_path(vault_path)
    engine = _build_engine(path_obj)
    ws = _load_workspace(path_obj, workspace)

    async def _run():
        logger.info("index_cli_started", vault_path=vault_path, workspace=workspace, reindex_all=reindex_all)
        if ws is None:
            await engine.update_vault_index(reindex_all=reindex_all, on_progress=_print_progress)
        else:
            await engine.update_workspace_index(ws, reindex_all=reindex_all, on_progress=_print_progress)
        stats = await engine.get_workspace_statistics(ws)
        print(f"\nIndexing Complete!")
        print(f"Files: {stats.total_files}  Chunks: {stats.total_chunks}")

    asyncio.run(_run())


@app.command()
def index_file(
    file_path: str = typer.Argument(..., help="Vault-relative path of the note"),
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
):
    """Re-embed a single note, or drop its vectors if it no longer exists."""
    path_obj = _load_vault_path(vault_path)
    engine = _build_engine(path_obj)

    async def _run():
        file = engine.vault.get_file(file_path)
        if file is None:
            await engine.delete_file_index(file_path)
            print(f"Removed vectors for {file_path}")
        else:
            await engine.update_file_index(file)
            print(f"Indexed {file_path}")

    asyncio.run(_run())


@app.command()
def query(
    text: str = typer.Argument(..., help="Search query"),
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
    folder: Optional[List[str]] = typer.Option(None, help="Restrict to a folder (repeatable)"),
    file: Optional[List[str]] = typer.Option(None, help="Restrict to a file (repeatable)"),
    limit: Optional[int] = typer.Option(None, help="Maximum number of results"),
):
    """Search the index for chunks similar to TEXT."""
    from vaultrag.schema import QueryScope

    path_obj = _load_vault_path(vault_path)
    engine = _build_engine(path_obj)
    scope = QueryScope(files=file or [], folders=folder or []) if (file or folder) else None

    async def _run():
        results = await engine.process_query(text, scope=scope, limit=limit)
        if not results:
            print("No matches.")
            return
        for result in results:
            lines = f"{result.metadata.get('start_line')}-{result.metadata.get('end_line')}"
            print(f"[{result.similarity:.3f}] {result.path}:{lines}")
            print(f"    {result.content[:200]}")

    asyncio.run(_run())


@app.command()
def stats(
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
    workspace: Optional[str] = typer.Option(None, help="Named workspace"),
):
    """Show how many files and chunks are indexed."""
    path_obj = _load_vault_path(vault_path)
    engine = _build_engine(path_obj)
    ws = _load_workspace(path_obj, workspace)

    result = asyncio.run(engine.get_workspace_statistics(ws))
    print(f"Files: {result.total_files}  Chunks: {result.total_chunks}")


@app.command()
def clear(
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
    workspace: Optional[str] = typer.Option(None, help="Only clear this named workspace"),
):
    """Delete indexed vectors of the configured embedding model."""
    path_obj = _load_vault_path(vault_path)
    engine = _build_engine(path_obj)
    ws = _load_workspace(path_obj, workspace)

    asyncio.run(engine.clear_workspace_index(ws))
    print("Index cleared.")


@app.command()
def workspace_add(
    name: str = typer.Argument(..., help="Workspace name"),
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
    folder: Optional[List[str]] = typer.Option(None, help="Folder to include (repeatable)"),
    tag: Optional[List[str]] = typer.Option(None, help="Tag to include (repeatable)"),
):
    """Create or replace a named workspace."""
    from vaultrag.schema import Workspace, WorkspaceItem
    from vaultrag.utils.vault_config import save_workspace

    path_obj = _load_vault_path(vault_path)
    items = [WorkspaceItem.folder(f) for f in folder or []] + [WorkspaceItem.tag(t) for t in tag or []]
    if not items:
        print("A workspace needs at least one --folder or --tag.")
        raise typer.Exit(code=1)

    save_workspace(path_obj, Workspace(name=name, content=items))
    logger.info("workspace_saved", name=name, items=len(items))
    print(f"Workspace '{name}' saved with {len(items)} item(s).")


@app.command()
def workspace_list(
    vault_path: str = typer.Option(..., "--vault", help="Path to the vault root directory"),
):
    """List the named workspaces of a vault."""
    from vaultrag.utils.vault_config import list_workspaces

    path_obj = _load_vault_path(vault_path)
    workspaces = list_workspaces(path_obj)
    if not workspaces:
        print("No workspaces defined.")
        return
    for ws in workspaces:
        items = ", ".join(f"{item.type.value}:{item.content}" for item in ws.content)
        print(f"{ws.name}: {items}")


if __name__ == "__main__":
    app()
