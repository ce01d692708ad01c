"""
Tests for VectorManager change detection and deletion scoping.
"""
import pytest

from vaultrag.core.exceptions import StoreOperationError
from vaultrag.schema import IndexOptions, Workspace, WorkspaceItem
from vaultrag.store.vector_manager import content_hash


def index_options(**overrides) -> IndexOptions:
    values = {"chunk_size": 500, "batch_size": 32, "reindex_all": False}
    values.update(overrides)
    return IndexOptions(**values)


class TestContentHash:

    def test_same_content_same_hash(self):
        assert content_hash("apple") == content_hash("apple")

    def test_different_content_different_hash(self):
        assert content_hash("apple") != content_hash("apple ")


class TestGetFilesToIndex:

    @pytest.mark.asyncio
    async def test_never_indexed_empty_file_is_skipped(self, vector_manager, vault, fake_model):
        pending = await vector_manager._get_files_to_index(
            fake_model, [vault.get_file("empty.md")], index_options()
        )

        assert pending == []

    @pytest.mark.asyncio
    async def test_unchanged_file_is_skipped_unless_reindex_all(self, vector_manager, vault, fake_model):
        await vector_manager.update_vault_index(fake_model, index_options())
        apple = vault.get_file("notes/apple.md")

        assert await vector_manager._get_files_to_index(fake_model, [apple], index_options()) == []
        pending = await vector_manager._get_files_to_index(
            fake_model, [apple], index_options(reindex_all=True)
        )
        assert [p.file.path for p in pending] == ["notes/apple.md"]

    @pytest.mark.asyncio
    async def test_pending_file_is_chunked_with_line_spans(self, vector_manager, vault, fake_model):
        pending = await vector_manager._get_files_to_index(
            fake_model, [vault.get_file("notes-archive/cherry.md")], index_options()
        )

        chunk = pending[0].chunks[0]
        assert chunk.start_line == 1
        assert chunk.end_line == 3
        assert pending[0].file_hash == content_hash(vault.read(vault.get_file("notes-archive/cherry.md")))


class TestUpdateVaultIndex:

    @pytest.mark.asyncio
    async def test_emptied_note_loses_its_vectors(self, vector_manager, repository, fake_model, vault_root):
        await vector_manager.update_vault_index(fake_model, index_options())

        (vault_root / "notes" / "apple.md").write_text("   \n", encoding="utf-8")
        await vector_manager.update_vault_index(fake_model, index_options())

        assert "notes/apple.md" not in await repository.get_indexed_file_paths(fake_model)

    @pytest.mark.asyncio
    async def test_newly_excluded_note_is_pruned(self, vector_manager, repository, fake_model):
        await vector_manager.update_vault_index(fake_model, index_options())

        await vector_manager.update_vault_index(
            fake_model, index_options(exclude_patterns=["projects/*"])
        )

        assert "projects/durian.md" not in await repository.get_indexed_file_paths(fake_model)

    @pytest.mark.asyncio
    async def test_include_patterns_limit_the_candidates(self, vector_manager, repository, fake_model):
        await vector_manager.update_vault_index(
            fake_model, index_options(include_patterns=["notes/*"])
        )

        assert await repository.get_indexed_file_paths(fake_model) == [
            "notes/apple.md",
            "notes/banana.md",
        ]

    @pytest.mark.asyncio
    async def test_records_carry_hash_model_and_dimension(self, vector_manager, repository, fake_model, vault):
        await vector_manager.update_vault_index(fake_model, index_options())

        hashes = await repository.get_file_hashes(fake_model)
        apple = vault.get_file("notes/apple.md")
        assert hashes["notes/apple.md"] == content_hash(vault.read(apple))

        record = next(r for r in repository._records if r.path == "notes/apple.md")
        assert record.model == fake_model.identity
        assert record.dimension == fake_model.dimension
        assert record.metadata_ == {"start_line": 1, "end_line": 5}

    @pytest.mark.asyncio
    async def test_short_embedding_response_is_rejected(self, vector_manager, fake_model, mocker):
        async def one_vector_only(texts):
            return [fake_model.embed(texts[0])]

        mocker.patch.object(fake_model, "get_batch_embeddings", side_effect=one_vector_only)

        with pytest.raises(StoreOperationError):
            await vector_manager.update_vault_index(fake_model, index_options())


    @pytest.mark.asyncio
    async def test_width_change_reembeds_every_note(self, vector_manager, repository, fake_model, indexable_paths):
        await vector_manager.update_vault_index(fake_model, index_options())
        fake_model.output_dimension = 3
        fake_model.dimension = 3
        fake_model.calls.clear()

        await vector_manager.update_vault_index(fake_model, index_options())

        assert await repository.get_indexed_dimensions(fake_model) == [3]
        assert sorted((await repository.get_file_hashes(fake_model)).keys()) == indexable_paths
        assert len(fake_model.embedded_texts) == len(indexable_paths)

    @pytest.mark.asyncio
    async def test_note_removed_during_update_is_skipped(self, vector_manager, repository, fake_model, vault, mocker):
        original_read = vault.read

        def read(file):
            if file.path == "notes/apple.md":
                raise FileNotFoundError(file.path)
            return original_read(file)

        mocker.patch.object(vault, "read", side_effect=read)

        await vector_manager.update_vault_index(fake_model, index_options())

        assert await repository.get_indexed_file_paths(fake_model) == [
            "notes-archive/cherry.md",
            "notes/banana.md",
            "projects/durian.md",
        ]


class TestWorkspaceScoping:

    @pytest.mark.asyncio
    async def test_workspace_update_ignores_notes_outside(self, vector_manager, repository, fake_model):
        workspace = Workspace(name="todo", content=[WorkspaceItem.tag("todo")])

        await vector_manager.update_workspace_index(fake_model, workspace, index_options())

        assert await repository.get_indexed_file_paths(fake_model) == ["projects/durian.md"]

    @pytest.mark.asyncio
    async def test_workspace_statistics(self, vector_manager, fake_model):
        await vector_manager.update_vault_index(fake_model, index_options())
        workspace = Workspace(
            name="mixed",
            content=[WorkspaceItem.folder("notes/"), WorkspaceItem.tag("fruit")],
        )

        stats = await vector_manager.get_workspace_statistics(fake_model, workspace)

        assert stats.total_files == 2

    @pytest.mark.asyncio
    async def test_delete_vectors_for_files_accepts_duplicates(self, vector_manager, repository, fake_model):
        await vector_manager.update_vault_index(fake_model, index_options())

        await vector_manager.delete_vectors_for_files(
            ["notes/apple.md", "notes/apple.md", "missing.md"], fake_model
        )

        assert "notes/apple.md" not in await repository.get_indexed_file_paths(fake_model)


class TestSingleFile:

    @pytest.mark.asyncio
    async def test_delete_file_vector_index_accepts_vault_file(self, vector_manager, repository, fake_model, vault):
        await vector_manager.update_vault_index(fake_model, index_options())

        await vector_manager.delete_file_vector_index(fake_model, vault.get_file("notes/banana.md"))

        assert "notes/banana.md" not in await repository.get_indexed_file_paths(fake_model)
