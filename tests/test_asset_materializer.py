"""
Tests for photo materialization
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from conftest import make_openai_client
from services.asset_materializer import AssetMaterializer
from services.cleanup import CleanupCoordinator


@pytest.mark.asyncio
async def test_materializes_all_photos_in_order(bucket, temp_dir, openai_client):
    materializer = AssetMaterializer(bucket, openai_client, temp_dir)
    cleanup = CleanupCoordinator(openai_client)

    result = await materializer.materialize(
        ["coffee/cup1.jpg", "coffee/cup2.jpg"], invocation_id="inv1", cleanup=cleanup
    )

    assert [a.reference for a in result.assets] == ["coffee/cup1.jpg", "coffee/cup2.jpg"]
    assert all(a.mime_type == "image/jpeg" for a in result.assets)
    assert {a.file_id for a in result.assets} == {"file-1", "file-2"}
    assert result.skipped == 0
    assert openai_client.files.create.await_count == 2
    assert all(call.kwargs["purpose"] == "vision" for call in openai_client.files.create.await_args_list)
    assert len(cleanup.local_paths) == 2
    assert sorted(cleanup.remote_file_ids) == ["file-1", "file-2"]


@pytest.mark.asyncio
async def test_missing_photo_is_skipped(bucket, temp_dir, openai_client):
    materializer = AssetMaterializer(bucket, openai_client, temp_dir)
    cleanup = CleanupCoordinator(openai_client)

    result = await materializer.materialize(
        ["coffee/cup1.jpg", "coffee/missing.jpg", "coffee/cup2.jpg"],
        invocation_id="inv1",
        cleanup=cleanup,
    )

    assert [a.reference for a in result.assets] == ["coffee/cup1.jpg", "coffee/cup2.jpg"]
    assert result.skipped == 1
    failed = [o for o in result.outcomes if not o.ok]
    assert failed[0].reference == "coffee/missing.jpg"
    assert isinstance(failed[0].error, FileNotFoundError)
    assert len(cleanup.local_paths) == 2


@pytest.mark.asyncio
async def test_upload_failure_is_skipped(bucket, temp_dir):
    client = make_openai_client()
    client.files.create = AsyncMock(
        side_effect=[SimpleNamespace(id="file-1"), RuntimeError("upload rejected")]
    )
    materializer = AssetMaterializer(bucket, client, temp_dir)
    cleanup = CleanupCoordinator(client)

    result = await materializer.materialize(
        ["coffee/cup1.jpg", "coffee/cup2.jpg"], invocation_id="inv1", cleanup=cleanup
    )

    assert len(result.assets) == 1
    assert result.skipped == 1
    assert cleanup.remote_file_ids == ["file-1"]
    assert len(cleanup.local_paths) == 2


@pytest.mark.asyncio
async def test_all_photos_failing_degrades_to_empty(bucket, temp_dir, openai_client):
    materializer = AssetMaterializer(bucket, openai_client, temp_dir)

    cleanup = CleanupCoordinator()

    result = await materializer.materialize(
        ["coffee/a.jpg", "../escape.jpg"], invocation_id="inv1", cleanup=cleanup
    )

    assert result.assets == []
    assert result.skipped == 2
    assert cleanup.local_paths == []
    assert list(temp_dir.iterdir()) == []
    openai_client.files.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_references_makes_no_calls(bucket, temp_dir, openai_client):
    materializer = AssetMaterializer(bucket, openai_client, temp_dir)
    cleanup = CleanupCoordinator()

    result = await materializer.materialize([], invocation_id="inv1", cleanup=cleanup)

    assert result.outcomes == []
    assert cleanup.local_paths == []
    openai_client.files.create.assert_not_awaited()


def test_staging_paths_are_namespaced(bucket, temp_dir, openai_client):
    materializer = AssetMaterializer(bucket, openai_client, temp_dir)

    first = materializer.staging_path("inv1", 0, "coffee/user/cup.jpg")
    second = materializer.staging_path("inv2", 0, "coffee/user/cup.jpg")
    same_name = materializer.staging_path("inv1", 1, "coffee/other/cup.jpg")

    assert first.parent == temp_dir
    assert first.name.startswith("temp_inv1_0_")
    assert first.name.endswith("_cup.jpg")
    assert len({first, second, same_name}) == 3
