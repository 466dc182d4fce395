import pytest

from conftest import stage_orders
from sacdesk.core.cache import InMemoryCache
from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.services.workflow_stages import WorkflowStageRegistry, generate_slug


SEEDED = ["open", "in_progress", "waiting_client", "waiting_internal", "resolved", "cancelled"]


def test_generate_slug():
    assert generate_slug("Waiting on  Vendor!") == "waiting_on_vendor"
    assert generate_slug("  QA / Review 2 ") == "qa__review_2"


@pytest.mark.asyncio
async def test_system_stages_are_seeded_in_order(registry):
    stages = await registry.list_active_stages()

    assert [s.slug for s in stages] == SEEDED
    assert [s.display_order for s in stages] == list(range(6))
    assert all(s.is_default for s in stages)


@pytest.mark.asyncio
async def test_create_stage_appends_with_next_order(registry, admin):
    stage = await registry.create_stage("Escalated Issues", color="bg-red-500", created_by=admin.id)

    assert stage.slug == "escalated_issues"
    assert stage.display_order == 6
    assert stage.is_default is False
    assert (await registry.list_active_stages())[-1].slug == "escalated_issues"


@pytest.mark.asyncio
async def test_create_stage_rejects_empty_and_duplicate_names(registry):
    with pytest.raises(ValidationError):
        await registry.create_stage("   ")
    with pytest.raises(ValidationError):
        await registry.create_stage("Open")


@pytest.mark.asyncio
async def test_reorder_boundaries_are_noops(registry):
    before = stage_orders(await registry.list_stages())
    stages = await registry.list_stages()

    await registry.reorder(stages[0].id, "up")
    await registry.reorder(stages[-1].id, "down")

    assert stage_orders(await registry.list_stages()) == before


@pytest.mark.asyncio
async def test_reorder_swaps_with_neighbour(registry):
    stages = await registry.list_stages()
    in_progress = stages[1]

    result = await registry.reorder(in_progress.id, "up")

    assert [s.slug for s in result[:3]] == ["in_progress", "open", "waiting_client"]
    orders = stage_orders(result)
    assert orders["in_progress"] == 0
    assert orders["open"] == 1


@pytest.mark.asyncio
async def test_reorder_rejects_unknown_direction_and_stage(registry):
    stages = await registry.list_stages()
    with pytest.raises(ValidationError):
        await registry.reorder(stages[0].id, "sideways")

    custom = await registry.create_stage("Temp")
    await registry.delete_stage(custom.id)
    with pytest.raises(NotFound):
        await registry.reorder(custom.id, "up")


@pytest.mark.asyncio
async def test_system_stages_cannot_be_edited_or_deleted(registry):
    open_stage = await registry.get_by_slug("open")

    with pytest.raises(ValidationError):
        await registry.rename_or_recolor(open_stage.id, name="Fresh")
    with pytest.raises(ValidationError):
        await registry.rename_or_recolor(open_stage.id, color="bg-pink-500")
    with pytest.raises(ValidationError):
        await registry.delete_stage(open_stage.id)

    unchanged = await registry.get_stage(open_stage.id)
    assert unchanged.name == open_stage.name
    assert unchanged.color == open_stage.color


@pytest.mark.asyncio
async def test_custom_stage_can_be_renamed_and_recolored(registry):
    stage = await registry.create_stage("Escalated")

    updated = await registry.rename_or_recolor(stage.id, name="Escalated to L2", color="bg-red-700")

    assert updated.name == "Escalated to L2"
    assert updated.color == "bg-red-700"
    # Slug stays stable so tickets keep pointing at it
    assert updated.slug == "escalated"


@pytest.mark.asyncio
async def test_system_stage_can_be_toggled(registry):
    cancelled = await registry.get_by_slug("cancelled")

    await registry.deactivate(cancelled.id)
    assert "cancelled" not in [s.slug for s in await registry.list_active_stages()]
    with pytest.raises(ValidationError):
        await registry.get_active_by_slug("cancelled")

    await registry.activate(cancelled.id)
    assert "cancelled" in [s.slug for s in await registry.list_active_stages()]


@pytest.mark.asyncio
async def test_delete_stage_compacts_orders(registry):
    first = await registry.create_stage("Triage")
    await registry.create_stage("Escalated")
    await registry.reorder(first.id, "up")

    await registry.delete_stage(first.id)

    stages = await registry.list_stages()
    assert [s.display_order for s in stages] == list(range(len(stages)))
    assert stages[-1].slug == "escalated"


@pytest.mark.asyncio
async def test_active_listing_is_cached_and_invalidated(gateway):
    cache = InMemoryCache()
    registry = WorkflowStageRegistry(gateway, cache=cache)

    first = await registry.list_active_stages()
    assert cache.get(WorkflowStageRegistry.CACHE_KEY) is not None
    assert [s.slug for s in await registry.list_active_stages()] == [s.slug for s in first]

    await registry.create_stage("Escalated")
    assert cache.get(WorkflowStageRegistry.CACHE_KEY) is None
    assert (await registry.list_active_stages())[-1].slug == "escalated"
