"""Tests for stage ordering within a pipeline."""

import pytest

from cdstage.exceptions import PreviousStageNotFoundError
from cdstage.services.stage import StageOrderingService
from cdstage.store import InMemoryObjectStore
from tests.conftest import make_stage


@pytest.fixture
def pipeline_stages():
    return [
        make_stage("dev", order=0),
        make_stage("qa", order=1),
        make_stage("prod", order=3),
        make_stage("other", order=2, pipeline="another"),
    ]


class TestFindPreviousStage:
    """Tests for StageOrderingService.find_previous_stage."""

    @pytest.mark.asyncio
    async def test_picks_largest_lower_order(self, pipeline_stages):
        service = StageOrderingService(InMemoryObjectStore(pipeline_stages))

        previous = await service.find_previous_stage(make_stage("prod", order=3))

        assert previous.name == "qa"

    @pytest.mark.asyncio
    async def test_ignores_other_pipelines(self, pipeline_stages):
        service = StageOrderingService(InMemoryObjectStore(pipeline_stages))
        previous = await service.find_previous_stage(make_stage("qa", order=1))
        assert previous.name == "dev"

    @pytest.mark.asyncio
    async def test_no_lower_order_raises(self):
        service = StageOrderingService(InMemoryObjectStore([make_stage("qa", order=1)]))

        with pytest.raises(PreviousStageNotFoundError, match="order 1 of pipeline 'mypipe'"):
            await service.find_previous_stage(make_stage("qa", order=1))


class TestIsLastStage:
    """Tests for StageOrderingService.is_last_stage."""

    @pytest.mark.asyncio
    async def test_highest_order_is_last(self, pipeline_stages):
        service = StageOrderingService(InMemoryObjectStore(pipeline_stages))
        assert await service.is_last_stage(make_stage("prod", order=3))

    @pytest.mark.asyncio
    async def test_later_sibling_blocks(self, pipeline_stages):
        service = StageOrderingService(InMemoryObjectStore(pipeline_stages))
        assert not await service.is_last_stage(make_stage("qa", order=1))

    @pytest.mark.asyncio
    async def test_equal_order_sibling_blocks(self):
        store = InMemoryObjectStore([make_stage("qa", order=1), make_stage("uat", order=1)])
        service = StageOrderingService(store)
        assert not await service.is_last_stage(make_stage("qa", order=1))

    @pytest.mark.asyncio
    async def test_only_stage_is_last(self):
        service = StageOrderingService(InMemoryObjectStore([make_stage("dev")]))
        assert await service.is_last_stage(make_stage("dev"))
