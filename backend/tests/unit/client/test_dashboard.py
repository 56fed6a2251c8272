"""
Unit Tests for the terminal admin dashboard
"""
import asyncio
import io

import pytest
from rich.console import Console

from farmportal.client.api_client import PortalAPIError
from farmportal.client.dashboard import AdminDashboard, MutationInProgressError, summarize_counts, summarize_sync


class FakePortal:

    def __init__(self):
        self.release = asyncio.Event()
        self.sync_error = None

    async def synchronize_allocations(self):
        if self.sync_error:
            raise self.sync_error
        return {"allocated": 3, "noRooms": 1, "noTags": 0}

    async def slow_cleanup(self):
        await self.release.wait()
        return {"cleaned": 2, "errors": 0}

    async def cleanup_rooms(self):
        return await self.slow_cleanup()

    async def list_rooms(self, block=None):
        return [{
            "block": "BlockA",
            "roomNumber": "Room-01",
            "capacity": 2,
            "currentOccupancy": 1,
            "status": "partially_occupied",
        }]

    async def activate_sponsor(self, sponsor_id):
        return {"id": sponsor_id, "name": "CSS Farms 2024", "isActive": True}


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
async def dashboard(output):
    return AdminDashboard(FakePortal(), console=Console(file=output, width=120))


class TestSummaries:

    def test_sync_summary(self):
        assert summarize_sync({"allocated": 3, "noRooms": 1, "noTags": 0}) == \
            "Allocated 3 trainees. No rooms available for 1 trainees."

    def test_sync_summary_nothing_missing(self):
        assert summarize_sync({"allocated": 0, "noRooms": 0, "noTags": 0}) == "Allocated 0 trainees."

    def test_sync_summary_missing_tags(self):
        assert summarize_sync({"allocated": 1, "noRooms": 0, "noTags": 2}) == \
            "Allocated 1 trainees. No tags available for 2 trainees."

    def test_counts(self):
        assert summarize_counts("Invalid room assignments", {"cleaned": 2, "errors": 0}) == \
            "Invalid room assignments: cleaned 2, errors 0"


class TestMutations:

    @pytest.mark.asyncio
    async def test_synchronize_reports_summary(self, dashboard, output):
        message = await dashboard.synchronize()

        assert message == "Allocated 3 trainees. No rooms available for 1 trainees."
        assert "Allocations Synchronized" in output.getvalue()

    @pytest.mark.asyncio
    async def test_synchronize_error(self, dashboard):
        dashboard.client.sync_error = PortalAPIError(401, "Not authenticated")

        message = await dashboard.synchronize()

        assert message == "Failed to synchronize allocations: Not authenticated"
        assert dashboard.in_flight is None

    @pytest.mark.asyncio
    async def test_second_mutation_is_rejected(self, dashboard):
        running = asyncio.create_task(dashboard.cleanup_rooms())
        await asyncio.sleep(0)

        with pytest.raises(MutationInProgressError) as exc_info:
            await dashboard.synchronize()
        assert exc_info.value.running == "Cleaning room assignments"

        dashboard.client.release.set()
        assert await running == "Invalid room assignments: cleaned 2, errors 0"
        assert dashboard.in_flight is None

    @pytest.mark.asyncio
    async def test_activate_sponsor(self, dashboard):
        message = await dashboard.activate_sponsor("s-1")

        assert message == "CSS Farms 2024 is now open for registration"


class TestViews:

    @pytest.mark.asyncio
    async def test_rooms_table(self, dashboard, output):
        rooms = await dashboard.show_rooms()

        assert len(rooms) == 1
        rendered = output.getvalue()
        assert "Room-01" in rendered
        assert "partially_occupied" in rendered
