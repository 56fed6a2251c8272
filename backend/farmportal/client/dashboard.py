"""
Admin dashboard for the terminal.

Renders the portal's overview, trainees, rooms, tags and generated ids as
rich tables and runs the maintenance operations. Only one mutation may be
in flight at a time; a second one is rejected, not queued.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from farmportal.client.api_client import PortalAPIError, PortalClient


class MutationInProgressError(Exception):
    """Another dashboard mutation has not finished yet"""

    def __init__(self, running: str):
        self.running = running
        super().__init__(f"'{running}' is still running, wait for it to finish")


def summarize_sync(result: Dict[str, Any]) -> str:
    parts = [f"Allocated {result.get('allocated', 0)} trainees."]
    if result.get("noRooms", 0) > 0:
        parts.append(f"No rooms available for {result['noRooms']} trainees.")
    if result.get("noTags", 0) > 0:
        parts.append(f"No tags available for {result['noTags']} trainees.")
    return " ".join(parts)


def summarize_counts(title: str, counts: Dict[str, int]) -> str:
    details = ", ".join(f"{k} {v}" for k, v in counts.items())
    return f"{title}: {details}"


STATUS_STYLES = {
    "allocated": "green",
    "no_rooms": "yellow",
    "no_tags": "yellow",
    "pending": "dim",
    "available": "green",
    "partially_occupied": "yellow",
    "occupied": "red",
    "maintenance": "magenta",
    "assigned": "cyan",
    "activated": "green",
    "deactivated": "red",
}


def _styled(value: Optional[str]) -> str:
    if not value:
        return "-"
    style = STATUS_STYLES.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


class AdminDashboard:

    def __init__(self, client: PortalClient, console: Optional[Console] = None):
        self.client = client
        self.console = console or Console()
        self.in_flight: Optional[str] = None

    async def _mutate(self, label: str, action: Callable[[], Awaitable[Any]]) -> Any:
        if self.in_flight is not None:
            raise MutationInProgressError(self.in_flight)
        self.in_flight = label
        try:
            with self.console.status(f"{label}..."):
                return await action()
        finally:
            self.in_flight = None

    def _report(self, title: str, message: str, success: bool = True) -> str:
        self.console.print(Panel(message, title=title, border_style="green" if success else "red"))
        return message

    # ==================== VIEWS ====================

    async def show_overview(self) -> Dict[str, Any]:
        stats = await self.client.statistics()
        allocation = stats.get("allocation", {})
        ids = stats.get("ids", {})

        table = Table(title="Portal Overview", show_header=True, header_style="bold cyan")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Trainees", str(stats.get("totalTrainees", 0)))
        table.add_row("Active sponsors", str(stats.get("activeSponsors", 0)))
        table.add_row("Exams (active)", f"{stats.get('totalExams', 0)} ({stats.get('activeExams', 0)})")
        for key, value in allocation.items():
            table.add_row(f"Allocation: {key}", str(value))
        for key in ("total", "available", "assigned", "activated", "deactivated"):
            table.add_row(f"IDs: {key}", str(ids.get(key, 0)))

        self.console.print(table)
        return stats

    async def show_trainees(self, sponsor_id: Optional[str] = None) -> List[Dict[str, Any]]:
        trainees = await self.client.list_trainees(sponsor_id)

        table = Table(title=f"Trainees ({len(trainees)})", show_header=True, header_style="bold cyan")
        table.add_column("Name")
        table.add_column("Email")
        table.add_column("Gender")
        table.add_column("Tag")
        table.add_column("Room")
        table.add_column("Status")
        for t in trainees:
            table.add_row(
                f"{t['firstName']} {t['surname']}",
                t["email"],
                t.get("gender") or "-",
                t.get("tagNumber") or "-",
                f"{t.get('roomBlock') or '-'}/{t.get('roomNumber') or '-'}",
                _styled(t.get("allocationStatus")),
            )

        self.console.print(table)
        return trainees

    async def show_rooms(self, block: Optional[str] = None) -> List[Dict[str, Any]]:
        rooms = await self.client.list_rooms(block)

        table = Table(title=f"Rooms ({len(rooms)})", show_header=True, header_style="bold cyan")
        table.add_column("Block")
        table.add_column("Room")
        table.add_column("Beds", justify="right")
        table.add_column("Occupied", justify="right")
        table.add_column("Status")
        for r in rooms:
            table.add_row(
                r["block"],
                r["roomNumber"],
                str(r["capacity"]),
                str(r.get("currentOccupancy") or 0),
                _styled(r["status"]),
            )

        self.console.print(table)
        return rooms

    async def show_tags(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        tags = await self.client.list_tags(status)

        table = Table(title=f"Tag Numbers ({len(tags)})", show_header=True, header_style="bold cyan")
        table.add_column("Tag")
        table.add_column("Status")
        for tag in tags:
            table.add_row(tag["tagNo"], _styled(tag["status"]))

        self.console.print(table)
        return tags

    async def show_ids(self, id_type: Optional[str] = None) -> List[Dict[str, Any]]:
        ids = await self.client.list_ids(id_type)

        table = Table(title=f"Generated IDs ({len(ids)})", show_header=True, header_style="bold cyan")
        table.add_column("ID")
        table.add_column("Type")
        table.add_column("Status")
        table.add_column("Assigned to")
        table.add_column("Uses", justify="right")
        for record in ids:
            table.add_row(
                record["id"],
                record["type"],
                _styled(record["status"]),
                record.get("assignedTo") or "-",
                str(record.get("usageCount") or 0),
            )

        self.console.print(table)
        return ids

    # ==================== MUTATIONS ====================

    async def synchronize(self) -> str:
        try:
            result = await self._mutate("Synchronizing allocations", self.client.synchronize_allocations)
        except PortalAPIError as e:
            return self._report("Error", f"Failed to synchronize allocations: {e.message}", success=False)
        return self._report("Allocations Synchronized", summarize_sync(result))

    async def cleanup_rooms(self) -> str:
        result = await self._mutate("Cleaning room assignments", self.client.cleanup_rooms)
        return self._report("Room Cleanup", summarize_counts("Invalid room assignments", result))

    async def cleanup_tags(self) -> str:
        result = await self._mutate("Cleaning tag assignments", self.client.cleanup_tags)
        return self._report("Tag Cleanup", summarize_counts("Invalid tag assignments", result))

    async def fix_status(self) -> str:
        result = await self._mutate("Fixing allocation status", self.client.fix_allocation_status)
        return self._report("Status Fix", summarize_counts("Allocation status", result))

    async def migrate(self) -> str:
        result = await self._mutate("Migrating trainees", self.client.migrate_trainees)
        return self._report("Migration", summarize_counts("Legacy trainees", result))

    async def generate_ids(self, id_type: str, count: int) -> List[str]:
        ids = await self._mutate(f"Generating {count} ids", lambda: self.client.generate_ids(id_type, count))
        self._report("IDs Generated", "\n".join(ids))
        return ids

    async def free_id(self, generated_id: str, reason: Optional[str] = None) -> str:
        await self._mutate(f"Freeing {generated_id}", lambda: self.client.free_id(generated_id, reason))
        return self._report("ID Freed", f"{generated_id} is available again")

    async def deactivate_id(self, generated_id: str, reason: Optional[str] = None) -> str:
        await self._mutate(f"Deactivating {generated_id}", lambda: self.client.deactivate_id(generated_id, reason))
        return self._report("ID Deactivated", f"{generated_id} can no longer be used")

    async def activate_sponsor(self, sponsor_id: str) -> str:
        sponsor = await self._mutate("Activating sponsor", lambda: self.client.activate_sponsor(sponsor_id))
        return self._report("Sponsor Activated", f"{sponsor['name']} is now open for registration")
