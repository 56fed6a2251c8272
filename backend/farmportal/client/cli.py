#!/usr/bin/env python3
"""
CSS Farms portal CLI

Usage:
    farmportal serve                         # Run the API server
    farmportal overview                      # Dashboard overview
    farmportal trainees [--sponsor ID]       # List trainees
    farmportal sync                          # Synchronize room/tag allocations
    farmportal generate-ids staff 5          # Generate five staff ids
    farmportal register                      # Interactive trainee registration

Admin commands log in with FARMPORTAL_ADMIN_EMAIL / FARMPORTAL_ADMIN_PASSWORD
(read from the environment or a .env file) or prompt for them.
"""

import argparse
import asyncio
import os
import sys
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

from farmportal.client.api_client import PortalAPIError, PortalClient
from farmportal.client.dashboard import AdminDashboard, MutationInProgressError
from farmportal.client.registration_wizard import (
    CHECK_LABELS,
    CheckStatus,
    RegistrationWizard,
    WizardStep,
)

DEFAULT_URL = "http://localhost:5000/api"

CHECK_ICONS = {
    CheckStatus.PENDING: "[dim]○[/dim]",
    CheckStatus.RUNNING: "[cyan]…[/cyan]",
    CheckStatus.PASSED: "[green]✓[/green]",
    CheckStatus.FAILED: "[red]✗[/red]",
    CheckStatus.SKIPPED: "[dim]-[/dim]",
}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="farmportal",
        description="CSS Farms training portal - server and admin tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        default=os.environ.get("FARMPORTAL_URL", DEFAULT_URL),
        help=f"API base URL (default: {DEFAULT_URL})"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("serve", help="Run the API server")
    subparsers.add_parser("overview", help="Show portal statistics")

    trainees = subparsers.add_parser("trainees", help="List trainees")
    trainees.add_argument("--sponsor", help="Only trainees of this sponsor")

    rooms = subparsers.add_parser("rooms", help="List rooms")
    rooms.add_argument("--block", help="Only rooms in this block")

    tags = subparsers.add_parser("tags", help="List tag numbers")
    tags.add_argument("--status", choices=["available", "assigned"])

    ids = subparsers.add_parser("ids", help="List generated ids")
    ids.add_argument("--type", dest="id_type", choices=["staff", "resource_person"])

    subparsers.add_parser("sync", help="Synchronize room and tag allocations")
    subparsers.add_parser("cleanup-rooms", help="Reset trainees pointing at deleted rooms")
    subparsers.add_parser("cleanup-tags", help="Reset trainees holding deleted tags")
    subparsers.add_parser("fix-status", help="Recompute allocation status for every trainee")
    subparsers.add_parser("migrate", help="Give legacy trainees an allocation status")

    generate = subparsers.add_parser("generate-ids", help="Generate staff or resource person ids")
    generate.add_argument("id_type", choices=["staff", "resource_person"])
    generate.add_argument("count", type=int, nargs="?", default=1)

    free = subparsers.add_parser("free-id", help="Return an id to the pool")
    free.add_argument("generated_id")
    free.add_argument("--reason")

    deactivate = subparsers.add_parser("deactivate-id", help="Permanently deactivate an id")
    deactivate.add_argument("generated_id")
    deactivate.add_argument("--reason")

    sponsor = subparsers.add_parser("activate-sponsor", help="Open registration for a sponsor")
    sponsor.add_argument("sponsor_id")

    subparsers.add_parser("register", help="Register as a trainee")

    return parser


async def admin_login(client: PortalClient, console: Console) -> None:
    email = os.environ.get("FARMPORTAL_ADMIN_EMAIL") or Prompt.ask("Admin email")
    password = os.environ.get("FARMPORTAL_ADMIN_PASSWORD") or Prompt.ask("Password", password=True)
    await client.admin_login(email, password)
    console.print(f"[green]Logged in as {email}[/green]")


async def run_admin_command(args: argparse.Namespace, console: Console) -> None:
    async with PortalClient(args.url) as client:
        await admin_login(client, console)
        dashboard = AdminDashboard(client, console)

        if args.command == "overview":
            await dashboard.show_overview()
        elif args.command == "trainees":
            await dashboard.show_trainees(args.sponsor)
        elif args.command == "rooms":
            await dashboard.show_rooms(args.block)
        elif args.command == "tags":
            await dashboard.show_tags(args.status)
        elif args.command == "ids":
            await dashboard.show_ids(args.id_type)
        elif args.command == "sync":
            await dashboard.synchronize()
        elif args.command == "cleanup-rooms":
            await dashboard.cleanup_rooms()
        elif args.command == "cleanup-tags":
            await dashboard.cleanup_tags()
        elif args.command == "fix-status":
            await dashboard.fix_status()
        elif args.command == "migrate":
            await dashboard.migrate()
        elif args.command == "generate-ids":
            await dashboard.generate_ids(args.id_type, args.count)
        elif args.command == "free-id":
            await dashboard.free_id(args.generated_id, args.reason)
        elif args.command == "deactivate-id":
            await dashboard.deactivate_id(args.generated_id, args.reason)
        elif args.command == "activate-sponsor":
            await dashboard.activate_sponsor(args.sponsor_id)

        await client.admin_logout()


def print_checks(wizard: RegistrationWizard, console: Console) -> None:
    for name, status in wizard.progress.checks.items():
        console.print(f"  {CHECK_ICONS[status]} {CHECK_LABELS[name]}")


def _optional(value: str) -> Optional[str]:
    return value.strip() or None


async def run_registration(args: argparse.Namespace, console: Console) -> None:
    async with PortalClient(args.url) as client:
        wizard = RegistrationWizard(client)

        while wizard.step == WizardStep.ACCOUNT:
            email = Prompt.ask("Email")
            password = Prompt.ask("Password", password=True)
            confirm = Prompt.ask("Confirm password", password=True)
            await wizard.submit_account(email, password, confirm)
            print_checks(wizard, console)
            if wizard.error:
                console.print(f"[red]{wizard.error}[/red]")

        console.print(f"[green]A verification code was sent to {wizard.email}[/green]")
        if wizard.dev_code:
            console.print(f"[dim]Development code: {wizard.dev_code}[/dim]")

        while wizard.step == WizardStep.VERIFY:
            if not await wizard.submit_code(Prompt.ask("Verification code")):
                console.print(f"[red]{wizard.error}[/red]")

        while wizard.step == WizardStep.PROFILE:
            profile = {
                "firstName": Prompt.ask("First name"),
                "middleName": _optional(Prompt.ask("Middle name", default="")),
                "surname": Prompt.ask("Surname"),
                "gender": Prompt.ask("Gender", choices=["male", "female"]),
                "phone": _optional(Prompt.ask("Phone", default="")),
                "state": _optional(Prompt.ask("State", default="")),
                "lga": _optional(Prompt.ask("LGA", default="")),
            }
            if not await wizard.submit_profile(profile):
                console.print(f"[red]{wizard.error}[/red]")

        console.print("[bold green]Registration completed successfully[/bold green]")


def main() -> int:
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args()
    console = Console()

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "serve":
        from farmportal.main import run
        run()
        return 0

    try:
        if args.command == "register":
            asyncio.run(run_registration(args, console))
        else:
            asyncio.run(run_admin_command(args, console))
    except PortalAPIError as e:
        console.print(f"[red]Error ({e.status}): {e.message}[/red]")
        return 1
    except MutationInProgressError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled[/dim]")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
