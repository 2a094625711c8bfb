#!/usr/bin/env python3
"""Project Lens CLI - filter and explore a fetched GitHub Project snapshot.

Usage:
    # Items assigned to a user, as an envelope
    gh api graphql -f query=... | python main.py --assignee octocat

    # How many Ready items in one repository
    python main.py project.json --repo api --status Ready --count

    # Which statuses are in use, then filter on one of them
    python main.py project.json --list status
    python main.py project.json --status "In Progress" --items-only --limit 10

    # Field schema from a field-structure response
    python main.py fields.json --list-fields
"""

import json
import logging
import sys
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from config import settings
from contracts import FilterCriteria
from orchestrator import OutputView, QueryPipeline
from pipeline import ProjectLensError


console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def parse_field_filters(values: Tuple[str, ...]) -> dict:
    """Turn NAME=VALUE pairs into a field-constraint mapping."""
    fields = {}
    for raw in values:
        name, sep, value = raw.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got '{raw}'", param_hint="--field")
        fields[name.strip()] = value
    return fields


@click.command()
@click.argument("input_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--repo", "-r", "repository",
    default="",
    help="Only items in this repository (short name)"
)
@click.option(
    "--assignee", "-a",
    default="",
    help="Only items assigned to this user"
)
@click.option(
    "--status", "-s",
    default="",
    help=f"Only items with this {settings.status_field} value"
)
@click.option(
    "--priority", "-p",
    default="",
    help=f"Only items with this {settings.priority_field} value"
)
@click.option(
    "--field", "-f", "field_filters",
    multiple=True,
    metavar="NAME=VALUE",
    help="Only items whose project field NAME equals VALUE (repeatable)"
)
@click.option(
    "--sort",
    default=None,
    help="Sort by POSITION, CREATED_AT, UPDATED_AT, TITLE or a field name"
)
@click.option(
    "--desc", "descending",
    is_flag=True,
    help="Sort descending"
)
@click.option(
    "--list", "list_facet",
    default=None,
    metavar="FACET",
    help="List distinct values of assignee, repository, status, priority, reviewer, linked_pr or any field"
)
@click.option(
    "--list-fields",
    is_flag=True,
    help="Describe the project's fields (input is a field-structure response)"
)
@click.option(
    "--list-projects",
    is_flag=True,
    help="Summarize projects (input is a project-discovery response)"
)
@click.option(
    "--count", "count_only",
    is_flag=True,
    help="Print only the number of matching items"
)
@click.option(
    "--items-only",
    is_flag=True,
    help="Print only the matching items"
)
@click.option(
    "--limit", "-n",
    type=int,
    default=None,
    help=f"Return at most this many items (max {settings.max_output_limit})"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Verbose logging"
)
def main(
    input_file,
    repository: str,
    assignee: str,
    status: str,
    priority: str,
    field_filters: Tuple[str, ...],
    sort: Optional[str],
    descending: bool,
    list_facet: Optional[str],
    list_fields: bool,
    list_projects: bool,
    count_only: bool,
    items_only: bool,
    limit: Optional[int],
    verbose: bool,
):
    """Project Lens: query a GitHub Projects v2 snapshot.

    Reads a project document (from INPUT_FILE or stdin) and prints the
    filtered result as JSON. Empty filter options are ignored.
    """
    configure_logging(verbose)

    if count_only and items_only:
        raise click.UsageError("--count and --items-only are mutually exclusive")
    if sum(bool(x) for x in (list_facet, list_fields, list_projects)) > 1:
        raise click.UsageError("Use only one of --list, --list-fields and --list-projects")
    if (list_facet or list_fields or list_projects) and (
        count_only or items_only or limit is not None or sort or descending
    ):
        raise click.UsageError("--count, --items-only, --limit, --sort and --desc do not apply to listings")

    try:
        document = json.load(input_file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Error: input is not valid JSON ({escape(str(e))})[/red]")
        sys.exit(1)

    pipeline = QueryPipeline()
    criteria = FilterCriteria(
        repository=repository,
        assignee=assignee,
        status=status,
        priority=priority,
        fields=parse_field_filters(field_filters),
    )

    if count_only:
        view = OutputView.COUNT
    elif items_only:
        view = OutputView.ITEMS
    else:
        view = OutputView.ENVELOPE

    try:
        if list_fields:
            result = pipeline.describe(document)
        elif list_projects:
            result = pipeline.projects(document)
        else:
            result = pipeline.run(
                document,
                criteria=criteria,
                sort=sort,
                descending=descending,
                facet=list_facet,
                view=view,
                limit=limit,
            )
    except ProjectLensError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print_json(data=result)


if __name__ == "__main__":
    main()
