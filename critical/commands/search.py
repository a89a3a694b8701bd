from pathlib import Path

import typer
from rich.table import Table

from critical.core.container import get_container
from critical.core.decorators import handle_errors
from critical.core.logging import console


@handle_errors
def main(
    query: str = typer.Argument(..., help='Search terms'),
    output: Path | None = typer.Option(
        None, '--output', '-o', help='Database path (default: critical-packages.db)',
    ),
    ecosystem: str | None = typer.Option(None, help='Restrict to one ecosystem'),
    limit: int = typer.Option(20, min=1, help='Maximum number of results'),
):
    """Full-text search over package names, descriptions and keywords."""
    container = get_container()
    db_path = container.resolve_database(output)

    with container.get_query_repository(db_path) as query_repo:
        results = query_repo.search(query, ecosystem=ecosystem, limit=limit)

    if not results:
        console.print(f'[yellow]No packages match[/] [bold]{query}[/]')
        return

    table = Table(title=f'Results for "{query}"')
    table.add_column('Ecosystem', style='cyan')
    table.add_column('Name', style='bold')
    table.add_column('Latest', style='green')
    table.add_column('Dependent Repos', style='magenta', justify='right')
    table.add_column('Description', style='dim', overflow='ellipsis', max_width=60)
    for row in results:
        table.add_row(
            row['ecosystem'],
            row['name'],
            row['latest_version'] or '-',
            f"{row['dependent_repos_count'] or 0:,}",
            row['description'] or '',
        )
    console.print(table)
