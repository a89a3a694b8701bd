from pathlib import Path

import typer
from rich.table import Table

from critical.core.container import get_container
from critical.core.decorators import handle_errors
from critical.core.logging import console


@handle_errors
def main(
    output: Path | None = typer.Option(
        None, '--output', '-o', help='Database path (default: critical-packages.db)',
    ),
):
    """Show database statistics."""
    container = get_container()
    db_path = container.resolve_database(output)

    with container.get_query_repository(db_path) as query_repo:
        summary = container.get_stats_service().summarize(query_repo)

    console.print(f'Database: [cyan]{db_path}[/]')
    console.print(f'Built: [cyan]{summary.built_at or "unknown"}[/]')
    console.print()

    overview = Table(title='Database Statistics')
    overview.add_column('Metric', style='cyan')
    overview.add_column('Value', style='magenta', justify='right')
    overview.add_row('Packages', f'{summary.package_count:,}')
    overview.add_row('Versions', f'{summary.version_count:,}')
    overview.add_row('Advisories', f'{summary.advisory_count:,}')
    console.print(overview)
    console.print()

    eco_table = Table(title='Packages by Ecosystem')
    eco_table.add_column('Ecosystem', style='cyan')
    eco_table.add_column('Packages', style='magenta', justify='right')
    for ecosystem, count in summary.ecosystems:
        eco_table.add_row(ecosystem, f'{count:,}')
    console.print(eco_table)
    console.print()

    severity_table = Table(title='Advisories by Severity')
    severity_table.add_column('Severity', style='cyan')
    severity_table.add_column('Advisories', style='magenta', justify='right')
    for severity, count in summary.severities:
        severity_table.add_row(severity, f'{count:,}')
    console.print(severity_table)
