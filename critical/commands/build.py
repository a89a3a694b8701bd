from pathlib import Path

import typer
from rich.table import Table

from critical.core.container import get_container
from critical.core.decorators import handle_errors
from critical.core.logging import console
from critical.core.logging import progress_logger
from critical.core.stats import ProgressTracker


@handle_errors
def main(
    output: Path | None = typer.Option(
        None, '--output', '-o', help='Output database path (default: critical-packages.db)',
    ),
    skip_versions: bool = typer.Option(
        False, '--skip-versions', help='Skip fetching version data (faster)',
    ),
    concurrency: int | None = typer.Option(
        None, min=1, help='Concurrent version lookups (default: 10)',
    ),
):
    """
    Build the critical packages database from scratch.
    """
    container = get_container()
    db_path = output or container.config.paths.database
    service = container.create_build_service(concurrency=concurrency)
    progress = ProgressTracker()
    progress.callback = progress_logger(progress)

    info = service.build(
        db_path,
        fetch_versions=not skip_versions,
        progress=progress,
    )

    table = Table(title='Build Summary')
    table.add_column('Metric', style='cyan')
    table.add_column('Value', style='magenta')
    table.add_row('Database', str(db_path))
    table.add_row('Packages', f'{info.package_count:,}')
    table.add_row('Versions', f'{info.version_count:,}')
    table.add_row('Advisories', f'{info.advisory_count:,}')
    table.add_row('Total Duration', f'{progress.elapsed_time:.2f}s')
    console.print(table)
