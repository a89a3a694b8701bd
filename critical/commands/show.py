import json
from pathlib import Path

import typer
from rich.table import Table

from critical.core.container import get_container
from critical.core.decorators import handle_errors
from critical.core.logging import console


@handle_errors
def main(
    ecosystem: str | None = typer.Argument(None, help='Package ecosystem, e.g. npm'),
    name: str | None = typer.Argument(None, help='Package name'),
    purl: str | None = typer.Option(None, '--purl', help='Look the package up by package URL instead'),
    output: Path | None = typer.Option(
        None, '--output', '-o', help='Database path (default: critical-packages.db)',
    ),
):
    """Show one package with its repository, advisories and versions."""
    if not purl and not (ecosystem and name):
        console.print('[bold red]Error:[/] give ECOSYSTEM and NAME, or --purl')
        raise typer.Exit(2)

    container = get_container()
    db_path = container.resolve_database(output)

    with container.get_query_repository(db_path) as query_repo:
        if purl:
            package = query_repo.get_package_by_purl(purl)
        else:
            package = query_repo.get_package(ecosystem, name)
        if package is None:
            console.print(f"[bold red]Not found:[/] {purl or f'{ecosystem}/{name}'}")
            raise typer.Exit(1)
        repo = query_repo.get_repo_metadata(package['id'])
        advisories = query_repo.get_advisories(package['id'])
        versions = query_repo.get_versions(package['id'])

    details = Table(title=f"{package['ecosystem']}/{package['name']}", show_header=False)
    details.add_column('Field', style='cyan')
    details.add_column('Value')
    details.add_row('Purl', package['purl'] or '-')
    details.add_row('Description', package['description'] or '-')
    details.add_row('Homepage', package['homepage'] or '-')
    details.add_row('Repository', package['repository_url'] or '-')
    licenses = json.loads(package['normalized_licenses']) if package['normalized_licenses'] else []
    details.add_row('Licenses', ', '.join(licenses) or package['licenses'] or '-')
    details.add_row('Latest Version', package['latest_version'] or '-')
    details.add_row('Known Versions', f'{len(versions):,}')
    details.add_row('Downloads', f"{package['downloads'] or 0:,} ({package['downloads_period'] or 'n/a'})")
    details.add_row('Dependent Packages', f"{package['dependent_packages_count'] or 0:,}")
    details.add_row('Dependent Repos', f"{package['dependent_repos_count'] or 0:,}")
    if repo:
        details.add_row('Source', f"{repo['host'] or '?'}: {repo['full_name'] or '-'}")
        details.add_row('Stars / Forks', f"{repo['stargazers_count'] or 0:,} / {repo['forks_count'] or 0:,}")
        details.add_row('Archived', 'yes' if repo['archived'] else 'no')
    console.print(details)

    if advisories:
        adv_table = Table(title='Advisories')
        adv_table.add_column('ID', style='cyan', no_wrap=True)
        adv_table.add_column('Severity', style='magenta')
        adv_table.add_column('CVSS', justify='right')
        adv_table.add_column('Title', overflow='fold')
        for adv in advisories:
            adv_table.add_row(
                adv['uuid'], adv['severity'] or 'unknown',
                f"{adv['cvss_score']:.1f}" if adv['cvss_score'] is not None else '-',
                adv['title'] or '',
            )
        console.print(adv_table)
