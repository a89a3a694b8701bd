from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from critical.__main__ import app
from critical.core.exceptions import TransportError
from critical.core.repository import IngestionRepository
from critical.models.build_info import BuildInfo

runner = CliRunner()


@pytest.fixture
def database(tmp_path, lodash):
    path = tmp_path / 'critical-packages.db'
    with IngestionRepository(path) as repo:
        repo.create_schema()
        repo.insert_catalog([lodash])
        repo.insert_version_batch([(1, ['4.17.21'])])
    return path


def test_stats(database):
    result = runner.invoke(app, ['stats', '--output', str(database)])
    assert result.exit_code == 0
    assert 'Database Statistics' in result.output
    assert 'Built: unknown' in result.output
    assert 'MODERATE' in result.output


def test_stats_missing_database(tmp_path):
    result = runner.invoke(app, ['stats', '-o', str(tmp_path / 'missing.db')])
    assert result.exit_code == 1
    assert 'Database not found' in result.output


def test_search(database):
    result = runner.invoke(app, ['search', 'stdlib', '-o', str(database)])
    assert result.exit_code == 0
    assert 'lodash' in result.output


def test_search_no_results(database):
    result = runner.invoke(app, ['search', 'kubernetes', '-o', str(database)])
    assert result.exit_code == 0
    assert 'No packages match' in result.output


def test_show(database):
    result = runner.invoke(app, ['show', 'npm', 'lodash', '-o', str(database)])
    assert result.exit_code == 0
    assert 'GHSA-29mw-wpgm-hmr9' in result.output


def test_show_unknown_package(database):
    result = runner.invoke(app, ['show', 'npm', 'left-pad', '-o', str(database)])
    assert result.exit_code == 1


def test_show_by_purl(database):
    result = runner.invoke(app, ['show', '--purl', 'pkg:npm/lodash', '-o', str(database)])
    assert result.exit_code == 0
    assert 'npm/lodash' in result.output
    assert 'GHSA-29mw-wpgm-hmr9' in result.output


def test_show_unknown_purl(database):
    result = runner.invoke(app, ['show', '--purl', 'pkg:npm/left-pad', '-o', str(database)])
    assert result.exit_code == 1
    assert 'pkg:npm/left-pad' in result.output


def test_show_requires_name_or_purl(database):
    result = runner.invoke(app, ['show', 'npm', '-o', str(database)])
    assert result.exit_code == 2
    assert '--purl' in result.output


@patch('critical.commands.build.get_container')
def test_build_success(mock_get_container, tmp_path):
    service = mock_get_container.return_value.create_build_service.return_value
    service.build.return_value = BuildInfo(
        built_at='2024-01-01T00:00:00.000Z', package_count=1, version_count=2, advisory_count=0,
    )
    output = tmp_path / 'out.db'

    result = runner.invoke(app, ['build', '-o', str(output), '--skip-versions', '--concurrency', '4'])

    assert result.exit_code == 0
    assert 'Build Summary' in result.output
    mock_get_container.return_value.create_build_service.assert_called_once_with(concurrency=4)
    args, kwargs = service.build.call_args
    assert args == (output,)
    assert kwargs['fetch_versions'] is False


@patch('critical.commands.build.get_container')
def test_build_failure_exits_non_zero(mock_get_container, tmp_path):
    service = mock_get_container.return_value.create_build_service.return_value
    service.build.side_effect = TransportError('https://api.test/v1/packages/critical', status=502)

    result = runner.invoke(app, ['build', '-o', str(tmp_path / 'out.db')])

    assert result.exit_code == 1
    assert 'HTTP 502' in result.output
