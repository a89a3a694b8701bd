from unittest.mock import MagicMock

import pytest

from critical.core.config import ApiConfig
from critical.core.repository import IngestionRepository
from critical.models.package import Package
from critical.services.registry_service import RegistryClient

API_BASE = 'https://api.test/v1'


def make_response(payload=None, status_code=200, invalid_json=False):
    response = MagicMock()
    response.status_code = status_code
    if invalid_json:
        response.json.side_effect = ValueError('Expecting value')
    else:
        response.json.return_value = payload
    return response


def make_session(routes: dict):
    """A session whose get() answers from a url -> response (or exception) mapping."""
    session = MagicMock()
    session.headers = {}

    def get(url, timeout=None):
        answer = routes.get(url)
        if answer is None:
            return make_response(status_code=404)
        if isinstance(answer, Exception):
            raise answer
        return answer

    session.get.side_effect = get
    return session


def page_url(page, per_page=2):
    return f'{API_BASE}/packages/critical?per_page={per_page}&page={page}'


def versions_url(registry, name):
    return f'{API_BASE}/registries/{registry}/packages/{name}/version_numbers'


@pytest.fixture
def api_config():
    return ApiConfig(
        base_url=API_BASE,
        per_page=2,
        rate_limit_delay=0,
        concurrency=2,
        user_agent='critical-packages/test',
    )


@pytest.fixture
def client_factory(api_config):
    def factory(routes: dict) -> RegistryClient:
        return RegistryClient(api_config, session=make_session(routes))
    return factory


@pytest.fixture
def lodash_record():
    return {
        'id': 1,
        'ecosystem': 'npm',
        'name': 'lodash',
        'purl': 'pkg:npm/lodash',
        'namespace': None,
        'description': 'Lodash modular utilities.',
        'homepage': 'https://lodash.com/',
        'repository_url': 'https://github.com/lodash/lodash',
        'licenses': 'MIT',
        'normalized_licenses': ['MIT'],
        'latest_release_number': '4.17.21',
        'versions_count': 114,
        'downloads': 307500000,
        'downloads_period': 'last-month',
        'dependent_packages_count': 159122,
        'dependent_repos_count': 1900000,
        'first_release_published_at': '2012-04-23T16:37:11.912Z',
        'latest_release_published_at': '2021-02-20T15:42:16.891Z',
        'last_synced_at': '2024-01-01T00:00:00.000Z',
        'keywords_array': ['modules', 'stdlib', 'util'],
        'repo_metadata': {
            'owner': 'lodash',
            'name': 'lodash',
            'full_name': 'lodash/lodash',
            'language': 'JavaScript',
            'stargazers_count': 59000,
            'forks_count': 7000,
            'open_issues_count': 100,
            'archived': False,
            'fork': False,
        },
        'host': {'name': 'GitHub', 'url': 'https://github.com'},
        'advisories': [
            {
                'uuid': 'GHSA-29mw-wpgm-hmr9',
                'url': 'https://github.com/advisories/GHSA-29mw-wpgm-hmr9',
                'title': 'Regular Expression Denial of Service (ReDoS) in lodash',
                'description': 'Lodash versions prior to 4.17.21 are vulnerable to ReDoS.',
                'severity': 'MODERATE',
                'published_at': '2022-01-06T20:30:46.000Z',
                'cvss_score': 5.3,
            },
            {
                'uuid': 'GHSA-35jh-r3h4-6jhm',
                'url': 'https://github.com/advisories/GHSA-35jh-r3h4-6jhm',
                'title': 'Command Injection in lodash',
                'severity': 'HIGH',
                'published_at': '2021-05-06T16:05:51.000Z',
                'cvss_score': 7.2,
            },
        ],
    }


@pytest.fixture
def lodash(lodash_record):
    return Package.model_validate(lodash_record)


@pytest.fixture
def ingestion_repo(tmp_path):
    repo = IngestionRepository(tmp_path / 'test-critical.db')
    repo.create_schema()
    yield repo
    repo.close()
