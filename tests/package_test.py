import pytest
from pydantic import ValidationError

from critical.models.package import Package


class TestPackageModel:
    """Tests for parsing upstream package records."""

    def test_aliases(self, lodash_record):
        package = Package.model_validate(lodash_record)
        assert package.latest_version == '4.17.21'
        assert package.keywords_text == 'modules stdlib util'
        assert package.host.name == 'GitHub'

    @pytest.mark.parametrize('field,value', [
        ('id', 'not-a-number'),
        ('name', None),
        ('ecosystem', ['npm']),
    ])
    def test_invalid_identity_rejects_record(self, lodash_record, field, value):
        with pytest.raises(ValidationError):
            Package.model_validate(dict(lodash_record, **{field: value}))

    def test_invalid_optional_scalars_become_none(self, lodash_record):
        package = Package.model_validate(dict(
            lodash_record, downloads='lots', versions_count={'n': 1}, description=42,
        ))
        assert package.downloads is None
        assert package.versions_count is None
        assert package.description is None
        assert package.name == 'lodash'

    def test_malformed_advisories_are_dropped_individually(self, lodash_record):
        advisories = ['GHSA-bogus', None, lodash_record['advisories'][0]]
        package = Package.model_validate(dict(lodash_record, advisories=advisories))
        assert [a.uuid for a in package.advisories] == ['GHSA-29mw-wpgm-hmr9']

    def test_advisories_not_a_list(self, lodash_record):
        package = Package.model_validate(dict(lodash_record, advisories='none'))
        assert package.advisories == []

    def test_repo_metadata_invalid_counts(self, lodash_record):
        metadata = dict(lodash_record['repo_metadata'], stargazers_count='59k', owner={'login': 'jdalton'})
        package = Package.model_validate(dict(lodash_record, repo_metadata=metadata))
        assert package.repo_metadata.stargazers_count is None
        assert package.repo_metadata.owner == 'jdalton'
        assert package.repo_metadata.forks_count == 7000

    def test_repo_metadata_wrong_type(self, lodash_record):
        package = Package.model_validate(dict(lodash_record, repo_metadata='lodash/lodash'))
        assert package.repo_metadata is None

    def test_empty_repo_metadata(self, lodash_record):
        package = Package.model_validate(dict(lodash_record, repo_metadata={}))
        assert package.repo_metadata is None

    def test_normalized_licenses_filtered(self, lodash_record):
        package = Package.model_validate(dict(lodash_record, normalized_licenses=['MIT', None, 3, 'ISC']))
        assert package.normalized_licenses == ['MIT', 'ISC']
