from enum import Enum


class Ecosystem(str, Enum):
    NPM = 'npm'
    PYPI = 'pypi'
    RUBYGEMS = 'rubygems'
    GO = 'go'
    CARGO = 'cargo'
    MAVEN = 'maven'
    NUGET = 'nuget'
    PACKAGIST = 'packagist'
    HEX = 'hex'
    PUB = 'pub'
    HACKAGE = 'hackage'
    COCOAPODS = 'cocoapods'
    CONDA = 'conda'
    CLOJARS = 'clojars'
    PUPPET = 'puppet'
    HOMEBREW = 'homebrew'

    def __str__(self) -> str:
        return self.value

    @property
    def registry(self) -> str:
        return REGISTRIES[self]


# Registry hostnames as used in /registries/{registry}/... API paths
REGISTRIES: dict[Ecosystem, str] = {
    Ecosystem.NPM: 'npmjs.org',
    Ecosystem.PYPI: 'pypi.org',
    Ecosystem.RUBYGEMS: 'rubygems.org',
    Ecosystem.GO: 'proxy.golang.org',
    Ecosystem.CARGO: 'crates.io',
    Ecosystem.MAVEN: 'repo1.maven.org',
    Ecosystem.NUGET: 'nuget.org',
    Ecosystem.PACKAGIST: 'packagist.org',
    Ecosystem.HEX: 'hex.pm',
    Ecosystem.PUB: 'pub.dev',
    Ecosystem.HACKAGE: 'hackage.haskell.org',
    Ecosystem.COCOAPODS: 'cocoapods.org',
    Ecosystem.CONDA: 'anaconda.org',
    Ecosystem.CLOJARS: 'clojars.org',
    Ecosystem.PUPPET: 'forge.puppet.com',
    Ecosystem.HOMEBREW: 'formulae.brew.sh',
}


def parse_ecosystem(name: str | None) -> Ecosystem | None:
    """Case-insensitive lookup; None for anything outside the known set."""
    if not name:
        return None
    try:
        return Ecosystem(name.lower())
    except ValueError:
        return None


def registry_for(name: str | None) -> str | None:
    ecosystem = parse_ecosystem(name)
    if ecosystem is None:
        return None
    return ecosystem.registry
