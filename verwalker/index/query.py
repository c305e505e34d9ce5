"""Forward and reverse dependency queries against a loaded index."""

from __future__ import annotations

from functools import cmp_to_key

import nodesemver
from pydantic import BaseModel

from verwalker.index.models import Index, PackageRecord

# revdeps key that lists every package by its runtime version instead
NODE_KEY = "node"


class PackageNotFoundError(LookupError):
    """Neither a package nor a repository matches the query key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f'failed to find package or repo "{key}"')


class RevDep(BaseModel):
    """A package depending on the queried one, with the version it asked for."""

    name: str
    repository: str | None = None
    version: str = ""


def resolve(index: Index, key: str) -> PackageRecord:
    pkg = index.lookup(key)
    if pkg is None:
        raise PackageNotFoundError(key)
    return pkg


def deps(index: Index, key: str) -> list[tuple[str, str]]:
    """Dependencies of a package (or repository), sorted by name."""
    pkg = resolve(index, key)
    return sorted(pkg.dependencies.items(), key=lambda kv: kv[0])


def revdeps(index: Index, key: str) -> list[RevDep]:
    """Dependents of a package, ordered by the version they declared.

    ``node`` lists every package that declares a prebuilt runtime version,
    ordered by that version.
    """
    if key == NODE_KEY:
        found = [
            RevDep(name=p.name, repository=p.repository, version=p.node_version)
            for p in index.packages.values()
            if p.node_version
        ]
    else:
        pkg = resolve(index, key)
        found = []
        for dependent in pkg.dependents:
            other = index.packages.get(dependent)
            if other is None:
                continue
            found.append(
                RevDep(
                    name=other.name,
                    repository=other.repository,
                    version=other.dependencies.get(pkg.name, ""),
                )
            )
        # dependents is a set; fix the input order so ties come out stable
        found.sort(key=lambda r: r.name)
    return sorted(found, key=cmp_to_key(lambda a, b: compare_versions(a.version, b.version)))


def _exact(value: str) -> str | None:
    try:
        return nodesemver.valid(value, True)
    except (ValueError, TypeError):
        return None


def _is_range(value: str) -> bool:
    try:
        return nodesemver.valid_range(value, True) is not None
    except (ValueError, TypeError):
        return False


_LOWER_BOUNDS = frozenset({">", ">=", "", "="})
_UPPER_BOUNDS = frozenset({"<", "<=", "", "="})


def _position(version: str, range_: str) -> int:
    """-1 if version sorts below every match of range_, 1 if above, else 0.

    Each ``||`` alternative of the range is checked on its own: the version
    is below it when it misses a lower bound, above it when it misses an
    upper bound. Only a verdict shared by every alternative counts.
    """
    if nodesemver.satisfies(version, range_, True):
        return 0
    try:
        alternatives = nodesemver.Range(range_, True).set
    except (ValueError, TypeError):
        return 0

    below = above = True
    for comparators in alternatives:
        misses_low = misses_high = False
        for comp in comparators:
            bound = getattr(comp.semver, "version", None)
            if not bound:
                # "*" matches everything
                continue
            if nodesemver.satisfies(version, f"{comp.operator}{bound}", True):
                continue
            if comp.operator in _LOWER_BOUNDS and not nodesemver.gt(version, bound, True):
                misses_low = True
            if comp.operator in _UPPER_BOUNDS and not nodesemver.lt(version, bound, True):
                misses_high = True
        below = below and misses_low and not misses_high
        above = above and misses_high and not misses_low
    if below:
        return -1
    if above:
        return 1
    return 0


def compare_versions(a: str, b: str) -> int:
    """Three-tier comparator for declared versions.

    1. Two exact versions compare as semantic versions.
    2. An exact version and a range compare by whether the version falls
       below or above the range.
    3. Anything else, including ties from the tiers above, compares as
       plain strings.

    This is not a total order: two ranges, or a version inside a range,
    only ever get the string comparison.
    """
    a_ver, b_ver = _exact(a), _exact(b)
    order = 0
    if a_ver and b_ver:
        order = nodesemver.compare(a_ver, b_ver, True)
    elif a_ver and _is_range(b):
        order = _position(a_ver, b)
    elif b_ver and _is_range(a):
        order = -_position(b_ver, a)
    if order:
        return order
    return (a > b) - (a < b)
