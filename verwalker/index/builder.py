"""Index builder: canonicalizes dependency edges and links dependents.

Edges whose value points at a crawled repository (for example
``git+ssh://git@github.com/acme/widget.git#v1.0``) are rewritten to be keyed
by that repository's package name, with the ``#ref`` fragment (or
``#master``) as the value. Every edge target gets the source package added to
its ``dependents`` set; targets that were never crawled get a placeholder
record.
"""

from __future__ import annotations

import logging
import re

from verwalker.index.models import Index, PackageRecord

logger = logging.getLogger(__name__)

DEFAULT_REF = "#master"

_HOSTED_REF_RE = re.compile(
    r"github\.com[:/](?P<slug>[^/#:]+/[^/#]+?)(?:\.git)?(?P<ref>#.*)?$"
)


def match_hosted_ref(value: str) -> tuple[str, str | None] | None:
    """Split a hosted repository reference into ("owner/repo", "#ref" or None)."""
    m = _HOSTED_REF_RE.search(value)
    if m is None:
        return None
    return m.group("slug"), m.group("ref")


def _canonicalize(
    dep_key: str, dep_value: str, repositories: dict[str, str]
) -> tuple[str, str]:
    """Return the (key, value) an edge should be stored under."""
    matched = match_hosted_ref(dep_value)
    if matched is None:
        return dep_key, dep_value
    slug, ref = matched
    target = repositories.get(slug)
    if target is None:
        return dep_key, dep_value
    return target, ref or DEFAULT_REF


def build_index(raw: Index) -> Index:
    """Build a queryable index from crawled records.

    The input is not modified. Running the builder over its own output
    returns an equal index. A placeholder for an unknown dependency is
    created under the package name its declaration resolves to, not under
    the raw dependency key.
    """
    packages: dict[str, PackageRecord] = {
        name: record.model_copy(update={"dependents": set()}, deep=True)
        for name, record in raw.packages.items()
    }
    repositories = dict(raw.repositories)
    rewritten = 0

    for name in list(packages):
        record = packages[name]
        dependencies: dict[str, str] = {}
        for dep_key, dep_value in record.dependencies.items():
            key, value = _canonicalize(dep_key, dep_value, repositories)
            if key != dep_key:
                rewritten += 1
            dependencies[key] = value

            target = packages.get(key)
            if target is None:
                target = PackageRecord.placeholder(key)
                packages[key] = target
            target.dependents.add(record.name)
        record.dependencies = dependencies

    logger.info(
        "indexed %d packages (%d repositories, %d edges canonicalized)",
        len(packages),
        len(repositories),
        rewritten,
    )
    return Index(packages=packages, repositories=repositories)
