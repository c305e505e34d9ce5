"""Pydantic models for the persisted dependency index."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator


class PackageRecord(BaseModel):
    """One package in the index.

    ``dependencies`` maps a dependency name (or, before canonicalization,
    whatever key the manifest used) to the declared version, range or URL.
    ``dependents`` is only populated by the index builder.
    """

    repository: str | None = None
    name: str = Field(min_length=1)
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    node_version: str | None = None
    base_image: str | None = None
    dependents: set[str] = Field(default_factory=set)

    @field_serializer("dependents")
    def _serialize_dependents(self, dependents: set[str]) -> list[str]:
        return sorted(dependents)

    @classmethod
    def placeholder(cls, name: str) -> PackageRecord:
        """A record for a package that is referenced but was never crawled."""
        return cls(name=name)


class Index(BaseModel):
    """Packages keyed by name plus the repository -> package name map.

    Serialized as ``{"pkgs": {...}, "repos": {...}}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    packages: dict[str, PackageRecord] = Field(default_factory=dict, alias="pkgs")
    repositories: dict[str, str] = Field(default_factory=dict, alias="repos")

    @model_validator(mode="after")
    def _check_repositories(self) -> Index:
        missing = sorted(
            repo for repo, name in self.repositories.items() if name not in self.packages
        )
        if missing:
            raise ValueError(f"repositories map to unknown packages: {', '.join(missing)}")
        return self

    def lookup(self, key: str) -> PackageRecord | None:
        """Find a package by name, falling back to repository identity."""
        pkg = self.packages.get(key)
        if pkg is None and key in self.repositories:
            pkg = self.packages.get(self.repositories[key])
        return pkg
