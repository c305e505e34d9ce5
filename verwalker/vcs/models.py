"""Pydantic models for VCS data."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class VCSError(Exception):
    """Wraps a transport failure from the hosting API with context."""

    def __init__(self, operation: str, target: str, cause: Exception) -> None:
        self.operation = operation
        self.target = target
        super().__init__(f"{operation} failed for {target}: {cause}")
        self.__cause__ = cause


class RepoDescriptor(BaseModel):
    """Identity of a crawled repository."""

    full_name: str = Field(min_length=1, description="owner/repo")
    owner: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        owner, sep, name = v.partition("/")
        if not sep or not owner or not name:
            raise ValueError(f"full_name must look like 'owner/repo', got {v!r}")
        return v


class GitObjectRefs(BaseModel):
    """Commit and root tree resolved from a branch head."""

    commit_sha: str
    tree_sha: str


class TreeEntry(BaseModel):
    """One entry of a git tree listing."""

    path: str
    type: Literal["blob", "tree", "commit"]
    sha: str


class RateLimitStatus(BaseModel):
    """Core API quota as reported by the hosting API."""

    remaining: int
    limit: int
    reset: int = Field(description="Epoch seconds at which the quota resets")

    @property
    def ratio(self) -> float:
        if self.limit <= 0:
            return 0.0
        return self.remaining / self.limit


class Submodule(BaseModel):
    """A submodule declaration from a .gitmodules file."""

    name: str
    path: str
    url: str


class FetchResult(BaseModel):
    """Outcome of fetching one file from a repository.

    Transport failures are raised as VCSError instead of being returned.
    """

    status: Literal["ok", "absent"]
    content: bytes | None = None

    @classmethod
    def ok(cls, content: bytes) -> FetchResult:
        return cls(status="ok", content=content)

    @classmethod
    def absent(cls) -> FetchResult:
        return cls(status="absent")

    @property
    def found(self) -> bool:
        return self.status == "ok"
