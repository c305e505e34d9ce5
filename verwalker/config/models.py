from pydantic import BaseModel, Field
from typing import Literal


class VCSConfig(BaseModel):
    provider: Literal["github"] = "github"
    api_url: str = "https://api.github.com"
    user_env: str = "GITHUB_USER"
    key_env: str = "GITHUB_KEY"
    timeout: int = Field(default=30, gt=0)
    retries: int = Field(default=0, ge=0)


class CrawlConfig(BaseModel):
    accounts: list[str] = Field(default_factory=lambda: ["joyent"])
    per_page: int = Field(default=100, ge=1, le=100)
    branch: str = "master"
    manifest_path: str = "package.json"
    build_script_path: str = "Makefile"
    submodules_path: str = ".gitmodules"


class GuardConfig(BaseModel):
    interval: float = Field(default=3.0, gt=0)
    low_water_ratio: float = Field(default=0.02, gt=0, lt=1)


class OutputConfig(BaseModel):
    index_file: str = "verwalker-index.json"


class VerwalkerConfig(BaseModel):
    vcs: VCSConfig = Field(default_factory=VCSConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    guard: GuardConfig = Field(default_factory=GuardConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
