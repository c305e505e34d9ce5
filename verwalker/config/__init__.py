from .loader import load_config
from .models import (
    CrawlConfig,
    GuardConfig,
    OutputConfig,
    VCSConfig,
    VerwalkerConfig,
)

__all__ = [
    "CrawlConfig",
    "GuardConfig",
    "OutputConfig",
    "VCSConfig",
    "VerwalkerConfig",
    "load_config",
]
