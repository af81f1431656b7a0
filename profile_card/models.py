"""Records passed between the data source, the aggregator and the renderer."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

PUSH_EVENT = "PushEvent"


@dataclass(frozen=True)
class Profile:
    login: str
    public_repo_count: int
    created_at: Optional[str] = None


@dataclass(frozen=True)
class RepositorySummary:
    name: str
    stars: int = 0
    language: Optional[str] = None


@dataclass(frozen=True)
class ActivityEvent:
    type: str
    commit_count: int = 0

    @property
    def is_push(self) -> bool:
        return self.type == PUSH_EVENT


@dataclass(frozen=True)
class AggregatedStats:
    uptime: str
    repo_count: int
    star_count: int
    commit_metric: str
    top_languages: Tuple[str, ...]
