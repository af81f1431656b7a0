"""
GitHub data source.

Profile, owned repositories and commit contributions come from the GraphQL
API (v4); recent activity comes from the REST public events endpoint.
Every failure is raised as RemoteError so callers can decide whether the
data point is essential.
"""

from __future__ import annotations
import abc
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import requests

from .config import debug
from .errors import RemoteError
from .models import ActivityEvent, Profile, RepositorySummary

GRAPHQL_URL = "https://api.github.com/graphql"
REST_API_URL = "https://api.github.com"
USER_AGENT = "GitHub-Profile-SVG-Generator"
REPOS_PER_PAGE = 100
EVENTS_PER_PAGE = 100
REQUEST_TIMEOUT = 40

PROFILE_QUERY = """
query($login: String!){
  user(login: $login){
    login
    createdAt
    repositories(ownerAffiliations: OWNER, privacy: PUBLIC, isFork: false){ totalCount }
  }
}"""

REPOS_QUERY = """
query($login: String!, $cursor: String, $pageSize: Int!){
  user(login: $login){
    repositories(first: $pageSize, after: $cursor, ownerAffiliations: OWNER, privacy: PUBLIC, isFork: false){
      nodes{
        name
        stargazerCount
        primaryLanguage{ name }
      }
      pageInfo{ endCursor hasNextPage }
    }
  }
}"""

CONTRIBUTIONS_QUERY = """
query($login: String!){
  user(login: $login){
    contributionsCollection{ totalCommitContributions }
  }
}"""


class RemoteDataSource(abc.ABC):
    """Queryable view of the hosted repository service for one subject."""

    @abc.abstractmethod
    def fetch_profile(self, login: str) -> Profile:
        ...

    @abc.abstractmethod
    def iter_repositories(self, login: str) -> Iterator[RepositorySummary]:
        ...

    @abc.abstractmethod
    def fetch_recent_events(self, login: str) -> List[ActivityEvent]:
        ...

    def fetch_commit_contributions(self, login: str) -> Optional[int]:
        """Exact commit count, or None when this source cannot provide one."""
        return None


@dataclass
class PageCursor:
    """Position in a cursor-paginated listing."""
    after: Optional[str] = None
    has_next: bool = True
    pages: int = 0
    seen: Set[str] = field(default_factory=set)

    def advance(self, end_cursor: Optional[str], has_next_page: bool):
        self.pages += 1
        self.has_next = bool(has_next_page)
        if not self.has_next:
            return
        if not end_cursor or end_cursor in self.seen:
            raise RemoteError(None, f"pagination cursor did not advance after page {self.pages}")
        self.seen.add(end_cursor)
        self.after = end_cursor


PageFetcher = Callable[[Optional[str]], Tuple[List[RepositorySummary], Optional[str], bool]]


class RepositoryPager:
    """Lazy, forward-only iterator over a paginated repository listing.

    Pages are requested one at a time as the consumer drains the previous
    one. The pager cannot be rewound; a retry needs a fresh pager, which
    starts again from page one.
    """

    def __init__(self, fetch_page: PageFetcher):
        self._fetch_page = fetch_page
        self.cursor = PageCursor()
        self._buffer: List[RepositorySummary] = []

    def __iter__(self) -> "RepositoryPager":
        return self

    def __next__(self) -> RepositorySummary:
        while not self._buffer:
            if not self.cursor.has_next:
                raise StopIteration
            items, end_cursor, has_next_page = self._fetch_page(self.cursor.after)
            self.cursor.advance(end_cursor, has_next_page)
            self._buffer = list(items)
        return self._buffer.pop(0)


class GitHubDataSource(RemoteDataSource):

    def __init__(self, token: str, max_retries: int = 1, retry_backoff: float = 1.5):
        self.token = token
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.query_count: Dict[str, int] = {
            "profile": 0,
            "repos": 0,
            "events": 0,
            "contributions": 0,
        }

    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }

    def _count(self, tag: str):
        self.query_count[tag] += 1

    def _send(self, method: Callable[..., Any], url: str, tag: str, **kwargs):
        """Issue one request, retrying transient failures up to max_retries attempts."""
        for attempt in range(1, self.max_retries + 1):
            try:
                r = method(url, headers=self.headers(), timeout=REQUEST_TIMEOUT, **kwargs)
            except (requests.Timeout, requests.ConnectionError) as e:
                if attempt < self.max_retries:
                    debug(f"{tag}: network error {e}, retry {attempt}")
                    time.sleep(self.retry_backoff ** attempt)
                    continue
                raise RemoteError(None, f"{tag} request failed: {e}") from e
            if r.status_code == 502 and attempt < self.max_retries:
                debug(f"{tag}: 502 Bad Gateway, retry {attempt}")
                time.sleep(self.retry_backoff ** attempt)
                continue
            if r.status_code != 200:
                raise RemoteError(r.status_code, f"{tag} failed: {r.text[:300]}")
            try:
                return r.json()
            except ValueError as e:
                raise RemoteError(r.status_code, f"{tag} returned invalid JSON") from e
        raise RemoteError(None, f"{tag} failed without response")

    def gql(self, query: str, variables: Dict[str, Any], tag: str) -> Dict[str, Any]:
        self._count(tag)
        payload = self._send(requests.post, GRAPHQL_URL, tag, json={"query": query, "variables": variables})
        if not isinstance(payload, dict):
            raise RemoteError(200, f"{tag} returned a non-object payload")
        if payload.get("errors"):
            messages = " | ".join(str(e.get("message", "")) for e in payload["errors"])
            raise RemoteError(200, f"{tag} GraphQL errors: {messages}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise RemoteError(200, f"{tag} response has no data")
        return data

    def _user(self, data: Dict[str, Any], login: str, tag: str) -> Dict[str, Any]:
        user = data.get("user")
        if not user:
            raise RemoteError(200, f"{tag}: user {login!r} not found")
        return user

    # ------------------ Queries ------------------
    def fetch_profile(self, login: str) -> Profile:
        user = self._user(self.gql(PROFILE_QUERY, {"login": login}, "profile"), login, "profile")
        try:
            return Profile(
                login=user["login"],
                public_repo_count=int(user["repositories"]["totalCount"]),
                created_at=user.get("createdAt"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(200, f"profile: malformed payload ({e!r})") from e

    def _repository_page(self, login: str, cursor: Optional[str]):
        variables = {"login": login, "cursor": cursor, "pageSize": REPOS_PER_PAGE}
        user = self._user(self.gql(REPOS_QUERY, variables, "repos"), login, "repos")
        try:
            repos = user["repositories"]
            items = [
                RepositorySummary(
                    name=node["name"],
                    stars=int(node.get("stargazerCount") or 0),
                    language=(node.get("primaryLanguage") or {}).get("name"),
                )
                for node in repos["nodes"]
            ]
            page_info = repos["pageInfo"]
            return items, page_info.get("endCursor"), bool(page_info["hasNextPage"])
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(200, f"repos: malformed payload ({e!r})") from e

    def iter_repositories(self, login: str) -> RepositoryPager:
        return RepositoryPager(lambda cursor: self._repository_page(login, cursor))

    def fetch_recent_events(self, login: str) -> List[ActivityEvent]:
        self._count("events")
        url = f"{REST_API_URL}/users/{login}/events/public"
        payload = self._send(requests.get, url, "events", params={"per_page": EVENTS_PER_PAGE})
        if not isinstance(payload, list):
            raise RemoteError(200, "events: expected a list of events")
        events = []
        for raw in payload:
            if not isinstance(raw, dict):
                raise RemoteError(200, "events: malformed event entry")
            events.append(ActivityEvent(type=str(raw.get("type") or ""), commit_count=push_commit_count(raw)))
        return events

    def fetch_commit_contributions(self, login: str) -> Optional[int]:
        user = self._user(self.gql(CONTRIBUTIONS_QUERY, {"login": login}, "contributions"), login, "contributions")
        try:
            return int(user["contributionsCollection"]["totalCommitContributions"])
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(200, f"contributions: malformed payload ({e!r})") from e


def push_commit_count(event: Dict[str, Any]) -> int:
    """Commits carried by a push event payload; 0 when the payload has none."""
    payload = event.get("payload") or {}
    commits = payload.get("commits")
    if isinstance(commits, list):
        return len(commits)
    try:
        return max(0, int(payload.get("size") or 0))
    except (TypeError, ValueError):
        return 0
