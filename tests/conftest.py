"""Pytest configuration for the DevMeter API."""

import os

# app.config の Settings() はインポート時に評価されるため、先に必須値を入れておく
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")

from datetime import date, datetime, timedelta, timezone

import pytest

from app.errors import PersistenceError, UpstreamFetchError
from app.models import (
    ContributionCalendar,
    ContributionDay,
    ContributionGraph,
    DevMeterResult,
    GitHubProfile,
    RawActivitySnapshot,
    RepositoryContribution,
    RepositoryInfo,
    StoredUser,
)

# Use a static "now" for predictable account ages and date ranges
NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
CREATED_AT = NOW - timedelta(days=5 * 365.25)


class FakeActivitySource:
    """In-memory ActivityDataSource recording every call."""

    def __init__(
        self,
        profile: GitHubProfile,
        counts: dict[str, int] | None = None,
        graph: ContributionGraph | None = None,
        commits: int = 0,
        fail_graph: bool = False,
        fail_commits: bool = False,
    ):
        self.profile = profile
        self.counts = counts or {}
        self.graph = graph or ContributionGraph()
        self.commits = commits
        self.fail_graph = fail_graph
        self.fail_commits = fail_commits
        self.calls: list[tuple] = []

    async def fetch_authenticated_user(self) -> GitHubProfile:
        self.calls.append(("me",))
        return self.profile

    async def fetch_profile(self, username: str) -> GitHubProfile:
        self.calls.append(("profile", username))
        return self.profile

    async def search_issue_count(self, query: str) -> int:
        self.calls.append(("search", query))
        return self.counts.get(query, 0)

    async def fetch_contribution_graph(self, username, from_date):
        self.calls.append(("graph", username, from_date))
        if self.fail_graph:
            raise UpstreamFetchError("GraphQL API returned errors: boom")
        return self.graph

    async def count_recent_commits(self, owner: str, repo: str) -> int:
        self.calls.append(("commits", owner, repo))
        if self.fail_commits:
            raise UpstreamFetchError("GitHub API HTTP 409")
        return self.commits


class FakeMetricsStore:
    """In-memory MetricsStore keyed by user id (last write wins)."""

    def __init__(self, fail: bool = False):
        self.rows: dict[str, DevMeterResult] = {}
        self.users: dict = {}
        self.fail = fail

    def upsert(self, user_id: str, result: DevMeterResult) -> DevMeterResult:
        if self.fail:
            raise PersistenceError(f"Failed to store metrics for user {user_id}")
        self.rows[user_id] = result
        return result

    def upsert_user(self, profile: GitHubProfile):
        if self.fail:
            raise PersistenceError(f"Failed to store user {profile.login}")
        user = StoredUser(github_id=profile.id, username=profile.login, name=profile.name)
        self.users[profile.id] = user
        return user


@pytest.fixture
def profile() -> GitHubProfile:
    return GitHubProfile(
        id="583231",
        login="octocat",
        name="The Octocat",
        avatar_url="https://avatars.githubusercontent.com/u/583231",
        email=None,
        created_at=CREATED_AT,
    )


@pytest.fixture
def sample_graph() -> ContributionGraph:
    """Two repos, two languages, PRs spread evenly over two repos."""
    return ContributionGraph(
        repositories=[
            RepositoryInfo(name="hello-world", owner_login="octocat", stargazer_count=200),
            RepositoryInfo(name="spoon-knife", owner_login="octocat", stargazer_count=100),
        ],
        commit_contributions=[
            RepositoryContribution(repo_name="hello-world", primary_language="Python", contribution_count=10),
            RepositoryContribution(repo_name="spoon-knife", primary_language="Go", contribution_count=10),
            RepositoryContribution(repo_name="dotfiles", primary_language=None, contribution_count=5),
        ],
        pull_request_contributions=[
            RepositoryContribution(repo_name="hello-world", contribution_count=5),
            RepositoryContribution(repo_name="spoon-knife", contribution_count=5),
        ],
        review_contributions=[
            RepositoryContribution(repo_name="hello-world", contribution_count=3),
        ],
        issue_contributions=[],
        calendar=ContributionCalendar(
            total_contributions=520,
            days=[
                ContributionDay(date=date(2023, 6, 1) + timedelta(days=i), count=(i % 2))
                for i in range(10)
            ],
        ),
    )


@pytest.fixture
def sample_snapshot(sample_graph) -> RawActivitySnapshot:
    return RawActivitySnapshot(
        account_created_at=CREATED_AT,
        pull_request_count=10,
        merged_pull_request_count=5,
        review_count=50,
        repositories=sample_graph.repositories,
        commit_contributions=sample_graph.commit_contributions,
        pull_request_contributions=sample_graph.pull_request_contributions,
        review_contributions=sample_graph.review_contributions,
        issue_contributions=sample_graph.issue_contributions,
        contribution_calendar=sample_graph.calendar,
    )


@pytest.fixture
def search_counts() -> dict[str, int]:
    return {
        "author:octocat type:pr": 10,
        "author:octocat type:pr is:merged": 5,
        "reviewed-by:octocat type:pr": 50,
    }


@pytest.fixture
def fake_source(profile, search_counts, sample_graph) -> FakeActivitySource:
    return FakeActivitySource(profile, counts=search_counts, graph=sample_graph, commits=20)


@pytest.fixture
def fake_store() -> FakeMetricsStore:
    return FakeMetricsStore()
