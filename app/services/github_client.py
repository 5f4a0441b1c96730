"""GitHub REST / GraphQL からユーザーのアクティビティを取得するクライアント"""

import logging
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import settings
from app.constants import COMMIT_SAMPLE_SIZE
from app.errors import AuthenticationRequired, UpstreamFetchError
from app.models import (
    ContributionCalendar,
    ContributionDay,
    ContributionGraph,
    GitHubProfile,
    RepositoryContribution,
    RepositoryInfo,
)

logger = logging.getLogger(__name__)

HEADERS_BASE = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

# maxRepositories / first の上限は GitHub 側の 100
CONTRIBUTION_GRAPH_QUERY = """
query ($username: String!, $fromDate: DateTime!) {
  user(login: $username) {
    repositories(first: 100, ownerAffiliations: [OWNER, COLLABORATOR]) {
      nodes {
        name
        owner { login }
        stargazerCount
      }
    }
    contributionsCollection(from: $fromDate) {
      commitContributionsByRepository(maxRepositories: 100) {
        repository { name primaryLanguage { name } }
        contributions { totalCount }
      }
      pullRequestContributionsByRepository(maxRepositories: 100) {
        repository { name primaryLanguage { name } }
        contributions { totalCount }
      }
      pullRequestReviewContributionsByRepository(maxRepositories: 100) {
        repository { name primaryLanguage { name } }
        contributions { totalCount }
      }
      issueContributionsByRepository(maxRepositories: 100) {
        repository { name primaryLanguage { name } }
        contributions { totalCount }
      }
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays { date contributionCount }
        }
      }
    }
  }
}
"""


def _make_headers(token: str) -> dict:
    headers = dict(HEADERS_BASE)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _parse_profile(data: dict) -> GitHubProfile:
    return GitHubProfile(
        id=str(data["id"]),
        login=data["login"],
        name=data.get("name"),
        avatar_url=data.get("avatar_url"),
        email=data.get("email"),
        created_at=data["created_at"],
    )


def _parse_contributions(items: list[dict] | None) -> list[RepositoryContribution]:
    """*ContributionsByRepository を RepositoryContribution のリストに平坦化"""
    contributions = []
    for item in items or []:
        repo = item.get("repository") or {}
        language = repo.get("primaryLanguage") or {}
        contributions.append(RepositoryContribution(
            repo_name=repo.get("name", ""),
            primary_language=language.get("name"),
            contribution_count=(item.get("contributions") or {}).get("totalCount", 0),
        ))
    return contributions


def _parse_calendar(raw: dict | None) -> ContributionCalendar | None:
    if not raw:
        return None
    days = [
        ContributionDay(date=day["date"], count=day.get("contributionCount", 0))
        for week in raw.get("weeks") or []
        for day in week.get("contributionDays") or []
    ]
    return ContributionCalendar(
        total_contributions=raw.get("totalContributions", 0),
        days=days,
    )


def _parse_graph(user: dict) -> ContributionGraph:
    """GraphQL の user ノードを ContributionGraph に変換（形が崩れていれば例外）"""
    repositories = [
        RepositoryInfo(
            name=node["name"],
            owner_login=(node.get("owner") or {}).get("login", ""),
            stargazer_count=node.get("stargazerCount") or 0,
        )
        for node in (user.get("repositories") or {}).get("nodes") or []
        if node
    ]
    collection = user.get("contributionsCollection") or {}
    return ContributionGraph(
        repositories=repositories,
        commit_contributions=_parse_contributions(collection.get("commitContributionsByRepository")),
        pull_request_contributions=_parse_contributions(collection.get("pullRequestContributionsByRepository")),
        review_contributions=_parse_contributions(collection.get("pullRequestReviewContributionsByRepository")),
        issue_contributions=_parse_contributions(collection.get("issueContributionsByRepository")),
        calendar=_parse_calendar(collection.get("contributionCalendar")),
    )


class GitHubActivitySource:
    """ActivityDataSource の GitHub 実装

    httpx.AsyncClient のライフサイクルは呼び出し側（リクエスト単位の依存関数）が持つ。
    リトライはしない。失敗は UpstreamFetchError に変換する。
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        api_base: str | None = None,
        graphql_url: str | None = None,
    ):
        self.client = client
        self.token = token
        self.api_base = (api_base or settings.github_api_base).rstrip("/")
        self.graphql_url = graphql_url or settings.github_graphql_url

    async def _get(self, path: str, params: dict | None = None) -> Any:
        url = f"{self.api_base}{path}"
        try:
            resp = await self.client.get(url, headers=_make_headers(self.token), params=params)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"GitHub request failed: GET {path}: {e}") from e
        if resp.status_code == 401:
            raise AuthenticationRequired("GitHub rejected the access token")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(f"GitHub API HTTP {resp.status_code}: GET {path}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamFetchError(f"GitHub API returned a non-JSON body: GET {path}") from e

    async def _graphql(self, query: str, variables: dict[str, Any]) -> dict:
        """GraphQL を実行して data を返す（errors があれば UpstreamFetchError）"""
        try:
            resp = await self.client.post(
                self.graphql_url,
                json={"query": query, "variables": variables},
                headers=_make_headers(self.token),
            )
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"GitHub GraphQL request failed: {e}") from e
        if resp.status_code == 401:
            raise AuthenticationRequired("GitHub rejected the access token")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(f"GitHub GraphQL HTTP {resp.status_code}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamFetchError("GraphQL API returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise UpstreamFetchError("Unexpected response from GraphQL API: not a JSON object.")
        if payload.get("errors"):
            messages = ", ".join(err.get("message", "?") for err in payload["errors"])
            raise UpstreamFetchError(f"GraphQL API returned errors: {messages}")
        if payload.get("data") is None:
            raise UpstreamFetchError("Unexpected response from GraphQL API: 'data' key is missing.")
        return payload["data"]

    async def fetch_authenticated_user(self) -> GitHubProfile:
        """トークン所有者のプロフィール（GET /user）"""
        return _parse_profile(await self._get("/user"))

    async def fetch_profile(self, username: str) -> GitHubProfile:
        return _parse_profile(await self._get(f"/users/{username}"))

    async def search_issue_count(self, query: str) -> int:
        """Issue/PR 検索のヒット件数（total_count のみ使うので per_page=1）"""
        data = await self._get("/search/issues", params={"q": query, "per_page": 1})
        try:
            return int(data.get("total_count", 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamFetchError(f"Unexpected search response for {query!r}") from e

    async def fetch_contribution_graph(self, username: str, from_date: datetime) -> ContributionGraph:
        data = await self._graphql(
            CONTRIBUTION_GRAPH_QUERY,
            {"username": username, "fromDate": from_date.isoformat()},
        )
        user = data.get("user")
        if user is None:
            raise UpstreamFetchError(f"GitHub user not found: {username}")

        try:
            graph = _parse_graph(user)
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise UpstreamFetchError(f"Malformed contribution graph for {username}: {e}") from e
        logger.debug(
            "Contribution graph for %s: %d repos, %d commit repos",
            username, len(graph.repositories), len(graph.commit_contributions),
        )
        return graph

    async def count_recent_commits(self, owner: str, repo: str) -> int:
        """直近コミット数（最大 COMMIT_SAMPLE_SIZE 件、1ページのみ）"""
        commits = await self._get(
            f"/repos/{owner}/{repo}/commits", params={"per_page": COMMIT_SAMPLE_SIZE}
        )
        return len(commits or [])
