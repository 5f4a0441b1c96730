# tests/test_metrics_service.py

import asyncio
from datetime import timedelta

import httpx
import pytest

from app.errors import AuthenticationRequired, PersistenceError
from app.models import CommitSample, RawActivitySnapshot
from app.services.github_client import GitHubActivitySource
from app.services.metrics_service import (
    account_age_in_years,
    build_dev_meter_result,
    calculate_user_metrics,
    collect_activity_snapshot,
    refresh_user_metrics,
    sample_commit_activity,
)

from conftest import CREATED_AT, NOW, FakeActivitySource, FakeMetricsStore


def test_account_age_uses_julian_years():
    assert account_age_in_years(CREATED_AT, NOW) == pytest.approx(5.0)


def test_account_age_accepts_naive_datetimes():
    naive = (NOW - timedelta(days=365.25)).replace(tzinfo=None)
    assert account_age_in_years(naive, NOW) == pytest.approx(1.0)


def test_collect_snapshot_issues_three_searches_and_one_graph(fake_source):
    snapshot = asyncio.run(collect_activity_snapshot(fake_source, "octocat", CREATED_AT, now=NOW))

    assert snapshot.pull_request_count == 10
    assert snapshot.merged_pull_request_count == 5
    assert snapshot.review_count == 50
    assert len(snapshot.repositories) == 2

    queries = [call[1] for call in fake_source.calls if call[0] == "search"]
    assert queries == [
        "author:octocat type:pr",
        "author:octocat type:pr is:merged",
        "reviewed-by:octocat type:pr",
    ]
    graph_calls = [call for call in fake_source.calls if call[0] == "graph"]
    assert graph_calls == [("graph", "octocat", NOW - timedelta(days=365))]


def test_collect_snapshot_falls_back_to_zeros_on_graph_failure(profile, search_counts):
    source = FakeActivitySource(profile, counts=search_counts, fail_graph=True)
    snapshot = asyncio.run(collect_activity_snapshot(source, "octocat", CREATED_AT, now=NOW))

    assert snapshot == RawActivitySnapshot.empty(CREATED_AT)
    assert snapshot.pull_request_count == 0
    assert snapshot.contribution_calendar.total_contributions == 0


def test_commit_sample_uses_first_repository_only(fake_source, sample_graph):
    sample = asyncio.run(sample_commit_activity(fake_source, sample_graph.repositories))

    assert fake_source.calls == [("commits", "octocat", "hello-world")]
    assert sample == CommitSample(
        commit_frequency=20,
        lines_of_code_added=2000,
        lines_of_code_deleted=600,
        average_commit_size=100.0,
    )


def test_commit_sample_without_repositories(fake_source):
    assert asyncio.run(sample_commit_activity(fake_source, [])) == CommitSample()
    assert fake_source.calls == []


def test_commit_sample_failure_yields_zeros(profile, sample_graph):
    source = FakeActivitySource(profile, fail_commits=True)
    assert asyncio.run(sample_commit_activity(source, sample_graph.repositories)) == CommitSample()


def test_build_result_from_sample_snapshot(sample_snapshot):
    result = build_dev_meter_result(
        "583231", sample_snapshot, CommitSample(), now=NOW, average_pr_revisions=1.5
    )

    assert result.user_github_id == "583231"
    assert result.review_to_pr_ratio == 5.0
    assert result.account_age_in_years == pytest.approx(5.0)
    assert result.seniority_score == 70
    assert result.versatility_score == 61
    assert result.languages == ["Python", "Go"]
    assert result.productivity_score == 17
    assert result.active_days == 5
    assert result.pr_merge_ratio == 0.5
    assert result.pr_revisions == 1.5
    assert result.code_quality_score == 80
    assert result.star_count == 300
    assert result.community_impact_score == 60
    assert result.dev_meter_score == 57
    assert result.dev_meter_tier == "Adept"
    assert result.repositories_analyzed == ["hello-world", "spoon-knife"]
    assert result.date_range_start == NOW - timedelta(days=365)
    assert result.date_range_end == NOW


def test_zero_prs_gives_zero_ratio_and_seniority_from_reviews_and_age():
    snapshot = RawActivitySnapshot(account_created_at=CREATED_AT, review_count=50)
    result = build_dev_meter_result(
        "1", snapshot, CommitSample(), now=NOW, average_pr_revisions=1.5
    )
    assert result.review_to_pr_ratio == 0
    # 0 + 50/100*30 + 5/10*30
    assert result.seniority_score == 30


def test_calculate_user_metrics_end_to_end(fake_source):
    result = asyncio.run(calculate_user_metrics(fake_source, "octocat", now=NOW, average_pr_revisions=1.5))

    assert fake_source.calls[0] == ("profile", "octocat")
    assert result.user_github_id == "583231"
    assert result.commit_frequency == 20
    assert result.lines_of_code_added == 2000
    assert result.dev_meter_score == 57


def test_calculate_user_metrics_degrades_when_graph_fails(profile, search_counts):
    source = FakeActivitySource(profile, counts=search_counts, fail_graph=True)
    result = asyncio.run(calculate_user_metrics(source, "octocat", now=NOW, average_pr_revisions=1.5))

    assert result.seniority_score == 15         # account age only
    assert result.versatility_score == 0
    assert result.productivity_score == 0
    assert result.code_quality_score == 60      # revisions only
    assert result.community_impact_score == 0
    assert result.dev_meter_score == 20         # 2.25 + 18
    assert result.dev_meter_tier == "Amateur"
    assert not any(call[0] == "commits" for call in source.calls)


def test_refresh_overwrites_previous_result(fake_source, fake_store):
    first = asyncio.run(refresh_user_metrics(fake_source, fake_store, "octocat", now=NOW))
    fake_source.graph = fake_source.graph.model_copy(update={"repositories": []})
    second = asyncio.run(refresh_user_metrics(fake_source, fake_store, "octocat", now=NOW))

    assert list(fake_store.rows) == ["583231"]
    assert fake_store.rows["583231"] == second
    assert second.star_count == 0
    assert first.star_count == 300


def test_refresh_propagates_persistence_failure(fake_source):
    with pytest.raises(PersistenceError):
        asyncio.run(refresh_user_metrics(fake_source, FakeMetricsStore(fail=True), "octocat", now=NOW))


def test_calculate_user_metrics_rejects_explicit_zero_revisions(fake_source):
    with pytest.raises(ValueError):
        asyncio.run(calculate_user_metrics(fake_source, "octocat", now=NOW, average_pr_revisions=0))


def _collect_over_http(graphql_response: httpx.Response) -> RawActivitySnapshot:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/graphql":
            return graphql_response
        return httpx.Response(200, json={"total_count": 7, "items": []})

    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = GitHubActivitySource(
                client, "gho_test",
                api_base="https://api.github.test",
                graphql_url="https://api.github.test/graphql",
            )
            return await collect_activity_snapshot(source, "octocat", CREATED_AT, now=NOW)

    return asyncio.run(runner())


def test_collect_snapshot_falls_back_on_non_json_graph_body():
    snapshot = _collect_over_http(httpx.Response(200, text="<html>bad gateway</html>"))

    assert snapshot == RawActivitySnapshot.empty(CREATED_AT)
    assert snapshot.pull_request_count == 0


def test_collect_snapshot_falls_back_on_null_contribution_count():
    body = {
        "data": {
            "user": {
                "repositories": {"nodes": []},
                "contributionsCollection": {
                    "commitContributionsByRepository": [
                        {
                            "repository": {"name": "hello-world", "primaryLanguage": None},
                            "contributions": {"totalCount": None},
                        }
                    ],
                },
            }
        }
    }
    snapshot = _collect_over_http(httpx.Response(200, json=body))

    assert snapshot == RawActivitySnapshot.empty(CREATED_AT)
    assert snapshot.pull_request_count == 0


def test_collect_snapshot_propagates_rejected_token():
    with pytest.raises(AuthenticationRequired):
        _collect_over_http(httpx.Response(401, json={"message": "Bad credentials"}))
