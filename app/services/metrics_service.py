"""メトリクス更新サービス: GitHub アクティビティを取得して DevMeter スコアを保存する

処理フロー:
  1. プロフィール取得（アカウント作成日・GitHub ID）
  2. PR 数 / マージ済み PR 数 / レビュー数の検索 + コントリビューショングラフ取得
     → 失敗したら全カウント 0 のスナップショットで続行（リトライなし）
  3. 代表リポジトリ1件のコミット数から行数を推定（粗い近似値）
  4. scorer の各関数でサブスコア・総合スコアを計算
  5. MetricsStore に upsert
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from app.config import settings
from app.constants import (
    DAYS_PER_YEAR,
    LINES_ADDED_PER_COMMIT,
    LINES_DELETED_PER_COMMIT,
)
from app.errors import UpstreamFetchError
from app.models import CommitSample, DevMeterResult, RawActivitySnapshot, RepositoryInfo
from app.services.protocols import ActivityDataSource, MetricsStore
from app.services.scorer import (
    compute_code_quality,
    compute_community_impact,
    compute_dev_meter,
    compute_productivity,
    compute_seniority,
    compute_versatility,
    review_to_pr_ratio,
)

logger = logging.getLogger(__name__)


def account_age_in_years(created_at: datetime, now: datetime) -> float:
    """アカウント年数（365.25 日 = 1 年）"""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    seconds = (now - created_at).total_seconds()
    return max(0.0, seconds / (DAYS_PER_YEAR * 86400))


async def collect_activity_snapshot(
    source: ActivityDataSource,
    username: str,
    created_at: datetime,
    *,
    now: datetime,
) -> RawActivitySnapshot:
    """検索3件 + グラフ1件を順に取得してスナップショットにまとめる

    どれか1つでも UpstreamFetchError なら全カウント 0 にフォールバックする。
    """
    from_date = now - timedelta(days=settings.contribution_window_days)
    try:
        pr_count = await source.search_issue_count(f"author:{username} type:pr")
        merged_count = await source.search_issue_count(f"author:{username} type:pr is:merged")
        review_count = await source.search_issue_count(f"reviewed-by:{username} type:pr")
        graph = await source.fetch_contribution_graph(username, from_date)
    except UpstreamFetchError as e:
        logger.error("GitHub activity fetch failed for %s, using zeroed snapshot: %s", username, e, exc_info=True)
        return RawActivitySnapshot.empty(created_at)

    logger.info("Found %d PRs and %d reviews for %s", pr_count, review_count, username)
    return RawActivitySnapshot(
        account_created_at=created_at,
        pull_request_count=pr_count,
        merged_pull_request_count=merged_count,
        review_count=review_count,
        repositories=graph.repositories,
        commit_contributions=graph.commit_contributions,
        pull_request_contributions=graph.pull_request_contributions,
        review_contributions=graph.review_contributions,
        issue_contributions=graph.issue_contributions,
        contribution_calendar=graph.calendar,
    )


async def sample_commit_activity(
    source: ActivityDataSource,
    repositories: Sequence[RepositoryInfo],
) -> CommitSample:
    """先頭リポジトリ1件の直近コミット数から行数を推定する

    行数はコミット数の固定倍率（全リポジトリの diff を走査しない粗い推定値）。
    """
    if not repositories:
        return CommitSample()

    repo = repositories[0]
    try:
        commits = await source.count_recent_commits(repo.owner_login, repo.name)
    except UpstreamFetchError as e:
        logger.warning("Commit sample failed for %s/%s: %s", repo.owner_login, repo.name, e)
        return CommitSample()

    added = commits * LINES_ADDED_PER_COMMIT
    return CommitSample(
        commit_frequency=commits,
        lines_of_code_added=added,
        lines_of_code_deleted=commits * LINES_DELETED_PER_COMMIT,
        average_commit_size=added / commits if added > 0 and commits > 0 else 0.0,
    )


def build_dev_meter_result(
    user_id: str,
    snapshot: RawActivitySnapshot,
    commit_sample: CommitSample,
    *,
    now: datetime,
    average_pr_revisions: float,
) -> DevMeterResult:
    """スナップショットから保存用レコードを組み立てる（I/O なし）"""
    age_years = account_age_in_years(snapshot.account_created_at, now)
    ratio = review_to_pr_ratio(snapshot.review_count, snapshot.pull_request_count)

    seniority = compute_seniority(ratio, snapshot.review_count, age_years)
    versatility = compute_versatility(snapshot)
    productivity = compute_productivity(snapshot.contribution_calendar)
    code_quality = compute_code_quality(
        snapshot.pull_request_count,
        snapshot.merged_pull_request_count,
        average_pr_revisions,
    )
    community = compute_community_impact(snapshot.repositories)
    dev_meter = compute_dev_meter(
        seniority=seniority,
        versatility=versatility.score,
        productivity=productivity.score,
        code_quality=code_quality.score,
        community_impact=community.score,
    )

    return DevMeterResult(
        user_github_id=user_id,
        commit_frequency=commit_sample.commit_frequency,
        lines_of_code_added=commit_sample.lines_of_code_added,
        lines_of_code_deleted=commit_sample.lines_of_code_deleted,
        average_commit_size=commit_sample.average_commit_size,
        repositories_analyzed=[repo.name for repo in snapshot.repositories],
        date_range_start=now - timedelta(days=settings.contribution_window_days),
        date_range_end=now,
        last_calculated=now,
        review_to_pr_ratio=ratio,
        review_count=snapshot.review_count,
        account_age_in_years=age_years,
        seniority_score=seniority,
        language_diversity=versatility.language_diversity,
        contribution_type_diversity=versatility.contribution_type_diversity,
        repository_diversity=versatility.repository_diversity,
        versatility_score=versatility.score,
        languages=list(versatility.languages),
        contribution_frequency=productivity.contribution_frequency,
        active_days=productivity.active_days,
        productivity_score=productivity.score,
        pr_merge_ratio=code_quality.pr_merge_ratio,
        pr_revisions=code_quality.pr_revisions,
        code_quality_score=code_quality.score,
        star_count=community.star_count,
        community_impact_score=community.score,
        dev_meter_score=dev_meter.dev_meter_score,
        dev_meter_tier=dev_meter.dev_meter_tier,
    )


async def calculate_user_metrics(
    source: ActivityDataSource,
    username: str,
    *,
    now: datetime | None = None,
    average_pr_revisions: float | None = None,
) -> DevMeterResult:
    """GitHub から取得して DevMeterResult を計算する（保存はしない）

    プロフィール取得の失敗はそのまま呼び出し元に伝播する。
    """
    now = now or datetime.now(timezone.utc)
    if average_pr_revisions is None:
        average_pr_revisions = settings.default_pr_revisions

    profile = await source.fetch_profile(username)
    snapshot = await collect_activity_snapshot(source, username, profile.created_at, now=now)
    commit_sample = await sample_commit_activity(source, snapshot.repositories)

    return build_dev_meter_result(
        profile.id,
        snapshot,
        commit_sample,
        now=now,
        average_pr_revisions=average_pr_revisions,
    )


async def refresh_user_metrics(
    source: ActivityDataSource,
    store: MetricsStore,
    username: str,
    *,
    now: datetime | None = None,
    average_pr_revisions: float | None = None,
) -> DevMeterResult:
    """メトリクスを再計算して GitHub ID キーで上書き保存し、保存結果を返す"""
    result = await calculate_user_metrics(
        source,
        username,
        now=now,
        average_pr_revisions=average_pr_revisions,
    )
    stored = store.upsert(result.user_github_id, result)
    logger.info(
        "Metrics refreshed for %s: score=%d tier=%s",
        username, stored.dev_meter_score, stored.dev_meter_tier,
    )
    return stored
