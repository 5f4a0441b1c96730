"""スコアリングサービス: GitHub アクティビティから DevMeter スコアを計算する

スコア設計（各サブスコア 0〜100、いずれも純粋関数）:
  seniority        (15%): レビュー/PR 比 + レビュー総数 + アカウント年数
  productivity     (25%): 週あたりコントリビューション + 活動日数
  code_quality     (30%): PR マージ率 + PR リビジョン数の少なさ
  versatility      (20%): 言語数 + コントリビューション種別/リポジトリの Shannon 多様性
  community_impact (10%): 保有リポジトリのスター合計

各要素は飽和点（constants.py の *_CAP）で 1.0 にクリップしてから重み付けする。
1要素だけが青天井にスコアを押し上げないようにするため。
"""

import math
from collections.abc import Iterable, Sequence

from app.constants import (
    ACCOUNT_AGE_CAP,
    ACTIVE_DAYS_CAP,
    DEV_METER_WEIGHTS,
    LANGUAGE_COUNT_CAP,
    LOWEST_TIER,
    REVIEW_COUNT_CAP,
    REVIEW_RATIO_CAP,
    STAR_COUNT_CAP,
    TARGET_PR_REVISIONS,
    TIER_THRESHOLDS,
    WEEKLY_CONTRIB_CAP,
    WEEKS_PER_YEAR,
)
from app.models import (
    CodeQualityMetrics,
    CommunityImpactMetrics,
    ContributionCalendar,
    DevMeterScore,
    ProductivityMetrics,
    RawActivitySnapshot,
    RepositoryContribution,
    RepositoryInfo,
    VersatilityMetrics,
)
from app.services.diversity import shannon_diversity_index


def round_half_up(value: float) -> int:
    """四捨五入（組み込み round() の偶数丸めは使わない）"""
    return int(math.floor(value + 0.5))


def _capped(value: float, cap: float) -> float:
    """0〜cap を 0〜1 に線形正規化（cap 超は 1 でクリップ）"""
    if cap <= 0:
        return 0.0
    return min(value / cap, 1.0)


def _total(contributions: Iterable[RepositoryContribution]) -> int:
    return sum(c.contribution_count for c in contributions)


# ---------------------------------------------------------------------------
# seniority
# ---------------------------------------------------------------------------

def review_to_pr_ratio(review_count: int, pull_request_count: int) -> float:
    """レビュー数 / PR 数（PR 0 件なら 0）"""
    if pull_request_count <= 0:
        return 0.0
    return review_count / pull_request_count


def compute_seniority(
    review_to_pr_ratio: float,
    review_count: int,
    account_age_years: float,
) -> int:
    """シニアリティスコア: ratio (40) + レビュー数 (30) + 年数 (30)

    飽和点: ratio 3、レビュー 100 件、アカウント 10 年。
    """
    return round_half_up(
        _capped(review_to_pr_ratio, REVIEW_RATIO_CAP) * 40
        + _capped(review_count, REVIEW_COUNT_CAP) * 30
        + _capped(account_age_years, ACCOUNT_AGE_CAP) * 30
    )


# ---------------------------------------------------------------------------
# versatility
# ---------------------------------------------------------------------------

def _languages(commit_contributions: Iterable[RepositoryContribution]) -> list[str]:
    """コミットしたリポジトリの主要言語（初出順・重複なし、言語なしは除外）"""
    return list(dict.fromkeys(c.primary_language for c in commit_contributions if c.primary_language))


def _per_repository_counts(contributions: Iterable[RepositoryContribution]) -> list[int]:
    """リポジトリ名ごとに合算したコントリビューション数"""
    by_repo: dict[str, int] = {}
    for c in contributions:
        by_repo[c.repo_name] = by_repo.get(c.repo_name, 0) + c.contribution_count
    return list(by_repo.values())


def compute_versatility(snapshot: RawActivitySnapshot) -> VersatilityMetrics:
    """多才さスコア: 言語数 (40) + 種別多様性 (30) + リポジトリ多様性 (30)

    言語数はエントロピーではなく「10言語で飽和するカウント」。
    リポジトリ多様性は PR コントリビューションのみで計算する（コミットは含めない）。
    """
    languages = _languages(snapshot.commit_contributions)
    language_diversity = _capped(len(languages), LANGUAGE_COUNT_CAP)

    type_totals = [
        _total(snapshot.commit_contributions),
        _total(snapshot.pull_request_contributions),
        _total(snapshot.review_contributions),
        _total(snapshot.issue_contributions),
    ]
    contribution_type_diversity = shannon_diversity_index(type_totals)

    repository_diversity = shannon_diversity_index(
        _per_repository_counts(snapshot.pull_request_contributions)
    )

    score = round_half_up(
        language_diversity * 40
        + contribution_type_diversity * 30
        + repository_diversity * 30
    )
    return VersatilityMetrics(
        language_diversity=language_diversity,
        contribution_type_diversity=contribution_type_diversity,
        repository_diversity=repository_diversity,
        score=score,
        languages=tuple(languages),
    )


# ---------------------------------------------------------------------------
# productivity
# ---------------------------------------------------------------------------

def compute_productivity(calendar: ContributionCalendar | None) -> ProductivityMetrics:
    """生産性スコア: 週あたりコントリビューション (50) + 活動日数 (50)

    カレンダーは直近 365 日分。データが無ければ両指標とも 0。
    """
    contribution_frequency = 0.0
    active_days = 0
    if calendar is not None:
        contribution_frequency = calendar.total_contributions / WEEKS_PER_YEAR
        active_days = sum(1 for day in calendar.days if day.count > 0)

    score = round_half_up(
        _capped(contribution_frequency, WEEKLY_CONTRIB_CAP) * 50
        + _capped(active_days, ACTIVE_DAYS_CAP) * 50
    )
    return ProductivityMetrics(
        contribution_frequency=contribution_frequency,
        active_days=active_days,
        score=score,
    )


# ---------------------------------------------------------------------------
# code quality
# ---------------------------------------------------------------------------

def compute_code_quality(
    total_prs: int,
    merged_prs: int,
    average_pr_revisions: float,
) -> CodeQualityMetrics:
    """コード品質スコア: マージ率 (40) + リビジョンの少なさ (60)

    リビジョンは 2 回以下で満点、それ以上は 2 / revisions で減衰。
    """
    if average_pr_revisions <= 0:
        raise ValueError("average_pr_revisions must be > 0")

    pr_merge_ratio = merged_prs / total_prs if total_prs > 0 else 0.0
    normalized_revisions = min(1.0, TARGET_PR_REVISIONS / average_pr_revisions)

    return CodeQualityMetrics(
        pr_merge_ratio=pr_merge_ratio,
        pr_revisions=average_pr_revisions,
        score=round_half_up(pr_merge_ratio * 40 + normalized_revisions * 60),
    )


# ---------------------------------------------------------------------------
# community impact
# ---------------------------------------------------------------------------

def compute_community_impact(repositories: Sequence[RepositoryInfo]) -> CommunityImpactMetrics:
    """コミュニティ影響度: スター合計を 500 で飽和させて 0〜100 にする"""
    star_count = sum(repo.stargazer_count for repo in repositories)
    return CommunityImpactMetrics(
        star_count=star_count,
        score=round_half_up(_capped(star_count, STAR_COUNT_CAP) * 100),
    )


# ---------------------------------------------------------------------------
# DevMeter
# ---------------------------------------------------------------------------

def tier_for_score(score: int) -> str:
    """総合スコアをティア名に変換（履歴に依存しない）"""
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return LOWEST_TIER


def compute_dev_meter(
    seniority: int = 0,
    versatility: int = 0,
    productivity: int = 0,
    code_quality: int = 0,
    community_impact: int = 0,
) -> DevMeterScore:
    """5つのサブスコアの加重和とティアを返す"""
    total = (
        seniority        * DEV_METER_WEIGHTS["seniority"] +
        productivity     * DEV_METER_WEIGHTS["productivity"] +
        code_quality     * DEV_METER_WEIGHTS["code_quality"] +
        versatility      * DEV_METER_WEIGHTS["versatility"] +
        community_impact * DEV_METER_WEIGHTS["community_impact"]
    )
    score = round_half_up(total)
    return DevMeterScore(dev_meter_score=score, dev_meter_tier=tier_for_score(score))
