"""Pydantic モデル定義（GitHub アクティビティ・サブスコア・レスポンス）"""

import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.constants import DevMeterTier


# ---------------------------------------------------------------------------
# GitHub から取得する生データ
# ---------------------------------------------------------------------------

class GitHubProfile(BaseModel):
    id: str                                  # GitHub の数値 ID（文字列化）
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime


class RepositoryInfo(BaseModel):
    name: str
    owner_login: str
    stargazer_count: int = Field(default=0, ge=0)


class RepositoryContribution(BaseModel):
    """リポジトリ単位のコントリビューション数（種類ごとに1リスト）"""
    repo_name: str
    primary_language: Optional[str] = None
    contribution_count: int = Field(default=0, ge=0)


class ContributionDay(BaseModel):
    date: dt.date
    count: int = Field(default=0, ge=0)


class ContributionCalendar(BaseModel):
    total_contributions: int = Field(default=0, ge=0)
    days: list[ContributionDay] = []


class ContributionGraph(BaseModel):
    """GraphQL 1クエリで取得するリポジトリ + 種類別コントリビューション + カレンダー"""
    repositories: list[RepositoryInfo] = []
    commit_contributions: list[RepositoryContribution] = []
    pull_request_contributions: list[RepositoryContribution] = []
    review_contributions: list[RepositoryContribution] = []
    issue_contributions: list[RepositoryContribution] = []
    calendar: Optional[ContributionCalendar] = None


class RawActivitySnapshot(BaseModel):
    """スコア計算の入力一式"""
    account_created_at: datetime
    pull_request_count: int = Field(default=0, ge=0)
    merged_pull_request_count: int = Field(default=0, ge=0)
    review_count: int = Field(default=0, ge=0)
    repositories: list[RepositoryInfo] = []
    commit_contributions: list[RepositoryContribution] = []
    pull_request_contributions: list[RepositoryContribution] = []
    review_contributions: list[RepositoryContribution] = []
    issue_contributions: list[RepositoryContribution] = []
    contribution_calendar: Optional[ContributionCalendar] = None

    @classmethod
    def empty(cls, account_created_at: datetime) -> "RawActivitySnapshot":
        """GraphQL 取得失敗時のフォールバック（全カウント 0）"""
        return cls(
            account_created_at=account_created_at,
            contribution_calendar=ContributionCalendar(),
        )


class CommitSample(BaseModel):
    """代表リポジトリ1件から推定したコミット指標（粗い近似値）"""
    commit_frequency: int = 0
    lines_of_code_added: int = 0
    lines_of_code_deleted: int = 0
    average_commit_size: float = 0.0


# ---------------------------------------------------------------------------
# サブスコア（毎回フル再計算・イミュータブル）
# ---------------------------------------------------------------------------

class VersatilityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    language_diversity: float
    contribution_type_diversity: float
    repository_diversity: float
    score: int
    languages: tuple[str, ...] = ()


class ProductivityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    contribution_frequency: float
    active_days: int
    score: int


class CodeQualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    pr_merge_ratio: float
    pr_revisions: float
    score: int


class CommunityImpactMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    star_count: int
    score: int


class DevMeterScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    dev_meter_score: int
    dev_meter_tier: DevMeterTier


# ---------------------------------------------------------------------------
# 保存・表示用レコード
# ---------------------------------------------------------------------------

class DevMeterResult(BaseModel):
    user_github_id: str
    # 代表リポジトリ1件からの粗い推定値
    commit_frequency: int = 0
    lines_of_code_added: int = 0
    lines_of_code_deleted: int = 0
    average_commit_size: float = 0.0
    repositories_analyzed: list[str] = []
    date_range_start: Optional[datetime] = None
    date_range_end: Optional[datetime] = None
    last_calculated: Optional[datetime] = None
    # seniority
    review_to_pr_ratio: float = 0.0
    review_count: int = 0
    account_age_in_years: float = 0.0
    seniority_score: int = Field(default=0, ge=0, le=100)
    # versatility
    language_diversity: float = 0.0
    contribution_type_diversity: float = 0.0
    repository_diversity: float = 0.0
    versatility_score: int = Field(default=0, ge=0, le=100)
    languages: list[str] = []
    # productivity
    contribution_frequency: float = 0.0
    active_days: int = 0
    productivity_score: int = Field(default=0, ge=0, le=100)
    # code quality
    pr_merge_ratio: float = 0.0
    pr_revisions: float = 0.0
    code_quality_score: int = Field(default=0, ge=0, le=100)
    # community impact
    star_count: int = 0
    community_impact_score: int = Field(default=0, ge=0, le=100)
    # DevMeter
    dev_meter_score: int = Field(default=0, ge=0, le=100)
    dev_meter_tier: DevMeterTier = "Amateur"


class StoredUser(BaseModel):
    github_id: str
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None


class MetricsResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    metrics: Optional[DevMeterResult] = None
    error: Optional[str] = None


class UserResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    user: Optional[StoredUser] = None
    error: Optional[str] = None
