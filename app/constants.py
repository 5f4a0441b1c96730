"""共有定数"""

from typing import Final, Literal

# DevMeter ティア名（低い順）
DevMeterTier = Literal["Amateur", "Novice", "Adept", "Elite", "Master", "Cracked"]

# ティア閾値（下限を含む・高い順に評価する）
TIER_THRESHOLDS: Final[tuple[tuple[int, str], ...]] = (
    (91, "Cracked"),
    (81, "Master"),
    (61, "Elite"),
    (41, "Adept"),
    (21, "Novice"),
)
LOWEST_TIER: Final[str] = "Amateur"

# DevMeter 総合スコアの重み（合計 1.0）
DEV_METER_WEIGHTS: Final[dict[str, float]] = {
    "seniority":        0.15,
    "productivity":     0.25,
    "code_quality":     0.30,
    "versatility":      0.20,
    "community_impact": 0.10,
}

# 正規化の飽和点（この値で満点）
REVIEW_RATIO_CAP:   Final[float] = 3.0
REVIEW_COUNT_CAP:   Final[float] = 100.0
ACCOUNT_AGE_CAP:    Final[float] = 10.0   # 年
LANGUAGE_COUNT_CAP: Final[float] = 10.0
WEEKLY_CONTRIB_CAP: Final[float] = 30.0   # 週あたりコントリビューション
ACTIVE_DAYS_CAP:    Final[float] = 365.0
TARGET_PR_REVISIONS: Final[float] = 2.0
STAR_COUNT_CAP:     Final[float] = 500.0

WEEKS_PER_YEAR: Final[int] = 52
DAYS_PER_YEAR:  Final[float] = 365.25

# 代表リポジトリ1件のコミット数から行数を推定する係数（粗い近似値）
LINES_ADDED_PER_COMMIT:   Final[int] = 100
LINES_DELETED_PER_COMMIT: Final[int] = 30
COMMIT_SAMPLE_SIZE:       Final[int] = 100
