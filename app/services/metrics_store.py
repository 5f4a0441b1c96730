"""Supabase への DevMeter メトリクス・ユーザー保存"""

import logging
from datetime import datetime, timezone

from supabase import Client

from app.config import settings
from app.errors import PersistenceError
from app.models import DevMeterResult, GitHubProfile, StoredUser

logger = logging.getLogger(__name__)


class SupabaseMetricsStore:
    """MetricsStore の Supabase 実装

    user_metrics は user_github_id で upsert する（履歴は持たず常に上書き）。
    同一ユーザーの並行リフレッシュは後勝ち。
    """

    def __init__(
        self,
        db: Client,
        metrics_table: str | None = None,
        users_table: str | None = None,
    ):
        self.db = db
        self.metrics_table = metrics_table or settings.metrics_table
        self.users_table = users_table or settings.users_table

    def upsert(self, user_id: str, result: DevMeterResult) -> DevMeterResult:
        row = result.model_dump(mode="json")
        row["user_github_id"] = user_id
        if result.last_calculated is None:
            row["last_calculated"] = datetime.now(timezone.utc).isoformat()
        try:
            resp = (
                self.db.table(self.metrics_table)
                .upsert(row, on_conflict="user_github_id")
                .execute()
            )
        except Exception as e:
            logger.error("%s upsert failed for user=%s: %s", self.metrics_table, user_id, e, exc_info=True)
            raise PersistenceError(f"Failed to store metrics for user {user_id}") from e

        if resp.data:
            return DevMeterResult(**resp.data[0])
        return DevMeterResult(**row)

    def upsert_user(self, profile: GitHubProfile) -> StoredUser:
        user = StoredUser(
            github_id=profile.id,
            username=profile.login,
            name=profile.name,
            avatar_url=profile.avatar_url,
            email=profile.email,
        )
        try:
            resp = (
                self.db.table(self.users_table)
                .upsert(user.model_dump(), on_conflict="github_id")
                .execute()
            )
        except Exception as e:
            logger.error("%s upsert failed for github_id=%s: %s", self.users_table, profile.id, e, exc_info=True)
            raise PersistenceError(f"Failed to store user {profile.login}") from e

        if resp.data:
            return StoredUser(**resp.data[0])
        return user
