"""アプリケーション設定"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    supabase_url: str
    supabase_service_key: str
    github_token: str = ""           # scripts/refresh_metrics.py 用（API 経由ではリクエストのトークンを使う）
    github_api_base: str = "https://api.github.com"
    github_graphql_url: str = "https://api.github.com/graphql"
    http_timeout_sec: float = 30.0
    contribution_window_days: int = 365
    default_pr_revisions: float = 1.5  # 実データ未取得時の PR 平均リビジョン数
    metrics_table: str = "user_metrics"
    users_table: str = "users"
    cors_allow_origins: str = "*"    # カンマ区切り

    model_config = {"env_file": ".env", "case_sensitive": False}

    @field_validator("default_pr_revisions")
    @classmethod
    def _positive_revisions(cls, value: float) -> float:
        # compute_code_quality は 2 / revisions を計算するため 0 以下は不可
        if value <= 0:
            raise ValueError("default_pr_revisions must be > 0")
        return value

    def cors_origin_list(self) -> list[str]:
        """CORS 許可オリジンをリストとして返す"""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


settings = Settings()
