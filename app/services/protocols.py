"""メトリクス計算が依存する外部コラボレーターのインターフェース"""

from datetime import datetime
from typing import Protocol

from app.models import ContributionGraph, DevMeterResult, GitHubProfile


class ActivityDataSource(Protocol):
    """GitHub などのソースホスティングからアクティビティを取得する

    失敗時は app.errors.UpstreamFetchError を送出すること。
    """

    async def fetch_profile(self, username: str) -> GitHubProfile: ...

    async def search_issue_count(self, query: str) -> int: ...

    async def fetch_contribution_graph(
        self, username: str, from_date: datetime
    ) -> ContributionGraph: ...

    async def count_recent_commits(self, owner: str, repo: str) -> int: ...


class MetricsStore(Protocol):
    """ユーザー ID をキーに DevMeterResult を上書き保存する

    失敗時は app.errors.PersistenceError を送出すること。
    """

    def upsert(self, user_id: str, result: DevMeterResult) -> DevMeterResult: ...
