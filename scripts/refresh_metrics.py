"""
DevMeter メトリクス再計算をスタンドアロンで実行するスクリプト。
定期実行や手動リフレッシュで使用する（GITHUB_TOKEN 環境変数のトークンを使う）。

使い方:
    python scripts/refresh_metrics.py --user octocat            # 計算して user_metrics に保存
    python scripts/refresh_metrics.py --user octocat --dry-run  # 計算結果の表示のみ
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# プロジェクトルートをパスに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx

from app.config import settings
from app.db import create_supabase
from app.services.github_client import GitHubActivitySource
from app.services.metrics_service import calculate_user_metrics, refresh_user_metrics
from app.services.metrics_store import SupabaseMetricsStore


async def main():
    parser = argparse.ArgumentParser(description="DevMeter メトリクス再計算スクリプト")
    parser.add_argument("--user", required=True, help="GitHub ユーザー名")
    parser.add_argument("--dry-run", action="store_true", help="保存せずに結果を表示")
    parser.add_argument(
        "--pr-revisions",
        type=float,
        default=settings.default_pr_revisions,
        help="PR 平均リビジョン数（コード品質スコア用）",
    )
    args = parser.parse_args()

    if not settings.github_token:
        print("GITHUB_TOKEN が未設定です", file=sys.stderr)
        sys.exit(1)
    if args.pr_revisions <= 0:
        parser.error("--pr-revisions must be > 0")

    async with httpx.AsyncClient(timeout=settings.http_timeout_sec) as client:
        source = GitHubActivitySource(client, settings.github_token)
        if args.dry_run:
            print(f"計算開始（{args.user}、保存なし）...")
            result = await calculate_user_metrics(
                source, args.user, average_pr_revisions=args.pr_revisions
            )
        else:
            print(f"計算開始（{args.user}）...")
            store = SupabaseMetricsStore(create_supabase())
            result = await refresh_user_metrics(
                source, store, args.user, average_pr_revisions=args.pr_revisions
            )

    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    print(f"完了: {result.dev_meter_score} ({result.dev_meter_tier})")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stdout)
    asyncio.run(main())
