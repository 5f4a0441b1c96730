"""Supabase クライアント初期化・依存関数

クライアントは lifespan で1つ生成して app.state に保持し、
リクエストでは Depends 経由で受け取る（テストでは dependency_overrides で差し替える）。
"""

from fastapi import Depends, Request
from supabase import Client, create_client

from app.config import settings
from app.services.metrics_store import SupabaseMetricsStore


def create_supabase() -> Client:
    """Supabase クライアントを生成（lifespan から呼ぶ）"""
    return create_client(settings.supabase_url, settings.supabase_service_key)


def get_supabase(request: Request) -> Client:
    """app.state に保持した Supabase クライアントを返す"""
    return request.app.state.supabase


def get_metrics_store(db: Client = Depends(get_supabase)) -> SupabaseMetricsStore:
    return SupabaseMetricsStore(db)
