"""GitHub ユーザープロフィール取得・保存エンドポイント"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.auth import get_activity_source
from app.db import get_metrics_store
from app.errors import AuthenticationRequired
from app.models import UserResponse
from app.services.github_client import GitHubActivitySource
from app.services.metrics_store import SupabaseMetricsStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["user"])


@router.get(
    "/user",
    response_model=UserResponse,
    response_model_exclude_none=True,
    summary="GitHub プロフィールを取得して保存",
)
async def get_user(
    source: GitHubActivitySource = Depends(get_activity_source),
    store: SupabaseMetricsStore = Depends(get_metrics_store),
):
    """認証ユーザーのプロフィールを GitHub から取得し、users に upsert します。"""
    try:
        profile = await source.fetch_authenticated_user()
        user = store.upsert_user(profile)
    except AuthenticationRequired:
        raise
    except Exception as e:
        logger.error("Error fetching GitHub user data: %s", e, exc_info=True)
        body = UserResponse(
            success=False,
            message="Failed to fetch GitHub user data",
            error=str(e),
        )
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

    return UserResponse(
        success=True,
        message="GitHub user data fetched and stored successfully",
        user=user,
    )
