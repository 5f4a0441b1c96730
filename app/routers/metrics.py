"""DevMeter メトリクス計算エンドポイント"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.auth import get_activity_source
from app.config import settings
from app.db import get_metrics_store
from app.errors import AuthenticationRequired
from app.models import MetricsResponse
from app.services.github_client import GitHubActivitySource
from app.services.metrics_service import refresh_user_metrics
from app.services.metrics_store import SupabaseMetricsStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["metrics"])


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    response_model_exclude_none=True,
    summary="DevMeter メトリクスを再計算して保存",
    responses={401: {"model": MetricsResponse}, 500: {"model": MetricsResponse}},
)
async def get_metrics(
    source: GitHubActivitySource = Depends(get_activity_source),
    store: SupabaseMetricsStore = Depends(get_metrics_store),
):
    """
    認証ユーザーの GitHub アクティビティを取得し、DevMeter スコアを計算して
    user_metrics に上書き保存します。前回値とのマージ・平均はしません。
    """
    try:
        me = await source.fetch_authenticated_user()
        metrics = await refresh_user_metrics(
            source,
            store,
            me.login,
            average_pr_revisions=settings.default_pr_revisions,
        )
    except AuthenticationRequired:
        raise
    except Exception as e:
        logger.error("Error calculating GitHub metrics: %s", e, exc_info=True)
        body = MetricsResponse(
            success=False,
            message="Failed to calculate GitHub metrics",
            error=str(e),
        )
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

    return MetricsResponse(
        success=True,
        message="GitHub metrics calculated and stored successfully",
        metrics=metrics,
    )
