"""DevMeter API - メインアプリケーション"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from supabase import Client

from app.config import settings
from app.db import create_supabase, get_supabase
from app.errors import AuthenticationRequired
from app.routers import metrics, user

APP_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Supabase クライアントはプロセスで1つ（リクエストには Depends で渡す）
    app.state.supabase = create_supabase()
    yield


app = FastAPI(
    title="DevMeter API",
    description=(
        "GitHub のアクティビティからデベロッパーメトリクスを計算する API。\n\n"
        "シニアリティ・多才さ・生産性・コード品質・コミュニティ影響度の5つのサブスコアと、"
        "その加重和である DevMeter スコア・ティアを返します。\n\n"
        "## はじめかた\n"
        "1. GitHub OAuth で取得したアクセストークンを用意\n"
        "2. `Authorization: Bearer <token>` ヘッダーを付けて `GET /github/metrics`\n\n"
        "**ティア**\n"
        "- Cracked: 91〜\n"
        "- Master: 81〜90\n"
        "- Elite: 61〜80\n"
        "- Adept: 41〜60\n"
        "- Novice: 21〜40\n"
        "- Amateur: 〜20"
    ),
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS設定（トークンは Authorization ヘッダーで送信するため Cookie 不要）
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["Authorization", "Content-Type"],
)

# ルーター登録
app.include_router(metrics.router)
app.include_router(user.router)


@app.exception_handler(AuthenticationRequired)
async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
    """未認証は計算せずに 401 を返す"""
    return JSONResponse(status_code=401, content={"success": False, "message": exc.message})


@app.get("/", summary="API 情報")
async def root():
    return {
        "name": "DevMeter API",
        "version": APP_VERSION,
        "description": "Developer metrics derived from GitHub activity",
        "docs": "/docs",
        "endpoints": {
            "metrics": "GET /github/metrics",
            "user": "GET /github/user",
            "health": "GET /health",
        },
    }


@app.get("/health", summary="サービスヘルスチェック")
async def health(db: Client = Depends(get_supabase)):
    """API サーバーと Supabase の疎通を確認します。DB 障害時は 503 を返します。"""
    try:
        db.table(settings.metrics_table).select("user_github_id", count="exact", head=True).execute()
    except Exception as e:
        logger.warning("Supabase health check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "degraded", "db": "unreachable"})
    return {"status": "ok", "db": "reachable"}
