"""GitHub アクセストークン認証・リクエスト単位の GitHub クライアント"""

from collections.abc import AsyncIterator
from typing import Optional

import httpx
from fastapi import Depends, Header

from app.config import settings
from app.errors import AuthenticationRequired
from app.services.github_client import GitHubActivitySource


def _parse_bearer(authorization: Optional[str]) -> str | None:
    """'Bearer <token>' からトークンを取り出す（形式不正なら None）"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() not in ("bearer", "token") or not token.strip():
        return None
    return token.strip()


async def require_github_token(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    """
    GitHub OAuth アクセストークンの存在チェック（FastAPI Depends 用）。
    トークンの発行・セッション管理はフロントエンド側の責務で、ここでは受け取るだけ。
    トークンの有効性は最初の GitHub 呼び出し（GET /user）の 401 で判定する。
    """
    token = _parse_bearer(authorization)
    if token is None:
        raise AuthenticationRequired()
    return token


async def get_activity_source(
    token: str = Depends(require_github_token),
) -> AsyncIterator[GitHubActivitySource]:
    """リクエストごとに httpx.AsyncClient を生成し、レスポンス後に閉じる"""
    async with httpx.AsyncClient(timeout=settings.http_timeout_sec) as client:
        yield GitHubActivitySource(client, token)
