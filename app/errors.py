"""アプリケーション例外"""


class AuthenticationRequired(Exception):
    """有効な GitHub トークンが無い（401 で返す）"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message


class UpstreamFetchError(Exception):
    """GitHub REST / GraphQL 呼び出しの失敗"""


class PersistenceError(Exception):
    """Supabase への保存失敗"""
