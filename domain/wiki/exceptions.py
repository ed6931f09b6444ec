"""Wikiドメインで利用する例外定義"""


class WikiError(Exception):
    """Wiki機能における基底例外"""


class WikiNotFoundError(WikiError):
    """ページ・添付ファイル・ユーザーが存在しない場合の例外"""


class WikiValidationError(WikiError):
    """入力値の検証エラー（空の名前・本文、保護ページ名の違反など）"""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class WikiConflictError(WikiError):
    """一意制約に反する登録（重複ユーザー名・重複ページ名）"""


class WikiStoreError(WikiError):
    """ストア（データベース）の I/O・制約エラー"""


class WikiAuthError(WikiError):
    """認証失敗。原因を区別しない汎用メッセージのみを持つ"""
