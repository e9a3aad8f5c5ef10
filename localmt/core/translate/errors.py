"""
ローカル翻訳関連の例外定義
"""

from typing import Optional


class LocalTranslateError(Exception):
    """ローカル翻訳関連エラー"""

    def __init__(
        self,
        message: str,
        error_code: str = "",
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.original_error = original_error


class VocabularyResolutionError(LocalTranslateError):
    """語彙ファイルが解決できない場合のエラー"""

    def __init__(self, message: str, error_code: str = "NO_VOCABULARY_FOUND"):
        super().__init__(message, error_code)
