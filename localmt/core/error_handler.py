"""
エラーハンドリングとユーザーフィードバック用のユーティリティ
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .translate.errors import LocalTranslateError


class ErrorSeverity:
    """エラー重要度の定義"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory:
    """エラーカテゴリの定義"""
    MODEL_FILES = "model_files"
    INFERENCE = "inference"
    LANGUAGE_DETECTION = "language_detection"
    DEPENDENCY = "dependency"
    VALIDATION = "validation"
    SYSTEM = "system"


class ErrorInfo:
    """エラー情報を格納するクラス"""

    def __init__(self,
                 message: str,
                 category: str = ErrorCategory.SYSTEM,
                 severity: str = ErrorSeverity.ERROR,
                 technical_details: Optional[str] = None,
                 suggestions: Optional[list] = None,
                 error_code: str = ""):
        self.message = message
        self.category = category
        self.severity = severity
        self.technical_details = technical_details
        self.suggestions = suggestions or []
        self.error_code = error_code
        self.timestamp = datetime.now()

    def format(self) -> str:
        """コンソール表示用の文字列に整形"""
        lines = [f"❌ {self.message}"]
        if self.suggestions:
            lines.append("")
            lines.append("🔧 解決方法:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"{i}. {suggestion}")
        return "\n".join(lines)


# エラーコード -> (カテゴリ, 重要度, 解決策)
_ERROR_CODE_GUIDANCE = {
    "PACKAGE_MISSING": (
        ErrorCategory.DEPENDENCY,
        ErrorSeverity.CRITICAL,
        ["pip install ctranslate2 sentencepiece langdetect を実行",
         "アプリケーションを再起動"],
    ),
    "NO_VOCABULARY_FOUND": (
        ErrorCategory.MODEL_FILES,
        ErrorSeverity.ERROR,
        ["モデルディレクトリに source.spm / target.spm または vocab.spm があることを確認",
         "モデルを再配置"],
    ),
    "MODEL_LOAD_FAILED": (
        ErrorCategory.MODEL_FILES,
        ErrorSeverity.ERROR,
        ["モデルがCTranslate2形式であることを確認",
         "model.bin と config.json が破損していないか確認"],
    ),
    "TOKENIZER_LOAD_FAILED": (
        ErrorCategory.MODEL_FILES,
        ErrorSeverity.ERROR,
        ["語彙ファイルがSentencePieceモデルであることを確認"],
    ),
    "MODEL_NOT_INSTALLED": (
        ErrorCategory.MODEL_FILES,
        ErrorSeverity.WARNING,
        ["モデルを <models_dir>/<lite|full>/<src>-<tgt>/ に配置",
         "localmt models でインストール済みモデルを確認"],
    ),
    "ENGINE_INIT_FAILED": (
        ErrorCategory.MODEL_FILES,
        ErrorSeverity.ERROR,
        ["ログファイルで初期化失敗の原因を確認",
         "モデルを再配置"],
    ),
    "INVALID_MODEL_TYPE": (
        ErrorCategory.VALIDATION,
        ErrorSeverity.WARNING,
        ["モデルタイプには lite または full を指定"],
    ),
    "UNSUPPORTED_LANGUAGE": (
        ErrorCategory.LANGUAGE_DETECTION,
        ErrorSeverity.WARNING,
        ["ソース言語を手動で指定",
         "テキストが短すぎる場合は長めの文で再試行"],
    ),
    "LANGUAGE_DETECTION_FAILED": (
        ErrorCategory.LANGUAGE_DETECTION,
        ErrorSeverity.ERROR,
        ["テキストに複数の言語が混在している場合は分割",
         "特殊文字のみの場合は言語検出不可"],
    ),
    "TRANSLATION_FAILED": (
        ErrorCategory.INFERENCE,
        ErrorSeverity.ERROR,
        ["入力テキストを短くして再試行",
         "別のモデルタイプ (lite/full) で再試行"],
    ),
    "NOT_INITIALIZED": (
        ErrorCategory.SYSTEM,
        ErrorSeverity.ERROR,
        ["initialize() を呼び出してから翻訳"],
    ),
}


class ErrorHandler:
    """統合エラーハンドラー"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        # エラー統計
        self.error_count = 0
        self.error_history: List[ErrorInfo] = []

    def handle_error(self,
                     error: Union[Exception, ErrorInfo],
                     context: Optional[Dict[str, Any]] = None) -> ErrorInfo:
        """
        エラーを処理してログに記録

        Returns:
            ErrorInfo: ユーザー向けに整形されたエラー情報
        """
        context = context or {}

        if isinstance(error, Exception):
            error_info = self._exception_to_error_info(error)
        else:
            error_info = error

        self._log_error(error_info, context)
        return error_info

    def _exception_to_error_info(self, exception: Exception) -> ErrorInfo:
        """例外をErrorInfoオブジェクトに変換"""

        if isinstance(exception, LocalTranslateError):
            category, severity, suggestions = _ERROR_CODE_GUIDANCE.get(
                exception.error_code,
                (ErrorCategory.SYSTEM, ErrorSeverity.ERROR, []),
            )
            technical_details = f"{exception.error_code}: {exception}"
            if exception.original_error is not None:
                technical_details += f" ({type(exception.original_error).__name__}: {exception.original_error})"

            return ErrorInfo(
                message=str(exception),
                category=category,
                severity=severity,
                technical_details=technical_details,
                suggestions=list(suggestions),
                error_code=exception.error_code,
            )

        category = ErrorCategory.SYSTEM
        severity = ErrorSeverity.ERROR
        suggestions = []

        if isinstance(exception, (FileNotFoundError, PermissionError)):
            category = ErrorCategory.MODEL_FILES
            suggestions = [
                "ファイルが存在することを確認してください",
                "ファイルの権限を確認してください",
            ]
        elif isinstance(exception, MemoryError):
            severity = ErrorSeverity.CRITICAL
            suggestions = [
                "他のアプリケーションを終了してメモリを解放してください",
                "lite モデルを使用してください",
            ]
        elif isinstance(exception, (ValueError, TypeError)):
            category = ErrorCategory.VALIDATION
            severity = ErrorSeverity.WARNING
            suggestions = ["入力データと設定項目を確認してください"]

        return ErrorInfo(
            message=self._get_user_friendly_message(exception),
            category=category,
            severity=severity,
            technical_details=f"{type(exception).__name__}: {str(exception)}",
            suggestions=suggestions,
        )

    def _get_user_friendly_message(self, exception: Exception) -> str:
        """例外からユーザーフレンドリーなメッセージを生成"""

        error_messages = {
            FileNotFoundError: "指定されたファイルが見つかりません",
            PermissionError: "ファイルまたはフォルダへのアクセス権限がありません",
            MemoryError: "メモリが不足しています",
            ValueError: "入力データの形式が正しくありません",
            RuntimeError: "システムエラーが発生しました",
            OSError: "システムリソースへのアクセスに失敗しました",
        }

        return error_messages.get(type(exception), "予期しないエラーが発生しました")

    def _log_error(self, error_info: ErrorInfo, context: Dict[str, Any]):
        """エラーをログに記録"""

        self.error_count += 1
        self.error_history.append(error_info)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL,
        }.get(error_info.severity, logging.ERROR)

        log_message = f"[{error_info.category}] {error_info.message}"
        if context:
            log_message += f" (コンテキスト: {context})"
        if error_info.technical_details:
            log_message += f" - 詳細: {error_info.technical_details}"

        self.logger.log(log_level, log_message)

    def get_error_summary(self) -> Dict[str, Any]:
        """エラー統計のサマリーを取得"""
        category_counts = {}
        severity_counts = {}

        for error in self.error_history[-50:]:  # 最新50件
            category_counts[error.category] = category_counts.get(error.category, 0) + 1
            severity_counts[error.severity] = severity_counts.get(error.severity, 0) + 1

        return {
            "total_errors": self.error_count,
            "category_breakdown": category_counts,
            "severity_breakdown": severity_counts,
            "last_error": self.error_history[-1] if self.error_history else None,
        }
