"""
オフライン翻訳システムの統合インターフェース
"""

from .engine import TranslationEngine
from .errors import LocalTranslateError, VocabularyResolutionError
from .language_detector import LanguageDetectionError, LanguageDetector
from .pipeline import (
    ERROR_PREFIX,
    TranslationPipeline,
    filter_control_tokens,
    is_error_result,
    normalize_output,
)
from .provider_local import LocalTranslateProvider, LocalTranslateSettings, ModelManager
from .vocabulary import resolve_vocabulary

__all__ = [
    # Engine
    "TranslationEngine",
    "TranslationPipeline",
    "resolve_vocabulary",
    # Provider
    "LocalTranslateProvider",
    "LocalTranslateSettings",
    "ModelManager",
    # Errors
    "LocalTranslateError",
    "VocabularyResolutionError",
    # Language Detection
    "LanguageDetector",
    "LanguageDetectionError",
    # Helpers
    "ERROR_PREFIX",
    "filter_control_tokens",
    "is_error_result",
    "normalize_output",
]
