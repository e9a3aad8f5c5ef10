"""
ローカル翻訳プロバイダ（CTranslate2 + SentencePiece）の実装
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..models import Lang
from ..settings_manager import MODEL_TYPES, DetectionSettings
from .engine import TranslationEngine
from .errors import LocalTranslateError
from .language_detector import LanguageDetector
from .pipeline import ERROR_PREFIX, is_error_result

AUTO_DETECT = "auto"


@dataclass
class LocalTranslateSettings:
    """ローカル翻訳設定"""

    models_dir: str
    model_type: str = "lite"
    device: str = "cpu"
    inter_threads: int = 1
    intra_threads: int = 0  # 0で自動設定


class ModelManager:
    """
    インストール済み翻訳モデルの管理

    モデルは <models_dir>/<model_type>/<src>-<tgt>/ に配置される。
    """

    def __init__(self, models_dir: str):
        self.models_dir = Path(models_dir)

    def get_model_dir(self, src_lang: str, tgt_lang: str, model_type: str) -> Path:
        """モデルディレクトリのパスを取得"""
        if model_type not in MODEL_TYPES:
            raise LocalTranslateError(f"不正なモデルタイプ: {model_type}", "INVALID_MODEL_TYPE")
        return self.models_dir / model_type / f"{src_lang}-{tgt_lang}"

    def get_installed_models(self) -> Dict[str, List[str]]:
        """インストール済みモデル一覧（言語ペア -> モデルタイプ）"""
        installed: Dict[str, List[str]] = {}

        for model_type in MODEL_TYPES:
            type_dir = self.models_dir / model_type
            if not type_dir.is_dir():
                continue

            for model_dir in sorted(type_dir.iterdir()):
                if model_dir.is_dir() and any(model_dir.iterdir()):
                    installed.setdefault(model_dir.name, []).append(model_type)

        return installed

    def is_model_installed(self, src_lang: str, tgt_lang: str, model_type: str) -> bool:
        """モデルがインストールされているかチェック"""
        model_types = self.get_installed_models().get(f"{src_lang}-{tgt_lang}", [])
        return model_type in model_types


class LocalTranslateProvider:
    """ローカル翻訳プロバイダ"""

    # オフライン翻訳でサポートされている言語
    SUPPORTED_LANGUAGES = {
        "en": "English",
        "es": "Spanish",
        "fr": "French",
        "de": "German",
        "it": "Italian",
        "pt": "Portuguese",
        "ru": "Russian",
        "ja": "Japanese",
        "ko": "Korean",
        "zh": "Chinese",
        "ar": "Arabic",
        "hi": "Hindi",
        "bg": "Bulgarian",
        "ca": "Catalan",
        "cs": "Czech",
        "et": "Estonian",
        "fi": "Finnish",
        "hu": "Hungarian",
        "is": "Icelandic",
        "lt": "Lithuanian",
        "lv": "Latvian",
        "nl": "Dutch",
        "pl": "Polish",
        "sk": "Slovak",
        "sl": "Slovenian",
        "uk": "Ukrainian",
        AUTO_DETECT: "Detect Language",
    }

    def __init__(
        self,
        settings: LocalTranslateSettings,
        language_detector: Optional[LanguageDetector] = None,
        detection_settings: Optional[DetectionSettings] = None,
        engine_factory: Callable[..., TranslationEngine] = TranslationEngine,
    ):
        self.settings = settings
        self.model_manager = ModelManager(settings.models_dir)
        self.language_detector = language_detector
        self.detection_settings = detection_settings
        self.engine_factory = engine_factory
        self.engine: Optional[TranslationEngine] = None
        self.last_lang_pair: Optional[Tuple[str, str]] = None
        self.current_model_type: Optional[str] = None
        self.is_initialized = False
        self._lock = threading.Lock()

    def initialize(self) -> bool:
        """初期化"""
        try:
            if self.language_detector is None:
                self.language_detector = LanguageDetector(self.detection_settings)

            self.is_initialized = True
            logging.info("ローカル翻訳プロバイダの初期化が完了しました")
            return True

        except LocalTranslateError:
            raise
        except Exception as e:
            raise LocalTranslateError(
                f"初期化に失敗しました: {str(e)}", "LANGUAGE_DETECTION_FAILED", e
            )

    def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
        model_type: Optional[str] = None,
    ) -> str:
        """
        テキストを翻訳

        Args:
            text: 翻訳対象テキスト
            source_language: ソース言語（"auto" で自動検出）
            target_language: ターゲット言語
            model_type: "lite" または "full"（省略時は設定値）

        Returns:
            翻訳結果

        Raises:
            LocalTranslateError: モデル未インストール、初期化失敗、翻訳失敗など
        """
        if not self.is_initialized:
            raise LocalTranslateError("プロバイダが初期化されていません", "NOT_INITIALIZED")

        if not text or not text.strip():
            return ""

        model_type = model_type or self.settings.model_type
        detected = source_language == AUTO_DETECT
        actual_source = self._detect_source(text) if detected else source_language

        if not self.model_manager.is_model_installed(actual_source, target_language, model_type):
            from_name = self.get_language_name(actual_source)
            if detected:
                from_name = f"{from_name} (detected)"
            to_name = self.get_language_name(target_language)
            raise LocalTranslateError(
                f"{from_name} → {to_name} の{model_type}モデルがインストールされていません",
                "MODEL_NOT_INSTALLED",
            )

        with self._lock:
            engine = self._ensure_engine(actual_source, target_language, model_type)
            result = engine.translate(text)

        if is_error_result(result):
            raise LocalTranslateError(
                f"翻訳に失敗しました: {result[len(ERROR_PREFIX):]}", "TRANSLATION_FAILED"
            )
        return result

    def translate_batch(
        self,
        texts: List[str],
        target_language: str,
        source_language: str = AUTO_DETECT,
        model_type: Optional[str] = None,
        progress_callback: Optional[Callable[[str, int], None]] = None,
    ) -> List[str]:
        """複数テキストを順番に翻訳"""
        if not texts:
            return []

        translated_texts = []
        for i, text in enumerate(texts, 1):
            translated_texts.append(
                self.translate(text, source_language, target_language, model_type)
            )
            if progress_callback:
                progress_callback(f"翻訳中: {i}/{len(texts)}", int(i * 100 / len(texts)))

        logging.info(f"ローカル翻訳完了: {len(texts)}件 (-> {target_language})")
        return translated_texts

    def shutdown(self) -> None:
        """エンジンを解放"""
        with self._lock:
            if self.engine is not None:
                self.engine.close()
                self.engine = None
            self.last_lang_pair = None
            self.current_model_type = None

    def get_supported_languages(self) -> Dict[str, str]:
        """サポートされている言語一覧を取得"""
        return dict(self.SUPPORTED_LANGUAGES)

    def get_language_list(self) -> List[Lang]:
        return [Lang(code, name) for code, name in self.SUPPORTED_LANGUAGES.items()]

    def is_language_supported(self, lang_code: str) -> bool:
        """言語がサポートされているかチェック"""
        return lang_code in self.SUPPORTED_LANGUAGES

    def get_language_name(self, lang_code: str) -> str:
        return self.SUPPORTED_LANGUAGES.get(lang_code, lang_code)

    def _detect_source(self, text: str) -> str:
        """ソース言語を自動検出"""
        result = self.language_detector.detect(text)
        # langdetectの "zh-cn" / "zh-tw" は "zh" として扱う
        lang = result.language_code.split("-")[0]

        logging.info(
            f"検出された言語: {lang} (信頼度: {result.confidence_percent}%, "
            f"reliable={result.is_reliable})"
        )

        if lang == AUTO_DETECT or not self.is_language_supported(lang):
            raise LocalTranslateError(
                "検出された言語にはオフラインモデルがありません", "UNSUPPORTED_LANGUAGE"
            )
        return lang

    def _ensure_engine(self, src_lang: str, tgt_lang: str, model_type: str) -> TranslationEngine:
        """言語ペアまたはモデルタイプが変わった場合のみエンジンを再生成"""
        lang_pair = (src_lang, tgt_lang)
        if (
            self.engine is not None
            and self.engine.is_ready
            and self.last_lang_pair == lang_pair
            and self.current_model_type == model_type
        ):
            return self.engine

        if self.engine is not None:
            self.engine.close()
            self.engine = None

        model_dir = self.model_manager.get_model_dir(src_lang, tgt_lang, model_type)
        engine = self.engine_factory(
            device=self.settings.device,
            inter_threads=self.settings.inter_threads,
            intra_threads=self.settings.intra_threads,
        )
        if not engine.initialize(model_dir):
            engine.close()
            raise LocalTranslateError(
                f"オフラインモデルのロードに失敗: {src_lang}-{tgt_lang}", "ENGINE_INIT_FAILED"
            )

        self.engine = engine
        self.last_lang_pair = lang_pair
        self.current_model_type = model_type
        logging.info(f"モデルロード完了: {src_lang}-{tgt_lang} ({model_type})")
        return engine
