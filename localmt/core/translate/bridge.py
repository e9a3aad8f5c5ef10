"""
ホスト境界API

エンジンを整数ハンドルで扱う。ハンドルとインスタンスの対応はレジストリが
一元管理し、境界を越えて例外を送出しない。
"""

import itertools
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from ..models import DetectionResult
from .engine import TranslationEngine
from .language_detector import LanguageDetectionError, LanguageDetector
from .pipeline import ERROR_PREFIX

INVALID_HANDLE = 0

ENGINE_NOT_INIT = f"{ERROR_PREFIX}Engine not init"
INVALID_INPUT = f"{ERROR_PREFIX}Invalid input"
TRANSLATION_FAILED = f"{ERROR_PREFIX}Translation failed"


class EngineRegistry:
    """ハンドル -> エンジンの対応表"""

    def __init__(self, engine_factory=TranslationEngine):
        self._engine_factory = engine_factory
        self._engines: Dict[int, TranslationEngine] = {}
        self._next_handle = itertools.count(1)
        self._lock = threading.Lock()

    def create_instance(self) -> int:
        """エンジンを生成してハンドルを返す（失敗時は0）"""
        try:
            engine = self._engine_factory()
        except Exception as e:
            logging.error(f"エンジン生成失敗: {e}")
            return INVALID_HANDLE

        with self._lock:
            handle = next(self._next_handle)
            self._engines[handle] = engine
        logging.debug(f"エンジン生成: handle={handle}")
        return handle

    def get(self, handle: int) -> Optional[TranslationEngine]:
        """ハンドルのエンジンを取得（整数以外のハンドルは無効扱い）"""
        if not isinstance(handle, int) or handle == INVALID_HANDLE:
            return None
        with self._lock:
            return self._engines.get(handle)

    def initialize(self, handle: int, model_dir: Union[str, Path]) -> bool:
        """ハンドルのエンジンを初期化"""
        engine = self.get(handle)
        if engine is None:
            logging.error(f"無効なハンドル: {handle}")
            return False
        if model_dir is None:
            logging.error("モデルディレクトリが指定されていません")
            return False

        try:
            return engine.initialize(str(model_dir))
        except Exception as e:
            logging.error(f"初期化中に例外: {e}")
            return False

    def translate(self, handle: int, text: str) -> str:
        """ハンドルのエンジンで翻訳"""
        engine = self.get(handle)
        if engine is None:
            logging.error(f"無効なハンドル: {handle}")
            return ENGINE_NOT_INIT
        if text is None:
            return INVALID_INPUT

        try:
            return engine.translate(str(text))
        except Exception as e:
            logging.error(f"翻訳中に例外: {e}")
            return TRANSLATION_FAILED

    def destroy(self, handle: int) -> None:
        """エンジンを解放してハンドルを無効化"""
        engine = None
        if isinstance(handle, int):
            with self._lock:
                engine = self._engines.pop(handle, None)

        if engine is None:
            logging.warning(f"未登録のハンドルの解放要求: {handle}")
            return

        try:
            engine.close()
        except Exception as e:
            logging.error(f"エンジン解放中に例外: {e}")
        logging.debug(f"エンジン解放: handle={handle}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._engines)


# シングルトンインスタンス
_registry = EngineRegistry()
_detector: Optional[LanguageDetector] = None
_detector_lock = threading.Lock()


def get_registry() -> EngineRegistry:
    """エンジンレジストリのシングルトンインスタンスを取得"""
    return _registry


def create_instance() -> int:
    return _registry.create_instance()


def initialize(handle: int, model_dir: Union[str, Path]) -> bool:
    return _registry.initialize(handle, model_dir)


def translate(handle: int, text: str) -> str:
    return _registry.translate(handle, text)


def destroy(handle: int) -> None:
    _registry.destroy(handle)


def _get_detector() -> LanguageDetector:
    global _detector
    with _detector_lock:
        if _detector is None:
            _detector = LanguageDetector()
        return _detector


def detect_language(text: str, language_hint: Optional[str] = None) -> Optional[DetectionResult]:
    """
    テキストの言語を検出

    Returns:
        検出結果。入力が不正または検出器が利用できない場合はNone
    """
    if text is None:
        return None
    if language_hint is not None and not isinstance(language_hint, str):
        logging.error(f"不正な言語ヒント: {language_hint!r}")
        return None

    try:
        return _get_detector().detect(str(text), language_hint)
    except LanguageDetectionError as e:
        logging.error(f"言語検出失敗: {e}")
        return None
