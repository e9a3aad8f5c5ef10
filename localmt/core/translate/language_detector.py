"""
言語検出機能の実装
"""

import logging
from typing import Dict, List, Optional

try:
    from langdetect.detector_factory import PROFILES_DIRECTORY, DetectorFactory
    from langdetect.lang_detect_exception import LangDetectException

    LANGDETECT_AVAILABLE = True
except ImportError:
    LANGDETECT_AVAILABLE = False

from ..models import DetectionResult
from ..settings_manager import DetectionSettings
from .errors import LocalTranslateError

# 判定不能時の言語コード
UNKNOWN_LANGUAGE = "un"

# 信頼度の算出には上位3候補すべての計算が必要
TOP_CANDIDATES = 3


class LanguageDetectionError(LocalTranslateError):
    """言語検出関連エラー"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, "LANGUAGE_DETECTION_FAILED", original_error)


class LanguageDetector:
    """言語検出器"""

    # 言語コードと英語名
    LANGUAGE_NAMES = {
        'ar': 'arabic',
        'bg': 'bulgarian',
        'ca': 'catalan',
        'cs': 'czech',
        'de': 'german',
        'en': 'english',
        'es': 'spanish',
        'et': 'estonian',
        'fi': 'finnish',
        'fr': 'french',
        'hi': 'hindi',
        'hu': 'hungarian',
        'it': 'italian',
        'ja': 'japanese',
        'ko': 'korean',
        'lt': 'lithuanian',
        'lv': 'latvian',
        'nl': 'dutch',
        'pl': 'polish',
        'pt': 'portuguese',
        'ru': 'russian',
        'sk': 'slovak',
        'sl': 'slovenian',
        'th': 'thai',
        'uk': 'ukrainian',
        'vi': 'vietnamese',
        'zh-cn': 'chinese',
        'zh-tw': 'chinese_traditional',
    }

    # ヒントで受け付ける別名
    HINT_ALIASES = {
        'zh': 'zh-cn',
        'chinese_simplified': 'zh-cn',
    }

    def __init__(self, settings: Optional[DetectionSettings] = None):
        if not LANGDETECT_AVAILABLE:
            raise LanguageDetectionError("langdetectパッケージがインストールされていません")

        self.settings = settings or DetectionSettings()

        try:
            self._factory = DetectorFactory()
            self._factory.load_profile(PROFILES_DIRECTORY)
            self._factory.set_seed(self.settings.seed)  # 一貫した結果のため
        except Exception as e:
            raise LanguageDetectionError(f"言語プロファイルの読み込みに失敗: {str(e)}", e)

        self._lang_list: List[str] = self._factory.get_lang_list()

    def resolve_hint(self, language_hint: Optional[str]) -> Optional[str]:
        """
        言語ヒントを検出器の言語コードに変換

        Args:
            language_hint: 言語コード（"fr"）または英語名（"French"）

        Returns:
            検出器の言語コード。解決できない場合はNone
        """
        if not language_hint or not language_hint.strip():
            return None

        hint = language_hint.strip().lower()
        hint = self.HINT_ALIASES.get(hint, hint)

        if hint in self._lang_list:
            return hint

        for code, name in self.LANGUAGE_NAMES.items():
            if name == hint and code in self._lang_list:
                return code

        logging.debug(f"未対応の言語ヒント: {language_hint}")
        return None

    def detect(self, text: str, language_hint: Optional[str] = None) -> DetectionResult:
        """
        テキストの言語を検出

        Args:
            text: 検出対象のテキスト
            language_hint: 優先する言語（省略可）

        Returns:
            最上位候補の検出結果。判定できない場合は UNKNOWN_LANGUAGE
        """
        try:
            hint_code = self.resolve_hint(language_hint)
            detector = self._factory.create()
            if hint_code is not None:
                detector.set_prior_map(self._build_prior_map(hint_code))
            detector.append(text or "")

            candidates = detector.get_probabilities()[:TOP_CANDIDATES]

        except LangDetectException as e:
            logging.info(f"言語を判定できません: {e}")
            return DetectionResult(UNKNOWN_LANGUAGE, False, 0)
        except Exception as e:
            logging.error(f"言語検出中にエラー: {e}")
            raise LanguageDetectionError(f"言語検出に失敗しました: {str(e)}", e)

        if not candidates:
            return DetectionResult(UNKNOWN_LANGUAGE, False, 0)

        top = candidates[0]
        confidence = max(0, min(100, int(round(top.prob * 100))))
        is_reliable = top.prob >= self.settings.reliability_threshold

        logging.debug(
            f"言語検出: {[(c.lang, round(c.prob, 3)) for c in candidates]} "
            f"(ヒント: {hint_code})"
        )
        return DetectionResult(
            language_code=top.lang,
            is_reliable=is_reliable,
            confidence_percent=confidence,
        )

    def detect_batch(
        self, texts: List[str], language_hint: Optional[str] = None
    ) -> List[Optional[DetectionResult]]:
        """
        複数のテキストの言語を一括検出

        Args:
            texts: 検出対象のテキストリスト
            language_hint: 優先する言語（省略可）

        Returns:
            検出結果のリスト（失敗したテキストはNone）
        """
        results = []
        for text in texts:
            try:
                results.append(self.detect(text, language_hint))
            except LanguageDetectionError as e:
                logging.error(f"テキスト '{text[:50]}...' の言語検出に失敗: {e}")
                results.append(None)

        return results

    def is_language_supported(self, lang_code: str) -> bool:
        """言語が検出対象に含まれるかチェック"""
        return lang_code in self._lang_list

    def get_language_name(self, lang_code: str) -> str:
        """言語コードから言語名を取得（未知の場合は言語コードそのまま）"""
        return self.LANGUAGE_NAMES.get(lang_code, lang_code)

    def _build_prior_map(self, hint_code: str) -> Dict[str, float]:
        # 全言語を均等にした上でヒント言語のみ重み付け
        # n-gramごとの尤度比は1e-4程度なので、重みが小さいと結果に現れない
        prior_map = {lang: 1.0 for lang in self._lang_list}
        prior_map[hint_code] = self.settings.hint_weight
        return prior_map
