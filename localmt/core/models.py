"""
データモデル定義
翻訳エンジンの状態、語彙構成、デコード設定、言語検出結果
"""

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict


class EngineState(Enum):
    """翻訳エンジンの状態"""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED_INIT = "failed_init"
    CLOSED = "closed"


@dataclass(frozen=True)
class VocabularyConfig:
    """ソース/ターゲットのSentencePiece語彙ファイル構成"""
    source_path: Path
    target_path: Path
    shared: bool

    def __post_init__(self):
        if self.shared and self.source_path != self.target_path:
            raise ValueError(
                f"共有語彙なのにパスが異なります: {self.source_path} != {self.target_path}"
            )


@dataclass(frozen=True)
class DecodingParameters:
    """CTranslate2のデコード設定"""
    max_decoding_length: int = 100
    beam_size: int = 4
    repetition_penalty: float = 1.5
    no_repeat_ngram_size: int = 3  # 3-gramの繰り返しを防ぐ
    min_decoding_length: int = 1
    end_token: str = "</s>"
    return_end_token: bool = False
    disable_unk: bool = True

    def to_translate_options(self) -> Dict[str, Any]:
        """translate_batch() のキーワード引数に変換"""
        return asdict(self)


DEFAULT_DECODING_PARAMETERS = DecodingParameters()


@dataclass(frozen=True)
class DetectionResult:
    """言語検出結果（最上位候補のみ）"""
    language_code: str
    is_reliable: bool
    confidence_percent: int

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換"""
        return asdict(self)


@dataclass(frozen=True)
class Lang:
    """言語コードと表示名"""
    code: str
    name: str
