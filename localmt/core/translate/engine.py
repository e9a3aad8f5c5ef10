"""
翻訳エンジン（CTranslate2 + SentencePiece）のライフサイクル管理
"""

import logging
from pathlib import Path
from typing import Optional, Union

try:
    import ctranslate2
    import sentencepiece as spm

    CTRANSLATE2_AVAILABLE = True
except ImportError:
    CTRANSLATE2_AVAILABLE = False

from ..models import DEFAULT_DECODING_PARAMETERS, DecodingParameters, EngineState, VocabularyConfig
from .errors import LocalTranslateError
from .pipeline import ERROR_PREFIX, TranslationPipeline
from .vocabulary import resolve_vocabulary

ENGINE_NOT_READY = f"{ERROR_PREFIX}Engine not ready"


class TranslationEngine:
    """
    翻訳モデルと2つのトークナイザーを所有する翻訳エンジン

    状態遷移: UNINITIALIZED -> READY または UNINITIALIZED -> FAILED_INIT。
    close() 後はどの状態からも CLOSED。
    同一インスタンスへの並行呼び出しはサポートしない。
    """

    def __init__(
        self,
        device: str = "cpu",
        inter_threads: int = 1,
        intra_threads: int = 0,
        decoding: DecodingParameters = DEFAULT_DECODING_PARAMETERS,
    ):
        self.device = device
        self.inter_threads = inter_threads
        self.intra_threads = intra_threads
        self.decoding = decoding
        self.logger = logging.getLogger(__name__)

        self._state = EngineState.UNINITIALIZED
        self._vocabulary: Optional[VocabularyConfig] = None
        self._translator = None
        self._sp_source = None
        self._sp_target = None
        self._pipeline: Optional[TranslationPipeline] = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EngineState.READY and self._pipeline is not None

    @property
    def vocabulary(self) -> Optional[VocabularyConfig]:
        return self._vocabulary

    def initialize(self, model_dir: Union[str, Path]) -> bool:
        """
        モデルディレクトリからエンジンを初期化

        Returns:
            成功時True。失敗時はFAILED_INITに遷移してFalse
        """
        if self._state is not EngineState.UNINITIALIZED:
            self.logger.error(f"初期化済みのエンジンは再初期化できません (状態: {self._state.value})")
            return False

        model_dir = Path(model_dir)
        self.logger.info(f"CTranslate2モデルを初期化: {model_dir}")

        try:
            if not CTRANSLATE2_AVAILABLE:
                raise LocalTranslateError("CTranslate2が利用できません", "PACKAGE_MISSING")

            vocabulary = resolve_vocabulary(model_dir)
            translator = self._load_translator(model_dir)
            sp_source = self._load_tokenizer(vocabulary.source_path)
            sp_target = self._load_tokenizer(vocabulary.target_path)

        except LocalTranslateError as e:
            self.logger.error(f"エンジン初期化失敗 [{e.error_code}]: {e}")
            self._state = EngineState.FAILED_INIT
            return False
        except Exception as e:
            self.logger.error(f"エンジン初期化中に例外: {e}")
            self._state = EngineState.FAILED_INIT
            return False

        self.logger.info(f"ソース語彙サイズ: {sp_source.get_piece_size()}")
        self.logger.info(f"ターゲット語彙サイズ: {sp_target.get_piece_size()}")

        self._vocabulary = vocabulary
        self._translator = translator
        self._sp_source = sp_source
        self._sp_target = sp_target
        self._pipeline = TranslationPipeline(translator, sp_source, sp_target, self.decoding)
        self._state = EngineState.READY
        self.logger.info("エンジン初期化完了")
        return True

    def translate(self, text: str) -> str:
        """テキストを翻訳（失敗時は "ERROR: " で始まる文字列）"""
        if not self.is_ready:
            self.logger.error("エンジンが準備できていません")
            return ENGINE_NOT_READY
        return self._pipeline.translate(text)

    def close(self) -> None:
        """翻訳モデルとトークナイザーを解放（以後は再初期化できない）"""
        if self._translator is not None:
            self.logger.debug("翻訳モデルを解放")
        self._pipeline = None
        self._translator = None
        self._sp_source = None
        self._sp_target = None
        self._state = EngineState.CLOSED

    def _load_translator(self, model_dir: Path):
        try:
            return ctranslate2.Translator(
                str(model_dir),
                device=self.device,
                inter_threads=self.inter_threads,
                intra_threads=self.intra_threads,
            )
        except Exception as e:
            raise LocalTranslateError(f"モデルのロードに失敗: {str(e)}", "MODEL_LOAD_FAILED", e)

    def _load_tokenizer(self, vocab_path: Path):
        processor = spm.SentencePieceProcessor()
        try:
            processor.Load(str(vocab_path))
        except Exception as e:
            raise LocalTranslateError(
                f"SentencePieceのロードに失敗 ({vocab_path.name}): {str(e)}",
                "TOKENIZER_LOAD_FAILED",
                e,
            )
        return processor
