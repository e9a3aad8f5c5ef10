"""
翻訳パイプライン（トークン化 -> デコード -> デトークン化 -> 正規化）
"""

import logging
from typing import Iterable, List, Optional

from ..models import DEFAULT_DECODING_PARAMETERS, DecodingParameters
from .errors import LocalTranslateError

ERROR_PREFIX = "ERROR: "

# SentencePieceの単語境界記号 "▁" (U+2581, UTF-8: E2 96 81)
WORD_BOUNDARY_MARKER = "▁"

# 出力から除去する制御トークン
CONTROL_TOKENS = frozenset({"<s>", "<pad>", "</s>"})

_TRIM_CHARS = " \t\n\r"


class TranslationPipelineError(LocalTranslateError):
    """パイプライン内部エラー（呼び出し元にはエラー文字列として返す）"""
    pass


def is_error_result(text: str) -> bool:
    """翻訳結果がエラー文字列かどうか"""
    return text.startswith(ERROR_PREFIX)


def filter_control_tokens(tokens: Iterable[str]) -> List[str]:
    """制御トークンと完全一致するものだけを除去"""
    return [token for token in tokens if token not in CONTROL_TOKENS]


def normalize_output(text: str) -> str:
    """
    デコード結果の単語境界記号を空白に置換し、前後の空白を除去

    記号が先頭にある場合、または直前が記号由来の空白の場合は空白を追加しない。
    """
    chars: List[str] = []
    last_was_space = False

    for char in text:
        if char == WORD_BOUNDARY_MARKER:
            if not last_was_space and chars:
                chars.append(" ")
            last_was_space = True
        else:
            chars.append(char)
            last_was_space = False

    return "".join(chars).strip(_TRIM_CHARS)


class TranslationPipeline:
    """単一テキストの翻訳パイプライン"""

    def __init__(
        self,
        translator,
        source_tokenizer,
        target_tokenizer,
        decoding: DecodingParameters = DEFAULT_DECODING_PARAMETERS,
    ):
        self.translator = translator
        self.source_tokenizer = source_tokenizer
        self.target_tokenizer = target_tokenizer
        self.decoding = decoding
        self.logger = logging.getLogger(__name__)

    def translate(self, text: str, decoding: Optional[DecodingParameters] = None) -> str:
        """
        テキストを翻訳

        Args:
            text: 翻訳対象テキスト
            decoding: デコード設定（省略時はパイプラインの既定値）

        Returns:
            翻訳結果。失敗時は "ERROR: " で始まる文字列
        """
        if not text:
            return ""

        params = decoding or self.decoding

        try:
            tokens = self._encode(text, params)
            output_tokens = self._generate(tokens, params)

            clean_tokens = filter_control_tokens(output_tokens)
            if not clean_tokens:
                self.logger.warning("制御トークン除去後にトークンが残りませんでした")
                return ""

            decoded_text = self._decode(clean_tokens)
            final_text = normalize_output(decoded_text)

            self.logger.info(f"翻訳: '{text}' -> '{final_text}'")
            return final_text

        except LocalTranslateError as e:
            self.logger.error(f"翻訳エラー [{e.error_code}]: {e}")
            return f"{ERROR_PREFIX}{e}"
        except Exception as e:
            self.logger.error(f"翻訳中に例外: {e}")
            return f"{ERROR_PREFIX}{e}"

    def _encode(self, text: str, params: DecodingParameters) -> List[str]:
        """ソース語彙でトークン化し、終端トークンを付加"""
        tokens = list(self.source_tokenizer.encode(text, out_type=str))
        tokens.append(params.end_token)
        self.logger.debug(f"トークン化: {len(tokens)} トークン (終端含む) {tokens[:5]}")
        return tokens

    def _generate(self, tokens: List[str], params: DecodingParameters) -> List[str]:
        """CTranslate2で1件のバッチをデコード"""
        results = self.translator.translate_batch([tokens], **params.to_translate_options())

        if not results or not results[0].hypotheses or not results[0].hypotheses[0]:
            raise TranslationPipelineError("Empty result", "EMPTY_RESULT")

        output_tokens = list(results[0].hypotheses[0])
        self.logger.debug(f"出力トークン数: {len(output_tokens)}")
        return output_tokens

    def _decode(self, tokens: List[str]) -> str:
        """ターゲット語彙でデトークン化"""
        try:
            return self.target_tokenizer.decode(tokens)
        except Exception as e:
            raise TranslationPipelineError("Decoding failed", "DECODING_FAILED", e)
