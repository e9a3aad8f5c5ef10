"""
SentencePiece語彙ファイルの解決

モデルディレクトリ内のファイル配置から、ソース/ターゲット用の語彙ファイルと
共有語彙かどうかを決定する。解決ルールは順序付きの戦略リストで、最初に
一致した戦略が採用される。

1. source.spm と target.spm の両方がある -> 個別語彙
2. 汎用名の共有語彙 (vocab.spm, sentencepiece.model, spm.model)
3. source.spm / target.spm のどちらか一方のみ -> 共有語彙として扱う
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from ..models import VocabularyConfig
from .errors import VocabularyResolutionError

SOURCE_VOCAB_NAME = "source.spm"
TARGET_VOCAB_NAME = "target.spm"

# 共有語彙の候補（優先順）
SHARED_VOCAB_CANDIDATES = ("vocab.spm", "sentencepiece.model", "spm.model")

# 片側のみの語彙ファイル（最後の手段）
ONE_SIDED_VOCAB_CANDIDATES = (SOURCE_VOCAB_NAME, TARGET_VOCAB_NAME)

ResolutionStrategy = Callable[[Path], Optional[VocabularyConfig]]


def _shared(path: Path) -> VocabularyConfig:
    return VocabularyConfig(source_path=path, target_path=path, shared=True)


def separate_vocabularies(model_dir: Path) -> Optional[VocabularyConfig]:
    """source.spm と target.spm の個別語彙"""
    source = model_dir / SOURCE_VOCAB_NAME
    target = model_dir / TARGET_VOCAB_NAME
    if source.is_file() and target.is_file():
        return VocabularyConfig(source_path=source, target_path=target, shared=False)
    return None


def shared_vocabulary(model_dir: Path) -> Optional[VocabularyConfig]:
    """汎用名の共有語彙"""
    for name in SHARED_VOCAB_CANDIDATES:
        candidate = model_dir / name
        if candidate.is_file():
            return _shared(candidate)
    return None


def one_sided_vocabulary(model_dir: Path) -> Optional[VocabularyConfig]:
    """片側のみの語彙ファイルを共有語彙として扱う"""
    for name in ONE_SIDED_VOCAB_CANDIDATES:
        candidate = model_dir / name
        if candidate.is_file():
            return _shared(candidate)
    return None


RESOLUTION_STRATEGIES: Tuple[ResolutionStrategy, ...] = (
    separate_vocabularies,
    shared_vocabulary,
    one_sided_vocabulary,
)


def resolve_vocabulary(
    model_dir: Union[str, Path],
    strategies: Tuple[ResolutionStrategy, ...] = RESOLUTION_STRATEGIES,
) -> VocabularyConfig:
    """
    モデルディレクトリから語彙構成を解決

    Args:
        model_dir: CTranslate2モデルディレクトリ
        strategies: 試行する解決戦略（優先順）

    Returns:
        解決された語彙構成

    Raises:
        VocabularyResolutionError: 語彙ファイルが見つからない場合
    """
    model_dir = Path(model_dir)

    for strategy in strategies:
        config = strategy(model_dir)
        if config is None:
            continue

        if strategy is one_sided_vocabulary:
            logging.warning(
                f"片側の語彙ファイルのみ検出、共有語彙として使用: {config.source_path.name}"
            )
        elif config.shared:
            logging.info(f"共有語彙を使用: {config.source_path.name}")
        else:
            logging.info("個別語彙を使用: source.spm / target.spm")
        return config

    raise VocabularyResolutionError(f"語彙ファイルが見つかりません: {model_dir}")
