#!/usr/bin/env python3
"""
localmt メインエントリーポイント
オフライン翻訳と言語検出のコマンドラインインターフェース
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from localmt.core.error_handler import ErrorHandler
from localmt.core.settings_manager import AppSettings, get_settings_manager
from localmt.core.translate import (
    ERROR_PREFIX,
    LanguageDetector,
    LocalTranslateError,
    LocalTranslateProvider,
    LocalTranslateSettings,
    ModelManager,
    TranslationEngine,
    is_error_result,
)


def setup_logging(level: str = "INFO", log_file: str = "", verbose: bool = False):
    """
    ロギング設定

    ログファイルが指定されていればファイルに出力し、
    verbose指定時または未指定時は標準エラーにも出力する。
    """
    handlers: List[logging.Handler] = []
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    if verbose or not log_file:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Python version: {sys.version}")
    logger.debug(f"Platform: {sys.platform}")
    if log_file:
        logger.debug(f"Log file: {log_file}")
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="localmt", description="オフライン翻訳ツール")
    parser.add_argument("-v", "--verbose", action="store_true", help="デバッグログを表示")
    parser.add_argument("--log-file", default=None, help="ログファイルのパス")
    subparsers = parser.add_subparsers(dest="command", required=True)

    translate_parser = subparsers.add_parser("translate", help="テキストを翻訳")
    translate_parser.add_argument("text", help="翻訳対象テキスト")
    translate_parser.add_argument("--model-dir", default=None,
                                  help="CTranslate2モデルディレクトリ（直接指定）")
    translate_parser.add_argument("--source", default="auto",
                                  help="ソース言語（auto で自動検出）")
    translate_parser.add_argument("--target", default="en", help="ターゲット言語")
    translate_parser.add_argument("--model-type", choices=["lite", "full"], default=None,
                                  help="モデルタイプ")
    translate_parser.add_argument("--models-dir", default=None, help="モデルのルートディレクトリ")

    detect_parser = subparsers.add_parser("detect", help="テキストの言語を検出")
    detect_parser.add_argument("text", help="検出対象テキスト")
    detect_parser.add_argument("--hint", default=None, help="優先する言語（コードまたは英語名）")

    models_parser = subparsers.add_parser("models", help="インストール済みモデル一覧")
    models_parser.add_argument("--models-dir", default=None, help="モデルのルートディレクトリ")

    return parser


def _translate_with_model_dir(text: str, model_dir: str, settings: AppSettings) -> str:
    engine = TranslationEngine(
        device=settings.translation.device,
        inter_threads=settings.translation.inter_threads,
        intra_threads=settings.translation.intra_threads,
    )
    try:
        if not engine.initialize(model_dir):
            raise LocalTranslateError(f"オフラインモデルのロードに失敗: {model_dir}",
                                      "ENGINE_INIT_FAILED")
        result = engine.translate(text)
    finally:
        engine.close()

    if is_error_result(result):
        raise LocalTranslateError(
            f"翻訳に失敗しました: {result[len(ERROR_PREFIX):]}", "TRANSLATION_FAILED"
        )
    return result


def cmd_translate(args, settings: AppSettings) -> int:
    if args.model_dir:
        print(_translate_with_model_dir(args.text, args.model_dir, settings))
        return 0

    provider = LocalTranslateProvider(
        LocalTranslateSettings(
            models_dir=args.models_dir or settings.translation.models_dir,
            model_type=settings.translation.model_type,
            device=settings.translation.device,
            inter_threads=settings.translation.inter_threads,
            intra_threads=settings.translation.intra_threads,
        ),
        detection_settings=settings.detection,
    )
    provider.initialize()
    try:
        print(provider.translate(args.text, args.source, args.target, args.model_type))
    finally:
        provider.shutdown()
    return 0


def cmd_detect(args, settings: AppSettings) -> int:
    detector = LanguageDetector(settings.detection)
    result = detector.detect(args.text, args.hint)
    print(f"{result.language_code}\treliable={result.is_reliable}\t"
          f"confidence={result.confidence_percent}%")
    return 0


def cmd_models(args, settings: AppSettings) -> int:
    models_dir = args.models_dir or settings.translation.models_dir
    installed = ModelManager(models_dir).get_installed_models()
    if not installed:
        print(f"インストール済みモデルがありません: {Path(models_dir)}")
        return 0

    for model_id, model_types in sorted(installed.items()):
        print(f"{model_id}\t{', '.join(model_types)}")
    return 0


COMMANDS = {
    "translate": cmd_translate,
    "detect": cmd_detect,
    "models": cmd_models,
}


def main(argv: Optional[List[str]] = None) -> int:
    """メインエントリーポイント"""
    args = build_parser().parse_args(argv)

    # 設定読み込み前のログも出力できるよう、まず標準エラーに設定
    setup_logging(verbose=args.verbose)

    error_handler = ErrorHandler()
    try:
        settings_manager = get_settings_manager()
        settings = settings_manager.load_settings()

        log_file = args.log_file if args.log_file is not None else settings.logging.log_file
        logger = setup_logging(settings.logging.level, log_file, args.verbose)

        for problem in settings_manager.validate_settings(settings):
            logger.warning(f"設定値の問題: {problem}")

        return COMMANDS[args.command](args, settings)
    except (LocalTranslateError, OSError) as e:
        error_info = error_handler.handle_error(e, {"command": args.command})
        print(error_info.format(), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
