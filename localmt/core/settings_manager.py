"""
設定ファイル管理クラス
ユーザー設定の永続化を行う
"""

import json
import logging
import os
import platform
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

MODEL_TYPES = ("lite", "full")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TranslationSettings:
    """翻訳設定"""

    models_dir: str = ""
    model_type: str = "lite"  # "lite", "full"
    device: str = "cpu"
    inter_threads: int = 1
    intra_threads: int = 0  # 0で自動設定


@dataclass
class DetectionSettings:
    """言語検出設定"""

    reliability_threshold: float = 0.7
    hint_weight: float = 1e6  # ヒント言語の事前確率の倍率
    seed: int = 0


@dataclass
class LoggingSettings:
    """ログ設定"""

    level: str = "INFO"
    log_file: str = ""  # 空の場合はコンソール出力のみ


@dataclass
class AppSettings:
    """アプリケーション設定"""

    translation: TranslationSettings
    detection: DetectionSettings
    logging: LoggingSettings
    version: str = "1.0.0"

    def __post_init__(self):
        """設定の初期化後処理"""
        if not self.translation.models_dir:
            self.translation.models_dir = str(self.get_default_models_directory())

    def get_default_models_directory(self) -> Path:
        """デフォルトのモデルディレクトリを取得"""
        home = Path.home()

        if platform.system() == "Windows":
            data_dir = Path(os.environ.get("LOCALAPPDATA", home / "AppData" / "Local"))
        elif platform.system() == "Darwin":  # macOS
            data_dir = home / "Library" / "Application Support"
        else:  # Linux
            data_dir = Path(os.environ.get("XDG_DATA_HOME", home / ".local" / "share"))

        return data_dir / "localmt" / "models"


class SettingsManager:
    """設定管理クラス"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._settings_path = self._get_settings_path()
        self._settings: Optional[AppSettings] = None

    def _get_settings_path(self) -> Path:
        """設定ファイルのパスを取得"""
        if platform.system() == "Windows":
            # Windows: %APPDATA%
            config_dir = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        elif platform.system() == "Darwin":  # macOS
            # macOS: ~/Library/Application Support
            config_dir = Path.home() / "Library" / "Application Support"
        else:  # Linux
            # Linux: ~/.config
            config_dir = Path.home() / ".config"

        app_config_dir = config_dir / "localmt"
        app_config_dir.mkdir(parents=True, exist_ok=True)

        return app_config_dir / "settings.json"

    @property
    def settings_path(self) -> Path:
        return self._settings_path

    def load_settings(self) -> AppSettings:
        """設定を読み込み"""
        if self._settings is not None:
            return self._settings

        try:
            if self._settings_path.exists():
                self.logger.info(f"設定ファイル読み込み: {self._settings_path}")
                with open(self._settings_path, "r", encoding="utf-8") as f:
                    settings_dict = json.load(f)

                file_version = settings_dict.get("version", "1.0.0")
                if file_version != "1.0.0":
                    self.logger.warning(f"設定ファイルのバージョンが異なります: {file_version}")

                self._settings = self._dict_to_settings(settings_dict)
                self.logger.info("設定読み込み完了")
            else:
                self.logger.info("設定ファイルが見つかりません。デフォルト設定を使用")
                self._settings = self._create_default_settings()

        except (OSError, ValueError) as e:
            self.logger.error(f"設定読み込みエラー: {e}")
            self.logger.info("デフォルト設定を使用")
            self._settings = self._create_default_settings()

        return self._settings

    def save_settings(self, settings: AppSettings) -> bool:
        """設定を保存"""
        try:
            self._settings = settings
            settings_dict = self._settings_to_dict(settings)

            self._create_backup()

            self.logger.info(f"設定ファイル保存: {self._settings_path}")
            with open(self._settings_path, "w", encoding="utf-8") as f:
                json.dump(settings_dict, f, indent=2, ensure_ascii=False)

            self.logger.info("設定保存完了")
            return True

        except (OSError, TypeError) as e:
            self.logger.error(f"設定保存エラー: {e}")
            return False

    def _create_default_settings(self) -> AppSettings:
        """デフォルト設定を作成"""
        return AppSettings(
            translation=TranslationSettings(),
            detection=DetectionSettings(),
            logging=LoggingSettings(),
        )

    def _settings_to_dict(self, settings: AppSettings) -> Dict[str, Any]:
        """設定オブジェクトを辞書に変換"""
        return {
            "version": settings.version,
            "translation": asdict(settings.translation),
            "detection": asdict(settings.detection),
            "logging": asdict(settings.logging),
        }

    def _dict_to_settings(self, settings_dict: Dict[str, Any]) -> AppSettings:
        """辞書を設定オブジェクトに変換（未知のキーは無視）"""
        try:
            default_settings = self._create_default_settings()

            if "translation" in settings_dict:
                default_settings.translation = TranslationSettings(
                    **{
                        k: v
                        for k, v in settings_dict["translation"].items()
                        if k in TranslationSettings.__dataclass_fields__
                    }
                )
                if not default_settings.translation.models_dir:
                    default_settings.translation.models_dir = str(
                        default_settings.get_default_models_directory()
                    )

            if "detection" in settings_dict:
                default_settings.detection = DetectionSettings(
                    **{
                        k: v
                        for k, v in settings_dict["detection"].items()
                        if k in DetectionSettings.__dataclass_fields__
                    }
                )

            if "logging" in settings_dict:
                default_settings.logging = LoggingSettings(
                    **{
                        k: v
                        for k, v in settings_dict["logging"].items()
                        if k in LoggingSettings.__dataclass_fields__
                    }
                )

            if "version" in settings_dict:
                default_settings.version = settings_dict["version"]

            return default_settings

        except (TypeError, AttributeError) as e:
            self.logger.error(f"設定変換エラー: {e}")
            return self._create_default_settings()

    def _create_backup(self):
        """設定ファイルのバックアップを作成"""
        if self._settings_path.exists():
            backup_path = self._settings_path.with_suffix(".json.backup")
            try:
                shutil.copy2(self._settings_path, backup_path)
                self.logger.debug(f"バックアップ作成: {backup_path}")
            except OSError as e:
                self.logger.warning(f"バックアップ作成失敗: {e}")

    def reset_to_defaults(self) -> AppSettings:
        """設定をデフォルトに戻す"""
        self.logger.info("設定をデフォルトに戻します")
        default_settings = self._create_default_settings()
        if self.save_settings(default_settings):
            return default_settings
        return self.load_settings()

    def validate_settings(self, settings: AppSettings) -> List[str]:
        """設定の妥当性を確認"""
        errors = []

        if settings.translation.model_type not in MODEL_TYPES:
            errors.append(f"モデルタイプは {', '.join(MODEL_TYPES)} のいずれかを指定してください")

        if settings.translation.inter_threads < 1:
            errors.append("inter_threadsは1以上で設定してください")

        if settings.translation.intra_threads < 0:
            errors.append("intra_threadsは0以上で設定してください")

        if not 0.0 <= settings.detection.reliability_threshold <= 1.0:
            errors.append("信頼度の閾値は0から1の間で設定してください")

        if settings.detection.hint_weight <= 0.0:
            errors.append("ヒントの重みは0より大きい値を設定してください")

        if settings.logging.level.upper() not in LOG_LEVELS:
            errors.append(f"ログレベルが不正です: {settings.logging.level}")

        if settings.logging.log_file:
            log_path = Path(settings.logging.log_file)
            if not log_path.parent.exists():
                errors.append(f"ログファイルの親ディレクトリが存在しません: {log_path.parent}")

        return errors


# シングルトンインスタンス
_settings_manager_instance = None


def get_settings_manager() -> SettingsManager:
    """設定マネージャーのシングルトンインスタンスを取得"""
    global _settings_manager_instance
    if _settings_manager_instance is None:
        _settings_manager_instance = SettingsManager()
    return _settings_manager_instance
