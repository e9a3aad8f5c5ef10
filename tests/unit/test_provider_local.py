"""
ローカル翻訳プロバイダのテスト
"""

from unittest.mock import Mock, patch

import pytest

from localmt.core.models import DetectionResult, Lang
from localmt.core.translate.errors import LocalTranslateError
from localmt.core.translate.provider_local import (
    AUTO_DETECT,
    LocalTranslateProvider,
    LocalTranslateSettings,
    ModelManager,
)


@pytest.fixture
def models_dir(tmp_path):
    """lite: fr-en, de-en / full: fr-en / lite: es-en（空）"""
    root = tmp_path / "models"
    for model_type, pair in (("lite", "fr-en"), ("lite", "de-en"), ("full", "fr-en")):
        model_dir = root / model_type / pair
        model_dir.mkdir(parents=True)
        (model_dir / "model.bin").write_bytes(b"\x00")
        (model_dir / "vocab.spm").write_bytes(b"\x00")
    (root / "lite" / "es-en").mkdir(parents=True)
    (root / "lite" / "README").write_text("not a model", encoding="utf-8")
    return root


@pytest.fixture
def detector():
    mock_detector = Mock()
    mock_detector.detect.return_value = DetectionResult("fr", True, 99)
    return mock_detector


@pytest.fixture
def provider(models_dir, detector, engine_factory):
    provider = LocalTranslateProvider(
        LocalTranslateSettings(models_dir=str(models_dir), inter_threads=2),
        language_detector=detector,
        engine_factory=engine_factory,
    )
    provider.initialize()
    return provider


class TestModelManager:
    """ModelManagerのテスト"""

    def test_get_model_dir(self, models_dir):
        manager = ModelManager(str(models_dir))

        assert manager.get_model_dir("fr", "en", "lite") == models_dir / "lite" / "fr-en"

    def test_invalid_model_type(self, models_dir):
        manager = ModelManager(str(models_dir))

        with pytest.raises(LocalTranslateError) as exc_info:
            manager.get_model_dir("fr", "en", "medium")

        assert exc_info.value.error_code == "INVALID_MODEL_TYPE"

    def test_get_installed_models(self, models_dir):
        """空のディレクトリとファイルは除外"""
        installed = ModelManager(str(models_dir)).get_installed_models()

        assert installed == {"de-en": ["lite"], "fr-en": ["lite", "full"]}

    def test_missing_models_dir(self, tmp_path):
        assert ModelManager(str(tmp_path / "missing")).get_installed_models() == {}

    def test_is_model_installed(self, models_dir):
        manager = ModelManager(str(models_dir))

        assert manager.is_model_installed("fr", "en", "full")
        assert not manager.is_model_installed("de", "en", "full")
        assert not manager.is_model_installed("es", "en", "lite")


class TestLocalTranslateProvider:
    """LocalTranslateProviderのテスト"""

    def test_initialize_detector_failure(self, models_dir, engine_factory):
        """検出器の生成失敗は言語検出エラーとして送出"""
        provider = LocalTranslateProvider(
            LocalTranslateSettings(models_dir=str(models_dir)), engine_factory=engine_factory
        )

        with patch("localmt.core.translate.provider_local.LanguageDetector",
                   side_effect=RuntimeError("profiles broken")):
            with pytest.raises(LocalTranslateError) as exc_info:
                provider.initialize()

        assert exc_info.value.error_code == "LANGUAGE_DETECTION_FAILED"
        assert provider.is_initialized is False

    def test_translate_before_initialize(self, models_dir, engine_factory):
        provider = LocalTranslateProvider(
            LocalTranslateSettings(models_dir=str(models_dir)), engine_factory=engine_factory
        )

        with pytest.raises(LocalTranslateError) as exc_info:
            provider.translate("Bonjour", "fr", "en")

        assert exc_info.value.error_code == "NOT_INITIALIZED"

    def test_translate(self, provider, engine_factory, models_dir):
        result = provider.translate("Bonjour", "fr", "en")

        assert result == "translated"
        engine = engine_factory.engines[0]
        assert engine.model_dir == models_dir / "lite" / "fr-en"
        assert engine.inter_threads == 2
        assert engine.translated == ["Bonjour"]

    def test_blank_text(self, provider, engine_factory):
        assert provider.translate("   ", "fr", "en") == ""
        assert engine_factory.engines == []

    def test_auto_detect(self, provider, detector, engine_factory, models_dir):
        result = provider.translate("Bonjour tout le monde", AUTO_DETECT, "en")

        assert result == "translated"
        detector.detect.assert_called_once_with("Bonjour tout le monde")
        assert engine_factory.engines[0].model_dir == models_dir / "lite" / "fr-en"

    def test_auto_detect_chinese_variant(self, provider, detector):
        """zh-cn は zh として扱う"""
        detector.detect.return_value = DetectionResult("zh-cn", True, 95)

        with pytest.raises(LocalTranslateError) as exc_info:
            provider.translate("你好世界", AUTO_DETECT, "en")

        assert exc_info.value.error_code == "MODEL_NOT_INSTALLED"
        assert "Chinese (detected)" in str(exc_info.value)

    def test_auto_detect_unsupported(self, provider, detector):
        detector.detect.return_value = DetectionResult("un", False, 0)

        with pytest.raises(LocalTranslateError) as exc_info:
            provider.translate("12345", AUTO_DETECT, "en")

        assert exc_info.value.error_code == "UNSUPPORTED_LANGUAGE"

    def test_model_not_installed(self, provider, engine_factory):
        with pytest.raises(LocalTranslateError) as exc_info:
            provider.translate("Hallo", "de", "en", model_type="full")

        assert exc_info.value.error_code == "MODEL_NOT_INSTALLED"
        assert "German → English" in str(exc_info.value)
        assert engine_factory.engines == []

    def test_engine_reused_for_same_pair(self, provider, engine_factory):
        provider.translate("Bonjour", "fr", "en")
        provider.translate("Salut", "fr", "en")

        assert len(engine_factory.engines) == 1
        assert engine_factory.engines[0].translated == ["Bonjour", "Salut"]

    def test_engine_switched_on_pair_change(self, provider, engine_factory):
        """言語ペアが変わると古いエンジンを解放して再生成"""
        provider.translate("Bonjour", "fr", "en")
        provider.translate("Hallo", "de", "en")

        assert len(engine_factory.engines) == 2
        assert engine_factory.engines[0].closed is True
        assert provider.last_lang_pair == ("de", "en")

    def test_engine_switched_on_model_type_change(self, provider, engine_factory, models_dir):
        provider.translate("Bonjour", "fr", "en")
        provider.translate("Bonjour", "fr", "en", model_type="full")

        assert len(engine_factory.engines) == 2
        assert engine_factory.engines[1].model_dir == models_dir / "full" / "fr-en"
        assert provider.current_model_type == "full"

    def test_engine_init_failure(self, provider, engine_factory):
        engine_factory.init_ok = False

        with pytest.raises(LocalTranslateError) as exc_info:
            provider.translate("Bonjour", "fr", "en")

        assert exc_info.value.error_code == "ENGINE_INIT_FAILED"
        assert engine_factory.engines[0].closed is True
        assert provider.engine is None

    def test_error_result_raises(self, provider, engine_factory):
        engine_factory.result = "ERROR: Empty result"

        with pytest.raises(LocalTranslateError) as exc_info:
            provider.translate("Bonjour", "fr", "en")

        assert exc_info.value.error_code == "TRANSLATION_FAILED"
        assert "Empty result" in str(exc_info.value)

    def test_translate_batch(self, provider):
        progress = Mock()

        results = provider.translate_batch(
            ["Bonjour", "Salut"], "en", source_language="fr", progress_callback=progress
        )

        assert results == ["translated", "translated"]
        assert progress.call_count == 2
        progress.assert_called_with("翻訳中: 2/2", 100)

    def test_translate_batch_empty(self, provider):
        assert provider.translate_batch([], "en") == []

    def test_shutdown(self, provider, engine_factory):
        provider.translate("Bonjour", "fr", "en")

        provider.shutdown()

        assert engine_factory.engines[0].closed is True
        assert provider.engine is None
        assert provider.last_lang_pair is None

    def test_language_info(self, provider):
        assert provider.is_language_supported("fr")
        assert provider.is_language_supported(AUTO_DETECT)
        assert not provider.is_language_supported("xx")
        assert provider.get_language_name("ja") == "Japanese"
        assert provider.get_language_name("xx") == "xx"
        assert Lang("en", "English") in provider.get_language_list()
        assert provider.get_supported_languages()["de"] == "German"
