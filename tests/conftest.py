"""
テスト設定ファイル
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# プロジェクトルートをPythonパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

MARKER = "▁"


class FakeSentencePiece:
    """SentencePieceProcessorの代替（空白区切りでトークン化）"""

    def __init__(self, piece_size: int = 8000, decode_error: Exception = None,
                 load_error: Exception = None):
        self.piece_size = piece_size
        self.decode_error = decode_error
        self.load_error = load_error
        self.loaded_path = None
        self.encoded = []
        self.decoded = []

    def Load(self, path):
        if self.load_error is not None:
            raise self.load_error
        self.loaded_path = path
        return True

    def encode(self, text, out_type=str):
        self.encoded.append(text)
        return [MARKER + word for word in text.split()]

    def decode(self, pieces):
        self.decoded.append(list(pieces))
        if self.decode_error is not None:
            raise self.decode_error
        # 単語境界記号はそのまま残す
        return "".join(pieces)

    def get_piece_size(self):
        return self.piece_size


class FakeTranslator:
    """ctranslate2.Translatorの代替"""

    def __init__(self, output_tokens=None, results=None, error: Exception = None):
        self.output_tokens = output_tokens if output_tokens is not None else [MARKER + "Hello"]
        self.results = results
        self.error = error
        self.calls = []

    def translate_batch(self, batch, **options):
        self.calls.append((batch, options))
        if self.error is not None:
            raise self.error
        if self.results is not None:
            return self.results
        return [SimpleNamespace(hypotheses=[list(self.output_tokens)])]


class FakeEngine:
    """TranslationEngineの代替"""

    def __init__(self, device="cpu", inter_threads=1, intra_threads=0,
                 init_ok=True, result="translated"):
        self.device = device
        self.inter_threads = inter_threads
        self.intra_threads = intra_threads
        self.init_ok = init_ok
        self.result = result
        self.model_dir = None
        self.closed = False
        self.translated = []
        self.is_ready = False

    def initialize(self, model_dir):
        self.model_dir = Path(model_dir)
        self.is_ready = self.init_ok
        return self.init_ok

    def translate(self, text):
        self.translated.append(text)
        return self.result

    def close(self):
        self.closed = True
        self.is_ready = False


@pytest.fixture
def fake_tokenizer():
    """ソース/ターゲット兼用のトークナイザー"""
    return FakeSentencePiece()


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def make_model_dir(tmp_path):
    """指定したファイルを含むモデルディレクトリを作成"""

    def _make(*file_names, name="model"):
        model_dir = tmp_path / name
        model_dir.mkdir(parents=True, exist_ok=True)
        for file_name in file_names:
            (model_dir / file_name).write_bytes(b"\x00")
        return model_dir

    return _make


@pytest.fixture
def engine_factory():
    """生成したFakeEngineを記録するファクトリ"""

    class _Factory:
        def __init__(self):
            self.engines = []
            self.init_ok = True
            self.result = "translated"

        def __call__(self, **kwargs):
            engine = FakeEngine(init_ok=self.init_ok, result=self.result, **kwargs)
            self.engines.append(engine)
            return engine

    return _Factory()
