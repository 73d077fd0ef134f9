# FILE: src/pdf2ebook/shared/settings.py

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any, cast

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import RASTER_DEFAULTS
from .enums import ImageEncoding
from .exceptions import SettingsError

# Settings() の初期化中だけ --config のパスを settings_customise_sources へ渡す
_CONFIG_FILE: ContextVar[Path | None] = ContextVar('pdf2ebook_config_file', default=None)


# --- TOMLファイル読み込みロジック ---
def load_toml_config(toml_file: Path) -> dict[str, Any]:
    """指定されたTOMLファイルを読み込みます。"""
    if not toml_file.is_file():
        return {}
    try:
        with toml_file.open('rb') as f:
            return tomllib.load(f)
    except Exception as e:
        raise SettingsError(
            f"設定ファイル '{toml_file}' の解析に失敗しました: {e}"
        ) from e


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """ユーザー指定のTOML設定ファイルを読み込むためのカスタムソース。"""

    def __init__(self, settings_cls: type[BaseSettings], config_file: Path | None):
        super().__init__(settings_cls)
        self.config_file = config_file
        self._toml_config: dict[str, Any] = (
            load_toml_config(self.config_file) if self.config_file else {}
        )

    def get_field_value(self, field: object, field_name: str) -> tuple[Any, str, bool]:
        """このカスタムソースはフィールドごとの値取得をサポートしないため、__call__に処理を委ねます。"""
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """設定ファイル全体を辞書として一度に返します。"""
        return self._toml_config


class PyProjectTomlSource(PydanticBaseSettingsSource):
    """pyproject.tomlから[tool.pdf2ebook]セクションを読み込むソース。"""

    def __init__(self, settings_cls: type[BaseSettings]):
        super().__init__(settings_cls)
        self._config = self._load_pyproject_toml()

    def _load_pyproject_toml(self) -> dict[str, Any]:
        pyproject_path = Path.cwd() / 'pyproject.toml'
        config = load_toml_config(pyproject_path)
        return cast(dict[str, Any], config.get('tool', {}).get('pdf2ebook', {}))

    def get_field_value(self, field: object, field_name: str) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config


# --- 設定モデル定義 ---


class RasterizerSettings(BaseModel):
    """PDFページのラスタライズに関する設定。"""

    dpi: int = Field(
        default=RASTER_DEFAULTS.DPI,
        gt=0,
        description='ページ画像の解像度(dots per inch)。',
    )
    image_format: ImageEncoding = Field(
        default=ImageEncoding.PNG,
        description='ページ画像のエンコード形式 (PNG / JPEG / JPG)。',
    )
    jpeg_quality: int = Field(
        default=RASTER_DEFAULTS.JPEG_QUALITY,
        ge=1,
        le=95,
        description='JPEGで保存する際の品質。',
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        description='ページのラスタライズを並列実行する際の最大プロセス数。1の場合は逐次処理。',
    )

    @field_validator('image_format', mode='before')
    @classmethod
    def normalize_image_format(cls, value: object) -> ImageEncoding:
        return ImageEncoding(value)


class PackagerSettings(BaseModel):
    """コンテナ(EPUB/CBZ)生成処理に関する設定。"""

    compression_level: int = Field(
        default=RASTER_DEFAULTS.COMPRESSION_LEVEL,
        ge=0,
        le=9,
        description='ZIPの圧縮レベル(0-9)。0の場合は無圧縮で格納します。',
    )
    creator: str = Field(
        default='pdf2ebook',
        description='EPUBメタデータ(dc:creator)に記録する作成者名。',
    )
    language: str = Field(
        default='en',
        description='EPUBメタデータ(dc:language)に記録する言語コード。',
    )
    template_directory: Path | None = Field(
        default=None,
        description='同梱テンプレートより優先して使用するテンプレートディレクトリ。',
    )


class OutputSettings(BaseModel):
    """CLIから出力ファイルを保存する際の設定。"""

    directory: Path = Field(
        default=Path('./ebooks'),
        description='生成されたファイルの保存先ディレクトリ。',
    )
    max_filename_length: int = Field(
        default=100,
        description='ファイル名の最大長。長すぎる場合は自動的に切り詰められます。',
    )


class Settings(BaseSettings):
    """
    アプリケーションの階層的設定管理クラス。
    以下の優先順位で設定を読み込みます:
    1. Pythonコードからの直接初期化
    2. --config で指定されたカスタムTOMLファイル
    3. 環境変数 (例: PDF2EBOOK_RASTERIZER__DPI=300)
    4. .env ファイル
    5. pyproject.toml内の [tool.pdf2ebook] セクション
    6. モデルで定義されたデフォルト値
    """

    rasterizer: RasterizerSettings = Field(default_factory=RasterizerSettings)
    packager: PackagerSettings = Field(default_factory=PackagerSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    log_level: str = 'INFO'

    def __init__(self, **values: object):
        config_file_path = values.pop('_config_file', None)
        config_file = (
            Path(cast(Path | str, config_file_path)) if config_file_path else None
        )

        token = _CONFIG_FILE.set(config_file)
        try:
            super().__init__(**values)  # type: ignore [arg-type]
        except (ValidationError, ValueError) as e:
            raise SettingsError(f'設定の検証に失敗しました:\n{e}') from e
        finally:
            _CONFIG_FILE.reset(token)

    model_config = SettingsConfigDict(
        env_nested_delimiter='__',
        env_prefix='PDF2EBOOK_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            TomlConfigSettingsSource(settings_cls, _CONFIG_FILE.get()),
            env_settings,
            dotenv_settings,
            PyProjectTomlSource(settings_cls),
        )
