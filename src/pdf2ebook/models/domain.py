# FILE: src/pdf2ebook/models/domain.py
"""
アプリケーションのドメイン（関心領域）における中心的なデータモデルを定義します。
変換リクエスト(ConversionRequest)から変換結果(ConversionResult)までを扱います。
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..shared.constants import RASTER_DEFAULTS
from ..shared.enums import ImageEncoding, OutputFormat
from ..shared.exceptions import RequestValidationError

# ファイル名から書名を取り出せない場合 (例: "/") の書名
DEFAULT_TITLE = 'untitled'


# --- 変換オプション / リクエスト ---
class ConversionOptions(BaseModel):
    """ラスタライズとパッケージングの挙動を決めるオプション。"""

    model_config = ConfigDict(frozen=True)

    dpi: int = Field(default=RASTER_DEFAULTS.DPI, gt=0)
    image_format: ImageEncoding = ImageEncoding.PNG
    # 出力バイト列には影響しない (呼び出し側へのヒント)
    optimize_images: bool = True
    compression_level: int = Field(
        default=RASTER_DEFAULTS.COMPRESSION_LEVEL, ge=0, le=9
    )

    @field_validator('image_format', mode='before')
    @classmethod
    def fallback_unknown_format(cls, value: object) -> ImageEncoding:
        # 'GIF' のような未知の値は PNG にフォールバックする
        return ImageEncoding(value)


class ConversionRequest(BaseModel):
    """PDF1件分の変換リクエスト。"""

    model_config = ConfigDict(frozen=True)

    file_name: str
    content: bytes
    output_format: OutputFormat = OutputFormat.EPUB
    options: ConversionOptions = Field(default_factory=ConversionOptions)
    title: str | None = None

    def __init__(self, **values: Any):
        try:
            super().__init__(**values)
        except ValidationError as e:
            raise RequestValidationError(f'変換リクエストが不正です:\n{e}') from e

    @field_validator('file_name')
    @classmethod
    def file_name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError('File name cannot be empty')
        return value

    @field_validator('content')
    @classmethod
    def content_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError('PDF content cannot be empty')
        return value

    @property
    def resolved_title(self) -> str:
        """明示的なタイトル、なければ拡張子を除いたファイル名。"""
        if self.title and self.title.strip():
            return self.title.strip()
        return PurePath(self.file_name).stem.strip() or DEFAULT_TITLE

    @property
    def output_file_name(self) -> str:
        return f'{self.resolved_title}.{self.output_format.extension}'


# --- ラスタライズ関連 ---
class PageImage(BaseModel, frozen=True):
    """ラスタライズ済みの1ページ分の画像。"""

    data: bytes
    sequence: int = Field(ge=1)
    encoding: ImageEncoding = ImageEncoding.PNG
    source_page: int | None = None


@dataclass(frozen=True)
class PageOutcome:
    """1ページ分のラスタライズ結果。`data` か `error` のどちらか一方だけを持ちます。"""

    page_number: int
    data: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None and self.error is None

    @classmethod
    def success(cls, page_number: int, data: bytes) -> 'PageOutcome':
        return cls(page_number=page_number, data=data)

    @classmethod
    def failure(cls, page_number: int, error: str) -> 'PageOutcome':
        return cls(page_number=page_number, error=error)


# --- 変換結果 ---
@dataclass(frozen=True)
class ConversionResult:
    """変換処理の結果。`success()` または `failure()` からのみ生成してください。"""

    succeeded: bool
    output_content: bytes | None = None
    output_file_name: str = ''
    format: OutputFormat | None = None
    error_message: str | None = None
    total_pages: int = 0

    def __post_init__(self) -> None:
        if self.succeeded and (self.output_content is None or self.error_message):
            raise ValueError('成功結果には出力内容が必要で、エラーメッセージは持てません。')
        if not self.succeeded and (self.output_content is not None or not self.error_message):
            raise ValueError('失敗結果にはエラーメッセージのみを設定してください。')

    @classmethod
    def success(
        cls,
        output_content: bytes,
        output_file_name: str,
        format: OutputFormat,
        total_pages: int,
    ) -> 'ConversionResult':
        return cls(
            succeeded=True,
            output_content=output_content,
            output_file_name=output_file_name,
            format=format,
            total_pages=total_pages,
        )

    @classmethod
    def failure(cls, error_message: str) -> 'ConversionResult':
        return cls(succeeded=False, error_message=error_message)


# --- EPUBビルド関連 ---
class PageAsset(BaseModel, frozen=True):
    """EPUB内の1ページ分の構成要素（画像とそれを包むXHTML）。"""

    number: int
    image_href: str
    image_media_type: str
    image_data: bytes
    xhtml_href: str
    xhtml_content: bytes


class EpubComponents(BaseModel):
    """EPUBファイルを生成するために必要な全ての構成要素をまとめます。"""

    model_config = ConfigDict(frozen=True)

    book_id: str
    pages: list[PageAsset]
    content_opf: bytes
    toc_ncx: bytes
