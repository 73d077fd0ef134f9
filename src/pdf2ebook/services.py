# FILE: src/pdf2ebook/services.py
from collections.abc import Mapping

from loguru import logger

from .domain.interfaces import IPackager, IRasterizer
from .models.domain import ConversionRequest, ConversionResult, PageImage
from .shared.enums import OutputFormat
from .shared.exceptions import (
    DocumentParseError,
    EmptyResultError,
    PackagingError,
    UnsupportedFormatError,
)

CONVERSION_FAILED = 'Conversion failed'
NO_PAGES_FOUND = 'No pages found in PDF file'


class ConversionPipeline:
    """
    PDF1件の変換ユースケース(ラスタライズ → パッケージング)を統括するサービスレイヤー。
    依存関係の構築はコンポジションルート(cli.py)で行われ、
    このクラスは注入されたラスタライザーとパッケージャーを順に呼び出す責務を持つ。
    例外は境界の外へ出さず、すべて ConversionResult の失敗として返す。
    """

    def __init__(
        self,
        rasterizer: IRasterizer,
        packagers: Mapping[OutputFormat, IPackager],
    ):
        self.rasterizer = rasterizer
        self.packagers = packagers
        logger.debug('ConversionPipeline が初期化されました。')

    def supported_formats(self) -> list[str]:
        """登録済みの出力形式のトークン一覧 (例: ['EPUB', 'CBZ'])。"""
        return [fmt.value for fmt in self.packagers]

    def _get_packager(self, output_format: OutputFormat) -> IPackager:
        packager = self.packagers.get(output_format)
        if not packager:
            raise UnsupportedFormatError(
                f'Unsupported output format: {output_format.value}'
            )
        return packager

    def convert(self, request: ConversionRequest) -> ConversionResult:
        """変換リクエストを処理し、成功/失敗いずれかの ConversionResult を返します。"""
        with logger.contextualize(
            file_name=request.file_name, output_format=request.output_format.value
        ):
            logger.info('PDF変換処理を開始')
            try:
                return self._convert(request)
            except (EmptyResultError, UnsupportedFormatError) as e:
                logger.bind(reason=str(e)).warning('変換を中止しました。')
                return ConversionResult.failure(str(e))
            except (DocumentParseError, PackagingError) as e:
                logger.bind(error=str(e)).error('PDF変換に失敗しました。')
                return ConversionResult.failure(f'{CONVERSION_FAILED}: {e}')
            except Exception as e:
                logger.exception('PDF変換中に予期せぬエラーが発生しました。')
                return ConversionResult.failure(f'{CONVERSION_FAILED}: {e}')

    def _convert(self, request: ConversionRequest) -> ConversionResult:
        pages = self._rasterize(request)
        packager = self._get_packager(request.output_format)

        title = request.resolved_title
        content = packager.package(title, pages, request.options)

        result = ConversionResult.success(
            output_content=content,
            output_file_name=request.output_file_name,
            format=request.output_format,
            total_pages=len(pages),
        )
        logger.bind(
            output_file_name=result.output_file_name, total_pages=result.total_pages
        ).success('PDF変換が完了しました。')
        return result

    def _rasterize(self, request: ConversionRequest) -> list[PageImage]:
        pages = self.rasterizer.rasterize(request.content, request.options)
        if not pages:
            raise EmptyResultError(NO_PAGES_FOUND)
        return pages
