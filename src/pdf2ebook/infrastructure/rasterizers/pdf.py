# FILE: src/pdf2ebook/infrastructure/rasterizers/pdf.py
import concurrent.futures
import io

import fitz  # PyMuPDF
from loguru import logger
from PIL import Image

from ...models.domain import ConversionOptions, PageImage, PageOutcome
from ...shared.constants import RASTER_DEFAULTS
from ...shared.enums import ImageEncoding
from ...shared.exceptions import DocumentParseError, PageError
from ...shared.settings import RasterizerSettings


def open_pdf_checked(document_bytes: bytes) -> fitz.Document:
    """PDFのバイト列を開きます。解析できない場合は DocumentParseError を送出します。"""
    try:
        doc = fitz.open(stream=document_bytes, filetype='pdf')
    except Exception as e:
        raise DocumentParseError(f'PDFを開けません: {e}') from e
    if doc.needs_pass:
        doc.close()
        raise DocumentParseError('パスワード保護されたPDFには対応していません。')
    if doc.is_repaired:
        logger.bind(page_count=doc.page_count).warning(
            '破損したPDFを修復して読み込みました。出力が不完全な可能性があります。'
        )
    return doc


def target_size(width_pt: float, height_pt: float, dpi: int) -> tuple[int, int]:
    """ポイント単位のページサイズとDPIから、出力画像のピクセルサイズを求めます。"""
    ppi = RASTER_DEFAULTS.POINTS_PER_INCH
    return max(1, int(width_pt * dpi / ppi)), max(1, int(height_pt * dpi / ppi))


def render_page(
    doc: fitz.Document,
    page_index: int,
    dpi: int,
    encoding: ImageEncoding,
    jpeg_quality: int = RASTER_DEFAULTS.JPEG_QUALITY,
) -> bytes:
    """単一ページを白背景のキャンバスに描画し、指定形式でエンコードしたバイト列を返します。"""
    try:
        page = doc.load_page(page_index)
        width, height = target_size(page.rect.width, page.rect.height, dpi)
        zoom = dpi / RASTER_DEFAULTS.POINTS_PER_INCH
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        im = Image.frombytes('RGB', (pix.width, pix.height), pix.samples)
        if im.size != (width, height):
            # MuPDFの丸め誤差を吸収し、計算上のサイズに揃える
            im = im.resize((width, height))

        buf = io.BytesIO()
        if encoding.pillow_format == 'JPEG':
            im.save(buf, format='JPEG', quality=jpeg_quality)
        else:
            im.save(buf, format='PNG')
        return buf.getvalue()
    except Exception as e:
        raise PageError(str(e), page_number=page_index + 1) from e


def _render_page_from_bytes(
    document_bytes: bytes,
    page_index: int,
    dpi: int,
    encoding: ImageEncoding,
    jpeg_quality: int,
) -> PageOutcome:
    """ワーカープロセス用。プロセスごとに文書を開き直してページを描画します。"""
    try:
        doc = open_pdf_checked(document_bytes)
        try:
            data = render_page(doc, page_index, dpi, encoding, jpeg_quality)
        finally:
            doc.close()
        return PageOutcome.success(page_index + 1, data)
    except Exception as e:
        return PageOutcome.failure(page_index + 1, str(e))


class PdfPageRasterizer:
    """PyMuPDFでPDFの各ページを画像化するクラス。"""

    def __init__(
        self,
        max_workers: int = 1,
        jpeg_quality: int = RASTER_DEFAULTS.JPEG_QUALITY,
    ):
        self.max_workers = max(1, max_workers)
        self.jpeg_quality = jpeg_quality

    @classmethod
    def from_settings(cls, settings: RasterizerSettings) -> 'PdfPageRasterizer':
        return cls(
            max_workers=settings.max_workers, jpeg_quality=settings.jpeg_quality
        )

    def page_count(self, document_bytes: bytes) -> int:
        """文書のページ数を返します。"""
        doc = open_pdf_checked(document_bytes)
        try:
            return doc.page_count
        finally:
            doc.close()

    def rasterize(
        self, document_bytes: bytes, options: ConversionOptions
    ) -> list[PageImage]:
        """
        全ページを画像化し、成功したページだけを元の順序で返します。
        失敗したページは警告ログを出して除外され、連番は詰めて振り直されます。
        """
        outcomes = self.render_pages(document_bytes, options)

        images: list[PageImage] = []
        for outcome in outcomes:
            if not outcome.ok:
                logger.bind(page=outcome.page_number, reason=outcome.error).warning(
                    'ページの画像化に失敗したためスキップします。'
                )
                continue
            images.append(
                PageImage(
                    data=outcome.data,
                    sequence=len(images) + 1,
                    encoding=options.image_format,
                    source_page=outcome.page_number,
                )
            )

        if len(images) < len(outcomes):
            logger.bind(rendered=len(images), total=len(outcomes)).warning(
                '一部のページが出力から除外されました。'
            )
        return images

    def render_pages(
        self, document_bytes: bytes, options: ConversionOptions
    ) -> list[PageOutcome]:
        """各ページの結果(成功/失敗)をページ順のリストで返します。"""
        doc = open_pdf_checked(document_bytes)
        try:
            total = doc.page_count
            log = logger.bind(
                page_count=total,
                dpi=options.dpi,
                image_format=options.image_format.value,
            )
            log.info('PDFページの画像化を開始')

            if self.max_workers > 1 and total > 1:
                return self._render_parallel(document_bytes, total, options)

            outcomes: list[PageOutcome] = []
            for index in range(total):
                try:
                    data = render_page(
                        doc, index, options.dpi, options.image_format, self.jpeg_quality
                    )
                    outcomes.append(PageOutcome.success(index + 1, data))
                    logger.debug(f'{index + 1}/{total} ページを画像化しました。')
                except PageError as e:
                    outcomes.append(PageOutcome.failure(index + 1, str(e)))
            return outcomes
        finally:
            doc.close()

    def _render_parallel(
        self, document_bytes: bytes, total: int, options: ConversionOptions
    ) -> list[PageOutcome]:
        """ページ単位でプロセス並列に描画し、結果をページ順に並べ直します。"""
        workers = min(self.max_workers, total)
        logger.debug(f'{workers}プロセスで並列に画像化します。')
        outcomes: dict[int, PageOutcome] = {}
        with concurrent.futures.ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    _render_page_from_bytes,
                    document_bytes,
                    index,
                    options.dpi,
                    options.image_format,
                    self.jpeg_quality,
                ): index
                for index in range(total)
            }
            for future in concurrent.futures.as_completed(futures):
                index = futures[future]
                try:
                    outcomes[index] = future.result()
                except Exception as e:
                    outcomes[index] = PageOutcome.failure(index + 1, str(e))
        return [outcomes[index] for index in range(total)]
