# src/pdf2ebook/shared/constants.py
from dataclasses import dataclass
from typing import Final


# --- 1. Mime Types ---
@dataclass(frozen=True)
class MimeTypes:
    """
    MIMEタイプの中央定義
    """

    JPEG: str = 'image/jpeg'
    PNG: str = 'image/png'
    XHTML: str = 'application/xhtml+xml'
    NCX: str = 'application/x-dtbncx+xml'
    OEBPS_PACKAGE: str = 'application/oebps-package+xml'
    EPUB: str = 'application/epub+zip'
    CBZ: str = 'application/vnd.comicbook+zip'
    PDF: str = 'application/pdf'
    OCTET_STREAM: str = 'application/octet-stream'


MIME_TYPES: Final = MimeTypes()


# --- 2. Rasterization ---
@dataclass(frozen=True)
class RasterDefaults:
    """
    ラスタライズ処理の既定値。
    PDFの座標系は 1インチ = 72ポイント。
    """

    POINTS_PER_INCH: float = 72.0
    DPI: int = 150
    COMPRESSION_LEVEL: int = 6
    JPEG_QUALITY: int = 90


RASTER_DEFAULTS: Final = RasterDefaults()

