# FILE: src/pdf2ebook/__init__.py
"""PDFをページ画像ベースのEPUB/CBZに変換するライブラリ。"""

from .models.domain import (
    ConversionOptions,
    ConversionRequest,
    ConversionResult,
    PageImage,
)
from .services import ConversionPipeline
from .shared.enums import ImageEncoding, OutputFormat

__version__ = '0.1.0'

__all__ = [
    'ConversionOptions',
    'ConversionPipeline',
    'ConversionRequest',
    'ConversionResult',
    'ImageEncoding',
    'OutputFormat',
    'PageImage',
]
