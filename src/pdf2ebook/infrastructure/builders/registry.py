# FILE: src/pdf2ebook/infrastructure/builders/registry.py
from collections.abc import Mapping
from types import MappingProxyType

from ...domain.interfaces import IPackager
from ...shared.enums import OutputFormat
from ...shared.settings import PackagerSettings
from .cbz.builder import CbzPackager
from .epub.builder import EpubPackager


def create_packagers(
    settings: PackagerSettings | None = None,
) -> Mapping[OutputFormat, IPackager]:
    """出力形式からパッケージャーへの固定の対応表を返します。"""
    settings = settings or PackagerSettings()
    return MappingProxyType(
        {
            OutputFormat.EPUB: EpubPackager(settings),
            OutputFormat.CBZ: CbzPackager(),
        }
    )
