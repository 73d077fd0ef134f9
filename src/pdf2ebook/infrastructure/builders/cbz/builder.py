# FILE: src/pdf2ebook/infrastructure/builders/cbz/builder.py
from collections.abc import Sequence

from ....models.domain import ConversionOptions, PageImage
from ..archive import ArchiveWriter
from ..base import BasePackager


class CbzPackager(BasePackager):
    """ページ画像を `001.png` のような連番名でフラットに格納するだけのパッケージャー。"""

    @classmethod
    def get_packager_name(cls) -> str:
        return 'cbz'

    def _write_entries(
        self,
        writer: ArchiveWriter,
        title: str,
        pages: Sequence[PageImage],
        options: ConversionOptions,
    ) -> None:
        ext = self.image_extension(options)
        for number, page in enumerate(pages, 1):
            writer.write(f'{number:03d}.{ext}', page.data)
