# FILE: src/pdf2ebook/infrastructure/builders/base.py
import io
from abc import ABC, abstractmethod
from collections.abc import Sequence

from loguru import logger

from ...models.domain import ConversionOptions, PageImage
from ...utils.media_types import get_image_extension
from .archive import ArchiveWriter, open_archive


class BasePackager(ABC):
    """コンテナ形式ごとのパッケージャーの抽象基底クラス。"""

    def package(
        self,
        title: str,
        pages: Sequence[PageImage],
        options: ConversionOptions,
    ) -> bytes:
        """ページ画像を与えられた順序のまま梱包し、アーカイブのバイト列を返します。"""
        name = self.get_packager_name()
        log = logger.bind(packager=name, title=title, page_count=len(pages))
        log.info(f'{name.upper()}の作成処理を開始')

        output = io.BytesIO()
        with open_archive(options.compression_level, output) as writer:
            self._write_entries(writer, title, pages, options)
            entry_count = len(writer.entry_names)

        content = output.getvalue()
        log.bind(size=len(content), entries=entry_count).success(
            f'{name.upper()}の作成成功'
        )
        return content

    @staticmethod
    def image_extension(options: ConversionOptions) -> str:
        return get_image_extension(options.image_format)

    @classmethod
    @abstractmethod
    def get_packager_name(cls) -> str:
        """このパッケージャーの一意な名前を返します。"""
        raise NotImplementedError

    @abstractmethod
    def _write_entries(
        self,
        writer: ArchiveWriter,
        title: str,
        pages: Sequence[PageImage],
        options: ConversionOptions,
    ) -> None:
        """形式固有の順序でエントリを書き込みます。"""
        raise NotImplementedError
