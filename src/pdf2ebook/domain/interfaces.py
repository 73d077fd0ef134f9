# FILE: src/pdf2ebook/domain/interfaces.py

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ..models.domain import ConversionOptions, PageImage


@runtime_checkable
class IRasterizer(Protocol):
    """ソース文書をページ画像の列に変換するインターフェース。"""

    def rasterize(
        self, document_bytes: bytes, options: ConversionOptions
    ) -> list[PageImage]:
        """
        文書の各ページを画像化し、ページ順に並んだリストを返します。

        Args:
            document_bytes (bytes): ソース文書(PDF)のバイト列。
            options (ConversionOptions): 解像度やエンコード形式。

        Raises:
            DocumentParseError: 文書として解析できない場合。

        Returns:
            list[PageImage]: 失敗したページを除いたページ画像のリスト。
        """
        ...


@runtime_checkable
class IPackager(Protocol):
    """ページ画像の列をコンテナ形式のバイト列に梱包するインターフェース。"""

    @classmethod
    def get_packager_name(cls) -> str:
        """パッケージャーの名前を返すクラスメソッド。"""
        ...

    def package(
        self,
        title: str,
        pages: Sequence[PageImage],
        options: ConversionOptions,
    ) -> bytes:
        """
        ページ画像を与えられた順序のまま梱包し、アーカイブのバイト列を返します。

        Raises:
            PackagingError: アーカイブの書き込みに失敗した場合。
        """
        ...
