# src/pdf2ebook/shared/enums.py
from enum import Enum


class OutputFormat(str, Enum):
    """
    サポートされている出力コンテナ形式。
    strを継承することで、'=='による文字列比較とEnumの型安全性を両立する。
    """

    EPUB = 'EPUB'
    CBZ = 'CBZ'

    @classmethod
    def _missing_(cls, value: object) -> 'OutputFormat | None':
        # 'epub' のような小文字の値でもアクセス可能にする
        for member in cls:
            if member.value == str(value).upper():
                return member
        return None

    @property
    def extension(self) -> str:
        """出力ファイル名に付与する拡張子。"""
        return self.value.lower()


class ImageEncoding(str, Enum):
    """ページ画像のエンコード形式。未知の値はPNGにフォールバックする。"""

    PNG = 'PNG'
    JPEG = 'JPEG'
    JPG = 'JPG'

    @classmethod
    def _missing_(cls, value: object) -> 'ImageEncoding':
        for member in cls:
            if member.value == str(value).upper():
                return member
        return cls.PNG

    @property
    def pillow_format(self) -> str:
        """Pillowの `Image.save(format=...)` に渡す名前。"""
        return 'PNG' if self is ImageEncoding.PNG else 'JPEG'
