# src/pdf2ebook/utils/media_types.py
"""
画像エンコード形式とファイル拡張子・MIMEタイプの対応に関する共有ユーティリティ。
"""
from typing import cast

from ..shared.constants import MIME_TYPES

# エンコード名 → アーカイブ内のファイル拡張子
_FORMAT_TO_EXTENSION = {
    'png': 'png',
    'jpeg': 'jpg',
    'jpg': 'jpg',
}

# 拡張子 → MIME_TYPES dataclassの属性名
_EXT_TO_ATTR_MAP = {
    'jpg': 'JPEG',
    'jpeg': 'JPEG',
    'png': 'PNG',
    'xhtml': 'XHTML',
    'ncx': 'NCX',
    'opf': 'OEBPS_PACKAGE',
    'epub': 'EPUB',
    'cbz': 'CBZ',
    'pdf': 'PDF',
}


def get_image_extension(image_format: object) -> str:
    """エンコード名からファイル拡張子を返します。未知の値は 'png' になります。"""
    value = getattr(image_format, 'value', image_format)
    return _FORMAT_TO_EXTENSION.get(str(value).lower(), 'png')


def get_media_type_from_filename(filename: str) -> str:
    """ファイル名の拡張子からMIMEタイプを返します。"""
    ext = filename.lower().split('.')[-1]
    attr_name = _EXT_TO_ATTR_MAP.get(ext)

    if attr_name:
        return cast(str, getattr(MIME_TYPES, attr_name))

    return MIME_TYPES.OCTET_STREAM
