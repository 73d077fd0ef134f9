# FILE: src/pdf2ebook/infrastructure/builders/archive.py
import io
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger

from ...shared.exceptions import PackagingError

# ZIPエントリの更新日時を固定し、同じ入力から同じバイト列を得る
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class ArchiveWriter:
    """1回のパッケージングにつき1つだけ使われる、順序付きのZIP書き込み口。"""

    def __init__(self, zip_file: zipfile.ZipFile, compression_level: int):
        self._zip_file = zip_file
        self.compression_level = compression_level
        self.entry_names: list[str] = []

    def write(self, name: str, data: bytes | str, *, stored: bool = False) -> None:
        """エントリを1件追加します。`stored=True` または圧縮レベル0の場合は無圧縮。"""
        if isinstance(data, str):
            data = data.encode('utf-8')

        use_store = stored or self.compression_level == 0
        info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
        info.external_attr = 0o644 << 16
        if use_store:
            info.compress_type = zipfile.ZIP_STORED
            self._zip_file.writestr(info, data)
        else:
            info.compress_type = zipfile.ZIP_DEFLATED
            self._zip_file.writestr(
                info, data, compresslevel=self.compression_level
            )
        self.entry_names.append(name)


@contextmanager
def open_archive(compression_level: int, output: io.BytesIO) -> Iterator[ArchiveWriter]:
    """
    ZIPストリームを開き、どの経路で抜けても必ず閉じます。
    書き込み中の OSError / zipfile のエラーは PackagingError に包んで送出します。
    """
    try:
        with zipfile.ZipFile(output, 'w') as zip_file:
            yield ArchiveWriter(zip_file, compression_level)
    except PackagingError:
        raise
    except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        logger.bind(error=str(e)).error('ZIPストリームへの書き込みに失敗しました。')
        raise PackagingError(f'アーカイブの書き込みに失敗しました: {e}') from e
