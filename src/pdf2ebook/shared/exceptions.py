# FILE: src/pdf2ebook/shared/exceptions.py


class Pdf2EbookError(Exception):
    """アプリケーションの基底例外クラス。"""

    pass


class SettingsError(Pdf2EbookError):
    """設定関連のエラー。"""

    pass


class RequestValidationError(Pdf2EbookError):
    """変換リクエストの内容が不正な場合のエラー（空のファイル名や内容など）。"""

    pass


class DocumentParseError(Pdf2EbookError):
    """入力バイト列が正しいPDFとして解析できないエラー。"""

    pass


class PageError(Pdf2EbookError):
    """単一ページのラスタライズ失敗。ページを除外することで回復されます。"""

    def __init__(self, message: str, page_number: int | None = None):
        if page_number is not None:
            super().__init__(f'[page {page_number}] {message}')
        else:
            super().__init__(message)
        self.page_number = page_number


class EmptyResultError(Pdf2EbookError):
    """ラスタライズ後に1ページも残らなかったエラー。"""

    pass


class UnsupportedFormatError(Pdf2EbookError):
    """要求された出力形式に対応するパッケージャーが存在しないエラー。"""

    pass


class PackagingError(Pdf2EbookError):
    """コンテナ(ZIP)の書き込み中に発生したエラー。"""

    pass
