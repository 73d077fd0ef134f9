# FILE: src/pdf2ebook/utils/filesystem_sanitizer.py
import re
from pathlib import PurePath

INVALID_PATH_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def sanitize_file_name(name: str, max_length: int, fallback: str = 'untitled') -> str:
    """
    出力ファイル名として安全でない文字を'_'に置換し、拡張子を保ったまま長さを制限します。

    Examples:
        >>> sanitize_file_name('A/B: Vol.1.epub', 100)
        'A_B_ Vol.1.epub'
    """
    sanitized = INVALID_PATH_CHARS.sub('_', name).strip()
    suffix = PurePath(sanitized).suffix
    stem = sanitized[: len(sanitized) - len(suffix)] if suffix else sanitized
    stem = stem.strip(' .') or fallback

    max_stem_length = max(1, max_length - len(suffix))
    return f'{stem[:max_stem_length]}{suffix}'
