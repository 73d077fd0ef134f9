# FILE: src/pdf2ebook/__main__.py
"""
パッケージを 'python -m pdf2ebook' コマンドで実行可能にするための
エントリーポイントです。
"""

from .entrypoints.cli import run_app

if __name__ == '__main__':
    run_app()
