# FILE: src/pdf2ebook/infrastructure/builders/epub/constants.py
"""
EPUBファイル構造に関連する定数を集約します。
"""

# EPUBコンテナの必須ファイルとディレクトリ
MIMETYPE_FILE_NAME = 'mimetype'
META_INF_DIR = 'META-INF'
OEBPS_DIR = 'OEBPS'

# EPUB内の主要なXMLファイルとパス
CONTAINER_XML_PATH = f'{META_INF_DIR}/container.xml'
ROOT_FILE_PATH = f'{OEBPS_DIR}/content.opf'
TOC_NCX_HREF = 'toc.ncx'
TOC_NCX_PATH = f'{OEBPS_DIR}/{TOC_NCX_HREF}'

# OEBPS配下のページ画像/ページXHTMLのディレクトリ
IMAGES_DIR_NAME = 'images'
TEXT_DIR_NAME = 'text'
PAGE_FILE_STEM = 'page_{number:03d}'

# テンプレート名
CONTENT_OPF_TEMPLATE = 'content.opf.j2'
TOC_NCX_TEMPLATE = 'toc.ncx.j2'
PAGE_WRAPPER_TEMPLATE = 'page_wrapper.xhtml.j2'
