# FILE: src/pdf2ebook/infrastructure/builders/epub/component_generator.py
import re
from collections.abc import Sequence

from jinja2 import Environment

from ....models.domain import EpubComponents, PageAsset, PageImage
from ....shared.constants import MIME_TYPES
from ....utils.media_types import get_media_type_from_filename
from .constants import (
    CONTENT_OPF_TEMPLATE,
    IMAGES_DIR_NAME,
    PAGE_FILE_STEM,
    PAGE_WRAPPER_TEMPLATE,
    TEXT_DIR_NAME,
    TOC_NCX_HREF,
    TOC_NCX_TEMPLATE,
)

NCX_ITEM_ID = 'ncx'

# XML 1.0 で使用できない制御文字 (タブ・改行・復帰以外)
XML_INVALID_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]')


def strip_xml_invalid_chars(text: str) -> str:
    """XML文書に埋め込めない制御文字を取り除きます。"""
    return XML_INVALID_CHARS.sub('', text)


class EpubComponentGenerator:
    """EPUBの構成要素(OPF, NCX, 各ページのXHTML)を生成するクラス。"""

    def __init__(
        self,
        template_env: Environment,
        title: str,
        book_id: str,
        image_extension: str,
        creator: str,
        language: str,
    ):
        self.template_env = template_env
        self.title = strip_xml_invalid_chars(title)
        self.book_id = book_id
        self.image_extension = image_extension
        self.creator = strip_xml_invalid_chars(creator)
        self.language = language

    def generate_components(self, pages: Sequence[PageImage]) -> EpubComponents:
        """EPUBの全構成要素を生成し、EpubComponentsオブジェクトとして返します。"""
        page_assets = [
            self._generate_page(number, page) for number, page in enumerate(pages, 1)
        ]
        return EpubComponents(
            book_id=self.book_id,
            pages=page_assets,
            content_opf=self._generate_opf(page_assets),
            toc_ncx=self._generate_ncx(page_assets),
        )

    def _render_template(self, template_name: str, context: dict) -> bytes:
        template = self.template_env.get_template(template_name)
        rendered_str = template.render(context)
        return rendered_str.encode('utf-8')

    def _generate_page(self, number: int, page: PageImage) -> PageAsset:
        """ページ画像1枚分の画像エントリとXHTMLラッパーを生成します。"""
        stem = PAGE_FILE_STEM.format(number=number)
        image_href = f'{IMAGES_DIR_NAME}/{stem}.{self.image_extension}'
        context = {
            'title': self.title,
            'number': number,
            'image_src': f'../{image_href}',
        }
        return PageAsset(
            number=number,
            image_href=image_href,
            image_media_type=get_media_type_from_filename(image_href),
            image_data=page.data,
            xhtml_href=f'{TEXT_DIR_NAME}/{stem}.xhtml',
            xhtml_content=self._render_template(PAGE_WRAPPER_TEMPLATE, context),
        )

    def _generate_opf(self, pages: list[PageAsset]) -> bytes:
        """content.opf ファイルの内容を生成します。"""
        manifest_items = [
            {'id': NCX_ITEM_ID, 'href': TOC_NCX_HREF, 'media_type': MIME_TYPES.NCX}
        ]
        spine_itemrefs = []
        for page in pages:
            manifest_items.append(
                {
                    'id': f'page{page.number}',
                    'href': page.xhtml_href,
                    'media_type': MIME_TYPES.XHTML,
                }
            )
            manifest_items.append(
                {
                    'id': f'img{page.number}',
                    'href': page.image_href,
                    'media_type': page.image_media_type,
                }
            )
            spine_itemrefs.append(f'page{page.number}')

        context = {
            'title': self.title,
            'creator': self.creator,
            'language': self.language,
            'book_id': self.book_id,
            'manifest_items': manifest_items,
            'spine_itemrefs': spine_itemrefs,
            'ncx_id': NCX_ITEM_ID,
        }
        return self._render_template(CONTENT_OPF_TEMPLATE, context)

    def _generate_ncx(self, pages: list[PageAsset]) -> bytes:
        """toc.ncx (目次) ファイルの内容を生成します。"""
        context = {
            'title': self.title,
            'book_id': self.book_id,
            'nav_points': [
                {'number': page.number, 'href': page.xhtml_href} for page in pages
            ],
        }
        return self._render_template(TOC_NCX_TEMPLATE, context)
