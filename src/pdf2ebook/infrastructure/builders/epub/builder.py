# FILE: src/pdf2ebook/infrastructure/builders/epub/builder.py
import uuid
from collections.abc import Callable, Sequence
from pathlib import Path

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    TemplateError,
)
from loguru import logger

from ....models.domain import ConversionOptions, EpubComponents, PageImage
from ....shared.exceptions import PackagingError
from ....shared.settings import PackagerSettings
from ..archive import ArchiveWriter
from ..base import BasePackager
from .component_generator import EpubComponentGenerator
from .constants import (
    CONTAINER_XML_PATH,
    MIMETYPE_FILE_NAME,
    OEBPS_DIR,
    ROOT_FILE_PATH,
    TOC_NCX_PATH,
)

ASSETS_DIR = Path(__file__).parent / 'assets'
TEMPLATES_DIR = ASSETS_DIR / 'templates'
CONTAINER_XML_RESOURCE_PATH = ASSETS_DIR / 'container.xml'
MIMETYPE_RESOURCE_PATH = ASSETS_DIR / MIMETYPE_FILE_NAME


def new_book_id() -> str:
    return str(uuid.uuid4())


class EpubPackager(BasePackager):
    """ページ画像を固定レイアウトのEPUB(OPF/NCX + ページごとのXHTML)に梱包するクラス。"""

    def __init__(
        self,
        settings: PackagerSettings | None = None,
        identifier_factory: Callable[[], str] = new_book_id,
    ):
        self.settings = settings or PackagerSettings()
        self.identifier_factory = identifier_factory
        self.template_env = self._create_template_env()

    @classmethod
    def get_packager_name(cls) -> str:
        return 'epub'

    def _create_template_env(self) -> Environment:
        """ユーザー指定のテンプレートを同梱テンプレートより優先するJinja2環境を生成します。"""
        loaders = []
        override_dir = self.settings.template_directory
        if override_dir:
            if override_dir.is_dir():
                logger.bind(template_directory=str(override_dir)).debug(
                    'カスタムテンプレートを使用します。'
                )
                loaders.append(FileSystemLoader(str(override_dir)))
            else:
                logger.bind(template_directory=str(override_dir)).warning(
                    'テンプレートディレクトリが見つからないため、同梱テンプレートを使用します。'
                )

        if not TEMPLATES_DIR.is_dir():
            raise PackagingError(
                f'同梱テンプレートディレクトリが見つかりません: {TEMPLATES_DIR}'
            )
        loaders.append(FileSystemLoader(str(TEMPLATES_DIR)))
        # autoescape によりタイトル中の & < > などはXMLとして安全に埋め込まれる
        return Environment(loader=ChoiceLoader(loaders), autoescape=True)

    def _write_entries(
        self,
        writer: ArchiveWriter,
        title: str,
        pages: Sequence[PageImage],
        options: ConversionOptions,
    ) -> None:
        components = self._generate_components(title, pages, options)
        logger.bind(book_id=components.book_id).debug('EPUBの構成要素を生成しました。')
        try:
            mimetype_content = MIMETYPE_RESOURCE_PATH.read_bytes()
            container_content = CONTAINER_XML_RESOURCE_PATH.read_bytes()
        except OSError as e:
            logger.error(
                f'コンテナリソースの読み込みに失敗: {CONTAINER_XML_RESOURCE_PATH}. {e}'
            )
            raise PackagingError(f'コンテナリソースを読み込めません: {e}') from e

        # mimetype は先頭かつ無圧縮でなければならない
        writer.write(MIMETYPE_FILE_NAME, mimetype_content, stored=True)
        writer.write(CONTAINER_XML_PATH, container_content)
        writer.write(ROOT_FILE_PATH, components.content_opf)
        writer.write(TOC_NCX_PATH, components.toc_ncx)

        if not components.pages:
            logger.debug('ページはありません。')
            return

        for page in components.pages:
            writer.write(f'{OEBPS_DIR}/{page.image_href}', page.image_data)
            writer.write(f'{OEBPS_DIR}/{page.xhtml_href}', page.xhtml_content)

        logger.debug(f'{len(components.pages)}ページを書き込みました。')

    def _generate_components(
        self,
        title: str,
        pages: Sequence[PageImage],
        options: ConversionOptions,
    ) -> EpubComponents:
        generator = EpubComponentGenerator(
            template_env=self.template_env,
            title=title,
            book_id=self.identifier_factory(),
            image_extension=self.image_extension(options),
            creator=self.settings.creator,
            language=self.settings.language,
        )
        try:
            return generator.generate_components(pages)
        except TemplateError as e:
            template_name = getattr(e, 'name', 'N/A')
            logger.bind(template_name=template_name).error(
                f"テンプレート '{template_name}' のレンダリングに失敗しました。"
            )
            raise PackagingError(f'テンプレートエラー: {e}') from e
