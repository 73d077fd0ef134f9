import io
import zipfile
import xml.etree.ElementTree as ET

import pytest

from pdf2ebook.infrastructure.builders.epub.builder import EpubPackager
from pdf2ebook.models.domain import ConversionOptions, PageImage
from pdf2ebook.shared.exceptions import PackagingError
from pdf2ebook.shared.settings import PackagerSettings

NS = {
    'opf': 'http://www.idpf.org/2007/opf',
    'dc': 'http://purl.org/dc/elements/1.1/',
    'ncx': 'http://www.daisy.org/z3986/2005/ncx/',
    'xhtml': 'http://www.w3.org/1999/xhtml',
}


def to_pages(blobs):
    return [PageImage(data=b, sequence=i) for i, b in enumerate(blobs, 1)]


def open_zip(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


def test_mimetype_is_first_and_stored(page_blobs):
    data = EpubPackager().package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        first = zf.infolist()[0]
        assert first.filename == 'mimetype'
        assert first.compress_type == zipfile.ZIP_STORED
        assert zf.read('mimetype') == b'application/epub+zip'
        assert zf.testzip() is None


def test_entry_order(page_blobs):
    data = EpubPackager().package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        assert zf.namelist() == [
            'mimetype',
            'META-INF/container.xml',
            'OEBPS/content.opf',
            'OEBPS/toc.ncx',
            'OEBPS/images/page_001.png',
            'OEBPS/text/page_001.xhtml',
            'OEBPS/images/page_002.png',
            'OEBPS/text/page_002.xhtml',
            'OEBPS/images/page_003.png',
            'OEBPS/text/page_003.xhtml',
        ]
        for i, blob in enumerate(page_blobs, 1):
            assert zf.read(f'OEBPS/images/page_{i:03d}.png') == blob


def test_container_points_to_package_document(page_blobs):
    data = EpubPackager().package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        root = ET.fromstring(zf.read('META-INF/container.xml'))
    rootfile = root.find(
        './/{urn:oasis:names:tc:opendocument:xmlns:container}rootfile'
    )
    assert rootfile.get('full-path') == 'OEBPS/content.opf'


def test_manifest_and_spine_for_three_pages(page_blobs):
    data = EpubPackager().package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        opf = ET.fromstring(zf.read('OEBPS/content.opf'))

    items = opf.findall('opf:manifest/opf:item', NS)
    assert len(items) == 7
    assert items[0].get('href') == 'toc.ncx'
    hrefs = {item.get('href'): item.get('media-type') for item in items[1:]}
    for i in (1, 2, 3):
        assert hrefs[f'text/page_{i:03d}.xhtml'] == 'application/xhtml+xml'
        assert hrefs[f'images/page_{i:03d}.png'] == 'image/png'

    spine = opf.find('opf:spine', NS)
    assert spine.get('toc') == 'ncx'
    assert [ref.get('idref') for ref in spine.findall('opf:itemref', NS)] == [
        'page1',
        'page2',
        'page3',
    ]
    assert opf.find('opf:metadata/dc:title', NS).text == 'Sample'
    assert opf.find('opf:metadata/dc:identifier', NS).text.startswith('urn:uuid:')


def test_ncx_has_one_nav_point_per_page(page_blobs):
    data = EpubPackager().package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        ncx = ET.fromstring(zf.read('OEBPS/toc.ncx'))
    nav_points = ncx.findall('ncx:navMap/ncx:navPoint', NS)
    assert [p.get('playOrder') for p in nav_points] == ['1', '2', '3']
    assert [p.find('ncx:content', NS).get('src') for p in nav_points] == [
        'text/page_001.xhtml',
        'text/page_002.xhtml',
        'text/page_003.xhtml',
    ]


def test_page_wrapper_embeds_image_by_relative_path(page_blobs):
    data = EpubPackager().package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        page = ET.fromstring(zf.read('OEBPS/text/page_002.xhtml'))
    img = page.find('.//xhtml:img', NS)
    assert img.get('src') == '../images/page_002.png'
    assert page.find('.//xhtml:title', NS).text == 'Sample - Page 2'


def test_jpeg_pages_use_jpg_extension_and_media_type(page_blobs):
    options = ConversionOptions(image_format='JPEG')
    data = EpubPackager().package('Sample', to_pages(page_blobs), options)
    with open_zip(data) as zf:
        assert 'OEBPS/images/page_001.jpg' in zf.namelist()
        opf = ET.fromstring(zf.read('OEBPS/content.opf'))
    media_types = {
        item.get('href'): item.get('media-type')
        for item in opf.findall('opf:manifest/opf:item', NS)
    }
    assert media_types['images/page_001.jpg'] == 'image/jpeg'


def test_zero_pages_still_has_structural_files():
    data = EpubPackager().package('Empty', [], ConversionOptions())
    assert data
    with open_zip(data) as zf:
        assert zf.namelist() == [
            'mimetype',
            'META-INF/container.xml',
            'OEBPS/content.opf',
            'OEBPS/toc.ncx',
        ]
        opf = ET.fromstring(zf.read('OEBPS/content.opf'))
    assert len(opf.findall('opf:manifest/opf:item', NS)) == 1
    assert opf.findall('opf:spine/opf:itemref', NS) == []


def test_title_is_escaped(page_blobs):
    title = 'Tom & Jerry <"Vol. 1">'
    data = EpubPackager().package(title, to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        opf = ET.fromstring(zf.read('OEBPS/content.opf'))
        ncx = ET.fromstring(zf.read('OEBPS/toc.ncx'))
        page = ET.fromstring(zf.read('OEBPS/text/page_001.xhtml'))
    assert opf.find('opf:metadata/dc:title', NS).text == title
    assert ncx.find('ncx:docTitle/ncx:text', NS).text == title
    assert page.find('.//xhtml:title', NS).text == f'{title} - Page 1'


def test_control_characters_are_removed_from_title(page_blobs):
    title = 'Bad\x0bTitle\x00\x1f'
    data = EpubPackager().package(title, to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        opf = ET.fromstring(zf.read('OEBPS/content.opf'))
        ncx = ET.fromstring(zf.read('OEBPS/toc.ncx'))
        page = ET.fromstring(zf.read('OEBPS/text/page_001.xhtml'))
    assert opf.find('opf:metadata/dc:title', NS).text == 'BadTitle'
    assert ncx.find('ncx:docTitle/ncx:text', NS).text == 'BadTitle'
    assert page.find('.//xhtml:title', NS).text == 'BadTitle - Page 1'


def test_identifier_is_fresh_per_build_but_structure_is_stable(page_blobs):
    packager = EpubPackager()
    first = packager.package('Sample', to_pages(page_blobs), ConversionOptions())
    second = packager.package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(first) as a, open_zip(second) as b:
        assert a.namelist() == b.namelist()
        assert a.read('OEBPS/content.opf') != b.read('OEBPS/content.opf')


def test_injected_identifier_makes_output_deterministic(page_blobs):
    packager = EpubPackager(identifier_factory=lambda: 'fixed-book-id')
    first = packager.package('Sample', to_pages(page_blobs), ConversionOptions())
    second = packager.package('Sample', to_pages(page_blobs), ConversionOptions())
    assert first == second
    with open_zip(first) as zf:
        assert b'urn:uuid:fixed-book-id' in zf.read('OEBPS/content.opf')
        assert b'urn:uuid:fixed-book-id' in zf.read('OEBPS/toc.ncx')


def test_compression_level_applies_to_non_stored_entries(page_blobs):
    options = ConversionOptions(compression_level=9)
    data = EpubPackager().package('Sample', to_pages(page_blobs), options)
    with open_zip(data) as zf:
        infos = zf.infolist()
    assert infos[0].compress_type == zipfile.ZIP_STORED
    assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in infos[1:])


def test_metadata_settings_are_used(page_blobs):
    settings = PackagerSettings(creator='Scanner', language='ja')
    data = EpubPackager(settings).package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        opf = ET.fromstring(zf.read('OEBPS/content.opf'))
    assert opf.find('opf:metadata/dc:creator', NS).text == 'Scanner'
    assert opf.find('opf:metadata/dc:language', NS).text == 'ja'


def test_template_override_directory(tmp_path, page_blobs):
    (tmp_path / 'page_wrapper.xhtml.j2').write_text(
        '<html xmlns="http://www.w3.org/1999/xhtml"><body>'
        '<img src="{{ image_src }}"/></body></html>',
        encoding='utf-8',
    )
    settings = PackagerSettings(template_directory=tmp_path)
    data = EpubPackager(settings).package('Sample', to_pages(page_blobs), ConversionOptions())
    with open_zip(data) as zf:
        page = zf.read('OEBPS/text/page_001.xhtml')
        assert page.startswith(b'<html')
        # 上書きしていないテンプレートは同梱のものが使われる
        assert zf.read('OEBPS/content.opf').startswith(b'<?xml')


def test_broken_template_raises_packaging_error(tmp_path, page_blobs):
    (tmp_path / 'toc.ncx.j2').write_text('{% for x in %}', encoding='utf-8')
    settings = PackagerSettings(template_directory=tmp_path)
    with pytest.raises(PackagingError):
        EpubPackager(settings).package('Sample', to_pages(page_blobs), ConversionOptions())
