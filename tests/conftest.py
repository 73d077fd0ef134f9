import os

import fitz  # PyMuPDF
import pytest


def build_pdf(page_count: int = 3, width: float = 200, height: float = 100) -> bytes:
    doc = fitz.open()
    try:
        for i in range(page_count):
            page = doc.new_page(width=width, height=height)
            page.insert_text((10, 50), f'Page {i + 1}')
        return doc.tobytes()
    finally:
        doc.close()


def build_encrypted_pdf(page_count: int = 2) -> bytes:
    doc = fitz.open(stream=build_pdf(page_count), filetype='pdf')
    try:
        return doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw='owner-secret',
            user_pw='user-secret',
        )
    finally:
        doc.close()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf(3)


@pytest.fixture
def encrypted_pdf() -> bytes:
    return build_encrypted_pdf()


@pytest.fixture
def page_blobs() -> list[bytes]:
    return [b'first-page-bytes', b'second-page-bytes', b'third-page-bytes']


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    # Settings は cwd の .env / pyproject.toml を読むため、テストごとに切り離す
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith('PDF2EBOOK_'):
            monkeypatch.delenv(key)
