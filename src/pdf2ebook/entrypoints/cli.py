# FILE: src/pdf2ebook/entrypoints/cli.py
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from ..infrastructure.builders.registry import create_packagers
from ..infrastructure.rasterizers.pdf import PdfPageRasterizer
from ..models.domain import ConversionOptions, ConversionRequest
from ..services import ConversionPipeline
from ..shared.enums import ImageEncoding, OutputFormat
from ..shared.exceptions import (
    Pdf2EbookError,
    RequestValidationError,
    SettingsError,
)
from ..shared.settings import Settings
from ..utils.filesystem_sanitizer import sanitize_file_name
from ..utils.logging import setup_logging

app = typer.Typer(
    help='PDFの各ページを画像化し、EPUBまたはCBZ形式の電子書籍に変換するコマンドラインツールです。',
    rich_markup_mode='markdown',
)


def _initialize_settings(config_file: Path | None, log_level: str) -> Settings:
    """設定オブジェクトを初期化するヘルパー関数。"""
    try:
        return Settings(_config_file=config_file, log_level=log_level)
    except SettingsError as e:
        logger.bind(error=str(e)).error('❌ 設定エラーが発生しました。')
        raise typer.Exit(code=1) from e


def _create_pipeline(settings: Settings) -> ConversionPipeline:
    """設定から変換パイプラインを組み立てます (コンポジションルート)。"""
    return ConversionPipeline(
        rasterizer=PdfPageRasterizer.from_settings(settings.rasterizer),
        packagers=create_packagers(settings.packager),
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            '-v',
            '--verbose',
            help='詳細なデバッグログを有効にします。',
            show_default=False,
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            '-c',
            '--config',
            help='カスタム設定TOMLファイルへのパス。',
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    log_file: Annotated[
        bool,
        typer.Option(
            '--log-file',
            help='ログをJSON形式でファイルに出力します。',
            show_default=False,
        ),
    ] = False,
) -> None:
    """
    PDF to EPUB/CBZ Converter
    """
    log_level = 'DEBUG' if verbose else 'INFO'
    setup_logging(log_level, serialize_to_file=log_file)
    ctx.obj = _initialize_settings(config, log_level)


@app.command()
def convert(
    ctx: typer.Context,
    pdf_path: Annotated[
        Path,
        typer.Argument(
            help='変換するPDFファイルへのパス。',
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
            metavar='PDF',
        ),
    ],
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            '-f',
            '--format',
            help='出力形式 (EPUB または CBZ)。',
            case_sensitive=False,
        ),
    ] = OutputFormat.EPUB,
    dpi: Annotated[
        int | None,
        typer.Option('--dpi', min=1, help='ページ画像の解像度。省略時は設定値。'),
    ] = None,
    image_format: Annotated[
        str | None,
        typer.Option(
            '--image-format',
            help='ページ画像の形式 (PNG / JPEG / JPG)。未知の値はPNGになります。',
        ),
    ] = None,
    compression_level: Annotated[
        int | None,
        typer.Option(
            '--compression-level',
            min=0,
            max=9,
            help='ZIPの圧縮レベル(0-9)。省略時は設定値。',
        ),
    ] = None,
    title: Annotated[
        str | None,
        typer.Option('-t', '--title', help='書籍タイトル。省略時はファイル名。'),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            '-o',
            '--output-dir',
            help='出力先ディレクトリ。省略時は設定値。',
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """PDFファイルをEPUBまたはCBZに変換して保存します。"""
    settings: Settings = ctx.obj
    options = ConversionOptions(
        dpi=dpi or settings.rasterizer.dpi,
        image_format=ImageEncoding(image_format or settings.rasterizer.image_format),
        compression_level=(
            compression_level
            if compression_level is not None
            else settings.packager.compression_level
        ),
    )

    try:
        request = ConversionRequest(
            file_name=pdf_path.name,
            content=pdf_path.read_bytes(),
            output_format=output_format,
            options=options,
            title=title,
        )
    except RequestValidationError as e:
        logger.bind(error=str(e)).error('❌ 入力ファイルが不正です。')
        raise typer.Exit(code=1) from e

    result = _create_pipeline(settings).convert(request)
    if not result.succeeded or result.output_content is None:
        logger.bind(error=result.error_message).error('❌ 変換に失敗しました。')
        raise typer.Exit(code=1)

    target_dir = output_dir or settings.output.directory.resolve()
    target_dir.mkdir(parents=True, exist_ok=True)
    output_path = target_dir / sanitize_file_name(
        result.output_file_name, max_length=settings.output.max_filename_length
    )
    if output_path.exists():
        logger.bind(output_path=str(output_path)).warning(
            '出力ファイルは既に存在するため上書きします。'
        )
    output_path.write_bytes(result.output_content)
    logger.bind(output_path=str(output_path), total_pages=result.total_pages).success(
        '✅ 変換が完了しました。'
    )


@app.command()
def formats(ctx: typer.Context) -> None:
    """サポートされている出力形式を表示します。"""
    settings: Settings = ctx.obj
    for token in _create_pipeline(settings).supported_formats():
        typer.echo(token)


@logger.catch(exclude=Pdf2EbookError)
def run_app() -> None:
    """
    アプリケーション全体を@logger.catchでラップし、
    制御下の例外は個別処理、それ以外をLoguruに記録させるためのラッパー関数。
    """
    try:
        app()
    except Pdf2EbookError as e:
        logger.bind(error=str(e)).opt(exception=e).error(
            '❌ 処理中にエラーが発生しました。'
        )
        raise SystemExit(1) from e
