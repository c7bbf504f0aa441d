"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from io import BytesIO

import PIL
import typer
from PIL import Image
from rich.console import Console
from rich.table import Table

from adapters.catalog_api import DigiApiClient
from core.config import AppSettings, get_user_env_file
from core.errors import FetchError
from core.services.image_cache import decode_image

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with DigiApiClient(settings) as client:
            page = await client.fetch_list(0, 1)
        return True, f"{page.total_items} entities in {page.total_pages} pages"
    except FetchError as exc:
        return False, str(exc)


def _check_pillow() -> tuple[bool, str]:
    """Decode a tiny in-memory PNG to detect a broken Pillow install."""

    try:
        buffer = BytesIO()
        Image.new("RGB", (2, 2), (255, 0, 0)).save(buffer, format="PNG")
        image = decode_image("doctor://sample.png", buffer.getvalue())
        return True, f"Pillow {PIL.__version__} {image.size[0]}x{image.size[1]}"
    except FetchError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="digi-catalog Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    env_file = get_user_env_file()
    table.add_row("User config", "OK" if env_file.exists() else "OPTIONAL", str(env_file))
    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("Page size", "OK", str(settings.page_size))
    table.add_row(
        "Image cache",
        "OK",
        f"{settings.image_cache_max_entries} entries / {settings.image_cache_max_bytes // (1024 * 1024)} MiB",
    )

    # Connectivity (best-effort)
    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("Catalog API", "OK" if ok_api else "FAIL", detail_api)

    ok_img, detail_img = _check_pillow()
    table.add_row("Image decoding", "OK" if ok_img else "FAIL", detail_img)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] Check connectivity or override the endpoint with "
            "DIGI_CATALOG_API_BASE_URL."
        )
