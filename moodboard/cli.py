"""
Command-line interface tools for the Moodboard service.
"""

import asyncio
import json
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import httpx
import typer

from .models import Entry

DEFAULT_BASE_URL = "http://localhost:3000"

app = typer.Typer(help="Moodboard CLI tools")


# MARK: - CLI Entry Points


def cli_post() -> None:
    """Entry point for moodboard-post CLI command."""
    typer.run(post)


def cli_feed() -> None:
    """Entry point for moodboard-feed CLI command."""
    typer.run(feed)


# MARK: - Commands


@app.command()
def post(
    text: str = typer.Argument(..., help="The note to post"),
    image: Path | None = typer.Option(
        None, "--image", "-i", exists=True, dir_okay=False, help="Image to attach"
    ),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Moodboard service"
    ),
) -> None:
    """Post a new entry to the moodboard."""

    async def _post() -> None:
        files = None
        if image is not None:
            files = {"image": (image.name, image.read_bytes())}

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/post", data={"text": text}, files=files
            )
            response.raise_for_status()
            entry = Entry.model_validate(response.json())
            print(f"Posted: {format_entry(entry)}")

    _run_with_error_handling(_post(), base_url)


@app.command()
def feed(
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Moodboard service"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Print every entry on the moodboard, oldest first."""

    async def _feed() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/feed")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2))
                return

            if not result:
                print("Feed is empty")
                return

            for raw in result:
                print(format_entry(Entry.model_validate(raw)))

    _run_with_error_handling(_feed(), base_url)


# MARK: - Helpers


def format_entry(entry: Entry) -> str:
    """Format an entry as a single line: timestamp, text and image path."""
    line = f"{entry.timestamp}  {entry.text or ''}"
    if entry.image:
        line = f"{line}  [{entry.image}]"
    return line


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
