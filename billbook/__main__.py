import sys

from rich.console import Console

from billbook.cli.app import main_menu
from billbook.db import Database, get_url, initialize_db
from billbook.exceptions import StorageError
from billbook.logging import configure_logging, reconfigure

console = Console()


def main() -> None:
    configure_logging()
    try:
        with Database(get_url()) as database:
            initialize_db(database)
            reconfigure()
            main_menu(database)
    except StorageError as exc:
        console.print(f"[red]Could not start the bill book: {exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
