"""
Entry point for the library manager.

Usage:
  python -m bibliotheque [--fichier FILE] [--log-level LEVEL] [menu]
  python -m bibliotheque [--fichier FILE] serve [--host HOST] [--port PORT]
"""

import argparse
import logging
import sys

from .catalog.router import configure
from .catalog.store import DEFAULT_FILE, Bibliotheque, BibliothequeError
from .menu import run_menu


logger = logging.getLogger("bibliotheque")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bibliotheque", description="Gestion de Bibliothèque"
    )
    parser.add_argument(
        "--fichier", default=DEFAULT_FILE, help="catalogue JSON (default: %(default)s)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default: %(default)s)",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("menu", help="console menu (default)")
    serve = sub.add_parser("serve", help="web front end")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "serve":
        import uvicorn

        from .main import app

        configure(args.fichier)
        logger.info("Serving %s on %s:%d", args.fichier, args.host, args.port)
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    try:
        bib = Bibliotheque(args.fichier)
    except BibliothequeError as e:
        print(f"Erreur: {e}", file=sys.stderr)
        return 1
    run_menu(bib)
    return 0


if __name__ == "__main__":
    sys.exit(main())
