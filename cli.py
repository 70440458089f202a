"""Tech:Online backend command line: run the server or inspect the route table."""

import argparse
import sys

from rich.console import Console
from rich.table import Table

from core.config import get_settings

console = Console()


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    s = get_settings()
    uvicorn.run(
        "main:app",
        host=args.host or s.HOST,
        port=args.port or s.PORT,
        reload=args.reload,
        log_level=s.LOG_LEVEL.lower(),
    )
    return 0


def cmd_routes(args: argparse.Namespace) -> int:
    from main import build_route_table

    table = build_route_table(get_settings().SITE_PREFIX)
    view = Table(title="Routes", show_lines=False)
    view.add_column("Prefix", style="cyan")
    view.add_column("Pattern")
    view.add_column("Record", style="magenta")
    view.add_column("Capabilities", style="green")
    for prefix, route in table.routes():
        view.add_row(
            prefix,
            route.pattern.pattern,
            route.record_type.__name__,
            ", ".join(sorted(c.value for c in route.capabilities)) or "-",
        )
    console.print(view)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tech-online", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the API server")
    serve.add_argument("--host", help="bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, help="port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="reload on code changes")
    serve.set_defaults(func=cmd_serve)

    routes = sub.add_parser("routes", help="print the route table")
    routes.set_defaults(func=cmd_routes)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
