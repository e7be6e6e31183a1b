"""``roost routes`` — list configured routes in match order."""

import argparse
import sys

from roost.cli._resolve import resolve_app
from roost.errors import RoostError


def run_routes(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        app.freeze()
    except RoostError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = list(app.container.get("RouteTable"))
    if not routes:
        print("No routes configured.")
        return

    rows = [(r.name, r.pattern, "/".join(r.triple)) for r in routes]

    max_name = max(max(len(r[0]) for r in rows), 4)  # "NAME" header
    max_pattern = max(max(len(r[1]) for r in rows), 7)  # "PATTERN" header

    fmt = f"{{:<{max_name}}}  {{:<{max_pattern}}}  {{}}"
    print(fmt.format("NAME", "PATTERN", "MODULE/CONTROLLER/ACTION"))
    sep_len = max_name + max_pattern + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for name, pattern, target in rows:
        print(fmt.format(name, pattern, target))
