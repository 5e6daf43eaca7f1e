"""
Zoo Planner — entry point.

Usage:
    python -m zooplanner serve               # start web server on :8000
    python -m zooplanner serve --port 3000
    python -m zooplanner inspect 1aa.2bb.0003b
"""

import logging
import sys


def _inspect(encoded: str) -> int:
    from zooplanner.catalog import load_catalog
    from zooplanner.layout.codec import DecodeError, parse_state
    from zooplanner.layout.validation import ValidationEngine

    catalog = load_catalog()
    try:
        store = parse_state(encoded, catalog)
    except DecodeError as exc:
        print(f"Cannot decode: {exc}")
        return 1

    for item in (*store.buildings, *store.decorations):
        print(f"{item.kind:<11} {item.catalog_type_id:<15} "
              f"({item.grid_x}, {item.grid_y}) {item.width}×{item.height}")
    summary = ValidationEngine(store, catalog).summary()
    for r in summary.reports:
        print(f"enclosure   {r.occupant_id:<15} ({r.rect.x}, {r.rect.y}) "
              f"{r.rect.w}×{r.rect.h}  area={r.area} perimeter={r.perimeter}  "
              f"{r.status.value}")
    print(f"{summary.occupied_cells} occupied, {summary.free_cells} free")
    return 0


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = sys.argv[1:]
    cmd = args[0] if args else "serve"

    if cmd == "serve":
        port = 8000
        host = "127.0.0.1"
        for i, a in enumerate(args):
            if a == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif a == "--host" and i + 1 < len(args):
                host = args[i + 1]

        from zooplanner.web.server import main as serve
        serve(host=host, port=port)
    elif cmd == "inspect" and len(args) == 2:
        sys.exit(_inspect(args[1]))
    else:
        print(f"Unknown command: {cmd}")
        print("Usage: python -m zooplanner serve [--port PORT] [--host HOST]")
        print("       python -m zooplanner inspect ENCODED")
        sys.exit(1)


if __name__ == "__main__":
    main()
