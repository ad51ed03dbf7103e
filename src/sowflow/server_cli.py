"""``sowflow-server``: run the SOW approval workflow API under uvicorn."""

import argparse
import os


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="sowflow-server",
        description=(
            "Serve the statement-of-work approval API: rule-driven Manager, "
            "Director and VP approval stages, comment threads and audit trail."
        ),
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on (default: 8080)")
    parser.add_argument(
        "--local",
        action="store_true",
        help=(
            "Use ./sowflow_local.db instead of PostgreSQL; tables are created and the "
            "default approval stages seeded on startup"
        ),
    )
    args = parser.parse_args(argv)

    # Read by sowflow.config when uvicorn imports the app
    if args.local:
        os.environ["SOWFLOW_LOCAL_MODE"] = "1"

    import uvicorn

    uvicorn.run("sowflow.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
