"""Command line entry point: ``python -m leadcrm --host 0.0.0.0 --port 8000``."""

import argparse
import logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Lead CRM API.")
    parser.add_argument("--docker", action="store_true", help="Running with docker")
    parser.add_argument("--host", default="127.0.0.1", help="Application host.")
    parser.add_argument("--port", default="8000", help="Application port.")
    parser.add_argument("--env-file", default=".env", help="Env file loaded outside docker.")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development purposes.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    if not args.docker:
        from dotenv import load_dotenv

        # before the app import so Settings sees the values
        load_dotenv(args.env_file)

    import uvicorn

    uvicorn.run("leadcrm.app:app", host=args.host, port=int(args.port), reload=args.reload)


if __name__ == "__main__":
    main()
