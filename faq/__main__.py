"""Run the FAQ service: python -m faq [config.json] [--host HOST] [--port PORT]"""

import argparse
import sys

from faq import create_app
from faq.config import ConfigurationError, load_settings


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="faq", description="FAQ publishing service")
    parser.add_argument("config", nargs="?", help="JSON configuration file (defaults to $FAQ_CONFIG)")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=18080)
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    app = create_app(settings)
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
