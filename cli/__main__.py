"""Entry point for the parola CLI client."""

import argparse
import sys

from cli.api_client import ParolaAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='Parola - Italian vocabulary word game')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    args = parser.parse_args()

    client = ParolaAPIClient(base_url=args.server)
    ui = ConsoleUI(client)

    try:
        ui.run()
    except (KeyboardInterrupt, EOFError):
        print('\nCiao!')
        sys.exit(0)


if __name__ == '__main__':
    main()
