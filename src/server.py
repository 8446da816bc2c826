"""Protean Engine runner for the requisitions domain.

Starts the Engine that processes events asynchronously in production:
- OutboxProcessor: polls the outbox table and publishes events
- StreamSubscriptions: invokes event handlers, including the notification fan-out

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import argparse

from protean.server.engine import Engine


def run(test_mode: bool = False):
    from requisitions.domain import requisitions
    from requisitions.utils.logging import configure_logging

    configure_logging(log_file_prefix="stockflow")
    requisitions.init()

    engine = Engine(requisitions, test_mode=test_mode)
    engine.run()


def main():
    parser = argparse.ArgumentParser(description="Stockflow Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    run(args.test_mode)


if __name__ == "__main__":
    main()
