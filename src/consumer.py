"""Mailroom event consumer.

Reads inbound events as JSON lines and routes each through the EventRouter.
Every line is an object with ``topic``, ``key`` and ``payload``; the transport
that produces the lines (a broker bridge, a replay of dead letters, a file
of fixtures) is outside this program.

Usage:
    python src/consumer.py events.jsonl
    some-bridge | python src/consumer.py -
"""

import argparse
import json
import sys

import structlog

logger = structlog.get_logger(__name__)


def read_events(stream):
    """Yield ``(topic, key, payload)`` triples, skipping blank and malformed lines."""
    for number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
            yield record["topic"], record.get("key"), record.get("payload")
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            logger.warning("Skipping malformed event line", line=number, error=str(exc))


def consume(stream, drain_timeout: float = 60.0):
    """Route every event in ``stream``. Returns the router's outcome counters."""
    from mailroom.config import get_settings
    from mailroom.delivery.dispatcher import build_dispatcher, reset_dispatcher, set_dispatcher
    from mailroom.domain import mailroom
    from mailroom.routing.router import EventRouter

    router = EventRouter()

    with mailroom.domain_context():
        dispatcher = build_dispatcher(get_settings())
        set_dispatcher(dispatcher)
        try:
            for topic, key, payload in read_events(stream):
                router.route(topic, key, payload)
        finally:
            if not dispatcher.drain(timeout=drain_timeout):
                logger.warning("Dispatch did not drain in time", in_flight=dispatcher.in_flight)
            reset_dispatcher()

    return dict(router.metrics)


def main():
    from mailroom.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="Route mailroom events from JSON lines")
    parser.add_argument("source", help="Path to a JSON-lines file, or '-' for stdin")
    parser.add_argument(
        "--drain-timeout",
        type=float,
        default=60.0,
        help="Seconds to wait for queued deliveries before exiting",
    )
    args = parser.parse_args()

    configure_logging(to_files=False)

    from mailroom.domain import mailroom

    mailroom.init()

    if args.source == "-":
        summary = consume(sys.stdin, drain_timeout=args.drain_timeout)
    else:
        with open(args.source, encoding="utf-8") as stream:
            summary = consume(stream, drain_timeout=args.drain_timeout)

    print(json.dumps(summary, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
