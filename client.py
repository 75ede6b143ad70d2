"""Client entry point: emits sample user actions through the event queue."""

import logging
import random
import signal
import threading

from action_log.client_config import load_client_config
from action_log.errors import TransportError
from action_log.event_queue import EventQueue
from action_log.models import Level, create_log_entry
from action_log.transport import LogTransport

SAMPLE_USERS = ["alice", "bob", "carol", "dave"]
SAMPLE_COMPANIES = ["acme", "globex", "initech"]
SAMPLE_ACTIONS = [
    (Level.INFO, "login", "User signed in"),
    (Level.INFO, "page_view", "Opened the reports page"),
    (Level.INFO, "export", "Exported a CSV report"),
    (Level.WARNING, "slow_request", "Report took longer than 5s to render"),
    (Level.ERROR, "payment_failed", "Card was declined"),
]


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_client_config()
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    transport = LogTransport(config.base_url, timeout=config.request_timeout)
    queue = EventQueue(
        transport,
        default_stream=config.default_stream,
        batch_size=config.batch_size,
        batch_timeout_ms=config.batch_timeout_ms,
        merge_mode=config.merge_mode,
    )
    logger.info(
        "Sending actions to %s (stream=%s, batch_size=%d, batch_timeout=%dms)",
        config.base_url,
        config.default_stream,
        config.batch_size,
        config.batch_timeout_ms,
    )

    try:
        for _ in range(config.run_time):
            if shutdown_event.is_set():
                break
            for _ in range(config.actions_per_second):
                level, event, details = random.choice(SAMPLE_ACTIONS)
                entry = create_log_entry(
                    random.choice(SAMPLE_USERS),
                    random.choice(SAMPLE_COMPANIES),
                    event,
                    details,
                    level,
                )
                try:
                    if level is Level.ERROR:
                        queue.send_immediate(entry)
                    else:
                        queue.enqueue(entry)
                except TransportError as exc:
                    logger.warning("Delivery failed: %s", exc)
            shutdown_event.wait(timeout=1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        queue.close()
        transport.close()


if __name__ == "__main__":
    main()
