# hcb/__main__.py
"""
The main entry point for the Haptic Command Bridge. Connects a session to
the configured device server and keeps it alive until interrupted.
"""
import logging
import sys
import threading

from hcb.config.constants import CONFIG_FILE_PATH
from hcb.errors import ServiceConnectionError
from hcb.services.configuration_manager import ConfigurationManager
from hcb.services.lifecycle_logger import LifecycleLogger
from hcb.services.session_service import SessionService
from hcb.session_context import SessionSignals


def main():
    """Main function to set up logging, connect, and wait for shutdown."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(threadName)s] [%(levelname)s] - %(message)s',
        stream=sys.stdout
    )

    signals = SessionSignals()
    lifecycle_logger = LifecycleLogger(signals)

    config_path = sys.argv[1] if len(sys.argv) > 1 else CONFIG_FILE_PATH
    settings = ConfigurationManager(signals).load_config(config_path)

    service = SessionService(settings, signals)
    try:
        service.start()
    except ServiceConnectionError as e:
        logging.error("%s", e)
        sys.exit(1)

    logging.info("Session ready. Press Ctrl+C to exit.")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        service.stop()


if __name__ == '__main__':
    main()
