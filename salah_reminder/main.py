import argparse
import logging
import sys
from salah_reminder.core.app import SalahReminderApp

def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def main():
    setup_basic_logging()

    parser = argparse.ArgumentParser(description='Salah Reminder')
    parser.add_argument('--config',
                       help='Path to config file (default: ~/.salah_reminder/config.yaml)')
    parser.add_argument('--no-watch', action='store_true',
                       help='Do not reload the config file when it changes')

    args = parser.parse_args()

    app = SalahReminderApp(config_path=args.config, watch_config=not args.no_watch)
    app.run()


if __name__ == "__main__":
    main()
