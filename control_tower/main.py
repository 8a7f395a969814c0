"""Main entry point for the Control Tower notifier service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from control_tower.config.environment import EnvironmentConfig
from control_tower.config.exceptions import ConfigurationError
from control_tower.config.loader import load_config
from control_tower.config.models import AppConfig
from control_tower.domain.models import AlertEventType
from control_tower.logging import get_logger
from control_tower.logging.config import configure_logging
from control_tower.notifications.service import NotificationService
from control_tower.persistence.database import close_database, init_database
from control_tower.persistence.exceptions import RecordNotFoundError
from control_tower.scheduler import SchedulerService
from control_tower.utils.timestamps import format_timestamp_for_log

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="control-tower-notifier",
        description="Control Tower notifier - deployment reminders and alerts",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--run-now",
        action="store_true",
        help="Run the daily reminder check once and exit",
    )
    mode.add_argument(
        "--send-alert",
        nargs=2,
        metavar=("DEPLOYMENT_ID", "EVENT_TYPE"),
        help=f"Send one event alert ({', '.join(e.value for e in AlertEventType)})",
    )
    mode.add_argument(
        "--recipients",
        metavar="DEPLOYMENT_ID",
        help="Print alert and reminder recipients for a deployment",
    )
    mode.add_argument(
        "--test-email",
        metavar="ADDRESS",
        help="Send a test email to ADDRESS",
    )
    mode.add_argument(
        "--test-chat",
        metavar="WEBHOOK_URL",
        help="Post a test card to a Google Chat webhook",
    )
    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def run_one_shot(args: argparse.Namespace, service: NotificationService) -> int:
    """Execute a non-daemon mode. Returns the process exit code."""
    if args.run_now:
        logger.info("Executing manual reminder run", extra={"event": "service.manual_run.starting"})
        result = service.check_deployment_notifications()
        logger.info(
            f"Manual run completed: {result.processed} processed, "
            f"{result.sent} sent, {result.failed} failed",
            extra={"event": "service.manual_run.completed", **result.to_dict()},
        )
        _print_json(result.to_dict())
        return 1 if result.had_errors else 0

    if args.send_alert:
        deployment_id, event_type = args.send_alert
        try:
            event = AlertEventType(event_type)
        except ValueError:
            print(f"Unknown event type: {event_type}", file=sys.stderr)
            return 2
        result = service.send_alert(deployment_id, event)
        _print_json(result.to_dict())
        return 0

    if args.recipients:
        _print_json(
            {
                "alert": service.get_recipients(args.recipients),
                "reminder": service.get_reminder_recipients(args.recipients),
            }
        )
        return 0

    if args.test_email:
        result = service.test_email(args.test_email)
        _print_json(result.to_dict())
        return 0 if result.sent else 1

    if args.test_chat:
        result = service.test_google_chat(args.test_chat)
        _print_json(result.to_dict())
        return 0 if result.sent else 1

    raise ValueError("No one-shot mode selected")


def run_daemon(app_config: AppConfig, service: NotificationService, start_time: float) -> int:
    shutdown_event = threading.Event()

    scheduler_service = SchedulerService(
        job_callable=service.check_deployment_notifications,
        schedule=app_config.schedule,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()

    logger.info(
        f"Scheduler started, next run at "
        f"{format_timestamp_for_log(scheduler_service.get_next_run_time())}. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler_service.shutdown(wait=False)

    logger.info(
        "Control Tower notifier stopped",
        extra={
            "event": "service.stopping",
            "uptime_seconds": round(time.time() - start_time, 2),
        },
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Control Tower notifier.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )

        logger.info(
            "Control Tower notifier starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "smtp_configured": env_config.smtp_configured,
                "default_webhook_configured": bool(env_config.google_chat_webhook_url),
            },
        )

        init_database(env_config.database_url)
        service = NotificationService.from_config(app_config, env_config)

        try:
            if args.run_now or args.send_alert or args.recipients or args.test_email or args.test_chat:
                return run_one_shot(args, service)
            return run_daemon(app_config, service, start_time)
        finally:
            close_database()

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except RecordNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
