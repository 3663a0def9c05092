"""
Entry point for the hands-free command interpreter.
"""
import argparse
import logging
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv

from .config import configure_logging, load_config
from .controller import HandsFreeController
from .server import create_app
from .surface_mock import MockElement, MockSurface

logger = logging.getLogger(__name__)


def demo_surface() -> MockSurface:
    """A small clinic page for running without a browser."""
    return MockSurface([
        MockElement(text="Dashboard", region=".sidebar-content"),
        MockElement(text="Appointments", region=".sidebar-content"),
        MockElement(label="Notifications", class_name="notification-bell"),
        MockElement(text="Book appointment"),
        MockElement(text="Cancel"),
        MockElement(text="Help", tag="a"),
    ])


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gesture and voice control for the clinic web app")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--url", help="Clinic application URL to open")
    parser.add_argument("--host", help="Control server host")
    parser.add_argument("--port", type=int, help="Control server port")
    parser.add_argument("--headless", action="store_true", help="Run the browser headless")
    parser.add_argument("--mock", action="store_true", help="Use an in-memory page instead of a browser")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Run the control server."""
    args = parse_args(argv)
    load_dotenv()

    cfg = load_config(args.config)
    if args.url:
        cfg.server.app_url = args.url
    if args.host:
        cfg.server.host = args.host
    if args.port:
        cfg.server.port = args.port
    if args.headless:
        cfg.server.headless = True
    configure_logging(cfg)

    controller = None
    if args.mock:
        logger.info("🧪 Mock mode: using an in-memory page")
        controller = HandsFreeController(cfg, demo_surface())

    app = create_app(cfg, controller)
    logger.info(f"🚀 Starting control server on http://{cfg.server.host}:{cfg.server.port}")
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, log_level=cfg.logging.level.lower())


if __name__ == "__main__":
    main()
