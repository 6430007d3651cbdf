#!/usr/bin/env python3
"""
Chair Bot Launcher - Entry point for the chair agent service

Loads configuration, initializes ChairAgent, and starts the service.
Designed to run as systemd service or standalone for testing.
"""

import os
import sys
import signal
import asyncio
from pathlib import Path
from typing import Dict, Optional

# Add project to path
sys.path.insert(0, str(Path(__file__).parent))

from agent_platform import AgentPlatform, configure_logging
from agents.chair_agent import ChairAgent
from chair_bot.exceptions import FontLoadError


REQUIRED_VARS = [
    "SLACK_BOT_TOKEN",
    "SLACK_APP_TOKEN",
]

OPTIONAL_VARS = {
    "CAPTION_FONT_PATH": "impact.ttf",
    "DETECTION_LABEL": "Chair",
    "CAPTION_TEXT": "CHAIR",
    "REPLY_FILENAME": "chairs.png",
    "MAX_CONCURRENT_HANDLERS": "4",
    "STATUS_TEXT": "\U0001FA91",
    "STATUS_INTERVAL_SECONDS": "20",
    "DOWNLOAD_TIMEOUT_SECONDS": "30",
}


def load_secrets(secrets_file: Path) -> None:
    """Load KEY=value pairs from a secrets.env file into the environment"""
    # If Slack tokens are already in environment (e.g., from sops wrapper), skip loading
    if all(os.getenv(var) for var in REQUIRED_VARS):
        print("📝 Using Slack tokens from environment (already decrypted)")
        return

    if not secrets_file.exists():
        print(f"⚠️  secrets.env not found at {secrets_file}")
        print("   Assuming environment variables are already set...")
        return

    print(f"📝 Loading secrets from {secrets_file}")

    with open(secrets_file) as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            # Skip SOPS encrypted lines
            if "ENC[" in line:
                continue

            # Parse: export KEY="value" or KEY=value
            if "=" not in line:
                continue

            if line.startswith("export "):
                line = line[7:]

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")

            # Only set if not already in environment (env vars take precedence)
            if key not in os.environ:
                os.environ[key] = value


def validate_environment() -> None:
    """Validate required environment variables and apply defaults"""
    missing = [var for var in REQUIRED_VARS if not os.getenv(var)]

    if missing:
        print(f"❌ Missing required environment variables: {', '.join(missing)}")
        print("\nRequired variables:")
        print("  SLACK_BOT_TOKEN   - Bot token from api.slack.com (xoxb-...)")
        print("  SLACK_APP_TOKEN   - App token for Socket Mode (xapp-...)")
        print("\nOptional variables (with defaults):")
        for var, default in OPTIONAL_VARS.items():
            print(f"  {var:26s} - {default}")
        sys.exit(1)

    for var, default in OPTIONAL_VARS.items():
        if not os.getenv(var):
            os.environ[var] = default


def build_config() -> Dict:
    """Create agent configuration from the environment"""
    return {
        "font_path": os.getenv("CAPTION_FONT_PATH", OPTIONAL_VARS["CAPTION_FONT_PATH"]),
        "label": os.getenv("DETECTION_LABEL", OPTIONAL_VARS["DETECTION_LABEL"]),
        "caption": os.getenv("CAPTION_TEXT", OPTIONAL_VARS["CAPTION_TEXT"]),
        "reply_filename": os.getenv("REPLY_FILENAME", OPTIONAL_VARS["REPLY_FILENAME"]),
        "max_concurrent_handlers": int(
            os.getenv("MAX_CONCURRENT_HANDLERS", OPTIONAL_VARS["MAX_CONCURRENT_HANDLERS"])
        ),
        "status_text": os.getenv("STATUS_TEXT", OPTIONAL_VARS["STATUS_TEXT"]),
        "status_interval": float(
            os.getenv("STATUS_INTERVAL_SECONDS", OPTIONAL_VARS["STATUS_INTERVAL_SECONDS"])
        ),
        "download_timeout": float(
            os.getenv("DOWNLOAD_TIMEOUT_SECONDS", OPTIONAL_VARS["DOWNLOAD_TIMEOUT_SECONDS"])
        ),
    }


class ChairBotService:
    """Service wrapper for the chair bot"""

    def __init__(self):
        self.platform = AgentPlatform()
        self.agent: Optional[ChairAgent] = None
        self.shutdown_event = asyncio.Event()

    def setup_signals(self):
        """Setup signal handlers for graceful shutdown"""

        def signal_handler(signum, frame):
            print(f"\n📡 Received signal {signum}, shutting down gracefully...")
            self.shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def run(self):
        """Main service loop"""
        load_secrets(Path(__file__).parent / "secrets.env")
        validate_environment()
        configure_logging()
        self.setup_signals()

        config = build_config()

        print("\n✅ Configuration:")
        print(f"   Font:     {config['font_path']}")
        print(f"   Label:    {config['label']}")
        print(f"   Handlers: {config['max_concurrent_handlers']}")
        print(f"   Bot:      {os.getenv('SLACK_BOT_TOKEN')[:20]}...")
        print()

        # Initialize agent (loads the caption font)
        print("🤖 Initializing chair agent...")
        self.agent = ChairAgent(config)

        print("🚀 Starting chair bot service...\n")

        try:
            # Run service (blocks indefinitely)
            service_task = asyncio.create_task(self.platform.start_service(self.agent))

            # Wait for shutdown signal
            shutdown_task = asyncio.create_task(self.shutdown_event.wait())

            # Wait for either service to fail or shutdown signal
            done, pending = await asyncio.wait(
                [service_task, shutdown_task], return_when=asyncio.FIRST_COMPLETED
            )

            # Cancel pending tasks
            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            # Check if service failed
            if service_task in done:
                service_task.result()

            print("\n👋 Chair bot service stopped gracefully")

        finally:
            print("🧹 Cleaning up...")
            await self.platform.close()


def main():
    """Entry point"""
    print("=" * 60)
    print("  Chair Bot Service")
    print("=" * 60)
    print()

    service = ChairBotService()

    try:
        asyncio.run(service.run())
    except FontLoadError as e:
        print(f"\n💥 Cannot load caption font: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n👋 Interrupted by user")
    except Exception as e:
        print(f"\n💥 Service crashed: {e}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
