#!/usr/bin/env python3
"""
Broker Relay - Command Line Entry Point
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from config.settings import create_config, validate_config
from broker_relay.core.enums import Operation
from broker_relay.core.exceptions import ConfigurationError
from broker_relay.core.models import CallerIdentity
from broker_relay.handlers import invoke
from broker_relay.utils.logger import setup_logging, log_startup_info
from broker_relay.workflow.context import RelayRuntime

CLI_OPERATIONS = {
    'connect': Operation.CONNECT,
    'status': Operation.STATUS,
    'account-info': Operation.ACCOUNT_INFO,
    'metrics': Operation.METRICS,
    'trades': Operation.TRADES,
    'daily-growth': Operation.DAILY_GROWTH,
    'disconnect': Operation.DISCONNECT,
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Broker Relay')

    parser.add_argument(
        '--op',
        choices=sorted(CLI_OPERATIONS),
        required=True,
        help='Operation to run'
    )

    parser.add_argument('--uid', required=True, help='Verified user id')
    parser.add_argument('--email', default='', help='Verified user email')

    parser.add_argument('--server', help='Broker server name (connect)')
    parser.add_argument('--login', help='MetaTrader login (connect)')
    parser.add_argument('--password', help='MetaTrader password (connect)')
    parser.add_argument('--platform', help='mt4 or mt5 (connect, default: mt5)')

    parser.add_argument('--start', help='History start, ISO-8601 (trades)')
    parser.add_argument('--end', help='History end, ISO-8601 (trades)')

    parser.add_argument(
        '--config',
        type=str,
        help='Path to custom config file'
    )

    parser.add_argument(
        '--store',
        type=str,
        help='Path to the JSON link store'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Logging level (default: INFO)'
    )

    return parser.parse_args(argv)


def build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    """Map CLI flags to the wire payload of the chosen operation"""
    fields = {
        'brokerServer': args.server,
        'mtLogin': args.login,
        'mtPassword': args.password,
        'platform': args.platform,
        'startDate': args.start,
        'endDate': args.end,
    }
    return {k: v for k, v in fields.items() if v is not None}


async def run(args: argparse.Namespace) -> int:
    """Run one operation and print its JSON outcome"""

    config = create_config(
        config_path=args.config,
        store_path=args.store,
        log_level=args.log_level
    )
    setup_logging(level=config.log_level, log_to_file=config.log_to_file)
    logger = logging.getLogger(__name__)

    if not validate_config(config):
        logger.error("❌ Configuration validation failed")
        return 2

    log_startup_info(config)

    identity = CallerIdentity(uid=args.uid, email=args.email)
    operation = CLI_OPERATIONS[args.op]

    async with RelayRuntime(config) as context:
        outcome = await invoke(operation.value, build_payload(args), identity, context)

    print(json.dumps(outcome, indent=2, default=str))
    return 1 if "error" in outcome else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_arguments(argv)
    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\n👋 Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
