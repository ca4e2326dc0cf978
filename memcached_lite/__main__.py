#!/usr/bin/env python3
"""
memcached-lite CLI - main entry point

Prints memcached metrics for mackerel-agent, or the graph definitions when
the agent sets MACKEREL_AGENT_PLUGIN_META.

Exit codes:
  0  success (including the first run, which only saves a snapshot)
  1  invalid arguments or configuration file
  2  could not talk to memcached
  3  malformed stats value or snapshot record
  4  snapshot file could not be read or written
  5  metrics could not be written to stdout
"""

import argparse
import logging
import os
import sys

from .config import DEFAULT_LOG_LEVEL, LOG_LEVELS, build_config, load_config_file
from .definitions import is_meta_mode, render_definitions
from .errors import EXIT_OK, EXIT_USAGE, ConfigError
from .exposition import FORMATS
from .plugin import run_plugin


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that exits with status 1 on bad arguments"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog='mackerel-plugin-memcached-lite',
        description='memcached metrics plugin for mackerel-agent',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Poll the local memcached
  %(prog)s

  # Poll a remote server with a 3 second timeout
  %(prog)s -H cache01 -p 11211 -t 3

  # Read settings from a YAML file
  %(prog)s -c memcached-lite.yaml
        """
    )
    parser.add_argument('-H', '--host',
                        help='Hostname (default: localhost)')
    parser.add_argument('-p', '--port', type=int,
                        help='Port (default: 11211)')
    parser.add_argument('-t', '--timeout', type=float,
                        help='Seconds before connection times out (default: 10)')
    parser.add_argument('-c', '--config',
                        help='Path to YAML configuration file')
    parser.add_argument('--tempfile',
                        help='Snapshot file path (default: derived from user, host and port)')
    parser.add_argument('--format', choices=FORMATS,
                        help='Output format (default: mackerel)')
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS,
                        help='Log level (default: WARNING)')
    return parser


def main(argv=None, environ=None, out=None) -> int:
    environ = os.environ if environ is None else environ
    out = sys.stdout if out is None else out

    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level or DEFAULT_LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    try:
        file_settings = load_config_file(args.config) if args.config else None
        config = build_config({
            'host': args.host,
            'port': args.port,
            'timeout': args.timeout,
            'tempfile': args.tempfile,
            'format': args.format,
            'log_level': args.log_level,
        }, file_settings)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    # the config file may set a different level than the command line default
    logging.getLogger().setLevel(getattr(logging, config.log_level))

    if is_meta_mode(environ):
        out.write(render_definitions())
        return EXIT_OK

    result = run_plugin(config, out=out)
    return result.exit_code


if __name__ == '__main__':
    sys.exit(main())
