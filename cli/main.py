"""CLI entry point."""

import os
import sys
from pathlib import Path
from typing import List, Optional

from common.logging_config import setup_logging
from cli.commands import set_config_path
from cli.repl import repl_loop

USAGE = "usage: channelvault [--debug] [--config PATH]"


def parse_args(argv: List[str]) -> dict:
    """
    Read the few startup flags the REPL accepts.

    Returns:
        {'debug': bool, 'config': Optional[Path]}

    Raises:
        SystemExit: On an unknown flag or a missing --config value
    """
    options = {'debug': False, 'config': None}
    args = list(argv)
    while args:
        arg = args.pop(0)
        if arg == '--debug':
            options['debug'] = True
        elif arg == '--config':
            if not args:
                raise SystemExit(USAGE)
            options['config'] = Path(args.pop(0)).expanduser()
        else:
            raise SystemExit(USAGE)
    return options


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for CLI."""
    options = parse_args(sys.argv[1:] if argv is None else argv)
    log_level = 'DEBUG' if options['debug'] else os.getenv('LOG_LEVEL', 'WARNING')

    logger = setup_logging('cli', log_level=log_level)
    setup_logging('common', log_level=log_level)

    if options['config'] is not None:
        set_config_path(options['config'])
        logger.info(f"Using config file {options['config']}")

    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
