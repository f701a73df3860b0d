#!/usr/bin/env python3
"""
Script Base - Common infrastructure for catalog maintenance scripts

Provides a base class that handles:
- Path setup for imports from the backend directory
- Logging to stdout and scripts/log/<name>.log
- --dry-run / --debug options
- Header/summary printing and exit codes

Usage:
    from script_base import ScriptBase, run_script

    def main():
        script = ScriptBase(name="reconcile_artists", description="...")
        script.add_dry_run_arg()
        script.add_debug_arg()
        args = script.parse_args()

        script.print_header({"DRY RUN": args.dry_run})
        report = ArtistDirectory(CatalogStore()).reconcile(dry_run=args.dry_run)
        script.print_summary(report.to_dict())
        return True

    if __name__ == "__main__":
        run_script(main)
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import Callable, Optional

# Add backend directory to path for imports (do this immediately)
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from errors import CatalogError


class ScriptBase:
    """Common CLI plumbing for scripts that run against the catalog database."""

    def __init__(
        self,
        name: str,
        description: str,
        epilog: str = "",
        log_dir: Optional[Path] = None
    ):
        """
        Args:
            name: Script name (used for log file naming)
            description: Script description for --help
            epilog: Additional help text (examples, etc.)
            log_dir: Directory for log files (default: scripts/log/)
        """
        load_dotenv()
        self.name = name
        self.log_dir = log_dir or Path(__file__).parent / 'log'
        self.logger = self._setup_logging()
        self.parser = argparse.ArgumentParser(
            description=description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=epilog
        )

    def _setup_logging(self) -> logging.Logger:
        self.log_dir.mkdir(exist_ok=True)

        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.StreamHandler(sys.stdout),
                logging.FileHandler(self.log_dir / f'{self.name}.log')
            ]
        )
        return logging.getLogger(self.name)

    # =========================================================================
    # Common Arguments
    # =========================================================================

    def add_dry_run_arg(self):
        self.parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Compute the plan and report without committing anything'
        )

    def add_debug_arg(self):
        self.parser.add_argument(
            '--debug',
            action='store_true',
            help='Enable debug logging'
        )

    def parse_args(self, args=None) -> argparse.Namespace:
        """Parse arguments; --debug lowers the root log level."""
        parsed = self.parser.parse_args(args)

        if getattr(parsed, 'debug', False):
            logging.getLogger().setLevel(logging.DEBUG)
            self.logger.debug("Debug logging enabled")

        return parsed

    # =========================================================================
    # Output Formatting
    # =========================================================================

    def print_header(self, modes: dict = None, title: str = None):
        title = title or self.name.replace('_', ' ').title()

        self.logger.info("=" * 80)
        self.logger.info(title)
        self.logger.info("=" * 80)

        for mode_name, is_active in (modes or {}).items():
            if is_active:
                self.logger.info(f"*** {mode_name} MODE ***")

        self.logger.info("")

    def print_summary(self, stats: dict, title: str = "SUMMARY"):
        """
        Print a formatted summary of report counters.

        Args:
            stats: Dict of stat_name -> value
            title: Summary section title
        """
        self.logger.info("")
        self.logger.info("=" * 80)
        self.logger.info(title)
        self.logger.info("=" * 80)

        if stats:
            max_key_len = max(len(str(k)) for k in stats.keys())
            for key, value in stats.items():
                display_key = key.replace('_', ' ').title()
                self.logger.info(f"{display_key:<{max_key_len + 5}} {value}")

        self.logger.info("=" * 80)


def run_script(main_func: Callable[[], bool]):
    """
    Run a script's main function with standard exception handling.

    Args:
        main_func: Function that returns True on success, False on failure
    """
    try:
        success = main_func()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\nCancelled by user")
        sys.exit(1)
    except CatalogError as e:
        logging.error(f"{e.message} {e.detail}")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)
