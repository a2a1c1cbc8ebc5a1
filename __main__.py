#!/usr/bin/env python3
"""
PanelKit - Touch Control Panel
Entry Point Module

Handles dependency checking, argument parsing, the storage utility
commands and application startup.
"""

import argparse
import os
import sys
import time
import traceback
from pathlib import Path
from typing import Optional, List


VERSION_TEXT = "PanelKit 1.0.0"


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="PanelKit - Touch Control Panel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m panelkit                                  # Start with GUI
  python -m panelkit --check-deps                     # Check dependencies only
  python -m panelkit --estimate-space logger.json     # Data logger storage estimate
  python -m panelkit --database-info logger.json --app-dir ./data
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=VERSION_TEXT
    )
    parser.add_argument(
        "--check-deps", "-c",
        action="store_true",
        help="Check dependencies and exit"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force start application even if dependencies are missing"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        help="Custom directory for log files"
    )
    parser.add_argument(
        "--estimate-space",
        metavar="FILE",
        type=str,
        help="Print the storage estimate for a JSON data logger document and exit"
    )
    parser.add_argument(
        "--database-info",
        metavar="FILE",
        type=str,
        help="Print path, size and usage of the document's embedded database and exit"
    )
    parser.add_argument(
        "--app-dir",
        type=str,
        default=".",
        help="Application directory holding embedded databases (default: current directory)"
    )

    return parser.parse_args(argv)


def check_dependencies() -> bool:
    """Check if required dependencies are available."""
    required_packages = {
        'PySide6': ('PySide6', 'GUI framework'),
    }

    missing_required = []

    print(f"Python version: {sys.version}")
    print(f"Python executable: {sys.executable}\n")

    for display_name, (import_name, description) in required_packages.items():
        try:
            module = __import__(import_name)
            if import_name == 'PySide6':
                from PySide6 import QtCore, QtWidgets, QtGui  # noqa: F401
            print(f"OK {display_name}: {description} (version: {getattr(module, '__version__', 'unknown')})")
        except ImportError as e:
            missing_required.append(f"{display_name} ({description})")
            print(f"ERROR {display_name}: {description} - MISSING")
            print(f"   Import error: {e}")

    if missing_required:
        print("\nMissing required dependencies:")
        for package in missing_required:
            print(f"   - {package}")
        print("\nTry installing with:")
        print(f"   {sys.executable} -m pip install PySide6")
        return False

    return True


def setup_environment(log_dir: Optional[str] = None):
    """Setup the application environment."""
    current_dir = Path(__file__).parent
    if str(current_dir) not in sys.path:
        sys.path.insert(0, str(current_dir))

    os.environ.setdefault('QT_ENABLE_HIGHDPI_SCALING', '1')

    if log_dir:
        os.environ['PANELKIT_LOG_DIR'] = str(Path(log_dir).resolve())


def run_space_estimate(document: str) -> int:
    """Print the storage estimate of a logger document."""
    from datalogger_space import DataLoggerConfigError, estimate_logger_space, load_logger_document

    try:
        model, logger_id = load_logger_document(Path(document))
    except DataLoggerConfigError as e:
        print(f"ERROR {e}")
        return 1

    outcome = estimate_logger_space(model, logger_id)
    if not outcome.ok:
        print(f"ERROR {outcome.error}")
        return 1

    estimate = outcome.value
    print(f"Logger: {estimate.logger_name}")
    print(f"   Bytes per record: {estimate.bytes_per_record} (every {estimate.sampling_period_ms} ms)")
    print(f"   Per minute: {estimate.bytes_per_minute} bytes ({estimate.bytes_per_minute // 1024} KB)")
    print(f"   Per hour: {estimate.bytes_per_hour} bytes ({estimate.kilobytes_per_hour} KB)")
    for name in estimate.skipped_variables:
        print(f"   WARNING '{name}' skipped, unsupported data type")
    return 0


def run_database_info(document: str, app_dir: str) -> int:
    """Print the location, size and usage of a document's embedded database."""
    from datalogger_space import DataLoggerConfigError, load_logger_document
    from embedded_db import (
        absolute_database_path, database_size, is_database_in_use, relative_database_path,
    )
    from information_model import DataLogger

    try:
        model, logger_id = load_logger_document(Path(document))
    except DataLoggerConfigError as e:
        print(f"ERROR {e}")
        return 1

    store_id = model.get(logger_id, DataLogger).store
    application_dir = Path(app_dir)

    relative = relative_database_path(model, store_id)
    if not relative.ok:
        print(f"ERROR {relative.error}")
        return 1

    print(f"Relative path: {relative.value}")
    print(f"Absolute path: {absolute_database_path(model, store_id, application_dir).value}")

    size = database_size(model, store_id, application_dir)
    if size.ok:
        print(f"Size: {size.value.bytes} bytes ({size.value.kilobytes} KB, {size.value.megabytes} MB)")
    else:
        print(f"Size: unavailable ({size.error})")

    in_use = is_database_in_use(model, store_id, application_dir)
    print(f"In use: {'yes' if in_use.value_or(False) else 'no'}")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point for PanelKit."""
    args = None
    try:
        args = parse_arguments(argv)

        setup_environment(args.log_dir)

        from logger import setup_logger
        logger = setup_logger("panelkit")
        if args.debug:
            logger.set_log_level("DEBUG")
            print("Debug logging enabled\n")

        if args.estimate_space:
            return run_space_estimate(args.estimate_space)
        if args.database_info:
            return run_database_info(args.database_info, args.app_dir)

        print("\n" + "=" * 60)
        print("PanelKit - Touch Control Panel")
        print("=" * 60 + "\n")

        print("Checking dependencies...")
        deps_ok = check_dependencies()

        if args.check_deps:
            if deps_ok:
                print("\nAll dependencies are satisfied!")
                return 0
            print("\nSome dependencies are missing!")
            return 1

        if not args.force and not deps_ok:
            print("\nCannot start application due to missing dependencies.")
            print("Use --force to attempt startup anyway, or install missing packages.")
            return 1

        from main import main as run_main
        return run_main()

    except KeyboardInterrupt:
        print("\n\nApplication interrupted by user")
        return 130
    except Exception as e:
        print("\nCritical error starting PanelKit:")
        print(f"   {type(e).__name__}: {e}")
        if args is not None and args.debug:
            print("\nDebug traceback:")
            traceback.print_exc()
        else:
            print("\nRun with --debug for detailed error information")
        return 1


if __name__ == "__main__":
    start_time = time.time()
    exit_code = main()
    print(f"\nPanelKit ran for {time.time() - start_time:.2f} seconds")
    sys.exit(exit_code)
