import argparse
import logging
import sys
import textwrap
from typing import Optional

import importlib_resources

import envput
import envput.commands
from envput import prepare_error
from envput._output import TerminalBackend, output
from envput.config import CONFIG_FILE
from envput.log import setup_logging


def add_environment_arguments(p, action):
    p.add_argument(
        "environment",
        nargs="?",
        default=None,
        help=f"Environment to {action}. Takes precedence over --environment.",
    )
    p.add_argument(
        "-e",
        "--environment",
        dest="environment_option",
        metavar="NAME",
        default=None,
        help=f"Environment name to {action}.",
    )
    p.add_argument(
        "--all",
        dest="all_environments",
        action="store_true",
        help=f"{action.capitalize()} all configured environments. Existing "
        "targets are skipped instead of overwritten.",
    )


def main(args: Optional[list] = None) -> None:
    version = (
        importlib_resources.files("envput")
        .joinpath("version.txt")
        .read_text()
        .strip()
    )
    parser = argparse.ArgumentParser(
        prog="envput",
        description=(
            "envput v{}: securely upload and download encrypted environment"
            " files to/from S3"
        ).format(version),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.set_defaults(func=parser.print_usage)

    parser.add_argument(
        "-d", "--debug", action="store_true", help="Enable debug mode."
    )
    parser.add_argument(
        "-c",
        "--config",
        default=CONFIG_FILE,
        help="Configuration file to use.",
    )

    subparsers = parser.add_subparsers()

    p = subparsers.add_parser(
        "init",
        help=textwrap.dedent(
            f"""
            Create a new {CONFIG_FILE} configuration file. Generates the
            encryption key and asks for the S3 location and environments.
            """
        ),
    )
    p.set_defaults(func=envput.commands.init)

    p = subparsers.add_parser(
        "list", aliases=["ls"], help="List all configured environments."
    )
    p.set_defaults(func=envput.commands.list_environments)

    p = subparsers.add_parser(
        "upload", help="Encrypt an environment file and upload it to S3."
    )
    add_environment_arguments(p, "upload")
    p.set_defaults(func=envput.commands.upload)

    p = subparsers.add_parser(
        "download", help="Download an environment file from S3 and decrypt it."
    )
    add_environment_arguments(p, "download")
    p.set_defaults(func=envput.commands.download)

    args = parser.parse_args(args)

    # Consume global arguments
    output.enable_debug = args.debug
    if args.debug:
        setup_logging(["envput", "botocore"], logging.DEBUG)

    # Pass over to function
    if args.func.__name__ == "print_usage":
        args.func()
        sys.exit(1)

    output.backend = TerminalBackend()

    func_args = dict(args._get_kwargs())
    del func_args["func"]
    del func_args["debug"]
    try:
        exitcode = args.func(**func_args)
    except envput.ReportingException as e:
        e.report()
        sys.exit(1)
    except KeyboardInterrupt:
        output.error("Interrupted")
        sys.exit(1)
    except Exception as e:
        output.error(prepare_error(e), exc_info=sys.exc_info())
        sys.exit(1)
    sys.exit(exitcode)
