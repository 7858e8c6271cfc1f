# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 basinstats contributors

"""
basinstats Command-Line Interface entry point.

Provides the main() function behind the ``basinstats`` console script:
parses arguments, dispatches to the command handler and turns interrupts
and unexpected errors into exit codes.
"""


def main(argv=None):
    """
    Main entry point for the basinstats CLI.
    """
    import sys

    from basinstats.cli.argument_parser import CLIParser
    from basinstats.cli.exit_codes import ExitCode
    from basinstats.core.exceptions import BasinStatsError

    try:
        parser = CLIParser()
        args = parser.parse_args(argv)

        if hasattr(args, 'func'):
            return int(args.func(args))
        else:
            parser.parser.print_help()
            return ExitCode.PIPELINE_ERROR

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return ExitCode.INTERRUPTED
    except (BasinStatsError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.PIPELINE_ERROR
    except Exception as e:  # noqa: BLE001
        print(f"Unexpected error: {e}", file=sys.stderr)
        return ExitCode.PIPELINE_ERROR


if __name__ == "__main__":
    import sys
    sys.exit(main())
