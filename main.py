#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command line interface for the access log format parser

Usage:
    python main.py compile '%h %l %u %t "%r" %>s %b'
    python main.py compile --preset combined --json
    python main.py parse access.log --preset combined --output parsed.csv
    python main.py parse access.log                # format from config.yaml / $ACCESS_LOG_FORMAT
    python main.py presets
"""

import argparse
import json
import sys
from pathlib import Path

from core.config import ConfigManager
from core.exceptions import (
    ConfigurationError,
    CorruptLogFileError,
    FileNotFoundError,
    InvalidFormatError
)
from core.logging_config import enable_file_logging, get_logger, set_log_level
from line_parser import parse_log_file
from logformat_compiler import FORMAT_PRESETS, get_compiled_format, resolve_format

logger = get_logger(__name__)

EXIT_USAGE_ERROR = 2


def print_banner(title):
    """Print a section banner"""
    print("=" * 70)
    print(f" {title}")
    print("=" * 70)


def _format_from_args(args, input_file=None):
    """Format string from --preset, the positional argument, or configuration."""
    if args.preset:
        return FORMAT_PRESETS[args.preset]
    if args.format_string:
        return resolve_format(args.format_string)

    config_mgr = ConfigManager()
    config_path = config_mgr.find_config(input_file)
    if config_path:
        config_mgr.load_config(config_path)
    configured = resolve_format(config_mgr.get_log_format())
    if not configured:
        raise ConfigurationError(
            "No LogFormat given; pass FORMAT, --preset, set $ACCESS_LOG_FORMAT "
            "or logformat.format in config.yaml"
        )
    return configured


def cmd_compile(args):
    compiled = get_compiled_format(_format_from_args(args))

    if args.json:
        print(json.dumps({
            'format': compiled.format_string,
            'pattern': compiled.pattern.pattern,
            'fields': list(compiled.field_names),
            'columnTypes': dict(compiled.column_types),
        }, indent=2, ensure_ascii=False))
        return

    print_banner("Apache LogFormat Compilation Result")
    print(f"\nFormat:\n  {compiled.format_string}\n")
    print(f"Regex Pattern:\n  {compiled.pattern.pattern}\n")
    print(f"Fields ({len(compiled)}):")
    for index, name in enumerate(compiled.field_names, 1):
        print(f"  {index:>2}. {name} ({compiled.column_types[name]})")


def cmd_parse(args):
    format_string = _format_from_args(args, args.input)

    log_df = parse_log_file(
        args.input,
        format_string,
        use_multiprocessing=False if args.no_multiprocessing else None,
        apply_types=args.types
    )

    if args.output:
        output_path = Path(args.output)
        if output_path.suffix.lower() == '.csv':
            # positional rows carry no field names, so no header row
            log_df.to_csv(output_path, index=False, header=not args.positional)
        elif args.positional:
            output_path.write_text(
                ''.join(json.dumps(row, ensure_ascii=False, default=str) + '\n'
                        for row in log_df.values.tolist()),
                encoding='utf-8'
            )
        else:
            log_df.to_json(output_path, orient='records', lines=True, date_format='iso', force_ascii=False)
        logger.info(f"Wrote {len(log_df)} records to {output_path}")
    else:
        for record in log_df.to_dict(orient='records'):
            row = list(record.values()) if args.positional else record
            print(json.dumps(row, ensure_ascii=False, default=str))

    failed = log_df.attrs.get('failed_lines', 0)
    if failed:
        logger.warning(f"{failed} lines could not be parsed")


def cmd_presets(args):
    print_banner("Available presets")
    for name, format_string in FORMAT_PRESETS.items():
        print(f"  {name:<20} {format_string}")


def build_parser():
    parser = argparse.ArgumentParser(
        prog='logformat-parser',
        description='Compile Apache LogFormat strings and parse access log lines',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Show the regex and field names for a format
  python main.py compile '%h %l %u %t "%r" %>s %b'

  # Parse a log file with a preset and write CSV
  python main.py parse access.log --preset combined --output parsed.csv
        '''
    )
    parser.add_argument('--log-level', default=None,
                        help='DEBUG, INFO, WARNING, ERROR or CRITICAL')
    parser.add_argument('--log-file', default=None,
                        help='Also write log messages to this file')

    sub = parser.add_subparsers(dest='cmd')

    def add_format_arguments(p):
        p.add_argument('--preset', choices=list(FORMAT_PRESETS.keys()),
                       help='Use a preset format')

    p_compile = sub.add_parser('compile', help='Show the pattern and fields of a LogFormat')
    p_compile.add_argument('format_string', nargs='?',
                           help='Apache LogFormat string or preset name')
    add_format_arguments(p_compile)
    p_compile.add_argument('--json', action='store_true', help='Print the result as JSON')
    p_compile.set_defaults(func=cmd_compile)

    p_parse = sub.add_parser('parse', help='Parse a log file (plain or gzip)')
    p_parse.add_argument('input', help='Access log file')
    p_parse.add_argument('format_string', nargs='?',
                         help='Apache LogFormat string or preset name (default: from config)')
    add_format_arguments(p_parse)
    p_parse.add_argument('--positional', action='store_true',
                         help='Emit value lists instead of field name mappings '
                              '(with a .csv output: omit the header row)')
    p_parse.add_argument('--output', '-o',
                         help='Output file (.csv for CSV, anything else for JSON Lines)')
    p_parse.add_argument('--types', action='store_true',
                         help='Convert numeric and time fields')
    p_parse.add_argument('--no-multiprocessing', action='store_true',
                         help='Parse in a single process')
    p_parse.set_defaults(func=cmd_parse)

    p_presets = sub.add_parser('presets', help='List preset formats')
    p_presets.set_defaults(func=cmd_presets)

    return parser


def main(argv=None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        set_log_level(args.log_level)
    if args.log_file:
        enable_file_logging(args.log_file)

    if not getattr(args, 'cmd', None):
        parser.print_help()
        return 0

    try:
        args.func(args)
    except (InvalidFormatError, ConfigurationError, FileNotFoundError, CorruptLogFileError) as e:
        logger.error(str(e))
        return EXIT_USAGE_ERROR

    return 0


if __name__ == "__main__":
    sys.exit(main())
