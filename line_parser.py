#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Log Line Parser Module

Applies a CompiledFormat to access log lines. parse_line handles exactly one
line; the file helpers below feed lines from plain or gzip files to it and
collect the results into a pandas DataFrame.
"""
import gzip
import os
import zlib
from multiprocessing import Pool
from functools import partial
from typing import Dict, Iterable, List, Tuple, Union

import pandas as pd

from core.exceptions import (
    CorruptLogFileError,
    FileNotFoundError as CustomFileNotFoundError,
    UnparsableLineError
)
from core.logging_config import get_logger
from core.utils import MultiprocessingConfig
from logformat_compiler import CompiledFormat, get_compiled_format

logger = get_logger(__name__)

# Layout of the bracketed %t time, e.g. 30/May/2018:15:00:23 +0200
APACHE_TIME_FORMAT = '%d/%b/%Y:%H:%M:%S %z'

GZIP_MAGIC = b'\x1f\x8b'

ParsedLine = Union[List[str], Dict[str, str]]


# ============================================================================
# Single line parsing
# ============================================================================

def parse_line(compiled: CompiledFormat, line: str, named: bool = False) -> ParsedLine:
    """
    Parse one log line.

    Args:
        compiled: Compiled LogFormat
        line: Log line, optionally ending with \\r and/or \\n
        named: Return a dict keyed by field name instead of a list

    Returns:
        list of captured values in field order, or dict field name -> value

    Raises:
        UnparsableLineError: If the line does not match the format
    """
    match = compiled.pattern.match(line)
    if match is None:
        raise UnparsableLineError(line)

    values = list(match.groups())

    if named:
        return dict(zip(compiled.field_names, values))

    return values


def parse_lines(
    compiled: CompiledFormat,
    lines: Iterable[Tuple[int, str]],
    named: bool = True
) -> Tuple[List[ParsedLine], List[Tuple[int, str]]]:
    """
    Parse numbered lines, collecting failures instead of stopping at them.

    Args:
        compiled: Compiled LogFormat
        lines: Iterable of (line_num, line) tuples
        named: Passed through to parse_line

    Returns:
        Tuple of (parsed_data, failed_lines); unparsable blank lines are skipped
    """
    parsed_data = []
    failed_lines = []

    for line_num, line in lines:
        try:
            parsed_data.append(parse_line(compiled, line, named))
        except UnparsableLineError:
            # Blank lines only count as failures when the format cannot match them
            if line.strip():
                failed_lines.append((line_num, line.rstrip('\r\n')))

    return parsed_data, failed_lines


def _parse_lines_chunk(lines_chunk, format_string, named=True):
    """Worker entry point; compiles once per process through the format cache."""
    return parse_lines(get_compiled_format(format_string), lines_chunk, named)


# ============================================================================
# File helpers
# ============================================================================

def read_lines(input_file, max_lines=None) -> List[Tuple[int, str]]:
    """
    Read lines from file (gzip or plain text) with line numbers.

    Args:
        input_file: Path to input file
        max_lines: Maximum number of lines to read (None for all)

    Returns:
        List of (line_num, line) tuples

    Raises:
        FileNotFoundError: If the input file does not exist
        CorruptLogFileError: If a gzip file is truncated or damaged
    """
    if not input_file or not os.path.exists(input_file):
        raise CustomFileNotFoundError(str(input_file))

    def _collect(f):
        collected = []
        for line_num, line in enumerate(f, 1):
            collected.append((line_num, line))
            if max_lines and line_num >= max_lines:
                break
        return collected

    with open(input_file, 'rb') as f:
        is_gzip = f.read(2) == GZIP_MAGIC

    if not is_gzip:
        with open(input_file, 'r', encoding='utf-8', errors='replace', newline='') as f:
            return _collect(f)

    try:
        with gzip.open(input_file, 'rt', encoding='utf-8', errors='replace') as f:
            return _collect(f)
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise CorruptLogFileError(str(input_file), f"Corrupt gzip file {input_file}: {e}") from e


def apply_column_types(log_df, column_types):
    """
    Apply data types to DataFrame columns.

    Args:
        log_df (pandas.DataFrame): Input DataFrame
        column_types (dict): Mapping of column names to 'int', 'datetime' or 'str'

    Returns:
        pandas.DataFrame: DataFrame with applied types
    """
    for col, dtype in column_types.items():
        if col not in log_df.columns:
            continue
        if dtype == 'datetime':
            log_df[col] = pd.to_datetime(
                log_df[col], format=APACHE_TIME_FORMAT, errors='coerce', utc=True
            )
        elif dtype == 'int':
            log_df[col] = pd.to_numeric(log_df[col], errors='coerce').astype('Int64')

    return log_df


def parse_log_file(
    input_file,
    format_string,
    use_multiprocessing=None,
    num_workers=None,
    chunk_size=None,
    apply_types=False
):
    """
    Parse a whole log file into a DataFrame.

    Args:
        input_file (str): Input log file path (plain or gzip)
        format_string (str): Apache LogFormat string
        use_multiprocessing (bool, optional): Override the config.yaml setting
        num_workers (int, optional): Number of worker processes
        chunk_size (int, optional): Number of lines per chunk
        apply_types (bool): Convert numeric and %t columns with apply_column_types

    Returns:
        pandas.DataFrame: one column per field, one row per parsed line.
            df.attrs['failed_lines'] holds the number of unparsable lines.

    Raises:
        InvalidFormatError: If format_string cannot be compiled
        FileNotFoundError: If input_file does not exist
        CorruptLogFileError: If a gzip input_file is truncated or damaged
    """
    compiled = get_compiled_format(format_string)
    lines = read_lines(input_file)

    use_mp, num_workers, chunk_size = MultiprocessingConfig.get_processing_params(
        len(lines),
        override_enabled=use_multiprocessing,
        override_num_workers=num_workers,
        override_chunk_size=chunk_size
    )

    if use_mp:
        chunks = [lines[i:i + chunk_size] for i in range(0, len(lines), chunk_size)]
        logger.info(f"Parsing {len(lines)} lines in {len(chunks)} chunks with {num_workers} workers")

        worker = partial(_parse_lines_chunk, format_string=compiled.format_string)
        with Pool(processes=num_workers) as pool:
            results = pool.map(worker, chunks)

        parsed_data = []
        failed_lines = []
        for chunk_parsed, chunk_failed in results:
            parsed_data.extend(chunk_parsed)
            failed_lines.extend(chunk_failed)
    else:
        parsed_data, failed_lines = parse_lines(compiled, lines)

    if failed_lines:
        logger.warning(f"Failed to parse {len(failed_lines)} lines in {input_file}:")
        for line_num, failed_line in failed_lines[:10]:
            logger.warning(f"Line {line_num}: {failed_line[:200]}")
        if len(failed_lines) > 10:
            logger.warning(f"... and {len(failed_lines) - 10} more failed lines")

    log_df = pd.DataFrame(parsed_data, columns=list(compiled.field_names))
    log_df.attrs['failed_lines'] = len(failed_lines)

    if apply_types:
        log_df = apply_column_types(log_df, compiled.column_types)

    logger.info(f"Total parsed entries: {len(log_df)}")
    return log_df
