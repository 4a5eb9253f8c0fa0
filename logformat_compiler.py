#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Apache LogFormat Compiler

Compiles an Apache/Nginx LogFormat directive string into a single anchored
regular expression with one capturing group per directive, and derives a
unique, human readable field name for every group.

Reference: https://httpd.apache.org/docs/2.4/en/mod/mod_log_config.html

Usage:
    compiled = compile_format('%h %l %u %t "%r" %>s %b')
    compiled.field_names
    # ('remoteHostname', 'remoteLogname', 'remoteUser', 'time',
    #  'firstRequestLine', 'status', 'responseSize')
"""

import re
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from core.exceptions import InvalidFormatError
from core.logging_config import get_logger

logger = get_logger(__name__)


# Capture patterns shared by several directives
IP_PATTERN = r'([0-9\.\:]+)'
DIGITS_PATTERN = r'([0-9]+)'
NON_SPACE_PATTERN = r'(\S*)'
ANY_PATTERN = r'(.*?)'

# Apache LogFormat directive table
# Format: directive key -> (field_name, regex_pattern, column_type)
DIRECTIVE_TABLE = {
    # Client/Remote information
    'a': ('clientIp', IP_PATTERN, 'str'),
    'A': ('localIp', IP_PATTERN, 'str'),
    'h': ('remoteHostname', ANY_PATTERN, 'str'),
    'l': ('remoteLogname', ANY_PATTERN, 'str'),
    'u': ('remoteUser', ANY_PATTERN, 'str'),

    # Request
    'H': ('requestProtocol', r'(HTTP/[0-9\.]+)', 'str'),
    'm': ('requestMethod', r'([A-Za-z]+)', 'str'),
    'q': ('queryString', r'((?:\?.*?)?)', 'str'),
    'r': ('firstRequestLine', r'([A-Za-z]+ \S+ HTTP/[0-9\.]+|\-)', 'str'),
    'U': ('urlPath', NON_SPACE_PATTERN, 'str'),
    'i': ('requestHeader', ANY_PATTERN, 'str'),
    'C': ('cookie', ANY_PATTERN, 'str'),
    'L': ('requestLogId', ANY_PATTERN, 'str'),
    'k': ('keepaliveRequests', DIGITS_PATTERN, 'int'),

    # Time
    't': ('time', r'\[([^\]]+)\]', 'datetime'),
    'D': ('responseTime', DIGITS_PATTERN, 'int'),
    'T': ('timeToServe', DIGITS_PATTERN, 'int'),

    # Response
    's': ('status', DIGITS_PATTERN, 'int'),
    'b': ('responseSize', r'([0-9]+|\-)', 'int'),
    'B': ('responseSize', DIGITS_PATTERN, 'int'),
    'o': ('responseHeader', ANY_PATTERN, 'str'),
    'X': ('connectionStatus', r'([X\+\-])', 'str'),
    'I': ('bytesReceived', DIGITS_PATTERN, 'int'),
    'O': ('bytesSent', DIGITS_PATTERN, 'int'),
    'S': ('bytesTransferred', DIGITS_PATTERN, 'int'),

    # Server information
    'v': ('serverName', NON_SPACE_PATTERN, 'str'),
    'V': ('serverName', NON_SPACE_PATTERN, 'str'),
    'p': ('canonicalPort', DIGITS_PATTERN, 'int'),
    'P': ('processId', DIGITS_PATTERN, 'int'),
    'f': ('filename', ANY_PATTERN, 'str'),
    'R': ('handler', ANY_PATTERN, 'str'),
    'e': ('env', ANY_PATTERN, 'str'),
    'n': ('note', ANY_PATTERN, 'str'),

    # Trailers
    '^ti': ('requestTrailerLine', ANY_PATTERN, 'str'),
    '^to': ('responseTrailerLine', ANY_PATTERN, 'str'),
}

# Directives whose capture changes when a {qualifier} is given,
# e.g. %{msec}t is a plain number instead of a bracketed date.
QUALIFIED_OVERRIDES = {
    't': (DIGITS_PATTERN, 'int'),
}

# Common Apache LogFormat presets
FORMAT_PRESETS = {
    'common': '%h %l %u %t "%r" %>s %b',
    'combined': '%h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i"',
    'combined_with_time': '%h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i" %D',
    'vhost_combined': '%v:%p %h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i"',
    'referer': '%{Referer}i -> %U',
    'agent': '%{User-agent}i',
}

# Scans one token at a time: a directive, any other %-sequence, or a literal run
TOKEN_RE = re.compile(
    r'%(?:\{(?P<qualifier>[A-Za-z0-9\-_]+)\})?(?P<modifier>[<>])?(?P<key>[A-Za-z]|\^t[io])'
    r'|(?P<percent>%.?)'
    r'|(?P<literal>[^%]+)',
    re.DOTALL
)


class DirectiveToken(NamedTuple):
    key: str
    qualifier: str
    modifier: str
    raw: str


class EscapeToken(NamedTuple):
    raw: str = '%%'


class LiteralToken(NamedTuple):
    text: str


Token = Union[DirectiveToken, EscapeToken, LiteralToken]


class CompiledFormat:
    """
    Result of compiling a LogFormat string.

    Holds the anchored line pattern and the field names, index-aligned with
    the pattern's capturing groups. Instances are immutable and may be shared
    between threads or sent to worker processes.
    """

    __slots__ = ('format_string', 'pattern', 'field_names', 'column_types')

    def __init__(self, format_string: str, pattern: str,
                 field_names: List[str], column_types: Dict[str, str]):
        object.__setattr__(self, 'format_string', format_string)
        object.__setattr__(self, 'pattern', re.compile(pattern))
        object.__setattr__(self, 'field_names', tuple(field_names))
        object.__setattr__(self, 'column_types', MappingProxyType(dict(column_types)))

    def __setattr__(self, name, value):
        raise AttributeError(f"CompiledFormat is immutable, cannot set '{name}'")

    def __reduce__(self):
        return (CompiledFormat, (self.format_string, self.pattern.pattern,
                                 list(self.field_names), dict(self.column_types)))

    def __len__(self) -> int:
        return len(self.field_names)

    def __eq__(self, other):
        if not isinstance(other, CompiledFormat):
            return NotImplemented
        return (self.pattern.pattern == other.pattern.pattern
                and self.field_names == other.field_names)

    def __hash__(self):
        return hash((self.pattern.pattern, self.field_names))

    def __repr__(self):
        return f"CompiledFormat({self.format_string!r}, fields={len(self)})"


def tokenize(format_string: str) -> List[Token]:
    """
    Split a LogFormat string into directive, escape and literal tokens.

    Raises:
        InvalidFormatError: If a % is not followed by a known directive shape
            and is not the %% escape.
    """
    tokens: List[Token] = []
    pos = 0

    while pos < len(format_string):
        match = TOKEN_RE.match(format_string, pos)
        raw = match.group(0)

        if match.group('key') is not None:
            tokens.append(DirectiveToken(
                key=match.group('key'),
                qualifier=match.group('qualifier') or '',
                modifier=match.group('modifier') or '',
                raw=raw
            ))
        elif match.group('percent') is not None:
            if raw != '%%':
                raise InvalidFormatError(f"Unknown format string: {raw}", format_text=raw)
            tokens.append(EscapeToken())
        else:
            tokens.append(LiteralToken(raw))

        pos = match.end()

    return tokens


def unique_name(name: str, assigned: List[str]) -> str:
    """Return name, or name suffixed with :2, :3, ... if already assigned."""
    result = name
    suffix = 2
    while result in assigned:
        result = f"{name}:{suffix}"
        suffix += 1
    return result


def _directive_rule(token: DirectiveToken) -> Tuple[str, str, str]:
    """Look up (field_name, regex_pattern, column_type) for a directive token."""
    if token.key not in DIRECTIVE_TABLE:
        raise InvalidFormatError(
            f"Unknown format string: %{token.key}",
            format_text=f"%{token.key}"
        )

    name, pattern, column_type = DIRECTIVE_TABLE[token.key]

    if token.qualifier:
        name = f"{name}:{token.qualifier}"
        if token.key in QUALIFIED_OVERRIDES:
            pattern, column_type = QUALIFIED_OVERRIDES[token.key]

    return name, pattern, column_type


def compile_format(format_string: str) -> CompiledFormat:
    """
    Compile an Apache LogFormat string.

    Args:
        format_string: LogFormat string (e.g., '%h %l %u %t "%r" %>s %b')

    Returns:
        CompiledFormat with one capturing group and one unique field name
        per directive, in directive order

    Raises:
        InvalidFormatError: On unknown or malformed directives

    Examples:
        >>> compile_format('%h,%t,%{msec}t').field_names
        ('remoteHostname', 'time', 'time:msec')
    """
    pattern_parts = []
    field_names: List[str] = []
    column_types: Dict[str, str] = {}

    for token in tokenize(format_string):
        if isinstance(token, LiteralToken):
            pattern_parts.append(re.escape(token.text))
        elif isinstance(token, EscapeToken):
            pattern_parts.append(re.escape('%'))
        else:
            name, regex, column_type = _directive_rule(token)
            name = unique_name(name, field_names)
            field_names.append(name)
            column_types[name] = column_type
            pattern_parts.append(regex)

    pattern = r'\A' + ''.join(pattern_parts) + r'\r?\n?\Z'

    logger.debug(f"Compiled format {format_string!r}: {len(field_names)} fields")
    return CompiledFormat(format_string, pattern, field_names, column_types)


# Upper bound on distinct format strings kept compiled per process
COMPILED_FORMAT_CACHE_SIZE = 128


@lru_cache(maxsize=COMPILED_FORMAT_CACHE_SIZE)
def get_compiled_format(format_string: str) -> CompiledFormat:
    """Compile a format string once and reuse the result for later calls."""
    return compile_format(format_string)


def resolve_format(name_or_format: Optional[str]) -> Optional[str]:
    """Return the preset's format string if a preset name is given, otherwise the input."""
    if name_or_format in FORMAT_PRESETS:
        return FORMAT_PRESETS[name_or_format]
    return name_or_format
