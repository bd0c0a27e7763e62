"""
Argument mini-language for instruction lines.

An instruction line is free-form text describing one test, e.g.

    mail.example.com must run imaps with port 993 and tls insecure

Options are given as clauses: a connector word (``with`` or ``and``), a
keyword and a value. Values may be quoted to include whitespace:

    with banner 'ESMTP Postfix'

Anything that is not a clause is ignored, as are clauses whose keyword is not
recognized. No type conversion happens here; plugins validate and convert the
values they consume.
"""

import re
from typing import Dict, Iterable, Optional


DEFAULT_KEYWORDS = frozenset({'port', 'tls'})

_CLAUSE = re.compile(
    r"""(?:^|\s)(?:with|and)\s+
        (?P<key>[A-Za-z_][\w-]*)\s+
        (?:'(?P<single>[^']*)'|"(?P<double>[^"]*)"|(?P<bare>\S+))""",
    re.IGNORECASE | re.VERBOSE,
)


def parse_arguments(line: Optional[str],
                    known: Optional[Iterable[str]] = None) -> Dict[str, str]:
    """
    Extract ``keyword -> value`` pairs from an instruction line.

    Args:
        line: The raw instruction line; may be empty or None
        known: Keywords to keep, defaults to DEFAULT_KEYWORDS

    Returns:
        Mapping of lower-cased keyword to raw value. A keyword given twice
        keeps its last value.
    """
    if not line:
        return {}

    keywords = {k.lower() for k in (known if known is not None else DEFAULT_KEYWORDS)}
    result: Dict[str, str] = {}

    for match in _CLAUSE.finditer(line):
        key = match.group('key').lower()
        if key not in keywords:
            continue
        for group in ('single', 'double', 'bare'):
            value = match.group(group)
            if value is not None:
                result[key] = value
                break

    return result
