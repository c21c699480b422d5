"""
Splitting of logical content lines into name, parameters and value::

    name *(";" param-name "=" param-value *("," param-value)) ":" value
"""
import re
from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from icalendar.caselessdict import CaselessDict

from icscodec.lib.error import MalformedProperty

NAME_RE = re.compile(r"^[A-Za-z0-9-]+$")
NEEDS_QUOTING_RE = re.compile(r"[:;,]")


@dataclass
class Property:
    """One content line.

    ``params`` maps parameter names (case insensitive) to the raw
    parameter text, quotes included.  Use :meth:`param` and
    :meth:`param_values` to get at the unquoted values.
    """

    name: str
    value: str
    params: CaselessDict = field(default_factory=CaselessDict)

    @property
    def key(self) -> str:
        return self.name.upper()

    def param_values(self, name: str) -> List[str]:
        raw = self.params.get(name)
        if raw is None:
            return []
        return [_unquote(x) for x in split_outside_quotes(raw, ",")]

    def param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        values = self.param_values(name)
        return values[0] if values else default


def split_outside_quotes(text: str, separator: str) -> List[str]:
    parts = []
    current = []
    in_quotes = False
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        if char == separator and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _find_value_separator(line: str) -> Optional[int]:
    in_quotes = False
    for i, char in enumerate(line):
        if char == '"':
            in_quotes = not in_quotes
        elif char == ":" and not in_quotes and (i == 0 or line[i - 1] != "\\"):
            return i
    return None


def tokenize(line: str) -> Property:
    """Splits one logical line into a :class:`Property`

    :raises MalformedProperty: no top-level colon, a bad property name or
        a parameter without ``=``
    """
    colon = _find_value_separator(line)
    if colon is None:
        raise MalformedProperty(raw=line, reason="no unquoted colon")
    head, value = line[:colon], line[colon + 1 :]
    segments = split_outside_quotes(head, ";")
    name = segments[0]
    if not NAME_RE.match(name):
        raise MalformedProperty(raw=line, reason=f"invalid property name {name!r}")
    params = CaselessDict()
    for segment in segments[1:]:
        param_name, sep, param_value = segment.partition("=")
        if not sep or not NAME_RE.match(param_name):
            raise MalformedProperty(
                property=name, raw=line, reason=f"malformed parameter {segment!r}"
            )
        params[param_name] = param_value
    return Property(name=name, value=value, params=params)


def _quote(value: str) -> str:
    if value.startswith('"') or not NEEDS_QUOTING_RE.search(value):
        return value
    ## DQUOTE can not be represented inside a quoted parameter value
    return '"%s"' % value.replace('"', "'")


def format_property(
    name: str,
    value: str,
    params: Optional[Dict[str, Union[str, Sequence[str]]]] = None,
) -> str:
    """Renders a logical content line, quoting parameter values where needed"""
    line = name
    for param_name, param_value in (params or {}).items():
        if isinstance(param_value, str):
            rendered = _quote(param_value)
        else:
            rendered = ",".join(_quote(x) for x in param_value)
        line += f";{param_name}={rendered}"
    return f"{line}:{value}"
