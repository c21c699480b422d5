"""
Physical/logical line handling, RFC 5545 section 3.1.

A content line may be wrapped ("folded") over several physical lines;
each continuation starts with exactly one SPACE or HTAB.
"""
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Union

from icscodec.lib.error import DanglingContinuation
from icscodec.lib.python_utilities import to_normal_str

CRLF = "\r\n"
FOLD_LIMIT = 75


def unfold_lines(text: Union[str, bytes]) -> List[str]:
    """Turns raw ics data into a list of logical lines.

    Accepts CRLF as well as bare LF line terminators.  Blank physical
    lines are skipped.  The last line does not need a terminator.

    :raises DanglingContinuation: if the very first content line is a
        continuation line
    """
    text = to_normal_str(text)
    lines: List[str] = []
    for number, physical in enumerate(text.split("\n"), start=1):
        physical = physical.rstrip("\r")
        if not physical:
            continue
        if physical[0] in " \t":
            if not lines:
                raise DanglingContinuation(
                    raw=physical, reason=f"line {number} continues nothing"
                )
            lines[-1] += physical[1:]
        else:
            lines.append(physical)
    return lines


def _fold_units(line: str) -> Iterator[str]:
    ## a backslash and the character following it must stay on the same
    ## physical line
    i = 0
    while i < len(line):
        if line[i] == "\\" and i + 1 < len(line):
            yield line[i : i + 2]
            i += 2
        else:
            yield line[i]
            i += 1


def fold_line(line: str, limit: int = FOLD_LIMIT) -> str:
    """
    Folds one logical line so that no physical line exceeds ``limit``
    octets (the leading space of a continuation line included).  The
    result is joined with CRLF but carries no trailing line break.
    """
    if len(line.encode("utf-8")) <= limit:
        return line
    physical = []
    current = ""
    size = 0
    budget = limit
    for unit in _fold_units(line):
        width = len(unit.encode("utf-8"))
        if current and size + width > budget:
            physical.append(current)
            current = ""
            size = 0
            budget = limit - 1
        current += unit
        size += width
    physical.append(current)
    return (CRLF + " ").join(physical)


def fold_lines(lines: Iterable[str], limit: int = FOLD_LIMIT) -> str:
    """Folds and joins logical lines, every line terminated by CRLF"""
    return "".join(fold_line(line, limit) + CRLF for line in lines)
