"""
Grouping of content lines into components, bracketed by
``BEGIN:<kind>`` and ``END:<kind>``.
"""
from dataclasses import dataclass
from dataclasses import field
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional

from icscodec.lib.error import ICSError
from icscodec.lib.error import log
from icscodec.lib.error import MalformedProperty
from icscodec.lib.error import UnbalancedComponent
from icscodec.lib.tokenizer import Property
from icscodec.lib.tokenizer import tokenize


@dataclass
class ComponentRecord:
    kind: str
    properties: List[Property] = field(default_factory=list)
    components: List["ComponentRecord"] = field(default_factory=list)

    def get(self, key: str) -> Optional[Property]:
        """The first property named ``key``, if any"""
        key = key.upper()
        for prop in self.properties:
            if prop.key == key:
                return prop
        return None

    def get_all(self, key: str) -> List[Property]:
        key = key.upper()
        return [prop for prop in self.properties if prop.key == key]

    def walk(self, kind: str) -> Iterator["ComponentRecord"]:
        """Yields all descendants (self included) of the given kind, in file order"""
        kind = kind.upper()
        if self.kind == kind:
            yield self
        for component in self.components:
            yield from component.walk(kind)


def assemble(
    lines: Iterable[str], warnings: Optional[List[ICSError]] = None
) -> List[ComponentRecord]:
    """Builds the component tree out of logical lines.

    Returns the top level components in file order.  Malformed lines are
    dropped; they are logged and appended to ``warnings``.

    :raises UnbalancedComponent: on END without matching BEGIN, and on
        components still open at the end of input
    """
    stack: List[ComponentRecord] = []
    toplevel: List[ComponentRecord] = []
    for line in lines:
        try:
            prop = tokenize(line)
        except MalformedProperty as e:
            if stack:
                e.property = e.property or stack[-1].kind
            log.warning(str(e))
            if warnings is not None:
                warnings.append(e)
            continue

        if prop.key == "BEGIN":
            kind = prop.value.strip().upper()
            if not kind:
                raise UnbalancedComponent(raw=line, reason="BEGIN without a kind")
            stack.append(ComponentRecord(kind=kind))
        elif prop.key == "END":
            kind = prop.value.strip().upper()
            if not stack:
                raise UnbalancedComponent(
                    property=kind, raw=line, reason="END without BEGIN"
                )
            if stack[-1].kind != kind:
                raise UnbalancedComponent(
                    property=kind,
                    raw=line,
                    reason=f"expected END:{stack[-1].kind}",
                )
            component = stack.pop()
            if stack:
                stack[-1].components.append(component)
            else:
                toplevel.append(component)
        elif stack:
            stack[-1].properties.append(prop)
        else:
            log.warning(f"ignoring {prop.name} outside of any component")

    if stack:
        raise UnbalancedComponent(
            property=stack[-1].kind,
            reason=f"BEGIN:{stack[-1].kind} is never closed",
        )
    return toplevel
