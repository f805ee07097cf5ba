from __future__ import annotations

import re
from collections.abc import Mapping

from pdfwrap.letters.fields import FieldResolver

FIELD_TOKEN = re.compile(r"\[\[(\w+)\]\]")


def substitute_named(text: str, values: Mapping[str, str], marker: str = "#") -> str:
    """Replace every ``#NAME#`` for the names in *values*.

    Names absent from *values* are left as they are; a name may appear any
    number of times.  Replacement is a single pass, so substituted values are
    never themselves rescanned.
    """
    if not values:
        return text
    names = "|".join(re.escape(name) for name in values)
    token = re.compile(f"{re.escape(marker)}({names}){re.escape(marker)}")
    return token.sub(lambda match: values[match.group(1)], text)


class TemplateEngine:
    """Fill ``[[FIELD]]`` placeholders in letter text for a given plan."""

    def __init__(self, resolver: FieldResolver) -> None:
        self.resolver = resolver

    def tokens(self, text: str) -> list[str]:
        """Distinct field ids in order of first appearance."""
        return list(dict.fromkeys(FIELD_TOKEN.findall(text)))

    def substitute(self, text: str, plan_no: int | str) -> str:
        resolved = {name: self.resolver.resolve(name, plan_no) for name in self.tokens(text)}
        return FIELD_TOKEN.sub(lambda match: resolved[match.group(1)], text)
