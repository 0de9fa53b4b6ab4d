"""Parameter-name tokenizer and variable-spec parser.

Sampler output names multi-dimensional parameters with a bracketed index
suffix, e.g. ``b[1,2]`` or, for rstanarm-style group-level terms,
``b[(Intercept) condition:D]``. This module defines the grammar used to
take those names apart:

    parameter_name := base [ "[" contents "]" ]
    contents       := token { delimiter token }
    delimiter      := whitespace | "," | ":"

Delimiters only split at the top level: anything inside parentheses is
part of a single token, so ``(Intercept)`` and ``s(x, k)`` stay atomic.
Runs of delimiters collapse, so ``a, b`` yields two tokens.

Variable specs describe what the caller wants pulled out of the draws:

    spec := base [ "[" placeholder { "," placeholder } "]" ]

A blank placeholder (``b[,i]``) keeps its position but discards the
matching token, so that index is not split out into a column.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tidydraws.errors import IndexParseError

__all__ = [
    "ParsedName",
    "VariableSpec",
    "bind_indices",
    "convert_index_values",
    "parse_parameter_name",
    "parse_variable_spec",
    "split_index_tokens",
]

_DELIMITERS = frozenset(" \t\n,:")
_INTEGER = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class ParsedName:
    """A sampler column name split into its base and index tokens.

    Attributes:
        base: Text before the opening bracket (the whole name if unbracketed).
        tokens: Ordered index tokens from inside the brackets.
        bracketed: True if the name carried a bracket suffix, even an empty one.
    """

    base: str
    tokens: tuple[str, ...] = ()
    bracketed: bool = False


@dataclass(frozen=True)
class VariableSpec:
    """A requested variable and the names to give its index columns.

    Attributes:
        name: Base name of the variable.
        indices: Positional placeholders; "" means discard that index.

    Example:
        >>> spec = parse_variable_spec("b[term,,condition]")
        >>> spec.index_names
        ('term', 'condition')
    """

    name: str
    indices: tuple[str, ...] = ()

    @property
    def index_names(self) -> tuple[str, ...]:
        """Named (non-blank) placeholders in positional order."""
        return tuple(i for i in self.indices if i)

    @property
    def has_indices(self) -> bool:
        return len(self.indices) > 0

    def __str__(self) -> str:
        if not self.indices:
            return self.name
        return f"{self.name}[{','.join(self.indices)}]"


def split_index_tokens(contents: str) -> tuple[str, ...]:
    """Split bracket contents into tokens, keeping parenthesized text atomic.

    Args:
        contents: Text between the square brackets of a parameter name.

    Returns:
        Tuple of trimmed, non-empty tokens.

    Raises:
        IndexParseError: If parentheses are unbalanced.

    Example:
        >>> split_index_tokens("(Intercept) condition:D")
        ('(Intercept)', 'condition', 'D')
    """
    tokens: list[str] = []
    current: list[str] = []
    depth = 0

    for char in contents:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise IndexParseError(f"Unbalanced ')' in index '{contents}'")

        if depth == 0 and char in _DELIMITERS:
            if current:
                tokens.append("".join(current).strip())
                current = []
            continue
        current.append(char)

    if depth != 0:
        raise IndexParseError(f"Unbalanced '(' in index '{contents}'")
    if current:
        tokens.append("".join(current).strip())

    return tuple(t for t in tokens if t)


def parse_parameter_name(name: str) -> ParsedName:
    """Parse a sampler column name into base name and index tokens.

    Raises:
        IndexParseError: If the bracket suffix is malformed.

    Example:
        >>> parse_parameter_name("b[(Intercept) condition:D]")
        ParsedName(base='b', tokens=('(Intercept)', 'condition', 'D'), bracketed=True)
    """
    open_pos = name.find("[")
    if open_pos == -1:
        if "]" in name:
            raise IndexParseError(f"Unexpected ']' in parameter name '{name}'")
        return ParsedName(base=name)

    if not name.endswith("]"):
        raise IndexParseError(f"Parameter name '{name}' has an unterminated index")
    base = name[:open_pos]
    contents = name[open_pos + 1 : -1]
    if not base:
        raise IndexParseError(f"Parameter name '{name}' has no base name")
    if "[" in contents or "]" in contents:
        raise IndexParseError(f"Nested brackets in parameter name '{name}'")

    return ParsedName(base=base, tokens=split_index_tokens(contents), bracketed=True)


def parse_variable_spec(spec: str | VariableSpec) -> VariableSpec:
    """Parse a spec string like ``"b[term,group,condition]"``.

    Placeholders are separated by commas only; surrounding whitespace is
    trimmed. Blank placeholders are kept positionally.

    Raises:
        IndexParseError: If the spec is malformed or names an index twice.
    """
    if isinstance(spec, VariableSpec):
        return spec

    text = spec.strip()
    open_pos = text.find("[")
    if open_pos == -1:
        if "]" in text or not text:
            raise IndexParseError(f"Malformed variable spec '{spec}'")
        return VariableSpec(name=text)

    if not text.endswith("]"):
        raise IndexParseError(f"Variable spec '{spec}' has an unterminated index")
    name = text[:open_pos].strip()
    if not name:
        raise IndexParseError(f"Variable spec '{spec}' has no base name")

    indices = tuple(p.strip() for p in text[open_pos + 1 : -1].split(","))
    named = [i for i in indices if i]
    if len(named) != len(set(named)):
        raise IndexParseError(f"Variable spec '{spec}' repeats an index name", variable=name)

    return VariableSpec(name=name, indices=indices)


def bind_indices(spec: VariableSpec, parsed: ParsedName, column: str = "") -> dict[str, str]:
    """Zip a spec's placeholders with a column's index tokens.

    Args:
        spec: Requested variable spec.
        parsed: Parsed column name with the same base.
        column: Original column name, for error messages.

    Returns:
        Mapping from index-column name to raw token; blank placeholders
        are dropped.

    Raises:
        IndexParseError: If the token count differs from the placeholder count.
    """
    if len(parsed.tokens) != len(spec.indices):
        raise IndexParseError(
            f"Column '{column or parsed.base}' has {len(parsed.tokens)} index "
            f"token(s) {list(parsed.tokens)} but spec '{spec}' expects "
            f"{len(spec.indices)}",
            variable=spec.name,
        )
    return {name: token for name, token in zip(spec.indices, parsed.tokens) if name}


def convert_index_values(values: list[str]) -> list[int] | list[str]:
    """Convert raw index tokens to integers when every token is an integer."""
    if values and all(_INTEGER.fullmatch(v) for v in values):
        return [int(v) for v in values]
    return list(values)
