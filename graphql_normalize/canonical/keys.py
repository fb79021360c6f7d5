"""
Sort keys for canonical GraphQL ordering.

Every key function here is total: it returns a comparable key for any node
of an executable document and never raises for well-formed input. Numeric
conversions that can fail degrade to the key "0".

Definition and selection keys are (rank, lowercase name) tuples. Ranks group
nodes by kind first, then names order them alphabetically within a kind:

    definitions: anonymous < query < mutation < subscription < fragment
    selections:  field < fragment spread < inline fragment

Value keys are plain lowercase strings so that heterogeneous list elements
(numbers, strings, enums) order against each other by their text.
"""

import math
from decimal import Decimal, InvalidOperation
from enum import IntEnum

from graphql.language import (
    BooleanValueNode,
    DefinitionNode,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    OperationType,
    SelectionNode,
    StringValueNode,
    ValueNode,
    VariableNode,
)

# Range of a signed 64-bit integer; larger literals key as "0"
INT_KEY_MIN = -(2**63)
INT_KEY_MAX = 2**63 - 1

# Shared key for nested lists and objects inside a list literal
NESTED_COLLECTION_KEY = "ZZZZ"

# Shared key for both boolean literals
BOOLEAN_KEY = "a"


class DefinitionRank(IntEnum):
    """Ordering of top-level definitions by kind."""

    ANONYMOUS = 0
    QUERY = 1
    MUTATION = 2
    SUBSCRIPTION = 3
    FRAGMENT = 4


class SelectionRank(IntEnum):
    """Ordering of selections within a selection set by kind."""

    FIELD = 0
    FRAGMENT_SPREAD = 1
    INLINE_FRAGMENT = 2


OPERATION_RANKS = {
    OperationType.QUERY: DefinitionRank.QUERY,
    OperationType.MUTATION: DefinitionRank.MUTATION,
    OperationType.SUBSCRIPTION: DefinitionRank.SUBSCRIPTION,
}


def is_anonymous_operation(node: OperationDefinitionNode) -> bool:
    """
    Check whether an operation is the `{ ... }` shorthand form.

    A query with no name, no variable definitions and no directives is the
    shape graphql-core prints as a bare selection set, so treating exactly
    that shape as anonymous keeps printed output stable when re-parsed.
    """
    return (
        node.operation == OperationType.QUERY
        and node.name is None
        and not node.variable_definitions
        and not node.directives
    )


def definition_sort_key(node: DefinitionNode) -> tuple[int, str]:
    """
    Key a top-level definition by (kind rank, lowercase name).

    Args:
        node: Operation or fragment definition

    Returns:
        Tuple usable as a `sorted()` key

    Raises:
        TypeError: If the node is not an executable definition
    """
    if isinstance(node, FragmentDefinitionNode):
        return DefinitionRank.FRAGMENT, node.name.value.lower()

    if isinstance(node, OperationDefinitionNode):
        if is_anonymous_operation(node):
            return DefinitionRank.ANONYMOUS, ""
        name = node.name.value if node.name else ""
        return OPERATION_RANKS[node.operation], name.lower()

    raise TypeError(f"Not an executable definition: {type(node).__name__}")


def selection_sort_key(node: SelectionNode) -> tuple[int, str]:
    """Key a selection by (kind rank, lowercase field/fragment/type name)."""
    if isinstance(node, FieldNode):
        return SelectionRank.FIELD, node.name.value.lower()
    if isinstance(node, FragmentSpreadNode):
        return SelectionRank.FRAGMENT_SPREAD, node.name.value.lower()
    if isinstance(node, InlineFragmentNode):
        type_name = node.type_condition.name.value if node.type_condition else ""
        return SelectionRank.INLINE_FRAGMENT, type_name.lower()
    raise TypeError(f"Unknown selection node: {type(node).__name__}")


def name_sort_key(node) -> str:
    """Key any named node (argument, directive) by its lowercase name."""
    return node.name.value.lower()


def variable_definition_sort_key(node) -> str:
    """Key a variable definition by its lowercase variable name."""
    return node.variable.name.value.lower()


def int_sort_key(raw: str) -> str:
    """
    Decimal text of an integer literal.

    Example:
        >>> int_sort_key("-0")
        '0'
        >>> int_sort_key("99999999999999999999")
        '0'
    """
    try:
        number = int(raw)
    except (TypeError, ValueError):
        return "0"
    if number < INT_KEY_MIN or number > INT_KEY_MAX:
        return "0"
    return str(number)


def float_sort_key(raw: str) -> str:
    """
    Positional decimal text of a float literal.

    Uses the shortest round-trip representation of the parsed double,
    written without an exponent and without a trailing ".0".

    Example:
        >>> float_sort_key("1.50")
        '1.5'
        >>> float_sort_key("1e3")
        '1000'
    """
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return "0"

    if math.isnan(number):
        return "nan"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"

    try:
        text = format(Decimal(repr(number)), "f")
    except InvalidOperation:
        return "0"

    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def value_sort_key(node: ValueNode) -> str:
    """
    Key a list literal element by its lowercase text.

    Booleans all share one key and nested lists/objects all share another,
    so their relative order is decided by sort stability alone.
    """
    if isinstance(node, VariableNode):
        key = node.name.value
    elif isinstance(node, IntValueNode):
        key = int_sort_key(node.value)
    elif isinstance(node, FloatValueNode):
        key = float_sort_key(node.value)
    elif isinstance(node, StringValueNode):
        key = node.value
    elif isinstance(node, BooleanValueNode):
        key = BOOLEAN_KEY
    elif isinstance(node, NullValueNode):
        key = ""
    elif isinstance(node, EnumValueNode):
        key = node.value
    elif isinstance(node, ListValueNode | ObjectValueNode):
        key = NESTED_COLLECTION_KEY
    else:
        raise TypeError(f"Unknown value node: {type(node).__name__}")
    return key.lower()
