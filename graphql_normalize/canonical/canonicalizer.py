"""
Canonicalization of GraphQL executable documents.

Reorders every list in the AST whose order carries no meaning so that two
documents differing only in that ordering print to identical text:

- top-level definitions
- selections within each selection set
- field and directive arguments
- directives
- variable definitions
- list literal elements (inside directive arguments and variable defaults)

Object literal fields keep their source order; only their values are
canonicalized. Field argument values are reordered as arguments but their
contents are left as written.

AST nodes are treated as immutable. The walk is depth-first and rebuilds
each node whose children change; leaves are shared with the input, which
is never modified. No node is added or dropped.

This module performs no I/O and no logging, and it expects an executable
document: rejecting type-system definitions is the parser boundary's job.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from graphql.language import (
    ArgumentNode,
    DefinitionNode,
    DirectiveNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    ListValueNode,
    Node,
    ObjectValueNode,
    OperationDefinitionNode,
    SelectionNode,
    SelectionSetNode,
    ValueNode,
    VariableDefinitionNode,
)

from graphql_normalize.canonical.keys import (
    definition_sort_key,
    is_anonymous_operation,
    name_sort_key,
    selection_sort_key,
    value_sort_key,
    variable_definition_sort_key,
)

T = TypeVar("T")
N = TypeVar("N", bound=Node)


def _rebuild(node: N, **changes: Any) -> N:
    """
    Copy an AST node with some attributes replaced.

    graphql-core nodes accept every name in `node.keys` as a keyword
    argument, whether they are plain classes or frozen dataclasses.
    """
    attributes = {key: getattr(node, key) for key in node.keys}
    attributes.update(changes)
    return type(node)(**attributes)


def _reorder(items: Sequence[T] | None, key: Callable[[T], Any]) -> tuple[T, ...] | None:
    """Stable-sort a node sequence into a tuple; a missing sequence stays missing."""
    if items is None:
        return None
    return tuple(sorted(items, key=key))


def canonicalize_document(document: DocumentNode) -> DocumentNode:
    """
    Build the canonical form of a parsed executable document.

    Args:
        document: Document produced by `graphql.parse`

    Returns:
        A new document; the input is left untouched

    Example:
        >>> from graphql import parse, print_ast
        >>> print_ast(canonicalize_document(parse("{ b a }")))
        '{\\n  a\\n  b\\n}'
    """
    definitions = [canonicalize_definition(definition) for definition in document.definitions]
    return _rebuild(document, definitions=_reorder(definitions, definition_sort_key))


def canonicalize_definition(definition: DefinitionNode) -> DefinitionNode:
    """
    Canonicalize one operation or fragment definition.

    Directives and variables of the anonymous `{ ... }` shorthand are
    always empty, so only its selection set is walked.

    Raises:
        TypeError: If the definition is not executable
    """
    if isinstance(definition, FragmentDefinitionNode):
        return _rebuild(
            definition,
            selection_set=canonicalize_selection_set(definition.selection_set),
            directives=canonicalize_directives(definition.directives),
        )

    if isinstance(definition, OperationDefinitionNode):
        selection_set = canonicalize_selection_set(definition.selection_set)
        if is_anonymous_operation(definition):
            return _rebuild(definition, selection_set=selection_set)
        return _rebuild(
            definition,
            selection_set=selection_set,
            directives=canonicalize_directives(definition.directives),
            variable_definitions=canonicalize_variable_definitions(
                definition.variable_definitions
            ),
        )

    raise TypeError(f"Not an executable definition: {type(definition).__name__}")


def canonicalize_selection_set(selection_set: SelectionSetNode | None) -> SelectionSetNode | None:
    """
    Canonicalize a selection set and everything nested beneath it.

    Leaf fields carry no selection set; `None` is returned unchanged.
    """
    if selection_set is None:
        return None

    selections = [_canonicalize_selection(selection) for selection in selection_set.selections]
    return _rebuild(selection_set, selections=_reorder(selections, selection_sort_key))


def _canonicalize_selection(selection: SelectionNode) -> SelectionNode:
    if isinstance(selection, FieldNode):
        # Argument values are left as written at field level
        return _rebuild(
            selection,
            arguments=_reorder(selection.arguments, name_sort_key),
            directives=canonicalize_directives(selection.directives),
            selection_set=canonicalize_selection_set(selection.selection_set),
        )
    if isinstance(selection, FragmentSpreadNode):
        return _rebuild(selection, directives=canonicalize_directives(selection.directives))
    if isinstance(selection, InlineFragmentNode):
        return _rebuild(
            selection,
            directives=canonicalize_directives(selection.directives),
            selection_set=canonicalize_selection_set(selection.selection_set),
        )
    raise TypeError(f"Unknown selection node: {type(selection).__name__}")


def _canonicalize_argument(argument: ArgumentNode) -> ArgumentNode:
    return _rebuild(argument, value=canonicalize_value(argument.value))


def canonicalize_directives(
    directives: Sequence[DirectiveNode] | None,
) -> tuple[DirectiveNode, ...] | None:
    """
    Canonicalize each directive's arguments, then order the directives.

    Returns:
        The directives sorted by lowercase name
    """
    if not directives:
        return directives

    rebuilt = [
        _rebuild(
            directive,
            arguments=_reorder(
                [_canonicalize_argument(argument) for argument in directive.arguments or ()],
                name_sort_key,
            ),
        )
        for directive in directives
    ]
    return _reorder(rebuilt, name_sort_key)


def canonicalize_variable_definitions(
    variable_definitions: Sequence[VariableDefinitionNode] | None,
) -> tuple[VariableDefinitionNode, ...] | None:
    """Canonicalize default values, then order definitions by variable name."""
    if not variable_definitions:
        return variable_definitions

    rebuilt = [
        variable_definition
        if variable_definition.default_value is None
        else _rebuild(
            variable_definition,
            default_value=canonicalize_value(variable_definition.default_value),
        )
        for variable_definition in variable_definitions
    ]
    return _reorder(rebuilt, variable_definition_sort_key)


def canonicalize_value(value: ValueNode) -> ValueNode:
    """
    Canonicalize a literal value.

    Scalars and variables are returned as they are. List elements are
    canonicalized and then sorted by `value_sort_key`. Object fields keep
    their order and only their values are canonicalized.
    """
    if isinstance(value, ListValueNode):
        elements = [canonicalize_value(element) for element in value.values]
        return _rebuild(value, values=_reorder(elements, value_sort_key))
    if isinstance(value, ObjectValueNode):
        fields = tuple(
            _rebuild(object_field, value=canonicalize_value(object_field.value))
            for object_field in value.fields
        )
        return _rebuild(value, fields=fields)
    return value
