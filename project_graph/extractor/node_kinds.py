"""Tagged union over the tree-sitter node types the analyzers care about.

Each analyzer keeps its own ``dict[NodeKind, handler]`` dispatch table; adding
a node kind means adding an enum member and the grammar types that map to it.
"""

from __future__ import annotations

import enum
from typing import Callable, Iterator


class NodeKind(enum.Enum):
    # Declarations
    FUNCTION_DECLARATION = "function_declaration"
    FUNCTION_EXPRESSION = "function_expression"
    ARROW_FUNCTION = "arrow_function"
    CLASS_DECLARATION = "class_declaration"
    METHOD_DEFINITION = "method_definition"
    FIELD_DEFINITION = "field_definition"
    VARIABLE_DECLARATION = "variable_declaration"
    VARIABLE_DECLARATOR = "variable_declarator"
    # Modules
    IMPORT_STATEMENT = "import_statement"
    EXPORT_STATEMENT = "export_statement"
    # Expressions
    CALL_EXPRESSION = "call_expression"
    NEW_EXPRESSION = "new_expression"
    MEMBER_EXPRESSION = "member_expression"
    ASSIGNMENT_EXPRESSION = "assignment_expression"
    BINARY_EXPRESSION = "binary_expression"
    TERNARY_EXPRESSION = "ternary_expression"
    AWAIT_EXPRESSION = "await_expression"
    IDENTIFIER = "identifier"
    JSX_ELEMENT = "jsx_element"
    # Control flow
    IF_STATEMENT = "if_statement"
    FOR_STATEMENT = "for_statement"
    FOR_IN_STATEMENT = "for_in_statement"
    WHILE_STATEMENT = "while_statement"
    DO_STATEMENT = "do_statement"
    SWITCH_STATEMENT = "switch_statement"
    SWITCH_CASE = "switch_case"
    TRY_STATEMENT = "try_statement"
    CATCH_CLAUSE = "catch_clause"
    RETURN_STATEMENT = "return_statement"
    THROW_STATEMENT = "throw_statement"


# Grammar node type -> NodeKind, shared by the javascript/typescript/tsx grammars
_TYPE_TO_KIND: dict[str, NodeKind] = {
    "function_declaration": NodeKind.FUNCTION_DECLARATION,
    "generator_function_declaration": NodeKind.FUNCTION_DECLARATION,
    "function_expression": NodeKind.FUNCTION_EXPRESSION,
    "function": NodeKind.FUNCTION_EXPRESSION,
    "generator_function": NodeKind.FUNCTION_EXPRESSION,
    "arrow_function": NodeKind.ARROW_FUNCTION,
    "class_declaration": NodeKind.CLASS_DECLARATION,
    "abstract_class_declaration": NodeKind.CLASS_DECLARATION,
    "method_definition": NodeKind.METHOD_DEFINITION,
    "field_definition": NodeKind.FIELD_DEFINITION,
    "public_field_definition": NodeKind.FIELD_DEFINITION,
    "lexical_declaration": NodeKind.VARIABLE_DECLARATION,
    "variable_declaration": NodeKind.VARIABLE_DECLARATION,
    "variable_declarator": NodeKind.VARIABLE_DECLARATOR,
    "import_statement": NodeKind.IMPORT_STATEMENT,
    "export_statement": NodeKind.EXPORT_STATEMENT,
    "call_expression": NodeKind.CALL_EXPRESSION,
    "new_expression": NodeKind.NEW_EXPRESSION,
    "member_expression": NodeKind.MEMBER_EXPRESSION,
    "assignment_expression": NodeKind.ASSIGNMENT_EXPRESSION,
    "binary_expression": NodeKind.BINARY_EXPRESSION,
    "ternary_expression": NodeKind.TERNARY_EXPRESSION,
    "await_expression": NodeKind.AWAIT_EXPRESSION,
    "identifier": NodeKind.IDENTIFIER,
    "jsx_opening_element": NodeKind.JSX_ELEMENT,
    "jsx_self_closing_element": NodeKind.JSX_ELEMENT,
    "if_statement": NodeKind.IF_STATEMENT,
    "for_statement": NodeKind.FOR_STATEMENT,
    "for_in_statement": NodeKind.FOR_IN_STATEMENT,
    "while_statement": NodeKind.WHILE_STATEMENT,
    "do_statement": NodeKind.DO_STATEMENT,
    "switch_statement": NodeKind.SWITCH_STATEMENT,
    "switch_case": NodeKind.SWITCH_CASE,
    "try_statement": NodeKind.TRY_STATEMENT,
    "catch_clause": NodeKind.CATCH_CLAUSE,
    "return_statement": NodeKind.RETURN_STATEMENT,
    "throw_statement": NodeKind.THROW_STATEMENT,
}


def node_kind(node) -> NodeKind | None:
    return _TYPE_TO_KIND.get(node.type)


def node_text(node) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def node_line(node) -> int:
    return node.start_point[0] + 1


def has_token(node, token: str) -> bool:
    """True if *node* has a direct (anonymous) child token such as ``async``."""
    return any(child.type == token for child in node.children)


def walk(node) -> Iterator:
    """Pre-order traversal over every descendant of *node*, itself included."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def walk_with_ancestors(node, ancestors: tuple = ()) -> Iterator[tuple]:
    """Pre-order traversal yielding ``(node, ancestors)`` pairs."""
    stack = [(node, ancestors)]
    while stack:
        current, chain = stack.pop()
        yield current, chain
        child_chain = chain + (current,)
        for child in reversed(current.children):
            stack.append((child, child_chain))


def visit(node, table: dict[NodeKind, Callable]) -> None:
    """Call ``table[kind](node)`` for every descendant whose kind is in *table*."""
    for current in walk(node):
        kind = _TYPE_TO_KIND.get(current.type)
        if kind is not None:
            handler = table.get(kind)
            if handler is not None:
                handler(current)
