"""Fact extractor: one syntax tree in, one FactSheet out."""

from __future__ import annotations

from dataclasses import dataclass

from project_graph.extractor.node_kinds import (
    NodeKind,
    has_token,
    node_kind,
    node_line,
    node_text,
)
from project_graph.models import (
    CallSite,
    ClassFacts,
    Declaration,
    DeclarationKind,
    ExportBinding,
    FactSheet,
    ImportBinding,
    LocalBinding,
)

# Class fields whose object-literal value lists reactive properties
PROPERTY_BLOCK_FIELDS = {"init$"}

_FUNCTION_VALUE_TYPES = {
    "arrow_function", "function_expression", "function",
    "generator_function",
}
_MEMBER_NAME_TYPES = {"property_identifier", "private_property_identifier"}


@dataclass(frozen=True)
class _Scope:
    declaration: Declaration | None = None
    cls: ClassFacts | None = None


def extract_facts(tree, file: str) -> FactSheet:
    """Walk one file's syntax tree and summarize it.

    Pure function of the tree: declarations, per-declaration call sites,
    bare-name references, import/export bindings and local bindings.
    """
    return _FactCollector(file).collect(tree.root_node)


def empty_fact_sheet(file: str) -> FactSheet:
    return FactSheet(file=file, parsed=False)


class _FactCollector:
    def __init__(self, file: str):
        self.file = file
        self.sheet = FactSheet(file=file)
        self.exported: set[str] = set()
        self._seen_calls: dict[int, set[str]] = {}
        self._dispatch = {
            NodeKind.FUNCTION_DECLARATION: self._on_function,
            NodeKind.CLASS_DECLARATION: self._on_class,
            NodeKind.METHOD_DEFINITION: self._on_method,
            NodeKind.FIELD_DEFINITION: self._on_field,
            NodeKind.VARIABLE_DECLARATOR: self._on_declarator,
            NodeKind.CALL_EXPRESSION: self._on_call,
            NodeKind.NEW_EXPRESSION: self._on_new,
            NodeKind.JSX_ELEMENT: self._on_jsx,
            NodeKind.IMPORT_STATEMENT: self._on_import,
            NodeKind.EXPORT_STATEMENT: self._on_export,
        }

    def collect(self, root) -> FactSheet:
        stack = [(root, _Scope())]
        while stack:
            node, scope = stack.pop()
            kind = node_kind(node)
            handler = self._dispatch.get(kind) if kind is not None else None
            child_scope = scope
            if handler is not None:
                child_scope = handler(node, scope) or scope
            for child in reversed(node.children):
                stack.append((child, child_scope))

        self._mark_exported()
        return self.sheet

    # ── Declarations ────────────────────────────────────────────

    def _on_function(self, node, scope: _Scope) -> _Scope | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        decl = Declaration(
            name=node_text(name_node),
            kind=DeclarationKind.FUNCTION,
            file=self.file,
            line=node_line(node),
            end_line=node.end_point[0] + 1,
        )
        self.sheet.functions.append(decl)
        return _Scope(declaration=decl)

    def _on_class(self, node, scope: _Scope) -> _Scope | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        decl = Declaration(
            name=node_text(name_node),
            kind=DeclarationKind.CLASS,
            file=self.file,
            line=node_line(node),
            end_line=node.end_point[0] + 1,
        )
        cls = ClassFacts(declaration=decl, extends=_superclass_name(node))
        if cls.extends:
            self.sheet.references.add(cls.extends.split(".")[0])
        self.sheet.classes.append(cls)
        return _Scope(declaration=decl, cls=cls)

    def _on_method(self, node, scope: _Scope) -> _Scope | None:
        if scope.cls is None or node.parent is None or node.parent.type != "class_body":
            return None
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return None

        if name == "constructor":
            method_kind = "constructor"
        elif has_token(node, "get"):
            method_kind = "get"
        elif has_token(node, "set"):
            method_kind = "set"
        else:
            method_kind = "method"

        decl = Declaration(
            name=name,
            kind=DeclarationKind.METHOD,
            file=self.file,
            line=node_line(node),
            end_line=node.end_point[0] + 1,
            owner=scope.cls.name,
            method_kind=method_kind,
        )
        if method_kind != "constructor":
            scope.cls.methods.append(decl)
        return _Scope(declaration=decl, cls=scope.cls)

    def _on_field(self, node, scope: _Scope) -> _Scope | None:
        if scope.cls is None:
            return None
        name_node = node.child_by_field_name("property") or node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        name = node_text(name_node)
        if not name or value is None:
            return None

        if name in PROPERTY_BLOCK_FIELDS and value.type == "object":
            scope.cls.properties.extend(_object_keys(value))
            return None

        if value.type in _FUNCTION_VALUE_TYPES:
            # Arrow-function class fields behave like methods
            decl = Declaration(
                name=name,
                kind=DeclarationKind.METHOD,
                file=self.file,
                line=node_line(node),
                end_line=node.end_point[0] + 1,
                owner=scope.cls.name,
            )
            scope.cls.methods.append(decl)
            return _Scope(declaration=decl, cls=scope.cls)
        return None

    def _on_declarator(self, node, scope: _Scope) -> _Scope | None:
        name_node = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name_node is None:
            return None

        if (
            name_node.type == "identifier"
            and value is not None
            and value.type in _FUNCTION_VALUE_TYPES
            and scope.declaration is None
        ):
            decl = Declaration(
                name=node_text(name_node),
                kind=DeclarationKind.FUNCTION,
                file=self.file,
                line=node_line(node),
                end_line=node.end_point[0] + 1,
            )
            self.sheet.functions.append(decl)
            return _Scope(declaration=decl)

        for name, line in _pattern_names(name_node):
            self.sheet.bindings.append(LocalBinding(name=name, kind="variable", line=line))
        return None

    # ── Calls and references ────────────────────────────────────

    def _on_call(self, node, scope: _Scope) -> None:
        callee = node.child_by_field_name("function")
        site = _normalize_call(callee, scope)
        if site is not None:
            self._record_call(site, scope)
        elif callee is not None and callee.type == "member_expression":
            prop = callee.child_by_field_name("property")
            if prop is not None and prop.type in _MEMBER_NAME_TYPES:
                self.sheet.references.add(node_text(prop))

        arguments = node.child_by_field_name("arguments")
        if arguments is not None:
            for arg in arguments.named_children:
                if arg.type == "identifier":
                    self.sheet.references.add(node_text(arg))

    def _on_new(self, node, scope: _Scope) -> None:
        ctor = node.child_by_field_name("constructor")
        if ctor is None:
            return
        if ctor.type == "identifier":
            self.sheet.references.add(node_text(ctor))
        elif ctor.type == "member_expression":
            prop = ctor.child_by_field_name("property")
            obj = ctor.child_by_field_name("object")
            if prop is not None:
                self.sheet.references.add(node_text(prop))
            if obj is not None and obj.type == "identifier":
                self.sheet.references.add(node_text(obj))
        arguments = node.child_by_field_name("arguments")
        if arguments is not None:
            for arg in arguments.named_children:
                if arg.type == "identifier":
                    self.sheet.references.add(node_text(arg))

    def _on_jsx(self, node, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        if name_node.type == "identifier":
            self.sheet.references.add(node_text(name_node))
        elif name_node.type in ("member_expression", "nested_identifier"):
            self.sheet.references.add(node_text(name_node).split(".")[0])

    def _record_call(self, site: CallSite, scope: _Scope) -> None:
        self.sheet.references.add(site.callee)
        if site.qualifier and not site.via_this:
            self.sheet.references.add(site.qualifier)

        self._append_unique(self.sheet.calls, site, key=(site.caller or "") + "|" + site.key, owner=self.sheet)
        if scope.declaration is not None:
            self._append_unique(scope.declaration.calls, site, key=site.key, owner=scope.declaration)
        if scope.cls is not None:
            self._append_unique(scope.cls.calls, site, key=site.key, owner=scope.cls)

    def _append_unique(self, target: list[CallSite], site: CallSite, key: str, owner) -> None:
        seen = self._seen_calls.setdefault(id(owner), set())
        if key in seen:
            return
        seen.add(key)
        target.append(site)

    # ── Modules ─────────────────────────────────────────────────

    def _on_import(self, node, scope: _Scope) -> None:
        source = _string_value(node.child_by_field_name("source"))
        if source is None:
            return
        line = node_line(node)
        for child in node.named_children:
            if child.type != "import_clause":
                continue
            for part in child.named_children:
                if part.type == "identifier":
                    self._add_import("default", node_text(part), source, line)
                elif part.type == "namespace_import":
                    alias = next((c for c in part.named_children if c.type == "identifier"), None)
                    self._add_import("*", node_text(alias) or None, source, line)
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        imported = node_text(spec.child_by_field_name("name"))
                        alias = node_text(spec.child_by_field_name("alias")) or imported
                        self._add_import(imported, alias, source, line)

    def _add_import(self, imported: str, alias: str | None, source: str, line: int) -> None:
        self.sheet.imports.append(ImportBinding(
            imported_name=imported,
            local_alias=alias,
            source=source,
            file=self.file,
            line=line,
        ))
        if alias:
            self.sheet.bindings.append(LocalBinding(name=alias, kind="import", line=line))

    def _on_export(self, node, scope: _Scope) -> None:
        line = node_line(node)
        is_default = has_token(node, "default")
        source = _string_value(node.child_by_field_name("source"))
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")

        if declaration is not None:
            names = _declared_names(declaration)
            for name in names:
                self.exported.add(name)
                self.sheet.exports.append(ExportBinding(
                    name="default" if is_default else name,
                    file=self.file,
                    line=line,
                    local_name=name,
                ))
            if is_default and not names:
                self.sheet.exports.append(ExportBinding(name="default", file=self.file, line=line))
            return

        if value is not None or (is_default and source is None):
            local = node_text(value) if value is not None and value.type == "identifier" else None
            if local:
                self.exported.add(local)
            self.sheet.exports.append(ExportBinding(
                name="default", file=self.file, line=line, local_name=local,
            ))
            return

        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                local = node_text(spec.child_by_field_name("name"))
                exported = node_text(spec.child_by_field_name("alias")) or local
                self.sheet.exports.append(ExportBinding(
                    name=exported,
                    file=self.file,
                    line=line,
                    local_name=local,
                    reexport_source=source,
                ))
                if source is not None:
                    # Re-exporting counts as importing from the source module
                    self.sheet.imports.append(ImportBinding(
                        imported_name=local, local_alias=None, source=source,
                        file=self.file, line=line,
                    ))
                else:
                    self.exported.add(local)
            return

        if source is not None:
            # export * from './x'  /  export * as ns from './x'
            self.sheet.imports.append(ImportBinding(
                imported_name="*", local_alias=None, source=source,
                file=self.file, line=line,
            ))
            namespace = next((c for c in node.named_children if c.type == "namespace_export"), None)
            if namespace is not None:
                alias = next((c for c in namespace.named_children if c.type in ("identifier", "string")), None)
                if alias is not None:
                    self.sheet.exports.append(ExportBinding(
                        name=node_text(alias).strip("'\""), file=self.file, line=line,
                        reexport_source=source,
                    ))

    def _mark_exported(self) -> None:
        for decl in self.sheet.functions:
            decl.exported = decl.name in self.exported
        for cls in self.sheet.classes:
            cls.declaration.exported = cls.name in self.exported


# ── Node helpers ────────────────────────────────────────────────


def _normalize_call(callee, scope: _Scope) -> CallSite | None:
    """Normalize the four supported callee shapes into a CallSite.

    ``name()``, ``obj.method()``, ``this.method()`` (qualifier = declaring
    class) and ``this.field.method()`` (qualifier = field name).
    """
    if callee is None:
        return None
    caller = scope.declaration.qualified_name if scope.declaration is not None else None

    if callee.type == "identifier":
        return CallSite(caller=caller, callee=node_text(callee))

    if callee.type != "member_expression":
        return None

    prop = callee.child_by_field_name("property")
    obj = callee.child_by_field_name("object")
    if prop is None or obj is None or prop.type not in _MEMBER_NAME_TYPES:
        return None
    method = node_text(prop)

    if obj.type == "this":
        qualifier = scope.cls.name if scope.cls is not None else None
        return CallSite(caller=caller, callee=method, qualifier=qualifier, via_this=True)

    if obj.type == "identifier":
        return CallSite(caller=caller, callee=method, qualifier=node_text(obj))

    if obj.type == "member_expression":
        inner = obj.child_by_field_name("property")
        if inner is not None and inner.type in _MEMBER_NAME_TYPES:
            inner_obj = obj.child_by_field_name("object")
            return CallSite(
                caller=caller,
                callee=method,
                qualifier=node_text(inner),
                via_this=inner_obj is not None and inner_obj.type == "this",
            )
    return None


def _superclass_name(class_node) -> str | None:
    for child in class_node.children:
        if child.type != "class_heritage":
            continue
        for part in child.named_children:
            expr = part
            if part.type == "extends_clause":
                expr = part.child_by_field_name("value") or (
                    part.named_children[0] if part.named_children else None
                )
            if expr is not None and expr.type in ("identifier", "member_expression"):
                return node_text(expr)
            if expr is not None and expr.type == "call_expression":
                # Mixin application: class A extends withFoo(Base)
                args = expr.child_by_field_name("arguments")
                inner = args.named_children[-1] if args is not None and args.named_children else None
                if inner is not None and inner.type == "identifier":
                    return node_text(inner)
    return None


def _object_keys(obj_node) -> list[str]:
    keys: list[str] = []
    for child in obj_node.named_children:
        if child.type == "pair":
            key = child.child_by_field_name("key")
            text = node_text(key).strip("'\"")
            if text:
                keys.append(text)
        elif child.type in ("shorthand_property_identifier", "method_definition"):
            name = child if child.type == "shorthand_property_identifier" else child.child_by_field_name("name")
            if name is not None:
                keys.append(node_text(name))
    return keys


def _string_value(node) -> str | None:
    if node is None or node.type != "string":
        return None
    return node_text(node)[1:-1]


def _declared_names(declaration) -> list[str]:
    kind = node_kind(declaration)
    if kind in (NodeKind.FUNCTION_DECLARATION, NodeKind.CLASS_DECLARATION):
        name = declaration.child_by_field_name("name")
        return [node_text(name)] if name is not None else []
    if kind == NodeKind.VARIABLE_DECLARATION:
        names: list[str] = []
        for child in declaration.named_children:
            if child.type == "variable_declarator":
                names.extend(n for n, _ in _pattern_names(child.child_by_field_name("name")))
        return names
    name = declaration.child_by_field_name("name")
    return [node_text(name)] if name is not None else []


def _pattern_names(pattern) -> list[tuple[str, int]]:
    """Identifiers bound by a declarator name (plain, object or array pattern)."""
    if pattern is None:
        return []
    if pattern.type == "identifier":
        return [(node_text(pattern), node_line(pattern))]

    names: list[tuple[str, int]] = []
    for child in pattern.named_children:
        if child.type in ("identifier", "shorthand_property_identifier_pattern"):
            names.append((node_text(child), node_line(child)))
        elif child.type == "pair_pattern":
            names.extend(_pattern_names(child.child_by_field_name("value")))
        elif child.type in ("object_pattern", "array_pattern", "rest_pattern"):
            names.extend(_pattern_names(child))
        elif child.type in ("assignment_pattern", "object_assignment_pattern"):
            names.extend(_pattern_names(child.child_by_field_name("left")))
    return names
