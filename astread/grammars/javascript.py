"""Reference grammar adapter: JavaScript, JSX, TypeScript and TSX.

Node kinds follow ``tree-sitter-javascript`` / ``tree-sitter-typescript``.
Both ES-module and CommonJS (``require`` / ``module.exports``) forms are
recognised and reported through the same record shapes.
"""

from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from ..models import (
    ClassRecord,
    ExportRecord,
    FunctionRecord,
    ImportRecord,
    MethodRecord,
    Outline,
    Qualifier,
    SourceDocument,
    Symbol,
    TargetSpan,
)
from ..parser import walk
from ..signatures import render_bound_signature, render_signature
from .base import (
    GrammarAdapter,
    column,
    end_line,
    first_child_of_type,
    has_child_type,
    node_text,
    scope_path,
    start_line,
    within_spans,
)

FUNCTION_DECLARATION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
FUNCTION_VALUE_TYPES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration"})
CLASS_EXPRESSION_TYPES = frozenset({"class"})
FIELD_TYPES = frozenset({"field_definition", "public_field_definition"})
VARIABLE_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
TS_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})
METHOD_NAME_TYPES = frozenset({"property_identifier", "private_property_identifier"})

# Declarations that bind exactly one name when exported
NAMED_DECLARATION_TYPES = FUNCTION_DECLARATION_TYPES | CLASS_TYPES | frozenset({
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
})

# Wrappers a leading doc comment is attached to instead of the inner node
_DOC_WRAPPERS = frozenset({"export_statement"}) | VARIABLE_DECLARATION_TYPES

SCOPES: Dict[str, str] = {
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "function_declaration": "function",
    "generator_function_declaration": "function",
}


class _Member(NamedTuple):
    """A class member with a function-like body."""

    name: str
    node: Any
    function: Any
    is_static: bool
    is_async: bool
    modifiers: Tuple[str, ...]


# ===================================================================
# Node helpers
# ===================================================================

def _is_async(node: Any) -> bool:
    return has_child_type(node, "async")


def _string_value(node: Optional[Any]) -> str:
    text = node_text(node)
    if node is not None and node.type in ("string", "template_string") and len(text) >= 2:
        return text[1:-1]
    return text


def _is_exported_expression(node: Any) -> bool:
    """``export default function foo() {}`` may parse as a named expression."""
    return (
        node.parent is not None
        and node.parent.type == "export_statement"
        and node.child_by_field_name("name") is not None
    )


def _is_class_node(node: Any) -> bool:
    if node.type in CLASS_TYPES:
        return node.child_by_field_name("name") is not None
    return node.type in CLASS_EXPRESSION_TYPES and _is_exported_expression(node)


def _is_declared_function(node: Any) -> bool:
    if node.type in FUNCTION_DECLARATION_TYPES:
        return node.child_by_field_name("name") is not None
    return node.type in FUNCTION_VALUE_TYPES and node.type != "arrow_function" and _is_exported_expression(node)


def _bound_function_value(declarator: Any) -> Optional[Any]:
    """Return the function expression bound by ``name = <function>``, if any."""
    name = declarator.child_by_field_name("name")
    value = declarator.child_by_field_name("value")
    if name is None or name.type != "identifier" or value is None:
        return None
    return value if value.type in FUNCTION_VALUE_TYPES else None


def _simple_param(param: Any) -> Optional[str]:
    if param.type == "identifier":
        return node_text(param)
    if param.type in TS_PARAMETER_TYPES and param.child_by_field_name("value") is None:
        pattern = param.child_by_field_name("pattern")
        if pattern is not None and pattern.type == "identifier":
            return node_text(pattern)
    return None


def _param_names(func: Any) -> List[Optional[str]]:
    single = func.child_by_field_name("parameter")
    if single is not None:
        return [_simple_param(single)]
    params = func.child_by_field_name("parameters")
    if params is None:
        return []
    return [_simple_param(p) for p in params.named_children if p.type != "comment"]


def _function_signature(func: Any, name: str) -> str:
    modifiers = ("async",) if _is_async(func) else ()
    if func.type == "arrow_function":
        return render_signature(name, _param_names(func), modifiers, arrow=True)
    return render_signature(name, _param_names(func), modifiers, keyword="function")


def _jsdoc(node: Any) -> Optional[str]:
    anchor = node
    while anchor.parent is not None and anchor.parent.type in _DOC_WRAPPERS:
        anchor = anchor.parent
    previous = anchor.prev_named_sibling
    if previous is not None and previous.type == "comment":
        text = node_text(previous)
        if text.startswith("/**"):
            return text
    return None


def _binding_names(pattern: Optional[Any]) -> List[str]:
    """Local names bound by an identifier or destructuring pattern."""
    if pattern is None:
        return []
    if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [node_text(pattern)]
    if pattern.type == "pair_pattern":
        return _binding_names(pattern.child_by_field_name("value"))
    if pattern.type in ("assignment_pattern", "object_assignment_pattern"):
        return _binding_names(pattern.child_by_field_name("left"))
    names: List[str] = []
    for child in pattern.named_children:
        names.extend(_binding_names(child))
    return names


def _superclass(class_node: Any) -> Optional[str]:
    heritage = first_child_of_type(class_node, "class_heritage")
    if heritage is None:
        return None
    clause = first_child_of_type(heritage, "extends_clause")
    if clause is not None:
        expr = clause.child_by_field_name("value")
        if expr is None and clause.named_children:
            expr = clause.named_children[0]
    else:
        expr = heritage.named_children[0] if heritage.named_children else None
    if expr is not None and expr.type in ("identifier", "member_expression", "type_identifier"):
        return node_text(expr)
    return None


def _class_members(class_node: Any) -> List[_Member]:
    body = class_node.child_by_field_name("body")
    if body is None:
        return []
    members: List[_Member] = []
    for member in body.named_children:
        if member.type == "method_definition":
            name_node = member.child_by_field_name("name")
            if name_node is None or name_node.type not in METHOD_NAME_TYPES:
                continue
            function = member
        elif member.type in FIELD_TYPES:
            name_node = member.child_by_field_name("property")
            if name_node is None:
                name_node = member.child_by_field_name("name")
            function = member.child_by_field_name("value")
            if name_node is None or function is None or function.type not in FUNCTION_VALUE_TYPES:
                continue
        else:
            continue

        is_static = any(child.type.startswith("static") for child in member.children)
        is_async = _is_async(function)
        modifiers: List[str] = []
        if is_static:
            modifiers.append("static")
        if is_async:
            modifiers.append("async")
        accessibility = first_child_of_type(member, "accessibility_modifier")
        if accessibility is not None:
            modifiers.append(node_text(accessibility))
        modifiers.extend(kind for kind in ("get", "set") if has_child_type(member, kind))
        members.append(_Member(
            name=node_text(name_node),
            node=member,
            function=function,
            is_static=is_static,
            is_async=is_async,
            modifiers=tuple(modifiers),
        ))
    return members


def _method_signature(member: _Member) -> str:
    modifiers = [m for m in ("static", "async", "get", "set") if m in member.modifiers]
    return render_signature(member.name, _param_names(member.function), modifiers)


def _member_start(member: Any) -> int:
    """First line of a class member, including decorators listed before it."""
    first = member
    previous = member.prev_named_sibling
    while previous is not None and previous.type == "decorator":
        first = previous
        previous = previous.prev_named_sibling
    return start_line(first)


def _default_export_name(target: Optional[Any]) -> Optional[str]:
    if target is None:
        return None
    if target.type == "identifier":
        return node_text(target)
    if target.type in FUNCTION_DECLARATION_TYPES | FUNCTION_VALUE_TYPES | CLASS_TYPES | CLASS_EXPRESSION_TYPES:
        name = target.child_by_field_name("name")
        return node_text(name) if name is not None else None
    return None


def _declared_names(declaration: Any) -> List[str]:
    if declaration.type in NAMED_DECLARATION_TYPES:
        name = declaration.child_by_field_name("name")
        return [node_text(name)] if name is not None else []
    if declaration.type in VARIABLE_DECLARATION_TYPES:
        names: List[str] = []
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                names.extend(_binding_names(declarator.child_by_field_name("name")))
        return names
    return []


def _is_module_exports(node: Optional[Any]) -> bool:
    if node is None or node.type != "member_expression":
        return False
    obj = node.child_by_field_name("object")
    return (
        obj is not None
        and obj.type == "identifier"
        and node_text(obj) == "module"
        and node_text(node.child_by_field_name("property")) == "exports"
    )


def _object_key(prop: Any) -> Optional[str]:
    if prop.type == "shorthand_property_identifier":
        return node_text(prop)
    if prop.type == "pair":
        return _string_value(prop.child_by_field_name("key")) or None
    if prop.type == "method_definition":
        return node_text(prop.child_by_field_name("name")) or None
    return None


def _require_source(call: Any) -> Optional[Any]:
    """Return the string literal of a ``require("...")`` call."""
    func = call.child_by_field_name("function")
    if func is None or func.type != "identifier" or node_text(func) != "require":
        return None
    args = call.child_by_field_name("arguments")
    if args is None:
        return None
    literals = [a for a in args.named_children if a.type != "comment"]
    if literals and literals[0].type == "string":
        return literals[0]
    return None


def _callee_name(func: Optional[Any]) -> str:
    if func is None:
        return ""
    if func.type == "identifier":
        return node_text(func)
    if func.type == "member_expression":
        obj = _callee_name(func.child_by_field_name("object"))
        prop = node_text(func.child_by_field_name("property"))
        if obj and prop:
            return f"{obj}.{prop}"
        return prop or obj
    return ""


def _declaration_kind(declarator: Any) -> Optional[str]:
    parent = declarator.parent
    if parent is None or parent.type not in VARIABLE_DECLARATION_TYPES or not parent.children:
        return None
    return node_text(parent.children[0])


def _is_exported(node: Any) -> bool:
    current = node.parent
    while current is not None and current.type in VARIABLE_DECLARATION_TYPES:
        current = current.parent
    return current is not None and current.type == "export_statement"


# ===================================================================
# Adapter
# ===================================================================

class JavaScriptAdapter(GrammarAdapter):
    """Maps JavaScript-family syntax trees onto declaration records."""

    languages = ("javascript", "typescript", "tsx")

    # ------------------------------------------------------------------
    # Outline
    # ------------------------------------------------------------------

    def classify(self, root: Any, doc: SourceDocument) -> Outline:
        class_nodes: List[Any] = []
        candidates: List[FunctionRecord] = []
        imports: List[ImportRecord] = []
        exports: List[ExportRecord] = []

        for node in walk(root):
            kind = node.type
            if _is_class_node(node):
                class_nodes.append(node)
            elif _is_declared_function(node):
                candidates.append(self._declared_function(node, doc))
            elif kind == "variable_declarator":
                record = self._bound_function(node, doc)
                if record is not None:
                    candidates.append(record)
            elif kind == "import_statement":
                imports.append(self._es_import(node, doc))
            elif kind == "call_expression":
                record = self._require_import(node, doc)
                if record is not None:
                    imports.append(record)
            elif kind == "export_statement":
                exports.extend(self._es_exports(node, doc))
            elif kind == "assignment_expression":
                exports.extend(self._commonjs_exports(node, doc))

        # Functions inside a class span surface as that class's methods instead
        spans = [(start_line(n), end_line(n)) for n in class_nodes]
        functions = [f for f in candidates if not within_spans(f.line, spans)]
        classes = [self._class_record(n, doc) for n in class_nodes]
        return Outline(functions=functions, classes=classes, imports=imports, exports=exports)

    @staticmethod
    def _declared_function(node: Any, doc: SourceDocument) -> FunctionRecord:
        name = node_text(node.child_by_field_name("name"))
        return FunctionRecord(
            name=name,
            line=start_line(node),
            column=column(node, doc),
            is_async=_is_async(node),
            signature=_function_signature(node, name),
            type="function_declaration",
            jsdoc=_jsdoc(node),
        )

    @staticmethod
    def _bound_function(declarator: Any, doc: SourceDocument) -> Optional[FunctionRecord]:
        value = _bound_function_value(declarator)
        if value is None:
            return None
        name = node_text(declarator.child_by_field_name("name"))
        own_name = node_text(value.child_by_field_name("name"))
        return FunctionRecord(
            name=name,
            line=start_line(declarator),
            column=column(declarator, doc),
            is_async=_is_async(value),
            signature=render_bound_signature(name, _function_signature(value, own_name)),
            type="arrow_function" if value.type == "arrow_function" else "function_expression",
            jsdoc=_jsdoc(declarator),
        )

    @staticmethod
    def _class_record(node: Any, doc: SourceDocument) -> ClassRecord:
        name = node_text(node.child_by_field_name("name"))
        methods = [
            MethodRecord(
                name=member.name,
                line=start_line(member.node),
                is_async=member.is_async,
                is_static=member.is_static,
                signature=_method_signature(member),
                class_name=name,
            )
            for member in _class_members(node)
        ]
        return ClassRecord(
            name=name,
            line=start_line(node),
            column=column(node, doc),
            methods=methods,
            extends=_superclass(node),
            jsdoc=_jsdoc(node),
        )

    @staticmethod
    def _es_import(node: Any, doc: SourceDocument) -> ImportRecord:
        source = node.child_by_field_name("source")
        imported: List[str] = []

        # TypeScript: import fs = require("fs")
        require_clause = first_child_of_type(node, "import_require_clause")
        if require_clause is not None:
            source = require_clause.child_by_field_name("source")
            if source is None:
                source = first_child_of_type(require_clause, "string")
            ident = first_child_of_type(require_clause, "identifier")
            if ident is not None:
                imported.append(node_text(ident))

        clause = first_child_of_type(node, "import_clause")
        if clause is not None:
            for child in clause.named_children:
                if child.type == "identifier":
                    imported.append(node_text(child))
                elif child.type == "namespace_import":
                    ident = first_child_of_type(child, "identifier")
                    imported.append(f"* as {node_text(ident)}")
                elif child.type == "named_imports":
                    imported.extend(
                        _string_value(spec.child_by_field_name("name"))
                        for spec in child.named_children
                        if spec.type == "import_specifier"
                    )

        line = start_line(node)
        return ImportRecord(source=_string_value(source), imported=imported, line=line, raw=doc.raw_line(line))

    @staticmethod
    def _require_import(call: Any, doc: SourceDocument) -> Optional[ImportRecord]:
        literal = _require_source(call)
        if literal is None:
            return None
        imported = ["unknown"]
        parent = call.parent
        if parent is not None and parent.type == "variable_declarator":
            imported = _binding_names(parent.child_by_field_name("name")) or imported
        line = start_line(call)
        return ImportRecord(source=_string_value(literal), imported=imported, line=line, raw=doc.raw_line(line))

    @staticmethod
    def _es_exports(node: Any, doc: SourceDocument) -> List[ExportRecord]:
        line = start_line(node)
        raw = doc.raw_line(line)
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")

        if has_child_type(node, "default"):
            target = declaration if declaration is not None else value
            return [ExportRecord(type="default", line=line, raw=raw, name=_default_export_name(target))]

        if declaration is not None:
            return [ExportRecord(type="named", line=line, raw=raw, name=n) for n in _declared_names(declaration)]

        clause = first_child_of_type(node, "export_clause")
        if clause is not None:
            records = []
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                exported = spec.child_by_field_name("alias")
                if exported is None:
                    exported = spec.child_by_field_name("name")
                records.append(ExportRecord(type="named", line=line, raw=raw, name=_string_value(exported)))
            return records

        namespace = first_child_of_type(node, "namespace_export")
        if namespace is not None:
            names = [c for c in namespace.named_children if c.type != "comment"]
            name = _string_value(names[0]) if names else "*"
            return [ExportRecord(type="named", line=line, raw=raw, name=name)]
        if has_child_type(node, "*"):
            return [ExportRecord(type="named", line=line, raw=raw, name="*")]

        # TypeScript: export = expression
        if has_child_type(node, "="):
            values = [c for c in node.named_children if c.type not in ("comment", "decorator")]
            target = values[0] if values else None
            return [ExportRecord(type="default", line=line, raw=raw, name=_default_export_name(target))]
        return []

    @staticmethod
    def _commonjs_exports(node: Any, doc: SourceDocument) -> List[ExportRecord]:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "member_expression":
            return []
        line = start_line(node)
        raw = doc.raw_line(line)
        obj = left.child_by_field_name("object")
        prop_name = node_text(left.child_by_field_name("property"))

        # exports.x = ... / module.exports.x = ...
        if obj is not None and ((obj.type == "identifier" and node_text(obj) == "exports") or _is_module_exports(obj)):
            return [ExportRecord(type="named", line=line, raw=raw, name=prop_name)]
        if not _is_module_exports(left):
            return []

        if right.type == "object":
            records = []
            for prop in right.named_children:
                key = _object_key(prop)
                if key:
                    prop_line = start_line(prop)
                    records.append(ExportRecord(type="named", line=prop_line, raw=doc.raw_line(prop_line), name=key))
            return records
        return [ExportRecord(type="default", line=line, raw=raw, name=_default_export_name(right))]

    # ------------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------------

    def resolve(self, root: Any, qualifier: Qualifier) -> Optional[TargetSpan]:
        if qualifier.class_name:
            return self._find_member(root, qualifier.name, qualifier.class_name)
        if qualifier.kind == "class":
            for node in walk(root):
                if _is_class_node(node) and node_text(node.child_by_field_name("name")) == qualifier.name:
                    return TargetSpan("class", qualifier.name, start_line(node), end_line(node))
            return None
        if qualifier.kind == "method":
            return self._find_member(root, qualifier.name)
        if qualifier.kind == "function":
            span = self._find_function(root, qualifier.name)
            return span if span is not None else self._find_member(root, qualifier.name)
        return None

    @staticmethod
    def _find_member(root: Any, name: str, class_name: Optional[str] = None) -> Optional[TargetSpan]:
        for node in walk(root):
            if not _is_class_node(node):
                continue
            owner = node_text(node.child_by_field_name("name"))
            if class_name is not None and owner != class_name:
                continue
            for member in _class_members(node):
                if member.name == name:
                    return TargetSpan("method", name, _member_start(member.node), end_line(member.node), owner)
        return None

    @staticmethod
    def _find_function(root: Any, name: str) -> Optional[TargetSpan]:
        spans = [(start_line(n), end_line(n)) for n in walk(root) if _is_class_node(n)]
        for node in walk(root):
            if _is_declared_function(node):
                matched = node_text(node.child_by_field_name("name")) == name
            elif node.type == "variable_declarator" and _bound_function_value(node) is not None:
                matched = node_text(node.child_by_field_name("name")) == name
            else:
                continue
            if matched and not within_spans(start_line(node), spans):
                return TargetSpan("function", name, start_line(node), end_line(node))
        return None

    # ------------------------------------------------------------------
    # Search symbols
    # ------------------------------------------------------------------

    def symbols(self, root: Any, doc: SourceDocument) -> List[Symbol]:
        found: List[Symbol] = []
        for node in walk(root):
            kind = node.type
            if _is_declared_function(node):
                modifiers = ["async"] if _is_async(node) else []
                if _is_exported(node):
                    modifiers.append("export")
                found.append(self._symbol(node, doc, node_text(node.child_by_field_name("name")),
                                          "function_declaration", "function", modifiers, _jsdoc(node)))
            elif kind == "variable_declarator":
                name_node = node.child_by_field_name("name")
                if name_node is None or name_node.type != "identifier":
                    continue
                value = _bound_function_value(node)
                modifiers = []
                declaration_kind = _declaration_kind(node)
                if declaration_kind:
                    modifiers.append(declaration_kind)
                if value is not None and _is_async(value):
                    modifiers.append("async")
                if _is_exported(node):
                    modifiers.append("export")
                if value is None:
                    match_type, category = "variable", "variable"
                else:
                    match_type = "arrow_function" if value.type == "arrow_function" else "function_expression"
                    category = "function"
                found.append(self._symbol(node, doc, node_text(name_node), match_type, category,
                                          modifiers, _jsdoc(node)))
            elif _is_class_node(node):
                modifiers = ["export"] if _is_exported(node) else []
                found.append(self._symbol(node, doc, node_text(node.child_by_field_name("name")),
                                          "class_declaration", "class", modifiers, _jsdoc(node)))
                for member in _class_members(node):
                    found.append(self._symbol(member.node, doc, member.name, "class_method", "function",
                                              list(member.modifiers), _jsdoc(member.node)))
            elif kind == "import_statement":
                record = self._es_import(node, doc)
                found.append(self._symbol(node, doc, record.source, "import", "import"))
            elif kind == "call_expression":
                literal = _require_source(node)
                if literal is not None:
                    found.append(self._symbol(node, doc, _string_value(literal), "commonjs_import", "import"))
                callee = _callee_name(node.child_by_field_name("function"))
                if callee:
                    found.append(self._symbol(node, doc, callee, "function_call", "call"))
            elif kind == "export_statement":
                for record in self._es_exports(node, doc):
                    found.append(self._symbol(node, doc, record.name or "default", "export", "export"))
            elif kind == "assignment_expression":
                for record in self._commonjs_exports(node, doc):
                    found.append(Symbol(
                        name=record.name or "default",
                        line=record.line,
                        column=column(node, doc) if record.line == start_line(node) else 0,
                        match_type="commonjs_export",
                        category="export",
                    ))
        return found

    @staticmethod
    def _symbol(
        node: Any,
        doc: SourceDocument,
        name: str,
        match_type: str,
        category: str,
        modifiers: Optional[List[str]] = None,
        jsdoc: Optional[str] = None,
    ) -> Symbol:
        return Symbol(
            name=name,
            line=start_line(node),
            column=column(node, doc),
            match_type=match_type,
            category=category,
            modifiers=tuple(modifiers or ()),
            scope=scope_path(node, SCOPES),
            jsdoc=jsdoc,
        )
