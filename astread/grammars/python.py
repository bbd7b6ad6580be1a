"""Python grammar adapter over ``tree-sitter-python`` trees.

Python has no export statement; a module-level ``__all__`` list stands in
for named exports.  ``name = lambda ...`` is the variable-bound function
form, and ``@staticmethod`` marks static methods.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

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
from ..signatures import format_params, render_bound_signature, render_signature
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

IMPORT_TYPES = frozenset({"import_statement", "import_from_statement", "future_import_statement"})
SKIPPED_PARAM_TYPES = frozenset({"comment", "keyword_separator", "positional_separator"})

_STRING_RE = re.compile(r"^[rRbBuUfF]*(\"\"\"|'''|\"|')(.*)\1$", re.DOTALL)

SCOPES: Dict[str, str] = {
    "class_definition": "class",
    "function_definition": "function",
}

# Decorator name -> search modifier
_DECORATOR_MODIFIERS: Dict[str, str] = {
    "staticmethod": "static",
    "classmethod": "classmethod",
    "property": "get",
}


# ===================================================================
# Node helpers
# ===================================================================

def _outer(definition: Any) -> Any:
    """Return the ``decorated_definition`` wrapping *definition*, if any."""
    parent = definition.parent
    if parent is not None and parent.type == "decorated_definition":
        return parent
    return definition


def _unwrap(node: Any) -> Any:
    if node.type == "decorated_definition":
        inner = node.child_by_field_name("definition")
        return inner if inner is not None else node
    return node


def _decorator_names(definition: Any) -> List[str]:
    outer = _outer(definition)
    names: List[str] = []
    for child in outer.children:
        if child.type != "decorator" or not child.named_children:
            continue
        expr = child.named_children[0]
        if expr.type == "call":
            expr = expr.child_by_field_name("function")
        names.append(node_text(expr))
    return names


def _is_async(node: Any) -> bool:
    return has_child_type(node, "async")


def _string_value(node: Any) -> str:
    text = node_text(node)
    match = _STRING_RE.match(text)
    return match.group(2) if match else text


def _simple_param(param: Any) -> Optional[str]:
    if param.type == "identifier":
        return node_text(param)
    if param.type == "typed_parameter" and param.named_children:
        first = param.named_children[0]
        if first.type == "identifier":
            return node_text(first)
    return None


def _param_names(func: Any) -> List[Optional[str]]:
    params = func.child_by_field_name("parameters")
    if params is None:
        return []
    return [_simple_param(p) for p in params.named_children if p.type not in SKIPPED_PARAM_TYPES]


def _docstring(definition: Any) -> Optional[str]:
    """Extract the docstring from a function / class definition node."""
    body = definition.child_by_field_name("body")
    if body is None:
        return None
    for child in body.named_children:
        if child.type == "comment":
            continue
        if child.type == "expression_statement" and child.named_children:
            expr = child.named_children[0]
            if expr.type == "string":
                return _string_value(expr).strip() or None
        break
    return None


def _class_methods(class_node: Any) -> List[Any]:
    """``function_definition`` nodes declared directly in the class body."""
    body = class_node.child_by_field_name("body")
    if body is None:
        return []
    methods = []
    for child in body.named_children:
        inner = _unwrap(child)
        if inner.type == "function_definition" and inner.child_by_field_name("name") is not None:
            methods.append(inner)
    return methods


def _enclosing_class(definition: Any) -> Optional[Any]:
    block = _outer(definition).parent
    if block is not None and block.type == "block":
        owner = block.parent
        if owner is not None and owner.type == "class_definition":
            return owner
    return None


def _superclass(class_node: Any) -> Optional[str]:
    args = class_node.child_by_field_name("superclasses")
    if args is None:
        return None
    for arg in args.named_children:
        if arg.type in ("identifier", "attribute"):
            return node_text(arg)
    return None


def _bound_lambda(assignment: Any) -> Optional[Any]:
    left = assignment.child_by_field_name("left")
    right = assignment.child_by_field_name("right")
    if left is None or left.type != "identifier" or right is None or right.type != "lambda":
        return None
    return right


def _is_module_level(assignment: Any) -> bool:
    statement = assignment.parent
    return (
        statement is not None
        and statement.type == "expression_statement"
        and statement.parent is not None
        and statement.parent.type == "module"
    )


def _call_name(func: Optional[Any]) -> Optional[str]:
    """Resolve a call's function node to a dotted name string."""
    if func is None:
        return None
    if func.type == "identifier":
        return node_text(func)
    if func.type == "attribute":
        parts: List[str] = []
        current = func
        while current is not None and current.type == "attribute":
            attr = current.child_by_field_name("attribute")
            if attr is not None:
                parts.append(node_text(attr))
            current = current.child_by_field_name("object")
        if current is not None and current.type == "identifier":
            parts.append(node_text(current))
        return ".".join(reversed(parts)) if parts else None
    if func.type == "call":
        return _call_name(func.child_by_field_name("function"))
    return None


def _method_modifiers(definition: Any) -> List[str]:
    modifiers = [_DECORATOR_MODIFIERS[d] for d in _decorator_names(definition) if d in _DECORATOR_MODIFIERS]
    if _is_async(definition):
        modifiers.append("async")
    return modifiers


# ===================================================================
# Adapter
# ===================================================================

class PythonAdapter(GrammarAdapter):
    """Maps Python syntax trees onto declaration records."""

    languages = ("python",)

    # ------------------------------------------------------------------
    # Outline
    # ------------------------------------------------------------------

    def classify(self, root: Any, doc: SourceDocument) -> Outline:
        class_nodes: List[Any] = []
        candidates: List[FunctionRecord] = []
        imports: List[ImportRecord] = []
        exports: List[ExportRecord] = []

        for node in walk(root):
            if node.type == "class_definition" and node.child_by_field_name("name") is not None:
                class_nodes.append(node)
            elif node.type == "function_definition" and node.child_by_field_name("name") is not None:
                candidates.append(self._function(node, doc))
            elif node.type == "assignment":
                record = self._bound_function(node, doc)
                if record is not None:
                    candidates.append(record)
                elif _is_module_level(node):
                    exports.extend(self._dunder_all(node, doc))
            elif node.type == "augmented_assignment" and _is_module_level(node):
                exports.extend(self._dunder_all(node, doc))
            elif node.type in IMPORT_TYPES:
                imports.extend(self._imports(node, doc))

        spans = [(start_line(_outer(n)), end_line(n)) for n in class_nodes]
        functions = [f for f in candidates if not within_spans(f.line, spans)]
        classes = [self._class_record(n, doc) for n in class_nodes]
        return Outline(functions=functions, classes=classes, imports=imports, exports=exports)

    @staticmethod
    def _function(node: Any, doc: SourceDocument) -> FunctionRecord:
        name = node_text(node.child_by_field_name("name"))
        modifiers = ("async",) if _is_async(node) else ()
        return FunctionRecord(
            name=name,
            line=start_line(node),
            column=column(node, doc),
            is_async=bool(modifiers),
            signature=render_signature(name, _param_names(node), modifiers, keyword="def"),
            type="function_declaration",
            jsdoc=_docstring(node),
        )

    @staticmethod
    def _bound_function(assignment: Any, doc: SourceDocument) -> Optional[FunctionRecord]:
        value = _bound_lambda(assignment)
        if value is None:
            return None
        name = node_text(assignment.child_by_field_name("left"))
        return FunctionRecord(
            name=name,
            line=start_line(assignment),
            column=column(assignment, doc),
            is_async=False,
            signature=render_bound_signature(name, f"lambda {format_params(_param_names(value))}".rstrip()),
            type="lambda",
        )

    @staticmethod
    def _class_record(node: Any, doc: SourceDocument) -> ClassRecord:
        name = node_text(node.child_by_field_name("name"))
        methods = []
        for method in _class_methods(node):
            method_name = node_text(method.child_by_field_name("name"))
            is_static = "staticmethod" in _decorator_names(method)
            is_async = _is_async(method)
            modifiers = [m for m, flag in (("static", is_static), ("async", is_async)) if flag]
            methods.append(MethodRecord(
                name=method_name,
                line=start_line(method),
                is_async=is_async,
                is_static=is_static,
                signature=render_signature(method_name, _param_names(method), modifiers, keyword="def"),
                class_name=name,
            ))
        return ClassRecord(
            name=name,
            line=start_line(node),
            column=column(node, doc),
            methods=methods,
            extends=_superclass(node),
            jsdoc=_docstring(node),
        )

    @staticmethod
    def _imports(node: Any, doc: SourceDocument) -> List[ImportRecord]:
        line = start_line(node)
        raw = doc.raw_line(line)
        names = node.children_by_field_name("name")

        if node.type == "import_statement":
            records = []
            for name in names:
                if name.type == "aliased_import":
                    source = node_text(name.child_by_field_name("name"))
                    bound = node_text(name.child_by_field_name("alias"))
                else:
                    source = bound = node_text(name)
                records.append(ImportRecord(source=source, imported=[bound], line=line, raw=raw))
            return records

        module = node.child_by_field_name("module_name")
        source = node_text(module) if module is not None else "__future__"
        imported = ["*"] if first_child_of_type(node, "wildcard_import") is not None else []
        for name in names:
            if name.type == "aliased_import":
                name = name.child_by_field_name("name")
            imported.append(node_text(name))
        return [ImportRecord(source=source, imported=imported, line=line, raw=raw)]

    @staticmethod
    def _dunder_all(assignment: Any, doc: SourceDocument) -> List[ExportRecord]:
        left = assignment.child_by_field_name("left")
        right = assignment.child_by_field_name("right")
        if left is None or node_text(left) != "__all__" or right is None:
            return []
        if right.type not in ("list", "tuple"):
            return []
        records = []
        for element in right.named_children:
            if element.type == "string":
                line = start_line(element)
                records.append(ExportRecord(type="named", line=line, raw=doc.raw_line(line),
                                            name=_string_value(element)))
        return records

    # ------------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------------

    def resolve(self, root: Any, qualifier: Qualifier) -> Optional[TargetSpan]:
        if qualifier.class_name:
            return self._find_method(root, qualifier.name, qualifier.class_name)
        if qualifier.kind == "class":
            for node in walk(root):
                if node.type == "class_definition" and node_text(node.child_by_field_name("name")) == qualifier.name:
                    outer = _outer(node)
                    return TargetSpan("class", qualifier.name, start_line(outer), end_line(outer))
            return None
        if qualifier.kind == "method":
            return self._find_method(root, qualifier.name)
        if qualifier.kind == "function":
            span = self._find_function(root, qualifier.name)
            return span if span is not None else self._find_method(root, qualifier.name)
        return None

    @staticmethod
    def _find_method(root: Any, name: str, class_name: Optional[str] = None) -> Optional[TargetSpan]:
        for node in walk(root):
            if node.type != "class_definition":
                continue
            owner = node_text(node.child_by_field_name("name"))
            if class_name is not None and owner != class_name:
                continue
            for method in _class_methods(node):
                if node_text(method.child_by_field_name("name")) == name:
                    outer = _outer(method)
                    return TargetSpan("method", name, start_line(outer), end_line(outer), owner)
        return None

    @staticmethod
    def _find_function(root: Any, name: str) -> Optional[TargetSpan]:
        spans = [(start_line(_outer(n)), end_line(n)) for n in walk(root) if n.type == "class_definition"]
        for node in walk(root):
            if node.type == "function_definition":
                matched = node_text(node.child_by_field_name("name")) == name
                span_node = _outer(node)
            elif node.type == "assignment" and _bound_lambda(node) is not None:
                matched = node_text(node.child_by_field_name("left")) == name
                span_node = node
            else:
                continue
            if matched and not within_spans(start_line(node), spans):
                return TargetSpan("function", name, start_line(span_node), end_line(span_node))
        return None

    # ------------------------------------------------------------------
    # Search symbols
    # ------------------------------------------------------------------

    def symbols(self, root: Any, doc: SourceDocument) -> List[Symbol]:
        found: List[Symbol] = []
        for node in walk(root):
            if node.type == "function_definition":
                name = node.child_by_field_name("name")
                if name is None:
                    continue
                if _enclosing_class(node) is not None:
                    found.append(self._symbol(node, doc, node_text(name), "class_method", "function",
                                              _method_modifiers(node), _docstring(node)))
                else:
                    modifiers = ["async"] if _is_async(node) else []
                    found.append(self._symbol(node, doc, node_text(name), "function_declaration", "function",
                                              modifiers, _docstring(node)))
            elif node.type == "class_definition":
                name = node.child_by_field_name("name")
                if name is not None:
                    found.append(self._symbol(node, doc, node_text(name), "class_declaration", "class",
                                              jsdoc=_docstring(node)))
            elif node.type == "assignment":
                left = node.child_by_field_name("left")
                if left is None or left.type != "identifier":
                    continue
                if _bound_lambda(node) is not None:
                    found.append(self._symbol(node, doc, node_text(left), "lambda", "function"))
                else:
                    found.append(self._symbol(node, doc, node_text(left), "variable", "variable"))
                    if _is_module_level(node):
                        for record in self._dunder_all(node, doc):
                            found.append(Symbol(name=record.name or "", line=record.line, column=0,
                                                match_type="export", category="export"))
            elif node.type in IMPORT_TYPES:
                for record in self._imports(node, doc):
                    found.append(self._symbol(node, doc, record.source, "import", "import"))
            elif node.type == "call":
                callee = _call_name(node.child_by_field_name("function"))
                if callee:
                    found.append(self._symbol(node, doc, callee, "function_call", "call"))
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
