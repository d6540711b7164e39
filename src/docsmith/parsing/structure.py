"""Structural queries over declaration nodes.

These are evaluated lazily by the context extractor. Any of them may raise on
unusual syntax; callers are expected to treat the result as best-effort.
"""

from docsmith.parsing.models import Declaration, DeclarationKind, Parameter

FUNCTION_INITIALIZERS = frozenset({"arrow_function", "function_expression", "function"})


def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _annotation_text(node) -> str | None:
    """Text of a type annotation without its leading colon."""
    if node is None:
        return None
    text = _text(node).strip()
    if node.type == "type_annotation" and text.startswith(":"):
        text = text[1:].strip()
    return text or None


def callable_node(decl: Declaration):
    """The node carrying parameters and return type for a declaration.

    For variables bound to a function expression this is the initializer;
    for everything else it is the declaration node itself. Returns None when
    the declaration is not callable.
    """
    if decl.kind == DeclarationKind.VARIABLE:
        value = decl.node.child_by_field_name("value")
        if value is not None and value.type in FUNCTION_INITIALIZERS:
            return value
        return None
    return decl.node


def parameters(decl: Declaration) -> list[Parameter]:
    """Formal parameters of a function-like declaration."""
    node = callable_node(decl)
    if node is None:
        return []

    single = node.child_by_field_name("parameter")
    if single is not None:
        # `x => x * 2`
        return [Parameter(name=_text(single))]

    params_node = node.child_by_field_name("parameters")
    if params_node is None:
        return []

    result: list[Parameter] = []
    for param in params_node.named_children:
        if param.type in ("required_parameter", "optional_parameter"):
            pattern = param.child_by_field_name("pattern")
            value = param.child_by_field_name("value")
            result.append(
                Parameter(
                    name=_text(pattern) if pattern is not None else _text(param),
                    type=_annotation_text(param.child_by_field_name("type")),
                    optional=param.type == "optional_parameter" or value is not None,
                    default=_text(value) if value is not None else None,
                )
            )
        elif param.type == "assignment_pattern":
            left = param.child_by_field_name("left")
            right = param.child_by_field_name("right")
            result.append(
                Parameter(
                    name=_text(left) if left is not None else _text(param),
                    optional=True,
                    default=_text(right) if right is not None else None,
                )
            )
        elif param.type == "comment":
            continue
        else:
            result.append(Parameter(name=_text(param)))
    return result


def return_type(decl: Declaration) -> str | None:
    """Declared return type of a function-like declaration, if annotated."""
    node = callable_node(decl)
    if node is None:
        return None
    return _annotation_text(node.child_by_field_name("return_type"))


def value_type(decl: Declaration) -> str | None:
    """Declared type of a property, accessor or variable."""
    if decl.kind == DeclarationKind.GET_ACCESSOR:
        return return_type(decl)
    if decl.kind == DeclarationKind.SET_ACCESSOR:
        params = parameters(decl)
        return params[0].type if params else None
    return _annotation_text(decl.node.child_by_field_name("type"))


def member_names(decl: Declaration) -> list[str]:
    """Member names of an interface or enum body."""
    body = decl.node.child_by_field_name("body")
    if body is None:
        return []
    names: list[str] = []
    for member in body.named_children:
        if member.type in ("property_identifier", "string"):
            names.append(_text(member))
            continue
        name = member.child_by_field_name("name")
        if name is not None:
            names.append(_text(name))
    return names


def alias_type(decl: Declaration) -> str | None:
    """Underlying type text of a type alias."""
    value = decl.node.child_by_field_name("value")
    return _text(value) if value is not None else None
