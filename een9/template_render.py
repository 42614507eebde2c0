"""Rendering of template elements into text."""

import json
from dataclasses import dataclass
from typing import Any

from een9.template_model import PartType
from een9.text_utils import TemplateError, is_uname, rstrip_space


@dataclass(frozen=True)
class _Value:
    """A local variable: either a JSON value or a reference to an element."""

    is_json: bool
    el_name: str = ""
    data: Any = None


def _json_value(data):
    return _Value(True, "", data)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _pretty(data):
    return json.dumps(data, indent=2, ensure_ascii=False)


def _compact(data):
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _descend(value, what, elements):
    if value.is_json:
        data = value.data
        if isinstance(data, list) and _is_int(what):
            if not 0 < what < len(data):
                raise TemplateError('Expression "array[integer]" caused out-of-bound situation')
            return _json_value(data[what])
        if isinstance(data, dict) and isinstance(what, str):
            if what not in data:
                raise TemplateError(f"No such key exception ({what})")
            return _json_value(data[what])
        raise TemplateError('Incorrect type of "json[json]" expression. Unallowed signature of [] operator')
    if not isinstance(what, str):
        raise TemplateError('Expression "element[X]" allowed only if X is string (json object)')
    if not is_uname(what):
        raise TemplateError(f'Expression "element[str]" has incorrect str ({what})')
    name = f"{value.el_name}.{what}"
    if name not in elements:
        raise TemplateError(f"Can't descend. No such element ({name})")
    return _Value(False, name)


def _evaluate(expr, elements, local_vars):
    root = expr["V"]
    if _is_int(root):
        value = local_vars[root]
    else:
        if root not in elements:
            raise TemplateError(f"Bad expression, no such element ({root})")
        value = _Value(False, root)
    for link in expr["C"]:
        if isinstance(link, dict):
            inner = _evaluate(link, elements, local_vars)
            if not inner.is_json:
                raise TemplateError('Expression "X[ element ]" is not allowed')
            link = inner.data
        value = _descend(value, link, elements)
    return value


class _Ditch:
    """Output accumulator that indents continuation lines."""

    def __init__(self):
        self._chunks = []
        self.line_width = 0

    def append(self, text, indent):
        lines = text.split("\n")
        self._chunks.append(("\n" + " " * indent).join(lines))
        if len(lines) > 1:
            self.line_width = indent + len(lines[-1])
        else:
            self.line_width += len(text)

    def text(self):
        return "".join(self._chunks)


class _Renderer:
    def __init__(self, elements, escape):
        self.elements = elements
        self.escape = escape
        self.ditch = _Ditch()

    def _check_arguments(self, element, args):
        if len(element.arguments) != len(args):
            raise TemplateError("Argument count mismatch")
        for index, (signature, value) in enumerate(zip(element.arguments, args)):
            if signature is True:
                if not value.is_json:
                    raise TemplateError("Expected json element argument, got element")
                continue
            if value.is_json:
                raise TemplateError("Expected element element argument, got json")
            entry = self.elements.get(value.el_name)
            if entry is None or not entry.is_element:
                raise TemplateError(
                    f"No such element, can't compare signatures of argument value ({value.el_name})"
                )
            if signature != entry.element.arguments:
                raise TemplateError(f"Signature of argument {index} does not match")

    def _render_base(self, name, data, indent):
        append = self.ditch.append
        if name == "jsinsert":
            append(rstrip_space(_pretty(data)), indent)
        elif name == "jesc":
            append(rstrip_space(self.escape(_pretty(data))), indent)
        elif name == "jesccomp":
            append(self.escape(_compact(data)), indent)
        elif name == "str2text":
            if not isinstance(data, str):
                raise TemplateError("str2text takes json string")
            append(self.escape(data), indent)
        elif name == "str2code":
            if not isinstance(data, str):
                raise TemplateError("str2code takes json string")
            append(data, indent)

    def over_parts(self, name, args, indent):
        entry = self.elements.get(name)
        if entry is None or not entry.is_element:
            raise TemplateError(f"Can't render. No such element ({name})")
        element = entry.element
        if not element.is_hidden:
            self._check_arguments(element, args)
        if element.base:
            self._render_base(name, args[0].data, indent)
            return
        for part in element.parts:
            if part.type is PartType.CODE:
                self.ditch.append(part.lines, indent)
            elif part.type is PartType.PUT:
                called = _evaluate(part.called_element, self.elements, args)
                if called.is_json:
                    raise TemplateError("Can't PUT json variable")
                passed = [_evaluate(arg, self.elements, args) for arg in part.passed_arguments]
                yield self.over_parts(called.el_name, passed, self.ditch.line_width)
            elif part.type is PartType.FOR_PUT:
                over = _evaluate(part.ref_over, self.elements, args)
                if not over.is_json:
                    raise TemplateError("Can't iterate over element")
                container = over.data
                if isinstance(container, list):
                    items = list(enumerate(container))
                elif isinstance(container, dict):
                    items = sorted(container.items(), key=lambda item: item[0])
                else:
                    raise TemplateError("Can't iterate over non-natalistic jsobject")
                yield self._over_container(part, items, args, self.ditch.line_width)
            elif part.type is PartType.REF_PUT:
                referred = _evaluate(part.ref_over, self.elements, args)
                yield self.over_parts(part.internal_element, [*args, referred], self.ditch.line_width)

    def _over_container(self, part, items, args, indent):
        slots = list(args)
        if part.where_key_var > -1:
            slots.append(None)
        if part.where_value_var > -1:
            slots.append(None)
        for position, (key, value) in enumerate(items):
            if position and part.line_feed:
                self.ditch.append("\n", indent)
            if part.where_key_var > -1:
                slots[part.where_key_var] = _json_value(key)
            if part.where_value_var > -1:
                slots[part.where_value_var] = _json_value(value)
            yield self.over_parts(part.internal_element, list(slots), indent)


def render_element(entry, arguments, elements, escape):
    """Render element ``entry`` of ``elements`` with JSON ``arguments``.

    ``escape`` is applied to text written with WRITE and to escaped JSON.
    Raises TemplateError on any rendering error.
    """
    renderer = _Renderer(elements, escape)
    stack = [renderer.over_parts(entry, [_json_value(arg) for arg in arguments], 0)]
    while stack:
        try:
            stack.append(next(stack[-1]))
        except StopIteration:
            stack.pop()
    return renderer.ditch.text()