"""Parsing of template files into elements of the template namespace."""

from enum import Enum

from een9.template_model import Element, ElementPart, PartType, RegistryEntry
from een9.text_utils import (
    TemplateError,
    is_num,
    is_space,
    is_unchar,
    is_unchar_non_num,
    is_uname_dotted_sequence,
    make_uppercase,
    rstrip_space,
)

_INT64_MAX = (1 << 63) - 1
_NO_CUT = 999_999_999_999


class _BlockKind(Enum):
    ELEMENT = "element"
    FOR = "for"
    REF = "ref"


class _Cursor:
    """A position in the text being parsed."""

    def __init__(self, text):
        self.text = text
        self.pos = 0

    def peek(self):
        return self.text[self.pos] if self.pos < len(self.text) else None

    def skip(self, expected=None):
        if self.pos >= len(self.text):
            raise TemplateError("Unexpected EOF")
        ch = self.text[self.pos]
        if expected is not None and ch != expected:
            raise TemplateError("Unexpected character")
        self.pos += 1
        return ch

    def skip_whitespace(self):
        while (ch := self.peek()) is not None and is_space(ch):
            self.pos += 1

    def skip_string(self, text):
        for ch in text:
            self.skip(ch)

    def read_name(self):
        ch = self.peek()
        if ch is None or not is_unchar_non_num(ch):
            return ""
        start = self.pos
        self.pos += 1
        while (ch := self.peek()) is not None and is_unchar(ch):
            self.pos += 1
        return self.text[start:self.pos]

    def read_uint(self):
        if self.peek() == "0":
            self.pos += 1
            return "0"
        start = self.pos
        while (ch := self.peek()) is not None and is_num(ch):
            self.pos += 1
        return self.text[start:self.pos]

    def read_until(self, stop):
        start = self.pos
        while (ch := self.peek()) is not None and ch != stop:
            self.pos += 1
        return self.text[start:self.pos]


def _first_non_space(line):
    for index, ch in enumerate(line):
        if not is_space(ch):
            return index
    return len(line)


def _is_space_only(line):
    return _first_non_space(line) == len(line)


def clement_lstrip(text):
    """Drop leading whitespace-only lines, keeping the indentation of the first real one."""
    gone = 0
    for index, ch in enumerate(text):
        if ch == "\n":
            gone = index + 1
        elif not is_space(ch):
            break
    return text[gone:]


def _relevant_for_cut(part_count, part_index, line_count, line_index, line):
    if line_index == 0 and part_index != 0:
        return False
    if not _is_space_only(line):
        return True
    return line_index + 1 == line_count and part_index + 1 < part_count


def _min_indent(text, part_index, part_count, current):
    lines = text.split("\n")
    indents = (
        _first_non_space(line)
        for line_index, line in enumerate(lines)
        if _relevant_for_cut(part_count, part_index, len(lines), line_index, line)
    )
    return min(indents, default=current) if current is None else min(current, *indents, current)


def _cut_indent(text, part_index, part_count, cut):
    lines = text.split("\n")
    return "\n".join(
        line[cut:] if _relevant_for_cut(part_count, part_index, len(lines), line_index, line) else line
        for line_index, line in enumerate(lines)
    )


def _dedent_parts(parts):
    """Strip the outer blank lines and the common indentation of the code parts."""
    if parts[0].type is PartType.CODE:
        parts[0].lines = clement_lstrip(parts[0].lines)
    if parts[-1].type is PartType.CODE:
        parts[-1].lines = rstrip_space(parts[-1].lines)
    count = len(parts)
    cut = _NO_CUT
    for index, part in enumerate(parts):
        if part.type is PartType.CODE:
            cut = _min_indent(part.lines, index, count, cut)
    for index, part in enumerate(parts):
        if part.type is PartType.CODE:
            part.lines = _cut_indent(part.lines, index, count, cut)


def _add_hidden_element(name, elements):
    if name in elements:
        raise TemplateError("Repeated element " + name)
    element = Element(is_hidden=True)
    elements[name] = RegistryEntry(True, element)
    return element


def _add_new_element(name, elements):
    if not is_uname_dotted_sequence(name):
        raise TemplateError(f"Incorrect element name ({name})")
    existing = elements.get(name)
    if existing is not None and existing.is_element:
        raise TemplateError("Repeated element " + name)
    for index, ch in enumerate(name):
        if ch == ".":
            elements.setdefault(name[:index], RegistryEntry())
    element = Element()
    elements[name] = RegistryEntry(True, element)
    return element


def parse_bare_file(filename, content, elements):
    """Register ``content`` as a plain element named ``filename``."""
    element = _add_new_element(filename, elements)
    text = rstrip_space(clement_lstrip(content))
    cut = _min_indent(text, 0, 1, _NO_CUT)
    element.parts = [ElementPart(lines=_cut_indent(text, 0, 1, cut))]


def _parse_type(cur):
    name = cur.read_name()
    if not name:
        raise TemplateError("Type specification expected")
    name = make_uppercase(name)
    if name == "JSON":
        return True
    if name != "EL":
        raise TemplateError("Type of argument variable is either JSON or EL(...signature)")
    cur.skip("(")
    signature = []
    while True:
        cur.skip_whitespace()
        if cur.peek() == ")":
            cur.skip(")")
            return signature
        signature.append(_parse_type(cur))


def _parse_expression(cur, local_vars):
    first = cur.read_name()
    if not first:
        raise TemplateError("Expression should start with 'root' name of global package or local variable")
    if first == "_":
        raise TemplateError("Expression root can't be _")
    chain = []
    expression = {"V": local_vars.get(first, first), "C": chain}
    while True:
        ch = cur.peek()
        if ch == ".":
            cur.skip(".")
            name = cur.read_name()
            if name:
                chain.append(name)
                continue
            digits = cur.read_uint()
            if digits:
                index = int(digits)
                if index >= _INT64_MAX:
                    raise TemplateError("Index is too big")
                chain.append(index)
                continue
            raise TemplateError("Bad expression after . operator in expression")
        if ch == "[":
            cur.skip("[")
            cur.skip_whitespace()
            chain.append(_parse_expression(cur, local_vars))
            cur.skip_whitespace()
            cur.skip("]")
            continue
        return expression


class _ContentParser:
    def __init__(self, cur, settings, elements):
        self.cur = cur
        self.start = settings.magic_block_start
        self.end = settings.magic_block_end
        self.elements = elements

    def skip_block_start(self):
        self.cur.skip_string(self.start)
        self.cur.skip_whitespace()

    def skip_block_end(self):
        self.cur.skip_whitespace()
        self.cur.skip_string(self.end)

    def at_block_end(self):
        return self.cur.peek() == self.end[0]

    def read_op(self):
        return make_uppercase(self.cur.read_name())

    def _new_local(self, local_vars, name):
        if name in local_vars:
            raise TemplateError("Repeated local variable")
        index = len(local_vars)
        local_vars[name] = index
        return index

    def parse_block(self, el_name, kind, local_vars, element):
        """Parse parts up to the block's end; a FOR block returns its line-feed mode."""
        cur = self.cur
        parts = element.parts
        free_hidden = 0
        while True:
            parts.append(ElementPart(lines=cur.read_until(self.start[0])))
            self.skip_block_start()
            if self.at_block_end():
                self.skip_block_end()
                continue
            op = self.read_op()
            if op == "FOR":
                part = ElementPart(type=PartType.FOR_PUT)
                parts.append(part)
                cur.skip_whitespace()
                first = cur.read_name()
                if not first:
                    raise TemplateError("Expected variable name")
                cur.skip_whitespace()
                has_second = False
                second = ""
                if cur.peek() == ":":
                    has_second = True
                    cur.skip(":")
                    cur.skip_whitespace()
                    second = cur.read_name()
                    cur.skip_whitespace()
                if self.read_op() != "IN":
                    raise TemplateError("Expected IN")
                cur.skip_whitespace()
                part.ref_over = _parse_expression(cur, local_vars)
                part.internal_element = f"{el_name}.~{free_hidden}"
                free_hidden += 1
                inner = _add_hidden_element(part.internal_element, self.elements)
                inner_vars = dict(local_vars)
                if first != "_":
                    index = self._new_local(inner_vars, first)
                    if has_second:
                        part.where_key_var = index
                    else:
                        part.where_value_var = index
                if has_second and second != "_":
                    part.where_value_var = self._new_local(inner_vars, second)
                self.skip_block_end()
                part.line_feed = self.parse_block(part.internal_element, _BlockKind.FOR, inner_vars, inner)
                continue
            if op == "REF":
                part = ElementPart(type=PartType.REF_PUT)
                parts.append(part)
                cur.skip_whitespace()
                name = cur.read_name()
                if not name or name == "_":
                    raise TemplateError("REF: expected variable name")
                cur.skip_whitespace()
                if self.read_op() != "AS":
                    raise TemplateError("Expected AS")
                cur.skip_whitespace()
                part.ref_over = _parse_expression(cur, local_vars)
                part.internal_element = f"{el_name}.~{free_hidden}"
                free_hidden += 1
                inner = _add_hidden_element(part.internal_element, self.elements)
                inner_vars = dict(local_vars)
                inner_vars.setdefault(name, len(inner_vars))
                self.skip_block_end()
                self.parse_block(part.internal_element, _BlockKind.REF, inner_vars, inner)
                continue
            if op in ("PUT", "P"):
                part = ElementPart(type=PartType.PUT)
                parts.append(part)
                cur.skip_whitespace()
                part.called_element = _parse_expression(cur, local_vars)
                while True:
                    cur.skip_whitespace()
                    if self.at_block_end():
                        self.skip_block_end()
                        break
                    part.passed_arguments.append(_parse_expression(cur, local_vars))
                continue
            if op in ("WRITE", "W", "ROUGHINSERT", "RI"):
                base = "str2text" if op in ("WRITE", "W") else "str2code"
                cur.skip_whitespace()
                parts.append(ElementPart(
                    type=PartType.PUT,
                    called_element={"V": base, "C": []},
                    passed_arguments=[_parse_expression(cur, local_vars)],
                ))
                self.skip_block_end()
                continue
            if op == "ENDELDEF":
                if kind is not _BlockKind.ELEMENT:
                    raise TemplateError("Unexpected ENDELDEF")
                self.skip_block_end()
                _dedent_parts(parts)
                return None
            if op == "ENDFOR":
                if kind is not _BlockKind.FOR:
                    raise TemplateError("Unexpected ENDFOR")
                cur.skip_whitespace()
                line_feed = True
                if not self.at_block_end():
                    mode = self.read_op()
                    if mode == "LF":
                        line_feed = True
                    elif mode == "NOLF":
                        line_feed = False
                    else:
                        raise TemplateError("Expected LF, NOLF or end of magic block")
                self.skip_block_end()
                _dedent_parts(parts)
                return line_feed
            if op == "ENDREF":
                if kind is not _BlockKind.REF:
                    raise TemplateError("Unexpected ENDREF")
                self.skip_block_end()
                _dedent_parts(parts)
                return None
            raise TemplateError(
                "Unknown operator. Expected FOR, REF, PUT, WRITE, ROUGHINSERT, ENDELDEF, ENDFOR, ENDREF"
            )


def parse_special_file(filename, content, elements, settings):
    """Register every ELDEF block of ``content`` as an element under ``filename``."""
    cur = _Cursor(content)
    parser = _ContentParser(cur, settings, elements)
    while True:
        cur.skip_whitespace()
        if cur.peek() is None:
            break
        parser.skip_block_start()
        if parser.read_op() != "ELDEF":
            raise TemplateError("Expected ELDEF")
        cur.skip_whitespace()
        postfix = cur.read_name()
        if postfix == "_":
            raise TemplateError("Can't use _ as element name")
        full_name = filename if postfix == "main" else f"{filename}.{postfix}"
        element = _add_new_element(full_name, elements)
        arg_names = {}
        while True:
            cur.skip_whitespace()
            if parser.at_block_end():
                break
            element.arguments.append(_parse_type(cur))
            cur.skip_whitespace()
            arg_name = cur.read_name()
            if not arg_name:
                raise TemplateError("Expected argument name")
            if arg_name != "_":
                if arg_name in arg_names:
                    raise TemplateError(f"Repeated argument ({arg_name})")
                arg_names[arg_name] = len(arg_names)
        parser.skip_block_end()
        parser.parse_block(full_name, _BlockKind.ELEMENT, arg_names, element)