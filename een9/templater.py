"""Loading of template directories and rendering of their elements."""

import os
import stat
from typing import NamedTuple

from een9.errors import format_errno
from een9.template_model import RegistryEntry, TemplaterSettings, base_element
from een9.template_parser import parse_bare_file, parse_special_file
from een9.template_render import render_element
from een9.text_utils import (
    TemplateError,
    is_alpha,
    is_num,
    is_space,
    is_unchar,
    is_uname,
    is_uname_dotted_sequence,
    throwout_postfix,
)

_BAD_SETTINGS = "What was wrong with {% %} ????"
_BUILTINS = ("jsinsert", "jesc", "str2text", "str2code")


class _IndexedFile(NamedTuple):
    path: str
    dot_name: str
    special_syntax_applied: bool


def check_settings(settings):
    """Raise ValueError if the magic block delimiters cannot be parsed unambiguously."""
    start, end = settings.magic_block_start, settings.magic_block_end
    if not start or not end:
        raise ValueError(_BAD_SETTINGS)
    first = start[0]
    if is_space(first) or is_alpha(first) or is_num(first):
        raise ValueError(_BAD_SETTINGS)
    ender = end[0]
    if is_unchar(ender) or is_space(ender) or ender in ":[].":
        raise ValueError(_BAD_SETTINGS)


def indexing_detour(rules):
    """Find template files below ``rules.root_dir_path``.

    Returns entries with the file path, its dotted element name and whether the
    element syntax applies. Directories and files whose names are not valid
    names are skipped.
    """
    result = []
    todo = [""]
    while todo:
        cur = todo.pop()
        dir_path = f"{rules.root_dir_path}/{cur}"
        try:
            names = sorted(os.listdir(dir_path))
        except OSError as exc:
            raise TemplateError(format_errno(f'opendir("{cur}")', exc.errno)) from exc
        for child in names:
            child_path = f"{dir_path}/{child}"
            try:
                info = os.stat(child_path)
            except OSError as exc:
                raise TemplateError(format_errno(f"stat({child_path})", exc.errno)) from exc
            if stat.S_ISDIR(info.st_mode):
                if is_uname(child):
                    todo.append(f"{cur}/{child}" if cur else child)
            elif stat.S_ISREG(info.st_mode):
                for postfix, special in (
                    (rules.postfix_rule_for_element_cont, True),
                    (rules.postfix_rule_for_static_files, False),
                ):
                    if child.endswith(postfix):
                        stem = throwout_postfix(child, len(postfix))
                        if is_uname(stem):
                            slashed = f"{cur}/{stem}" if cur else stem
                            result.append(_IndexedFile(child_path, slashed.replace("/", "."), special))
                        break
            else:
                raise TemplateError(f'unknown fs entry type "{cur}"')
    return result


def _read_template(path):
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
            return handle.read()
    except OSError as exc:
        raise TemplateError(format_errno(f'Opening "{path}"', exc.errno)) from exc


class Templater:
    """A namespace of template elements loaded from a directory."""

    def __init__(self, settings=None):
        self.settings = settings if settings is not None else TemplaterSettings()
        check_settings(self.settings)
        self.elements = {}

    def update(self):
        """Register the built-in elements and load every template file."""
        self.elements[""] = RegistryEntry(False, None)
        for name in _BUILTINS:
            self.elements[name] = base_element()
        for file in indexing_detour(self.settings.det):
            content = _read_template(file.path)
            if file.special_syntax_applied:
                parse_special_file(file.dot_name, content, self.elements, self.settings)
            else:
                parse_bare_file(file.dot_name, content, self.elements)

    def render(self, element, arguments=()):
        """Render ``element`` with the given JSON arguments."""
        if not is_uname_dotted_sequence(element):
            raise TemplateError("Incorrect entry element name")
        return render_element(element, list(arguments), self.elements, self.settings.escape)