"""Data model of the template engine: elements, their parts and settings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from een9.html_escape import html_escape


class PartType(Enum):
    """Kind of an element part."""

    CODE = "code"
    PUT = "put"
    FOR_PUT = "for_put"
    REF_PUT = "ref_put"


@dataclass
class ElementPart:
    """One piece of an element body.

    CODE parts use ``lines``; PUT parts use ``called_element`` and
    ``passed_arguments``; FOR_PUT parts use ``ref_over``, the variable slots,
    ``internal_element`` and ``line_feed``; REF_PUT parts use ``ref_over`` and
    ``internal_element``. Expressions are dicts with keys ``V`` and ``C``.
    """

    type: PartType = PartType.CODE
    lines: str = ""
    called_element: dict | None = None
    passed_arguments: list = field(default_factory=list)
    ref_over: dict | None = None
    where_key_var: int = -1
    where_value_var: int = -1
    internal_element: str = ""
    line_feed: bool = True


@dataclass
class Element:
    """A template element.

    ``arguments`` is the signature: ``True`` for a JSON argument, a list of
    nested signatures for an element argument. Built-in elements are ``base``
    and have no parts.
    """

    arguments: list = field(default_factory=list)
    base: bool = False
    is_hidden: bool = False
    parts: list = field(default_factory=list)


@dataclass
class DetourRules:
    """Where template files are looked for and how they are recognised."""

    root_dir_path: str = ""
    postfix_rule_for_element_cont: str = ".nytl.html"
    postfix_rule_for_static_files: str = ".html"


@dataclass
class TemplaterSettings:
    """Template syntax and file discovery settings."""

    det: DetourRules = field(default_factory=DetourRules)
    magic_block_start: str = "{%"
    magic_block_end: str = "%}"
    escape: Callable[[str], str] = html_escape


@dataclass
class RegistryEntry:
    """An entry of the element namespace: an element or a bare package prefix."""

    is_element: bool = False
    element: Element | None = None


def base_element():
    """A fresh registry entry for a built-in element taking one JSON argument."""
    return RegistryEntry(True, Element(arguments=[True], base=True, is_hidden=False, parts=[]))