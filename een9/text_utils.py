"""Character classes and name checks used by the template engine."""

__all__ = [
    "TemplateError",
    "is_alpha",
    "is_num",
    "is_unchar",
    "is_unchar_non_num",
    "is_space",
    "is_uname",
    "is_uname_dotted_sequence",
    "throwout_postfix",
    "make_uppercase",
    "rstrip_space",
]

_SPACES = " \r\t\n"
_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


class TemplateError(Exception):
    """Raised when a template cannot be loaded, parsed or rendered."""


def is_alpha(ch):
    """Tell whether ``ch`` is an ASCII letter."""
    return "a" <= ch <= "z" or "A" <= ch <= "Z"


def is_num(ch):
    """Tell whether ``ch`` is an ASCII digit."""
    return "0" <= ch <= "9"


def is_unchar(ch):
    """Tell whether ``ch`` may appear in a name."""
    return is_alpha(ch) or is_num(ch) or ch in "-_"


def is_unchar_non_num(ch):
    """Tell whether ``ch`` may start a name."""
    return is_alpha(ch) or ch in "-_"


def is_space(ch):
    """Tell whether ``ch`` is template whitespace."""
    return ch != "" and ch in _SPACES


def is_uname(text):
    """Tell whether ``text`` is a valid name: not empty, not ``_``, not starting with a digit."""
    if not text or text == "_" or is_num(text[0]):
        return False
    return all(is_unchar(ch) for ch in text)


def is_uname_dotted_sequence(text):
    """Tell whether ``text`` is a dot-separated sequence of valid names."""
    return bool(text) and all(is_uname(part) for part in text.split("."))


def throwout_postfix(text, size):
    """Drop the last ``size`` characters of ``text``."""
    return text[: len(text) - size] if len(text) >= size else ""


def make_uppercase(source):
    """Uppercase ASCII letters only, leaving every other character as it is."""
    return source.translate(_ASCII_UPPER)


def rstrip_space(text):
    """Strip trailing template whitespace."""
    return text.rstrip(_SPACES)