"""Escaping of text for inclusion in HTML."""

_REPLACEMENTS = str.maketrans({
    "&": "&amp",
    "<": "&lt",
    ">": "&gt",
    '"': "&quot",
    "'": "&#39",
})


def html_escape(text):
    """Replace the HTML-special characters of ``text`` with entity references."""
    return text.translate(_REPLACEMENTS)