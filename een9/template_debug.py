"""Human-readable dump of a templater's element namespace."""

import json

from een9.template_model import PartType

_BEFORE = "<b><e><f><o><r><e><><l><f>"
_AFTER = "<a><f><t><e><r><><l><f>"


def _compact(value):
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _pretty(value):
    return json.dumps(value, indent=2, ensure_ascii=False)


def _describe_part(part):
    if part.type is PartType.CODE:
        return f"code:   {_BEFORE}\n{part.lines}\n{_AFTER}\n"
    if part.type is PartType.FOR_PUT:
        return (
            "for cycle call:\n"
            f"internal_element: {part.internal_element},\n"
            f"ref_over:{_pretty(part.ref_over)},\n"
            f"where_key_var: {part.where_key_var}, where_value_var: {part.where_value_var}, "
            f"{'LF' if part.line_feed else 'NOLF'}\n"
        )
    if part.type is PartType.REF_PUT:
        return (
            "ref block call:\n"
            f"internal_element: {part.internal_element}\n"
            f"ref_over:{_pretty(part.ref_over)}\n"
        )
    lines = [f"PUT:\ncalled_element: {_pretty(part.called_element)}\n"]
    lines.extend(
        f"passed_arguments[{index}] = {_pretty(argument)}\n"
        for index, argument in enumerate(part.passed_arguments)
    )
    return "".join(lines)


def describe_elements(elements):
    """Describe every entry of an element namespace, in name order."""
    out = ["===== TEMPLATER INTERNAL RESOURCES =====\n"]
    for name, entry in sorted(elements.items()):
        if not entry.is_element:
            out.append(f"=== {name} is empty =====\n")
            continue
        element = entry.element
        out.append(f"=== {name} element =====\n")
        out.append(
            f"{'BASE' if element.base else 'NOT BASE'}, "
            f"{'HIDDEN' if element.is_hidden else 'NOT HIDDEN'}\n"
        )
        if not element.is_hidden:
            signature = "  ".join(_compact(argument) for argument in element.arguments)
            out.append(f"Signature: {signature}\n")
        out.extend(_describe_part(part) for part in element.parts)
        out.append(f"=== That was element {name} ====\n")
    out.append("===== DEBUG IS OVER =====\n")
    return "".join(out)


def debug_print_templater(templater):
    """Print the description of ``templater.elements`` to standard output."""
    print(describe_elements(templater.elements), end="")