from types import SimpleNamespace

import pytest

from een9.template_debug import debug_print_templater, describe_elements
from een9.template_model import Element, ElementPart, PartType, RegistryEntry, base_element


@pytest.fixture
def elements():
    page = Element(
        arguments=[True, [True]],
        parts=[
            ElementPart(lines="<p>hello</p>"),
            ElementPart(
                type=PartType.PUT,
                called_element={"V": "jesc", "C": []},
                passed_arguments=[{"V": 0, "C": []}],
            ),
            ElementPart(
                type=PartType.FOR_PUT,
                ref_over={"V": 0, "C": ["items"]},
                where_value_var=2,
                internal_element="page.~0",
                line_feed=False,
            ),
            ElementPart(
                type=PartType.REF_PUT,
                ref_over={"V": 1, "C": []},
                internal_element="page.~1",
            ),
        ],
    )
    hidden = Element(is_hidden=True, parts=[ElementPart(lines="x")])
    return {
        "": RegistryEntry(False, None),
        "jesc": base_element(),
        "page": RegistryEntry(True, page),
        "page.~0": RegistryEntry(True, hidden),
    }


def test_frame_and_order(elements):
    text = describe_elements(elements)
    assert text.startswith("===== TEMPLATER INTERNAL RESOURCES =====\n")
    assert text.endswith("===== DEBUG IS OVER =====\n")
    assert text.index("===  is empty =====") < text.index("=== jesc element =====")
    assert text.index("=== jesc element =====") < text.index("=== page element =====")
    assert "=== That was element page ====" in text


def test_signatures_only_for_visible_elements(elements):
    text = describe_elements(elements)
    assert "Signature: true  [true]" in text
    assert text.count("Signature:") == 2
    assert "BASE, NOT HIDDEN" in text
    assert "NOT BASE, HIDDEN" in text


def test_parts_are_described(elements):
    text = describe_elements(elements)
    assert "<p>hello</p>" in text
    assert "internal_element: page.~0," in text
    assert "where_key_var: -1, where_value_var: 2, NOLF" in text
    assert "ref block call:\ninternal_element: page.~1\n" in text
    assert "passed_arguments[0] = " in text
    assert '"jesc"' in text


def test_empty_namespace():
    text = describe_elements({})
    assert text == "===== TEMPLATER INTERNAL RESOURCES =====\n===== DEBUG IS OVER =====\n"


def test_debug_print_writes_description(elements, capsys):
    debug_print_templater(SimpleNamespace(elements=elements))
    assert capsys.readouterr().out == describe_elements(elements)