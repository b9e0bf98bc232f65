from lyrics_proxy.core.flattener import DomFlattener, Element, flatten, flatten_dom, parse_dom
from lyrics_proxy.schemas.models import ImageBlock, TextBlock


def dump(items):
    return [item.model_dump() for item in items]


def test_bold_inside_paragraph():
    dom = {"tag": "p", "children": ["Hello ", {"tag": "b", "children": ["world"]}, "!"]}

    assert dump(flatten_dom(dom)) == [
        {
            "type": "paragraph",
            "spans": [
                {"text": "Hello ", "styles": [], "link": None},
                {"text": "world", "styles": ["bold"], "link": None},
                {"text": "!", "styles": [], "link": None},
            ],
        }
    ]


def test_blockquote_nested_in_paragraph_is_absorbed():
    dom = {"tag": "p", "children": [{"tag": "blockquote", "children": ["quoted"]}]}

    assert dump(flatten_dom(dom)) == [
        {"type": "paragraph", "spans": [{"text": "quoted", "styles": [], "link": None}]}
    ]


def test_image_precedes_its_paragraph():
    dom = {
        "tag": "p",
        "children": [
            {"tag": "img", "attributes": {"src": "x.png", "alt": "a", "width": 1, "height": 2}},
            "after",
        ],
    }

    assert dump(flatten_dom(dom)) == [
        {"type": "image", "url": "x.png", "alt": "a", "width": 1, "height": 2},
        {"type": "paragraph", "spans": [{"text": "after", "styles": [], "link": None}]},
    ]


def test_image_at_end_of_paragraph_still_precedes_it():
    dom = {
        "tag": "root",
        "children": [
            {"tag": "p", "children": ["first"]},
            {"tag": "p", "children": ["second", {"tag": "em", "children": [{"tag": "img", "attributes": {"src": "y.png"}}]}]},
        ],
    }

    result = flatten_dom(dom)

    assert [item.type for item in result] == ["paragraph", "image", "paragraph"]
    assert result[1].url == "y.png"
    assert result[1].alt is None


def test_line_break_ignores_inherited_context():
    dom = {
        "tag": "p",
        "children": [
            {"tag": "a", "attributes": {"href": "https://genius.com/x"}, "children": [
                {"tag": "strong", "children": ["bold link", {"tag": "br"}]},
            ]},
        ],
    }

    spans = flatten_dom(dom)[0].spans

    assert spans[0].model_dump() == {"text": "bold link", "styles": ["bold"], "link": "https://genius.com/x"}
    assert spans[1].model_dump() == {"text": "\n", "styles": [], "link": None}


def test_styles_keep_application_order_without_duplicates():
    dom = {"tag": "p", "children": [
        {"tag": "i", "children": [{"tag": "b", "children": [{"tag": "strong", "children": ["x"]}]}]},
    ]}

    assert flatten_dom(dom)[0].spans[0].styles == ["italic", "bold"]


def test_anchor_without_href_keeps_outer_link():
    dom = {"tag": "p", "children": [
        {"tag": "a", "attributes": {"href": "outer"}, "children": [
            {"tag": "a", "children": ["inner"]},
        ]},
    ]}

    assert flatten_dom(dom)[0].spans[0].link == "outer"


def test_orphan_text_is_dropped():
    dom = {"tag": "root", "children": [
        "bare text",
        {"tag": "b", "children": ["bold at root"]},
        {"tag": "blockquote", "children": ["kept"]},
    ]}

    assert dump(flatten_dom(dom)) == [
        {"type": "blockquote", "spans": [{"text": "kept", "styles": [], "link": None}]}
    ]


def test_block_inside_inline_tag_is_not_emitted():
    dom = {"tag": "root", "children": [{"tag": "a", "attributes": {"href": "h"}, "children": [
        {"tag": "p", "children": ["lost"]},
    ]}]}

    assert flatten_dom(dom) == []


def test_empty_blocks_are_never_emitted():
    dom = {"tag": "root", "children": [
        {"tag": "p", "children": []},
        {"tag": "p", "children": [""]},
        {"tag": "blockquote", "children": [{"tag": "img", "attributes": {"src": "z.png"}}]},
    ]}

    result = flatten_dom(dom)

    assert len(result) == 1
    assert isinstance(result[0], ImageBlock)


def test_transparent_tags_pass_spans_through():
    dom = {"tag": "p", "children": [{"tag": "span", "children": [{"tag": "ul", "children": [{"tag": "li", "children": ["item"]}]}]}]}

    result = flatten_dom(dom)

    assert isinstance(result[0], TextBlock)
    assert result[0].spans[0].text == "item"


def test_null_and_text_roots():
    assert flatten(None) == []
    assert flatten_dom(None) == []
    assert flatten("just text") == []


def test_flatten_is_deterministic():
    dom = {"tag": "root", "children": [
        {"tag": "p", "children": ["a", {"tag": "em", "children": ["b"]}]},
        {"tag": "img", "attributes": {"src": "c"}},
        {"tag": "blockquote", "children": ["d"]},
    ]}

    assert dump(flatten_dom(dom)) == dump(flatten_dom(dom))


def test_parse_dom_builds_elements():
    node = parse_dom({"tag": "p", "children": ["a", None, 3, {"tag": "br"}]})

    assert node == Element(tag="p", attributes={}, children=("a", "3", Element(tag="br")))


def test_flattener_accepts_elements_directly():
    root = Element(tag="blockquote", children=("quoted", Element(tag="i", children=("it",))))

    result = DomFlattener.flatten(root)

    assert result[0].type == "blockquote"
    assert [span.styles for span in result[0].spans] == [[], ["italic"]]
