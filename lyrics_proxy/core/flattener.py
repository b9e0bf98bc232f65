import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple, Union

from lyrics_proxy.schemas.models import DescriptionItem, ImageBlock, Span, TextBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Element:
    """A tagged node of the Genius rich-text DOM."""
    tag: str
    attributes: Mapping[str, Union[str, int, float]] = field(default_factory=dict)
    children: Tuple["DomNode", ...] = ()


# A DOM node is either raw text or an Element.
DomNode = Union[str, Element]


def parse_dom(raw: Any) -> Optional[DomNode]:
    """
    Convert the JSON `dom` structure returned by Genius into DomNode values.

    Dicts become Elements, strings stay text, None stays None.
    Other scalars are coerced to text.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        children = tuple(
            child for child in (parse_dom(c) for c in raw.get("children") or [])
            if child is not None
        )
        return Element(
            tag=str(raw.get("tag", "")),
            attributes=dict(raw.get("attributes") or {}),
            children=children,
        )
    return str(raw)


class DomFlattener:
    """
    Flattens a Genius DOM tree into a document-ordered list of blocks and images.

    Only top-level `p`/`blockquote` tags emit a block; nested block tags merge
    into the enclosing block. Images are emitted where they are encountered,
    so they precede the block that contains them. Text that never reaches a
    top-level block is dropped.
    """
    ITALIC_TAGS = ("em", "i")
    BOLD_TAGS = ("b", "strong")
    INLINE_TAGS = ITALIC_TAGS + BOLD_TAGS + ("a",)
    BLOCK_TYPES = {"p": "paragraph", "blockquote": "blockquote"}

    @classmethod
    def flatten(cls, root: Optional[DomNode]) -> List[DescriptionItem]:
        emitted, dropped = cls._walk(root, [], None, False)
        if dropped:
            logger.debug(f"Dropped {len(dropped)} spans outside any block")
        return emitted

    @staticmethod
    def _with_style(styles: List[str], style: str) -> List[str]:
        new_styles = list(styles)
        if style not in new_styles:
            new_styles.append(style)
        return new_styles

    @classmethod
    def _walk_children(
        cls,
        node: Element,
        styles: List[str],
        link: Optional[str],
        inside_block: bool,
    ) -> Tuple[List[DescriptionItem], List[Span]]:
        emitted: List[DescriptionItem] = []
        spans: List[Span] = []
        for child in node.children:
            child_emitted, child_spans = cls._walk(child, styles, link, inside_block)
            emitted.extend(child_emitted)
            spans.extend(child_spans)
        return emitted, spans

    @classmethod
    def _walk(
        cls,
        node: Optional[DomNode],
        styles: List[str],
        link: Optional[str],
        inside_block: bool,
    ) -> Tuple[List[DescriptionItem], List[Span]]:
        """
        Returns (items emitted into the output, spans handed to the caller).
        """
        if not node:
            return [], []

        if isinstance(node, str):
            return [], [Span(text=node, styles=list(styles), link=link)]

        if node.tag == "br":
            return [], [Span(text="\n", styles=[], link=None)]

        if node.tag == "img":
            attrs = node.attributes
            image = ImageBlock(
                url=attrs.get("src"),
                alt=attrs.get("alt"),
                width=attrs.get("width"),
                height=attrs.get("height"),
            )
            return [image], []

        if node.tag in cls.INLINE_TAGS:
            new_styles = styles
            if node.tag in cls.ITALIC_TAGS:
                new_styles = cls._with_style(styles, "italic")
            elif node.tag in cls.BOLD_TAGS:
                new_styles = cls._with_style(styles, "bold")
            new_link = link
            if node.tag == "a" and node.attributes.get("href"):
                new_link = str(node.attributes["href"])
            return cls._walk_children(node, new_styles, new_link, True)

        block_type = cls.BLOCK_TYPES.get(node.tag)
        is_block = block_type is not None
        emitted, spans = cls._walk_children(node, styles, link, True if is_block else inside_block)

        if is_block and not inside_block:
            if spans:
                emitted.append(TextBlock(type=block_type, spans=spans))
            return emitted, []

        return emitted, spans


def flatten(root: Optional[DomNode]) -> List[DescriptionItem]:
    return DomFlattener.flatten(root)


def flatten_dom(raw: Any) -> List[DescriptionItem]:
    """Parse a raw Genius `dom` JSON value and flatten it."""
    return DomFlattener.flatten(parse_dom(raw))
