"""Atlassian Document Format (ADF) node types.

Rich-text ticket descriptions arrive as a JSON tree. parse_adf_node() turns
the raw tree into a closed set of node classes; every node type without a
dedicated class becomes an AdfContainer that only carries its children.
"""

from typing import Union

from pydantic import BaseModel


class AdfText(BaseModel):
    text: str = ""


class AdfParagraph(BaseModel):
    content: list["AdfNode"] = []


class AdfHeading(BaseModel):
    level: int = 1
    content: list["AdfNode"] = []


class AdfListItem(BaseModel):
    content: list["AdfNode"] = []


class AdfBulletList(BaseModel):
    items: list[AdfListItem] = []


class AdfOrderedList(BaseModel):
    items: list[AdfListItem] = []


class AdfCodeBlock(BaseModel):
    content: list["AdfNode"] = []


class AdfContainer(BaseModel):
    node_type: str = ""
    content: list["AdfNode"] = []


AdfNode = Union[AdfText, AdfParagraph, AdfHeading, AdfListItem, AdfBulletList, AdfOrderedList, AdfCodeBlock, AdfContainer]

for _model in (AdfParagraph, AdfHeading, AdfListItem, AdfCodeBlock, AdfContainer):
    _model.model_rebuild()


class AdfDocument(BaseModel):
    """Root of an ADF tree ({"type": "doc", "version": 1, "content": [...]})."""
    version: int | None = None
    content: list[AdfNode] = []


def _parse_children(raw: dict) -> list[AdfNode]:
    return [parse_adf_node(child) for child in raw.get("content") or [] if isinstance(child, dict)]


def parse_adf_node(raw: dict) -> AdfNode:
    """Convert one raw ADF JSON node (and its subtree) into a typed node.

    Args:
        raw (dict): The raw node, e.g. {"type": "paragraph", "content": [...]}.

    Returns:
        AdfNode: The typed node.
    """
    node_type = raw.get("type", "")
    if node_type == "text":
        return AdfText(text=raw.get("text") or "")
    if node_type == "paragraph":
        return AdfParagraph(content=_parse_children(raw))
    if node_type == "heading":
        level = (raw.get("attrs") or {}).get("level") or 1
        return AdfHeading(level=int(level), content=_parse_children(raw))
    if node_type == "listItem":
        return AdfListItem(content=_parse_children(raw))
    if node_type in ("bulletList", "orderedList"):
        # lists only render their listItem children
        items = [AdfListItem(content=_parse_children(child))
                 for child in raw.get("content") or []
                 if isinstance(child, dict) and child.get("type") == "listItem"]
        return AdfBulletList(items=items) if node_type == "bulletList" else AdfOrderedList(items=items)
    if node_type == "codeBlock":
        return AdfCodeBlock(content=_parse_children(raw))
    return AdfContainer(node_type=node_type, content=_parse_children(raw))


def parse_adf_document(raw: dict) -> AdfDocument:
    """Convert a raw ADF document into an AdfDocument."""
    return AdfDocument(version=raw.get("version"), content=_parse_children(raw))
