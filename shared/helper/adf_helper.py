"""Renderers for Atlassian Document Format trees.

render_adf_markdown() produces the markdown used in ticket files,
extract_adf_plain_text() the flat text used for embeddings.
"""

from shared.clients.ticket.models.Adf import (
    AdfBulletList,
    AdfCodeBlock,
    AdfContainer,
    AdfDocument,
    AdfHeading,
    AdfListItem,
    AdfNode,
    AdfOrderedList,
    AdfParagraph,
    AdfText,
)

NO_DESCRIPTION = "No description provided"


def _markdown_nodes(nodes: list[AdfNode]) -> str:
    return "".join(_markdown_node(node) for node in nodes).strip()


def _markdown_node(node: AdfNode) -> str:
    if isinstance(node, AdfText):
        return node.text
    if isinstance(node, AdfParagraph):
        return _markdown_nodes(node.content) + "\n\n"
    if isinstance(node, AdfHeading):
        return "#" * node.level + " " + _markdown_nodes(node.content) + "\n\n"
    if isinstance(node, AdfBulletList):
        return "".join("- " + _markdown_nodes(item.content) + "\n" for item in node.items) + "\n"
    if isinstance(node, AdfOrderedList):
        return "".join(f"{i}. " + _markdown_nodes(item.content) + "\n" for i, item in enumerate(node.items, start=1)) + "\n"
    if isinstance(node, AdfCodeBlock):
        return "```\n" + _markdown_nodes(node.content) + "\n```\n\n"
    if isinstance(node, (AdfListItem, AdfContainer)):
        return _markdown_nodes(node.content)
    return ""


def render_adf_markdown(document: AdfDocument) -> str:
    """Render an ADF document as markdown.

    Paragraphs end with a blank line, bullet and ordered lists become "- " and
    "1. " items, headings get one "#" per level and code blocks are fenced.
    Every nested fragment is trimmed.
    """
    return _markdown_nodes(document.content)


def _plain_nodes(nodes: list[AdfNode]) -> str:
    parts = []
    for node in nodes:
        if isinstance(node, AdfText):
            if node.text:
                parts.append(node.text)
        elif isinstance(node, (AdfBulletList, AdfOrderedList)):
            parts.append(" ".join(_plain_nodes(item.content) for item in node.items).strip())
        else:
            parts.append(_plain_nodes(node.content))
    return " ".join(part for part in parts if part).strip()


def extract_adf_plain_text(document: AdfDocument) -> str:
    """Flatten an ADF document to plain text, joining nodes with single spaces."""
    return _plain_nodes(document.content)


def describe(description: str | AdfDocument | None, plain: bool = False) -> str:
    """Render an issue description (plain string, ADF document or None).

    Args:
        description (str | AdfDocument | None): The description field.
        plain (bool): Flatten to plain text instead of markdown.

    Returns:
        str: The rendered text, or a placeholder if there is no description.
    """
    if not description:
        return NO_DESCRIPTION
    if isinstance(description, str):
        return description
    return extract_adf_plain_text(description) if plain else render_adf_markdown(description)
