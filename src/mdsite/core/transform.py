"""Tree transform pipeline: ordered, pure Root -> Root rewrite stages.

Stages run in a fixed order. Autolinking reads the ids assigned by heading-id
injection, so it must come after it; external-link hardening is independent.
No stage reorders or drops nodes.
"""

import logging
from functools import partial
from typing import Callable, Optional
from urllib.parse import urlsplit

from mdsite.config import Settings
from mdsite.core.markup.ast import Heading, Link, Root, child_nodes, replace_children, text_content
from mdsite.core.utils.slug import unique_slug


logger = logging.getLogger(__name__)

Stage = Callable[[Root], Root]

AUTOLINK_ATTRS = {"aria-hidden": "true", "tabindex": "-1"}
EXTERNAL_SCHEMES = {"http", "https"}


def _map_tree(node, fn):
    """Rebuild node bottom-up, replacing each descendant with fn(descendant).

    Children are visited in document order, so fn may carry state across
    calls that must follow reading order.
    """
    children = child_nodes(node)
    if children:
        node = replace_children(node, [_map_tree(c, fn) for c in children])
    return fn(node)


def _map_preorder(node, fn):
    """Like _map_tree, but fn sees each node before its descendants."""
    node = fn(node)
    children = child_nodes(node)
    if children:
        node = replace_children(node, [_map_preorder(c, fn) for c in children])
    return node


def _is_autolink(node, heading_id: str) -> bool:
    return isinstance(node, Link) and node.href == f"#{heading_id}" and node.attrs == AUTOLINK_ATTRS


def inject_heading_ids(root: Root) -> Root:
    """Give every heading a slug id, unique within the document."""
    taken: set[str] = set()

    def assign(node):
        if isinstance(node, Heading):
            return node.model_copy(update={"id": unique_slug(text_content(node), taken)})
        return node

    return _map_preorder(root, assign)


def inject_autolinks(root: Root) -> Root:
    """Prepend a self-referencing anchor to every heading that has an id."""

    def link(node):
        if not isinstance(node, Heading) or not node.id:
            return node
        if node.children and _is_autolink(node.children[0], node.id):
            return node
        anchor = Link(href=f"#{node.id}", attrs=dict(AUTOLINK_ATTRS))
        return node.model_copy(update={"children": [anchor, *node.children]})

    return _map_tree(root, link)


def is_external(href: str, site_url: Optional[str] = None) -> bool:
    """True for http(s) or protocol-relative hrefs that point off the configured site."""
    if href.startswith("//"):
        parts = urlsplit(f"https:{href}")
    else:
        parts = urlsplit(href)
        if parts.scheme.lower() not in EXTERNAL_SCHEMES:
            return False
    if not parts.netloc:
        return False
    if site_url:
        site = urlsplit(site_url if "//" in site_url else f"//{site_url}")
        if parts.netloc.lower() == site.netloc.lower():
            return False
    return True


def harden_external_links(
    root: Root,
    site_url: Optional[str] = None,
    target: str = "_blank",
    rel: str = "noopener noreferrer",
    ) -> Root:
    """Mark external links to open in a new browsing context without opener/referrer."""

    def harden(node):
        if isinstance(node, Link) and is_external(node.href, site_url):
            return node.model_copy(update={"attrs": {**node.attrs, "target": target, "rel": rel}})
        return node

    return _map_tree(root, harden)


def default_stages(settings: Optional[Settings] = None) -> list[Stage]:
    """The fixed stage order: heading ids, autolinks, external-link hardening."""
    settings = settings or Settings()
    return [
        inject_heading_ids,
        inject_autolinks,
        partial(
            harden_external_links,
            site_url=settings.site_url,
            target=settings.external_link_target,
            rel=settings.external_link_rel,
        ),
    ]


def transform(root: Root, stages: Optional[list[Stage]] = None) -> Root:
    """Apply stages to root in order and return the final tree."""
    for stage in stages if stages is not None else default_stages():
        logger.debug("Applying stage %s", getattr(stage, "__name__", None) or stage.func.__name__)
        root = stage(root)
    return root
