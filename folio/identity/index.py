"""
Content index — the global search space for identifier resolution.

The site tree is loaded once into a networkx DiGraph (site → pages → child
pages, pages → files) and walked in depth-first preorder. Insertion order
follows the sorted directory listing, so iteration order is deterministic:
with duplicate ids the first model in this order wins.
"""

import logging
from typing import Iterator, Optional

import networkx as nx

logger = logging.getLogger(__name__)

SITE = ("site", "")


def node_key(model) -> tuple[str, str]:
    return (model.TYPE, model.id)


class ContentIndex:
    def __init__(self, app):
        self.app = app
        self._graph: Optional[nx.DiGraph] = None

    @property
    def graph(self) -> nx.DiGraph:
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        site = self.app.site()
        graph.add_node(SITE, model=site, kind="site")

        stack = [(SITE, site)]
        while stack:
            parent_key, container = stack.pop()
            for file in container.files():
                key = node_key(file)
                graph.add_node(key, model=file, kind="file")
                graph.add_edge(parent_key, key)
            children = container.children()
            for page in children:
                key = node_key(page)
                graph.add_node(key, model=page, kind="page")
                graph.add_edge(parent_key, key)
            # reversed so the first child is expanded first
            stack.extend((node_key(p), p) for p in reversed(children))

        logger.debug("content index built: %d nodes", graph.number_of_nodes())
        return graph

    def invalidate(self) -> None:
        self._graph = None

    def _walk(self, kind: str, root=None) -> Iterator:
        source = SITE if root is None or root.TYPE == "site" else node_key(root)
        if source not in self.graph:
            # added to disk after the index was built
            self.invalidate()
            if source not in self.graph:
                return

        for key in nx.dfs_preorder_nodes(self.graph, source):
            if key == source:
                continue
            node = self.graph.nodes[key]
            if node["kind"] == kind:
                yield node["model"]

    def pages(self, root=None) -> Iterator:
        """All pages (below root, if given) in tree order."""
        return self._walk("page", root)

    def files(self, root=None) -> Iterator:
        """All files (below root, if given) in tree order."""
        return self._walk("file", root)

    def users(self) -> Iterator:
        yield from self.app.users()

    def models(self, scheme: str) -> Iterator:
        if scheme == "page":
            return self.pages()
        if scheme == "file":
            return self.files()
        if scheme == "user":
            return self.users()
        return iter([self.app.site()])

    def __len__(self) -> int:
        return self.graph.number_of_nodes() - 1
