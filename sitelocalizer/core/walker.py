"""
Content tree discovery.

Starting from a page or component, collects the nodes of the root and of
every component transitively referenced through component instances. Each
component is fetched at most once; self references and reference cycles
terminate because the visited set is checked before anything is queued.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional, Set

from sitelocalizer.store.base import ContentStore
from .models import ComponentInstanceNode, ContentNode, DocumentKind, DocumentRef

logger = logging.getLogger(__name__)


@dataclass
class DocumentNodes:
    """Nodes owned by one document, in store order."""
    document: DocumentRef
    nodes: List[ContentNode] = field(default_factory=list)


@dataclass
class ContentTree:
    """Result of one traversal.

    Attributes:
        root: Document the walk started from
        documents: Root first, then components in discovery order
        visited: Component ids visited during the walk
    """
    root: DocumentRef
    documents: List[DocumentNodes] = field(default_factory=list)
    visited: Set[str] = field(default_factory=set)

    @property
    def all_nodes(self) -> List[ContentNode]:
        return [node for doc in self.documents for node in doc.nodes]

    @property
    def component_ids(self) -> List[str]:
        return [doc.document.id for doc in self.documents if doc.document.kind == DocumentKind.COMPONENT]


def referenced_components(nodes: Iterable[ContentNode]) -> List[str]:
    """Component ids referenced by instance nodes, in order, without duplicates."""
    seen = []
    for node in nodes:
        if isinstance(node, ComponentInstanceNode) and node.component_id not in seen:
            seen.append(node.component_id)
    return seen


class ContentTreeWalker:
    """Breadth-first walk over a document and its nested components."""

    def __init__(self, store: ContentStore, branch_id: Optional[str] = None):
        self.store = store
        self.branch_id = branch_id

    async def walk(self, root: DocumentRef, visited: Optional[Set[str]] = None) -> ContentTree:
        """
        Fetch the root and every reachable component.

        Args:
            root: Page or component to start from
            visited: Component ids to treat as already seen (not fetched)

        Returns:
            ContentTree with one DocumentNodes entry per fetched document

        Raises:
            Any store error; nothing is returned for a partially fetched tree
        """
        tree = ContentTree(root=root, visited=set(visited or ()))
        if root.kind == DocumentKind.COMPONENT:
            tree.visited.add(root.id)

        worklist: Deque[DocumentRef] = deque([root])
        while worklist:
            document = worklist.popleft()
            nodes = await self.store.get_document_nodes(document, branch_id=self.branch_id)
            tree.documents.append(DocumentNodes(document=document, nodes=nodes))

            for component_id in referenced_components(nodes):
                if component_id in tree.visited:
                    continue
                tree.visited.add(component_id)
                worklist.append(DocumentRef.component(component_id))

        logger.debug(
            f"Walked {root}: {len(tree.documents)} documents, {len(tree.all_nodes)} nodes"
        )
        return tree
