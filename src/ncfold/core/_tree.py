from __future__ import annotations

from typing import TYPE_CHECKING, Any

from asciitree import BoxStyle, LeftAligned
from asciitree.traversal import Traversal

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset, Variable
    from ncfold.core.attributes import AttributeValue


class TreeNode:
    """
    A node of the metadata tree: a text label and its children.

    Note that this class isn't considered part of ncfold's public API.
    """

    def __init__(self, text: str, children: list[TreeNode] | None = None) -> None:
        self.text = text
        self.children = children or []

    def get_children(self) -> list[TreeNode]:
        return self.children

    def get_text(self) -> str:
        return self.text


class TreeTraversal(Traversal):  # type: ignore[misc]
    def get_children(self, node: TreeNode) -> list[TreeNode]:
        return node.get_children()

    def get_root(self, tree: TreeNode) -> TreeNode:
        return tree

    def get_text(self, node: TreeNode) -> str:
        return node.get_text()


def _attribute_nodes(attrs: dict[str, AttributeValue]) -> list[TreeNode]:
    return [TreeNode(f"{name}: {value}") for name, value in attrs.items()]


def _variable_node(var: Variable) -> TreeNode:
    dims = ", ".join(f"{d.name}[{d.length}]" for d in var.dimensions)
    label = f"{var.name} ({dims}) {var.dtype}" if dims else f"{var.name} {var.dtype}"
    return TreeNode(label, _attribute_nodes(var.attributes()))


def build_tree(dataset: Dataset, level: int | None = None) -> TreeNode:
    """
    The metadata of `dataset` as a tree of nodes.

    `level` limits the depth: 1 shows the sections only, 2 adds their members, and
    ``None`` shows variable attributes as well.
    """
    sections = [
        TreeNode("global attributes", _attribute_nodes(dataset.attributes())),
        TreeNode("dimensions", [TreeNode(str(d)) for d in dataset.dimensions()]),
        TreeNode("variables", [_variable_node(v) for v in dataset.variables()]),
    ]
    root = TreeNode(dataset.path, sections)
    if level is not None:
        _prune(root, level)
    return root


def _prune(node: TreeNode, level: int, depth: int = 0) -> None:
    if depth >= level:
        node.children = []
        return
    for child in node.children:
        _prune(child, level, depth + 1)


class TreeViewer:
    def __init__(self, dataset: Dataset, level: int | None = None) -> None:
        self.dataset = dataset
        self.level = level

        self.text_kwargs: dict[str, Any] = dict(horiz_len=2, label_space=1, indent=1)

        self.bytes_kwargs = dict(
            UP_AND_RIGHT="+", HORIZONTAL="-", VERTICAL="|", VERTICAL_AND_RIGHT="+"
        )

        self.unicode_kwargs = dict(
            UP_AND_RIGHT="└",
            HORIZONTAL="─",
            VERTICAL="│",
            VERTICAL_AND_RIGHT="├",
        )

    def _render(self, gfx: dict[str, str]) -> str:
        drawer = LeftAligned(
            traverse=TreeTraversal(), draw=BoxStyle(gfx=gfx, **self.text_kwargs)
        )
        return str(drawer(build_tree(self.dataset, level=self.level)))

    def __bytes__(self) -> bytes:
        return self._render(self.bytes_kwargs).encode()

    def __str__(self) -> str:
        return self._render(self.unicode_kwargs)

    def __repr__(self) -> str:
        return self.__str__()


def metadata_tree(dataset: Dataset, level: int | None = None) -> TreeViewer:
    """Render the metadata of `dataset` (global attributes, dimensions and variables)."""
    return TreeViewer(dataset, level=level)
