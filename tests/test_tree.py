from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

from ncfold.core._tree import build_tree, metadata_tree

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset


def test_tree_sections(climate: Dataset) -> None:
    root = build_tree(climate)
    assert root.get_text() == "climate.nc"
    assert [c.get_text() for c in root.get_children()] == [
        "global attributes",
        "dimensions",
        "variables",
    ]
    variables = root.get_children()[2].get_children()
    labels = [v.get_text() for v in variables]
    assert "temperature (time[4], lat[3], lon[2]) float32" in labels


def test_tree_level(climate: Dataset) -> None:
    expected = textwrap.dedent(
        """\
        climate.nc
         ├── global attributes
         ├── dimensions
         └── variables"""
    )
    assert str(metadata_tree(climate, level=1)) == expected

    expected_bytes = textwrap.dedent(
        """\
        climate.nc
         +-- global attributes
         +-- dimensions
         +-- variables"""
    )
    assert bytes(metadata_tree(climate, level=1)).decode() == expected_bytes


def test_tree_full(climate: Dataset) -> None:
    text = str(metadata_tree(climate))
    assert 'title: "test climate data"' in text
    assert "time = 4 (unlimited)" in text
    assert 'units: "K"' in text
    assert repr(metadata_tree(climate)) == text
