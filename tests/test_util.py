import pytest

from ncfold.util import NoLock, format_shape, human_readable_size, info_text_report


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (100, "100 bytes"),
        (2048, "2.00 KB"),
        (3 * 2**20, "3.00 MB"),
        (2**31, "2.00 GB"),
        (5 * 2**40, "5.00 TB"),
    ],
)
def test_human_readable_size(size: int, expected: str) -> None:
    assert human_readable_size(size) == expected


def test_format_shape() -> None:
    assert format_shape((12, 5)) == "(12 × 5)"
    assert format_shape([3]) == "(3)"
    assert format_shape(()) == "()"


def test_info_text_report() -> None:
    report = info_text_report([("Name", "temperature"), ("Total elements", 24)])
    assert report == "Name           : temperature\nTotal elements : 24\n"


def test_nolock() -> None:
    with NoLock():
        pass
