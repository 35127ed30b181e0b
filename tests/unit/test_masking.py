import pytest

from secretlink.utils.masking import fingerprint, mask_email


@pytest.mark.parametrize(
    "email,expected",
    [
        ("alice@example.com", "a***e@example.com"),
        ("bob@example.com", "b*b@example.com"),
        ("ab@example.com", "a*@example.com"),
        ("x@example.com", "x*@example.com"),
        ("no-at-sign", "**********"),
    ],
)
def test_mask_email(email, expected):
    assert mask_email(email) == expected


def test_fingerprint_never_reveals_short_ids_or_full_ids():
    assert fingerprint("abcdefghijkl") == "abcdef…"
    assert fingerprint("abc") == "…"
