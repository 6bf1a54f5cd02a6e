import pytest

from microws.useragent import has_broken_compression

_PREFIX = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko)"


@pytest.mark.parametrize("minor", ["0", "1", "2", "3"])
def test_safari_15_early_minors_are_broken(minor):
    agent = f"{_PREFIX} Version/15.{minor} Safari/605.1.15"
    assert has_broken_compression(agent) is True


@pytest.mark.parametrize("minor", ["4", "5", "10", "99999999999"])
def test_later_minors_are_fine(minor):
    agent = f"{_PREFIX} Version/15.{minor} Safari/605.1.15"
    assert has_broken_compression(agent) is False


def test_other_major_version_is_fine():
    assert has_broken_compression(f"{_PREFIX} Version/16.1 Safari/605.1.15") is False


def test_no_version_marker():
    assert has_broken_compression("Mozilla/5.0 (X11; Linux x86_64) Firefox/120.0") is False


def test_version_at_end_without_space():
    assert has_broken_compression(f"{_PREFIX} Version/15.2") is False


def test_trailing_characters_rejected():
    assert has_broken_compression(f"{_PREFIX} Version/15.2a Safari/605.1.15") is False


def test_empty_minor_rejected():
    assert has_broken_compression(f"{_PREFIX} Version/15. Safari/605.1.15") is False


def test_sign_rejected():
    assert has_broken_compression(f"{_PREFIX} Version/15.+2 Safari/605.1.15") is False


def test_safari_marker_required_after_version():
    assert has_broken_compression(f"{_PREFIX} Safari/605.1.15 Version/15.2 Mobile") is False


def test_empty_string():
    assert has_broken_compression("") is False