# ABOUTME: Tests for download security policy and filename sanitizing
# ABOUTME: Scheme, host allow-list, path traversal, content type and size checks

import pytest

from zenless_harvest.errors import SecurityError
from zenless_harvest.validation.security import SecurityValidator, sanitize_filename

GOOD_URL = "https://act-webstatic.hoyoverse.com/zzz/icons/bangboo.png"


@pytest.fixture
def validator():
    return SecurityValidator(max_file_size=1024)


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("amillion", "amillion"),
            ("../../etc/passwd", "etcpasswd"),
            ("a..b...c", "a.b.c"),
            ("-.hidden.-", "hidden"),
            ("名前", "unknown"),
            ("", "unknown"),
            (None, "unknown"),
            ("CON", "safe_CON"),
            ("lpt1.png", "safe_lpt1.png"),
            ("bang boo/1", "bangboo1"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_filename(raw) == expected

    def test_length_capped(self):
        assert len(sanitize_filename("a" * 250)) == 100


class TestUrlPolicy:
    def test_allowed_url(self, validator):
        assert validator.validate_icon_url(GOOD_URL)

    @pytest.mark.parametrize(
        "url",
        [
            "http://act-webstatic.hoyoverse.com/zzz/icons/bangboo.png",
            "https://evil.example.com/zzz/icons/bangboo.png",
            "https://act-webstatic.hoyoverse.com/zzz/icons/bangboo.exe",
            "https://act-webstatic.hoyoverse.com/",
            "https://act-webstatic.hoyoverse.com/" + "a" * 600 + ".png",
            "not a url",
        ],
    )
    def test_rejected_urls(self, validator, url):
        assert not validator.validate_icon_url(url)

    def test_custom_allow_list(self):
        validator = SecurityValidator(allowed_hosts=("cdn.example.org",))

        assert validator.validate_icon_url("https://cdn.example.org/a.webp")
        assert not validator.validate_icon_url(GOOD_URL)


class TestPathPolicy:
    def test_descendant_allowed(self, validator, tmp_path):
        assert validator.validate_file_path(tmp_path / "icons" / "a.png", tmp_path / "icons")

    def test_traversal_rejected(self, validator, tmp_path):
        root = tmp_path / "icons"

        assert not validator.validate_file_path(root / "../../etc/passwd", root)

    def test_root_itself_rejected(self, validator, tmp_path):
        assert not validator.validate_file_path(tmp_path, tmp_path)

    def test_sibling_with_common_prefix_rejected(self, validator, tmp_path):
        assert not validator.validate_file_path(tmp_path / "icons-evil" / "a.png", tmp_path / "icons")


class TestFileChecks:
    @pytest.mark.parametrize(("size", "valid"), [(0, False), (-1, False), (1, True), (1024, True), (1025, False)])
    def test_file_size(self, validator, size, valid):
        assert validator.validate_file_size(size) is valid

    @pytest.mark.parametrize(
        ("content_type", "valid"),
        [
            ("image/png", True),
            ("image/webp", True),
            ("IMAGE/JPEG; charset=binary", True),
            ("text/html", False),
            ("image/svg+xml", False),
            (None, False),
        ],
    )
    def test_content_type(self, validator, content_type, valid):
        assert validator.validate_content_type(content_type) is valid


class TestValidateAll:
    def test_all_valid(self, validator, tmp_path):
        assert validator.validate_all(GOOD_URL, tmp_path / "icons" / "a.png", tmp_path / "icons")

    def test_invalid_path_fails_all(self, validator, tmp_path):
        root = tmp_path / "icons"

        assert not validator.validate_all(GOOD_URL, root / "../../etc/passwd", root)

    def test_require_all_raises_with_reason(self, validator, tmp_path):
        root = tmp_path / "icons"

        with pytest.raises(SecurityError, match="escapes"):
            validator.require_all(GOOD_URL, root / "../../etc/passwd", root, entry_id="bad")
