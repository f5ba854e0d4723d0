"""Tests for repository URL parsing."""

import pytest

from fundsync.errors import MalformedInputError
from fundsync.reconcile.locator import parse_repo_url


class TestParseRepoUrl:
    """Tests for parse_repo_url."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/widgets",
            "https://github.com/acme/widgets/",
            "https://github.com/acme/widgets.git",
            "https://github.com/acme/widgets/tree/main/src",
            "https://github.com/acme/widgets?tab=readme",
            "https://github.com/acme/widgets#readme",
            "git@github.com:acme/widgets.git",
            "  https://github.com/acme/widgets  ",
        ],
    )
    def test_parses_owner_and_name(self, url):
        """Common URL variants resolve to the same identity."""
        ref = parse_repo_url(url)
        assert ref.owner == "acme"
        assert ref.name == "widgets"

    def test_dotted_repo_name(self):
        """Dots inside the repository name are kept."""
        assert parse_repo_url("https://github.com/acme/widgets.js").name == "widgets.js"

    def test_full_name(self):
        """full_name joins owner and name."""
        assert parse_repo_url("https://github.com/acme/widgets").full_name == "acme/widgets"

    @pytest.mark.parametrize(
        "url",
        ["https://gitlab.com/acme/widgets", "https://github.com/acme", "not a url", ""],
    )
    def test_invalid_url_raises(self, url):
        """Non-GitHub or incomplete URLs are malformed input."""
        with pytest.raises(MalformedInputError, match="Invalid GitHub repository URL"):
            parse_repo_url(url)
