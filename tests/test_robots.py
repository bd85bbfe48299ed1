"""Tests for the robots.txt policy gate."""

import unittest
from unittest import mock

import requests

from jobhunter.robots import disallows_everything, fetch_text, is_allowed


UA = "JobHunterBot/1.0 (+you@example.com)"


class TestDisallowsEverything(unittest.TestCase):
    """Verify group parsing and agent matching."""

    def test_wildcard_disallow_root(self):
        self.assertTrue(disallows_everything("User-agent: *\nDisallow: /\n", UA))

    def test_partial_disallow_is_allowed(self):
        self.assertFalse(disallows_everything("User-agent: *\nDisallow: /admin\n", UA))

    def test_other_agent_block_does_not_apply(self):
        text = "User-agent: OtherBot\nDisallow: /\n\nUser-agent: *\nDisallow:\n"
        self.assertFalse(disallows_everything(text, UA))

    def test_grouped_agents_share_rules(self):
        text = "User-agent: SomeBot\nUser-agent: JobHunterBot\nDisallow: /\n"
        self.assertTrue(disallows_everything(text, UA))

    def test_agent_matched_by_product_token_only(self):
        """A short group name that merely occurs inside our agent string does not apply."""
        self.assertFalse(disallows_everything("User-agent: Bot\nDisallow: /\n", UA))
        self.assertFalse(disallows_everything("User-agent: hunter\nDisallow: /\n", UA))
        self.assertTrue(disallows_everything("User-agent: jobhunterbot\nDisallow: /\n", UA))

    def test_comments_are_ignored(self):
        text = "# Disallow: /\nUser-agent: * # everyone\nAllow: /\n"
        self.assertFalse(disallows_everything(text, UA))


class TestIsAllowed(unittest.TestCase):
    """Verify the gate fails open and honours a full deny."""

    def test_fetch_error_allows(self):
        def fetch(url):
            raise requests.ConnectionError("offline")

        self.assertTrue(is_allowed("https://site", UA, fetch=fetch))

    def test_full_deny_blocks(self):
        seen = []

        def fetch(url):
            seen.append(url)
            return "User-agent: *\nDisallow: /\n"

        self.assertFalse(is_allowed("https://site", UA, fetch=fetch))
        self.assertEqual(seen, ["https://site/robots.txt"])

    def test_permissive_robots_allows(self):
        self.assertTrue(is_allowed("https://site", UA, fetch=lambda url: "User-agent: *\nDisallow:\n"))


class TestFetchText(unittest.TestCase):
    """Verify the HTTP call carries the user agent and checks status."""

    def test_sends_user_agent(self):
        resp = mock.Mock(text="User-agent: *\n")
        with mock.patch("jobhunter.robots.requests.get", return_value=resp) as get:
            text = fetch_text("https://site/robots.txt", user_agent=UA)

        self.assertEqual(text, "User-agent: *\n")
        resp.raise_for_status.assert_called_once()
        self.assertEqual(get.call_args.kwargs["headers"], {"User-Agent": UA})


if __name__ == "__main__":
    unittest.main()
