"""Tests for listing pagination and link collection."""

import unittest

from selectolax.parser import HTMLParser

from fakes import BASE, START_URL, FakeTab, fast_config, listing_page
from jobhunter.errors import NavigationFailure
from jobhunter.listing import collect_links, listing_url, next_page


class TestListingUrl(unittest.TestCase):
    """Verify page numbering on top of the start URL."""

    def test_first_page_is_start_url(self):
        self.assertEqual(listing_url(START_URL, 0), START_URL)

    def test_later_pages_set_page_param(self):
        self.assertEqual(listing_url(START_URL, 1), START_URL + "&page=2")
        self.assertEqual(listing_url(START_URL, 4), START_URL + "&page=5")

    def test_existing_page_param_is_the_base(self):
        self.assertEqual(
            listing_url(BASE + "/remote-jobs/search?page=3&term=go", 2),
            BASE + "/remote-jobs/search?term=go&page=5",
        )

    def test_url_without_query(self):
        self.assertEqual(listing_url(BASE + "/remote-jobs", 1), BASE + "/remote-jobs?page=2")


class TestCollectLinks(unittest.TestCase):
    def test_keeps_detail_links_only(self):
        tree = HTMLParser(
            listing_page(
                [
                    "/remote-jobs/acme-node-engineer",
                    "/remote-jobs/search?term=node",
                    "/remote-jobs/all-jobs",
                    "/categories/remote-programming-jobs",
                    "/remote-jobs/acme-node-engineer",
                    "https://weworkremotely.com/remote-jobs/globex-sre",
                ]
            )
        )
        self.assertEqual(
            collect_links(tree, START_URL),
            [BASE + "/remote-jobs/acme-node-engineer", BASE + "/remote-jobs/globex-sre"],
        )


class TestNextPage(unittest.IsolatedAsyncioTestCase):
    """Verify listing retrieval and its failure mode."""

    async def test_returns_links_for_page(self):
        url = listing_url(START_URL, 1)
        tab = FakeTab({url: listing_page(["/remote-jobs/a-job", "/remote-jobs/b-job"])})
        links = await next_page(tab, START_URL, 1, fast_config())
        self.assertEqual(links, [BASE + "/remote-jobs/a-job", BASE + "/remote-jobs/b-job"])
        self.assertEqual(tab.visits, [url])

    async def test_navigation_failure_yields_empty_page(self):
        tab = FakeTab({START_URL: NavigationFailure(START_URL, "timeout")})
        links = await next_page(tab, START_URL, 0, fast_config(retry_attempts=3))
        self.assertEqual(links, [])
        self.assertEqual(len(tab.visits), 3)


if __name__ == "__main__":
    unittest.main()
