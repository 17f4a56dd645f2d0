"""Tests for link health classification with a stubbed HTTP session."""

from __future__ import annotations

import unittest
from unittest import mock

import requests

from lazymarks.culler import (
    LinkResult,
    LinkStatus,
    check_url,
    check_urls,
    is_excluded_domain,
    group_results,
    normalize_error,
)
from lazymarks.model import Bookmark


def _bookmark(url: str, bookmark_id: str = "b") -> Bookmark:
    return Bookmark(id=bookmark_id, title=url, url=url)


def _response(code: int) -> mock.Mock:
    return mock.Mock(status_code=code)


class CheckUrlTests(unittest.TestCase):
    def test_success_and_redirect_codes_are_healthy(self) -> None:
        session = mock.Mock()
        session.head.return_value = _response(301)

        result = check_url(session, _bookmark("https://ok.example"), [])

        self.assertIs(result.status, LinkStatus.HEALTHY)
        session.get.assert_not_called()

    def test_head_failure_falls_back_to_get(self) -> None:
        session = mock.Mock()
        session.head.side_effect = requests.ConnectionError("reset")
        session.get.return_value = _response(200)

        result = check_url(session, _bookmark("https://ok.example"), [])

        self.assertIs(result.status, LinkStatus.HEALTHY)
        self.assertTrue(session.get.call_args.kwargs["stream"])

    def test_not_found_is_dead_unless_domain_excluded(self) -> None:
        session = mock.Mock()
        session.head.return_value = _response(404)

        dead = check_url(session, _bookmark("https://gone.example/x"), ["github.com"])
        private = check_url(session, _bookmark("https://gist.github.com/x"), ["github.com"])

        self.assertIs(dead.status, LinkStatus.DEAD)
        self.assertEqual(dead.reason, "HTTP 404")
        self.assertIs(private.status, LinkStatus.UNREACHABLE)
        self.assertEqual(private.reason, "Possibly private (auth required)")

    def test_other_codes_are_unreachable_with_phrase(self) -> None:
        session = mock.Mock()
        session.head.return_value = _response(503)

        result = check_url(session, _bookmark("https://busy.example"), [])

        self.assertIs(result.status, LinkStatus.UNREACHABLE)
        self.assertEqual(result.reason, "Service Unavailable")

    def test_transport_errors_are_normalized(self) -> None:
        session = mock.Mock()
        session.head.side_effect = requests.ConnectionError("boom")
        session.get.side_effect = requests.ConnectionError("Name or service not known")

        result = check_url(session, _bookmark("https://nowhere.invalid"), [])

        self.assertIs(result.status, LinkStatus.UNREACHABLE)
        self.assertEqual(result.reason, "DNS failure")


class CheckUrlsTests(unittest.TestCase):
    def test_results_keep_input_order_and_report_progress(self) -> None:
        codes = {"https://a.example": 200, "https://b.example": 410, "https://c.example": 500}
        session = mock.Mock()
        session.head.side_effect = lambda url, **_kwargs: _response(codes[url])
        bookmarks = [_bookmark(url, str(n)) for n, url in enumerate(codes)]
        progress: list[tuple[int, int]] = []

        results = check_urls(
            bookmarks,
            [],
            concurrency=3,
            on_progress=lambda done, total: progress.append((done, total)),
            session=session,
        )

        self.assertEqual([r.bookmark.id for r in results], ["0", "1", "2"])
        self.assertEqual(
            [r.status for r in results],
            [LinkStatus.HEALTHY, LinkStatus.DEAD, LinkStatus.UNREACHABLE],
        )
        self.assertEqual(progress, [(1, 3), (2, 3), (3, 3)])

    def test_empty_input(self) -> None:
        self.assertEqual(check_urls([], []), [])


class HelperTests(unittest.TestCase):
    def test_domain_exclusion_matches_subdomains_only(self) -> None:
        self.assertTrue(is_excluded_domain("https://GitHub.com/a", ["github.com"]))
        self.assertTrue(is_excluded_domain("https://api.github.com/a", ["github.com"]))
        self.assertFalse(is_excluded_domain("https://notgithub.com/a", ["github.com"]))
        self.assertFalse(is_excluded_domain("not a url", ["github.com"]))

    def test_error_categories(self) -> None:
        self.assertEqual(normalize_error("Read timed out."), "Timeout")
        self.assertEqual(normalize_error("[Errno 111] Connection refused"), "Connection refused")
        self.assertEqual(normalize_error("certificate verify failed"), "TLS/certificate error")
        self.assertEqual(normalize_error("weird"), "weird")


class GroupResultsTests(unittest.TestCase):
    def test_dead_group_first_then_largest_error_group(self) -> None:
        healthy = LinkResult(_bookmark("h", "h"), LinkStatus.HEALTHY, 200)
        timeout_a = LinkResult(_bookmark("t1", "t1"), LinkStatus.UNREACHABLE, error="Timeout")
        dns = LinkResult(_bookmark("d", "d"), LinkStatus.UNREACHABLE, error="DNS failure")
        timeout_b = LinkResult(_bookmark("t2", "t2"), LinkStatus.UNREACHABLE, error="Timeout")
        gone = LinkResult(_bookmark("g", "g"), LinkStatus.DEAD, 410)

        groups = group_results([healthy, timeout_a, dns, timeout_b, gone])

        self.assertEqual([g.label for g in groups], ["DEAD", "Timeout", "DNS failure"])
        self.assertEqual(groups[0].results, [gone])
        self.assertEqual(groups[1].results, [timeout_a, timeout_b])
        self.assertEqual(groups[2].description, "Could not reach")

    def test_dead_codes_share_one_group(self) -> None:
        missing = LinkResult(_bookmark("m", "m"), LinkStatus.DEAD, 404)
        gone = LinkResult(_bookmark("g", "g"), LinkStatus.DEAD, 410)
        refused = [
            LinkResult(_bookmark(f"r{n}", f"r{n}"), LinkStatus.UNREACHABLE, error="Connection refused")
            for n in range(3)
        ]

        groups = group_results(refused + [missing, gone])

        self.assertEqual(groups[0].label, "DEAD")
        self.assertEqual(groups[0].results, [missing, gone])
        self.assertEqual(len(groups[1].results), 3)

    def test_only_healthy_results_make_no_groups(self) -> None:
        self.assertEqual(group_results([LinkResult(_bookmark("h"), LinkStatus.HEALTHY, 200)]), [])


if __name__ == "__main__":
    unittest.main()
