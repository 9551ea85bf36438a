"""
Delivery header policy tests.
"""

import unittest

from reportguard import AllowedOriginSet, EmbeddingContext, evaluate, headers
from reportguard.delivery import CSP_HEADER, FRAME_OPTIONS_HEADER


class TestHeaders(unittest.TestCase):

    def test_unrestricted(self):
        h = headers(AllowedOriginSet.from_strings([]))
        self.assertFalse(h.restricted)
        self.assertEqual(h.as_dict(), {CSP_HEADER: "frame-ancestors *"})

    def test_restricted(self):
        h = headers(AllowedOriginSet.from_strings(["https://a.example:443", "https://b.example:8443"]))
        self.assertTrue(h.restricted)
        self.assertEqual(h.as_dict(), {
            CSP_HEADER: "frame-ancestors https://a.example https://b.example:8443",
            FRAME_OPTIONS_HEADER: "SAMEORIGIN",
        })

    def test_loopback_alias_listed(self):
        h = headers(AllowedOriginSet.from_strings(["http://localhost:8000"]))
        self.assertEqual(h.frame_ancestors, "http://localhost:8000 http://127.0.0.1:8000")

    def test_loopback_alias_not_duplicated(self):
        h = headers(AllowedOriginSet.from_strings(["http://localhost:8000", "http://127.0.0.1:8000"]))
        self.assertEqual(h.frame_ancestors, "http://localhost:8000 http://127.0.0.1:8000")

    def test_deterministic(self):
        origins = ["https://a.example", "http://localhost:3000"]
        self.assertEqual(
            headers(AllowedOriginSet.from_strings(origins)),
            headers(AllowedOriginSet.from_strings(origins)),
        )

    def test_restriction_agrees_with_evaluator(self):
        for origins in ([], ["https://a.example"], ["http://localhost:8000", "https://b.example"]):
            allowed = AllowedOriginSet.from_strings(origins)
            unknown_allowed = evaluate(allowed, EmbeddingContext.unknown()).is_allowed()
            with self.subTest(origins=origins):
                self.assertEqual(headers(allowed).restricted, not unknown_allowed)


if __name__ == "__main__":
    unittest.main()
