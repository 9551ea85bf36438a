"""
Policy evaluator and embedding context tests.

Critical invariant tested:
    AN EMBEDDING ORIGIN THAT CANNOT BE VERIFIED NEVER GRANTS ACCESS
"""

import unittest

from reportguard import (
    AllowedOriginSet,
    ContextKind,
    Decision,
    EmbeddingContext,
    context_from_headers,
    evaluate,
    normalize,
)
from reportguard.evaluator import REASON_NOT_LISTED, REASON_UNVERIFIED


def embedded(raw):
    return EmbeddingContext.embedded(normalize(raw))


ALL_CONTEXTS = [
    EmbeddingContext.top_level(),
    EmbeddingContext.unknown(),
    embedded("https://a.example"),
    embedded("https://evil.example"),
    embedded("http://127.0.0.1:8000"),
]


class TestEvaluate(unittest.TestCase):

    def setUp(self):
        self.allowed = AllowedOriginSet.from_strings(["https://a.example"])

    def test_empty_set_allows_every_context(self):
        empty = AllowedOriginSet.from_strings([])
        for ctx in ALL_CONTEXTS:
            with self.subTest(ctx=ctx.describe()):
                self.assertEqual(evaluate(empty, ctx).decision, Decision.ALLOWED)

    def test_top_level_always_allowed(self):
        self.assertTrue(evaluate(self.allowed, EmbeddingContext.top_level()).is_allowed())

    def test_listed_origin_with_explicit_default_port(self):
        result = evaluate(self.allowed, embedded("https://a.example:443"))
        self.assertEqual(result.decision, Decision.ALLOWED)
        self.assertEqual(result.matched_origin, normalize("https://a.example"))

    def test_unlisted_origin_denied(self):
        result = evaluate(self.allowed, embedded("https://b.example"))
        self.assertEqual(result.decision, Decision.DENIED)
        self.assertEqual(result.reason, REASON_NOT_LISTED)

    def test_unknown_origin_denied(self):
        result = evaluate(self.allowed, EmbeddingContext.unknown())
        self.assertEqual(result.decision, Decision.DENIED)
        self.assertEqual(result.reason, REASON_UNVERIFIED)

    def test_loopback_alias_allowed(self):
        allowed = AllowedOriginSet.from_strings(["http://localhost:8000"])
        self.assertTrue(evaluate(allowed, embedded("http://127.0.0.1:8000")).is_allowed())
        self.assertFalse(evaluate(allowed, embedded("http://127.0.0.1:8080")).is_allowed())

    def test_scheme_downgrade_denied(self):
        self.assertFalse(evaluate(self.allowed, embedded("http://a.example")).is_allowed())

    def test_to_dict(self):
        self.assertEqual(
            evaluate(self.allowed, EmbeddingContext.unknown()).to_dict(),
            {"decision": "DENIED", "reason": REASON_UNVERIFIED},
        )
        self.assertEqual(
            evaluate(self.allowed, embedded("https://a.example")).to_dict(),
            {"decision": "ALLOWED", "matched_origin": "https://a.example"},
        )


class TestEmbeddingContext(unittest.TestCase):

    def test_embedded_without_origin_is_unknown(self):
        self.assertEqual(EmbeddingContext.embedded(None).kind, ContextKind.EMBEDDED_UNKNOWN)

    def test_describe(self):
        self.assertEqual(EmbeddingContext.top_level().describe(), "top-level")
        self.assertEqual(embedded("https://a.example").describe(), "embedded by https://a.example")


class TestContextFromHeaders(unittest.TestCase):

    def test_document_request_is_top_level(self):
        ctx = context_from_headers({"sec-fetch-dest": "document", "referer": "https://evil.example/"})
        self.assertEqual(ctx.kind, ContextKind.TOP_LEVEL)

    def test_no_fetch_metadata_is_top_level(self):
        self.assertEqual(context_from_headers({}).kind, ContextKind.TOP_LEVEL)

    def test_iframe_with_referer(self):
        ctx = context_from_headers({"sec-fetch-dest": "iframe", "referer": "https://a.example/dash?x=1"})
        self.assertEqual(ctx.kind, ContextKind.EMBEDDED)
        self.assertEqual(ctx.observed_origin, normalize("https://a.example"))

    def test_iframe_falls_back_to_origin_header(self):
        ctx = context_from_headers({"sec-fetch-dest": "frame", "origin": "http://localhost:8000"})
        self.assertEqual(ctx.observed_origin, normalize("http://localhost:8000"))

    def test_iframe_without_signal_is_unknown(self):
        ctx = context_from_headers({"sec-fetch-dest": "iframe", "origin": "null"})
        self.assertEqual(ctx.kind, ContextKind.EMBEDDED_UNKNOWN)


if __name__ == "__main__":
    unittest.main()
