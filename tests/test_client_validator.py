"""
Client validator rendering tests.
"""

import json
import unittest

from reportguard import AllowedOriginSet, ClientValidator, ValidatorState
from reportguard.client_validator import (
    CONFIG_PLACEHOLDER,
    DEFAULT_RECHECK_DELAYS_MS,
    MAX_RECHECKS,
)
from reportguard.evaluator import REASON_NOT_LISTED, REASON_UNVERIFIED


class TestClientValidator(unittest.TestCase):

    def setUp(self):
        self.allowed = AllowedOriginSet.from_strings(["https://a.example", "http://localhost:8000"])
        self.validator = ClientValidator(self.allowed)

    def test_config(self):
        cfg = self.validator.config()
        self.assertEqual(cfg["origins"], ["https://a.example", "http://localhost:8000"])
        self.assertEqual(cfg["delays"], list(DEFAULT_RECHECK_DELAYS_MS))
        self.assertEqual(cfg["states"], {
            "loading": "loading", "checking": "checking", "allowed": "allowed", "denied": "denied",
        })
        self.assertEqual(cfg["reasons"], {"notListed": REASON_NOT_LISTED, "unverified": REASON_UNVERIFIED})

    def test_render_embeds_config_once(self):
        script = self.validator.render()
        self.assertNotIn(CONFIG_PLACEHOLDER, script)
        start = script.index("var CONFIG = ") + len("var CONFIG = ")
        end = script.index(";\n", start)
        self.assertEqual(json.loads(script[start:end]), self.validator.config())

    def test_render_covers_every_trigger(self):
        script = self.validator.render()
        for needle in ("DOMContentLoaded", '"load"', "setTimeout", "MutationObserver",
                       "window.top.location.origin", "document.referrer", "observer.disconnect()"):
            with self.subTest(needle=needle):
                self.assertIn(needle, script)

    def test_render_is_deterministic(self):
        self.assertEqual(self.validator.render(), ClientValidator(self.allowed).render())

    def test_text_cannot_break_out_of_script(self):
        validator = ClientValidator(self.allowed, denial_title="</script><img src=x onerror=alert(1)>")
        script = validator.render()
        self.assertNotIn("</script>", script)
        self.assertNotIn("<img", script)
        self.assertIn("\\u003c/script\\u003e", script)

    def test_state_values(self):
        self.assertEqual([s.value for s in ValidatorState], ["loading", "checking", "allowed", "denied"])

    def test_delays_validated(self):
        for bad in ((-1,), (100, 10 ** 9), tuple(range(MAX_RECHECKS + 1)), ("100",)):
            with self.subTest(delays=bad):
                with self.assertRaises(ValueError):
                    ClientValidator(self.allowed, recheck_delays_ms=bad)

    def test_delays_list_accepted(self):
        validator = ClientValidator(self.allowed, recheck_delays_ms=[0, 250])
        self.assertEqual(validator.recheck_delays_ms, (0, 250))


if __name__ == "__main__":
    unittest.main()
