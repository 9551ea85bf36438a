"""
ReportGuard Client Validator

Renders the browser-side enforcement script embedded in report artifacts.

The script runs a small state machine:

    loading -> checking -> allowed | denied

Checks fire on document-ready, on full load, on a bounded list of
delayed re-checks and on structural mutations of the document. ALLOWED
is monotonic: the first allowed decision stops every timer and the
mutation observer, and restores the report if a denial view was shown.
A DENIED state stays open to later re-checks so that a decision made
too early (before the embedding signal was available) cannot stick.

The script applies the same ordered rules as `reportguard.evaluator`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .allowlist import AllowedOriginSet
from .evaluator import REASON_NOT_LISTED, REASON_UNVERIFIED
from .util import script_json


class ValidatorState(str, Enum):
    LOADING = "loading"
    CHECKING = "checking"
    ALLOWED = "allowed"
    DENIED = "denied"


DEFAULT_RECHECK_DELAYS_MS: Tuple[int, ...] = (100, 500, 1500, 3000)
MAX_RECHECKS = 10
MAX_RECHECK_DELAY_MS = 60000

DEFAULT_DENIAL_TITLE = "Access denied"
DEFAULT_DENIAL_MESSAGE = "This report can only be viewed directly or embedded by the following sites:"

STATE_ATTRIBUTE = "data-reportguard-state"
DENIAL_VIEW_ID = "reportguard-denial"

CONFIG_PLACEHOLDER = "__REPORTGUARD_CONFIG__"

_SCRIPT_TEMPLATE = """(function () {
  "use strict";
  var CONFIG = __REPORTGUARD_CONFIG__;
  var STATES = CONFIG.states;
  var DEFAULT_PORTS = {"http:": 80, "https:": 443};
  var LOOPBACK = ["localhost", "127.0.0.1"];
  var state = STATES.loading;
  var timers = [];
  var observer = null;
  var saved = null;

  function parseOrigin(raw) {
    if (!raw || raw === "null") { return null; }
    var url;
    try {
      url = new URL(raw.indexOf("://") === -1 ? "http://" + raw : raw);
    } catch (e) {
      return null;
    }
    if (!Object.prototype.hasOwnProperty.call(DEFAULT_PORTS, url.protocol) || !url.hostname) {
      return null;
    }
    var host = url.hostname.toLowerCase().replace(/\\.$/, "");
    if (host.charAt(0) === "[") { host = host.slice(1, -1); }
    return {
      scheme: url.protocol.slice(0, -1),
      hostname: host,
      port: url.port ? parseInt(url.port, 10) : DEFAULT_PORTS[url.protocol]
    };
  }

  function equivalent(a, b) {
    if (a.scheme !== b.scheme || a.port !== b.port) { return false; }
    if (a.hostname === b.hostname) { return true; }
    return LOOPBACK.indexOf(a.hostname) !== -1 && LOOPBACK.indexOf(b.hostname) !== -1;
  }

  var ALLOWED = [];
  for (var i = 0; i < CONFIG.origins.length; i++) {
    var parsed = parseOrigin(CONFIG.origins[i]);
    if (parsed) { ALLOWED.push(parsed); }
  }

  function determineContext() {
    try {
      if (window.self === window.top) { return {kind: "TOP_LEVEL"}; }
    } catch (e) {
      // reaching window.top failed, so we are framed
    }
    var origin = null;
    try {
      origin = parseOrigin(window.top.location.origin);
    } catch (e) {
      origin = null;
    }
    if (!origin) { origin = parseOrigin(document.referrer); }
    return origin ? {kind: "EMBEDDED", origin: origin} : {kind: "EMBEDDED_UNKNOWN"};
  }

  function evaluate(context) {
    if (CONFIG.origins.length === 0) { return {allowed: true}; }
    if (context.kind === "TOP_LEVEL") { return {allowed: true}; }
    if (context.kind === "EMBEDDED") {
      for (var j = 0; j < ALLOWED.length; j++) {
        if (equivalent(ALLOWED[j], context.origin)) { return {allowed: true}; }
      }
      return {allowed: false, reason: CONFIG.reasons.notListed};
    }
    return {allowed: false, reason: CONFIG.reasons.unverified};
  }

  function setState(next) {
    state = next;
    document.documentElement.setAttribute(CONFIG.stateAttribute, next);
  }

  function stop() {
    for (var k = 0; k < timers.length; k++) { clearTimeout(timers[k]); }
    timers = [];
    if (observer) {
      observer.disconnect();
      observer = null;
    }
  }

  function element(tag, text) {
    var node = document.createElement(tag);
    if (text) { node.appendChild(document.createTextNode(text)); }
    return node;
  }

  function buildDenialView(reason) {
    var view = element("div");
    view.id = CONFIG.denialViewId;
    view.setAttribute("role", "alert");
    view.style.cssText = "font-family:sans-serif;max-width:40em;margin:4em auto;padding:0 1em;";
    view.appendChild(element("h1", CONFIG.denial.title));
    view.appendChild(element("p", CONFIG.denial.message));
    var list = element("ul");
    for (var m = 0; m < CONFIG.origins.length; m++) {
      list.appendChild(element("li", CONFIG.origins[m]));
    }
    view.appendChild(list);
    if (reason) { view.appendChild(element("p", "Reason: " + reason + ".")); }
    return view;
  }

  function renderDenial(reason) {
    var body = document.body;
    if (!body) { return; }
    if (saved === null) { saved = []; }
    var nodes = Array.prototype.slice.call(body.childNodes);
    for (var n = 0; n < nodes.length; n++) {
      if (nodes[n].id !== CONFIG.denialViewId) { saved.push(body.removeChild(nodes[n])); }
    }
    var current = document.getElementById(CONFIG.denialViewId);
    if (current) { body.removeChild(current); }
    body.appendChild(buildDenialView(reason));
    if (observer) { observer.takeRecords(); }
  }

  function restore() {
    var body = document.body;
    var view = document.getElementById(CONFIG.denialViewId);
    if (view) { view.parentNode.removeChild(view); }
    if (body && saved) {
      for (var r = 0; r < saved.length; r++) { body.appendChild(saved[r]); }
    }
    saved = null;
  }

  function check() {
    if (state === STATES.allowed) { return; }
    if (state === STATES.loading) { setState(STATES.checking); }
    var result = evaluate(determineContext());
    if (result.allowed) {
      stop();
      if (saved !== null) { restore(); }
      setState(STATES.allowed);
      return;
    }
    renderDenial(result.reason);
    setState(STATES.denied);
  }

  setState(STATES.loading);
  if (window.MutationObserver) {
    observer = new MutationObserver(check);
    observer.observe(document.documentElement, {childList: true, subtree: true});
  }
  for (var d = 0; d < CONFIG.delays.length; d++) {
    timers.push(setTimeout(check, CONFIG.delays[d]));
  }
  window.addEventListener("load", check);
  if (document.readyState === "loading") {
    document.addEventListener("DOMContentLoaded", check);
  } else {
    check();
  }
})();
"""


@dataclass(frozen=True)
class ClientValidator:
    """Browser-side validator configured for one Allowed-Origin Set."""
    allowed: AllowedOriginSet
    recheck_delays_ms: Tuple[int, ...] = DEFAULT_RECHECK_DELAYS_MS
    denial_title: str = DEFAULT_DENIAL_TITLE
    denial_message: str = DEFAULT_DENIAL_MESSAGE

    def __post_init__(self):
        delays = tuple(self.recheck_delays_ms)
        if len(delays) > MAX_RECHECKS:
            raise ValueError(f"at most {MAX_RECHECKS} re-checks may be scheduled")
        for ms in delays:
            if not isinstance(ms, int) or ms < 0 or ms > MAX_RECHECK_DELAY_MS:
                raise ValueError(f"invalid re-check delay: {ms!r}")
        object.__setattr__(self, "recheck_delays_ms", delays)

    def config(self) -> Dict[str, Any]:
        """The literal data handed to the script."""
        return {
            "origins": self.allowed.serialize(),
            "delays": list(self.recheck_delays_ms),
            "states": {s.name.lower(): s.value for s in ValidatorState},
            "reasons": {
                "notListed": REASON_NOT_LISTED,
                "unverified": REASON_UNVERIFIED,
            },
            "denial": {
                "title": self.denial_title,
                "message": self.denial_message,
            },
            "stateAttribute": STATE_ATTRIBUTE,
            "denialViewId": DENIAL_VIEW_ID,
        }

    def render(self) -> str:
        return _SCRIPT_TEMPLATE.replace(CONFIG_PLACEHOLDER, script_json(self.config()), 1)
