import pytest

from reportguard import config
from reportguard.config import ReportPolicy

REPORT_HTML = (
    '<!DOCTYPE html>\n'
    '<html lang="en">\n'
    '<head>\n'
    '<meta charset="utf-8">\n'
    '<title>Lighthouse Report</title>\n'
    '<style>body { margin: 0; }</style>\n'
    '</head>\n'
    '<body>\n'
    '<main class="lh-container"><div class="lh-score">93</div></main>\n'
    '<script>window.__LIGHTHOUSE_JSON__ = {"finalDisplayedUrl": "https://miever.net/"};</script>\n'
    '</body>\n'
    '</html>\n'
)

HEADLESS_HTML = '<html><body><p>no head section here</p></body></html>'


@pytest.fixture(autouse=True)
def _fresh_policy_cache():
    config.load_policy.cache_clear()
    yield
    config.load_policy.cache_clear()


@pytest.fixture
def report_html():
    return REPORT_HTML


@pytest.fixture
def policy():
    return ReportPolicy.from_origins(["https://a.example", "http://localhost:8000"])


@pytest.fixture
def open_policy():
    return ReportPolicy.from_origins([])
