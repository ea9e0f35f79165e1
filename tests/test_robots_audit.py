import asyncio

from conftest import FakeFetcher
from statute_scraper.scraper.fetcher import FetchError
from statute_scraper.scraper.robots_audit import ALTERNATIVES, AUDIT_SITES, AuditReport, AuditSite, RobotsAuditor

SITES = [
    AuditSite('AA', 'Alpha', 'https://alpha.test', '/statutes/1'),
    AuditSite('BB', 'Beta', 'https://beta.test', '/statutes/1'),
    AuditSite('CC', 'Gamma', 'https://gamma.test', '/statutes/1'),
    AuditSite('DD', 'Delta', 'https://delta.test', '/statutes/1'),
]

PAGES = {
    'https://alpha.test/robots.txt': "User-agent: *\nDisallow: /private\nCrawl-delay: 2\n",
    'https://beta.test/robots.txt': "User-agent: *\nDisallow: /\n",
    # gamma has no robots.txt
    'https://delta.test/robots.txt': FetchError('https://delta.test/robots.txt', 500),
}


def run_audit() -> AuditReport:
    auditor = RobotsAuditor(FakeFetcher(PAGES), delay_seconds=0, sites=SITES)
    return asyncio.run(auditor.run())


def test_audit_decides_each_site():
    results = {r.state: r for r in run_audit().results}

    alpha = results['AA']
    assert alpha.allowed and alpha.robots_txt_exists
    assert alpha.disallow_rules == ["/private"]
    assert alpha.crawl_delay == 2.0
    assert alpha.notes == "Scraping allowed (crawl delay: 2s)"
    assert alpha.test_url == "https://alpha.test/statutes/1"

    beta = results['BB']
    assert not beta.allowed
    assert beta.notes == "Scraping disallowed by robots.txt"

    gamma = results['CC']
    assert gamma.allowed and not gamma.robots_txt_exists
    assert "allowed by default" in gamma.notes

    delta = results['DD']
    assert not delta.allowed and not delta.robots_txt_exists
    assert delta.notes.startswith("Error checking robots.txt")


def test_audit_requests_only_robots_files():
    fetcher = FakeFetcher(PAGES)
    asyncio.run(RobotsAuditor(fetcher, delay_seconds=0, sites=SITES).run())

    assert all(url.endswith("/robots.txt") for url in fetcher.urls)


def test_report_summary_and_recommendations():
    report = run_audit()

    data = report.to_dict()
    assert data['allowed'] == ['AA', 'CC']
    assert data['disallowed'] == ['BB', 'DD']
    assert len(data['results']) == 4
    for alternative in ALTERNATIVES:
        assert alternative in data['recommendations']

    summary = report.format_summary()
    assert "ROBOTS.TXT AUDIT SUMMARY" in summary
    assert "Allowed states (2/4):" in summary
    assert "Disallow: /" in summary


def test_recommendations_when_everything_allowed():
    report = asyncio.run(RobotsAuditor(FakeFetcher(), delay_seconds=0, sites=SITES[:1]).run())

    assert report.disallowed == []
    assert report.recommendations == ["Proceed with rate-limited scraping for: AA"]


def test_default_sites_cover_ten_jurisdictions():
    states = [site.state for site in AUDIT_SITES]

    assert len(states) == 10
    assert set(states) == {'CA', 'TX', 'FL', 'NY', 'PA', 'IL', 'OH', 'GA', 'NC', 'MI'}
