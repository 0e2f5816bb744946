import sys
import threading
import time
import unittest
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.integrations.serpapi import SearchProviderError  # noqa: E402
from app.schemas.resume import LinkedInProfile, ParsedResume, WorkExperience  # noqa: E402
from app.schemas.search import (  # noqa: E402
    BUCKET_FOR_CATEGORY,
    CatalogedSearchResult,
    DeepSearchResults,
    SearchContext,
    SearchHit,
)
from app.search.deep_search import (  # noqa: E402
    DeepSearchOrchestrator,
    build_search_queries,
    build_web_presence,
    select_linkedin_candidates,
    summarize_for_analysis,
    visibility_tier,
)
from app.search.executor import SearchExecutor  # noqa: E402
from app.verification.linkedin_verifier import LinkedInVerifier  # noqa: E402


class FakeSearchClient:
    """Thread-safe fake serving canned hits per query."""

    def __init__(self, web=None, news=None, fail=False, delays=None, raises=None):
        self.web = web or {}
        self.news = news or []
        self.fail = fail
        self.delays = delays or {}
        self.raises = raises or {}
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, kind, query):
        with self._lock:
            self.calls.append((kind, query))
        time.sleep(self.delays.get(query, 0))
        if self.fail:
            raise SearchProviderError("SerpAPI request failed: 401 - Invalid API key", status_code=401)
        if query in self.raises:
            raise self.raises[query]

    def search_web(self, query, num=20):
        self._record("web", query)
        return list(self.web.get(query, []))

    def search_news(self, query):
        self._record("news", query)
        return list(self.news)


class FakeFetcher:
    def __init__(self, profiles=None):
        self.profiles = profiles or {}
        self.fetched = []

    def fetch_profile(self, url):
        self.fetched.append(url)
        return self.profiles[url]


def _orchestrator(client, **kwargs):
    return DeepSearchOrchestrator(
        SearchExecutor(client, current_year=2025),
        max_workers=4,
        results_per_query=10,
        news_max_results=10,
        **kwargs,
    )


def _result(category, url, platform="example", score=50):
    return CatalogedSearchResult(
        category=category,
        platform=platform,
        url=url,
        title="t",
        snippet="s",
        relevance_score=score,
        search_query="q",
    )


class QueryConstructionTests(unittest.TestCase):
    def test_queries_with_context(self):
        queries = build_search_queries(
            "Jane A. Doe",
            SearchContext(company="Acme Corp", title="Senior Engineer", location="Austin"),
        )
        self.assertEqual(
            queries,
            [
                '"Jane A. Doe"',
                '"Jane A. Doe" Acme Corp Senior Engineer Austin',
                '"Jane Doe"',
                '"Jane A. Doe" "Acme Corp"',
                '"Jane A. Doe" Senior Engineer',
                '"Jane A. Doe" site:linkedin.com',
                '"Jane A. Doe" site:twitter.com OR site:x.com',
            ],
        )

    def test_duplicates_removed_and_blank_name_yields_nothing(self):
        queries = build_search_queries("Jane", None)
        self.assertEqual(len(queries), len(set(queries)))
        self.assertNotIn('"Jane" ', queries)
        self.assertEqual(build_search_queries("   ", None), [])


class ExecutorTests(unittest.TestCase):
    def test_failure_returns_outcome_instead_of_raising(self):
        executor = SearchExecutor(FakeSearchClient(fail=True))
        outcome = executor.execute('"Jane Doe"', "discovered", "Jane Doe")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.results, [])
        self.assertIn("401", outcome.error)

    def test_hits_without_link_are_dropped_and_news_is_forced(self):
        client = FakeSearchClient(
            news=[
                SearchHit(title="Jane Doe profile", link="https://news.example.com/1"),
                SearchHit(title="no link", link=""),
            ]
        )
        outcome = SearchExecutor(client).execute('"Jane Doe"', "news", "Jane Doe")
        self.assertTrue(outcome.ok)
        self.assertEqual(len(outcome.results), 1)
        self.assertEqual(outcome.results[0].category, "news")

    def test_unexpected_client_errors_become_failed_outcomes(self):
        for error in (httpx.InvalidURL("Invalid URL 'http://'"), RuntimeError("boom"), KeyError("organic_results")):
            with self.subTest(error=type(error).__name__):
                client = FakeSearchClient(raises={'"Jane Doe"': error})
                outcome = SearchExecutor(client).execute('"Jane Doe"', "discovered", "Jane Doe")
                self.assertFalse(outcome.ok)
                self.assertEqual(outcome.results, [])
                self.assertTrue(outcome.error)


class DeepSearchInvariantTests(unittest.TestCase):
    def setUp(self):
        self.name = "Jane Doe"
        shared = SearchHit(title="Jane Doe on GitHub", link="https://github.com/janedoe", snippet="repos")
        self.client = FakeSearchClient(
            web={
                '"Jane Doe"': [
                    shared,
                    SearchHit(title="Jane Doe keynote", link="https://conf.example.com/talks/1"),
                    SearchHit(title="A mention", link="https://blog.example.com/p/1"),
                ],
                '"Jane Doe" site:linkedin.com': [
                    shared,
                    SearchHit(title="Jane Doe - Engineer", link="https://www.linkedin.com/in/jane-doe"),
                ],
            },
            news=[SearchHit(title="Jane Doe announced", link="https://news.example.com/a", date="2025")],
            # the first query finishes last
            delays={'"Jane Doe"': 0.05},
        )

    def test_urls_unique_totals_match_and_buckets_sorted(self):
        results = _orchestrator(self.client).search(self.name)
        urls = [item.url for item in results.all_results()]
        self.assertEqual(len(urls), len(set(urls)))
        self.assertEqual(results.total_results, sum(len(bucket) for bucket in results.buckets().values()))
        for bucket in results.buckets().values():
            scores = [item.relevance_score for item in bucket]
            self.assertEqual(scores, sorted(scores, reverse=True))

    def test_first_occurrence_follows_query_order_not_completion_order(self):
        results = _orchestrator(self.client).search(self.name)
        github = [item for item in results.all_results() if item.url == "https://github.com/janedoe"]
        self.assertEqual(len(github), 1)
        self.assertEqual(github[0].search_query, '"Jane Doe"')

    def test_searches_performed_counts_successes(self):
        results = _orchestrator(self.client).search(self.name)
        expected_calls = len(build_search_queries(self.name)) + 1
        self.assertEqual(results.searches_performed, expected_calls)
        self.assertEqual(results.searches_failed, 0)

    def test_one_crashing_query_does_not_abort_the_search(self):
        self.client.raises = {'"Jane Doe" site:linkedin.com': RuntimeError("connection pool closed")}
        results = _orchestrator(self.client).search(self.name)
        urls = {item.url for item in results.all_results()}
        self.assertIn("https://github.com/janedoe", urls)
        self.assertIn("https://news.example.com/a", urls)
        self.assertNotIn("https://www.linkedin.com/in/jane-doe", urls)
        self.assertEqual(results.searches_failed, 1)
        self.assertEqual(results.searches_performed, len(build_search_queries(self.name)))

    def test_summary_and_web_presence_views(self):
        results = _orchestrator(self.client).search(self.name)
        digest = summarize_for_analysis(results)
        self.assertIn("## Web Presence Deep Search Results", digest)
        self.assertIn("### Professional Profiles", digest)
        presence = build_web_presence(results)
        self.assertTrue(any(item.platform.startswith("news:") for item in presence))
        self.assertTrue(select_linkedin_candidates(results))

    def test_empty_name_returns_empty_results(self):
        results = _orchestrator(self.client).search("  ")
        self.assertEqual(results.total_results, 0)
        self.assertEqual(results.summary.overall_visibility, "minimal")
        self.assertEqual(self.client.calls, [])


class VisibilityTests(unittest.TestCase):
    def test_adding_results_never_lowers_tier(self):
        order = ["minimal", "low", "medium", "high"]
        results = DeepSearchResults()
        previous = visibility_tier(results)
        self.assertEqual(previous, "minimal")
        categories = ["mention", "profile", "news", "video", "publication", "award"] * 4
        for index, category in enumerate(categories):
            bucket = getattr(results, BUCKET_FOR_CATEGORY[category])
            bucket.append(_result(category, f"https://site{index}.example.com/x", platform=f"site{index % 5}"))
            current = visibility_tier(results)
            self.assertGreaterEqual(order.index(current), order.index(previous))
            previous = current
        self.assertEqual(previous, "high")

    def test_three_mentions_are_low(self):
        results = DeepSearchResults(
            mentions=[_result("mention", f"https://a.example.com/{i}", platform="example") for i in range(3)]
        )
        self.assertEqual(visibility_tier(results), "low")


class EndToEndScenarioTests(unittest.TestCase):
    def test_jane_doe_profile_verified(self):
        linkedin_url = "https://www.linkedin.com/in/jane-doe"
        client = FakeSearchClient(
            web={
                '"Jane A. Doe" site:linkedin.com': [
                    SearchHit(title="Jane Doe - Senior Engineer at Acme Corp", link=linkedin_url),
                ],
            },
            news=[
                SearchHit(title="Acme ships new platform", link="https://news.example.com/acme-1", date="2025"),
                SearchHit(title="Acme hires", link="https://news.example.com/acme-2"),
            ],
        )
        context = SearchContext(company="Acme Corp", title="Senior Engineer")
        results = _orchestrator(client).search("Jane A. Doe", context)

        self.assertEqual(len(results.profiles), 1)
        self.assertEqual(len(results.news), 2)
        self.assertIn(results.summary.overall_visibility, {"low", "medium", "high"})
        self.assertTrue(results.summary.has_linkedin)

        fetcher = FakeFetcher(
            {
                linkedin_url: LinkedInProfile(
                    url=linkedin_url,
                    full_name="Jane Doe",
                    headline="Senior Engineer at Acme Corp",
                    connections=800,
                )
            }
        )
        resume = ParsedResume(
            full_name="Jane A. Doe",
            experience=[WorkExperience(company="Acme Corp", title="Senior Engineer")],
        )
        profile = LinkedInVerifier(fetcher).verify(select_linkedin_candidates(results), resume)
        self.assertIsNotNone(profile)
        self.assertEqual(profile.url, linkedin_url)

    def test_all_searches_fail(self):
        client = FakeSearchClient(fail=True)
        results = _orchestrator(client).search(
            "Jane A. Doe", SearchContext(company="Acme Corp", title="Senior Engineer")
        )
        self.assertEqual(results.total_results, 0)
        self.assertEqual(results.summary.overall_visibility, "minimal")
        self.assertEqual(results.searches_performed, 0)
        self.assertEqual(results.searches_failed, len(client.calls))

        fetcher = FakeFetcher()
        resume = ParsedResume(full_name="Jane A. Doe")
        self.assertIsNone(LinkedInVerifier(fetcher).verify(select_linkedin_candidates(results), resume))
        self.assertEqual(fetcher.fetched, [])


if __name__ == "__main__":
    unittest.main()
