import json
import os
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

# Keep API tests deterministic and offline.
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("LLM_ENABLED", "0")
os.environ.setdefault("ADZUNA_APP_ID", "")
os.environ.setdefault("ADZUNA_APP_KEY", "")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from app.integrations.skill_demand import HeuristicSkillDemand  # noqa: E402
from app.main import app  # noqa: E402
from app.parsing.models import ParsedDoc  # noqa: E402
from app.parsing.parse import DocumentExtractionError  # noqa: E402
from app.schemas.resume import ParsedResume, Skill  # noqa: E402
from app.schemas.search import SearchHit  # noqa: E402
from app.search.deep_search import DeepSearchOrchestrator  # noqa: E402
from app.search.executor import SearchExecutor  # noqa: E402
from app.services import analysis_service  # noqa: E402
from app.services.analysis_service import AnalysisCollaborators, AnalysisError  # noqa: E402
from app.services.llm import LLMError  # noqa: E402
from app.verification.linkedin_verifier import LinkedInVerifier  # noqa: E402

RESUME = ParsedResume(full_name="Jane Doe", skills=[Skill(name="Python")], raw_text="Jane Doe")

COMPATIBILITY_REQUEST = {
    "job": {
        "id": "42",
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Austin, TX",
        "description": "Python services for payments.",
        "url": "https://example.com/jobs/42",
        "salary_min": 140000,
        "salary_max": 170000,
    },
    "profile_analysis": {"career": {"years_of_experience": 6}, "skills": {"strengths": ["Python"]}},
}


class CannedSearchClient:
    def search_web(self, query, num=20):
        if query == '"Jane Doe"':
            return [SearchHit(title="Jane Doe on GitHub", link="https://github.com/janedoe")]
        return []

    def search_news(self, query):
        return []


class NoFetch:
    def fetch_profile(self, url):
        raise AssertionError(f"unexpected fetch of {url}")


def _collaborators(**overrides):
    values = {
        "extract_text": lambda content, filename: ParsedDoc(
            doc_id="abc", source_type="pdf", extractor="pypdf", text="Jane Doe"
        ),
        "parse_resume": lambda text: RESUME,
        "orchestrator_factory": lambda: DeepSearchOrchestrator(
            SearchExecutor(CannedSearchClient()), max_workers=2, results_per_query=5, news_max_results=5
        ),
        "verifier_factory": lambda: LinkedInVerifier(NoFetch()),
        "skill_demand_factory": HeuristicSkillDemand,
        "analyze_profile": lambda *args: {"summary": "ok"},
    }
    values.update(overrides)
    return AnalysisCollaborators(**values)


def _parse_sse(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        name = ""
        data = ""
        for line in block.splitlines():
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data = line[len("data: "):]
        if name:
            events.append((name, json.loads(data) if data else {}))
    return events


def _pdf_upload(content=b"%PDF-1.4 fake", filename="resume.pdf"):
    return {"resume": (filename, content, "application/pdf")}


class ApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_analyze_stream_emits_progress_then_result(self):
        def fake_run(content, filename, progress_callback=None):
            return analysis_service.run_analysis(
                content, filename, progress_callback, collaborators=_collaborators()
            )

        with patch("app.api.v1.analyze.run_analysis", side_effect=fake_run):
            response = self.client.post("/v1/analyze/stream", files=_pdf_upload())

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/event-stream"))
        events = _parse_sse(response.text)
        names = [name for name, _ in events]
        self.assertEqual(names[0], "connected")
        self.assertEqual(names[-1], "result")
        steps = {payload["step"] for name, payload in events if name == "progress"}
        self.assertEqual(steps, {1, 2, 3, 4, 5})

        result = events[-1][1]
        self.assertEqual(result["parsed_resume"]["full_name"], "Jane Doe")
        self.assertEqual(result["analysis"], {"summary": "ok"})
        self.assertEqual(result["deep_search_results"]["opensource"][0]["url"], "https://github.com/janedoe")

    def test_analyze_stream_reports_extraction_error(self):
        def failing_extract(content, filename):
            raise DocumentExtractionError("Could not read the PDF.", code="invalid_pdf")

        def fake_run(content, filename, progress_callback=None):
            return analysis_service.run_analysis(
                content,
                filename,
                progress_callback,
                collaborators=_collaborators(extract_text=failing_extract),
            )

        with patch("app.api.v1.analyze.run_analysis", side_effect=fake_run):
            response = self.client.post("/v1/analyze/stream", files=_pdf_upload())

        events = _parse_sse(response.text)
        errors = [payload for name, payload in events if name == "error"]
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0]["stage"], "extract")
        self.assertEqual(errors[0]["code"], "invalid_pdf")
        self.assertEqual(errors[0]["status"], 400)
        self.assertNotIn("result", [name for name, _ in events])

    def test_non_pdf_upload_is_rejected(self):
        response = self.client.post(
            "/v1/analyze/stream",
            files={"resume": ("resume.docx", b"PK\x03\x04", "application/octet-stream")},
        )
        self.assertEqual(response.status_code, 400)

    def test_empty_upload_is_rejected(self):
        response = self.client.post("/v1/resume/parse", files=_pdf_upload(content=b""))
        self.assertEqual(response.status_code, 400)

    def test_oversized_upload_is_rejected(self):
        with patch("app.api.v1.analyze.settings", SimpleNamespace(max_upload_bytes=8)):
            response = self.client.post("/v1/resume/parse", files=_pdf_upload(content=b"%PDF-1.4 " * 4))
        self.assertEqual(response.status_code, 413)

    def test_resume_parse_returns_parsed_resume(self):
        with patch("app.api.v1.analyze.extract_and_parse", return_value=RESUME):
            response = self.client.post("/v1/resume/parse", files=_pdf_upload())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["full_name"], "Jane Doe")

    def test_resume_parse_maps_llm_disabled_to_503(self):
        error = AnalysisError("parse", "OpenAI is not configured.", code="llm_disabled")
        with patch("app.api.v1.analyze.extract_and_parse", side_effect=error):
            response = self.client.post("/v1/resume/parse", files=_pdf_upload())
        self.assertEqual(response.status_code, 503)

    def test_deep_search_rejects_blank_name(self):
        response = self.client.post("/v1/search/deep", json={"name": "   "})
        self.assertEqual(response.status_code, 400)

    def test_deep_search_returns_results(self):
        orchestrator = DeepSearchOrchestrator(
            SearchExecutor(CannedSearchClient()), max_workers=2, results_per_query=5, news_max_results=5
        )

        def fake_deep_search(name, context=None):
            return orchestrator.search(name, context)

        with patch("app.api.v1.search.deep_search", side_effect=fake_deep_search):
            response = self.client.post("/v1/search/deep", json={"name": "Jane Doe"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total_results"], 1)
        self.assertEqual(body["summary"]["overall_visibility"], "minimal")

    def test_jobs_search_without_credentials_is_empty(self):
        response = self.client.post("/v1/jobs/search", json={"title": "Engineer", "location": "Austin, TX"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"jobs": [], "total_count": 0, "page": 1})

    def test_salary_estimate_falls_back_without_providers(self):
        error = LLMError("OpenAI is not configured.", code="llm_disabled")
        with patch("app.services.market_service.json_completion_required", side_effect=error):
            response = self.client.post(
                "/v1/salary/estimate",
                json={"title": "Senior Engineer", "location": "Austin, TX", "years_experience": 6},
            )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual((body["min"], body["median"], body["max"]), (120000, 150000, 195000))
        self.assertEqual(body["sample_size"], 0)
        self.assertEqual(body["location"], "Austin, TX")
        self.assertEqual((body["percentile"]["low"], body["percentile"]["high"]), (70, 90))
        self.assertIn("6 years", body["percentile"]["rationale"])

    def test_salary_estimate_uses_model_percentile(self):
        payload = {"low": 82, "high": 64, "rationale": "Strong platform skills."}
        with patch("app.services.market_service.json_completion_required", return_value=payload) as completion:
            response = self.client.post(
                "/v1/salary/estimate",
                json={"title": "Data Analyst", "location": "Chicago", "skills": ["SQL", "Python"]},
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["percentile"], {"low": 64, "high": 82, "rationale": "Strong platform skills."})
        self.assertIn("SQL, Python", completion.call_args.kwargs["user_prompt"])

    def test_salary_estimate_rejects_negative_experience(self):
        response = self.client.post(
            "/v1/salary/estimate",
            json={"title": "Engineer", "location": "Austin", "years_experience": -1},
        )
        self.assertEqual(response.status_code, 400)

    def test_job_compatibility_returns_scored_fit(self):
        payload = {
            "score": 78,
            "breakdown": {"skills": 85, "experience": 70, "industry": 60},
            "strengths": ["Python depth", "Payments background"],
            "gaps": ["No Kubernetes", "Limited people management"],
            "salary_leverage": {"target_low": 150000, "target_high": 170000, "rationale": "Posting tops out at 170k."},
            "recommendation": "Apply and lead with the payments work.",
        }
        with patch("app.services.market_service.json_completion_required", return_value=payload) as completion:
            response = self.client.post("/v1/jobs/compatibility", json=COMPATIBILITY_REQUEST)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["score"], 78)
        self.assertEqual(body["breakdown"]["skills"], 85)
        self.assertEqual(body["salary_leverage"]["target_high"], 170000)
        self.assertIn("Backend Engineer", completion.call_args.kwargs["user_prompt"])

    def test_job_compatibility_maps_llm_errors(self):
        cases = {
            503: LLMError("OpenAI is not configured.", code="llm_disabled"),
            502: LLMError("The model response was not valid JSON", code="llm_invalid"),
        }
        for expected, error in cases.items():
            with self.subTest(code=error.code):
                with patch("app.services.market_service.json_completion_required", side_effect=error):
                    response = self.client.post("/v1/jobs/compatibility", json=COMPATIBILITY_REQUEST)
                self.assertEqual(response.status_code, expected)

    def test_job_compatibility_rejects_out_of_range_score(self):
        payload = {"score": 140, "breakdown": {"skills": 1, "experience": 1, "industry": 1}}
        with patch("app.services.market_service.json_completion_required", return_value=payload):
            response = self.client.post("/v1/jobs/compatibility", json=COMPATIBILITY_REQUEST)
        self.assertEqual(response.status_code, 502)

    def test_job_compatibility_requires_job_and_profile(self):
        response = self.client.post("/v1/jobs/compatibility", json={"profile_analysis": {}})
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
