import unittest
from dataclasses import replace
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from skillsense.ai.factory import get_ai_client
from skillsense.api.v1 import documents as documents_api
from skillsense.core.config import settings
from skillsense.main import app
from skillsense.parsing import parse
from skillsense.services.github_service import GitHubClient, get_github_client

from fake_ai import FakeAI

CANDIDATES = [
    {"name": "React", "confidence_score": 0.9, "proficiency_level": "advanced", "evidence_text": "Built dashboards in React"},
    {"name": "Jest", "confidence_score": 0.55, "proficiency_level": "beginner"},
    {"name": "Fortran", "confidence_score": 0.2},
]
REQUIRED = [
    {"name": "React", "required_level": "intermediate", "importance": "required"},
    {"name": "GraphQL", "required_level": "beginner", "importance": "preferred"},
]


def _github_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/users/limited":
        return httpx.Response(429, headers={"X-RateLimit-Reset": "1700000000"})
    if request.url.path == "/users/octo":
        return httpx.Response(200, json={"login": "octo", "public_repos": 1})
    if request.url.path == "/users/octo/repos":
        return httpx.Response(200, json=[{"name": "site", "description": "Personal site in React"}])
    if request.url.path.endswith("/languages"):
        return httpx.Response(200, json={"TypeScript": 2048})
    return httpx.Response(404)


class SkillSenseApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.ai = FakeAI(CANDIDATES, REQUIRED)
        app.dependency_overrides[get_ai_client] = lambda: cls.ai
        app.dependency_overrides[get_github_client] = lambda: GitHubClient(
            base_url="https://api.github.test", token="", transport=httpx.MockTransport(_github_handler)
        )
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        app.dependency_overrides.clear()

    def _login(self, user_id: str) -> dict:
        response = self.client.post("/v1/sessions", json={"user_id": user_id, "display_name": "Test User"})
        self.assertEqual(response.status_code, 201)
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def _upload(self, headers, text="Frontend engineer. React, Jest.", name="resume.txt", analyze="true"):
        return self.client.post(
            "/v1/documents",
            headers=headers,
            files={"file": (name, text.encode("utf-8"), "text/plain")},
            data={"analyze": analyze},
        )

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_requires_session(self):
        response = self.client.get("/v1/skills")
        self.assertEqual(response.status_code, 401)
        self.assertIn("error", response.json())

        response = self.client.get("/v1/skills", headers={"Authorization": "Bearer nope"})
        self.assertEqual(response.status_code, 401)

    def test_upload_extract_and_list_skills(self):
        headers = self._login("api-upload")
        response = self._upload(headers)
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["document"]["processing_status"], "completed")
        self.assertEqual(body["analysis"]["skills_count"], 2)
        self.assertEqual(body["analysis"]["hidden_skills"], 1)

        skills = self.client.get("/v1/skills", headers=headers).json()
        self.assertEqual([skill["name"] for skill in skills], ["React", "Jest"])
        self.assertEqual(skills[0]["evidence_trail"][0]["snippet"], "Built dashboards in React")

        documents = self.client.get("/v1/documents", headers=headers).json()
        self.assertEqual(len(documents), 1)

    def test_upload_rejects_wrong_type_with_error_shape(self):
        headers = self._login("api-badtype")
        response = self.client.post(
            "/v1/documents",
            headers=headers,
            files={"file": ("photo.png", b"\x89PNG", "image/png")},
        )
        self.assertEqual(response.status_code, 415)
        self.assertIn("Unsupported file type", response.json()["error"])

    def test_documents_are_private(self):
        owner = self._login("api-owner")
        document_id = self._upload(owner, analyze="false").json()["document"]["id"]
        intruder = self._login("api-intruder")

        self.assertEqual(self.client.get(f"/v1/documents/{document_id}", headers=intruder).status_code, 403)
        self.assertEqual(self.client.delete(f"/v1/documents/{document_id}", headers=intruder).status_code, 403)
        self.assertEqual(self.client.delete(f"/v1/documents/{document_id}", headers=owner).status_code, 204)
        self.assertEqual(self.client.get(f"/v1/documents/{document_id}", headers=owner).status_code, 404)

    def test_manual_skill_crud(self):
        headers = self._login("api-manual")
        created = self.client.post("/v1/skills", headers=headers, json={"name": "Kubernetes", "proficiency_level": "advanced"})
        self.assertEqual(created.status_code, 201)
        skill = created.json()
        self.assertEqual(skill["confidence_score"], 1.0)
        self.assertTrue(skill["is_explicit"])
        self.assertEqual(skill["category"], "tools")

        duplicate = self.client.post("/v1/skills", headers=headers, json={"name": "kubernetes"})
        self.assertEqual(duplicate.status_code, 400)

        updated = self.client.patch(f"/v1/skills/{skill['id']}", headers=headers, json={"proficiency_level": "expert"})
        self.assertEqual(updated.json()["proficiency_level"], "expert")

        summary = self.client.get("/v1/skills/summary", headers=headers).json()
        self.assertEqual(summary["total_skills"], 1)

        self.assertEqual(self.client.delete(f"/v1/skills/{skill['id']}", headers=headers).status_code, 204)
        self.assertEqual(self.client.get("/v1/skills", headers=headers).json(), [])

    def test_blank_skill_name_is_a_400(self):
        headers = self._login("api-blank")
        response = self.client.post("/v1/skills", headers=headers, json={"name": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_analyze_job_match_function(self):
        headers = self._login("api-match")
        self._upload(headers)
        response = self.client.post(
            "/v1/functions/analyze-job-match",
            headers=headers,
            json={"job_description": "React developer, GraphQL a plus", "user_id": "api-match"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["match_score"], 50)
        self.assertEqual([record["skill_name"] for record in body["matched_skills"]], ["React"])
        self.assertEqual([record["skill_name"] for record in body["missing_skills"]], ["GraphQL"])

        stored = self.client.get(f"/v1/job-matches/{body['match_id']}", headers=headers)
        self.assertEqual(stored.status_code, 200)
        self.assertEqual(stored.json()["match_score"], 50)

    def test_analyze_job_match_for_someone_else_is_forbidden(self):
        headers = self._login("api-self")
        response = self.client.post(
            "/v1/functions/analyze-job-match",
            headers=headers,
            json={"job_description": "Anything", "user_id": "someone-else"},
        )
        self.assertEqual(response.status_code, 403)

    def test_job_requirements_and_gap_analysis(self):
        headers = self._login("api-requirements")
        self._upload(headers)
        created = self.client.post(
            "/v1/job-requirements",
            headers=headers,
            json={
                "title": "Frontend Lead",
                "skills": [
                    {"name": "React", "required_level": "expert"},
                    {"name": "Jest", "required_level": "beginner", "importance": "preferred"},
                ],
            },
        )
        self.assertEqual(created.status_code, 201)
        requirement_id = created.json()["id"]

        match = self.client.post(f"/v1/job-requirements/{requirement_id}/match", headers=headers).json()
        self.assertEqual(match["match_score"], 50)

        gap = self.client.get("/v1/skills/gap-analysis", headers=headers, params={"job_requirement_id": requirement_id}).json()
        statuses = {item["skill"]: item["status"] for item in gap["items"]}
        self.assertEqual(statuses, {"React": "partial", "Jest": "match"})

        role_gap = self.client.get("/v1/skills/gap-analysis", headers=headers, params={"role": "Software Engineer"})
        self.assertEqual(role_gap.status_code, 200)
        self.assertEqual(role_gap.json()["role"], "Software Engineer")

        self.assertEqual(self.client.get("/v1/skills/gap-analysis", headers=headers).status_code, 400)

    def test_enhance_cv_actions(self):
        headers = self._login("api-enhance")
        analysis = self.client.post(
            "/v1/functions/enhance-cv",
            headers=headers,
            json={"original_text": "I write code", "action": "analyze"},
        ).json()
        self.assertEqual(analysis["action"], "analyze")
        self.assertEqual(analysis["analysis"]["missing_skills"], ["Kubernetes"])
        self.assertNotIn("enhancement", analysis)

        enhanced = self.client.post(
            "/v1/functions/enhance-cv",
            headers=headers,
            json={"original_text": "I write code", "action": "enhance"},
        ).json()
        self.assertEqual(enhanced["enhancement"]["enhanced_text"], "I WRITE CODE")

    def test_analyze_github_merges_into_profile(self):
        headers = self._login("api-github")
        response = self.client.post(
            "/v1/functions/analyze-github",
            headers=headers,
            json={"username": "octo", "merge_into_profile": True},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["top_languages"], ["TypeScript"])
        self.assertEqual(body["merged_skills"], 2)
        names = {skill["name"] for skill in self.client.get("/v1/skills", headers=headers).json()}
        self.assertEqual(names, {"TypeScript", "React"})

    def test_github_rate_limit_surfaces_reset_time(self):
        headers = self._login("api-github-limited")
        response = self.client.post("/v1/functions/analyze-github", headers=headers, json={"username": "limited"})
        self.assertEqual(response.status_code, 429)
        self.assertTrue(response.json()["reset_at"].startswith("2023-11-14"))

    def test_invalid_github_username(self):
        headers = self._login("api-github-invalid")
        response = self.client.post("/v1/functions/analyze-github", headers=headers, json={"username": "-bad-"})
        self.assertEqual(response.status_code, 400)

    def test_skills_report_download(self):
        headers = self._login("api-report")
        self._upload(headers)
        response = self.client.get("/v1/skills/report.pdf", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "application/pdf")
        self.assertIn("SkillSense_Dashboard_", response.headers["content-disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_organization_team_skills(self):
        owner = self._login("api-org-owner")
        self._upload(owner)
        self._login("api-org-member")
        organization = self.client.post("/v1/organizations", headers=owner, json={"name": "Web"}).json()

        added = self.client.post(
            f"/v1/organizations/{organization['id']}/members",
            headers=owner,
            json={"user_id": "api-org-member", "role": "member"},
        )
        self.assertEqual(added.status_code, 201)

        team = self.client.get(f"/v1/organizations/{organization['id']}/skills", headers=owner).json()
        self.assertEqual(team["member_count"], 2)
        self.assertEqual({skill["name"] for skill in team["skills"]}, {"React", "Jest"})

    def test_batch_upload_endpoint(self):
        headers = self._login("api-batch")
        response = self.client.post(
            "/v1/documents/batch",
            headers=headers,
            files=[
                ("files", ("a.txt", b"React developer", "text/plain")),
                ("files", ("b.png", b"png", "image/png")),
            ],
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual((body["succeeded"], body["failed"]), (1, 1))

    def test_batch_oversized_file_fails_alone(self):
        headers = self._login("api-batch-large")
        small_limit = replace(settings, max_upload_bytes=1024)
        with patch.object(documents_api, "settings", small_limit), patch.object(parse, "settings", small_limit):
            response = self.client.post(
                "/v1/documents/batch",
                headers=headers,
                files=[
                    ("files", ("ok.txt", b"React developer", "text/plain")),
                    ("files", ("huge.txt", b"x" * 4096, "text/plain")),
                ],
            )
        self.assertEqual(response.status_code, 200)
        items = {item["file_name"]: item for item in response.json()["items"]}
        self.assertEqual(items["ok.txt"]["status"], "success")
        self.assertEqual(items["huge.txt"]["status"], "error")
        self.assertIn("too large", items["huge.txt"]["error"])
        self.assertIsNone(items["huge.txt"]["document_id"])

        documents = self.client.get("/v1/documents", headers=headers).json()
        self.assertEqual([document["file_name"] for document in documents], ["ok.txt"])

    def test_session_logout(self):
        headers = self._login("api-logout")
        self.assertEqual(self.client.get("/v1/sessions/me", headers=headers).json()["user_id"], "api-logout")
        self.assertEqual(self.client.delete("/v1/sessions", headers=headers).status_code, 204)
        self.assertEqual(self.client.get("/v1/sessions/me", headers=headers).status_code, 401)


if __name__ == "__main__":
    unittest.main()
