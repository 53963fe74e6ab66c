import unittest

import httpx

from skillsense.core.errors import ExternalServiceError, GitHubRateLimitError, NotFoundError
from skillsense.db import store
from skillsense.services.github_service import GitHubClient, analyze_github

from fake_ai import new_session

USER = {
    "login": "octo",
    "name": "Octo Cat",
    "public_repos": 2,
    "followers": 10,
    "following": 1,
    "html_url": "https://github.com/octo",
}
REPOS = [
    {
        "name": "api",
        "description": "Payments API built with Django",
        "topics": ["docker"],
        "stargazers_count": 40,
        "forks_count": 2,
        "fork": False,
        "language": "Python",
        "html_url": "https://github.com/octo/api",
    },
    {
        "name": "cli",
        "description": None,
        "stargazers_count": 1,
        "forks_count": 0,
        "fork": False,
        "language": "Go",
        "html_url": "https://github.com/octo/cli",
    },
]
LANGUAGES = {"api": {"Python": 3000}, "cli": {"Go": 1000}}


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/users/octo":
        return httpx.Response(200, json=USER, headers={"X-RateLimit-Remaining": "55"})
    if path == "/users/octo/repos":
        assert request.url.params["sort"] == "updated"
        return httpx.Response(200, json=REPOS)
    if path.endswith("/languages"):
        return httpx.Response(200, json=LANGUAGES[path.split("/")[3]])
    if path == "/repos/octo/cli/readme":
        return httpx.Response(200, text="Built with kubernetes in mind")
    if path.endswith("/readme"):
        return httpx.Response(404, json={"message": "Not Found"})
    return httpx.Response(404, json={"message": "Not Found"})


def _client(handler=_handler) -> GitHubClient:
    return GitHubClient(base_url="https://api.github.test", token="", transport=httpx.MockTransport(handler))


class GitHubClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_builds_profile_and_snapshots(self):
        profile, repos = await _client().fetch("octo")

        self.assertEqual(profile.login, "octo")
        self.assertEqual(profile.public_repos, 2)
        self.assertEqual([repo.name for repo in repos], ["api", "cli"])
        self.assertEqual(repos[0].languages, {"Python": 3000})
        self.assertEqual(repos[0].topics, ["docker"])
        self.assertIsNone(repos[0].readme)
        self.assertEqual(repos[1].readme, "Built with kubernetes in mind")

    async def test_rate_limit_carries_reset_time(self):
        def limited(request):
            return httpx.Response(403, headers={"X-RateLimit-Reset": "1700000000"}, json={"message": "rate limit"})

        with self.assertRaises(GitHubRateLimitError) as ctx:
            await _client(limited).fetch("octo")
        self.assertEqual(int(ctx.exception.reset_at.timestamp()), 1700000000)
        self.assertEqual(ctx.exception.status_code, 429)

    async def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            await _client().fetch("ghost")

    async def test_server_error_is_upstream_failure(self):
        with self.assertRaises(ExternalServiceError):
            await _client(lambda request: httpx.Response(500)).fetch("octo")

    async def test_network_error(self):
        def broken(request):
            raise httpx.ConnectError("boom", request=request)

        with self.assertRaises(ExternalServiceError):
            await _client(broken).fetch("octo")


class AnalyzeGitHubTests(unittest.IsolatedAsyncioTestCase):
    async def test_analysis_without_merge_leaves_profile_untouched(self):
        session = new_session("gh")
        analysis = await analyze_github(session, username="octo", client=_client())

        self.assertEqual(analysis.repo_count, 2)
        self.assertEqual(analysis.top_languages, ["Python", "Go"])
        self.assertEqual(analysis.merged_skills, 0)
        self.assertEqual(store.list_skills(session.user_id), [])

    async def test_merge_adds_only_new_skills(self):
        session = new_session("gh")
        first = await analyze_github(session, username="octo", merge_into_profile=True, client=_client())
        names = {skill.name for skill in store.list_skills(session.user_id)}
        self.assertTrue({"Python", "Go", "Django", "Docker", "Kubernetes"} <= names)
        self.assertEqual(first.merged_skills, len(names))

        python = store.find_skill_by_name(session.user_id, "python")
        self.assertEqual(python.source_documents, ["GitHub: octo"])
        self.assertFalse(python.is_explicit)
        self.assertEqual(python.evidence_trail[0].source_type, "github")
        self.assertEqual(store.get_profile(session.user_id)["github_username"], "octo")

        second = await analyze_github(session, username="octo", merge_into_profile=True, client=_client())
        self.assertEqual(second.merged_skills, 0)
        self.assertEqual(len(store.list_skills(session.user_id)), len(names))


if __name__ == "__main__":
    unittest.main()
