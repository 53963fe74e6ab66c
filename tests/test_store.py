import unittest
import uuid
from dataclasses import replace
from unittest.mock import patch

from skillsense.core.errors import StorageError
from skillsense.db import store
from skillsense.features.job_match import score_job_match
from skillsense.schemas.jobs import RequiredSkill, UserSkillInput
from skillsense.schemas.skills import AggregatedSkill, EvidenceEntry

from fake_ai import new_session


def _skill(name, confidence, level="intermediate", *, document_id, snippet, explicit=False):
    return AggregatedSkill(
        name=name,
        category="technical",
        confidence_score=confidence,
        proficiency_level=level,
        is_explicit=explicit,
        evidence=[EvidenceEntry(snippet=snippet, reliability_score=confidence, document_id=document_id)],
    )


class SkillStoreTests(unittest.TestCase):
    def setUp(self):
        self.user_id = new_session("store").user_id

    def test_same_skill_from_two_documents_merges_evidence(self):
        store.save_skills(self.user_id, [_skill("Python", 0.6, document_id="doc-a", snippet="scripts")], source="doc-a")
        store.save_skills(
            self.user_id,
            [_skill("python", 0.9, "advanced", document_id="doc-b", snippet="services", explicit=True)],
            source="doc-b",
        )

        skills = store.list_skills(self.user_id)
        self.assertEqual(len(skills), 1)
        skill = skills[0]
        self.assertEqual(skill.name, "Python")
        self.assertEqual(skill.source_documents, ["doc-a", "doc-b"])
        self.assertEqual([entry.document_id for entry in skill.evidence_trail], ["doc-a", "doc-b"])
        self.assertEqual(skill.confidence_score, 0.9)
        self.assertEqual(skill.proficiency_level, "advanced")
        self.assertTrue(skill.is_explicit)

    def test_repeated_evidence_is_not_duplicated(self):
        for _ in range(2):
            store.save_skills(self.user_id, [_skill("SQL", 0.7, document_id="doc-a", snippet="joins")], source="doc-a")
        skill = store.find_skill_by_name(self.user_id, "SQL")
        self.assertEqual(len(skill.evidence_trail), 1)
        self.assertEqual(skill.source_documents, ["doc-a"])

    def test_skip_conflict_leaves_existing_skill(self):
        store.save_skills(self.user_id, [_skill("Go", 0.8, document_id="doc-a", snippet="cli")], source="doc-a")
        written = store.save_skills(
            self.user_id,
            [_skill("Go", 0.95, "expert", document_id=None, snippet="repo")],
            source="GitHub: someone",
            on_conflict="skip",
        )
        self.assertEqual(written, [])
        self.assertEqual(store.find_skill_by_name(self.user_id, "go").confidence_score, 0.8)

    def test_skills_are_scoped_per_user(self):
        other = new_session("store").user_id
        store.save_skills(other, [_skill("Rust", 0.8, document_id="x", snippet="y")], source="x")
        self.assertEqual(store.list_skills(self.user_id), [])
        self.assertEqual(store.count_skills(other), 1)

    def test_update_ignores_unknown_fields(self):
        (skill_id,) = store.save_skills(self.user_id, [_skill("Java", 0.8, document_id="d", snippet="s")], source="d")
        store.update_skill(skill_id, {"proficiency_level": "expert", "confidence_score": 0.1})
        skill = store.get_skill(skill_id)
        self.assertEqual(skill.proficiency_level, "expert")
        self.assertEqual(skill.confidence_score, 0.8)


class DocumentStoreTests(unittest.TestCase):
    def test_unreadable_insert_raises_storage_error(self):
        user_id = new_session("store-doc").user_id
        with patch.object(store, "get_document", return_value=None):
            with self.assertRaises(StorageError):
                store.create_document(
                    user_id=user_id,
                    file_name="cv.txt",
                    bucket="resumes",
                    storage_path=f"{user_id}/1_cv.txt",
                    content_type="text/plain",
                )


class JobMatchStoreTests(unittest.TestCase):
    def test_saved_match_round_trips_lists(self):
        user_id = new_session("match").user_id
        result = score_job_match(
            [UserSkillInput(name="Python", proficiency_level="beginner", confidence_score=0.7)],
            [RequiredSkill(name="Python", required_level="advanced"), RequiredSkill(name="Rust")],
        )
        saved = store.save_job_match(user_id=user_id, job_title="Backend", job_description="jd", result=result)
        loaded = store.get_job_match(saved.id)

        self.assertEqual(loaded.match_score, 0)
        self.assertEqual([record.skill_name for record in loaded.matched_skills], ["Python"])
        self.assertEqual([record.skill_name for record in loaded.missing_skills], ["Rust"])
        self.assertEqual((loaded.matched_count, loaded.missing_count), (1, 1))
        self.assertEqual([match.id for match in store.list_job_matches(user_id)], [saved.id])


class AIRunLogTests(unittest.TestCase):
    def test_runs_are_recorded_when_analytics_enabled(self):
        run_id = uuid.uuid4().hex
        with patch.object(store, "settings", replace(store.settings, analytics_enabled=True)):
            store.log_ai_analysis_run(
                run_id=run_id,
                tool_slug="extract-skills",
                model="gpt-test",
                schema_valid=True,
                status="success",
                error_code=None,
                latency_ms=12,
            )
        runs = store.list_ai_analysis_runs(tool_slug="extract-skills")
        self.assertEqual(runs[0]["run_id"], run_id)
        self.assertEqual(runs[0]["schema_valid"], 1)

    def test_disabled_analytics_skips_logging(self):
        run_id = uuid.uuid4().hex
        store.log_ai_analysis_run(
            run_id=run_id,
            tool_slug="process-cv",
            model="gpt-test",
            schema_valid=False,
            status="error",
            error_code="rate_limited",
            latency_ms=3,
        )
        self.assertNotIn(run_id, [run["run_id"] for run in store.list_ai_analysis_runs()])


class SessionStoreTests(unittest.TestCase):
    def test_session_lifecycle(self):
        store.upsert_profile("session-user")
        token, expires_at = store.create_session("session-user", ttl_days=1)
        self.assertEqual(store.get_session_user(token), "session-user")
        store.delete_session(token)
        self.assertIsNone(store.get_session_user(token))


if __name__ == "__main__":
    unittest.main()
