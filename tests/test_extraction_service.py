import unittest

from skillsense.core.errors import PermissionDeniedError, UnsupportedMediaTypeError, ValidationError
from skillsense.db import store
from skillsense.services import extraction_service
from skillsense.services.batch_upload import UploadPayload, batch_upload
from skillsense.storage import files

from fake_ai import FakeAI, new_session

CANDIDATES = [
    {"name": "Python", "confidence_score": 0.92, "category": "technical", "proficiency_level": "advanced", "evidence_text": "5 years of Python"},
    {"name": "Mentoring", "confidence_score": 0.62, "proficiency_level": "intermediate"},
    {"name": "Cobol", "confidence_score": 0.3},
]


class ExtractionServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.session = new_session("extract")

    def _upload(self, text="Senior engineer. Python, mentoring.", name="resume.txt"):
        return extraction_service.upload_document(
            self.session, file_name=name, content=text.encode("utf-8"), content_type="text/plain"
        )

    async def test_upload_and_analyze_persists_kept_skills(self):
        document = self._upload()
        analysis = await extraction_service.analyze_document(self.session, document.id, extractor=FakeAI(CANDIDATES))

        self.assertEqual(analysis.skills_count, 2)
        self.assertEqual(analysis.hidden_skills, 1)
        self.assertEqual((analysis.explicit_skills, analysis.implicit_skills), (1, 1))
        self.assertEqual(store.get_document(document.id).processing_status, "completed")
        self.assertEqual(store.get_document_text(document.id), "Senior engineer. Python, mentoring.")

        skills = {skill.name: skill for skill in store.list_skills(self.session.user_id)}
        self.assertEqual(set(skills), {"Python", "Mentoring"})
        self.assertEqual(skills["Mentoring"].category, "soft_skills")
        self.assertEqual(skills["Python"].source_documents, [document.id])
        self.assertGreater(store.get_profile(self.session.user_id)["completeness_score"], 0)

    async def test_no_skills_is_a_soft_success(self):
        document = self._upload()
        analysis = await extraction_service.analyze_document(self.session, document.id, extractor=FakeAI([]))
        self.assertTrue(analysis.success)
        self.assertEqual(analysis.skills_count, 0)
        self.assertEqual(analysis.message, extraction_service.NO_SKILLS_MESSAGE)
        self.assertEqual(store.get_document(document.id).processing_status, "completed")

    async def test_extractor_failure_marks_document_failed(self):
        document = self._upload("boom")
        with self.assertRaises(RuntimeError):
            await extraction_service.analyze_document(self.session, document.id, extractor=FakeAI(CANDIDATES, fail_on="boom"))
        failed = store.get_document(document.id)
        self.assertEqual(failed.processing_status, "failed")
        self.assertEqual(failed.error_message, "model exploded")

        analysis = await extraction_service.reanalyze_document(self.session, document.id, extractor=FakeAI(CANDIDATES))
        self.assertEqual(analysis.skills_count, 2)
        self.assertEqual(store.get_document(document.id).processing_status, "completed")

    async def test_blank_text_fails_before_calling_model(self):
        document = self._upload("   \n ")
        ai = FakeAI(CANDIDATES)
        with self.assertRaises(ValidationError):
            await extraction_service.analyze_document(self.session, document.id, extractor=ai)
        self.assertEqual(ai.calls, [])
        self.assertEqual(store.get_document(document.id).processing_status, "failed")

    async def test_other_users_cannot_analyze(self):
        document = self._upload()
        intruder = new_session("intruder")
        with self.assertRaises(PermissionDeniedError):
            await extraction_service.analyze_document(intruder, document.id, extractor=FakeAI(CANDIDATES))

    def test_rejects_unsupported_type_before_storing(self):
        with self.assertRaises(UnsupportedMediaTypeError):
            extraction_service.upload_document(
                self.session, file_name="photo.png", content=b"\x89PNG", content_type="image/png"
            )
        self.assertEqual(store.list_documents(self.session.user_id), [])

    async def test_process_cv_uses_stored_file_without_explicit_flag(self):
        path = files.upload("cvs", self.session.user_id, "cv.txt", b"Data engineer with Python")
        ai = FakeAI(CANDIDATES)
        analysis = await extraction_service.process_cv(self.session, file_path=path, file_name="cv.txt", extractor=ai)

        self.assertEqual(analysis.skills_count, 2)
        self.assertEqual(ai.calls[0]["tool_slug"], "process-cv")
        self.assertFalse(ai.calls[0]["include_explicit"])
        document = store.find_document_by_path("cvs", path)
        self.assertEqual(document.document_type, "cv")

    async def test_process_cv_rejects_foreign_paths(self):
        with self.assertRaises(PermissionDeniedError):
            await extraction_service.process_cv(
                self.session, file_path="someone-else/1_cv.txt", file_name="cv.txt", extractor=FakeAI()
            )

    async def test_process_cv_rejects_dot_segments_into_other_users(self):
        victim = new_session("victim")
        victim_path = files.upload("cvs", victim.user_id, "cv.txt", b"Victim resume with Rust")
        ai = FakeAI(CANDIDATES)

        for path in (
            f"{self.session.user_id}/../{victim_path}",
            f"{self.session.user_id}/./../{victim_path}",
            f"{self.session.user_id}//{victim_path}",
        ):
            with self.assertRaises(ValidationError):
                await extraction_service.process_cv(self.session, file_path=path, file_name="cv.txt", extractor=ai)

        self.assertEqual(ai.calls, [])
        self.assertEqual(store.list_documents(self.session.user_id), [])
        self.assertEqual(store.count_skills(self.session.user_id), 0)

    async def test_delete_removes_file_but_keeps_skills(self):
        document = self._upload()
        await extraction_service.analyze_document(self.session, document.id, extractor=FakeAI(CANDIDATES))
        extraction_service.delete_document(self.session, document.id)

        self.assertIsNone(store.get_document(document.id))
        self.assertFalse(files.exists(document.bucket, document.storage_path))
        self.assertEqual(store.count_skills(self.session.user_id), 2)


class BatchUploadTests(unittest.IsolatedAsyncioTestCase):
    async def test_concurrency_cap_and_isolated_failure(self):
        session = new_session("batch")
        ai = FakeAI(CANDIDATES, fail_on="broken", delay=0.01)
        uploads = [
            UploadPayload(file_name=f"resume-{index}.txt", content=f"resume {index}".encode(), content_type="text/plain")
            for index in range(4)
        ]
        uploads.insert(2, UploadPayload(file_name="broken.txt", content=b"broken file", content_type="text/plain"))

        active: set[int] = set()
        peak = 0
        history: dict[int, list[str]] = {}

        def on_status(index, item):
            nonlocal peak
            history.setdefault(index, []).append(item.status)
            if item.status in {"uploading", "extracting", "analyzing"}:
                active.add(index)
            else:
                active.discard(index)
            peak = max(peak, len(active))

        result = await batch_upload(session, uploads, extractor=ai, concurrency=3, on_status=on_status)

        self.assertLessEqual(peak, 3)
        self.assertLessEqual(ai.max_in_flight, 3)
        self.assertEqual(result.succeeded, 4)
        self.assertEqual(result.failed, 1)
        self.assertEqual(result.items[2].status, "error")
        self.assertEqual(result.items[2].error, "Something went wrong. Please try again.")
        self.assertEqual(history[0], ["queued", "uploading", "extracting", "analyzing", "success"])
        self.assertTrue(all(item.document_id for item in result.items))

    async def test_invalid_file_does_not_stop_batch(self):
        session = new_session("batch")
        result = await batch_upload(
            session,
            [
                UploadPayload(file_name="scan.png", content=b"png", content_type="image/png"),
                UploadPayload(file_name="ok.txt", content=b"Python developer", content_type="text/plain"),
            ],
            extractor=FakeAI(CANDIDATES),
        )
        self.assertEqual([item.status for item in result.items], ["error", "success"])
        self.assertIsNone(result.items[0].document_id)


if __name__ == "__main__":
    unittest.main()
