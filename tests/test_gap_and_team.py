import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from skillsense.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from skillsense.db import store
from skillsense.features.gap_analysis import analyze_gap, available_roles, learning_resource, role_requirements
from skillsense.features.skill_summary import completeness_score, summarize_skills
from skillsense.features.team_skills import aggregate_team_skills
from skillsense.schemas.jobs import RequiredSkill, UserSkillInput
from skillsense.schemas.organizations import MemberAdd, OrganizationCreate
from skillsense.schemas.skills import AggregatedSkill, EvidenceEntry, Skill, SkillCreate, SkillUpdate
from skillsense.services import skills_service, team_service
from skillsense.services.report_service import build_skills_report, report_filename

from fake_ai import new_session

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def _stored(user_id, name, confidence=0.8, level="intermediate", category="technical", explicit=True):
    return Skill(
        id=f"{user_id}-{name}",
        user_id=user_id,
        name=name,
        category=category,
        confidence_score=confidence,
        proficiency_level=level,
        is_explicit=explicit,
        created_at=NOW,
        updated_at=NOW,
    )


class GapAnalysisTests(unittest.TestCase):
    def test_partial_for_present_but_below_level(self):
        gap = analyze_gap(
            [UserSkillInput(name="Python", proficiency_level="intermediate"), UserSkillInput(name="SQL", proficiency_level="expert")],
            [
                RequiredSkill(name="Python", required_level="advanced"),
                RequiredSkill(name="SQL", required_level="advanced"),
                RequiredSkill(name="Statistics", required_level="advanced", importance="preferred"),
            ],
            role="Data Scientist",
        )
        statuses = {item.skill: item.status for item in gap.items}
        self.assertEqual(statuses, {"Python": "partial", "SQL": "match", "Statistics": "missing"})
        self.assertEqual((gap.matching, gap.partial, gap.missing), (1, 1, 1))
        self.assertEqual(gap.match_rate, 33)
        self.assertEqual([item.status for item in gap.items], ["missing", "partial", "match"])

        python = next(item for item in gap.items if item.skill == "Python")
        self.assertEqual(python.current_level, "intermediate")
        self.assertEqual(python.learning_resource.time, "3-4 months")
        sql = next(item for item in gap.items if item.skill == "SQL")
        self.assertIsNone(sql.learning_resource)

    def test_repeated_requirement_keeps_first_importance(self):
        gap = analyze_gap(
            [],
            [
                RequiredSkill(name="Kubernetes", required_level="intermediate", importance="required"),
                RequiredSkill(name="kubernetes", required_level="beginner", importance="preferred"),
            ],
            role="Platform Engineer",
        )
        self.assertEqual(len(gap.items), 1)
        self.assertEqual(gap.items[0].importance, "required")
        self.assertEqual(gap.items[0].required_level, "intermediate")

    def test_role_templates(self):
        self.assertIn("DevOps Engineer", available_roles())
        required = role_requirements("devops engineer")
        self.assertEqual(required[0].name, "Docker")
        with self.assertRaises(KeyError):
            role_requirements("Astronaut")

    def test_learning_resource_default(self):
        resource = learning_resource("Basket Weaving")
        self.assertTrue(resource.time)
        self.assertIsInstance(resource.courses, list)

    def test_service_requires_role_or_requirement(self):
        session = new_session("gap")
        with self.assertRaises(ValidationError):
            skills_service.gap_analysis(session)
        with self.assertRaises(NotFoundError):
            skills_service.gap_analysis(session, role="Astronaut")


class SkillServiceTests(unittest.TestCase):
    def test_update_of_concurrently_deleted_skill_is_not_found(self):
        session = new_session("skills-race")
        skill = skills_service.add_manual_skill(session, SkillCreate(name="Terraform"))

        with patch.object(store, "update_skill", side_effect=lambda skill_id, fields: store.delete_skill(skill_id)):
            with self.assertRaises(NotFoundError):
                skills_service.update_skill(session, skill.id, SkillUpdate(proficiency_level="advanced"))


class TeamSkillTests(unittest.TestCase):
    def test_counts_distinct_members_per_skill(self):
        skills = [
            _stored("ana", "Python", 0.9, "advanced"),
            _stored("ben", "python", 0.7, "intermediate"),
            _stored("ben", "Docker", 0.6, "beginner", category="tools"),
            _stored("outsider", "Python", 0.1, "beginner"),
        ]
        team = aggregate_team_skills("org-1", ["ana", "ben"], skills)

        self.assertEqual(team.member_count, 2)
        python = team.skills[0]
        self.assertEqual(python.name, "Python")
        self.assertEqual(python.member_count, 2)
        self.assertEqual(python.average_confidence, 0.8)
        self.assertEqual(python.proficiency_distribution["advanced"], 1)
        self.assertEqual(python.proficiency_distribution["intermediate"], 1)
        self.assertEqual(team.category_distribution, {"technical": 2, "tools": 1})

    def test_membership_rules(self):
        owner = new_session("owner")
        member = new_session("member")
        stranger = new_session("stranger")
        organization = team_service.create_organization(owner, OrganizationCreate(name="  Platform  "))
        self.assertEqual(organization.name, "Platform")

        team_service.add_member(owner, organization.id, MemberAdd(user_id=member.user_id))
        with self.assertRaises(PermissionDeniedError):
            team_service.add_member(member, organization.id, MemberAdd(user_id=stranger.user_id))
        with self.assertRaises(PermissionDeniedError):
            team_service.team_skills(stranger, organization.id)

        store.save_skills(
            member.user_id,
            [
                AggregatedSkill(
                    name="Terraform",
                    category="tools",
                    confidence_score=0.8,
                    proficiency_level="advanced",
                    is_explicit=True,
                    evidence=[EvidenceEntry(snippet="IaC", reliability_score=0.8)],
                )
            ],
            source="manual",
        )
        team = team_service.team_skills(owner, organization.id)
        self.assertEqual(team.member_count, 2)
        self.assertEqual([skill.name for skill in team.skills], ["Terraform"])
        roles = {item.user_id: item.role for item in team_service.list_members(owner, organization.id)}
        self.assertEqual(roles, {owner.user_id: "owner", member.user_id: "member"})


class SummaryAndReportTests(unittest.TestCase):
    def setUp(self):
        self.skills = [
            _stored("u", "Python", 0.9, "advanced"),
            _stored("u", "Communication", 0.6, "intermediate", category="soft_skills", explicit=False),
        ]

    def test_summary_counts(self):
        summary = summarize_skills(self.skills)
        self.assertEqual(summary.total_skills, 2)
        self.assertEqual((summary.explicit_skills, summary.implicit_skills), (1, 1))
        self.assertEqual(summary.average_confidence, 0.75)
        self.assertEqual(summary.by_category["soft_skills"], 1)
        self.assertEqual(summary.by_proficiency["expert"], 0)

    def test_completeness_caps_at_one(self):
        self.assertEqual(completeness_score(0), 0.0)
        self.assertEqual(completeness_score(10), 0.5)
        self.assertEqual(completeness_score(50), 1.0)

    def test_report_is_a_pdf(self):
        pdf = build_skills_report(self.skills, owner_label="Ana", generated_at=NOW)
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertTrue(build_skills_report([]).startswith(b"%PDF"))

    def test_report_spans_pages_for_many_skills(self):
        many = [_stored("u", f"Skill {index}", 0.5 + index / 400) for index in range(120)]
        self.assertTrue(build_skills_report(many, generated_at=NOW).startswith(b"%PDF"))

    def test_report_filename(self):
        self.assertEqual(report_filename(NOW), "SkillSense_Dashboard_2026-03-14.pdf")


if __name__ == "__main__":
    unittest.main()
