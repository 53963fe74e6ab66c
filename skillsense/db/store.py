from __future__ import annotations

import json
import os
import secrets
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

from skillsense.core.config import settings
from skillsense.core.errors import StorageError
from skillsense.schemas.documents import Document
from skillsense.schemas.jobs import JobMatch, JobMatchResult, JobRequirement, RequiredSkill, SkillMatchRecord
from skillsense.schemas.organizations import Member, Organization
from skillsense.schemas.skills import PROFICIENCY_LEVELS, AggregatedSkill, EvidenceEntry, Skill

_conn: sqlite3.Connection | None = None
_conn_lock = threading.Lock()

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS profiles (
        user_id TEXT PRIMARY KEY,
        display_name TEXT,
        email TEXT,
        github_username TEXT,
        completeness_score REAL NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        token TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        expires_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS documents (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        file_name TEXT NOT NULL,
        bucket TEXT NOT NULL,
        storage_path TEXT NOT NULL,
        content_type TEXT NOT NULL,
        document_type TEXT NOT NULL,
        processing_status TEXT NOT NULL,
        extracted_text TEXT,
        error_message TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS skills (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        name_key TEXT NOT NULL,
        category TEXT NOT NULL,
        confidence_score REAL NOT NULL,
        proficiency_level TEXT NOT NULL,
        years_experience INTEGER,
        is_explicit INTEGER NOT NULL,
        source_documents_json TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (user_id, name_key)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS skill_evidence (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        skill_id TEXT NOT NULL,
        snippet TEXT NOT NULL,
        reliability_score REAL NOT NULL,
        document_id TEXT,
        evidence_type TEXT NOT NULL,
        source_type TEXT NOT NULL,
        context TEXT,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS job_requirements (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS required_skills (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        job_requirement_id TEXT NOT NULL,
        position INTEGER NOT NULL,
        name TEXT NOT NULL,
        required_level TEXT NOT NULL,
        importance TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS job_matches (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        job_title TEXT,
        job_description TEXT NOT NULL,
        match_score INTEGER NOT NULL,
        total_skills INTEGER NOT NULL,
        matched_count INTEGER NOT NULL,
        missing_count INTEGER NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS job_match_skills (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        job_match_id TEXT NOT NULL,
        position INTEGER NOT NULL,
        skill_name TEXT NOT NULL,
        required_level TEXT NOT NULL,
        is_matched INTEGER NOT NULL,
        is_critical INTEGER NOT NULL,
        user_confidence REAL,
        user_proficiency TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS organizations (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS organization_members (
        organization_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL,
        joined_at TEXT NOT NULL,
        PRIMARY KEY (organization_id, user_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ai_analysis_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        run_id TEXT NOT NULL,
        tool_slug TEXT NOT NULL,
        model TEXT NOT NULL,
        schema_valid INTEGER NOT NULL,
        status TEXT NOT NULL,
        error_code TEXT,
        latency_ms INTEGER
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_documents_user ON documents (user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_skill_evidence_skill ON skill_evidence (skill_id);",
    "CREATE INDEX IF NOT EXISTS idx_sessions_expiry ON sessions (expires_at);",
    "CREATE INDEX IF NOT EXISTS idx_ai_analysis_runs_created_at ON ai_analysis_runs (created_at);",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.database_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        for statement in _SCHEMA:
            conn.execute(statement)
        _conn = conn
        return _conn


@contextmanager
def _transaction() -> Iterator[sqlite3.Connection]:
    conn = _get_connection()
    with _conn_lock:
        conn.execute("BEGIN")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")


def _query(sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
    conn = _get_connection()
    with _conn_lock:
        return conn.execute(sql, params).fetchall()


def init_db() -> None:
    _get_connection()


def close_db() -> None:
    global _conn
    with _conn_lock:
        if _conn is not None:
            _conn.close()
            _conn = None


# Profiles and sessions


def upsert_profile(user_id: str, *, display_name: str | None = None, email: str | None = None) -> None:
    now = _utc_now().isoformat()
    with _transaction() as conn:
        conn.execute(
            """
            INSERT INTO profiles (user_id, display_name, email, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (user_id) DO UPDATE SET
                display_name = COALESCE(excluded.display_name, profiles.display_name),
                email = COALESCE(excluded.email, profiles.email),
                updated_at = excluded.updated_at
            """,
            (user_id, display_name, email, now, now),
        )


def get_profile(user_id: str) -> dict[str, Any] | None:
    rows = _query("SELECT * FROM profiles WHERE user_id = ?", (user_id,))
    return dict(rows[0]) if rows else None


def update_profile(user_id: str, *, completeness_score: float | None = None, github_username: str | None = None) -> None:
    upsert_profile(user_id)
    with _transaction() as conn:
        conn.execute(
            """
            UPDATE profiles SET
                completeness_score = COALESCE(?, completeness_score),
                github_username = COALESCE(?, github_username),
                updated_at = ?
            WHERE user_id = ?
            """,
            (completeness_score, github_username, _utc_now().isoformat(), user_id),
        )


def purge_expired_sessions() -> None:
    with _transaction() as conn:
        conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (_utc_now().isoformat(),))


def create_session(user_id: str, *, ttl_days: int | None = None) -> tuple[str, datetime]:
    purge_expired_sessions()
    days = max(1, int(ttl_days if ttl_days is not None else settings.session_ttl_days))
    created_at = _utc_now()
    expires_at = created_at + timedelta(days=days)
    token = secrets.token_urlsafe(32)
    with _transaction() as conn:
        conn.execute(
            "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (token, user_id, created_at.isoformat(), expires_at.isoformat()),
        )
    return token, expires_at


def get_session_user(token: str) -> str | None:
    rows = _query(
        "SELECT user_id FROM sessions WHERE token = ? AND expires_at > ?",
        (token, _utc_now().isoformat()),
    )
    return rows[0]["user_id"] if rows else None


def delete_session(token: str) -> None:
    with _transaction() as conn:
        conn.execute("DELETE FROM sessions WHERE token = ?", (token,))


# Documents


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        user_id=row["user_id"],
        file_name=row["file_name"],
        bucket=row["bucket"],
        storage_path=row["storage_path"],
        content_type=row["content_type"],
        document_type=row["document_type"],
        processing_status=row["processing_status"],
        error_message=row["error_message"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def create_document(
    *,
    user_id: str,
    file_name: str,
    bucket: str,
    storage_path: str,
    content_type: str,
    document_type: str = "resume",
) -> Document:
    document_id = _new_id()
    now = _utc_now().isoformat()
    with _transaction() as conn:
        conn.execute(
            """
            INSERT INTO documents (
                id, user_id, file_name, bucket, storage_path, content_type,
                document_type, processing_status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 'pending', ?, ?)
            """,
            (document_id, user_id, file_name, bucket, storage_path, content_type, document_type, now, now),
        )
    document = get_document(document_id)
    if document is None:
        raise StorageError("Failed to read back the stored document.")
    return document


def get_document(document_id: str) -> Document | None:
    rows = _query("SELECT * FROM documents WHERE id = ?", (document_id,))
    return _row_to_document(rows[0]) if rows else None


def find_document_by_path(bucket: str, storage_path: str) -> Document | None:
    rows = _query(
        "SELECT * FROM documents WHERE bucket = ? AND storage_path = ? ORDER BY created_at DESC LIMIT 1",
        (bucket, storage_path),
    )
    return _row_to_document(rows[0]) if rows else None


def get_document_text(document_id: str) -> str | None:
    rows = _query("SELECT extracted_text FROM documents WHERE id = ?", (document_id,))
    return rows[0]["extracted_text"] if rows else None


def list_documents(user_id: str) -> list[Document]:
    rows = _query("SELECT * FROM documents WHERE user_id = ? ORDER BY created_at DESC", (user_id,))
    return [_row_to_document(row) for row in rows]


def update_document_status(
    document_id: str,
    status: str,
    *,
    error_message: str | None = None,
    extracted_text: str | None = None,
) -> None:
    with _transaction() as conn:
        conn.execute(
            """
            UPDATE documents SET
                processing_status = ?,
                error_message = ?,
                extracted_text = COALESCE(?, extracted_text),
                updated_at = ?
            WHERE id = ?
            """,
            (status, error_message, extracted_text, _utc_now().isoformat(), document_id),
        )


def delete_document(document_id: str) -> None:
    with _transaction() as conn:
        conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))


# Skills


def _higher_level(left: str, right: str) -> str:
    return left if PROFICIENCY_LEVELS.index(left) >= PROFICIENCY_LEVELS.index(right) else right


def _load_skills(conn: sqlite3.Connection, where: str, params: tuple[Any, ...]) -> list[Skill]:
    rows = conn.execute(f"SELECT * FROM skills WHERE {where} ORDER BY confidence_score DESC, name", params).fetchall()
    if not rows:
        return []

    ids = [row["id"] for row in rows]
    placeholders = ",".join("?" for _ in ids)
    evidence_rows = conn.execute(
        f"SELECT * FROM skill_evidence WHERE skill_id IN ({placeholders}) ORDER BY id",
        tuple(ids),
    ).fetchall()
    evidence_by_skill: dict[str, list[EvidenceEntry]] = {skill_id: [] for skill_id in ids}
    for ev in evidence_rows:
        evidence_by_skill[ev["skill_id"]].append(
            EvidenceEntry(
                snippet=ev["snippet"],
                reliability_score=ev["reliability_score"],
                document_id=ev["document_id"],
                evidence_type=ev["evidence_type"],
                source_type=ev["source_type"],
                context=ev["context"],
            )
        )

    return [
        Skill(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            confidence_score=row["confidence_score"],
            proficiency_level=row["proficiency_level"],
            years_experience=row["years_experience"],
            is_explicit=bool(row["is_explicit"]),
            source_documents=json.loads(row["source_documents_json"] or "[]"),
            evidence_trail=evidence_by_skill[row["id"]],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
        for row in rows
    ]


def list_skills(user_id: str) -> list[Skill]:
    conn = _get_connection()
    with _conn_lock:
        return _load_skills(conn, "user_id = ?", (user_id,))


def list_skills_for_users(user_ids: list[str]) -> list[Skill]:
    if not user_ids:
        return []
    placeholders = ",".join("?" for _ in user_ids)
    conn = _get_connection()
    with _conn_lock:
        return _load_skills(conn, f"user_id IN ({placeholders})", tuple(user_ids))


def get_skill(skill_id: str) -> Skill | None:
    conn = _get_connection()
    with _conn_lock:
        skills = _load_skills(conn, "id = ?", (skill_id,))
    return skills[0] if skills else None


def find_skill_by_name(user_id: str, name: str) -> Skill | None:
    conn = _get_connection()
    with _conn_lock:
        skills = _load_skills(conn, "user_id = ? AND name_key = ?", (user_id, name.strip().lower()))
    return skills[0] if skills else None


def _insert_evidence(conn: sqlite3.Connection, skill_id: str, evidence: list[EvidenceEntry], now: str) -> None:
    existing = {
        (row["document_id"], row["snippet"])
        for row in conn.execute(
            "SELECT document_id, snippet FROM skill_evidence WHERE skill_id = ?", (skill_id,)
        ).fetchall()
    }
    for entry in evidence:
        key = (entry.document_id, entry.snippet)
        if key in existing:
            continue
        existing.add(key)
        conn.execute(
            """
            INSERT INTO skill_evidence (
                skill_id, snippet, reliability_score, document_id, evidence_type,
                source_type, context, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                skill_id,
                entry.snippet,
                entry.reliability_score,
                entry.document_id,
                entry.evidence_type,
                entry.source_type,
                entry.context,
                now,
            ),
        )


def save_skills(
    user_id: str,
    skills: list[AggregatedSkill],
    *,
    source: str,
    on_conflict: str = "merge",
) -> list[str]:
    """Persist aggregated skills for a user and return the ids written.

    A skill whose case-insensitive name already exists for the user is either
    merged into the existing row (``on_conflict="merge"``: evidence appended,
    source recorded, confidence and level raised) or left untouched
    (``on_conflict="skip"``).
    """
    if on_conflict not in {"merge", "skip"}:
        raise ValueError("on_conflict must be 'merge' or 'skip'")

    now = _utc_now().isoformat()
    written: list[str] = []
    with _transaction() as conn:
        for skill in skills:
            name_key = skill.name.strip().lower()
            row = conn.execute(
                "SELECT * FROM skills WHERE user_id = ? AND name_key = ?",
                (user_id, name_key),
            ).fetchone()

            if row is None:
                skill_id = _new_id()
                conn.execute(
                    """
                    INSERT INTO skills (
                        id, user_id, name, name_key, category, confidence_score,
                        proficiency_level, years_experience, is_explicit,
                        source_documents_json, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        skill_id,
                        user_id,
                        skill.name.strip(),
                        name_key,
                        skill.category,
                        skill.confidence_score,
                        skill.proficiency_level,
                        skill.years_experience,
                        1 if skill.is_explicit else 0,
                        json.dumps([source]),
                        now,
                        now,
                    ),
                )
                _insert_evidence(conn, skill_id, skill.evidence, now)
                written.append(skill_id)
                continue

            if on_conflict == "skip":
                continue

            skill_id = row["id"]
            sources = json.loads(row["source_documents_json"] or "[]")
            if source not in sources:
                sources.append(source)
            years = [value for value in (row["years_experience"], skill.years_experience) if value is not None]
            conn.execute(
                """
                UPDATE skills SET
                    confidence_score = ?,
                    proficiency_level = ?,
                    years_experience = ?,
                    is_explicit = ?,
                    source_documents_json = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    max(row["confidence_score"], skill.confidence_score),
                    _higher_level(row["proficiency_level"], skill.proficiency_level),
                    max(years) if years else None,
                    1 if (row["is_explicit"] or skill.is_explicit) else 0,
                    json.dumps(sources),
                    now,
                    skill_id,
                ),
            )
            _insert_evidence(conn, skill_id, skill.evidence, now)
            written.append(skill_id)
    return written


def update_skill(skill_id: str, fields: dict[str, Any]) -> None:
    allowed = {"proficiency_level", "category", "years_experience"}
    updates = {key: value for key, value in fields.items() if key in allowed}
    if not updates:
        return
    assignments = ", ".join(f"{key} = ?" for key in updates)
    with _transaction() as conn:
        conn.execute(
            f"UPDATE skills SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), _utc_now().isoformat(), skill_id),
        )


def delete_skill(skill_id: str) -> None:
    with _transaction() as conn:
        conn.execute("DELETE FROM skill_evidence WHERE skill_id = ?", (skill_id,))
        conn.execute("DELETE FROM skills WHERE id = ?", (skill_id,))


def count_skills(user_id: str) -> int:
    rows = _query("SELECT COUNT(*) AS total FROM skills WHERE user_id = ?", (user_id,))
    return int(rows[0]["total"])


# Job requirements and matches


def _load_required_skills(conn: sqlite3.Connection, requirement_id: str) -> list[RequiredSkill]:
    rows = conn.execute(
        "SELECT * FROM required_skills WHERE job_requirement_id = ? ORDER BY position",
        (requirement_id,),
    ).fetchall()
    return [
        RequiredSkill(name=row["name"], required_level=row["required_level"], importance=row["importance"])
        for row in rows
    ]


def create_job_requirement(
    *, user_id: str, title: str, description: str | None, skills: list[RequiredSkill]
) -> JobRequirement:
    requirement_id = _new_id()
    now = _utc_now().isoformat()
    with _transaction() as conn:
        conn.execute(
            "INSERT INTO job_requirements (id, user_id, title, description, created_at) VALUES (?, ?, ?, ?, ?)",
            (requirement_id, user_id, title, description, now),
        )
        for position, skill in enumerate(skills):
            conn.execute(
                """
                INSERT INTO required_skills (job_requirement_id, position, name, required_level, importance)
                VALUES (?, ?, ?, ?, ?)
                """,
                (requirement_id, position, skill.name, skill.required_level, skill.importance),
            )
    requirement = get_job_requirement(requirement_id)
    if requirement is None:
        raise StorageError("Failed to read back the stored job requirement.")
    return requirement


def get_job_requirement(requirement_id: str) -> JobRequirement | None:
    conn = _get_connection()
    with _conn_lock:
        row = conn.execute("SELECT * FROM job_requirements WHERE id = ?", (requirement_id,)).fetchone()
        if row is None:
            return None
        skills = _load_required_skills(conn, requirement_id)
    return JobRequirement(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        skills=skills,
        created_at=row["created_at"],
    )


def list_job_requirements(user_id: str) -> list[JobRequirement]:
    rows = _query("SELECT id FROM job_requirements WHERE user_id = ? ORDER BY created_at DESC", (user_id,))
    requirements = [get_job_requirement(row["id"]) for row in rows]
    return [item for item in requirements if item is not None]


def delete_job_requirement(requirement_id: str) -> None:
    with _transaction() as conn:
        conn.execute("DELETE FROM required_skills WHERE job_requirement_id = ?", (requirement_id,))
        conn.execute("DELETE FROM job_requirements WHERE id = ?", (requirement_id,))


def save_job_match(
    *, user_id: str, job_title: str | None, job_description: str, result: JobMatchResult
) -> JobMatch:
    match_id = _new_id()
    now = _utc_now().isoformat()
    records = [*result.matched_skills, *result.missing_skills]
    with _transaction() as conn:
        conn.execute(
            """
            INSERT INTO job_matches (
                id, user_id, job_title, job_description, match_score,
                total_skills, matched_count, missing_count, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                match_id,
                user_id,
                job_title,
                job_description,
                result.match_score,
                result.total_skills,
                result.matched_count,
                result.missing_count,
                now,
            ),
        )
        for position, record in enumerate(records):
            conn.execute(
                """
                INSERT INTO job_match_skills (
                    job_match_id, position, skill_name, required_level, is_matched,
                    is_critical, user_confidence, user_proficiency
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    match_id,
                    position,
                    record.skill_name,
                    record.required_level,
                    1 if record.is_matched else 0,
                    1 if record.is_critical else 0,
                    record.user_confidence,
                    record.user_proficiency,
                ),
            )
    match = get_job_match(match_id)
    if match is None:
        raise StorageError("Failed to read back the stored job match.")
    return match


def get_job_match(match_id: str) -> JobMatch | None:
    conn = _get_connection()
    with _conn_lock:
        row = conn.execute("SELECT * FROM job_matches WHERE id = ?", (match_id,)).fetchone()
        if row is None:
            return None
        skill_rows = conn.execute(
            "SELECT * FROM job_match_skills WHERE job_match_id = ? ORDER BY position",
            (match_id,),
        ).fetchall()

    matched: list[SkillMatchRecord] = []
    missing: list[SkillMatchRecord] = []
    for skill_row in skill_rows:
        record = SkillMatchRecord(
            skill_name=skill_row["skill_name"],
            required_level=skill_row["required_level"],
            is_matched=bool(skill_row["is_matched"]),
            is_critical=bool(skill_row["is_critical"]),
            user_confidence=skill_row["user_confidence"],
            user_proficiency=skill_row["user_proficiency"],
        )
        # Records that found a user skill carry its proficiency.
        (matched if record.user_proficiency is not None else missing).append(record)

    return JobMatch(
        id=row["id"],
        user_id=row["user_id"],
        job_title=row["job_title"],
        job_description=row["job_description"],
        match_score=row["match_score"],
        matched_skills=matched,
        missing_skills=missing,
        total_skills=row["total_skills"],
        matched_count=row["matched_count"],
        missing_count=row["missing_count"],
        created_at=row["created_at"],
    )


def list_job_matches(user_id: str, *, limit: int = 20) -> list[JobMatch]:
    rows = _query(
        "SELECT id FROM job_matches WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
        (user_id, max(1, limit)),
    )
    matches = [get_job_match(row["id"]) for row in rows]
    return [item for item in matches if item is not None]


# Organizations


def create_organization(*, name: str, description: str | None, created_by: str) -> Organization:
    organization_id = _new_id()
    now = _utc_now().isoformat()
    with _transaction() as conn:
        conn.execute(
            "INSERT INTO organizations (id, name, description, created_by, created_at) VALUES (?, ?, ?, ?, ?)",
            (organization_id, name, description, created_by, now),
        )
        conn.execute(
            """
            INSERT INTO organization_members (organization_id, user_id, role, joined_at)
            VALUES (?, ?, 'owner', ?)
            """,
            (organization_id, created_by, now),
        )
    organization = get_organization(organization_id)
    if organization is None:
        raise StorageError("Failed to read back the stored organization.")
    return organization


def get_organization(organization_id: str) -> Organization | None:
    rows = _query("SELECT * FROM organizations WHERE id = ?", (organization_id,))
    if not rows:
        return None
    return Organization(**dict(rows[0]))


def list_organizations_for_user(user_id: str) -> list[Organization]:
    rows = _query(
        """
        SELECT o.* FROM organizations o
        JOIN organization_members m ON m.organization_id = o.id
        WHERE m.user_id = ?
        ORDER BY o.created_at DESC
        """,
        (user_id,),
    )
    return [Organization(**dict(row)) for row in rows]


def add_member(organization_id: str, user_id: str, role: str = "member") -> Member:
    now = _utc_now().isoformat()
    with _transaction() as conn:
        conn.execute(
            """
            INSERT INTO organization_members (organization_id, user_id, role, joined_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (organization_id, user_id) DO UPDATE SET role = excluded.role
            """,
            (organization_id, user_id, role, now),
        )
    members = [member for member in list_members(organization_id) if member.user_id == user_id]
    return members[0]


def list_members(organization_id: str) -> list[Member]:
    rows = _query(
        """
        SELECT m.organization_id, m.user_id, m.role, m.joined_at, p.display_name
        FROM organization_members m
        LEFT JOIN profiles p ON p.user_id = m.user_id
        WHERE m.organization_id = ?
        ORDER BY m.joined_at
        """,
        (organization_id,),
    )
    return [Member(**dict(row)) for row in rows]


def get_member_role(organization_id: str, user_id: str) -> str | None:
    rows = _query(
        "SELECT role FROM organization_members WHERE organization_id = ? AND user_id = ?",
        (organization_id, user_id),
    )
    return rows[0]["role"] if rows else None


# AI run log


def log_ai_analysis_run(
    *,
    run_id: str,
    tool_slug: str,
    model: str,
    schema_valid: bool,
    status: str,
    error_code: str | None,
    latency_ms: int | None,
) -> None:
    if not settings.analytics_enabled:
        return
    with _transaction() as conn:
        conn.execute(
            """
            INSERT INTO ai_analysis_runs (
                created_at, run_id, tool_slug, model, schema_valid, status, error_code, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now().isoformat(),
                run_id,
                tool_slug,
                model,
                1 if schema_valid else 0,
                status,
                error_code,
                latency_ms,
            ),
        )


def list_ai_analysis_runs(*, tool_slug: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
    if tool_slug:
        rows = _query(
            "SELECT * FROM ai_analysis_runs WHERE tool_slug = ? ORDER BY id DESC LIMIT ?",
            (tool_slug, max(1, limit)),
        )
    else:
        rows = _query("SELECT * FROM ai_analysis_runs ORDER BY id DESC LIMIT ?", (max(1, limit),))
    return [dict(row) for row in rows]
