from __future__ import annotations

import logging
from datetime import datetime, timezone
from io import BytesIO
from typing import Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from skillsense.features.skill_summary import group_by_category, summarize_skills
from skillsense.schemas.skills import PROFICIENCY_LEVELS, SKILL_CATEGORIES, Skill

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40
BRAND = colors.HexColor("#6366F1")
MUTED = colors.HexColor("#6B7280")
TRACK = colors.HexColor("#E5E7EB")

CATEGORY_LABELS = {
    "technical": "Technical",
    "tools": "Tools",
    "soft_skills": "Soft Skills",
    "domain": "Domain",
}


def report_filename(generated_at: datetime | None = None) -> str:
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"SkillSense_Dashboard_{stamp}.pdf"


class _NumberedCanvas(canvas.Canvas):
    """Defers page output until the total page count is known."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        self.setFont("Helvetica", 8)
        self.setFillColor(MUTED)
        self.drawCentredString(
            PAGE_WIDTH / 2,
            MARGIN / 2,
            f"Generated by SkillSense | Page {self._pageNumber} of {total}",
        )


class _Writer:
    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.y = PAGE_HEIGHT - MARGIN

    def ensure_space(self, height: float) -> None:
        if self.y - height < MARGIN + 20:
            self.pdf.showPage()
            self.y = PAGE_HEIGHT - MARGIN

    def heading(self, text: str, size: int = 14) -> None:
        self.ensure_space(size + 12)
        self.pdf.setFont("Helvetica-Bold", size)
        self.pdf.setFillColor(colors.black)
        self.pdf.drawString(MARGIN, self.y - size, text)
        self.y -= size + 12

    def bar(self, x: float, y: float, width: float, ratio: float, height: float = 8) -> None:
        self.pdf.setFillColor(TRACK)
        self.pdf.rect(x, y, width, height, stroke=0, fill=1)
        self.pdf.setFillColor(BRAND)
        self.pdf.rect(x, y, width * max(0.0, min(1.0, ratio)), height, stroke=0, fill=1)


def _summary_boxes(writer: _Writer, skills: Sequence[Skill]) -> None:
    summary = summarize_skills(skills)
    boxes = [
        ("Total Skills", str(summary.total_skills)),
        ("Explicit", str(summary.explicit_skills)),
        ("Inferred", str(summary.implicit_skills)),
        ("Avg Confidence", f"{round(summary.average_confidence * 100)}%"),
    ]
    gap = 10
    width = (PAGE_WIDTH - 2 * MARGIN - gap * (len(boxes) - 1)) / len(boxes)
    height = 50
    writer.ensure_space(height + 20)
    top = writer.y - height
    pdf = writer.pdf
    for index, (label, value) in enumerate(boxes):
        x = MARGIN + index * (width + gap)
        pdf.setFillColor(colors.HexColor("#EEF2FF"))
        pdf.roundRect(x, top, width, height, 6, stroke=0, fill=1)
        pdf.setFillColor(BRAND)
        pdf.setFont("Helvetica-Bold", 16)
        pdf.drawCentredString(x + width / 2, top + 24, value)
        pdf.setFillColor(MUTED)
        pdf.setFont("Helvetica", 8)
        pdf.drawCentredString(x + width / 2, top + 10, label)
    writer.y = top - 20


def _bar_chart(writer: _Writer, title: str, counts: dict[str, int], labels: dict[str, str] | None = None) -> None:
    writer.heading(title, size=12)
    largest = max(counts.values(), default=0) or 1
    pdf = writer.pdf
    for key, count in counts.items():
        writer.ensure_space(18)
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(colors.black)
        pdf.drawString(MARGIN, writer.y - 9, (labels or {}).get(key, key.title()))
        writer.bar(MARGIN + 110, writer.y - 10, PAGE_WIDTH - 2 * MARGIN - 150, count / largest)
        pdf.setFillColor(colors.black)
        pdf.drawRightString(PAGE_WIDTH - MARGIN, writer.y - 9, str(count))
        writer.y -= 18
    writer.y -= 10


def _category_breakdown(writer: _Writer, skills: Sequence[Skill]) -> None:
    grouped = group_by_category(skills)
    pdf = writer.pdf
    for category in SKILL_CATEGORIES:
        items = grouped.get(category)
        if not items:
            continue
        writer.heading(f"{CATEGORY_LABELS[category]} ({len(items)})", size=12)
        for skill in items:
            writer.ensure_space(20)
            pdf.setFont("Helvetica", 9)
            pdf.setFillColor(colors.black)
            pdf.drawString(MARGIN, writer.y - 9, skill.name[:40])
            writer.bar(MARGIN + 180, writer.y - 10, 140, skill.confidence_score)
            pdf.drawString(MARGIN + 330, writer.y - 9, f"{round(skill.confidence_score * 100)}%")
            pdf.drawString(MARGIN + 370, writer.y - 9, skill.proficiency_level.title())
            pdf.setFillColor(MUTED)
            pdf.drawRightString(PAGE_WIDTH - MARGIN, writer.y - 9, "Explicit" if skill.is_explicit else "Inferred")
            writer.y -= 20
        writer.y -= 8


def build_skills_report(
    skills: Sequence[Skill],
    *,
    owner_label: str | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    """Render the skills dashboard as a PDF document."""
    generated = generated_at or datetime.now(timezone.utc)
    buffer = BytesIO()
    pdf = _NumberedCanvas(buffer, pagesize=A4)
    pdf.setTitle("SkillSense Skills Dashboard")
    writer = _Writer(pdf)

    writer.heading("SkillSense Skills Dashboard", size=20)
    pdf.setFont("Helvetica", 9)
    pdf.setFillColor(MUTED)
    subtitle = f"Generated {generated.strftime('%Y-%m-%d %H:%M UTC')}"
    if owner_label:
        subtitle = f"{owner_label} | {subtitle}"
    pdf.drawString(MARGIN, writer.y, subtitle)
    writer.y -= 24

    if not skills:
        writer.heading("No skills recorded yet.", size=12)
    else:
        summary = summarize_skills(skills)
        _summary_boxes(writer, skills)
        _bar_chart(writer, "Skills by Category", summary.by_category, CATEGORY_LABELS)
        _bar_chart(writer, "Skills by Proficiency", {level: summary.by_proficiency[level] for level in PROFICIENCY_LEVELS})
        _category_breakdown(writer, skills)

    pdf.showPage()
    pdf.save()
    logger.info("skills_report_rendered skills=%s bytes=%s", len(skills), buffer.tell())
    return buffer.getvalue()
