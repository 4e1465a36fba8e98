"""
PDF export for paid Quick Site Audit reports.
Score card, category breakdown, plain-English summary, full punch list.
"""

from typing import Optional

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from services.models import AuditResult

INK = (20, 24, 33)
MUTED = (110, 116, 128)
ACCENT = (37, 99, 235)
RULE = (220, 224, 230)

LEVEL_COLORS = {
    "ok": (22, 163, 74),
    "warn": (217, 119, 6),
    "bad": (220, 38, 38),
}

BREAKDOWN_LABELS = (
    ("performance", "Performance"),
    ("accessibility", "Accessibility"),
    ("best_practices", "Best Practices"),
    ("seo", "SEO"),
)


def sanitize_text(text: Optional[str]) -> str:
    """
    Replace characters the built-in PDF fonts cannot encode.
    Curly quotes and dashes become ASCII; anything else outside Latin-1 becomes '?'.
    """
    if not text:
        return ""

    replacements = {
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "–": "-",
        "—": "-",
        "…": "...",
        "•": "*",
        "→": "->",
        " ": " ",
    }
    for char, ascii_char in replacements.items():
        text = text.replace(char, ascii_char)

    return "".join(ch if ord(ch) < 256 else "?" for ch in text)


class AuditPDF(FPDF):
    """Letter-style audit report."""

    def __init__(self, site_title: str, url: str):
        super().__init__()
        self.site_title = site_title
        self.url = url
        self.set_margins(left=18, top=18, right=18)
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(*ACCENT)
        self.cell(0, 8, sanitize_text(self.site_title), align="L")
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "", 8)
        self.set_text_color(*MUTED)
        self.cell(0, 10, f"Page {self.page_no()} of {{nb}}", align="R")

    def section_header(self, title: str):
        self.ln(4)
        self.set_font("Helvetica", "B", 14)
        self.set_text_color(*INK)
        self.cell(0, 8, sanitize_text(title), align="L")
        self.ln(9)
        self.set_draw_color(*RULE)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.ln(3)


def build_audit_pdf(result: AuditResult, site_title: str = "Quick Site Audit") -> bytes:
    """Render the full (paid) report as PDF bytes."""
    pdf = AuditPDF(site_title, result.url)
    pdf.alias_nb_pages()
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 22)
    pdf.set_text_color(*INK)
    pdf.cell(0, 12, "Audit report", align="L")
    pdf.ln(12)
    pdf.set_font("Helvetica", "", 10)
    pdf.set_text_color(*MUTED)
    pdf.multi_cell(0, 5, sanitize_text(f"For: {result.url}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    generated = result.generated_at.strftime("%Y-%m-%d %H:%M UTC")
    pdf.multi_cell(0, 5, f"Generated {generated}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.section_header("Overall")
    pdf.set_font("Helvetica", "B", 36)
    pdf.set_text_color(*ACCENT)
    pdf.cell(0, 16, f"{result.overall}/100", align="L")
    pdf.ln(18)

    pdf.section_header("Breakdown")
    pdf.set_font("Helvetica", "", 11)
    for attr, label in BREAKDOWN_LABELS:
        pdf.set_text_color(*MUTED)
        pdf.cell(80, 7, label, align="L")
        pdf.set_text_color(*INK)
        pdf.cell(0, 7, str(getattr(result.scores, attr)), align="R")
        pdf.ln(7)

    if result.plain_english:
        pdf.section_header("Summary")
        pdf.set_font("Helvetica", "", 11)
        pdf.set_text_color(*INK)
        pdf.multi_cell(0, 6, sanitize_text(result.plain_english), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.section_header("Findings")
    for idx, finding in enumerate(result.findings, 1):
        pdf.set_font("Helvetica", "B", 11)
        pdf.set_text_color(*LEVEL_COLORS.get(finding.level, INK))
        pdf.cell(18, 6, finding.level.upper(), align="L")
        pdf.set_text_color(*INK)
        pdf.multi_cell(0, 6, sanitize_text(f"{idx}. {finding.title}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", "", 10)
        pdf.set_text_color(*MUTED)
        pdf.set_x(pdf.l_margin + 18)
        pdf.multi_cell(0, 5, sanitize_text(finding.detail), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(3)

    return bytes(pdf.output())
