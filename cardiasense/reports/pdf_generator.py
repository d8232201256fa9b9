# -*- coding: utf-8 -*-
"""
PDF report generator

Renders a cardiovascular risk assessment into a paginated A4 report.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import List, Optional, Tuple
from urllib.parse import quote
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..assessment.models import (
    FIELD_RULES,
    FeatureImpact,
    ForecastPoint,
    PredictionResult,
    RiskLevel,
)
from ..auth.models import User

DEFAULT_PATIENT_NAME = "Authenticated Patient"
DEFAULT_RECOMMENDATION = (
    "Standard cardiovascular monitoring protocol is recommended. No acute deviations identified."
)

RISK_STATUS_TEXT = {
    RiskLevel.high: "Critical: High Risk Detected",
    RiskLevel.moderate: "Warning: Moderate Risk Profile",
    RiskLevel.low: "Stable: Low Risk Baseline",
}

RISK_COLORS = {
    RiskLevel.high: colors.HexColor("#dc2626"),
    RiskLevel.moderate: colors.HexColor("#f59e0b"),
    RiskLevel.low: colors.HexColor("#059669"),
}


@dataclass
class ClinicalMetadata:
    """Signing physician and clinic."""
    physician_name: str = "Dr. Rajesh Sharma"
    qualifications: str = "MD, DM (Cardiology), AIIMS"
    clinic_name: str = "CardiaSense AI Hub"


@dataclass
class RiskReport:
    """Everything printed on one report."""
    reference_id: str
    patient_name: str
    medical_id: Optional[str]
    patient_age: Optional[int]
    report_date: datetime
    risk_score: float
    risk_level: RiskLevel
    clinical_summary: str
    inputs: List[Tuple[str, str]] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    explanation: List[FeatureImpact] = field(default_factory=list)
    forecast: List[ForecastPoint] = field(default_factory=list)
    metadata: ClinicalMetadata = field(default_factory=ClinicalMetadata)


def build_report(
    user: Optional[User],
    result: PredictionResult,
    metadata: Optional[ClinicalMetadata] = None,
    report_date: Optional[datetime] = None,
) -> RiskReport:
    inputs = result.inputs.model_dump()
    labelled = [(rule.label, f"{inputs[name]:g}") for name, rule in FIELD_RULES.items()]
    recommendations = [t.description for t in result.treatment_suggestions if t.description.strip()]
    return RiskReport(
        reference_id=result.id.upper(),
        patient_name=(user.name if user and user.name.strip() else DEFAULT_PATIENT_NAME),
        medical_id=user.medical_id if user else None,
        patient_age=result.inputs.age,
        report_date=report_date or datetime.now(),
        risk_score=result.risk_score,
        risk_level=result.risk_level,
        clinical_summary=result.clinical_summary,
        inputs=labelled,
        recommendations=recommendations,
        explanation=list(result.explanation),
        forecast=list(result.forecast),
        metadata=metadata or ClinicalMetadata(),
    )


def report_filename(report: RiskReport) -> str:
    """ASCII-only download name; header values must stay latin-1 encodable."""
    name = re.sub(r"\s+", "_", report.patient_name.strip())
    name = re.sub(r"[^A-Za-z0-9_.\-]", "", name) or "Patient"
    return f"CardiaSense_AI_Report_{name}.pdf"


def content_disposition(report: RiskReport) -> str:
    """Attachment header with an ASCII fallback and the full UTF-8 name (RFC 5987)."""
    full_name = re.sub(r"\s+", "_", report.patient_name.strip())
    full_name = re.sub(r"[^\w.\-]", "", full_name) or "Patient"
    encoded = quote(f"CardiaSense_AI_Report_{full_name}.pdf", safe="")
    return f"attachment; filename={report_filename(report)}; filename*=UTF-8''{encoded}"


class PDFReportGenerator:
    """reportlab renderer for RiskReport."""

    def __init__(self) -> None:
        self._setup_styles()

    def _setup_styles(self) -> None:
        self.styles = getSampleStyleSheet()

        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            fontName='Helvetica-Bold',
            fontSize=18,
            leading=24,
            alignment=1,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name='ReportHeading',
            fontName='Helvetica-Bold',
            fontSize=13,
            leading=17,
            spaceBefore=12,
            spaceAfter=6,
            textColor=colors.HexColor('#0f172a'),
        ))
        self.styles.add(ParagraphStyle(
            name='ReportBody',
            fontName='Helvetica',
            fontSize=10,
            leading=14,
            spaceBefore=3,
            spaceAfter=3,
        ))
        self.styles.add(ParagraphStyle(
            name='ReportSmall',
            fontName='Helvetica',
            fontSize=8,
            leading=10,
            textColor=colors.grey,
        ))

    def generate_report(self, report: RiskReport, output_path: Optional[str] = None) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2*cm,
            leftMargin=2*cm,
            topMargin=2*cm,
            bottomMargin=2*cm,
            title=f"CardiaSense AI Diagnostic Report {report.reference_id}",
            author=report.metadata.physician_name,
        )

        story = []
        story.append(Paragraph("CardiaSense AI Diagnostic Report", self.styles['ReportTitle']))
        story.append(Paragraph(
            escape(f"{report.metadata.clinic_name} | Reference ID: {report.reference_id}"),
            self.styles['ReportSmall'],
        ))
        story.append(Spacer(1, 12))

        story.extend(self._build_patient_section(report))
        story.extend(self._build_risk_section(report))
        story.extend(self._build_inputs_section(report))
        if report.explanation:
            story.extend(self._build_explanation_section(report))
        if report.forecast:
            story.extend(self._build_forecast_section(report))
        story.extend(self._build_recommendations_section(report))
        story.extend(self._build_signature_section(report))

        doc.build(story)
        pdf_content = buffer.getvalue()
        buffer.close()

        if output_path:
            with open(output_path, 'wb') as f:
                f.write(pdf_content)

        return pdf_content

    def _heading(self, text: str) -> List:
        return [
            Paragraph(escape(text), self.styles['ReportHeading']),
            HRFlowable(width="100%", thickness=1, color=colors.grey),
        ]

    def _table(self, data: List[List[str]], col_widths: List[float], header: bool = False) -> Table:
        table = Table(data, colWidths=col_widths)
        style = [
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
            ('TOPPADDING', (0, 0), (-1, -1), 4),
        ]
        if header:
            style += [
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f1f5f9')),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ]
        table.setStyle(TableStyle(style))
        return table

    def _build_patient_section(self, report: RiskReport) -> List:
        elements = self._heading("Patient")
        age = f"{report.patient_age} Yrs" if report.patient_age is not None else "N/A"
        data = [
            ["Patient Name", report.patient_name, "Patient Age", age],
            ["Record ID", report.medical_id or "N/A", "Report Date", report.report_date.strftime("%B %d, %Y %I:%M %p")],
        ]
        table = self._table(data, [3*cm, 5*cm, 3*cm, 5*cm])
        table.setStyle(TableStyle([
            ('TEXTCOLOR', (0, 0), (0, -1), colors.grey),
            ('TEXTCOLOR', (2, 0), (2, -1), colors.grey),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 8))
        return elements

    def _build_risk_section(self, report: RiskReport) -> List:
        elements = self._heading("Risk Assessment")
        color = RISK_COLORS[report.risk_level]
        score_style = ParagraphStyle(
            name='RiskScore',
            parent=self.styles['ReportHeading'],
            fontSize=20,
            leading=26,
            textColor=color,
        )
        elements.append(Paragraph(f"Risk Score: {report.risk_score:.2f}%", score_style))
        elements.append(Paragraph(
            escape(f"{report.risk_level.value} - {RISK_STATUS_TEXT[report.risk_level]}"),
            self.styles['ReportBody'],
        ))
        elements.append(Spacer(1, 6))
        elements.append(Paragraph("<b>Clinical Narrative</b>", self.styles['ReportBody']))
        elements.append(Paragraph(escape(report.clinical_summary), self.styles['ReportBody']))
        return elements

    def _build_inputs_section(self, report: RiskReport) -> List:
        elements = self._heading("Clinical Metrics")
        rows = [["Metric", "Value"]] + [[label, value] for label, value in report.inputs]
        elements.append(self._table(rows, [8*cm, 8*cm], header=True))
        return elements

    def _build_explanation_section(self, report: RiskReport) -> List:
        elements = self._heading("Feature Attribution")
        rows = [["Feature", "Impact", "Direction"]]
        for item in report.explanation:
            direction = "increases risk" if item.impact > 0 else "reduces risk" if item.impact < 0 else "neutral"
            rows.append([item.feature, f"{item.impact:+.2f}", direction])
        elements.append(self._table(rows, [8*cm, 3*cm, 5*cm], header=True))
        return elements

    def _build_forecast_section(self, report: RiskReport) -> List:
        elements = self._heading("Five-Year Forecast")
        rows = [["Year", "Projected Risk"]]
        rows += [[str(p.year), f"{p.risk:.1f}%"] for p in report.forecast]
        elements.append(self._table(rows, [8*cm, 8*cm], header=True))
        return elements

    def _build_recommendations_section(self, report: RiskReport) -> List:
        elements = self._heading("Clinical Recommendations")
        for rec in report.recommendations or [DEFAULT_RECOMMENDATION]:
            elements.append(Paragraph(f"• {escape(rec)}", self.styles['ReportBody']))
        return elements

    def _build_signature_section(self, report: RiskReport) -> List:
        elements = []

        elements.append(Spacer(1, 24))
        elements.append(HRFlowable(width="100%", thickness=1, color=colors.grey))
        elements.append(Spacer(1, 12))

        meta = report.metadata
        sig_data = [
            [f"Report Date: {report.report_date.strftime('%Y-%m-%d')}", f"Physician: {meta.physician_name}"],
            ["", meta.qualifications],
        ]
        table = Table(sig_data, colWidths=[8*cm, 8*cm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('ALIGN', (0, 0), (0, -1), 'LEFT'),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ]))
        elements.append(table)

        elements.append(Spacer(1, 24))
        elements.append(Paragraph(
            "Disclaimer: AI-assisted findings in this report are for reference only. "
            "Final diagnosis and treatment decisions rest with the treating clinician.",
            self.styles['ReportSmall'],
        ))
        return elements
