# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from cardiasense.assessment.models import PredictionResult
from cardiasense.auth.models import User
from cardiasense.reports.pdf_generator import (
    DEFAULT_PATIENT_NAME,
    ClinicalMetadata,
    PDFReportGenerator,
    build_report,
    content_disposition,
    report_filename,
)

from ai_fakes import make_assessment, scenario_patient


def _result() -> PredictionResult:
    return PredictionResult.from_assessment(make_assessment(), user_id="u1", inputs=scenario_patient())


class TestBuildReport(unittest.TestCase):
    def test_fields_are_taken_from_user_and_result(self) -> None:
        user = User(id="u1", name="Asha Rao", email="asha@example.com", medical_id="CS-42")
        result = _result()
        report = build_report(user, result, report_date=datetime(2026, 1, 2))

        self.assertEqual(report.reference_id, result.id.upper())
        self.assertEqual(report.patient_name, "Asha Rao")
        self.assertEqual(report.medical_id, "CS-42")
        self.assertEqual(report.patient_age, 63)
        self.assertEqual(len(report.inputs), 13)
        self.assertIn(("ST Dep. (0-7)", "2.3"), report.inputs)
        self.assertIn(("Age (Years)", "63"), report.inputs)
        self.assertEqual(report.recommendations, [t.description for t in result.treatment_suggestions])
        self.assertEqual(report.metadata, ClinicalMetadata())

    def test_missing_user_uses_placeholder_name(self) -> None:
        report = build_report(None, _result())
        self.assertEqual(report.patient_name, DEFAULT_PATIENT_NAME)
        self.assertIsNone(report.medical_id)

    def test_filename(self) -> None:
        user = User(id="u1", name="Asha  Rao/Dr", email="a@example.com")
        report = build_report(user, _result())
        self.assertEqual(report_filename(report), "CardiaSense_AI_Report_Asha_RaoDr.pdf")

    def test_content_disposition_keeps_header_ascii(self) -> None:
        user = User(id="u1", name="张伟", email="z@example.com")
        header = content_disposition(build_report(user, _result()))
        header.encode("latin-1")
        self.assertIn("filename=CardiaSense_AI_Report_Patient.pdf;", header)
        self.assertIn("filename*=UTF-8''CardiaSense_AI_Report_%E5%BC%A0%E4%BC%9F.pdf", header)


class TestPDFReportGenerator(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="cardiasense-pdf-"))

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_generates_pdf_bytes(self) -> None:
        user = User(id="u1", name="Asha <Rao> & Co", email="asha@example.com", medical_id="CS-42")
        metadata = ClinicalMetadata(physician_name="Dr. Test", clinic_name="Test Clinic")
        pdf = PDFReportGenerator().generate_report(build_report(user, _result(), metadata))

        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 1000)

    def test_writes_output_path(self) -> None:
        out = self._tmp / "report.pdf"
        pdf = PDFReportGenerator().generate_report(build_report(None, _result()), output_path=str(out))
        self.assertTrue(out.exists())
        self.assertEqual(out.read_bytes(), pdf)


if __name__ == "__main__":
    unittest.main()
