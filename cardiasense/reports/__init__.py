# -*- coding: utf-8 -*-
"""
Report generation
"""

from .pdf_generator import ClinicalMetadata, PDFReportGenerator, RiskReport, build_report

__all__ = [
    'ClinicalMetadata',
    'PDFReportGenerator',
    'RiskReport',
    'build_report',
]
