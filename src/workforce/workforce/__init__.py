"""Workforce attendance ingestion package.

Organized by feature modules (ingest, employees, attendance, history) with a
thin Flask controller layer over service/repository layers.
"""
