"""Event check-in management backend.

REST API for companies, people and wristband check-ins, with reporting,
Excel bulk import and OCR-assisted capture of Brazilian identity documents.
"""
