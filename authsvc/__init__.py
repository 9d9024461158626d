"""Credential and session-issuing authority."""
