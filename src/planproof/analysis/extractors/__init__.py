"""Candidate references recovered from plan text."""
