"""Identifier generation"""

import uuid


def generate_id() -> str:
    """Short random id for categories and expenses"""
    return uuid.uuid4().hex[:12]


def generate_budget_id() -> str:
    return uuid.uuid4().hex
