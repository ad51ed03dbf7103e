"""Opaque string IDs for documents, stages, rules, approvals, comments, audit entries and users."""

import uuid


def generate_id(prefix: str) -> str:
    """Return ``prefix`` plus 16 random hex characters.

    Prefixes in use: ``doc_``, ``stg_``, ``rul_``, ``apv_``, ``cmt_``, ``aud_``
    and ``usr_``, so an ID in a log line or audit row names its table.
    """
    return f"{prefix}{uuid.uuid4().hex[:16]}"
