from __future__ import annotations

from dataclasses import dataclass

"""DoctorIdentity model.

An identity is keyed by its natural key (display name lowercased with all
whitespace removed). It is created at most once per key and never mutated
by later lookups.
"""

__all__ = [
    "DoctorIdentity",
]


@dataclass(frozen=True)
class DoctorIdentity:
    natural_key: str  # derived from display_name, unique in the store
    display_name: str
    default_clinic: str
    email: str  # placeholder credential: <natural_key>@<email_domain>
    role: str = "doctor"
