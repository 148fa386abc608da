"""Domain models for the clinic ledger importer.

Layout table, section/block markers, doctor identities, daily records and
run results.
"""

from .daily_record import DailyRecord
from .doctor import DoctorIdentity
from .error_record import ErrorRecord
from .layout import BlockOffsets, SheetLayout
from .processing_result import ImportSummary, SheetResult
from .section import DoctorBlock, SectionMarker

__all__ = [
    # Layout
    "BlockOffsets",
    "SheetLayout",
    # Parsing markers
    "SectionMarker",
    "DoctorBlock",
    # Records
    "DoctorIdentity",
    "DailyRecord",
    "ErrorRecord",
    # Results
    "SheetResult",
    "ImportSummary",
]
