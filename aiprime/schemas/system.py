"""
System Schemas
Backups, strategic directives and the system monitor summary.
"""

from typing import Any, Dict, List, Optional

from aiprime.schemas.job import CamelModel, NonEmptyStr, ProductionJob


class Directive(CamelModel):
    """A strategic instruction queued for a content agent."""
    directive: NonEmptyStr
    rationale: str = ""


class SystemBackup(CamelModel):
    """Full snapshot of the persisted dashboard state."""
    credentials: Dict[str, Any]
    agents: List[Any]
    video_jobs: List[ProductionJob]
    directives: List[Directive]
    automation_flows: List[Any]


class SystemStatus(CamelModel):
    """Status strip shown by the system monitor."""
    status: str  # Processing, Warning or Nominal
    active_jobs: int
    completed_jobs: int
    failed_jobs: int
    latest_published: Optional[ProductionJob] = None
