from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class FailureDTO(BaseModel):
    member: str
    outcome: str
    message: str
    cause: Optional[str] = None


class ScanCountsDTO(BaseModel):
    constructors: int = 0
    static_methods: int = 0
    instance_methods: int = 0


class ScanReportDTO(BaseModel):
    target: str
    visibility: str
    scans: List[str] = []
    counts: ScanCountsDTO = ScanCountsDTO()
    failures: List[FailureDTO] = []
    errors: List[FailureDTO] = []

    @property
    def exit_code(self) -> int:
        if self.errors:
            return 2
        if self.failures:
            return 1
        return 0
