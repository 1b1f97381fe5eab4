"""
Pydantic records for rows written to the catalog tables.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CourseRecord(BaseModel):
    course_code: str = Field(..., min_length=1, max_length=20)
    course_code_description: str = Field(..., min_length=1, max_length=500)
    course_description: str = ""
    course_subject_area: str = ""
    course_level: str = ""
    cte_indicator: str = "No"


class MappingRecord(BaseModel):
    course_code: str = Field(..., min_length=1, max_length=20)
    certification_area_code: str = Field(..., min_length=1, max_length=20)
    certification_area_description: str = Field(..., min_length=1, max_length=500)
