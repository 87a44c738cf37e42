"""ResumeData schema.

Field names follow Python conventions; aliases carry the camelCase JSON shape
used by the rewrite oracle and stored resume files (``personalInfo``,
``workExperience``, ``startDate`` ...). Models are frozen and list fields are
tuples so a resume cannot be mutated after a pipeline stage produced it.
"""

import json
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# In-place bullet tag meaning "keep but de-emphasize". Stripped for display only.
LESS_RELEVANT_MARKER = "[LESS_RELEVANT]"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class PersonalInfo(_Frozen):
    name: str = Field(min_length=1)
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    linked_in: Optional[str] = Field(default=None, alias="linkedIn")


class WorkExperience(_Frozen):
    company: str
    title: str
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    bullets: Tuple[str, ...] = ()


class Education(_Frozen):
    institution: str
    degree: str = ""
    field: str = ""
    graduation_date: str = Field(default="", alias="graduationDate")


class ResumeData(_Frozen):
    personal_info: PersonalInfo = Field(alias="personalInfo")
    summary: Optional[str] = None
    work_experience: Tuple[WorkExperience, ...] = Field(default=(), alias="workExperience")
    education: Tuple[Education, ...] = ()
    skills: Tuple[str, ...] = ()
    certifications: Optional[Tuple[str, ...]] = None

    @property
    def name(self) -> str:
        return self.personal_info.name

    def to_dict(self) -> dict:
        """camelCase, JSON-ready dict (nulls omitted)."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict) -> "ResumeData":
        return cls.model_validate(data)

    @classmethod
    def from_json_file(cls, path: str) -> "ResumeData":
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))
