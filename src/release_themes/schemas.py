"""Pydantic models for issues and the major themes built from them.

Issue is the narrow view of a GitHub issue that the extractor reads.
MajorTheme is the record handed to whatever renders the release notes; it
is frozen because a theme is produced once from the issue and never edited
afterwards (the issue tracker stays the source of truth).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Input Schemas
# ---------------------------------------------------------------------------


class Issue(BaseModel):
    """A single issue as returned by the issue tracker.

    Attributes:
        number: Issue number
        title: Issue title
        body: Markdown body of the issue ("" when GitHub returns null)
        url: Reference URL of the issue
    """

    number: int = Field(..., gt=0, description="Issue number")
    title: str = Field("", description="Issue title")
    body: str = Field("", description="Issue body text")
    url: str = Field("", description="Reference URL of the issue")

    @field_validator("title", "body", "url", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


# ---------------------------------------------------------------------------
# Output Schemas
# ---------------------------------------------------------------------------


class MajorTheme(BaseModel):
    """A major theme selected to be highlighted for the release.

    Attributes:
        issue_num: Number of the enhancement issue this note comes from.
                   Also effectively the unique ID of the theme.
        issue_title: Title of the enhancement
        issue_url: URL of the enhancement issue
        text: The actual content of the release note
        kep_number: Number of the KEP associated with the theme (0 if none)
        kep_url: URL of the KEP associated with the theme ("" if none)
        sigs: Responsible SIGs, exactly as written in the issue
    """

    model_config = ConfigDict(frozen=True)

    issue_num: int = Field(..., gt=0, description="Source enhancement issue number")
    issue_title: str = Field("", description="Title of the enhancement")
    issue_url: str = Field("", description="URL of the enhancement issue")
    text: str = Field("", description="Release note text")
    kep_number: int = Field(0, ge=0, description="Associated KEP number")
    kep_url: str = Field("", description="Associated KEP URL")
    sigs: str = Field("", description="Responsible SIGs")

    def to_document(self) -> dict[str, Any]:
        """Serialize for a release notes document.

        ``kep_url`` and ``sigs`` are left out when empty.
        """
        data = self.model_dump()
        for key in ("kep_url", "sigs"):
            if not data[key]:
                del data[key]
        return data
