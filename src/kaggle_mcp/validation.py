"""
Input schemas for the Kaggle tools.

Each tool takes a pydantic model. Validation runs before any credential check
or external call, and reports the first offending field.
"""

from typing import Any, Literal, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kaggle_mcp.errors import InputValidationError

DATASET_REF_PATTERN = r"^[\w.-]+/[\w.-]+$"
COMPETITION_ID_PATTERN = r"^[\w-]+$"
FILENAME_PATTERN = r"^[^/\\]+$"

PATTERN_HINTS = {
    "dataset_ref": 'Dataset reference must be in format "username/dataset-name"',
    "competition_id": "Competition ID can only contain letters, numbers, underscores and hyphens",
    "filename": "Filename must not contain path separators",
}


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class DatasetSearchInput(ToolInput):
    query: str = Field(..., min_length=1, max_length=100, description="Search query for datasets")


class DatasetDownloadInput(ToolInput):
    dataset_ref: str = Field(
        ...,
        min_length=3,
        max_length=100,
        pattern=DATASET_REF_PATTERN,
        description='Dataset reference in format "username/dataset-name"',
    )
    download_path: str | None = Field(None, description="Optional download path")


class CompetitionSearchInput(ToolInput):
    query: str = Field("", max_length=100, description="Search query for competitions (empty matches all)")
    status: Literal["all", "active", "completed"] = Field(
        "all", description="Only return active or completed competitions"
    )


class CompetitionDetailsInput(ToolInput):
    competition_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=COMPETITION_ID_PATTERN,
        description='Competition identifier (e.g. "titanic")',
    )


class CompetitionDownloadInput(ToolInput):
    competition_id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        pattern=COMPETITION_ID_PATTERN,
        description='Competition identifier (e.g. "titanic")',
    )
    download_path: str | None = Field(None, description="Optional download path")


class SubmissionInput(ToolInput):
    competition_id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        pattern=COMPETITION_ID_PATTERN,
        description='Competition identifier (e.g. "titanic")',
    )
    file_content: str = Field(..., min_length=1, description="Full content of the submission file")
    filename: str = Field(
        ...,
        min_length=1,
        max_length=255,
        pattern=FILENAME_PATTERN,
        description='Submission file name (e.g. "submission.csv")',
    )
    message: str | None = Field(None, max_length=500, description="Optional submission message")

    @field_validator("filename")
    @classmethod
    def _not_relative_marker(cls, value: str) -> str:
        if value in (".", ".."):
            raise ValueError("Filename must name a file")
        return value


ModelT = TypeVar("ModelT", bound=ToolInput)


def validate_input(model: type[ModelT], raw: Any) -> ModelT:
    """
    Parse raw tool arguments into the tool's model.

    Raises:
        InputValidationError: naming the first offending field
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise InputValidationError("arguments", "must be a JSON object")

    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "arguments"
        reason = first.get("msg", "invalid value")
        if first.get("type") == "string_pattern_mismatch":
            reason = PATTERN_HINTS.get(field, reason)
        raise InputValidationError(field, reason) from e
