"""
Tests for tool input schemas.
"""

import pytest


class TestDatasetInputs:
    """Tests for dataset search and download inputs."""

    def test_query_bounds(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import DatasetSearchInput, validate_input

        assert validate_input(DatasetSearchInput, {"query": "a"}).query == "a"
        assert validate_input(DatasetSearchInput, {"query": "x" * 100}).query == "x" * 100

        for bad in ("", "x" * 101):
            with pytest.raises(InputValidationError) as exc_info:
                validate_input(DatasetSearchInput, {"query": bad})
            assert exc_info.value.field == "query"

    def test_missing_query(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import DatasetSearchInput, validate_input

        with pytest.raises(InputValidationError) as exc_info:
            validate_input(DatasetSearchInput, {})

        assert exc_info.value.field == "query"

    def test_dataset_ref_format(self):
        """Refs need exactly one slash between two non-empty parts."""
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import DatasetDownloadInput, validate_input

        assert validate_input(DatasetDownloadInput, {"dataset_ref": "a/b"}).dataset_ref == "a/b"
        assert validate_input(DatasetDownloadInput, {"dataset_ref": "uciml/iris.v2"}).download_path is None

        with pytest.raises(InputValidationError) as exc_info:
            validate_input(DatasetDownloadInput, {"dataset_ref": "not-a-ref"})
        assert exc_info.value.field == "dataset_ref"
        assert "username/dataset-name" in exc_info.value.reason

        for bad in ("a/b/c", "/b", "a/", "a b/c"):
            with pytest.raises(InputValidationError):
                validate_input(DatasetDownloadInput, {"dataset_ref": bad})

    def test_unknown_fields_rejected(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import DatasetSearchInput, validate_input

        with pytest.raises(InputValidationError):
            validate_input(DatasetSearchInput, {"query": "iris", "limit": 5})

    def test_non_object_arguments(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import DatasetSearchInput, validate_input

        with pytest.raises(InputValidationError) as exc_info:
            validate_input(DatasetSearchInput, ["iris"])

        assert exc_info.value.field == "arguments"


class TestCompetitionInputs:
    """Tests for competition inputs."""

    def test_empty_query_allowed(self):
        from kaggle_mcp.validation import CompetitionSearchInput, validate_input

        params = validate_input(CompetitionSearchInput, None)

        assert params.query == ""
        assert params.status == "all"

    def test_status_values(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import CompetitionSearchInput, validate_input

        for status in ("all", "active", "completed"):
            assert validate_input(CompetitionSearchInput, {"status": status}).status == status

        with pytest.raises(InputValidationError) as exc_info:
            validate_input(CompetitionSearchInput, {"status": "upcoming"})
        assert exc_info.value.field == "status"

    def test_competition_id_characters(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import CompetitionDownloadInput, validate_input

        assert validate_input(CompetitionDownloadInput, {"competition_id": "titanic_2-x"})

        for bad in ("", "ti tanic", "../etc", "a" * 51):
            with pytest.raises(InputValidationError):
                validate_input(CompetitionDownloadInput, {"competition_id": bad})

    def test_details_allows_longer_id(self):
        from kaggle_mcp.validation import CompetitionDetailsInput, validate_input

        assert validate_input(CompetitionDetailsInput, {"competition_id": "a" * 100})


class TestSubmissionInput:
    """Tests for submission input."""

    def _base(self, **overrides):
        raw = {"competition_id": "titanic", "file_content": "id,y\n1,0\n", "filename": "submission.csv"}
        raw.update(overrides)
        return raw

    def test_valid(self):
        from kaggle_mcp.validation import SubmissionInput, validate_input

        params = validate_input(SubmissionInput, self._base(message="first try"))

        assert params.filename == "submission.csv"
        assert params.message == "first try"

    def test_empty_content_rejected(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import SubmissionInput, validate_input

        with pytest.raises(InputValidationError) as exc_info:
            validate_input(SubmissionInput, self._base(file_content=""))

        assert exc_info.value.field == "file_content"

    def test_filename_cannot_escape_directory(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import SubmissionInput, validate_input

        for bad in ("../x.csv", "dir/x.csv", "dir\\x.csv", "..", "."):
            with pytest.raises(InputValidationError) as exc_info:
                validate_input(SubmissionInput, self._base(filename=bad))
            assert exc_info.value.field == "filename"

    def test_message_length(self):
        from kaggle_mcp.errors import InputValidationError
        from kaggle_mcp.validation import SubmissionInput, validate_input

        with pytest.raises(InputValidationError):
            validate_input(SubmissionInput, self._base(message="m" * 501))
