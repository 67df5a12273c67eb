"""
Kaggle service: the operations behind each tool.

Every method takes an already validated input model, builds one Operation,
hands it to the executor and normalizes the output. Execution failures are
raised as ToolExecutionError and turned into JSON by the dispatcher.
"""

import shutil
import tempfile
from pathlib import Path

from kaggle_mcp.config import (
    DOWNLOAD_TIMEOUT,
    Settings,
    MAX_SEARCH_RESULTS,
    SEARCH_TIMEOUT,
    SUBMIT_TIMEOUT,
    logger,
)
from kaggle_mcp.errors import (
    ErrorCategory,
    ErrorCode,
    Failure,
    ToolExecutionError,
    classify,
)
from kaggle_mcp.executor import ApiExecutor, ExecutionResult, Executor, Operation, build_executor
from kaggle_mcp.normalize import (
    competition_slug,
    filter_by_status,
    list_downloaded_files,
    normalize_competition,
    normalize_competition_details,
    normalize_dataset,
    normalize_submission,
    parse_listing,
)
from kaggle_mcp.validation import (
    CompetitionDetailsInput,
    CompetitionDownloadInput,
    CompetitionSearchInput,
    DatasetDownloadInput,
    DatasetSearchInput,
    SubmissionInput,
)

DEFAULT_SUBMISSION_MESSAGE = "Submitted via kaggle-mcp"


def default_dataset_path(dataset_ref: str) -> str:
    return f"./datasets/{dataset_ref.split('/')[1]}"


def default_competition_path(competition_id: str) -> str:
    return f"./competitions/{competition_id}"


def _failure_context(failure: Failure, kind: str, name: str) -> str | None:
    """Tool-specific hint for not-found / access-denied failures."""
    if failure.code is ErrorCode.NOT_FOUND:
        return f"{kind.capitalize()} '{name}' not found or access denied."
    if failure.code is ErrorCode.ACCESS_DENIED:
        hint = " You may need to accept the competition rules first." if kind == "competition" else ""
        return f"Access denied to {kind} '{name}'.{hint}"
    return None


class KaggleService:
    """
    The six Kaggle operations plus the startup credential check.

    Competition listings and details go through metadata_executor. The
    Kaggle CLI prints only ref, deadline, category, reward and team columns
    for competitions, so build_service() points it at the REST API.
    """

    def __init__(self, executor: Executor, metadata_executor: Executor | None = None):
        self.executor = executor
        self.metadata_executor = metadata_executor or executor

    def _run(
        self,
        operation: Operation,
        kind: str | None = None,
        name: str | None = None,
        extra: dict | None = None,
        executor: Executor | None = None,
    ) -> ExecutionResult:
        result = (executor or self.executor).execute(operation)
        if not result.success:
            failure = result.failure or classify(result.diagnostic)
            context = _failure_context(failure, kind, name) if kind and name else None
            raise ToolExecutionError(result.diagnostic, failure=failure, context=context, extra=extra)
        return result

    # ------------------------------------------------------------------
    # Datasets
    # ------------------------------------------------------------------

    def search_datasets(self, params: DatasetSearchInput) -> dict:
        logger.info(f"Searching datasets for: {params.query}")
        operation = Operation(
            label="datasets list",
            cli_args=("datasets", "list", f"--search={params.query}", "--csv"),
            endpoint="datasets/list",
            params={"search": params.query},
            timeout=SEARCH_TIMEOUT,
        )
        result = self._run(operation)

        records = [normalize_dataset(raw) for raw in parse_listing(result.output)[:MAX_SEARCH_RESULTS]]
        if not records:
            return {"message": "No datasets found matching the query.", "results": []}
        return {"message": f"Found {len(records)} datasets", "results": records}

    def download_dataset(self, params: DatasetDownloadInput) -> dict:
        ref = params.dataset_ref
        download_path = params.download_path or default_dataset_path(ref)
        logger.info(f"Downloading dataset {ref} to {download_path}")

        operation = Operation(
            label="datasets download",
            cli_args=("datasets", "download", f"--path={download_path}", "--unzip", "--", ref),
            endpoint=f"datasets/download/{ref}",
            timeout=DOWNLOAD_TIMEOUT,
            download_to=Path(download_path),
            archive_name=f"{ref.split('/')[1]}.zip",
            unzip=True,
        )
        self._run(
            operation,
            kind="dataset",
            name=ref,
            extra={"dataset_ref": ref, "download_path": download_path, "downloaded_files": [], "file_count": 0},
        )

        files = list_downloaded_files(download_path)
        return {
            "success": True,
            "message": f"Successfully downloaded dataset '{ref}'",
            "dataset_ref": ref,
            "download_path": download_path,
            "downloaded_files": files,
            "file_count": len(files),
        }

    # ------------------------------------------------------------------
    # Competitions
    # ------------------------------------------------------------------

    def search_competitions(self, params: CompetitionSearchInput) -> dict:
        logger.info(f"Searching competitions for: {params.query!r} (status={params.status})")
        cli_args = ["competitions", "list", "--csv"]
        query_params = {}
        if params.query:
            cli_args.append(f"--search={params.query}")
            query_params["search"] = params.query

        operation = Operation(
            label="competitions list",
            cli_args=tuple(cli_args),
            endpoint="competitions/list",
            params=query_params,
            timeout=SEARCH_TIMEOUT,
        )
        result = self._run(operation, executor=self.metadata_executor)

        records = [normalize_competition(raw) for raw in parse_listing(result.output)]
        records = filter_by_status(records, params.status)[:MAX_SEARCH_RESULTS]
        if not records:
            return {"message": "No competitions found matching the query.", "results": []}
        return {"message": f"Found {len(records)} competitions", "results": records}

    def get_competition_details(self, params: CompetitionDetailsInput) -> dict:
        competition_id = params.competition_id
        logger.info(f"Fetching details for competition: {competition_id}")
        operation = Operation(
            label="competitions list",
            cli_args=("competitions", "list", f"--search={competition_id}", "--csv"),
            endpoint="competitions/list",
            params={"search": competition_id},
            timeout=SEARCH_TIMEOUT,
        )
        result = self._run(operation, kind="competition", name=competition_id, executor=self.metadata_executor)

        wanted = competition_id.lower()
        match = next(
            (raw for raw in parse_listing(result.output) if competition_slug(raw.get("ref")).lower() == wanted),
            None,
        )
        if match is None:
            detail = f"Competition '{competition_id}' missing from listing"
            failure = Failure.of(ErrorCategory.EXTERNAL_EXECUTION, ErrorCode.NOT_FOUND, detail)
            raise ToolExecutionError(
                detail,
                failure=failure,
                context=_failure_context(failure, "competition", competition_id),
            )

        details = normalize_competition_details(match)
        details["success"] = True
        return details

    def download_competition_data(self, params: CompetitionDownloadInput) -> dict:
        competition_id = params.competition_id
        download_path = params.download_path or default_competition_path(competition_id)
        logger.info(f"Downloading competition data for {competition_id} to {download_path}")

        operation = Operation(
            label="competitions download",
            cli_args=("competitions", "download", f"--path={download_path}", "--", competition_id),
            endpoint=f"competitions/data/download-all/{competition_id}",
            timeout=DOWNLOAD_TIMEOUT,
            download_to=Path(download_path),
            archive_name=f"{competition_id}.zip",
        )
        self._run(
            operation,
            kind="competition",
            name=competition_id,
            extra={
                "competition_id": competition_id,
                "download_path": download_path,
                "downloaded_files": [],
                "file_count": 0,
            },
        )

        files = list_downloaded_files(download_path)
        return {
            "success": True,
            "message": f"Successfully downloaded competition data for '{competition_id}'",
            "competition_id": competition_id,
            "download_path": download_path,
            "downloaded_files": files,
            "file_count": len(files),
        }

    def submit_to_competition(self, params: SubmissionInput) -> dict:
        competition_id = params.competition_id
        message = params.message or DEFAULT_SUBMISSION_MESSAGE
        logger.info(f"Submitting {params.filename} to competition: {competition_id}")

        tmp_dir = Path(tempfile.mkdtemp(prefix="kaggle_submit_"))
        try:
            submission_file = tmp_dir / params.filename
            try:
                submission_file.write_text(params.file_content, encoding="utf-8")
            except OSError as e:
                raise ToolExecutionError(f"Could not write submission file: {e}")

            operation = Operation(
                label="competitions submit",
                cli_args=(
                    "competitions",
                    "submit",
                    f"--file={submission_file}",
                    f"--message={message}",
                    "--",
                    competition_id,
                ),
                endpoint=f"competitions/submissions/submit/{competition_id}",
                method="POST",
                data={"submissionDescription": message},
                timeout=SUBMIT_TIMEOUT,
                upload=submission_file,
            )
            result = self._run(operation, kind="competition", name=competition_id)
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)

        summary = normalize_submission(result.output)
        summary["competition_id"] = competition_id
        return summary

    # ------------------------------------------------------------------
    # Credential check
    # ------------------------------------------------------------------

    def validate_credentials(self) -> str:
        """
        Check the configured credentials with one cheap listing call.

        Returns:
            "valid", "invalid" (missing or rejected credentials) or "unknown"
            (the check itself could not complete)
        """
        if not self.executor.credentials.is_configured():
            logger.warning("Kaggle credentials not provided")
            return "invalid"

        operation = Operation(
            label="credential check",
            cli_args=("datasets", "list", "--page-size", "1", "--csv"),
            endpoint="datasets/list",
            params={"pageSize": 1},
            timeout=SEARCH_TIMEOUT,
        )
        result = self.executor.execute(operation)
        if result.success:
            logger.info("Kaggle credentials validated successfully")
            return "valid"

        failure = result.failure or classify(result.diagnostic)
        if failure.category is ErrorCategory.AUTHENTICATION:
            logger.error("Kaggle credential validation failed: credentials rejected")
            return "invalid"
        logger.warning(f"Kaggle credential validation inconclusive ({failure.code.value})")
        return "unknown"


def build_service(settings: Settings) -> KaggleService:
    """KaggleService for settings, with competition metadata read over REST."""
    executor = build_executor(settings)
    if isinstance(executor, ApiExecutor):
        return KaggleService(executor)
    return KaggleService(executor, metadata_executor=ApiExecutor(settings.credentials, settings.api_base))
