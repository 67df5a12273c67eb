"""
Tool registry and dispatcher.

Maps each tool name to its input model and handler. `invoke` is the single
entry point used by every transport: it validates, runs the handler and
always returns one JSON-serializable dict, whatever goes wrong.
"""

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from kaggle_mcp.config import ConfigError, logger
from kaggle_mcp.errors import (
    InputValidationError,
    ToolExecutionError,
    classify,
    failure_payload,
    log_failure,
    unknown_tool_payload,
    validation_payload,
)
from kaggle_mcp.kaggle import KaggleService
from kaggle_mcp.validation import (
    CompetitionDetailsInput,
    CompetitionDownloadInput,
    CompetitionSearchInput,
    DatasetDownloadInput,
    DatasetSearchInput,
    SubmissionInput,
    ToolInput,
    validate_input,
)


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_model: type[ToolInput]
    handler: Callable[[Any], dict]

    @property
    def input_schema(self) -> dict:
        return self.input_model.model_json_schema()

    def describe(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """Registry of tools, fixed after startup."""

    def __init__(self, secrets: tuple[str, ...] = ()):
        self._tools: dict[str, ToolDescriptor] = OrderedDict()
        self._secrets = secrets

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name in self._tools:
            raise ConfigError(f"Tool '{descriptor.name}' is already registered")
        self._tools[descriptor.name] = descriptor
        logger.debug(f"Registered tool: {descriptor.name}")

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def list(self) -> list[dict]:
        """Capability discovery: name, description and input schema per tool."""
        return [descriptor.describe() for descriptor in self._tools.values()]

    def invoke(self, name: str, raw_input: Any) -> dict:
        """Validate, execute and normalize one tool call. Never raises."""
        descriptor = self._tools.get(name)
        if descriptor is None:
            logger.warning(f"Unknown tool requested: {name}")
            return unknown_tool_payload(name)

        try:
            params = validate_input(descriptor.input_model, raw_input)
        except InputValidationError as e:
            logger.info(f"{name}: rejected input ({e.message})")
            return validation_payload(e, name)

        logger.info(f"Executing tool: {name}")
        try:
            return descriptor.handler(params)
        except ToolExecutionError as e:
            failure = e.classified()
            log_failure(failure, name, self._secrets)
            return failure_payload(failure, name, context=e.context, extra=e.extra)
        except Exception as e:
            failure = classify(str(e))
            logger.exception(f"{name}: unexpected error")
            log_failure(failure, name, self._secrets)
            return failure_payload(failure, name)


def build_registry(service: KaggleService) -> ToolRegistry:
    """Register the Kaggle tools against service."""
    registry = ToolRegistry(secrets=(service.executor.credentials.key,))

    registry.register(ToolDescriptor(
        name="search_kaggle_datasets",
        description=(
            "Search for datasets on Kaggle matching the provided query string. Returns a JSON list "
            "of up to 10 matching datasets with reference, title, download count and last updated date."
        ),
        input_model=DatasetSearchInput,
        handler=service.search_datasets,
    ))
    registry.register(ToolDescriptor(
        name="download_kaggle_dataset",
        description=(
            'Download and unzip files for a Kaggle dataset. dataset_ref is "username/dataset-slug" '
            '(e.g. "uciml/iris"). Defaults to ./datasets/<dataset-slug>.'
        ),
        input_model=DatasetDownloadInput,
        handler=service.download_dataset,
    ))
    registry.register(ToolDescriptor(
        name="search_kaggle_competitions",
        description=(
            "Search for Kaggle competitions matching the query (empty query lists all). Returns up to "
            "10 competitions with title, deadline, reward and team count, optionally only active or "
            "completed ones."
        ),
        input_model=CompetitionSearchInput,
        handler=service.search_competitions,
    ))
    registry.register(ToolDescriptor(
        name="get_competition_details",
        description=(
            "Get details for one Kaggle competition: full description, deadline, reward, evaluation "
            "metric, submission limits and whether you have entered."
        ),
        input_model=CompetitionDetailsInput,
        handler=service.get_competition_details,
    ))
    registry.register(ToolDescriptor(
        name="download_competition_data",
        description=(
            'Download all competition files (data, sample submission). competition_id is the '
            'competition identifier (e.g. "titanic"). Defaults to ./competitions/<competition_id>.'
        ),
        input_model=CompetitionDownloadInput,
        handler=service.download_competition_data,
    ))
    registry.register(ToolDescriptor(
        name="submit_to_competition",
        description=(
            "Submit a predictions file to a Kaggle competition. Pass the full file content and a "
            "file name (e.g. submission.csv); an optional message describes the submission."
        ),
        input_model=SubmissionInput,
        handler=service.submit_to_competition,
    ))

    return registry
