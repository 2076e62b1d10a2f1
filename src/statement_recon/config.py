"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class EndpointsConfig(BaseModel):
    """Paths of the three reconciliation calls, relative to the API prefix."""

    import_path: str = "/import"
    match_path: str = "/match"
    validate_path: str = "/validate"


class ApiConfig(BaseModel):
    """Connection settings for the reconciliation API."""

    base_url: str = "http://localhost:8000"
    path_prefix: str = "/api/conciliation"
    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)
    timeout_seconds: float = 30.0
    verify_ssl: bool = True
    token_env_var: str = "STATEMENT_RECON_TOKEN"


class DecisionSheetConfig(BaseModel):
    """CSV layout of manual decision sheets."""

    encoding: str = "utf-8"
    delimiter: str = ","
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "operation_id": "Operation_ID",
            "date": "Date",
            "label": "Label",
            "amount": "Amount",
            "include": "Include",
            "transaction_id": "Transaction_ID",
            "notes": "Notes",
        }
    )


class InputConfig(BaseModel):
    """Configuration for input files."""

    decisions: DecisionSheetConfig = Field(default_factory=DecisionSheetConfig)


class StageLabel(BaseModel):
    """Display text for a workflow stage."""

    label: str
    description: str = ""


class WorkflowConfig(BaseModel):
    """Workflow behaviour."""

    # The adjudicator must tick the attestation explicitly
    default_acknowledgement: bool = False
    stages: dict[str, StageLabel] = Field(default_factory=dict)


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_{statement_id}_{date}_{time}.xlsx"
    include_timestamp: bool = True


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    automatic_matches: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Automatic Matches")
    )
    manual_decisions: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Manual Decisions")
    )
    audit_trail: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Audit Trail"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "api": {
            "base_url": "http://localhost:8000",
            "path_prefix": "/api/conciliation",
            "endpoints": {
                "import_path": "/import",
                "match_path": "/match",
                "validate_path": "/validate",
            },
            "timeout_seconds": 30.0,
            "verify_ssl": True,
            "token_env_var": "STATEMENT_RECON_TOKEN",
        },
        "input": {
            "decisions": {
                "encoding": "utf-8",
                "delimiter": ",",
                "column_mappings": {
                    "operation_id": "Operation_ID",
                    "date": "Date",
                    "label": "Label",
                    "amount": "Amount",
                    "include": "Include",
                    "transaction_id": "Transaction_ID",
                    "notes": "Notes",
                },
            },
        },
        "workflow": {
            "default_acknowledgement": False,
            "stages": {
                "import": {
                    "label": "Statement import",
                    "description": "Load the bank statement to reconcile.",
                },
                "automatic": {
                    "label": "Automatic matching",
                    "description": "Match detected operations against ledger transactions.",
                },
                "manual": {
                    "label": "Manual review",
                    "description": "Include or explain every remaining operation.",
                },
                "confirmation": {
                    "label": "Confirmation",
                    "description": "Confirm and archive the reconciliation.",
                },
            },
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_{statement_id}_{date}_{time}.xlsx",
                "include_timestamp": True,
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "automatic_matches": {"enabled": True, "name": "Automatic Matches"},
                "manual_decisions": {"enabled": True, "name": "Manual Decisions"},
                "audit_trail": {"enabled": True, "name": "Audit Trail"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
            "max_bytes": 10485760,
            "backup_count": 5,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Bank Statement Reconciliation Configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
