"""Load env settings and YAML fixtures for profiles and job requests."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from tradematch.errors import ValidationError
from tradematch.log import get_logger
from tradematch.models import ContractorProfile, JobRequest, validate_profile, validate_request

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = Path(os.environ.get("TRADEMATCH_CONFIG_DIR", ROOT_DIR / "config"))
PROFILE_PATH: Path = CONFIG_DIR / "profile.yaml"
REQUEST_PATH: Path = CONFIG_DIR / "request.yaml"
REPORTS_DIR: Path = Path(os.environ.get("TRADEMATCH_REPORTS_DIR", ROOT_DIR / "reports"))

# Gap to the target rate, in percent, under which an offer is taken as-is.
COUNTER_THRESHOLD_PERCENT: float = 5.0


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _int_env(key: str, default: int) -> int:
    raw = get_env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring non-integer %s=%r, using %d", key, raw, default)
        return default


MAX_ROUNDS: int = _int_env("NEGOTIATION_MAX_ROUNDS", 3)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValidationError(f"{path.name}: expected a mapping at top level")
    return data


def load_profile(path: Path | None = None) -> ContractorProfile:
    """Read and validate a contractor profile YAML file."""
    path = path or PROFILE_PATH
    profile = ContractorProfile.from_dict(_read_yaml(path))
    validate_profile(profile)
    log.debug("Loaded profile %s from %s", profile.id, path)
    return profile


def load_request(path: Path | None = None) -> JobRequest:
    """Read and validate a job request YAML file."""
    path = path or REQUEST_PATH
    request = JobRequest.from_dict(_read_yaml(path))
    validate_request(request)
    log.debug("Loaded request %s from %s", request.id, path)
    return request
