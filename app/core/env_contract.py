"""Runtime environment contract checks for the service and the corpus ingestion command.

Each process validates the variables it depends on once at startup and raises
EnvContractError when a required key is missing or malformed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

EnvUseTarget = Literal["service", "ingest", "both"]
EnvValidator = Callable[[str, dict[str, str]], str | None]


@dataclass(frozen=True)
class EnvVarDefinition:
  """Describe how and where an environment variable must be validated."""

  name: str
  required: bool
  secret: bool
  used_by: EnvUseTarget
  validator: EnvValidator | None = None


class EnvContractError(RuntimeError):
  """Raised when required runtime environment keys are missing or invalid."""


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse boolean-ish environment values consistently for contract checks."""
  if raw is None or raw.strip() == "":
    return default

  return raw.strip().lower() in {"1", "true", "yes", "on"}


def _validate_non_empty(value: str, _: dict[str, str]) -> str | None:
  """Ensure a value is not blank after trimming whitespace."""
  if value.strip() == "":
    return "must not be empty."

  return None


def _validate_allowed_origins(value: str, _: dict[str, str]) -> str | None:
  """Enforce strict CORS origins so wildcards cannot be introduced silently."""
  origins = [origin.strip() for origin in value.split(",") if origin.strip()]
  if not origins:
    return "must include at least one origin."

  if "*" in origins:
    return "must not include wildcard origins."

  return None


def _validate_environment_name(value: str, _: dict[str, str]) -> str | None:
  """Keep environment names predictable for deployment and startup controls."""
  normalized = value.strip().lower()
  if normalized in {"dev", "development", "stage", "staging", "prod", "production", "test", "testing"}:
    return None

  return "must be one of: development, stage, production, test (or aliases)."


def _validate_dsn(value: str, _: dict[str, str]) -> str | None:
  """Only Postgres DSNs are supported because the corpus relies on pgvector."""
  if value.strip().startswith(("postgresql://", "postgresql+asyncpg://", "postgres://")):
    return None

  return "must be a postgresql:// DSN."


REQUIRED_ENV_REGISTRY: tuple[EnvVarDefinition, ...] = (
  EnvVarDefinition(name="AMOR_ENV", required=False, secret=False, used_by="service", validator=_validate_environment_name),
  EnvVarDefinition(name="AMOR_ALLOWED_ORIGINS", required=True, secret=False, used_by="service", validator=_validate_allowed_origins),
  EnvVarDefinition(name="AMOR_PG_DSN", required=True, secret=True, used_by="both", validator=_validate_dsn),
  EnvVarDefinition(name="GEMINI_API_KEY", required=True, secret=True, used_by="both", validator=_validate_non_empty),
  EnvVarDefinition(name="SUNO_API_KEY", required=True, secret=True, used_by="service", validator=_validate_non_empty),
)


def _iter_applicable_definitions(*, target: Literal["service", "ingest"]) -> tuple[EnvVarDefinition, ...]:
  """Filter registry entries so each process validates only relevant keys."""
  applicable: list[EnvVarDefinition] = []
  for definition in REQUIRED_ENV_REGISTRY:
    if definition.used_by == "both" or definition.used_by == target:
      applicable.append(definition)

  return tuple(applicable)


def _resolve_value(*, definition: EnvVarDefinition) -> str:
  """Resolve values with the DATABASE_URL alias for hosted Postgres providers."""
  raw = os.getenv(definition.name)
  if raw is not None:
    return raw

  if definition.name == "AMOR_PG_DSN":
    return os.getenv("DATABASE_URL", "")

  return ""


def list_required_env_names(*, target: Literal["service", "ingest"]) -> tuple[str, ...]:
  """Expose required key names for deploy automation and script guardrails."""
  names: list[str] = []
  for definition in _iter_applicable_definitions(target=target):
    if definition.required:
      names.append(definition.name)

  return tuple(names)


def validate_env_values(*, target: Literal["service", "ingest"], env_map: dict[str, str]) -> list[str]:
  """Validate a provided env map against contract rules for a target process."""
  errors: list[str] = []
  applicable_definitions = _iter_applicable_definitions(target=target)
  for definition in applicable_definitions:
    value = env_map.get(definition.name, "")
    if definition.required and value.strip() == "":
      errors.append(f"{definition.name}: required variable is missing.")
      continue

    if definition.validator and value.strip() != "":
      validation_error = definition.validator(value, env_map)
      if validation_error:
        errors.append(f"{definition.name}: {validation_error}")

  return errors


def validate_runtime_env_or_raise(*, logger: logging.Logger, target: Literal["service", "ingest"]) -> None:
  """Validate and log runtime env values using the centralized contract."""
  # Enforced by default; CI image smoke tests can opt out with AMOR_ENV_CONTRACT_ENFORCE=0.
  env_contract_enabled = _parse_bool(os.getenv("AMOR_ENV_CONTRACT_ENFORCE"), default=True)
  resolved_values: dict[str, str] = {}
  applicable_definitions = _iter_applicable_definitions(target=target)
  for definition in applicable_definitions:
    value = _resolve_value(definition=definition)
    resolved_values[definition.name] = value
    if definition.secret:
      logger.info("ENV_CHECK key=%s value=<redacted>", definition.name)
    else:
      if value == "":
        logger.info("ENV_CHECK key=%s value=<missing>", definition.name)
      else:
        logger.info("ENV_CHECK key=%s value=%s", definition.name, value)

  errors = validate_env_values(target=target, env_map=resolved_values)

  if not errors:
    logger.info("ENV_CHECK status=ok target=%s checked=%d", target, len(applicable_definitions))
    return

  message = "ENV_CHECK status=failed target={target} violations:\n- {errors}".format(target=target, errors="\n- ".join(errors))
  if env_contract_enabled:
    logger.error(message)
    raise EnvContractError(message)

  logger.warning("ENV_CHECK enforcement disabled by AMOR_ENV_CONTRACT_ENFORCE=0")
  logger.warning(message)
