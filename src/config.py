"""Environment overrides for runtime tunables.

Values are read from ``DEPWALKER_*`` variables and written onto
``Constants``. Invalid values are logged and ignored so a bad environment
never prevents a resolution from running with the defaults.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from constants import Constants, DependencyBehavior

logger = logging.getLogger(__name__)


def _positive_int(name: str, raw: str) -> Optional[int]:
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return None
    if value < 1:
        logger.warning("Ignoring %s=%r: must be >= 1", name, raw)
        return None
    return value


def parse_policy(raw: str) -> DependencyBehavior:
    """Parse a policy name (case-insensitive) into a DependencyBehavior.

    Raises:
        ValueError: If the name is not a known policy.
    """
    try:
        return DependencyBehavior(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(b.value for b in DependencyBehavior)
        raise ValueError(f"Unknown dependency behavior {raw!r}; expected one of: {allowed}") from exc


def apply_env_overrides(environ: Optional[Mapping[str, str]] = None) -> None:
    """Apply DEPWALKER_* environment overrides onto Constants.

    Args:
        environ: Mapping to read from; defaults to os.environ.
    """
    env = os.environ if environ is None else environ

    index_url = env.get(Constants.ENV_SERVICE_INDEX)
    if index_url and index_url.strip():
        Constants.NUGET_SERVICE_INDEX = index_url.strip()

    raw_timeout = env.get(Constants.ENV_REQUEST_TIMEOUT)
    if raw_timeout:
        timeout = _positive_int(Constants.ENV_REQUEST_TIMEOUT, raw_timeout)
        if timeout is not None:
            Constants.REQUEST_TIMEOUT = timeout

    raw_workers = env.get(Constants.ENV_MAX_WORKERS)
    if raw_workers:
        workers = _positive_int(Constants.ENV_MAX_WORKERS, raw_workers)
        if workers is not None:
            Constants.MAX_WORKERS = workers

    raw_policy = env.get(Constants.ENV_POLICY)
    if raw_policy:
        try:
            Constants.DEFAULT_POLICY = parse_policy(raw_policy)
        except ValueError as exc:
            logger.warning("Ignoring %s: %s", Constants.ENV_POLICY, exc)
