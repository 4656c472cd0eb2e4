"""
Pre- and post-generation hook scripts.

A hook is a script path, resolved against the current directory, that is
run with the run configuration as a single JSON argument. Python scripts run
under the current interpreter; anything else must be executable.
"""

import json
import subprocess
import sys
from dataclasses import asdict
from pathlib import Path

from ...logging_config import get_logger
from .config import RegenConfig
from .errors import RegenError

logger = get_logger(__name__)

HOOK_STAGES = ("pre_generate", "post_generate")


class HookError(RegenError):
    """A hook script is missing, could not start, or exited non-zero."""

    pass


def run_hook(stage: str, config: RegenConfig) -> bool:
    """
    Run the hook configured for a stage.

    Args:
        stage: "pre_generate" or "post_generate"
        config: Run configuration; its hook path is looked up by stage

    Returns:
        True if a hook ran, False if none is configured

    Raises:
        HookError: If the script is missing or fails
    """
    if stage not in HOOK_STAGES:
        raise ValueError(f"Unknown hook stage: {stage}")

    script = getattr(config, stage)
    if not script:
        return False

    path = Path(script).resolve()
    if not path.is_file():
        raise HookError(f"{stage} hook not found: {script}")

    command = [sys.executable, str(path)] if path.suffix == ".py" else [str(path)]
    command.append(json.dumps(asdict(config), ensure_ascii=False))

    logger.info("Running %s hook: %s", stage, script)
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=config.hook_timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise HookError(f"{stage} hook {script} could not run: {e}") from e

    if result.stdout.strip():
        logger.debug("%s hook output:\n%s", stage, result.stdout.rstrip())

    if result.returncode != 0:
        detail = result.stderr.strip() or "no output"
        raise HookError(
            f"{stage} hook {script} exited with code {result.returncode}: {detail}"
        )

    return True
