"""
Cowsay Tools

Wraps the ``cowsay`` executable: rendering a speech bubble and listing the
installed cow-art files.
"""

import logging
import subprocess
from typing import Optional

from ..exceptions import InvalidArgument, ToolExecutionFailed
from ..models import ToolsConfig
from .registry import ToolDefinition, ToolParameter, ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_COW_FILE = "default"
MISSING_MESSAGE_ERROR = "Message for cow missing, please provide one."


def _run_cowsay(
    tool_name: str,
    args: list[str],
    binary: str,
    timeout: float,
) -> str:
    """Run the cowsay binary and return its stdout, raising on any failure."""
    command = [binary, *args]
    logger.debug("Running %s", command)
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        logger.error(f"cowsay executable not found: {binary}")
        raise ToolExecutionFailed(
            f"cowsay executable '{binary}' not found", tool_name=tool_name
        ) from e
    except subprocess.TimeoutExpired as e:
        logger.error(f"cowsay timed out after {timeout}s")
        raise ToolExecutionFailed(
            f"cowsay timed out after {timeout} seconds", tool_name=tool_name
        ) from e

    if completed.returncode != 0:
        diagnostic = (completed.stderr or completed.stdout or "").strip()
        if not diagnostic:
            diagnostic = f"Process exited with code {completed.returncode}"
        logger.warning(
            "cowsay exited with code %d: %s", completed.returncode, diagnostic
        )
        raise ToolExecutionFailed(
            diagnostic, tool_name=tool_name, exit_code=completed.returncode
        )

    return completed.stdout


def call_cowsay(
    message: Optional[str],
    file: Optional[str] = DEFAULT_COW_FILE,
    binary: str = "cowsay",
    timeout: float = 30.0,
) -> str:
    """
    Render a cowsay speech bubble.

    Args:
        message: Text the cow should say. Required.
        file: Cow-art file name; empty means "default".
        binary: Path or name of the cowsay executable.
        timeout: Maximum execution time in seconds.

    Returns:
        The rendered speech bubble.
    """
    if not message:
        raise InvalidArgument(MISSING_MESSAGE_ERROR, tool_name="call_cowsay")
    cow = file or DEFAULT_COW_FILE
    # "--" keeps a message starting with "-" from being read as an option.
    return _run_cowsay("call_cowsay", ["-f", cow, "--", message], binary, timeout)


def get_cow_files(binary: str = "cowsay", timeout: float = 30.0) -> str:
    """
    List the cow-art files available on this host, one per line.

    ``cowsay -l`` prints a header line followed by space-separated names.
    """
    output = _run_cowsay("get_cow_files", ["-l"], binary, timeout)
    names: list[str] = []
    for line in output.splitlines()[1:]:
        names.extend(line.split())
    return "\n".join(names)


def register_cowsay_tools(
    registry: ToolRegistry, settings: Optional[ToolsConfig] = None
) -> ToolRegistry:
    """Register ``call_cowsay`` and ``get_cow_files`` on ``registry``."""
    settings = settings or ToolsConfig()

    def _handle_call_cowsay(params: dict) -> str:
        message = params.get("message")
        file = params.get("file")
        return call_cowsay(
            message=str(message) if message is not None else None,
            file=str(file) if file else DEFAULT_COW_FILE,
            binary=settings.cowsay_binary,
            timeout=settings.timeout,
        )

    def _handle_get_cow_files(params: dict) -> str:
        return get_cow_files(binary=settings.cowsay_binary, timeout=settings.timeout)

    registry.register(
        ToolDefinition(
            name="call_cowsay",
            description=(
                "Render a cowsay-style speech bubble with the supplied text "
                "(and optionally a cow-art file) and return the formatted "
                "string to the caller."
            ),
            parameters=(
                ToolParameter(
                    name="message",
                    description="The text the cow should display inside its speech bubble.",
                ),
                ToolParameter(
                    name="file",
                    description=(
                        "Name of a cow-art file to use for rendering. Valid file "
                        "names are obtained by calling the `get_cow_files` "
                        "function (no parameters)."
                    ),
                    required=False,
                ),
            ),
            executor=_handle_call_cowsay,
        )
    )
    registry.register(
        ToolDefinition(
            name="get_cow_files",
            description=(
                "Return a list of cow-art file names that are available on the "
                "host system for use with the `call_cowsay` function."
            ),
            parameters=(),
            executor=_handle_get_cow_files,
        )
    )
    return registry
