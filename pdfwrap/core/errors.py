from __future__ import annotations


class PdfWrapError(Exception):
    pass


class ConfigError(PdfWrapError):
    pass


class FieldFormatError(PdfWrapError):
    pass


class ExternalToolError(PdfWrapError):
    """A renderer or PDF tool invocation failed or could not be started."""

    def __init__(
        self,
        tool: str,
        argv: list[str],
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.tool = tool
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = f"exit code {returncode}" if returncode is not None else "could not be started"
        message = f"{tool} failed ({detail})"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(message)
