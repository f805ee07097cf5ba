"""Wrappers for the two external executables.

``ReportRenderer`` drives the report runner that turns a report template and
a batch number into a PDF::

    <exe> -F <template> -O <output> -E pdf -a PrintBatch:<n> <db access args...>

``PdfTool`` drives the PDF toolkit for the letterhead overlay and the two
securing stages::

    <exe> <input> [background <file>] output <output>
    <exe> <input> <permission args...> output <output>
    <exe> <input> update_info <info> output <output> owner_pw <pw> [user_pw <pw>]

Configured trailing arguments are appended to every PDF tool invocation.
Argument strings from configuration are split shell-style.
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from pdfwrap.core.config import PdfWrapConfig
from pdfwrap.core.errors import ExternalToolError

logger = logging.getLogger(__name__)


class ExternalTool:
    def __init__(self, name: str, executable: str, trailing_args: Sequence[str] = ()) -> None:
        self.name = name
        self.executable = executable
        self.trailing_args = list(trailing_args)

    def run(self, args: Sequence[str]) -> None:
        """Run the tool and wait for it.

        Raises
        ------
        ExternalToolError
            On a non-zero exit or when the executable cannot be started.
        """
        argv = [self.executable, *(str(arg) for arg in args), *self.trailing_args]
        logger.debug('%s: "%s" %s', self.name, self.executable, " ".join(argv[1:]))
        try:
            subprocess.run(argv, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as exc:
            raise ExternalToolError(self.name, argv, exc.returncode, exc.stderr or "") from exc
        except OSError as exc:
            raise ExternalToolError(self.name, argv, stderr=str(exc)) from exc


class ReportRenderer:
    def __init__(self, tool: ExternalTool, db_access_args: Sequence[str] = ()) -> None:
        self.tool = tool
        self.db_access_args = list(db_access_args)

    @classmethod
    def from_config(cls, config: PdfWrapConfig) -> ReportRenderer:
        return cls(
            ExternalTool("CRNINJA", config.crninja.exec),
            shlex.split(config.crninja.db_access),
        )

    def render(self, template: str, output: Path, batch: int) -> None:
        self.tool.run(
            [
                "-F", template,
                "-O", str(output),
                "-E", "pdf",
                "-a", f"PrintBatch:{batch}",
                *self.db_access_args,
            ]
        )


class PdfTool:
    def __init__(self, tool: ExternalTool) -> None:
        self.tool = tool

    @classmethod
    def from_config(cls, config: PdfWrapConfig) -> PdfTool:
        return cls(ExternalTool("PDFTK", config.pdftk.exec, shlex.split(config.pdftk.final_args)))

    def overlay(self, source: Path, output: Path, background: Path | None = None) -> None:
        args: list[str] = [str(source)]
        if background is not None:
            args += ["background", str(background)]
        args += ["output", str(output)]
        self.tool.run(args)

    def restrict(self, source: Path, output: Path, permissions: Sequence[str]) -> None:
        self.tool.run([str(source), *permissions, "output", str(output)])

    def update_info(
        self,
        source: Path,
        output: Path,
        info_file: Path,
        *,
        owner_password: str,
        user_password: str = "",
    ) -> None:
        args = [
            str(source),
            "update_info", str(info_file),
            "output", str(output),
            "owner_pw", owner_password,
        ]
        if user_password:
            args += ["user_pw", user_password]
        self.tool.run(args)
