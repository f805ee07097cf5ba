from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pdfwrap.core.config import PdfWrapConfig, load_config
from pdfwrap.db.base import Base


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    with Session() as session:
        yield session
    engine.dispose()


@pytest.fixture()
def config(tmp_path: Path) -> PdfWrapConfig:
    return load_config(
        database_url="sqlite+pysqlite:///:memory:",
        pdftk={
            "exec": "pdftk",
            "folder": str(tmp_path / "pdfs"),
            "owner_pass": "owner-secret",
        },
        crninja={"exec": "crninja", "db_access": "-a DB:plans"},
        dds={"page2_ltr": 90},
    )


class FakeTools:
    """Stands in for the renderer and the PDF tool by writing their outputs.

    ``fail_when`` markers fail the call before anything is written;
    ``truncate_when`` markers write a partial output first, as a tool that
    dies mid-write would.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail_when: list[str] = []
        self.truncate_when: list[str] = []

    def __call__(self, argv, **kwargs):
        argv = [str(arg) for arg in argv]
        self.calls.append(argv)
        command = " ".join(argv)
        if any(marker in command for marker in self.fail_when):
            raise subprocess.CalledProcessError(1, argv, output="", stderr="boom")

        if "-O" in argv:
            target = Path(argv[argv.index("-O") + 1])
            content = b"%PDF-1.4 rendered"
        elif "output" in argv:
            target = Path(argv[argv.index("output") + 1])
            content = Path(argv[1]).read_bytes()
        else:
            return subprocess.CompletedProcess(argv, 0, stdout="", stderr="")

        if any(marker in command for marker in self.truncate_when):
            target.write_bytes(b"%PDF-trunc")
            raise subprocess.CalledProcessError(1, argv, output="", stderr="write error")
        target.write_bytes(content)
        return subprocess.CompletedProcess(argv, 0, stdout="", stderr="")

    def by_tool(self, executable: str) -> list[list[str]]:
        return [call for call in self.calls if call[0] == executable]


@pytest.fixture()
def fake_tools():
    tools = FakeTools()
    with patch("pdfwrap.production.tools.subprocess.run", side_effect=tools):
        yield tools
