"""Tests for pdfwrap/production/secure.py."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import select

from pdfwrap.core.config import load_config
from pdfwrap.core.constants import PROGRAM_VERSION
from pdfwrap.db.models import Customer, OutgoingEmail
from pdfwrap.production.secure import (
    SecureOutputProcessor,
    derive_user_password,
    pdf_date,
    write_info_file,
)


@pytest.fixture()
def folder(config) -> Path:
    path = Path(config.pdftk.folder)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture()
def customers(db_session):
    db_session.add_all(
        [
            Customer(
                plan_no=123,
                product="Premium",
                email="jane@example.com",
                phone="01234 567 890",
                title="Mrs",
                first_name="Jane",
                last_name="Smith",
                record_status=1,
            ),
            Customer(plan_no=124, product=None, email=None, phone=None, first_name="Tom", last_name="Jones"),
        ]
    )
    db_session.commit()


def _produced(folder: Path, name: str) -> Path:
    path = folder / name
    path.write_bytes(b"%PDF-1.4 produced")
    return path


# ===========================================================================
# helpers
# ===========================================================================

class TestDeriveUserPassword:
    def test_spaces_stripped(self):
        assert derive_user_password("01234 567 890") == "01234567890"

    def test_empty_phone(self):
        assert derive_user_password("") == ""

    def test_null_phone(self):
        assert derive_user_password(None) == ""


class TestInfoFile:
    def test_pdf_date(self):
        assert pdf_date(datetime(2024, 3, 7, 9, 5, 1, 250000)) == "D'20240307090501250'"

    def test_info_file_format(self, tmp_path):
        path = write_info_file(
            tmp_path / "info.txt",
            title="Plan letter",
            author="Admin",
            producer="PDFWrap v1.0.0",
            created=datetime(2024, 3, 7, 9, 5, 1),
        )
        assert path.read_text(encoding="utf-8").splitlines() == [
            "InfoBegin",
            "InfoKey: Title",
            "InfoValue: Plan letter",
            "InfoBegin",
            "InfoKey: Author",
            "InfoValue: Admin",
            "InfoBegin",
            "InfoKey: Producer",
            "InfoValue: PDFWrap v1.0.0",
            "InfoBegin",
            "InfoKey: CreationDate",
            "InfoValue: D'20240307090501000'",
        ]

    def test_processor_writes_program_version(self, db_session, config, folder):
        path = SecureOutputProcessor(db_session, config).write_info_file()
        assert path == folder / config.pdftk.infofile
        assert f"InfoValue: {PROGRAM_VERSION}" in path.read_text(encoding="utf-8")


class TestExtractPlanNo:
    def test_default_prefix(self, db_session, config):
        processor = SecureOutputProcessor(db_session, config)
        assert processor.extract_plan_no("pdfwrap-123-456.pdf") == "123"

    def test_prefix_without_separator(self, db_session, tmp_path):
        config = load_config(pdftk={"folder": str(tmp_path), "pdf_prefix": "prefix", "pdf_mask": r"^prefix"})
        processor = SecureOutputProcessor(db_session, config)
        assert processor.extract_plan_no("prefix123-456-draft.pdf") == "123"

    def test_no_plan_number(self, db_session, config):
        processor = SecureOutputProcessor(db_session, config)
        assert processor.extract_plan_no("pdfwrap-letter.pdf") is None


# ===========================================================================
# secure
# ===========================================================================

class TestSecure:
    def test_secures_and_cleans_up(self, db_session, config, folder, customers, fake_tools):
        source = _produced(folder, "pdfwrap-123-456.pdf")
        processor = SecureOutputProcessor(db_session, config)
        processor.write_info_file()

        result = processor.secure(source)

        assert result.status == "SECURED"
        assert result.plan_no == "123"
        assert result.path == folder / "secure-123-456.pdf"
        assert not source.exists()
        assert not (folder / "pdfwrap2-123-456.pdf").exists()
        assert sorted(p.name for p in folder.glob("*.pdf")) == ["secure-123-456.pdf"]

    def test_two_stage_pdf_tool_calls(self, db_session, config, folder, customers, fake_tools):
        source = _produced(folder, "pdfwrap-123-456.pdf")
        SecureOutputProcessor(db_session, config).secure(source)

        restrict, update = fake_tools.by_tool("pdftk")
        assert restrict == [
            "pdftk", str(source),
            "allow", "Printing", "allow", "CopyContents",
            "output", str(folder / "pdfwrap2-123-456.pdf"),
        ]
        assert update == [
            "pdftk", str(folder / "pdfwrap2-123-456.pdf"),
            "update_info", str(folder / config.pdftk.infofile),
            "output", str(folder / "secure-123-456.pdf"),
            "owner_pw", "owner-secret",
            "user_pw", "01234567890",
        ]

    def test_queues_email(self, db_session, config, folder, customers, fake_tools):
        source = _produced(folder, "pdfwrap-123-456.pdf")
        SecureOutputProcessor(db_session, config).secure(source)

        email = db_session.execute(select(OutgoingEmail)).scalar_one()
        assert email.plan_no == 123
        assert email.to_address == "jane@example.com"
        assert email.attachments == str(folder / "secure-123-456.pdf")
        assert "Dear Mrs Smith" in email.msg_text

    def test_missing_phone_and_defaults(self, db_session, config, folder, customers, fake_tools):
        source = _produced(folder, "pdfwrap-124-456.pdf")

        result = SecureOutputProcessor(db_session, config).secure(source)

        assert result.status == "SECURED"
        restrict, update = fake_tools.by_tool("pdftk")
        assert restrict[2:4] == ["allow", "Printing"]  # bad_product_default -> Standard
        assert "user_pw" not in update
        email = db_session.execute(select(OutgoingEmail)).scalar_one()
        assert email.to_address == config.email.bad_email_default
        assert "Dear T Jones" in email.msg_text

    def test_unknown_product_applies_no_permissions(self, db_session, config, folder, fake_tools):
        db_session.add(Customer(plan_no=125, product="Legacy", phone="0123", last_name="Lee"))
        db_session.commit()
        source = _produced(folder, "pdfwrap-125-1.pdf")

        SecureOutputProcessor(db_session, config).secure(source)

        restrict = fake_tools.by_tool("pdftk")[0]
        assert restrict[2] == "output"

    def test_skips_file_without_plan_number(self, db_session, config, folder, fake_tools):
        source = _produced(folder, "pdfwrap-letter.pdf")

        result = SecureOutputProcessor(db_session, config).secure(source)

        assert result.status == "SKIPPED"
        assert source.exists()
        assert fake_tools.calls == []

    def test_skips_unknown_customer(self, db_session, config, folder, fake_tools):
        source = _produced(folder, "pdfwrap-999-1.pdf")

        result = SecureOutputProcessor(db_session, config).secure(source)

        assert result.status == "SKIPPED"
        assert result.reason == "no customer"
        assert source.exists()

    def test_tool_failure_keeps_source_and_removes_intermediate(
        self, db_session, config, folder, customers, fake_tools
    ):
        source = _produced(folder, "pdfwrap-123-456.pdf")
        fake_tools.fail_when = ["update_info"]

        result = SecureOutputProcessor(db_session, config).secure(source)

        assert result.status == "FAILED"
        assert source.exists()
        assert not (folder / "pdfwrap2-123-456.pdf").exists()
        assert not (folder / "secure-123-456.pdf").exists()
        assert db_session.execute(select(OutgoingEmail)).first() is None

    def test_partial_secured_file_is_removed(self, db_session, config, folder, customers, fake_tools):
        source = _produced(folder, "pdfwrap-123-456.pdf")
        fake_tools.truncate_when = ["update_info"]

        result = SecureOutputProcessor(db_session, config).secure(source)

        assert result.status == "FAILED"
        assert source.exists()
        assert sorted(p.name for p in folder.glob("*.pdf")) == ["pdfwrap-123-456.pdf"]
        assert db_session.execute(select(OutgoingEmail)).first() is None


# ===========================================================================
# secure_folder
# ===========================================================================

class TestSecureFolder:
    def test_only_masked_files_are_processed(self, db_session, config, folder, customers, fake_tools):
        _produced(folder, "pdfwrap-123-1.pdf")
        _produced(folder, "pdfwrap-124-1.pdf")
        _produced(folder, "other-123-1.pdf")
        _produced(folder, "pdfwrap-nothing.pdf")

        report = SecureOutputProcessor(db_session, config).secure_folder()

        assert report.secured == 2
        assert [d.source.name for d in report.skipped] == ["pdfwrap-nothing.pdf"]
        assert (folder / "other-123-1.pdf").exists()
        assert (folder / config.pdftk.infofile).exists()
        assert len(db_session.execute(select(OutgoingEmail)).scalars().all()) == 2

    def test_missing_folder_is_empty(self, db_session, tmp_path):
        config = load_config(pdftk={"folder": str(tmp_path / "absent")})
        processor = SecureOutputProcessor(db_session, config)
        assert processor.pending_files() == []
