"""Layered run configuration.

The packaged ``pdfwrap/config/default.yaml`` is loaded first, then an
optional override file is deep-merged over it, and the result is validated
into one frozen ``PdfWrapConfig`` that every component receives.

Keys are snake_case; the underscore-free spelling (``pdfprefix``,
``bademaildefault``) is accepted as well so override files written for the
previous release keep working.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from importlib import resources
from pathlib import Path
from typing import Any, get_origin

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy.engine import URL

from pdfwrap.core.errors import ConfigError

logger = logging.getLogger(__name__)


def _squash(name: str) -> str:
    return name.replace("_", "")


class _Section(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=_squash,
        populate_by_name=True,
    )


class MySQLConfig(_Section):
    server: str = "localhost:3306"
    userid: str = ""
    password: str = ""
    database: str = ""


class PdftkConfig(_Section):
    exec: str = "pdftk"
    folder: str = "."
    pdf_mask: str = r"^pdfwrap-.*\.pdf$"
    infofile: str = "pdfwrap.info"
    title: str = ""
    author: str = ""
    pdf_prefix: str = "pdfwrap-"
    pdf_prefix2: str = "pdfwrap2-"
    pdf_prefix3: str = "secure-"
    owner_pass: str = ""
    final_args: str = ""


class StreamConfig(_Section):
    """One queue table and the report template that renders its rows."""

    rpt: str = ""
    table: str = ""
    key_column: str = "ID"
    plan_no: str = "PlanNo"
    ltrid: str = "LetterID"
    blank: str = ""
    printed_when: str = ""


class CrNinjaConfig(_Section):
    exec: str = "CrystalReportsNinja.exe"
    db_access: str = ""
    crletters: StreamConfig = StreamConfig()
    crdouble: StreamConfig = StreamConfig()


class EmailConfig(_Section):
    bcc: str = ""
    subject: str = ""
    bodytext: str = ""
    terms: dict[str, str] = {}
    bad_email_default: str = ""
    bad_product_default: str = ""
    sending_user: str = ""
    plan_fields: tuple[str, ...] = ()


class LettersConfig(_Section):
    currency_symbol: str = "£"
    default_date: str = "2004-01-01"


class DDsConfig(_Section):
    page2_ltr: int = 0


class PdfWrapConfig(_Section):
    mysql: MySQLConfig = MySQLConfig()
    database_url: str | None = None
    pdftk: PdftkConfig = PdftkConfig()
    crninja: CrNinjaConfig = CrNinjaConfig()
    email: EmailConfig = EmailConfig()
    letters: LettersConfig = LettersConfig()
    dds: DDsConfig = DDsConfig()

    def sqlalchemy_url(self) -> str | URL:
        """Return ``database_url`` when set, else a MySQL URL built from ``mysql``."""
        if self.database_url:
            return self.database_url
        host, _, port = self.mysql.server.partition(":")
        return URL.create(
            "mysql+pymysql",
            username=self.mysql.userid or None,
            password=self.mysql.password or None,
            host=host or None,
            port=int(port) if port else None,
            database=self.mysql.database or None,
        )


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return *base* updated by *override*, merging nested mappings key by key."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _parse_yaml(text: str, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{source}: invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: expected a YAML mapping, got {type(data).__name__}")
    return data


def _normalise_keys(data: Mapping[str, Any], model: type[BaseModel]) -> dict[str, Any]:
    """Rewrite keys to field names so both spellings merge onto the same key."""
    by_alias = {_squash(name).lower(): name for name in model.model_fields}
    result: dict[str, Any] = {}
    for key, value in data.items():
        name = by_alias.get(_squash(str(key)).lower(), key)
        annotation = model.model_fields[name].annotation if name in model.model_fields else None
        if (
            isinstance(value, Mapping)
            and get_origin(annotation) is None
            and isinstance(annotation, type)
            and issubclass(annotation, BaseModel)
        ):
            value = _normalise_keys(value, annotation)
        result[name] = value
    return result


def load_default_document() -> dict[str, Any]:
    text = resources.files("pdfwrap.config").joinpath("default.yaml").read_text(encoding="utf-8")
    return _normalise_keys(_parse_yaml(text, "default.yaml"), PdfWrapConfig)


def load_config(path: str | Path | None = None, **overrides: Any) -> PdfWrapConfig:
    """Build the run configuration.

    Parameters
    ----------
    path
        Optional override YAML file.  A path that does not exist is logged
        and ignored, matching how an absent override behaves.
    overrides
        Top-level values applied last (e.g. ``database_url`` from the
        environment).

    Raises
    ------
    ConfigError
        If a document is not a YAML mapping or the merged result fails
        validation.
    """
    document = load_default_document()

    if path:
        path = Path(path)
        if path.is_file():
            logger.info("Parsing %s", path)
            override = _parse_yaml(path.read_text(encoding="utf-8"), str(path))
            document = deep_merge(document, _normalise_keys(override, PdfWrapConfig))
        else:
            logger.warning("Configuration file %s not found; using defaults", path)

    extra = {key: value for key, value in overrides.items() if value is not None}
    document = deep_merge(document, _normalise_keys(extra, PdfWrapConfig))

    try:
        return PdfWrapConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
