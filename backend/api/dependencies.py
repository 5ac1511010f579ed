from fastapi import Request

from hateblock.audit import AuditLog
from hateblock.classifier import ToxicityClassifier
from hateblock.lexicon import KeywordFilter
from hateblock.settings_store import SettingsStore


def get_settings_store(request: Request) -> SettingsStore:
    return request.app.state.settings_store


def get_audit_log(request: Request) -> AuditLog:
    return request.app.state.audit_log


def get_classifier(request: Request) -> ToxicityClassifier | None:
    return request.app.state.classifier


def get_keyword_filter(request: Request) -> KeywordFilter:
    return request.app.state.keyword_filter


def get_label_text(request: Request) -> str:
    return request.app.state.label_text
