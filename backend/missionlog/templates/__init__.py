from missionlog.templates.embedded import (
    DEFAULT_TEMPLATE_BASE64,
    TemplateUnavailableError,
    verify_embedded_template,
)
from missionlog.templates.registry import (
    UnknownTemplateError,
    add_template,
    delete_template,
    find_template,
    select_template,
)
from missionlog.templates.resolver import BUILTIN_ASSET_PATH, ResolvedTemplate, TemplateResolver

__all__ = [
    "BUILTIN_ASSET_PATH",
    "DEFAULT_TEMPLATE_BASE64",
    "ResolvedTemplate",
    "TemplateResolver",
    "TemplateUnavailableError",
    "UnknownTemplateError",
    "add_template",
    "delete_template",
    "find_template",
    "select_template",
    "verify_embedded_template",
]
