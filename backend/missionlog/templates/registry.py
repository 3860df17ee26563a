from __future__ import annotations

import logging
from pathlib import Path
import secrets
import string

from missionlog.codec import encode_buffer_to_base64
from missionlog.models import DEFAULT_TEMPLATE_ID, ExportConfiguration, TemplateDescriptor

logger = logging.getLogger("missionlog.templates")

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 9


class UnknownTemplateError(KeyError):
    """Raised when a template id is not part of the configuration."""


def generate_template_id(existing: set[str] | None = None) -> str:
    taken = set(existing or ()) | {DEFAULT_TEMPLATE_ID}
    while True:
        candidate = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))
        if candidate not in taken:
            return candidate


def template_name_from_file(file_name: str) -> str:
    name = Path(file_name or "").name
    if name.lower().endswith(".docx"):
        name = name[: -len(".docx")]
    return name.strip() or "Template"


def find_template(config: ExportConfiguration, template_id: str) -> TemplateDescriptor | None:
    return next((item for item in config.custom_templates if item.id == template_id), None)


def add_template(
    config: ExportConfiguration,
    *,
    file_name: str,
    content: bytes,
) -> tuple[ExportConfiguration, TemplateDescriptor]:
    descriptor = TemplateDescriptor(
        id=generate_template_id({item.id for item in config.custom_templates}),
        name=template_name_from_file(file_name),
        data=encode_buffer_to_base64(content),
    )
    updated = config.model_copy(update={"custom_templates": (*config.custom_templates, descriptor)})
    logger.info(
        "template_added",
        extra={"event": "template_added", "template_id": descriptor.id, "size_bytes": len(content)},
    )
    return updated, descriptor


def select_template(config: ExportConfiguration, template_id: str) -> ExportConfiguration:
    if template_id != DEFAULT_TEMPLATE_ID and find_template(config, template_id) is None:
        raise UnknownTemplateError(template_id)
    return config.model_copy(update={"active_template_id": template_id})


def delete_template(config: ExportConfiguration, template_id: str) -> ExportConfiguration:
    if template_id == DEFAULT_TEMPLATE_ID:
        raise UnknownTemplateError("the default template cannot be deleted")
    if find_template(config, template_id) is None:
        raise UnknownTemplateError(template_id)

    remaining = tuple(item for item in config.custom_templates if item.id != template_id)
    active = config.active_template_id
    if active == template_id:
        active = DEFAULT_TEMPLATE_ID
    logger.info(
        "template_deleted",
        extra={"event": "template_deleted", "template_id": template_id, "active_template_id": active},
    )
    return config.model_copy(update={"custom_templates": remaining, "active_template_id": active})
