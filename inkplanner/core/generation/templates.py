"""
Template records and the sources they are fetched from.
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from ..document.models import Dimensions
from ..errors import TemplateNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Template:
    """Content stamped onto generated pages."""

    id: str
    elements: List[Dict[str, Any]] = field(default_factory=list)
    background_image: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    orientation: Optional[str] = None
    page_size: Optional[str] = None  # "A4" selects A4 dimensions

    @staticmethod
    def from_record(template_id: str, record: Dict[str, Any]) -> "Template":
        """
        Template from a stored template record.

        ``template_data`` holds the element list, background image and fixed
        dimensions; ``preview_url`` stands in for a missing background.
        """
        data = record.get("template_data") or {}
        return Template(
            id=template_id,
            elements=list(data.get("elements") or []),
            background_image=data.get("backgroundImage") or record.get("preview_url"),
            dimensions=Dimensions.from_dict(data.get("dimensions")),
            orientation=record.get("orientation"),
            page_size=record.get("page_size"),
        )

    @staticmethod
    def from_asset(asset_id: str, asset: Dict[str, Any]) -> "Template":
        """A plain image asset used as a template: background only."""
        return Template(id=asset_id, background_image=asset.get("url"))


class TemplateSource(Protocol):
    """Looks templates up by id."""

    def get_template(self, template_id: str) -> Optional[Template]: ...


def require_template(source: TemplateSource, template_id: str) -> Template:
    """
    Fetch a template or fail.

    Raises:
        TemplateNotFoundError: if the source has no such template
    """
    template = source.get_template(template_id)
    if template is None:
        logger.error("Template not found: %s", template_id)
        raise TemplateNotFoundError(template_id)
    return template


class InMemoryTemplateSource:
    """Templates held in a dict."""

    def __init__(self, templates: Optional[Dict[str, Template]] = None):
        self._templates: Dict[str, Template] = dict(templates or {})

    def add(self, template: Template) -> None:
        self._templates[template.id] = template

    def get_template(self, template_id: str) -> Optional[Template]:
        return self._templates.get(template_id)


class JsonTemplateSource:
    """
    Templates read from a JSON file.

    The file has a ``templates`` object of template records and an ``assets``
    object of image assets, both keyed by id. Templates are looked up first.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is None:
            with open(self.path, 'r') as f:
                self._data = json.load(f)
        return self._data

    def get_template(self, template_id: str) -> Optional[Template]:
        data = self._load()
        record = (data.get("templates") or {}).get(template_id)
        if record is not None:
            return Template.from_record(template_id, record)

        asset = (data.get("assets") or {}).get(template_id)
        if asset is not None:
            return Template.from_asset(template_id, asset)

        return None
