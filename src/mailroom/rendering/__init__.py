"""Content renderer — turns a template name and a variable bag into an email.

Bodies are Jinja2 HTML templates stored next to this module; subjects are
short Jinja2 expressions kept in ``TEMPLATE_SUBJECTS``. Rendering is strict:
an unknown template or a variable the template uses but the caller did not
supply raises ``TemplateError`` instead of producing a half-filled message.
"""

from dataclasses import dataclass
from pathlib import Path

import jinja2
import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

logger = structlog.get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

TEMPLATE_SUBJECTS: dict[str, str] = {
    "welcome-email": "Welcome to {{ company_name }}!",
    "password-reset-email": "Password Reset Request",
    "order-confirmation-email": "Order Confirmation - {{ order_number }}",
}


class TemplateError(Exception):
    """A template is unknown or could not be rendered with the given variables."""

    def __init__(self, template_name: str, reason: str):
        super().__init__(f"Cannot render template '{template_name}': {reason}")
        self.template_name = template_name
        self.reason = reason


@dataclass(frozen=True)
class RenderedContent:
    subject: str
    body: str
    is_html: bool = True


class ContentRenderer:
    """Renders registered email templates."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR, subjects: dict[str, str] | None = None):
        self.subjects = dict(TEMPLATE_SUBJECTS if subjects is None else subjects)
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, variables: dict) -> RenderedContent:
        """Render subject and body for ``template_name``."""
        subject_source = self.subjects.get(template_name)
        if subject_source is None:
            raise TemplateError(template_name, "no template registered under this name")

        try:
            body = self.env.get_template(f"{template_name}.html").render(**variables)
            subject = self.env.from_string(subject_source).render(**variables)
        except jinja2.TemplateNotFound as exc:
            raise TemplateError(template_name, f"template file {exc.name} not found") from exc
        except jinja2.UndefinedError as exc:
            raise TemplateError(template_name, exc.message or "missing variable") from exc
        except jinja2.TemplateError as exc:
            raise TemplateError(template_name, str(exc)) from exc

        return RenderedContent(subject=subject.strip(), body=body)


_renderer: ContentRenderer | None = None


def get_renderer() -> ContentRenderer:
    """Return the shared renderer (templates are compiled once and cached)."""
    global _renderer
    if _renderer is None:
        _renderer = ContentRenderer()
    return _renderer
