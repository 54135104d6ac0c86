"""HTML page rendering through Jinja2 templates."""

from pathlib import Path

import jinja2

from api import errors

TEMPLATE_DIR = Path(__file__).parent / "templates"


class Pages:
    """Renders the templates under api/templates.

    Any template failure surfaces as an internal RenderingError.
    """

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(template_dir),
            autoescape=jinja2.select_autoescape(["html"]),
            undefined=jinja2.StrictUndefined,
        )

    def render(self, template_name: str, /, **context) -> str:
        try:
            return self._env.get_template(template_name).render(context)
        except jinja2.TemplateError as e:
            raise errors.rendering_fault(e) from e
