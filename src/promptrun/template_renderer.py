"""Load and render the Jinja2 templates bundled in promptrun.templates."""

import importlib.resources

import jinja2


def render_template(template_name: str, **kwargs) -> str:
    """Load a Jinja2 template by name and render it with the given arguments.

    Args:
        template_name: Template filename (e.g. "prompt_help.j2")
        **kwargs: Template variables.

    Returns:
        The rendered template string.
    """
    templates = importlib.resources.files("promptrun.templates")
    source = templates.joinpath(template_name).read_text(encoding="utf-8")
    return jinja2.Template(source, trim_blocks=True, lstrip_blocks=True).render(**kwargs)
