from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import Config


CONFIG = Config()


# Templates are cached by the environment, so one per process is plenty.
TEMPLATES = Environment(
    loader=FileSystemLoader(CONFIG.html_dir),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render(name: str, **context: object) -> str:
    return TEMPLATES.get_template(name).render(**context)
