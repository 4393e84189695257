"""
Jinja2 prompt templates for recommendation requests.

Templates live under prompts/<group>/ at the project root. Scenario templates
in prompts/recommendation/ extend base.j2, which lays out the student profile
and the JSON answer contract; scenarios only override the counselor framing
and the guidance block.

Usage:
    from src.utils.prompt_loader import render_prompt

    prompt = render_prompt("recommendation/tech_focused.j2", expected_count=3, ...)
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import structlog
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    Undefined,
)

PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent / "prompts"
TEMPLATE_SUFFIX = ".j2"
BASE_TEMPLATE_STEM = "base"

logger = structlog.get_logger(__name__)


def join_or(items: Optional[Iterable[Any]], default: str = "None specified") -> str:
    """Comma-join the truthy items, or ``default`` if none remain."""
    values = [str(item) for item in items or [] if item]
    return ", ".join(values) if values else default


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"


FILTERS: dict[str, Callable[..., str]] = {"join_or": join_or, "yes_no": yes_no}


class PromptLoader:
    """Renders prompt templates from one template directory."""

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        strict_undefined: bool = True,
    ) -> None:
        """
        Args:
            template_dir: Template root (defaults to the project's prompts/)
            strict_undefined: Fail on variables the caller did not supply
        """
        self.template_dir = Path(template_dir) if template_dir else PROMPTS_DIR
        self.strict_undefined = strict_undefined
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined if strict_undefined else Undefined,
        )
        self.env.filters.update(FILTERS)

    def list_templates(self, group: str) -> list[str]:
        """Renderable templates in a group, sorted; base templates are excluded."""
        group_dir = self.template_dir / group
        if not group_dir.is_dir():
            return []
        return sorted(
            f"{group}/{path.name}"
            for path in group_dir.glob(f"*{TEMPLATE_SUFFIX}")
            if path.stem != BASE_TEMPLATE_STEM
        )

    def render(
        self,
        template_name: str,
        correlation_id: Optional[str] = None,
        **variables: Any,
    ) -> str:
        """
        Render ``template_name`` (relative to the template root).

        Raises:
            TemplateNotFound: No such template
            TemplateSyntaxError: Template does not parse
            UndefinedError: A variable is missing in strict mode
        """
        log = logger.bind(template_name=template_name, correlation_id=correlation_id)
        try:
            rendered = self.env.get_template(template_name).render(**variables)
        except TemplateNotFound:
            log.error("Template not found", template_dir=str(self.template_dir))
            raise
        except TemplateSyntaxError as e:
            log.error("Template syntax error", error=e.message, lineno=e.lineno)
            raise
        except TemplateError as e:
            log.error(
                "Template rendering failed",
                error=str(e),
                variables_provided=sorted(variables),
            )
            raise

        log.debug("Template rendered", rendered_length=len(rendered))
        return rendered


@lru_cache(maxsize=None)
def get_default_loader() -> PromptLoader:
    """Process-wide loader for the project's prompts/ directory."""
    return PromptLoader()


def render_prompt(
    template_name: str,
    correlation_id: Optional[str] = None,
    **variables: Any,
) -> str:
    return get_default_loader().render(
        template_name, correlation_id=correlation_id, **variables
    )
