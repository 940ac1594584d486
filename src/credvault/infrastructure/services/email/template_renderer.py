"""Jinja2 rendering for notification messages.

Provides safe template rendering with HTML escaping.
"""

from jinja2 import TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from credvault.core.logging import get_logger

logger = get_logger(__name__)

VALIDATION_EMAIL_SUBJECT = "Confirm your email address"

VALIDATION_EMAIL_HTML = """\
<p>Hello {{ name or email }},</p>
<p>Your confirmation code is <strong>{{ code }}</strong>.</p>
{% if ttl_days %}
<p>Accounts that are not confirmed within {{ ttl_days }} day{{ 's' if ttl_days != 1 }} are removed.</p>
{% endif %}
<p>If you did not create an account, you can ignore this message.</p>
"""

VALIDATION_SMS_TEXT = "Your {{ app_name }} confirmation code is {{ code }}"


class TemplateRenderer:
    """Jinja2 template renderer.

    Uses sandboxed environment to prevent code execution in templates.
    """

    def __init__(self) -> None:
        """Initialize the template renderer with sandboxed environment."""
        self.env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_string: str, variables: dict) -> str:
        """Render a template string with variables.

        Args:
            template_string: Jinja2 template string.
            variables: Dictionary of variables to substitute.

        Returns:
            Rendered template string.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If required variable is missing.
        """
        try:
            return self.env.from_string(template_string).render(**variables)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise
