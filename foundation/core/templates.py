import codecs
import hashlib
import os
from typing import Any, Callable, Dict, Optional

from jinja2 import (
    Environment,
    FileSystemBytecodeCache,
    FileSystemLoader,
    TemplateNotFound,
    TemplateError,
)

from foundation.core.exceptions import (
    TemplateEvaluationError,
    TemplateManagerSetupError,
    TemplateNotFoundError,
)
from foundation.core.logging import get_logger

logger = get_logger("foundation.templates")

TEMPLATES_CACHE_SUBFOLDER = os.path.join("views", "cache")

DEFAULT_SYNTAX = {
    "comment_start_string": "{#",
    "comment_end_string": "#}",
    "block_start_string": "{%",
    "block_end_string": "%}",
    "variable_start_string": "{{",
    "variable_end_string": "}}",
}


def _syntax_bytecode_cache(cache_path: str, syntax: Dict[str, str]) -> FileSystemBytecodeCache:
    """
    Bytecode cache whose file names include a digest of the delimiters

    Jinja2 keys cached bytecode by template name and source only, so managers
    with different delimiters sharing one directory must not see each other's files.
    """
    fingerprint = "\0".join(syntax[key] for key in sorted(DEFAULT_SYNTAX))
    digest = hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()[:12]
    return FileSystemBytecodeCache(cache_path, pattern=f"__jinja2_{digest}_%s.cache")


class TemplateManager:
    """Template manager that renders views"""

    def __init__(
        self,
        templates_path: str,
        cache_path: Optional[str] = None,
        auto_reload: bool = True,
        charset: str = "utf-8",
    ):
        """
        Set up the Jinja2 environment for the given templates directory

        Args:
            templates_path: Directory containing the templates
            cache_path: Optional directory for compiled template bytecode
            auto_reload: Whether changed templates are picked up without a restart
            charset: Encoding of the template files

        Raises:
            TemplateManagerSetupError: If the templates directory does not exist,
                the charset is unknown or the cache directory cannot be created
        """
        if not templates_path or not os.path.isdir(templates_path):
            raise TemplateManagerSetupError(
                message=f"Templates directory not found: {templates_path}"
            )

        try:
            codecs.lookup(charset)
        except LookupError as e:
            raise TemplateManagerSetupError(
                message=f"Unknown template charset: {charset}",
                parameter="APP_CHARSET",
            ) from e

        bytecode_cache = None
        if cache_path:
            try:
                os.makedirs(cache_path, exist_ok=True)
            except OSError as e:
                raise TemplateManagerSetupError(
                    message=f"Template cache directory could not be created: {e}",
                    parameter="FRAMEWORK_STORAGE_PATH",
                ) from e
            bytecode_cache = _syntax_bytecode_cache(cache_path, DEFAULT_SYNTAX)

        self.templates_path = templates_path
        self.cache_path = cache_path
        self.charset = charset
        self.env = Environment(
            loader=FileSystemLoader(templates_path, encoding=charset),
            bytecode_cache=bytecode_cache,
            auto_reload=auto_reload,
            autoescape=True,
        )

        logger.debug(
            "Template manager initialized",
            templates_path=templates_path,
            cache_path=cache_path,
            charset=charset,
        )

    def render(self, view_name: str, data: Optional[Dict[str, Any]] = None) -> str:
        """
        Render the template with the given name

        Args:
            view_name: Name of the template relative to the templates directory
            data: Optional variables passed to the template

        Returns:
            str: The rendered template (usually HTML)
        """
        try:
            template = self.env.get_template(view_name)
        except TemplateNotFound as e:
            raise TemplateNotFoundError(
                message=f"Template not found: {view_name}", template=view_name
            ) from e
        except TemplateError as e:
            raise TemplateEvaluationError(
                message=f"Template {view_name} could not be compiled: {e}", template=view_name
            ) from e
        except UnicodeDecodeError as e:
            raise TemplateEvaluationError(
                message=f"Template {view_name} is not valid {self.charset}: {e}", template=view_name
            ) from e

        try:
            return template.render(data or {})
        except TemplateNotFound as e:
            # An include or extends inside the template points at a missing file
            raise TemplateNotFoundError(
                message=f"Template not found: {e.name}", template=e.name
            ) from e
        except TemplateError as e:
            raise TemplateEvaluationError(
                message=f"Template {view_name} could not be evaluated: {e}", template=view_name
            ) from e
        except UnicodeDecodeError as e:
            # An included template is not in the configured charset
            raise TemplateEvaluationError(
                message=f"Template {view_name} could not be evaluated: {e}", template=view_name
            ) from e

    def add_filter(self, name: str, callback: Callable[..., Any]) -> None:
        """Make ``callback`` available in all templates as ``{{ value | name }}``"""
        self.env.filters[name] = callback

    def add_global(self, name: str, value: Any) -> None:
        """Make ``value`` available in all templates as ``{{ name }}``"""
        self.env.globals[name] = value

    def set_syntax(
        self,
        comment_start: Optional[str] = None,
        comment_end: Optional[str] = None,
        block_start: Optional[str] = None,
        block_end: Optional[str] = None,
        variable_start: Optional[str] = None,
        variable_end: Optional[str] = None,
    ) -> None:
        """
        Change the delimiters recognized by the template engine.

        Delimiters that are not given fall back to the Jinja2 defaults.
        """
        overrides = {
            "comment_start_string": comment_start,
            "comment_end_string": comment_end,
            "block_start_string": block_start,
            "block_end_string": block_end,
            "variable_start_string": variable_start,
            "variable_end_string": variable_end,
        }
        syntax = {key: value or DEFAULT_SYNTAX[key] for key, value in overrides.items()}
        for key, value in syntax.items():
            setattr(self.env, key, value)

        # Templates compiled with the old delimiters must not be reused
        if self.env.cache is not None:
            self.env.cache.clear()
        if self.cache_path:
            self.env.bytecode_cache = _syntax_bytecode_cache(self.cache_path, syntax)
