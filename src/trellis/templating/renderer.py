"""Layout-aware view renderer.

Renders a named template with a mapping of variables and, when a layout
is set, embeds the result in the layout under the reserved ``content``
variable::

    renderer = ViewRenderer("templates", layout="layout.html")
    body = renderer.render("home.html", {"title": "Homepage"})

Template names are resolved against one base directory. Names that point
outside it (``../secrets.html``, absolute paths, symlinks out) are treated
as missing.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from kida.environment.exceptions import TemplateNotFoundError

from trellis.errors import RenderError, TemplateNotFound
from trellis.http.response import HTML, Response
from trellis.templating.integration import create_environment

logger = logging.getLogger("trellis.templating")

CONTENT: Final = "content"


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<default layout>"


DEFAULT_LAYOUT: Final = _Unset()


@dataclass(frozen=True, slots=True)
class RenderRequest:
    """A template, an optional layout, and the variables to render them with."""

    template: str
    layout: str | None = None
    variables: Mapping[str, Any] = field(default_factory=dict)


class ViewRenderer:
    """Renders templates from a single base directory.

    Args:
        template_dir: Base directory every template name is resolved against.
        layout: Default layout wrapped around each render, or ``None``.
        attributes: Variables shared by every render. Per-call variables
            win on conflicts.
        cache: Reuse compiled templates across renders. Turn off in
            development to pick up edits without a restart.
    """

    __slots__ = ("_attributes", "_base", "_env", "_layout")

    def __init__(
        self,
        template_dir: str | Path,
        *,
        layout: str | None = None,
        attributes: Mapping[str, Any] | None = None,
        cache: bool = True,
    ) -> None:
        self._base = Path(template_dir).resolve()
        self._layout = layout
        self._attributes: dict[str, Any] = dict(attributes or {})
        self._env = create_environment(self._base, auto_reload=not cache)

    # -- Configuration --

    @property
    def template_dir(self) -> Path:
        return self._base

    @property
    def layout(self) -> str | None:
        return self._layout

    def set_layout(self, layout: str | None) -> None:
        """Set (or clear, with ``None``) the default layout."""
        self._layout = layout

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self._attributes)

    def add_attribute(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def add_global(self, name: str, value: Any) -> None:
        """Expose *value* to every template as *name*."""
        self._env.add_global(name, value)

    def add_filter(self, name: str, func: Callable[..., Any]) -> None:
        self._env.update_filters({name: func})

    # -- Rendering --

    def render(
        self,
        template: str,
        variables: Mapping[str, Any] | None = None,
        *,
        layout: str | None | _Unset = DEFAULT_LAYOUT,
    ) -> bytes:
        """Render *template*, wrapped in *layout*, to UTF-8 bytes.

        *layout* defaults to the renderer's layout; pass ``None`` to render
        the template alone.

        Raises ``TemplateNotFound`` if the template or layout can't be
        resolved, ``RenderError`` if either fails while executing.
        """
        layout_name = self._layout if isinstance(layout, _Unset) else layout
        context = {**self._attributes, **(variables or {})}

        if layout_name is not None and CONTENT in context:
            msg = f"{CONTENT!r} is reserved for the rendered template when a layout is set"
            raise RenderError(template, msg)

        output = self._execute(template, context)
        if layout_name is not None:
            output = self._execute(layout_name, {**context, CONTENT: output})
        return output.encode("utf-8")

    def render_request(self, request: RenderRequest) -> bytes:
        return self.render(request.template, request.variables, layout=request.layout)

    def fetch(self, template: str, variables: Mapping[str, Any] | None = None) -> str:
        """Render *template* alone, without any layout, to a string."""
        return self._execute(template, {**self._attributes, **(variables or {})})

    def render_to(
        self,
        response: Response,
        template: str,
        variables: Mapping[str, Any] | None = None,
        *,
        layout: str | None | _Unset = DEFAULT_LAYOUT,
    ) -> Response:
        """Render into *response*'s body as HTML and return the response."""
        response.write(self.render(template, variables, layout=layout))
        response.set_header("Content-Type", HTML)
        return response

    def exists(self, template: str) -> bool:
        try:
            self._resolve(template)
        except TemplateNotFound:
            return False
        return True

    # -- Internal --

    def _resolve(self, template: str) -> str:
        """Map *template* to a loader name inside the base directory."""
        candidate = (self._base / template).resolve()
        if not candidate.is_relative_to(self._base):
            logger.warning("Rejected template outside %s: %r", self._base, template)
            msg = f"Template {template!r} is outside the template directory"
            raise TemplateNotFound(template, msg)
        if not candidate.is_file():
            raise TemplateNotFound(template)
        return candidate.relative_to(self._base).as_posix()

    def _execute(self, template: str, context: dict[str, Any]) -> str:
        name = self._resolve(template)
        try:
            return self._env.get_template(name).render(context)
        except TemplateNotFoundError as exc:
            # Raised for templates pulled in by this one (include/extends)
            raise TemplateNotFound(template, str(exc)) from exc
        except Exception as exc:
            raise RenderError(template, f"{type(exc).__name__}: {exc}") from exc
