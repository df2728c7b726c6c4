"""
Renders form descriptors as HTML, and reads the submitted values back.
"""

import json
from typing import Any, Callable, Mapping

from markupsafe import Markup

from .calls import ABSENT
from .gui import WidgetFactory
from .types import TypeRef


def _parse_number(text: str) -> Any:
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            pass
    # left as text so that validation reports the argument
    return text


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


class HtmlWidgetFactory(WidgetFactory):

    def __init__(
        self,
        form: Mapping[str, str] | None = None,
        action_url: Callable[[str], str] = lambda name: f"call/{name}",
    ):
        """Widget factory producing HTML fragments.
        Args:
            form (Mapping): submitted form values; getters read from it and inputs are prefilled with it
            action_url (Callable): gives the url a call form posts to, from the method name
        """
        self.form = form if form is not None else {}
        self.action_url = action_url
        self.actions: dict[str, Callable] = {}
        self._call = ""
        self._count = 0

    def _input_name(self) -> str:
        # inputs are numbered per call so a single call form can be rebuilt on submission
        self._count += 1
        return f"{self._call}:{self._count}"

    def begin_call(self, name):
        self._call = name
        self._count = 0

    def _read(self, name: str, optional: bool, parse: Callable[[str], Any], default: str) -> Callable[[], Any]:
        def getter():
            text = self.form.get(name, "")
            # an optional argument left empty is not sent
            if optional and not text.strip():
                return ABSENT
            return parse(text or default)

        return getter

    def field(self, label, kind, optional=False):
        name = self._input_name()
        value = self.form.get(name, "")
        if kind == "boolean":
            checked = " checked" if name in self.form else ""
            widget = Markup(
                '<label class="checkbox">{}<input type="checkbox" name="{}" value="1"%s></label>' % checked
            ).format(label, name)
            return widget, lambda: name in self.form
        if kind == "object":
            widget = Markup('<div class="input"><label>{}</label><textarea name="{}">{}</textarea></div>').format(
                label, name, value or ("" if optional else "{}")
            )
            return widget, self._read(name, optional, _parse_json, "{}")
        required = "" if optional else " required"
        template = Markup(
            '<div class="input"><input {} name="{}" value="{}"%s><label>{}</label></div>' % required
        )
        if kind == "number":
            widget = template.format(Markup('type="number" step="any"'), name, value, label)
            return widget, self._read(name, optional, _parse_number, "")
        widget = template.format(Markup('type="text"'), name, value, label)
        return widget, self._read(name, optional, str, "")

    def array(self, label, element: TypeRef, optional=False):
        name = self._input_name()
        value = self.form.get(name, "" if optional else "[]")
        widget = Markup(
            '<div class="input"><label>{} ({})</label><textarea name="{}">{}</textarea></div>'
        ).format(label, f"[{element}] as JSON", name, value)
        return widget, self._read(name, optional, _parse_json, "[]")

    def frame(self, label, inner):
        return Markup('<fieldset class="frame"><legend>{}</legend>{}</fieldset>').format(label, inner)

    def record(self, children):
        return Markup('<div class="record">{}</div>').format(Markup("").join(children))

    def call(self, title, children, submit):
        self.actions[self._call] = submit
        return Markup(
            '<details class="call" open><summary>{}</summary>'
            '<form method="post" action="{}">{}<button type="submit">{}</button></form></details>'
        ).format(title, self.action_url(self._call), Markup("").join(children), title)

    def group(self, title, children):
        content = Markup("").join(children)
        if title is None:
            return Markup('<div class="api">{}</div>').format(content)
        return Markup('<details class="namespace" open><summary>{}</summary>{}</details>').format(
            title, content
        )


def render_result(result: Any) -> str:
    """Text shown in place of the result of a call; None is not worth showing."""
    if result is None:
        return ""
    if isinstance(result, (dict, list, bool)):
        return json.dumps(result)
    return str(result)
