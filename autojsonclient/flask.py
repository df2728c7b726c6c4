import asyncio
import logging

import flask

from . import LoadedApi
from .errors import AutoJsonClientError
from .gui import NamespaceForm
from .html import HtmlWidgetFactory, render_result
from .namespace import walk

PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>{{ servicename }}</title>
</head>
<body>
    <h1>{{ servicename }}</h1>
    {% if method %}
    <div class="result">
        <div class="title">{{ method }}</div>
        {% if error is not none %}<div class="error">{{ error }}</div>{% else %}<div class="value">{{ result }}</div>{% endif %}
    </div>
    {% endif %}
    {{ content }}
</body>
</html>
"""


def explorer_blueprint(loaded: LoadedApi, name: str = "explorer") -> flask.Blueprint:
    """Create a Flask blueprint for trying out a generated client from a browser. The blueprint has the following routes:

        - /: a form for every method of the service, grouped by namespace
        - /call/<method>: (POST) runs a method with the values submitted from its form, and shows
          the result, or the error message in place of the result

        The blueprint is registered with the Flask app as follows:
        `app.register_blueprint(explorer_blueprint(build_api(description, url)))`

    Returns:
        flask.Blueprint: Flask blueprint serving the forms
    """
    api, _, servicename = loaded
    stubs = dict(walk(api))
    bp = flask.Blueprint(name, __name__)

    def action_url(method: str) -> str:
        return flask.url_for(f"{bp.name}.call_method", method=method)

    def page(content, method=None, result=None, error=None, status=200):
        html = flask.render_template_string(
            PAGE, servicename=servicename, content=content, method=method, result=result, error=error
        )
        return html, status

    @bp.route("/", methods=["GET"])
    def index():
        """Serve the forms of all the methods."""
        content, _ = NamespaceForm(api).build(HtmlWidgetFactory(action_url=action_url))
        return page(content)

    @bp.route("/call/<path:method>", methods=["POST"])
    def call_method(method):
        """Call a method with the submitted values."""
        stub = stubs.get(method)
        if stub is None:
            flask.abort(404)
        factory = HtmlWidgetFactory(form=flask.request.form, action_url=action_url)
        content, _ = stub.gui().build(factory)
        try:
            result = asyncio.run(factory.actions[method]())
        except AutoJsonClientError as e:
            logging.exception("Error calling %s", method)
            return page(content, method, error=str(e), status=500)
        return page(content, method, result=render_result(result))

    return bp


__all__ = ["explorer_blueprint"]
