"""Generic notification renderer.

Every template record is rendered the same way: each field is a Jinja2
snippet evaluated against the notification context, empty body lines are
dropped, and the result is laid out three ways (in-app message, plain-text
message and an HTML email). Only the HTML layout autoescapes, so free text
such as remarks can never inject markup into an email.
"""

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

from requisitions.templates.records import TemplateRecord

_EMAIL_LAYOUT = """<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #222;">
    <h2 style="margin-bottom: 4px;">{{ title }}</h2>
    <p><strong>{{ headline }}</strong></p>
    {% for line in lines %}<p>{{ line }}</p>
    {% endfor %}
    {% if order_number %}<p style="color: #777; font-size: 12px;">Order {{ order_number }}</p>{% endif %}
  </body>
</html>
"""

_text_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=False)
_html_env = Environment(
    loader=DictLoader({"email.html": _EMAIL_LAYOUT}),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=True),
)


def _render_snippet(snippet: str, context: dict) -> str:
    return _text_env.from_string(snippet).render(**context).strip()


def render(record: TemplateRecord, context: dict) -> dict:
    """Render a template record into title, subject, message, text and html."""
    context = {key: ("" if value is None else value) for key, value in context.items()}

    title = _render_snippet(record.title, context)
    subject = _render_snippet(record.subject, context)
    headline = _render_snippet(record.headline, context)
    lines = [line for line in (_render_snippet(s, context) for s in record.body_lines) if line]

    message = "\n".join([headline, *lines])
    html = _html_env.get_template("email.html").render(
        title=title,
        headline=headline,
        lines=lines,
        order_number=context.get("order_number"),
    )

    return {
        "title": title,
        "subject": subject,
        "message": message,
        "text": f"{title}\n\n{message}",
        "html": html,
    }
